"""Outfit enrichment orchestrator.

Turns a generated outfit (generic slot items per category) into an enriched
document: each slot item is matched to the best-ranked real product when one
exists, otherwise it keeps its generic description and receives an image from
the resolution cascade.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from logic.aggregator import Aggregator
from logic.fallback_images import DEFAULT_IMAGE_URL
from logic.image_cascade import ImageQuery, ImageResolutionCascade
from logic.ranking import DEFAULT_COMMISSION_TOLERANCE, rank
from logic.style_search import style_search_queries
from memory.query_cache import QueryCache
from models.outfit import EnrichedItem, EnrichedOutfitDocument, GeneratedOutfit, OutfitSlotItem, category_slots
from models.product import CandidateProduct
from models.taxonomy import CATEGORIES
from outfit_app.logging_config import get_logger, log_event, operation_context
from tools.observability import instrument_operation

LOGGER = get_logger(__name__)

STYLE_ALTERNATIVES_LIMIT = 8


class EnrichmentOrchestrator:
    """Enrich every slot item of an outfit concurrently and assemble the document."""

    def __init__(
        self,
        aggregator: Aggregator,
        cascade: ImageResolutionCascade,
        cache: Optional[QueryCache] = None,
        commission_tolerance: float = DEFAULT_COMMISSION_TOLERANCE,
        max_alternatives: int = 3,
    ) -> None:
        self.aggregator = aggregator
        self.cascade = cascade
        self.cache = cache
        self.commission_tolerance = commission_tolerance
        self.max_alternatives = max_alternatives

    async def _resolve_image(self, query: ImageQuery) -> str:
        try:
            image_url = await self.cascade.resolve(query)
        except Exception:
            log_event(LOGGER, logging.ERROR, "image_cascade_defect", item=query.descriptor, exc_info=True)
            return DEFAULT_IMAGE_URL
        return image_url or DEFAULT_IMAGE_URL

    async def _enrich_item(self, slot: OutfitSlotItem) -> EnrichedItem:
        ranked = rank(
            await self.aggregator.aggregate(slot.search_query, slot.category),
            self.commission_tolerance,
        )
        if not ranked:
            image_url = await self._resolve_image(
                ImageQuery(name=slot.name, brand=slot.brand, category=slot.category)
            )
            return EnrichedItem.fallback(slot, image_url)

        best = ranked[0]
        image_url = best.primary_image or await self._resolve_image(
            ImageQuery(
                name=best.name,
                brand=best.brand,
                website_hint=best.source_name,
                product_url=best.product_url,
                category=slot.category,
            )
        )
        alternatives = ranked[1 : 1 + self.max_alternatives]
        return EnrichedItem.from_candidate(slot, best, image_url, alternatives)

    async def _enrich_slot(self, slot: OutfitSlotItem) -> EnrichedItem:
        try:
            item = await self._enrich_item(slot)
        except Exception:
            log_event(
                LOGGER,
                logging.ERROR,
                "item_enrichment_failed",
                item=slot.search_query,
                category=slot.category,
                exc_info=True,
            )
            image_url = await self._resolve_image(
                ImageQuery(name=slot.name, brand=slot.brand, category=slot.category)
            )
            return EnrichedItem.fallback(slot, image_url)
        log_event(
            LOGGER,
            logging.DEBUG,
            "item_enriched",
            item=slot.search_query,
            category=slot.category,
            is_real_product=item.is_real_product,
        )
        return item

    async def find_style_alternatives(
        self,
        celebrity_name: str,
        style_description: Optional[str] = None,
        limit: int = STYLE_ALTERNATIVES_LIMIT,
    ) -> List[CandidateProduct]:
        """Products matching a celebrity's look, ranked across every style query."""

        queries = style_search_queries(celebrity_name, style_description)
        if not queries:
            return []
        results = await asyncio.gather(*(self.aggregator.aggregate(query) for query in queries))
        return rank([c for batch in results for c in batch], self.commission_tolerance)[:limit]

    async def _safe_style_alternatives(
        self, celebrity_name: Optional[str], style_description: Optional[str]
    ) -> List[CandidateProduct]:
        if not celebrity_name:
            return []
        try:
            return await self.find_style_alternatives(celebrity_name, style_description)
        except Exception:
            log_event(LOGGER, logging.ERROR, "style_alternatives_failed", exc_info=True)
            return []

    @instrument_operation("enrich_outfit")
    async def enrich(
        self,
        outfit: Any,
        celebrity_name: Optional[str] = None,
        style_description: Optional[str] = None,
    ) -> EnrichedOutfitDocument:
        """Enrich every slot item; the document always has one item per slot.

        Raises:
            ValueError: If ``outfit`` is missing or not an outfit mapping.
        """

        generated = GeneratedOutfit.coerce(outfit)
        slots = category_slots(generated)
        with operation_context("agent:orchestrator.enrich", items=len(slots)) as correlation_id:
            log_event(
                LOGGER,
                logging.INFO,
                "enrichment_started",
                correlation_id=correlation_id,
                items=len(slots),
            )
            enriched, style_alternatives = await asyncio.gather(
                asyncio.gather(*(self._enrich_slot(slot) for _, slot in slots)),
                self._safe_style_alternatives(celebrity_name, style_description),
            )

            grouped: Dict[str, List[EnrichedItem]] = {category: [] for category in CATEGORIES}
            for (category, _), item in zip(slots, enriched):
                grouped[category].append(item)

            document = EnrichedOutfitDocument.assemble(
                generated.main_description,
                generated.style_keywords,
                grouped,
                style_alternatives,
            )
            log_event(
                LOGGER,
                logging.INFO,
                "enrichment_completed",
                correlation_id=correlation_id,
                items=len(enriched),
                real_products=document.real_product_count,
                total_price=document.total_price,
            )
            return document

    def _cached(self, query: str) -> Optional[EnrichedOutfitDocument]:
        if self.cache is None or not query:
            return None
        try:
            return self.cache.get(query)
        except Exception:
            log_event(LOGGER, logging.WARNING, "query_cache_read_failed", exc_info=True)
            return None

    def _store(self, query: str, document: EnrichedOutfitDocument) -> None:
        if self.cache is None or not query:
            return
        try:
            self.cache.set(query, document)
        except Exception:
            log_event(LOGGER, logging.WARNING, "query_cache_write_failed", exc_info=True)

    async def enrich_for_query(
        self,
        query: str,
        outfit: Any,
        celebrity_name: Optional[str] = None,
        style_description: Optional[str] = None,
    ) -> EnrichedOutfitDocument:
        """Read-through/write-through enrichment keyed by the user's query.

        Celebrity and style inputs, when present, join the cache key.
        """

        key = " | ".join(part for part in (query, celebrity_name, style_description) if part) if query else ""
        cached = self._cached(key)
        if cached is not None:
            log_event(LOGGER, logging.INFO, "query_cache_hit", query=key)
            return cached
        document = await self.enrich(outfit, celebrity_name=celebrity_name, style_description=style_description)
        self._store(key, document)
        return document


__all__ = ["EnrichmentOrchestrator", "STYLE_ALTERNATIVES_LIMIT"]
