"""Application wiring for the outfit discovery pipeline."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from adapters.base import ImageSourceAdapter, SourceAdapter
from adapters.registry import build_default_adapters, build_image_adapter
from agents.orchestrator import EnrichmentOrchestrator
from logic.aggregator import Aggregator
from logic.image_cascade import ImageQuery, ImageResolutionCascade, ImageValidator
from logic.outfit_parsing import parse_outfit
from logic.retailer_sites import RetailerRegistry, default_registry
from logic.style_search import StyleImageSearch
from memory.query_cache import InMemoryQueryCache, QueryCache
from models.outfit import ClickRecord, EnrichedOutfitDocument
from models.product import CandidateProduct, ImageResult
from outfit_app.config import AppConfig
from outfit_app.logging_config import configure_logging, get_logger, log_event

LOGGER = get_logger(__name__)


class OutfitDiscoveryApp:
    """Wires adapters, aggregator, image cascade, cache and orchestrator together.

    Every collaborator can be injected, which is how tests replace network
    sources with fakes.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        adapters: Optional[Sequence[SourceAdapter]] = None,
        image_adapter: Optional[ImageSourceAdapter] = None,
        cache: Optional[QueryCache] = None,
        validator: Optional[ImageValidator] = None,
        sites: Optional[RetailerRegistry] = None,
    ) -> None:
        self.config = config or AppConfig.from_env()
        configure_logging()
        self.sites = sites if sites is not None else default_registry()
        self.adapters = list(adapters) if adapters is not None else build_default_adapters(self.config, self.sites)
        self.image_adapter = image_adapter or build_image_adapter(self.config)
        if cache is None:
            cache = InMemoryQueryCache(
                ttl_seconds=self.config.cache_ttl_seconds, max_entries=self.config.cache_max_entries
            )
        self.cache = cache
        self.aggregator = Aggregator(self.adapters, commission_tolerance=self.config.commission_tolerance)
        self.cascade = ImageResolutionCascade.from_config(
            self.config, self.image_adapter, self.sites, validator=validator
        )
        self.orchestrator = EnrichmentOrchestrator(
            self.aggregator,
            self.cascade,
            cache=self.cache,
            commission_tolerance=self.config.commission_tolerance,
            max_alternatives=self.config.max_alternatives,
        )
        self.style_images = StyleImageSearch(self.image_adapter)
        log_event(
            LOGGER,
            logging.INFO,
            "discovery_app_initialized",
            environment=self.config.environment or "local",
            adapters=[adapter.name for adapter in self.adapters],
        )

    async def enrich_outfit(
        self,
        outfit: Any,
        query: Optional[str] = None,
        celebrity_name: Optional[str] = None,
        style_description: Optional[str] = None,
    ) -> EnrichedOutfitDocument:
        generated = parse_outfit(outfit)
        if query:
            return await self.orchestrator.enrich_for_query(
                query, generated, celebrity_name=celebrity_name, style_description=style_description
            )
        return await self.orchestrator.enrich(
            generated, celebrity_name=celebrity_name, style_description=style_description
        )

    async def search_products(
        self, query: str, category: Optional[str] = None, limit: Optional[int] = None
    ) -> List[CandidateProduct]:
        return await self.aggregator.search(query, category, limit)

    async def resolve_image(
        self,
        name: str,
        brand: str = "",
        website: Optional[str] = None,
        product_url: Optional[str] = None,
        image_url: Optional[str] = None,
        category: Optional[str] = None,
    ) -> str:
        return await self.cascade.resolve(
            ImageQuery(
                name=name,
                brand=brand,
                website_hint=website,
                product_url=product_url,
                candidate_url=image_url,
                category=category,
            )
        )

    async def search_style_images(
        self,
        query: Optional[str] = None,
        limit: int = 10,
        kind: str = "search",
        celebrity: Optional[str] = None,
        style: Optional[str] = None,
        brand: Optional[str] = None,
    ) -> List[ImageResult]:
        """Dispatch on ``kind``; a missing required parameter yields no images.

        ``celebrity`` needs a name, ``lookbook`` a style, ``brand`` a brand and a
        style. Any other kind is a plain ``query`` search.
        """

        if kind == "celebrity":
            return await self.style_images.celebrity(celebrity, style, limit) if celebrity else []
        if kind == "lookbook":
            return await self.style_images.lookbook(style, limit) if style else []
        if kind == "brand":
            return await self.style_images.brand_style(brand, style, limit) if brand and style else []
        return await self.style_images.search(query, limit) if query else []

    def record_click(
        self,
        candidate_id: Optional[str],
        purchase_url: Optional[str],
        network_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ClickRecord:
        record = ClickRecord.create(candidate_id, purchase_url, network_id=network_id, user_id=user_id)
        log_event(
            LOGGER,
            logging.INFO,
            "product_click_recorded",
            candidate_id=record.candidate_id,
            network_id=record.network_id,
            user_id=user_id,
        )
        return record

    def health(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "service": "outfit-discovery",
            "environment": self.config.environment or "local",
            "sources": self.config.configured_sources(),
            "adapters": [adapter.name for adapter in self.adapters],
        }


__all__ = ["OutfitDiscoveryApp"]
