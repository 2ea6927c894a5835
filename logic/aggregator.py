"""Concurrent fan-out of a query across every registered source adapter."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterable, List, Optional, Sequence

from adapters.base import SourceAdapter
from logic.ranking import DEFAULT_COMMISSION_TOLERANCE, rank
from models.product import CandidateProduct
from outfit_app.logging_config import get_logger, log_event
from tools.observability import elapsed_ms

LOGGER = get_logger(__name__)


class Aggregator:
    """Query all adapters at once and merge whatever they return.

    Every adapter is awaited to completion; a slow or failing source never
    prevents the others from reporting. Results are concatenated in adapter
    registration order, each adapter's own ordering preserved.
    """

    def __init__(
        self,
        adapters: Iterable[SourceAdapter],
        commission_tolerance: float = DEFAULT_COMMISSION_TOLERANCE,
    ) -> None:
        self.adapters: List[SourceAdapter] = list(adapters)
        self.commission_tolerance = commission_tolerance

    async def _settle(self, adapter: SourceAdapter, query: str, category: Optional[str]) -> List[CandidateProduct]:
        try:
            return list(await adapter.search(query, category) or [])
        except Exception as exc:
            # search() must not raise; log and settle the adapter as empty.
            log_event(
                LOGGER,
                logging.ERROR,
                "adapter_contract_violation",
                source=getattr(adapter, "name", type(adapter).__name__),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return []

    async def aggregate(self, query: str, category: Optional[str] = None) -> List[CandidateProduct]:
        if not query or not query.strip() or not self.adapters:
            return []

        start = time.perf_counter()
        settled: Sequence[List[CandidateProduct]] = await asyncio.gather(
            *(self._settle(adapter, query, category) for adapter in self.adapters)
        )
        merged = [candidate for results in settled for candidate in results]
        log_event(
            LOGGER,
            logging.INFO,
            "aggregate_completed",
            query=query,
            category=category,
            sources=len(self.adapters),
            sources_with_results=sum(1 for results in settled if results),
            candidates=len(merged),
            duration_ms=elapsed_ms(start),
        )
        return merged

    async def search(
        self, query: str, category: Optional[str] = None, limit: Optional[int] = None
    ) -> List[CandidateProduct]:
        """Aggregate, rank and optionally truncate."""

        ranked = rank(await self.aggregate(query, category), self.commission_tolerance)
        return ranked[:limit] if limit is not None else ranked


__all__ = ["Aggregator"]
