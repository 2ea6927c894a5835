"""Shared contract for product and image source adapters.

Adapters never raise past ``search``/``search_images``: network errors,
timeouts, malformed payloads and missing credentials all surface as an empty
result so the aggregator can treat every registered source uniformly.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Optional

from models.product import CandidateProduct, ImageResult
from outfit_app.config import DEFAULT_USER_AGENT
from outfit_app.logging_config import get_logger, log_event
from tools.observability import elapsed_ms

LOGGER = get_logger(__name__)

RECORD_ERRORS = (ValueError, KeyError, TypeError, AttributeError)


class _BoundedSource(ABC):
    """Common timeout, credential and logging plumbing for adapters."""

    name: str = "source"

    def __init__(self, timeout: float = 15.0, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    @property
    def is_configured(self) -> bool:
        """Whether the source has what it needs (credentials, endpoint) to run."""

        return True

    async def _guarded(self, operation: str, query: str, call: Callable[[], Any]) -> List[Any]:
        if not query or not query.strip():
            return []
        if not self.is_configured:
            log_event(LOGGER, logging.DEBUG, "source_unconfigured", source=self.name, operation=operation)
            return []

        start = time.perf_counter()
        try:
            results = await asyncio.wait_for(call(), timeout=self.timeout)
        except asyncio.TimeoutError:
            log_event(
                LOGGER,
                logging.WARNING,
                "source_search_timeout",
                source=self.name,
                operation=operation,
                timeout=self.timeout,
            )
            return []
        except Exception as exc:
            log_event(
                LOGGER,
                logging.WARNING,
                "source_search_failed",
                source=self.name,
                operation=operation,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return []

        results = list(results or [])
        log_event(
            LOGGER,
            logging.INFO,
            "source_search_completed",
            source=self.name,
            operation=operation,
            count=len(results),
            duration_ms=elapsed_ms(start),
        )
        return results

    def _collect(self, records: Iterable[Any], parse: Callable[[Any], Optional[Any]]) -> List[Any]:
        """Parse each raw record, skipping the malformed ones."""

        parsed: List[Any] = []
        skipped = 0
        for record in records or []:
            try:
                item = parse(record)
            except RECORD_ERRORS:
                skipped += 1
                continue
            if item is not None:
                parsed.append(item)
        if skipped:
            log_event(LOGGER, logging.DEBUG, "source_records_skipped", source=self.name, skipped=skipped)
        return parsed


class SourceAdapter(_BoundedSource):
    """Integration with one external source of purchasable products."""

    network_id: str = "direct"

    async def search(self, query: str, category: Optional[str] = None) -> List[CandidateProduct]:
        """Return normalised candidates in the source's own relevance order."""

        return await self._guarded("search", query, lambda: self._search(query.strip(), category))

    @abstractmethod
    async def _search(self, query: str, category: Optional[str]) -> List[CandidateProduct]:
        """Query the source; may raise, the public ``search`` absorbs it."""


class ImageSourceAdapter(_BoundedSource):
    """Integration with an external source that serves images, not products."""

    async def search_images(self, descriptor: str, limit: int = 10) -> List[ImageResult]:
        return await self._guarded(
            "search_images", descriptor, lambda: self._search_images(descriptor.strip(), limit)
        )

    @abstractmethod
    async def _search_images(self, descriptor: str, limit: int) -> List[ImageResult]:
        """Query the image source; may raise, ``search_images`` absorbs it."""


__all__ = ["ImageSourceAdapter", "RECORD_ERRORS", "SourceAdapter"]
