"""Image resolution cascade.

Strategies are tried strictly in order for a single item. Every candidate a
strategy proposes is validated (reachable, image content type) before it is
accepted; a strategy that raises, times out or yields nothing valid counts as
that step's failure. The static fallback closes the chain, so ``resolve`` is a
total function that always returns a usable URL.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable, List, Optional, Sequence

from adapters.base import ImageSourceAdapter
from logic.fallback_images import DEFAULT_IMAGE_URL, static_fallback_image
from logic.image_strategies import (
    BrandAPIStrategy,
    ExistingImageStrategy,
    ImageQuery,
    ImageSearchStrategy,
    ImageStrategy,
    ProductPageStrategy,
    SearchResultStrategy,
    StaticFallbackStrategy,
)
from logic.retailer_sites import RetailerRegistry, default_registry
from outfit_app.config import AppConfig
from outfit_app.logging_config import get_logger, log_event
from tools.http_client import is_http_url, validate_image_url
from tools.observability import elapsed_ms

LOGGER = get_logger(__name__)

ImageValidator = Callable[[str], Awaitable[bool]]


@dataclass(frozen=True)
class ImageResolution:
    image_url: str
    strategy: str


def default_strategies(
    config: AppConfig,
    image_adapter: Optional[ImageSourceAdapter] = None,
    sites: Optional[RetailerRegistry] = None,
) -> List[ImageStrategy]:
    sites = sites if sites is not None else default_registry()
    strategies: List[ImageStrategy] = [
        ExistingImageStrategy(),
        ProductPageStrategy(sites, timeout=config.page_timeout, user_agent=config.user_agent),
        SearchResultStrategy(sites, timeout=config.page_timeout, user_agent=config.user_agent),
        BrandAPIStrategy(timeout=config.adapter_timeout, user_agent=config.user_agent),
    ]
    if image_adapter is not None:
        strategies.append(ImageSearchStrategy(image_adapter))
    strategies.append(StaticFallbackStrategy())
    return strategies


class ImageResolutionCascade:
    """Resolve a displayable image for one item by trying strategies in order."""

    def __init__(
        self,
        strategies: Sequence[ImageStrategy],
        validator: Optional[ImageValidator] = None,
        step_timeout: float = 30.0,
    ) -> None:
        self.strategies = list(strategies)
        self.validator: ImageValidator = validator or validate_image_url
        self.step_timeout = step_timeout

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        image_adapter: Optional[ImageSourceAdapter] = None,
        sites: Optional[RetailerRegistry] = None,
        validator: Optional[ImageValidator] = None,
    ) -> "ImageResolutionCascade":
        if validator is None:
            validator = partial(
                validate_image_url, timeout=config.validation_timeout, user_agent=config.user_agent
            )
        return cls(
            default_strategies(config, image_adapter, sites),
            validator=validator,
            step_timeout=config.page_timeout + config.validation_timeout,
        )

    async def _is_valid(self, url: str) -> bool:
        try:
            return bool(await self.validator(url))
        except Exception as exc:
            log_event(LOGGER, logging.DEBUG, "image_validation_error", url=url, error=str(exc))
            return False

    def _budget(self, strategy: ImageStrategy) -> float:
        return self.step_timeout * max(1, strategy.timeout_steps)

    async def _attempt(self, strategy: ImageStrategy, query: ImageQuery) -> Optional[str]:
        proposed = await asyncio.wait_for(strategy.candidates(query), timeout=self._budget(strategy))
        checked = 0
        for url in proposed or []:
            if not is_http_url(url):
                continue
            if not strategy.requires_validation:
                return url
            if strategy.max_candidates is not None and checked >= strategy.max_candidates:
                break
            checked += 1
            if await self._is_valid(url):
                return url
        return None

    async def resolve_detailed(self, query: ImageQuery) -> ImageResolution:
        start = time.perf_counter()
        for strategy in self.strategies:
            try:
                image_url = await self._attempt(strategy, query)
            except asyncio.TimeoutError:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "image_strategy_timeout",
                    strategy=strategy.name,
                    item=query.descriptor,
                    timeout=self._budget(strategy),
                )
                continue
            except Exception as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "image_strategy_failed",
                    strategy=strategy.name,
                    item=query.descriptor,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                continue
            if image_url:
                log_event(
                    LOGGER,
                    logging.INFO,
                    "image_resolved",
                    strategy=strategy.name,
                    item=query.descriptor,
                    duration_ms=elapsed_ms(start),
                )
                return ImageResolution(image_url=image_url, strategy=strategy.name)

        fallback = static_fallback_image(query.name, query.brand, query.category) or DEFAULT_IMAGE_URL
        log_event(LOGGER, logging.WARNING, "image_cascade_exhausted", item=query.descriptor)
        return ImageResolution(image_url=fallback, strategy="default")

    async def resolve(self, query: ImageQuery) -> str:
        """Return a non-empty image URL for ``query``; never raises."""

        return (await self.resolve_detailed(query)).image_url


__all__ = ["ImageQuery", "ImageResolution", "ImageResolutionCascade", "default_strategies"]
