"""Image resolution strategies.

Each strategy turns an :class:`ImageQuery` into an ordered list of candidate
image URLs. Strategies never validate; the cascade validates candidates in
order and moves on when none survive.
"""

from __future__ import annotations

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from pydantic import BaseModel, ValidationError

from adapters.base import ImageSourceAdapter
from logic.fallback_images import static_fallback_image
from logic.retailer_sites import RESALE_SITE_KEYS, RetailerRegistry, RetailerSite
from models.taxonomy import FASHION_RETAILER_DOMAINS
from outfit_app.config import DEFAULT_USER_AGENT
from outfit_app.logging_config import get_logger, log_event
from tools.http_client import (
    JSON_ACCEPT,
    HttpFetchError,
    InvalidURLError,
    build_headers,
    fetch_json,
    fetch_text,
    is_http_url,
)
from tools.product_parser import extract_generic_image, parse_html

LOGGER = get_logger(__name__)

UNAVAILABLE_PAGE = "#"
LOOKUP_ERRORS = (HttpFetchError, InvalidURLError, ValidationError, asyncio.TimeoutError)


@dataclass(frozen=True)
class ImageQuery:
    """What the cascade knows about the item whose image is being resolved."""

    name: str = ""
    brand: str = ""
    website_hint: Optional[str] = None
    product_url: Optional[str] = None
    candidate_url: Optional[str] = None
    category: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", str(self.name or "").strip())
        object.__setattr__(self, "brand", str(self.brand or "").strip())

    @property
    def descriptor(self) -> str:
        return f"{self.brand} {self.name}".strip()

    @property
    def has_product_page(self) -> bool:
        return bool(self.product_url) and self.product_url != UNAVAILABLE_PAGE and is_http_url(self.product_url)


def _unique(urls: Iterable[Optional[str]]) -> List[str]:
    ordered: List[str] = []
    for url in urls:
        if url and url not in ordered:
            ordered.append(url)
    return ordered


class ImageStrategy(ABC):
    """One step of the cascade.

    ``timeout_steps`` multiplies the cascade step budget for strategies that may
    fetch several pages in sequence.
    """

    name: str = "strategy"
    max_candidates: Optional[int] = None
    requires_validation: bool = True
    timeout_steps: int = 1

    @abstractmethod
    async def candidates(self, query: ImageQuery) -> List[str]:
        """Candidate image URLs, best first; may raise."""


class ExistingImageStrategy(ImageStrategy):
    name = "existing_url"

    async def candidates(self, query: ImageQuery) -> List[str]:
        return [query.candidate_url] if is_http_url(query.candidate_url) else []


class _PageFetchingStrategy(ImageStrategy):
    def __init__(
        self,
        sites: RetailerRegistry,
        timeout: float = 20.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.sites = sites
        self.timeout = timeout
        self.user_agent = user_agent

    async def _soup(self, url: str) -> BeautifulSoup:
        html = await fetch_text(url, headers=build_headers(user_agent=self.user_agent), timeout=self.timeout)
        return parse_html(html)


class ProductPageStrategy(_PageFetchingStrategy):
    """Scrape the item's own product page: site selectors first, then generic ones."""

    name = "product_page"

    async def candidates(self, query: ImageQuery) -> List[str]:
        if not query.has_product_page:
            return []
        page_url = str(query.product_url)
        soup = await self._soup(page_url)
        site = self.sites.find(query.website_hint, url=page_url)
        site_image = site.extract_image(soup, page_url) if site else None
        return _unique([site_image, extract_generic_image(soup, page_url)])


class SearchResultStrategy(_PageFetchingStrategy):
    """Scrape a synthesised search page when no product page is known."""

    name = "search_results"
    max_candidates = 3
    timeout_steps = len(RESALE_SITE_KEYS)

    def _search_sites(self, query: ImageQuery) -> List[RetailerSite]:
        site = self.sites.find(query.website_hint)
        if site is not None and site.search_url_template:
            return [site]
        return [s for s in (self.sites.get(key) for key in RESALE_SITE_KEYS) if s is not None]

    async def candidates(self, query: ImageQuery) -> List[str]:
        if query.has_product_page or not query.descriptor:
            return []
        for site in self._search_sites(query):
            search_url = site.search_url(query.brand, query.name)
            if not search_url:
                continue
            try:
                soup = await self._soup(search_url)
            except (HttpFetchError, InvalidURLError, asyncio.TimeoutError) as exc:
                log_event(LOGGER, logging.DEBUG, "search_page_unavailable", site=site.key, error=str(exc))
                continue
            images = site.search_result_images(soup, limit=self.max_candidates or 3)
            if not images:
                images = _unique([extract_generic_image(soup, site.base_url)])
            if images:
                return images
        return []


class _NikeObjectImages(BaseModel):
    productImageUrl: Optional[str] = None


class _NikeProductInfo(BaseModel):
    imageUrls: Optional[_NikeObjectImages] = None


class _NikeObject(BaseModel):
    productInfo: Optional[_NikeProductInfo] = None


class _NikeFeed(BaseModel):
    objects: List[_NikeObject] = []


class _AdidasImage(BaseModel):
    src: Optional[str] = None


class _AdidasProduct(BaseModel):
    image: Optional[_AdidasImage] = None


class _AdidasSearch(BaseModel):
    products: List[_AdidasProduct] = []


class _StockXMedia(BaseModel):
    imageUrl: Optional[str] = None


class _StockXProduct(BaseModel):
    media: Optional[_StockXMedia] = None


class _StockXBrowse(BaseModel):
    Products: List[_StockXProduct] = []


class BrandImageLookup(ABC):
    """A brand's (or marketplace's) own product search, used for its first image."""

    name: str = "brand"

    @abstractmethod
    def matches(self, query: ImageQuery) -> bool:
        ...

    @abstractmethod
    async def image_url(self, query: ImageQuery, timeout: float, user_agent: str) -> Optional[str]:
        ...

    @staticmethod
    def _strip_brand(name: str, brand_word: str) -> str:
        return re.sub(brand_word, "", name, flags=re.IGNORECASE).strip()


class NikeLookup(BrandImageLookup):
    name = "nike"
    url = (
        "https://api.nike.com/product_feed/threads/v2/?filter=marketplace%28US%29"
        "&filter=language%28en%29&filter=employeePrice%28true%29&filter=attributeIds%28%29"
        "&anchor=0&consumerChannelId=d9a5bc42-4b9c-4976-858a-f159cf99c647&count=24&sort=relevance"
    )

    def matches(self, query: ImageQuery) -> bool:
        brand = query.brand.lower()
        return "nike" in brand or "jordan" in brand

    async def image_url(self, query: ImageQuery, timeout: float, user_agent: str) -> Optional[str]:
        payload = await fetch_json(
            self.url,
            params={"searchTerms": self._strip_brand(query.name, "nike")},
            headers=build_headers(accept=JSON_ACCEPT, user_agent=user_agent),
            timeout=timeout,
        )
        feed = _NikeFeed.model_validate(payload or {})
        if not feed.objects:
            return None
        info = feed.objects[0].productInfo
        return info.imageUrls.productImageUrl if info and info.imageUrls else None


class AdidasLookup(BrandImageLookup):
    name = "adidas"
    url = "https://www.adidas.com/api/search/product"

    def matches(self, query: ImageQuery) -> bool:
        return "adidas" in query.brand.lower()

    async def image_url(self, query: ImageQuery, timeout: float, user_agent: str) -> Optional[str]:
        payload = await fetch_json(
            self.url,
            params={"query": self._strip_brand(query.name, "adidas"), "start": 0, "count": 12},
            headers=build_headers(accept=JSON_ACCEPT, user_agent=user_agent),
            timeout=timeout,
        )
        search = _AdidasSearch.model_validate(payload or {})
        if not search.products or not search.products[0].image:
            return None
        return search.products[0].image.src


class StockXLookup(BrandImageLookup):
    name = "stockx"
    url = "https://stockx.com/api/browse"
    sneaker_words = ("sneaker", "shoe")
    sneaker_brands = ("jordan", "yeezy")

    def matches(self, query: ImageQuery) -> bool:
        name = query.name.lower()
        brand = query.brand.lower()
        return any(word in name for word in self.sneaker_words) or any(b in brand for b in self.sneaker_brands)

    async def image_url(self, query: ImageQuery, timeout: float, user_agent: str) -> Optional[str]:
        payload = await fetch_json(
            self.url,
            params={"_search": query.descriptor, "dataType": "product"},
            headers=build_headers(accept=JSON_ACCEPT, user_agent=user_agent),
            timeout=timeout,
        )
        browse = _StockXBrowse.model_validate(payload or {})
        if not browse.Products or not browse.Products[0].media:
            return None
        return browse.Products[0].media.imageUrl


DEFAULT_BRAND_LOOKUPS: Sequence[BrandImageLookup] = (NikeLookup(), AdidasLookup(), StockXLookup())


class BrandAPIStrategy(ImageStrategy):
    """First-result images from every lookup that recognises the item."""

    name = "brand_api"

    def __init__(
        self,
        lookups: Sequence[BrandImageLookup] = DEFAULT_BRAND_LOOKUPS,
        timeout: float = 15.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.lookups = list(lookups)
        self.timeout = timeout
        self.user_agent = user_agent

    async def candidates(self, query: ImageQuery) -> List[str]:
        images: List[Optional[str]] = []
        for lookup in self.lookups:
            if not lookup.matches(query):
                continue
            try:
                images.append(await lookup.image_url(query, self.timeout, self.user_agent))
            except LOOKUP_ERRORS as exc:
                log_event(LOGGER, logging.DEBUG, "brand_lookup_failed", lookup=lookup.name, error=str(exc))
        return _unique(images)


class ImageSearchStrategy(ImageStrategy):
    """General image search, preferring images hosted by known fashion retailers."""

    name = "image_search"

    def __init__(
        self,
        adapter: ImageSourceAdapter,
        retailer_domains: Sequence[str] = FASHION_RETAILER_DOMAINS,
        limit: int = 3,
    ) -> None:
        self.adapter = adapter
        self.retailer_domains = tuple(retailer_domains)
        self.limit = limit

    def _is_retailer(self, url: str) -> bool:
        host = (urlparse(url).hostname or "").lower()
        return any(domain in host for domain in self.retailer_domains)

    async def candidates(self, query: ImageQuery) -> List[str]:
        if not query.descriptor:
            return []
        results = await self.adapter.search_images(f"{query.descriptor} product image", limit=self.limit)
        urls = _unique(result.url for result in results)
        return [url for url in urls if self._is_retailer(url)] + [url for url in urls if not self._is_retailer(url)]


class StaticFallbackStrategy(ImageStrategy):
    """Curated placeholder by brand, name keyword or category; never fails."""

    name = "static_fallback"
    requires_validation = False

    async def candidates(self, query: ImageQuery) -> List[str]:
        return [static_fallback_image(query.name, query.brand, query.category)]


__all__ = [
    "AdidasLookup",
    "BrandAPIStrategy",
    "BrandImageLookup",
    "ExistingImageStrategy",
    "ImageQuery",
    "ImageSearchStrategy",
    "ImageStrategy",
    "NikeLookup",
    "ProductPageStrategy",
    "SearchResultStrategy",
    "StaticFallbackStrategy",
    "StockXLookup",
]
