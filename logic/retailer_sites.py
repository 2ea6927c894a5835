"""Registry of retailer sites and their scraping capabilities.

Each :class:`RetailerSite` knows how to build a search URL for an item, how to
pick the primary image off one of its product pages, and how to read the
product tiles of its search listing. Shared code looks a site up by name or URL
and calls these capabilities; adding a retailer means registering a new entry,
not adding a branch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote_plus, urlparse

from bs4 import BeautifulSoup

from models.taxonomy import normalize_text
from tools.product_parser import (
    LISTING_IMAGE_SELECTORS,
    ProductCard,
    first_image,
    listing_images,
    parse_product_cards,
)

PRODUCT_IMAGE_SELECTORS: Tuple[str, ...] = (
    'img[data-testid="product-image"]',
    ".product-image img",
    ".product-gallery img",
    ".main-image img",
    ".hero-image img",
)


@dataclass(frozen=True)
class RetailerSite:
    key: str
    label: str
    base_url: str
    domains: Tuple[str, ...]
    aliases: Tuple[str, ...] = ()
    search_url_template: Optional[str] = None
    image_selectors: Tuple[str, ...] = PRODUCT_IMAGE_SELECTORS
    card_selectors: Tuple[str, ...] = ()
    card_name_selectors: Tuple[str, ...] = (".product-name", ".product-title", "h3")
    card_price_selectors: Tuple[str, ...] = (".price", ".product-price")
    listing_image_selectors: Tuple[str, ...] = field(default=tuple(LISTING_IMAGE_SELECTORS))

    def matches_name(self, hint: str) -> bool:
        text = normalize_text(hint)
        if not text:
            return False
        if text in self.aliases or text == normalize_text(self.label):
            return True
        return any(domain in text.replace(" ", "") for domain in self.domains)

    def matches_url(self, url: str) -> bool:
        host = (urlparse(url).hostname or "").lower()
        return any(domain in host for domain in self.domains)

    def search_url(self, brand: str, name: str) -> Optional[str]:
        if not self.search_url_template:
            return None
        query = f"{brand} {name}".strip()
        if not query:
            return None
        return self.search_url_template.format(query=quote_plus(query))

    def extract_image(self, soup: BeautifulSoup, page_url: str = "") -> Optional[str]:
        """Primary product image from a product page, using site selectors only."""

        return first_image(soup, self.image_selectors, page_url or self.base_url)

    def search_result_images(self, soup: BeautifulSoup, limit: int = 3) -> List[str]:
        return listing_images(soup, self.base_url, self.listing_image_selectors, limit)

    def product_cards(self, soup: BeautifulSoup) -> List[ProductCard]:
        if not self.card_selectors:
            return []
        return parse_product_cards(
            soup,
            self.base_url,
            self.card_selectors,
            self.card_name_selectors,
            self.card_price_selectors,
        )


class RetailerRegistry:
    """Ordered lookup of retailer sites by key, display name or URL."""

    def __init__(self, sites: Sequence[RetailerSite] = ()) -> None:
        self._sites: Dict[str, RetailerSite] = {}
        for site in sites:
            self.register(site)

    def register(self, site: RetailerSite) -> None:
        self._sites[site.key] = site

    def get(self, key: str) -> Optional[RetailerSite]:
        return self._sites.get(key)

    def __iter__(self):
        return iter(self._sites.values())

    def __len__(self) -> int:
        return len(self._sites)

    def find(self, website_hint: Optional[str] = None, url: Optional[str] = None) -> Optional[RetailerSite]:
        """Resolve a site from a product URL first, then from a display name."""

        if url:
            for site in self._sites.values():
                if site.matches_url(url):
                    return site
        if website_hint:
            for site in self._sites.values():
                if site.matches_name(website_hint):
                    return site
        return None


DEFAULT_SITES: Tuple[RetailerSite, ...] = (
    RetailerSite(
        key="ssense",
        label="SSENSE",
        base_url="https://www.ssense.com",
        domains=("ssense",),
        search_url_template="https://www.ssense.com/en-us/search?q={query}",
        image_selectors=(
            'img[data-testid="product-image"]',
            ".product-image img",
            ".product-gallery img",
            'img[alt*="product"]',
            ".main-image img",
        ),
        card_selectors=(".product-tile", ".browsing-product-item", '[data-testid="product-tile"]'),
    ),
    RetailerSite(
        key="end",
        label="END Clothing",
        base_url="https://www.endclothing.com",
        domains=("endclothing",),
        aliases=("end", "end."),
        search_url_template="https://www.endclothing.com/us/search?q={query}",
        image_selectors=(
            ".product-image img",
            ".product-gallery img",
            'img[data-testid="product-image"]',
            ".main-product-image img",
        ),
        card_selectors=(".product-item", ".product-tile", '[data-testid="product"]'),
    ),
    RetailerSite(
        key="farfetch",
        label="Farfetch",
        base_url="https://www.farfetch.com",
        domains=("farfetch",),
        search_url_template="https://www.farfetch.com/shopping/search/items.aspx?q={query}",
        image_selectors=('img[data-testid="product-image"]', ".product-image img", 'img[alt*="product"]'),
    ),
    RetailerSite(
        key="nike",
        label="Nike",
        base_url="https://www.nike.com",
        domains=("nike",),
        image_selectors=(
            'img[data-testid="product-image"]',
            ".product-image img",
            ".hero-image img",
            'img[alt*="Nike"]',
        ),
    ),
    RetailerSite(
        key="adidas",
        label="Adidas",
        base_url="https://www.adidas.com",
        domains=("adidas",),
        image_selectors=(".product-image img", 'img[data-testid="product-image"]', ".hero-image img"),
    ),
    RetailerSite(
        key="asos",
        label="ASOS",
        base_url="https://www.asos.com",
        domains=("asos",),
        search_url_template="https://www.asos.com/search/?q={query}",
    ),
    RetailerSite(
        key="urban_outfitters",
        label="Urban Outfitters",
        base_url="https://www.urbanoutfitters.com",
        domains=("urbanoutfitters",),
        aliases=("urban", "uo"),
        image_selectors=(".product-image img", 'img[data-testid="product-image"]', ".hero-image img"),
    ),
    RetailerSite(
        key="shop_encore",
        label="Shop Encore",
        base_url="https://www.shopencore.ai",
        domains=("shopencore",),
        search_url_template="https://www.shopencore.ai/search?q={query}",
        card_selectors=(".product-item", ".item-card", '[data-testid="product-card"]'),
        card_name_selectors=(".product-name", ".item-name", "h3", "h4"),
        card_price_selectors=(".price", ".product-price", '[data-testid="price"]'),
    ),
    RetailerSite(
        key="grailed",
        label="Grailed",
        base_url="https://www.grailed.com",
        domains=("grailed",),
        search_url_template="https://www.grailed.com/search?query={query}",
        card_selectors=(".feed-item", ".listing-item", '[data-testid="listing-item"]'),
        card_name_selectors=(".listing-title", ".item-title", "h3"),
        card_price_selectors=(".price", ".listing-price"),
    ),
    RetailerSite(
        key="vestiaire",
        label="Vestiaire Collective",
        base_url="https://www.vestiairecollective.com",
        domains=("vestiairecollective", "vestiaire"),
        search_url_template="https://www.vestiairecollective.com/search/?q={query}",
        card_selectors=(".product-item", ".catalog-product", '[data-testid="product"]'),
        card_name_selectors=(".product-title", ".item-title", "h3"),
        card_price_selectors=(".price", ".product-price"),
    ),
    RetailerSite(
        key="therealreal",
        label="TheRealReal",
        base_url="https://www.therealreal.com",
        domains=("therealreal",),
        search_url_template="https://www.therealreal.com/search?keywords={query}",
    ),
)

RESALE_SITE_KEYS: Tuple[str, ...] = ("grailed", "vestiaire", "therealreal")


def default_registry() -> RetailerRegistry:
    return RetailerRegistry(DEFAULT_SITES)


__all__ = [
    "DEFAULT_SITES",
    "PRODUCT_IMAGE_SELECTORS",
    "RESALE_SITE_KEYS",
    "RetailerRegistry",
    "RetailerSite",
    "default_registry",
]
