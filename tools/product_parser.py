"""HTML parsing utilities for retailer product and search pages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

logger = logging.getLogger(__name__)

IMAGE_SOURCE_ATTRIBUTES = ("src", "data-src", "data-lazy", "data-original")

GENERIC_IMAGE_SELECTORS: Sequence[str] = (
    'meta[property="og:image"]',
    'meta[name="twitter:image"]',
    'link[rel="image_src"]',
    'img[alt*="product"]',
    ".product-image img",
    ".product-photo img",
    ".main-image img",
    ".hero-image img",
    'img[data-testid*="product"]',
    'img[class*="product"]',
    'img[id*="product"]',
)

LISTING_IMAGE_SELECTORS: Sequence[str] = (
    'img[alt*="product"]',
    ".product-image img",
    'img[class*="product"]',
)


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def _absolute(url: Optional[str], base_url: str) -> Optional[str]:
    if not url:
        return None
    url = url.strip()
    if not url or url.startswith("data:"):
        return None
    resolved = urljoin(base_url, url) if base_url else url
    return resolved if resolved.startswith("http") else None


def element_image_url(element: Tag, base_url: str = "") -> Optional[str]:
    """Image URL carried by a ``meta``, ``link`` or ``img`` element."""

    if element.name == "meta":
        return _absolute(element.get("content"), base_url)
    if element.name == "link":
        return _absolute(element.get("href"), base_url)
    for attribute in IMAGE_SOURCE_ATTRIBUTES:
        value = element.get(attribute)
        if value:
            return _absolute(value, base_url)
    return None


def first_image(soup: BeautifulSoup, selectors: Iterable[str], base_url: str = "") -> Optional[str]:
    """Return the first image URL found by trying ``selectors`` in order."""

    for selector in selectors:
        element = soup.select_one(selector)
        if element is None:
            continue
        image_url = element_image_url(element, base_url)
        if image_url:
            return image_url
    return None


def extract_generic_image(soup: BeautifulSoup, base_url: str = "") -> Optional[str]:
    """Common meta/attribute patterns that work on most storefronts."""

    return first_image(soup, GENERIC_IMAGE_SELECTORS, base_url)


def listing_images(
    soup: BeautifulSoup,
    base_url: str = "",
    selectors: Sequence[str] = LISTING_IMAGE_SELECTORS,
    limit: int = 3,
) -> List[str]:
    """Collect up to ``limit`` distinct product images from a search listing."""

    images: List[str] = []
    for element in soup.select(", ".join(selectors)):
        image_url = element_image_url(element, base_url)
        if image_url and image_url not in images:
            images.append(image_url)
        if len(images) >= limit:
            break
    return images


@dataclass
class ProductCard:
    """Raw fields scraped from one product tile of a search listing."""

    name: str
    price_text: str
    image_url: Optional[str]
    product_url: str


def parse_product_cards(
    soup: BeautifulSoup,
    base_url: str,
    card_selectors: Sequence[str],
    name_selectors: Sequence[str],
    price_selectors: Sequence[str],
) -> List[ProductCard]:
    """Extract name, price, image and link from each product tile.

    Tiles without a name or a price are skipped. Relative links and images are
    resolved against ``base_url``; a tile without a link points at the site root.
    """

    cards: List[ProductCard] = []
    for element in soup.select(", ".join(card_selectors)):
        name_el = element.select_one(", ".join(name_selectors))
        price_el = element.select_one(", ".join(price_selectors))
        if name_el is None or price_el is None:
            continue
        name = name_el.get_text(strip=True)
        price_text = price_el.get_text(strip=True)
        if not name or not price_text:
            continue
        image_el = element.find("img")
        link_el = element.find("a", href=True)
        cards.append(
            ProductCard(
                name=name,
                price_text=price_text,
                image_url=element_image_url(image_el, base_url) if image_el else None,
                product_url=(_absolute(link_el["href"], base_url) if link_el else None) or base_url,
            )
        )
    logger.debug("Parsed product cards", extra={"base_url": base_url, "count": len(cards)})
    return cards


__all__ = [
    "GENERIC_IMAGE_SELECTORS",
    "ProductCard",
    "element_image_url",
    "extract_generic_image",
    "first_image",
    "listing_images",
    "parse_html",
    "parse_product_cards",
]
