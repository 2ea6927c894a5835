"""Canonical vocabularies shared by adapters, ranking and enrichment.

This module centralises outfit categories, availability labels, brand and
retailer keyword lists, and the price parsing rules used when normalising the
differing payloads returned by product sources.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple

CATEGORIES: Tuple[str, ...] = ("tops", "bottoms", "accessories", "shoes")

CATEGORY_ALIASES = {
    "top": "tops",
    "tops": "tops",
    "bottom": "bottoms",
    "bottoms": "bottoms",
    "accessory": "accessories",
    "accessories": "accessories",
    "shoe": "shoes",
    "shoes": "shoes",
    "footwear": "shoes",
}

DEFAULT_CURRENCY = "USD"

CURRENCY_SYMBOLS = {
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "¥": "JPY",
}

KNOWN_BRANDS: List[str] = [
    "Nike",
    "Adidas",
    "Supreme",
    "Off-White",
    "Balenciaga",
    "Gucci",
    "Louis Vuitton",
    "Prada",
    "Versace",
    "Dior",
    "Saint Laurent",
    "Bottega Veneta",
    "Burberry",
    "Stone Island",
    "CP Company",
    "Acne Studios",
    "Maison Margiela",
    "Rick Owens",
    "Fear of God",
    "Essentials",
    "Yeezy",
    "Jordan",
    "Converse",
    "Vans",
]

FASHION_RETAILER_DOMAINS: Tuple[str, ...] = (
    "nike",
    "adidas",
    "ssense",
    "farfetch",
    "endclothing",
    "asos",
)


class Availability(str, Enum):
    """Stock state of a candidate product."""

    IN_STOCK = "in_stock"
    LIMITED = "limited"
    SOLD_OUT = "sold_out"
    UNKNOWN = "unknown"

    @classmethod
    def normalize(cls, value: Any) -> "Availability":
        """Map booleans and retailer free text onto the canonical labels."""

        if isinstance(value, Availability):
            return value
        if isinstance(value, bool):
            return cls.IN_STOCK if value else cls.SOLD_OUT
        if value is None:
            return cls.UNKNOWN
        text = str(value).strip().lower().replace("-", " ").replace("_", " ")
        if not text:
            return cls.UNKNOWN
        if "sold out" in text or "out of stock" in text or text == "unavailable":
            return cls.SOLD_OUT
        if "limited" in text or "low stock" in text or "pre order" in text or "few left" in text:
            return cls.LIMITED
        if "in stock" in text or text == "available":
            return cls.IN_STOCK
        return cls.UNKNOWN

    @property
    def label(self) -> str:
        """Human readable label shown next to a product."""

        return _AVAILABILITY_LABELS[self]


_AVAILABILITY_LABELS = {
    Availability.IN_STOCK: "In Stock",
    Availability.LIMITED: "Limited Stock",
    Availability.SOLD_OUT: "Sold Out",
    Availability.UNKNOWN: "Unknown",
}


def normalize_category(value: Optional[str]) -> Optional[str]:
    """Return the canonical category for ``value`` or ``None`` if unknown."""

    if not value:
        return None
    return CATEGORY_ALIASES.get(str(value).strip().lower())


def normalize_text(value: Optional[str]) -> str:
    """Lower-case and collapse whitespace for key comparisons."""

    return " ".join(str(value or "").lower().split())


_PRICE_PATTERN = re.compile(r"\d[\d.,]*")


def _parse_amount(raw: str) -> float:
    digits = raw.strip(".,")
    if "," in digits and "." in digits:
        # The right-most separator is the decimal mark.
        if digits.rfind(",") > digits.rfind("."):
            digits = digits.replace(".", "").replace(",", ".")
        else:
            digits = digits.replace(",", "")
    elif "," in digits:
        head, _, tail = digits.rpartition(",")
        if len(tail) == 2 and head.count(",") == 0:
            digits = f"{head}.{tail}"
        else:
            digits = digits.replace(",", "")
    return float(digits)


def parse_price(value: Any, default_currency: str = DEFAULT_CURRENCY) -> Tuple[float, str]:
    """Parse a numeric or textual price into ``(amount, currency)``.

    Accepts plain numbers, numeric strings and labels such as ``"$1,245"`` or
    ``"€150,00"``. Values that cannot be parsed, and negative values, yield an
    amount of ``0.0``.
    """

    currency = default_currency
    if value is None or isinstance(value, bool):
        return 0.0, currency
    if isinstance(value, (int, float)):
        return (float(value) if value >= 0 else 0.0), currency

    text = str(value).strip()
    for symbol, code in CURRENCY_SYMBOLS.items():
        if symbol in text:
            currency = code
            break
    match = _PRICE_PATTERN.search(text)
    if not match:
        return 0.0, currency
    try:
        amount = _parse_amount(match.group(0))
    except ValueError:
        return 0.0, currency
    return max(amount, 0.0), currency


def infer_brand(product_name: str, brands: Iterable[str] = KNOWN_BRANDS) -> str:
    """Pick a known brand mentioned in ``product_name`` or fall back to its first word."""

    upper_name = product_name.upper()
    for brand in brands:
        if brand.upper() in upper_name:
            return brand
    words = product_name.split()
    return words[0] if words else "Unknown"


__all__ = [
    "Availability",
    "CATEGORIES",
    "DEFAULT_CURRENCY",
    "FASHION_RETAILER_DOMAINS",
    "KNOWN_BRANDS",
    "infer_brand",
    "normalize_category",
    "normalize_text",
    "parse_price",
]
