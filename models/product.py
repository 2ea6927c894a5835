"""Candidate product and image result models produced by source adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from models.taxonomy import DEFAULT_CURRENCY, Availability, normalize_text

DIRECT_NETWORK_ID = "direct"


def _clean_images(values: Any) -> List[str]:
    """Coerce an image field into an ordered list of non-empty URLs."""

    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    images: List[str] = []
    for value in values:
        if value and str(value).strip():
            images.append(str(value).strip())
    return images


@dataclass
class CandidateProduct:
    """One real, purchasable item found by a source adapter."""

    id: str
    name: str
    brand: str
    price: float
    source_name: str
    product_url: str
    network_id: str = DIRECT_NETWORK_ID
    purchase_url: str = ""
    description: str = ""
    currency: str = DEFAULT_CURRENCY
    commission_rate: float = 0.0
    availability: Availability = Availability.UNKNOWN
    images: List[str] = field(default_factory=list)
    category: Optional[str] = None

    def __post_init__(self) -> None:
        self.id = str(self.id or "").strip()
        self.name = str(self.name or "").strip()
        self.brand = str(self.brand or "").strip()
        if not self.id or not self.name:
            raise ValueError("CandidateProduct requires an id and a name")
        self.price = float(self.price)
        if self.price < 0:
            raise ValueError(f"Negative price for candidate {self.id}: {self.price}")
        self.commission_rate = float(self.commission_rate or 0.0)
        self.availability = Availability.normalize(self.availability)
        self.images = _clean_images(self.images)
        self.purchase_url = self.purchase_url or self.product_url
        self.network_id = self.network_id or DIRECT_NETWORK_ID

    @property
    def dedup_key(self) -> tuple:
        """Identity of the real-world item, independent of source formatting."""

        return normalize_text(self.brand), normalize_text(self.name)

    @property
    def primary_image(self) -> Optional[str]:
        return self.images[0] if self.images else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "description": self.description,
            "price": self.price,
            "currency": self.currency,
            "source_name": self.source_name,
            "product_url": self.product_url,
            "purchase_url": self.purchase_url,
            "network_id": self.network_id,
            "commission_rate": self.commission_rate,
            "availability": self.availability.value,
            "images": list(self.images),
            "category": self.category,
        }


@dataclass
class ImageResult:
    """An image returned by an image-serving adapter."""

    url: str
    title: str = ""
    thumbnail_url: str = ""
    source_url: str = ""
    width: int = 0
    height: int = 0

    @property
    def source_domain(self) -> str:
        """Host of the page the image came from, without a ``www.`` prefix."""

        host = urlparse(self.source_url or self.url).hostname or ""
        return host[4:] if host.startswith("www.") else host

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "thumbnail_url": self.thumbnail_url or self.url,
            "source_url": self.source_url or self.url,
            "source_domain": self.source_domain or "unknown",
            "width": self.width,
            "height": self.height,
        }


__all__ = ["CandidateProduct", "DIRECT_NETWORK_ID", "ImageResult"]
