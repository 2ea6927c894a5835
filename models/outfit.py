"""Outfit slot items and the enriched outfit document."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from models.product import CandidateProduct
from models.taxonomy import CATEGORIES, DEFAULT_CURRENCY

UNAVAILABLE_PURCHASE_URL = "#"
FALLBACK_AVAILABILITY = "Check Availability"
FALLBACK_SOURCE_NAME = "peacedrobe"


def _dedupe_tags(values: Iterable[Any]) -> Tuple[str, ...]:
    tags: List[str] = []
    for value in values or ():
        tag = str(value).strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


@dataclass(frozen=True)
class OutfitSlotItem:
    """A generic garment or accessory proposed by the generation step."""

    name: str
    category: str
    brand: str = ""
    description: str = ""
    style_tags: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", str(self.name or "").strip())
        object.__setattr__(self, "brand", str(self.brand or "").strip())
        object.__setattr__(self, "description", str(self.description or "").strip())
        object.__setattr__(self, "style_tags", _dedupe_tags(self.style_tags))

    @property
    def search_query(self) -> str:
        """Query used to look the item up across product sources."""

        return f"{self.brand} {self.name}".strip()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], category: str) -> "OutfitSlotItem":
        tags = data.get("style_tags") or data.get("style_keywords") or ()
        if isinstance(tags, str):
            tags = [tags]
        return cls(
            name=str(data.get("name") or ""),
            category=category,
            brand=str(data.get("brand") or ""),
            description=str(data.get("description") or ""),
            style_tags=tuple(tags),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "brand": self.brand,
            "category": self.category,
            "style_tags": list(self.style_tags),
        }


@dataclass
class GeneratedOutfit:
    """The generation step's proposal: slot items grouped by category."""

    main_description: str = ""
    style_keywords: List[str] = field(default_factory=list)
    items: Dict[str, List[OutfitSlotItem]] = field(default_factory=dict)

    def items_for(self, category: str) -> List[OutfitSlotItem]:
        """Slot items for ``category``; a missing category has no items."""

        return list(self.items.get(category) or [])

    @property
    def item_count(self) -> int:
        return sum(len(self.items_for(category)) for category in CATEGORIES)

    @classmethod
    def coerce(cls, value: Any) -> "GeneratedOutfit":
        """Accept a ``GeneratedOutfit`` or a plain ``{category: [items]}`` mapping."""

        if isinstance(value, GeneratedOutfit):
            return value
        if value is None:
            raise ValueError("An outfit is required for enrichment")
        if not isinstance(value, Mapping):
            raise ValueError(f"Unsupported outfit payload type: {type(value).__name__}")

        items: Dict[str, List[OutfitSlotItem]] = {}
        for category in CATEGORIES:
            raw_items = value.get(category)
            if not isinstance(raw_items, (list, tuple)):
                continue
            slot_items: List[OutfitSlotItem] = []
            for raw in raw_items:
                if isinstance(raw, OutfitSlotItem):
                    slot_items.append(raw)
                elif isinstance(raw, Mapping):
                    slot_items.append(OutfitSlotItem.from_dict(raw, category))
            items[category] = slot_items

        keywords = value.get("style_keywords") or []
        if isinstance(keywords, str):
            keywords = keywords.split(",")
        return cls(
            main_description=str(value.get("main_description") or ""),
            style_keywords=[str(keyword).strip() for keyword in keywords if str(keyword).strip()],
            items=items,
        )


@dataclass(frozen=True)
class ClickRecord:
    """Attribution data recorded when a purchase link is activated."""

    candidate_id: str
    purchase_url: str
    network_id: str
    timestamp: str
    user_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "purchase_url": self.purchase_url,
            "network_id": self.network_id,
            "timestamp": self.timestamp,
            "user_id": self.user_id,
        }

    @classmethod
    def create(
        cls,
        candidate_id: Optional[str],
        purchase_url: Optional[str],
        network_id: Optional[str] = None,
        user_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> "ClickRecord":
        """Stamp a click; a record without candidate id or purchase URL is rejected."""

        if not candidate_id or not purchase_url or purchase_url == UNAVAILABLE_PURCHASE_URL:
            raise ValueError("A click record needs a candidate id and a purchase URL")
        moment = timestamp or datetime.now(timezone.utc)
        return cls(
            candidate_id=candidate_id,
            purchase_url=purchase_url,
            network_id=network_id or "direct",
            timestamp=moment.isoformat(),
            user_id=user_id,
        )


@dataclass(frozen=True)
class EnrichedItem:
    """A slot item with resolved commerce and image data."""

    name: str
    category: str
    brand: str
    description: str
    style_tags: Tuple[str, ...]
    image_url: str
    is_real_product: bool
    price: float = 0.0
    currency: str = DEFAULT_CURRENCY
    source_name: str = FALLBACK_SOURCE_NAME
    product_url: str = UNAVAILABLE_PURCHASE_URL
    purchase_url: str = UNAVAILABLE_PURCHASE_URL
    network_id: Optional[str] = None
    commission_rate: float = 0.0
    availability: str = FALLBACK_AVAILABILITY
    candidate_id: Optional[str] = None
    alternatives: Tuple[CandidateProduct, ...] = ()

    def __post_init__(self) -> None:
        if not self.image_url:
            raise ValueError(f"Enriched item '{self.name}' has no image")
        if self.is_real_product and not self.candidate_id:
            raise ValueError("A real product must carry its candidate id")
        if not self.is_real_product:
            if self.price != 0 or self.purchase_url != UNAVAILABLE_PURCHASE_URL:
                raise ValueError("Fallback items are unpriced and unpurchasable")
            if self.candidate_id is not None:
                raise ValueError("Fallback items have no candidate id")

    @classmethod
    def from_candidate(
        cls,
        slot: OutfitSlotItem,
        candidate: CandidateProduct,
        image_url: str,
        alternatives: Sequence[CandidateProduct] = (),
    ) -> "EnrichedItem":
        return cls(
            name=slot.name,
            category=slot.category,
            brand=slot.brand,
            description=slot.description,
            style_tags=slot.style_tags,
            image_url=image_url,
            is_real_product=True,
            price=candidate.price,
            currency=candidate.currency,
            source_name=candidate.source_name,
            product_url=candidate.product_url,
            purchase_url=candidate.purchase_url,
            network_id=candidate.network_id,
            commission_rate=candidate.commission_rate,
            availability=candidate.availability.label,
            candidate_id=candidate.id,
            alternatives=tuple(alternatives),
        )

    @classmethod
    def fallback(cls, slot: OutfitSlotItem, image_url: str) -> "EnrichedItem":
        return cls(
            name=slot.name,
            category=slot.category,
            brand=slot.brand,
            description=slot.description,
            style_tags=slot.style_tags,
            image_url=image_url,
            is_real_product=False,
        )

    def click_record(
        self, user_id: Optional[str] = None, timestamp: Optional[datetime] = None
    ) -> ClickRecord:
        """Build the attribution record for a purchase-link activation."""

        if not self.is_real_product or not self.candidate_id:
            raise ValueError(f"'{self.name}' is not a purchasable product")
        return ClickRecord.create(
            self.candidate_id,
            self.purchase_url,
            network_id=self.network_id,
            user_id=user_id,
            timestamp=timestamp,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "brand": self.brand,
            "category": self.category,
            "style_tags": list(self.style_tags),
            "price": self.price,
            "currency": self.currency,
            "source_name": self.source_name,
            "product_url": self.product_url,
            "purchase_url": self.purchase_url,
            "network_id": self.network_id,
            "commission_rate": self.commission_rate,
            "availability": self.availability,
            "image_url": self.image_url,
            "is_real_product": self.is_real_product,
            "candidate_id": self.candidate_id,
            "alternatives": [candidate.to_dict() for candidate in self.alternatives],
        }


@dataclass(frozen=True)
class EnrichedOutfitDocument:
    """The full enrichment response for one query."""

    main_description: str
    style_keywords: Tuple[str, ...]
    tops: Tuple[EnrichedItem, ...]
    bottoms: Tuple[EnrichedItem, ...]
    accessories: Tuple[EnrichedItem, ...]
    shoes: Tuple[EnrichedItem, ...]
    total_price: float
    real_product_count: int
    style_alternatives: Tuple[CandidateProduct, ...] = ()

    @classmethod
    def assemble(
        cls,
        main_description: str,
        style_keywords: Iterable[str],
        items_by_category: Mapping[str, Sequence[EnrichedItem]],
        style_alternatives: Sequence[CandidateProduct] = (),
    ) -> "EnrichedOutfitDocument":
        """Build a document, deriving the totals from the settled items."""

        grouped = {category: tuple(items_by_category.get(category) or ()) for category in CATEGORIES}
        every_item = [item for category in CATEGORIES for item in grouped[category]]
        return cls(
            main_description=main_description,
            style_keywords=tuple(style_keywords),
            tops=grouped["tops"],
            bottoms=grouped["bottoms"],
            accessories=grouped["accessories"],
            shoes=grouped["shoes"],
            total_price=round(sum(item.price for item in every_item), 2),
            real_product_count=sum(1 for item in every_item if item.is_real_product),
            style_alternatives=tuple(style_alternatives),
        )

    def items(self) -> List[EnrichedItem]:
        return [*self.tops, *self.bottoms, *self.accessories, *self.shoes]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "main_description": self.main_description,
            "style_keywords": list(self.style_keywords),
            "total_price": self.total_price,
            "real_product_count": self.real_product_count,
        }
        for category in CATEGORIES:
            payload[category] = [item.to_dict() for item in getattr(self, category)]
        if self.style_alternatives:
            payload["style_alternatives"] = [c.to_dict() for c in self.style_alternatives]
        return payload


def category_slots(outfit: GeneratedOutfit) -> List[Tuple[str, OutfitSlotItem]]:
    """Flatten an outfit into ``(category, item)`` pairs in document order."""

    return [(category, item) for category in CATEGORIES for item in outfit.items_for(category)]


__all__ = [
    "ClickRecord",
    "EnrichedItem",
    "EnrichedOutfitDocument",
    "FALLBACK_AVAILABILITY",
    "FALLBACK_SOURCE_NAME",
    "GeneratedOutfit",
    "OutfitSlotItem",
    "UNAVAILABLE_PURCHASE_URL",
    "category_slots",
]
