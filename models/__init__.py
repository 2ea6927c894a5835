"""Model package exports."""

from models.outfit import (
    ClickRecord,
    EnrichedItem,
    EnrichedOutfitDocument,
    GeneratedOutfit,
    OutfitSlotItem,
)
from models.product import CandidateProduct, ImageResult
from models.taxonomy import CATEGORIES, Availability

__all__ = [
    "Availability",
    "CATEGORIES",
    "CandidateProduct",
    "ClickRecord",
    "EnrichedItem",
    "EnrichedOutfitDocument",
    "GeneratedOutfit",
    "ImageResult",
    "OutfitSlotItem",
]
