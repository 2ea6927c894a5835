"""Curated placeholder images used when no real image can be resolved."""

from __future__ import annotations

from typing import Optional, Tuple

from models.taxonomy import normalize_category

_GRAILED_PREFIX = (
    "https://process.fs.grailed.com/AJdAgnqCST4iPtnUxiGtTz/auto_image/cache=expiry:max/"
    "rotate=deg:exif/resize=height:700,fit:scale/output=quality:90/compress/"
    "watermark=file:grailed.png,opacity:0.3,position:center/https://cdn.fs.grailed.com/api/file/"
)

NIKE_PLACEHOLDER = (
    "https://static.nike.com/a/images/c_limit,w_592,f_auto/t_product_v1/"
    "i1-665455a5-45de-40fb-945f-c1852b82400d/air-force-1-07-shoes-WrLlWX.png"
)
ADIDAS_PLACEHOLDER = (
    "https://assets.adidas.com/images/h_840,f_auto,q_auto,fl_lossy,c_fill,g_auto/"
    "114f6e6c74574d2aaea3af7800332b8e_9366/Stan_Smith_Shoes_White_FX5500_01_standard.jpg"
)
STREETWEAR_PLACEHOLDER = f"{_GRAILED_PREFIX}2Z8wQpNTQHmMcBrGRR2w"

DEFAULT_IMAGE_URL = "https://images.unsplash.com/photo-1441986300917-64674bd600d8?w=400&q=80"

# (keywords, image) pairs, checked in order against the lower-cased brand.
BRAND_PLACEHOLDERS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("nike", "jordan"), NIKE_PLACEHOLDER),
    (("adidas",), ADIDAS_PLACEHOLDER),
    (("supreme",), STREETWEAR_PLACEHOLDER),
)

# Same shape, checked against the lower-cased item name.
NAME_PLACEHOLDERS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("sneaker", "shoe"), NIKE_PLACEHOLDER),
    (("hoodie",), STREETWEAR_PLACEHOLDER),
    (("t-shirt", "tee"), f"{_GRAILED_PREFIX}example-tshirt"),
    (("jacket",), f"{_GRAILED_PREFIX}example-jacket"),
    (("bag",), f"{_GRAILED_PREFIX}example-bag"),
)

CATEGORY_PLACEHOLDERS = {
    "tops": "https://images.unsplash.com/photo-1521572163474-6864f9cf17ab?w=400&q=80",
    "bottoms": "https://images.unsplash.com/photo-1594633312681-425c7b97ccd1?w=400&q=80",
    "shoes": "https://images.unsplash.com/photo-1549298916-b41d501d3772?w=400&q=80",
    "accessories": "https://images.unsplash.com/photo-1588850561407-ed78c282e89b?w=400&q=80",
}


def _keyword_match(text: str, table: Tuple[Tuple[Tuple[str, ...], str], ...]) -> Optional[str]:
    for keywords, image_url in table:
        if any(keyword in text for keyword in keywords):
            return image_url
    return None


def static_fallback_image(name: str = "", brand: str = "", category: Optional[str] = None) -> str:
    """Deterministic placeholder: brand keyword, then name keyword, then category.

    Always returns a non-empty URL.
    """

    return (
        _keyword_match((brand or "").lower(), BRAND_PLACEHOLDERS)
        or _keyword_match((name or "").lower(), NAME_PLACEHOLDERS)
        or CATEGORY_PLACEHOLDERS.get(normalize_category(category) or "")
        or DEFAULT_IMAGE_URL
    )


__all__ = ["CATEGORY_PLACEHOLDERS", "DEFAULT_IMAGE_URL", "static_fallback_image"]
