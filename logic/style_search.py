"""Style-inspiration queries: celebrity, lookbook and brand-style searches."""

from __future__ import annotations

import re
from typing import List, Optional

from adapters.base import ImageSourceAdapter
from models.product import ImageResult

MAX_STYLE_KEYWORDS = 5
_NON_WORD = re.compile(r"[^\w\s]")


def extract_style_keywords(description: Optional[str], limit: int = MAX_STYLE_KEYWORDS) -> List[str]:
    """Words longer than three letters, punctuation stripped, in order."""

    words = _NON_WORD.sub("", (description or "").lower()).split()
    return [word for word in words if len(word) > 3][:limit]


def style_search_queries(celebrity_name: str, style_description: Optional[str] = None) -> List[str]:
    """Product queries for a celebrity look: name style, keywords, name outfit."""

    name = (celebrity_name or "").strip()
    if not name:
        return extract_style_keywords(style_description)
    return [f"{name} style", *extract_style_keywords(style_description), f"{name} outfit"]


class StyleImageSearch:
    def __init__(self, adapter: ImageSourceAdapter) -> None:
        self.adapter = adapter

    async def search(self, query: str, limit: int = 10) -> List[ImageResult]:
        return await self.adapter.search_images(query, limit=limit)

    async def celebrity(self, celebrity_name: str, style: Optional[str] = None, limit: int = 8) -> List[ImageResult]:
        subject = f"{celebrity_name} {style}" if style else celebrity_name
        return await self.search(f"{subject} fashion style outfit", limit)

    async def lookbook(self, style: str, limit: int = 8) -> List[ImageResult]:
        return await self.search(f"{style} fashion lookbook street style inspiration", limit)

    async def brand_style(self, brand: str, style: str, limit: int = 6) -> List[ImageResult]:
        return await self.search(f"{brand} {style} fashion style outfit", limit)


__all__ = ["StyleImageSearch", "extract_style_keywords", "style_search_queries"]
