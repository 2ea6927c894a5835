"""Google Custom Search image adapter."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from adapters.base import ImageSourceAdapter
from models.product import ImageResult
from tools.http_client import JSON_ACCEPT, build_headers, fetch_json

CUSTOM_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
MAX_RESULTS_PER_REQUEST = 10


class _ImageMeta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    thumbnail_link: Optional[str] = Field(None, alias="thumbnailLink")
    context_link: Optional[str] = Field(None, alias="contextLink")
    width: int = 0
    height: int = 0


class _SearchItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    link: str
    title: Optional[str] = None
    image: Optional[_ImageMeta] = None


class _SearchResponse(BaseModel):
    items: List[Any] = []


class GoogleImageSearchAdapter(ImageSourceAdapter):
    """Image search over a Custom Search engine; needs an API key and engine id."""

    name = "google_images"

    def __init__(
        self,
        api_key: Optional[str],
        search_engine_id: Optional[str],
        image_type: str = "photo",
        image_size: str = "large",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self.search_engine_id = search_engine_id
        self.image_type = image_type
        self.image_size = image_size

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.search_engine_id)

    async def _search_images(self, descriptor: str, limit: int) -> List[ImageResult]:
        params = {
            "key": self.api_key,
            "cx": self.search_engine_id,
            "q": descriptor,
            "searchType": "image",
            "num": max(1, min(limit, MAX_RESULTS_PER_REQUEST)),
            "imgType": self.image_type,
            "imgSize": self.image_size,
            "imgColorType": "color",
            "safe": "active",
        }
        payload = await fetch_json(
            CUSTOM_SEARCH_URL,
            params=params,
            headers=build_headers(accept=JSON_ACCEPT, user_agent=self.user_agent),
            timeout=self.timeout,
        )
        response = _SearchResponse.model_validate(payload or {})
        return self._collect(response.items, self._to_result)

    @staticmethod
    def _to_result(raw: Any) -> Optional[ImageResult]:
        item = _SearchItem.model_validate(raw)
        if not item.link:
            return None
        meta = item.image or _ImageMeta()
        return ImageResult(
            url=item.link,
            title=item.title or "Style Image",
            thumbnail_url=meta.thumbnail_link or item.link,
            source_url=meta.context_link or item.link,
            width=meta.width,
            height=meta.height,
        )


__all__ = ["CUSTOM_SEARCH_URL", "GoogleImageSearchAdapter"]
