"""ShopStyle product search adapter."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from adapters.base import SourceAdapter
from models.product import CandidateProduct
from models.taxonomy import normalize_category, parse_price
from outfit_app.logging_config import get_logger, log_event
from tools.http_client import JSON_ACCEPT, build_headers, fetch_json

LOGGER = get_logger(__name__)

SHOPSTYLE_URL = "https://api.shopstyle.com/api/v2/products"
DEFAULT_SHOPSTYLE_CATEGORY = "mens-clothing"
_SHOPSTYLE_CATEGORIES = {
    "shoes": "mens-shoes",
    "accessories": "mens-accessories",
}


class _Named(BaseModel):
    name: Optional[str] = None


class _ImageSize(BaseModel):
    url: Optional[str] = None


class _Image(BaseModel):
    url: Optional[str] = None
    sizes: Dict[str, _ImageSize] = {}

    @property
    def best_url(self) -> Optional[str]:
        best = self.sizes.get("Best")
        return (best.url if best else None) or self.url


class _ShopStyleProduct(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Union[str, int]
    name: str
    brand: Optional[_Named] = None
    description: Optional[str] = None
    price: Any = None
    price_label: Optional[str] = Field(None, alias="priceLabel")
    image: Optional[_Image] = None
    retailer: Optional[_Named] = None
    click_url: Optional[str] = Field(None, alias="clickUrl")
    url: Optional[str] = None
    category: Optional[_Named] = None
    in_stock: Optional[bool] = Field(None, alias="inStock")


class _ShopStyleResponse(BaseModel):
    products: List[Dict[str, Any]] = []


class ShopStyleAdapter(SourceAdapter):
    """Keyed (``pid``) search; broadens to the first two words on a miss."""

    name = "shopstyle"

    def __init__(self, api_key: Optional[str], results: int = 20, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self.results = results

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _search(self, query: str, category: Optional[str]) -> List[CandidateProduct]:
        candidates = await self._fetch(query, category)
        broader = " ".join(query.split()[:2])
        if candidates or broader == query:
            return candidates
        log_event(LOGGER, logging.DEBUG, "shopstyle_broadened_query", query=query, broader=broader)
        return await self._fetch(broader, category)

    async def _fetch(self, query: str, category: Optional[str]) -> List[CandidateProduct]:
        params = {
            "pid": self.api_key,
            "format": "json",
            "fts": query,
            "offset": 0,
            "limit": self.results,
            "cat": _SHOPSTYLE_CATEGORIES.get(normalize_category(category) or "", DEFAULT_SHOPSTYLE_CATEGORY),
        }
        payload = await fetch_json(
            SHOPSTYLE_URL,
            params=params,
            headers=build_headers(accept=JSON_ACCEPT, user_agent=self.user_agent),
            timeout=self.timeout,
        )
        response = _ShopStyleResponse.model_validate(payload or {})
        return self._collect(response.products, self._to_candidate)

    def _to_candidate(self, raw: Dict[str, Any]) -> Optional[CandidateProduct]:
        record = _ShopStyleProduct.model_validate(raw)
        image_url = record.image.best_url if record.image else None
        product_url = record.click_url or record.url
        if not image_url or not product_url:
            return None
        price, currency = parse_price(record.price if record.price is not None else record.price_label)
        return CandidateProduct(
            id=f"shopstyle:{record.id}",
            name=record.name,
            brand=(record.brand.name if record.brand else None) or "",
            description=record.description or "",
            price=price,
            currency=currency,
            source_name=(record.retailer.name if record.retailer else None) or "ShopStyle",
            product_url=product_url,
            network_id=self.network_id,
            availability=record.in_stock,
            images=[image_url],
            category=normalize_category(record.category.name if record.category else None),
        )


__all__ = ["SHOPSTYLE_URL", "ShopStyleAdapter"]
