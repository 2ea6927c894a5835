"""Storefront JSON search adapters for retailers without an affiliate feed."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urljoin

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from adapters.base import SourceAdapter
from models.product import CandidateProduct
from models.taxonomy import Availability, normalize_category, parse_price
from tools.http_client import JSON_ACCEPT, build_headers, fetch_json


class _StorefrontProduct(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Union[str, int] = Field(validation_alias=AliasChoices("id", "productId"))
    name: str = Field(validation_alias=AliasChoices("name", "productName"))
    brand: Any = Field(None, validation_alias=AliasChoices("brand", "designer"))
    description: Optional[str] = None
    price: Any = None
    url: Optional[str] = Field(None, validation_alias=AliasChoices("url", "productUrl"))
    images: List[Any] = []
    image_url: Optional[str] = Field(None, validation_alias="imageUrl")
    category: Optional[str] = None
    in_stock: Optional[bool] = Field(None, validation_alias="inStock")

    def price_and_currency(self) -> Tuple[float, str]:
        if isinstance(self.price, dict):
            amount, currency = parse_price(self.price.get("amount"))
            return amount, self.price.get("currency") or currency
        return parse_price(self.price)

    def brand_name(self) -> str:
        if isinstance(self.brand, dict):
            return str(self.brand.get("name") or "")
        return str(self.brand or "")

    def primary_image(self) -> Optional[str]:
        for image in self.images:
            if isinstance(image, dict):
                image = image.get("url") or image.get("src")
            if image:
                return str(image)
        return self.image_url


class _StorefrontResponse(BaseModel):
    products: List[Dict[str, Any]] = []


@dataclass(frozen=True)
class Storefront:
    key: str
    label: str
    base_url: str
    query_param: str
    limit_param: str = "limit"
    extra_params: tuple = (("sort", "relevance"),)

    @property
    def search_endpoint(self) -> str:
        return f"{self.base_url}/api/search"


FARFETCH = Storefront(
    key="farfetch",
    label="Farfetch",
    base_url="https://www.farfetch.com",
    query_param="q",
    limit_param="pageSize",
    extra_params=(("page", "1"), ("sortBy", "relevance"), ("category", "fashion")),
)
SSENSE = Storefront(key="ssense", label="SSENSE", base_url="https://www.ssense.com", query_param="search")
END_CLOTHING = Storefront(key="end", label="END Clothing", base_url="https://www.endclothing.com", query_param="q")


class StorefrontAPIAdapter(SourceAdapter):
    """Search a retailer's own JSON endpoint; candidates are direct links."""

    def __init__(self, storefront: Storefront, results: int = 20, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.storefront = storefront
        self.name = storefront.key
        self.results = results

    async def _search(self, query: str, category: Optional[str]) -> List[CandidateProduct]:
        params: Dict[str, Any] = {self.storefront.query_param: query, self.storefront.limit_param: self.results}
        params.update(dict(self.storefront.extra_params))
        headers = build_headers(
            accept=JSON_ACCEPT,
            user_agent=self.user_agent,
            extra={"Referer": f"{self.storefront.base_url}/", "Origin": self.storefront.base_url},
        )
        payload = await fetch_json(
            self.storefront.search_endpoint, params=params, headers=headers, timeout=self.timeout
        )
        response = _StorefrontResponse.model_validate(payload or {})
        return self._collect(response.products, self._to_candidate)

    def _to_candidate(self, raw: Dict[str, Any]) -> CandidateProduct:
        record = _StorefrontProduct.model_validate(raw)
        price, currency = record.price_and_currency()
        product_url = urljoin(f"{self.storefront.base_url}/", record.url or "")
        image = record.primary_image()
        availability = Availability.UNKNOWN
        if record.in_stock is not None:
            availability = Availability.IN_STOCK if record.in_stock else Availability.SOLD_OUT
        return CandidateProduct(
            id=f"{self.storefront.key}:{record.id}",
            name=record.name,
            brand=record.brand_name(),
            description=record.description or "",
            price=price,
            currency=currency,
            source_name=self.storefront.label,
            product_url=product_url,
            network_id=self.network_id,
            availability=availability,
            images=[image] if image else [],
            category=normalize_category(record.category),
        )


__all__ = ["END_CLOTHING", "FARFETCH", "SSENSE", "Storefront", "StorefrontAPIAdapter"]
