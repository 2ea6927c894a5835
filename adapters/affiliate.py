"""Affiliate network product adapters (CJ, ShareASale, Rakuten)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from adapters.base import SourceAdapter
from models.product import CandidateProduct
from models.taxonomy import Availability, parse_price
from tools.http_client import JSON_ACCEPT, build_headers, fetch_json


class _AffiliateRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Union[str, int] = Field(validation_alias=AliasChoices("productId", "id"))
    name: str = Field(validation_alias=AliasChoices("productName", "name"))
    brand: Optional[str] = Field(None, validation_alias=AliasChoices("manufacturerName", "brand"))
    description: Optional[str] = None
    price: Any = 0
    merchant_name: Optional[str] = Field(None, validation_alias="merchantName")
    product_url: Optional[str] = Field(None, validation_alias="productUrl")
    tracked_url: Optional[str] = Field(None, validation_alias=AliasChoices("buyUrl", "affiliateUrl"))
    in_stock: Any = Field(None, validation_alias="inStock")
    image_url: Optional[str] = Field(None, validation_alias="imageUrl")
    category: Optional[str] = None


class _AffiliateResponse(BaseModel):
    products: List[Dict[str, Any]] = []


@dataclass(frozen=True)
class AffiliateNetwork:
    """Static description of one network's product search endpoint."""

    network_id: str
    label: str
    path: str
    query_param: str
    commission_rate: float
    extra_params: tuple = ()


CJ = AffiliateNetwork(
    network_id="cj",
    label="Commission Junction",
    path="/product-search",
    query_param="keywords",
    commission_rate=0.05,
    extra_params=(("sortBy", "relevance"),),
)
SHAREASALE = AffiliateNetwork(
    network_id="shareasale",
    label="ShareASale",
    path="/products",
    query_param="q",
    commission_rate=0.06,
)
RAKUTEN = AffiliateNetwork(
    network_id="rakuten",
    label="Rakuten Advertising",
    path="/products",
    query_param="query",
    commission_rate=0.04,
)


class AffiliateNetworkAdapter(SourceAdapter):
    """Bearer-token JSON product search against one affiliate network.

    Candidates carry the network's tracked link as ``purchase_url`` and the
    network's default commission rate. Missing endpoint or key means the
    adapter is unconfigured and reports no results.
    """

    def __init__(
        self,
        network: AffiliateNetwork,
        endpoint: Optional[str],
        api_key: Optional[str],
        results: int = 20,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.network = network
        self.name = network.network_id
        self.network_id = network.network_id
        self.endpoint = (endpoint or "").rstrip("/")
        self.api_key = api_key
        self.results = results

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.api_key)

    def _params(self, query: str, category: Optional[str]) -> Dict[str, Any]:
        limit_key = "records" if self.network is CJ else "limit"
        params: Dict[str, Any] = {self.network.query_param: query, limit_key: str(self.results)}
        params.update(dict(self.network.extra_params))
        if category:
            params["category"] = category
        return params

    async def _search(self, query: str, category: Optional[str]) -> List[CandidateProduct]:
        headers = build_headers(
            accept=JSON_ACCEPT,
            user_agent=self.user_agent,
            extra={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
        )
        payload = await fetch_json(
            f"{self.endpoint}{self.network.path}",
            params=self._params(query, category),
            headers=headers,
            timeout=self.timeout,
        )
        response = _AffiliateResponse.model_validate(payload or {})
        return self._collect(response.products, self._to_candidate)

    def _to_candidate(self, raw: Dict[str, Any]) -> CandidateProduct:
        record = _AffiliateRecord.model_validate(raw)
        price, currency = parse_price(record.price)
        product_url = record.product_url or ""
        return CandidateProduct(
            id=f"{self.network_id}:{record.id}",
            name=record.name,
            brand=record.brand or "",
            description=record.description or "",
            price=price,
            currency=currency,
            source_name=record.merchant_name or self.network.label,
            product_url=product_url,
            purchase_url=record.tracked_url or product_url,
            network_id=self.network_id,
            commission_rate=self.network.commission_rate,
            availability=Availability.IN_STOCK if record.in_stock else Availability.SOLD_OUT,
            images=[record.image_url] if record.image_url else [],
            category=record.category,
        )


__all__ = ["AffiliateNetwork", "AffiliateNetworkAdapter", "CJ", "RAKUTEN", "SHAREASALE"]
