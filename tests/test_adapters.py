"""Source adapter tests: credential gating, normalisation and failure handling."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest

from adapters.affiliate import CJ, SHAREASALE, AffiliateNetworkAdapter
from adapters.image_search import GoogleImageSearchAdapter
from adapters.listing import ListingScraperAdapter
from adapters.registry import build_default_adapters
from adapters.shopstyle import ShopStyleAdapter
from adapters.storefront import FARFETCH, StorefrontAPIAdapter
from logic.retailer_sites import default_registry
from models.taxonomy import Availability
from outfit_app.config import AppConfig
from tools.http_client import HttpFetchError


def _recording_fetch(payload: Any, calls: List[Dict[str, Any]]):
    async def fake_fetch(url, params=None, headers=None, timeout=15.0):
        calls.append({"url": url, "params": dict(params or {}), "headers": dict(headers or {})})
        return payload(params) if callable(payload) else payload

    return fake_fetch


def test_affiliate_adapter_unconfigured_returns_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[Dict[str, Any]] = []
    monkeypatch.setattr("adapters.affiliate.fetch_json", _recording_fetch({"products": []}, calls))
    adapter = AffiliateNetworkAdapter(CJ, endpoint=None, api_key="secret")

    assert asyncio.run(adapter.search("white sneakers")) == []
    assert calls == []


def test_cj_adapter_normalises_records(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[Dict[str, Any]] = []
    payload = {
        "products": [
            {
                "productId": 42,
                "productName": "Air Force 1 '07",
                "manufacturerName": "Nike",
                "price": "110.00",
                "merchantName": "Foot Locker",
                "productUrl": "https://footlocker.test/af1",
                "buyUrl": "https://cj.test/click?id=42",
                "inStock": True,
                "imageUrl": "https://cdn.footlocker.test/af1.jpg",
                "category": "shoes",
            },
            {"productName": "Missing id"},
        ]
    }
    monkeypatch.setattr("adapters.affiliate.fetch_json", _recording_fetch(payload, calls))
    adapter = AffiliateNetworkAdapter(CJ, endpoint="https://cj.test/api/", api_key="secret")

    results = asyncio.run(adapter.search("nike air force", category="shoes"))

    assert len(results) == 1
    product = results[0]
    assert product.id == "cj:42"
    assert product.network_id == "cj"
    assert product.commission_rate == 0.05
    assert product.purchase_url == "https://cj.test/click?id=42"
    assert product.price == 110.0
    assert product.availability is Availability.IN_STOCK
    assert product.images == ["https://cdn.footlocker.test/af1.jpg"]
    assert calls[0]["url"] == "https://cj.test/api/product-search"
    assert calls[0]["params"]["keywords"] == "nike air force"
    assert calls[0]["params"]["category"] == "shoes"
    assert calls[0]["headers"]["Authorization"] == "Bearer secret"


def test_shareasale_uses_affiliate_url(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[Dict[str, Any]] = []
    payload = {
        "products": [
            {
                "productId": "s-1",
                "name": "Oxford Shirt",
                "brand": "Brooks Brothers",
                "price": 89.5,
                "productUrl": "https://bb.test/oxford",
                "affiliateUrl": "https://shareasale.test/r?u=1",
                "inStock": False,
            }
        ]
    }
    monkeypatch.setattr("adapters.affiliate.fetch_json", _recording_fetch(payload, calls))
    adapter = AffiliateNetworkAdapter(SHAREASALE, endpoint="https://sas.test", api_key="k")

    [product] = asyncio.run(adapter.search("oxford shirt"))

    assert product.purchase_url == "https://shareasale.test/r?u=1"
    assert product.source_name == "ShareASale"
    assert product.availability is Availability.SOLD_OUT
    assert product.commission_rate == 0.06
    assert calls[0]["params"]["q"] == "oxford shirt"
    assert "category" not in calls[0]["params"]


def test_adapter_failure_becomes_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    async def failing_fetch(*args, **kwargs):
        raise HttpFetchError("HTTP 500")

    monkeypatch.setattr("adapters.affiliate.fetch_json", failing_fetch)
    adapter = AffiliateNetworkAdapter(CJ, endpoint="https://cj.test", api_key="k")
    assert asyncio.run(adapter.search("anything")) == []


def test_adapter_timeout_becomes_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    async def slow_fetch(*args, **kwargs):
        await asyncio.sleep(1)
        return {"products": []}

    monkeypatch.setattr("adapters.storefront.fetch_json", slow_fetch)
    adapter = StorefrontAPIAdapter(FARFETCH, timeout=0.01)
    assert asyncio.run(adapter.search("coat")) == []


def test_malformed_payload_becomes_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("adapters.storefront.fetch_json", _recording_fetch({"products": "nope"}, []))
    adapter = StorefrontAPIAdapter(FARFETCH)
    assert asyncio.run(adapter.search("coat")) == []


def test_empty_query_short_circuits(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[Dict[str, Any]] = []
    monkeypatch.setattr("adapters.storefront.fetch_json", _recording_fetch({"products": []}, calls))
    assert asyncio.run(StorefrontAPIAdapter(FARFETCH).search("   ")) == []
    assert calls == []


def test_storefront_tolerant_mapping(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {
        "products": [
            {
                "productId": 7,
                "productName": "Wool Coat",
                "designer": "Acne Studios",
                "price": {"amount": "1,250.00", "currency": "EUR"},
                "productUrl": "/shopping/wool-coat-7.aspx",
                "images": ["https://cdn.farfetch.test/7.jpg"],
            },
            {"id": "8", "name": "Scarf", "brand": "Acne Studios", "price": 150, "imageUrl": "https://cdn.test/8.jpg"},
        ]
    }
    monkeypatch.setattr("adapters.storefront.fetch_json", _recording_fetch(payload, []))

    coat, scarf = asyncio.run(StorefrontAPIAdapter(FARFETCH).search("acne"))

    assert coat.id == "farfetch:7"
    assert coat.brand == "Acne Studios"
    assert coat.price == 1250.0
    assert coat.currency == "EUR"
    assert coat.product_url == "https://www.farfetch.com/shopping/wool-coat-7.aspx"
    assert coat.network_id == "direct"
    assert coat.commission_rate == 0.0
    assert scarf.images == ["https://cdn.test/8.jpg"]


def test_shopstyle_retries_with_first_two_words(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[Dict[str, Any]] = []
    hit = {
        "products": [
            {
                "id": 99,
                "name": "Relaxed Denim Jacket",
                "brand": {"name": "Levi's"},
                "priceLabel": "$98",
                "image": {"sizes": {"Best": {"url": "https://img.shopstyle.test/99.jpg"}}},
                "retailer": {"name": "Nordstrom"},
                "clickUrl": "https://api.shopstyle.test/action/apiVisitRetailer?id=99",
            }
        ]
    }

    def payload(params):
        return hit if params["fts"] == "levis denim" else {"products": []}

    monkeypatch.setattr("adapters.shopstyle.fetch_json", _recording_fetch(payload, calls))
    adapter = ShopStyleAdapter(api_key="pid-123")

    [product] = asyncio.run(adapter.search("levis denim trucker jacket"))

    assert [call["params"]["fts"] for call in calls] == ["levis denim trucker jacket", "levis denim"]
    assert calls[0]["params"]["pid"] == "pid-123"
    assert product.price == 98.0
    assert product.source_name == "Nordstrom"
    assert product.brand == "Levi's"
    assert product.images == ["https://img.shopstyle.test/99.jpg"]


def test_listing_scraper_parses_cards(monkeypatch: pytest.MonkeyPatch) -> None:
    html = """
    <div class="feed-item">
      <a href="/listings/123-supreme-box-logo"><img src="/img/123.jpg"></a>
      <p class="listing-title">Supreme Box Logo Hoodie</p>
      <span class="listing-price">$450</span>
    </div>
    <div class="feed-item"><p class="listing-title">No price here</p></div>
    """
    seen: Dict[str, str] = {}

    async def fake_fetch_text(url, params=None, headers=None, timeout=20.0):
        seen["url"] = url
        return html

    monkeypatch.setattr("adapters.listing.fetch_text", fake_fetch_text)
    site = default_registry().get("grailed")
    [product] = asyncio.run(ListingScraperAdapter(site).search("box logo hoodie", category="top"))

    assert seen["url"] == "https://www.grailed.com/search?query=box+logo+hoodie"
    assert product.name == "Supreme Box Logo Hoodie"
    assert product.brand == "Supreme"
    assert product.price == 450.0
    assert product.source_name == "Grailed"
    assert product.product_url == "https://www.grailed.com/listings/123-supreme-box-logo"
    assert product.images == ["https://www.grailed.com/img/123.jpg"]
    assert product.category == "tops"
    assert product.id.startswith("grailed:")


def test_google_image_adapter_maps_results(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[Dict[str, Any]] = []
    payload = {
        "items": [
            {
                "link": "https://static.nike.test/af1.png",
                "title": "AF1",
                "image": {"thumbnailLink": "https://thumb.test/af1", "contextLink": "https://www.nike.com/t/af1", "width": 800, "height": 600},
            },
            {"title": "no link"},
        ]
    }
    monkeypatch.setattr("adapters.image_search.fetch_json", _recording_fetch(payload, calls))
    adapter = GoogleImageSearchAdapter(api_key="key", search_engine_id="cx")

    [result] = asyncio.run(adapter.search_images("nike air force 1", limit=25))

    assert result.url == "https://static.nike.test/af1.png"
    assert result.source_domain == "nike.com"
    assert result.width == 800
    assert calls[0]["params"]["num"] == 10
    assert calls[0]["params"]["searchType"] == "image"


def test_google_image_adapter_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[Dict[str, Any]] = []
    monkeypatch.setattr("adapters.image_search.fetch_json", _recording_fetch({"items": []}, calls))
    assert asyncio.run(GoogleImageSearchAdapter(api_key="key", search_engine_id=None).search_images("x")) == []
    assert calls == []


def test_default_registration_order() -> None:
    names = [adapter.name for adapter in build_default_adapters(AppConfig())]
    assert names == [
        "cj",
        "shareasale",
        "rakuten",
        "shopstyle",
        "farfetch",
        "ssense",
        "end",
        "shop_encore",
        "grailed",
        "vestiaire",
    ]
    without_scrapers = build_default_adapters(AppConfig(enable_listing_scrapers=False))
    assert [adapter.name for adapter in without_scrapers][-1] == "end"
