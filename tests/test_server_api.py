"""HTTP API tests against a discovery app wired with in-memory sources."""

from __future__ import annotations

from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from adapters.base import ImageSourceAdapter, SourceAdapter
from memory.query_cache import InMemoryQueryCache
from models.product import CandidateProduct, ImageResult
from outfit_app.app import OutfitDiscoveryApp
from outfit_app.config import AppConfig
from server.api import create_app
from tools.http_client import HttpFetchError


class FakeProducts(SourceAdapter):
    name = "fake_products"

    async def _search(self, query: str, category: Optional[str]) -> List[CandidateProduct]:
        if "sneaker" not in query.lower() and "air force" not in query.lower():
            return []
        return [
            CandidateProduct(
                id="cj:1",
                name="Air Force 1",
                brand="Nike",
                price=110.0,
                source_name="Foot Locker",
                product_url="https://shop.test/af1",
                purchase_url="https://track.test/af1",
                network_id="cj",
                commission_rate=0.05,
                images=["https://cdn.test/af1.jpg"],
            ),
            CandidateProduct(
                id="ff:2",
                name="Court Vision",
                brand="Nike",
                price=75.0,
                source_name="Farfetch",
                product_url="https://shop.test/cv",
            ),
        ]


class FakeImages(ImageSourceAdapter):
    name = "fake_images"

    async def _search_images(self, descriptor: str, limit: int) -> List[ImageResult]:
        return [ImageResult(url=f"https://img.test/{i}.jpg", title=descriptor) for i in range(limit)]


async def _accept(url: str) -> bool:
    return url.startswith("https://img.test/") or url.startswith("https://cdn.test/")


@pytest.fixture
def discovery(monkeypatch: pytest.MonkeyPatch) -> OutfitDiscoveryApp:
    async def offline(*args, **kwargs):
        raise HttpFetchError("offline")

    monkeypatch.setattr("logic.image_strategies.fetch_text", offline)
    monkeypatch.setattr("logic.image_strategies.fetch_json", offline)
    return OutfitDiscoveryApp(
        config=AppConfig(environment="test"),
        adapters=[FakeProducts()],
        image_adapter=FakeImages(),
        cache=InMemoryQueryCache(),
        validator=_accept,
    )


@pytest.fixture
def client(discovery: OutfitDiscoveryApp) -> TestClient:
    return TestClient(create_app(discovery))


def test_healthcheck(client: TestClient) -> None:
    response = client.get("/healthz")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["environment"] == "test"
    assert body["adapters"] == ["fake_products"]
    assert body["sources"]["cj"] is False


def test_enrich_outfit(client: TestClient) -> None:
    payload = {
        "outfit": {
            "main_description": "Sporty",
            "tops": [{"name": "Track jacket"}],
            "shoes": [{"name": "Air Force 1", "brand": "Nike"}],
        },
        "query": "sporty sneakers",
    }

    response = client.post("/outfits/enrich", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["real_product_count"] == 1
    assert body["total_price"] == 110.0
    assert body["shoes"][0]["purchase_url"] == "https://track.test/af1"
    assert body["shoes"][0]["alternatives"][0]["id"] == "ff:2"
    assert body["tops"][0]["is_real_product"] is False
    assert body["tops"][0]["purchase_url"] == "#"
    assert body["tops"][0]["image_url"] == "https://img.test/0.jpg"


def test_enrich_accepts_raw_model_text(client: TestClient) -> None:
    raw = '```json\n{"accessories": [{"name": "Bucket hat"}]}\n```'
    response = client.post("/outfits/enrich", json={"outfit": raw})
    assert response.status_code == 200
    assert response.json()["accessories"][0]["name"] == "Bucket hat"


@pytest.mark.parametrize("outfit", ["not json", 42])
def test_enrich_rejects_invalid_outfit(client: TestClient, outfit) -> None:
    response = client.post("/outfits/enrich", json={"outfit": outfit})
    assert response.status_code == 400


def test_product_search(client: TestClient) -> None:
    response = client.get("/products/search", params={"query": "white sneakers", "limit": 1})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["products"][0]["id"] == "cj:1"

    assert client.get("/products/search", params={"query": ""}).status_code == 422


def test_resolve_image(client: TestClient) -> None:
    response = client.post(
        "/images/resolve",
        json={"name": "Air Force 1", "brand": "Nike", "image_url": "https://cdn.test/af1.jpg"},
    )
    assert response.status_code == 200
    assert response.json() == {"image_url": "https://cdn.test/af1.jpg"}


def test_style_images(client: TestClient) -> None:
    response = client.get("/style-images", params={"query": "Rihanna street style", "limit": 3})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["images"][0]["source_domain"] == "img.test"

    assert client.get("/style-images", params={"query": "x", "limit": 11}).status_code == 422


@pytest.mark.parametrize(
    "params, expected_title",
    [
        ({"type": "celebrity", "celebrity": "Rihanna"}, "Rihanna fashion style outfit"),
        (
            {"type": "celebrity", "celebrity": "Travis Scott", "style": "streetwear"},
            "Travis Scott streetwear fashion style outfit",
        ),
        ({"type": "lookbook", "style": "oversized"}, "oversized fashion lookbook street style inspiration"),
        ({"type": "brand", "brand": "Balenciaga", "style": "streetwear"}, "Balenciaga streetwear fashion style outfit"),
        ({"type": "unknown", "query": "linen suits"}, "linen suits"),
    ],
)
def test_style_images_dispatch_on_type(client: TestClient, params, expected_title) -> None:
    response = client.get("/style-images", params={**params, "limit": 2})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["images"][0]["title"] == expected_title


@pytest.mark.parametrize(
    "params",
    [
        {"type": "celebrity", "style": "streetwear"},
        {"type": "lookbook"},
        {"type": "brand", "brand": "Balenciaga"},
        {"type": "search"},
        {},
    ],
)
def test_style_images_missing_required_param(client: TestClient, params) -> None:
    response = client.get("/style-images", params=params)
    assert response.status_code == 200
    assert response.json() == {"images": [], "total": 0}


def test_enrich_keeps_unnamed_items(client: TestClient) -> None:
    outfit = {"tops": [{"name": "Tee"}, {"description": "layering piece", "brand": "Uniqlo"}]}

    response = client.post("/outfits/enrich", json={"outfit": outfit})

    assert response.status_code == 200
    tops = response.json()["tops"]
    assert len(tops) == 2
    assert tops[1]["name"] == ""
    assert tops[1]["is_real_product"] is False
    assert tops[1]["image_url"].startswith("https://")


def test_record_click(client: TestClient) -> None:
    response = client.post(
        "/clicks",
        json={"candidate_id": "cj:1", "purchase_url": "https://track.test/af1", "network_id": "cj", "user_id": "u1"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["network_id"] == "cj"
    assert body["timestamp"]

    assert client.post("/clicks", json={"candidate_id": "cj:1", "purchase_url": "#"}).status_code == 400
    assert client.post("/clicks", json={"purchase_url": "https://track.test/af1"}).status_code == 400
