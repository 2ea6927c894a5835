"""FastAPI server exposing the discovery pipeline."""

from typing import Any

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from logic.outfit_parsing import OutfitPayloadError
from outfit_app.app import OutfitDiscoveryApp
from outfit_app.logging_config import configure_logging

configure_logging()


class EnrichRequest(BaseModel):
    """Request payload for enriching a generated outfit."""

    outfit: Any = Field(..., description="Outfit mapping or the generation step's raw JSON text")
    query: str | None = Field(None, description="User query; enables the result cache")
    celebrity_name: str | None = None
    style_description: str | None = None


class ImageResolveRequest(BaseModel):
    """Request payload for resolving one item's image."""

    name: str
    brand: str = ""
    website: str | None = None
    product_url: str | None = None
    image_url: str | None = None
    category: str | None = None


class ClickRequest(BaseModel):
    """Purchase-link activation to be recorded by the caller."""

    candidate_id: str | None = None
    purchase_url: str | None = None
    network_id: str | None = None
    user_id: str | None = None


def create_app(discovery_app: OutfitDiscoveryApp | None = None) -> FastAPI:
    """Build the API around a discovery app; tests inject one wired with fakes."""

    discovery = discovery_app or OutfitDiscoveryApp()
    api = FastAPI(title="Outfit Discovery", version="0.1.0")
    api.state.discovery = discovery

    @api.get("/healthz")
    async def healthcheck() -> dict:
        """Readiness check with a summary of configured sources."""

        return discovery.health()

    @api.post("/outfits/enrich")
    async def enrich_outfit(request: EnrichRequest) -> dict:
        try:
            document = await discovery.enrich_outfit(
                request.outfit,
                query=request.query,
                celebrity_name=request.celebrity_name,
                style_description=request.style_description,
            )
        except (OutfitPayloadError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return document.to_dict()

    @api.get("/products/search")
    async def search_products(
        query: str = Query(..., min_length=1),
        category: str | None = None,
        limit: int = Query(20, ge=1, le=100),
    ) -> dict:
        products = await discovery.search_products(query, category, limit)
        return {"products": [product.to_dict() for product in products], "total": len(products)}

    @api.post("/images/resolve")
    async def resolve_image(request: ImageResolveRequest) -> dict:
        image_url = await discovery.resolve_image(
            request.name,
            brand=request.brand,
            website=request.website,
            product_url=request.product_url,
            image_url=request.image_url,
            category=request.category,
        )
        return {"image_url": image_url}

    @api.get("/style-images")
    async def style_images(
        query: str | None = None,
        kind: str = Query("search", alias="type"),
        celebrity: str | None = None,
        style: str | None = None,
        brand: str | None = None,
        limit: int = Query(10, ge=1, le=10),
    ) -> dict:
        """Plain, celebrity, lookbook or brand-style image search."""

        images = await discovery.search_style_images(
            query, limit, kind=kind, celebrity=celebrity, style=style, brand=brand
        )
        return {"images": [image.to_dict() for image in images], "total": len(images)}

    @api.post("/clicks")
    async def record_click(request: ClickRequest) -> dict:
        """Return the click record for the caller to persist."""

        try:
            record = discovery.record_click(
                request.candidate_id,
                request.purchase_url,
                network_id=request.network_id,
                user_id=request.user_id,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return record.to_dict()

    return api


app = create_app()


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:app", host="0.0.0.0", port=8080, reload=False)
