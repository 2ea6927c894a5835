"""HTML listing scrapers for resale and boutique storefronts."""

from __future__ import annotations

import hashlib
from typing import Any, List, Optional

from adapters.base import SourceAdapter
from logic.retailer_sites import RetailerSite
from models.product import CandidateProduct
from models.taxonomy import Availability, infer_brand, normalize_category, parse_price
from tools.http_client import build_headers, fetch_text
from tools.product_parser import ProductCard, parse_html


def _card_id(site_key: str, card: ProductCard) -> str:
    digest = hashlib.sha1(f"{card.product_url}|{card.name}".encode("utf-8")).hexdigest()[:12]
    return f"{site_key}:{digest}"


class ListingScraperAdapter(SourceAdapter):
    """Scrape product tiles from a site's search page.

    Which elements make up a tile, and where its name and price live, come from
    the site's registry entry; this adapter only fetches and normalises.
    """

    def __init__(self, site: RetailerSite, results: int = 20, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not site.search_url_template or not site.card_selectors:
            raise ValueError(f"Retailer site '{site.key}' cannot be scraped for listings")
        self.site = site
        self.name = site.key
        self.results = results

    async def _search(self, query: str, category: Optional[str]) -> List[CandidateProduct]:
        url = self.site.search_url("", query)
        html = await fetch_text(url, headers=build_headers(user_agent=self.user_agent), timeout=self.timeout)
        cards = self.site.product_cards(parse_html(html))
        slot = normalize_category(category)
        return self._collect(cards[: self.results], lambda card: self._to_candidate(card, slot))

    def _to_candidate(self, card: ProductCard, category: Optional[str]) -> CandidateProduct:
        price, currency = parse_price(card.price_text)
        return CandidateProduct(
            id=_card_id(self.site.key, card),
            name=card.name,
            brand=infer_brand(card.name),
            description=card.name,
            price=price,
            currency=currency,
            source_name=self.site.label,
            product_url=card.product_url,
            network_id=self.network_id,
            availability=Availability.IN_STOCK,
            images=[card.image_url] if card.image_url else [],
            category=category,
        )


__all__ = ["ListingScraperAdapter"]
