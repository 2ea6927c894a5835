"""Default adapter set, in registration order."""

from __future__ import annotations

from typing import List

from adapters.affiliate import CJ, RAKUTEN, SHAREASALE, AffiliateNetworkAdapter
from adapters.base import SourceAdapter
from adapters.image_search import GoogleImageSearchAdapter
from adapters.listing import ListingScraperAdapter
from adapters.shopstyle import ShopStyleAdapter
from adapters.storefront import END_CLOTHING, FARFETCH, SSENSE, StorefrontAPIAdapter
from logic.retailer_sites import RetailerRegistry, default_registry
from outfit_app.config import AppConfig

LISTING_SITE_KEYS = ("shop_encore", "grailed", "vestiaire")


def build_default_adapters(config: AppConfig, sites: RetailerRegistry | None = None) -> List[SourceAdapter]:
    """Every product source the service knows about.

    Unconfigured affiliate sources are still registered; they report no
    results until credentials are supplied.
    """

    sites = sites if sites is not None else default_registry()
    common = {
        "timeout": config.adapter_timeout,
        "user_agent": config.user_agent,
    }
    results = config.results_per_source

    adapters: List[SourceAdapter] = [
        AffiliateNetworkAdapter(CJ, config.cj_api_endpoint, config.cj_api_key, results=results, **common),
        AffiliateNetworkAdapter(
            SHAREASALE, config.shareasale_api_endpoint, config.shareasale_api_key, results=results, **common
        ),
        AffiliateNetworkAdapter(
            RAKUTEN, config.rakuten_api_endpoint, config.rakuten_api_key, results=results, **common
        ),
        ShopStyleAdapter(config.shopstyle_api_key, results=results, **common),
    ]
    adapters.extend(
        StorefrontAPIAdapter(storefront, results=results, **common)
        for storefront in (FARFETCH, SSENSE, END_CLOTHING)
    )
    if config.enable_listing_scrapers:
        listing_common = dict(common, timeout=config.page_timeout)
        for key in LISTING_SITE_KEYS:
            site = sites.get(key)
            if site is not None:
                adapters.append(ListingScraperAdapter(site, results=results, **listing_common))
    return adapters


def build_image_adapter(config: AppConfig) -> GoogleImageSearchAdapter:
    return GoogleImageSearchAdapter(
        config.google_api_key,
        config.google_search_engine_id,
        timeout=config.adapter_timeout,
        user_agent=config.user_agent,
    )


__all__ = ["LISTING_SITE_KEYS", "build_default_adapters", "build_image_adapter"]
