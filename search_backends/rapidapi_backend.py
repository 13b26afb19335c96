"""
RapidAPI "AliExpress True API" backend.

Sign up at: https://rapidapi.com → search "AliExpress True API"
  https://rapidapi.com/ecommdatahub/api/aliexpress-true-api

Endpoints used:
  • /api/v3/hot-products   keyword search, sorted by recent order volume
  • /api/v3/product-info   single product by id (calculator / detail view)

Response envelopes vary between calls and API versions (see
search_backends/normalizer.py). This backend only deals with HTTP; every
shape quirk is absorbed by the normalizer.
"""
from __future__ import annotations

import logging
from typing import Optional

import aiohttp

import config
from search_backends.base import NormalizedProduct, SearchBackend, SearchOptions, SearchResult
from search_backends.normalizer import extract_items, normalize, normalize_many

logger = logging.getLogger(__name__)

# Provider sort keys
_SORT_PARAMS = {
    "default":     "LAST_VOLUME_DESC",
    "orders_desc": "LAST_VOLUME_DESC",
    "price_asc":   "SALE_PRICE_ASC",
    "price_desc":  "SALE_PRICE_DESC",
}


class RapidAPIBackend(SearchBackend):

    def __init__(self, api_key: str, host: str = config.RAPIDAPI_HOST) -> None:
        self._host = host
        self._headers = {
            "X-RapidAPI-Key":  api_key,
            "X-RapidAPI-Host": host,
        }

    @property
    def name(self) -> str:
        return "RapidAPI / AliExpress True API"

    @property
    def search_url(self) -> str:
        return f"https://{self._host}/api/v3/hot-products"

    @property
    def product_url(self) -> str:
        return f"https://{self._host}/api/v3/product-info"

    async def search(self, query: str, options: SearchOptions) -> SearchResult:
        """
        Fetch one page of hot products for `query`.

        Notes:
        - Provider-side filtering is limited to sort order; price / rating /
          sales filters are applied after normalization.
        - Raises RuntimeError on non-200 responses.
        """
        params = {
            "keywords":         query,
            "page_no":          str(options.page),
            "page_size":        str(options.limit),
            "sort":             _SORT_PARAMS.get(options.sort, "LAST_VOLUME_DESC"),
            "target_currency":  config.TARGET_CURRENCY,
            "target_language":  config.TARGET_LANGUAGE,
            "ship_to_country":  config.SHIP_TO_COUNTRY,
        }

        data = await self._fetch(self.search_url, params)
        raw_items = extract_items(data)
        products = [p for p in normalize_many(raw_items) if options.accepts(p)]

        logger.info(
            "RapidAPI returned %d raw / %d usable products for '%s'",
            len(raw_items), len(products), query,
        )

        total = len(raw_items)
        if isinstance(data, dict):
            total = data.get("total_record_count") or data.get("current_record_count") or total

        return SearchResult(
            products=products[: options.limit],
            total_count=int(total),
            page=options.page,
            has_more=len(raw_items) >= options.limit,
        )

    async def product_details(self, product_id: str) -> Optional[NormalizedProduct]:
        params = {
            "product_id":      product_id,
            "target_currency": config.TARGET_CURRENCY,
            "target_language": config.TARGET_LANGUAGE,
            "ship_to_country": config.SHIP_TO_COUNTRY,
        }
        data = await self._fetch(self.product_url, params)

        # product-info returns the item directly, under data/result, or in a one-item list
        item = data
        if isinstance(data, dict):
            item = data.get("data") or data.get("result") or data
        return normalize(item)

    # ── HTTP helper ───────────────────────────────────────────────────────────

    async def _fetch(self, url: str, params: dict):
        """Single HTTP GET. Returns the decoded JSON body."""
        async with aiohttp.ClientSession() as session:
            async with session.get(
                url,
                headers=self._headers,
                params=params,
                timeout=aiohttp.ClientTimeout(total=15),
            ) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise RuntimeError(f"RapidAPI error {resp.status}: {text[:200]}")
                return await resp.json(content_type=None)
