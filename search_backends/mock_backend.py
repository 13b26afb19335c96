"""
Offline mock catalog backend.

Used when no RAPIDAPI_KEY is configured, or as a fallback when a live search
comes back empty (USE_MOCK_FALLBACK). Records are stored in the provider's
own raw format so they go through exactly the same normalizer as live data.
"""
from __future__ import annotations

import logging
from typing import Optional

from search_backends.base import NormalizedProduct, SearchBackend, SearchOptions, SearchResult
from search_backends.normalizer import normalize_many

logger = logging.getLogger(__name__)

MOCK_CATALOG: list[dict] = [
    {
        "product_id": "10050061234567",
        "product_title": "Smart Posture Corrector with Vibration Reminder",
        "app_sale_price": "12.99",
        "original_price": "24.99",
        "lastest_volume": "5430",
        "evaluate_rate": "96.0%",
        "product_main_image_url": "https://ae01.alicdn.com/kf/posture-corrector.jpg",
        "shop_name": "Health & Wellness Store",
        "first_level_category_name": "gadgets",
    },
    {
        "product_id": "10050078901234",
        "product_title": "Mini Portable Bluetooth Inkless Printer",
        "app_sale_price": "18.50",
        "original_price": "35.00",
        "lastest_volume": "12500",
        "evaluate_rate": "98.0%",
        "product_main_image_url": "https://ae01.alicdn.com/kf/mini-printer.jpg",
        "shop_name": "TechGadget Official",
        "first_level_category_name": "gadgets",
    },
    {
        "product_id": "10050045678901",
        "product_title": "Volcano Aroma Diffuser LED Humidifier",
        "app_sale_price": "22.40",
        "original_price": "45.99",
        "lastest_volume": "3200",
        "evaluate_rate": "94.0%",
        "product_main_image_url": "https://ae01.alicdn.com/kf/volcano-diffuser.jpg",
        "shop_name": "Home Decor Factory",
        "first_level_category_name": "home",
    },
    {
        "product_id": "10050011223344",
        "product_title": "Electric Makeup Brush Cleaner",
        "app_sale_price": "9.99",
        "lastest_volume": "8900",
        "evaluate_rate": "92.0%",
        "product_main_image_url": "https://ae01.alicdn.com/kf/brush-cleaner.jpg",
        "shop_name": "Beauty Essentials",
        "first_level_category_name": "beauty",
    },
    {
        "product_id": "10050099887766",
        "product_title": "Dog Slow Feeder Puzzle Bowl",
        "app_sale_price": "14.25",
        "lastest_volume": "2100",
        "evaluate_rate": "98.0%",
        "product_main_image_url": "https://ae01.alicdn.com/kf/slow-feeder.jpg",
        "shop_name": "Happy Pets Store",
        "first_level_category_name": "pets",
    },
    {
        "product_id": "10050055443322",
        "product_title": "Astronaut Galaxy Star Projector Night Light",
        "app_sale_price": "26.90",
        "lastest_volume": "15600",
        "evaluate_rate": "96.0%",
        "product_main_image_url": "https://ae01.alicdn.com/kf/galaxy-projector.jpg",
        "shop_name": "Galaxy Gifts",
        "first_level_category_name": "kids",
    },
]


class MockBackend(SearchBackend):

    def __init__(self, catalog: Optional[list[dict]] = None) -> None:
        self._products = normalize_many(catalog if catalog is not None else MOCK_CATALOG)

    @property
    def name(self) -> str:
        return "Mock catalog (offline)"

    async def search(self, query: str, options: SearchOptions) -> SearchResult:
        """
        Keyword match on title / category; an unmatched query returns the
        whole catalog so demo runs always have something to score.
        """
        words = [w for w in query.lower().split() if len(w) > 2]
        matched = [
            p for p in self._products
            if any(w in p.title.lower() or w in (p.category or "") for w in words)
        ] or list(self._products)

        products = [p for p in matched if options.accepts(p)]
        if options.sort == "orders_desc":
            products.sort(key=lambda p: p.sales_count, reverse=True)
        elif options.sort == "price_asc":
            products.sort(key=lambda p: p.price)
        elif options.sort == "price_desc":
            products.sort(key=lambda p: p.price, reverse=True)

        logger.info("Mock catalog matched %d products for '%s'", len(products), query)
        return SearchResult(
            products=products[: options.limit],
            total_count=len(products),
            page=1,
            has_more=False,
        )

    async def product_details(self, product_id: str) -> Optional[NormalizedProduct]:
        for product in self._products:
            if product.external_id == product_id:
                return product
        return None
