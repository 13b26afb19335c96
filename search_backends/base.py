"""
Abstract base for all product search backends.
Every backend must return the same NormalizedProduct list — the scoring
pipeline doesn't care which backend is active.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class NormalizedProduct:
    external_id: str                # provider product id, cache/dedup key
    title: str
    image_url: str
    price: float                    # cost price in TARGET_CURRENCY, always > 0
    original_price: Optional[float]
    sales_count: int                # cumulative orders
    rating: Optional[float]         # 0–5
    review_count: int
    source_url: str
    supplier_name: Optional[str] = None
    category: Optional[str] = None

    @property
    def discount_percent(self) -> Optional[int]:
        """Advertised discount vs. original price, when the provider sends one."""
        if not self.original_price or self.original_price <= self.price:
            return None
        return round((1 - self.price / self.original_price) * 100)


@dataclass
class SearchOptions:
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    min_sales: Optional[int] = None
    page: int = 1
    limit: int = 20
    sort: str = "orders_desc"      # default | price_asc | price_desc | orders_desc

    def accepts(self, product: NormalizedProduct) -> bool:
        """Client-side filters applied after normalization."""
        if self.min_price is not None and product.price < self.min_price:
            return False
        if self.max_price is not None and product.price > self.max_price:
            return False
        if self.min_rating is not None and (product.rating or 0) < self.min_rating:
            return False
        if self.min_sales is not None and product.sales_count < self.min_sales:
            return False
        return True


@dataclass
class SearchResult:
    products: list[NormalizedProduct] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    has_more: bool = False


class SearchBackend(ABC):
    """All backends must implement this interface."""

    @abstractmethod
    async def search(self, query: str, options: SearchOptions) -> SearchResult:
        """
        Search the provider for products matching `query`.
        Returns at most options.limit normalized products.
        """
        ...

    @abstractmethod
    async def product_details(self, product_id: str) -> Optional[NormalizedProduct]:
        """Fetch a single product by provider id, or None if unknown."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name for logs/display."""
        ...
