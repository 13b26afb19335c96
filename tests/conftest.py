"""
Shared pytest fixtures.

Every test gets a fresh scorer / backend cache so a scorer or backend built
by one test (or from a developer's real .env) never leaks into another.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from search_backends.base import NormalizedProduct  # noqa: E402


@pytest.fixture(autouse=True)
def clean_caches(monkeypatch):
    """No API keys or tracked stores, nothing cached, no real pacing delays."""
    import config
    import product_search
    import scorers.manager as manager_mod
    import winners

    monkeypatch.setattr(config, "OPENAI_API_KEY", None)
    monkeypatch.setattr(config, "RAPIDAPI_KEY", None)
    monkeypatch.setattr(config, "SCORING_DELAY_SECS", 0.0)
    monkeypatch.setattr(config, "USE_MOCK_FALLBACK", True)
    monkeypatch.setattr(config, "QUICK_BATCH_MAX", 15)
    monkeypatch.setattr(config, "TRACKED_STORES_FILE", None)
    manager_mod.reset_scorer()
    product_search.reset_backend()
    winners.reset_tracked_stores()
    yield
    manager_mod.reset_scorer()
    product_search.reset_backend()
    winners.reset_tracked_stores()


def make_product(
    external_id: str = "1005001",
    title: str = "LED Smart Lamp",
    price: float = 9.99,
    sales_count: int = 12000,
    rating=4.9,
    **overrides,
) -> NormalizedProduct:
    fields = dict(
        external_id=external_id,
        title=title,
        image_url="https://ae01.alicdn.com/kf/lamp.jpg",
        price=price,
        original_price=None,
        sales_count=sales_count,
        rating=rating,
        review_count=300,
        source_url=f"https://www.aliexpress.com/item/{external_id}.html",
    )
    fields.update(overrides)
    return NormalizedProduct(**fields)


@pytest.fixture
def product() -> NormalizedProduct:
    """High-volume, well-rated, impulse-priced product (heuristic score 95)."""
    return make_product()


@pytest.fixture
def weak_product() -> NormalizedProduct:
    """Low sales, no rating, expensive (heuristic score 50)."""
    return make_product(
        external_id="1005002", title="Industrial Pipe Wrench", price=80.0,
        sales_count=40, rating=None,
    )


@pytest.fixture
def products() -> list[NormalizedProduct]:
    return [
        make_product("1", "Plain Widget", price=60.0, sales_count=10, rating=None),   # 50
        make_product("2", "Mini Portable Fan", price=12.0, sales_count=6000, rating=4.6),  # 85
        make_product("3", "Dog Chew Toy", price=7.5, sales_count=1500, rating=4.1),   # 75
        make_product("4", "Galaxy Projector", price=20.0, sales_count=15000, rating=4.9),  # 95
    ]
