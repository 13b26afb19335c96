"""
Tests for scorers/chain.py.

Covers:
  - analyze_momentum: the four bands
  - check_quality_gate: rating / feedback thresholds
  - calculate_profitability: x3 economics
  - check_saturation: store-count bands, lookup errors
  - analyze_with_chain / analyze_batch_with_chain end to end
"""
from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

import config
from conftest import make_product
from scorers.chain import (
    analyze_batch_with_chain,
    analyze_momentum,
    analyze_with_chain,
    calculate_profitability,
    check_quality_gate,
    check_saturation,
    estimated_feedback,
    title_keywords,
)


@pytest.fixture(autouse=True)
def chain_config(monkeypatch):
    monkeypatch.setattr(config, "SHIPPING_COST", 3.0)
    monkeypatch.setattr(config, "ESTIMATED_CPA", 15.0)
    monkeypatch.setattr(config, "MIN_NET_MARGIN", 15.0)
    monkeypatch.setattr(config, "STORE_AGE_DAYS", 30)


def stores(n: int) -> AsyncMock:
    return AsyncMock(return_value=[f"Store {i}" for i in range(n)])


# ── Step 1 ─────────────────────────────────────────────────────────────────────

class TestMomentum:
    @pytest.mark.parametrize("sales,status,score", [
        (3000, "explosive", 95),
        (1200, "strong", 80),
        (300, "moderate", 60),
        (299, "weak", 30),
    ])
    def test_bands(self, sales, status, score):
        m = analyze_momentum(sales, 30)
        assert (m.status, m.score) == (status, score)

    def test_sales_per_day(self):
        assert analyze_momentum(450, 30).sales_per_day == 15.0


# ── Step 2 ─────────────────────────────────────────────────────────────────────

class TestQualityGate:
    def test_passes(self):
        assert check_quality_gate(4.8, 95).passed

    def test_low_rating_fails(self):
        gate = check_quality_gate(4.7, 98)
        assert not gate.passed
        assert "Rating too low" in gate.rejection_reason

    def test_low_feedback_fails(self):
        gate = check_quality_gate(4.9, 94)
        assert not gate.passed
        assert "feedback" in gate.rejection_reason

    def test_estimated_feedback(self):
        assert estimated_feedback(4.9) == 98
        assert estimated_feedback(4.6) == 96
        assert estimated_feedback(4.0) == 93


# ── Step 3 ─────────────────────────────────────────────────────────────────────

class TestProfitability:
    def test_economics(self):
        p = calculate_profitability(20.0, 10)
        assert p.suggested_price == 60.0
        assert p.net_margin_per_unit == 22.0      # 60 - 20 - 3 - 15
        assert p.profit_margin_percent == 37
        assert p.estimated_monthly_profit == 6600

    def test_loss_gives_zero_monthly(self):
        p = calculate_profitability(2.0, 100)
        assert p.net_margin_per_unit < 0
        assert p.estimated_monthly_profit == 0

    def test_explicit_costs(self):
        p = calculate_profitability(10.0, 1, shipping_cost=0, cpa=0)
        assert p.net_margin_per_unit == 20.0


# ── Step 4 ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestSaturation:
    @pytest.mark.parametrize("count,level,impact", [
        (25, "saturated", -30), (12, "high", -20), (6, "medium", -10), (2, "low", 0),
    ])
    async def test_bands(self, count, level, impact):
        s = await check_saturation("Galaxy Star Projector Night Light", stores(count))
        assert (s.level, s.score_impact, s.competitor_count) == (level, impact, count)

    async def test_duplicate_store_names_counted_once(self):
        lookup = AsyncMock(return_value=["A", "A", "B", "", "B"])
        s = await check_saturation("Galaxy Star Projector", lookup)
        assert s.competitor_count == 2

    async def test_lookup_receives_keywords(self):
        lookup = stores(0)
        await check_saturation("The Mini LED Galaxy Star Projector Night Lamp", lookup)
        lookup.assert_awaited_once_with(["mini", "galaxy", "star", "projector", "night"])

    async def test_lookup_error_means_low(self):
        s = await check_saturation("Galaxy Projector", AsyncMock(side_effect=RuntimeError("down")))
        assert s.level == "low"

    async def test_no_lookup_means_low(self):
        assert (await check_saturation("Galaxy Projector")).level == "low"

    def test_keywords(self):
        assert title_keywords("A Big Red Ball For Dogs") == ["ball", "dogs"]


# ── Full chain ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestAnalyzeWithChain:
    async def test_winner(self):
        product = make_product(title="Galaxy Star Projector", price=20.0, sales_count=1500, rating=4.9)
        chain = await analyze_with_chain(product, stores(1))
        # strong momentum 80 + net 22 → +5 + low saturation 0
        assert chain.final_score == 85
        assert chain.status == "winner"
        assert chain.ad_difficulty == "easy"
        assert len(chain.reasoning) == 4

    async def test_low_rating_rejected(self):
        product = make_product(price=20.0, sales_count=9000, rating=4.5)
        chain = await analyze_with_chain(product, stores(0))
        assert chain.final_score == 0
        assert chain.status == "rejected"

    async def test_missing_rating_rejected(self):
        chain = await analyze_with_chain(make_product(price=20.0, rating=None))
        assert chain.status == "rejected"

    async def test_thin_margin_rejected(self):
        product = make_product(price=9.0, sales_count=9000, rating=4.9)   # net 0
        chain = await analyze_with_chain(product, stores(0))
        assert chain.status == "rejected"
        assert "Margin" in chain.reasoning[-1]

    async def test_big_margin_bonus_and_saturation(self):
        product = make_product(title="Galaxy Star Projector", price=30.0, sales_count=3000, rating=4.9)
        chain = await analyze_with_chain(product, stores(12))
        # explosive 95 + net 42 → +10 − high saturation 20
        assert chain.final_score == 85
        assert chain.ad_difficulty == "hard"

    async def test_score_clamped(self):
        product = make_product(title="Galaxy Star Projector", price=30.0, sales_count=30000, rating=5.0)
        chain = await analyze_with_chain(product, stores(0))
        assert chain.final_score == 100


@pytest.mark.asyncio
class TestAnalyzeBatchWithChain:
    async def test_sorted_by_final_score(self):
        items = [
            make_product("a", price=20.0, sales_count=400, rating=4.9),    # moderate → 65
            make_product("b", price=20.0, sales_count=5000, rating=4.9),   # explosive → 100
            make_product("c", price=20.0, sales_count=5000, rating=4.0),   # rejected → 0
        ]
        results = await analyze_batch_with_chain(items)
        assert [p.external_id for p, _ in results] == ["b", "a", "c"]

    async def test_error_gives_fallback_analysis(self):
        items = [make_product("a", price=20.0, sales_count=1500, rating=4.9)]
        with patch("scorers.chain.analyze_with_chain", AsyncMock(side_effect=RuntimeError("boom"))):
            results = await analyze_batch_with_chain(items)
        (_, chain), = results
        assert chain.final_score == 70        # strong 80 − 10
        assert chain.saturation.level == "medium"
