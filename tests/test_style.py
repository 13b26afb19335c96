"""
Tests for style.py — terminal formatting helpers.

Covers:
  - star_bar(): correct star strings for various ratings
  - fmt_count(): K / M formatting and edge cases
  - score_bar() / status_badge()
  - product_card() / product_detail(): key fields present
  - results_page(): winners-only view, stats footer
  - chain_page() / profit_card()
"""
from __future__ import annotations

import pytest

import style
from batch_analyzer import ScoredProduct
from conftest import make_product
from profit_calculator import calculate_profit
from scorers.base import analysis_from_payload
from scorers.chain import fallback_chain_analysis
from scorers.heuristic import score_heuristically
from winners import WinnersReport


def scored(product, score=None) -> ScoredProduct:
    if score is None:
        return ScoredProduct(product, score_heuristically(product))
    return ScoredProduct(product, analysis_from_payload(product, {"score": score}))


# ── star_bar() ────────────────────────────────────────────────────────────────

class TestStarBar:
    def test_5_stars(self):
        assert style.star_bar(5.0) == "★★★★★"

    def test_4_stars(self):
        assert style.star_bar(4.0) == "★★★★☆"

    def test_rounds(self):
        assert style.star_bar(4.6) == "★★★★★"

    def test_none_rating_gives_all_empty(self):
        assert style.star_bar(None) == "☆☆☆☆☆"


# ── fmt_count() ───────────────────────────────────────────────────────────────

class TestFmtCount:
    @pytest.mark.parametrize("count,expected", [
        (None, ""), (0, "0"), (999, "999"), (1_500, "1.5K"), (2_300_000, "2.3M"),
    ])
    def test_formats(self, count, expected):
        assert style.fmt_count(count) == expected


# ── small helpers ─────────────────────────────────────────────────────────────

class TestHelpers:
    def test_score_bar_width(self):
        assert style.score_bar(50, width=10) == "█████░░░░░"
        assert style.score_bar(0, width=4) == "░░░░"
        assert style.score_bar(100, width=4) == "████"

    def test_status_badge(self):
        assert "WINNER" in style.status_badge("winner")
        assert "REJECTED" in style.status_badge("rejected")
        assert style.status_badge("unknown") == "UNKNOWN"

    def test_fmt_money(self):
        assert style.fmt_money(1234.5, "EUR") == "1,234.50 EUR"
        assert style.fmt_money(None) == "n/a"


# ── Cards ─────────────────────────────────────────────────────────────────────

class TestCards:
    def test_product_card(self, product):
        card = style.product_card(scored(product), 3, "EUR")
        assert card.startswith("3. LED Smart Lamp")
        assert "95/100" in card
        assert "29.97 EUR" in card
        assert "formula" in card

    def test_ai_card_marked(self, product):
        assert "AI" in style.product_card(scored(product, 70), 1)

    def test_no_rating(self, weak_product):
        assert "No ratings yet" in style.product_card(scored(weak_product), 1)

    def test_product_detail(self, product):
        detail = style.product_detail(scored(product))
        assert product.source_url in detail
        for angle in score_heuristically(product).marketing_angles:
            assert angle in detail
        assert "Scored by formula" in detail


# ── Pages ─────────────────────────────────────────────────────────────────────

class TestPages:
    def _report(self, products):
        pairs = [scored(products[3]), scored(products[0])]    # 95, 50
        return WinnersReport(products=pairs, stats={"total": 2, "winners": 1, "potentials": 0, "risky": 1})

    def test_results_page(self, products):
        page = style.results_page("lamp", self._report(products))
        assert "Galaxy Projector" in page
        assert "Plain Widget" in page
        assert "1 winners" in page

    def test_winners_only(self, products):
        page = style.results_page("lamp", self._report(products), winners_only=True)
        assert "Galaxy Projector" in page
        assert "Plain Widget" not in page

    def test_empty_report(self):
        assert "No products" in style.results_page("lamp", WinnersReport())

    def test_chain_page(self, product):
        page = style.chain_page("Chain", [(product, fallback_chain_analysis(product))])
        assert product.title in page
        assert "Simplified analysis" in page

    def test_profit_card(self):
        card = style.profit_card(calculate_profit(10, 39.99, cpa=15, shipping=3))
        assert "28.00" in card
        assert "Profitable" in card

    def test_loss_card(self):
        assert "Loss-making" in style.profit_card(calculate_profit(10, 20, cpa=15))

    def test_errors_mention_input(self):
        assert "'lamp'" in style.error_no_results("lamp")
        assert "'123'" in style.error_not_found("123")
