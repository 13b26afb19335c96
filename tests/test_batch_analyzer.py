"""
Tests for batch_analyzer.py.

Covers:
  - N products in → N pairs out, in both modes, whatever the scorer does
  - per_item: sorted best first, stable ties, paced, progress callback
  - quick_batch: one call for the head, heuristic for the tail, input order
  - invalid mode → ValueError
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

import config
from batch_analyzer import BatchMode, ScoredProduct, analyze_batch, sort_by_score
from conftest import make_product
from rate_limiter import FixedIntervalPacer
from scorers.base import RemoteScorer, ScoreOutcome, analysis_from_payload
from scorers.heuristic import score_heuristically


def make_scorer(score_one=None, score_many=None) -> RemoteScorer:
    s = MagicMock(spec=RemoteScorer)
    s.name = "fake"
    s.model_id = "m1"
    s.full_name = "fake/m1"
    s.configured = True
    s.score_one = score_one or AsyncMock(return_value=ScoreOutcome.fail("http", "HTTP 500"))
    s.score_many = score_many or AsyncMock(
        side_effect=lambda ps: [ScoreOutcome.fail("malformed") for _ in ps]
    )
    return s


def ai_outcome(product, score: int) -> ScoreOutcome:
    return ScoreOutcome.success(analysis_from_payload(product, {"score": score}))


class RecordingPacer(FixedIntervalPacer):
    def __init__(self):
        super().__init__(0.0)
        self.calls = 0

    async def wait(self) -> float:
        self.calls += 1
        return 0.0


# ── per_item ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestPerItem:
    async def test_n_in_n_out_with_null_scorer(self, products):
        pairs = await analyze_batch(products)
        assert len(pairs) == len(products)
        assert {p.product.external_id for p in pairs} == {p.external_id for p in products}
        assert all(p.analysis.source == "heuristic" for p in pairs)

    async def test_sorted_best_first(self, products):
        pairs = await analyze_batch(products, "per_item")
        assert [p.analysis.trend_score for p in pairs] == [95, 85, 75, 50]

    async def test_ties_keep_input_order(self):
        items = [make_product(str(i), "Plain Widget", price=60, sales_count=0, rating=None) for i in range(5)]
        pairs = await analyze_batch(items)
        assert [p.product.external_id for p in pairs] == ["0", "1", "2", "3", "4"]

    async def test_every_failure_degrades_one_item(self, products):
        calls = iter([
            ai_outcome(products[0], 99),
            ScoreOutcome.fail("timeout"),
            RuntimeError("boom"),
            ai_outcome(products[3], 10),
        ])

        async def score_one(product):
            outcome = next(calls)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        pairs = await analyze_batch(products, scorer=make_scorer(score_one=score_one), pacer=RecordingPacer())
        by_id = {p.product.external_id: p.analysis for p in pairs}
        assert len(pairs) == 4
        assert by_id["1"].trend_score == 99 and by_id["1"].is_ai
        assert by_id["2"] == score_heuristically(products[1])
        assert by_id["3"] == score_heuristically(products[2])
        assert by_id["4"].trend_score == 10

    async def test_paced_once_per_remote_call(self, products):
        pacer = RecordingPacer()
        await analyze_batch(products, scorer=make_scorer(), pacer=pacer)
        assert pacer.calls == len(products)

    async def test_unconfigured_scorer_not_paced(self, products):
        pacer = RecordingPacer()
        await analyze_batch(products, pacer=pacer)
        assert pacer.calls == 0

    async def test_progress_callback(self, products):
        seen = []
        await analyze_batch(products, on_progress=lambda done, total: seen.append((done, total)))
        assert seen == [(1, 4), (2, 4), (3, 4), (4, 4)]

    async def test_failing_progress_callback_ignored(self, products):
        def explode(done, total):
            raise RuntimeError("UI gone")

        pairs = await analyze_batch(products, on_progress=explode)
        assert len(pairs) == len(products)

    async def test_sort_can_be_disabled(self, products):
        pairs = await analyze_batch(products, sort_results=False)
        assert [p.product.external_id for p in pairs] == ["1", "2", "3", "4"]

    async def test_input_not_mutated(self, products):
        before = list(products)
        await analyze_batch(products)
        assert products == before

    async def test_empty_input(self):
        assert await analyze_batch([]) == []


# ── quick_batch ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestQuickBatch:
    async def test_keeps_input_order(self, products):
        pairs = await analyze_batch(products, BatchMode.QUICK_BATCH)
        assert [p.product.external_id for p in pairs] == ["1", "2", "3", "4"]

    async def test_matched_entries_used(self, products):
        async def score_many(ps):
            return [ai_outcome(p, 70 + i) for i, p in enumerate(ps)]

        pairs = await analyze_batch(products, "quick_batch", scorer=make_scorer(score_many=score_many))
        assert [p.analysis.trend_score for p in pairs] == [70, 71, 72, 73]
        assert all(p.analysis.is_ai for p in pairs)

    async def test_only_head_sent_to_model(self, monkeypatch):
        monkeypatch.setattr(config, "QUICK_BATCH_MAX", 15)
        items = [make_product(str(i)) for i in range(20)]
        score_many = AsyncMock(side_effect=lambda ps: [ai_outcome(p, 61) for p in ps])

        pairs = await analyze_batch(items, "quick_batch", scorer=make_scorer(score_many=score_many))

        sent = score_many.call_args.args[0]
        assert len(sent) == 15
        assert len(pairs) == 20
        assert all(p.analysis.is_ai for p in pairs[:15])
        assert all(not p.analysis.is_ai for p in pairs[15:])

    async def test_configured_max_above_hard_limit_is_capped(self, monkeypatch):
        monkeypatch.setattr(config, "QUICK_BATCH_MAX", 50)
        items = [make_product(str(i)) for i in range(30)]
        score_many = AsyncMock(side_effect=lambda ps: [ScoreOutcome.fail("http") for _ in ps])

        pairs = await analyze_batch(items, "quick_batch", scorer=make_scorer(score_many=score_many))

        assert len(score_many.call_args.args[0]) == 15
        assert len(pairs) == 30

    async def test_batch_failure_all_heuristic(self, products):
        pairs = await analyze_batch(products, "quick_batch", scorer=make_scorer())
        assert [p.analysis for p in pairs] == [score_heuristically(p) for p in products]

    async def test_optional_sort(self, products):
        pairs = await analyze_batch(products, "quick_batch", sort_results=True)
        scores = [p.analysis.trend_score for p in pairs]
        assert scores == sorted(scores, reverse=True)


# ── misc ───────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestMode:
    async def test_invalid_mode_raises(self, products):
        with pytest.raises(ValueError, match="per_item, quick_batch"):
            await analyze_batch(products, "turbo")


class TestSortByScore:
    def test_stable_descending(self):
        a, b, c = make_product("a"), make_product("b"), make_product("c")
        low = ScoredProduct(a, analysis_from_payload(a, {"score": 10}))
        high = ScoredProduct(b, analysis_from_payload(b, {"score": 90}))
        tie = ScoredProduct(c, analysis_from_payload(c, {"score": 10}))
        assert sort_by_score([low, high, tie]) == [high, low, tie]
