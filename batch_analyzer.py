"""
batch_analyzer.py — scores a list of normalized products.

Modes:
  per_item     one remote call per product, strictly sequential, paced by a
               FixedIntervalPacer (SCORING_DELAY_SECS between call starts).
               Output is sorted by trend score, best first (stable).
  quick_batch  one remote call for the first QUICK_BATCH_MAX products; the
               rest are scored by the heuristic. Output keeps input order
               unless sort_results=True.

Guarantee: N products in → exactly N (product, analysis) pairs out. A remote
failure degrades that one product to the heuristic; it never aborts the
batch. Only a programming error (unknown mode) raises.
"""
from __future__ import annotations

import enum
import logging
from typing import Callable, NamedTuple, Optional, Sequence, Union

import config
from rate_limiter import FixedIntervalPacer
from scorers.base import AnalysisResult, RemoteScorer
from scorers.heuristic import score_heuristically
from scorers.manager import get_scorer, score_many_with_ai, with_fallback
from search_backends.base import NormalizedProduct

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

# Larger prompts get truncated or mis-indexed by the model
QUICK_BATCH_HARD_LIMIT = 15


class BatchMode(str, enum.Enum):
    PER_ITEM = "per_item"
    QUICK_BATCH = "quick_batch"


class ScoredProduct(NamedTuple):
    product: NormalizedProduct
    analysis: AnalysisResult


def _coerce_mode(mode: Union[BatchMode, str]) -> BatchMode:
    try:
        return BatchMode(mode)
    except ValueError:
        valid = ", ".join(m.value for m in BatchMode)
        raise ValueError(f"Unknown batch mode {mode!r}. Valid modes: {valid}") from None


def sort_by_score(pairs: Sequence[ScoredProduct]) -> list[ScoredProduct]:
    """Best first; ties keep their original relative order."""
    return sorted(pairs, key=lambda pair: pair.analysis.trend_score, reverse=True)


async def analyze_batch(
    products: Sequence[NormalizedProduct],
    mode: Union[BatchMode, str] = BatchMode.PER_ITEM,
    *,
    scorer: Optional[RemoteScorer] = None,
    pacer: Optional[FixedIntervalPacer] = None,
    on_progress: Optional[ProgressCallback] = None,
    sort_results: Optional[bool] = None,
) -> list[ScoredProduct]:
    """
    Score every product and pair it with its analysis.

    Args:
        products:     normalized products (never mutated).
        mode:         BatchMode or its string value.
        scorer:       remote scorer; defaults to the configured one.
        pacer:        per_item pacing; defaults to SCORING_DELAY_SECS.
        on_progress:  per_item only; called with (done, total) after each item.
        sort_results: override the mode's default ordering.
    """
    batch_mode = _coerce_mode(mode)
    scorer = scorer or get_scorer()

    if batch_mode is BatchMode.PER_ITEM:
        pairs = await _per_item(products, scorer, pacer, on_progress)
        return sort_by_score(pairs) if sort_results is not False else pairs

    pairs = await _quick_batch(products, scorer)
    return sort_by_score(pairs) if sort_results else pairs


async def _per_item(
    products: Sequence[NormalizedProduct],
    scorer: RemoteScorer,
    pacer: Optional[FixedIntervalPacer],
    on_progress: Optional[ProgressCallback],
) -> list[ScoredProduct]:
    total = len(products)
    pairs: list[ScoredProduct] = []

    # Nothing to pace when every call is answered locally
    if scorer.configured:
        pacer = pacer or FixedIntervalPacer(config.SCORING_DELAY_SECS)

    for product in products:
        if scorer.configured:
            await pacer.wait()

        analysis = await with_fallback(
            lambda: scorer.score_one(product),
            lambda: score_heuristically(product),
            label=f"{scorer.full_name} {product.external_id}",
        )
        pairs.append(ScoredProduct(product, analysis))

        if on_progress is not None:
            try:
                on_progress(len(pairs), total)
            except Exception as exc:
                logger.warning("Progress callback failed: %s", exc)

    logger.info(
        "Per-item batch: %d products, %d AI-scored",
        total, sum(1 for p in pairs if p.analysis.is_ai),
    )
    return pairs


async def _quick_batch(
    products: Sequence[NormalizedProduct],
    scorer: RemoteScorer,
) -> list[ScoredProduct]:
    limit = max(0, min(config.QUICK_BATCH_MAX, QUICK_BATCH_HARD_LIMIT))
    head = list(products[:limit])
    tail = products[limit:]

    analyses = await score_many_with_ai(head, scorer) if head else []
    analyses.extend(score_heuristically(p) for p in tail)

    logger.info(
        "Quick batch: %d products (%d sent to %s, %d heuristic-only)",
        len(products), len(head), scorer.full_name, len(tail),
    )
    return [ScoredProduct(p, a) for p, a in zip(products, analyses)]
