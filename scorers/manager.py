"""
Scorer Manager — builds the remote scorer once at startup and applies the
fallback policy.

The API key is read from config here, once, and injected into the scorer's
constructor. Nothing downstream reads the environment:

  OPENAI_API_KEY set    → OpenAIScorer(OPENAI_MODEL)
  OPENAI_API_KEY empty  → NullRemoteScorer (every product gets the heuristic)

with_fallback() is the single place where a failed remote outcome turns into
the heuristic result; score_with_ai / score_many_with_ai are thin wrappers
around it for callers that just want AnalysisResults.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Sequence

import config
from scorers.base import AnalysisResult, NullRemoteScorer, RemoteScorer, ScoreOutcome
from scorers.heuristic import score_heuristically
from search_backends.base import NormalizedProduct

logger = logging.getLogger(__name__)

# Module-level cache; reset_scorer() drops it
_scorer: Optional[RemoteScorer] = None


def build_scorer(api_key: Optional[str] = None, model: Optional[str] = None) -> RemoteScorer:
    """Instantiate the remote scorer for the given (or configured) credential."""
    key = api_key if api_key is not None else config.OPENAI_API_KEY
    if not key:
        logger.info("No OPENAI_API_KEY — running in heuristic-only mode")
        return NullRemoteScorer()

    from scorers.openai_scorer import OpenAIScorer
    scorer = OpenAIScorer(
        api_key=key,
        model=model or config.OPENAI_MODEL,
        timeout=config.AI_TIMEOUT_SECS,
        temperature=config.AI_TEMPERATURE,
        language=config.AI_LANGUAGE,
    )
    logger.info("Loaded scorer: %s", scorer.full_name)
    return scorer


def get_scorer() -> RemoteScorer:
    global _scorer
    if _scorer is None:
        _scorer = build_scorer()
    return _scorer


def reset_scorer() -> None:
    global _scorer
    _scorer = None


# ── Fallback combinator ───────────────────────────────────────────────────────

async def with_fallback(
    remote_call: Callable[[], Awaitable[ScoreOutcome]],
    heuristic: Callable[[], AnalysisResult],
    label: str = "",
) -> AnalysisResult:
    """
    Await remote_call(); on a failed outcome, or on any exception it raises,
    return heuristic() instead. Never raises for remote-side problems.
    """
    try:
        outcome = await remote_call()
    except Exception as exc:
        logger.error("[%s] Scorer raised: %s — using heuristic", label, exc)
        return heuristic()

    if outcome.ok:
        return outcome.result
    if outcome.failure and outcome.failure.kind != "unconfigured":
        logger.warning("[%s] Remote scoring failed (%s) — using heuristic", label, outcome.failure)
    return heuristic()


def resolve(outcome: ScoreOutcome, product: NormalizedProduct, label: str = "") -> AnalysisResult:
    """Synchronous twin of with_fallback for outcomes that are already in hand."""
    if outcome.ok:
        return outcome.result
    if outcome.failure and outcome.failure.kind != "unconfigured":
        logger.warning("[%s] %s: %s — using heuristic", label, product.external_id, outcome.failure)
    return score_heuristically(product)


# ── Convenience wrappers ──────────────────────────────────────────────────────

async def score_with_ai(
    product: NormalizedProduct,
    scorer: Optional[RemoteScorer] = None,
) -> AnalysisResult:
    scorer = scorer or get_scorer()
    return await with_fallback(
        lambda: scorer.score_one(product),
        lambda: score_heuristically(product),
        label=f"{scorer.full_name} {product.external_id}",
    )


async def score_many_with_ai(
    products: Sequence[NormalizedProduct],
    scorer: Optional[RemoteScorer] = None,
) -> list[AnalysisResult]:
    """One outcome per input product, same order; gaps filled by the heuristic."""
    scorer = scorer or get_scorer()
    try:
        outcomes = await scorer.score_many(products)
    except Exception as exc:
        logger.error("[%s] Batch scorer raised: %s — using heuristic", scorer.full_name, exc)
        outcomes = []

    if len(outcomes) != len(products):
        if outcomes:
            logger.error(
                "[%s] Batch returned %d outcomes for %d products — using heuristic",
                scorer.full_name, len(outcomes), len(products),
            )
        outcomes = [ScoreOutcome.fail("malformed", "outcome count mismatch") for _ in products]

    return [resolve(o, p, scorer.full_name) for o, p in zip(outcomes, products)]
