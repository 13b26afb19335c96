"""
Classification & pricing policy — the single place that defines what counts
as a winner and how a cost price turns into a selling price.

Both scorers and every caller-side filter go through these functions.
"""
from __future__ import annotations

import math
from typing import Iterable, Literal, Optional

Status = Literal["winner", "potential", "risky"]
Level = Literal["low", "medium", "high"]

WINNER_THRESHOLD = 80
POTENTIAL_THRESHOLD = 60

# Fixed x3 markup rule
MARKUP_MULTIPLIER = 3


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(score: float) -> int:
    return max(0, min(100, round_half_up(score)))


def classify(trend_score: int) -> Status:
    if trend_score >= WINNER_THRESHOLD:
        return "winner"
    if trend_score >= POTENTIAL_THRESHOLD:
        return "potential"
    return "risky"


def viral_potential(trend_score: int) -> Level:
    """Same bands as classify(), expressed as a level."""
    return {"winner": "high", "potential": "medium", "risky": "low"}[classify(trend_score)]


def suggested_price(price: float) -> float:
    return round(price * MARKUP_MULTIPLIER, 2)


def price_breakdown(price: float, suggested: Optional[float] = None) -> tuple[float, float, int]:
    """
    Return (suggested_price, profit_per_unit, profit_margin_percent).

    A missing suggestion defaults to the x3 markup; a suggestion below cost
    is never accepted (it falls back to the markup as well).
    """
    if suggested is None or suggested < price or suggested <= 0:
        suggested = suggested_price(price)
    suggested = max(round(suggested, 2), price)
    profit = round(suggested - price, 2)
    margin = round_half_up(profit / suggested * 100) if suggested > 0 else 0
    return suggested, profit, margin


# ── Caller-side filters ───────────────────────────────────────────────────────

def is_winner(trend_score: int) -> bool:
    return classify(trend_score) == "winner"


def is_promising(trend_score: int) -> bool:
    """Winner or potential, i.e. what the trending view keeps."""
    return classify(trend_score) in ("winner", "potential")


def count_by_status(scores: Iterable[int]) -> dict[str, int]:
    counts = {"total": 0, "winners": 0, "potentials": 0, "risky": 0}
    for score in scores:
        counts["total"] += 1
        counts[{"winner": "winners", "potential": "potentials", "risky": "risky"}[classify(score)]] += 1
    return counts
