"""
Chain analysis — a stricter, four-step go/no-go review of a product.

  1. Momentum      sales per day over the (assumed) store age
  2. Quality gate  hard rule: rating ≥ 4.8 and seller feedback ≥ 95 %
  3. Unit margin   x3 price minus cost, shipping and ad spend (CPA)
  4. Saturation    how many tracked competitor stores already sell it

A product failing step 2 or 3 is rejected outright (score 0). Otherwise the
momentum score is adjusted by the margin bonus and the saturation penalty,
then classified with the shared policy.

Competitor lookup is injected: any async callable taking a keyword list and
returning the names of stores selling a matching product. Without one, the
market is assumed unsaturated.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Literal, Optional, Sequence

import config
from scorers.policy import clamp_score, classify, round_half_up, suggested_price
from search_backends.base import NormalizedProduct

logger = logging.getLogger(__name__)

CompetitorLookup = Callable[[list[str]], Awaitable[list[str]]]

MIN_RATING = 4.8
MIN_FEEDBACK = 95


@dataclass(frozen=True)
class Momentum:
    status: Literal["explosive", "strong", "moderate", "weak"]
    sales_per_day: float
    store_age_days: int
    score: int
    reason: str


@dataclass(frozen=True)
class QualityGate:
    passed: bool
    rating: float
    positive_feedback: float
    rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class Profitability:
    supplier_price: float
    suggested_price: float
    shipping_cost: float
    estimated_cpa: float
    net_margin_per_unit: float
    profit_margin_percent: int
    estimated_monthly_profit: int
    daily_sales_estimate: float


@dataclass(frozen=True)
class Saturation:
    level: Literal["low", "medium", "high", "saturated"]
    competitor_count: int
    score_impact: int
    found_in_stores: tuple[str, ...] = ()


@dataclass
class ChainAnalysis:
    momentum: Momentum
    quality_gate: QualityGate
    profitability: Profitability
    saturation: Saturation
    final_score: int
    status: str                 # winner | potential | risky | rejected
    ad_difficulty: str          # easy | medium | hard | very_hard
    reasoning: list[str] = field(default_factory=list)

    @property
    def estimated_monthly_profit(self) -> int:
        return self.profitability.estimated_monthly_profit


_NO_SATURATION = Saturation("low", 0, 0)


# ── Step 1 ────────────────────────────────────────────────────────────────────

def analyze_momentum(total_sales: int, store_age_days: int = 30) -> Momentum:
    per_day = total_sales / store_age_days if store_age_days > 0 else float(total_sales)
    shown = round(per_day)

    if per_day >= 100:
        status, score, reason = "explosive", 95, f"Explosive momentum: {shown} sales/day over {store_age_days} days"
    elif per_day >= 40:
        status, score, reason = "strong", 80, f"Strong momentum: {shown} sales/day, trend confirmed"
    elif per_day >= 10:
        status, score, reason = "moderate", 60, f"Moderate momentum: {shown} sales/day, needs validation"
    else:
        status, score, reason = "weak", 30, f"Weak momentum: {shown} sales/day, high risk"

    return Momentum(status, round(per_day, 1), store_age_days, score, reason)


# ── Step 2 ────────────────────────────────────────────────────────────────────

def check_quality_gate(rating: float, positive_feedback: float = 95) -> QualityGate:
    rating_ok = rating >= MIN_RATING
    feedback_ok = positive_feedback >= MIN_FEEDBACK

    reason = None
    if not rating_ok and not feedback_ok:
        reason = f"Rating ({rating}/5) and feedback ({positive_feedback}%) both too low"
    elif not rating_ok:
        reason = f"Rating too low: {rating}/5 (minimum {MIN_RATING})"
    elif not feedback_ok:
        reason = f"Seller feedback too low: {positive_feedback}% (minimum {MIN_FEEDBACK}%)"

    return QualityGate(rating_ok and feedback_ok, rating, positive_feedback, reason)


def estimated_feedback(rating: float) -> int:
    """Seller feedback is not in search results; infer it from the rating."""
    if rating >= 4.8:
        return 98
    if rating >= 4.5:
        return 96
    return 93


# ── Step 3 ────────────────────────────────────────────────────────────────────

def calculate_profitability(
    supplier_price: float,
    daily_sales: float,
    shipping_cost: Optional[float] = None,
    cpa: Optional[float] = None,
) -> Profitability:
    shipping = config.SHIPPING_COST if shipping_cost is None else shipping_cost
    cpa = config.ESTIMATED_CPA if cpa is None else cpa

    suggested = suggested_price(supplier_price)
    net = suggested - supplier_price - shipping - cpa
    margin = round_half_up(net / suggested * 100) if suggested > 0 else 0
    monthly = round_half_up(net * daily_sales * 30)

    return Profitability(
        supplier_price=supplier_price,
        suggested_price=suggested,
        shipping_cost=shipping,
        estimated_cpa=cpa,
        net_margin_per_unit=round(net, 2),
        profit_margin_percent=margin,
        estimated_monthly_profit=max(0, monthly),
        daily_sales_estimate=daily_sales,
    )


# ── Step 4 ────────────────────────────────────────────────────────────────────

def title_keywords(title: str) -> list[str]:
    return [word for word in title.lower().split() if len(word) > 3][:5]


async def check_saturation(title: str, lookup: Optional[CompetitorLookup] = None) -> Saturation:
    keywords = title_keywords(title)
    if not keywords or lookup is None:
        return _NO_SATURATION

    try:
        stores = await lookup(keywords)
    except Exception as exc:
        logger.error("Saturation lookup failed: %s", exc)
        return _NO_SATURATION

    unique = list(dict.fromkeys(s for s in stores if s))
    count = len(unique)
    if count >= 20:
        level, impact = "saturated", -30
    elif count >= 10:
        level, impact = "high", -20
    elif count >= 5:
        level, impact = "medium", -10
    else:
        level, impact = "low", 0

    return Saturation(level, count, impact, tuple(unique[:5]))


_AD_DIFFICULTY = {"saturated": "very_hard", "high": "hard", "medium": "medium", "low": "easy"}


# ── Full chain ────────────────────────────────────────────────────────────────

async def analyze_with_chain(
    product: NormalizedProduct,
    lookup: Optional[CompetitorLookup] = None,
    store_age_days: Optional[int] = None,
) -> ChainAnalysis:
    age = config.STORE_AGE_DAYS if store_age_days is None else store_age_days
    rating = product.rating or 0.0
    reasoning: list[str] = []

    momentum = analyze_momentum(product.sales_count, age)
    reasoning.append(f"Step 1 - Momentum: {momentum.reason}")

    feedback = estimated_feedback(rating)
    gate = check_quality_gate(rating, feedback)
    if not gate.passed:
        reasoning.append(f"Step 2 - Quality gate: REJECTED - {gate.rejection_reason}")
        return ChainAnalysis(
            momentum, gate, calculate_profitability(product.price, 0), _NO_SATURATION,
            final_score=0, status="rejected", ad_difficulty="very_hard", reasoning=reasoning,
        )
    reasoning.append(f"Step 2 - Quality gate: passed ({rating}/5, {feedback}% feedback)")

    profitability = calculate_profitability(product.price, momentum.sales_per_day)
    net = profitability.net_margin_per_unit
    if net < config.MIN_NET_MARGIN:
        reasoning.append(
            f"Step 3 - Margin: REJECTED - {net:.2f}/unit (< {config.MIN_NET_MARGIN:.0f} required)"
        )
        return ChainAnalysis(
            momentum, gate, profitability, _NO_SATURATION,
            final_score=0, status="rejected", ad_difficulty="hard", reasoning=reasoning,
        )
    reasoning.append(
        f"Step 3 - Margin: {net:.2f}/unit, estimated monthly profit "
        f"{profitability.estimated_monthly_profit}"
    )

    saturation = await check_saturation(product.title, lookup)
    reasoning.append(
        f"Step 4 - Saturation: {saturation.level.upper()} ({saturation.competitor_count} competing stores)"
    )

    score = momentum.score + saturation.score_impact
    if net >= 25:
        score += 10
    elif net >= 15:
        score += 5
    elif net < 10:
        score -= 15
    final = clamp_score(score)

    return ChainAnalysis(
        momentum, gate, profitability, saturation,
        final_score=final,
        status=classify(final),
        ad_difficulty=_AD_DIFFICULTY[saturation.level],
        reasoning=reasoning,
    )


def fallback_chain_analysis(product: NormalizedProduct) -> ChainAnalysis:
    """Simplified analysis used when the full chain errors out (no saturation data)."""
    momentum = analyze_momentum(product.sales_count, 30)
    profitability = calculate_profitability(product.price, momentum.sales_per_day)
    final = clamp_score(momentum.score - 10)
    return ChainAnalysis(
        momentum,
        check_quality_gate(product.rating or 0.0, 95),
        profitability,
        Saturation("medium", 10, -10),
        final_score=final,
        status=classify(final),
        ad_difficulty="medium",
        reasoning=["Simplified analysis (saturation data unavailable)"],
    )


async def analyze_batch_with_chain(
    products: Sequence[NormalizedProduct],
    lookup: Optional[CompetitorLookup] = None,
) -> list[tuple[NormalizedProduct, ChainAnalysis]]:
    results: list[tuple[NormalizedProduct, ChainAnalysis]] = []
    for product in products:
        try:
            analysis = await analyze_with_chain(product, lookup)
        except Exception as exc:
            logger.error("Chain analysis failed for %s: %s", product.external_id, exc)
            analysis = fallback_chain_analysis(product)
        results.append((product, analysis))

    results.sort(key=lambda pair: pair[1].final_score, reverse=True)
    return results
