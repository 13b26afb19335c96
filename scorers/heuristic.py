"""
Fallback heuristic scorer — no AI needed here, pure math.

Used as the primary classifier when no model is configured and as the
automatic fallback whenever a remote call fails. Its output has exactly the
same shape as the AI scorer's, so callers never know which one answered.

Scoring (base 50, additive, capped at 100):
  sales   ≥10k +20 · ≥5k +15 · ≥1k +10
  rating  ≥4.8 +15 · ≥4.5 +10 · ≥4.0 +5
  price   5–25 +10   (impulse-buy sweet spot)
"""
from __future__ import annotations

from scorers.base import AnalysisResult
from scorers.policy import Level, classify, clamp_score, price_breakdown, viral_potential
from search_backends.base import NormalizedProduct

BASE_SCORE = 50

IMPULSE_PRICE_MIN = 5
IMPULSE_PRICE_MAX = 25

# ── Niches ────────────────────────────────────────────────────────────────────

NICHES: dict[str, dict] = {
    "Tech & Gadgets": {
        "keywords": ["phone", "wireless", "bluetooth", "usb", "led", "smart", "charger"],
        "audience": "Tech enthusiasts, young professionals, early adopters",
    },
    "Health & Wellness": {
        "keywords": ["posture", "massager", "health", "therapy"],
        "audience": "Health-conscious individuals, office workers, seniors",
    },
    "Home & Living": {
        "keywords": ["humidifier", "projector", "light", "home", "decor"],
        "audience": "Homeowners, apartment dwellers, interior design enthusiasts",
    },
    "Kitchen": {
        "keywords": ["blender", "kitchen", "cooking", "food"],
        "audience": "Home cooks, health enthusiasts, busy parents",
    },
    "Beauty": {
        "keywords": ["beauty", "skin", "hair", "makeup", "massage"],
        "audience": "Women 18-45, beauty enthusiasts, skincare lovers",
    },
    "Pets": {
        "keywords": ["pet", "dog", "cat", "animal"],
        "audience": "Pet owners, dog/cat lovers, new pet parents",
    },
    "Fitness": {
        "keywords": ["fitness", "exercise", "gym", "sport"],
        "audience": "Fitness enthusiasts, gym goers, athletes",
    },
    "Fashion": {
        "keywords": ["fashion", "jewelry", "watch", "bag"],
        "audience": "Fashion-conscious shoppers, trend followers",
    },
}

GENERAL_AUDIENCE = "General consumers, impulse buyers"


def detect_niche(title: str) -> str:
    """First niche whose keyword appears in the title, else 'General'."""
    lowered = title.lower()
    for niche, data in NICHES.items():
        if any(kw in lowered for kw in data["keywords"]):
            return niche
    return "General"


def target_audience(title: str) -> str:
    niche = detect_niche(title)
    return NICHES[niche]["audience"] if niche in NICHES else GENERAL_AUDIENCE


# ── Marketing angles ──────────────────────────────────────────────────────────

# (keywords, angle), checked in order, one angle per rule
ANGLE_RULES: list[tuple[tuple[str, ...], str]] = [
    (("led", "light"),         "Transform any room's ambiance instantly"),
    (("smart", "wireless"),    "Effortless tech that simplifies daily life"),
    (("portable", "mini"),     "Take it anywhere — fits in your pocket"),
    (("pet", "dog", "cat"),    "Pet parent must-have"),
    (("beauty", "skin", "hair", "makeup"), "Spa-level self-care at home"),
    (("kitchen", "cooking"),   "The kitchen hack everyone is sharing"),
    (("fitness", "gym", "posture"), "Level up your routine in minutes a day"),
]

FILLER_ANGLES = (
    "Problem solver you didn't know you needed",
    "Perfect gift idea",
    "Trending on social media",
)


def marketing_angles(title: str) -> tuple[str, ...]:
    lowered = title.lower()
    angles = [angle for keywords, angle in ANGLE_RULES if any(kw in lowered for kw in keywords)]
    for filler in FILLER_ANGLES:
        if len(angles) >= 3:
            break
        angles.append(filler)
    return tuple(angles[:3])


# ── Scoring ───────────────────────────────────────────────────────────────────

def heuristic_score(product: NormalizedProduct) -> int:
    points = BASE_SCORE

    sales = product.sales_count
    if sales >= 10000:
        points += 20
    elif sales >= 5000:
        points += 15
    elif sales >= 1000:
        points += 10

    rating = product.rating or 0
    if rating >= 4.8:
        points += 15
    elif rating >= 4.5:
        points += 10
    elif rating >= 4.0:
        points += 5

    if IMPULSE_PRICE_MIN <= product.price <= IMPULSE_PRICE_MAX:
        points += 10

    return clamp_score(points)


def competition_level(sales_count: int) -> Level:
    if sales_count > 20000:
        return "high"
    if sales_count > 5000:
        return "medium"
    return "low"


def score_heuristically(product: NormalizedProduct) -> AnalysisResult:
    score = heuristic_score(product)
    suggested, profit, margin = price_breakdown(product.price)
    if product.rating is not None:
        summary = f"{product.sales_count:,} orders with a {product.rating:.1f}/5 rating"
    else:
        summary = f"{product.sales_count:,} orders, no rating yet"

    return AnalysisResult(
        trend_score=score,
        status=classify(score),
        suggested_price=suggested,
        profit_per_unit=profit,
        profit_margin_percent=margin,
        marketing_angles=marketing_angles(product.title),
        target_audience=target_audience(product.title),
        competition_level=competition_level(product.sales_count),
        viral_potential=viral_potential(score),
        reason=f"{summary} (formula-based estimate).",
        source="heuristic",
    )
