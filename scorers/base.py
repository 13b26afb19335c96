"""
Shared types and base class for all product scorers.
"""
from __future__ import annotations

import json
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from scorers.policy import Level, Status, classify, clamp_score, price_breakdown
from search_backends.base import NormalizedProduct

logger = logging.getLogger(__name__)

LEVELS = ("low", "medium", "high")

# ── Prompts (shared across all remote scorers) ────────────────────────────────

SYSTEM_PROMPT = """You are an expert dropshipping product researcher.
Score the product's sales and marketing potential and return ONLY a valid JSON object — no markdown, no prose.

Score bands:
  80-100  winner     — proven demand, impulse-buy price, strong viral hook
  60-79   potential  — promising but needs a sharp marketing angle
  0-59    risky      — weak demand, saturated, or poor margin

JSON schema (all fields required):
{
  "score":            integer 0-100,
  "suggestedPrice":   retail price in the same currency (cost price x3 is the house rule),
  "marketingAngles":  ["exactly 3 short, punchy ad angles, best first"],
  "targetAudience":   "concise ideal customer persona",
  "competitionLevel": "low | medium | high",
  "viralPotential":   "low | medium | high",
  "reason":           "one-sentence justification of the score"
}
"""

BATCH_SYSTEM_PROMPT = """You are an expert dropshipping product researcher.
You will receive a numbered list of products. Score EVERY product and return ONLY a valid JSON object — no markdown, no prose.

Score bands: 80-100 winner, 60-79 potential, 0-59 risky.

JSON schema:
{
  "products": [
    {
      "index":            the product's number from the list (integer, 1-based),
      "score":            integer 0-100,
      "suggestedPrice":   retail price (cost price x3 is the house rule),
      "marketingAngles":  ["exactly 3 short ad angles"],
      "targetAudience":   "ideal customer persona",
      "competitionLevel": "low | medium | high",
      "viralPotential":   "low | medium | high",
      "reason":           "short justification"
    }
  ]
}
Always copy "index" exactly from the list so each entry can be matched to its product.
"""


def product_summary(product: NormalizedProduct) -> str:
    rating = f"{product.rating:.1f}/5" if product.rating is not None else "N/A"
    return (
        f'"{product.title}" - Price: {product.price:.2f}, '
        f"Orders: {product.sales_count}, Rating: {rating}"
    )


def build_user_prompt(product: NormalizedProduct, language: str = "English") -> str:
    return (
        f"Analyse this product:\n"
        f"Title: \"{product.title}\"\n"
        f"Cost price: {product.price:.2f}\n"
        f"Orders: {product.sales_count}\n"
        f"Rating: {product.rating if product.rating is not None else 'N/A'}\n\n"
        f"Write all text values in {language}. Output ONLY valid JSON."
    )


def build_batch_prompt(products: Sequence[NormalizedProduct], language: str = "English") -> str:
    lines = [f"{i}. {product_summary(p)}" for i, p in enumerate(products, start=1)]
    return (
        "Products to analyse:\n\n"
        + "\n".join(lines)
        + f"\n\nScore all {len(products)} products. Write all text values in {language}."
    )


# ── Shared result types ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class AnalysisResult:
    """Scoring output for one product. Attached to, never merged into, the product."""
    trend_score: int                    # 0–100
    status: Status                      # always classify(trend_score)
    suggested_price: float
    profit_per_unit: float
    profit_margin_percent: int
    marketing_angles: tuple[str, ...]   # exactly 3, ranked
    target_audience: str
    competition_level: Level
    viral_potential: Level
    reason: str
    source: str = "heuristic"           # "ai" | "heuristic"

    @property
    def is_ai(self) -> bool:
        return self.source == "ai"


@dataclass(frozen=True)
class ScoreFailure:
    kind: str           # unconfigured | http | network | timeout | malformed
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.kind}: {self.detail}" if self.detail else self.kind


@dataclass(frozen=True)
class ScoreOutcome:
    """Either a result or a failure. Remote scorers return this instead of raising."""
    result: Optional[AnalysisResult] = None
    failure: Optional[ScoreFailure] = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @classmethod
    def success(cls, result: AnalysisResult) -> "ScoreOutcome":
        return cls(result=result)

    @classmethod
    def fail(cls, kind: str, detail: str = "") -> "ScoreOutcome":
        return cls(failure=ScoreFailure(kind, detail))


def parse_json_response(raw: Optional[str], scorer_name: str) -> dict:
    """
    Parse JSON from a model response, handling markdown fences gracefully.
    Raises ValueError on parse failure or when the top level is not an object.
    """
    text = (raw or "").strip()
    # Strip ```json ... ``` or ``` ... ``` fences if present
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("[%s] Non-JSON response: %s", scorer_name, (raw or "")[:300])
        raise ValueError(f"[{scorer_name}] JSON parse error: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"[{scorer_name}] expected a JSON object, got {type(data).__name__}")
    return data


# ── Payload → AnalysisResult ──────────────────────────────────────────────────

def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _level(value: Any) -> Optional[Level]:
    if isinstance(value, str) and value.strip().lower() in LEVELS:
        return value.strip().lower()  # type: ignore[return-value]
    return None


def _angles(value: Any, fallback: Sequence[str]) -> tuple[str, ...]:
    angles: list[str] = []
    if isinstance(value, list):
        for item in value:
            text = _text(item)
            if text and text not in angles:
                angles.append(text)
    for item in fallback:
        if len(angles) >= 3:
            break
        if item not in angles:
            angles.append(item)
    return tuple(angles[:3])


def analysis_from_payload(product: NormalizedProduct, data: dict) -> AnalysisResult:
    """
    Build a fully valid AnalysisResult from a (possibly partial) model payload.

    "score" is the one required field; without it ValueError is raised and
    the caller falls back. Every other missing or out-of-range field is
    filled individually from the heuristic's answer for the same product.
    """
    from scorers.heuristic import score_heuristically

    raw_score = _number(data.get("score", data.get("trendScore")))
    if raw_score is None:
        raise ValueError("response has no numeric 'score'")

    trend_score = clamp_score(raw_score)
    fallback = score_heuristically(product)
    suggested, profit, margin = price_breakdown(
        product.price, _number(data.get("suggestedPrice"))
    )

    return AnalysisResult(
        trend_score=trend_score,
        status=classify(trend_score),
        suggested_price=suggested,
        profit_per_unit=profit,
        profit_margin_percent=margin,
        marketing_angles=_angles(data.get("marketingAngles"), fallback.marketing_angles),
        target_audience=_text(data.get("targetAudience")) or fallback.target_audience,
        competition_level=_level(data.get("competitionLevel")) or fallback.competition_level,
        viral_potential=_level(data.get("viralPotential")) or fallback.viral_potential,
        reason=_text(data.get("reason")) or fallback.reason,
        source="ai",
    )


# ── Abstract base ──────────────────────────────────────────────────────────────

class RemoteScorer(ABC):
    """Base class all remote (model-backed) scorers must implement."""

    name: str           # e.g. "openai"
    model_id: str       # e.g. "gpt-4o-mini"

    @property
    def configured(self) -> bool:
        return True

    @property
    def full_name(self) -> str:
        return f"{self.name}/{self.model_id}"

    @abstractmethod
    async def score_one(self, product: NormalizedProduct) -> ScoreOutcome:
        """Score one product. Must never raise; failures come back as ScoreOutcome.fail()."""
        ...

    @abstractmethod
    async def score_many(self, products: Sequence[NormalizedProduct]) -> list[ScoreOutcome]:
        """Score several products in one round trip; one outcome per input, same order."""
        ...


class NullRemoteScorer(RemoteScorer):
    """Stands in when no API key is configured: every call reports 'unconfigured'."""

    def __init__(self) -> None:
        self.name = "none"
        self.model_id = "unconfigured"

    @property
    def configured(self) -> bool:
        return False

    async def score_one(self, product: NormalizedProduct) -> ScoreOutcome:
        return ScoreOutcome.fail("unconfigured", "no API key")

    async def score_many(self, products: Sequence[NormalizedProduct]) -> list[ScoreOutcome]:
        return [ScoreOutcome.fail("unconfigured", "no API key") for _ in products]
