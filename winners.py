"""
winners.py — the user-facing flows: search → score → report.

  search_and_analyze(query)   one search, every result scored, with counts
  trending_winners()          sweep TRENDING_CATEGORIES, keep winners/potentials
  analyze_product(id_or_url)  one product, full AI analysis
  chain_review(query)         search + the stricter four-step chain analysis

None of these raise for upstream problems: search errors come back as an
empty report with `error` set, scoring errors degrade to the heuristic.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

import config
from batch_analyzer import BatchMode, ScoredProduct, analyze_batch, sort_by_score
from product_search import get_product_details, search_products
from scorers.base import AnalysisResult
from scorers.chain import ChainAnalysis, CompetitorLookup, analyze_batch_with_chain
from scorers.manager import score_with_ai
from scorers.policy import count_by_status, is_promising, is_winner
from search_backends.base import NormalizedProduct, SearchOptions

logger = logging.getLogger(__name__)

# Products pulled per category during the trending sweep
TRENDING_PER_CATEGORY = 10
TRENDING_SCORED_MAX = 15


@dataclass
class WinnersReport:
    products: list[ScoredProduct] = field(default_factory=list)
    stats: dict[str, int] = field(
        default_factory=lambda: {"total": 0, "winners": 0, "potentials": 0, "risky": 0}
    )
    error: Optional[str] = None

    @property
    def winners(self) -> list[ScoredProduct]:
        return [p for p in self.products if is_winner(p.analysis.trend_score)]


def _report(pairs: list[ScoredProduct]) -> WinnersReport:
    return WinnersReport(
        products=pairs,
        stats=count_by_status(p.analysis.trend_score for p in pairs),
    )


async def search_and_analyze(
    query: str,
    mode: Union[BatchMode, str] = BatchMode.PER_ITEM,
    options: Optional[SearchOptions] = None,
) -> WinnersReport:
    query = (query or "").strip()
    if not query:
        return WinnersReport(error="Search query is empty")

    try:
        result = await search_products(query, options)
    except Exception as exc:
        logger.error("Search '%s' failed: %s", query, exc)
        return WinnersReport(error=f"Search failed: {exc}")

    if not result.products:
        return WinnersReport(error=f"No products found for '{query}'")

    pairs = await analyze_batch(result.products, mode, sort_results=True)
    report = _report(pairs)
    logger.info(
        "'%s': %d scored, %d winners, %d potentials",
        query, report.stats["total"], report.stats["winners"], report.stats["potentials"],
    )
    return report


async def trending_winners(categories: Optional[list[str]] = None) -> WinnersReport:
    """
    Search every trending category, de-duplicate by product id (first seen
    wins), quick-batch score the first TRENDING_SCORED_MAX and keep only the
    winners and potentials, best first.
    """
    categories = categories if categories is not None else config.TRENDING_CATEGORIES
    seen: dict[str, NormalizedProduct] = {}

    for category in categories:
        try:
            result = await search_products(category, SearchOptions(limit=TRENDING_PER_CATEGORY))
        except Exception as exc:
            logger.warning("Trending category '%s' failed: %s", category, exc)
            continue
        for product in result.products:
            seen.setdefault(product.external_id, product)

    if not seen:
        return WinnersReport(error="No trending products found")

    candidates = list(seen.values())[:TRENDING_SCORED_MAX]
    pairs = await analyze_batch(candidates, BatchMode.QUICK_BATCH)
    kept = sort_by_score([p for p in pairs if is_promising(p.analysis.trend_score)])

    logger.info(
        "Trending sweep: %d categories, %d unique products, %d kept",
        len(categories), len(seen), len(kept),
    )
    return _report(kept)


async def analyze_product(product_id_or_url: str) -> Optional[ScoredProduct]:
    """Full analysis of one product; None when it can't be found."""
    product = await get_product_details(product_id_or_url)
    if product is None:
        logger.info("Product not found: %s", product_id_or_url)
        return None
    analysis: AnalysisResult = await score_with_ai(product)
    return ScoredProduct(product, analysis)


# ── Chain analysis ────────────────────────────────────────────────────────────

# Matching tracked products considered per lookup
TRACKED_MATCH_LIMIT = 50

_tracked_stores: Optional[dict[str, list[str]]] = None


def load_tracked_stores(path: Optional[str] = None) -> dict[str, list[str]]:
    """
    Read the tracked competitor stores registry: {"Store name": [titles...]}.

    A missing path gives an empty registry. An unreadable or malformed file
    raises, so a misconfigured TRACKED_STORES_FILE is noticed at startup.
    """
    path = path or config.TRACKED_STORES_FILE
    if not path:
        return {}
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected an object of store name → product titles")
    return {
        str(store): [str(title) for title in titles if title]
        for store, titles in data.items()
        if isinstance(titles, list)
    }


def get_tracked_stores() -> dict[str, list[str]]:
    global _tracked_stores
    if _tracked_stores is None:
        _tracked_stores = load_tracked_stores()
        logger.info("Tracked competitor stores: %d", len(_tracked_stores))
    return _tracked_stores


def reset_tracked_stores() -> None:
    global _tracked_stores
    _tracked_stores = None


async def competitor_stores(keywords: list[str]) -> list[str]:
    """
    Tracked stores selling a product whose title contains any of `keywords`
    (case-insensitive), one name per matching product, at most
    TRACKED_MATCH_LIMIT matches.
    """
    words = [k.lower() for k in keywords if k]
    names: list[str] = []
    for store, titles in get_tracked_stores().items():
        for title in titles:
            if len(names) >= TRACKED_MATCH_LIMIT:
                return names
            lowered = title.lower()
            if any(word in lowered for word in words):
                names.append(store)
    return names


def tracked_store_lookup() -> Optional[CompetitorLookup]:
    """The saturation lookup, or None when no stores are tracked."""
    return competitor_stores if get_tracked_stores() else None


async def chain_review(
    query: str,
    options: Optional[SearchOptions] = None,
) -> list[tuple[NormalizedProduct, ChainAnalysis]]:
    result = await search_products(query, options)
    return await analyze_batch_with_chain(result.products, tracked_store_lookup())
