"""
main.py — Single entry point.

Command-line front end for the scoring pipeline. Every sub-command runs in
one asyncio event loop via asyncio.run().

  search QUERY      search, score every result, print the ranked report
  trending          sweep TRENDING_CATEGORIES, print winners and potentials
  analyze ID|URL    full analysis of one product
  chain QUERY       stricter four-step chain analysis of search results
  calc BUY_PRICE    per-unit profit calculator (offline)

Runs with an empty .env: no OPENAI_API_KEY → heuristic scores only,
no RAPIDAPI_KEY → the built-in mock catalog.
"""
import argparse
import asyncio
import logging
import sys
from typing import Optional

import config
import style

logger = logging.getLogger(__name__)


def setup_logging(level: str = config.LOG_LEVEL) -> None:
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=getattr(logging, level, logging.INFO),
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="winner-scout",
        description="Find and score winning dropshipping products.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_search = sub.add_parser("search", help="search and score products")
    p_search.add_argument("query")
    p_search.add_argument("--mode", choices=["per_item", "quick_batch"], default="per_item")
    p_search.add_argument("--limit", type=int, default=config.MAX_RESULTS)
    p_search.add_argument("--min-price", type=float)
    p_search.add_argument("--max-price", type=float)
    p_search.add_argument("--winners-only", action="store_true")

    sub.add_parser("trending", help="winners across the trending categories")

    p_analyze = sub.add_parser("analyze", help="full analysis of one product")
    p_analyze.add_argument("product", metavar="PRODUCT_ID_OR_URL")

    p_chain = sub.add_parser("chain", help="four-step chain analysis of search results")
    p_chain.add_argument("query")
    p_chain.add_argument("--limit", type=int, default=10)

    p_calc = sub.add_parser("calc", help="per-unit profit calculator")
    p_calc.add_argument("buy_price", type=float)
    p_calc.add_argument("--selling-price", type=float)
    p_calc.add_argument("--cpa", type=float, default=config.ESTIMATED_CPA)
    p_calc.add_argument("--shipping", type=float, default=0.0)

    return parser


# ── Commands ──────────────────────────────────────────────────────────────────

async def cmd_search(args: argparse.Namespace) -> int:
    from search_backends.base import SearchOptions
    from winners import search_and_analyze

    options = SearchOptions(
        min_price=args.min_price, max_price=args.max_price, limit=args.limit,
    )
    report = await search_and_analyze(args.query, args.mode, options)
    if report.error:
        print(style.error_no_results(args.query))
        return 1
    print(style.results_page(args.query, report, config.TARGET_CURRENCY, args.winners_only))
    return 0


async def cmd_trending(args: argparse.Namespace) -> int:
    from winners import trending_winners

    report = await trending_winners()
    if report.error:
        print(style.error_no_results(", ".join(config.TRENDING_CATEGORIES)))
        return 1
    print(style.results_page("Trending winners", report, config.TARGET_CURRENCY))
    return 0


async def cmd_analyze(args: argparse.Namespace) -> int:
    from winners import analyze_product

    scored = await analyze_product(args.product)
    if scored is None:
        print(style.error_not_found(args.product))
        return 1
    print(style.product_detail(scored, config.TARGET_CURRENCY))
    return 0


async def cmd_chain(args: argparse.Namespace) -> int:
    from search_backends.base import SearchOptions
    from winners import chain_review

    pairs = await chain_review(args.query, SearchOptions(limit=args.limit))
    print(style.chain_page(f"Chain analysis: {args.query}", pairs, config.TARGET_CURRENCY))
    return 0


async def cmd_calc(args: argparse.Namespace) -> int:
    from profit_calculator import calculate_profit

    breakdown = calculate_profit(args.buy_price, args.selling_price, args.cpa, args.shipping)
    print(style.profit_card(breakdown, config.TARGET_CURRENCY))
    return 0


COMMANDS = {
    "search": cmd_search,
    "trending": cmd_trending,
    "analyze": cmd_analyze,
    "chain": cmd_chain,
    "calc": cmd_calc,
}


async def run(args: argparse.Namespace) -> int:
    return await COMMANDS[args.command](args)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    try:
        return asyncio.run(run(args))
    except ValueError as exc:
        logger.error("%s", exc)
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
