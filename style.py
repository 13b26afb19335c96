"""
style.py — Complete visual style system for the terminal reports.

Design language:
  • Structured cards with consistent emoji icons
  • Unicode box-drawing dividers
  • Clear visual hierarchy: header → body → footer
  • Plain text (no markup) so output can be piped or logged

All text that main.py prints should be formatted through this module.
"""
from __future__ import annotations
from typing import Optional

# ── Visual constants ──────────────────────────────────────────────────────────

DIV   = "━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━"    # thick divider
SDIV  = "┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄"    # subtle divider

STATUS = {"winner": "🏆 WINNER", "potential": "📈 POTENTIAL", "risky": "⚠️ RISKY", "rejected": "⛔ REJECTED"}
LEVEL  = {"high": "🔴", "medium": "🟡", "low": "🟢"}
VIRAL  = {"high": "🔥", "medium": "✨", "low": "💤"}
STARS  = {5: "★★★★★", 4: "★★★★☆", 3: "★★★☆☆", 2: "★★☆☆☆", 1: "★☆☆☆☆", 0: "☆☆☆☆☆"}


def star_bar(rating: Optional[float]) -> str:
    if rating is None:
        return "☆☆☆☆☆"
    r = round(rating)
    return STARS.get(max(0, min(5, r)), "☆☆☆☆☆")


def fmt_count(count: Optional[int]) -> str:
    if count is None:
        return ""
    if count >= 1_000_000:
        return f"{count/1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count/1_000:.1f}K"
    return str(count)


def fmt_money(amount: Optional[float], currency: str = "") -> str:
    if amount is None:
        return "n/a"
    suffix = f" {currency}" if currency else ""
    return f"{amount:,.2f}{suffix}"


def status_badge(status: str) -> str:
    return STATUS.get(status, status.upper())


def score_bar(score: int, width: int = 20) -> str:
    filled = round(max(0, min(100, score)) / 100 * width)
    return "█" * filled + "░" * (width - filled)


# ══════════════════════════════════════════════════════════════════════════════
# PRODUCT CARDS
# ══════════════════════════════════════════════════════════════════════════════

def rating_line(product) -> str:
    if product.rating and product.review_count:
        return f"⭐ {product.rating} {star_bar(product.rating)}  {fmt_count(product.review_count)} reviews"
    if product.rating:
        return f"⭐ {product.rating} {star_bar(product.rating)}"
    return "⭐ No ratings yet"


def product_card(scored, index: int, currency: str = "") -> str:
    """One scored product as a compact card."""
    p, a = scored.product, scored.analysis
    source = "🤖 AI" if a.is_ai else "📐 formula"
    return (
        f"{index}. {p.title[:90]}\n"
        f"   {status_badge(a.status)}  {a.trend_score}/100 {score_bar(a.trend_score)}  {source}\n"
        f"   💰 {fmt_money(p.price, currency)} → {fmt_money(a.suggested_price, currency)}"
        f"  (+{fmt_money(a.profit_per_unit)}, {a.profit_margin_percent}%)\n"
        f"   📦 {fmt_count(p.sales_count)} orders   {rating_line(p)}"
    )


def product_detail(scored, currency: str = "") -> str:
    """Full single-product analysis."""
    p, a = scored.product, scored.analysis
    angles = "\n".join(f"  ▸ {angle}" for angle in a.marketing_angles) or "  ▸ none"
    discount = f"  (-{p.discount_percent}%)" if p.discount_percent else ""
    supplier = f"🏪 {p.supplier_name}\n" if p.supplier_name else ""
    return (
        f"🛍️ {p.title}\n"
        f"{DIV}\n"
        f"{supplier}"
        f"🔗 {p.source_url}\n\n"
        f"{status_badge(a.status)}   Score {a.trend_score}/100\n"
        f"{score_bar(a.trend_score, 30)}\n\n"
        f"💰 Cost        {fmt_money(p.price, currency)}{discount}\n"
        f"🏷️ Sell at     {fmt_money(a.suggested_price, currency)}\n"
        f"📈 Profit/unit {fmt_money(a.profit_per_unit, currency)} ({a.profit_margin_percent}%)\n\n"
        f"📦 {fmt_count(p.sales_count)} orders   {rating_line(p)}\n"
        f"{LEVEL.get(a.competition_level, '⚪')} Competition: {a.competition_level}   "
        f"{VIRAL.get(a.viral_potential, '')} Viral potential: {a.viral_potential}\n"
        f"👥 {a.target_audience}\n\n"
        f"✦ Marketing angles\n{angles}\n\n"
        f"{SDIV}\n"
        f"💬 {a.reason}\n"
        f"{SDIV}\n"
        f"{'🤖 Scored by AI' if a.is_ai else '📐 Scored by formula (AI unavailable)'}"
    )


# ══════════════════════════════════════════════════════════════════════════════
# REPORTS
# ══════════════════════════════════════════════════════════════════════════════

def stats_line(stats: dict) -> str:
    return (
        f"🔍 {stats.get('total', 0)} scored   ·   🏆 {stats.get('winners', 0)} winners   ·   "
        f"📈 {stats.get('potentials', 0)} potentials   ·   ⚠️ {stats.get('risky', 0)} risky"
    )


def results_page(title: str, report, currency: str = "", winners_only: bool = False) -> str:
    """Header, one card per product, stats footer."""
    items = report.winners if winners_only else report.products
    header = f"🛍️ {title}\n{DIV}\n"
    if not items:
        body = "😔 No winners in these results." if winners_only else "😔 No products."
    else:
        body = f"\n{SDIV}\n".join(product_card(s, i, currency) for i, s in enumerate(items, 1))
    return f"{header}{body}\n{DIV}\n{stats_line(report.stats)}"


def chain_card(product, chain, index: int, currency: str = "") -> str:
    prof = chain.profitability
    steps = "\n".join(f"   {step}" for step in chain.reasoning)
    return (
        f"{index}. {product.title[:90]}\n"
        f"   {status_badge(chain.status)}  {chain.final_score}/100 {score_bar(chain.final_score)}\n"
        f"   💰 net {fmt_money(prof.net_margin_per_unit, currency)}/unit  "
        f"~{fmt_money(chain.estimated_monthly_profit, currency)}/month  "
        f"📣 ads: {chain.ad_difficulty}\n"
        f"{steps}"
    )


def chain_page(title: str, pairs, currency: str = "") -> str:
    header = f"🔗 {title}\n{DIV}\n"
    if not pairs:
        return header + "😔 No products."
    body = f"\n{SDIV}\n".join(chain_card(p, c, i, currency) for i, (p, c) in enumerate(pairs, 1))
    return header + body


def profit_card(breakdown, currency: str = "") -> str:
    verdict = "✅ Profitable" if breakdown.is_profitable else "❌ Loss-making"
    return (
        f"🧮 PROFIT CALCULATOR\n"
        f"{DIV}\n"
        f"Buy price      {fmt_money(breakdown.buy_price, currency)}\n"
        f"Ad cost (CPA)  {fmt_money(breakdown.cpa, currency)}\n"
        f"Shipping       {fmt_money(breakdown.shipping, currency)}\n"
        f"{SDIV}\n"
        f"Total cost     {fmt_money(breakdown.total_cost, currency)}\n"
        f"Selling price  {fmt_money(breakdown.selling_price, currency)}\n"
        f"Margin         {fmt_money(breakdown.margin, currency)}  ({breakdown.margin_percent}%)\n"
        f"ROI            {breakdown.roi_percent}%\n"
        f"{DIV}\n"
        f"{verdict}"
    )


# ══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGES
# ══════════════════════════════════════════════════════════════════════════════

def error_no_results(query: str) -> str:
    return (
        f"😔 No Results Found\n"
        f"{DIV}\n"
        f"Nothing matched '{query}'. Try:\n"
        f"▸ A broader keyword\n"
        f"▸ Removing the price filters\n"
    )


def error_not_found(product_id: str) -> str:
    return (
        f"❌ Product Not Found\n"
        f"{DIV}\n"
        f"No product for '{product_id}'.\n"
        f"▸ Paste the full AliExpress URL or the numeric item id\n"
    )
