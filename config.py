"""
Central configuration — reads from .env file.

Every setting has a safe default so the pipeline runs with an empty .env:
  • no OPENAI_API_KEY  → products are scored by the offline heuristic only
  • no RAPIDAPI_KEY    → searches are served from the built-in mock catalog

Keys are read once here and handed to the scorer / search backend
constructors at startup (see scorers/manager.py and product_search.py).
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "true" if default else "false")
    return raw.strip().lower() not in ("false", "0", "no")


# ── AI scoring (OpenAI chat completions) ──────────────────────────────────────
# Leave OPENAI_API_KEY empty to run in heuristic-only mode.
OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY") or None
OPENAI_MODEL: str          = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
AI_TIMEOUT_SECS: float     = float(os.getenv("AI_TIMEOUT_SECS", "30"))
AI_TEMPERATURE: float      = float(os.getenv("AI_TEMPERATURE", "0.7"))
# Language the model should write angles / audience / reason in
AI_LANGUAGE: str           = os.getenv("AI_LANGUAGE", "English")

# ── AliExpress search (RapidAPI "AliExpress True API") ────────────────────────
RAPIDAPI_KEY: str | None = os.getenv("RAPIDAPI_KEY") or None
RAPIDAPI_HOST: str       = os.getenv("RAPIDAPI_HOST", "aliexpress-true-api.p.rapidapi.com")
TARGET_CURRENCY: str     = os.getenv("TARGET_CURRENCY", "EUR")
SHIP_TO_COUNTRY: str     = os.getenv("SHIP_TO_COUNTRY", "FR")
TARGET_LANGUAGE: str     = os.getenv("TARGET_LANGUAGE", "EN")

# Serve the mock catalog when the live search is empty or not configured
USE_MOCK_FALLBACK: bool = _flag("USE_MOCK_FALLBACK", True)

# ── Batch scoring ─────────────────────────────────────────────────────────────
# Minimum pause between two per-item AI calls (provider rate limit)
SCORING_DELAY_SECS: float = float(os.getenv("SCORING_DELAY_SECS", "0.2"))
# Products packed into one quick-batch prompt; the rest get the heuristic
QUICK_BATCH_MAX: int      = int(os.getenv("QUICK_BATCH_MAX", "15"))
MAX_RESULTS: int          = int(os.getenv("MAX_RESULTS", "15"))

# Comma-separated search keywords used for the "trending winners" sweep
TRENDING_CATEGORIES: list[str] = [
    c.strip()
    for c in os.getenv(
        "TRENDING_CATEGORIES",
        "gadgets,smart home devices,beauty tools,pet accessories,fitness equipment",
    ).split(",")
    if c.strip()
]

# ── Chain analysis (unit economics) ───────────────────────────────────────────
SHIPPING_COST: float  = float(os.getenv("SHIPPING_COST", "3"))
ESTIMATED_CPA: float  = float(os.getenv("ESTIMATED_CPA", "15"))
MIN_NET_MARGIN: float = float(os.getenv("MIN_NET_MARGIN", "15"))
STORE_AGE_DAYS: int   = int(os.getenv("STORE_AGE_DAYS", "30"))
# JSON file of tracked competitor stores: {"Store name": ["product title", ...]}.
# Leave empty to skip the saturation step (every product counts as unsaturated).
TRACKED_STORES_FILE: str | None = os.getenv("TRACKED_STORES_FILE") or None

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
