"""
product_search.py — public interface for product search.

The rest of the pipeline imports only from here:
  from product_search import search_products, get_product_details

Backend is chosen once, from the keys present in .env:

  RAPIDAPI_KEY set    →  RapidAPI "AliExpress True API"
  RAPIDAPI_KEY empty  →  built-in mock catalog (offline demo data)

Upstream failures never reach the caller: a RuntimeError from the backend is
logged and turned into an empty result. With USE_MOCK_FALLBACK=true an empty
live result is replaced by the mock catalog so a demo run always has products.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from search_backends.base import NormalizedProduct, SearchBackend, SearchOptions, SearchResult
import config

logger = logging.getLogger(__name__)

__all__ = [
    "NormalizedProduct", "SearchOptions", "SearchResult",
    "search_products", "get_product_details", "extract_product_id",
    "get_backend",
]

_backend: Optional[SearchBackend] = None

_ID_PATTERNS = (
    re.compile(r"/item/(\d+)\.html"),
    re.compile(r"productId=(\d+)"),
    re.compile(r"(\d{10,})"),
)
_ID_PREFIXES = ("ali_", "mock_")


def get_backend() -> SearchBackend:
    """Return the active backend, building it once on first call."""
    global _backend
    if _backend is not None:
        return _backend
    _backend = _build_backend()
    logger.info("Search backend: %s", _backend.name)
    return _backend


def reset_backend() -> None:
    global _backend
    _backend = None


def _build_backend() -> SearchBackend:
    if config.RAPIDAPI_KEY:
        return _make_rapidapi(config.RAPIDAPI_KEY)
    logger.info("No RAPIDAPI_KEY — serving the mock catalog")
    return _make_mock()


def _make_rapidapi(api_key: str) -> SearchBackend:
    from search_backends.rapidapi_backend import RapidAPIBackend
    return RapidAPIBackend(api_key=api_key)


def _make_mock() -> SearchBackend:
    from search_backends.mock_backend import MockBackend
    return MockBackend()


def _use_mock_fallback(backend: SearchBackend) -> bool:
    from search_backends.mock_backend import MockBackend
    return config.USE_MOCK_FALLBACK and not isinstance(backend, MockBackend)


# ── Public search functions ───────────────────────────────────────────────────

async def search_products(
    query: str,
    options: Optional[SearchOptions] = None,
) -> SearchResult:
    """
    Search the active backend for `query`.

    Steps:
      1. Query the backend (errors are logged, never raised).
      2. If nothing came back and USE_MOCK_FALLBACK is on, search the mock
         catalog instead.
      3. De-duplicate by external_id, keeping the first occurrence.

    Returns:
        SearchResult with at most options.limit products.
    """
    options = options or SearchOptions(limit=config.MAX_RESULTS)
    backend = get_backend()

    try:
        result = await backend.search(query, options)
        logger.info("[%s] '%s' → %d products", backend.name, query, len(result.products))
    except Exception as exc:
        logger.warning("[%s] Search failed for '%s': %s", backend.name, query, exc)
        result = SearchResult(page=options.page)

    if not result.products and _use_mock_fallback(backend):
        logger.info("Live search empty — falling back to mock catalog")
        result = await _make_mock().search(query, options)

    seen: dict[str, NormalizedProduct] = {}
    for product in result.products:
        seen.setdefault(product.external_id, product)
    result.products = list(seen.values())[: options.limit]
    return result


async def get_product_details(product_id: str) -> Optional[NormalizedProduct]:
    """Fetch one product by id (or URL); None when the backend doesn't know it."""
    pid = extract_product_id(product_id)
    if not pid:
        return None

    backend = get_backend()
    try:
        product = await backend.product_details(pid)
    except Exception as exc:
        logger.warning("[%s] Details failed for %s: %s", backend.name, pid, exc)
        product = None

    if product is None and _use_mock_fallback(backend):
        product = await _make_mock().product_details(pid)
    return product


def extract_product_id(url_or_id: str) -> Optional[str]:
    """
    Pull the numeric AliExpress id out of a product URL, a tracking link or a
    prefixed internal id ("ali_1005…", "mock_1005…").
    """
    text = (url_or_id or "").strip()
    for prefix in _ID_PREFIXES:
        if text.startswith(prefix):
            text = text[len(prefix):]
            break

    if text.isdigit():
        return text

    for pattern in _ID_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None
