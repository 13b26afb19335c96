"""
Raw product normalizer — turns whatever the AliExpress APIs send back into
NormalizedProduct records.

Observed response shapes (all seen in production):
  • flat array of products                      [{...}, {...}]
  • nested envelope                             {"data": {"products": [...]}}
  • object wrapper around a list                {"products": {"product": [...]}}
  • object-map of objects                       {"products": {"0": {...}, "1": {...}}}
  • items wrapped one level deeper              {"product": [{...}]} / {"product": {...}}
  • sub-documents sent as JSON strings          "{\"product_id\": ...}"

Shape handling is a table of recognizers, tried in order, first match wins.
Supporting a new provider shape = appending one ShapeRecognizer.

Nothing in here raises on bad upstream data: unusable records come back as
None and are dropped.
"""
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from search_backends.base import NormalizedProduct

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShapeRecognizer:
    tag: str
    matches: Callable[[Any], bool]
    extract: Callable[[Any], list]


# ── Small JSON helpers ─────────────────────────────────────────────────────────

def _dig(obj: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (ValueError, TypeError):
        return None


def _is_json_string(raw: Any) -> bool:
    return isinstance(raw, str) and isinstance(_loads(raw), (dict, list))


# ── Item level ─────────────────────────────────────────────────────────────────

def _unwrap_product_field(raw: dict) -> list:
    inner = raw["product"]
    if isinstance(inner, str):
        inner = _loads(inner)
    if isinstance(inner, list):
        return [p for p in inner if isinstance(p, dict)]
    if isinstance(inner, dict):
        return [inner]
    return []


def _is_wrapper(raw: Any) -> bool:
    if not isinstance(raw, dict):
        return False
    inner = raw.get("product")
    return (isinstance(inner, (dict, list)) and bool(inner)) or _is_json_string(inner)


def _flatten_array(raw: list) -> list:
    # One level only: wrappers inside the array are unwrapped, nested arrays are not
    out: list = []
    for element in raw:
        if isinstance(element, str):
            element = _loads(element)
        if _is_wrapper(element):
            out.extend(_unwrap_product_field(element))
        elif isinstance(element, dict):
            out.append(element)
    return out


ITEM_SHAPES: tuple[ShapeRecognizer, ...] = (
    ShapeRecognizer("stringified", _is_json_string, lambda raw: unwrap_item(_loads(raw), _NON_STRING_ITEM_SHAPES)),
    ShapeRecognizer("array", lambda raw: isinstance(raw, list), _flatten_array),
    ShapeRecognizer("product-wrapper", _is_wrapper, _unwrap_product_field),
    ShapeRecognizer("record", lambda raw: isinstance(raw, dict), lambda raw: [raw]),
)
_NON_STRING_ITEM_SHAPES = ITEM_SHAPES[1:]


def unwrap_item(raw: Any, shapes: tuple[ShapeRecognizer, ...] = ITEM_SHAPES) -> list[dict]:
    """Return the candidate product records contained in one raw item."""
    for shape in shapes:
        if shape.matches(raw):
            return shape.extract(raw)
    return []


# ── Envelope level ─────────────────────────────────────────────────────────────

def _list_at(*path: str) -> ShapeRecognizer:
    return ShapeRecognizer(
        ".".join(path),
        lambda resp: isinstance(_dig(resp, *path), list),
        lambda resp: _dig(resp, *path),
    )


ENVELOPE_SHAPES: tuple[ShapeRecognizer, ...] = (
    ShapeRecognizer("top-level-array", lambda resp: isinstance(resp, list), lambda resp: resp),
    _list_at("products"),
    _list_at("data", "products"),
    _list_at("result", "products"),
    _list_at("products", "product"),
    _list_at("data", "products", "product"),
    _list_at("result", "resultList"),
    ShapeRecognizer(
        "products-object-map",
        lambda resp: isinstance(_dig(resp, "products"), dict),
        lambda resp: list(resp["products"].values()),
    ),
    ShapeRecognizer(
        "data.products-object-map",
        lambda resp: isinstance(_dig(resp, "data", "products"), dict),
        lambda resp: list(resp["data"]["products"].values()),
    ),
)


def extract_items(response: Any) -> list:
    """Pull the raw product list out of a search response envelope."""
    if isinstance(response, str):
        response = _loads(response)
    for shape in ENVELOPE_SHAPES:
        if shape.matches(response):
            logger.debug("Envelope shape: %s", shape.tag)
            return [item for item in shape.extract(response) if item]
    return []


# ── Field parsing ──────────────────────────────────────────────────────────────

def _parse_number(value: Any) -> Optional[float]:
    """Extract a float from 12.5, '12.5', '$1,299.00', '95.0%', '12 000'."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = re.sub(r"[^\d.\-]", "", str(value).replace(",", ""))
        try:
            number = float(cleaned)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _parse_count(value: Any) -> Optional[int]:
    number = _parse_number(value)
    if number is None:
        return None
    return max(0, int(number))


def _parse_text(value: Any) -> Optional[str]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _parse_image(value: Any) -> Optional[str]:
    # product_small_image_urls arrives as a list or as {"string": [...]}
    if isinstance(value, dict):
        value = value.get("string")
    if isinstance(value, list):
        value = value[0] if value else None
    return _parse_text(value)


def _first(record: dict, keys: Iterable[str], parse: Callable[[Any], Any]) -> Any:
    """Walk alternate key names in order; first present and parseable value wins."""
    for key in keys:
        if key in record:
            value = parse(record[key])
            if value is not None:
                return value
    return None


def _rating(record: dict) -> Optional[float]:
    # evaluate_rate is a percentage ("95.0%"): map 0-100 onto 0-5
    pct = _first(record, ("evaluate_rate",), _parse_number)
    if pct is not None:
        rating = pct / 20
    else:
        rating = _first(record, ("rating", "star_rating", "avg_rating"), _parse_number)
        if rating is not None and rating > 5:
            rating = rating / 20
    if not rating or rating < 0:
        return None
    return round(min(rating, 5.0), 2)


# ── Public API ─────────────────────────────────────────────────────────────────

_ID_KEYS       = ("product_id", "productId", "item_id", "itemId", "id")
_TITLE_KEYS    = ("product_title", "title", "name")
_PRICE_KEYS    = ("app_sale_price", "target_sale_price", "sale_price", "original_price", "price")
_ORIGINAL_KEYS = ("original_price", "target_original_price")
_SALES_KEYS    = ("lastest_volume", "latest_volume", "orders", "sales")
_REVIEW_KEYS   = ("review_count", "reviews", "evaluate_count")
_IMAGE_KEYS    = ("product_main_image_url", "product_small_image_urls", "image_url", "imageUrl", "image")
_URL_KEYS      = ("product_detail_url", "promotion_link", "product_url", "productUrl")
_SUPPLIER_KEYS = ("shop_name", "store_name", "supplier")
_CATEGORY_KEYS = ("first_level_category_name", "second_level_category_name", "category")

PLACEHOLDER_IMAGE = "https://ae01.alicdn.com/kf/placeholder.jpg"


def _from_record(record: dict) -> Optional[NormalizedProduct]:
    external_id = _first(record, _ID_KEYS, _parse_text)
    if not external_id:
        return None

    price = _first(record, _PRICE_KEYS, _parse_number)
    if price is None or price <= 0:
        return None

    original_price = _first(record, _ORIGINAL_KEYS, _parse_number)
    if original_price is not None and original_price <= 0:
        original_price = None

    return NormalizedProduct(
        external_id=external_id,
        title=_first(record, _TITLE_KEYS, _parse_text) or "Unknown Product",
        image_url=_first(record, _IMAGE_KEYS, _parse_image) or PLACEHOLDER_IMAGE,
        price=price,
        original_price=original_price,
        sales_count=_first(record, _SALES_KEYS, _parse_count) or 0,
        rating=_rating(record),
        review_count=_first(record, _REVIEW_KEYS, _parse_count) or 0,
        source_url=(
            _first(record, _URL_KEYS, _parse_text)
            or f"https://www.aliexpress.com/item/{external_id}.html"
        ),
        supplier_name=_first(record, _SUPPLIER_KEYS, _parse_text),
        category=_first(record, _CATEGORY_KEYS, _parse_text),
    )


def _safe_from_record(record: dict) -> Optional[NormalizedProduct]:
    try:
        return _from_record(record)
    except Exception as exc:
        logger.warning("Failed to normalize product %s: %s", record.get("product_id", "?"), exc)
        return None


def normalize(raw_item: Any) -> Optional[NormalizedProduct]:
    """
    Normalize one raw payload. Returns the first usable product it contains,
    or None when there is no identifier or no positive price.
    """
    for record in unwrap_item(raw_item):
        product = _safe_from_record(record)
        if product is not None:
            return product
    return None


def normalize_many(raw_items: Iterable[Any]) -> list[NormalizedProduct]:
    """Flatten and normalize a raw product list, dropping unusable records."""
    products: list[NormalizedProduct] = []
    dropped = 0
    for raw in raw_items:
        for record in unwrap_item(raw):
            product = _safe_from_record(record)
            if product is None:
                dropped += 1
            else:
                products.append(product)
    if dropped:
        logger.info("Normalizer dropped %d unusable record(s)", dropped)
    return products
