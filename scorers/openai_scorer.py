"""
OpenAI scorer — asks a chat model for a fixed-shape JSON analysis.

Default model: gpt-4o-mini (cheap, fast, good enough for scoring).

Two call styles:
  score_one   one product per request
  score_many  up to QUICK_BATCH_MAX products packed into one request; the
              response is matched back by the 1-based "index" field only,
              never by array position

No retries: the client is built with max_retries=0 and a single timeout.
Every failure is returned as a ScoreOutcome, never raised.
"""
from __future__ import annotations

import logging
import time
from typing import Optional, Sequence, Union

import openai
from openai import AsyncOpenAI

from scorers.base import (
    BATCH_SYSTEM_PROMPT, SYSTEM_PROMPT, build_batch_prompt, build_user_prompt,
    RemoteScorer, ScoreFailure, ScoreOutcome, analysis_from_payload, parse_json_response,
)
from search_backends.base import NormalizedProduct

logger = logging.getLogger(__name__)


def _entry_index(entry: dict) -> Optional[int]:
    index = entry.get("index")
    if isinstance(index, bool):
        return None
    if isinstance(index, int):
        return index
    if isinstance(index, float) and index.is_integer():
        return int(index)
    if isinstance(index, str) and index.strip().isdigit():
        return int(index.strip())
    return None


class OpenAIScorer(RemoteScorer):

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        temperature: float = 0.7,
        language: str = "English",
        client: Optional[AsyncOpenAI] = None,
    ):
        self.name = "openai"
        self.model_id = model
        self._temperature = temperature
        self._language = language
        self._client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    # ── Public API ────────────────────────────────────────────────────────────

    async def score_one(self, product: NormalizedProduct) -> ScoreOutcome:
        data = await self._request(
            SYSTEM_PROMPT,
            build_user_prompt(product, self._language),
            max_tokens=500,
        )
        if isinstance(data, ScoreFailure):
            return ScoreOutcome(failure=data)
        try:
            return ScoreOutcome.success(analysis_from_payload(product, data))
        except ValueError as exc:
            return ScoreOutcome.fail("malformed", str(exc))

    async def score_many(self, products: Sequence[NormalizedProduct]) -> list[ScoreOutcome]:
        if not products:
            return []

        data = await self._request(
            BATCH_SYSTEM_PROMPT,
            build_batch_prompt(products, self._language),
            max_tokens=min(4000, 250 * len(products) + 200),
        )
        if isinstance(data, ScoreFailure):
            return [ScoreOutcome(failure=data) for _ in products]

        entries = data.get("products")
        if not isinstance(entries, list):
            failure = ScoreFailure("malformed", "response has no 'products' list")
            return [ScoreOutcome(failure=failure) for _ in products]

        # Duplicate indices: first match wins. Out-of-range indices are ignored.
        by_index: dict[int, dict] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            index = _entry_index(entry)
            if index is None or not 1 <= index <= len(products) or index in by_index:
                continue
            by_index[index] = entry

        outcomes: list[ScoreOutcome] = []
        for position, product in enumerate(products, start=1):
            entry = by_index.get(position)
            if entry is None:
                outcomes.append(ScoreOutcome.fail("malformed", f"no entry for index {position}"))
                continue
            try:
                outcomes.append(ScoreOutcome.success(analysis_from_payload(product, entry)))
            except ValueError as exc:
                outcomes.append(ScoreOutcome.fail("malformed", f"index {position}: {exc}"))

        logger.info(
            "[%s] Batch of %d → %d matched entries",
            self.full_name, len(products), sum(1 for o in outcomes if o.ok),
        )
        return outcomes

    # ── HTTP round trip ───────────────────────────────────────────────────────

    async def _request(self, system: str, user: str, max_tokens: int) -> Union[dict, ScoreFailure]:
        t0 = time.monotonic()
        try:
            response = await self._client.chat.completions.create(
                model=self.model_id,
                max_tokens=max_tokens,
                temperature=self._temperature,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            )
        except openai.APITimeoutError as exc:
            return ScoreFailure("timeout", str(exc))
        except openai.APIStatusError as exc:
            return ScoreFailure("http", f"HTTP {exc.status_code}")
        except openai.APIConnectionError as exc:
            return ScoreFailure("network", str(exc))
        except Exception as exc:
            return ScoreFailure("network", repr(exc))

        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.debug("[%s] Completion in %dms", self.full_name, latency_ms)

        try:
            raw = response.choices[0].message.content
            return parse_json_response(raw, self.full_name)
        except (IndexError, AttributeError, TypeError, ValueError) as exc:
            return ScoreFailure("malformed", str(exc))

