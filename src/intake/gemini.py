"""Google GenAI client for enrichment and AI scoring: JSON output, pacing, retry."""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, TypeVar

from google import genai
from google.genai import types
from pydantic import BaseModel

from intake.config import Settings

logger = logging.getLogger(__name__)
T = TypeVar("T", bound=BaseModel)

_ATTEMPTS = 3
_FIRST_RETRY_DELAY = 2.0
_MIN_SPACING = 0.5  # seconds between consecutive requests
_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n(.*?)\n?```\s*$", re.DOTALL)


def _quota_is_zero(exc: Exception) -> bool:
    message = str(exc)
    return "RESOURCE_EXHAUSTED" in message and "limit: 0" in message


class GeminiClient:
    def __init__(self, settings: Settings) -> None:
        self._model_id = settings.model_id
        self._client = genai.Client(
            api_key=settings.gemini_api_key,
            http_options=types.HttpOptions(timeout=int(settings.ai_request_timeout_seconds * 1000)),
        )
        self._previous_request = 0.0
        self.call_count = 0

    def generate(
        self,
        prompt: str,
        *,
        response_model: type[T] | None = None,
        temperature: float = 0.2,
    ) -> str | T:
        """Return raw text, or ``response_model`` parsed from a JSON response."""
        options: dict[str, Any] = {"temperature": temperature}
        if response_model is not None:
            options.update(response_mime_type="application/json", response_schema=response_model)

        self._pace()
        text = self._request(prompt, types.GenerateContentConfig(**options))
        self._previous_request = time.monotonic()
        self.call_count += 1

        return text if response_model is None else parse_model_from_text(text, response_model)

    def _pace(self) -> None:
        if not self._previous_request:
            return
        wait = _MIN_SPACING - (time.monotonic() - self._previous_request)
        if wait > 0:
            time.sleep(wait)

    def _request(self, prompt: str, config: types.GenerateContentConfig) -> str:
        delay = _FIRST_RETRY_DELAY
        failure: Exception | None = None

        for attempt in range(1, _ATTEMPTS + 1):
            try:
                response = self._client.models.generate_content(
                    model=self._model_id, contents=prompt, config=config
                )
                return response.text or ""
            except Exception as exc:
                failure = exc
                if _quota_is_zero(exc):
                    logger.warning("Gemini quota exhausted, giving up: %s", exc)
                    break
                if attempt == _ATTEMPTS:
                    break
                logger.warning(
                    "Gemini request %d/%d failed, retrying in %.0fs: %s",
                    attempt,
                    _ATTEMPTS,
                    delay,
                    exc,
                )
                time.sleep(delay)
                delay *= 2

        raise RuntimeError("Gemini call failed after retries") from failure


def parse_model_from_text(text: str, model: type[T]) -> T:
    """Validate a JSON reply that may sit inside a markdown fence or surrounding prose."""
    body = text.strip()
    fenced = _FENCE.match(body)
    if fenced:
        body = fenced.group(1).strip()

    try:
        return model.model_validate_json(body)
    except ValueError:
        start, end = body.find("{"), body.rfind("}")
        if start == -1 or end <= start:
            raise
        return model.model_validate(json.loads(body[start : end + 1]))
