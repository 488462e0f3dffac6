"""content.providers.gemini

Gemini provider (LLM) built on google-genai.

- Rotates across comma-separated API keys and a short model candidate list.
- Retries transient failures (5xx, 429, transport) with linear backoff.
- Always returns a validated GameEvent or raises EventFetchError.

Important: This provider is UI-agnostic (no Streamlit dependency).
Secrets/env loading is done in the Streamlit app.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from google import genai
from google.genai import errors as genai_errors

from ..errors import ErrorType, EventFetchError, GameError
from ..parsing import try_parse_json
from ..prompts import build_event_prompt
from ..schemas import GameEvent, event_from_llm
from .base import EventRequest, ProviderStatus

logger = logging.getLogger(__name__)

MODEL_CANDIDATES = (
    "gemini-2.5-flash",
    "gemini-2.0-flash",
    "gemini-2.5-pro",
)

MAX_RETRIES = 2
RETRY_DELAY_S = 1.5


def classify_error(e: Exception) -> ErrorType:
    if isinstance(e, genai_errors.ServerError):
        return ErrorType.SERVER
    if isinstance(e, genai_errors.ClientError):
        return ErrorType.RATE_LIMIT if getattr(e, "code", None) == 429 else ErrorType.VALIDATION
    if isinstance(e, (ConnectionError, TimeoutError, OSError)):
        return ErrorType.NETWORK
    return ErrorType.UNKNOWN


@dataclass
class GeminiProvider:
    api_keys: List[str]
    temperature: float = 0.9
    max_output_tokens: int = 2048
    sleep: Callable[[float], None] = time.sleep

    # runtime
    backend: str = "none"  # genai | none
    model_in_use: str = ""
    last_error: str = ""

    _client: Any = None

    def __post_init__(self) -> None:
        self.api_keys = [k.strip() for k in (self.api_keys or []) if str(k).strip()]
        if self._client is not None:
            self.backend = "genai"
            self.model_in_use = MODEL_CANDIDATES[0]
            return
        self._init_backend()

    @staticmethod
    def from_api_key_string(raw: str) -> "GeminiProvider":
        if not raw:
            return GeminiProvider([])
        return GeminiProvider([x.strip() for x in str(raw).split(",") if x.strip()])

    def _init_backend(self) -> None:
        self._client = None
        self.backend = "none"
        self.model_in_use = ""
        if not self.api_keys:
            self.last_error = "No API key configured."
            return
        self._client = genai.Client(api_key=self.api_keys[0])
        self.backend = "genai"
        self.model_in_use = MODEL_CANDIDATES[0]
        self.last_error = ""

    def status(self) -> ProviderStatus:
        if self.backend == "none":
            return ProviderStatus(False, "none", "", error=str(self.last_error or ""))
        return ProviderStatus(True, self.backend, self.model_in_use)

    def _rotate_key(self) -> None:
        if len(self.api_keys) <= 1:
            return
        self.api_keys = self.api_keys[1:] + self.api_keys[:1]
        self._init_backend()

    def _generate_text(self, prompt: str) -> str:
        """One pass over keys x models. Raises the last API error if all fail."""
        if self._client is None:
            raise EventFetchError(self.last_error or "Gemini is not configured.", ErrorType.VALIDATION)

        config: Dict[str, Any] = {
            "temperature": float(self.temperature),
            "max_output_tokens": int(self.max_output_tokens),
            "response_mime_type": "application/json",
        }
        last_err: Optional[Exception] = None
        for _ in range(max(1, len(self.api_keys))):
            for model in MODEL_CANDIDATES:
                try:
                    resp = self._client.models.generate_content(model=model, contents=prompt, config=config)
                except genai_errors.ClientError as e:
                    if getattr(e, "code", None) == 404:
                        # model not available for this key; try the next one
                        last_err = e
                        continue
                    raise
                text = (getattr(resp, "text", "") or "").strip()
                if text:
                    self.model_in_use = model
                    return text
            self._rotate_key()
        if last_err is not None:
            raise last_err
        raise EventFetchError("Gemini returned an empty response.", ErrorType.SERVER)

    def _request_once(self, request: EventRequest) -> GameEvent:
        try:
            raw = self._generate_text(build_event_prompt(request))
        except GameError:
            raise
        except Exception as e:
            raise EventFetchError(f"{type(e).__name__}: {e}", classify_error(e)) from e

        parsed = try_parse_json(raw)
        if parsed.data is None:
            raise EventFetchError(parsed.error or "Could not parse event JSON.", ErrorType.VALIDATION, data=raw)
        return event_from_llm(parsed.data)

    def generate_event(self, request: EventRequest) -> GameEvent:
        attempt = 0
        while True:
            try:
                return self._request_once(request)
            except GameError as e:
                self.last_error = e.message
                if not e.retryable or attempt >= MAX_RETRIES:
                    if isinstance(e, EventFetchError):
                        raise
                    raise EventFetchError(e.message, e.error_type, data=e.data) from e
                attempt += 1
                logger.warning("Event fetch failed (%s), retrying %d/%d", e.error_type.value, attempt, MAX_RETRIES)
                self.sleep(RETRY_DELAY_S * attempt)
