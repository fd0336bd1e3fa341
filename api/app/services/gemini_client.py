"""
Thin REST client for the Google Generative Language (Gemini) API.

Every call is bounded by a wall-clock timeout and retried with exponential
backoff when the failure is a capacity problem (rate limit / quota) or a
timeout. Any other failure is raised immediately.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional, TypeVar

import requests

from app.core.exceptions import ErrorKind, RETRYABLE_KINDS

logger = logging.getLogger(__name__)

T = TypeVar("T")

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiError(Exception):
    """Failure of a Gemini call, classified at the client boundary."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


def classify_http_error(response: requests.Response) -> ErrorKind:
    """
    Map an HTTP error response to an ErrorKind.

    Gemini signals quota exhaustion either with HTTP 429 or with an error
    body whose status is RESOURCE_EXHAUSTED.
    """
    if response.status_code == 429:
        return ErrorKind.RATE_LIMITED
    try:
        error_status = (response.json().get("error") or {}).get("status")
    except ValueError:
        error_status = None
    if error_status == "RESOURCE_EXHAUSTED":
        return ErrorKind.RATE_LIMITED
    return ErrorKind.UPSTREAM


class GeminiClient:
    """Client for single-prompt text generation."""

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        initial_retry_delay: float = 1.0,
        http: Any = requests,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self.initial_retry_delay = initial_retry_delay
        self.http = http
        self.sleep = sleep

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def url(self) -> str:
        return f"{GEMINI_BASE_URL}/{self.model}:generateContent"

    def generate_text(self, prompt: str, temperature: float = 0.7) -> str:
        """
        Generate text for a prompt, retrying transient failures.

        Returns:
            The raw text of the first candidate (stripped)

        Raises:
            GeminiError: If the call fails after all retries, or fails permanently
        """
        if not self.is_configured:
            raise GeminiError(ErrorKind.NOT_CONFIGURED, "Google Gemini API key not configured")
        return self.call_with_retry(lambda: self._post_prompt(prompt, temperature))

    def call_with_retry(self, fn: Callable[[], T]) -> T:
        """Run fn, retrying retryable GeminiErrors with exponential backoff."""
        delay = self.initial_retry_delay
        retries_left = self.max_retries
        while True:
            try:
                return fn()
            except GeminiError as e:
                if not e.retryable or retries_left <= 0:
                    raise
                logger.warning(
                    f"Gemini call failed ({e.kind.value}: {e}); retrying after {delay:.1f}s "
                    f"({retries_left} retries left)"
                )
                self.sleep(delay)
                delay *= 2
                retries_left -= 1

    def _post_prompt(self, prompt: str, temperature: float) -> str:
        payload: Dict[str, Any] = {
            "contents": [{
                "parts": [{
                    "text": prompt
                }]
            }],
            "generationConfig": {
                "temperature": temperature,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": 4096,
            }
        }

        try:
            response = self.http.post(
                self.url,
                params={"key": self.api_key},
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            raise GeminiError(ErrorKind.TIMEOUT, "Request timeout")
        except requests.exceptions.RequestException as e:
            raise GeminiError(ErrorKind.UPSTREAM, f"Gemini API request failed: {e}")

        if response.status_code >= 400:
            kind = classify_http_error(response)
            raise GeminiError(kind, f"Gemini API returned {response.status_code}: {response.text[:500]}")

        try:
            data = response.json()
            parts = data["candidates"][0]["content"]["parts"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise GeminiError(ErrorKind.UPSTREAM, f"Unexpected Gemini response: {response.text[:500]}")

        return "".join(part.get("text", "") for part in parts).strip()
