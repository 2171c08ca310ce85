"""
Recap Cache - Enrichment Client.

============================================================
RESPONSIBILITY
============================================================
Generates a short company recap from an external language
model when the cache has no entry for a company.

- Synchronous, timeout-bound HTTP call
- One retry on timeout, transport error or 5xx
- Returns a tagged EnrichmentResult; never raises

============================================================
PROVIDER
============================================================
Any OpenAI-compatible chat-completions endpoint:

    POST {api_url}
    Authorization: Bearer <api_key>
    {"model": ..., "messages": [...]}

Response text is read from choices[0].message.content.

============================================================
"""

import logging
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from core.exceptions import EnrichmentErrorKind
from .types import EnrichmentResult


logger = logging.getLogger(__name__)


# ============================================================
# CLIENT INTERFACE
# ============================================================


class EnrichmentClient(ABC):
    """Produces a recap for a company name."""

    @abstractmethod
    def summarize(self, company_name: str) -> EnrichmentResult:
        """
        Generate a recap.

        Implementations must catch their own failures and return
        EnrichmentResult.failure(...) instead of raising.
        """
        pass


# ============================================================
# CONFIGURATION
# ============================================================


DEFAULT_SYSTEM_PROMPT = (
    "You write short factual company profiles for medical device analysts. "
    "In at most five sentences, describe what the company makes, its size "
    "(public or private, approximate revenue if known), headquarters, and "
    "its main device areas. If you do not know the company, say so plainly. "
    "Plain text only, no markdown."
)


@dataclass
class EnrichmentConfig:
    """Configuration for the HTTP enrichment client."""

    api_url: str = "https://api.openai.com/v1/chat/completions"
    """Chat-completions endpoint."""

    api_key: Optional[str] = None
    """Bearer token. Missing key = every call fails with MISSING_CREDENTIAL."""

    model: str = "gpt-4o-mini"
    """Model name sent in the request body."""

    timeout_seconds: float = 30.0
    """Per-request timeout."""

    max_attempts: int = 2
    """Total attempts per summarize() call (1 = no retry)."""

    retry_backoff_seconds: float = 1.0
    """Pause before the retry."""

    max_tokens: int = 400
    """Upper bound on generated tokens."""

    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    @classmethod
    def from_env(cls) -> "EnrichmentConfig":
        """Build configuration from environment variables."""
        config = cls()
        config.api_key = os.getenv("ENRICHMENT_API_KEY") or os.getenv("OPENAI_API_KEY")
        if os.getenv("ENRICHMENT_API_URL"):
            config.api_url = os.getenv("ENRICHMENT_API_URL")
        if os.getenv("ENRICHMENT_MODEL"):
            config.model = os.getenv("ENRICHMENT_MODEL")
        if os.getenv("ENRICHMENT_TIMEOUT_SECONDS"):
            config.timeout_seconds = float(os.getenv("ENRICHMENT_TIMEOUT_SECONDS"))
        return config


# ============================================================
# HTTP CLIENT
# ============================================================


class _RetryableFailure(Exception):
    def __init__(self, result: EnrichmentResult):
        super().__init__(result.error.message if result.error else "retryable failure")
        self.result = result


class HttpEnrichmentClient(EnrichmentClient):
    """
    Enrichment client for OpenAI-compatible endpoints.

    Usage:
        client = HttpEnrichmentClient(EnrichmentConfig.from_env())
        result = client.summarize("Acme Orthopedics")
        if result.ok:
            print(result.text)
    """

    def __init__(
        self,
        config: Optional[EnrichmentConfig] = None,
        http_client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the client.

        Args:
            config: Endpoint and retry settings
            http_client: Pre-built httpx client (tests inject a MockTransport)
            sleep: Sleep function used between attempts
        """
        self._config = config or EnrichmentConfig()
        self._http_client = http_client
        self._sleep = sleep

    @property
    def config(self) -> EnrichmentConfig:
        return self._config

    def summarize(self, company_name: str) -> EnrichmentResult:
        if not self._config.api_key:
            return EnrichmentResult.failure(
                EnrichmentErrorKind.MISSING_CREDENTIAL,
                "No enrichment API key configured",
                company_name=company_name,
            )

        attempts = max(1, self._config.max_attempts)
        last_result: Optional[EnrichmentResult] = None

        for attempt in range(1, attempts + 1):
            try:
                return self._attempt(company_name)
            except _RetryableFailure as failure:
                last_result = failure.result
                logger.info(
                    f"Enrichment attempt {attempt}/{attempts} for '{company_name}' failed: "
                    f"{failure.result.error_kind.value if failure.result.error_kind else 'unknown'}"
                )
                if attempt < attempts:
                    self._sleep(self._config.retry_backoff_seconds)
            except Exception as e:
                logger.error(f"Unexpected enrichment failure for '{company_name}': {e}", exc_info=True)
                return EnrichmentResult.failure(
                    EnrichmentErrorKind.UNEXPECTED,
                    f"Unexpected enrichment failure: {e}",
                    company_name=company_name,
                    cause=e,
                )

        return last_result

    # =========================================================
    # INTERNAL METHODS
    # =========================================================

    def _build_payload(self, company_name: str) -> Dict[str, Any]:
        return {
            "model": self._config.model,
            "max_tokens": self._config.max_tokens,
            "messages": [
                {"role": "system", "content": self._config.system_prompt},
                {"role": "user", "content": f"Company: {company_name}"},
            ],
        }

    def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }
        if self._http_client is not None:
            return self._http_client.post(
                self._config.api_url,
                json=payload,
                headers=headers,
                timeout=self._config.timeout_seconds,
            )
        with httpx.Client(timeout=self._config.timeout_seconds) as client:
            return client.post(self._config.api_url, json=payload, headers=headers)

    def _attempt(self, company_name: str) -> EnrichmentResult:
        try:
            response = self._post(self._build_payload(company_name))
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise _RetryableFailure(EnrichmentResult.failure(
                EnrichmentErrorKind.TIMEOUT,
                "Enrichment request timed out",
                company_name=company_name,
                cause=e,
            ))
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            result = EnrichmentResult.failure(
                EnrichmentErrorKind.HTTP_ERROR,
                f"Enrichment endpoint returned HTTP {status}",
                company_name=company_name,
                status_code=status,
                cause=e,
            )
            if status >= 500:
                raise _RetryableFailure(result)
            return result
        except httpx.TransportError as e:
            raise _RetryableFailure(EnrichmentResult.failure(
                EnrichmentErrorKind.TRANSPORT_ERROR,
                f"Enrichment transport error: {e}",
                company_name=company_name,
                cause=e,
            ))

        return self._parse_response(response, company_name)

    @staticmethod
    def _parse_response(response: httpx.Response, company_name: str) -> EnrichmentResult:
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            return EnrichmentResult.failure(
                EnrichmentErrorKind.MALFORMED_RESPONSE,
                "Unexpected enrichment response shape",
                company_name=company_name,
                cause=e,
            )

        if not isinstance(content, str):
            return EnrichmentResult.failure(
                EnrichmentErrorKind.MALFORMED_RESPONSE,
                "Enrichment response content is not text",
                company_name=company_name,
            )

        text = content.strip()
        if not text:
            return EnrichmentResult.failure(
                EnrichmentErrorKind.EMPTY_RESPONSE,
                "Enrichment response was empty",
                company_name=company_name,
            )

        return EnrichmentResult.success(text)
