"""
Recap Cache - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts shared by the recap cache, its durable stores
and the enrichment client.

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from core.exceptions import EnrichmentError, EnrichmentErrorKind


# ============================================================
# CONSTANTS
# ============================================================

DEFAULT_RECAP_TEXT = "Needs Research"
INVALID_APPLICANT_TEXT = "Invalid Applicant Name"
MAX_RECAP_LENGTH = 32760
TRUNCATION_MARKER = "... [truncated]"


def normalize_company_key(company_name: str) -> str:
    """Case-insensitive cache key for a company name."""
    return " ".join(company_name.split()).casefold()


def cap_recap_text(
    text: str,
    max_length: int = MAX_RECAP_LENGTH,
    marker: str = TRUNCATION_MARKER,
) -> str:
    """Truncate text to max_length, ending with marker when cut."""
    if len(text) <= max_length:
        return text
    keep = max(0, max_length - len(marker))
    return text[:keep] + marker[: max_length - keep]


# ============================================================
# CACHE ENTRY
# ============================================================


@dataclass(frozen=True)
class RecapCacheEntry:
    """One persisted company recap."""

    company_name_key: str
    recap_text: str
    last_updated: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "company_name_key": self.company_name_key,
            "recap_text": self.recap_text,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


# ============================================================
# ENRICHMENT RESULT
# ============================================================


@dataclass(frozen=True)
class EnrichmentResult:
    """
    Tagged result of one enrichment attempt.

    Exactly one of text / error is set. Callers branch on ok,
    never on the content of the text.
    """

    text: Optional[str] = None
    error: Optional[EnrichmentError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None

    @property
    def error_kind(self) -> Optional[EnrichmentErrorKind]:
        return self.error.kind if self.error is not None else None

    @classmethod
    def success(cls, text: str) -> "EnrichmentResult":
        return cls(text=text)

    @classmethod
    def failure(
        cls,
        kind: EnrichmentErrorKind,
        message: str,
        company_name: Optional[str] = None,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ) -> "EnrichmentResult":
        return cls(error=EnrichmentError(
            message,
            kind=kind,
            company_name=company_name,
            status_code=status_code,
            cause=cause,
        ))


# ============================================================
# STATISTICS
# ============================================================


@dataclass
class CacheStats:
    """Counters for one run of the cache."""

    hits: int = 0
    misses: int = 0
    invalid_names: int = 0
    enrichment_attempts: int = 0
    enrichment_successes: int = 0
    enrichment_failures: int = 0
    failures_by_kind: Dict[str, int] = field(default_factory=dict)

    def record_failure(self, kind: EnrichmentErrorKind) -> None:
        self.enrichment_failures += 1
        self.failures_by_kind[kind.value] = self.failures_by_kind.get(kind.value, 0) + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "invalid_names": self.invalid_names,
            "enrichment_attempts": self.enrichment_attempts,
            "enrichment_successes": self.enrichment_successes,
            "enrichment_failures": self.enrichment_failures,
            "failures_by_kind": dict(self.failures_by_kind),
        }


@dataclass(frozen=True)
class CacheLoadResult:
    """Outcome of loading the durable tier."""

    entries_loaded: int
    degraded: bool = False
    error_message: Optional[str] = None
