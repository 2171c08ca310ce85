"""
Recap Cache Package.

Two-tier (memory + durable store) company recap cache with
optional enrichment from an external language model.

Modules:
- types: RecapCacheEntry, EnrichmentResult, CacheStats
- enrichment: EnrichmentClient, HttpEnrichmentClient
- store: DurableCacheStore, SqlRecapCacheStore
- cache: RecapCache
"""

from .cache import RecapCache
from .enrichment import EnrichmentClient, EnrichmentConfig, HttpEnrichmentClient
from .store import DurableCacheStore, InMemoryRecapCacheStore, SqlRecapCacheStore
from .types import (
    DEFAULT_RECAP_TEXT,
    INVALID_APPLICANT_TEXT,
    MAX_RECAP_LENGTH,
    TRUNCATION_MARKER,
    CacheLoadResult,
    CacheStats,
    EnrichmentResult,
    RecapCacheEntry,
    cap_recap_text,
    normalize_company_key,
)

__all__ = [
    "RecapCache",
    "EnrichmentClient",
    "EnrichmentConfig",
    "HttpEnrichmentClient",
    "DurableCacheStore",
    "InMemoryRecapCacheStore",
    "SqlRecapCacheStore",
    "DEFAULT_RECAP_TEXT",
    "INVALID_APPLICANT_TEXT",
    "MAX_RECAP_LENGTH",
    "TRUNCATION_MARKER",
    "CacheLoadResult",
    "CacheStats",
    "EnrichmentResult",
    "RecapCacheEntry",
    "cap_recap_text",
    "normalize_company_key",
]
