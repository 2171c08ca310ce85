"""
Recap Cache - Two-Tier Company Recap Cache.

============================================================
RESPONSIBILITY
============================================================
Maps a company name to a short recap text for one run.

- Memory tier: dict keyed by the case-folded company name
- Durable tier: a DurableCacheStore, read once at load and
  replaced once at save
- Optional enrichment on a miss, at most once per company
  per run

============================================================
DESIGN PRINCIPLES
============================================================
- resolve() never raises
- A miss is always written to memory (default or enriched
  text), so later lookups in the run are hits
- Blank names never touch the cache
- Built per run and passed in; no module-level state

============================================================
USAGE
============================================================
    cache = RecapCache(enrichment_client=client, clock=SystemClock())
    cache.load(store)
    text = cache.resolve("Acme Corp", allow_enrichment=True)
    cache.save(store)

============================================================
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, Optional

from core.clock import ClockProtocol, SystemClock, ensure_utc
from core.exceptions import CacheIOError, EnrichmentErrorKind
from .enrichment import EnrichmentClient
from .store import DurableCacheStore
from .types import (
    DEFAULT_RECAP_TEXT,
    INVALID_APPLICANT_TEXT,
    MAX_RECAP_LENGTH,
    CacheLoadResult,
    CacheStats,
    EnrichmentResult,
    RecapCacheEntry,
    cap_recap_text,
    normalize_company_key,
)


logger = logging.getLogger(__name__)


class RecapCache:
    """
    Two-tier company recap cache.

    One instance per run. Not thread-safe; the pipeline is
    single-threaded.
    """

    def __init__(
        self,
        enrichment_client: Optional[EnrichmentClient] = None,
        clock: Optional[ClockProtocol] = None,
        max_length: int = MAX_RECAP_LENGTH,
        default_text: str = DEFAULT_RECAP_TEXT,
    ):
        """
        Initialize an empty cache.

        Args:
            enrichment_client: Used on misses when enrichment is allowed
            clock: Source of last_updated timestamps at save
            max_length: Maximum stored recap length
            default_text: Recap used when no enrichment happens or it fails
        """
        self._client = enrichment_client
        self._clock = clock or SystemClock()
        self._max_length = max_length
        self._default_text = default_text
        self._entries: Dict[str, RecapCacheEntry] = {}
        self._stats = CacheStats()

    # =========================================================
    # PROPERTIES
    # =========================================================

    @property
    def has_enrichment_client(self) -> bool:
        return self._client is not None

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def count(self) -> int:
        """Number of companies in memory."""
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def contains(self, company_name: str) -> bool:
        """Check membership without touching stats or enrichment."""
        if not isinstance(company_name, str) or not company_name.strip():
            return False
        return normalize_company_key(company_name) in self._entries

    # =========================================================
    # LOAD
    # =========================================================

    def load(self, store: DurableCacheStore) -> CacheLoadResult:
        """
        Replace memory with the durable contents.

        An unreadable store leaves the cache empty and is reported
        in the result. Duplicate keys keep the entry with the latest
        last_updated; an entry without a timestamp loses to one with.

        Args:
            store: Durable tier to read

        Returns:
            CacheLoadResult
        """
        self._entries = {}

        try:
            persisted = store.read_all()
            entries = self._merge(persisted or [])
        except CacheIOError as e:
            logger.warning(f"Recap cache unreadable, starting empty: {e.to_log_format()}")
            return CacheLoadResult(entries_loaded=0, degraded=True, error_message=e.message)
        except (AttributeError, TypeError) as e:
            logger.warning(f"Recap cache contents malformed, starting empty: {e}")
            return CacheLoadResult(entries_loaded=0, degraded=True, error_message=str(e))

        self._entries = entries
        logger.info(f"Recap cache loaded: {len(self._entries)} companies")
        return CacheLoadResult(entries_loaded=len(self._entries))

    def _merge(self, persisted: Iterable[RecapCacheEntry]) -> Dict[str, RecapCacheEntry]:
        merged: Dict[str, RecapCacheEntry] = {}

        for entry in persisted:
            if not isinstance(entry.company_name_key, str) or not entry.company_name_key.strip():
                continue
            key = normalize_company_key(entry.company_name_key)
            text = entry.recap_text if isinstance(entry.recap_text, str) else self._default_text
            last_updated = entry.last_updated
            candidate = RecapCacheEntry(
                company_name_key=key,
                recap_text=cap_recap_text(text, self._max_length),
                last_updated=ensure_utc(last_updated) if isinstance(last_updated, datetime) else None,
            )

            existing = merged.get(key)
            if existing is None or self._is_newer(candidate, existing):
                merged[key] = candidate

        return merged

    @staticmethod
    def _is_newer(candidate: RecapCacheEntry, existing: RecapCacheEntry) -> bool:
        if candidate.last_updated is None:
            return False
        if existing.last_updated is None:
            return True
        return candidate.last_updated > existing.last_updated

    # =========================================================
    # RESOLVE
    # =========================================================

    def resolve(self, company_name: str, allow_enrichment: bool = False) -> str:
        """
        Return the recap for company_name.

        Args:
            company_name: Applicant name as it appears on the record
            allow_enrichment: Call the enrichment client on a miss

        Returns:
            Recap text; never raises
        """
        # ---- Step 1: Reject unusable names
        if not isinstance(company_name, str) or not company_name.strip():
            self._stats.invalid_names += 1
            return INVALID_APPLICANT_TEXT

        key = normalize_company_key(company_name)

        # ---- Step 2: Memory hit
        entry = self._entries.get(key)
        if entry is not None:
            self._stats.hits += 1
            return entry.recap_text

        # ---- Step 3: Miss, optionally enrich
        self._stats.misses += 1
        text = self._default_text
        if allow_enrichment and self._client is not None:
            text = self._enrich(company_name.strip()) or self._default_text

        # ---- Step 4: Remember for the rest of the run
        self._entries[key] = RecapCacheEntry(company_name_key=key, recap_text=text)
        return text

    def _enrich(self, company_name: str) -> Optional[str]:
        self._stats.enrichment_attempts += 1
        try:
            result = self._client.summarize(company_name)
        except Exception as e:
            logger.error(f"Enrichment client raised for '{company_name}': {e}", exc_info=True)
            self._stats.record_failure(EnrichmentErrorKind.UNEXPECTED)
            return None

        if not isinstance(result, EnrichmentResult):
            logger.error(f"Enrichment client returned {type(result).__name__} for '{company_name}'")
            self._stats.record_failure(EnrichmentErrorKind.UNEXPECTED)
            return None

        if result.ok and result.text.strip():
            self._stats.enrichment_successes += 1
            return cap_recap_text(result.text.strip(), self._max_length)

        kind = result.error_kind or EnrichmentErrorKind.EMPTY_RESPONSE
        self._stats.record_failure(kind)
        logger.warning(f"Enrichment failed for '{company_name}': {kind.value}")
        return None

    # =========================================================
    # SAVE
    # =========================================================

    def save(self, store: DurableCacheStore) -> int:
        """
        Stamp every entry with the current time and replace the
        durable contents.

        Args:
            store: Durable tier to write

        Returns:
            Number of entries written (0 when memory is empty)

        Raises:
            CacheIOError: If the store cannot be written
        """
        if not self._entries:
            logger.info("Recap cache empty, nothing to save")
            return 0

        stamp = self._clock.now()
        stamped = {
            key: RecapCacheEntry(
                company_name_key=key,
                recap_text=entry.recap_text,
                last_updated=stamp,
            )
            for key, entry in self._entries.items()
        }

        store.write_all(list(stamped.values()))
        self._entries = stamped

        logger.info(f"Recap cache saved: {len(stamped)} companies")
        return len(stamped)
