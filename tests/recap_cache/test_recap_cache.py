"""
Tests for the Recap Cache.

============================================================
TEST SCENARIOS
============================================================
1. Case-insensitive keys ("Acme Corp" == "ACME CORP")
2. Blank names never touch the cache
3. At most one enrichment per company per run
4. Enrichment failures degrade to the default text
5. Load: unreadable store, duplicates, re-capping
6. Save: stamping, no-op when empty, round-trip

============================================================
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from core.clock import MockClock
from core.exceptions import CacheIOError, EnrichmentErrorKind
from recap_cache import (
    DEFAULT_RECAP_TEXT,
    INVALID_APPLICANT_TEXT,
    TRUNCATION_MARKER,
    EnrichmentClient,
    EnrichmentResult,
    InMemoryRecapCacheStore,
    RecapCache,
    RecapCacheEntry,
    cap_recap_text,
    normalize_company_key,
)


# ============================================================
# FIXTURES
# ============================================================

FIXED_TIME = datetime(2024, 6, 3, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return MockClock(FIXED_TIME)


@pytest.fixture
def client():
    """Enrichment client that always succeeds."""
    mock = MagicMock(spec=EnrichmentClient)
    mock.summarize.side_effect = lambda name: EnrichmentResult.success(f"{name} makes implants.")
    return mock


@pytest.fixture
def cache(client, clock):
    return RecapCache(enrichment_client=client, clock=clock)


class FailingStore(InMemoryRecapCacheStore):
    """Store whose reads and writes fail."""

    def read_all(self):
        raise CacheIOError("disk gone", operation="read_all")

    def write_all(self, entries):
        raise CacheIOError("disk gone", operation="write_all")


# ============================================================
# TEST: KEYS
# ============================================================

class TestCompanyKey:

    def test_casing_and_whitespace(self):
        assert normalize_company_key("Acme Corp") == normalize_company_key("ACME  CORP ")

    def test_same_entry_for_any_casing(self, cache):
        first = cache.resolve("Acme Corp")
        second = cache.resolve("ACME CORP")

        assert first == second
        assert cache.count == 1
        assert cache.contains("acme corp")


# ============================================================
# TEST: RESOLVE
# ============================================================

class TestResolve:

    def test_miss_without_enrichment_returns_default(self, cache, client):
        assert cache.resolve("Acme Corp", allow_enrichment=False) == DEFAULT_RECAP_TEXT
        client.summarize.assert_not_called()
        assert cache.stats.misses == 1

    def test_miss_is_remembered(self, cache):
        cache.resolve("Acme Corp")
        cache.resolve("Acme Corp")

        assert cache.stats.misses == 1
        assert cache.stats.hits == 1

    @pytest.mark.parametrize("name", ["", "   ", None, 42])
    def test_invalid_name_leaves_cache_unchanged(self, cache, client, name):
        before = cache.count

        assert cache.resolve(name, allow_enrichment=True) == INVALID_APPLICANT_TEXT

        assert cache.count == before
        assert cache.stats.invalid_names == 1
        assert cache.stats.misses == 0
        client.summarize.assert_not_called()

    def test_enrichment_success(self, cache, client):
        text = cache.resolve("Acme Corp", allow_enrichment=True)

        assert text == "Acme Corp makes implants."
        client.summarize.assert_called_once_with("Acme Corp")
        assert cache.stats.enrichment_successes == 1

    def test_at_most_one_enrichment_per_company(self, cache, client):
        first = cache.resolve("Acme Corp", allow_enrichment=True)
        second = cache.resolve("ACME CORP", allow_enrichment=True)
        third = cache.resolve("acme corp", allow_enrichment=True)

        assert first == second == third
        assert client.summarize.call_count == 1

    def test_enrichment_without_client(self, clock):
        cache = RecapCache(clock=clock)

        assert cache.resolve("Acme Corp", allow_enrichment=True) == DEFAULT_RECAP_TEXT
        assert cache.stats.enrichment_attempts == 0

    @pytest.mark.parametrize("kind", [
        EnrichmentErrorKind.TIMEOUT,
        EnrichmentErrorKind.MALFORMED_RESPONSE,
        EnrichmentErrorKind.MISSING_CREDENTIAL,
    ])
    def test_enrichment_failure_degrades(self, cache, client, kind):
        client.summarize.side_effect = None
        client.summarize.return_value = EnrichmentResult.failure(kind, "failed")

        text = cache.resolve("Acme Corp", allow_enrichment=True)

        assert text == DEFAULT_RECAP_TEXT
        assert cache.stats.enrichment_failures == 1
        assert cache.stats.failures_by_kind == {kind.value: 1}
        # Failure is not retried later in the run
        cache.resolve("Acme Corp", allow_enrichment=True)
        assert client.summarize.call_count == 1

    def test_blank_enrichment_text_degrades(self, cache, client):
        client.summarize.side_effect = None
        client.summarize.return_value = EnrichmentResult.success("   ")

        assert cache.resolve("Acme Corp", allow_enrichment=True) == DEFAULT_RECAP_TEXT
        assert cache.stats.enrichment_failures == 1

    def test_client_exception_never_propagates(self, cache, client):
        client.summarize.side_effect = RuntimeError("boom")

        assert cache.resolve("Acme Corp", allow_enrichment=True) == DEFAULT_RECAP_TEXT
        assert cache.stats.failures_by_kind == {EnrichmentErrorKind.UNEXPECTED.value: 1}

    def test_client_returning_wrong_type_degrades(self, cache, client):
        client.summarize.side_effect = None
        client.summarize.return_value = "plain string"

        assert cache.resolve("Acme Corp", allow_enrichment=True) == DEFAULT_RECAP_TEXT
        assert cache.stats.failures_by_kind == {EnrichmentErrorKind.UNEXPECTED.value: 1}

    def test_long_enrichment_text_is_truncated(self, clock, client):
        client.summarize.side_effect = lambda name: EnrichmentResult.success("x" * 500)
        cache = RecapCache(enrichment_client=client, clock=clock, max_length=100)

        text = cache.resolve("Acme Corp", allow_enrichment=True)

        assert len(text) == 100
        assert text.endswith(TRUNCATION_MARKER)


class TestCapRecapText:

    def test_short_text_unchanged(self):
        assert cap_recap_text("short", max_length=10) == "short"

    def test_exact_length_unchanged(self):
        assert cap_recap_text("x" * 10, max_length=10) == "x" * 10

    def test_cut_text_ends_with_marker(self):
        capped = cap_recap_text("y" * 50, max_length=20, marker="...")

        assert capped == "y" * 17 + "..."


# ============================================================
# TEST: LOAD
# ============================================================

class TestLoad:

    def test_empty_store(self, cache):
        result = cache.load(InMemoryRecapCacheStore())

        assert result.entries_loaded == 0
        assert result.degraded is False
        assert cache.count == 0

    def test_loaded_entries_are_hits(self, cache, client):
        store = InMemoryRecapCacheStore([
            RecapCacheEntry("acme corp", "Known recap", FIXED_TIME),
        ])
        cache.load(store)

        assert cache.resolve("ACME Corp", allow_enrichment=True) == "Known recap"
        client.summarize.assert_not_called()
        assert cache.stats.hits == 1

    def test_unreadable_store_degrades_to_empty(self, cache, caplog):
        with caplog.at_level("WARNING"):
            result = cache.load(FailingStore())

        assert result.degraded is True
        assert "disk gone" in result.error_message
        assert cache.count == 0
        assert "unreadable" in caplog.text

    def test_duplicate_keys_keep_latest(self, cache):
        older = FIXED_TIME - timedelta(days=30)
        store = InMemoryRecapCacheStore([
            RecapCacheEntry("Acme Corp", "new", FIXED_TIME),
            RecapCacheEntry("ACME CORP", "old", older),
            RecapCacheEntry("acme corp", "undated", None),
        ])

        result = cache.load(store)

        assert result.entries_loaded == 1
        assert cache.resolve("acme corp") == "new"

    def test_mixed_naive_and_aware_timestamps(self, cache):
        store = InMemoryRecapCacheStore([
            RecapCacheEntry("acme corp", "old", datetime(2024, 1, 1)),
            RecapCacheEntry("ACME CORP", "new", datetime(2024, 2, 1, tzinfo=timezone.utc)),
        ])

        result = cache.load(store)

        assert result.degraded is False
        assert cache.resolve("Acme Corp") == "new"

    def test_malformed_entries_degrade_to_empty(self, cache):
        store = InMemoryRecapCacheStore([RecapCacheEntry("acme", "text"), object()])

        result = cache.load(store)

        assert result.degraded is True
        assert cache.count == 0

    def test_loaded_text_is_recapped(self, clock):
        cache = RecapCache(clock=clock, max_length=50)
        cache.load(InMemoryRecapCacheStore([RecapCacheEntry("acme", "z" * 80, FIXED_TIME)]))

        assert len(cache.resolve("acme")) == 50

    def test_load_replaces_memory(self, cache):
        cache.resolve("Stale Co")
        cache.load(InMemoryRecapCacheStore())

        assert cache.contains("Stale Co") is False


# ============================================================
# TEST: SAVE
# ============================================================

class TestSave:

    def test_empty_cache_does_not_overwrite(self, cache):
        store = InMemoryRecapCacheStore([RecapCacheEntry("acme", "keep me", FIXED_TIME)])

        assert cache.save(store) == 0
        assert store.write_count == 0
        assert store.read_all()[0].recap_text == "keep me"

    def test_entries_stamped_with_clock(self, cache, clock):
        cache.resolve("Acme Corp")
        clock.advance(hours=2)
        store = InMemoryRecapCacheStore()

        assert cache.save(store) == 1

        saved = store.read_all()
        assert saved[0].last_updated == FIXED_TIME + timedelta(hours=2)

    def test_write_failure_raises(self, cache):
        cache.resolve("Acme Corp")

        with pytest.raises(CacheIOError):
            cache.save(FailingStore())

    def test_round_trip(self, cache, clock):
        cache.resolve("Acme Corp", allow_enrichment=True)
        cache.resolve("Globex")
        store = InMemoryRecapCacheStore()
        cache.save(store)

        fresh = RecapCache(clock=clock)
        fresh.load(store)

        saved = {(e.company_name_key, e.recap_text) for e in store.read_all()}
        assert saved == {
            ("acme corp", "Acme Corp makes implants."),
            ("globex", DEFAULT_RECAP_TEXT),
        }
        assert fresh.resolve("ACME CORP") == "Acme Corp makes implants."
        assert fresh.resolve("globex") == DEFAULT_RECAP_TEXT
