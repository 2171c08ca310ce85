"""
Tests for core clocks and exceptions.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from core.clock import MockClock, SystemClock, ensure_utc
from core.exceptions import (
    CacheIOError,
    ClearanceScoringError,
    EnrichmentError,
    EnrichmentErrorKind,
    ErrorClassification,
    FatalLoadError,
    RecordScoringError,
    Severity,
)


class TestClocks:

    def test_system_clock_is_utc(self):
        assert SystemClock().now().tzinfo is not None

    def test_mock_clock_advance(self):
        clock = MockClock(datetime(2024, 1, 31, 23, 0, tzinfo=timezone.utc))

        clock.advance(hours=2)

        assert clock.today() == date(2024, 2, 1)

    def test_naive_time_treated_as_utc(self):
        clock = MockClock(datetime(2024, 1, 1, 12, 0))
        assert clock.now().tzinfo == timezone.utc

    def test_ensure_utc_attaches_utc_to_naive(self):
        assert ensure_utc(datetime(2024, 5, 6, 7, 8)) == datetime(2024, 5, 6, 7, 8, tzinfo=timezone.utc)

    def test_ensure_utc_converts_aware(self):
        eastern = timezone(timedelta(hours=-5))
        converted = ensure_utc(datetime(2024, 5, 6, 7, 0, tzinfo=eastern))

        assert converted.tzinfo == timezone.utc
        assert converted.hour == 12


class TestExceptions:

    def test_hierarchy(self):
        for error_class in (FatalLoadError, RecordScoringError, EnrichmentError, CacheIOError):
            assert issubclass(error_class, ClearanceScoringError)

    def test_fatal_load_aborts(self):
        error = FatalLoadError("missing", table_name="advisory_committee")

        assert error.should_abort_run is True
        assert error.is_recoverable is False
        assert error.severity == Severity.CRITICAL
        assert error.to_dict()["context"]["table_name"] == "advisory_committee"

    def test_record_error_is_recoverable(self):
        error = RecordScoringError("bad", record_id="K1", field_name="device_name")

        assert error.is_recoverable is True
        assert "record_id=K1" in error.to_log_format()

    def test_enrichment_error_carries_kind(self):
        error = EnrichmentError("slow", kind=EnrichmentErrorKind.TIMEOUT, company_name="Acme")

        assert error.kind == EnrichmentErrorKind.TIMEOUT
        assert error.classification == ErrorClassification.TRANSIENT

    def test_cause_recorded(self):
        error = CacheIOError("io", operation="read_all", cause=OSError("disk"))

        assert error.context["cause_type"] == "OSError"
        assert error.operation == "read_all"
