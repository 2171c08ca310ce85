"""
Tests for the storage repositories.

============================================================
TEST SCENARIOS
============================================================
1. Scored records are replaced per period
2. Archive markers are unique per period
3. Database errors are wrapped in repository exceptions

============================================================
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from database.engine import (
    DatabaseInitializationError,
    DatabasePersistenceError,
    create_all_tables,
    create_database_engine,
    get_session_factory,
    transaction_scope,
)
from storage.models import ScoredClearanceRecord
from storage.repositories import (
    ClearanceArchiveRepository,
    ConnectionError,
    DuplicateRecordError,
    QueryError,
    RecapCacheRepository,
    ScoredRecordRepository,
)


NOW = datetime(2024, 6, 3, tzinfo=timezone.utc)


@pytest.fixture
def session_factory():
    engine = create_database_engine("sqlite:///:memory:")
    create_all_tables(engine)
    yield get_session_factory(engine)
    engine.dispose()


def make_row(record_id: str, position: int = 0) -> ScoredClearanceRecord:
    return ScoredClearanceRecord(
        position=position,
        record_id=record_id,
        applicant_name="Acme Corp",
        final_score=0.5,
        category="Moderate",
        component_weights={"ac": 0.9},
        negative_factor=0.0,
        synergy_bonus=0.0,
        recap_text="Needs Research",
    )


class TestScoredRecordRepository:

    def test_replace_period(self, session_factory):
        with transaction_scope(session_factory) as session:
            ScoredRecordRepository(session).replace_period("2024-05", [make_row("K1"), make_row("K2", 1)])
        with transaction_scope(session_factory) as session:
            ScoredRecordRepository(session).replace_period("2024-05", [make_row("K3")])

        with transaction_scope(session_factory) as session:
            rows = ScoredRecordRepository(session).list_period("2024-05")
            assert [row.record_id for row in rows] == ["K3"]
            assert rows[0].component_weights == {"ac": 0.9}

    def test_other_periods_untouched(self, session_factory):
        with transaction_scope(session_factory) as session:
            repo = ScoredRecordRepository(session)
            repo.replace_period("2024-04", [make_row("A")])
            repo.replace_period("2024-05", [make_row("B")])

        with transaction_scope(session_factory) as session:
            repo = ScoredRecordRepository(session)
            assert repo.count_period("2024-04") == 1
            assert repo.count_period("2024-05") == 1


class TestClearanceArchiveRepository:

    def test_exists_after_create(self, session_factory):
        with transaction_scope(session_factory) as session:
            repo = ClearanceArchiveRepository(session)
            assert repo.exists("2024-05") is False
            repo.create("2024-05", 12, NOW)

        with transaction_scope(session_factory) as session:
            archive = ClearanceArchiveRepository(session).get("2024-05")
            assert archive.record_count == 12

    def test_duplicate_period_rejected(self, session_factory):
        with transaction_scope(session_factory) as session:
            ClearanceArchiveRepository(session).create("2024-05", 1, NOW)

        with pytest.raises(DuplicateRecordError):
            with transaction_scope(session_factory) as session:
                ClearanceArchiveRepository(session).create("2024-05", 2, NOW)


class TestErrorWrapping:

    def test_operational_error_becomes_connection_error(self):
        session = MagicMock()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("locked"))

        with pytest.raises(ConnectionError):
            RecapCacheRepository(session).list_all()

    def test_other_errors_become_query_error(self):
        session = MagicMock()
        session.execute.side_effect = ProgrammingError("SELECT", {}, Exception("bad sql"))

        with pytest.raises(QueryError):
            RecapCacheRepository(session).count()

    def test_transaction_scope_wraps_sqlalchemy_errors(self):
        session = MagicMock()

        with pytest.raises(DatabasePersistenceError):
            with transaction_scope(lambda: session):
                raise OperationalError("COMMIT", {}, Exception("locked"))

        session.rollback.assert_called_once()
        session.close.assert_called_once()

    def test_unparsable_url_raises_initialization_error(self):
        with pytest.raises(DatabaseInitializationError, match="Invalid database URL"):
            create_database_engine("not a url")
