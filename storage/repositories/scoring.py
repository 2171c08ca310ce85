"""
Scoring Repositories.

============================================================
PURPOSE
============================================================
Repositories for scored clearance records and the monthly
archive markers.

============================================================
DATA LIFECYCLE
============================================================
ScoredRecordRepository
- replace_period: a rerun of a period replaces its rows

ClearanceArchiveRepository
- exists / create: one marker per archived period

============================================================
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storage.models.scoring import ClearanceArchive, ScoredClearanceRecord
from storage.repositories.base import BaseRepository


class ScoredRecordRepository(BaseRepository[ScoredClearanceRecord]):
    """Repository for scored_clearance_records."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, ScoredClearanceRecord, "ScoredRecordRepository")

    def replace_period(self, period: str, rows: List[ScoredClearanceRecord]) -> int:
        """
        Delete the rows of period and insert rows.

        Args:
            period: Month in YYYY-MM form
            rows: New rows; their period is forced to period

        Returns:
            Number of rows written
        """
        deleted = self._delete_where(ScoredClearanceRecord.period == period)
        for row in rows:
            row.period = period
        self._add_all(rows)
        self._logger.info(f"Period {period}: replaced {deleted} rows with {len(rows)}")
        return len(rows)

    def list_period(self, period: str) -> List[ScoredClearanceRecord]:
        """Return the rows of period in input order."""
        stmt = (
            select(ScoredClearanceRecord)
            .where(ScoredClearanceRecord.period == period)
            .order_by(ScoredClearanceRecord.position)
        )
        return self._execute_query(stmt)

    def count_period(self, period: str) -> int:
        return self._count(ScoredClearanceRecord.period == period)


class ClearanceArchiveRepository(BaseRepository[ClearanceArchive]):
    """Repository for clearance_archives."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, ClearanceArchive, "ClearanceArchiveRepository")

    def exists(self, period: str) -> bool:
        return self._count(ClearanceArchive.period == period) > 0

    def get(self, period: str) -> Optional[ClearanceArchive]:
        stmt = select(ClearanceArchive).where(ClearanceArchive.period == period)
        rows = self._execute_query(stmt)
        return rows[0] if rows else None

    def create(self, period: str, record_count: int, archived_at: datetime) -> ClearanceArchive:
        """
        Record that period has been archived.

        Raises:
            DuplicateRecordError: If period is already archived
        """
        archive = ClearanceArchive(
            period=period,
            record_count=record_count,
            archived_at=archived_at,
        )
        try:
            self._session.add(archive)
            self._session.flush()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "create", {"field": "period", "value": period})
            raise
        self._logger.info(f"Archived period {period} ({record_count} records)")
        return archive
