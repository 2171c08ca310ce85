"""
Recap Cache Repository.

============================================================
PURPOSE
============================================================
Reads and replaces the durable company recap cache.

============================================================
DATA LIFECYCLE
============================================================
- list_all: full read at run start
- replace_all: delete every row, insert the given rows
  (the caller commits both in one transaction)

============================================================
"""

from datetime import datetime
from typing import Iterable, List, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from storage.models.recap import RecapCacheRecord
from storage.repositories.base import BaseRepository


class RecapCacheRepository(BaseRepository[RecapCacheRecord]):
    """Repository for the company_recap_cache table."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, RecapCacheRecord, "RecapCacheRepository")

    def list_all(self) -> List[RecapCacheRecord]:
        """Return every cached recap ordered by key."""
        stmt = select(RecapCacheRecord).order_by(RecapCacheRecord.company_name_key)
        return self._execute_query(stmt)

    def count(self) -> int:
        return self._count()

    def replace_all(self, rows: Iterable[Tuple[str, str, datetime]]) -> int:
        """
        Replace the table contents.

        Args:
            rows: (company_name_key, recap_text, last_updated) tuples

        Returns:
            Number of rows written
        """
        deleted = self._delete_where()
        entities = [
            RecapCacheRecord(
                company_name_key=key,
                recap_text=text,
                last_updated=updated,
            )
            for key, text, updated in rows
        ]
        self._add_all(entities)
        self._logger.info(f"Replaced recap cache: {deleted} removed, {len(entities)} written")
        return len(entities)
