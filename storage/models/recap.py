"""
Recap Cache ORM Model.

============================================================
PURPOSE
============================================================
Durable tier of the company recap cache.

============================================================
DATA LIFECYCLE
============================================================
- Read in full at run start
- Replaced in full at run end (delete + insert in one
  transaction)
- One row per case-insensitive company name

============================================================
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storage.models.base import Base


class RecapCacheRecord(Base):
    """One cached company recap."""

    __tablename__ = "company_recap_cache"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    company_name_key: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        unique=True,
        index=True,
        comment="Case-folded company name"
    )

    recap_text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Recap text, capped at 32760 characters"
    )

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="When the cache last saved this entry (UTC)"
    )

    def __repr__(self) -> str:
        return f"<RecapCacheRecord(key={self.company_name_key!r})>"
