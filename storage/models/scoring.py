"""
Scoring Domain ORM Models.

============================================================
PURPOSE
============================================================
Models for storing scored clearance records and the monthly
archive markers.

============================================================
DATA LIFECYCLE
============================================================
ScoredClearanceRecord
- Written once per full run, replacing the rows of that
  period
- Source: PipelineOrchestrator via SqlResultSink

ClearanceArchive
- One row per archived period, append-only
- Its presence is what the run guard checks

============================================================
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storage.models.base import Base, TimestampMixin


class ScoredClearanceRecord(Base, TimestampMixin):
    """
    A scored clearance record with its company recap.

    ============================================================
    TRACEABILITY
    ============================================================
    - period: month the record belongs to (YYYY-MM)
    - position: input order within the run
    - component_weights: full breakdown for explainability

    ============================================================
    """

    __tablename__ = "scored_clearance_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    period: Mapped[str] = mapped_column(String(7), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    record_id: Mapped[str] = mapped_column(String(64), nullable=False)

    applicant_name: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    device_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    advisory_committee_code: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    product_code: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    submission_type_code: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)

    final_score: Mapped[float] = mapped_column(Float, nullable=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    component_weights: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    negative_factor: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    synergy_bonus: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    recap_text: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        Index("ix_scored_clearance_period_position", "period", "position"),
    )

    def __repr__(self) -> str:
        return f"<ScoredClearanceRecord(period={self.period}, record_id={self.record_id}, category={self.category})>"


class ClearanceArchive(Base):
    """Marker that a period has been archived."""

    __tablename__ = "clearance_archives"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    period: Mapped[str] = mapped_column(String(7), nullable=False, unique=True, index=True)
    record_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    archived_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<ClearanceArchive(period={self.period}, records={self.record_count})>"
