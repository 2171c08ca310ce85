"""
Orchestrator - Host Adapters.

============================================================
RESPONSIBILITY
============================================================
Concrete DataSource / DataSink used by the CLI.

- JsonRecordSource: records from a JSON file (a list, or an
  openFDA response with a "results" list); archive markers
  from the database
- SqlResultSink: scored rows into scored_clearance_records,
  archive markers into clearance_archives

============================================================
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

from core.clock import ClockProtocol, SystemClock
from core.exceptions import ConfigurationError
from database.engine import SessionFactory, transaction_scope
from scoring_engine import InputRecord
from storage.models import ScoredClearanceRecord
from storage.repositories import ClearanceArchiveRepository, ScoredRecordRepository
from .interfaces import DataSink, DataSource
from .models import ScoredRecord


logger = logging.getLogger(__name__)


# ============================================================
# SOURCE
# ============================================================


class JsonRecordSource(DataSource):
    """
    Reads clearance records from a JSON file.

    Each item is passed through InputRecord.from_mapping, so both
    openFDA field names and this package's names are accepted.
    """

    def __init__(self, path: Union[str, Path], session_factory: SessionFactory):
        self._path = Path(path)
        self._session_factory = session_factory

    @property
    def path(self) -> Path:
        return self._path

    def _read_items(self) -> List[Any]:
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read records file {self._path}: {e}",
                config_key="records_path",
                actual_value=str(self._path),
                cause=e,
            ) from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Records file {self._path} is not valid JSON: {e}",
                config_key="records_path",
                actual_value=str(self._path),
                cause=e,
            ) from e

        if isinstance(data, dict) and isinstance(data.get("results"), list):
            return data["results"]
        if isinstance(data, list):
            return data

        raise ConfigurationError(
            f"Records file {self._path} must hold a list or a 'results' list",
            config_key="records_path",
            actual_value=str(self._path),
        )

    def iter_records(self) -> Iterator[InputRecord]:
        items = self._read_items()
        logger.info(f"Reading {len(items)} records from {self._path}")

        for index, item in enumerate(items):
            if not isinstance(item, dict):
                logger.warning(f"Skipping item {index}: expected an object, got {type(item).__name__}")
                continue
            yield InputRecord.from_mapping(item)

    def archive_exists(self, period: str) -> bool:
        with transaction_scope(self._session_factory) as session:
            return ClearanceArchiveRepository(session).exists(period)

    def refresh_only(self) -> None:
        items = self._read_items()
        logger.info(f"Refresh: {self._path} holds {len(items)} records")


# ============================================================
# SINK
# ============================================================


class SqlResultSink(DataSink):
    """Writes scored records and archive markers through the repositories."""

    def __init__(self, session_factory: SessionFactory, clock: Optional[ClockProtocol] = None):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    @staticmethod
    def _to_row(position: int, result: ScoredRecord) -> ScoredClearanceRecord:
        record, breakdown, recap = result
        return ScoredClearanceRecord(
            position=position,
            record_id=str(getattr(record, "record_id", "") or ""),
            applicant_name=_optional_str(getattr(record, "applicant_name", None)),
            device_name=_optional_str(getattr(record, "device_name", None)),
            advisory_committee_code=_optional_str(getattr(record, "advisory_committee_code", None)),
            product_code=_optional_str(getattr(record, "product_code", None)),
            submission_type_code=_optional_str(getattr(record, "submission_type_code", None)),
            country=_optional_str(getattr(record, "country", None)),
            final_score=breakdown.final_score,
            category=breakdown.category.value,
            component_weights=breakdown.component_weights.to_dict(),
            negative_factor=breakdown.negative_factor,
            synergy_bonus=breakdown.synergy_bonus,
            recap_text=recap,
        )

    def write(self, results: List[ScoredRecord], period: str) -> None:
        rows = [self._to_row(position, result) for position, result in enumerate(results)]
        with transaction_scope(self._session_factory) as session:
            ScoredRecordRepository(session).replace_period(period, rows)
        logger.info(f"Wrote {len(rows)} scored records for {period}")

    def archive(self, period: str) -> None:
        with transaction_scope(self._session_factory) as session:
            record_count = ScoredRecordRepository(session).count_period(period)
            ClearanceArchiveRepository(session).create(period, record_count, self._clock.now())


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)
