"""
Scoring Engine - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts for the clearance Scoring Engine.

This module defines the input record consumed by the engine
and the breakdown it produces for every record.

============================================================
DESIGN PRINCIPLES
============================================================
- All types are immutable (frozen dataclasses)
- Closed enum for categories, never free text
- Clear separation between input and output types

============================================================
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union


# ============================================================
# ENUMS
# ============================================================


class ScoreCategory(str, Enum):
    """
    Categorical bucket for a final score.

    Partition of [0, inf):
    - HIGH: score > 0.6
    - MODERATE: 0.5 <= score <= 0.6
    - LOW: 0.4 <= score < 0.5
    - ALMOST_NONE: score < 0.4

    ERROR is the sentinel for records that could not be scored.
    """

    HIGH = "High"
    MODERATE = "Moderate"
    LOW = "Low"
    ALMOST_NONE = "Almost None"
    ERROR = "Error"

    @classmethod
    def from_score(
        cls,
        score: float,
        high_threshold: float = 0.6,
        moderate_floor: float = 0.5,
        low_floor: float = 0.4,
    ) -> "ScoreCategory":
        """
        Classify a final score.

        Args:
            score: Normalized, non-negative final score
            high_threshold: Scores strictly above this are HIGH
            moderate_floor: Lower bound (inclusive) of MODERATE
            low_floor: Lower bound (inclusive) of LOW

        Returns:
            Appropriate ScoreCategory (never ERROR)
        """
        if score > high_threshold:
            return cls.HIGH
        elif score >= moderate_floor:
            return cls.MODERATE
        elif score >= low_floor:
            return cls.LOW
        else:
            return cls.ALMOST_NONE


# ============================================================
# INPUT DATA CONTRACT
# ============================================================


ProcessingDays = Optional[Union[int, float, str]]


@dataclass(frozen=True)
class InputRecord:
    """
    One cleared-device submission.

    Created by the data source and read-only to the core.
    Text fields are kept as supplied; the engine validates them.
    """

    record_id: str
    advisory_committee_code: Optional[str] = None
    product_code: Optional[str] = None
    submission_type_code: Optional[str] = None
    country: Optional[str] = None
    processing_days: ProcessingDays = None
    device_name: Optional[str] = None
    statement_text: Optional[str] = None
    applicant_name: Optional[str] = None

    # Used by the distribution report only
    state: Optional[str] = None
    decision_date: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "InputRecord":
        """
        Build a record from a parsed mapping.

        Accepts both this package's attribute names and the openFDA
        510(k) field names (k_number, advisory_committee, clearance_type,
        country_code, statement_or_summary, applicant, ...).

        When no processing_days value is present it is derived from
        date_received and decision_date.
        """
        def pick(*keys: str) -> Any:
            for key in keys:
                value = data.get(key)
                if value is not None:
                    return value
            return None

        processing_days = pick("processing_days")
        if processing_days is None:
            processing_days = compute_processing_days(
                pick("date_received"),
                pick("decision_date"),
            )

        record_id = pick("record_id", "k_number")

        return cls(
            record_id=str(record_id) if record_id is not None else "",
            advisory_committee_code=pick("advisory_committee_code", "advisory_committee"),
            product_code=pick("product_code"),
            submission_type_code=pick("submission_type_code", "clearance_type"),
            country=pick("country", "country_code"),
            processing_days=processing_days,
            device_name=pick("device_name"),
            statement_text=pick("statement_text", "statement_or_summary"),
            applicant_name=pick("applicant_name", "applicant"),
            state=pick("state"),
            decision_date=pick("decision_date"),
        )


_DATE_FORMATS = ("%Y%m%d", "%Y-%m-%d")


def parse_record_date(value: Any) -> Optional[date]:
    """Parse an openFDA style date (YYYYMMDD or YYYY-MM-DD)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    return None


def compute_processing_days(date_received: Any, decision_date: Any) -> Optional[int]:
    """Days between receipt and decision, or None if either date is unusable."""
    received = parse_record_date(date_received)
    decided = parse_record_date(decision_date)
    if received is None or decided is None:
        return None
    return (decided - received).days


# ============================================================
# OUTPUT DATA CONTRACTS
# ============================================================


@dataclass(frozen=True)
class ComponentWeights:
    """The six per-factor weights that make up a score."""

    ac: float
    pc: float
    keyword: float
    submission_type: float
    processing_time: float
    geography: float

    def total(self) -> float:
        """Sum of all components, always in the same order."""
        total = 0.0
        total += self.ac
        total += self.pc
        total += self.keyword
        total += self.submission_type
        total += self.processing_time
        total += self.geography
        return total

    def to_dict(self) -> Dict[str, float]:
        return {
            "ac": self.ac,
            "pc": self.pc,
            "keyword": self.keyword,
            "submission_type": self.submission_type,
            "processing_time": self.processing_time,
            "geography": self.geography,
        }

    @classmethod
    def zero(cls) -> "ComponentWeights":
        return cls(
            ac=0.0,
            pc=0.0,
            keyword=0.0,
            submission_type=0.0,
            processing_time=0.0,
            geography=0.0,
        )


@dataclass(frozen=True)
class ScoreBreakdown:
    """
    Result of scoring one record.

    Created fresh per record and never mutated.
    """

    final_score: float
    category: ScoreCategory
    component_weights: ComponentWeights
    negative_factor: float
    synergy_bonus: float
    high_value_match: bool = False
    error_message: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.category == ScoreCategory.ERROR

    @classmethod
    def error_sentinel(cls, message: Optional[str] = None) -> "ScoreBreakdown":
        """All-zero breakdown used when a record cannot be scored."""
        return cls(
            final_score=0.0,
            category=ScoreCategory.ERROR,
            component_weights=ComponentWeights.zero(),
            negative_factor=0.0,
            synergy_bonus=0.0,
            high_value_match=False,
            error_message=message,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "final_score": self.final_score,
            "category": self.category.value,
            "component_weights": self.component_weights.to_dict(),
            "negative_factor": self.negative_factor,
            "synergy_bonus": self.synergy_bonus,
            "high_value_match": self.high_value_match,
            "error_message": self.error_message,
        }
