"""
Scoring Engine - Main Scorer.

============================================================
PURPOSE
============================================================
The ScoringEngine turns one clearance record into a
ScoreBreakdown.

It orchestrates:
1. Field extraction and validation
2. Component weight lookups
3. Keyword, penalty and synergy evaluation
4. Normalization and category bucketing

============================================================
DESIGN PRINCIPLES
============================================================
- Pure function of (record, tables, config)
- Never mutates the record
- Deterministic: additions happen in a fixed order
- A bad record yields the ERROR sentinel, never an exception

============================================================
USAGE
============================================================
    from scoring_engine import ScoringEngine, load_scoring_tables
    from scoring_engine.tables import YamlTableProvider

    tables = load_scoring_tables(YamlTableProvider("config/scoring_tables.yaml"))
    engine = ScoringEngine()

    breakdown = engine.score(record, tables)
    print(breakdown.category.value, breakdown.final_score)

============================================================
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from core.exceptions import RecordScoringError
from .config import ScoringConfig
from .tables import (
    COSMETIC_KEYWORDS,
    DIAGNOSTIC_KEYWORDS,
    HIGH_VALUE_KEYWORDS,
    THERAPEUTIC_KEYWORDS,
    ScoringTables,
)
from .types import ComponentWeights, ScoreBreakdown, ScoreCategory
from .weights import normalize_code


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _RecordFields:
    """Validated view of the record attributes the engine reads."""

    advisory_committee_code: Optional[str]
    product_code: Optional[str]
    submission_type_code: Optional[str]
    country: str
    processing_days: Optional[float]
    device_name: str
    statement_text: str


class ScoringEngine:
    """
    Deterministic multi-factor scorer for clearance records.

    ============================================================
    FACTORS
    ============================================================
    - Advisory committee weight (table lookup)
    - Product code weight (table lookup)
    - Submission type weight (table lookup)
    - Processing time tier
    - Geography (domestic vs foreign)
    - High-value keyword presence
    - Cosmetic / diagnostic penalties (therapeutic overrides)
    - Committee + keyword synergy bonus

    ============================================================
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        """
        Initialize the Scoring Engine.

        Args:
            config: Scoring constants. Uses defaults if not provided.
        """
        self.config = config or ScoringConfig()

    def score(self, record: Any, tables: ScoringTables) -> ScoreBreakdown:
        """
        Score a single record.

        Args:
            record: InputRecord (or any object with the same attributes)
            tables: Weight tables and keyword sets for this run

        Returns:
            ScoreBreakdown; the ERROR sentinel if a field cannot be read
        """
        record_id = self._record_id(record)

        try:
            fields = self._extract_fields(record, record_id)
            return self._compute(fields, tables)
        except RecordScoringError as e:
            logger.warning(e.to_log_format())
            return ScoreBreakdown.error_sentinel(e.message)
        except (AttributeError, TypeError, ValueError) as e:
            error = RecordScoringError(
                f"Failed to score record: {e}",
                record_id=record_id,
                cause=e,
            )
            logger.warning(error.to_log_format())
            return ScoreBreakdown.error_sentinel(error.message)

    def score_batch(self, records: Iterable[Any], tables: ScoringTables) -> List[ScoreBreakdown]:
        """Score records in input order."""
        return [self.score(record, tables) for record in records]

    # =========================================================
    # FIELD EXTRACTION
    # =========================================================

    @staticmethod
    def _record_id(record: Any) -> str:
        record_id = getattr(record, "record_id", None)
        return str(record_id) if record_id is not None else "<unknown>"

    def _extract_fields(self, record: Any, record_id: str) -> _RecordFields:
        return _RecordFields(
            advisory_committee_code=self._text_field(record, "advisory_committee_code", record_id) or None,
            product_code=self._text_field(record, "product_code", record_id) or None,
            submission_type_code=self._text_field(record, "submission_type_code", record_id) or None,
            country=self._text_field(record, "country", record_id),
            processing_days=self._numeric_days(self._raw_field(record, "processing_days", record_id)),
            device_name=self._text_field(record, "device_name", record_id),
            statement_text=self._text_field(record, "statement_text", record_id),
        )

    @staticmethod
    def _raw_field(record: Any, name: str, record_id: str) -> Any:
        if not hasattr(record, name):
            raise RecordScoringError(
                f"Record has no '{name}' field",
                record_id=record_id,
                field_name=name,
            )
        return getattr(record, name)

    def _text_field(self, record: Any, name: str, record_id: str) -> str:
        value = self._raw_field(record, name, record_id)
        if value is None:
            return ""
        if not isinstance(value, str):
            raise RecordScoringError(
                f"Field '{name}' must be text, got {type(value).__name__}",
                record_id=record_id,
                field_name=name,
            )
        return value

    @staticmethod
    def _numeric_days(value: Any) -> Optional[float]:
        """Convert processing days; anything non-numeric becomes None."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, str):
            try:
                days = float(value.strip())
            except ValueError:
                return None
        else:
            try:
                days = float(value)
            except (TypeError, ValueError):
                return None
        if not math.isfinite(days):
            return None
        return days

    # =========================================================
    # COMPUTATION
    # =========================================================

    def _compute(self, fields: _RecordFields, tables: ScoringTables) -> ScoreBreakdown:
        config = self.config

        # --------------------------------------------------
        # Step 1: Component weights
        # --------------------------------------------------
        ac_weight = tables.advisory_committee.get_or_default(fields.advisory_committee_code)
        pc_weight = tables.product_code.get_or_default(fields.product_code)
        submission_weight = tables.submission_type.get_or_default(fields.submission_type_code)
        processing_weight = self._processing_time_weight(fields.processing_days)
        geography_weight = self._geography_weight(fields.country)

        # --------------------------------------------------
        # Step 2: Keywords
        # --------------------------------------------------
        blob = f"{fields.device_name} {fields.statement_text}"
        high_value_match = tables.matches(HIGH_VALUE_KEYWORDS, blob)
        keyword_weight = (
            config.keyword_match_weight if high_value_match else config.keyword_miss_weight
        )

        # --------------------------------------------------
        # Step 3: Negative factors and synergy
        # --------------------------------------------------
        negative_factor = self._negative_factor(blob, tables)

        committee = normalize_code(fields.advisory_committee_code)
        synergy_bonus = 0.0
        if high_value_match and committee in config.synergy_committees:
            synergy_bonus = config.synergy_bonus

        # --------------------------------------------------
        # Step 4: Normalize and bucket
        # --------------------------------------------------
        components = ComponentWeights(
            ac=ac_weight,
            pc=pc_weight,
            keyword=keyword_weight,
            submission_type=submission_weight,
            processing_time=processing_weight,
            geography=geography_weight,
        )
        raw_total = components.total() + negative_factor + synergy_bonus
        final_score = max(0.0, raw_total / config.normalization_divisor)

        category = ScoreCategory.from_score(
            final_score,
            high_threshold=config.high_threshold,
            moderate_floor=config.moderate_floor,
            low_floor=config.low_floor,
        )

        return ScoreBreakdown(
            final_score=final_score,
            category=category,
            component_weights=components,
            negative_factor=negative_factor,
            synergy_bonus=synergy_bonus,
            high_value_match=high_value_match,
        )

    def _processing_time_weight(self, days: Optional[float]) -> float:
        config = self.config
        if days is None:
            return config.processing_default_weight
        if days > config.processing_long_threshold_days:
            return config.processing_long_weight
        if days >= config.processing_medium_floor_days:
            return config.processing_medium_weight
        return config.processing_default_weight

    def _geography_weight(self, country: str) -> float:
        if country.strip().upper() == self.config.domestic_country_code.upper():
            return self.config.domestic_weight
        return self.config.foreign_weight

    def _negative_factor(self, blob: str, tables: ScoringTables) -> float:
        """Cosmetic and diagnostic penalties stack; therapeutic cancels both."""
        if tables.matches(THERAPEUTIC_KEYWORDS, blob):
            return 0.0

        factor = 0.0
        if tables.matches(COSMETIC_KEYWORDS, blob):
            factor += self.config.cosmetic_penalty
        if tables.matches(DIAGNOSTIC_KEYWORDS, blob):
            factor += self.config.diagnostic_penalty
        return factor


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================


def format_score_breakdown(breakdown: ScoreBreakdown, record_id: Optional[str] = None) -> str:
    """
    Format a human-readable explanation of a score.

    Args:
        breakdown: Engine output
        record_id: Optional record identifier for the header

    Returns:
        Formatted multi-line string
    """
    weights = breakdown.component_weights
    header = f"SCORE BREAKDOWN {record_id}" if record_id else "SCORE BREAKDOWN"
    lines = [
        "=" * 50,
        header,
        "=" * 50,
        f"Final Score: {breakdown.final_score:.4f}",
        f"Category: {breakdown.category.value}",
        "",
        "Components:",
        f"  Advisory Committee: {weights.ac:.2f}",
        f"  Product Code:       {weights.pc:.2f}",
        f"  Keyword:            {weights.keyword:.2f}",
        f"  Submission Type:    {weights.submission_type:.2f}",
        f"  Processing Time:    {weights.processing_time:.2f}",
        f"  Geography:          {weights.geography:.2f}",
        f"  Negative Factor:    {breakdown.negative_factor:.2f}",
        f"  Synergy Bonus:      {breakdown.synergy_bonus:.2f}",
    ]
    if breakdown.error_message:
        lines.append(f"Error: {breakdown.error_message}")
    lines.append("=" * 50)

    return "\n".join(lines)
