"""
Scoring Engine - Configuration.

============================================================
PURPOSE
============================================================
Defines the constants used by the clearance Scoring Engine.

Weight tables and keyword sets are data and are loaded per run
(see tables.py). Everything here is arithmetic: fallback weights,
tier thresholds, penalties, and category bands.

============================================================
ARITHMETIC
============================================================
final = (ac + pc + keyword + submission_type
         + processing_time + geography
         + negative_factor + synergy_bonus) / 6

floored at 0. The divisor stays 6 even when both penalties
and the synergy bonus apply.

============================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet


@dataclass(frozen=True)
class ScoringConfig:
    """
    Configuration for the Scoring Engine.

    ============================================================
    THRESHOLD RATIONALE
    ============================================================
    Processing time (days from receipt to decision):
    - > 172 days: long review, usually a novel device (0.65)
    - 162-172 days: borderline (0.60)
    - anything else, including missing data (0.50)

    Categories:
    - HIGH above 0.6
    - MODERATE from 0.5 to 0.6
    - LOW from 0.4 up to 0.5
    - ALMOST_NONE below 0.4

    ============================================================
    """

    # Fallback weights for codes missing from their table
    default_ac_weight: float = 0.2
    default_pc_weight: float = 0.2
    default_submission_type_weight: float = 0.6

    # Processing time tiers
    processing_long_threshold_days: float = 172.0    # strictly above -> long
    processing_medium_floor_days: float = 162.0      # inclusive lower bound
    processing_long_weight: float = 0.65
    processing_medium_weight: float = 0.60
    processing_default_weight: float = 0.50

    # Geography
    domestic_country_code: str = "US"
    domestic_weight: float = 0.6
    foreign_weight: float = 0.5

    # High-value keyword detection
    keyword_match_weight: float = 0.85
    keyword_miss_weight: float = 0.20

    # Negative factors (stack additively)
    cosmetic_penalty: float = -2.0
    diagnostic_penalty: float = -0.2

    # Synergy bonus
    synergy_committees: FrozenSet[str] = field(
        default_factory=lambda: frozenset({"OR", "NE"})
    )
    synergy_bonus: float = 0.15

    # Normalization
    normalization_divisor: float = 6.0

    # Category bands
    high_threshold: float = 0.6
    moderate_floor: float = 0.5
    low_floor: float = 0.4

    engine_version: str = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_ac_weight": self.default_ac_weight,
            "default_pc_weight": self.default_pc_weight,
            "default_submission_type_weight": self.default_submission_type_weight,
            "processing_long_threshold_days": self.processing_long_threshold_days,
            "processing_medium_floor_days": self.processing_medium_floor_days,
            "processing_long_weight": self.processing_long_weight,
            "processing_medium_weight": self.processing_medium_weight,
            "processing_default_weight": self.processing_default_weight,
            "domestic_country_code": self.domestic_country_code,
            "domestic_weight": self.domestic_weight,
            "foreign_weight": self.foreign_weight,
            "keyword_match_weight": self.keyword_match_weight,
            "keyword_miss_weight": self.keyword_miss_weight,
            "cosmetic_penalty": self.cosmetic_penalty,
            "diagnostic_penalty": self.diagnostic_penalty,
            "synergy_committees": sorted(self.synergy_committees),
            "synergy_bonus": self.synergy_bonus,
            "normalization_divisor": self.normalization_divisor,
            "high_threshold": self.high_threshold,
            "moderate_floor": self.moderate_floor,
            "low_floor": self.low_floor,
            "engine_version": self.engine_version,
        }
