"""
Scoring Engine Package.

Computes a deterministic relevance score for each clearance
record from weight tables, keyword sets, penalties and a
synergy bonus.

Modules:
- types: InputRecord, ScoreBreakdown, ScoreCategory
- config: ScoringConfig constants
- weights: WeightTable
- keywords: KeywordSet, KeywordMatcher
- tables: table providers and the per-run ScoringTables bundle
- engine: ScoringEngine
"""

from .config import ScoringConfig
from .engine import ScoringEngine, format_score_breakdown
from .keywords import KeywordMatcher, KeywordSet
from .tables import (
    MappingTableProvider,
    ScoringTables,
    TableProvider,
    YamlTableProvider,
    load_scoring_tables,
)
from .types import (
    ComponentWeights,
    InputRecord,
    ScoreBreakdown,
    ScoreCategory,
    compute_processing_days,
)
from .weights import WeightTable

__all__ = [
    "ScoringConfig",
    "ScoringEngine",
    "format_score_breakdown",
    "KeywordMatcher",
    "KeywordSet",
    "MappingTableProvider",
    "ScoringTables",
    "TableProvider",
    "YamlTableProvider",
    "load_scoring_tables",
    "ComponentWeights",
    "InputRecord",
    "ScoreBreakdown",
    "ScoreCategory",
    "compute_processing_days",
    "WeightTable",
]
