"""
Orchestrator - Models.

============================================================
RESPONSIBILITY
============================================================
Defines data models for the pipeline orchestrator.

- Runtime configuration (environment + CLI)
- ScoredRecord output tuple
- RunSummary and its text rendering

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional

from dotenv import load_dotenv

from core.exceptions import ConfigurationError
from scoring_engine import InputRecord, ScoreBreakdown, ScoreCategory
from run_guard import DEFAULT_GRACE_DAYS, RunState


# ============================================================
# OUTPUT TUPLE
# ============================================================

class ScoredRecord(NamedTuple):
    """One record with its score and company recap."""

    record: InputRecord
    breakdown: ScoreBreakdown
    recap: str


# ============================================================
# CONFIGURATION
# ============================================================

def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer",
            config_key=name,
            actual_value=value,
            cause=e,
        ) from e


@dataclass
class OrchestratorConfig:
    """Configuration for one pipeline run."""

    database_url: Optional[str] = None
    """SQLAlchemy URL. None = database.engine default."""

    records_path: str = "data/clearances.json"
    """JSON file with the run's records."""

    scoring_tables_path: str = "config/scoring_tables.yaml"
    """YAML weight tables and keyword sets."""

    privileged_users: List[str] = field(default_factory=list)
    """Users allowed to force a full run and trigger enrichment."""

    run_user: Optional[str] = None
    """Identity of the caller."""

    enrichment_enabled: bool = True
    """Build the HTTP enrichment client."""

    grace_window_days: int = DEFAULT_GRACE_DAYS
    """Days at the start of a month during which every run is full."""

    target_period: Optional[str] = None
    """YYYY-MM. None = previous calendar month."""

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> "OrchestratorConfig":
        """
        Load configuration from environment variables (and .env).

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        load_dotenv()
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            records_path=os.getenv("RECORDS_PATH", "data/clearances.json"),
            scoring_tables_path=os.getenv("SCORING_TABLES_PATH", "config/scoring_tables.yaml"),
            privileged_users=[
                user.strip()
                for user in os.getenv("PRIVILEGED_USERS", "").split(",")
                if user.strip()
            ],
            run_user=os.getenv("RUN_USER") or None,
            enrichment_enabled=_env_bool("ENRICHMENT_ENABLED", True),
            grace_window_days=_env_int("GRACE_WINDOW_DAYS", DEFAULT_GRACE_DAYS),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.grace_window_days < 0:
            errors.append("grace_window_days must be non-negative")

        if self.log_format not in ("json", "text"):
            errors.append("log_format must be 'json' or 'text'")

        if not self.records_path:
            errors.append("records_path is required")

        if not self.scoring_tables_path:
            errors.append("scoring_tables_path is required")

        return errors


# ============================================================
# RUN SUMMARY
# ============================================================

@dataclass
class RunSummary:
    """Outcome of one invocation."""

    period: str
    state: RunState
    decision: Dict[str, Any] = field(default_factory=dict)

    records_processed: int = 0
    records_in_error: int = 0
    category_counts: Dict[str, int] = field(default_factory=dict)

    cache_entries_loaded: int = 0
    cache_load_degraded: bool = False
    cache_hits: int = 0
    cache_misses: int = 0
    invalid_applicants: int = 0
    enrichment_successes: int = 0
    enrichment_failures: int = 0
    cache_entries_saved: int = 0
    cache_save_error: Optional[str] = None

    written: bool = False
    archived: bool = False
    cancelled: bool = False

    results: List[ScoredRecord] = field(default_factory=list, repr=False)

    @property
    def skipped(self) -> bool:
        return self.state == RunState.SKIPPED

    def count_category(self, category: ScoreCategory) -> None:
        self.category_counts[category.value] = self.category_counts.get(category.value, 0) + 1
        if category == ScoreCategory.ERROR:
            self.records_in_error += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "state": self.state.value,
            "decision": dict(self.decision),
            "records_processed": self.records_processed,
            "records_in_error": self.records_in_error,
            "category_counts": dict(self.category_counts),
            "cache_entries_loaded": self.cache_entries_loaded,
            "cache_load_degraded": self.cache_load_degraded,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "invalid_applicants": self.invalid_applicants,
            "enrichment_successes": self.enrichment_successes,
            "enrichment_failures": self.enrichment_failures,
            "cache_entries_saved": self.cache_entries_saved,
            "cache_save_error": self.cache_save_error,
            "written": self.written,
            "archived": self.archived,
            "cancelled": self.cancelled,
        }


def format_run_summary(summary: RunSummary) -> str:
    """
    Format a human-readable run summary.

    Args:
        summary: Result of PipelineOrchestrator.run()

    Returns:
        Formatted multi-line string
    """
    lines = [
        "=" * 50,
        f"RUN SUMMARY {summary.period}",
        "=" * 50,
        f"State: {summary.state.value}",
    ]

    if summary.skipped:
        lines.append("Refresh only: no records scored")
        lines.append("=" * 50)
        return "\n".join(lines)

    lines.extend([
        f"Records Processed: {summary.records_processed}",
        f"Records In Error:  {summary.records_in_error}",
    ])
    for category in ScoreCategory:
        count = summary.category_counts.get(category.value, 0)
        if count:
            lines.append(f"  {category.value}: {count}")

    lines.extend([
        "",
        "Recap Cache:",
        f"  Loaded:      {summary.cache_entries_loaded}"
        + (" (degraded)" if summary.cache_load_degraded else ""),
        f"  Hits:        {summary.cache_hits}",
        f"  Misses:      {summary.cache_misses}",
        f"  Enriched:    {summary.enrichment_successes}",
        f"  Failed:      {summary.enrichment_failures}",
        f"  Saved:       {summary.cache_entries_saved}",
    ])
    if summary.cache_save_error:
        lines.append(f"  Save Error:  {summary.cache_save_error}")

    lines.extend([
        "",
        f"Written:   {'yes' if summary.written else 'no'}",
        f"Archived:  {'yes' if summary.archived else 'no'}",
    ])
    if summary.cancelled:
        lines.append("CANCELLED before completion")
    lines.append("=" * 50)

    return "\n".join(lines)
