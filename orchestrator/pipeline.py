"""
Orchestrator - Scoring Pipeline.

============================================================
RESPONSIBILITY
============================================================
Drives one invocation end to end:

    guard
      -> skipped: source.refresh_only(), stop
      -> full:    load tables (required tables fatal)
                  load recap cache
                  per record: score + resolve recap
                  sink.write(results)
                  cache.save() (also when the write fails)
                  sink.archive() when the archive was missing

============================================================
DESIGN PRINCIPLES
============================================================
- Single-threaded; records are processed in input order
- Tables and cache are built per run and passed in
- A fatal table load aborts before any record is scored
- cancel() is honored between records. A cancelled run keeps
  paid enrichment by saving the cache, but neither writes nor
  archives.

============================================================
"""

import logging
import threading
from typing import List, Optional

from core.clock import ClockProtocol, SystemClock
from core.exceptions import CacheIOError
from recap_cache import DurableCacheStore, EnrichmentClient, RecapCache
from run_guard import (
    PrivilegedUserPolicy,
    RunGuard,
    previous_month_period,
    validate_period,
)
from scoring_engine import (
    ScoringConfig,
    ScoringEngine,
    ScoringTables,
    TableProvider,
    load_scoring_tables,
)
from .interfaces import DataSink, DataSource
from .models import RunSummary, ScoredRecord, format_run_summary


logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """
    Runs the clearance scoring pipeline.

    Usage:
        orchestrator = PipelineOrchestrator(
            source=source,
            sink=sink,
            table_provider=YamlTableProvider("config/scoring_tables.yaml"),
            cache_store=SqlRecapCacheStore(session_factory),
            enrichment_client=HttpEnrichmentClient(EnrichmentConfig.from_env()),
            privileged_policy=PrivilegedUserPolicy(["alice"]),
        )
        summary = orchestrator.run(user="alice")
    """

    def __init__(
        self,
        source: DataSource,
        sink: DataSink,
        table_provider: TableProvider,
        cache_store: DurableCacheStore,
        enrichment_client: Optional[EnrichmentClient] = None,
        privileged_policy: Optional[PrivilegedUserPolicy] = None,
        guard: Optional[RunGuard] = None,
        engine: Optional[ScoringEngine] = None,
        scoring_config: Optional[ScoringConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            source: Records and archive check
            sink: Destination of results and archive requests
            table_provider: Weight tables and keyword sets
            cache_store: Durable tier of the recap cache
            enrichment_client: Optional recap generator
            privileged_policy: Privileged-user predicate (default: nobody)
            guard: Run guard (default grace window)
            engine: Scoring engine (default built from scoring_config)
            scoring_config: Scoring constants (default: the engine's)
            clock: Time source for the guard and cache stamps
        """
        self._source = source
        self._sink = sink
        self._table_provider = table_provider
        self._cache_store = cache_store
        self._enrichment_client = enrichment_client
        self._policy = privileged_policy or PrivilegedUserPolicy()
        self._guard = guard or RunGuard()
        if scoring_config is None:
            scoring_config = engine.config if engine is not None else ScoringConfig()
        self._scoring_config = scoring_config
        self._engine = engine or ScoringEngine(self._scoring_config)
        self._clock = clock or SystemClock()
        self._cancel_event = threading.Event()

    # =========================================================
    # CONTROL
    # =========================================================

    def cancel(self) -> None:
        """Request cancellation. Safe to call from a signal handler."""
        if not self._cancel_event.is_set():
            logger.warning("Cancellation requested, stopping after the current record")
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    # =========================================================
    # RUN
    # =========================================================

    def run(self, user: Optional[str] = None, target_period: Optional[str] = None) -> RunSummary:
        """
        Execute one invocation.

        Args:
            user: Identity of the caller
            target_period: YYYY-MM (default: previous month)

        Returns:
            RunSummary

        Raises:
            FatalLoadError: If a required table could not be loaded
            CacheIOError is never raised; a failed cache save is
            recorded in the summary.
        """
        today = self._clock.today()
        period = validate_period(target_period) if target_period else previous_month_period(today)
        privileged = self._policy.is_privileged(user)

        # ---- Step 1: Guard
        decision = self._guard.decide(period, self._source.archive_exists, today, privileged)
        summary = RunSummary(period=period, state=decision.state, decision=decision.to_dict())

        if not decision.proceed_full:
            logger.info(f"Period {period}: archive present, outside grace window; refreshing only")
            self._source.refresh_only()
            logger.info(format_run_summary(summary))
            return summary

        # ---- Step 2: Tables (FatalLoadError propagates)
        tables = load_scoring_tables(self._table_provider, self._scoring_config)

        # ---- Step 3: Recap cache
        cache = RecapCache(enrichment_client=self._enrichment_client, clock=self._clock)
        load_result = cache.load(self._cache_store)
        summary.cache_entries_loaded = load_result.entries_loaded
        summary.cache_load_degraded = load_result.degraded

        allow_enrichment = privileged and cache.has_enrichment_client
        if privileged and not cache.has_enrichment_client:
            logger.info("Privileged run without an enrichment client; recaps use defaults")

        # ---- Step 4: Score and resolve
        results = self._process_records(tables, cache, allow_enrichment, summary)
        summary.results = results

        stats = cache.stats
        summary.cache_hits = stats.hits
        summary.cache_misses = stats.misses
        summary.invalid_applicants = stats.invalid_names
        summary.enrichment_successes = stats.enrichment_successes
        summary.enrichment_failures = stats.enrichment_failures

        # ---- Step 5: Hand results to the sink, then persist the cache
        # The cache is saved even when the sink fails
        try:
            if self.cancelled:
                summary.cancelled = True
                logger.warning(
                    f"Run cancelled after {summary.records_processed} records; "
                    f"results not written"
                )
            else:
                self._sink.write(results, period)
                summary.written = True
        finally:
            self._save_cache(cache, summary)

        # ---- Step 6: Archive
        if decision.must_archive and not summary.cancelled:
            self._sink.archive(period)
            summary.archived = True

        logger.info(format_run_summary(summary))
        return summary

    def _save_cache(self, cache: RecapCache, summary: RunSummary) -> None:
        try:
            summary.cache_entries_saved = cache.save(self._cache_store)
        except CacheIOError as e:
            summary.cache_save_error = e.message
            logger.error(f"Recap cache save failed: {e.to_log_format()}")

    def _process_records(
        self,
        tables: ScoringTables,
        cache: RecapCache,
        allow_enrichment: bool,
        summary: RunSummary,
    ) -> List[ScoredRecord]:
        results: List[ScoredRecord] = []

        for record in self._source.iter_records():
            if self.cancelled:
                break

            breakdown = self._engine.score(record, tables)
            recap = cache.resolve(getattr(record, "applicant_name", None), allow_enrichment)

            results.append(ScoredRecord(record, breakdown, recap))
            summary.records_processed += 1
            summary.count_category(breakdown.category)

        logger.info(f"Processed {len(results)} records")
        return results
