"""
Orchestrator Package.

Drives one invocation of the clearance scoring pipeline: run
guard, table loading, scoring, recap resolution, result hand-off
and archiving.

Modules:
- interfaces: DataSource, DataSink
- models: OrchestratorConfig, ScoredRecord, RunSummary
- pipeline: PipelineOrchestrator
- adapters: JsonRecordSource, SqlResultSink
- cli: command-line entry point
"""

from .interfaces import DataSink, DataSource
from .models import OrchestratorConfig, RunSummary, ScoredRecord, format_run_summary
from .pipeline import PipelineOrchestrator

__all__ = [
    "DataSink",
    "DataSource",
    "OrchestratorConfig",
    "RunSummary",
    "ScoredRecord",
    "format_run_summary",
    "PipelineOrchestrator",
]
