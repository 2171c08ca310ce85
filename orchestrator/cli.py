"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the clearance scoring pipeline.

- Provides argparse-based CLI
- Loads configuration from environment, CLI flags override
- Wires the host adapters into a PipelineOrchestrator
- Maps outcomes to exit codes

============================================================
USAGE
============================================================
python app.py run
python app.py run --period 2024-05 --user alice --report
python -m orchestrator.cli run --no-enrichment --log-level DEBUG

============================================================
EXIT CODES
============================================================
0    full run or skipped run completed
1    configuration, database or other unrecoverable error
2    required scoring table could not be loaded
130  run cancelled by SIGINT / SIGTERM

============================================================
"""

import argparse
import json
import logging
import signal
import sys
from typing import List, Optional

from core.exceptions import ClearanceScoringError, ConfigurationError, FatalLoadError
from database.engine import DatabasePersistenceError, SessionFactory, initialize_database
from recap_cache import EnrichmentConfig, HttpEnrichmentClient, SqlRecapCacheStore
from reporting import build_distribution_report, format_distribution_report
from run_guard import PrivilegedUserPolicy, RunGuard
from scoring_engine import YamlTableProvider
from .adapters import JsonRecordSource, SqlResultSink
from .models import OrchestratorConfig
from .pipeline import PipelineOrchestrator


logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FATAL_LOAD = 2
EXIT_CANCELLED = 130


# ============================================================
# LOGGING
# ============================================================

def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    correlation_id: Optional[str] = None,
) -> logging.Logger:
    """
    Set up structured logging.

    Args:
        level: Log level
        log_format: Output format (json or text)
        correlation_id: Correlation ID for tracing

    Returns:
        Configured logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
                "correlation_id": correlation_id or "",
            })
        )
    else:
        formatter = logging.Formatter(
            f"%(asctime)s | %(levelname)-8s | %(name)s | {correlation_id or ''} | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("orchestrator")


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="clearance-scoring",
        description="Monthly device clearance scoring pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s run                                # Score the previous month
  %(prog)s run --period 2024-05 --user alice  # Privileged rerun with enrichment
  %(prog)s run --no-enrichment --report       # Defaults only, print distribution
        """
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="%(prog)s 1.0.0",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    run_parser = subparsers.add_parser("run", help="Run the scoring pipeline once")

    # --------------------------------------------------------
    # Run Options
    # --------------------------------------------------------
    run_group = run_parser.add_argument_group("Run Options")

    run_group.add_argument(
        "--period",
        type=str,
        metavar="YYYY-MM",
        help="Target period (default: previous month)",
    )

    run_group.add_argument(
        "--user",
        type=str,
        metavar="NAME",
        help="Run user (default: RUN_USER)",
    )

    run_group.add_argument(
        "--no-enrichment",
        action="store_true",
        help="Do not call the enrichment endpoint",
    )

    run_group.add_argument(
        "--report",
        action="store_true",
        help="Print the distribution report after a full run",
    )

    # --------------------------------------------------------
    # Data Options
    # --------------------------------------------------------
    data_group = run_parser.add_argument_group("Data Options")

    data_group.add_argument(
        "--records",
        type=str,
        metavar="PATH",
        help="JSON records file (default: RECORDS_PATH)",
    )

    data_group.add_argument(
        "--tables",
        type=str,
        metavar="PATH",
        help="YAML scoring tables (default: SCORING_TABLES_PATH)",
    )

    data_group.add_argument(
        "--database-url",
        type=str,
        metavar="URL",
        help="SQLAlchemy database URL (default: DATABASE_URL)",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = run_parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        help="Logging format (default: LOG_FORMAT or text)",
    )

    return parser


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace, base: Optional[OrchestratorConfig] = None) -> OrchestratorConfig:
    """
    Apply CLI overrides to the environment configuration.

    Args:
        args: Parsed arguments
        base: Configuration to override (default: from environment)

    Returns:
        OrchestratorConfig instance
    """
    config = base or OrchestratorConfig.from_env()

    if args.period:
        config.target_period = args.period
    if args.user:
        config.run_user = args.user
    if args.records:
        config.records_path = args.records
    if args.tables:
        config.scoring_tables_path = args.tables
    if args.database_url:
        config.database_url = args.database_url
    if args.no_enrichment:
        config.enrichment_enabled = False
    if args.log_level:
        config.log_level = args.log_level
    if args.log_format:
        config.log_format = args.log_format

    return config


def build_orchestrator(
    config: OrchestratorConfig,
    session_factory: SessionFactory,
) -> PipelineOrchestrator:
    """Wire the host adapters for one run."""
    enrichment_client = None
    if config.enrichment_enabled:
        enrichment_client = HttpEnrichmentClient(EnrichmentConfig.from_env())

    return PipelineOrchestrator(
        source=JsonRecordSource(config.records_path, session_factory),
        sink=SqlResultSink(session_factory),
        table_provider=YamlTableProvider(config.scoring_tables_path),
        cache_store=SqlRecapCacheStore(session_factory),
        enrichment_client=enrichment_client,
        privileged_policy=PrivilegedUserPolicy(config.privileged_users),
        guard=RunGuard(config.grace_window_days),
    )


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def _install_cancel_handlers(orchestrator: PipelineOrchestrator) -> dict:
    def handler(signum, frame):
        logger.warning(f"Received signal {signum}")
        orchestrator.cancel()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, handler)
    return previous


def _restore_handlers(previous: dict) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def run_command(config: OrchestratorConfig, show_report: bool = False) -> int:
    """
    Execute the run command.

    Returns:
        Exit code
    """
    try:
        session_factory = initialize_database(config.database_url)
    except DatabasePersistenceError as e:
        logger.error(f"Database initialization failed: {e}")
        return EXIT_ERROR

    orchestrator = build_orchestrator(config, session_factory)
    previous = _install_cancel_handlers(orchestrator)

    try:
        summary = orchestrator.run(user=config.run_user, target_period=config.target_period)
    except FatalLoadError as e:
        logger.critical(f"Aborting run: {e.to_log_format()}")
        return EXIT_FATAL_LOAD
    except ClearanceScoringError as e:
        logger.error(f"Run failed: {e.to_log_format()}")
        return EXIT_ERROR
    except DatabasePersistenceError as e:
        logger.error(f"Run failed on database write: {e}")
        return EXIT_ERROR
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return EXIT_ERROR
    finally:
        _restore_handlers(previous)

    if summary.cancelled:
        return EXIT_CANCELLED

    if show_report and not summary.skipped:
        print(format_distribution_report(build_distribution_report(summary.results)))

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return EXIT_ERROR

    setup_logging(config.log_level, config.log_format)

    if args.command == "run":
        return run_command(config, show_report=args.report)

    parser.print_help()
    return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
