#!/usr/bin/env python3
"""
Device Clearance Scoring - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
One invocation = one guarded pipeline run.

- Scheduled daily (cron or a process manager)
- Full run when the previous month is not yet archived, within
  the first days of the month, or for a privileged user
- Refresh only otherwise

============================================================
USAGE
============================================================
    python app.py run
    python app.py run --period 2024-05 --user alice --report

Environment-based configuration (.env supported):
    DATABASE_URL, RECORDS_PATH, SCORING_TABLES_PATH,
    PRIVILEGED_USERS, RUN_USER, ENRICHMENT_ENABLED,
    ENRICHMENT_API_KEY, LOG_LEVEL, LOG_FORMAT

============================================================
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.absolute()
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from orchestrator.cli import main


if __name__ == "__main__":
    sys.exit(main())
