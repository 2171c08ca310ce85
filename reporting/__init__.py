"""
Reporting Package.

Text reports over scored clearance batches.
"""

from .distribution_report import (
    DistributionReport,
    DistributionSlice,
    build_distribution_report,
    format_distribution_report,
    geographic_bucket,
)

__all__ = [
    "DistributionReport",
    "DistributionSlice",
    "build_distribution_report",
    "format_distribution_report",
    "geographic_bucket",
]
