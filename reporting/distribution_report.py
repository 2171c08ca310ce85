"""
Reporting - Distribution Report.

============================================================
RESPONSIBILITY
============================================================
Summarizes a scored batch the way the analyst dashboard
presents it.

- Advisory committee distribution (top five + "Other")
- Geographic distribution (California, Northeast, Midwest,
  Other US, International)
- Score category counts
- Applicants with the most submissions

============================================================
DESIGN PRINCIPLES
============================================================
- Pure function of the results; no I/O
- Stable ordering (count descending, then name)
- Percentages rounded to one decimal place

============================================================
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from recap_cache import normalize_company_key
from scoring_engine import ScoreCategory
from scoring_engine.weights import normalize_code


# ============================================================
# CONSTANTS
# ============================================================

TOP_COMMITTEES = 5
TOP_APPLICANTS = 10
OTHER_LABEL = "Other"

DOMESTIC_COUNTRY = "US"

CALIFORNIA = "California"
NORTHEAST = "Northeast"
MIDWEST = "Midwest"
OTHER_US = "Other US"
INTERNATIONAL = "International"

GEO_BUCKETS = (CALIFORNIA, NORTHEAST, MIDWEST, OTHER_US, INTERNATIONAL)

# US Census regions
NORTHEAST_STATES = frozenset({"CT", "ME", "MA", "NH", "RI", "VT", "NJ", "NY", "PA"})
MIDWEST_STATES = frozenset({
    "IL", "IN", "MI", "OH", "WI", "IA", "KS", "MN", "MO", "NE", "ND", "SD",
})


# ============================================================
# REPORT TYPES
# ============================================================

@dataclass(frozen=True)
class DistributionSlice:
    """One bar or pie slice."""

    name: str
    count: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count, "percentage": self.percentage}


@dataclass
class DistributionReport:
    """Distribution summary of one scored batch."""

    total_records: int
    committees: List[DistributionSlice] = field(default_factory=list)
    geography: List[DistributionSlice] = field(default_factory=list)
    categories: List[DistributionSlice] = field(default_factory=list)
    top_applicants: List[DistributionSlice] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_records": self.total_records,
            "committees": [s.to_dict() for s in self.committees],
            "geography": [s.to_dict() for s in self.geography],
            "categories": [s.to_dict() for s in self.categories],
            "top_applicants": [s.to_dict() for s in self.top_applicants],
        }


# ============================================================
# BUILDERS
# ============================================================

def _percentage(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(100.0 * count / total, 1)


def _safe_code(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return normalize_code(value)


def geographic_bucket(country: Any, state: Any) -> str:
    """
    Map a record's country and state to a dashboard region.

    A missing country is treated as foreign, matching the
    scoring engine's geography weight.
    """
    if _safe_code(country) != DOMESTIC_COUNTRY:
        return INTERNATIONAL

    state_code = _safe_code(state)
    if state_code == "CA":
        return CALIFORNIA
    if state_code in NORTHEAST_STATES:
        return NORTHEAST
    if state_code in MIDWEST_STATES:
        return MIDWEST
    return OTHER_US


def _ranked(counter: Counter) -> List[Tuple[str, int]]:
    return sorted(counter.items(), key=lambda item: (-item[1], item[0]))


def _committee_slices(records: Sequence[Any], total: int) -> List[DistributionSlice]:
    counter: Counter = Counter()
    unassigned = 0
    for record in records:
        code = _safe_code(getattr(record, "advisory_committee_code", None))
        if code:
            counter[code] += 1
        else:
            unassigned += 1

    ranked = _ranked(counter)
    slices = [
        DistributionSlice(code, count, _percentage(count, total))
        for code, count in ranked[:TOP_COMMITTEES]
    ]

    other = sum(count for _, count in ranked[TOP_COMMITTEES:]) + unassigned
    if other:
        slices.append(DistributionSlice(OTHER_LABEL, other, _percentage(other, total)))
    return slices


def _geography_slices(records: Sequence[Any], total: int) -> List[DistributionSlice]:
    counter = Counter(
        geographic_bucket(getattr(record, "country", None), getattr(record, "state", None))
        for record in records
    )
    return [
        DistributionSlice(bucket, counter[bucket], _percentage(counter[bucket], total))
        for bucket in GEO_BUCKETS
    ]


def _category_slices(breakdowns: Sequence[Any], total: int) -> List[DistributionSlice]:
    counter = Counter(breakdown.category for breakdown in breakdowns)
    return [
        DistributionSlice(category.value, counter[category], _percentage(counter[category], total))
        for category in ScoreCategory
    ]


def _applicant_slices(records: Sequence[Any], total: int) -> List[DistributionSlice]:
    counter: Counter = Counter()
    display: Dict[str, str] = {}
    for record in records:
        name = getattr(record, "applicant_name", None)
        if not isinstance(name, str) or not name.strip():
            continue
        key = normalize_company_key(name)
        display.setdefault(key, " ".join(name.split()))
        counter[key] += 1

    return [
        DistributionSlice(display[key], count, _percentage(count, total))
        for key, count in _ranked(counter)[:TOP_APPLICANTS]
    ]


def build_distribution_report(results: Iterable[Any]) -> DistributionReport:
    """
    Build the distribution report for a scored batch.

    Args:
        results: ScoredRecord tuples (record, breakdown, recap)

    Returns:
        DistributionReport
    """
    items = list(results)
    records = [item[0] for item in items]
    breakdowns = [item[1] for item in items]
    total = len(items)

    return DistributionReport(
        total_records=total,
        committees=_committee_slices(records, total),
        geography=_geography_slices(records, total),
        categories=_category_slices(breakdowns, total),
        top_applicants=_applicant_slices(records, total),
    )


# ============================================================
# FORMATTING
# ============================================================

def _format_section(title: str, slices: List[DistributionSlice]) -> List[str]:
    lines = [f"{title}:"]
    if not slices:
        lines.append("  (none)")
        return lines
    width = max(len(s.name) for s in slices)
    for s in slices:
        lines.append(f"  {s.name:<{width}}  {s.count:>5}  {s.percentage:>5.1f}%")
    return lines


def format_distribution_report(report: DistributionReport) -> str:
    """Render the report as plain text."""
    lines = [
        "=" * 50,
        "DISTRIBUTION REPORT",
        "=" * 50,
        f"Total Records: {report.total_records}",
        "",
    ]
    lines.extend(_format_section("Committee Distribution", report.committees))
    lines.append("")
    lines.extend(_format_section("Geographic Distribution", report.geography))
    lines.append("")
    lines.extend(_format_section("Score Categories", report.categories))
    lines.append("")
    lines.extend(_format_section("Top Applicants", report.top_applicants))
    lines.append("=" * 50)
    return "\n".join(lines)
