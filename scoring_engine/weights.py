"""
Scoring Engine - Weight Tables.

============================================================
RESPONSIBILITY
============================================================
Lookup tables mapping categorical codes (advisory committee,
product code, submission type) to numeric weights.

- Codes are matched case-insensitively (stored upper case)
- Each table carries its own fallback weight
- Tables are immutable once built

============================================================
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional


def normalize_code(code: Any) -> Optional[str]:
    """Canonical form of a categorical code, or None when blank."""
    if code is None:
        return None
    if not isinstance(code, str):
        raise TypeError(f"code must be a string, got {type(code).__name__}")
    normalized = code.strip().upper()
    return normalized or None


def _coerce_weight(code: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"weight for {code!r} is not a number: {value!r}")
    weight = float(value)
    if not math.isfinite(weight):
        raise ValueError(f"weight for {code!r} is not finite: {value!r}")
    return weight


@dataclass(frozen=True)
class WeightTable:
    """
    Immutable code -> weight table with a default.

    Usage:
        table = WeightTable.from_mapping("advisory_committee", {"OR": 0.9}, default=0.2)
        table.get_or_default("or")   # 0.9
        table.get_or_default("XX")   # 0.2
    """

    name: str
    default: float
    entries: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    @classmethod
    def from_mapping(
        cls,
        name: str,
        entries: Mapping[Any, Any],
        default: float,
    ) -> "WeightTable":
        """
        Build a validated table.

        Raises:
            ValueError: On blank or duplicate codes, or non-numeric weights
        """
        normalized: Dict[str, float] = {}
        for raw_code, raw_weight in entries.items():
            code = normalize_code(str(raw_code)) if raw_code is not None else None
            if code is None:
                raise ValueError(f"table {name!r} contains a blank code")
            if code in normalized:
                raise ValueError(f"table {name!r} contains duplicate code {code!r}")
            normalized[code] = _coerce_weight(code, raw_weight)

        return cls(name=name, default=_coerce_weight("default", default), entries=normalized)

    @classmethod
    def empty(cls, name: str, default: float) -> "WeightTable":
        """Table with no entries; every lookup returns the default."""
        return cls(name=name, default=default, entries={})

    def get_or_default(self, code: Any) -> float:
        """
        Look up a code, falling back to the table default.

        Raises:
            TypeError: If code is neither None nor a string
        """
        key = normalize_code(code)
        if key is None:
            return self.default
        return self.entries.get(key, self.default)

    def __contains__(self, code: object) -> bool:
        try:
            key = normalize_code(code)
        except TypeError:
            return False
        return key is not None and key in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)
