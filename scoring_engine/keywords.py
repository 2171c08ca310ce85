"""
Scoring Engine - Keyword Sets and Matcher.

============================================================
RESPONSIBILITY
============================================================
Detects named keyword sets in device text.

- high_value: device traits that make a clearance interesting
- cosmetic / diagnostic: categories that earn a penalty
- therapeutic: overrides both penalties

============================================================
MATCHING
============================================================
Case-insensitive substring matching. Terms are not anchored
to word boundaries, so "neurostimulat" matches both
"neurostimulator" and "neurostimulation".

All terms of a set are compiled into one alternation,
longest first, so a blob is scanned once per set.

============================================================
"""

import re
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, List, Optional, Pattern


@dataclass(frozen=True)
class KeywordSet:
    """A named, case-insensitive set of unique terms."""

    name: str
    terms: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_terms(cls, name: str, terms: Iterable[Any]) -> "KeywordSet":
        """
        Build a set from raw terms.

        Terms are stripped and lower-cased; blank terms are dropped.

        Raises:
            ValueError: If a term is not a string
        """
        cleaned = set()
        for term in terms:
            if not isinstance(term, str):
                raise ValueError(f"keyword set {name!r} contains a non-string term: {term!r}")
            normalized = term.strip().lower()
            if normalized:
                cleaned.add(normalized)
        return cls(name=name, terms=frozenset(cleaned))

    @classmethod
    def empty(cls, name: str) -> "KeywordSet":
        return cls(name=name, terms=frozenset())

    def __len__(self) -> int:
        return len(self.terms)

    def __contains__(self, term: object) -> bool:
        return isinstance(term, str) and term.strip().lower() in self.terms


class KeywordMatcher:
    """
    Compiled matcher for one KeywordSet.

    Usage:
        matcher = KeywordMatcher(KeywordSet.from_terms("high_value", ["robotic"]))
        matcher.matches("Robotic Surgical System")   # True
        matcher.find("robotic arm")                  # ["robotic"]
    """

    def __init__(self, keyword_set: KeywordSet) -> None:
        self._keyword_set = keyword_set
        self._pattern = self._build_pattern(keyword_set)

    @property
    def keyword_set(self) -> KeywordSet:
        return self._keyword_set

    @property
    def name(self) -> str:
        return self._keyword_set.name

    # =========================================================
    # PUBLIC API
    # =========================================================

    def matches(self, text: str) -> bool:
        """Check whether any term occurs in text."""
        if self._pattern is None or not text:
            return False
        return self._pattern.search(text.lower()) is not None

    def find(self, text: str) -> List[str]:
        """Return the distinct terms found in text, sorted."""
        if self._pattern is None or not text:
            return []
        found = {match.group() for match in self._pattern.finditer(text.lower())}
        return sorted(found)

    # =========================================================
    # INTERNAL METHODS
    # =========================================================

    @staticmethod
    def _build_pattern(keyword_set: KeywordSet) -> Optional[Pattern[str]]:
        if not keyword_set.terms:
            return None
        # Longest first so overlapping terms report the most specific one
        ordered = sorted(keyword_set.terms, key=lambda term: (-len(term), term))
        alternation = "|".join(re.escape(term) for term in ordered)
        return re.compile(alternation, re.IGNORECASE)
