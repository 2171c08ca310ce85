"""
Scoring Engine - Table Provider.

============================================================
RESPONSIBILITY
============================================================
Loads the weight tables and keyword sets used for one run.

- Required tables fail the run (FatalLoadError)
- Optional tables degrade to empty with a warning
- Tables are built once per run and passed to the engine

============================================================
REQUIRED vs OPTIONAL
============================================================
Required (scoring is meaningless without them):
- advisory_committee weights
- submission_type weights
- high_value keywords

Optional (an empty table is a valid, if weaker, input):
- product_code weights
- cosmetic, diagnostic, therapeutic keywords

============================================================
SOURCE FORMAT
============================================================
    weights:
      advisory_committee:
        default: 0.2
        entries:
          "OR": 0.9
      product_code:
        "LLZ": 0.8          # flat mapping, default from config
    keywords:
      high_value: ["robotic", "navigation"]

============================================================
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from core.exceptions import FatalLoadError
from .config import ScoringConfig
from .keywords import KeywordMatcher, KeywordSet
from .weights import WeightTable


logger = logging.getLogger(__name__)


# ============================================================
# TABLE NAMES
# ============================================================

ADVISORY_COMMITTEE_TABLE = "advisory_committee"
PRODUCT_CODE_TABLE = "product_code"
SUBMISSION_TYPE_TABLE = "submission_type"

HIGH_VALUE_KEYWORDS = "high_value"
COSMETIC_KEYWORDS = "cosmetic"
DIAGNOSTIC_KEYWORDS = "diagnostic"
THERAPEUTIC_KEYWORDS = "therapeutic"


# ============================================================
# PROVIDER INTERFACE
# ============================================================


class TableProvider(ABC):
    """
    Source of weight tables and keyword sets.

    Subclasses implement weight_table() and keyword_set(); both
    raise FatalLoadError when the table is missing or malformed.
    The load_required_* / load_optional_* wrappers apply the
    fatal-vs-degrade policy.
    """

    source_name: str = "tables"

    @abstractmethod
    def weight_table(self, name: str, default: float) -> WeightTable:
        """Load a weight table or raise FatalLoadError."""
        pass

    @abstractmethod
    def keyword_set(self, name: str) -> KeywordSet:
        """Load a keyword set or raise FatalLoadError."""
        pass

    def load_required_weights(self, name: str, default: float) -> WeightTable:
        table = self.weight_table(name, default)
        logger.info(f"Loaded weight table '{name}' ({len(table)} codes, default={table.default})")
        return table

    def load_optional_weights(self, name: str, default: float) -> WeightTable:
        try:
            return self.load_required_weights(name, default)
        except FatalLoadError as e:
            logger.warning(f"Optional weight table '{name}' unavailable, using defaults: {e.message}")
            return WeightTable.empty(name, default)

    def load_required_keywords(self, name: str) -> KeywordSet:
        keyword_set = self.keyword_set(name)
        logger.info(f"Loaded keyword set '{name}' ({len(keyword_set)} terms)")
        return keyword_set

    def load_optional_keywords(self, name: str) -> KeywordSet:
        try:
            return self.load_required_keywords(name)
        except FatalLoadError as e:
            logger.warning(f"Optional keyword set '{name}' unavailable, using empty set: {e.message}")
            return KeywordSet.empty(name)


# ============================================================
# MAPPING PROVIDER
# ============================================================


class MappingTableProvider(TableProvider):
    """Provider backed by an in-memory mapping (see SOURCE FORMAT)."""

    def __init__(self, data: Mapping[str, Any], source_name: str = "mapping") -> None:
        self._data = data
        self.source_name = source_name

    def _section(self, section: str) -> Mapping[str, Any]:
        value = self._data.get(section) if isinstance(self._data, Mapping) else None
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise FatalLoadError(
                f"Section '{section}' must be a mapping",
                source=self.source_name,
            )
        return value

    def weight_table(self, name: str, default: float) -> WeightTable:
        raw = self._section("weights").get(name)
        if raw is None:
            raise FatalLoadError(
                f"Weight table '{name}' is missing",
                table_name=name,
                source=self.source_name,
            )
        if not isinstance(raw, Mapping):
            raise FatalLoadError(
                f"Weight table '{name}' must be a mapping",
                table_name=name,
                source=self.source_name,
            )

        if "entries" in raw:
            entries = raw.get("entries") or {}
            table_default = raw.get("default", default)
        else:
            entries = raw
            table_default = default

        if not isinstance(entries, Mapping):
            raise FatalLoadError(
                f"Entries of weight table '{name}' must be a mapping",
                table_name=name,
                source=self.source_name,
            )

        try:
            return WeightTable.from_mapping(name, entries, default=table_default)
        except ValueError as e:
            raise FatalLoadError(
                f"Weight table '{name}' is malformed: {e}",
                table_name=name,
                source=self.source_name,
                cause=e,
            ) from e

    def keyword_set(self, name: str) -> KeywordSet:
        raw = self._section("keywords").get(name)
        if raw is None:
            raise FatalLoadError(
                f"Keyword set '{name}' is missing",
                table_name=name,
                source=self.source_name,
            )
        if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple, set, frozenset)):
            raise FatalLoadError(
                f"Keyword set '{name}' must be a list of terms",
                table_name=name,
                source=self.source_name,
            )

        try:
            return KeywordSet.from_terms(name, raw)
        except ValueError as e:
            raise FatalLoadError(
                f"Keyword set '{name}' is malformed: {e}",
                table_name=name,
                source=self.source_name,
                cause=e,
            ) from e


# ============================================================
# YAML PROVIDER
# ============================================================


class YamlTableProvider(MappingTableProvider):
    """
    Provider backed by a YAML file.

    The file is read on first use. An unreadable or unparsable
    file makes every lookup fail, which is fatal for required
    tables and degrades optional ones.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        self._load_error: Optional[FatalLoadError] = None
        self._loaded = False
        super().__init__({}, source_name=str(self._path))

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True

        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            self._load_error = FatalLoadError(
                f"Cannot read scoring tables: {e}",
                source=self.source_name,
                cause=e,
            )
            return
        except yaml.YAMLError as e:
            self._load_error = FatalLoadError(
                f"Cannot parse scoring tables: {e}",
                source=self.source_name,
                cause=e,
            )
            return

        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            self._load_error = FatalLoadError(
                "Scoring tables file must contain a mapping",
                source=self.source_name,
            )
            return

        self._data = data
        logger.debug(f"Read scoring tables from {self._path}")

    def weight_table(self, name: str, default: float) -> WeightTable:
        self._ensure_loaded()
        if self._load_error is not None:
            raise self._load_error
        return super().weight_table(name, default)

    def keyword_set(self, name: str) -> KeywordSet:
        self._ensure_loaded()
        if self._load_error is not None:
            raise self._load_error
        return super().keyword_set(name)


# ============================================================
# PER-RUN TABLE BUNDLE
# ============================================================


@dataclass(frozen=True)
class ScoringTables:
    """
    All tables the engine needs for one run.

    Matchers are compiled once here, not per record.
    """

    advisory_committee: WeightTable
    product_code: WeightTable
    submission_type: WeightTable
    high_value: KeywordSet
    cosmetic: KeywordSet
    diagnostic: KeywordSet
    therapeutic: KeywordSet
    _matchers: Dict[str, KeywordMatcher] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        matchers = {
            HIGH_VALUE_KEYWORDS: KeywordMatcher(self.high_value),
            COSMETIC_KEYWORDS: KeywordMatcher(self.cosmetic),
            DIAGNOSTIC_KEYWORDS: KeywordMatcher(self.diagnostic),
            THERAPEUTIC_KEYWORDS: KeywordMatcher(self.therapeutic),
        }
        object.__setattr__(self, "_matchers", matchers)

    def matches(self, keyword_set_name: str, text: str) -> bool:
        return self._matchers[keyword_set_name].matches(text)


def load_scoring_tables(
    provider: TableProvider,
    config: Optional[ScoringConfig] = None,
) -> ScoringTables:
    """
    Load every table for a run.

    Required tables are loaded first so a fatal failure happens
    before any optional table is touched.

    Raises:
        FatalLoadError: If a required table is missing or malformed
    """
    config = config or ScoringConfig()

    advisory_committee = provider.load_required_weights(
        ADVISORY_COMMITTEE_TABLE, config.default_ac_weight
    )
    submission_type = provider.load_required_weights(
        SUBMISSION_TYPE_TABLE, config.default_submission_type_weight
    )
    high_value = provider.load_required_keywords(HIGH_VALUE_KEYWORDS)

    product_code = provider.load_optional_weights(
        PRODUCT_CODE_TABLE, config.default_pc_weight
    )
    cosmetic = provider.load_optional_keywords(COSMETIC_KEYWORDS)
    diagnostic = provider.load_optional_keywords(DIAGNOSTIC_KEYWORDS)
    therapeutic = provider.load_optional_keywords(THERAPEUTIC_KEYWORDS)

    return ScoringTables(
        advisory_committee=advisory_committee,
        product_code=product_code,
        submission_type=submission_type,
        high_value=high_value,
        cosmetic=cosmetic,
        diagnostic=diagnostic,
        therapeutic=therapeutic,
    )
