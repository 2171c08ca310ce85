"""
Tests for weight tables, keyword sets and table providers.

============================================================
TEST SCENARIOS
============================================================
1. WeightTable normalization and get_or_default
2. KeywordSet / KeywordMatcher case-insensitivity
3. Required tables are fatal, optional tables degrade
4. YAML provider (file on disk, bundled config)

============================================================
"""

from pathlib import Path

import pytest

from core.exceptions import FatalLoadError
from scoring_engine import (
    KeywordMatcher,
    KeywordSet,
    MappingTableProvider,
    WeightTable,
    YamlTableProvider,
    load_scoring_tables,
)


PROJECT_ROOT = Path(__file__).resolve().parents[2]
BUNDLED_TABLES = PROJECT_ROOT / "config" / "scoring_tables.yaml"


def full_data():
    return {
        "weights": {
            "advisory_committee": {"default": 0.2, "entries": {"OR": 0.9}},
            "submission_type": {"default": 0.6, "entries": {"SPECIAL": 0.45}},
            "product_code": {"MAX": 0.8},
        },
        "keywords": {
            "high_value": ["robotic"],
            "cosmetic": ["cosmetic"],
            "diagnostic": ["assay"],
            "therapeutic": ["therapeutic"],
        },
    }


# ============================================================
# TEST: WEIGHT TABLE
# ============================================================

class TestWeightTable:

    def test_lookup_is_case_insensitive(self):
        table = WeightTable.from_mapping("ac", {"or": 0.9}, default=0.2)

        assert table.get_or_default("OR") == 0.9
        assert table.get_or_default(" Or ") == 0.9
        assert "or" in table

    def test_missing_code_uses_default(self):
        table = WeightTable.from_mapping("ac", {"OR": 0.9}, default=0.2)

        assert table.get_or_default("XX") == 0.2
        assert table.get_or_default(None) == 0.2
        assert table.get_or_default("   ") == 0.2

    def test_duplicate_codes_rejected(self):
        with pytest.raises(ValueError, match="duplicate"):
            WeightTable.from_mapping("ac", {"OR": 0.9, "or": 0.5}, default=0.2)

    def test_non_numeric_weight_rejected(self):
        with pytest.raises(ValueError):
            WeightTable.from_mapping("ac", {"OR": "high"}, default=0.2)

    def test_boolean_weight_rejected(self):
        with pytest.raises(ValueError):
            WeightTable.from_mapping("ac", {"OR": True}, default=0.2)

    def test_entries_are_read_only(self):
        table = WeightTable.from_mapping("ac", {"OR": 0.9}, default=0.2)

        with pytest.raises(TypeError):
            table.entries["NE"] = 0.8

    def test_empty_table(self):
        table = WeightTable.empty("pc", 0.2)

        assert len(table) == 0
        assert table.get_or_default("MAX") == 0.2


# ============================================================
# TEST: KEYWORDS
# ============================================================

class TestKeywordMatcher:

    def test_case_insensitive_match(self):
        matcher = KeywordMatcher(KeywordSet.from_terms("hv", ["Robotic"]))

        assert matcher.matches("ROBOTIC arm") is True
        assert matcher.matches("manual arm") is False

    def test_terms_are_unique_and_lowercased(self):
        keyword_set = KeywordSet.from_terms("hv", ["Robotic", "robotic ", "", "  "])

        assert keyword_set.terms == frozenset({"robotic"})
        assert "ROBOTIC" in keyword_set

    def test_multi_word_terms(self):
        matcher = KeywordMatcher(KeywordSet.from_terms("hv", ["pedicle screw"]))

        assert matcher.matches("Posterior pedicle screw system") is True
        assert matcher.matches("pedicle and screw") is False

    def test_regex_characters_are_literal(self):
        matcher = KeywordMatcher(KeywordSet.from_terms("hv", ["c++ (v2)"]))

        assert matcher.matches("firmware c++ (v2) build") is True
        assert matcher.matches("firmware c build") is False

    def test_find_reports_distinct_terms(self):
        matcher = KeywordMatcher(KeywordSet.from_terms("hv", ["robotic", "navigation"]))

        assert matcher.find("Robotic navigation, robotic arm") == ["navigation", "robotic"]

    def test_empty_set_never_matches(self):
        matcher = KeywordMatcher(KeywordSet.empty("cosmetic"))

        assert matcher.matches("cosmetic") is False
        assert matcher.find("cosmetic") == []

    def test_non_string_term_rejected(self):
        with pytest.raises(ValueError):
            KeywordSet.from_terms("hv", ["robotic", 3])


# ============================================================
# TEST: TABLE LOADING POLICY
# ============================================================

class TestLoadScoringTables:

    def test_loads_every_table(self):
        tables = load_scoring_tables(MappingTableProvider(full_data()))

        assert tables.advisory_committee.get_or_default("OR") == 0.9
        assert tables.product_code.get_or_default("MAX") == 0.8
        assert tables.product_code.default == 0.2
        assert tables.submission_type.get_or_default("SPECIAL") == 0.45
        assert tables.matches("high_value", "robotic")

    @pytest.mark.parametrize("section,name", [
        ("weights", "advisory_committee"),
        ("weights", "submission_type"),
        ("keywords", "high_value"),
    ])
    def test_missing_required_table_is_fatal(self, section, name):
        data = full_data()
        del data[section][name]

        with pytest.raises(FatalLoadError) as exc_info:
            load_scoring_tables(MappingTableProvider(data))

        assert exc_info.value.table_name == name
        assert exc_info.value.should_abort_run is True

    def test_malformed_required_table_is_fatal(self):
        data = full_data()
        data["weights"]["advisory_committee"] = {"entries": {"OR": "very"}}

        with pytest.raises(FatalLoadError):
            load_scoring_tables(MappingTableProvider(data))

    def test_keyword_set_must_be_a_list(self):
        data = full_data()
        data["keywords"]["high_value"] = "robotic"

        with pytest.raises(FatalLoadError):
            load_scoring_tables(MappingTableProvider(data))

    @pytest.mark.parametrize("section,name", [
        ("weights", "product_code"),
        ("keywords", "cosmetic"),
        ("keywords", "diagnostic"),
        ("keywords", "therapeutic"),
    ])
    def test_missing_optional_table_degrades(self, section, name, caplog):
        data = full_data()
        del data[section][name]

        with caplog.at_level("WARNING"):
            tables = load_scoring_tables(MappingTableProvider(data))

        assert name in caplog.text
        if section == "weights":
            assert len(tables.product_code) == 0
            assert tables.product_code.get_or_default("MAX") == 0.2
        else:
            assert tables.matches(name, "cosmetic assay therapeutic") is False


# ============================================================
# TEST: YAML PROVIDER
# ============================================================

class TestYamlTableProvider:

    def test_bundled_tables_load(self):
        tables = load_scoring_tables(YamlTableProvider(BUNDLED_TABLES))

        assert tables.advisory_committee.get_or_default("OR") == 0.9
        assert tables.advisory_committee.default == 0.2
        assert tables.submission_type.default == 0.6
        assert tables.matches("high_value", "Robotic-assisted pedicle screw placement")
        assert tables.matches("therapeutic", "for the treatment of pain")

    def test_missing_file_is_fatal(self, tmp_path):
        provider = YamlTableProvider(tmp_path / "absent.yaml")

        with pytest.raises(FatalLoadError):
            load_scoring_tables(provider)

    def test_invalid_yaml_is_fatal(self, tmp_path):
        path = tmp_path / "tables.yaml"
        path.write_text("weights: [unclosed\n", encoding="utf-8")

        with pytest.raises(FatalLoadError):
            load_scoring_tables(YamlTableProvider(path))

    def test_non_mapping_document_is_fatal(self, tmp_path):
        path = tmp_path / "tables.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(FatalLoadError):
            load_scoring_tables(YamlTableProvider(path))

    def test_optional_sections_may_be_absent(self, tmp_path):
        path = tmp_path / "tables.yaml"
        path.write_text(
            "weights:\n"
            "  advisory_committee: {default: 0.2, entries: {'OR': 0.9}}\n"
            "  submission_type: {default: 0.6, entries: {}}\n"
            "keywords:\n"
            "  high_value: [robotic]\n",
            encoding="utf-8",
        )

        tables = load_scoring_tables(YamlTableProvider(path))

        assert len(tables.product_code) == 0
        assert tables.matches("cosmetic", "cosmetic") is False
