# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for category validation, YAML loading, and category snapshots."""

from __future__ import annotations

from pathlib import Path

import pytest

from riskwatch.categories.loader import load_categories_file, load_predefined_categories
from riskwatch.core.constants import CategoryType, PatternGroup, RiskFactor, Severity
from riskwatch.core.exceptions import ConfigurationError
from riskwatch.models.category import (
    CategoryKeyword,
    CategorySnapshot,
    ThreatCategory,
    parse_category,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_category_data(**overrides) -> dict:
    data = {
        "name": "Data Exfiltration",
        "base_risk_score": 70,
        "severity": "Critical",
        "alert_threshold": 70,
        "investigation_threshold": 85,
        "critical_threshold": 95,
        "risk_multipliers": {"after_hours": 1.3},
        "keywords": [
            {"keyword": "confidential", "weight": 1.5},
            {"keyword": "send to personal", "weight": 1.5},
        ],
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# Keyword model
# ---------------------------------------------------------------------------


class TestCategoryKeyword:
    def test_phrase_flag_defaults_from_whitespace(self):
        assert CategoryKeyword(keyword="wire transfer").is_phrase is True
        assert CategoryKeyword(keyword="invoice").is_phrase is False

    def test_explicit_phrase_flag_wins(self):
        assert CategoryKeyword(keyword="wire transfer", is_phrase=False).is_phrase is False

    def test_camel_case_fields(self):
        kw = CategoryKeyword.model_validate(
            {"keyword": "tarball", "isPhrase": False, "requiredContext": "upload"}
        )
        assert kw.required_context == "upload"

    def test_blank_required_context_is_none(self):
        assert CategoryKeyword(keyword="x", required_context="   ").required_context is None

    @pytest.mark.parametrize("weight", [0.0, 0.05, 5.5])
    def test_weight_out_of_range(self, weight):
        with pytest.raises(ValueError):
            CategoryKeyword(keyword="x", weight=weight)


# ---------------------------------------------------------------------------
# Category validation
# ---------------------------------------------------------------------------


class TestThreatCategoryValidation:
    def test_valid_category(self):
        category = parse_category(_make_category_data())
        assert category.severity == Severity.CRITICAL
        assert category.risk_multipliers == {RiskFactor.AFTER_HOURS: 1.3}
        assert category.type == CategoryType.CUSTOM
        assert category.llm_fallback is True

    def test_camel_case_keys_are_normalized(self):
        category = parse_category(
            {
                "name": "Vendor Kickbacks",
                "baseRiskScore": 85,
                "detectionPatterns": {"paymentPatterns": ["split_payment"]},
                "riskMultipliers": {"duplicateVendor": 2.0, "roundNumbers": 1.5},
            }
        )
        assert category.base_risk_score == 85
        assert category.detection_patterns == {PatternGroup.PAYMENT: ["split_payment"]}
        assert set(category.risk_multipliers) == {
            RiskFactor.DUPLICATE_VENDOR,
            RiskFactor.ROUND_NUMBERS,
        }

    def test_unordered_thresholds_rejected(self):
        with pytest.raises(ConfigurationError, match="thresholds"):
            parse_category(_make_category_data(alert_threshold=90, investigation_threshold=80))

    def test_equal_thresholds_allowed(self):
        category = parse_category(
            _make_category_data(
                alert_threshold=80, investigation_threshold=80, critical_threshold=80
            )
        )
        assert category.alert_threshold == category.critical_threshold

    @pytest.mark.parametrize("multiplier", [0.05, 10.5])
    def test_multiplier_out_of_range(self, multiplier):
        with pytest.raises(ConfigurationError, match="multiplier"):
            parse_category(_make_category_data(risk_multipliers={"after_hours": multiplier}))

    def test_unknown_multiplier_factor(self):
        with pytest.raises(ConfigurationError, match="unknown"):
            parse_category(_make_category_data(risk_multipliers={"moon_phase": 2.0}))

    def test_unknown_pattern_group(self):
        with pytest.raises(ConfigurationError):
            parse_category(_make_category_data(detection_patterns={"relationship_patterns": ["x"]}))

    def test_duplicate_keyword_case_insensitive(self):
        data = _make_category_data(
            keywords=[{"keyword": "Confidential"}, {"keyword": "confidential"}]
        )
        with pytest.raises(ConfigurationError, match="duplicate keyword"):
            parse_category(data)

    def test_too_many_keywords(self):
        data = _make_category_data(keywords=[{"keyword": f"kw{i}"} for i in range(51)])
        with pytest.raises(ConfigurationError):
            parse_category(data)

    def test_invalid_name_characters(self):
        with pytest.raises(ConfigurationError):
            parse_category(_make_category_data(name="Exfil; DROP TABLE"))

    def test_unknown_industry(self):
        with pytest.raises(ConfigurationError, match="industry"):
            parse_category(_make_category_data(industry="Piracy"))

    def test_industry_specific_requires_industry(self):
        with pytest.raises(ConfigurationError, match="industry"):
            parse_category(_make_category_data(type="industry_specific"))

    def test_blank_patterns_dropped(self):
        category = parse_category(
            _make_category_data(detection_patterns={"email_patterns": ["  ", ""]})
        )
        assert category.detection_patterns == {}

    def test_base_score_bounds(self):
        with pytest.raises(ConfigurationError):
            parse_category(_make_category_data(base_risk_score=101))

    def test_parse_category_passes_models_through(self):
        category = parse_category(_make_category_data())
        assert parse_category(category) is category

    def test_fingerprint_ignores_active_flag(self):
        category = parse_category(_make_category_data())
        inactive = category.model_copy(update={"is_active": False})
        assert category.fingerprint() == inactive.fingerprint()

    def test_fingerprint_changes_with_configuration(self):
        a = parse_category(_make_category_data())
        b = parse_category(_make_category_data(base_risk_score=71))
        assert a.fingerprint() != b.fingerprint()


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class TestCategorySnapshot:
    def test_only_active_categories_sorted_by_id(self):
        categories = [
            ThreatCategory(id=3, name="C"),
            ThreatCategory(id=1, name="A"),
            ThreatCategory(id=2, name="B", is_active=False),
        ]
        snapshot = CategorySnapshot.from_categories(categories)
        assert [c.id for c in snapshot.categories] == [1, 3]
        assert len(snapshot) == 2
        assert snapshot.get(3).name == "C"
        assert snapshot.get(2) is None

    def test_fingerprint_stable_for_same_content(self):
        categories = [ThreatCategory(id=1, name="A"), ThreatCategory(id=2, name="B")]
        first = CategorySnapshot.from_categories(categories)
        second = CategorySnapshot.from_categories(list(reversed(categories)))
        assert first.fingerprint == second.fingerprint

    def test_empty_snapshot(self):
        snapshot = CategorySnapshot.from_categories([])
        assert len(snapshot) == 0


# ---------------------------------------------------------------------------
# YAML loader
# ---------------------------------------------------------------------------


class TestCategoryLoader:
    def test_load_fixture_file(self, fixtures_dir: Path):
        categories = load_categories_file(fixtures_dir / "categories.yaml")
        names = [c.name for c in categories]
        assert names == ["Source Code Leak", "Gift Card Fraud"]
        gift = categories[1]
        assert gift.type == CategoryType.INDUSTRY_SPECIFIC
        assert gift.risk_multipliers == {RiskFactor.URGENT_PROCESSING: 1.4}
        assert gift.keywords[0].is_phrase is True

    def test_one_invalid_entry_rejects_file(self, fixtures_dir: Path):
        with pytest.raises(ConfigurationError, match="Broken Category"):
            load_categories_file(fixtures_dir / "invalid_categories.yaml")

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_categories_file(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("categories: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_categories_file(path)

    def test_top_level_must_be_list(self, tmp_path: Path):
        path = tmp_path / "scalar.yaml"
        path.write_text("just a string\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Expected a list"):
            load_categories_file(path)

    def test_duplicate_names_in_file(self, tmp_path: Path):
        path = tmp_path / "dupes.yaml"
        path.write_text("- name: Alpha\n- name: alpha\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="appears twice"):
            load_categories_file(path)

    def test_predefined_templates_are_valid(self):
        categories = load_predefined_categories()
        names = {c.name for c in categories}
        assert "Data Exfiltration" in names
        assert "Vendor Kickbacks" in names
        assert all(c.type != CategoryType.CUSTOM for c in categories)
        for category in categories:
            assert (
                category.alert_threshold
                <= category.investigation_threshold
                <= category.critical_threshold
            )

    def test_predefined_data_exfiltration(self):
        by_name = {c.name: c for c in load_predefined_categories()}
        exfil = by_name["Data Exfiltration"]
        assert exfil.base_risk_score == 80
        assert exfil.severity == Severity.CRITICAL
        assert (exfil.alert_threshold, exfil.investigation_threshold, exfil.critical_threshold) == (
            70,
            85,
            95,
        )
