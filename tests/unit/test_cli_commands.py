# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Unit tests for CLI commands against a temporary SQLite database."""

from __future__ import annotations

import logging

import pytest
from typer.testing import CliRunner

from riskwatch.cli.app import app

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at an empty database in a clean working directory."""
    import riskwatch.storage.database as db_mod

    db_mod._db = None
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RISKWATCH_DB_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("RISKWATCH_INTERNAL_DOMAINS", "corp.example")
    monkeypatch.setenv("RISKWATCH_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("COLUMNS", "200")
    monkeypatch.delenv("RISKWATCH_ANTHROPIC_API_KEY", raising=False)
    yield tmp_path
    # The CLI binds its log handler to the runner's captured stderr.
    logging.getLogger("riskwatch").handlers.clear()


def _invoke(*args: str):
    return runner.invoke(app, list(args))


def _load_fixtures(fixtures_dir) -> None:
    for args in (
        ("categories", "import", str(fixtures_dir / "categories.yaml")),
        ("ingest", "employees", str(fixtures_dir / "employees.jsonl")),
        ("ingest", "communications", str(fixtures_dir / "communications.jsonl")),
    ):
        result = _invoke(*args)
        assert result.exit_code == 0, result.output


# ---------------------------------------------------------------------------
# version and db
# ---------------------------------------------------------------------------


class TestVersionAndDb:
    def test_version(self, cli_env):
        result = _invoke("version")
        assert result.exit_code == 0
        assert "riskwatch v0.1.0" in result.output

    def test_db_init_and_stats(self, cli_env):
        result = _invoke("db", "init")
        assert result.exit_code == 0
        assert "Database initialized." in result.output
        assert (cli_env / "cli.db").exists()

        result = _invoke("db", "stats")
        assert result.exit_code == 0
        assert "threat_categories: 0 rows" in result.output
        assert "violation_status_history: 0 rows" in result.output


# ---------------------------------------------------------------------------
# categories
# ---------------------------------------------------------------------------


class TestCategoryCommands:
    def test_import_and_list(self, cli_env, fixtures_dir):
        result = _invoke("categories", "import", str(fixtures_dir / "categories.yaml"))
        assert result.exit_code == 0
        assert "Imported 2 categories" in result.output

        result = _invoke("categories", "list")
        assert result.exit_code == 0
        assert "Threat Categories" in result.output
        assert "Source Code Leak" in result.output
        assert "Gift Card Fraud" in result.output

    def test_import_rejects_existing_names(self, cli_env, fixtures_dir):
        _invoke("categories", "import", str(fixtures_dir / "categories.yaml"))
        result = _invoke("categories", "import", str(fixtures_dir / "categories.yaml"))
        assert result.exit_code == 1
        assert "already exist" in result.output

    def test_invalid_file_stores_nothing(self, cli_env, fixtures_dir):
        result = _invoke("categories", "import", str(fixtures_dir / "invalid_categories.yaml"))
        assert result.exit_code == 1
        assert "Broken Category" in result.output

        result = _invoke("categories", "list", "--all")
        assert "No categories found" in result.output

    def test_missing_file(self, cli_env):
        result = _invoke("categories", "import", "nope.yaml")
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_seed_is_idempotent(self, cli_env):
        first = _invoke("categories", "seed")
        assert first.exit_code == 0
        assert "Seeded 9 predefined categories." in first.output

        second = _invoke("categories", "seed")
        assert "Seeded 0 predefined categories." in second.output

    def test_disable_and_enable(self, cli_env, fixtures_dir):
        _invoke("categories", "import", str(fixtures_dir / "categories.yaml"))

        result = _invoke("categories", "disable", "1")
        assert result.exit_code == 0
        assert "Category 1 disabled." in result.output
        assert "Source Code Leak" not in _invoke("categories", "list").output
        assert "Source Code Leak" in _invoke("categories", "list", "--all").output

        assert "Category 1 enabled." in _invoke("categories", "enable", "1").output

    def test_disable_unknown(self, cli_env):
        result = _invoke("categories", "disable", "99")
        assert result.exit_code == 1
        assert "Error:" in result.output


# ---------------------------------------------------------------------------
# ingest
# ---------------------------------------------------------------------------


class TestIngestCommands:
    def test_ingest_fixtures(self, cli_env, fixtures_dir):
        result = _invoke("ingest", "employees", str(fixtures_dir / "employees.jsonl"))
        assert result.exit_code == 0
        assert "Imported 3 employees." in result.output

        result = _invoke("ingest", "communications", str(fixtures_dir / "communications.jsonl"))
        assert result.exit_code == 0
        assert "Communications added:   3" in result.output

        result = _invoke("ingest", "communications", str(fixtures_dir / "communications.jsonl"))
        assert "Communications added:   0" in result.output
        assert "Communications skipped: 3" in result.output

    def test_bad_line_aborts(self, cli_env, fixtures_dir):
        result = _invoke("ingest", "communications", str(fixtures_dir / "bad_communications.jsonl"))
        assert result.exit_code == 1
        assert "bad_communications.jsonl:2" in result.output


# ---------------------------------------------------------------------------
# analyze, employees, violations, anomalies
# ---------------------------------------------------------------------------


class TestAnalyzeCommands:
    def test_analyze_communication(self, cli_env, fixtures_dir):
        _load_fixtures(fixtures_dir)
        result = _invoke("analyze", "communication", "msg-001")
        assert result.exit_code == 0, result.output
        assert "risk=96.0" in result.output
        assert "category=Source Code Leak" in result.output
        assert "critical" in result.output

    def test_analyze_unknown_communication(self, cli_env, fixtures_dir):
        _load_fixtures(fixtures_dir)
        result = _invoke("analyze", "communication", "msg-404")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_analyze_all_then_jobs(self, cli_env, fixtures_dir):
        _load_fixtures(fixtures_dir)
        result = _invoke("analyze", "all")
        assert result.exit_code == 0, result.output
        assert ": completed" in result.output
        assert "Total:     3" in result.output
        assert "Employees refreshed: emp-001, emp-002" in result.output

        again = _invoke("analyze", "all")
        assert "Total:     0" in again.output

        jobs = _invoke("analyze", "jobs")
        assert "Analysis Jobs" in jobs.output
        assert "all_active" in jobs.output

    def test_analyze_employee(self, cli_env, fixtures_dir):
        _load_fixtures(fixtures_dir)
        result = _invoke("analyze", "employee", "emp-002")
        assert result.exit_code == 0, result.output
        assert "Succeeded: 1" in result.output

    def test_analyze_unknown_employee(self, cli_env, fixtures_dir):
        _load_fixtures(fixtures_dir)
        result = _invoke("analyze", "employee", "emp-404")
        assert result.exit_code == 1

    def test_analyze_pending(self, cli_env, fixtures_dir):
        _load_fixtures(fixtures_dir)
        result = _invoke("analyze", "pending", "--limit", "2")
        assert "Total:     2" in result.output


class TestEmployeeAndViolationCommands:
    def test_risk_ranking_after_analysis(self, cli_env, fixtures_dir):
        _load_fixtures(fixtures_dir)
        _invoke("analyze", "all")

        result = _invoke("employees", "risk")
        assert result.exit_code == 0
        assert "Employee Risk" in result.output
        assert "emp-001" in result.output

        result = _invoke("employees", "risk", "emp-002")
        assert result.exit_code == 0
        assert "Employee emp-002:" in result.output
        assert "from 1 active" in result.output

    def test_violation_lifecycle(self, cli_env, fixtures_dir):
        _load_fixtures(fixtures_dir)

        result = _invoke(
            "violations", "create", "emp-001",
            "--type", "Policy Breach",
            "--severity", "high",
            "--evidence", "badge tailgating",
        )
        assert result.exit_code == 0, result.output
        assert "Created violation 1 (High, Active)" in result.output

        result = _invoke(
            "violations", "transition", "1", "resolved", "--reason", "confirmed false alarm"
        )
        assert result.exit_code == 0, result.output
        assert "Violation 1: Active -> Resolved (version 2)" in result.output

        result = _invoke("violations", "transition", "1", "active", "--reason", "reopened")
        assert "Resolved -> Active (version 3)" in result.output

        history = _invoke("violations", "history", "1")
        assert "Violation 1 History" in history.output
        assert "confirmed false alarm" in history.output

        listing = _invoke("violations", "list", "--employee", "emp-001")
        assert "Policy Breach" in listing.output

    def test_transition_rejections(self, cli_env, fixtures_dir):
        _load_fixtures(fixtures_dir)
        _invoke("violations", "create", "emp-001", "--type", "Policy Breach")

        same = _invoke("violations", "transition", "1", "Active", "--reason", "noop")
        assert same.exit_code == 1
        assert "already" in same.output

        stale = _invoke(
            "violations", "transition", "1", "false_positive",
            "--reason", "benign", "--expected-version", "7",
        )
        assert stale.exit_code == 1

        bogus = _invoke("violations", "transition", "1", "Closed", "--reason", "x")
        assert bogus.exit_code == 1
        assert "Invalid value" in bogus.output

    def test_validate_without_api_key(self, cli_env, fixtures_dir):
        _load_fixtures(fixtures_dir)
        _invoke("violations", "create", "emp-001", "--type", "Policy Breach")

        result = _invoke("violations", "validate", "1")
        assert result.exit_code == 0
        assert "marked for manual review" in result.output

        listing = _invoke("violations", "list")
        assert "manual_override" in listing.output

    def test_anomalies_without_history(self, cli_env, fixtures_dir):
        _load_fixtures(fixtures_dir)
        result = _invoke("anomalies", "--refresh-metrics")
        assert result.exit_code == 0, result.output
        assert "Recorded 74 daily metric rows." in result.output
        assert "No anomalies detected." in result.output

    def test_anomalies_lists_risk_spikes(self, cli_env, fixtures_dir):
        _load_fixtures(fixtures_dir)
        _invoke("analyze", "all")

        result = _invoke("anomalies")
        assert result.exit_code == 0, result.output
        assert "Risk Spikes" in result.output
        assert "No anomalies detected." not in result.output
