"""
Tests for the command line interface.

Every invocation passes ``--log-level ERROR`` so log lines never mix with
JSON output.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from hipaa_guardian import __version__
from hipaa_guardian.__main__ import cli
from hipaa_guardian.cli.commands.schedule import _print_event
from hipaa_guardian.config import get_settings
from hipaa_guardian.storage import AuditEntry, Store

WORKED_EXAMPLE = "SSN: 123-45-6789, patient diagnosis: cancer"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner):
    def _invoke(*args):
        return runner.invoke(cli, ["--log-level", "ERROR", *[str(a) for a in args]])
    return _invoke


@pytest.fixture
def settings_store():
    """The store the CLI commands open, for seeding and inspection."""
    store = Store.from_settings(get_settings())
    yield store
    store.close()


class TestRoot:
    """Tests for the root group."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("analyze", "scan", "classify", "redact", "schedule", "history", "stats"):
            assert name in result.output


# =============================================================================
# ANALYSIS COMMANDS
# =============================================================================

class TestAnalyze:
    """Tests for ``analyze``."""

    def test_json(self, invoke, write_file):
        path = write_file("intake.txt", WORKED_EXAMPLE)
        result = invoke("analyze", path, "--json")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["riskLabel"] == "CRITICAL"
        assert data["riskScore"] == 100
        assert data["ssnCount"] == 1
        assert data["estimatedFine"] == 5100

    def test_human_output(self, invoke, write_file):
        result = invoke("analyze", write_file("intake.txt", WORKED_EXAMPLE))
        assert result.exit_code == 0, result.output
        assert "Risk Score: 100" in result.output
        assert "Line 1: 1 SSN(s) found" in result.output

    def test_unsupported_format(self, invoke, write_file):
        result = invoke("analyze", write_file("memo.doc", "x"))
        assert result.exit_code == 1
        assert "Unsupported format" in result.output

    def test_missing_file(self, invoke, tmp_path):
        assert invoke("analyze", tmp_path / "missing.txt").exit_code == 2


class TestClassify:
    """Tests for ``classify``."""

    def test_json(self, invoke, write_file):
        result = invoke("classify", write_file("dx.txt", "diagnosis"), "--json")
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"category": "Medical", "confidence": 100.0}

    def test_human_output(self, invoke, write_file):
        result = invoke("classify", write_file("memo.txt", "the quick brown fox"))
        assert result.exit_code == 0
        assert "Category:   Generic" in result.output
        assert "Confidence: 0.0%" in result.output


class TestRedact:
    """Tests for ``redact``."""

    def test_writes_cleaned_copy(self, invoke, write_file):
        path = write_file("notes.txt", WORKED_EXAMPLE)
        result = invoke("redact", path)

        assert result.exit_code == 0, result.output
        cleaned = path.with_name("notes_CLEANED.txt")
        assert "Sanitized copy written" in result.output
        assert "[REDACTED-SSN]" in cleaned.read_text(encoding="utf-8")

    def test_failure_sets_exit_code(self, invoke, write_file):
        good = write_file("good.txt", "123-45-6789")
        bad = write_file("bad.pdf", "not a pdf")
        result = invoke("redact", good, bad)

        assert result.exit_code == 1
        assert good.with_name("good_CLEANED.txt").exists()


class TestScan:
    """Tests for ``scan``."""

    def test_json_clean_with_certificate(self, invoke, clean_dir, tmp_path):
        cert = tmp_path / "out" / "cert.html"
        result = invoke("scan", clean_dir, "--json", "--report", cert)

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["totalFiles"] == 1
        assert data["totalRiskScore"] == 0
        assert data["report"] == str(cert)
        assert "CERTIFICATE OF COMPLIANCE" in cert.read_text(encoding="utf-8")

    def test_json_risky_with_audit_report(self, invoke, risky_dir, tmp_path):
        report = tmp_path / "out" / "audit.html"
        result = invoke("scan", risky_dir, "--json", "-r", report)

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["totalFiles"] == 2
        assert data["criticalCount"] == 1
        assert data["potentialLiability"] == 5100
        assert "notes.txt" in report.read_text(encoding="utf-8")

    def test_human_output(self, invoke, risky_dir):
        result = invoke("scan", risky_dir)
        assert result.exit_code == 0, result.output
        assert "Files scanned:" in result.output
        assert "Critical files:      1" in result.output

    def test_scan_does_not_touch_audit_trail(self, invoke, clean_dir, settings_store):
        invoke("scan", clean_dir, "--json")
        assert settings_store.get_audit_history() == []


# =============================================================================
# SCHEDULE AND HISTORY
# =============================================================================

class TestSchedule:
    """Tests for the ``schedule`` group."""

    def _show(self, invoke):
        result = invoke("schedule", "show", "--json")
        assert result.exit_code == 0, result.output
        return json.loads(result.output)

    def test_defaults(self, invoke):
        data = self._show(invoke)
        assert data["enabled"] is False
        assert data["scan_paths"] == []
        assert data["interval_seconds"] == 0
        assert data["next_run"] is None
        assert "audit_history" not in data

    def test_configure_schedule(self, invoke, clean_dir):
        assert invoke("schedule", "add-path", clean_dir).exit_code == 0
        assert invoke("schedule", "set-interval", "2", "days", "--at", "09:30", "--timezone", "UTC").exit_code == 0
        assert invoke("schedule", "enable").exit_code == 0

        data = self._show(invoke)
        assert data["enabled"] is True
        assert data["scan_paths"] == [str(Path(clean_dir).resolve())]
        assert data["interval_value"] == 2
        assert data["interval_unit"] == "days"
        assert data["interval_seconds"] == 2 * 86400
        assert data["time_of_day"] == "09:30"
        assert data["next_run"] is not None

        assert invoke("schedule", "disable").exit_code == 0
        assert self._show(invoke)["enabled"] is False

    def test_hours_interval_updates_legacy_field(self, invoke):
        assert invoke("schedule", "set-interval", "6").exit_code == 0
        data = self._show(invoke)
        assert data["interval_hours"] == 6
        assert data["interval_seconds"] == 6 * 3600

    def test_zero_interval_disables_timer(self, invoke, settings_store):
        assert invoke("schedule", "set-interval", "5", "hours").exit_code == 0
        assert invoke("schedule", "set-interval", "0", "days").exit_code == 0

        assert self._show(invoke)["interval_seconds"] == 0
        assert settings_store.load().interval_seconds() == 0

    def test_switching_units_drops_hours(self, invoke):
        invoke("schedule", "set-interval", "5", "hours")
        invoke("schedule", "set-interval", "1", "weeks")
        data = self._show(invoke)
        assert data["interval_hours"] == 0
        assert data["interval_seconds"] == 7 * 86400

    def test_add_path_twice(self, invoke, clean_dir):
        invoke("schedule", "add-path", clean_dir)
        result = invoke("schedule", "add-path", clean_dir)
        assert result.exit_code == 0
        assert "Already scheduled" in result.output

    def test_remove_path(self, invoke, clean_dir):
        invoke("schedule", "add-path", clean_dir)
        result = invoke("schedule", "remove-path", clean_dir)
        assert result.exit_code == 0
        assert self._show(invoke)["scan_paths"] == []

    def test_remove_unknown_path(self, invoke):
        result = invoke("schedule", "remove-path", "/not/scheduled")
        assert result.exit_code == 1
        assert "Not a scheduled path" in result.output

    def test_bad_time_of_day(self, invoke):
        result = invoke("schedule", "set-interval", "1", "days", "--at", "25:99")
        assert result.exit_code == 2

    def test_bad_unit(self, invoke):
        assert invoke("schedule", "set-interval", "1", "fortnights").exit_code == 2

    def test_show_human(self, invoke):
        result = invoke("schedule", "show")
        assert result.exit_code == 0
        assert "Interval:  not set" in result.output
        assert "(none)" in result.output


class TestHistoryAndStats:
    """Tests for ``history`` and ``stats``."""

    def test_empty_history(self, invoke):
        result = invoke("history", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output) == []

    def test_history_newest_first(self, invoke, settings_store):
        for n in (1, 2, 3):
            settings_store.add_audit_entry(AuditEntry.now(total_files=n, risk_score=0, user="tester"))

        result = invoke("history", "--json", "-n", "2")
        assert result.exit_code == 0
        assert [e["total_files"] for e in json.loads(result.output)] == [3, 2]

    def test_history_limit_is_bounded(self, invoke):
        assert invoke("history", "--limit", "51").exit_code == 2

    def test_stats(self, invoke, settings_store):
        settings_store.update_stats(12, 2, 700)
        result = invoke("stats", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "total_files_scanned": 12,
            "total_risks_found": 2,
            "total_liability": 700,
        }


class TestConfigShow:
    """Tests for ``config show``."""

    def test_shows_settings(self, invoke, tmp_path):
        result = invoke("config", "show")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["storage"]["data_dir"] == str(tmp_path / "guardian_data")


class TestForegroundEvents:
    """Tests for the foreground notification sink."""

    def test_complete_with_certificate(self, capsys):
        _print_event("scan:scheduled:complete", {
            "status": "PASSED",
            "total_files": 3,
            "risk_score": 0,
            "critical_count": 0,
            "risky_files": [],
            "certificate": "/tmp/cert.html",
        })
        out = capsys.readouterr().out
        assert "PASSED" in out
        assert "Certificate: /tmp/cert.html" in out

    def test_complete_counts_critical_files(self, capsys):
        _print_event("scan:scheduled:complete", {
            "status": "FAILED",
            "total_files": 2,
            "risk_score": 100,
            "critical_count": 1,
            "risky_files": [{"path": "/srv/notes.txt", "riskScore": 100, "findings": []}],
            "certificate": None,
        })
        out = capsys.readouterr().out
        assert "1 at-risk files (1 critical)" in out
        assert "Certificate" not in out

    def test_error(self, capsys):
        _print_event("scan:scheduled:error", {"error": "database is locked"})
        assert "database is locked" in capsys.readouterr().out
