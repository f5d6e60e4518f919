"""
Tests for RiskEngine: text, file and directory analysis plus redaction.
"""

import pytest

from hipaa_guardian.core.engine import RiskEngine
from hipaa_guardian.core.scoring.scorer import CLASSIFIER_BOOST_FINDING, DIAGNOSIS_FINDING
from hipaa_guardian.core.types import RiskLabel
from hipaa_guardian.exceptions import (
    AnalysisError,
    ExtractionError,
    ScanCancelledError,
    UnsupportedFormatError,
)

WORKED_EXAMPLE = "SSN: 123-45-6789, patient diagnosis: cancer"


@pytest.fixture
def scan_tree(write_file, tmp_path):
    """A small tree with a mix of clean, risky and unsupported files."""
    write_file("tree/a.txt", "hello")
    write_file("tree/b.csv", "name,ssn\nJane,123-45-6789\n")
    write_file("tree/d.doc", "legacy word file")
    write_file("tree/sub/c.md", "Contact: jane@example.com")
    write_file("tree/ignored.exe", "123-45-6789")
    return tmp_path / "tree"


# =============================================================================
# TEXT ANALYSIS
# =============================================================================

class TestAnalyzeText:
    """Tests for scoring extracted text."""

    def test_worked_example_is_critical(self, engine):
        profile = engine.analyze_text(WORKED_EXAMPLE)
        assert profile.risk_label is RiskLabel.CRITICAL
        assert profile.risk_score == 100
        assert profile.ssn_count == 1
        assert profile.has_diagnosis
        assert profile.estimated_fine == 5100
        assert profile.findings[0].startswith("AI Analysis: 92% likelihood of being Medical")
        assert DIAGNOSIS_FINDING in profile.findings
        assert CLASSIFIER_BOOST_FINDING in profile.findings

    def test_clean_text(self, engine):
        profile = engine.analyze_text("Bring snacks")
        assert profile.is_clean
        assert profile.risk_label is RiskLabel.SAFE

    def test_email_only(self, engine):
        profile = engine.analyze_text("Contact: jane@example.com")
        assert profile.risk_score == 5
        assert profile.risk_label is RiskLabel.LOW

    def test_file_path_is_recorded(self, engine):
        profile = engine.analyze_text("hello", file_path="/x/y.txt")
        assert profile.file_path == "/x/y.txt"


class TestAnalyzeFile:
    """Tests for single-file analysis."""

    def test_text_file(self, engine, write_file):
        path = write_file("intake.txt", WORKED_EXAMPLE)
        profile = engine.analyze_file(path)
        assert profile.file_path == str(path)
        assert profile.risk_label is RiskLabel.CRITICAL

    def test_unsupported_format(self, engine, write_file):
        path = write_file("old.doc", "text")
        with pytest.raises(UnsupportedFormatError):
            engine.analyze_file(path)

    def test_missing_file(self, engine, tmp_path):
        with pytest.raises(ExtractionError):
            engine.analyze_file(tmp_path / "missing.txt")

    def test_custom_extractor(self, write_file):
        engine = RiskEngine(extractor=lambda path: "123-45-6789")
        profile = engine.analyze_file(write_file("any.txt", "ignored"))
        assert profile.ssn_count == 1


# =============================================================================
# DIRECTORY ANALYSIS
# =============================================================================

class TestAnalyzeDirectory:
    """Tests for directory aggregation."""

    def test_aggregates_tree(self, engine, scan_tree):
        report = engine.analyze_directory(scan_tree)

        assert report.total_files == 4
        assert report.total_risk_score == 105
        assert report.critical_count == 1
        assert report.potential_liability == 5350
        assert len(report.top_offenders) == 2
        assert not report.is_clean

    def test_progress_fires_per_file_in_sorted_order(self, engine, scan_tree):
        seen = []
        engine.analyze_directory(scan_tree, progress_callback=seen.append)
        names = [p.rsplit("/", 1)[-1].rsplit("\\", 1)[-1] for p in seen]
        assert names == ["a.txt", "b.csv", "d.doc", "c.md"]

    def test_missing_root(self, engine, tmp_path):
        with pytest.raises(AnalysisError) as exc_info:
            engine.analyze_directory(tmp_path / "nope")
        assert exc_info.value.root == str(tmp_path / "nope")

    def test_file_root(self, engine, write_file):
        path = write_file("single/notes.txt", WORKED_EXAMPLE)
        report = engine.analyze_directory(path)
        assert report.total_files == 1
        assert report.critical_count == 1

    def test_empty_directory(self, engine, tmp_path):
        (tmp_path / "empty").mkdir()
        report = engine.analyze_directory(tmp_path / "empty")
        assert report.total_files == 0
        assert report.is_clean

    def test_cancellation(self, engine, scan_tree):
        seen = []

        def should_cancel():
            return len(seen) >= 2

        with pytest.raises(ScanCancelledError):
            engine.analyze_directory(scan_tree, seen.append, should_cancel)
        assert len(seen) == 2

    def test_report_to_dict(self, engine, scan_tree):
        data = engine.analyze_directory(scan_tree).to_dict()
        assert data["totalFiles"] == 4
        assert data["criticalCount"] == 1
        assert data["topOffenders"][0]["riskLabel"] == "CRITICAL"


# =============================================================================
# REDACTION
# =============================================================================

class TestRedaction:
    """Tests for sanitized copies."""

    def test_redact_content(self, engine):
        assert engine.redact_content("SSN 123-45-6789") == "SSN [REDACTED-SSN]"

    def test_redact_bytes_keeps_undecodable_bytes(self, engine):
        content = b"\xff\xfe SSN 123-45-6789"
        result = engine.redact_bytes(content)
        assert result.startswith(b"\xff\xfe")
        assert b"[REDACTED-SSN]" in result

    def test_text_file_keeps_extension(self, engine, write_file):
        path = write_file("notes.csv", "name,ssn\nJane,123-45-6789\n")
        output = engine.redact_file(path)

        assert output.name == "notes_CLEANED.csv"
        assert output.read_text(encoding="utf-8") == "name,ssn\nJane,[REDACTED-SSN]\n"
        assert "123-45-6789" in path.read_text(encoding="utf-8")

    def test_redacted_copy_scores_lower(self, engine, write_file):
        path = write_file("intake.txt", WORKED_EXAMPLE)
        output = engine.redact_file(path)
        assert engine.analyze_file(output).ssn_count == 0

    def test_binary_document_becomes_transcript(self, engine, tmp_path):
        docx = pytest.importorskip("docx")
        document = docx.Document()
        document.add_paragraph("Patient SSN 123-45-6789")
        path = tmp_path / "intake.docx"
        document.save(str(path))

        output = engine.redact_file(path)

        assert output.name == "intake_CLEANED_TRANSCRIPT.txt"
        content = output.read_text(encoding="utf-8")
        assert content.startswith(
            "SAFE EXPORT FROM intake.docx\nGENERATED BY HIPAA GUARDIAN\n" + "-" * 40 + "\n\n"
        )
        assert "[REDACTED-SSN]" in content
        assert "123-45-6789" not in content

    def test_unreadable_binary_document(self, engine, write_file):
        path = write_file("broken.pdf", "not a pdf")
        with pytest.raises(ExtractionError):
            engine.redact_file(path)

    def test_missing_text_file(self, engine, tmp_path):
        with pytest.raises(ExtractionError):
            engine.redact_file(tmp_path / "missing.txt")
