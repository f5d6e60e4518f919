"""
Shared test configuration for HIPAA Guardian.

Every test runs against an isolated data directory so the real
~/.hipaa_guardian database is never touched.
"""

import logging
from pathlib import Path

import pytest

from hipaa_guardian.config import get_settings, reload_settings
from hipaa_guardian.core.engine import RiskEngine
from hipaa_guardian.storage import Store

# =============================================================================
# SAMPLE TEXT
# =============================================================================

# SSN plus two soft-risk keywords
WORKED_EXAMPLE = "SSN: 123-45-6789, patient diagnosis: cancer"

CLEAN_TEXT = "Quarterly team offsite agenda.\nBring snacks and a laptop.\n"


# =============================================================================
# ISOLATION
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a per-test data directory."""
    data_dir = tmp_path / "guardian_data"
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HIPAA_GUARDIAN_STORAGE__DATA_DIR", str(data_dir))
    monkeypatch.setenv("HIPAA_GUARDIAN_REPORTS__OUTPUT_DIR", str(tmp_path / "reports"))
    settings = reload_settings()
    yield settings
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def restore_root_logger():
    """CLI invocations reconfigure the root logger; put it back afterwards."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def engine():
    return RiskEngine()


@pytest.fixture
def store(tmp_path):
    s = Store(tmp_path / "db" / "guardian.db")
    yield s
    s.close()


@pytest.fixture
def write_file(tmp_path):
    """Write a text file under tmp_path and return its path."""
    def _write(relative: str, content: str = "") -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def clean_dir(write_file):
    """Directory holding a single file with no PHI."""
    path = write_file("clean/agenda.txt", CLEAN_TEXT)
    return path.parent


@pytest.fixture
def risky_dir(write_file):
    """Directory holding one file with an SSN and one clean file."""
    write_file("risky/agenda.txt", CLEAN_TEXT)
    path = write_file("risky/notes.txt", WORKED_EXAMPLE + "\n")
    return path.parent
