"""
CLI command modules.

Commands are grouped by concern and registered on the root group in
``hipaa_guardian.__main__``.
"""

# Single-file analysis
from hipaa_guardian.cli.commands.analyze import analyze

# Document classification
from hipaa_guardian.cli.commands.classify import classify

# Configuration commands
from hipaa_guardian.cli.commands.config import config

# Audit trail and cumulative stats
from hipaa_guardian.cli.commands.history import history, stats

# Sanitized copies
from hipaa_guardian.cli.commands.redact import redact

# Directory audit
from hipaa_guardian.cli.commands.scan import scan

# Scheduled scans
from hipaa_guardian.cli.commands.schedule import schedule

__all__ = [
    "analyze",
    "classify",
    "config",
    "history",
    "redact",
    "scan",
    "schedule",
    "stats",
]
