"""
HIPAA Guardian - local PHI risk scanner.

This package provides:
- Core: PHI detection, risk scoring and document classification
- Jobs: scheduled and manual directory scans with cancellation
- CLI: command-line scanning, redaction and schedule management
"""

__version__ = "1.0.0"
