"""
Detectors for HIPAA identifiers.

Exposes the ordered pattern table plus the line scanner and redactor built
on top of it.
"""

from .patterns import (
    PHI_PATTERNS,
    SOFT_RISK_KEYWORDS,
    LineMatch,
    PatternDefinition,
    contains_sensitive_keyword,
    find_line_matches,
    redact,
)

__all__ = [
    "PHI_PATTERNS",
    "SOFT_RISK_KEYWORDS",
    "LineMatch",
    "PatternDefinition",
    "contains_sensitive_keyword",
    "find_line_matches",
    "redact",
]
