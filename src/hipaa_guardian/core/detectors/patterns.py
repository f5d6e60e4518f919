"""Pattern-based detectors for HIPAA identifiers.

Patterns are frozen dataclasses stored in a tuple, in the order they are
both reported and redacted: most specific first, generic ZIP codes last, so
broad patterns never re-match a placeholder or eat an already-redacted span.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternDefinition:
    """Immutable, hashable pattern definition."""

    pattern: re.Pattern[str]
    entity_type: str
    label: str            # Plural noun used in findings, e.g. "SSN(s)"
    placeholder: str      # Replacement token used by redaction


def _p(regex: str, entity_type: str, label: str, placeholder: str, flags: int = 0) -> PatternDefinition:
    """Shorthand for defining a pattern."""
    # ASCII \d and \b: Unicode digits are not identifiers here
    return PatternDefinition(
        pattern=re.compile(regex, re.ASCII | flags),
        entity_type=entity_type,
        label=label,
        placeholder=placeholder,
    )


# HIPAA Safe Harbor identifier numbers noted where they apply
SSN = _p(r"\b\d{3}-?\d{2}-?\d{4}\b", "SSN", "SSN(s)", "[REDACTED-SSN]")  # #7
CREDIT_CARD = _p(
    r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b",
    "CREDIT_CARD", "Credit Card(s)", "[REDACTED-CC]",
)
PHONE = _p(  # #4, #5
    r"\b(?:\+?1[\s.-]?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}\b",
    "PHONE", "Phone/Fax number(s)", "[REDACTED-PHONE]",
)
EMAIL = _p(  # #6
    r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
    "EMAIL", "Email(s)", "[REDACTED-EMAIL]",
)
MRN = _p(  # #8
    r"\b(?:MRN|M\.?R\.?N\.?)[:\s#]*[A-Z0-9]{6,12}\b|\b[A-Z]{2,3}\d{6,9}\b",
    "MRN", "Medical Record Number(s)", "[REDACTED-MRN]",
)
DATE = _p(  # #3
    r"\b(?:DOB|Date of Birth|Admitted|Discharged|Born|D\.O\.B\.?)\s*:?\s*\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b"
    r"|\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b",
    "DATE", "Date(s) (DOB/Admission/Discharge)", "[REDACTED-DATE]",
)
IP_ADDRESS = _p(r"\b(?:\d{1,3}\.){3}\d{1,3}\b", "IP_ADDRESS", "IP Address(es)", "[REDACTED-IP]")  # #15
URL = _p(  # #14
    r"\b(?:https?://|www\.)[-A-Za-z0-9+&@#/%?=~_|!:,.;]*[-A-Za-z0-9+&@#/%=~_|]",
    "URL", "URL(s)", "[REDACTED-URL]",
)
ACCOUNT = _p(  # #10
    r"\b(?:Account|Acct|Patient)\s*#?:?\s*[A-Z0-9]{6,15}\b",
    "ACCOUNT", "Account Number(s)", "[REDACTED-ACCOUNT]",
)
LICENSE = _p(  # #11
    r"\b(?:DL|Driver'?s? License|License)\s*#?:?\s*[A-Z0-9]{6,15}\b",
    "LICENSE", "License/ID Number(s)", "[REDACTED-LICENSE]",
)
VIN = _p(r"\b[A-HJ-NPR-Z0-9]{17}\b", "VIN", "Vehicle ID(s)", "[REDACTED-VIN]")  # #12
ZIP = _p(r"\b\d{5}(?:-\d{4})?\b", "ZIP", "ZIP Code(s)", "[REDACTED-ZIP]")  # #2

PHI_PATTERNS: tuple[PatternDefinition, ...] = (
    SSN,
    CREDIT_CARD,
    PHONE,
    EMAIL,
    MRN,
    DATE,
    IP_ADDRESS,
    URL,
    ACCOUNT,
    LICENSE,
    VIN,
    ZIP,
)

# Context words that mark a document as carrying health information
SOFT_RISK_KEYWORDS: tuple[str, ...] = (
    "hiv", "cancer", "psychotherapy", "suicide", "minor", "diagnosis", "patient",
)


@dataclass(frozen=True)
class LineMatch:
    """All matches of one pattern on one line."""

    definition: PatternDefinition
    line_number: int  # 1-based
    count: int

    @property
    def entity_type(self) -> str:
        return self.definition.entity_type

    @property
    def finding(self) -> str:
        return f"Line {self.line_number}: {self.count} {self.definition.label} found"


def find_line_matches(
    text: str,
    patterns: tuple[PatternDefinition, ...] = PHI_PATTERNS,
) -> Iterator[LineMatch]:
    """
    Scan text line by line.

    Yields one LineMatch per (line, pattern) pair with at least one match,
    lines in order and patterns in table order within a line. Lines break on
    LF only, with a trailing CR dropped, so form feeds and Unicode line
    separators stay inside their line.
    """
    for line_number, line in enumerate(text.split("\n"), start=1):
        line = line.removesuffix("\r")
        for definition in patterns:
            count = len(definition.pattern.findall(line))
            if count:
                yield LineMatch(definition=definition, line_number=line_number, count=count)


def contains_sensitive_keyword(text: str) -> bool:
    """Case-insensitive check for any soft-risk keyword."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in SOFT_RISK_KEYWORDS)


def redact(text: str, patterns: tuple[PatternDefinition, ...] = PHI_PATTERNS) -> str:
    """Replace every identifier with its category placeholder."""
    for definition in patterns:
        text = definition.pattern.sub(definition.placeholder, text)
    return text
