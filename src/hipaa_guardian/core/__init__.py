"""
HIPAA Guardian core detection engine.

Usage:
    from hipaa_guardian.core import RiskEngine

    engine = RiskEngine()
    profile = engine.analyze_text("SSN: 123-45-6789, patient diagnosis: cancer")
    print(f"Risk: {profile.risk_score} ({profile.risk_label.value})")

    result = engine.classify("Invoice total due, payment received")
    print(result.category.value, result.confidence)
"""

from .types import (
    AuditReport,
    ClassificationResult,
    DocumentCategory,
    RiskLabel,
    RiskProfile,
)
from .classifier import DocumentClassifier
from .engine import RiskEngine
from .scoring import score

__all__ = [
    "AuditReport",
    "ClassificationResult",
    "DocumentCategory",
    "DocumentClassifier",
    "RiskEngine",
    "RiskLabel",
    "RiskProfile",
    "score",
]
