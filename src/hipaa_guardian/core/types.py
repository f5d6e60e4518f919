"""
Core data types for the HIPAA Guardian risk engine.

This module defines the values that flow out of the engine:
- RiskLabel: discrete severity band of a file
- DocumentCategory: classifier output category
- RiskProfile: one file's immutable risk result
- AuditReport: aggregate over a directory walk
- ClassificationResult: transient classifier output
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Tuple

__all__ = [
    "RiskLabel",
    "DocumentCategory",
    "RiskProfile",
    "AuditReport",
    "ClassificationResult",
]


class RiskLabel(str, Enum):
    """Risk band for a single file."""
    SAFE = "Safe"           # Score 0
    LOW = "Low"             # Score 1-49
    HIGH = "High"           # Score 50-100 before clamping
    CRITICAL = "CRITICAL"   # Pre-clamp score above 100


class DocumentCategory(str, Enum):
    """Predicted domain of a document."""
    MEDICAL = "Medical"
    FINANCIAL = "Financial"
    GENERIC = "Generic"


@dataclass(frozen=True)
class ClassificationResult:
    """Classifier output. Never persisted."""
    category: DocumentCategory
    confidence: float  # 0-100

    def to_dict(self) -> dict[str, object]:
        return {"category": self.category.value, "confidence": self.confidence}


@dataclass(frozen=True)
class RiskProfile:
    """
    Risk result for one file.

    Built once per analysis and never mutated. ``risk_score`` is always the
    post-clamp value (0-100).
    """
    file_path: str
    risk_score: int = 0
    ssn_count: int = 0
    has_diagnosis: bool = False
    risk_label: RiskLabel = RiskLabel.SAFE
    estimated_fine: int = 0
    findings: Tuple[str, ...] = ()

    @property
    def is_clean(self) -> bool:
        return self.risk_score == 0

    def __repr__(self) -> str:
        return (
            f"RiskProfile(file_path={self.file_path!r}, risk_score={self.risk_score}, "
            f"risk_label={self.risk_label.value}, findings={len(self.findings)})"
        )

    def to_dict(self) -> dict[str, object]:
        """Convert to the camelCase dictionary used by reports and JSON output."""
        return {
            "filePath": self.file_path,
            "riskScore": self.risk_score,
            "ssnCount": self.ssn_count,
            "hasDiagnosis": self.has_diagnosis,
            "riskLabel": self.risk_label.value,
            "estimatedFine": self.estimated_fine,
            "findings": list(self.findings),
        }


@dataclass
class AuditReport:
    """
    Aggregate over a directory scan.

    Filled in incrementally while the tree is walked; whatever was folded in
    when the walk ends (or is cancelled) is the final report.
    """
    total_files: int = 0
    total_risk_score: int = 0          # Sum of clamped per-file scores
    potential_liability: int = 0       # Sum of estimated fines
    top_offenders: List[RiskProfile] = field(default_factory=list)
    critical_count: int = 0

    def add(self, profile: RiskProfile) -> None:
        """Fold one analysed file into the report."""
        self.total_files += 1
        if profile.risk_score > 0:
            self.total_risk_score += profile.risk_score
            self.potential_liability += profile.estimated_fine
            self.top_offenders.append(profile)
            if profile.risk_label is RiskLabel.CRITICAL:
                self.critical_count += 1

    def count_unreadable(self) -> None:
        """Count a visited file that produced no profile (extraction failed)."""
        self.total_files += 1

    @property
    def is_clean(self) -> bool:
        return self.total_risk_score == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "totalRiskScore": self.total_risk_score,
            "potentialLiability": self.potential_liability,
            "topOffenders": [p.to_dict() for p in self.top_offenders],
            "criticalCount": self.critical_count,
        }
