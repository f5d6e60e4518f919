"""
HIPAA Guardian Risk Scoring Engine.

Turns per-line pattern matches, the soft-risk keyword flag and the document
classification into a RiskProfile.

Formula:
    score  = Σ(count × LINE_WEIGHTS[type])            per-line pass
    score += ssn_count × SSN_WEIGHT                   final stage
    score += DIAGNOSIS_BONUS                          if sensitive keywords
    score += CLASSIFIER_BOOST                         if Medical (> 80%) with SSNs
    score += EXPOSED_FILENAME_PENALTY                 if marketing/public file with SSNs
    label  = band(score); risk_score = min(score, 100)
    fine   = ssn_count × FINE_PER_SSN + risk_score × FINE_PER_POINT

Boosts are large additive jumps because banding only cares about crossing
the 50 and 100 thresholds.
"""

import logging
import os
from typing import Dict, Iterable, List, Optional, Tuple

from ..detectors.patterns import LineMatch
from ..types import ClassificationResult, DocumentCategory, RiskLabel, RiskProfile

logger = logging.getLogger(__name__)

# =============================================================================
# CALIBRATION PARAMETERS
# =============================================================================

# Applied to ssn_count in the final stage only
SSN_WEIGHT = 10

DIAGNOSIS_BONUS = 50

# Medical document with SSN exposure
CLASSIFIER_BOOST = 300
CLASSIFIER_CONFIDENCE_THRESHOLD = 80

# Sensitive data sitting in a file named for wide distribution
EXPOSED_FILENAME_PENALTY = 200
EXPOSED_FILENAME_TERMS = ("marketing", "public")

# Classifier verdict is noted in findings above this confidence
CLASSIFIER_FINDING_THRESHOLD = 60

MAX_SCORE = 100
HIGH_THRESHOLD = 50

FINE_PER_SSN = 100
FINE_PER_POINT = 50

# =============================================================================
# PER-OCCURRENCE WEIGHTS
# =============================================================================

# SSN is absent on purpose: it is scored from ssn_count in the final stage
LINE_WEIGHTS: Dict[str, int] = {
    "CREDIT_CARD": 10,
    "PHONE": 5,
    "EMAIL": 5,
    "MRN": 15,
    "DATE": 10,
    "IP_ADDRESS": 3,
    "URL": 5,
    "ACCOUNT": 10,
    "LICENSE": 8,
    "VIN": 8,
    "ZIP": 3,
}

# =============================================================================
# FINDING MESSAGES
# =============================================================================

DIAGNOSIS_FINDING = "Contains Sensitive Medical Keywords"
CLASSIFIER_BOOST_FINDING = "CRITICAL: AI confirmed Medical Record with SSN Exposure"
EXPOSED_FILENAME_FINDING = "CRITICAL: Sensitive data in Marketing/Public file"


# =============================================================================
# SCORING FUNCTIONS
# =============================================================================

def get_weight(entity_type: str) -> int:
    """Per-occurrence weight for an entity type (0 for SSN and unknown types)."""
    return LINE_WEIGHTS.get(entity_type.upper(), 0)


def band_score(raw_score: int) -> Tuple[int, RiskLabel]:
    """
    Map a pre-clamp score to (stored score, label).

    Bands: 0 → Safe, 1-49 → Low, 50-100 → High, >100 → CRITICAL (clamped).
    """
    if raw_score > MAX_SCORE:
        return MAX_SCORE, RiskLabel.CRITICAL
    elif raw_score >= HIGH_THRESHOLD:
        return raw_score, RiskLabel.HIGH
    elif raw_score > 0:
        return raw_score, RiskLabel.LOW
    else:
        return 0, RiskLabel.SAFE


def estimate_fine(ssn_count: int, risk_score: int) -> int:
    """Estimated regulatory exposure in dollars."""
    return ssn_count * FINE_PER_SSN + risk_score * FINE_PER_POINT


def is_exposed_filename(file_path: str) -> bool:
    """Check if the base name suggests the file is meant for wide distribution."""
    name = os.path.basename(file_path).lower()
    return any(term in name for term in EXPOSED_FILENAME_TERMS)


def classification_finding(classification: Optional[ClassificationResult]) -> Optional[str]:
    """Human-readable note about a confident, non-generic classification."""
    if classification is None:
        return None
    if (
        classification.confidence > CLASSIFIER_FINDING_THRESHOLD
        and classification.category is not DocumentCategory.GENERIC
    ):
        return (
            f"AI Analysis: {int(classification.confidence)}% likelihood of being "
            f"{classification.category.value} Document"
        )
    return None


def score(
    file_path: str,
    line_matches: Iterable[LineMatch],
    has_diagnosis: bool = False,
    classification: Optional[ClassificationResult] = None,
) -> RiskProfile:
    """
    Build the RiskProfile for one file.

    Args:
        file_path: Source path, used for the filename-context penalty
        line_matches: Per-line pattern matches in visitation order
        has_diagnosis: Whether any soft-risk keyword was found
        classification: Classifier verdict for the document, if any

    Returns:
        Finalized, immutable RiskProfile

    Example:
        >>> profile = score("notes.txt", matches, has_diagnosis=True)
        >>> profile.risk_label
        <RiskLabel.HIGH: 'High'>
    """
    findings: List[str] = []

    note = classification_finding(classification)
    if note:
        findings.append(note)

    # Per-line pass
    raw_score = 0
    ssn_count = 0
    for match in line_matches:
        if match.entity_type == "SSN":
            ssn_count += match.count
        else:
            raw_score += match.count * get_weight(match.entity_type)
        findings.append(match.finding)

    # Final stage
    raw_score += ssn_count * SSN_WEIGHT

    if has_diagnosis:
        raw_score += DIAGNOSIS_BONUS
        findings.append(DIAGNOSIS_FINDING)

    if (
        classification is not None
        and classification.category is DocumentCategory.MEDICAL
        and classification.confidence > CLASSIFIER_CONFIDENCE_THRESHOLD
        and ssn_count > 0
    ):
        raw_score += CLASSIFIER_BOOST
        findings.append(CLASSIFIER_BOOST_FINDING)

    if ssn_count > 0 and is_exposed_filename(file_path):
        raw_score += EXPOSED_FILENAME_PENALTY
        findings.append(EXPOSED_FILENAME_FINDING)

    risk_score, label = band_score(raw_score)
    if label is RiskLabel.CRITICAL:
        logger.debug(f"Critical risk in {file_path} (raw score {raw_score})")

    return RiskProfile(
        file_path=file_path,
        risk_score=risk_score,
        ssn_count=ssn_count,
        has_diagnosis=has_diagnosis,
        risk_label=label,
        estimated_fine=estimate_fine(ssn_count, risk_score),
        findings=tuple(findings),
    )
