"""
Risk scoring for HIPAA Guardian.

Usage:
    from hipaa_guardian.core.scoring import score

    profile = score("intake.txt", find_line_matches(text), has_diagnosis=True)
    print(f"Risk: {profile.risk_score} ({profile.risk_label.value})")
"""

from .scorer import (
    LINE_WEIGHTS,
    band_score,
    estimate_fine,
    get_weight,
    score,
)

__all__ = [
    "LINE_WEIGHTS",
    "band_score",
    "estimate_fine",
    "get_weight",
    "score",
]
