"""
Document domain classifier.

Estimates whether a document is Medical, Financial or Generic from a fixed,
hand-curated weight table (bag of words plus bigrams) and a handful of PHI
regexes. The result only biases risk scoring; it never gates detection.

Scoring:
    category_score = Σ unigram weights + Σ bigram weights
    medical_score += 10 × (distinct PHI patterns matched)
    confidence     = winner / total × 100
                     or 90 + 10·log10(winner / 10) when winner > 10
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple

from .types import ClassificationResult, DocumentCategory

logger = logging.getLogger(__name__)

HIGH_WEIGHT = 3.0
MEDIUM_WEIGHT = 1.5
BIGRAM_WEIGHT = 5.0
PHI_PATTERN_WEIGHT = 10.0

# Raw score above which confidence switches to log smoothing
SMOOTHING_THRESHOLD = 10.0

# Separators replaced with spaces before tokenizing
_SEPARATORS = str.maketrans({c: " " for c in ",\t\n\r.;:"})
_TOKEN_TRIM = "!?()[]{}'\""


@dataclass(frozen=True)
class Lexicon:
    """Weighted vocabulary for one category."""
    unigrams: Mapping[str, float] = field(default_factory=dict)
    bigrams: Mapping[str, float] = field(default_factory=dict)


def _weighted(high: Tuple[str, ...], medium: Tuple[str, ...]) -> Dict[str, float]:
    weights = {word: HIGH_WEIGHT for word in high}
    weights.update({word: MEDIUM_WEIGHT for word in medium})
    return weights


MEDICAL_LEXICON = Lexicon(
    unigrams=_weighted(
        high=(
            "patient", "diagnosis", "prescription", "physician", "hospital",
            "surgical", "pathology", "radiology", "oncology", "cardiology",
            "hipaa", "phi", "mrn", "medication", "procedure",
        ),
        medium=(
            "medical", "clinic", "treatment", "symptoms", "doctor", "nurse",
            "surgery", "anesthesia", "pediatric", "admitted", "discharged",
            "history", "rx", "insurance", "policy", "claim",
        ),
    ),
    bigrams={bigram: BIGRAM_WEIGHT for bigram in (
        "medical record", "patient history", "health information",
        "protected health", "medical history", "clinical notes",
        "prescription drug", "patient name", "date birth",
        "social security", "insurance number", "medical condition",
    )},
)

FINANCIAL_LEXICON = Lexicon(
    unigrams=_weighted(
        high=(
            "invoice", "payment", "transaction", "ledger", "revenue",
            "debit", "credit", "fiscal", "payroll", "receivable",
        ),
        medium=(
            "bill", "amount", "due", "balance", "account", "bank",
            "statement", "audit", "tax", "profit", "loss", "quarter",
            "salary", "expense",
        ),
    ),
    bigrams={bigram: BIGRAM_WEIGHT for bigram in (
        "bank account", "credit card", "account number",
        "payment method", "billing address", "purchase order",
        "financial statement", "tax id", "routing number",
    )},
)

LEXICONS: Dict[DocumentCategory, Lexicon] = {
    DocumentCategory.MEDICAL: MEDICAL_LEXICON,
    DocumentCategory.FINANCIAL: FINANCIAL_LEXICON,
}

# Rule-based PHI markers, each counted once per document toward Medical
PHI_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p, re.IGNORECASE | re.ASCII)
    for p in (
        r"\b\d{3}-\d{2}-\d{4}\b",                        # SSN
        r"\b[A-Z]{3}\d{6}\b",                            # MRN
        r"\bDOB:?\s*\d{1,2}/\d{1,2}/\d{2,4}\b",          # Date of birth
        r"\b(?:patient|pt)[\s#:]+\d+\b",                 # Patient ID
        r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b",   # Credit card
    )
)


def tokenize(text: str) -> List[str]:
    """Lowercase, replace separators with spaces, split on whitespace."""
    return text.lower().translate(_SEPARATORS).split()


class DocumentClassifier:
    """
    Stateless weighted-lexicon classifier.

    The scoring loop is category-agnostic: adding a category means adding a
    Lexicon to the table. Ties between Medical and Financial resolve to
    Financial (Medical wins only on a strict greater-than).

    Usage:
        classifier = DocumentClassifier()
        result = classifier.classify("Patient history: diagnosis pending")
        print(result.category.value, result.confidence)
    """

    def __init__(
        self,
        lexicons: Mapping[DocumentCategory, Lexicon] = LEXICONS,
        phi_patterns: Tuple[re.Pattern, ...] = PHI_PATTERNS,
    ):
        self._lexicons = lexicons
        self._phi_patterns = phi_patterns

    def category_scores(self, text: str) -> Dict[DocumentCategory, float]:
        """Raw weighted score per category."""
        tokens = tokenize(text)
        scores = {category: 0.0 for category in self._lexicons}
        if not tokens:
            return scores

        for token in tokens:
            word = token.strip(_TOKEN_TRIM)
            for category, lexicon in self._lexicons.items():
                scores[category] += lexicon.unigrams.get(word, 0.0)

        for first, second in zip(tokens, tokens[1:]):
            bigram = f"{first} {second}"
            for category, lexicon in self._lexicons.items():
                scores[category] += lexicon.bigrams.get(bigram, 0.0)

        phi_matches = sum(1 for pattern in self._phi_patterns if pattern.search(text))
        if phi_matches and DocumentCategory.MEDICAL in scores:
            scores[DocumentCategory.MEDICAL] += phi_matches * PHI_PATTERN_WEIGHT

        return scores

    def classify(self, text: str) -> ClassificationResult:
        """Predict the document category with a 0-100 confidence."""
        scores = self.category_scores(text)
        medical = scores.get(DocumentCategory.MEDICAL, 0.0)
        financial = scores.get(DocumentCategory.FINANCIAL, 0.0)

        total = medical + financial
        if total == 0:
            return ClassificationResult(DocumentCategory.GENERIC, 0.0)

        if medical > financial:
            category, winner = DocumentCategory.MEDICAL, medical
        else:
            category, winner = DocumentCategory.FINANCIAL, financial

        confidence = winner / total * 100
        if winner > SMOOTHING_THRESHOLD:
            confidence = 90 + 10 * math.log10(winner / SMOOTHING_THRESHOLD)
        confidence = min(confidence, 100.0)

        logger.debug(
            f"Classified as {category.value} ({confidence:.1f}%): "
            f"medical={medical:.1f} financial={financial:.1f}"
        )
        return ClassificationResult(category, confidence)
