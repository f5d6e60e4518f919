"""
Risk engine: the per-file and per-directory analysis API.

Composes text extraction, the PHI line scanner, the soft-risk keyword pass,
the document classifier and the scorer. The engine is stateless apart from
its collaborators, so one instance can be shared across threads.

Usage:
    engine = RiskEngine()
    profile = engine.analyze_file("intake_form.pdf")
    report = engine.analyze_directory("/srv/shared", progress_callback=print)
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import AnalysisError, ExtractionError
from .classifier import DocumentClassifier
from .constants import BINARY_DOCUMENT_EXTENSIONS
from .detectors.patterns import (
    PHI_PATTERNS,
    PatternDefinition,
    contains_sensitive_keyword,
    find_line_matches,
    redact,
)
from .extractors import extract_text as default_extract_text, read_file_bytes
from .filesystem import CancelCheck, iter_scannable_files
from .scoring.scorer import score
from .types import AuditReport, ClassificationResult, RiskProfile

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]
Extractor = Callable[[Path], str]

TRANSCRIPT_RULE = "-" * 40


class RiskEngine:
    """
    Turns files and text into risk profiles.

    Args:
        classifier: Document classifier used to bias scoring
        extractor: Callable returning plain text for a path; raises
            ExtractionError (or UnsupportedFormatError) on failure
        patterns: Ordered pattern table used for detection and redaction
    """

    def __init__(
        self,
        classifier: Optional[DocumentClassifier] = None,
        extractor: Optional[Extractor] = None,
        patterns: tuple[PatternDefinition, ...] = PHI_PATTERNS,
    ):
        self.classifier = classifier or DocumentClassifier()
        self._extract = extractor or default_extract_text
        self.patterns = patterns

    # -------------------------------------------------------------------------
    # Analysis
    # -------------------------------------------------------------------------

    def classify(self, text: str) -> ClassificationResult:
        return self.classifier.classify(text)

    def analyze_text(self, text: str, file_path: str = "") -> RiskProfile:
        """Score already-extracted text. ``file_path`` feeds the filename rule."""
        classification = self.classifier.classify(text)
        return score(
            file_path,
            find_line_matches(text, self.patterns),
            has_diagnosis=contains_sensitive_keyword(text),
            classification=classification,
        )

    def extract_text(self, path: str | Path) -> str:
        return self._extract(Path(path))

    def analyze_file(self, path: str | Path) -> RiskProfile:
        """
        Extract and score one file.

        Raises:
            ExtractionError: The file could not be turned into text
        """
        text = self.extract_text(path)
        return self.analyze_text(text, str(path))

    def analyze_directory(
        self,
        root: str | Path,
        progress_callback: Optional[ProgressCallback] = None,
        should_cancel: Optional[CancelCheck] = None,
    ) -> AuditReport:
        """
        Walk a tree and aggregate every supported file into an AuditReport.

        The progress callback fires once per visited file, before that file is
        analysed, whether or not it ends up with findings. A file that fails
        extraction still counts toward ``total_files`` but contributes no
        findings.

        Raises:
            AnalysisError: The root does not exist
            ScanCancelledError: should_cancel returned True during the walk
        """
        root = Path(root)
        if not root.exists():
            raise AnalysisError("Scan root does not exist", root=str(root))

        report = AuditReport()
        for path in iter_scannable_files(root, should_cancel):
            if progress_callback is not None:
                progress_callback(str(path))

            try:
                profile = self.analyze_file(path)
            except ExtractionError as e:
                logger.debug(f"Skipping {path}: {e.message}")
                report.count_unreadable()
                continue

            report.add(profile)

        logger.debug(
            f"Analysed {report.total_files} files under {root}: "
            f"risk={report.total_risk_score} critical={report.critical_count}"
        )
        return report

    # -------------------------------------------------------------------------
    # Redaction
    # -------------------------------------------------------------------------

    def redact_content(self, text: str) -> str:
        """Replace every identifier with its category placeholder."""
        return redact(text, self.patterns)

    def redact_bytes(self, content: bytes) -> bytes:
        # Undecodable bytes pass through unchanged
        text = content.decode("utf-8", errors="surrogateescape")
        return self.redact_content(text).encode("utf-8", errors="surrogateescape")

    def redact_file(self, path: str | Path) -> Path:
        """
        Write a sanitized copy next to the source file.

        Plain-text formats keep their extension (``<stem>_CLEANED<ext>``).
        Binary documents are extracted and written as a text transcript
        (``<stem>_CLEANED_TRANSCRIPT.txt``) with a banner naming the source.

        Returns:
            Path of the written copy

        Raises:
            ExtractionError: The source could not be read or extracted
        """
        path = Path(path)
        ext = path.suffix.lower()

        if ext in BINARY_DOCUMENT_EXTENSIONS:
            text = self.extract_text(path)
            output = path.with_name(f"{path.stem}_CLEANED_TRANSCRIPT.txt")
            banner = (
                f"SAFE EXPORT FROM {path.name}\n"
                "GENERATED BY HIPAA GUARDIAN\n"
                f"{TRANSCRIPT_RULE}\n\n"
            )
            output.write_text(banner + self.redact_content(text), encoding="utf-8")
        else:
            content = read_file_bytes(path)
            output = path.with_name(f"{path.stem}_CLEANED{path.suffix}")
            output.write_bytes(self.redact_bytes(content))

        logger.info(f"Wrote sanitized copy of {path.name} to {output}")
        return output
