"""
Domain-specific exceptions for HIPAA Guardian.

Every error carries a human-readable message plus optional context and
technical details, so log lines stay actionable without a debugger.

Usage:
    from hipaa_guardian.exceptions import ExtractionError, ScanCancelledError

    try:
        text = extract_text(path)
    except ExtractionError as e:
        logger.debug(f"Skipping {path}: {e}")

Exception Hierarchy:
    GuardianError (base)
    ├── ConfigLoadError - schedule configuration could not be loaded
    ├── ScanCancelledError - scan stopped by the user
    ├── PathAccessError - permission / I/O failure on a single path
    ├── AnalysisError - one scan root failed for a non-cancellation reason
    ├── CertificateError - certificate or report issuance failed
    ├── StorageError - persistent store read/write failure
    └── ExtractionError - text extraction failed for one file
        └── UnsupportedFormatError - no extractor for the file type
"""

from typing import Any, Optional


class GuardianError(Exception):
    """
    Base exception for all HIPAA Guardian errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about what was being done
        details: Technical details (paths, counts, ...)
    """

    def __init__(
        self,
        message: str,
        context: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with context and details."""
        parts = [self.message]
        if self.context:
            parts.append(f"Context: {self.context}")
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            parts.append(f"Details: {detail_str}")
        return ". ".join(parts)


class ConfigLoadError(GuardianError):
    """
    Raised when the schedule configuration cannot be loaded.

    Fatal to ``ScanOrchestrator.start()``: with no configuration there is
    nothing safe to schedule.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if source:
            details["source"] = source
        super().__init__(message, details=details, **kwargs)
        self.source = source


class ScanCancelledError(GuardianError):
    """
    Raised when a scan is stopped by the user.

    Kept apart from every other walk/analysis failure so callers can report
    "stopped by user" instead of a generic error.
    """

    def __init__(self, message: str = "Scan cancelled by user", **kwargs):
        super().__init__(message, **kwargs)


class PathAccessError(GuardianError):
    """
    Raised when a file or directory cannot be read during a walk.

    Examples:
        - Permission denied on a sub-directory
        - Root path does not exist
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if path:
            details["path"] = path
        super().__init__(message, details=details, **kwargs)
        self.path = path


class AnalysisError(GuardianError):
    """
    Raised when analysis of one scan root fails for a reason other than
    cancellation. The orchestrator logs it and moves on to the next root.
    """

    def __init__(
        self,
        message: str,
        root: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if root:
            details["root"] = root
        super().__init__(message, details=details, **kwargs)
        self.root = root


class CertificateError(GuardianError):
    """
    Raised when a compliance certificate or audit report cannot be issued.

    Never fatal to a scan.
    """

    def __init__(
        self,
        message: str,
        report_type: Optional[str] = None,
        output_path: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if report_type:
            details["report_type"] = report_type
        if output_path:
            details["output_path"] = output_path
        super().__init__(message, details=details, **kwargs)
        self.report_type = report_type
        self.output_path = output_path


class StorageError(GuardianError):
    """Raised when the configuration/audit store cannot be read or written."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        super().__init__(message, details=details, **kwargs)
        self.operation = operation


class ExtractionError(GuardianError):
    """
    Raised when text extraction from a file fails.

    Examples:
        - Corrupted document
        - Unreadable file (permissions)
        - Missing extraction library

    The file then contributes zero findings; the scan carries on.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        file_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if file_path:
            details["file_path"] = file_path
        if file_type:
            details["file_type"] = file_type
        super().__init__(message, details=details, **kwargs)
        self.file_path = file_path
        self.file_type = file_type


class UnsupportedFormatError(ExtractionError):
    """Raised when no extractor handles the file's extension."""
