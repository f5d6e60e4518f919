"""
Core constants for the HIPAA Guardian detection engine.

Import from this module rather than hardcoding extension lists or limits.
"""

from pathlib import Path

__all__ = [
    # File types
    "TEXT_EXTENSIONS",
    "DOCUMENT_EXTENSIONS",
    "IMAGE_EXTENSIONS",
    "SCANNABLE_EXTENSIONS",
    "BINARY_DOCUMENT_EXTENSIONS",
    "is_scannable",
    # Extraction limits
    "MAX_FILE_SIZE_BYTES",
    "MAX_DOCUMENT_PAGES",
    "MAX_SPREADSHEET_ROWS",
    "MAX_DECOMPRESSED_SIZE",
    # Sensitive filename hints
    "IMAGE_PHI_FILENAME_TERMS",
]

# --- FILE TYPES ---

# Read as plain text (HTML included, as raw markup)
TEXT_EXTENSIONS = frozenset({
    ".txt", ".csv", ".log", ".md", ".json", ".xml", ".html",
})

# Every document type a scan visits
DOCUMENT_EXTENSIONS = frozenset({
    ".txt", ".csv", ".log", ".md", ".json", ".xml", ".html",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".rtf",
})

IMAGE_EXTENSIONS = frozenset({
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff", ".tif",
})

SCANNABLE_EXTENSIONS = DOCUMENT_EXTENSIONS | IMAGE_EXTENSIONS

# Redacted copies of these are written as a .txt transcript
BINARY_DOCUMENT_EXTENSIONS = frozenset({
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".rtf",
})


def is_scannable(path: str | Path) -> bool:
    """Check whether a file's extension is in the supported scan set."""
    return Path(path).suffix.lower() in SCANNABLE_EXTENSIONS


# --- EXTRACTION LIMITS ---
MAX_FILE_SIZE_BYTES = 100 * 1024 * 1024  # 100MB file limit
MAX_DOCUMENT_PAGES = 2000
MAX_SPREADSHEET_ROWS = 100_000

# Decompression bomb protection for ZIP-based Office formats
MAX_DECOMPRESSED_SIZE = 500 * 1024 * 1024  # 500MB of extracted text

# --- IMAGE METADATA ---
IMAGE_PHI_FILENAME_TERMS = (
    "patient", "medical", "xray", "mri", "ct-scan", "diagnosis", "hipaa",
)
