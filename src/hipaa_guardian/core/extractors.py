"""
Text extractors for the supported file formats.

Each extractor implements a common interface that turns raw file bytes into
plain text for the risk engine. ``extract_text(path)`` is the single entry
point the engine depends on.

Failures are reported as ExtractionError (or UnsupportedFormatError when no
extractor handles the extension); the caller decides whether to skip the
file.
"""

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..exceptions import ExtractionError, UnsupportedFormatError
from .constants import (
    IMAGE_EXTENSIONS,
    IMAGE_PHI_FILENAME_TERMS,
    MAX_DECOMPRESSED_SIZE,
    MAX_DOCUMENT_PAGES,
    MAX_FILE_SIZE_BYTES,
    MAX_SPREADSHEET_ROWS,
    TEXT_EXTENSIONS,
)

logger = logging.getLogger(__name__)

_TEXT_ENCODINGS = ("utf-8", "utf-8-sig", "latin-1", "cp1252")


@dataclass
class ExtractionResult:
    """Result of text extraction from a file."""
    text: str
    pages: int = 1
    warnings: List[str] = field(default_factory=list)  # Non-fatal issues


def _decode(content: bytes) -> Optional[str]:
    """Decode bytes with the first encoding that works."""
    for encoding in _TEXT_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    return None


def _check_extracted_size(total_chars: int) -> None:
    if total_chars > MAX_DECOMPRESSED_SIZE:
        raise ValueError(
            f"Decompression bomb detected: extracted content exceeds "
            f"{MAX_DECOMPRESSED_SIZE // (1024*1024)}MB limit"
        )


class BaseExtractor(ABC):
    """Base class for format-specific extractors."""

    extensions: frozenset = frozenset()

    def can_handle(self, extension: str) -> bool:
        """
        Check if this extractor handles the file type.

        Args:
            extension: File extension (lowercase, with dot)
        """
        return extension in self.extensions

    @abstractmethod
    def extract(self, content: bytes, filename: str) -> ExtractionResult:
        """
        Extract text from file content.

        Args:
            content: Raw file bytes
            filename: Path of the file (used for messages and metadata)

        Returns:
            ExtractionResult with extracted text
        """
        pass


class TextExtractor(BaseExtractor):
    """
    Plain text formats, read as-is.

    HTML is scanned as raw markup so identifiers in comments, attributes
    and scripts are seen, and finding line numbers match the file.
    """

    extensions = TEXT_EXTENSIONS

    def extract(self, content: bytes, filename: str) -> ExtractionResult:
        text = _decode(content)
        if text is None:
            return ExtractionResult(text="", warnings=["Failed to decode text file"])
        return ExtractionResult(text=text)


class PDFExtractor(BaseExtractor):
    """PDF text-layer extractor using PyMuPDF. No OCR."""

    extensions = frozenset({".pdf"})

    def extract(self, content: bytes, filename: str) -> ExtractionResult:
        import fitz  # PyMuPDF

        doc = fitz.open(stream=content, filetype="pdf")
        pages_text = []
        warnings = []
        try:
            for i, page in enumerate(doc):
                if i >= MAX_DOCUMENT_PAGES:
                    logger.warning(f"PDF exceeds {MAX_DOCUMENT_PAGES} page limit, truncating")
                    warnings.append(f"Document truncated at {MAX_DOCUMENT_PAGES} pages")
                    break
                pages_text.append(page.get_text())
        finally:
            doc.close()

        return ExtractionResult(
            text="\n".join(pages_text),
            pages=len(pages_text),
            warnings=warnings,
        )


class DOCXExtractor(BaseExtractor):
    """Word document extractor using python-docx (paragraphs and tables)."""

    extensions = frozenset({".docx"})

    def extract(self, content: bytes, filename: str) -> ExtractionResult:
        from docx import Document

        doc = Document(io.BytesIO(content))

        paragraphs = []
        total_chars = 0
        for para in doc.paragraphs:
            text = para.text.strip()
            if text:
                paragraphs.append(text)
                total_chars += len(text)
                _check_extracted_size(total_chars)

        for table in doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    paragraphs.append(" | ".join(cells))
                    total_chars += sum(len(cell) for cell in cells)
                _check_extracted_size(total_chars)

        return ExtractionResult(text="\n".join(paragraphs))


class XLSXExtractor(BaseExtractor):
    """Spreadsheet extractor: openpyxl for XLSX, xlrd for legacy XLS."""

    extensions = frozenset({".xlsx", ".xls"})

    def extract(self, content: bytes, filename: str) -> ExtractionResult:
        if Path(filename).suffix.lower() == ".xls":
            return self._extract_xls(content)
        return self._extract_xlsx(content)

    def _extract_xlsx(self, content: bytes) -> ExtractionResult:
        from openpyxl import load_workbook

        wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        all_text = []
        warnings = []
        total_chars = 0
        try:
            for sheet_name in wb.sheetnames:
                for row_count, row in enumerate(wb[sheet_name].iter_rows(values_only=True)):
                    if row_count >= MAX_SPREADSHEET_ROWS:
                        warnings.append(f"Sheet '{sheet_name}' truncated at {MAX_SPREADSHEET_ROWS} rows")
                        break
                    cells = [str(cell).strip() for cell in row if cell is not None]
                    if cells:
                        all_text.append(" ".join(cells))
                        total_chars += len(all_text[-1])
                        _check_extracted_size(total_chars)
            sheet_count = len(wb.sheetnames)
        finally:
            wb.close()

        return ExtractionResult(text="\n".join(all_text), pages=sheet_count, warnings=warnings)

    def _extract_xls(self, content: bytes) -> ExtractionResult:
        import xlrd

        wb = xlrd.open_workbook(file_contents=content)
        all_text = []
        warnings = []
        for sheet_idx in range(wb.nsheets):
            sheet = wb.sheet_by_index(sheet_idx)
            if sheet.nrows > MAX_SPREADSHEET_ROWS:
                warnings.append(f"Sheet '{sheet.name}' truncated at {MAX_SPREADSHEET_ROWS} rows")
            for row_idx in range(min(sheet.nrows, MAX_SPREADSHEET_ROWS)):
                cells = [str(cell).strip() for cell in sheet.row_values(row_idx) if cell]
                if cells:
                    all_text.append(" ".join(cells))

        return ExtractionResult(text="\n".join(all_text), pages=wb.nsheets, warnings=warnings)


class RTFExtractor(BaseExtractor):
    """RTF document extractor using striprtf."""

    extensions = frozenset({".rtf"})

    def extract(self, content: bytes, filename: str) -> ExtractionResult:
        from striprtf.striprtf import rtf_to_text

        rtf_content = _decode(content)
        if rtf_content is None:
            return ExtractionResult(text="", warnings=["Failed to decode RTF file"])
        return ExtractionResult(text=rtf_to_text(rtf_content))


class ImageExtractor(BaseExtractor):
    """
    Image metadata summary using Pillow.

    No OCR: the text handed to the engine describes the image (format,
    dimensions, path) and flags PHI indicator words found in the filename.
    """

    extensions = IMAGE_EXTENSIONS

    def extract(self, content: bytes, filename: str) -> ExtractionResult:
        from PIL import Image

        with Image.open(io.BytesIO(content)) as img:
            width, height = img.size
            image_format = img.format or "unknown"

        name = Path(filename).name
        lines = [
            f"Image Analysis: {name}",
            f"Format: {image_format} ({width}x{height} pixels)",
            f"File Path: {filename}",
        ]

        lower_name = name.lower()
        found_terms = [term for term in IMAGE_PHI_FILENAME_TERMS if term in lower_name]
        if found_terms:
            lines.append("")
            lines.append(f"Potential PHI Indicators in Filename: {', '.join(found_terms)}")

        return ExtractionResult(text="\n".join(lines) + "\n")


_EXTRACTORS: tuple[BaseExtractor, ...] = (
    TextExtractor(),
    PDFExtractor(),
    DOCXExtractor(),
    XLSXExtractor(),
    RTFExtractor(),
    ImageExtractor(),
)


def get_extractor(extension: str) -> Optional[BaseExtractor]:
    """
    Get an extractor for the given file extension.

    Returns:
        Extractor instance or None if the type is unsupported (e.g. legacy .doc)
    """
    extension = extension.lower()
    for extractor in _EXTRACTORS:
        if extractor.can_handle(extension):
            return extractor
    return None


def read_file_bytes(path: str | Path) -> bytes:
    """
    Read a file for scanning, refusing anything over MAX_FILE_SIZE_BYTES.

    Raises:
        ExtractionError: The file is too large or could not be read
    """
    path = Path(path)
    ext = path.suffix.lower()
    try:
        size = path.stat().st_size
        if size > MAX_FILE_SIZE_BYTES:
            raise ExtractionError(
                f"File exceeds {MAX_FILE_SIZE_BYTES // (1024*1024)}MB limit ({size} bytes)",
                file_path=str(path),
                file_type=ext,
            )
        return path.read_bytes()
    except OSError as e:
        raise ExtractionError(
            f"Cannot read file: {e.strerror or e}",
            file_path=str(path),
            file_type=ext,
        ) from e


def extract_text(path: str | Path) -> str:
    """
    Extract plain text from a file on disk.

    Raises:
        UnsupportedFormatError: No extractor handles the extension
        ExtractionError: The file could not be read or parsed
    """
    path = Path(path)
    ext = path.suffix.lower()

    extractor = get_extractor(ext)
    if extractor is None:
        raise UnsupportedFormatError(
            f"Unsupported format: {ext or '(none)'}",
            file_path=str(path),
            file_type=ext,
        )

    content = read_file_bytes(path)

    try:
        result = extractor.extract(content, str(path))
    except ImportError as e:
        raise ExtractionError(
            f"Extraction library not installed: {e.name or e}",
            file_path=str(path),
            file_type=ext,
        ) from e
    except Exception as e:
        # Third-party parsers raise their own exception types on corrupt input
        raise ExtractionError(
            f"Failed to parse {ext} file: {type(e).__name__}: {e}",
            file_path=str(path),
            file_type=ext,
        ) from e

    for warning in result.warnings:
        logger.debug(f"{path.name}: {warning}")
    return result.text
