"""
Tests for text extractors.

Binary fixtures are built in-test with the same libraries the extractors
read them with.
"""

import io

import pytest

from hipaa_guardian.core.extractors import (
    DOCXExtractor,
    ImageExtractor,
    TextExtractor,
    XLSXExtractor,
    extract_text,
    get_extractor,
    read_file_bytes,
)
from hipaa_guardian.exceptions import ExtractionError, UnsupportedFormatError


# =============================================================================
# DISPATCH
# =============================================================================

class TestGetExtractor:
    """Tests for extension dispatch."""

    @pytest.mark.parametrize("ext,cls", [
        (".txt", TextExtractor),
        (".CSV", TextExtractor),
        (".html", TextExtractor),
        (".docx", DOCXExtractor),
        (".xls", XLSXExtractor),
        (".png", ImageExtractor),
    ])
    def test_known_extensions(self, ext, cls):
        assert isinstance(get_extractor(ext), cls)

    @pytest.mark.parametrize("ext", [".doc", ".exe", ""])
    def test_unsupported(self, ext):
        assert get_extractor(ext) is None


# =============================================================================
# TEXT AND HTML
# =============================================================================

class TestTextExtraction:
    """Tests for plain text decoding."""

    def test_utf8(self, write_file):
        path = write_file("a.txt", "café 123-45-6789")
        assert extract_text(path) == "café 123-45-6789"

    def test_latin1_fallback(self, tmp_path):
        path = tmp_path / "legacy.txt"
        path.write_bytes("café".encode("latin-1"))
        assert extract_text(path) == "café"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ExtractionError) as exc_info:
            extract_text(tmp_path / "missing.txt")
        assert exc_info.value.file_type == ".txt"

    def test_unsupported(self, write_file):
        with pytest.raises(UnsupportedFormatError):
            extract_text(write_file("memo.doc", "x"))


class TestHTMLExtraction:
    """Tests for HTML, which is scanned as raw markup."""

    PAGE = (
        "<html><head><meta name=\"contact\" content=\"jdoe@clinic.org\"></head>\n"
        "<body><!-- SSN 123-45-6789 -->\n"
        "<a href=\"mailto:pat@x.com\">Contact</a></body></html>\n"
    )

    def test_markup_is_kept(self, write_file):
        assert extract_text(write_file("page.html", self.PAGE)) == self.PAGE

    def test_hidden_identifiers_are_scored(self, engine, write_file):
        profile = engine.analyze_file(write_file("page.html", self.PAGE))

        assert profile.ssn_count == 1
        assert profile.risk_score > 0
        assert "Line 1: 1 Email(s) found" in profile.findings
        assert "Line 2: 1 SSN(s) found" in profile.findings
        assert "Line 3: 1 Email(s) found" in profile.findings


# =============================================================================
# SIZE LIMITS
# =============================================================================

class TestSizeLimits:
    """Tests for the file size and decompressed text caps."""

    def test_oversized_file_is_refused(self, write_file, monkeypatch):
        monkeypatch.setattr("hipaa_guardian.core.extractors.MAX_FILE_SIZE_BYTES", 10)
        path = write_file("huge.log", "x" * 11)

        with pytest.raises(ExtractionError, match="limit"):
            extract_text(path)

    def test_file_at_limit_is_read(self, write_file, monkeypatch):
        monkeypatch.setattr("hipaa_guardian.core.extractors.MAX_FILE_SIZE_BYTES", 10)
        assert read_file_bytes(write_file("small.log", "x" * 10)) == b"x" * 10

    def test_oversized_file_is_not_redacted(self, engine, write_file, monkeypatch):
        monkeypatch.setattr("hipaa_guardian.core.extractors.MAX_FILE_SIZE_BYTES", 10)
        path = write_file("huge.txt", "123-45-6789 " * 2)

        with pytest.raises(ExtractionError):
            engine.redact_file(path)
        assert not path.with_name("huge_CLEANED.txt").exists()

    def test_docx_text_cap(self, monkeypatch):
        docx = pytest.importorskip("docx")
        monkeypatch.setattr("hipaa_guardian.core.extractors.MAX_DECOMPRESSED_SIZE", 20)
        document = docx.Document()
        document.add_paragraph("Discharge summary")
        document.add_paragraph("SSN 123-45-6789")
        buffer = io.BytesIO()
        document.save(buffer)

        with pytest.raises(ValueError, match="Decompression bomb"):
            DOCXExtractor().extract(buffer.getvalue(), "summary.docx")

    def test_xlsx_text_cap_becomes_extraction_error(self, tmp_path, monkeypatch):
        openpyxl = pytest.importorskip("openpyxl")
        monkeypatch.setattr("hipaa_guardian.core.extractors.MAX_DECOMPRESSED_SIZE", 10)
        wb = openpyxl.Workbook()
        wb.active.append(["Jane Doe", "123-45-6789"])
        path = tmp_path / "roster.xlsx"
        wb.save(path)

        with pytest.raises(ExtractionError, match="Decompression bomb"):
            extract_text(path)


# =============================================================================
# OFFICE DOCUMENTS
# =============================================================================

class TestDOCXExtraction:
    """Tests for Word documents."""

    def test_paragraphs_and_tables(self):
        docx = pytest.importorskip("docx")
        document = docx.Document()
        document.add_paragraph("Discharge summary")
        table = document.add_table(rows=1, cols=2)
        table.rows[0].cells[0].text = "SSN"
        table.rows[0].cells[1].text = "123-45-6789"
        buffer = io.BytesIO()
        document.save(buffer)

        result = DOCXExtractor().extract(buffer.getvalue(), "summary.docx")
        assert result.text == "Discharge summary\nSSN | 123-45-6789"


class TestXLSXExtraction:
    """Tests for spreadsheets."""

    def test_rows_are_joined(self, tmp_path):
        openpyxl = pytest.importorskip("openpyxl")
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(["Name", "SSN"])
        ws.append(["Jane", "123-45-6789"])
        path = tmp_path / "roster.xlsx"
        wb.save(path)

        assert extract_text(path) == "Name SSN\nJane 123-45-6789"


class TestPDFExtraction:
    """Tests for PDFs."""

    def test_corrupt_pdf(self, write_file):
        with pytest.raises(ExtractionError) as exc_info:
            extract_text(write_file("broken.pdf", "not really a pdf"))
        assert exc_info.value.file_type == ".pdf"

    def test_text_layer(self, tmp_path):
        fitz = pytest.importorskip("fitz")
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "SSN 123-45-6789")
        path = tmp_path / "scan.pdf"
        doc.save(str(path))
        doc.close()

        assert "123-45-6789" in extract_text(path)


# =============================================================================
# IMAGES
# =============================================================================

class TestImageExtraction:
    """Tests for the image metadata summary."""

    def _png(self, width=4, height=3):
        image_module = pytest.importorskip("PIL.Image")
        buffer = io.BytesIO()
        image_module.new("RGB", (width, height)).save(buffer, format="PNG")
        return buffer.getvalue()

    def test_summary_with_filename_indicators(self):
        result = ImageExtractor().extract(self._png(), "/scans/patient_xray.png")
        assert result.text == (
            "Image Analysis: patient_xray.png\n"
            "Format: PNG (4x3 pixels)\n"
            "File Path: /scans/patient_xray.png\n"
            "\n"
            "Potential PHI Indicators in Filename: patient, xray\n"
        )

    def test_summary_without_indicators(self):
        result = ImageExtractor().extract(self._png(), "holiday.png")
        assert "Potential PHI Indicators" not in result.text
        assert result.text.endswith("File Path: holiday.png\n")

    def test_corrupt_image(self, write_file):
        with pytest.raises(ExtractionError):
            extract_text(write_file("photo.png", "not an image"))
