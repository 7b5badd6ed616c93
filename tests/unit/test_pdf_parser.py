"""Unit tests for PDF parser module."""

import pytest
import pytest_check as check

from studyvault.errors import ExtractionFailedError
from studyvault.parsing.pdf_parser import parse_pdf
from tests.helpers import MALFORMED_PDF, build_pdf


class TestParsePdfValid:
    """Tests for successful PDF parsing."""

    def test_extracts_text_and_page_count(self) -> None:
        """Valid PDF returns text content and correct page count."""
        pdf = build_pdf([["Information security basics"], ["Second page"]])

        result = parse_pdf(pdf)

        check.is_in("Information security", result.text)
        check.is_in("Second page", result.text)
        check.equal(result.pages, 2)

    def test_returns_info_and_version(self) -> None:
        """Document info and header version are reported."""
        result = parse_pdf(build_pdf([["Body"]], title="Lecture Notes", version="1.7"))

        check.equal(result.info.get("Title"), "Lecture Notes")
        check.equal(result.version, "1.7")

        document = result.document_info()
        check.equal(document.pages, 1)
        check.equal(document.version, "1.7")

    def test_empty_page_pdf_succeeds(self) -> None:
        """PDF with an empty page parses without error."""
        result = parse_pdf(build_pdf([[]]))

        check.equal(result.pages, 1)
        check.equal(result.text.strip(), "")


class TestParsePdfRejection:
    """Tests for PDF validation and rejection."""

    def test_rejects_empty_bytes(self) -> None:
        """Empty bytes raises ExtractionFailedError."""
        with pytest.raises(ExtractionFailedError, match="Empty file"):
            parse_pdf(b"")

    def test_rejects_non_pdf_file(self) -> None:
        """Non-PDF content raises ExtractionFailedError."""
        with pytest.raises(ExtractionFailedError, match="Invalid PDF"):
            parse_pdf(b"This is not a real PDF file, just text")

    def test_rejects_truncated_pdf(self) -> None:
        """Truncated PDF raises ExtractionFailedError."""
        with pytest.raises(ExtractionFailedError, match="Corrupt|Failed"):
            parse_pdf(MALFORMED_PDF)
