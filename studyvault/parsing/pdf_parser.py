"""PDF parsing module using pypdf.

Extracts raw text, page count, document info and format version from PDF
bytes with header validation.
"""

import io
import logging
import re

from pydantic import BaseModel, Field
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from studyvault.errors import ExtractionFailedError
from studyvault.models.extraction import DocumentInfo

logger = logging.getLogger(__name__)

PDF_MAGIC_BYTES = b"%PDF"
_VERSION_PATTERN = re.compile(rb"%PDF-(\d+\.\d+)")


class PDFContent(BaseModel):
    """Extracted content from a PDF file.

    Attributes:
        text: Combined raw text content from all pages.
        pages: Total number of pages in the document.
        info: Document info dictionary (title, author, etc.).
        version: Format version declared in the file header.
    """

    text: str
    pages: int = Field(ge=0)
    info: dict[str, str]
    version: str | None = None

    def document_info(self) -> DocumentInfo:
        return DocumentInfo(pages=self.pages, info=self.info, version=self.version)


def _validate_pdf_bytes(file_content: bytes) -> None:
    """Validate PDF file content before parsing.

    Args:
        file_content: Raw bytes of the PDF file.

    Raises:
        ExtractionFailedError: If validation fails.
    """
    if not file_content:
        raise ExtractionFailedError("Empty file provided")

    if not file_content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise ExtractionFailedError("Invalid PDF: file does not start with PDF header")


def _read_version(file_content: bytes) -> str | None:
    match = _VERSION_PATTERN.search(file_content[:1024])
    return match.group(1).decode("ascii") if match else None


def _extract_info(reader: PdfReader) -> dict[str, str]:
    """Extract the document info dictionary from a PDF reader.

    Args:
        reader: Initialized PdfReader instance.

    Returns:
        Dictionary of info fields keyed without the leading slash.
    """
    info: dict[str, str] = {}

    try:
        if reader.metadata:
            for key in reader.metadata:
                value = reader.metadata[key]
                if value is None:
                    continue
                info[str(key).lstrip("/")] = str(value)
    except Exception as e:
        logger.warning(f"Failed to extract some document info: {e}")

    return info


def parse_pdf(file_content: bytes) -> PDFContent:
    """Parse a PDF file and extract its raw text content.

    Args:
        file_content: Raw bytes of the PDF file.

    Returns:
        PDFContent with raw text, page count, info and version.

    Raises:
        ExtractionFailedError: If the file is empty, not a PDF, or corrupt.
    """
    _validate_pdf_bytes(file_content)

    try:
        reader = PdfReader(io.BytesIO(file_content))
        pages = len(reader.pages)
    except PdfReadError as e:
        raise ExtractionFailedError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise ExtractionFailedError(f"Failed to read PDF: {e}") from e

    if pages == 0:
        raise ExtractionFailedError("PDF contains no pages")

    text_parts: list[str] = []
    for i, page in enumerate(reader.pages):
        try:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)
        except Exception as e:
            logger.warning(f"Failed to extract text from page {i + 1}: {e}")
            continue

    text = "\n\n".join(text_parts)

    if not text.strip():
        logger.warning("PDF contains no extractable text (may be scanned/image-based)")

    return PDFContent(
        text=text,
        pages=pages,
        info=_extract_info(reader),
        version=_read_version(file_content),
    )
