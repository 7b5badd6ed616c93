"""Text extraction for uploaded documents.

Turns raw uploads into normalized text and reading statistics.

Responsibilities:
    - PDF text, page count, document info and version with pypdf
    - Verbatim UTF-8 decoding for plain text and markdown
    - Text cleaning and key-info derivation
    - Mimetype-based extractor selection with a wall-clock timeout
"""

from studyvault.parsing.extractors import (
    BaseExtractor,
    ExtractionEngine,
    ExtractorRegistry,
    PdfExtractor,
    PlainTextExtractor,
    RawExtraction,
)
from studyvault.parsing.pdf_parser import PDFContent, parse_pdf
from studyvault.parsing.text_cleaning import clean_text, extract_key_info

__all__ = [
    "BaseExtractor",
    "ExtractionEngine",
    "ExtractorRegistry",
    "PDFContent",
    "PdfExtractor",
    "PlainTextExtractor",
    "RawExtraction",
    "clean_text",
    "extract_key_info",
    "parse_pdf",
]
