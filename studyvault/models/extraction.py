"""Models produced by the text extraction engine."""

from typing import Literal

from pydantic import Field

from studyvault.models.base import CamelModel

ExtractorName = Literal["pdf", "text"]


class KeyInfo(CamelModel):
    """Statistics derived from cleaned text.

    Attributes:
        word_count: Number of whitespace-delimited tokens.
        reading_time: Estimated minutes at 200 words per minute, rounded up.
        potential_headings: Up to 10 short lines without a period.
        character_count: Length of the cleaned text.
        paragraph_count: Number of segments separated by a blank line.
    """

    word_count: int = Field(ge=0)
    reading_time: int = Field(ge=0)
    potential_headings: list[str] = Field(default_factory=list)
    character_count: int = Field(ge=0)
    paragraph_count: int = Field(ge=0)


class DocumentInfo(CamelModel):
    """Structural information parsed from a PDF.

    Attributes:
        pages: Total number of pages in the document.
        info: Document info dictionary (title, author, etc.).
        version: PDF format version from the file header.
    """

    pages: int = Field(ge=0)
    info: dict[str, str] = Field(default_factory=dict)
    version: str | None = None


class ProcessingResult(CamelModel):
    """Outcome of one extraction attempt, embedded in the file entry.

    A file entry carries ``None`` when no extraction was attempted. When
    present, ``success`` tells a failed attempt apart from a completed one.
    """

    success: bool
    extractor: ExtractorName
    key_info: KeyInfo | None = None
    document: DocumentInfo | None = None
    error: str | None = None


class ExtractionResult(CamelModel):
    """Extraction output for a single upload attempt.

    Attributes:
        success: Whether text was extracted.
        text: Extracted text, ``None`` on failure.
        key_info: Derived statistics on success.
        document: PDF structure on success, ``None`` for plain text.
        error: Failure description when ``success`` is false.
    """

    success: bool
    extractor: ExtractorName
    text: str | None = None
    key_info: KeyInfo | None = None
    document: DocumentInfo | None = None
    error: str | None = None

    @property
    def extracted_text(self) -> str:
        """Text to store with the file entry; empty when extraction failed."""
        return self.text if self.success and self.text is not None else ""

    def to_processing_result(self) -> ProcessingResult:
        return ProcessingResult(
            success=self.success,
            extractor=self.extractor,
            key_info=self.key_info,
            document=self.document,
            error=self.error,
        )
