"""Request and response schemas for the /files endpoints."""

from pydantic import Field

from studyvault.models.base import CamelModel
from studyvault.models.extraction import ProcessingResult
from studyvault.models.profile import FileMetadataEntry


class FileUploadResponse(CamelModel):
    """Response after a file was stored and indexed.

    Attributes:
        id: Blob id of the stored file.
        filename: Stored filename.
        original_name: Filename as sent by the client.
        mimetype: Declared content type.
        extracted_text: Extracted text, empty if extraction failed.
        processing_result: Extraction outcome.
    """

    id: str
    filename: str
    original_name: str
    mimetype: str
    extracted_text: str
    processing_result: ProcessingResult | None = None

    @classmethod
    def from_entry(cls, entry: FileMetadataEntry) -> "FileUploadResponse":
        return cls(
            id=entry.id,
            filename=entry.filename,
            original_name=entry.original_name,
            mimetype=entry.mimetype,
            extracted_text=entry.extracted_text,
            processing_result=entry.processing_result,
        )


class ExtractTextResponse(CamelModel):
    """Response of a text extraction that stores nothing."""

    extracted_text: str
    processing_result: ProcessingResult | None = None


class FileListResponse(CamelModel):
    """The caller's file index in upload order."""

    files: list[FileMetadataEntry] = Field(default_factory=list)


class DeleteResponse(CamelModel):
    success: bool = True
