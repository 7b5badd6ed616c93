"""Pydantic models for the ingestion core and its API.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - KeyInfo, DocumentInfo: statistics and PDF structure from extraction
    - ExtractionResult, ProcessingResult: extraction outcome and its stored form
    - FileMetadataEntry: per-owner record referencing a stored blob
    - OwnerProfile: owner record with file index, streak and badges
    - FileUploadResponse, ExtractTextResponse, FileListResponse: API payloads
"""

from studyvault.models.extraction import (
    DocumentInfo,
    ExtractionResult,
    KeyInfo,
    ProcessingResult,
)
from studyvault.models.profile import Badge, FileMetadataEntry, OwnerProfile
from studyvault.models.schemas import (
    DeleteResponse,
    ExtractTextResponse,
    FileListResponse,
    FileUploadResponse,
)

__all__ = [
    "Badge",
    "DeleteResponse",
    "DocumentInfo",
    "ExtractTextResponse",
    "ExtractionResult",
    "FileListResponse",
    "FileMetadataEntry",
    "FileUploadResponse",
    "KeyInfo",
    "OwnerProfile",
    "ProcessingResult",
]
