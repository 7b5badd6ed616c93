"""Upload pipeline: validate, buffer, extract, store, index.

Each upload runs its phases strictly in order. Validation and buffering
happen before anything is stored, so a rejected or interrupted request
leaves no blob and no index entry behind. Extraction never fails an upload.
Once the blob is stored, a failed index commit is reported as partial
consistency and is neither retried nor rolled back.
"""

import asyncio
import logging
import posixpath
from typing import Protocol

from studyvault.config import AppConfig
from studyvault.errors import (
    BlobStorageError,
    ExtractionFailedError,
    InvalidFileTypeError,
    MissingFileError,
    PartialConsistencyError,
    PayloadTooLargeError,
    UploadFailedError,
)
from studyvault.models.extraction import ExtractionResult
from studyvault.models.profile import FileMetadataEntry, utcnow
from studyvault.parsing.extractors import ExtractionEngine
from studyvault.storage.blob_store import BlobInfo, BlobStore
from studyvault.storage.profile_store import ProfileStore

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("studyvault.audit")

READ_BLOCK_SIZE = 64 * 1024
DEFAULT_FILENAME = "upload"


class IncomingFile(Protocol):
    """The part of an uploaded multipart field the pipeline reads."""

    filename: str | None
    content_type: str | None

    async def read(self, size: int = -1) -> bytes: ...


def normalize_mimetype(content_type: str | None) -> str:
    """Strip parameters and lower-case a declared content type."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def safe_filename(original_name: str | None) -> str:
    """Reduce a client filename to its final path component."""
    name = posixpath.basename((original_name or "").replace("\\", "/")).strip()
    return name or DEFAULT_FILENAME


class UploadCoordinator:
    """Runs uploads and stateless extractions for authenticated principals."""

    def __init__(
        self,
        blob_store: BlobStore,
        profile_store: ProfileStore,
        extraction_engine: ExtractionEngine,
        config: AppConfig,
    ) -> None:
        self._blob_store = blob_store
        self._profile_store = profile_store
        self._extraction_engine = extraction_engine
        self._config = config

    async def upload(self, principal_id: str, file: IncomingFile | None) -> FileMetadataEntry:
        """Store a file and add it to the principal's index.

        Args:
            principal_id: Authenticated owner of the upload.
            file: Uploaded multipart field.

        Returns:
            The committed FileMetadataEntry.

        Raises:
            MissingFileError, InvalidFileTypeError, PayloadTooLargeError:
                Rejected before anything was stored.
            UploadFailedError: The blob could not be stored; safe to retry.
            PartialConsistencyError: The blob was stored but not indexed.
        """
        file, mimetype = self._validate(principal_id, file)
        data = await self._buffer(principal_id, file)

        original_name = file.filename or DEFAULT_FILENAME
        filename = safe_filename(file.filename)

        extraction = await self._extraction_engine.process(data, mimetype)
        if not extraction.success:
            logger.info(f"Extraction failed for {filename}, storing without text: {extraction.error}")

        blob = await self._store(principal_id, filename, original_name, mimetype, data)

        entry = FileMetadataEntry(
            id=blob.id,
            filename=blob.filename,
            original_name=original_name,
            mimetype=mimetype,
            extracted_text=extraction.extracted_text,
            processing_result=extraction.to_processing_result(),
        )

        try:
            await asyncio.to_thread(self._commit, principal_id, entry)
        except Exception as e:
            logger.exception(
                f"Blob {blob.id} stored but index commit failed for owner {principal_id}"
            )
            raise PartialConsistencyError(
                "File stored but failed to update the file index", blob_id=blob.id
            ) from e

        logger.info(
            f"Successfully ingested {filename} as {blob.id} "
            f"({blob.length} bytes, extraction {'ok' if extraction.success else 'failed'})"
        )
        return entry

    async def extract_only(self, principal_id: str, file: IncomingFile | None) -> ExtractionResult:
        """Extract text from a file without storing anything.

        Raises:
            MissingFileError, InvalidFileTypeError, PayloadTooLargeError:
                The file was rejected.
            ExtractionFailedError: The document could not be parsed.
        """
        file, mimetype = self._validate(principal_id, file)
        data = await self._buffer(principal_id, file)

        extraction = await self._extraction_engine.process(data, mimetype)
        if not extraction.success:
            raise ExtractionFailedError(extraction.error or "Failed to extract text")
        return extraction

    def _validate(
        self, principal_id: str, file: IncomingFile | None
    ) -> tuple[IncomingFile, str]:
        if file is None:
            audit_logger.info(f"Rejected upload from {principal_id}: no file")
            raise MissingFileError("No file uploaded")

        mimetype = normalize_mimetype(file.content_type)
        if mimetype not in self._config.allowed_mimetypes or not self._extraction_engine.supports(
            mimetype
        ):
            audit_logger.info(
                f"Rejected upload from {principal_id}: type {mimetype or 'unknown'} not allowed"
            )
            raise InvalidFileTypeError("Only PDF and text files are allowed")

        return file, mimetype

    async def _buffer(self, principal_id: str, file: IncomingFile) -> bytes:
        """Read the whole payload, stopping as soon as it exceeds the limit."""
        limit = self._config.max_upload_bytes
        buffer = bytearray()

        while True:
            block = await file.read(READ_BLOCK_SIZE)
            if not block:
                break
            buffer.extend(block)
            if len(buffer) > limit:
                audit_logger.info(
                    f"Rejected upload from {principal_id}: payload exceeds {limit} bytes"
                )
                size_mb = limit / (1024 * 1024)
                raise PayloadTooLargeError(f"File exceeds maximum allowed size ({size_mb:g}MB)")

        return bytes(buffer)

    async def _store(
        self,
        principal_id: str,
        filename: str,
        original_name: str,
        mimetype: str,
        data: bytes,
    ) -> BlobInfo:
        metadata = {
            "originalName": original_name,
            "uploadDate": utcnow().isoformat(),
        }
        try:
            return await asyncio.to_thread(
                self._blob_store.upload_from_bytes,
                filename,
                data,
                principal_id,
                mimetype,
                metadata,
            )
        except BlobStorageError as e:
            logger.exception(f"Failed to store upload {filename} for owner {principal_id}")
            raise UploadFailedError("Failed to upload file") from e

    def _commit(self, principal_id: str, entry: FileMetadataEntry) -> None:
        profile = self._profile_store.get(principal_id)
        profile.record_upload(entry)
        self._profile_store.save(profile)
