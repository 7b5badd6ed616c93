"""File endpoints: upload, list, download, delete and extract-text.

Domain errors are translated into HTTPException here. Storage-class
failures carry only a generic message and a retry hint; the full detail
is in the server log.
"""

import asyncio
import logging
import re
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from fastapi.responses import StreamingResponse

from studyvault.api.dependencies import Coordinator, Index, PrincipalId
from studyvault.errors import ExtractionFailedError, StudyVaultError
from studyvault.models.schemas import (
    DeleteResponse,
    ExtractTextResponse,
    FileListResponse,
    FileUploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])

UploadField = Annotated[UploadFile | None, File(description="Document to upload")]

_GENERIC_MESSAGES = {
    "UploadFailed": "Failed to upload file",
    "PartialConsistency": "File uploaded but failed to update user data",
    "DeletePartialFailure": "Failed to delete file completely",
    "StorageFailure": "Storage error while processing the file",
}

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def _to_http_exception(error: StudyVaultError) -> HTTPException:
    """Map a domain error onto an HTTP error response."""
    detail: dict[str, object] = {"error": error.kind}

    if error.status_code >= 500:
        detail["message"] = _GENERIC_MESSAGES.get(error.kind, "Internal server error")
        detail["retryable"] = error.retryable
    else:
        detail["message"] = str(error)

    if isinstance(error, ExtractionFailedError):
        detail["message"] = "Failed to extract text from file"
        detail["reason"] = str(error)

    return HTTPException(status_code=error.status_code, detail=detail)


def _content_disposition(filename: str) -> str:
    """Build an attachment header value for a stored filename.

    Control characters become ``_`` in the ASCII fallback and are
    percent-encoded in ``filename*``, so no filename can break the header.
    """
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
    ascii_name = _CONTROL_CHARS.sub("_", ascii_name)
    ascii_name = ascii_name.replace("\\", "_").replace('"', "'")
    value = f'attachment; filename="{ascii_name}"'
    if ascii_name != filename:
        value += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return value


@router.post(
    "/upload",
    response_model=FileUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_file(
    principal_id: PrincipalId,
    coordinator: Coordinator,
    file: UploadField = None,
) -> FileUploadResponse:
    """Upload, extract and index a document.

    Args:
        principal_id: Authenticated owner.
        coordinator: Upload pipeline.
        file: The uploaded file (multipart/form-data field ``file``).

    Returns:
        FileUploadResponse with id, names, extracted text and processing result.

    Raises:
        400: Missing file, disallowed type or payload too large.
        500: Storage failed, or the file was stored but not indexed.
    """
    try:
        entry = await coordinator.upload(principal_id, file)
    except StudyVaultError as e:
        raise _to_http_exception(e) from e

    return FileUploadResponse.from_entry(entry)


@router.post("/extract-text", response_model=ExtractTextResponse)
async def extract_text(
    principal_id: PrincipalId,
    coordinator: Coordinator,
    file: UploadField = None,
) -> ExtractTextResponse:
    """Extract text from a document without storing it.

    Raises:
        400: Missing file, disallowed type, or the document could not be parsed.
    """
    try:
        result = await coordinator.extract_only(principal_id, file)
    except StudyVaultError as e:
        raise _to_http_exception(e) from e

    return ExtractTextResponse(
        extracted_text=result.extracted_text,
        processing_result=result.to_processing_result(),
    )


@router.get("", response_model=FileListResponse)
async def list_files(principal_id: PrincipalId, index: Index) -> FileListResponse:
    """List the caller's files in upload order.

    Raises:
        500: The file index could not be read.
    """
    try:
        files = await asyncio.to_thread(index.list_files, principal_id)
    except StudyVaultError as e:
        raise _to_http_exception(e) from e
    return FileListResponse(files=files)


@router.get("/{file_id}")
async def download_file(principal_id: PrincipalId, index: Index, file_id: str) -> StreamingResponse:
    """Stream a stored file back to its owner.

    Raises:
        403: The file belongs to another user.
        404: No file with this id.
    """
    try:
        info, chunks = await asyncio.to_thread(index.open_file, principal_id, file_id)
    except StudyVaultError as e:
        raise _to_http_exception(e) from e

    return StreamingResponse(
        chunks,
        media_type=info.mimetype,
        headers={
            "Content-Disposition": _content_disposition(
                info.metadata.get("originalName", info.filename)
            ),
            "Content-Length": str(info.length),
        },
    )


@router.delete("/{file_id}", response_model=DeleteResponse)
async def delete_file(principal_id: PrincipalId, index: Index, file_id: str) -> DeleteResponse:
    """Delete a stored file and its index entry.

    Raises:
        403: The file belongs to another user.
        404: No file with this id.
        500: Content or entry could not be removed completely.
    """
    try:
        await asyncio.to_thread(index.delete_file, principal_id, file_id)
    except StudyVaultError as e:
        raise _to_http_exception(e) from e

    return DeleteResponse(success=True)
