"""Per-owner file index with owner-only read and delete.

Ownership is decided by the owner id recorded on the blob when it was
created, so a blob that is stored but missing from its owner's index
(partial consistency) can still be read and deleted by that owner.
"""

import logging
from collections.abc import Iterator

from studyvault.errors import (
    AccessDeniedError,
    BlobNotFoundError,
    BlobStorageError,
    DeletePartialFailureError,
    EntryNotFoundError,
)
from studyvault.models.profile import FileMetadataEntry
from studyvault.storage.blob_store import BlobInfo, BlobStore
from studyvault.storage.profile_store import ProfileStore

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("studyvault.audit")


class FileIndex:
    """Lists, streams and deletes a principal's files."""

    def __init__(self, blob_store: BlobStore, profile_store: ProfileStore) -> None:
        self._blob_store = blob_store
        self._profile_store = profile_store

    def list_files(self, principal_id: str) -> list[FileMetadataEntry]:
        """Return the principal's entries in upload order.

        Raises:
            ProfileStorageError: The index could not be read.
        """
        return list(self._profile_store.get(principal_id).uploaded_files)

    def open_file(self, principal_id: str, file_id: str) -> tuple[BlobInfo, Iterator[bytes]]:
        """Authorize a download and open its chunk stream.

        Raises:
            EntryNotFoundError: No object exists for ``file_id``.
            AccessDeniedError: The object belongs to another principal.
        """
        info = self._authorize(principal_id, file_id, action="read")
        try:
            return info, self._blob_store.open_download(file_id)
        except BlobNotFoundError as e:
            raise EntryNotFoundError("File not found") from e

    def delete_file(self, principal_id: str, file_id: str) -> None:
        """Delete a blob and then its index entry.

        Raises:
            EntryNotFoundError: No object exists for ``file_id``.
            AccessDeniedError: The object belongs to another principal.
            DeletePartialFailureError: The blob or its entry could not be
                removed after the ownership check passed.
        """
        try:
            self._authorize(principal_id, file_id, action="delete")
        except EntryNotFoundError:
            self._purge_dangling_entry(principal_id, file_id)
            raise

        try:
            self._blob_store.delete(file_id)
        except BlobNotFoundError as e:
            # Deleted concurrently between the ownership check and now
            self._purge_dangling_entry(principal_id, file_id)
            raise EntryNotFoundError("File not found") from e
        except BlobStorageError as e:
            logger.exception(f"Failed to delete blob {file_id} for owner {principal_id}")
            raise DeletePartialFailureError(
                "Failed to delete file content; the file entry may still exist",
                blob_id=file_id,
            ) from e

        try:
            profile = self._profile_store.get(principal_id)
            if profile.remove_file(file_id):
                self._profile_store.save(profile)
            else:
                logger.warning(f"Deleted blob {file_id} had no index entry for {principal_id}")
        except Exception as e:
            logger.exception(f"Blob {file_id} deleted but index entry removal failed")
            raise DeletePartialFailureError(
                "File content deleted but failed to update the file index",
                blob_id=file_id,
            ) from e

        logger.info(f"Deleted file {file_id} for owner {principal_id}")

    def _authorize(self, principal_id: str, file_id: str, action: str) -> BlobInfo:
        info = self._blob_store.get_info(file_id)
        if info is None:
            raise EntryNotFoundError("File not found")
        if info.owner_id != principal_id:
            audit_logger.info(f"Denied {action} of {file_id} to {principal_id}")
            raise AccessDeniedError("Access denied")
        return info

    def _purge_dangling_entry(self, principal_id: str, file_id: str) -> None:
        """Drop an index entry whose blob no longer exists."""
        profile = self._profile_store.get(principal_id)
        if profile.remove_file(file_id):
            self._profile_store.save(profile)
            logger.warning(f"Removed index entry {file_id} of {principal_id}: blob is gone")
