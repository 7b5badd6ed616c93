"""Chunked blob storage on top of SQLAlchemy.

Content is split into fixed-size chunks that share the object's id.
Uploads stream chunk by chunk and only become visible once the object
record is written on finish; downloads fetch one chunk at a time so a
response can be streamed without holding the whole object in memory.
"""

import logging
import uuid
from collections.abc import Iterator
from datetime import UTC, datetime
from types import TracebackType
from typing import Any

from pydantic import BaseModel, Field
from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import SQLAlchemyError

from studyvault.config import DEFAULT_CHUNK_SIZE
from studyvault.errors import BlobNotFoundError, BlobStorageError
from studyvault.storage.database import BlobChunkRecord, BlobFileRecord, create_session_factory

logger = logging.getLogger(__name__)


class BlobInfo(BaseModel):
    """Immutable description of a stored object.

    Attributes:
        id: Unique object id.
        filename: Stored filename.
        owner_id: Principal that created the object.
        mimetype: Declared content type.
        length: Size in bytes.
        chunk_size: Size of every chunk except possibly the last.
        chunk_count: Number of stored chunks.
        created_at: When the object was finalized.
        metadata: Free-form attributes supplied at upload.
    """

    id: str
    filename: str
    owner_id: str
    mimetype: str
    length: int = Field(ge=0)
    chunk_size: int = Field(ge=1)
    chunk_count: int = Field(ge=0)
    created_at: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, record: BlobFileRecord) -> "BlobInfo":
        return cls(
            id=record.id,
            filename=record.filename,
            owner_id=record.owner_id,
            mimetype=record.mimetype,
            length=record.length,
            chunk_size=record.chunk_size,
            chunk_count=record.chunk_count,
            created_at=record.created_at,
            metadata=record.extra or {},
        )


def _is_valid_id(blob_id: str) -> bool:
    try:
        return uuid.UUID(hex=blob_id).hex == blob_id
    except (ValueError, TypeError):
        return False


class BlobUpload:
    """Write handle for one object.

    Data passed to ``write`` is cut into fixed-size chunks and each full
    chunk is stored immediately. ``finish`` stores the final partial chunk
    and then the object record. Used as a context manager, the upload is
    aborted if the block raises.
    """

    def __init__(
        self,
        store: "BlobStore",
        filename: str,
        owner_id: str,
        mimetype: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.filename = filename
        self.owner_id = owner_id
        self.mimetype = mimetype
        self.metadata = dict(metadata or {})
        self._store = store
        self._buffer = bytearray()
        self._chunk_count = 0
        self._length = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes) -> None:
        """Append bytes to the object, storing every chunk that fills up.

        Raises:
            BlobStorageError: if the chunk cannot be stored. The upload is
                aborted before the error propagates.
        """
        if self._closed:
            raise BlobStorageError(f"Upload {self.id} is already closed")

        self._buffer.extend(data)
        self._length += len(data)

        chunk_size = self._store.chunk_size
        while len(self._buffer) >= chunk_size:
            self._flush_chunk(bytes(self._buffer[:chunk_size]))
            del self._buffer[:chunk_size]

    def finish(self) -> BlobInfo:
        """Store the remaining bytes and the object record.

        Returns:
            BlobInfo of the finalized object.

        Raises:
            BlobStorageError: if finalizing fails; no object becomes visible.
        """
        if self._closed:
            raise BlobStorageError(f"Upload {self.id} is already closed")

        if self._buffer:
            self._flush_chunk(bytes(self._buffer))
            self._buffer.clear()

        record = BlobFileRecord(
            id=self.id,
            filename=self.filename,
            owner_id=self.owner_id,
            mimetype=self.mimetype,
            length=self._length,
            chunk_size=self._store.chunk_size,
            chunk_count=self._chunk_count,
            created_at=datetime.now(UTC),
            extra=self.metadata,
        )
        try:
            with self._store.session_factory.begin() as session:
                session.add(record)
        except SQLAlchemyError as e:
            self.abort()
            raise BlobStorageError(f"Failed to finalize blob {self.id}: {e}") from e

        self._closed = True
        logger.debug(f"Stored blob {self.id} ({self._length} bytes, {self._chunk_count} chunks)")
        return BlobInfo.from_record(record)

    def abort(self) -> None:
        """Discard every chunk written so far."""
        if self._closed:
            return
        self._closed = True
        self._buffer.clear()
        try:
            with self._store.session_factory.begin() as session:
                session.execute(delete(BlobChunkRecord).where(BlobChunkRecord.file_id == self.id))
        except SQLAlchemyError as e:
            logger.error(f"Failed to discard chunks of aborted blob {self.id}: {e}")
            raise BlobStorageError(f"Failed to discard aborted blob {self.id}: {e}") from e
        logger.info(f"Aborted blob upload {self.id}")

    def _flush_chunk(self, data: bytes) -> None:
        try:
            with self._store.session_factory.begin() as session:
                session.add(BlobChunkRecord(file_id=self.id, n=self._chunk_count, data=data))
        except SQLAlchemyError as e:
            self.abort()
            raise BlobStorageError(
                f"Failed to write chunk {self._chunk_count} of blob {self.id}: {e}"
            ) from e
        self._chunk_count += 1

    def __enter__(self) -> "BlobUpload":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None and not self._closed:
            self.abort()


class BlobStore:
    """Chunked object storage with streaming write, read and delete.

    The store knows nothing about text or index entries; the owner id is
    recorded once, when the object is created.
    """

    def __init__(self, engine: Engine, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size
        self.session_factory = create_session_factory(engine)

    def begin_upload(
        self,
        filename: str,
        owner_id: str,
        mimetype: str,
        metadata: dict[str, Any] | None = None,
    ) -> BlobUpload:
        """Allocate a new object id and return its write handle."""
        return BlobUpload(self, filename, owner_id, mimetype, metadata)

    def upload_from_bytes(
        self,
        filename: str,
        data: bytes,
        owner_id: str,
        mimetype: str,
        metadata: dict[str, Any] | None = None,
    ) -> BlobInfo:
        """Store an in-memory payload as a new object.

        Raises:
            BlobStorageError: if any chunk or the object record fails to store.
        """
        view = memoryview(data)
        with self.begin_upload(filename, owner_id, mimetype, metadata) as upload:
            for offset in range(0, len(view), self.chunk_size):
                upload.write(bytes(view[offset : offset + self.chunk_size]))
            return upload.finish()

    def get_info(self, blob_id: str) -> BlobInfo | None:
        """Look up an object record.

        Returns:
            BlobInfo, or None if no finalized object has this id.

        Raises:
            BlobStorageError: if the lookup fails.
        """
        if not _is_valid_id(blob_id):
            return None
        try:
            with self.session_factory() as session:
                record = session.get(BlobFileRecord, blob_id)
                return BlobInfo.from_record(record) if record else None
        except SQLAlchemyError as e:
            raise BlobStorageError(f"Failed to look up blob {blob_id}: {e}") from e

    def open_download(self, blob_id: str) -> Iterator[bytes]:
        """Open a chunk stream for an object.

        The existence check runs immediately; chunks are fetched lazily, one
        per iteration step, in chunk order.

        Raises:
            BlobNotFoundError: if no object exists for ``blob_id``.
        """
        info = self.get_info(blob_id)
        if info is None:
            raise BlobNotFoundError(f"Blob {blob_id} not found")
        return self._iter_chunks(info)

    def read_bytes(self, blob_id: str) -> bytes:
        """Read a whole object into memory."""
        return b"".join(self.open_download(blob_id))

    def delete(self, blob_id: str) -> None:
        """Remove an object record and all of its chunks.

        Raises:
            BlobNotFoundError: if no object exists for ``blob_id``, including
                when it was already deleted.
            BlobStorageError: if the delete fails.
        """
        if not _is_valid_id(blob_id):
            raise BlobNotFoundError(f"Blob {blob_id} not found")
        try:
            with self.session_factory.begin() as session:
                result = session.execute(delete(BlobFileRecord).where(BlobFileRecord.id == blob_id))
                if result.rowcount == 0:
                    raise BlobNotFoundError(f"Blob {blob_id} not found")
                session.execute(delete(BlobChunkRecord).where(BlobChunkRecord.file_id == blob_id))
        except SQLAlchemyError as e:
            raise BlobStorageError(f"Failed to delete blob {blob_id}: {e}") from e
        logger.info(f"Deleted blob {blob_id}")

    def _iter_chunks(self, info: BlobInfo) -> Iterator[bytes]:
        for n in range(info.chunk_count):
            try:
                with self.session_factory() as session:
                    data = session.scalar(
                        select(BlobChunkRecord.data).where(
                            BlobChunkRecord.file_id == info.id,
                            BlobChunkRecord.n == n,
                        )
                    )
            except SQLAlchemyError as e:
                raise BlobStorageError(f"Failed to read chunk {n} of blob {info.id}: {e}") from e
            if data is None:
                raise BlobStorageError(f"Blob {info.id} is missing chunk {n}")
            yield data
