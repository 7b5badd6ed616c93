"""Unit tests for the chunked blob store."""

import pytest
import pytest_check as check

from studyvault.errors import BlobNotFoundError, BlobStorageError
from studyvault.storage.blob_store import BlobStore
from tests.helpers import FailingSessions, count_blobs, count_chunks


class TestBlobUpload:
    """Tests for streaming writes."""

    def test_payload_split_into_fixed_chunks(self, engine) -> None:
        store = BlobStore(engine, chunk_size=4)

        info = store.upload_from_bytes("a.txt", b"0123456789", "owner", "text/plain")

        check.equal(info.length, 10)
        check.equal(info.chunk_count, 3)
        check.equal(info.chunk_size, 4)
        check.equal(count_chunks(store), 3)
        check.equal(list(store.open_download(info.id)), [b"0123", b"4567", b"89"])

    def test_streamed_writes_of_any_size(self, engine) -> None:
        store = BlobStore(engine, chunk_size=4)

        upload = store.begin_upload("b.txt", "owner", "text/plain", {"originalName": "b.txt"})
        for piece in (b"ab", b"cdefg", b"", b"hij"):
            upload.write(piece)
        info = upload.finish()

        check.equal(store.read_bytes(info.id), b"abcdefghij")
        check.equal(info.metadata, {"originalName": "b.txt"})
        check.equal(info.owner_id, "owner")

    def test_unfinished_upload_is_invisible(self, engine) -> None:
        store = BlobStore(engine, chunk_size=4)

        upload = store.begin_upload("c.txt", "owner", "text/plain")
        upload.write(b"12345678")

        check.is_none(store.get_info(upload.id))
        check.equal(sessions.begin_calls, 5)
        with pytest.raises(BlobNotFoundError):
            store.open_download(upload.id)

    def test_failure_inside_context_discards_chunks(self, engine) -> None:
        store = BlobStore(engine, chunk_size=4)

        with pytest.raises(RuntimeError):
            with store.begin_upload("d.txt", "owner", "text/plain") as upload:
                upload.write(b"12345678")
                raise RuntimeError("client went away")

        check.is_true(upload.closed)
        check.equal(count_chunks(store), 0)
        check.equal(count_blobs(store), 0)

    def test_chunk_write_failure_discards_upload(
        self, engine, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        store = BlobStore(engine, chunk_size=4)
        monkeypatch.setattr(store, "session_factory", FailingSessions(store.session_factory, 2))
        upload = store.begin_upload("f.txt", "owner", "text/plain")

        with pytest.raises(BlobStorageError):
            upload.write(b"0123456789ab")

        check.is_true(upload.closed)
        check.equal(count_chunks(store), 0)
        check.equal(count_blobs(store), 0)

    def test_record_write_failure_discards_upload(
        self, engine, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Every chunk is stored but the object record insert fails."""
        store = BlobStore(engine, chunk_size=4)
        sessions = FailingSessions(store.session_factory, 4)
        monkeypatch.setattr(store, "session_factory", sessions)
        upload = store.begin_upload("g.txt", "owner", "text/plain")
        upload.write(b"0123456789")

        with pytest.raises(BlobStorageError):
            upload.finish()

        check.is_true(upload.closed)
        check.equal(count_chunks(store), 0)
        check.equal(count_blobs(store), 0)
        check.is_none(store.get_info(upload.id))
        # chunk, chunk, last chunk, failed record, abort
        check.equal(sessions.begin_calls, 5)

    def test_write_after_finish_fails(self, blob_store: BlobStore) -> None:
        upload = blob_store.begin_upload("e.txt", "owner", "text/plain")
        upload.write(b"data")
        upload.finish()

        with pytest.raises(BlobStorageError):
            upload.write(b"more")

    def test_empty_payload(self, blob_store: BlobStore) -> None:
        info = blob_store.upload_from_bytes("empty.txt", b"", "owner", "text/plain")

        check.equal(info.length, 0)
        check.equal(info.chunk_count, 0)
        check.equal(blob_store.read_bytes(info.id), b"")

    def test_each_upload_gets_a_new_id(self, blob_store: BlobStore) -> None:
        first = blob_store.upload_from_bytes("same.txt", b"x", "owner", "text/plain")
        second = blob_store.upload_from_bytes("same.txt", b"x", "owner", "text/plain")

        check.not_equal(first.id, second.id)

    def test_rejects_non_positive_chunk_size(self, engine) -> None:
        with pytest.raises(ValueError):
            BlobStore(engine, chunk_size=0)


class TestBlobDownload:
    """Tests for lazy reads."""

    def test_unknown_id_raises_not_found(self, blob_store: BlobStore) -> None:
        with pytest.raises(BlobNotFoundError):
            blob_store.open_download("0" * 32)

    def test_malformed_id_raises_not_found(self, blob_store: BlobStore) -> None:
        check.is_none(blob_store.get_info("../etc/passwd"))
        with pytest.raises(BlobNotFoundError):
            blob_store.open_download("not-an-id")

    def test_chunks_fetched_lazily(self, engine) -> None:
        store = BlobStore(engine, chunk_size=2)
        info = store.upload_from_bytes("lazy.txt", b"abcdef", "owner", "text/plain")

        stream = store.open_download(info.id)

        check.equal(next(stream), b"ab")
        check.equal(next(stream), b"cd")
        check.equal(next(stream), b"ef")
        with pytest.raises(StopIteration):
            next(stream)


class TestBlobDelete:
    """Tests for delete semantics."""

    def test_delete_removes_record_and_chunks(self, blob_store: BlobStore) -> None:
        info = blob_store.upload_from_bytes("gone.txt", b"x" * 200, "owner", "text/plain")

        blob_store.delete(info.id)

        check.is_none(blob_store.get_info(info.id))
        check.equal(count_chunks(blob_store), 0)

    def test_second_delete_is_not_found(self, blob_store: BlobStore) -> None:
        info = blob_store.upload_from_bytes("twice.txt", b"x", "owner", "text/plain")
        blob_store.delete(info.id)

        with pytest.raises(BlobNotFoundError):
            blob_store.delete(info.id)

    def test_delete_leaves_other_blobs(self, blob_store: BlobStore) -> None:
        keep = blob_store.upload_from_bytes("keep.txt", b"keep me", "owner", "text/plain")
        drop = blob_store.upload_from_bytes("drop.txt", b"drop me", "owner", "text/plain")

        blob_store.delete(drop.id)

        check.equal(blob_store.read_bytes(keep.id), b"keep me")
