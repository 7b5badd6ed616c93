"""Test helpers: an in-memory upload field and a minimal PDF writer."""

import io

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from studyvault.storage.blob_store import BlobStore
from studyvault.storage.database import BlobChunkRecord, BlobFileRecord


class FakeUpload:
    """Stands in for a multipart field with an async ``read``."""

    def __init__(
        self,
        data: bytes,
        filename: str | None = "notes.txt",
        content_type: str | None = "text/plain",
    ) -> None:
        self.filename = filename
        self.content_type = content_type
        self._stream = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def build_pdf(pages: list[list[str]], title: str | None = None, version: str = "1.4") -> bytes:
    """Write a small valid PDF with one text line per entry on each page.

    Args:
        pages: Lines of text for each page.
        title: Optional document info title.
        version: Header version.

    Returns:
        PDF file bytes with a correct cross-reference table.
    """
    objects: list[bytes] = []

    page_ids = [4 + 2 * i for i in range(len(pages))]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)

    objects.append(b"<< /Type /Catalog /Pages 2 0 R >>")
    objects.append(f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode())
    objects.append(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>")

    for page_id, lines in zip(page_ids, pages, strict=True):
        ops = ["BT", "/F1 12 Tf", "14 TL", "72 720 Td"]
        for line in lines:
            ops.append(f"({_escape(line)}) Tj T*")
        ops.append("ET")
        stream = "\n".join(ops).encode("latin-1")

        objects.append(
            (
                f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {page_id + 1} 0 R >>"
            ).encode()
        )
        objects.append(
            f"<< /Length {len(stream)} >>\nstream\n".encode() + stream + b"\nendstream"
        )

    info_id = None
    if title is not None:
        objects.append(f"<< /Title ({_escape(title)}) >>".encode("latin-1"))
        info_id = len(objects)

    out = bytearray(f"%PDF-{version}\n".encode())
    offsets: list[int] = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()

    trailer = f"<< /Size {len(objects) + 1} /Root 1 0 R"
    if info_id is not None:
        trailer += f" /Info {info_id} 0 R"
    trailer += " >>"
    out += f"trailer\n{trailer}\nstartxref\n{xref_offset}\n%%EOF\n".encode()
    return bytes(out)


MALFORMED_PDF = b"%PDF-1.4\n1 0 obj\n<<"


def count_blobs(store: BlobStore) -> int:
    with store.session_factory() as session:
        return session.scalar(select(func.count()).select_from(BlobFileRecord)) or 0


def count_chunks(store: BlobStore) -> int:
    with store.session_factory() as session:
        return session.scalar(select(func.count()).select_from(BlobChunkRecord)) or 0


def database_down(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("database is locked"))


class FailingSessions:
    """Session factory whose ``begin`` fails on one chosen call.

    Plain sessions and every other ``begin`` go to the real factory, so
    cleanup after the failure still reaches the database.
    """

    def __init__(self, factory, fail_on: int) -> None:
        self._factory = factory
        self._fail_on = fail_on
        self.begin_calls = 0

    def __call__(self):
        return self._factory()

    def begin(self):
        self.begin_calls += 1
        if self.begin_calls == self._fail_on:
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))
        return self._factory.begin()
