"""SQLAlchemy engine and table definitions.

Blobs are stored the way GridFS lays them out: one row per object in
``blob_files`` and fixed-size pieces in ``blob_chunks`` keyed by
``(file_id, n)``. Owner profiles are stored as JSON documents.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    Engine,
    Integer,
    LargeBinary,
    String,
    create_engine,
)
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class BlobFileRecord(Base):
    """Object record; written only after all chunks are stored."""

    __tablename__ = "blob_files"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    filename: Mapped[str] = mapped_column(String(1024))
    owner_id: Mapped[str] = mapped_column(String(255), index=True)
    mimetype: Mapped[str] = mapped_column(String(255))
    length: Mapped[int] = mapped_column(BigInteger)
    chunk_size: Mapped[int] = mapped_column(Integer)
    chunk_count: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    extra: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)


class BlobChunkRecord(Base):
    __tablename__ = "blob_chunks"

    # Chunks are written before their object record exists, so no foreign key
    file_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    n: Mapped[int] = mapped_column(Integer, primary_key=True)
    data: Mapped[bytes] = mapped_column(LargeBinary)


class ProfileRecord(Base):
    __tablename__ = "owner_profiles"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    document: Mapped[dict[str, Any]] = mapped_column(JSON)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


def create_db_engine(database_url: str) -> Engine:
    """Create an engine and make sure the schema exists.

    Args:
        database_url: SQLAlchemy database URL.

    Returns:
        Engine shared by the blob store and profile store.
    """
    url = make_url(database_url)
    connect_args: dict[str, Any] = {}

    if url.get_backend_name() == "sqlite":
        # Requests run blocking work in worker threads
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, connect_args=connect_args)
    Base.metadata.create_all(engine)
    logger.info(f"Database ready at {url.render_as_string(hide_password=True)}")
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)
