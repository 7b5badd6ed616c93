"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - app_config: Configuration backed by a per-test SQLite file
    - engine, blob_store, profile_store: Storage on that database
    - coordinator, file_index: Services wired to the stores
    - app, async_client: HTTPX client against the app with its lifespan running
    - owner_headers, other_headers: Bearer credentials for two principals
"""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import Engine

from studyvault.api.app import create_app
from studyvault.config import DEFAULT_ALLOWED_MIMETYPES, AppConfig
from studyvault.ingestion.coordinator import UploadCoordinator
from studyvault.ingestion.file_index import FileIndex
from studyvault.parsing.extractors import ExtractionEngine
from studyvault.storage.blob_store import BlobStore
from studyvault.storage.database import create_db_engine
from studyvault.storage.profile_store import ProfileStore

OWNER_ID = "user-alice"
OTHER_ID = "user-bob"


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Return configuration with a small chunk size to exercise chunking.

    Args:
        tmp_path: Per-test temporary directory.

    Returns:
        AppConfig pointing at a fresh SQLite database.
    """
    return AppConfig(
        database_url=f"sqlite:///{tmp_path / 'studyvault.db'}",
        chunk_size_bytes=64,
        max_upload_bytes=10 * 1024 * 1024,
        allowed_mimetypes=DEFAULT_ALLOWED_MIMETYPES,
        extraction_timeout_seconds=15.0,
        cors_origins=["*"],
    )


@pytest.fixture
def engine(app_config: AppConfig) -> Generator[Engine]:
    engine = create_db_engine(app_config.database_url)
    yield engine
    engine.dispose()


@pytest.fixture
def blob_store(engine: Engine, app_config: AppConfig) -> BlobStore:
    return BlobStore(engine, chunk_size=app_config.chunk_size_bytes)


@pytest.fixture
def profile_store(engine: Engine) -> ProfileStore:
    return ProfileStore(engine)


@pytest.fixture
def coordinator(
    blob_store: BlobStore, profile_store: ProfileStore, app_config: AppConfig
) -> Generator[UploadCoordinator]:
    engine = ExtractionEngine(
        timeout_seconds=app_config.extraction_timeout_seconds,
        max_workers=app_config.extraction_workers,
    )
    yield UploadCoordinator(blob_store, profile_store, engine, app_config)
    engine.close()


@pytest.fixture
def file_index(blob_store: BlobStore, profile_store: ProfileStore) -> FileIndex:
    return FileIndex(blob_store, profile_store)


@pytest.fixture
def app(app_config: AppConfig) -> FastAPI:
    return create_app(app_config)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    The ASGI transport does not send lifespan events, so the lifespan
    context is entered here to create the stores.

    Yields:
        Configured AsyncClient for making test requests.
    """
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture
def owner_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {OWNER_ID}"}


@pytest.fixture
def other_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {OTHER_ID}"}
