"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyvault.api.dependencies import IdentityResolver, TrustedTokenResolver
from studyvault.api.files import router as files_router
from studyvault.config import AppConfig, get_app_config
from studyvault.ingestion.coordinator import UploadCoordinator
from studyvault.ingestion.file_index import FileIndex
from studyvault.parsing.extractors import ExtractionEngine
from studyvault.storage.blob_store import BlobStore
from studyvault.storage.database import create_db_engine
from studyvault.storage.profile_store import ProfileStore

logger = logging.getLogger(__name__)


def create_app(
    config: AppConfig | None = None,
    identity_resolver: IdentityResolver | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Optional configuration. Loads from environment if not provided.
        identity_resolver: Maps bearer credentials to principal ids.
            Defaults to trusting the credential verbatim.

    Returns:
        Configured FastAPI application instance.
    """
    config = config or get_app_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """Create the database engine and services once per process.

        Args:
            app: The FastAPI application instance.

        Yields:
            Control to the application while it runs.
        """
        logger.info("Starting StudyVault API...")
        engine = create_db_engine(config.database_url)

        blob_store = BlobStore(engine, chunk_size=config.chunk_size_bytes)
        profile_store = ProfileStore(engine)
        extraction_engine = ExtractionEngine(
            timeout_seconds=config.extraction_timeout_seconds,
            max_workers=config.extraction_workers,
        )

        app.state.config = config
        app.state.identity_resolver = identity_resolver or TrustedTokenResolver()
        app.state.blob_store = blob_store
        app.state.profile_store = profile_store
        app.state.upload_coordinator = UploadCoordinator(
            blob_store, profile_store, extraction_engine, config
        )
        app.state.file_index = FileIndex(blob_store, profile_store)

        yield

        logger.info("Shutting down StudyVault API...")
        extraction_engine.close()
        engine.dispose()

    application = FastAPI(
        title="StudyVault API",
        description=(
            "Document ingestion and storage for study material. Accepts PDF, "
            "plain text and markdown uploads, stores them in a chunked blob "
            "store, extracts and normalizes their text, and keeps a per-user "
            "file index with owner-only access."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    application.include_router(files_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "studyvault"}

    return application
