"""Application configuration with environment variable loading.

Pydantic-based configuration for storage, upload limits and extraction.
Values are read from the environment (and a local .env file) at construction
time, so tests can override any field by passing it explicitly.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

PDF_MIMETYPE = "application/pdf"
TEXT_MIMETYPES = frozenset({"text/plain", "text/markdown"})
DEFAULT_ALLOWED_MIMETYPES = frozenset({PDF_MIMETYPE, *TEXT_MIMETYPES})

# 255KB, the conventional GridFS chunk size
DEFAULT_CHUNK_SIZE = 255 * 1024
DEFAULT_MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB


def _split_env_list(name: str, default: frozenset[str] | list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return sorted(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class AppConfig(BaseModel):
    """Configuration for the document ingestion service.

    Attributes:
        database_url: SQLAlchemy URL for blob chunks and owner profiles.
        chunk_size_bytes: Fixed size of each stored blob chunk.
        max_upload_bytes: Largest payload accepted by the upload pipeline.
        allowed_mimetypes: Declared content types accepted for upload.
        extraction_timeout_seconds: Wall-clock bound on text extraction.
        extraction_workers: Size of the thread pool that runs extractors.
        cors_origins: Origins allowed by the CORS middleware.
    """

    database_url: str = Field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///data/studyvault.db"),
        description="SQLAlchemy database URL",
    )
    chunk_size_bytes: int = Field(
        default_factory=lambda: int(os.getenv("BLOB_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE))),
        ge=1,
        description="Size of each stored blob chunk in bytes",
    )
    max_upload_bytes: int = Field(
        default_factory=lambda: int(os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_SIZE))),
        ge=1,
        description="Maximum accepted upload size in bytes",
    )
    allowed_mimetypes: frozenset[str] = Field(
        default_factory=lambda: frozenset(
            item.lower() for item in _split_env_list("ALLOWED_MIMETYPES", DEFAULT_ALLOWED_MIMETYPES)
        ),
        description="Mimetypes accepted for upload",
    )
    extraction_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("EXTRACTION_TIMEOUT_SECONDS", "15")),
        gt=0.0,
        le=300.0,
        description="Timeout for a single text extraction",
    )
    extraction_workers: int = Field(
        default_factory=lambda: int(os.getenv("EXTRACTION_WORKERS", "2")),
        ge=1,
        description="Threads reserved for text extraction",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: _split_env_list("CORS_ORIGINS", ["*"]),
        description="Origins allowed for cross-origin requests",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate that a database URL is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError("Database URL required. Set DATABASE_URL in .env")
        return v.strip()

    @field_validator("allowed_mimetypes", mode="before")
    @classmethod
    def normalize_mimetypes(cls, v: object) -> object:
        """Lower-case configured mimetypes so lookups are case-insensitive."""
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, set, frozenset, tuple)):
            return frozenset(str(item).strip().lower() for item in v if str(item).strip())
        return v


def get_app_config() -> AppConfig:
    """Create application configuration from environment.

    Returns:
        Configured AppConfig instance.

    Raises:
        ValueError: If a configured value is invalid.
    """
    return AppConfig()
