"""Upload pipeline and per-owner file index.

Responsibilities:
    - Validation, bounded buffering and extraction of uploads
    - Blob commit followed by the owner index commit
    - Owner-only listing, download and delete
"""

from studyvault.ingestion.coordinator import IncomingFile, UploadCoordinator
from studyvault.ingestion.file_index import FileIndex

__all__ = ["FileIndex", "IncomingFile", "UploadCoordinator"]
