"""Persistence for blobs and owner profiles.

Responsibilities:
    - Chunked blob storage with streaming write, read and delete
    - Owner profile documents holding each principal's file index
    - Engine creation and schema setup shared by both stores
"""

from studyvault.storage.blob_store import BlobInfo, BlobStore, BlobUpload
from studyvault.storage.database import create_db_engine
from studyvault.storage.profile_store import ProfileStore

__all__ = ["BlobInfo", "BlobStore", "BlobUpload", "ProfileStore", "create_db_engine"]
