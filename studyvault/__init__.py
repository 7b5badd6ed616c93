"""StudyVault - document ingestion and storage for study material.

Accepts uploaded PDFs and text files, stores them in a chunked blob store,
extracts normalized text, and keeps a per-owner file index.

Components:
    - api: HTTP endpoints and streaming downloads
    - ingestion: Upload pipeline and owner-only file index
    - parsing: Text extraction, cleaning and reading statistics
    - storage: Chunked blob store and owner profile store
    - models: Pydantic records and API schemas
"""

__version__ = "0.1.0"
