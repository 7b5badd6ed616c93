"""Unit tests for individual components in isolation.

Coverage:
    - parsing/: Text cleaning, key-info and PDF extraction
    - storage/: Chunked blob store and owner profiles
    - ingestion/: Upload pipeline and file index access control
"""
