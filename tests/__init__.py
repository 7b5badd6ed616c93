"""Test package for StudyVault.

Structure:
    - unit/: Individual component tests against a temporary SQLite database
    - integration/: HTTP workflows through the FastAPI app
    - helpers.py: In-memory upload fields and a minimal PDF writer

Leverages pytest with pytest-check for soft assertions.
"""
