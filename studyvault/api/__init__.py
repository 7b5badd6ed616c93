"""FastAPI endpoints for the document ingestion core.

Endpoints:
    - GET /health: Service health status
    - POST /files/upload: Store, extract and index a document
    - POST /files/extract-text: Extract text without storing
    - GET /files: The caller's file index
    - GET /files/{id}: Stream a stored file to its owner
    - DELETE /files/{id}: Delete a stored file and its entry

All /files routes expect ``Authorization: Bearer <credential>``.
"""

from studyvault.api.app import create_app

__all__ = ["create_app"]
