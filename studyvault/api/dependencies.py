"""FastAPI dependencies for the principal and the shared services.

Stores and services are created once in the application lifespan and kept
on ``app.state``; route handlers receive them through ``Depends``.
"""

import logging
from typing import Annotated, Protocol

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from studyvault.ingestion.coordinator import UploadCoordinator
from studyvault.ingestion.file_index import FileIndex

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


class IdentityResolver(Protocol):
    """Maps a bearer credential to a principal id."""

    def resolve(self, credential: str) -> str | None: ...


class TrustedTokenResolver:
    """Uses the bearer credential verbatim as the principal id.

    Token verification belongs to the identity service in front of this API.
    """

    def resolve(self, credential: str) -> str | None:
        credential = credential.strip()
        return credential or None


def get_principal_id(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> str:
    """Resolve the authenticated principal for a request.

    Raises:
        HTTPException: 401 if no usable credential is present.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Unauthorized", "message": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    resolver: IdentityResolver = request.app.state.identity_resolver
    principal_id = resolver.resolve(credentials.credentials)
    if not principal_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Unauthorized", "message": "Invalid credentials"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal_id


def get_upload_coordinator(request: Request) -> UploadCoordinator:
    return request.app.state.upload_coordinator


def get_file_index(request: Request) -> FileIndex:
    return request.app.state.file_index


PrincipalId = Annotated[str, Depends(get_principal_id)]
Coordinator = Annotated[UploadCoordinator, Depends(get_upload_coordinator)]
Index = Annotated[FileIndex, Depends(get_file_index)]
