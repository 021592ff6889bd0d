"""Dependency injection for FastAPI endpoints.

Shared resources live on ``app.state.resources`` (see ``gateway.lifespan``)
and are handed to endpoints through the dependencies below, so each app
instance, and each test, owns its own session store.

Usage in controllers:
    from gateway.dependencies import Sessions, AdminToken

    @router.get("/example")
    def example(sessions: Sessions, _token: AdminToken):
        ...
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from gateway.archive import ArchiveAllocator, ArtifactStore
from gateway.config import Settings, get_settings
from gateway.errors import AuthError, ConfigurationError
from gateway.lifespan import LifespanResources
from gateway.sandbox import SandboxClient
from gateway.sessions import SessionStore

BEARER_SCHEME = "bearer"


def _resources(request: Request) -> LifespanResources:
    resources = getattr(request.app.state, "resources", None)
    if resources is None:
        raise ConfigurationError(detail="Gateway resources not initialized")
    return resources


def get_session_store(request: Request) -> SessionStore:
    """Get the session store.

    Raises:
        ConfigurationError: If the lifespan has not run.
    """
    store = _resources(request).session_store
    if store is None:
        raise ConfigurationError(detail="Session store not initialized")
    return store


def get_allocator(request: Request) -> ArchiveAllocator:
    allocator = _resources(request).allocator
    if allocator is None:
        raise ConfigurationError(detail="Archive not initialized")
    return allocator


def get_artifact_store(request: Request) -> ArtifactStore:
    store = _resources(request).artifact_store
    if store is None:
        raise ConfigurationError(detail="Archive not initialized")
    return store


def get_sandbox_client(request: Request) -> SandboxClient:
    client = _resources(request).sandbox_client
    if client is None:
        raise ConfigurationError(detail="Sandbox client not initialized")
    return client


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def extract_bearer_token(authorization: str | None) -> str | None:
    """Token from an ``Authorization`` header value; a bare token is accepted too."""
    if not authorization:
        return None
    token = authorization.strip()
    scheme, _, rest = token.partition(" ")
    if scheme.lower() == BEARER_SCHEME:
        token = rest.strip()
    return token or None


def require_admin_token(
    store: Annotated[SessionStore, Depends(get_session_store)],
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Reject the request unless it carries a valid session token.

    Raises:
        AuthError: header missing, or token unknown or expired.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise AuthError(detail="Authorization required")
    if not store.validate(token):
        raise AuthError(detail="Invalid or expired token")
    return token


Sessions = Annotated[SessionStore, Depends(get_session_store)]
Allocator = Annotated[ArchiveAllocator, Depends(get_allocator)]
Artifacts = Annotated[ArtifactStore, Depends(get_artifact_store)]
Sandbox = Annotated[SandboxClient, Depends(get_sandbox_client)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
AdminToken = Annotated[str, Depends(require_admin_token)]
