from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import UnauthorizedError
from .models import Identity, TaskEntity
from .security import TokenService


# Declares the bearer scheme in OpenAPI; the header itself is read by _bearer_token.
_security = HTTPBearer(auto_error=False)


def _bearer_token(header: Optional[str]) -> Optional[str]:
    """Token from "Bearer <token>", with any whitespace between the two parts."""
    parts = (header or "").split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def get_token_service(request: Request) -> TokenService:
    """The token service built for this app instance in create_app."""
    return request.app.state.token_service


# PUBLIC_INTERFACE
def get_current_identity(
    request: Request,
    _creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """
    Resolve the caller from an 'Authorization: Bearer <token>' header.

    Attached once to every protected router, so handlers and services never
    look at headers themselves.

    Raises:
        UnauthorizedError(401) if the header is missing, uses another scheme,
        or carries a token that fails verification.
    """
    token = _bearer_token(request.headers.get("Authorization"))
    if not token:
        raise UnauthorizedError("Unauthorized")

    identity = tokens.verify(token)
    if identity is None:
        raise UnauthorizedError("Unauthorized")
    return identity


# PUBLIC_INTERFACE
def authorize(identity: Identity, task: TaskEntity) -> bool:
    """Return True if the caller owns the task. Every mutating task operation goes through this."""
    return task["user_id"] == identity.id
