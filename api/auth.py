"""
Session gate for FastAPI.

Extracts the bearer token from the Authorization header, verifies it with the
process-wide `TokenIssuer`, and exposes the bound account id and email.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Request

from api.deps import Issuer
from streamia_backend.errors import AuthError, UnexpectedError
from streamia_backend.security.tokens import TokenClaims, TokenIssuer

logger = logging.getLogger(__name__)


def get_bearer_token(request: Request) -> str | None:
    """
    Extract Bearer token from Authorization header.

    Returns None if no token is present.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _verify(issuer: TokenIssuer, token: str) -> TokenClaims | None:
    try:
        return issuer.verify(token)
    except Exception as e:
        logger.exception("Authentication check failed unexpectedly")
        raise UnexpectedError("Internal server error") from e


async def require_user(request: Request, issuer: Issuer) -> TokenClaims:
    """
    Dependency that requires a valid session token.

    Raises 401 if no token or invalid token.
    Returns the bound account id and email if valid.
    """
    token = get_bearer_token(request)
    if not token:
        raise AuthError("No token provided")

    claims = _verify(issuer, token)
    if claims is None:
        raise AuthError("Invalid or expired token")

    request.state.user = claims
    return claims


# Type alias for dependency injection
CurrentUser = Annotated[TokenClaims, Depends(require_user)]
