"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user identity from the request.

The bearer token is verified on every request and the resulting
identity lives only as long as that request's dependency graph.
Nothing is cached between requests, and a request that fails here
never reaches a route handler or the todo store.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException

from todoapi.auth.jwt import TokenError, TokenService
from todoapi.config import settings


@dataclass(frozen=True)
class CurrentIdentity:
    """The authenticated user making the request."""

    user_id: str
    email: Optional[str] = None


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide token service. Immutable once built."""
    return TokenService.from_settings(settings)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if missing or invalid)."""
    token = _bearer_token(authorization)
    if token is None:
        raise _unauthorized("Authentication required")

    try:
        claims = tokens.verify_token(token)
    except TokenError as e:
        raise _unauthorized(str(e))

    return CurrentIdentity(user_id=claims.subject, email=claims.email)
