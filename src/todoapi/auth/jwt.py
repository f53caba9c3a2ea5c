"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
The token carries who the caller is (sub = user id, email) and who it
is meant for (iss/aud). Nothing is stored server-side: a token is valid
iff its signature checks out against our secret, issuer and audience
match, and it has not expired. Any single failure rejects the token.

There is no revocation list: a leaked token stays
usable until it expires. Keep access_token_expire_minutes modest.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

import jwt

from todoapi.config import MIN_SECRET_BYTES, Settings

REQUIRED_CLAIMS = ["sub", "iss", "aud", "exp", "iat", "jti"]

# Shared-secret algorithms only; the key is a string, not a key pair.
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")


class TokenError(Exception):
    """Raised when token verification fails."""


class TokenConfigError(ValueError):
    """Raised when the token service is built without a usable key/issuer/audience."""


class TokenSubject(Protocol):
    id: str
    email: str


@dataclass(frozen=True)
class TokenClaims:
    """The identity facts extracted from a verified token."""

    subject: str
    email: Optional[str]
    token_id: str
    expires_at: datetime


class TokenService:
    """Mints and verifies signed identity tokens."""

    def __init__(
        self,
        secret: str,
        issuer: str,
        audience: str,
        algorithm: str = "HS256",
        expire_minutes: int = 180,
    ):
        if not secret or not issuer or not audience:
            raise TokenConfigError("JWT secret, issuer and audience are all required")
        if len(secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise TokenConfigError(
                f"JWT secret must be at least {MIN_SECRET_BYTES} bytes"
            )
        if algorithm not in HMAC_ALGORITHMS:
            raise TokenConfigError(
                f"JWT algorithm must be one of {', '.join(HMAC_ALGORITHMS)}, got {algorithm!r}"
            )
        if expire_minutes <= 0:
            raise TokenConfigError("Token lifetime must be positive")
        self._secret = secret
        self.issuer = issuer
        self.audience = audience
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.jwt_secret,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.access_token_expire_minutes,
        )

    def create_token(
        self,
        user: TokenSubject,
        expires_minutes: Optional[int] = None,
    ) -> str:
        """Create a signed token for a user."""
        now = datetime.now(timezone.utc)
        lifetime = self.expire_minutes if expires_minutes is None else expires_minutes
        payload = {
            "jti": str(uuid.uuid4()),
            "sub": str(user.id),
            "email": user.email,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": now + timedelta(minutes=lifetime),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> TokenClaims:
        """Verify and decode a token.

        Returns the claims on success.
        Raises TokenError on failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise TokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}")

        subject = payload["sub"]
        if not isinstance(subject, str) or not subject:
            raise TokenError("Invalid token: empty subject")

        return TokenClaims(
            subject=subject,
            email=payload.get("email"),
            token_id=payload["jti"],
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
