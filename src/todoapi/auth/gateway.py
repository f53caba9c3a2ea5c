"""Auth gateway — registration and login.

Learn: Composes the credential store with the token service. Both
flows end by minting a token, so a freshly registered user is already
signed in and needs no separate login call.
"""

import structlog

from todoapi.auth.credentials import CredentialStore, DuplicateEmailError
from todoapi.auth.jwt import TokenService
from todoapi.auth.password import password_policy_errors

logger = structlog.get_logger()

__all__ = [
    "AuthGateway",
    "DuplicateEmailError",
    "InvalidCredentialsError",
    "WeakPasswordError",
]


class WeakPasswordError(Exception):
    """Raised when a password does not meet the policy."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class InvalidCredentialsError(Exception):
    """Raised for any failed login. Never says which part was wrong."""


class AuthGateway:
    """Registration and login, returning bearer tokens."""

    def __init__(self, credentials: CredentialStore, tokens: TokenService):
        self.credentials = credentials
        self.tokens = tokens

    async def register(self, email: str, password: str) -> str:
        errors = password_policy_errors(password)
        if errors:
            raise WeakPasswordError(errors)

        user = await self.credentials.create_user(email, password)
        logger.info("auth.registered", user_id=user.id)
        return self.tokens.create_token(user)

    async def login(self, email: str, password: str) -> str:
        user = await self.credentials.find_by_email(email)
        if not await self.credentials.verify_password(user, password):
            logger.info("auth.login_failed")
            raise InvalidCredentialsError("Invalid credentials")

        logger.info("auth.logged_in", user_id=user.id)
        return self.tokens.create_token(user)
