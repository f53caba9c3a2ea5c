"""Credential store — user accounts and password checks.

Learn: The only module that reads or writes the users table. Lookups
go through normalized_email, which carries the unique constraint, so
email matching is case-insensitive and a racing duplicate registration
is stopped by the database rather than by a check-then-insert.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from todoapi.auth.password import burn_verification, hash_password
from todoapi.auth.password import verify_password as check_password
from todoapi.db.models import User, normalize_email


class DuplicateEmailError(Exception):
    """Raised when registering an email that already has an account."""

    def __init__(self, email: str):
        super().__init__(f"Email '{email}' is already taken.")
        self.email = email


class CredentialStore:
    """Persists users and validates their passwords."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.normalized_email == normalize_email(email))
        )
        return result.scalars().first()

    async def create_user(self, email: str, password: str) -> User:
        """Create an account. Raises DuplicateEmailError if the email is taken."""
        email = email.strip()
        if await self.find_by_email(email) is not None:
            raise DuplicateEmailError(email)

        user = User(
            email=email,
            normalized_email=normalize_email(email),
            password_hash=hash_password(password),
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateEmailError(email)
        return user

    async def verify_password(self, user: Optional[User], password: str) -> bool:
        """Check a password; a missing user costs the same time and fails."""
        if user is None:
            burn_verification(password)
            return False
        return check_password(password, user.password_hash)
