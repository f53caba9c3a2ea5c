"""Password hashing and password policy.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor (rounds=12) takes ~100ms per hash on modern hardware.

The policy mirrors the account rules the API has always enforced:
at least 8 characters with an uppercase letter, a lowercase letter and
a digit. Special characters are allowed but not required.
"""

import bcrypt

MIN_PASSWORD_LENGTH = 8
BCRYPT_ROUNDS = 12

# Hash of a random throwaway password. Verifying against it when the
# email is unknown keeps login timing the same as for a wrong password.
_DUMMY_HASH = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds=BCRYPT_ROUNDS))


def hash_password(password: str) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". Passwords are truncated to 72 bytes
    (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False


def burn_verification(password: str) -> None:
    """Spend the same time as a real verification, then discard the result."""
    bcrypt.checkpw(password.encode("utf-8")[:72], _DUMMY_HASH)


def password_policy_errors(password: str) -> list[str]:
    """Return the policy rules a password breaks (empty list = acceptable)."""
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(
            f"Passwords must be at least {MIN_PASSWORD_LENGTH} characters."
        )
    if not any(c.isdigit() for c in password):
        errors.append("Passwords must have at least one digit ('0'-'9').")
    if not any(c.islower() for c in password):
        errors.append("Passwords must have at least one lowercase ('a'-'z').")
    if not any(c.isupper() for c in password):
        errors.append("Passwords must have at least one uppercase ('A'-'Z').")
    return errors
