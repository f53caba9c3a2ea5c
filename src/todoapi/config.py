"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with TODOAPI_ prefix
(a local .env file is read too, handy in development).

Learn: the JWT secret, issuer and audience have no usable defaults.
If any of them is missing the Settings() call below raises, so the
process refuses to start instead of silently signing tokens with a
guessable key.
"""

from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# HS256 keys shorter than the digest size are brute-forceable.
MIN_SECRET_BYTES = 32


class Settings(BaseSettings):
    """All app configuration. Set via TODOAPI_* env vars."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./todo.db"
    create_tables_on_startup: bool = True

    # Auth
    jwt_secret: str = ""
    jwt_issuer: str = ""
    jwt_audience: str = ""
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    access_token_expire_minutes: int = 180

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5109",
        "https://localhost:7261",
    ]

    model_config = SettingsConfigDict(
        env_prefix="TODOAPI_",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_jwt_settings(self):
        """Refuse to start without a complete token signing configuration."""
        missing = [
            name
            for name in ("jwt_secret", "jwt_issuer", "jwt_audience")
            if not getattr(self, name).strip()
        ]
        if missing:
            env_names = ", ".join(f"TODOAPI_{n.upper()}" for n in missing)
            raise ValueError(f"{env_names} must be set before the API can start")
        if len(self.jwt_secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise ValueError(
                f"TODOAPI_JWT_SECRET must be at least {MIN_SECRET_BYTES} bytes. "
                "Generate one with: todoapi gen-secret"
            )
        return self

    @property
    def json_logs(self) -> bool:
        return self.log_json or self.environment == "production"


# Singleton — import this everywhere
settings = Settings()
