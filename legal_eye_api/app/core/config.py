"""
Application configuration.

The ``Settings`` dataclass collects every tunable of the service:
token signing secret and lifetime, password reset window, database
location and logging options.  Values are read from environment
variables by :meth:`Settings.from_env`; the resulting object is built
once at startup and passed explicitly to ``create_app`` and the
credential service instead of being shared as module-level state.
"""

import os
from dataclasses import dataclass
from typing import Optional


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings."""

    project_name: str = "Legal Eye API"
    api_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Secret used to sign session tokens (HS256) and their lifetime.
    secret_key: str = "change_me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # Lifetime of a password reset token.
    password_reset_expire_minutes: int = 60

    # Path to the SQLite database file.  A relative path is resolved
    # against the project root by ``core.db``.
    database_url: str = "legal_eye.db"

    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            project_name=os.getenv("PROJECT_NAME", cls.project_name),
            api_version=os.getenv("API_VERSION", cls.api_version),
            debug=_env_bool("DEBUG"),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            log_file=os.getenv("LOG_FILE") or None,
            secret_key=os.getenv("SECRET_KEY", cls.secret_key),
            algorithm=os.getenv("ALGORITHM", cls.algorithm),
            access_token_expire_minutes=int(
                os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(cls.access_token_expire_minutes))
            ),
            password_reset_expire_minutes=int(
                os.getenv("PASSWORD_RESET_EXPIRE_MINUTES", str(cls.password_reset_expire_minutes))
            ),
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", str(cls.port))),
        )
