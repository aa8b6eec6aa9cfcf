import logging
import warnings
from enum import Enum
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


logger = logging.getLogger(__name__)


# Placeholder signing secret; refused when APP_MODE=prod
_DEFAULT_INSECURE_SECRET_KEY = "your-jwt-secret-here-change-in-production"

_MIN_SECRET_LENGTH = 32

# Local frontends allowed in dev mode
_DEV_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:4321",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:4321",
)


class AppMode(str, Enum):
    DEV = "dev"
    PROD = "prod"


class SecurityWarning(UserWarning):
    """Configuration that works but should not ship to production."""


class Settings(BaseSettings):
    APP_MODE: AppMode = AppMode.DEV
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # SQLite for local work and tests, PostgreSQL (asyncpg) when deployed
    DATABASE_URL: str = "sqlite+aiosqlite:///./yoga_sequences.db"
    # Deployed databases are created by Alembic, which also installs the
    # row-level security policies; create_all is for local databases
    AUTO_CREATE_SCHEMA: bool = True
    # Transaction-local limits on PostgreSQL; a reorder stuck behind a lock
    # fails after this long instead of waiting forever
    DB_STATEMENT_TIMEOUT_MS: int = 5000
    DB_LOCK_TIMEOUT_MS: int = 3000

    # Tokens come from the external identity provider; this service only
    # verifies them. An empty JWT_AUDIENCE disables the audience check.
    SECRET_KEY: str = _DEFAULT_INSECURE_SECRET_KEY
    ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    # Comma-separated origins added to the defaults for the mode
    CORS_ALLOWED_ORIGINS: str = ""

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """
        Origins allowed by the CORS middleware.

        Never a wildcard. Production starts from an empty list, so without
        CORS_ALLOWED_ORIGINS every cross-origin request is refused.
        """
        origins = list(_DEV_ORIGINS) if self.APP_MODE == AppMode.DEV else []
        origins += [o.strip() for o in self.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]

        if not origins and self.APP_MODE == AppMode.PROD:
            logger.warning("CORS_ALLOWED_ORIGINS is empty in production; cross-origin requests are blocked")
        return origins

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def _fatal(message: str) -> ValueError:
    logger.critical(message)
    return ValueError(message)


def _validate_settings(settings: Settings) -> Settings:
    """Refuse configurations that would be unsafe or unusable."""
    if settings.DB_STATEMENT_TIMEOUT_MS <= 0 or settings.DB_LOCK_TIMEOUT_MS <= 0:
        raise _fatal("Database timeouts must be positive (milliseconds)")

    if settings.APP_MODE != AppMode.PROD:
        return settings

    if settings.SECRET_KEY == _DEFAULT_INSECURE_SECRET_KEY:
        raise _fatal(
            "Default SECRET_KEY in production: set it to the identity provider's JWT secret"
        )
    if settings.DEBUG:
        raise _fatal("DEBUG=True in production: unset DEBUG or set it to false")
    if len(settings.SECRET_KEY) < _MIN_SECRET_LENGTH:
        warnings.warn(
            f"SECRET_KEY is shorter than {_MIN_SECRET_LENGTH} characters",
            SecurityWarning,
            stacklevel=2,
        )
    return settings


@lru_cache()
def get_settings() -> Settings:
    """Settings from the environment and .env, validated once and cached."""
    return _validate_settings(Settings())
