"""Simple configuration management.

This module defines a ``Settings`` class that reads configuration
values from environment variables and provides sensible defaults.
``.env`` support is implemented by loading files from the repository
root in a defined order.  You can override any value via environment
variables.

A single ``Settings`` instance is built at startup (see
``get_settings``) and handed to the components that need it; nothing
else in the application reads the environment directly.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from dotenv import load_dotenv, find_dotenv

# -----------------------------------------------------------------------------
# .env loading
#
# Prefer a .env in the repository root but allow fallback to whatever
# python-dotenv discovers from the current working directory.  Files are
# loaded in order without overriding already-set variables.

_THIS_FILE = Path(__file__).resolve()
_REPO_ROOT = _THIS_FILE.parents[3]
_ROOT_ENV = _REPO_ROOT / ".env"

_candidate_envs: list[str] = []
if _ROOT_ENV.exists():
    _candidate_envs.append(str(_ROOT_ENV))

_FOUND_ENV = find_dotenv(usecwd=True)
if _FOUND_ENV and _FOUND_ENV not in _candidate_envs:
    _candidate_envs.append(_FOUND_ENV)

for _env_path in _candidate_envs:
    load_dotenv(dotenv_path=_env_path, override=False)


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from the environment with sensible defaults.  Any
    attribute defined here can be overridden by setting the corresponding
    environment variable or by passing it to the constructor (tests do the
    latter).
    """

    model_config = SettingsConfigDict(
        env_file=tuple(_candidate_envs) if _candidate_envs else (".env",),
        case_sensitive=True,
        extra="ignore",
    )

    # API Settings
    PROJECT_NAME: str = "Meter Reading API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Database
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./measures.db")

    # OpenAI (vision extraction)
    OPENAI_API_KEY: Optional[str] = Field(default=None)
    EXTRACTION_MODEL: str = Field(default="gpt-4o-mini")
    # The extractor performs a single call; this bounds how long it may take.
    EXTRACTION_TIMEOUT_SECONDS: float = Field(default=30.0)

    # Storage
    STORAGE_BACKEND: str = Field(default="filesystem")
    STORAGE_DIRECTORY: str = Field(default="./storage/images")
    MINIO_ENDPOINT: str = Field(default="localhost:9000")
    MINIO_ACCESS_KEY: str = Field(default="minioadmin")
    MINIO_SECRET_KEY: str = Field(default="minioadmin")
    MINIO_BUCKET_NAME: str = Field(default="meter-images")
    MINIO_USE_SSL: bool = Field(default=False)
    # Prefix for image links returned to clients; empty means host-relative.
    PUBLIC_BASE_URL: str = Field(default="")

    # CORS
    BACKEND_CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
    )

    # Sentry
    SENTRY_DSN: Optional[str] = Field(default=None)
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.0)
    SENTRY_RELEASE: Optional[str] = Field(default=None)

    @property
    def is_development(self) -> bool:
        return (self.ENVIRONMENT or "development").lower() == "development"

    @property
    def is_production(self) -> bool:
        return (self.ENVIRONMENT or "").lower() == "production"

    def storage_path(self) -> Path:
        """Resolve ``STORAGE_DIRECTORY`` against the repository root when relative."""
        base_path = Path(self.STORAGE_DIRECTORY)
        if not base_path.is_absolute():
            base_path = (_REPO_ROOT / base_path).resolve()
        return base_path


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings, built on first use."""
    return Settings()


def require_extraction_credentials(settings: Settings) -> None:
    """Fail fast when the vision credential is missing outside development.

    The key may also come from the plain ``OPENAI_API_KEY`` environment
    variable which the OpenAI SDK reads on its own.
    """
    if settings.is_production and not (settings.OPENAI_API_KEY or os.getenv("OPENAI_API_KEY")):
        raise RuntimeError("OPENAI_API_KEY is required when ENVIRONMENT=production")
