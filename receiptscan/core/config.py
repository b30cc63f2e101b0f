"""Simple configuration management.

This module defines a ``Settings`` class that reads configuration
values from environment variables and provides sensible defaults.
``.env`` support is implemented by loading files from the repository
root in a defined order.  You can override any value via environment
variables.

Credentials defined here are *operator* defaults.  Callers can supply
their own per request (see ``RecognitionConfig``); request credentials
always win over the environment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, SecretStr
from dotenv import load_dotenv, find_dotenv

# -----------------------------------------------------------------------------
# .env loading
#
# Prefer a .env in the repository root but allow fallback to whatever
# python-dotenv discovers from the current working directory.  Files are
# loaded in order without overriding already-set variables.

_THIS_FILE = Path(__file__).resolve()
_REPO_ROOT = _THIS_FILE.parents[2]
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
    environment variable.
    """

    model_config = SettingsConfigDict(
        env_file=tuple(_candidate_envs) if _candidate_envs else (".env",),
        case_sensitive=True,
        extra="allow",
    )

    # API Settings
    PROJECT_NAME: str = "Receiptscan"
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")

    # Recognition
    # Operator-wide preferred backend; empty means "use the fallback chain".
    OCR_ENGINE: Optional[str] = Field(default=None)
    OCR_TIMEOUT_SECONDS: float = Field(default=30.0)
    TESSERACT_CMD: str = Field(default="tesseract")
    TESSERACT_LANG: str = Field(default="eng")
    # Longest edge (px) of the image handed to the local engine
    TESSERACT_MAX_IMAGE_EDGE: int = Field(default=2400)

    # Hosted backends
    GOOGLE_VISION_API_KEY: Optional[SecretStr] = Field(default=None)
    GEMINI_API_KEY: Optional[SecretStr] = Field(default=None)
    GEMINI_MODEL: str = Field(default="gemini-2.5-flash")
    AWS_ACCESS_KEY_ID: Optional[str] = Field(default=None)
    AWS_SECRET_ACCESS_KEY: Optional[SecretStr] = Field(default=None)
    AWS_REGION: str = Field(default="us-east-1")

    # File Upload
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_CONTENT_TYPES: set[str] = {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/tiff",
    }

    # Verbose pipeline logging (never logs credentials or receipt text)
    EXTRACTION_DEBUG: bool = Field(default=False)

    # Sentry
    SENTRY_DSN: Optional[str] = Field(default=None)
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.0)
    SENTRY_RELEASE: Optional[str] = Field(default=None)


# Instantiate global settings
settings = Settings()


def secret_value(value: Optional[SecretStr]) -> Optional[str]:
    """Unwrap an optional secret, treating blank strings as missing."""
    if value is None:
        return None
    raw = value.get_secret_value().strip()
    return raw or None
