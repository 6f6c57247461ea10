"""Configuration settings for the weather images service."""

import os
from pathlib import Path
from typing import Final, Optional

from dotenv import load_dotenv

load_dotenv()

TRUTHY_VALUES: Final[frozenset] = frozenset({"true", "1", "yes"})


def is_truthy(value: Optional[str]) -> bool:
    """Parse a boolean flag given as a string ("true", "1" or "yes")."""
    return value is not None and value.strip().lower() in TRUTHY_VALUES


# Repository root (src/weather_images/config.py -> project root)
APP_ROOT: Final[Path] = Path(__file__).resolve().parents[2]

# Upstream API configuration (Open-Meteo, no API key required)
GEOCODING_API_URL: str = os.getenv("GEOCODING_API_URL", "https://geocoding-api.open-meteo.com/v1/search")
ARCHIVE_API_URL: str = os.getenv("ARCHIVE_API_URL", "https://archive-api.open-meteo.com/v1/archive")
USER_AGENT: Final[str] = "WeatherImagesService/0.1 (user@example.com)"
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
HOURLY_VARIABLES: Final[str] = "temperature_2m,relative_humidity_2m,apparent_temperature,precipitation"

# Server configuration
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "8000"))
DEBUG: bool = is_truthy(os.getenv("DEBUG", "false"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

# Request domain
MIN_YEAR: Final[int] = 1940
MIN_CELL_SIZE: Final[int] = 1
MAX_CELL_SIZE: Final[int] = 64
DEFAULT_RANGE_DAYS: Final[int] = 7
ARCHIVE_DELAY_DAYS: Final[int] = 6  # Archive data lags real time by ~5 days
MAX_RANGE_DAYS: int = int(os.getenv("MAX_RANGE_DAYS", "366"))

# Image cache configuration
STORAGE_TYPE: str = os.getenv("STORAGE_TYPE", "filesystem")  # "filesystem" or "azure-blob"
MEMORY_CACHE_MAX_ENTRIES: int = int(os.getenv("MEMORY_CACHE_MAX_ENTRIES", "100"))
IMAGE_CACHE_MAX_AGE_SECONDS: int = int(os.getenv("IMAGE_CACHE_MAX_AGE_SECONDS", "86400"))


def resolve_cache_dir(value: Optional[str] = None) -> Path:
    """Resolve the filesystem cache directory.

    Absolute paths are used as-is, relative paths are resolved from the
    application root. Defaults to ``<app root>/cache``.
    """
    if value:
        path = Path(value)
        return path if path.is_absolute() else (APP_ROOT / path).resolve()
    return APP_ROOT / "cache"


CACHE_DIR: Path = resolve_cache_dir(os.getenv("CACHE_DIR"))

# Azure Blob Storage (durable image cache)
AZURE_STORAGE_CONTAINER: str = os.getenv("AZURE_STORAGE_CONTAINER", "weather-images-cache")
AZURE_STORAGE_CONNECTION_STRING: Optional[str] = os.getenv("AZURE_STORAGE_CONNECTION_STRING") or None
AZURE_STORAGE_ACCOUNT_NAME: Optional[str] = os.getenv("AZURE_STORAGE_ACCOUNT_NAME") or None
AZURE_STORAGE_USE_MANAGED_IDENTITY: bool = is_truthy(os.getenv("AZURE_STORAGE_USE_MANAGED_IDENTITY", "false"))

# Redis configuration (location lookup cache and rate limiting)
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")
CACHE_EXPIRE_SECONDS: int = int(os.getenv("CACHE_EXPIRE_SECONDS", "3600"))
CACHE_PREFIX: str = os.getenv("CACHE_PREFIX", "weather-images")

# Rate limiting configuration
RATE_LIMIT_REQUESTS_PER_SECOND: int = int(os.getenv("RATE_LIMIT_REQUESTS_PER_SECOND", "20"))
RATE_LIMIT_REDIS_KEY_PREFIX: str = os.getenv("RATE_LIMIT_REDIS_KEY_PREFIX", "rate_limit")
RATE_LIMIT_ENABLED: bool = is_truthy(os.getenv("RATE_LIMIT_ENABLED", "true"))
