"""Exceptions raised by the weather images service."""

from typing import Optional


class WeatherImageError(Exception):
    """Base class for all service errors."""
    pass


class ValidationError(WeatherImageError):
    """Raised when request parameters are missing or invalid."""
    pass


class UpstreamError(WeatherImageError):
    """Raised when the geocoding or archive API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class LocationNotFound(WeatherImageError):
    """Raised when geocoding returns no results."""
    pass


class NoData(WeatherImageError):
    """Raised when an observation series has no usable samples."""
    pass


class EmptyDataset(NoData):
    """Raised when a renderer receives zero records."""
    pass


class CacheError(WeatherImageError):
    """Raised by cache backends. Never propagated past the cache manager."""
    pass


class CacheBackendConfigError(CacheError):
    """Raised when a cache backend is misconfigured at startup."""
    pass
