"""Location resolution for weather image requests."""

import logging
from functools import lru_cache
from typing import Optional

from timezonefinder import TimezoneFinder

from weather_images.errors import ValidationError
from weather_images.weather.client import OpenMeteoClient
from weather_images.weather.models import ResolvedLocation

logger = logging.getLogger(__name__)


class GeocodingService:
    """Resolves city names or coordinates to a location with a timezone."""

    def __init__(self, client: OpenMeteoClient, timezone_finder: Optional[TimezoneFinder] = None):
        """Initialize the geocoding service.

        Args:
            client: Open-Meteo client used for name lookups
            timezone_finder: Timezone lookup (creates default if None)
        """
        self.client = client
        self._tf = timezone_finder

    @property
    def tf(self) -> TimezoneFinder:
        # Loading the timezone polygons is slow, defer until first use
        if self._tf is None:
            self._tf = TimezoneFinder()
            logger.info("TimezoneFinder initialized")
        return self._tf

    @lru_cache(maxsize=1000)
    def get_timezone(self, lat: float, lon: float) -> str:
        """Get timezone for coordinates.

        Args:
            lat: Latitude
            lon: Longitude

        Returns:
            Timezone string (e.g., "Europe/London") or "auto" if not found
        """
        try:
            timezone = self.tf.timezone_at(lng=lon, lat=lat)
        except ValueError as e:
            logger.error(f"Error getting timezone for ({lat}, {lon}): {e}")
            return "auto"

        if timezone:
            logger.debug(f"Found timezone '{timezone}' for ({lat}, {lon})")
            return timezone

        logger.warning(f"No timezone found for ({lat}, {lon}), letting the archive API decide")
        return "auto"

    async def resolve_location(
        self,
        *,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        city: Optional[str] = None
    ) -> ResolvedLocation:
        """Resolve a city name or coordinates.

        Args:
            lat: Latitude (if coordinates provided)
            lon: Longitude (if coordinates provided)
            city: City name (if city provided)

        Returns:
            ResolvedLocation

        Raises:
            LocationNotFound: If the city cannot be geocoded
            UpstreamError: If the geocoding request fails
            ValidationError: If neither a city nor coordinates are given
        """
        if city:
            return await self.client.geocode(city)
        if lat is not None and lon is not None:
            return ResolvedLocation(latitude=lat, longitude=lon, timezone=self.get_timezone(lat, lon))
        raise ValidationError("Must provide either city name or coordinates")
