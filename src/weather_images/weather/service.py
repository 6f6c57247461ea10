"""Weather service fetching hourly observation series."""

import logging
from datetime import date, timedelta
from typing import Optional, Tuple

from weather_images.config import ARCHIVE_DELAY_DAYS, DEFAULT_RANGE_DAYS
from weather_images.weather.client import OpenMeteoClient
from weather_images.weather.geocoding import GeocodingService
from weather_images.weather.models import ObservationSeries, ResolvedLocation

logger = logging.getLogger(__name__)


def default_date_range(today: Optional[date] = None) -> Tuple[str, str]:
    """Default range: 7 days ending 6 days ago (within the archive's delay).

    Returns:
        Tuple of (start_date, end_date) as YYYY-MM-DD strings
    """
    today = today or date.today()
    end = today - timedelta(days=ARCHIVE_DELAY_DAYS)
    start = end - timedelta(days=DEFAULT_RANGE_DAYS - 1)
    return start.isoformat(), end.isoformat()


class WeatherService:
    """Service resolving locations and fetching hourly observations."""

    def __init__(
        self,
        client: Optional[OpenMeteoClient] = None,
        geocoding_service: Optional[GeocodingService] = None
    ):
        """Initialize the weather service.

        Args:
            client: Open-Meteo client instance (creates default if None)
            geocoding_service: Geocoding service instance (creates default if None)
        """
        self.client = client or OpenMeteoClient()
        self.geocoding_service = geocoding_service or GeocodingService(self.client)

    async def resolve_location(
        self,
        *,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        city: Optional[str] = None
    ) -> ResolvedLocation:
        """Resolve a city name or coordinates to a location."""
        return await self.geocoding_service.resolve_location(lat=lat, lon=lon, city=city)

    async def get_observations(
        self,
        start_date: str,
        end_date: str,
        *,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        city: Optional[str] = None
    ) -> ObservationSeries:
        """Get hourly observations for a location and date range.

        Args:
            start_date: First date (YYYY-MM-DD)
            end_date: Last date (YYYY-MM-DD), inclusive
            lat: Latitude in decimal degrees
            lon: Longitude in decimal degrees
            city: City name, alternative to coordinates

        Returns:
            ObservationSeries in the location's local time

        Raises:
            LocationNotFound: If the city cannot be geocoded
            UpstreamError: If an API request fails
            ValidationError: If no location was given
        """
        location = await self.resolve_location(lat=lat, lon=lon, city=city)

        logger.info(
            f"Getting observations for lat={location.latitude}, lon={location.longitude}, "
            f"name={location.name}, timezone={location.timezone}"
        )

        payload = await self.client.get_archive(
            location.latitude,
            location.longitude,
            start_date,
            end_date,
            location.timezone,
        )
        series = ObservationSeries.from_archive(payload, location_name=location.name)

        logger.info(f"Loaded {len(series)} observations for {series.display_name}")
        return series

    async def aclose(self):
        """Close the weather client."""
        if self.client:
            try:
                await self.client.aclose()
            except Exception as e:
                logger.error(f"Error closing weather client: {e}")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
