"""HTTP client for the Open-Meteo geocoding and historical archive APIs."""

import logging
from typing import Any, Dict, Optional

import httpx

from weather_images.config import (
    ARCHIVE_API_URL, GEOCODING_API_URL, HOURLY_VARIABLES,
    HTTP_TIMEOUT_SECONDS, USER_AGENT
)
from weather_images.errors import LocationNotFound, UpstreamError
from weather_images.weather.models import ResolvedLocation

logger = logging.getLogger(__name__)


class OpenMeteoClient:
    """Async client for the Open-Meteo geocoding and archive endpoints."""

    def __init__(
        self,
        geocoding_url: str = GEOCODING_API_URL,
        archive_url: str = ARCHIVE_API_URL,
        user_agent: str = USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the Open-Meteo client.

        Args:
            geocoding_url: Geocoding search endpoint
            archive_url: Historical weather archive endpoint
            user_agent: User-Agent header for API requests
            transport: Optional httpx transport (used by tests)
        """
        self.geocoding_url = geocoding_url
        self.archive_url = archive_url
        self.user_agent = user_agent
        self.client = httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            timeout=HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def _get_json(self, url: str, params: Dict[str, Any], label: str) -> Dict[str, Any]:
        try:
            response = await self.client.get(url, params=params)
        except httpx.RequestError as e:
            logger.error(f"Request error to {label} API: {e}")
            raise UpstreamError(f"{label} request failed: {e}")

        if not response.is_success:
            logger.error(f"HTTP error from {label} API: {response.status_code} - {response.text}")
            raise UpstreamError(
                f"{label} API error {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"{label} API returned invalid JSON: {e}", status_code=response.status_code)

    async def geocode(self, name: str) -> ResolvedLocation:
        """Resolve a place name to its first matching location.

        Args:
            name: City or place name

        Returns:
            ResolvedLocation with coordinates, timezone and display name

        Raises:
            LocationNotFound: If the search returns no results
            UpstreamError: If the API request fails
        """
        logger.info(f"Geocoding location: {name}")
        data = await self._get_json(self.geocoding_url, {"name": name, "count": 1}, "Geocoding")

        results = data.get("results") or []
        if not results:
            raise LocationNotFound(f'No location found for "{name}"')

        first = results[0]
        location = ResolvedLocation(
            latitude=first["latitude"],
            longitude=first["longitude"],
            timezone=first.get("timezone") or "UTC",
            name=first.get("name"),
        )
        logger.info(f"Geocoded '{name}' to ({location.latitude}, {location.longitude}) {location.timezone}")
        return location

    async def get_archive(
        self,
        lat: float,
        lon: float,
        start_date: str,
        end_date: str,
        timezone: str = "auto",
    ) -> Dict[str, Any]:
        """Fetch hourly historical weather for a date range.

        Args:
            lat: Latitude in decimal degrees
            lon: Longitude in decimal degrees
            start_date: First date (YYYY-MM-DD)
            end_date: Last date (YYYY-MM-DD), inclusive
            timezone: IANA timezone for local timestamps, or "auto"

        Returns:
            Raw archive payload with index-aligned hourly arrays

        Raises:
            UpstreamError: If the API request fails
        """
        params = {
            "latitude": lat,
            "longitude": lon,
            "start_date": start_date,
            "end_date": end_date,
            "timezone": timezone,
            "hourly": HOURLY_VARIABLES,
        }

        logger.info(f"Fetching archive for lat={lat}, lon={lon}, {start_date}..{end_date} ({timezone})")
        data = await self._get_json(self.archive_url, params, "Historical weather")

        logger.info(f"Fetched archive with {len(data.get('hourly', {}).get('time', []))} hourly entries")
        return data

    async def aclose(self):
        """Close the async HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
