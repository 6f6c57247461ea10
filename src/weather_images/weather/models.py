"""Data models for the weather images service."""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from weather_images.errors import UpstreamError


class ResolvedLocation(BaseModel):
    """Location resolved from a city name or coordinates."""
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")
    timezone: str = Field("UTC", description="IANA timezone identifier or 'auto'")
    name: Optional[str] = Field(None, description="Display name if known")


class HourlyData(BaseModel):
    """Index-aligned hourly arrays from the Open-Meteo archive API."""
    time: List[str] = Field(default_factory=list, description="Local timestamps (YYYY-MM-DDTHH:MM)")
    temperature_2m: Optional[List[Optional[float]]] = None
    relative_humidity_2m: Optional[List[Optional[float]]] = None
    apparent_temperature: Optional[List[Optional[float]]] = None
    precipitation: Optional[List[Optional[float]]] = None


class ArchiveResponse(BaseModel):
    """Raw response from the Open-Meteo archive API."""
    latitude: float
    longitude: float
    timezone: str = "UTC"
    hourly: HourlyData = Field(default_factory=HourlyData)


class Observation(BaseModel):
    """Single hourly sample. Missing fields are None."""
    timestamp: datetime
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    apparent_temperature: Optional[float] = None
    precipitation: Optional[float] = None

    @field_validator("temperature", "humidity", "apparent_temperature", "precipitation")
    @classmethod
    def _nan_is_missing(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and math.isnan(value):
            return None
        return value


def _sample(values: Optional[List[Optional[float]]], index: int) -> Optional[float]:
    if values is None or index >= len(values):
        return None
    return values[index]


class ObservationSeries(BaseModel):
    """Ordered hourly observations for one location."""
    latitude: float
    longitude: float
    timezone: str
    location_name: Optional[str] = None
    observations: List[Observation] = Field(default_factory=list)

    @classmethod
    def from_archive(cls, payload: Dict[str, Any], location_name: Optional[str] = None) -> "ObservationSeries":
        """Build a series from an archive API payload.

        Raises:
            UpstreamError: If the payload does not match the archive format
        """
        try:
            archive = ArchiveResponse(**payload)
            hourly = archive.hourly
            observations = [
                Observation(
                    timestamp=datetime.fromisoformat(stamp),
                    temperature=_sample(hourly.temperature_2m, i),
                    humidity=_sample(hourly.relative_humidity_2m, i),
                    apparent_temperature=_sample(hourly.apparent_temperature, i),
                    precipitation=_sample(hourly.precipitation, i),
                )
                for i, stamp in enumerate(hourly.time)
            ]
        except (TypeError, ValueError) as e:
            raise UpstreamError(f"Invalid archive response format: {e}")

        return cls(
            latitude=archive.latitude,
            longitude=archive.longitude,
            timezone=archive.timezone,
            location_name=location_name,
            observations=observations,
        )

    @property
    def display_name(self) -> str:
        return self.location_name or self.timezone or "Unknown"

    def __len__(self) -> int:
        return len(self.observations)


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
