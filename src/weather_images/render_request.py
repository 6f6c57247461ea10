"""Normalized render requests and their validation."""

import re
from datetime import date
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict

from weather_images.charts.renderer import DEFAULT_CELL_BORDER_COLOR, DEFAULT_CELL_SIZE
from weather_images.config import (
    MAX_CELL_SIZE, MAX_RANGE_DAYS, MIN_CELL_SIZE, MIN_YEAR, is_truthy
)
from weather_images.errors import ValidationError
from weather_images.weather.service import default_date_range

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")
FORMATS = ("png", "svg")
METRICS = ("temperature", "precipitation")


class RenderRequest(BaseModel):
    """Validated, defaulted parameters of one image request."""
    model_config = ConfigDict(frozen=True)

    variant: Literal["range", "year"]
    format: Literal["png", "svg"] = "png"
    city: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    year: Optional[int] = None
    cell_size: Optional[int] = None
    cell_border_color: Optional[str] = None
    cell_borders: bool = True
    metric: Literal["temperature", "precipitation"] = "temperature"

    def fingerprint_params(self) -> Dict[str, Any]:
        """Parameters that identify the rendered content (format excluded)."""
        params: Dict[str, Any] = {
            "variant": self.variant,
            "city": self.city,
            "lat": self.lat,
            "lon": self.lon,
        }
        if self.variant == "range":
            params.update(start_date=self.start_date, end_date=self.end_date)
        else:
            params.update(
                year=self.year,
                cell_size=self.cell_size,
                cell_border_color=self.cell_border_color if self.cell_borders else None,
                cell_borders=self.cell_borders,
                metric=self.metric,
            )
        return params

    @property
    def location_label(self) -> str:
        return self.city if self.city else f"{self.lat},{self.lon}"


def _location(city: Optional[str], lat: Optional[float], lon: Optional[float], hint: str) -> Dict[str, Any]:
    city = city.strip() if city else None
    if city:
        # Geocoding is case-insensitive
        return {"city": " ".join(city.split()).casefold(), "lat": None, "lon": None}
    if lat is not None and lon is not None:
        if not -90 <= lat <= 90 or not -180 <= lon <= 180:
            raise ValidationError(f"Invalid coordinates: lat={lat}, lon={lon}")
        return {"city": None, "lat": float(lat), "lon": float(lon)}
    raise ValidationError(f"Provide either 'city' or 'lat' and 'lon'. {hint}")


def _format(fmt: Optional[str]) -> str:
    fmt = (fmt or "png").strip().lower()
    if fmt not in FORMATS:
        raise ValidationError(f"format must be one of: {', '.join(FORMATS)}")
    return fmt


def _hex_color(value: str) -> str:
    color = value.strip().lower()
    if not HEX_COLOR.match(color):
        raise ValidationError(f"cell_border_color must be a hex color like #aaaaaa, got '{value}'")
    if len(color) == 4:
        # #abc is shorthand for #aabbcc
        color = "#" + "".join(c * 2 for c in color[1:])
    return color


def _parse_date(value: str, name: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{name} must be a date in yyyy-mm-dd format, got '{value}'")


def parse_range_request(
    *,
    city: Optional[str] = None,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    format: Optional[str] = None,
    today: Optional[date] = None,
) -> RenderRequest:
    """Validate and default a range chart request.

    Missing dates default to 7 days ending 6 days ago.

    Raises:
        ValidationError: If any parameter is missing or invalid
    """
    location = _location(
        city, lat, lon,
        "Optional: start_date, end_date (yyyy-mm-dd). Historical data has ~5-day delay.",
    )
    default_start, default_end = default_date_range(today)
    start = _parse_date(start_date or default_start, "start_date")
    end = _parse_date(end_date or default_end, "end_date")

    if start > end:
        raise ValidationError("start_date must not be after end_date")
    if start.year < MIN_YEAR:
        raise ValidationError(f"start_date must be in {MIN_YEAR} or later")
    days = (end - start).days + 1
    if days > MAX_RANGE_DAYS:
        raise ValidationError(f"Date range spans {days} days; the maximum is {MAX_RANGE_DAYS}")

    return RenderRequest(
        variant="range",
        format=_format(format),
        start_date=start.isoformat(),
        end_date=end.isoformat(),
        **location,
    )


def parse_year_request(
    *,
    city: Optional[str] = None,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    year: Optional[str] = None,
    cell_size: Optional[str] = None,
    cell_border_color: Optional[str] = None,
    cell_borders: Optional[str] = None,
    metric: Optional[str] = None,
    format: Optional[str] = None,
    today: Optional[date] = None,
) -> RenderRequest:
    """Validate and default a year heatmap request.

    The year defaults to the previous calendar year and must be between
    1940 and the current year.

    Raises:
        ValidationError: If any parameter is missing or invalid
    """
    current_year = (today or date.today()).year

    if year is None or str(year).strip() == "":
        parsed_year = current_year - 1
    else:
        try:
            parsed_year = int(str(year).strip())
        except ValueError:
            raise ValidationError(f"year must be an integer, got '{year}'")
    if not MIN_YEAR <= parsed_year <= current_year:
        raise ValidationError(
            f"year must be between {MIN_YEAR} and {current_year} "
            "(use past year for complete data; API has ~5-day delay)"
        )

    parsed_cell_size = DEFAULT_CELL_SIZE
    if cell_size is not None and str(cell_size).strip() != "":
        try:
            parsed_cell_size = int(str(cell_size).strip())
        except ValueError:
            raise ValidationError(f"cell_size must be an integer, got '{cell_size}'")
        if not MIN_CELL_SIZE <= parsed_cell_size <= MAX_CELL_SIZE:
            raise ValidationError(
                f"cell_size must be between {MIN_CELL_SIZE} and {MAX_CELL_SIZE} (pixels per square)"
            )

    border_color = DEFAULT_CELL_BORDER_COLOR
    if cell_border_color and cell_border_color.strip():
        border_color = _hex_color(cell_border_color)

    parsed_metric = (metric or "temperature").strip().lower()
    if parsed_metric not in METRICS:
        raise ValidationError(f"metric must be one of: {', '.join(METRICS)}")

    location = _location(city, lat, lon, "Optional: year (default: previous year).")

    return RenderRequest(
        variant="year",
        format=_format(format),
        year=parsed_year,
        cell_size=parsed_cell_size,
        cell_border_color=border_color,
        cell_borders=True if cell_borders is None or not cell_borders.strip() else is_truthy(cell_borders),
        metric=parsed_metric,
        **location,
    )
