"""Aggregation of hourly observations into per-day and per-hour records."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from weather_images.errors import NoData, ValidationError
from weather_images.weather.models import ObservationSeries

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24
GRID_FIELDS = ("temperature", "precipitation")


@dataclass
class DailyAggregate:
    """One record per calendar date. Fields are None when no valid sample was seen."""
    date: date
    max_temp: Optional[float] = None
    min_temp: Optional[float] = None
    mean_humidity: Optional[float] = None
    mean_apparent_temp: Optional[float] = None
    precipitation_sum: Optional[float] = None


@dataclass
class GridAggregate:
    """Day x hour matrix of a single field; rows are sorted dates, columns are hours 0-23."""
    metric: str
    dates: List[date] = field(default_factory=list)
    cells: List[List[Optional[float]]] = field(default_factory=list)

    @property
    def rows(self) -> int:
        return len(self.dates)

    def values(self) -> List[float]:
        return [v for row in self.cells for v in row if v is not None]


class _DailyAccumulator:
    def __init__(self):
        self.max_temp = float("-inf")
        self.min_temp = float("inf")
        self.humidity_sum = 0.0
        self.humidity_count = 0
        self.apparent_sum = 0.0
        self.apparent_count = 0
        self.precipitation_sum = 0.0
        self.precipitation_count = 0

    def to_record(self, day: date) -> DailyAggregate:
        return DailyAggregate(
            date=day,
            max_temp=None if self.max_temp == float("-inf") else self.max_temp,
            min_temp=None if self.min_temp == float("inf") else self.min_temp,
            mean_humidity=self.humidity_sum / self.humidity_count if self.humidity_count else None,
            mean_apparent_temp=self.apparent_sum / self.apparent_count if self.apparent_count else None,
            precipitation_sum=self.precipitation_sum if self.precipitation_count else None,
        )


def aggregate_daily(series: ObservationSeries) -> List[DailyAggregate]:
    """Reduce an hourly series to one record per date, sorted by date.

    A missing sample only affects its own field; other fields of the same
    timestamp still count.

    Raises:
        NoData: If the series has no timestamps
    """
    if not series.observations:
        raise NoData("No hourly data in response")

    by_day: Dict[date, _DailyAccumulator] = defaultdict(_DailyAccumulator)

    for obs in series.observations:
        acc = by_day[obs.timestamp.date()]
        if obs.temperature is not None:
            acc.max_temp = max(acc.max_temp, obs.temperature)
            acc.min_temp = min(acc.min_temp, obs.temperature)
        if obs.humidity is not None:
            acc.humidity_sum += obs.humidity
            acc.humidity_count += 1
        if obs.apparent_temperature is not None:
            acc.apparent_sum += obs.apparent_temperature
            acc.apparent_count += 1
        if obs.precipitation is not None:
            acc.precipitation_sum += obs.precipitation
            acc.precipitation_count += 1

    records = [acc.to_record(day) for day, acc in sorted(by_day.items())]
    logger.debug(f"Aggregated {len(series)} observations into {len(records)} days")
    return records


def aggregate_grid(series: ObservationSeries, field_name: str = "temperature") -> GridAggregate:
    """Arrange one field of an hourly series into a date x hour grid.

    Rows are the distinct dates present in the series (not padded to a full
    year). The column is the sample's hour of day, unchanged.

    Raises:
        NoData: If the series has no timestamps
        ValidationError: If the field cannot be gridded
    """
    if field_name not in GRID_FIELDS:
        raise ValidationError(f"Unsupported grid field '{field_name}'. Use one of: {', '.join(GRID_FIELDS)}")
    if not series.observations:
        raise NoData("Year heatmap requires hourly time data")

    dates = sorted({obs.timestamp.date() for obs in series.observations})
    row_of = {day: row for row, day in enumerate(dates)}
    cells: List[List[Optional[float]]] = [[None] * HOURS_PER_DAY for _ in dates]

    for obs in series.observations:
        value = getattr(obs, field_name)
        if value is not None:
            cells[row_of[obs.timestamp.date()]][obs.timestamp.hour] = value

    logger.debug(f"Gridded {len(series)} observations into {len(dates)} rows of {field_name}")
    return GridAggregate(metric=field_name, dates=dates, cells=cells)
