"""Chart renderers producing vector scenes from aggregated weather records.

Two variants are supported:

- Range chart: grouped bars per date (max temp, min temp, mean humidity)
  with independent temperature and humidity scales on a shared date axis.
- Year heatmap: one row per date and one column per hour of day (column 12
  is hour 12, so noon sits in the middle), colored on the canonical ramp.

Canvas size is derived from the number of records and the fixed band/cell
geometry, so the same data and options always give the same image size.
"""

import logging
from typing import Iterable, List, Optional

from weather_images.charts.aggregate import HOURS_PER_DAY, DailyAggregate, GridAggregate
from weather_images.charts.scales import RAMPS, BandScale, LinearScale, padded_domain
from weather_images.charts.scene import Group, Line, LinearGradient, Rect, Scene, Text
from weather_images.config import MAX_CELL_SIZE, MIN_CELL_SIZE
from weather_images.errors import EmptyDataset, ValidationError

logger = logging.getLogger(__name__)

TITLE_COLOR = "#eee"
LABEL_COLOR = "#aaa"
MUTED_COLOR = "#888"
AXIS_COLOR = "#444"

# Range chart geometry
RANGE_MARGIN = {"top": 50, "right": 50, "bottom": 60, "left": 55}
RANGE_BAND_WIDTH = 56
RANGE_MIN_PLOT_WIDTH = 300
RANGE_PLOT_HEIGHT = 310
RANGE_BAND_PADDING = 0.25
RANGE_BAR_GAP = 2
RANGE_TICK_COUNT = 6
SERIES_COLORS = {
    "max_temp": "#e74c3c",
    "min_temp": "#3498db",
    "mean_humidity": "#2ecc71",
}
RANGE_LEGEND = [
    ("Max temp (°C)", SERIES_COLORS["max_temp"]),
    ("Min temp (°C)", SERIES_COLORS["min_temp"]),
    ("Mean humidity (%)", SERIES_COLORS["mean_humidity"]),
]

# Year heatmap geometry
HEATMAP_MARGIN = {"top": 44, "right": 20, "bottom": 44, "left": 20}
DEFAULT_CELL_SIZE = 8
DEFAULT_CELL_BORDER_COLOR = "#aaaaaa"
LEGEND_HEIGHT = 14
LEGEND_GAP = 8
LEGEND_SAMPLES = 100
HEATMAP_TITLES = {
    "temperature": "Hourly temperature",
    "precipitation": "Hourly precipitation",
}


def _present(values: Iterable[Optional[float]]) -> List[float]:
    return [v for v in values if v is not None]


def range_chart_size(days: int) -> tuple:
    """Canvas (width, height) of a range chart with ``days`` bands."""
    plot_width = max(RANGE_MIN_PLOT_WIDTH, days * RANGE_BAND_WIDTH)
    return (
        plot_width + RANGE_MARGIN["left"] + RANGE_MARGIN["right"],
        RANGE_PLOT_HEIGHT + RANGE_MARGIN["top"] + RANGE_MARGIN["bottom"],
    )


def heatmap_size(rows: int, cell_size: int) -> tuple:
    """Canvas (width, height) of a year heatmap with ``rows`` days."""
    return (
        HOURS_PER_DAY * cell_size + HEATMAP_MARGIN["left"] + HEATMAP_MARGIN["right"],
        rows * cell_size + HEATMAP_MARGIN["top"] + HEATMAP_MARGIN["bottom"],
    )


def validate_cell_size(cell_size: int) -> int:
    """Reject cell sizes outside the supported bounds before any canvas is sized."""
    if isinstance(cell_size, bool) or not isinstance(cell_size, int):
        raise ValidationError("cell_size must be an integer")
    if not MIN_CELL_SIZE <= cell_size <= MAX_CELL_SIZE:
        raise ValidationError(
            f"cell_size must be between {MIN_CELL_SIZE} and {MAX_CELL_SIZE} (pixels per square)"
        )
    return cell_size


def render_range_chart(daily: List[DailyAggregate], *, location_name: str = "Unknown") -> Scene:
    """Render grouped daily bars for a date range.

    Args:
        daily: Daily aggregates sorted by date
        location_name: Name shown in the title

    Returns:
        Scene ready for SVG serialization

    Raises:
        EmptyDataset: If there are no daily records
    """
    if not daily:
        raise EmptyDataset("No daily records to render")

    width, height = range_chart_size(len(daily))
    plot_width = width - RANGE_MARGIN["left"] - RANGE_MARGIN["right"]
    plot_height = RANGE_PLOT_HEIGHT

    x = BandScale([d.date for d in daily], (0, plot_width), padding=RANGE_BAND_PADDING)

    min_temps = _present(d.min_temp for d in daily)
    max_temps = _present(d.max_temp for d in daily)
    lo = min(min_temps) if min_temps else 0
    hi = max(max_temps) if max_temps else 20
    y_temp = LinearScale(padded_domain([lo, hi]), (plot_height, 0))

    humidities = _present(d.mean_humidity for d in daily)
    y_humidity = LinearScale((0, max([100.0] + humidities)), (plot_height, 0))

    scene = Scene(width=width, height=height)
    plot = scene.add(Group(dx=RANGE_MARGIN["left"], dy=RANGE_MARGIN["top"]))

    plot.add(Text(plot_width / 2, -28, f"Historical weather — {location_name}",
                  fill=TITLE_COLOR, font_size=18, anchor="middle"))
    plot.add(Text(plot_width / 2, -10, f"{daily[0].date.isoformat()} to {daily[-1].date.isoformat()}",
                  fill=LABEL_COLOR, font_size=13, anchor="middle"))

    bar_width = x.bandwidth / 3
    for record in daily:
        band = plot.add(Group(dx=x(record.date)))
        bars = [
            (record.max_temp, y_temp, SERIES_COLORS["max_temp"]),
            (record.min_temp, y_temp, SERIES_COLORS["min_temp"]),
            (record.mean_humidity, y_humidity, SERIES_COLORS["mean_humidity"]),
        ]
        for slot, (value, scale, color) in enumerate(bars):
            if value is None:
                continue
            top = scale(value)
            band.add(Rect(
                x=bar_width * slot,
                y=top,
                width=max(0.0, bar_width - RANGE_BAR_GAP),
                height=max(0.0, plot_height - top),
                fill=color,
                rx=3,
            ))

    # Date axis
    axis = plot.add(Group(dy=plot_height))
    axis.add(Line(0, 0, plot_width, 0, stroke=AXIS_COLOR))
    for record in daily:
        center = x(record.date) + x.bandwidth / 2
        axis.add(Line(center, 0, center, 6, stroke=AXIS_COLOR))
        axis.add(Text(center, 18, record.date.strftime("%m/%d"), fill=LABEL_COLOR, anchor="middle"))

    # Temperature axis
    left_axis = plot.add(Group())
    left_axis.add(Line(0, 0, 0, plot_height, stroke=AXIS_COLOR))
    for tick in y_temp.ticks(RANGE_TICK_COUNT):
        ty = y_temp(tick)
        left_axis.add(Line(-6, ty, 0, ty, stroke=AXIS_COLOR))
        left_axis.add(Text(-9, ty + 4, f"{tick:g}", fill=LABEL_COLOR, anchor="end"))

    legend = plot.add(Group(dy=plot_height + 38))
    for i, (label, color) in enumerate(RANGE_LEGEND):
        legend.add(Rect(i * 140, 0, 12, 12, fill=color, rx=2))
        legend.add(Text(i * 140 + 18, 10, label, fill=LABEL_COLOR))

    logger.debug(f"Rendered range chart with {len(daily)} days ({width}x{height})")
    return scene


def render_year_heatmap(
    grid: GridAggregate,
    *,
    location_name: str = "Unknown",
    year: Optional[int] = None,
    cell_size: int = DEFAULT_CELL_SIZE,
    cell_border_color: str = DEFAULT_CELL_BORDER_COLOR,
    cell_borders: bool = True,
) -> Scene:
    """Render a day x hour heatmap with a gradient legend.

    Args:
        grid: Grid aggregate (rows are dates, columns are hours 0-23)
        location_name: Name shown in the title
        year: Year shown in the title
        cell_size: Pixels per cell side (1-64)
        cell_border_color: Stroke color of each cell
        cell_borders: Whether cells get a stroke at all

    Returns:
        Scene ready for SVG serialization

    Raises:
        ValidationError: If cell_size is out of bounds
        EmptyDataset: If the grid has no rows
    """
    validate_cell_size(cell_size)
    if not grid.rows:
        raise EmptyDataset("No hourly rows to render")

    ramp, unit = RAMPS[grid.metric]
    width, height = heatmap_size(grid.rows, cell_size)
    grid_width = HOURS_PER_DAY * cell_size
    grid_height = grid.rows * cell_size

    gradient = LinearGradient(id="year-heatmap-gradient", stops=ramp.gradient(LEGEND_SAMPLES))
    scene = Scene(width=width, height=height, gradients=[gradient])
    plot = scene.add(Group(dx=HEATMAP_MARGIN["left"], dy=HEATMAP_MARGIN["top"]))

    title_year = year if year is not None else grid.dates[0].year
    plot.add(Text(grid_width / 2, -22, f"{HEATMAP_TITLES[grid.metric]} — {location_name} — {title_year}",
                  fill=TITLE_COLOR, font_size=16, anchor="middle"))
    plot.add(Text(grid_width / 2, -6, "Midnight ← hours → Noon (centre) → 11pm",
                  fill=MUTED_COLOR, font_size=11, anchor="middle"))

    stroke = cell_border_color if cell_borders else None
    for row, values in enumerate(grid.cells):
        for col, value in enumerate(values):
            plot.add(Rect(
                x=col * cell_size,
                y=row * cell_size,
                width=cell_size,
                height=cell_size,
                fill=ramp(value),
                stroke=stroke,
            ))

    legend_y = grid_height + LEGEND_GAP
    plot.add(Rect(0, legend_y, grid_width, LEGEND_HEIGHT, fill=gradient.url, rx=2))
    lo, hi = ramp.domain
    plot.add(Text(0, legend_y + LEGEND_HEIGHT + 12, f"{lo:g}{unit}", fill=MUTED_COLOR, font_size=10))
    plot.add(Text(grid_width, legend_y + LEGEND_HEIGHT + 12, f"{hi:g}{unit}",
                  fill=MUTED_COLOR, font_size=10, anchor="end"))

    logger.debug(f"Rendered {grid.metric} heatmap with {grid.rows} rows ({width}x{height})")
    return scene
