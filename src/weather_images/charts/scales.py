"""Numeric scales and color ramps used by the chart renderers."""

import bisect
import math
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

MISSING_COLOR = "#2d2d2d"
DEFAULT_FALLBACK_DOMAIN = (0.0, 20.0)


def _is_present(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value)


def padded_domain(
    values: Iterable[Optional[float]],
    fallback: Tuple[float, float] = DEFAULT_FALLBACK_DOMAIN,
    padding: float = 0.1,
) -> Tuple[float, float]:
    """Domain spanning the present values, widened by ``padding`` of the range on both sides.

    Returns the fallback when no value is present. A zero range is treated
    as 1 so a flat series still gets a non-degenerate domain.
    """
    present = [v for v in values if _is_present(v)]
    if not present:
        return fallback
    lo, hi = min(present), max(present)
    span = (hi - lo) or 1
    return lo - padding * span, hi + padding * span


def _tick_step(start: float, stop: float, count: int) -> float:
    raw = abs(stop - start) / max(1, count)
    if raw == 0:
        return 1.0
    power = math.floor(math.log10(raw))
    error = raw / 10 ** power
    if error >= math.sqrt(50):
        factor = 10
    elif error >= math.sqrt(10):
        factor = 5
    elif error >= math.sqrt(2):
        factor = 2
    else:
        factor = 1
    return factor * 10 ** power


class LinearScale:
    """Maps a continuous domain onto a continuous range."""

    def __init__(self, domain: Tuple[float, float], range: Tuple[float, float], clamp: bool = False):
        self.domain = domain
        self.range = range
        self.clamp = clamp

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        t = (value - d0) / (d1 - d0) if d1 != d0 else 0.5
        if self.clamp:
            t = min(1.0, max(0.0, t))
        return r0 + t * (r1 - r0)

    def ticks(self, count: int = 10) -> List[float]:
        """Evenly spaced round values inside the domain (1, 2 or 5 times a power of ten)."""
        lo, hi = sorted(self.domain)
        step = _tick_step(lo, hi, count)
        first = math.ceil(lo / step)
        last = math.floor(hi / step)
        # Multiply rather than accumulate to avoid drift
        return [round(i * step, 10) for i in range(first, last + 1)]


class BandScale:
    """Maps discrete keys to evenly spaced bands with equal inner and outer padding."""

    def __init__(self, domain: Sequence[Hashable], range: Tuple[float, float], padding: float = 0.0):
        self.domain = list(domain)
        self.range = range
        self.padding = padding
        self._index: Dict[Hashable, int] = {key: i for i, key in enumerate(self.domain)}

        r0, r1 = range
        n = len(self.domain)
        self.step = (r1 - r0) / max(1, n - padding + 2 * padding)
        self.bandwidth = self.step * (1 - padding)
        self._start = r0 + ((r1 - r0) - self.step * (n - padding)) / 2

    def __call__(self, key: Hashable) -> Optional[float]:
        index = self._index.get(key)
        if index is None:
            return None
        return self._start + self.step * index


def _hex_to_rgb(color: str) -> Tuple[int, int, int]:
    color = color.lstrip("#")
    return int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16)


def _rgb_to_hex(rgb: Sequence[float]) -> str:
    return "#" + "".join(f"{max(0, min(255, round(c))):02x}" for c in rgb)


class ColorRamp:
    """Piecewise-linear color ramp over fixed anchor stops, clamped at both ends.

    Absent and NaN values map to ``missing_color``, never to an end of the ramp.
    """

    def __init__(self, stops: Sequence[float], colors: Sequence[str], missing_color: str = MISSING_COLOR):
        if len(stops) != len(colors) or len(stops) < 2:
            raise ValueError("Color ramp needs matching stops and colors (at least two)")
        if any(b <= a for a, b in zip(stops, stops[1:])):
            raise ValueError("Color ramp stops must be strictly increasing")
        self.stops = list(stops)
        self.colors = list(colors)
        self._rgb = [_hex_to_rgb(c) for c in colors]
        self.missing_color = missing_color

    @property
    def domain(self) -> Tuple[float, float]:
        return self.stops[0], self.stops[-1]

    def __call__(self, value: Optional[float]) -> str:
        if not _is_present(value):
            return self.missing_color
        if value <= self.stops[0]:
            return self.colors[0]
        if value >= self.stops[-1]:
            return self.colors[-1]

        i = bisect.bisect_right(self.stops, value) - 1
        lo, hi = self.stops[i], self.stops[i + 1]
        t = (value - lo) / (hi - lo)
        a, b = self._rgb[i], self._rgb[i + 1]
        return _rgb_to_hex([a[k] + t * (b[k] - a[k]) for k in range(3)])

    def gradient(self, samples: int = 100) -> List[Tuple[float, str]]:
        """Evenly spaced (offset 0..1, color) pairs across the ramp's domain."""
        lo, hi = self.domain
        return [(i / samples, self(lo + (i / samples) * (hi - lo))) for i in range(samples + 1)]


# Canonical temperature scale (degrees C), shared by every request so
# colors are comparable between images.
TEMPERATURE_STOPS = [
    -40, -35, -30, -25, -20, -15, -10, -5, 0, 5, 10, 15, 20, 25, 28, 30, 32, 35, 40, 45, 50,
]
TEMPERATURE_COLORS = [
    "#1a0a2e", "#2d1b4e", "#3d2b5c", "#1e3a5f", "#1a5276", "#2874a6", "#2980b9", "#5dade2",
    "#48c9b0", "#1abc9c", "#27ae60", "#58d68d", "#d4e157", "#f4d03f", "#f5b041", "#e67e22",
    "#e74c3c", "#c0392b", "#922b21", "#641e16", "#2e0f0f",
]
TEMPERATURE_RAMP = ColorRamp(TEMPERATURE_STOPS, TEMPERATURE_COLORS)

# Canonical hourly precipitation scale (mm)
PRECIPITATION_STOPS = [0, 0.1, 0.5, 1, 2, 5, 10, 20]
PRECIPITATION_COLORS = [
    "#1c1c24", "#23395b", "#1f618d", "#2e86c1", "#5dade2", "#48c9b0", "#f4d03f", "#e74c3c",
]
PRECIPITATION_RAMP = ColorRamp(PRECIPITATION_STOPS, PRECIPITATION_COLORS)

RAMPS = {
    "temperature": (TEMPERATURE_RAMP, "°C"),
    "precipitation": (PRECIPITATION_RAMP, "mm"),
}
