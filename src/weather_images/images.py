"""Image pipeline: cache lookup, observation fetch, rendering and write-back."""

import logging
from dataclasses import dataclass
from typing import Optional

from weather_images.cache.fingerprint import fingerprint
from weather_images.cache.manager import CacheManager
from weather_images.charts.aggregate import aggregate_daily, aggregate_grid
from weather_images.charts.raster import encode_scene, media_type_for
from weather_images.charts.renderer import render_range_chart, render_year_heatmap
from weather_images.charts.scene import Scene
from weather_images.render_request import RenderRequest
from weather_images.weather.models import ObservationSeries
from weather_images.weather.service import WeatherService

logger = logging.getLogger(__name__)


@dataclass
class RenderedImage:
    """Encoded image ready to be sent."""
    content: bytes
    media_type: str
    fingerprint: str
    cache_hit: bool


def build_scene(request: RenderRequest, series: ObservationSeries) -> Scene:
    """Aggregate a series and render the scene the request asks for.

    Raises:
        NoData: If the series is empty
        EmptyDataset: If aggregation produced no records
    """
    if request.variant == "range":
        daily = aggregate_daily(series)
        return render_range_chart(daily, location_name=series.display_name)

    grid = aggregate_grid(series, request.metric)
    return render_year_heatmap(
        grid,
        location_name=series.display_name,
        year=request.year,
        cell_size=request.cell_size,
        cell_border_color=request.cell_border_color,
        cell_borders=request.cell_borders,
    )


class ImageService:
    """Produces encoded weather images, reusing cached renders when possible."""

    def __init__(self, cache: CacheManager, weather_service: Optional[WeatherService] = None):
        """Initialize the image service.

        Args:
            cache: Cache manager owned by the application
            weather_service: Weather service instance (creates default if None)
        """
        self.cache = cache
        self.weather_service = weather_service or WeatherService()

    async def get_image(self, request: RenderRequest) -> RenderedImage:
        """Return the encoded image for a request.

        Raises:
            ValidationError: If the request cannot be rendered
            LocationNotFound: If the city cannot be geocoded
            UpstreamError: If the weather data cannot be fetched
            NoData: If there is nothing to draw
        """
        key = fingerprint(request.fingerprint_params())
        media_type = media_type_for(request.format)

        cached = await self.cache.get(key, request.format)
        if cached is not None:
            return RenderedImage(cached, media_type, key, cache_hit=True)

        if request.variant == "range":
            start_date, end_date = request.start_date, request.end_date
        else:
            start_date, end_date = f"{request.year}-01-01", f"{request.year}-12-31"

        series = await self.weather_service.get_observations(
            start_date,
            end_date,
            lat=request.lat,
            lon=request.lon,
            city=request.city,
        )

        scene = build_scene(request, series)
        content = encode_scene(scene, request.format)
        logger.info(
            f"Rendered {request.variant} image for {request.location_label} "
            f"({request.format}, {len(content)} bytes)"
        )

        # Durable write continues in the background
        await self.cache.set(key, request.format, content)
        return RenderedImage(content, media_type, key, cache_hit=False)

    async def aclose(self):
        """Close upstream clients and flush the cache."""
        await self.weather_service.aclose()
        await self.cache.close()
