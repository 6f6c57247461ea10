"""API endpoints for the weather images service."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from fastapi_cache.decorator import cache

from weather_images.config import (
    CACHE_EXPIRE_SECONDS, IMAGE_CACHE_MAX_AGE_SECONDS, MAX_CELL_SIZE,
    MIN_CELL_SIZE, MIN_YEAR
)
from weather_images.errors import (
    LocationNotFound, NoData, UpstreamError, ValidationError, WeatherImageError
)
from weather_images.images import ImageService
from weather_images.render_request import RenderRequest, parse_range_request, parse_year_request
from weather_images.weather.models import ResolvedLocation

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api", tags=["images"])


def get_image_service(request: Request) -> ImageService:
    """Dependency returning the application's image service."""
    return request.app.state.image_service


def _http_error(e: Exception) -> HTTPException:
    """Translate a service error into an HTTP error."""
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, LocationNotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, NoData):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, UpstreamError):
        detail = {"error": str(e), "upstream_status": e.status_code, "upstream_body": e.body}
        return HTTPException(status_code=502, detail=detail)
    return HTTPException(status_code=500, detail="Failed to generate weather image")


async def _render(image_service: ImageService, render_request: RenderRequest) -> Response:
    try:
        image = await image_service.get_image(render_request)
    except WeatherImageError as e:
        logger.error(f"Error rendering {render_request.variant} image: {e}")
        raise _http_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error rendering {render_request.variant} image: {e}")
        raise _http_error(e)

    return Response(
        content=image.content,
        media_type=image.media_type,
        headers={
            "Cache-Control": f"public, max-age={IMAGE_CACHE_MAX_AGE_SECONDS}",
            "X-Cache": "HIT" if image.cache_hit else "MISS",
            "ETag": f'"{image.fingerprint}.{render_request.format}"',
        },
    )


@router.get("/weather-image", response_class=Response)
async def get_weather_image(
    city: Optional[str] = Query(None, description="City name (alternative to lat/lon)"),
    lat: Optional[float] = Query(None, ge=-90, le=90, description="Latitude in decimal degrees"),
    lon: Optional[float] = Query(None, ge=-180, le=180, description="Longitude in decimal degrees"),
    start_date: Optional[str] = Query(None, description="First date (yyyy-mm-dd), default 12 days ago"),
    end_date: Optional[str] = Query(None, description="Last date (yyyy-mm-dd), default 6 days ago"),
    format: str = Query("png", description="Output format: 'png' or 'svg'"),
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Daily max/min temperature and mean humidity bars for a date range.

    Raises:
        HTTPException: If parameters are invalid or the image cannot be produced
    """
    try:
        render_request = parse_range_request(
            city=city, lat=lat, lon=lon,
            start_date=start_date, end_date=end_date, format=format,
        )
    except ValidationError as e:
        logger.warning(f"Invalid weather image request: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return await _render(image_service, render_request)


@router.get("/weather-year-image", response_class=Response)
async def get_weather_year_image(
    city: Optional[str] = Query(None, description="City name (alternative to lat/lon)"),
    lat: Optional[float] = Query(None, ge=-90, le=90, description="Latitude in decimal degrees"),
    lon: Optional[float] = Query(None, ge=-180, le=180, description="Longitude in decimal degrees"),
    year: Optional[str] = Query(None, description=f"Year ({MIN_YEAR}..current), default previous year"),
    cell_size: Optional[str] = Query(
        None, description=f"Pixels per square ({MIN_CELL_SIZE}-{MAX_CELL_SIZE}), default 8"
    ),
    cell_border_color: Optional[str] = Query(None, description="Cell border hex color, default #aaaaaa"),
    cell_borders: Optional[str] = Query(None, description="Draw cell borders: true/1/yes, default true"),
    metric: Optional[str] = Query(None, description="'temperature' (default) or 'precipitation'"),
    format: str = Query("png", description="Output format: 'png' or 'svg'"),
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Year heatmap: one row per day, one column per hour (noon in the centre).

    Raises:
        HTTPException: If parameters are invalid or the image cannot be produced
    """
    try:
        render_request = parse_year_request(
            city=city, lat=lat, lon=lon, year=year,
            cell_size=cell_size, cell_border_color=cell_border_color,
            cell_borders=cell_borders, metric=metric, format=format,
        )
    except ValidationError as e:
        logger.warning(f"Invalid year image request: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return await _render(image_service, render_request)


@router.get("/location", response_model=ResolvedLocation)
@cache(expire=CACHE_EXPIRE_SECONDS)
async def get_location(
    request: Request,
    name: str = Query(..., min_length=1, description="City or place name"),
) -> ResolvedLocation:
    """Preview how a city name resolves (coordinates, timezone, display name).

    Raises:
        HTTPException: If the name cannot be resolved
    """
    image_service = get_image_service(request)
    try:
        return await image_service.weather_service.resolve_location(city=name)
    except WeatherImageError as e:
        logger.error(f"Error resolving location '{name}': {e}")
        raise _http_error(e)
