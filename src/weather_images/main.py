"""Main FastAPI application for the weather images service."""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi_cache import FastAPICache
from fastapi_cache.backends.redis import RedisBackend

from weather_images.api.endpoints import router as images_router
from weather_images.cache.manager import CacheManager
from weather_images.config import (
    HOST, PORT, DEBUG, REDIS_URL, CACHE_PREFIX, STORAGE_TYPE,
    RATE_LIMIT_REQUESTS_PER_SECOND
)
from weather_images.images import ImageService
from weather_images.logging_config import configure_logging
from weather_images.middleware.rate_limit import RateLimitMiddleware

# Configure logging
configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    try:
        # Initialize Redis cache for JSON endpoints
        logger.info(f"Connecting to Redis at {REDIS_URL}")
        redis_client = redis.from_url(REDIS_URL)
        FastAPICache.init(RedisBackend(redis_client), prefix=CACHE_PREFIX)
        logger.info("Response cache initialized with Redis backend")

        logger.info(f"Starting Weather Images Service (image cache storage: {STORAGE_TYPE})")
        yield
    except Exception as e:
        logger.error(f"Startup error: {e}")
        logger.error(traceback.format_exc())
        raise
    finally:
        try:
            logger.info("Shutting down Weather Images Service")
            # In-flight durable cache writes are flushed here
            await app.state.image_service.aclose()
        except Exception as e:
            logger.error(f"Shutdown error: {e}")


def create_app(image_service: Optional[ImageService] = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        image_service: Image service to serve from (creates default if None)

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Weather Images Service",
        description="Historical weather charts and year heatmaps rendered as PNG or SVG",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    # One cache manager per process, shared by all requests
    app.state.image_service = image_service or ImageService(CacheManager())

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add rate limiting middleware
    app.add_middleware(RateLimitMiddleware, calls=RATE_LIMIT_REQUESTS_PER_SECOND)

    # Include API routers
    app.include_router(images_router)

    @app.get("/health", tags=["root"])
    async def health_check() -> dict:
        """Health check endpoint.

        Returns:
            Health status response
        """
        return {"ok": True, "service": "weather-images"}

    @app.get("/api", tags=["root"])
    async def api_info() -> dict:
        """API information endpoint.

        Returns:
            Basic service information
        """
        cache = app.state.image_service.cache
        return {
            "message": "Weather Images Service",
            "docs": "/docs",
            "weather_image": "/api/weather-image?city=London",
            "weather_year_image": "/api/weather-year-image?city=London&year=2024",
            "location": "/api/location?name=London",
            "health": "/health",
            "image_cache": {
                "state": cache.state.value,
                "backend": cache.backend_name,
                "memory_entries": len(cache.memory),
            },
            "data_source": "Open-Meteo Historical Weather API",
        }

    return app


# Create app instance for uvicorn
app = create_app()


def main() -> None:
    """Main entry point for the application."""
    logger.info(f"Starting server on {HOST}:{PORT}")
    uvicorn.run(
        app,
        host=HOST,
        port=PORT,
        reload=DEBUG,
        log_level="info" if not DEBUG else "debug"
    )


if __name__ == "__main__":
    main()
