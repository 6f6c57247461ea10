"""Encoding of rendered scenes into response bytes."""

import logging
from typing import Final

from weather_images.charts.scene import Scene
from weather_images.errors import ValidationError

logger = logging.getLogger(__name__)

MEDIA_TYPES: Final[dict] = {
    "svg": "image/svg+xml",
    "png": "image/png",
}


def media_type_for(fmt: str) -> str:
    """Content type of an output format."""
    try:
        return MEDIA_TYPES[fmt]
    except KeyError:
        raise ValidationError(f"Unsupported format '{fmt}'. Use one of: {', '.join(MEDIA_TYPES)}")


def encode_scene(scene: Scene, fmt: str) -> bytes:
    """Serialize a scene as SVG, or rasterize it to PNG."""
    media_type_for(fmt)
    svg = scene.to_svg().encode("utf-8")
    if fmt == "svg":
        return svg

    # cairosvg loads the native cairo library on import
    import cairosvg

    png = cairosvg.svg2png(bytestring=svg, output_width=scene.width, output_height=scene.height)
    logger.debug(f"Rasterized {scene.width}x{scene.height} scene to {len(png)} PNG bytes")
    return png
