"""
Background/widget compositing.

Pure Pillow operations used by the display controller. Nothing here mutates
its inputs: every function returns a new image.
"""

from __future__ import annotations

import logging
from typing import Optional

from PIL import Image, ImageOps

logger = logging.getLogger(__name__)


def cover(image: Image.Image, width: int, height: int) -> Image.Image:
    """
    Scale an image to fill width x height, cropping the excess.

    Aspect ratio is preserved and the crop is centred, so there is never
    any letterboxing.
    """
    if image.size == (width, height):
        return image.copy()
    return ImageOps.fit(image, (width, height), method=Image.Resampling.BICUBIC)


def clip_to_display(
    image: Image.Image, x: int, y: int, display_width: int, display_height: int
) -> Image.Image:
    """
    Crop an image placed at (x, y) so it does not run off the display.

    Returns a copy even when no cropping is needed.
    """
    width = min(image.width, display_width - x)
    height = min(image.height, display_height - y)
    if width <= 0 or height <= 0:
        raise ValueError(
            f"image at ({x},{y}) lies outside {display_width}x{display_height} display"
        )

    if (width, height) == image.size:
        return image.copy()
    return image.crop((0, 0, width, height))


def composite_widget(
    background: Image.Image, widget_image: Image.Image, x: int, y: int
) -> Optional[Image.Image]:
    """
    Blend a widget over the part of the background it covers.

    Only the widget's bounding rectangle is produced, never the full frame.
    Widget pixels are composited source-over: opaque pixels replace the
    background, transparent ones let it show through.

    Args:
        background: Full-panel background (left untouched)
        widget_image: Widget raster, transparent where it should not draw
        x, y: Widget placement on the panel

    Returns:
        The composited patch (RGBA, widget-sized), or None when (x, y) lies
        outside the background and the widget should be drawn on its own.
    """
    if x >= background.width or y >= background.height:
        logger.debug(
            "Widget at (%d,%d) outside %dx%d background, skipping composite",
            x,
            y,
            background.width,
            background.height,
        )
        return None

    w, h = widget_image.size
    # crop() returns a new image; regions past the edge come back zero-filled
    patch = background.crop((x, y, x + w, y + h))
    if patch.mode != "RGBA":
        patch = patch.convert("RGBA")

    overlay = widget_image if widget_image.mode == "RGBA" else widget_image.convert("RGBA")
    return Image.alpha_composite(patch, overlay)
