"""
Widgets drawn onto the panel.

A widget renders a transparent-capable RGBA raster at a fixed placement;
the display controller composites it over the background and blits it.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int, int]
WHITE: Color = (255, 255, 255, 255)
TRANSPARENT: Color = (0, 0, 0, 0)


class RenderError(Exception):
    """Raised when a widget cannot produce its raster."""

    pass


@dataclass
class WidgetRender:
    image: Optional[Image.Image]
    width: int
    height: int

    @classmethod
    def empty(cls) -> WidgetRender:
        return cls(image=None, width=0, height=0)

    @property
    def is_empty(self) -> bool:
        return self.image is None or self.width == 0 or self.height == 0


class Widget(ABC):
    """
    Anything that can be drawn onto the panel at a fixed placement.

    Subclasses implement render(); the display controller takes care of
    compositing over the background and blitting the result.
    """

    def __init__(self, x: int, y: int, width: int, height: int):
        self.x = x
        self.y = y
        self.width = width
        self.height = height

    @abstractmethod
    async def render(self) -> WidgetRender:
        """Produce a transparent-capable RGBA raster of width x height."""
        ...

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(x={self.x}, y={self.y}, "
            f"width={self.width}, height={self.height})"
        )


class ClockWidget(Widget):
    """
    Current wall-clock time, centred in the widget box.

    The font is loaded on the first render and kept for the widget's
    lifetime. If it cannot be loaded the widget renders nothing for that
    tick and tries again on the next one.

    Args:
        - x, y (int): top-left corner on the panel
        - width, height (int): size of the box the time is centred in
        - font_path (str | Path | None): a Pillow bitmap font (.pil) or any
            TrueType/OpenType file. None uses Pillow's bundled font
        - font_size (int): point size for scalable fonts
        - color (Color): RGBA text colour
        - time_format (str): strftime format; the default "%X" is the
            locale's time representation
        - now (Callable): clock source, injectable for tests
    """

    def __init__(
        self,
        x: int,
        y: int,
        width: int = 140,
        height: int = 40,
        font_path: str | Path | None = None,
        font_size: int = 32,
        color: Color = WHITE,
        time_format: str = "%X",
        now: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(x, y, width, height)
        self.font_path = font_path
        self.font_size = font_size
        self.color = color
        self.time_format = time_format
        self._now = now
        self.font: Optional[ImageFont.ImageFont | ImageFont.FreeTypeFont] = None

    def _load_font(self):
        try:
            if self.font_path is None:
                return ImageFont.load_default(size=self.font_size)
            path = str(self.font_path)
            if path.lower().endswith(".pil"):
                return ImageFont.load(path)
            return ImageFont.truetype(path, self.font_size)
        except (OSError, ValueError) as e:
            raise RenderError(f"Failed to load font {self.font_path}: {e}") from e

    async def preload(self) -> None:
        """Load the font now instead of on the first render."""
        self.font = await asyncio.to_thread(self._load_font)
        logger.debug(f"Loaded font {self.font_path or '<default>'} for {self!r}")

    async def render(self) -> WidgetRender:
        if self.font is None:
            try:
                await self.preload()
            except RenderError as e:
                logger.error(str(e))
                return WidgetRender.empty()

        image = Image.new("RGBA", (self.width, self.height), TRANSPARENT)
        draw = ImageDraw.Draw(image)
        text = self._now().strftime(self.time_format)

        left, top, right, bottom = draw.textbbox((0, 0), text, font=self.font)
        origin = (
            (self.width - (right - left)) / 2 - left,
            (self.height - (bottom - top)) / 2 - top,
        )
        draw.text(origin, text, font=self.font, fill=self.color)

        return WidgetRender(image=image, width=self.width, height=self.height)
