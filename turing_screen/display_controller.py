"""
Display Controller - Policy/Orchestration Layer

This module contains the DisplayController class, which drives a Turing smart
screen. It owns the serial port, a reusable header scratch buffer, the
current orientation/size and the background image used for widget
compositing.

Policy layer - uses pure modules (ProtocolEncoder, rgb565, compositor) and the
I/O boundary (SerialPort).

The protocol is write-only: a successful call means the bytes went out on the
wire, not that the panel applied the command.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from .compositor import clip_to_display, composite_widget, cover
from .config import SerialConfig, Size
from .protocol_config import (
    BRIGHTNESS_MAX,
    BRIGHTNESS_MIN,
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    SCRATCH_BUFFER_SIZE,
    Command,
    Orientation,
)
from .protocol_encoder import ProtocolEncoder
from .rgb565 import image_to_rgb565_le
from .serial_port import SerialPort, TransportError, create_serial_port
from .validation import ProtocolMisuseError, validate_blit_region, validate_pixel_buffer
from .widgets import Widget


logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, Image.Image]


class DisplayControllerError(Exception):
    """Base exception for display controller errors."""

    pass


class NotConnectedError(DisplayControllerError):
    """Raised when attempting operations while the port is not open."""

    pass


class DecodeError(DisplayControllerError):
    """Raised when an image cannot be loaded or decoded."""

    pass


def load_image(source: ImageSource) -> Image.Image:
    """
    Load and fully decode an image.

    Raises:
        DecodeError: If the file is missing or not a readable image
    """
    if isinstance(source, Image.Image):
        return source.copy()

    try:
        with Image.open(source) as img:
            img.load()
            return img.convert("RGBA") if img.mode in ("P", "LA") else img.copy()
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError, ValueError) as e:
        raise DecodeError(f"Failed to load image {source}: {e}") from e


class DisplayController:
    """
    Policy/orchestration layer for smart screen communication.

    Every frame (header plus payload) is written under a single lock so two
    commands can never interleave on the wire. If a write fails or is
    cancelled after the header went out, the port is closed: the panel is now
    mid-frame and has to be reopened (and usually reset) before use.
    """

    def __init__(
        self,
        serial_port: Optional[SerialPort] = None,
        serial_config: Optional[SerialConfig] = None,
        protocol_encoder: Optional[ProtocolEncoder] = None,
        background_size: Optional[Size] = Size(480, 320),
        use_hardware: Optional[bool] = None,
    ):
        """
        Initialize display controller with dependencies.

        Args:
            serial_port: Serial I/O boundary (default: created from serial_config)
            serial_config: Serial configuration (default: SerialConfig())
            protocol_encoder: Protocol encoding logic (default: new instance)
            background_size: Size backgrounds are covered to. None follows the
                current width/height set by set_orientation()
            use_hardware: Force hardware vs mock (default: from config)
        """
        self.serial_config = serial_config or SerialConfig()
        self.serial_port = serial_port or create_serial_port(
            self.serial_config, use_hardware
        )
        self.protocol_encoder = protocol_encoder or ProtocolEncoder()
        self.background_size = background_size
        self.chunk_size = self.serial_config.chunk_size

        self._header: Optional[bytearray] = bytearray(SCRATCH_BUFFER_SIZE)
        self._write_lock = asyncio.Lock()

        self._width = DEFAULT_WIDTH
        self._height = DEFAULT_HEIGHT
        self._orientation = Orientation.PORTRAIT
        self._background: Optional[Image.Image] = None

    async def __aenter__(self) -> DisplayController:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_value, tb) -> None:
        await self.close()

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def orientation(self) -> Orientation:
        return self._orientation

    @property
    def background(self) -> Optional[Image.Image]:
        """The last background set, or None. Do not modify it."""
        return self._background

    def is_open(self) -> bool:
        return self.serial_port.is_open()

    async def open(self) -> None:
        """
        Open the serial port.

        Raises:
            TransportError: If the port cannot be opened
        """
        if self._header is None:
            raise DisplayControllerError("Display controller has been disposed")
        await self.serial_port.open()
        logger.info("Display controller opened")

    async def close(self) -> None:
        """Close the serial port. Safe to call more than once."""
        if not self.serial_port.is_open():
            return
        await self.serial_port.close()
        logger.info("Display controller closed")

    async def dispose(self) -> None:
        """Close the port and release the background and scratch buffer."""
        await self.close()
        self._background = None
        self._header = None

    # Frame transmission

    async def _send(self, header: memoryview, payload: Optional[bytes] = None) -> None:
        # Caller holds _write_lock
        if not self.serial_port.is_open():
            raise NotConnectedError("Cannot send command - serial port not open")

        try:
            await self.serial_port.write(header)
            if payload is not None:
                for chunk in self.protocol_encoder.iter_chunks(payload, self.chunk_size):
                    await self.serial_port.write(chunk)
        except (TransportError, asyncio.CancelledError):
            logger.error("Frame interrupted, closing serial port")
            await self._abort()
            raise

    async def _abort(self) -> None:
        try:
            await self.serial_port.close()
        except TransportError as e:
            logger.error(f"Error closing serial port after failed frame: {e}")

    def _scratch(self) -> bytearray:
        if self._header is None:
            raise DisplayControllerError("Display controller has been disposed")
        return self._header

    async def _write_command(self, command: Command) -> None:
        async with self._write_lock:
            header = self.protocol_encoder.encode_command(self._scratch(), command)
            await self._send(header)
        logger.debug(f"Sent {command}")

    # Simple commands

    async def reset(self) -> None:
        await self._write_command(Command.RESET)

    async def clear(self) -> None:
        await self._write_command(Command.CLEAR)

    async def screen_off(self) -> None:
        await self._write_command(Command.SCREEN_OFF)

    async def screen_on(self) -> None:
        await self._write_command(Command.SCREEN_ON)

    async def set_brightness(self, level: int) -> None:
        """
        Set backlight brightness, 0 (darkest) to 255 (brightest).

        Out-of-range levels are clamped. The panel's own scale runs the other
        way, so the level is inverted before it is encoded.
        """
        level = max(BRIGHTNESS_MIN, min(BRIGHTNESS_MAX, int(level)))
        wire_level = BRIGHTNESS_MAX - level

        async with self._write_lock:
            header = self.protocol_encoder.encode_level_command(
                self._scratch(), Command.SET_BRIGHTNESS, wire_level
            )
            await self._send(header)
        logger.debug(f"Brightness set to {level} (wire level {wire_level})")

    async def set_orientation(
        self,
        orientation: Orientation,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
    ) -> None:
        """
        Send the orientation command and track width/height for later blits.

        The panel does not confirm the change.
        """
        orientation = Orientation(orientation)
        async with self._write_lock:
            header = self.protocol_encoder.encode_orientation(
                self._scratch(), Command.SET_ORIENTATION, orientation, width, height
            )
            await self._send(header)

        self._orientation = orientation
        self._width = width
        self._height = height
        logger.info(f"Orientation set to {orientation.name.lower()} ({width}x{height})")

    # Bitmaps

    async def display_bitmap(
        self, x: int, y: int, width: int, height: int, pixels: bytes
    ) -> None:
        """
        Blit an RGB565 little-endian buffer to the region at (x, y).

        Args:
            x, y: Top-left corner of the region
            width, height: Region size in pixels
            pixels: width * height * 2 bytes, row-major

        Raises:
            ProtocolMisuseError: If the region cannot be encoded or the buffer
                size does not match it
            NotConnectedError: If the serial port is not open
            TransportError: If the write fails
        """
        validate_blit_region(x, y, width, height)
        validate_pixel_buffer(len(pixels), width, height)

        async with self._write_lock:
            header = self.protocol_encoder.encode_bitmap_header(
                self._scratch(), Command.DISPLAY_BITMAP, x, y, width, height
            )
            await self._send(header, pixels)
        logger.debug(f"Bitmap {width}x{height} sent to ({x},{y}), {len(pixels)} bytes")

    async def display_image(self, source: ImageSource, x: int = 0, y: int = 0) -> bool:
        """
        Draw an image at (x, y), cropping whatever would run off the display.

        Load failures are logged and leave the panel untouched.

        Returns:
            bool: True if the image was sent
        """
        try:
            image = await asyncio.to_thread(load_image, source)
        except DecodeError as e:
            logger.error(f"Error drawing image: {e}")
            return False

        display_w, display_h = self._display_size()
        try:
            image = clip_to_display(image, x, y, display_w, display_h)
        except ValueError as e:
            raise ProtocolMisuseError(str(e)) from e
        pixels = image_to_rgb565_le(image)
        await self.display_bitmap(x, y, image.width, image.height, pixels)
        logger.info(f"Image {self._describe(source)} sent to display at ({x},{y})")
        return True

    def _display_size(self) -> tuple[int, int]:
        if self.background_size is not None:
            return self.background_size.w, self.background_size.h
        return self._width, self._height

    @staticmethod
    def _describe(source: ImageSource) -> str:
        if isinstance(source, Image.Image):
            return f"<{source.width}x{source.height} {source.mode}>"
        return str(source)

    # Background and widgets

    async def set_background(self, source: ImageSource) -> bool:
        """
        Cover the whole display with an image and keep it for compositing.

        The image is scaled to fill the display area and the excess cropped.
        A decode failure is logged and the previous background is kept.

        Returns:
            bool: True if the background was replaced and sent
        """
        try:
            image = await asyncio.to_thread(load_image, source)
        except DecodeError as e:
            logger.error(f"Error setting background: {e}")
            return False

        screen_w, screen_h = self._display_size()
        covered = cover(image, screen_w, screen_h)
        pixels = image_to_rgb565_le(covered)

        await self.display_bitmap(0, 0, screen_w, screen_h, pixels)
        self._background = covered.copy()
        logger.info(f"Background set to {self._describe(source)} ({screen_w}x{screen_h})")
        return True

    async def draw_widget(self, widget: Widget) -> bool:
        """
        Render a widget and blit only its rectangle.

        With a background set, the background under the widget is cropped and
        the widget composited on top. Without one, the widget raster is sent
        as is; its transparent pixels show up black.

        Returns:
            bool: True if anything was sent, False for an empty render
        """
        result = await widget.render()
        if result.is_empty:
            logger.debug(f"{widget!r} produced an empty render, nothing sent")
            return False

        image = result.image
        if self._background is not None:
            patch = composite_widget(self._background, image, widget.x, widget.y)
            if patch is not None:
                image = patch

        pixels = image_to_rgb565_le(image)
        await self.display_bitmap(widget.x, widget.y, result.width, result.height, pixels)
        return True
