# turing_screen/config.py
"""Screen configuration: frozen dataclasses loaded from a TOML file."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .protocol_config import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    Orientation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Point:
    x: int
    y: int

    def __post_init__(self) -> None:
        if self.x < 0 or self.y < 0:
            raise ValueError(f"Point must be non-negative, got ({self.x},{self.y})")


@dataclass(frozen=True)
class Size:
    w: int
    h: int

    def __post_init__(self) -> None:
        if self.w <= 0 or self.h <= 0:
            raise ValueError(f"Size must be positive, got ({self.w}x{self.h})")


@dataclass(frozen=True)
class SerialConfig:
    port: str = "/dev/ttyACM0"
    timeout: float = 1.0
    write_timeout: Optional[float] = None
    mock: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("Serial timeout must be > 0")
        if self.write_timeout is not None and self.write_timeout <= 0:
            raise ValueError("Serial write_timeout must be > 0")
        if self.chunk_size < 1:
            raise ValueError("Serial chunk_size must be >= 1")


@dataclass(frozen=True)
class ClockConfig:
    origin: Point = field(default_factory=lambda: Point(230, 70))
    size: Size = field(default_factory=lambda: Size(128, 32))
    font_path: Optional[str] = None
    font_size: int = 32
    time_format: str = "%X"

    def __post_init__(self) -> None:
        if self.font_size <= 0:
            raise ValueError("Clock font_size must be > 0")

    @property
    def x(self) -> int:
        return self.origin.x

    @property
    def y(self) -> int:
        return self.origin.y

    @property
    def width(self) -> int:
        return self.size.w

    @property
    def height(self) -> int:
        return self.size.h


@dataclass(frozen=True)
class ScreenConfig:
    serial: SerialConfig = field(default_factory=SerialConfig)
    orientation: Orientation = Orientation.LANDSCAPE
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    brightness: int = 255
    background_path: Optional[str] = None
    # None: follow the driver's current width/height
    background_size: Optional[Size] = field(default_factory=lambda: Size(480, 320))
    refresh_interval: float = 1.0
    clock: Optional[ClockConfig] = field(default_factory=ClockConfig)

    def validate(self) -> None:
        from .validation import validate_screen_config

        validate_screen_config(self)


def _load_size(entry, default: Optional[Size]) -> Optional[Size]:
    if entry is None:
        return default
    if entry is False or (isinstance(entry, str) and entry.lower() == "auto"):
        return None
    if not isinstance(entry, dict):
        raise ValueError(f"Invalid size '{entry}' in config file")
    return Size(int(entry.get("w", 0)), int(entry.get("h", 0)))


def _load_clock(entry: Optional[dict]) -> Optional[ClockConfig]:
    if entry is None:
        return ClockConfig()
    if not entry.get("enabled", True):
        return None
    origin = entry.get("origin") or {}
    size = entry.get("size") or {}
    font_path = entry.get("font_path")
    return ClockConfig(
        origin=Point(int(origin.get("x", 230)), int(origin.get("y", 70))),
        size=Size(int(size.get("w", 128)), int(size.get("h", 32))),
        font_path=str(font_path) if font_path else None,
        font_size=int(entry.get("font_size", 32)),
        time_format=str(entry.get("time_format", "%X")),
    )


def load_from_toml(config_path: str | Path) -> ScreenConfig:
    """
    Load a ScreenConfig from a TOML file.

    Expected TOML structure:

    [serial]
    port = "/dev/ttyACM0"
    timeout = 1.0
    mock = false
    chunk_size = 4096

    [screen]
    orientation = "landscape"   # portrait|reverse_portrait|landscape|reverse_landscape
    width = 320
    height = 480
    brightness = 255
    refresh_interval = 1.0

    [background]
    path = "bg.jpg"
    size = { w = 480, h = 320 }  # or size = "auto" to follow width/height

    [clock]
    origin = { x = 230, y = 70 }
    size   = { w = 128, h = 32 }
    font_path = "fonts/open-sans-32.ttf"
    font_size = 32
    """
    p = Path(config_path)
    if not p.exists():
        raise FileNotFoundError(f"Configuration file not found: {p}")

    with p.open("rb") as f:
        data = tomllib.load(f)

    serial = data.get("serial") or {}
    screen = data.get("screen") or {}
    background = data.get("background") or {}
    write_timeout = serial.get("write_timeout")

    cfg = ScreenConfig(
        serial=SerialConfig(
            port=str(serial.get("port", "/dev/ttyACM0")),
            timeout=float(serial.get("timeout", 1.0)),
            write_timeout=float(write_timeout) if write_timeout is not None else None,
            mock=bool(serial.get("mock", False)),
            chunk_size=int(serial.get("chunk_size", DEFAULT_CHUNK_SIZE)),
        ),
        orientation=Orientation.parse(screen.get("orientation", "landscape")),
        width=int(screen.get("width", DEFAULT_WIDTH)),
        height=int(screen.get("height", DEFAULT_HEIGHT)),
        brightness=int(screen.get("brightness", 255)),
        background_path=background.get("path"),
        background_size=_load_size(background.get("size"), Size(480, 320)),
        refresh_interval=float(screen.get("refresh_interval", 1.0)),
        clock=_load_clock(data.get("clock")),
    )

    cfg.validate()

    logger.info(
        "Loaded ScreenConfig: %s %dx%d, serial=%s (mock=%s), background=%s",
        cfg.orientation.name.lower(),
        cfg.width,
        cfg.height,
        cfg.serial.port,
        cfg.serial.mock,
        cfg.background_path,
    )
    return cfg


def default_config() -> ScreenConfig:
    """Landscape panel on /dev/ttyACM0 with a clock near the top."""
    cfg = ScreenConfig(
        serial=SerialConfig(port="/dev/ttyACM0", timeout=1.0, mock=False),
        orientation=Orientation.LANDSCAPE,
        width=DEFAULT_WIDTH,
        height=DEFAULT_HEIGHT,
        brightness=255,
        background_size=Size(480, 320),
        refresh_interval=1.0,
        clock=ClockConfig(origin=Point(230, 70), size=Size(128, 32)),
    )
    cfg.validate()
    return cfg
