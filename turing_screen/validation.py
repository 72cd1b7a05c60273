"""
Cross-cutting validation logic for the smart screen driver.

Type-local invariants stay in the dataclass __post_init__ methods in
config.py. The rules here span more than one value:

- Blit regions must be non-empty and fit the 10-bit fields of the header
- Pixel buffers must be exactly width * height * 2 bytes
- Screen configuration must be internally consistent
"""

from typing import TYPE_CHECKING

from .protocol_config import BRIGHTNESS_MAX, BRIGHTNESS_MIN, MAX_COORDINATE

if TYPE_CHECKING:
    from .config import ScreenConfig


class ValidationError(ValueError):
    """Base exception for validation errors."""
    pass


class ProtocolMisuseError(ValidationError):
    """Raised when a caller asks for something the protocol cannot encode."""
    pass


class ConfigValidationError(ValidationError):
    """Raised when screen configuration is invalid."""
    pass


def validate_blit_region(x: int, y: int, width: int, height: int) -> None:
    """
    Validate that a region can be encoded in a bitmap header.

    Args:
        x, y: Top-left corner
        width, height: Region size in pixels

    Raises:
        ProtocolMisuseError: If the region is empty, negative, or its end
            coordinates exceed the header's 10-bit fields
    """
    if x < 0 or y < 0:
        raise ProtocolMisuseError(f"Region origin must be non-negative, got ({x},{y})")
    if width <= 0 or height <= 0:
        raise ProtocolMisuseError(f"Region size must be positive, got ({width}x{height})")

    ex = x + width - 1
    ey = y + height - 1
    if ex > MAX_COORDINATE or ey > MAX_COORDINATE:
        raise ProtocolMisuseError(
            f"Region end ({ex},{ey}) exceeds maximum coordinate {MAX_COORDINATE}"
        )


def validate_pixel_buffer(length: int, width: int, height: int) -> None:
    """
    Validate that an RGB565 buffer matches the region it is blitted to.

    Raises:
        ProtocolMisuseError: If the length is not width * height * 2
    """
    expected = width * height * 2
    if length != expected:
        raise ProtocolMisuseError(
            f"Pixel buffer size {length} doesn't match expected {expected} "
            f"for {width}x{height} region"
        )


def validate_screen_config(config: "ScreenConfig") -> None:
    """
    Validate cross-field rules for a complete screen configuration.

    Raises:
        ConfigValidationError: If any rule fails
    """
    if config.refresh_interval <= 0:
        raise ConfigValidationError("refresh_interval must be > 0")

    if not (BRIGHTNESS_MIN <= config.brightness <= BRIGHTNESS_MAX):
        raise ConfigValidationError(
            f"brightness must be {BRIGHTNESS_MIN}-{BRIGHTNESS_MAX}, got {config.brightness}"
        )

    for name, value in (("width", config.width), ("height", config.height)):
        if not (0 < value <= MAX_COORDINATE + 1):
            raise ConfigValidationError(
                f"{name} must be 1-{MAX_COORDINATE + 1}, got {value}"
            )

    if config.background_size is not None:
        bw, bh = config.background_size.w, config.background_size.h
        if bw > MAX_COORDINATE + 1 or bh > MAX_COORDINATE + 1:
            raise ConfigValidationError(
                f"background_size {bw}x{bh} exceeds the addressable area"
            )

    clock = config.clock
    if clock is not None:
        try:
            validate_blit_region(clock.x, clock.y, clock.width, clock.height)
        except ProtocolMisuseError as e:
            raise ConfigValidationError(f"clock placement invalid: {e}") from e
