"""
RGB565 pixel codec.

Converts 8-bit-per-channel images into the little-endian RGB565 buffer the
panel accepts. Alpha is ignored: any transparency must be resolved by
compositing before conversion. The conversion is lossy and one-way.
"""

import numpy as np
from PIL import Image


def pack_rgb565(r: int, g: int, b: int) -> int:
    """Pack a single 8-bit RGB triple into a 16-bit RGB565 value."""
    return ((r & 0xF8) << 8) | ((g & 0xFC) << 3) | (b >> 3)


def _pack_channels(rgb: np.ndarray) -> bytes:
    # rgb: (..., 3) uint8 array
    channels = rgb.astype(np.uint16)
    r = channels[..., 0]
    g = channels[..., 1]
    b = channels[..., 2]
    packed = ((r & 0xF8) << 8) | ((g & 0xFC) << 3) | (b >> 3)
    return packed.astype("<u2").tobytes()


def image_to_rgb565_le(image: Image.Image) -> bytes:
    """
    Encode an image as row-major little-endian RGB565.

    Args:
        image: Any Pillow image; modes other than RGB/RGBA are converted first

    Returns:
        bytes: width * height * 2 bytes
    """
    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGB")

    arr = np.asarray(image, dtype=np.uint8)
    return _pack_channels(arr[..., :3])


def rgb888_bytes_to_rgb565_le(data: bytes) -> bytes:
    """Encode packed RGB888 bytes (r, g, b, r, g, b, ...) as RGB565."""
    if len(data) % 3:
        raise ValueError(f"RGB888 data length {len(data)} is not a multiple of 3")

    arr = np.frombuffer(data, dtype=np.uint8).reshape(-1, 3)
    return _pack_channels(arr)
