"""
Pure Protocol Encoding Logic

This module contains the ProtocolEncoder class, which builds the command
frames for the Turing smart screen. It has no I/O dependencies: every method
takes a scratch buffer plus integers and returns the header bytes to write.

Header formats:
    simple:       [0, 0, 0, 0, 0, cmd]
    level:        [level >> 2, (level & 3) << 6, 0, 0, 0, cmd]
    orientation:  [0, 0, 0, 0, 0, cmd, orientation + 100, w_hi, w_lo, h_hi, h_lo]
    bitmap:       [x >> 2,
                   (x & 3) << 6 | y >> 4,
                   (y & 15) << 4 | ex >> 6,
                   (ex & 63) << 2 | ey >> 8,
                   ey & 255,
                   cmd]
"""

from typing import Iterator, NamedTuple

from .protocol_config import (
    COMMAND_OFFSET,
    HEADER_LENGTH,
    MAX_COORDINATE,
    ORIENTATION_BIAS,
    ORIENTATION_HEADER_LENGTH,
    Command,
    Orientation,
)


class Rect(NamedTuple):
    """Axis-aligned region on the panel."""

    x: int
    y: int
    width: int
    height: int

    @property
    def ex(self) -> int:
        return self.x + self.width - 1

    @property
    def ey(self) -> int:
        return self.y + self.height - 1


class ProtocolEncoder:
    """
    Pure protocol encoder for smart screen command frames.

    The scratch buffer is owned by the caller and reused between frames. Each
    encode method zeroes the bytes it is about to use before populating them,
    so nothing from a previous (possibly longer) frame leaks into the header.
    Values are never masked: an integer that does not fit a byte raises
    ValueError from the bytearray, and bitmap coordinates outside their
    10-bit fields raise ValueError before anything is written.
    """

    @staticmethod
    def _prepare(buffer: bytearray, length: int) -> None:
        if len(buffer) < length:
            raise ValueError(
                f"scratch buffer too small: {len(buffer)} < {length} bytes"
            )
        buffer[0:length] = bytes(length)

    def encode_command(self, buffer: bytearray, command: Command) -> memoryview:
        """
        Encode a command without parameters.

        Args:
            buffer: Scratch buffer (at least HEADER_LENGTH bytes)
            command: Command opcode

        Returns:
            memoryview: HEADER_LENGTH bytes view over the scratch buffer
        """
        self._prepare(buffer, HEADER_LENGTH)
        buffer[COMMAND_OFFSET] = command
        return memoryview(buffer)[:HEADER_LENGTH]

    def encode_level_command(
        self, buffer: bytearray, command: Command, level: int
    ) -> memoryview:
        """
        Encode a command carrying an 8-bit level.

        The level is split across the first two bytes: the high six bits in
        byte 0 and the low two bits in the top of byte 1.
        """
        self._prepare(buffer, HEADER_LENGTH)
        buffer[0] = level >> 2
        buffer[1] = (level & 3) << 6
        buffer[COMMAND_OFFSET] = command
        return memoryview(buffer)[:HEADER_LENGTH]

    def encode_orientation(
        self,
        buffer: bytearray,
        command: Command,
        orientation: Orientation,
        width: int,
        height: int,
    ) -> memoryview:
        """
        Encode the extended orientation header.

        Width and height are sent big-endian, two bytes each.
        """
        self._prepare(buffer, ORIENTATION_HEADER_LENGTH)
        buffer[COMMAND_OFFSET] = command
        buffer[6] = int(orientation) + ORIENTATION_BIAS
        buffer[7] = width >> 8
        buffer[8] = width & 255
        buffer[9] = height >> 8
        buffer[10] = height & 255
        return memoryview(buffer)[:ORIENTATION_HEADER_LENGTH]

    def encode_bitmap_header(
        self,
        buffer: bytearray,
        command: Command,
        x: int,
        y: int,
        width: int,
        height: int,
    ) -> memoryview:
        """
        Encode the header announcing a bitmap blit.

        The region is sent as its start (x, y) and inclusive end (ex, ey)
        coordinates packed into 10-bit fields across bytes 0-4. The RGB565
        payload follows as a separate write.

        Args:
            buffer: Scratch buffer (at least HEADER_LENGTH bytes)
            command: Command opcode (DISPLAY_BITMAP)
            x, y: Top-left corner of the region
            width, height: Region size in pixels

        Returns:
            memoryview: HEADER_LENGTH bytes view over the scratch buffer
        """
        ex = x + width - 1
        ey = y + height - 1
        # packed fields share bytes, so overflow would land in a neighbour
        for name, value in (("x", x), ("y", y), ("ex", ex), ("ey", ey)):
            if not (0 <= value <= MAX_COORDINATE):
                raise ValueError(
                    f"{name}={value} outside 0-{MAX_COORDINATE} bitmap header field"
                )

        self._prepare(buffer, HEADER_LENGTH)
        buffer[0] = x >> 2
        buffer[1] = ((x & 3) << 6) + (y >> 4)
        buffer[2] = ((y & 15) << 4) + (ex >> 6)
        buffer[3] = ((ex & 63) << 2) + (ey >> 8)
        buffer[4] = ey & 255
        buffer[COMMAND_OFFSET] = command
        return memoryview(buffer)[:HEADER_LENGTH]

    @staticmethod
    def decode_bitmap_header(header: bytes) -> Rect:
        """Recover the region from an encoded bitmap header."""
        if len(header) < HEADER_LENGTH:
            raise ValueError(f"bitmap header must be {HEADER_LENGTH} bytes")

        x = (header[0] << 2) | (header[1] >> 6)
        y = ((header[1] & 63) << 4) | (header[2] >> 4)
        ex = ((header[2] & 15) << 6) | (header[3] >> 2)
        ey = ((header[3] & 3) << 8) | header[4]
        return Rect(x, y, ex - x + 1, ey - y + 1)

    @staticmethod
    def iter_chunks(payload: bytes, chunk_size: int) -> Iterator[memoryview]:
        """
        Split a payload into chunks of at most chunk_size bytes.

        Yields views, so no payload bytes are copied.
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

        view = memoryview(payload)
        for offset in range(0, len(view), chunk_size):
            yield view[offset : offset + chunk_size]
