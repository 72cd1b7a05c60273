"""
Turing smart screen protocol configuration.

Every command is a fire-and-forget write; the panel never acknowledges.
Header layout: 6 bytes with the command byte at offset 5. The orientation
command extends the header to 11 bytes.
"""

from enum import IntEnum

from serial import EIGHTBITS, PARITY_NONE, STOPBITS_ONE


class Command(IntEnum):
    """Command opcodes understood by the panel."""

    RESET = 101
    CLEAR = 102
    SCREEN_OFF = 108
    SCREEN_ON = 109
    SET_BRIGHTNESS = 110
    SET_ORIENTATION = 121
    DISPLAY_BITMAP = 197

    def __str__(self) -> str:
        return f"{self.name.lower()} ({self.value})"


class Orientation(IntEnum):
    """Panel orientation. Sent on the wire biased by ORIENTATION_BIAS."""

    PORTRAIT = 0
    REVERSE_PORTRAIT = 1
    LANDSCAPE = 2
    REVERSE_LANDSCAPE = 3

    @classmethod
    def parse(cls, value: "str | int | Orientation") -> "Orientation":
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Invalid orientation '{value}'") from None
        return cls(value)


# Header sizes
HEADER_LENGTH = 6
ORIENTATION_HEADER_LENGTH = 11
COMMAND_OFFSET = 5
SCRATCH_BUFFER_SIZE = 16

ORIENTATION_BIAS = 100

# Blit header packs x, y, ex, ey into 10-bit fields
COORDINATE_BITS = 10
MAX_COORDINATE = (1 << COORDINATE_BITS) - 1

# Payload chunking is a host-side measure; the panel sees a continuous stream
DEFAULT_CHUNK_SIZE = 4096

# Serial line parameters (115200 8N1) are fixed by the panel
BAUDRATE = 115200
BYTESIZE = EIGHTBITS
PARITY = PARITY_NONE
STOPBITS = STOPBITS_ONE

# Panel native resolution in portrait
DEFAULT_WIDTH = 320
DEFAULT_HEIGHT = 480

BRIGHTNESS_MIN = 0
BRIGHTNESS_MAX = 255
