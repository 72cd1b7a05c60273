"""Tests for command frame encoding."""

import pytest

from turing_screen.protocol_config import (
    HEADER_LENGTH,
    MAX_COORDINATE,
    ORIENTATION_HEADER_LENGTH,
    SCRATCH_BUFFER_SIZE,
    Command,
    Orientation,
)
from turing_screen.protocol_encoder import ProtocolEncoder, Rect


@pytest.fixture
def encoder():
    return ProtocolEncoder()


@pytest.fixture
def scratch():
    return bytearray(SCRATCH_BUFFER_SIZE)


def test_simple_command_header(encoder, scratch):
    header = encoder.encode_command(scratch, Command.CLEAR)

    assert len(header) == HEADER_LENGTH
    assert bytes(header) == bytes([0, 0, 0, 0, 0, 102])


@pytest.mark.parametrize(
    "command, opcode",
    [
        (Command.RESET, 101),
        (Command.CLEAR, 102),
        (Command.SCREEN_OFF, 108),
        (Command.SCREEN_ON, 109),
        (Command.SET_BRIGHTNESS, 110),
        (Command.SET_ORIENTATION, 121),
        (Command.DISPLAY_BITMAP, 197),
    ],
)
def test_opcodes(command, opcode):
    assert int(command) == opcode


def test_level_command_splits_level(encoder, scratch):
    # 155 = 0b100110_11 -> high six bits 38, low two bits 3 -> 0b11000000
    header = encoder.encode_level_command(scratch, Command.SET_BRIGHTNESS, 155)
    assert bytes(header) == bytes([38, 192, 0, 0, 0, 110])


def test_level_command_round_trips_every_level(encoder, scratch):
    for level in range(256):
        header = encoder.encode_level_command(scratch, Command.SET_BRIGHTNESS, level)
        assert (header[0] << 2) | (header[1] >> 6) == level
        assert header[1] & 0x3F == 0


def test_orientation_header(encoder, scratch):
    header = encoder.encode_orientation(
        scratch, Command.SET_ORIENTATION, Orientation.LANDSCAPE, 480, 320
    )

    assert len(header) == ORIENTATION_HEADER_LENGTH
    # orientation biased by 100, width/height big-endian
    assert bytes(header) == bytes([0, 0, 0, 0, 0, 121, 102, 0x01, 0xE0, 0x01, 0x40])


def test_bitmap_header_known_region(encoder, scratch):
    header = encoder.encode_bitmap_header(scratch, Command.DISPLAY_BITMAP, 230, 70, 128, 32)

    # x=230, y=70, ex=357, ey=101
    assert bytes(header) == bytes([57, 132, 101, 148, 101, 197])


def test_bitmap_header_full_landscape(encoder, scratch):
    header = encoder.encode_bitmap_header(scratch, Command.DISPLAY_BITMAP, 0, 0, 480, 320)

    assert header[0] == 0
    assert ProtocolEncoder.decode_bitmap_header(header) == Rect(0, 0, 480, 320)


@pytest.mark.parametrize(
    "x, y, width, height",
    [
        (0, 0, 1, 1),
        (1, 2, 3, 4),
        (3, 15, 61, 255),
        (230, 70, 128, 32),
        (319, 479, 1, 1),
        (0, 0, 320, 480),
        (512, 256, 100, 200),
        (MAX_COORDINATE, MAX_COORDINATE, 1, 1),
        (0, 0, MAX_COORDINATE + 1, MAX_COORDINATE + 1),
    ],
)
def test_bitmap_header_decodes_back(encoder, scratch, x, y, width, height):
    header = encoder.encode_bitmap_header(
        scratch, Command.DISPLAY_BITMAP, x, y, width, height
    )
    rect = ProtocolEncoder.decode_bitmap_header(header)

    assert rect == Rect(x, y, width, height)
    assert rect.ex == x + width - 1
    assert rect.ey == y + height - 1


def test_reused_buffer_has_no_stale_bytes(encoder, scratch):
    encoder.encode_orientation(
        scratch, Command.SET_ORIENTATION, Orientation.REVERSE_LANDSCAPE, 480, 320
    )
    encoder.encode_level_command(scratch, Command.SET_BRIGHTNESS, 255)

    header = encoder.encode_command(scratch, Command.SCREEN_ON)
    assert bytes(header) == bytes([0, 0, 0, 0, 0, 109])

    header = encoder.encode_orientation(
        scratch, Command.SET_ORIENTATION, Orientation.PORTRAIT, 320, 480
    )
    assert bytes(header) == bytes([0, 0, 0, 0, 0, 121, 100, 0x01, 0x40, 0x01, 0xE0])


def test_out_of_range_values_are_not_truncated(encoder, scratch):
    with pytest.raises(ValueError):
        encoder.encode_bitmap_header(scratch, Command.DISPLAY_BITMAP, 4096, 0, 1, 1)

    with pytest.raises(ValueError):
        encoder.encode_level_command(scratch, Command.SET_BRIGHTNESS, 2048)


@pytest.mark.parametrize(
    "x, y, width, height",
    [
        (0, 1024, 1, 1),  # y overflows into x's bits
        (0, 0, 1, 1025),  # ey overflows into ex's bits
        (1000, 0, 30, 1),  # ex overflows into y's bits
        (-1, 0, 1, 1),
    ],
)
def test_bitmap_fields_outside_ten_bits_raise(encoder, scratch, x, y, width, height):
    with pytest.raises(ValueError, match="bitmap header field"):
        encoder.encode_bitmap_header(scratch, Command.DISPLAY_BITMAP, x, y, width, height)


def test_scratch_buffer_too_small(encoder):
    with pytest.raises(ValueError, match="scratch buffer too small"):
        encoder.encode_orientation(
            bytearray(6), Command.SET_ORIENTATION, Orientation.PORTRAIT, 320, 480
        )


def test_iter_chunks_splits_payload():
    payload = bytes(range(256)) * 40  # 10240 bytes

    chunks = list(ProtocolEncoder.iter_chunks(payload, 4096))

    assert [len(c) for c in chunks] == [4096, 4096, 2048]
    assert b"".join(bytes(c) for c in chunks) == payload


@pytest.mark.parametrize("chunk_size", [1, 7, 4096, 100000])
def test_iter_chunks_any_size_is_transparent(chunk_size):
    payload = bytes(range(200))

    joined = b"".join(bytes(c) for c in ProtocolEncoder.iter_chunks(payload, chunk_size))

    assert joined == payload


def test_iter_chunks_rejects_zero():
    with pytest.raises(ValueError):
        list(ProtocolEncoder.iter_chunks(b"\x00\x00", 0))


def test_orientation_parse():
    assert Orientation.parse("landscape") is Orientation.LANDSCAPE
    assert Orientation.parse("Reverse_Portrait") is Orientation.REVERSE_PORTRAIT
    assert Orientation.parse(3) is Orientation.REVERSE_LANDSCAPE

    with pytest.raises(ValueError):
        Orientation.parse("sideways")


if __name__ == "__main__":
    pytest.main([__file__])
