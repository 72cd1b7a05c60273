"""Tests for the serial port I/O boundary."""

import pytest
from serial import SerialException

from turing_screen import serial_port as serial_port_module
from turing_screen.config import SerialConfig
from turing_screen.serial_port import (
    HardwareSerialPort,
    MockSerialPort,
    TransportError,
    create_serial_port,
)


class FakeAioSerial:
    """Stands in for AioSerial so no device is needed."""

    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.closed = False
        self.written = []
        self.short_by = 0
        FakeAioSerial.instances.append(self)

    async def write_async(self, data) -> int:
        self.written.append(bytes(data))
        return len(data) - self.short_by

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_aioserial(monkeypatch):
    FakeAioSerial.instances = []
    monkeypatch.setattr(serial_port_module, "AioSerial", FakeAioSerial)
    return FakeAioSerial


@pytest.mark.asyncio
async def test_hardware_port_uses_fixed_line_parameters(fake_aioserial):
    port = HardwareSerialPort(SerialConfig(port="/dev/ttyACM3", timeout=2.0))

    await port.open()

    (serial,) = fake_aioserial.instances
    assert serial.kwargs["port"] == "/dev/ttyACM3"
    assert serial.kwargs["baudrate"] == 115200
    assert serial.kwargs["bytesize"] == 8
    assert serial.kwargs["parity"] == "N"
    assert serial.kwargs["stopbits"] == 1
    assert serial.kwargs["timeout"] == 2.0
    assert port.is_open()


@pytest.mark.asyncio
async def test_hardware_port_write_and_close(fake_aioserial):
    port = HardwareSerialPort(SerialConfig())
    await port.open()

    await port.write(memoryview(bytearray([0, 0, 0, 0, 0, 102])))
    await port.close()
    await port.close()

    (serial,) = fake_aioserial.instances
    assert serial.written == [bytes([0, 0, 0, 0, 0, 102])]
    assert serial.closed
    assert not port.is_open()


@pytest.mark.asyncio
async def test_hardware_port_short_write(fake_aioserial):
    port = HardwareSerialPort(SerialConfig())
    await port.open()
    fake_aioserial.instances[0].short_by = 1

    with pytest.raises(TransportError, match="Short write"):
        await port.write(b"\x01\x02\x03")


@pytest.mark.asyncio
async def test_hardware_port_open_failure(monkeypatch):
    def refuse(**kwargs):
        raise SerialException("could not open port")

    monkeypatch.setattr(serial_port_module, "AioSerial", refuse)
    port = HardwareSerialPort(SerialConfig(port="/dev/missing"))

    with pytest.raises(TransportError, match="/dev/missing"):
        await port.open()
    assert not port.is_open()


@pytest.mark.asyncio
async def test_hardware_port_write_when_closed():
    port = HardwareSerialPort(SerialConfig())

    with pytest.raises(TransportError):
        await port.write(b"\x00")


@pytest.mark.asyncio
async def test_mock_port_records_copies():
    port = MockSerialPort()
    await port.open()
    scratch = bytearray(b"\x01\x02")

    await port.write(memoryview(scratch))
    scratch[0] = 0xFF
    await port.write(b"\x03")

    assert port.writes == [b"\x01\x02", b"\x03"]
    assert port.written == b"\x01\x02\x03"


@pytest.mark.asyncio
async def test_mock_port_requires_open():
    port = MockSerialPort()

    with pytest.raises(TransportError):
        await port.write(b"\x00")


def test_create_serial_port():
    assert isinstance(create_serial_port(SerialConfig(mock=True)), MockSerialPort)
    assert isinstance(create_serial_port(SerialConfig(mock=False)), HardwareSerialPort)
    assert isinstance(
        create_serial_port(SerialConfig(mock=False), use_hardware=False), MockSerialPort
    )


if __name__ == "__main__":
    pytest.main([__file__])
