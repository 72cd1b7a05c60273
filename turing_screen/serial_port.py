"""
Serial Port I/O Boundary

This module provides the SerialPort class, which handles all serial I/O for
the smart screen. It hides the hardware/mock distinction behind a small
open/write/close interface bound to a single device path.

Line parameters (115200 baud, 8 data bits, no parity, 1 stop bit) are fixed
by the panel and are not configurable.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from serial import SerialException
from aioserial import AioSerial

from .config import SerialConfig
from .protocol_config import BAUDRATE, BYTESIZE, PARITY, STOPBITS


logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when opening, writing to or closing the serial port fails."""

    pass


class SerialPort(ABC):
    """
    Abstract base class for the byte transport to the panel.

    Implementations must deliver bytes in the order they are written.
    """

    @abstractmethod
    async def open(self) -> None:
        """
        Open the serial port.

        Raises:
            TransportError: If the port cannot be opened
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the serial port. Safe to call when already closed."""
        pass

    @abstractmethod
    def is_open(self) -> bool:
        """Check if the serial port is open."""
        pass

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write bytes to the serial port.

        Raises:
            TransportError: If the port is closed or the write fails
        """
        pass


class HardwareSerialPort(SerialPort):
    """
    Hardware serial port implementation using aioserial.

    Writes run in aioserial's executor so the event loop keeps ticking while
    the USB CDC endpoint drains.
    """

    def __init__(self, config: SerialConfig):
        self.config = config
        self._serial: Optional[AioSerial] = None
        self._io_lock = asyncio.Lock()

    async def open(self) -> None:
        """Open the hardware serial port."""
        async with self._io_lock:
            if self._serial is not None:
                return
            try:
                self._serial = AioSerial(
                    port=self.config.port,
                    baudrate=BAUDRATE,
                    bytesize=BYTESIZE,
                    parity=PARITY,
                    stopbits=STOPBITS,
                    timeout=self.config.timeout,
                    write_timeout=self.config.write_timeout,
                )
                logger.info(f"Opened serial port {self.config.port} at {BAUDRATE} baud")

            except (SerialException, OSError, ValueError) as e:
                self._serial = None
                raise TransportError(
                    f"Serial open failed on {self.config.port}: {e}"
                ) from e

    async def close(self) -> None:
        """Close the hardware serial port."""
        async with self._io_lock:
            if self._serial is None:
                return
            try:
                self._serial.close()
                logger.info(f"Closed serial port {self.config.port}")
            except (SerialException, OSError) as e:
                raise TransportError(f"Serial close failed: {e}") from e
            finally:
                self._serial = None

    def is_open(self) -> bool:
        """Check if the hardware serial port is open."""
        return self._serial is not None

    async def write(self, data: bytes) -> None:
        """Write bytes to the hardware serial port."""
        if not self._serial:
            raise TransportError("Serial port is not open")

        try:
            bytes_written = await self._serial.write_async(data)
        except (SerialException, OSError) as e:
            raise TransportError(f"Serial write failed: {e}") from e

        if bytes_written != len(data):
            raise TransportError(f"Short write: {bytes_written}/{len(data)} bytes")


class MockSerialPort(SerialPort):
    """
    Mock serial port implementation for testing and development.

    Records every write (as an immutable copy) so the exact byte stream can
    be inspected, and logs operations for debugging.
    """

    def __init__(self, config: Optional[SerialConfig] = None):
        self.config = config or SerialConfig(mock=True)
        self._open = False
        self.writes: List[bytes] = []

    async def open(self) -> None:
        """Simulate opening the serial port."""
        await asyncio.sleep(0)
        self._open = True
        logger.info(f"[MOCK] Opened serial port {self.config.port}")

    async def close(self) -> None:
        """Simulate closing the serial port."""
        if not self._open:
            return
        await asyncio.sleep(0)
        self._open = False
        logger.info("[MOCK] Closed serial port")

    def is_open(self) -> bool:
        """Check if the mock serial port is open."""
        return self._open

    async def write(self, data: bytes) -> None:
        """Record a write."""
        if not self._open:
            raise TransportError("Mock serial port is not open")

        self.writes.append(bytes(data))
        logger.debug(f"[MOCK] Wrote {len(data)} bytes")
        await asyncio.sleep(0)

    @property
    def written(self) -> bytes:
        """Everything written so far as a single byte stream."""
        return b"".join(self.writes)

    def reset_writes(self) -> None:
        self.writes.clear()


def create_serial_port(
    config: SerialConfig, use_hardware: Optional[bool] = None
) -> SerialPort:
    """
    Factory function to create appropriate serial port implementation.

    Args:
        config: Serial configuration
        use_hardware: Force hardware (True) or mock (False). If None, uses config.mock

    Returns:
        SerialPort: Hardware or mock implementation
    """
    if use_hardware is None:
        use_hardware = not config.mock

    if use_hardware:
        logger.info("Creating hardware serial port")
        return HardwareSerialPort(config)
    else:
        logger.info("Creating mock serial port")
        return MockSerialPort(config)
