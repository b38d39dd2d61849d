"""Serial (UART/USB-CDC) connection to a u-blox receiver.

The connection only moves bytes: compiled frames go out verbatim and
whatever the receiver sends back is returned undecoded.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import serial

from ..protocol.commands import compile_command

logger = logging.getLogger(__name__)

DEFAULT_PORT = "/dev/ttyUSB0"
DEFAULT_BAUDRATE = 38400
READ_TIMEOUT_S = 1.0
RESPONSE_WINDOW_S = 0.2
READ_CHUNK = 1024


@dataclass
class PortInfo:
    """Settings of the opened port."""

    port: str = DEFAULT_PORT
    baudrate: int = DEFAULT_BAUDRATE
    timeout: float = READ_TIMEOUT_S


class SerialConnection:
    """Manages the serial link to the receiver.

    Usage::

        conn = SerialConnection("/dev/ttyUSB0")
        conn.open()
        conn.send("CFG-VALSET 0 1 0 0 CFG-TMODE-MODE 1")
        conn.close()
    """

    def __init__(
        self,
        port: str = DEFAULT_PORT,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = READ_TIMEOUT_S,
    ) -> None:
        self._info = PortInfo(port=port, baudrate=baudrate, timeout=timeout)
        self._serial: serial.Serial | None = None

    @property
    def connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    @property
    def port_info(self) -> PortInfo:
        return self._info

    def open(self) -> PortInfo:
        """Open the serial port.

        Raises:
            ConnectionError: If the port cannot be opened.
        """
        if self.connected:
            return self._info
        try:
            self._serial = serial.Serial(
                self._info.port,
                self._info.baudrate,
                timeout=self._info.timeout,
            )
        except serial.SerialException as e:
            raise ConnectionError(
                f"Could not open {self._info.port} at {self._info.baudrate} baud: {e}"
            ) from e

        logger.info("Opened %s at %d baud", self._info.port, self._info.baudrate)
        return self._info

    def close(self) -> None:
        """Close the serial port."""
        if self._serial is None:
            return
        try:
            self._serial.close()
        except serial.SerialException as e:
            logger.warning("Error closing %s: %s", self._info.port, e)
        finally:
            self._serial = None
            logger.info("Disconnected from %s", self._info.port)

    def __enter__(self) -> SerialConnection:
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _require(self) -> serial.Serial:
        if not self.connected:
            raise ConnectionError("Not connected to receiver")
        return self._serial

    def write(self, frame: bytes) -> int:
        """Write a compiled frame.

        Returns:
            Number of bytes written.

        Raises:
            ConnectionError: If not connected or the write fails.
        """
        port = self._require()
        try:
            written = port.write(frame)
            port.flush()
        except serial.SerialException as e:
            raise ConnectionError(f"Write to {self._info.port} failed: {e}") from e
        logger.debug("Wrote %d bytes: %s", written, frame.hex(" "))
        return written

    def read(self, window_s: float = RESPONSE_WINDOW_S) -> bytes | None:
        """Collect bytes the receiver sends during ``window_s`` seconds.

        Returns:
            The raw bytes, or ``None`` if nothing arrived.

        Raises:
            ConnectionError: If not connected.
        """
        port = self._require()
        deadline = time.monotonic() + window_s
        data = bytearray()
        try:
            while time.monotonic() < deadline:
                waiting = port.in_waiting
                if waiting:
                    data += port.read(min(waiting, READ_CHUNK))
                else:
                    time.sleep(0.01)
        except serial.SerialException as e:
            logger.debug("Read error: %s", e)
        return bytes(data) or None

    def send(self, line: str) -> bytes:
        """Compile a command line and write the frame.

        Returns:
            The frame that was written.

        Raises:
            CommandError: If the line does not compile.
            ConnectionError: If not connected or the write fails.
        """
        frame = compile_command(line)
        self.write(frame)
        return frame

    def send_and_receive(
        self,
        line: str,
        window_s: float = RESPONSE_WINDOW_S,
    ) -> bytes | None:
        """Send a command line and return whatever the receiver answers.

        Returns:
            Raw response bytes, or ``None`` if the receiver stayed silent.
        """
        self.send(line)
        return self.read(window_s)
