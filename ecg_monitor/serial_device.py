"""Serial byte sources and the background reader that frames their output."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

import serial
import serial.tools.list_ports

from . import config
from .data_parser import DecodeError, Sample, decode
from .framing import LineFramer

logger = logging.getLogger(__name__)


DecodeErrorCallback = Callable[[DecodeError], None]


class TransportReadError(ConnectionError):
    """The link failed while reading; the session must be torn down."""


class ByteSource(Protocol):
    """Minimal transport the reader consumes."""

    def has_available_data(self) -> bool:
        ...

    def read(self, size: int) -> bytes:
        ...

    def close(self) -> None:
        ...


def list_ports() -> list[str]:
    """List serial device names, preferring macOS ``cu.*`` call-out nodes."""
    ports = []
    for port in serial.tools.list_ports.comports():
        if port.device.startswith("/dev/tty."):
            ports.append(port.device.replace("/dev/tty.", "/dev/cu."))
        else:
            ports.append(port.device)
    return ports


class SerialByteSource:
    """ByteSource over a pyserial port (HC-05 SPP or USB serial)."""

    def __init__(self, ser: serial.Serial) -> None:
        self._serial = ser

    @classmethod
    def open(cls, port: str, baud_rate: int = config.BAUD_RATE) -> "SerialByteSource":
        try:
            ser = serial.Serial(
                port=port,
                baudrate=baud_rate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=0,
            )
        except serial.SerialException as e:
            raise RuntimeError(f"Failed to open serial port {port}: {e}") from e
        if not ser.is_open:
            raise RuntimeError(f"Serial port {port} did not open")
        ser.reset_input_buffer()
        return cls(ser)

    def has_available_data(self) -> bool:
        try:
            return self._serial.in_waiting > 0
        except (serial.SerialException, OSError) as e:
            raise TransportReadError(str(e)) from e

    def read(self, size: int) -> bytes:
        try:
            return self._serial.read(min(size, max(self._serial.in_waiting, 1)))
        except (serial.SerialException, OSError) as e:
            raise TransportReadError(str(e)) from e

    def close(self) -> None:
        if self._serial.is_open:
            self._serial.close()

    @property
    def is_open(self) -> bool:
        return self._serial.is_open


@dataclass
class StreamReader:
    """Background loop: bytes in, decoded samples onto an ordered queue.

    The reader owns its LineFramer and never touches display state; the
    consumer side of ``queue`` does that.
    """

    source: ByteSource
    queue: "asyncio.Queue[Sample]"
    on_decode_error: DecodeErrorCallback = lambda err: None
    read_size: int = config.READ_CHUNK_SIZE
    poll_interval: float = config.POLL_INTERVAL
    max_pending_bytes: int = config.MAX_PENDING_BYTES

    framer: LineFramer = field(init=False, default_factory=LineFramer)
    valid_lines: int = field(init=False, default=0)
    invalid_lines: int = field(init=False, default=0)
    _running: bool = field(init=False, default=False)

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Ask the loop to halt at its next wait or hand-off."""
        self._running = False

    async def run(self) -> None:
        """Read until stopped or cancelled.

        Raises TransportReadError when the source fails."""
        self._running = True
        last_log_time = time.monotonic()
        logger.info("Listening for ECG frames")
        try:
            while self._running:
                if not self.source.has_available_data():
                    await asyncio.sleep(self.poll_interval)
                    continue

                chunk = self.source.read(self.read_size)
                self._feed(chunk)

                now = time.monotonic()
                if now - last_log_time > 1.0:
                    logger.info(
                        "Received %d bytes, %d valid / %d invalid lines, %d pending",
                        self.framer.bytes_received,
                        self.valid_lines,
                        self.invalid_lines,
                        self.framer.pending,
                    )
                    last_log_time = now

                # yield to the consumer between reads
                await asyncio.sleep(0)
        finally:
            self._running = False
            self.framer.clear()

    def _feed(self, chunk: bytes) -> None:
        for line in self.framer.append(chunk):
            result = decode(line)
            if isinstance(result, DecodeError):
                self.invalid_lines += 1
                logger.warning("Discarding frame: %s", result)
                try:
                    self.on_decode_error(result)
                except Exception:
                    logger.exception("Decode error listener failed")
                continue
            if not self._running:
                return
            self.valid_lines += 1
            self.queue.put_nowait(result)

        if self.framer.pending > self.max_pending_bytes:
            logger.warning(
                "No line terminator in %d bytes, dropping buffered data",
                self.framer.pending,
            )
            self.framer.clear()
