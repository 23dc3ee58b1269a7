"""Connection session tying a byte source to the ECG display state."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from . import config
from .buffers import SweepBuffer
from .data_parser import DecodeError, Sample
from .serial_device import ByteSource, StreamReader, TransportReadError

logger = logging.getLogger(__name__)


SampleCallback = Callable[[Sample], None]
DecodeErrorCallback = Callable[[DecodeError], None]
StatusCallback = Callable[[str], None]
StateCallback = Callable[["ConnectionState"], None]


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class HeartRateStatus(enum.Enum):
    NO_SIGNAL = "No signal"
    BRADYCARDIA = "Bradycardia (Slow)"
    NORMAL = "Normal"
    TACHYCARDIA = "Tachycardia (Fast)"


def classify_bpm(bpm: int) -> HeartRateStatus:
    """Map a heart rate to the status shown next to the trace.

    The firmware sends ``0,0`` while the electrodes are off, so a zero rate
    means no signal rather than bradycardia.
    """
    if bpm <= 0:
        return HeartRateStatus.NO_SIGNAL
    if bpm < config.BRADYCARDIA_BPM:
        return HeartRateStatus.BRADYCARDIA
    if bpm > config.TACHYCARDIA_BPM:
        return HeartRateStatus.TACHYCARDIA
    return HeartRateStatus.NORMAL


@dataclass(frozen=True)
class DisplaySnapshot:
    """Everything a presentation layer needs to redraw from scratch."""

    points: list[tuple[int, float]]
    write_head: int
    bpm: int
    status: HeartRateStatus
    state: ConnectionState


@dataclass
class DisplayState:
    """Sweep buffer plus the latest heart rate, reset together."""

    sweep: SweepBuffer = field(default_factory=SweepBuffer)
    current_bpm: int = 0

    def apply(self, sample: Sample) -> None:
        self.sweep.push(sample.ecg_value)
        self.current_bpm = sample.bpm

    def reset(self) -> None:
        self.sweep.reset()
        self.current_bpm = 0


@dataclass
class MonitorSession:
    """Own one connection at a time and feed its samples to the display.

    The reader task is the only producer and the consumer task the only
    mutator of ``display``; samples cross between them through a FIFO queue.
    """

    on_sample: SampleCallback = lambda sample: None
    on_decode_error: DecodeErrorCallback = lambda err: None
    on_status: StatusCallback = lambda msg: None
    on_state: StateCallback = lambda state: None
    display: DisplayState = field(default_factory=DisplayState)

    _state: ConnectionState = field(init=False, default=ConnectionState.DISCONNECTED)
    _source: Optional[ByteSource] = field(init=False, default=None)
    _reader: Optional[StreamReader] = field(init=False, default=None)
    _queue: Optional["asyncio.Queue[Sample]"] = field(init=False, default=None)
    _reader_task: Optional[asyncio.Task[None]] = field(init=False, default=None)
    _consumer_task: Optional[asyncio.Task[None]] = field(init=False, default=None)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def reader(self) -> Optional[StreamReader]:
        return self._reader

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        logger.info("Connection state %s -> %s", self._state.value, state.value)
        self._state = state
        self.on_state(state)

    async def connect(self, opener: Callable[[], ByteSource]) -> None:
        """Open a byte source with ``opener`` and start streaming from it."""
        if self._state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            await self.disconnect()
        self._set_state(ConnectionState.CONNECTING)
        self.on_status("Connecting...")
        try:
            source = opener()
        except Exception as e:
            logger.error("Connection failed: %s", e)
            self._set_state(ConnectionState.FAILED)
            self.on_status("Failed")
            raise
        self.start(source)

    def start(self, source: ByteSource) -> None:
        """Begin streaming from an already open source."""
        if self._source is not None:
            raise RuntimeError("Session already has an active source")
        self.display.reset()
        self._source = source
        self._queue = asyncio.Queue()
        self._reader = StreamReader(
            source=source,
            queue=self._queue,
            on_decode_error=self.on_decode_error,
        )
        self._set_state(ConnectionState.CONNECTED)
        self.on_status("Connected")
        self._consumer_task = asyncio.create_task(self._consume(self._queue))
        self._consumer_task.add_done_callback(self._handle_consumer_done)
        self._reader_task = asyncio.create_task(self._reader.run())
        self._reader_task.add_done_callback(self._handle_reader_done)

    async def disconnect(self) -> None:
        """Stop reading, deliver samples already handed off, then reset."""
        task = self._reader_task
        if self._reader:
            self._reader.stop()
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except TransportReadError:
                # already reported by the done callback
                pass
        self._teardown(ConnectionState.DISCONNECTED, "Disconnected")

    def pump(self) -> int:
        """Apply every queued sample now; return how many were applied."""
        if self._queue is None:
            return 0
        count = 0
        while True:
            try:
                sample = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return count
            self._apply(sample)
            count += 1

    def snapshot(self) -> DisplaySnapshot:
        bpm = self.display.current_bpm
        return DisplaySnapshot(
            points=self.display.sweep.snapshot(),
            write_head=self.display.sweep.write_head,
            bpm=bpm,
            status=classify_bpm(bpm),
            state=self._state,
        )

    async def _consume(self, queue: "asyncio.Queue[Sample]") -> None:
        while True:
            sample = await queue.get()
            self._apply(sample)

    def _apply(self, sample: Sample) -> None:
        if not self.is_connected:
            logger.debug("Ignoring sample while %s", self._state.value)
            return
        self.display.apply(sample)
        try:
            self.on_sample(sample)
        except Exception:
            logger.exception("Sample listener failed")

    def _handle_reader_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None or task is not self._reader_task:
            return
        logger.error("Read failed: %s", exc)
        self._teardown(ConnectionState.FAILED, f"Connection lost: {exc}")

    def _handle_consumer_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None or task is not self._consumer_task:
            return
        logger.error("Sample delivery failed: %s", exc)
        self._teardown(ConnectionState.FAILED, f"Display update failed: {exc}")

    def _teardown(self, final_state: ConnectionState, message: str) -> None:
        if self._source is None:
            # nothing open; an explicit disconnect still clears FAILED
            if final_state is ConnectionState.DISCONNECTED:
                self._set_state(final_state)
            return
        if self._reader:
            self._reader.stop()
        if self._reader_task and not self._reader_task.done():
            self._reader_task.cancel()
        self.pump()
        if self._consumer_task:
            self._consumer_task.cancel()
        try:
            self._source.close()
        except OSError:
            logger.debug("Closing byte source failed", exc_info=True)
        self._source = None
        self._reader = None
        self._reader_task = None
        self._consumer_task = None
        self._queue = None
        self.display.reset()
        self._set_state(final_state)
        self.on_status(message)
