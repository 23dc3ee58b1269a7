"""Drop-in byte source that emits simulated HC-05 traffic."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Iterator, Optional

from . import config
from .serial_device import TransportReadError
from .simulator import wire_line_generator

logger = logging.getLogger(__name__)

GARBAGE_LINE = b"??\r\n"


class SimulatedByteSource:
    """Mimic a serial ByteSource using synthetic ECG frames.

    Output is released in randomly sized chunks so frames regularly straddle
    reads. With ``paced`` set, frames become available at the sample rate;
    otherwise all ``max_lines`` frames are available at once.
    """

    def __init__(
        self,
        bpm: int = 72,
        sample_rate_hz: float = config.SAMPLE_RATE_HZ,
        paced: bool = True,
        max_lines: Optional[int] = None,
        garbage_every: int = 0,
        seed: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._rng = random.Random(seed)
        self._lines: Iterator[bytes] = wire_line_generator(sample_rate_hz, bpm, self._rng)
        self._sample_rate_hz = sample_rate_hz
        self._paced = paced
        self._max_lines = max_lines
        self._garbage_every = garbage_every
        self._clock = clock
        self._start = clock()
        self._emitted = 0
        self._pending = bytearray()
        self._closed = False

    @property
    def lines_emitted(self) -> int:
        return self._emitted

    def _due(self) -> int:
        if self._paced:
            due = int((self._clock() - self._start) * self._sample_rate_hz)
        else:
            due = self._max_lines if self._max_lines is not None else self._emitted + 1
        if self._max_lines is not None:
            due = min(due, self._max_lines)
        return due

    def _generate(self) -> None:
        while self._emitted < self._due():
            self._emitted += 1
            if self._garbage_every and self._emitted % self._garbage_every == 0:
                self._pending.extend(GARBAGE_LINE)
            else:
                self._pending.extend(next(self._lines))

    def has_available_data(self) -> bool:
        if self._closed:
            return False
        self._generate()
        return bool(self._pending)

    def read(self, size: int) -> bytes:
        if self._closed:
            raise TransportReadError("Simulated link is closed")
        self._generate()
        if not self._pending:
            return b""
        count = self._rng.randint(1, min(size, len(self._pending)))
        chunk = bytes(self._pending[:count])
        del self._pending[:count]
        return chunk

    def close(self) -> None:
        if not self._closed:
            logger.info("Simulated link closed after %d frames", self._emitted)
        self._closed = True
