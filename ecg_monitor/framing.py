"""Split a chunked serial byte stream into newline-delimited text lines."""

from __future__ import annotations

from typing import Iterator

NEWLINE = b"\n"
ENCODING = "utf-8"


class LineFramer:
    """Accumulate raw chunks and release complete, trimmed lines.

    Lines are cut on raw bytes before any text decoding, so a multi-byte
    character that straddles two reads is reassembled before it is decoded.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self.bytes_received = 0
        self.lines_extracted = 0

    @property
    def pending(self) -> int:
        """Number of buffered bytes still waiting for a terminator."""
        return len(self._buffer)

    def append(self, chunk: bytes) -> Iterator[str]:
        """Buffer ``chunk`` and yield every line it completes.

        The chunk is stored immediately; the returned generator only controls
        when lines are cut from the buffer. Lines not consumed in one call are
        released by the next ``append``.
        """
        self._buffer.extend(chunk)
        self.bytes_received += len(chunk)
        return self._drain()

    def _drain(self) -> Iterator[str]:
        while True:
            end = self._buffer.find(NEWLINE)
            if end == -1:
                return
            if end == 0:
                # empty frame
                del self._buffer[:1]
                continue
            raw = bytes(self._buffer[:end])
            del self._buffer[: end + 1]
            line = raw.decode(ENCODING, errors="replace").strip()
            if not line:
                continue
            self.lines_extracted += 1
            yield line

    def clear(self) -> None:
        self._buffer.clear()

    def reset(self) -> None:
        """Forget buffered bytes and counters, as on a new connection."""
        self._buffer.clear()
        self.bytes_received = 0
        self.lines_extracted = 0
