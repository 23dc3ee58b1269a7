"""Fixed-size sweep buffer backing the ECG trace."""

from __future__ import annotations

import math

import numpy as np

from . import config


class SweepBuffer:
    """Oscilloscope-style buffer overwritten in place at a moving write head.

    Old points ahead of the head stay visible until the next lap replaces
    them. Unwritten slots hold NaN.
    """

    def __init__(
        self,
        capacity: int = config.SWEEP_WINDOW_POINTS,
        y_min: float = config.Y_MIN,
        y_max: float = config.Y_MAX,
    ) -> None:
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        if y_min > y_max:
            raise ValueError(f"Empty range [{y_min}, {y_max}]")
        self.capacity = capacity
        self.y_min = y_min
        self.y_max = y_max
        self._data = np.full(capacity, np.nan, dtype=np.float32)
        self._write_head = 0
        self._filled = False

    @property
    def write_head(self) -> int:
        return self._write_head

    @property
    def filled(self) -> bool:
        """True once every slot has been written since the last reset."""
        return self._filled

    def push(self, value: float) -> None:
        if math.isnan(value):
            raise ValueError("NaN is reserved for unwritten slots")
        assert 0 <= self._write_head < self.capacity, self._write_head
        self._data[self._write_head] = min(max(value, self.y_min), self.y_max)
        self._write_head = (self._write_head + 1) % self.capacity
        if self._write_head == 0:
            self._filled = True

    def values(self) -> np.ndarray:
        """Return a read-only copy of all slots in slot order."""
        data = self._data.copy()
        data.flags.writeable = False
        return data

    def snapshot(self) -> list[tuple[int, float]]:
        """Return ``(index, value)`` pairs for every slot, in slot order."""
        return list(enumerate(self._data.tolist()))

    def reset(self) -> None:
        self._data.fill(np.nan)
        self._write_head = 0
        self._filled = False
