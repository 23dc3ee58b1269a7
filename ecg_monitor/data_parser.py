"""Utilities for decoding HC-05 text frames into ECG samples."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Union

import numpy as np


FIELD_SEPARATOR = ","
LINE_TERMINATOR = b"\r\n"

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_FLOAT_FIELD = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_FIELD = re.compile(r"[+-]?\d+")


@dataclass(frozen=True)
class Sample:
    """One ECG reading paired with the heart rate reported alongside it."""

    ecg_value: float
    bpm: int


class DecodeError(Exception):
    """Signals that a received line is not a valid ``<ecg>,<bpm>`` frame."""

    def __init__(self, line: str, reason: str = "malformed") -> None:
        super().__init__(f"{reason}: {line!r}")
        self.line = line
        self.reason = reason

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DecodeError):
            return NotImplemented
        return self.line == other.line and self.reason == other.reason

    def __hash__(self) -> int:
        return hash((self.line, self.reason))


def _parse_ecg(field: str, line: str) -> float:
    if not _FLOAT_FIELD.fullmatch(field):
        raise DecodeError(line, "ecg value is not a number")
    # The device reports single precision readings.
    with np.errstate(over="ignore"):
        value = float(np.float32(float(field)))
    if not math.isfinite(value):
        raise DecodeError(line, "ecg value is not finite")
    return value


def _parse_bpm(field: str, line: str) -> int:
    if not _INT_FIELD.fullmatch(field):
        raise DecodeError(line, "bpm is not an integer")
    value = int(field)
    if not INT32_MIN <= value <= INT32_MAX:
        raise DecodeError(line, "bpm out of range")
    return value


def parse_line(line: str) -> Sample:
    """Parse a trimmed ``<float>,<int>`` line into a Sample.

    Raises DecodeError when the line format is invalid."""
    parts = line.split(FIELD_SEPARATOR)
    if len(parts) != 2:
        raise DecodeError(line, f"expected 2 fields, got {len(parts)}")
    ecg_field, bpm_field = parts
    return Sample(ecg_value=_parse_ecg(ecg_field, line), bpm=_parse_bpm(bpm_field, line))


def decode(line: str) -> Union[Sample, DecodeError]:
    """Decode ``line`` without raising; failures come back as DecodeError."""
    try:
        return parse_line(line)
    except DecodeError as exc:
        return exc


def format_line(sample: Sample) -> bytes:
    """Encode a sample the way the firmware prints it, CRLF terminated."""
    ecg = sample.ecg_value
    text = f"{int(ecg)}" if float(ecg).is_integer() else f"{ecg:.9g}"
    return f"{text}{FIELD_SEPARATOR}{sample.bpm}".encode("ascii") + LINE_TERMINATOR
