"""Generate mock ECG frames for development without hardware."""

from __future__ import annotations

import math
import random
from typing import Iterator, Optional

import numpy as np

from . import config
from .data_parser import Sample, format_line

# One heartbeat, normalized amplitude: P wave, QRS complex, T wave, then baseline.
_BEAT_HEAD = [
    0, 0, 0, 0, 0, 0, 0, 5, 10, 15, 20, 25, 30, 30, 30, 25, 20, 15, 10, 5,
    0, 0, 0, 0, 0, 0, 0, 0, 0, -10, -20, -30, -50, -80, -100, 500, 1200, 1800, 1200, 500,
    -100, -80, -50, -30, -20, -10, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 5, 10, 15, 20,
    30, 40, 50, 60, 70, 75, 70, 60, 50, 40, 30, 20, 10, 5,
]
BEAT_TEMPLATE = np.array(_BEAT_HEAD + [0] * (200 - len(_BEAT_HEAD)), dtype=np.int16)

DC_OFFSET = 2048.0
WANDER_HZ = 0.5
WANDER_AMPLITUDE = 150.0
MAINS_HZ = 50.0
MAINS_AMPLITUDE = 30.0
NOISE_SPAN = 20


def ecg_waveform_generator(
    sample_rate_hz: float = config.SAMPLE_RATE_HZ,
    bpm: float = 60.0,
    rng: Optional[random.Random] = None,
) -> Iterator[int]:
    """Yield 12-bit ADC readings of a synthetic lead with wander and mains hum."""
    rng = rng or random.Random()
    phase_inc = len(BEAT_TEMPLATE) / (sample_rate_hz * 60.0 / bpm)
    beat_phase = 0.0
    wander_phase = 0.0
    mains_phase = 0.0
    while True:
        beat_phase = (beat_phase + phase_inc) % len(BEAT_TEMPLATE)
        value = float(BEAT_TEMPLATE[int(beat_phase)])

        value += WANDER_AMPLITUDE * math.sin(wander_phase)
        wander_phase = (wander_phase + 2 * math.pi * WANDER_HZ / sample_rate_hz) % (2 * math.pi)

        value += MAINS_AMPLITUDE * math.sin(mains_phase)
        mains_phase = (mains_phase + 2 * math.pi * MAINS_HZ / sample_rate_hz) % (2 * math.pi)

        value += rng.randrange(-NOISE_SPAN, NOISE_SPAN)
        value += DC_OFFSET
        yield int(min(max(value, config.Y_MIN), config.Y_MAX))


def wire_line_generator(
    sample_rate_hz: float = config.SAMPLE_RATE_HZ,
    bpm: int = 60,
    rng: Optional[random.Random] = None,
) -> Iterator[bytes]:
    """Yield encoded ``<adc>,<bpm>`` frames as the HC-05 link carries them.

    The device derives its rate from the trace with a QRS detector; here
    every frame reports the configured ``bpm`` the waveform is played at.
    """
    for adc in ecg_waveform_generator(sample_rate_hz, bpm, rng):
        yield format_line(Sample(ecg_value=float(adc), bpm=bpm))
