"""Tests for the synthetic ECG source."""

import itertools
import random

from ecg_monitor import config
from ecg_monitor.data_parser import DecodeError, Sample, decode
from ecg_monitor.framing import LineFramer
from ecg_monitor.sim_device import SimulatedByteSource
from ecg_monitor.simulator import ecg_waveform_generator, wire_line_generator


def _read_all(source):
    framer = LineFramer()
    lines = []
    while source.has_available_data():
        lines.extend(framer.append(source.read(config.READ_CHUNK_SIZE)))
    return lines, framer


class TestWaveform:
    """Test cases for the waveform generators."""

    def test_values_stay_in_adc_range(self):
        values = list(itertools.islice(ecg_waveform_generator(rng=random.Random(3)), 2000))
        assert all(int(config.Y_MIN) <= v <= int(config.Y_MAX) for v in values)

    def test_one_r_peak_per_beat(self):
        # 60 bpm at 360 Hz: one beat every 360 samples
        values = list(itertools.islice(ecg_waveform_generator(bpm=60, rng=random.Random(0)), 720))
        first, second = values[:360], values[360:]
        assert max(first) > 3000
        assert max(second) > 3000

    def test_seeded_output_is_repeatable(self):
        a = list(itertools.islice(wire_line_generator(rng=random.Random(7)), 50))
        b = list(itertools.islice(wire_line_generator(rng=random.Random(7)), 50))
        assert a == b

    def test_wire_lines_use_firmware_format(self):
        line = next(wire_line_generator(bpm=80, rng=random.Random(1)))
        assert line.endswith(b"\r\n")
        text = line.decode("ascii").strip()
        sample = decode(text)
        assert isinstance(sample, Sample)
        assert sample.bpm == 80


class TestSimulatedByteSource:
    """Test cases for SimulatedByteSource."""

    def test_all_frames_survive_random_chunking(self):
        source = SimulatedByteSource(paced=False, max_lines=200, seed=5)
        lines, framer = _read_all(source)
        assert len(lines) == 200
        assert framer.pending == 0
        assert all(isinstance(decode(line), Sample) for line in lines)

    def test_garbage_frames_injected(self):
        source = SimulatedByteSource(paced=False, max_lines=50, garbage_every=10, seed=5)
        lines, _ = _read_all(source)
        errors = [line for line in lines if isinstance(decode(line), DecodeError)]
        assert len(errors) == 5

    def test_paced_by_clock(self):
        now = [0.0]
        source = SimulatedByteSource(sample_rate_hz=100, seed=2, clock=lambda: now[0])
        assert not source.has_available_data()
        now[0] = 0.035
        lines, _ = _read_all(source)
        assert len(lines) == 3
        assert source.lines_emitted == 3

    def test_closed_source(self):
        source = SimulatedByteSource(paced=False, max_lines=5, seed=1)
        source.close()
        assert not source.has_available_data()
