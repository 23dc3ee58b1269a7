"""Tests for the sample decoder."""

import pytest

from ecg_monitor.data_parser import DecodeError, Sample, decode, format_line, parse_line


class TestParseLine:
    """Test cases for parse_line and decode."""

    def test_valid_line(self):
        assert parse_line("512,75") == Sample(ecg_value=512.0, bpm=75)

    def test_float_and_signed_values(self):
        sample = parse_line("-1.25,-3")
        assert sample.ecg_value == pytest.approx(-1.25)
        assert sample.bpm == -3

    def test_ecg_value_has_single_precision(self):
        sample = parse_line("0.1,60")
        assert sample.ecg_value != 0.1
        assert sample.ecg_value == pytest.approx(0.1, rel=1e-6)

    @pytest.mark.parametrize(
        "line",
        [
            "abc",
            "512",
            "512,75,1",
            ",75",
            "512,",
            "x,75",
            "512,7.5",
            "512,abc",
            "nan,75",
            "inf,75",
            "1e39,75",
            "512, 75",
            "512,99999999999",
            "1_000,75",
            "",
        ],
    )
    def test_malformed_lines_rejected(self, line):
        with pytest.raises(DecodeError) as info:
            parse_line(line)
        assert info.value.line == line

    def test_decode_returns_error_instead_of_raising(self):
        result = decode("abc")
        assert isinstance(result, DecodeError)
        assert result.line == "abc"

    def test_decode_is_deterministic(self):
        assert decode("512,75") == decode("512,75")
        assert decode("bad") == decode("bad")


class TestFormatLine:
    """Test cases for the wire encoder used by the simulator."""

    def test_integer_reading_printed_like_firmware(self):
        assert format_line(Sample(ecg_value=2048.0, bpm=72)) == b"2048,72\r\n"

    def test_fractional_reading_decodes_back(self):
        line = format_line(Sample(ecg_value=12.5, bpm=60)).decode().strip()
        assert parse_line(line) == Sample(ecg_value=12.5, bpm=60)

    def test_single_precision_reading_round_trips(self):
        sample = Sample(ecg_value=1234.5677490234375, bpm=60)
        line = format_line(sample).decode().strip()
        assert parse_line(line) == sample
