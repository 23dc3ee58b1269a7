"""Tests for the line framer."""

import pytest

from ecg_monitor.framing import LineFramer


class TestLineFramer:
    """Test cases for LineFramer."""

    def test_partial_chunk_is_buffered(self):
        framer = LineFramer()
        assert list(framer.append(b"512,7")) == []
        assert framer.pending == 5

    def test_line_completed_by_next_chunk(self):
        framer = LineFramer()
        assert list(framer.append(b"512,7")) == []
        assert list(framer.append(b"5\n")) == ["512,75"]
        assert framer.pending == 0

    @pytest.mark.parametrize("split", range(1, 7))
    def test_split_point_does_not_change_result(self, split):
        data = b"512,75\n"
        whole = list(LineFramer().append(data))

        framer = LineFramer()
        pieces = list(framer.append(data[:split])) + list(framer.append(data[split:]))
        assert pieces == whole == ["512,75"]

    def test_multiple_lines_in_one_chunk(self):
        framer = LineFramer()
        assert list(framer.append(b"1,60\n2,61\n3,")) == ["1,60", "2,61"]
        assert framer.pending == 2

    def test_crlf_and_whitespace_trimmed(self):
        framer = LineFramer()
        assert list(framer.append(b"  100,70 \r\n")) == ["100,70"]

    def test_empty_frames_skipped(self):
        framer = LineFramer()
        assert list(framer.append(b"\n\r\n100,70\n\n")) == ["100,70"]
        assert framer.pending == 0
        assert framer.lines_extracted == 1

    def test_multibyte_character_split_across_chunks(self):
        text = "µV,1\n".encode("utf-8")
        framer = LineFramer()
        assert list(framer.append(text[:1])) == []
        assert list(framer.append(text[1:])) == ["µV,1"]

    def test_invalid_bytes_do_not_raise(self):
        framer = LineFramer()
        lines = list(framer.append(b"\xff\xfe,1\n"))
        assert len(lines) == 1
        assert lines[0].endswith(",1")

    def test_chunk_buffered_even_if_lines_not_consumed(self):
        framer = LineFramer()
        framer.append(b"1,60\n")
        assert framer.pending == 5
        assert list(framer.append(b"")) == ["1,60"]

    def test_reset_clears_buffer_and_counters(self):
        framer = LineFramer()
        list(framer.append(b"1,60\n2,"))
        framer.reset()
        assert framer.pending == 0
        assert framer.bytes_received == 0
        assert framer.lines_extracted == 0
