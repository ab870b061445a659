# tests/core/test_textutil.py
"""Tests for text cleanup, numeric extraction and truncation helpers."""

import pytest

from toolshape.core.config import TRUNCATION_MARKER
from toolshape.core.textutil import (
    clean_lines,
    estimate_tokens,
    fmt_num,
    plural,
    strip_ansi,
    to_float,
    to_int,
    truncate_capture,
    truncate_text,
)
from toolshape.core.types import RawCapture


class TestStripAnsi:
    """Terminal noise must never reach the line grammars."""

    def test_removes_color_sequences(self):
        assert strip_ansi("\x1b[31mred\x1b[0m text") == "red text"

    def test_normalizes_crlf(self):
        assert strip_ansi("a\r\nb") == "a\nb"

    def test_keeps_git_record_separators(self):
        assert strip_ansi("a\x1fb\x1e") == "a\x1fb\x1e"

    def test_none_is_empty(self):
        assert strip_ansi(None) == ""
        assert clean_lines(None) == [""]


class TestNumbers:
    def test_to_int_falls_back_to_zero(self):
        assert to_int("12") == 12
        assert to_int("abc") == 0
        assert to_int(None) == 0

    def test_to_float_rejects_nan(self):
        assert to_float("2.50") == 2.5
        assert to_float("nan") == 0.0
        assert to_float("inf") == 0.0
        assert to_float("") == 0.0

    def test_fmt_num(self):
        assert fmt_num(2.0) == "2"
        assert fmt_num(2.5) == "2.5"
        assert fmt_num(3) == "3"

    def test_plural_boundary(self):
        assert plural(1, "file") == "1 file"
        assert plural(0, "file") == "0 files"
        assert plural(3, "vulnerability", "vulnerabilities") == "3 vulnerabilities"

    def test_estimate_tokens_rounds_up(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcde") == 2


class TestTruncation:
    def test_short_text_untouched(self):
        assert truncate_text("hello", 20) == ("hello", False)

    def test_cut_text_ends_in_one_marker(self):
        text, cut = truncate_text("x" * 100, 20)
        assert cut is True
        assert len(text) == 20
        assert text.endswith(TRUNCATION_MARKER)
        assert not text.endswith(TRUNCATION_MARKER * 2)

    def test_existing_markers_are_not_doubled(self):
        text, cut = truncate_text("a" * 10 + TRUNCATION_MARKER * 20, 15)
        assert cut is True
        assert text == "a" * 10 + TRUNCATION_MARKER

    def test_budget_below_marker_rejected(self):
        with pytest.raises(ValueError):
            truncate_text("abc", 0)

    def test_capture_truncation(self):
        """100-character streams with a 20-character budget."""
        capture = RawCapture(stdout="o" * 100, stderr="e" * 100, exit_code=1)
        cut = truncate_capture(capture, 20)
        assert cut.truncated is True
        for stream in (cut.stdout, cut.stderr):
            assert len(stream) <= 20
            assert stream.endswith(TRUNCATION_MARKER)
            assert stream.count(TRUNCATION_MARKER) == 1
        assert cut.exit_code == 1
        # The original capture is immutable and unchanged.
        assert capture.truncated is False
        assert len(capture.stdout) == 100

    def test_capture_within_budget_is_returned_as_is(self):
        capture = RawCapture(stdout="ok", stderr="")
        assert truncate_capture(capture, 20) is capture
