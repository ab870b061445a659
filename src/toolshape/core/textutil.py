"""Text helpers shared by every parser and formatter."""

import math
import re
from dataclasses import replace
from typing import Optional

from .config import TRUNCATION_MARKER
from .types import RawCapture

# CSI sequences, OSC sequences (BEL or ST terminated) and lone escape pairs.
ANSI_RE = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b[@-Z\\-_]"
)
# Leftover C0 controls other than tab, newline and the \x1e/\x1f record separators.
CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1d\x7f]")


def strip_ansi(text: Optional[str]) -> str:
    if not text:
        return ""
    text = ANSI_RE.sub("", text)
    text = text.replace("\r\n", "\n")
    return CONTROL_RE.sub("", text)


def clean_lines(text: Optional[str]) -> list[str]:
    """Strip terminal noise and split into lines, keeping blank lines."""
    return strip_ansi(text).split("\n")


def to_int(value: Optional[str]) -> int:
    """Parse an integer capture, falling back to 0."""
    if value is None:
        return 0
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


def to_float(value: Optional[str]) -> float:
    """Parse a float capture, falling back to 0.0 for anything non-finite."""
    if value is None:
        return 0.0
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return 0.0
    if math.isnan(parsed) or math.isinf(parsed):
        return 0.0
    return parsed


def fmt_num(value: float | int) -> str:
    """Render a number without a trailing '.0' (2.0 -> '2', 2.5 -> '2.5')."""
    if isinstance(value, int):
        return str(value)
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def plural(count: int, singular: str, plural_form: Optional[str] = None) -> str:
    """'1 file', '3 files'."""
    if count == 1:
        return f"{count} {singular}"
    return f"{count} {plural_form or singular + 's'}"


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / 4)


def truncate_text(text: str, budget: int) -> tuple[str, bool]:
    """
    Cut text to at most `budget` characters.

    A cut result always ends in exactly one truncation marker and the marker
    counts against the budget.
    """
    if budget < len(TRUNCATION_MARKER):
        raise ValueError(f"Output budget must be at least {len(TRUNCATION_MARKER)}")
    if len(text) <= budget:
        return text, False
    kept = text[: budget - len(TRUNCATION_MARKER)].rstrip(TRUNCATION_MARKER)
    return kept + TRUNCATION_MARKER, True


def truncate_capture(capture: RawCapture, budget: int) -> RawCapture:
    """Apply a character budget to both streams of a capture."""
    stdout, out_cut = truncate_text(capture.stdout, budget)
    stderr, err_cut = truncate_text(capture.stderr, budget)
    if not (out_cut or err_cut):
        return capture
    return replace(capture, stdout=stdout, stderr=stderr, truncated=True)


def preview(text: str, limit: int) -> str:
    """Short raw-output excerpt attached to degraded results."""
    return truncate_text(text.strip(), limit)[0]
