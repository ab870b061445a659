# src/toolshape/tools/pytest_runner.py
"""pytest output parser: summary counts, failure blocks and exit-code semantics."""

import logging
import re
from typing import Any, Optional

from ..core.textutil import clean_lines, fmt_num, plural, to_float, to_int
from ..core.types import RawCapture
from ..schemas.base import FailedTest
from ..schemas.python import PytestResult, PytestResultCompact
from .base import FATAL, INTERNAL_ERROR, ISSUES, NOTHING_TO_DO, CLEAN, ToolAdapter

logger = logging.getLogger(__name__)

# "=== 3 passed, 1 failed, 2 skipped in 2.50s ===" and the "-q" form without rules.
SUMMARY_COUNT_RE = re.compile(
    r"(\d+) (passed|failed|errors?|skipped|xfailed|xpassed|deselected|warnings?)\b"
)
SUMMARY_DURATION_RE = re.compile(r"\bin (\d+(?:\.\d+)?)s\b")
NO_TESTS_RE = re.compile(r"\bno tests ran\b")
# "________________ test_foo ________________" opens a failure or error block.
FAILURE_HEADER_RE = re.compile(r"^_{3,} (.+?) _{3,}$")
SECTION_RE = re.compile(r"^={3,}.*={3,}$|^={3,} .+$")
ERROR_LINE_RE = re.compile(r"^E\s+(.*)$")
LOCATION_RE = re.compile(r"^(\S+\.py):(\d+): ")
# "FAILED tests/test_a.py::test_foo - AssertionError: boom" in the short summary.
SHORT_SUMMARY_RE = re.compile(r"^(FAILED|ERROR) (\S+?)(?: - (.*))?$")
BLOCK_PREFIX_RE = re.compile(r"^ERROR at (?:setup|teardown|collection) of ")

ERROR_TYPES = {
    2: "interrupted",
    3: "internal_error",
    4: "usage_error",
}


class PytestTool(ToolAdapter):
    """Parses pytest's terminal report."""

    name = "pytest"
    description = "Run Python tests with pytest"
    variants = {None: (PytestResult, PytestResultCompact)}
    exit_codes = {
        0: CLEAN,
        1: ISSUES,
        2: FATAL,
        3: INTERNAL_ERROR,
        4: FATAL,
        5: NOTHING_TO_DO,
    }

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> PytestResult:
        # pytest writes its report to stdout, but wrappers sometimes redirect it.
        lines = clean_lines(capture.combined)

        counts = self._parse_summary(lines)
        failures = self._parse_failure_blocks(lines)
        if not failures:
            failures = self._parse_short_summary(lines)

        total = (
            counts["passed"]
            + counts["failed"]
            + counts["errors"]
            + counts["skipped"]
            + counts["xfailed"]
            + counts["xpassed"]
        )
        success = self.exit_success(capture.exit_code)
        error_type = ERROR_TYPES.get(capture.exit_code)
        if error_type:
            logger.debug(f"pytest exited with {capture.exit_code} ({error_type})")

        return PytestResult(
            success=success,
            passed=counts["passed"],
            failed=counts["failed"],
            errors=counts["errors"],
            skipped=counts["skipped"],
            xfailed=counts["xfailed"],
            xpassed=counts["xpassed"],
            total=total,
            duration=counts["duration"],
            failures=failures,
            error_type=error_type,
            exit_code=capture.exit_code if error_type else None,
        )

    def _parse_summary(self, lines: list[str]) -> dict[str, Any]:
        counts: dict[str, Any] = {
            "passed": 0,
            "failed": 0,
            "errors": 0,
            "skipped": 0,
            "xfailed": 0,
            "xpassed": 0,
            "duration": 0.0,
        }
        summary_line = None
        for line in reversed(lines):
            if SUMMARY_DURATION_RE.search(line) and (
                SUMMARY_COUNT_RE.search(line) or NO_TESTS_RE.search(line)
            ):
                summary_line = line
                break
        if summary_line is None:
            return counts

        for number, word in SUMMARY_COUNT_RE.findall(summary_line):
            if word in ("error", "errors"):
                counts["errors"] = to_int(number)
            elif word in counts:
                counts[word] = to_int(number)
        duration = SUMMARY_DURATION_RE.search(summary_line)
        counts["duration"] = to_float(duration.group(1)) if duration else 0.0
        return counts

    def _parse_failure_blocks(self, lines: list[str]) -> list[FailedTest]:
        failures: list[FailedTest] = []
        current: Optional[dict[str, Any]] = None

        def close():
            if current is not None:
                failures.append(FailedTest(**current))

        for line in lines:
            header = FAILURE_HEADER_RE.match(line.strip())
            if header:
                close()
                current = {"test": BLOCK_PREFIX_RE.sub("", header.group(1).strip()), "message": None}
                continue
            if current is None:
                continue
            if SECTION_RE.match(line.strip()):
                close()
                current = None
                continue
            error = ERROR_LINE_RE.match(line)
            if error and not current["message"]:
                current["message"] = error.group(1).strip()
                continue
            location = LOCATION_RE.match(line)
            if location and "file" not in current:
                current["file"] = location.group(1)
                current["line"] = to_int(location.group(2))
        close()
        return failures

    def _parse_short_summary(self, lines: list[str]) -> list[FailedTest]:
        failures = []
        for line in lines:
            match = SHORT_SUMMARY_RE.match(line.strip())
            if not match:
                continue
            node_id = match.group(2)
            failures.append(
                FailedTest(
                    test=node_id.rsplit("::", 1)[-1],
                    message=(match.group(3) or "").strip() or None,
                    file=node_id.split("::", 1)[0] if "::" in node_id else None,
                )
            )
        return failures

    def surrogates(self, result: PytestResult) -> dict[str, Any]:
        return {"failed_tests": [failure.test for failure in result.failures]}

    @staticmethod
    def _summary(result) -> str:
        parts = []
        if result.passed:
            parts.append(f"{result.passed} passed")
        if result.failed:
            parts.append(f"{result.failed} failed")
        if result.errors:
            parts.append(plural(result.errors, "error"))
        if result.skipped:
            parts.append(f"{result.skipped} skipped")
        if result.xfailed:
            parts.append(f"{result.xfailed} xfailed")
        if result.xpassed:
            parts.append(f"{result.xpassed} xpassed")
        return f"pytest: {', '.join(parts)} in {fmt_num(result.duration)}s"

    @staticmethod
    def _nothing_ran(result) -> Optional[str]:
        if result.total:
            return None
        if result.error_type:
            return f"pytest: {result.error_type.replace('_', ' ')} (exit {result.exit_code})."
        return "pytest: no tests collected."

    def format(self, result: PytestResult) -> str:
        empty = self._nothing_ran(result)
        if empty:
            return empty
        lines = [self._summary(result)]
        for failure in result.failures:
            if failure.message:
                lines.append(f"  FAILED {failure.test}: {failure.message}")
            else:
                lines.append(f"  FAILED {failure.test}")
        return "\n".join(lines)

    def format_compact(self, result: PytestResultCompact) -> str:
        empty = self._nothing_ran(result)
        if empty:
            return empty
        lines = [self._summary(result)]
        for test in result.failed_tests:
            lines.append(f"  FAILED {test}")
        return "\n".join(lines)
