# src/toolshape/tools/jest.py
"""jest --json report parser."""

import json
import logging
import re
from typing import Any, Optional

from ..core.exceptions import ContractViolation
from ..core.textutil import fmt_num, strip_ansi, to_int
from ..core.types import RawCapture
from ..schemas.javascript import JestFailure, JestResult, JestResultCompact
from .base import CLEAN, ISSUES, ToolAdapter

logger = logging.getLogger(__name__)

EXPECTED_RE = re.compile(r"Expected[:\s]+(.+)")
RECEIVED_RE = re.compile(r"Received[:\s]+(.+)")


def _failure(suite_file: str, test: dict[str, Any]) -> JestFailure:
    message = strip_ansi("\n".join(str(m) for m in test.get("failureMessages") or [])).strip()
    expected = EXPECTED_RE.search(message)
    received = RECEIVED_RE.search(message)
    location = test.get("location") if isinstance(test.get("location"), dict) else {}
    return JestFailure(
        test=str(test.get("fullName") or test.get("title") or ""),
        file=suite_file,
        message=message.split("\n")[0] or "Test failed",
        line=to_int(location.get("line")) or None,
        expected=expected.group(1).strip() if expected else None,
        received=received.group(1).strip() if received else None,
    )


class JestTool(ToolAdapter):
    """Parses the object jest writes with `--json`."""

    name = "jest"
    description = "Run JavaScript tests with Jest"
    variants = {None: (JestResult, JestResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> JestResult:
        text = strip_ansi(capture.stdout).strip()
        if not text:
            return JestResult(success=self.exit_success(capture.exit_code))
        # Console output from the tests themselves can precede the report.
        if not text.startswith("{") and "\n{" in text:
            text = text[text.index("\n{") + 1 :]
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"jest produced invalid JSON: {e}")
            return JestResult(success=False, error=f"Invalid JSON output: {e}")

        if not isinstance(data, dict):
            logger.error(f"jest JSON root is {type(data).__name__}, expected object")
            raise ContractViolation(self.name, f"expected a JSON object, got {type(data).__name__}")
        suites = data.get("testResults")
        if not isinstance(suites, list):
            raise ContractViolation(self.name, "'testResults' is missing or not an array")

        failures = []
        end_time = 0
        for suite in suites:
            if not isinstance(suite, dict):
                raise ContractViolation(self.name, "test suite entry is not an object")
            suite_file = str(suite.get("testFilePath") or suite.get("name") or "")
            end_time = max(end_time, to_int(suite.get("endTime")))
            # Older reporters call the per-test list assertionResults.
            tests = suite.get("assertionResults") or suite.get("testResults") or []
            for test in tests:
                if isinstance(test, dict) and test.get("status") == "failed":
                    failures.append(_failure(suite_file, test))

        start_time = to_int(data.get("startTime"))
        duration = None
        if start_time and end_time >= start_time:
            duration = round((end_time - start_time) / 1000, 2)

        failed = to_int(data.get("numFailedTests"))
        return JestResult(
            success=self.exit_success(capture.exit_code) and failed == 0 and data.get("success") is not False,
            total=to_int(data.get("numTotalTests")),
            passed=to_int(data.get("numPassedTests")),
            failed=failed,
            skipped=to_int(data.get("numPendingTests")),
            todo=to_int(data.get("numTodoTests")),
            suites_total=to_int(data.get("numTotalTestSuites")) or len(suites),
            suites_failed=to_int(data.get("numFailedTestSuites")),
            duration=duration,
            failures=failures,
        )

    def surrogates(self, result: JestResult) -> dict[str, Any]:
        return {"failed_tests": [failure.test for failure in result.failures]}

    @staticmethod
    def _summary(result) -> str:
        if result.error:
            return f"jest failed: {result.error}"
        if result.total == 0:
            return "jest: no tests found."
        summary = f"jest: {result.passed} passed, {result.failed} failed, {result.skipped} skipped"
        if result.todo:
            summary += f", {result.todo} todo"
        if result.duration is not None:
            summary += f" in {fmt_num(result.duration)}s"
        return summary

    def format(self, result: JestResult) -> str:
        lines = [self._summary(result)]
        for failure in result.failures:
            lines.append(f"  FAIL {failure.test} ({failure.file}): {failure.message}")
            if failure.expected is not None or failure.received is not None:
                lines.append(f"    expected: {failure.expected}, received: {failure.received}")
        return "\n".join(lines)

    def format_compact(self, result: JestResultCompact) -> str:
        lines = [self._summary(result)]
        lines.extend(f"  FAIL {name}" for name in result.failed_tests)
        return "\n".join(lines)
