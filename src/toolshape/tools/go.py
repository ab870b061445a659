# src/toolshape/tools/go.py
"""Go toolchain parsers: build, vet, test -json and golangci-lint."""

import json
import logging
import re
from typing import Any, Optional

from ..core.exceptions import ContractViolation
from ..core.textutil import clean_lines, fmt_num, plural, strip_ansi, to_float, to_int
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.build import CompileResult
from ..schemas.go import (
    GolangciLintResult,
    GolangciLintResultCompact,
    GoPackage,
    GoTestCase,
    GoTestResult,
    GoTestResultCompact,
    LinterCount,
)
from .base import CLEAN, FATAL, ISSUES, ToolAdapter
from .compiling import CompileAdapter

logger = logging.getLogger(__name__)

GO_DIAGNOSTIC_RE = re.compile(r"^(?:vet: )?(.+?\.go):(\d+)(?::(\d+))?: (.+)$")

FINAL_ACTIONS = ("pass", "fail", "skip")
# Framing lines go test writes around a test's own output.
FRAMING_RE = re.compile(r"^\s*(?:=== (?:RUN|PAUSE|CONT|NAME)|--- (?:FAIL|PASS|SKIP):)")


def _go_diagnostics(capture: RawCapture, severity: str) -> list[Diagnostic]:
    diagnostics = []
    for line in clean_lines(capture.combined):
        match = GO_DIAGNOSTIC_RE.match(line.strip())
        if not match:
            continue
        diagnostics.append(
            Diagnostic(
                file=match.group(1),
                line=to_int(match.group(2)),
                column=to_int(match.group(3)) or None,
                severity=severity,
                message=match.group(4),
            )
        )
    return diagnostics


class GoBuildTool(CompileAdapter):
    """Parses `go build` compiler errors."""

    name = "go-build"
    description = "Compile Go packages"
    label = "go build"
    clean_sentence = "build succeeded."

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> CompileResult:
        return self.build_result(capture, _go_diagnostics(capture, "error"))


class GoVetTool(CompileAdapter):
    """Parses `go vet` reports. Vet findings are warnings; the exit code decides success."""

    name = "go-vet"
    description = "Report suspicious constructs in Go code"
    label = "go vet"
    clean_sentence = "no issues found."

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> CompileResult:
        diagnostics = _go_diagnostics(capture, "warning")
        return self.build_result(
            capture, diagnostics, success=self.exit_success(capture.exit_code) and not diagnostics
        )


class GoTestTool(ToolAdapter):
    """
    Parses `go test -json` event streams.

    Each line is one event. The last pass/fail/skip event for a test (or, with
    no Test field, for a package) decides its status; output events for a
    test are kept only when it fails.
    """

    name = "go-test"
    description = "Run Go tests"
    variants = {None: (GoTestResult, GoTestResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES, 2: FATAL}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> GoTestResult:
        tests: dict[tuple[str, str], dict[str, Any]] = {}
        packages: dict[str, dict[str, Any]] = {}
        output: dict[tuple[str, str], list[str]] = {}

        for line in clean_lines(capture.stdout):
            line = line.strip()
            if not line.startswith("{"):
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(event, dict):
                continue
            event_action = event.get("Action")
            package = str(event.get("Package", ""))
            test = event.get("Test")
            if test:
                key = (package, str(test))
                if event_action == "output":
                    text = str(event.get("Output", "")).rstrip("\n")
                    if text.strip() and not FRAMING_RE.match(text):
                        output.setdefault(key, []).append(text.strip())
                elif event_action in FINAL_ACTIONS:
                    tests[key] = {"status": event_action, "elapsed": event.get("Elapsed")}
            elif event_action in FINAL_ACTIONS and package:
                packages[package] = {"status": event_action, "elapsed": event.get("Elapsed")}

        cases = []
        for (package, name), state in tests.items():
            detail = None
            if state["status"] == "fail":
                detail = "\n".join(output.get((package, name), [])) or None
            cases.append(
                GoTestCase(
                    package=package,
                    name=name,
                    status=state["status"],
                    elapsed=to_float(state["elapsed"]) if state["elapsed"] is not None else None,
                    output=detail,
                )
            )
        package_results = [
            GoPackage(
                package=package,
                status=state["status"],
                elapsed=to_float(state["elapsed"]) if state["elapsed"] is not None else None,
            )
            for package, state in packages.items()
        ]

        passed = sum(1 for c in cases if c.status == "pass")
        failed = sum(1 for c in cases if c.status == "fail")
        skipped = sum(1 for c in cases if c.status == "skip")
        package_failed = any(p.status == "fail" for p in package_results)
        return GoTestResult(
            success=self.exit_success(capture.exit_code) and failed == 0 and not package_failed,
            total=len(cases),
            passed=passed,
            failed=failed,
            skipped=skipped,
            duration=round(sum(p.elapsed or 0.0 for p in package_results), 3),
            tests=cases,
            packages=package_results,
        )

    def surrogates(self, result: GoTestResult) -> dict[str, Any]:
        return {
            "failed_tests": [f"{c.package}.{c.name}" for c in result.tests if c.status == "fail"],
            "failed_packages": [p.package for p in result.packages if p.status == "fail"],
        }

    @staticmethod
    def _summary(result) -> str:
        if result.total == 0:
            return "go test: no tests ran."
        return (
            f"go test: {result.passed} passed, {result.failed} failed, "
            f"{result.skipped} skipped in {fmt_num(result.duration)}s"
        )

    def format(self, result: GoTestResult) -> str:
        lines = [self._summary(result)]
        for case in result.tests:
            if case.status != "fail":
                continue
            lines.append(f"  FAIL {case.package}.{case.name}")
            for detail in (case.output or "").split("\n"):
                if detail:
                    lines.append(f"    {detail}")
        tested = {case.package for case in result.tests if case.status == "fail"}
        for package in result.packages:
            if package.status == "fail" and package.package not in tested:
                lines.append(f"  FAIL {package.package}")
        return "\n".join(lines)

    def format_compact(self, result: GoTestResultCompact) -> str:
        lines = [self._summary(result)]
        lines.extend(f"  FAIL {name}" for name in result.failed_tests)
        tested = {name.rsplit(".", 1)[0] for name in result.failed_tests}
        lines.extend(f"  FAIL {pkg}" for pkg in result.failed_packages if pkg not in tested)
        return "\n".join(lines)


def _lint_severity(value: Any) -> str:
    value = str(value or "").lower()
    if value == "error":
        return "error"
    if value == "info":
        return "info"
    return "warning"


class GolangciLintTool(ToolAdapter):
    """Parses `golangci-lint run --out-format json`."""

    name = "golangci-lint"
    description = "Run Go linters with golangci-lint"
    variants = {None: (GolangciLintResult, GolangciLintResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> GolangciLintResult:
        text = strip_ansi(capture.stdout).strip()
        if not text:
            return GolangciLintResult(success=self.exit_success(capture.exit_code))
        # golangci-lint may print its report followed by a plain-text summary.
        first_line = text.split("\n", 1)[0]
        try:
            data = json.loads(first_line if first_line.startswith("{") else text)
        except json.JSONDecodeError as e:
            logger.warning(f"golangci-lint produced invalid JSON: {e}")
            return GolangciLintResult(success=False, error=f"Invalid JSON output: {e}")

        if not isinstance(data, dict):
            logger.error(f"golangci-lint JSON root is {type(data).__name__}, expected object")
            raise ContractViolation(self.name, f"expected a JSON object, got {type(data).__name__}")
        issues = data.get("Issues") or []
        if not isinstance(issues, list):
            raise ContractViolation(self.name, "'Issues' is not an array")

        diagnostics = []
        counts: dict[str, int] = {}
        for issue in issues:
            if not isinstance(issue, dict):
                raise ContractViolation(self.name, "issue entry is not an object")
            position = issue.get("Pos") if isinstance(issue.get("Pos"), dict) else {}
            linter = str(issue.get("FromLinter") or "")
            diagnostics.append(
                Diagnostic(
                    file=str(position.get("Filename", "")),
                    line=to_int(position.get("Line")),
                    column=to_int(position.get("Column")) or None,
                    code=linter or None,
                    severity=_lint_severity(issue.get("Severity")),
                    message=str(issue.get("Text", "")),
                )
            )
            counts[linter] = counts.get(linter, 0) + 1

        # Stable sort keeps first-seen order among linters with equal counts.
        by_linter = [
            LinterCount(linter=linter, count=count)
            for linter, count in sorted(counts.items(), key=lambda item: -item[1])
        ]
        errors = sum(1 for d in diagnostics if d.severity == "error")
        return GolangciLintResult(
            success=self.exit_success(capture.exit_code) and not diagnostics,
            total=len(diagnostics),
            errors=errors,
            warnings=sum(1 for d in diagnostics if d.severity == "warning"),
            diagnostics=diagnostics,
            by_linter=by_linter,
        )

    @staticmethod
    def _summary(result) -> str:
        if result.error:
            return f"golangci-lint failed: {result.error}"
        if result.total == 0:
            return "golangci-lint: no issues found."
        return (
            f"golangci-lint: {plural(result.total, 'issue')} "
            f"({plural(result.errors, 'error')}, {plural(result.warnings, 'warning')})"
        )

    def format(self, result: GolangciLintResult) -> str:
        lines = [self._summary(result)]
        if result.by_linter:
            lines.append(
                "  by linter: " + ", ".join(f"{c.linter} {c.count}" for c in result.by_linter)
            )
        for d in result.diagnostics:
            location = f"{d.file}:{d.line}" + (f":{d.column}" if d.column else "")
            linter = f" {d.code}" if d.code else ""
            lines.append(f"  {location} {d.severity}{linter}: {d.message}")
        return "\n".join(lines)

    def format_compact(self, result: GolangciLintResultCompact) -> str:
        return self._summary(result)
