# src/toolshape/tools/ruff.py
"""ruff check (JSON) and ruff format output parsers."""

import json
import logging
import re
from typing import Any, Optional

from ..core.exceptions import ContractViolation
from ..core.textutil import clean_lines, plural, strip_ansi, to_int
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.python import (
    RuffFormatResult,
    RuffFormatResultCompact,
    RuffResult,
    RuffResultCompact,
)
from .base import CLEAN, FATAL, ISSUES, ToolAdapter

logger = logging.getLogger(__name__)

FIXED_RE = re.compile(r"Fixed (\d+) errors?|\((\d+) fixed\b")

FORMAT_FILE_RE = re.compile(r"^(?:Would reformat|reformatted):?\s+(.+)$")
WOULD_REFORMAT_RE = re.compile(r"(\d+) files? would be reformatted")
REFORMATTED_RE = re.compile(r"(\d+) files? reformatted")
UNCHANGED_RE = re.compile(r"(\d+) files? (?:would be left unchanged|left unchanged|already formatted)")


def _location(entry: dict[str, Any], key: str) -> dict[str, Any]:
    value = entry.get(key)
    return value if isinstance(value, dict) else {}


class RuffCheckTool(ToolAdapter):
    """Parses `ruff check --output-format json`."""

    name = "ruff-check"
    description = "Lint Python code with ruff"
    variants = {None: (RuffResult, RuffResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES, 2: FATAL}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> RuffResult:
        fixed = FIXED_RE.search(strip_ansi(capture.stderr))
        fixed_count = to_int(fixed.group(1) or fixed.group(2)) if fixed else 0
        success = self.exit_success(capture.exit_code)

        text = strip_ansi(capture.stdout).strip()
        if not text:
            return RuffResult(success=success, fixed_count=fixed_count)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"ruff check produced invalid JSON: {e}")
            return RuffResult(
                success=False,
                fixed_count=fixed_count,
                error=f"Invalid JSON output: {e}",
                raw_output=self.degraded(capture),
            )

        # JSON output mode always emits an array, even for a clean run.
        if not isinstance(data, list):
            logger.error(f"ruff check JSON root is {type(data).__name__}, expected array")
            raise ContractViolation(self.name, f"expected a JSON array, got {type(data).__name__}")

        diagnostics = []
        for index, entry in enumerate(data):
            if not isinstance(entry, dict):
                raise ContractViolation(self.name, f"diagnostic #{index} is not an object")
            start = _location(entry, "location")
            end = _location(entry, "end_location")
            diagnostics.append(
                Diagnostic(
                    file=str(entry.get("filename", "")),
                    line=to_int(start.get("row")),
                    column=to_int(start.get("column")),
                    end_line=to_int(end.get("row")) if end else None,
                    end_column=to_int(end.get("column")) if end else None,
                    code=entry.get("code") or None,
                    severity="error",
                    message=str(entry.get("message", "")),
                    fixable=entry.get("fix") is not None,
                )
            )

        return RuffResult(
            success=success and not diagnostics,
            total=len(diagnostics),
            fixable=sum(1 for d in diagnostics if d.fixable),
            fixed_count=fixed_count,
            diagnostics=diagnostics,
        )

    @staticmethod
    def _summary(result) -> str:
        summary = f"ruff: {plural(result.total, 'issue')} ({result.fixable} fixable)"
        if result.fixed_count:
            summary += f", {result.fixed_count} fixed"
        return summary

    def format(self, result: RuffResult) -> str:
        if result.error:
            return f"ruff: {result.error}"
        if result.total == 0:
            if result.fixed_count:
                return f"ruff: no issues remaining ({result.fixed_count} fixed)."
            return "ruff: no issues found."
        lines = [self._summary(result)]
        for d in result.diagnostics:
            location = f"{d.file}:{d.line}:{d.column}" if d.column else f"{d.file}:{d.line}"
            prefix = f"{location} {d.code}:" if d.code else f"{location}:"
            fix_tag = " [*]" if d.fixable else ""
            lines.append(f"  {prefix} {d.message}{fix_tag}")
        return "\n".join(lines)

    def format_compact(self, result: RuffResultCompact) -> str:
        if result.error:
            return f"ruff: {result.error}"
        if result.total == 0:
            if result.fixed_count:
                return f"ruff: no issues remaining ({result.fixed_count} fixed)."
            return "ruff: no issues found."
        return self._summary(result)


class RuffFormatTool(ToolAdapter):
    """Parses `ruff format` and `ruff format --check` output."""

    name = "ruff-format"
    description = "Format Python code with ruff"
    variants = {None: (RuffFormatResult, RuffFormatResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES, 2: FATAL}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> RuffFormatResult:
        files = []
        changed = 0
        unchanged = 0
        check_mode = False
        for line in clean_lines(capture.combined):
            line = line.strip()
            if not line:
                continue
            file_match = FORMAT_FILE_RE.match(line)
            if file_match:
                files.append(file_match.group(1).strip())
                if line.startswith("Would"):
                    check_mode = True
                continue
            would = WOULD_REFORMAT_RE.search(line)
            if would:
                changed = to_int(would.group(1))
                check_mode = True
            else:
                done = REFORMATTED_RE.search(line)
                if done:
                    changed = to_int(done.group(1))
            kept = UNCHANGED_RE.search(line)
            if kept:
                unchanged = to_int(kept.group(1))

        if files and not changed:
            changed = len(files)

        return RuffFormatResult(
            success=self.exit_success(capture.exit_code),
            check_mode=check_mode,
            files_changed=changed,
            files_unchanged=unchanged,
            files=files or None,
        )

    @staticmethod
    def _summary(result) -> Optional[str]:
        if result.files_changed == 0:
            if result.files_unchanged == 0:
                return "ruff format: no files found."
            return f"ruff format: {plural(result.files_unchanged, 'file')} already formatted."
        verb = "would be reformatted" if result.check_mode else "reformatted"
        return (
            f"ruff format: {plural(result.files_changed, 'file')} {verb}, "
            f"{result.files_unchanged} unchanged"
        )

    def format(self, result: RuffFormatResult) -> str:
        lines = [self._summary(result)]
        if result.files_changed:
            lines.extend(f"  {path}" for path in result.files or [])
        return "\n".join(lines)

    def format_compact(self, result: RuffFormatResultCompact) -> str:
        return self._summary(result)
