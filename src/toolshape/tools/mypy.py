# src/toolshape/tools/mypy.py
"""mypy type checker output parser."""

import logging
import re
from typing import Optional

from ..core.textutil import clean_lines, plural, to_int
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.python import MypyResult, MypyResultCompact
from .base import CLEAN, FATAL, ISSUES, ToolAdapter

logger = logging.getLogger(__name__)

DIAGNOSTIC_RE = re.compile(
    r"^(.+?):(\d+)(?::(\d+))?: (error|warning|note): (.+?)(?:\s+\[([^\]]+)\])?$"
)
# "Found 3 errors in 2 files (checked 10 source files)"
# "Success: no issues found in 10 source files"
CHECKED_RE = re.compile(r"(?:checked|found in) (\d+) source files?")


class MypyTool(ToolAdapter):
    """Parses mypy's default one-line-per-diagnostic output."""

    name = "mypy"
    description = "Type-check Python code with mypy"
    variants = {None: (MypyResult, MypyResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES, 2: FATAL}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> MypyResult:
        diagnostics = []
        files_checked = None
        for line in clean_lines(capture.combined):
            line = line.rstrip()
            match = DIAGNOSTIC_RE.match(line)
            if match:
                diagnostics.append(
                    Diagnostic(
                        file=match.group(1),
                        line=to_int(match.group(2)),
                        column=to_int(match.group(3)) if match.group(3) else None,
                        severity=match.group(4),
                        message=match.group(5),
                        code=match.group(6),
                    )
                )
                continue
            checked = CHECKED_RE.search(line)
            if checked:
                files_checked = to_int(checked.group(1))

        errors = sum(1 for d in diagnostics if d.severity == "error")
        warnings = sum(1 for d in diagnostics if d.severity == "warning")
        notes = sum(1 for d in diagnostics if d.severity == "note")

        meaning = self.exit_meaning(capture.exit_code)
        error_type = None
        if meaning == FATAL:
            error_type = "crash" if "INTERNAL ERROR" in capture.combined else "usage_error"
            logger.warning(f"mypy exited with {capture.exit_code}: {error_type}")

        return MypyResult(
            success=self.exit_success(capture.exit_code) and errors == 0,
            total=len(diagnostics),
            errors=errors,
            warnings=warnings,
            notes=notes,
            files_checked=files_checked,
            diagnostics=diagnostics,
            error_type=error_type,
        )

    @staticmethod
    def _counts(result) -> str:
        return (
            f"mypy: {plural(result.errors, 'error')}, "
            f"{plural(result.warnings, 'warning')}, {plural(result.notes, 'note')}"
        )

    def format(self, result: MypyResult) -> str:
        if result.success and result.total == 0:
            return "mypy: no errors found."
        if result.error_type and result.total == 0:
            return f"mypy: {result.error_type.replace('_', ' ')}."
        lines = [self._counts(result)]
        for d in result.diagnostics:
            column = f":{d.column}" if d.column else ""
            code = f" [{d.code}]" if d.code else ""
            lines.append(f"  {d.file}:{d.line}{column} {d.severity}: {d.message}{code}")
        return "\n".join(lines)

    def format_compact(self, result: MypyResultCompact) -> str:
        if result.success and result.total == 0:
            return "mypy: no errors found."
        if result.error_type and result.total == 0:
            return f"mypy: {result.error_type.replace('_', ' ')}."
        return f"{self._counts(result)} ({result.total} total)"
