# src/toolshape/tools/black.py
"""Black formatter output parser. Black reports everything on stderr."""

import logging
import re
from typing import Optional

from ..core.textutil import clean_lines, plural, to_int
from ..core.types import RawCapture
from ..schemas.python import BlackError, BlackResult, BlackResultCompact
from .base import CLEAN, INTERNAL_ERROR, ISSUES, ToolAdapter

logger = logging.getLogger(__name__)

FILE_LINE_RE = re.compile(r"^(would reformat|reformatted) (.+)$")
CHANGED_RE = re.compile(r"(\d+) files? (?:would be )?reformatted")
UNCHANGED_RE = re.compile(r"(\d+) files? (?:would be )?left unchanged")
FAILED_RE = re.compile(r"(\d+) files? (?:would )?fail(?:ed)? to reformat")
CANNOT_PARSE_RE = re.compile(
    r"^error: cannot format (.+?): Cannot parse(?: for target version [^:]+)?: (\d+):(\d+): ?(.*)$"
)
CANNOT_FORMAT_RE = re.compile(r"^error: cannot format (.+?): (.+)$")

ERROR_TYPES = {1: "check_failed", 123: "internal_error"}


class BlackTool(ToolAdapter):
    """Parses black's report in both write and `--check` modes."""

    name = "black"
    description = "Format Python code with Black"
    variants = {None: (BlackResult, BlackResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES, 123: INTERNAL_ERROR}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> BlackResult:
        would_reformat = []
        errors = []
        changed = unchanged = failed = 0
        check_mode = False

        for line in clean_lines(capture.stderr + "\n" + capture.stdout):
            line = line.strip()
            if not line:
                continue
            file_line = FILE_LINE_RE.match(line)
            if file_line:
                would_reformat.append(file_line.group(2))
                if file_line.group(1) == "would reformat":
                    check_mode = True
                continue
            located = CANNOT_PARSE_RE.match(line)
            if located:
                errors.append(
                    BlackError(
                        file=located.group(1),
                        line=to_int(located.group(2)),
                        column=to_int(located.group(3)),
                        message=located.group(4) or "Cannot parse",
                    )
                )
                continue
            unlocated = CANNOT_FORMAT_RE.match(line)
            if unlocated:
                errors.append(BlackError(file=unlocated.group(1), message=unlocated.group(2)))
                continue
            # black words its summary "would be ..." only under --check or --diff.
            if "would be" in line or "would fail" in line:
                check_mode = True
            match = CHANGED_RE.search(line)
            if match:
                changed = to_int(match.group(1))
            match = UNCHANGED_RE.search(line)
            if match:
                unchanged = to_int(match.group(1))
            match = FAILED_RE.search(line)
            if match:
                failed = to_int(match.group(1))

        error_type = ERROR_TYPES.get(capture.exit_code)
        if error_type:
            logger.debug(f"black exit {capture.exit_code} -> {error_type}")

        return BlackResult(
            success=self.exit_success(capture.exit_code),
            check_mode=check_mode,
            files_changed=changed,
            files_unchanged=unchanged,
            files_failed=failed,
            files_checked=changed + unchanged + failed,
            would_reformat=would_reformat,
            error_type=error_type,
            exit_code=capture.exit_code if error_type else None,
            diagnostics=errors or None,
        )

    @staticmethod
    def _nothing_changed(result) -> Optional[str]:
        if result.files_checked == 0 and not result.error_type:
            return "black: no Python files found."
        if result.success and result.files_changed == 0 and result.files_failed == 0:
            return f"black: {plural(result.files_unchanged, 'file')} already formatted."
        return None

    @staticmethod
    def _summary(result) -> str:
        verb = "would be reformatted" if result.check_mode else "reformatted"
        summary = (
            f"black: {plural(result.files_changed, 'file')} {verb}, "
            f"{result.files_unchanged} unchanged"
        )
        if result.files_failed:
            summary += f", {result.files_failed} failed"
        return summary

    def format(self, result: BlackResult) -> str:
        fixed = self._nothing_changed(result)
        if fixed:
            return fixed
        lines = [self._summary(result)]
        lines.extend(f"  {path}" for path in result.would_reformat)
        for error in result.diagnostics or []:
            location = error.file
            if error.line is not None:
                location += f":{error.line}"
                if error.column is not None:
                    location += f":{error.column}"
            lines.append(f"  error: {location}: {error.message}")
        return "\n".join(lines)

    def format_compact(self, result: BlackResultCompact) -> str:
        fixed = self._nothing_changed(result)
        if fixed:
            return fixed
        return self._summary(result)
