# src/toolshape/tools/prettier.py
"""prettier --check output parser."""

import logging
import re
from typing import Optional

from ..core.textutil import clean_lines, plural
from ..core.types import RawCapture
from ..schemas.lint import FormatCheckResult, FormatCheckResultCompact
from .base import CLEAN, FATAL, ISSUES, ToolAdapter

logger = logging.getLogger(__name__)

WARN_FILE_RE = re.compile(r"^\[warn\]\s+(.+\.\w+)$")


class PrettierCheckTool(ToolAdapter):
    """Parses the file list prettier prints for unformatted files."""

    name = "prettier-check"
    description = "Check formatting with Prettier"
    variants = {None: (FormatCheckResult, FormatCheckResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES, 2: FATAL}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> FormatCheckResult:
        files = []
        for line in clean_lines(capture.combined):
            match = WARN_FILE_RE.match(line.strip())
            if match and match.group(1) not in files:
                files.append(match.group(1))
        formatted = capture.exit_code == 0
        return FormatCheckResult(
            success=formatted,
            formatted=formatted,
            total=len(files),
            files=files,
        )

    @staticmethod
    def _summary(result) -> str:
        if result.formatted:
            return "All files are formatted."
        if result.total == 0:
            return "Formatting check failed."
        verb = "needs" if result.total == 1 else "need"
        return f"{plural(result.total, 'file')} {verb} formatting:"

    def format(self, result: FormatCheckResult) -> str:
        lines = [self._summary(result)]
        lines.extend(f"  {path}" for path in result.files)
        return "\n".join(lines)

    def format_compact(self, result: FormatCheckResultCompact) -> str:
        summary = self._summary(result)
        return summary[:-1] + "." if summary.endswith(":") else summary
