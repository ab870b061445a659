# src/toolshape/tools/hadolint.py
"""Hadolint JSON output parser."""

import logging
from typing import Optional

from ..core.textutil import to_int
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.lint import LintResult
from .base import CLEAN, ISSUES
from .linting import LintAdapter, level_to_severity

logger = logging.getLogger(__name__)


class HadolintTool(LintAdapter):
    """Parses `hadolint --format json`."""

    name = "hadolint"
    description = "Lint Dockerfiles with Hadolint"
    exit_codes = {0: CLEAN, 1: ISSUES}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> LintResult:
        data, error = self.load_json(capture)
        if error:
            return self.empty_result(capture, error=error)
        if data is None:
            return self.empty_result(capture)
        if not isinstance(data, list):
            logger.warning(f"hadolint JSON root is {type(data).__name__}, expected array")
            return self.empty_result(capture, error="Unexpected JSON shape, expected an array")

        diagnostics = []
        files = set()
        for entry in data:
            if not isinstance(entry, dict):
                continue
            path = str(entry.get("file", ""))
            files.add(path)
            diagnostics.append(
                Diagnostic(
                    file=path,
                    line=to_int(entry.get("line")),
                    column=to_int(entry.get("column")) or None,
                    code=entry.get("code") or None,
                    severity=level_to_severity(entry.get("level")),
                    message=str(entry.get("message", "")),
                )
            )

        return self.build_result(capture, diagnostics, files_checked=len(files))
