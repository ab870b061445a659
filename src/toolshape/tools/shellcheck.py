# src/toolshape/tools/shellcheck.py
"""ShellCheck JSON output parser."""

import logging
from typing import Optional

from ..core.textutil import to_int
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.lint import LintResult
from .linting import LintAdapter, level_to_severity

logger = logging.getLogger(__name__)


class ShellcheckTool(LintAdapter):
    """Parses `shellcheck --format json`."""

    name = "shellcheck"
    description = "Lint shell scripts with ShellCheck"

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> LintResult:
        data, error = self.load_json(capture)
        if error:
            return self.empty_result(capture, error=error)
        if data is None:
            return self.empty_result(capture)
        if not isinstance(data, list):
            logger.warning(f"shellcheck JSON root is {type(data).__name__}, expected array")
            return self.empty_result(capture, error="Unexpected JSON shape, expected an array")

        diagnostics = []
        files = set()
        for entry in data:
            if not isinstance(entry, dict):
                continue
            path = str(entry.get("file", ""))
            files.add(path)
            code = entry.get("code")
            diagnostics.append(
                Diagnostic(
                    file=path,
                    line=to_int(entry.get("line")),
                    column=to_int(entry.get("column")) or None,
                    end_line=to_int(entry.get("endLine")) or None,
                    end_column=to_int(entry.get("endColumn")) or None,
                    code=f"SC{code}" if code is not None else None,
                    severity=level_to_severity(entry.get("level")),
                    message=str(entry.get("message", "")),
                    fixable=True if entry.get("fix") else None,
                )
            )

        return self.build_result(capture, diagnostics, files_checked=len(files))
