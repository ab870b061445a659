# src/toolshape/tools/oxlint.py
"""oxlint line-delimited JSON parser."""

import json
import logging
from typing import Optional

from ..core.textutil import clean_lines, to_int
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.lint import LintResult
from .linting import LintAdapter

logger = logging.getLogger(__name__)


def _severity(value) -> str:
    value = str(value or "").lower()
    if value in ("error", "deny"):
        return "error"
    if value in ("off", "info"):
        return "info"
    return "warning"


class OxlintTool(LintAdapter):
    """Parses oxlint JSON output, one object per line."""

    name = "oxlint"
    description = "Lint JavaScript with oxlint"

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> LintResult:
        diagnostics = []
        files = set()
        skipped = 0
        for line in clean_lines(capture.stdout):
            line = line.strip()
            if not line.startswith("{"):
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                skipped += 1
                continue
            if not isinstance(entry, dict) or not entry.get("message"):
                continue
            path = str(entry.get("file") or entry.get("filename") or "")
            files.add(path)
            diagnostics.append(
                Diagnostic(
                    file=path,
                    line=to_int(entry.get("line")),
                    column=to_int(entry.get("column")) or None,
                    code=entry.get("ruleId") or entry.get("code") or None,
                    severity=_severity(entry.get("severity")),
                    message=str(entry["message"]),
                )
            )
        if skipped:
            logger.debug(f"oxlint: skipped {skipped} undecodable line(s)")

        return self.build_result(capture, diagnostics, files_checked=len(files))
