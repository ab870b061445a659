# src/toolshape/tools/biome.py
"""Biome JSON reporter parser."""

import logging
from typing import Any, Optional

from ..core.textutil import to_int
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.lint import LintResult
from .linting import LintAdapter, level_to_severity

logger = logging.getLogger(__name__)


def _path(location: dict[str, Any]) -> str:
    path = location.get("path")
    if isinstance(path, dict):
        return str(path.get("file", ""))
    return str(path or "")


def _position(location: dict[str, Any]) -> tuple[int, Optional[int]]:
    start = location.get("start")
    if isinstance(start, dict):
        return to_int(start.get("line")), to_int(start.get("column")) or None
    source = location.get("sourceCode")
    if isinstance(source, dict):
        return to_int(source.get("lineNumber")), to_int(source.get("columnNumber")) or None
    return 0, None


class BiomeTool(LintAdapter):
    """Parses `biome lint --reporter=json`."""

    name = "biome"
    description = "Lint web projects with Biome"

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> LintResult:
        data, error = self.load_json(capture)
        if error:
            return self.empty_result(capture, error=error)
        if data is None:
            return self.empty_result(capture)
        if not isinstance(data, dict) or not isinstance(data.get("diagnostics", []), list):
            logger.warning("biome JSON has no diagnostics list")
            return self.empty_result(capture, error="Unexpected JSON shape, no diagnostics list")

        diagnostics = []
        files = set()
        for entry in data.get("diagnostics", []):
            if not isinstance(entry, dict):
                continue
            location = entry.get("location") if isinstance(entry.get("location"), dict) else {}
            path = _path(location)
            line, column = _position(location)
            if path:
                files.add(path)
            diagnostics.append(
                Diagnostic(
                    file=path,
                    line=line,
                    column=column,
                    code=entry.get("category") or None,
                    severity=level_to_severity(entry.get("severity")),
                    message=str(entry.get("description") or entry.get("message") or ""),
                )
            )

        return self.build_result(capture, diagnostics, files_checked=len(files))
