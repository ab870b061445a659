# src/toolshape/tools/stylelint.py
"""Stylelint JSON formatter parser."""

import logging
from typing import Optional

from ..core.textutil import to_int
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.lint import Deprecation, LintResult
from .linting import LintAdapter, level_to_severity

logger = logging.getLogger(__name__)


class StylelintTool(LintAdapter):
    """Parses `stylelint --formatter json`."""

    name = "stylelint"
    description = "Lint CSS with Stylelint"

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> LintResult:
        data, error = self.load_json(capture)
        if error:
            return self.empty_result(capture, error=error)
        if data is None:
            return self.empty_result(capture)
        if not isinstance(data, list):
            logger.warning(f"stylelint JSON root is {type(data).__name__}, expected array")
            return self.empty_result(capture, error="Unexpected JSON shape, expected an array")

        files = [entry for entry in data if isinstance(entry, dict)]
        diagnostics = []
        deprecations = []
        seen = set()
        for file_result in files:
            path = str(file_result.get("source", ""))
            for warning in file_result.get("warnings") or []:
                if not isinstance(warning, dict):
                    continue
                diagnostics.append(
                    Diagnostic(
                        file=path,
                        line=to_int(warning.get("line")),
                        column=to_int(warning.get("column")) or None,
                        code=warning.get("rule") or None,
                        severity=level_to_severity(warning.get("severity")),
                        message=str(warning.get("text", "")),
                    )
                )
            # Every file repeats the same deprecation notices.
            for notice in file_result.get("deprecations") or []:
                if not isinstance(notice, dict):
                    continue
                text = str(notice.get("text", ""))
                reference = notice.get("reference") or None
                key = f"{text}::{reference or ''}"
                if key in seen:
                    continue
                seen.add(key)
                deprecations.append(Deprecation(text=text, reference=reference))

        return self.build_result(
            capture, diagnostics, files_checked=len(files), deprecations=deprecations
        )
