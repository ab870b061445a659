# src/toolshape/tools/linting.py
"""Shared result building and rendering for linters that report located diagnostics."""

import json
import logging
from typing import Any, Optional

from ..core.textutil import plural, strip_ansi
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.lint import Deprecation, LintResult, LintResultCompact
from .base import CLEAN, FATAL, ISSUES, ToolAdapter

logger = logging.getLogger(__name__)

SEVERITY_ORDER = ("error", "warning", "info")


def level_to_severity(level: Any, default: str = "warning") -> str:
    """Map a tool's level name onto error / warning / info."""
    value = str(level or "").lower()
    if value in ("error", "fatal"):
        return "error"
    if value == "warning":
        return "warning"
    if value in ("info", "information", "hint", "style", "off"):
        return "info"
    return default


class LintAdapter(ToolAdapter):
    """Base for linters that share LintResult."""

    variants = {None: (LintResult, LintResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES, 2: FATAL}

    def load_json(self, capture: RawCapture) -> tuple[Any, Optional[str]]:
        """Decode stdout. Empty output decodes to None with no error."""
        text = strip_ansi(capture.stdout).strip()
        if not text:
            return None, None
        try:
            return json.loads(text), None
        except json.JSONDecodeError as e:
            logger.warning(f"{self.name} produced invalid JSON: {e}")
            return None, f"Invalid JSON output: {e}"

    def build_result(
        self,
        capture: RawCapture,
        diagnostics: list[Diagnostic],
        files_checked: int,
        fixable: Optional[int] = None,
        deprecations: Optional[list[Deprecation]] = None,
        error: Optional[str] = None,
    ) -> LintResult:
        errors = sum(1 for d in diagnostics if d.severity == "error")
        warnings = sum(1 for d in diagnostics if d.severity == "warning")
        infos = sum(1 for d in diagnostics if d.severity == "info")
        if fixable is None:
            fixable = sum(1 for d in diagnostics if d.fixable)
        return LintResult(
            success=error is None and self.exit_meaning(capture.exit_code) != FATAL and errors == 0,
            total=len(diagnostics),
            errors=errors,
            warnings=warnings,
            infos=infos,
            fixable=fixable,
            files_checked=files_checked,
            diagnostics=diagnostics,
            deprecation_count=len(deprecations or []),
            deprecations=deprecations or None,
            error=error,
        )

    def empty_result(self, capture: RawCapture, error: Optional[str] = None) -> LintResult:
        return self.build_result(capture, [], 0, error=error)

    # --- formatters ---

    def _summary(self, result) -> Optional[str]:
        if result.error:
            return f"{self.name}: {result.error}"
        if result.total == 0:
            sentence = f"Lint: no issues found ({plural(result.files_checked, 'file')} checked)."
            if result.deprecation_count:
                sentence += f" {plural(result.deprecation_count, 'deprecation')}."
            return sentence
        summary = f"Lint: {plural(result.errors, 'error')}, {plural(result.warnings, 'warning')}"
        if result.infos:
            summary += f", {result.infos} info"
        if result.fixable:
            summary += f" ({result.fixable} fixable)"
        return summary

    def format(self, result: LintResult) -> str:
        summary = self._summary(result)
        if result.error or result.total == 0:
            return summary
        lines = [summary]
        for d in result.diagnostics:
            location = f"{d.file}:{d.line}"
            if d.column:
                location += f":{d.column}"
            rule = f" {d.code}" if d.code else ""
            lines.append(f"  {location} {d.severity}{rule}: {d.message}")
        for deprecation in result.deprecations or []:
            reference = f" ({deprecation.reference})" if deprecation.reference else ""
            lines.append(f"  deprecated: {deprecation.text}{reference}")
        return "\n".join(lines)

    def format_compact(self, result: LintResultCompact) -> str:
        return self._summary(result)
