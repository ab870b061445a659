# src/toolshape/tools/compiling.py
"""Shared result building and rendering for compilers and type checkers."""

import logging
from typing import Optional

from ..core.textutil import plural
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.build import CompileResult, CompileResultCompact
from .base import CLEAN, ISSUES, ToolAdapter

logger = logging.getLogger(__name__)


class CompileAdapter(ToolAdapter):
    """Base for tools whose whole output is a list of located diagnostics."""

    variants = {None: (CompileResult, CompileResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES}
    label = ""
    clean_sentence = "no errors."

    def build_result(
        self, capture: RawCapture, diagnostics: list[Diagnostic], success: Optional[bool] = None
    ) -> CompileResult:
        errors = sum(1 for d in diagnostics if d.severity == "error")
        warnings = sum(1 for d in diagnostics if d.severity == "warning")
        if success is None:
            success = self.exit_success(capture.exit_code) and errors == 0
        return CompileResult(
            success=success,
            total=len(diagnostics),
            errors=errors,
            warnings=warnings,
            diagnostics=diagnostics,
            exit_code=None if success else capture.exit_code,
        )

    def _summary(self, result) -> str:
        label = self.label or self.name
        if result.total == 0:
            if result.success:
                return f"{label}: {self.clean_sentence}"
            return f"{label} failed (exit {result.exit_code})."
        return f"{label}: {plural(result.errors, 'error')}, {plural(result.warnings, 'warning')}"

    def format(self, result: CompileResult) -> str:
        lines = [self._summary(result)]
        for d in result.diagnostics:
            location = f"{d.file}:{d.line}" if d.file else "(global)"
            if d.file and d.column:
                location += f":{d.column}"
            code = f" {d.code}" if d.code else ""
            lines.append(f"  {location} {d.severity}{code}: {d.message}")
        return "\n".join(lines)

    def format_compact(self, result: CompileResultCompact) -> str:
        return self._summary(result)
