"""Result models shared by the JavaScript, shell and container linters."""

from typing import Optional

from .base import Diagnostic, ShapeModel, derive_compact_model


class Deprecation(ShapeModel):
    text: str
    reference: Optional[str] = None


class LintResult(ShapeModel):
    success: bool
    total: int = 0
    errors: int = 0
    warnings: int = 0
    infos: int = 0
    fixable: int = 0
    files_checked: int = 0
    diagnostics: list[Diagnostic] = []
    deprecation_count: int = 0
    deprecations: Optional[list[Deprecation]] = None
    error: Optional[str] = None


LintResultCompact = derive_compact_model(
    LintResult, drop=("diagnostics", "deprecations")
)


class FormatCheckResult(ShapeModel):
    success: bool
    formatted: bool
    total: int = 0
    files: list[str] = []


FormatCheckResultCompact = derive_compact_model(FormatCheckResult, drop=("files",))
