"""Compiler and type-checker results: go build/vet, tsc, cargo build."""

from typing import Optional

from .base import Diagnostic, ShapeModel, derive_compact_model


class CompileResult(ShapeModel):
    success: bool
    total: int = 0
    errors: int = 0
    warnings: int = 0
    diagnostics: list[Diagnostic] = []
    exit_code: Optional[int] = None


CompileResultCompact = derive_compact_model(CompileResult, drop=("diagnostics",))
