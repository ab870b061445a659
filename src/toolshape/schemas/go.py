"""Go toolchain results beyond plain compiler diagnostics."""

from typing import Optional

from .base import Diagnostic, ShapeModel, derive_compact_model


class GoTestCase(ShapeModel):
    package: str
    name: str
    status: str
    elapsed: Optional[float] = None
    output: Optional[str] = None


class GoPackage(ShapeModel):
    package: str
    status: str
    elapsed: Optional[float] = None


class GoTestResult(ShapeModel):
    success: bool
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    duration: float = 0.0
    tests: list[GoTestCase] = []
    packages: list[GoPackage] = []


GoTestResultCompact = derive_compact_model(
    GoTestResult,
    drop=("tests", "packages"),
    add={"failed_tests": (list[str], []), "failed_packages": (list[str], [])},
)


class LinterCount(ShapeModel):
    linter: str
    count: int


class GolangciLintResult(ShapeModel):
    success: bool
    total: int = 0
    errors: int = 0
    warnings: int = 0
    diagnostics: list[Diagnostic] = []
    by_linter: list[LinterCount] = []
    error: Optional[str] = None


GolangciLintResultCompact = derive_compact_model(
    GolangciLintResult, drop=("diagnostics", "by_linter")
)
