"""Result models for Python test runners, linters, formatters and package tools."""

from typing import Optional

from .base import Diagnostic, FailedTest, Package, ShapeModel, derive_compact_model

# --- pytest ---


class PytestResult(ShapeModel):
    success: bool
    passed: int = 0
    failed: int = 0
    errors: int = 0
    skipped: int = 0
    xfailed: int = 0
    xpassed: int = 0
    total: int = 0
    duration: float = 0.0
    failures: list[FailedTest] = []
    error_type: Optional[str] = None
    exit_code: Optional[int] = None


PytestResultCompact = derive_compact_model(
    PytestResult,
    drop=("failures",),
    add={"failed_tests": (list[str], [])},
)

# --- mypy ---


class MypyResult(ShapeModel):
    success: bool
    total: int = 0
    errors: int = 0
    warnings: int = 0
    notes: int = 0
    files_checked: Optional[int] = None
    diagnostics: list[Diagnostic] = []
    error_type: Optional[str] = None


MypyResultCompact = derive_compact_model(MypyResult, drop=("diagnostics",))

# --- ruff check ---


class RuffResult(ShapeModel):
    success: bool
    total: int = 0
    fixable: int = 0
    fixed_count: int = 0
    diagnostics: list[Diagnostic] = []
    error: Optional[str] = None
    raw_output: Optional[str] = None


RuffResultCompact = derive_compact_model(
    RuffResult, drop=("diagnostics", "raw_output")
)

# --- ruff format ---


class RuffFormatResult(ShapeModel):
    success: bool
    check_mode: bool = False
    files_changed: int = 0
    files_unchanged: int = 0
    files: Optional[list[str]] = None


RuffFormatResultCompact = derive_compact_model(RuffFormatResult, drop=("files",))

# --- black ---


class BlackError(ShapeModel):
    file: str
    line: Optional[int] = None
    column: Optional[int] = None
    message: str


class BlackResult(ShapeModel):
    success: bool
    check_mode: bool = False
    files_changed: int = 0
    files_unchanged: int = 0
    files_failed: int = 0
    files_checked: int = 0
    would_reformat: list[str] = []
    error_type: Optional[str] = None
    exit_code: Optional[int] = None
    diagnostics: Optional[list[BlackError]] = None


BlackResultCompact = derive_compact_model(
    BlackResult, drop=("would_reformat", "diagnostics")
)

# --- pip install ---


class PipInstallResult(ShapeModel):
    success: bool
    total: int = 0
    installed: list[Package] = []
    already_satisfied: bool = False
    dry_run: bool = False
    warnings: list[str] = []
    error: Optional[str] = None


PipInstallResultCompact = derive_compact_model(
    PipInstallResult, drop=("installed", "warnings")
)

# --- pip list ---


class PipListPackage(ShapeModel):
    name: str
    version: str
    latest_version: Optional[str] = None
    latest_filetype: Optional[str] = None
    editable_project_location: Optional[str] = None


class PipListResult(ShapeModel):
    success: bool
    total: int = 0
    outdated: bool = False
    packages: list[PipListPackage] = []
    error: Optional[str] = None


PipListResultCompact = derive_compact_model(PipListResult, drop=("packages",))

# --- pip show ---


class PipShowResult(ShapeModel):
    success: bool
    name: Optional[str] = None
    version: Optional[str] = None
    summary: Optional[str] = None
    homepage: Optional[str] = None
    author: Optional[str] = None
    author_email: Optional[str] = None
    license: Optional[str] = None
    location: Optional[str] = None
    requires: list[str] = []
    required_by: Optional[list[str]] = None
    error: Optional[str] = None


PipShowResultCompact = derive_compact_model(
    PipShowResult, drop=("requires", "required_by")
)

# --- pip-audit ---


class Vulnerability(ShapeModel):
    package: str
    version: str
    id: str
    description: Optional[str] = None
    fix_versions: list[str] = []
    aliases: Optional[list[str]] = None


class SkippedDependency(ShapeModel):
    name: str
    reason: str


class PipAuditResult(ShapeModel):
    success: bool
    total: int = 0
    dependency_count: int = 0
    skipped_count: int = 0
    vulnerabilities: list[Vulnerability] = []
    by_package: dict[str, list[str]] = {}
    skipped: list[SkippedDependency] = []
    error: Optional[str] = None


PipAuditResultCompact = derive_compact_model(
    PipAuditResult,
    drop=("vulnerabilities", "by_package", "skipped"),
    add={"vulnerable_packages": (list[str], [])},
)

# --- uv pip install ---


class ResolutionConflict(ShapeModel):
    package: str
    constraint: str


class UvInstallResult(ShapeModel):
    success: bool
    total: int = 0
    duration: float = 0.0
    installed: list[Package] = []
    uninstalled: list[Package] = []
    already_satisfied: bool = False
    error: Optional[str] = None
    resolution_conflicts: Optional[list[ResolutionConflict]] = None


UvInstallResultCompact = derive_compact_model(
    UvInstallResult, drop=("installed", "uninstalled", "resolution_conflicts")
)

# --- uv run ---


class UvRunResult(ShapeModel):
    success: bool
    exit_code: int
    duration: float = 0.0
    stdout: str = ""
    stderr: str = ""
    truncated: Optional[bool] = None
    uv_diagnostics: Optional[list[str]] = None


UvRunResultCompact = derive_compact_model(
    UvRunResult, drop=("stdout", "stderr", "uv_diagnostics")
)
