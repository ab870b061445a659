"""Result models for the JavaScript test runner and package auditor."""

from typing import Optional

from .base import ShapeModel, derive_compact_model


class JestFailure(ShapeModel):
    test: str
    file: str
    message: str
    line: Optional[int] = None
    expected: Optional[str] = None
    received: Optional[str] = None


class JestResult(ShapeModel):
    success: bool
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    todo: int = 0
    suites_total: int = 0
    suites_failed: int = 0
    duration: Optional[float] = None
    failures: list[JestFailure] = []
    error: Optional[str] = None


JestResultCompact = derive_compact_model(
    JestResult, drop=("failures",), add={"failed_tests": (list[str], [])}
)


class NpmVulnerability(ShapeModel):
    name: str
    severity: str
    title: str
    url: Optional[str] = None
    range: Optional[str] = None
    fix_available: bool = False


class NpmAuditResult(ShapeModel):
    success: bool
    total: int = 0
    critical: int = 0
    high: int = 0
    moderate: int = 0
    low: int = 0
    info: int = 0
    vulnerabilities: list[NpmVulnerability] = []
    error: Optional[str] = None


NpmAuditResultCompact = derive_compact_model(NpmAuditResult, drop=("vulnerabilities",))
