"""Container and filesystem scanner results."""

from typing import Optional

from .base import ShapeModel, derive_compact_model

SEVERITY_TIERS = ("CRITICAL", "HIGH", "MEDIUM", "LOW", "UNKNOWN")


class TrivyFinding(ShapeModel):
    id: str
    kind: str
    severity: str
    package: str
    target: Optional[str] = None
    installed_version: Optional[str] = None
    fixed_version: Optional[str] = None
    title: Optional[str] = None


class TrivyResult(ShapeModel):
    success: bool
    artifact: Optional[str] = None
    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    unknown: int = 0
    vulnerabilities: list[TrivyFinding] = []
    error: Optional[str] = None


TrivyResultCompact = derive_compact_model(TrivyResult, drop=("vulnerabilities",))
