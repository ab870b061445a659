# src/toolshape/tools/trivy.py
"""trivy --format json report parser."""

import json
import logging
from typing import Optional

from ..core.exceptions import ContractViolation
from ..core.textutil import plural, strip_ansi
from ..core.types import RawCapture
from ..schemas.security import SEVERITY_TIERS, TrivyFinding, TrivyResult, TrivyResultCompact
from .base import CLEAN, ISSUES, ToolAdapter

logger = logging.getLogger(__name__)


def _severity(value) -> str:
    value = str(value or "").upper()
    return value if value in SEVERITY_TIERS else "UNKNOWN"


class TrivyTool(ToolAdapter):
    """Flattens vulnerabilities and misconfigurations across every scanned target."""

    name = "trivy"
    description = "Scan images and filesystems with Trivy"
    variants = {None: (TrivyResult, TrivyResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> TrivyResult:
        text = strip_ansi(capture.stdout).strip()
        if not text:
            return TrivyResult(success=self.exit_success(capture.exit_code))
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"trivy produced invalid JSON: {e}")
            return TrivyResult(success=False, error=f"Invalid JSON output: {e}")

        if not isinstance(data, dict):
            logger.error(f"trivy JSON root is {type(data).__name__}, expected object")
            raise ContractViolation(self.name, f"expected a JSON object, got {type(data).__name__}")
        results = data.get("Results") or []
        if not isinstance(results, list):
            raise ContractViolation(self.name, "'Results' is not an array")

        findings = []
        for entry in results:
            if not isinstance(entry, dict):
                raise ContractViolation(self.name, "result entry is not an object")
            target = str(entry.get("Target")) if entry.get("Target") else None
            for vuln in entry.get("Vulnerabilities") or []:
                if not isinstance(vuln, dict):
                    continue
                findings.append(
                    TrivyFinding(
                        id=str(vuln.get("VulnerabilityID") or "UNKNOWN"),
                        kind="vulnerability",
                        severity=_severity(vuln.get("Severity")),
                        package=str(vuln.get("PkgName") or "unknown"),
                        target=target,
                        installed_version=vuln.get("InstalledVersion") or None,
                        fixed_version=vuln.get("FixedVersion") or None,
                        title=vuln.get("Title") or None,
                    )
                )
            for misconfig in entry.get("Misconfigurations") or []:
                if not isinstance(misconfig, dict):
                    continue
                findings.append(
                    TrivyFinding(
                        id=str(misconfig.get("ID") or misconfig.get("AVDID") or "UNKNOWN"),
                        kind="misconfiguration",
                        severity=_severity(misconfig.get("Severity")),
                        package=str(misconfig.get("Type") or "config"),
                        target=target,
                        title=misconfig.get("Title") or misconfig.get("Message") or None,
                    )
                )

        tiers = {tier.lower(): 0 for tier in SEVERITY_TIERS}
        for finding in findings:
            tiers[finding.severity.lower()] += 1
        return TrivyResult(
            success=self.exit_success(capture.exit_code) and not findings,
            artifact=data.get("ArtifactName") or None,
            total=len(findings),
            vulnerabilities=findings,
            **tiers,
        )

    @staticmethod
    def _summary(result) -> str:
        if result.error:
            return f"trivy failed: {result.error}"
        subject = f"trivy {result.artifact}" if result.artifact else "trivy"
        if result.total == 0:
            return f"{subject}: no vulnerabilities found."
        breakdown = ", ".join(
            f"{getattr(result, tier.lower())} {tier.lower()}"
            for tier in SEVERITY_TIERS
            if getattr(result, tier.lower())
        )
        return f"{subject}: {plural(result.total, 'finding')} ({breakdown})"

    def format(self, result: TrivyResult) -> str:
        lines = [self._summary(result)]
        for f in result.vulnerabilities:
            entry = f"  [{f.severity}] {f.id} {f.package}"
            if f.installed_version:
                entry += f" {f.installed_version}"
                if f.fixed_version:
                    entry += f" -> {f.fixed_version}"
            if f.title:
                entry += f": {f.title}"
            lines.append(entry)
        return "\n".join(lines)

    def format_compact(self, result: TrivyResultCompact) -> str:
        return self._summary(result)
