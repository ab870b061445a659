# src/toolshape/tools/pip_audit.py
"""pip-audit JSON report parser."""

import json
import logging
from typing import Any, Optional

from ..core.textutil import plural, strip_ansi
from ..core.types import RawCapture
from ..schemas.python import (
    PipAuditResult,
    PipAuditResultCompact,
    SkippedDependency,
    Vulnerability,
)
from .base import CLEAN, ISSUES, ToolAdapter

logger = logging.getLogger(__name__)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


class PipAuditTool(ToolAdapter):
    """Parses `pip-audit --format json`."""

    name = "pip-audit"
    description = "Audit Python dependencies for known vulnerabilities"
    variants = {None: (PipAuditResult, PipAuditResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> PipAuditResult:
        text = strip_ansi(capture.stdout).strip()
        if not text:
            return PipAuditResult(success=self.exit_success(capture.exit_code))
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"pip-audit produced invalid JSON: {e}")
            return PipAuditResult(success=False, error=f"Invalid JSON output: {e}")

        # Current releases wrap dependencies in an object; older ones emit the list directly.
        if isinstance(data, dict):
            dependencies = data.get("dependencies")
        else:
            dependencies = data
        if not isinstance(dependencies, list):
            logger.warning("pip-audit JSON has no dependency list")
            return PipAuditResult(success=False, error="Unexpected JSON shape, no dependency list")

        vulnerabilities = []
        skipped = []
        by_package: dict[str, list[str]] = {}
        for dep in dependencies:
            if not isinstance(dep, dict):
                continue
            name = str(dep.get("name", ""))
            version = str(dep.get("version") or "")
            if dep.get("skip_reason"):
                skipped.append(SkippedDependency(name=name, reason=str(dep["skip_reason"])))
                continue
            for vuln in dep.get("vulns") or []:
                if not isinstance(vuln, dict) or not vuln.get("id"):
                    continue
                aliases = _string_list(vuln.get("aliases"))
                vulnerabilities.append(
                    Vulnerability(
                        package=name,
                        version=version,
                        id=str(vuln["id"]),
                        description=str(vuln["description"]) if vuln.get("description") else None,
                        fix_versions=_string_list(vuln.get("fix_versions")),
                        aliases=aliases or None,
                    )
                )
                by_package.setdefault(name, []).append(str(vuln["id"]))

        return PipAuditResult(
            success=self.exit_success(capture.exit_code) and not vulnerabilities,
            total=len(vulnerabilities),
            dependency_count=len(dependencies),
            skipped_count=len(skipped),
            vulnerabilities=vulnerabilities,
            by_package=by_package,
            skipped=skipped,
        )

    def surrogates(self, result: PipAuditResult) -> dict[str, Any]:
        return {"vulnerable_packages": sorted(result.by_package)}

    def format(self, result: PipAuditResult) -> str:
        if result.error:
            return f"pip-audit failed: {result.error}"
        if result.total == 0 and result.skipped_count == 0:
            return "No vulnerabilities found."
        lines = []
        if result.total == 0:
            lines.append(f"No vulnerabilities found; {result.skipped_count} skipped:")
        else:
            lines.append(f"{plural(result.total, 'vulnerability', 'vulnerabilities')}:")
        for v in result.vulnerabilities:
            entry = f"  {v.package}=={v.version} {v.id}"
            if v.description:
                entry += f": {v.description}"
            if v.fix_versions:
                entry += f" (fix: {', '.join(v.fix_versions)})"
            lines.append(entry)
        for skip in result.skipped:
            lines.append(f"  skipped {skip.name}: {skip.reason}")
        return "\n".join(lines)

    def format_compact(self, result: PipAuditResultCompact) -> str:
        if result.error:
            return f"pip-audit failed: {result.error}"
        if result.total == 0:
            if result.skipped_count:
                return f"No vulnerabilities found; {result.skipped_count} skipped."
            return "No vulnerabilities found."
        return (
            f"{plural(result.total, 'vulnerability', 'vulnerabilities')} found in "
            f"{', '.join(result.vulnerable_packages)}."
        )
