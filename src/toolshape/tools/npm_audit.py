# src/toolshape/tools/npm_audit.py
"""npm audit --json (npm 7+) report parser."""

import json
import logging
from typing import Any, Optional

from ..core.textutil import plural, strip_ansi, to_int
from ..core.types import RawCapture
from ..schemas.javascript import NpmAuditResult, NpmAuditResultCompact, NpmVulnerability
from .base import CLEAN, ISSUES, ToolAdapter

logger = logging.getLogger(__name__)

TIERS = ("critical", "high", "moderate", "low", "info")


def _title(entry: dict[str, Any]) -> tuple[str, Optional[str]]:
    via = entry.get("via") or []
    advisories = [v for v in via if isinstance(v, dict)]
    if entry.get("title"):
        return str(entry["title"]), advisories[0].get("url") if advisories else None
    if advisories:
        return str(advisories[0].get("title") or "Unknown"), advisories[0].get("url")
    # Transitive entries only name the packages they inherit the advisory from.
    names = [str(v) for v in via if isinstance(v, str)]
    if names:
        return f"via {', '.join(names)}", None
    return "Unknown", None


class NpmAuditTool(ToolAdapter):
    """Parses the `vulnerabilities` map and severity metadata of `npm audit --json`."""

    name = "npm-audit"
    description = "Audit npm dependencies for known vulnerabilities"
    variants = {None: (NpmAuditResult, NpmAuditResultCompact)}
    exit_codes = {0: CLEAN, 1: ISSUES}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> NpmAuditResult:
        text = strip_ansi(capture.stdout).strip()
        if not text:
            return NpmAuditResult(success=self.exit_success(capture.exit_code))
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"npm audit produced invalid JSON: {e}")
            return NpmAuditResult(success=False, error=f"Invalid JSON output: {e}")
        if not isinstance(data, dict):
            return NpmAuditResult(success=False, error="Unexpected JSON shape, expected an object")
        if isinstance(data.get("error"), dict):
            error = data["error"]
            return NpmAuditResult(
                success=False, error=str(error.get("summary") or error.get("code") or "npm audit error")
            )

        raw = data.get("vulnerabilities") if isinstance(data.get("vulnerabilities"), dict) else {}
        vulnerabilities = []
        for name, entry in raw.items():
            if not isinstance(entry, dict):
                continue
            title, url = _title(entry)
            vulnerabilities.append(
                NpmVulnerability(
                    name=str(entry.get("name") or name),
                    severity=str(entry.get("severity") or "info"),
                    title=title,
                    url=url,
                    range=entry.get("range") or None,
                    fix_available=bool(entry.get("fixAvailable")),
                )
            )

        metadata = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
        counts = metadata.get("vulnerabilities") if isinstance(metadata.get("vulnerabilities"), dict) else {}
        tiers = {tier: to_int(counts.get(tier)) for tier in TIERS}
        if not counts:
            for v in vulnerabilities:
                if v.severity in tiers:
                    tiers[v.severity] += 1
        total = to_int(counts.get("total")) if "total" in counts else len(vulnerabilities)

        return NpmAuditResult(
            success=self.exit_success(capture.exit_code) and total == 0,
            total=total,
            vulnerabilities=vulnerabilities,
            **tiers,
        )

    @staticmethod
    def _summary(result) -> str:
        if result.error:
            return f"npm audit failed: {result.error}"
        if result.total == 0:
            return "No vulnerabilities found."
        breakdown = ", ".join(
            f"{getattr(result, tier)} {tier}" for tier in TIERS if getattr(result, tier)
        )
        summary = plural(result.total, "vulnerability", "vulnerabilities")
        return f"{summary} ({breakdown})" if breakdown else summary

    def format(self, result: NpmAuditResult) -> str:
        lines = [self._summary(result)]
        for v in result.vulnerabilities:
            entry = f"  {v.name} ({v.severity}): {v.title}"
            if v.range:
                entry += f" [{v.range}]"
            if v.fix_available:
                entry += " (fix available)"
            lines.append(entry)
        return "\n".join(lines)

    def format_compact(self, result: NpmAuditResultCompact) -> str:
        return self._summary(result)
