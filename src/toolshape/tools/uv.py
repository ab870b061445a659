# src/toolshape/tools/uv.py
"""uv pip install and uv run output parsers."""

import logging
import re
from typing import Optional

from ..core.textutil import clean_lines, fmt_num, plural, strip_ansi, to_float
from ..core.types import RawCapture
from ..schemas.base import Package
from ..schemas.python import (
    ResolutionConflict,
    UvInstallResult,
    UvInstallResultCompact,
    UvRunResult,
    UvRunResultCompact,
)
from .base import ToolAdapter

logger = logging.getLogger(__name__)

ADDED_RE = re.compile(r"^\s*\+\s+(\S+?)==(\S+)")
REMOVED_RE = re.compile(r"^\s*-\s+(\S+?)==(\S+)")
INSTALLED_SUMMARY_RE = re.compile(r"Installed (\d+) packages? in (\d+(?:\.\d+)?)(ms|s)\b")
AUDITED_RE = re.compile(r"Audited (\d+) packages?")
BACKTICK_RE = re.compile(r"`([^`]+)`")
REQUIREMENT_RE = re.compile(r"^([A-Za-z0-9][A-Za-z0-9._\-]*(?:\[[^\]]*\])?)\s*(.*)$")

# Status lines uv itself writes to stderr during `uv run`.
UV_STATUS_RE = re.compile(
    r"^(?:Resolved|Prepared|Installed|Uninstalled|Audited|Built|Building|Downloading|"
    r"Downloaded|Using (?:CPython|Python)|Creating virtual environment|Bytecode compiled)\b"
    r"|^warning: "
)


class UvInstallTool(ToolAdapter):
    """Parses `uv pip install` output."""

    name = "uv-install"
    description = "Install Python packages with uv"
    variants = {None: (UvInstallResult, UvInstallResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> UvInstallResult:
        installed = []
        uninstalled = []
        duration = 0.0
        already_satisfied = False
        for line in clean_lines(capture.combined):
            added = ADDED_RE.match(line)
            if added:
                installed.append(Package(name=added.group(1), version=added.group(2)))
                continue
            removed = REMOVED_RE.match(line)
            if removed:
                uninstalled.append(Package(name=removed.group(1), version=removed.group(2)))
                continue
            summary = INSTALLED_SUMMARY_RE.search(line)
            if summary:
                value = to_float(summary.group(2))
                duration = value / 1000 if summary.group(3) == "ms" else value
                continue
            if AUDITED_RE.search(line):
                already_satisfied = True

        success = self.exit_success(capture.exit_code)
        error = None
        conflicts = None
        if not success:
            error = strip_ansi(capture.stderr).strip() or None
            conflicts = self._conflicts(capture.stderr) or None
            logger.debug(f"uv install failed with {len(conflicts or [])} resolution conflict(s)")

        return UvInstallResult(
            success=success,
            total=len(installed),
            duration=duration,
            installed=installed,
            uninstalled=uninstalled,
            already_satisfied=already_satisfied and not installed,
            error=error,
            resolution_conflicts=conflicts,
        )

    @staticmethod
    def _conflicts(stderr: str) -> list[ResolutionConflict]:
        conflicts = []
        seen = set()
        for line in clean_lines(stderr):
            if "because" not in line.lower() and "depends on" not in line:
                continue
            for spec in BACKTICK_RE.findall(line):
                match = REQUIREMENT_RE.match(spec.strip())
                if not match or spec in seen:
                    continue
                seen.add(spec)
                conflicts.append(
                    ResolutionConflict(package=match.group(1), constraint=match.group(2).strip())
                )
        return conflicts

    def format(self, result: UvInstallResult) -> str:
        if not result.success:
            lines = ["uv install failed."]
            for conflict in result.resolution_conflicts or []:
                constraint = f" {conflict.constraint}" if conflict.constraint else ""
                lines.append(f"  conflict: {conflict.package}{constraint}")
            return "\n".join(lines)
        if result.total == 0:
            return "All requirements already satisfied."
        lines = [f"Installed {plural(result.total, 'package')} in {fmt_num(result.duration)}s:"]
        lines.extend(f"  {pkg.name}=={pkg.version}" for pkg in result.installed)
        return "\n".join(lines)

    def format_compact(self, result: UvInstallResultCompact) -> str:
        if not result.success:
            return "uv install failed."
        if result.total == 0:
            return "All requirements already satisfied."
        return f"Installed {plural(result.total, 'package')} in {fmt_num(result.duration)}s."


class UvRunTool(ToolAdapter):
    """Wraps `uv run`: the command's own output plus uv's status lines."""

    name = "uv-run"
    description = "Run a command inside a uv-managed environment"
    variants = {None: (UvRunResult, UvRunResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> UvRunResult:
        uv_lines = []
        command_lines = []
        for line in strip_ansi(capture.stderr).split("\n"):
            if UV_STATUS_RE.match(line.strip()):
                uv_lines.append(line.strip())
            else:
                command_lines.append(line)

        return UvRunResult(
            success=self.exit_success(capture.exit_code),
            exit_code=capture.exit_code,
            duration=capture.duration,
            stdout=strip_ansi(capture.stdout),
            stderr="\n".join(command_lines).strip("\n"),
            truncated=True if capture.truncated else None,
            uv_diagnostics=uv_lines or None,
        )

    @staticmethod
    def _status(result) -> str:
        status = "completed" if result.success else f"failed (exit {result.exit_code})"
        line = f"uv run {status} in {fmt_num(result.duration)}s"
        if result.truncated:
            line += " (output truncated)"
        return line

    def format(self, result: UvRunResult) -> str:
        lines = [self._status(result)]
        if result.stdout.strip():
            lines.extend(["stdout:", result.stdout.strip()])
        if result.stderr.strip():
            lines.extend(["stderr:", result.stderr.strip()])
        return "\n".join(lines)

    def format_compact(self, result: UvRunResultCompact) -> str:
        return self._status(result)
