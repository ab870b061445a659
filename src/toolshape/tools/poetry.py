# src/toolshape/tools/poetry.py
"""Poetry output parsers, one per subcommand."""

import logging
import re
from typing import Any, Optional

from ..core.textutil import clean_lines, plural, strip_ansi
from ..core.types import RawCapture
from ..schemas.base import Package
from ..schemas.envs import (
    PoetryBuild,
    PoetryBuildCompact,
    PoetryChanges,
    PoetryChangesCompact,
    PoetryCheck,
    PoetryCheckCompact,
    PoetryExport,
    PoetryExportCompact,
    PoetryLock,
    PoetryLockCompact,
    PoetryPackage,
    PoetryResult,
    PoetryResultCompact,
    PoetryShow,
    PoetryShowCompact,
    PoetryUpdate,
)
from .base import MultiActionAdapter

logger = logging.getLogger(__name__)

# "requests   2.31.0  Python HTTP for Humans." and "(!)" for packages not installed.
SHOW_LINE_RE = re.compile(r"^(\S+)\s+(\(!\)\s+)?(\d\S*)(?:\s+(.*))?$")
BUILT_RE = re.compile(r"^\s*-\s+Built\s+(\S+)")
INSTALLING_RE = re.compile(r"^\s*[-•]\s+Installing\s+(\S+)\s+\(([^)]+)\)")
UPDATING_RE = re.compile(r"^\s*[-•]\s+(?:Updating|Downgrading)\s+(\S+)\s+\((\S+)\s+->\s+([^)]+)\)")
REMOVING_RE = re.compile(r"^\s*[-•]\s+Removing\s+(\S+)\s+\(([^)]+)\)")
LOCK_WRITTEN_RE = re.compile(r"Writing lock file")
CHECK_ERROR_RE = re.compile(r"^Error:\s*(.+)$")
CHECK_WARNING_RE = re.compile(r"^Warning:\s*(.+)$")
REQUIREMENT_LINE_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._\-\[\], ]*(?:==|>=|<=|~=|!=|@| ;|;)")


def _error(capture: RawCapture) -> Optional[str]:
    text = strip_ansi(capture.stderr).strip()
    if not text:
        text = strip_ansi(capture.stdout).strip()
    return text or None


class PoetryTool(MultiActionAdapter):
    """Parses poetry's human-readable output."""

    name = "poetry"
    description = "Manage Python projects with Poetry"
    variants = {
        "show": (PoetryShow, PoetryShowCompact),
        "build": (PoetryBuild, PoetryBuildCompact),
        "install": (PoetryChanges, PoetryChangesCompact),
        "add": (PoetryChanges, PoetryChangesCompact),
        "remove": (PoetryChanges, PoetryChangesCompact),
        "update": (PoetryChanges, PoetryChangesCompact),
        "lock": (PoetryLock, PoetryLockCompact),
        "check": (PoetryCheck, PoetryCheckCompact),
        "export": (PoetryExport, PoetryExportCompact),
    }
    schema = PoetryResult
    compact_schema = PoetryResultCompact

    # --- parsers ---

    def parse_show(self, capture: RawCapture) -> PoetryShow:
        if not self.exit_success(capture.exit_code):
            return PoetryShow(success=False, error=_error(capture))
        packages = []
        for line in clean_lines(capture.stdout):
            match = SHOW_LINE_RE.match(line.strip())
            if not match:
                continue
            packages.append(
                PoetryPackage(
                    name=match.group(1),
                    version=match.group(3),
                    description=(match.group(4) or "").strip() or None,
                    installed=match.group(2) is None,
                )
            )
        return PoetryShow(success=True, total=len(packages), packages=packages)

    def parse_build(self, capture: RawCapture) -> PoetryBuild:
        artifacts = [
            match.group(1)
            for match in map(BUILT_RE.match, clean_lines(capture.stdout))
            if match
        ]
        success = self.exit_success(capture.exit_code)
        return PoetryBuild(
            success=success,
            total=len(artifacts),
            artifacts=artifacts,
            error=None if success else _error(capture),
        )

    def _parse_changes(self, capture: RawCapture, action: str) -> PoetryChanges:
        installed, updated, removed = [], [], []
        for line in clean_lines(capture.stdout):
            match = INSTALLING_RE.match(line)
            if match:
                installed.append(Package(name=match.group(1), version=match.group(2)))
                continue
            match = UPDATING_RE.match(line)
            if match:
                updated.append(
                    PoetryUpdate(
                        name=match.group(1),
                        from_version=match.group(2),
                        to_version=match.group(3).strip(),
                    )
                )
                continue
            match = REMOVING_RE.match(line)
            if match:
                removed.append(Package(name=match.group(1), version=match.group(2)))

        success = self.exit_success(capture.exit_code)
        return PoetryChanges(
            action=action,
            success=success,
            total_installed=len(installed),
            total_updated=len(updated),
            total_removed=len(removed),
            installed=installed,
            updated=updated,
            removed=removed,
            lock_written=bool(LOCK_WRITTEN_RE.search(capture.stdout)),
            error=None if success else _error(capture),
        )

    def parse_install(self, capture: RawCapture) -> PoetryChanges:
        return self._parse_changes(capture, "install")

    def parse_add(self, capture: RawCapture) -> PoetryChanges:
        return self._parse_changes(capture, "add")

    def parse_remove(self, capture: RawCapture) -> PoetryChanges:
        return self._parse_changes(capture, "remove")

    def parse_update(self, capture: RawCapture) -> PoetryChanges:
        return self._parse_changes(capture, "update")

    def parse_lock(self, capture: RawCapture) -> PoetryLock:
        success = self.exit_success(capture.exit_code)
        return PoetryLock(
            success=success,
            lock_written=bool(LOCK_WRITTEN_RE.search(capture.combined)),
            error=None if success else _error(capture),
        )

    def parse_check(self, capture: RawCapture) -> PoetryCheck:
        errors, warnings = [], []
        for line in clean_lines(capture.combined):
            line = line.strip()
            error = CHECK_ERROR_RE.match(line)
            if error:
                errors.append(error.group(1))
                continue
            warning = CHECK_WARNING_RE.match(line)
            if warning:
                warnings.append(warning.group(1))
        success = self.exit_success(capture.exit_code) and not errors
        return PoetryCheck(
            success=success,
            valid=success,
            error_count=len(errors),
            warning_count=len(warnings),
            errors=errors,
            warnings=warnings,
        )

    def parse_export(self, capture: RawCapture) -> PoetryExport:
        success = self.exit_success(capture.exit_code)
        requirements = []
        for line in clean_lines(capture.stdout):
            line = line.strip()
            if not line or line.startswith(("#", "--")):
                continue
            if REQUIREMENT_LINE_RE.match(line):
                requirements.append(line.rstrip(" \\"))
        return PoetryExport(
            success=success,
            total=len(requirements),
            requirements=requirements,
            error=None if success else _error(capture),
        )

    def surrogates(self, result) -> dict[str, Any]:
        if isinstance(result, PoetryShow):
            return {"names": [pkg.name for pkg in result.packages]}
        return {}

    # --- formatters ---

    @staticmethod
    def _failed(result) -> Optional[str]:
        if result.success:
            return None
        return f"poetry {result.action} failed."

    def format_show(self, result: PoetryShow) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.total == 0:
            return "poetry: no packages found."
        lines = [f"poetry: {plural(result.total, 'package')}:"]
        for pkg in result.packages:
            entry = f"  {pkg.name} {pkg.version}"
            if not pkg.installed:
                entry += " (not installed)"
            if pkg.description:
                entry += f": {pkg.description}"
            lines.append(entry)
        return "\n".join(lines)

    def format_compact_show(self, result: PoetryShowCompact) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.total == 0:
            return "poetry: no packages found."
        return f"poetry: {plural(result.total, 'package')}: {', '.join(result.names)}"

    def format_build(self, result: PoetryBuild) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.total == 0:
            return "poetry: nothing built."
        lines = [f"poetry: built {plural(result.total, 'artifact')}:"]
        lines.extend(f"  {artifact}" for artifact in result.artifacts)
        return "\n".join(lines)

    def format_compact_build(self, result: PoetryBuildCompact) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.total == 0:
            return "poetry: nothing built."
        return f"poetry: built {plural(result.total, 'artifact')}."

    def _changes_summary(self, result) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if not (result.total_installed or result.total_updated or result.total_removed):
            return f"poetry {result.action}: no dependency changes."
        return (
            f"poetry {result.action}: {result.total_installed} installed, "
            f"{result.total_updated} updated, {result.total_removed} removed"
        )

    def _format_changes(self, result: PoetryChanges) -> str:
        lines = [self._changes_summary(result)]
        if not result.success:
            if result.error:
                lines.append(f"  {result.error.splitlines()[0]}")
            return "\n".join(lines)
        lines.extend(f"  + {pkg.name} {pkg.version}" for pkg in result.installed)
        lines.extend(
            f"  ~ {up.name} {up.from_version} -> {up.to_version}" for up in result.updated
        )
        lines.extend(f"  - {pkg.name} {pkg.version}" for pkg in result.removed)
        return "\n".join(lines)

    format_install = format_add = format_remove = format_update = _format_changes
    format_compact_install = format_compact_add = _changes_summary
    format_compact_remove = format_compact_update = _changes_summary

    def format_lock(self, result) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.lock_written:
            return "poetry: lock file written."
        return "poetry: lock file unchanged."

    format_compact_lock = format_lock

    def format_check(self, result: PoetryCheck) -> str:
        if result.error_count == 0 and result.warning_count == 0 and result.valid:
            return "poetry: project configuration is valid."
        lines = [
            f"poetry check: {plural(result.error_count, 'error')}, "
            f"{plural(result.warning_count, 'warning')}"
        ]
        lines.extend(f"  error: {message}" for message in result.errors)
        lines.extend(f"  warning: {message}" for message in result.warnings)
        return "\n".join(lines)

    def format_compact_check(self, result: PoetryCheckCompact) -> str:
        if result.error_count == 0 and result.warning_count == 0 and result.valid:
            return "poetry: project configuration is valid."
        return (
            f"poetry check: {plural(result.error_count, 'error')}, "
            f"{plural(result.warning_count, 'warning')}"
        )

    def format_export(self, result: PoetryExport) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.total == 0:
            return "poetry: no requirements exported."
        lines = [f"poetry: exported {plural(result.total, 'requirement')}:"]
        lines.extend(f"  {requirement}" for requirement in result.requirements)
        return "\n".join(lines)

    def format_compact_export(self, result: PoetryExportCompact) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.total == 0:
            return "poetry: no requirements exported."
        return f"poetry: exported {plural(result.total, 'requirement')}."
