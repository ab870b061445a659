# src/toolshape/tools/pip.py
"""pip install / pip list / pip show output parsers."""

import json
import logging
import re
from typing import Optional

from ..core.textutil import clean_lines, plural, strip_ansi
from ..core.types import RawCapture
from ..schemas.base import Package
from ..schemas.python import (
    PipInstallResult,
    PipInstallResultCompact,
    PipListPackage,
    PipListResult,
    PipListResultCompact,
    PipShowResult,
    PipShowResultCompact,
)
from .base import ToolAdapter

logger = logging.getLogger(__name__)

INSTALLED_RE = re.compile(r"^(Successfully installed|Would install)\s+(.+)$")
WARNING_RE = re.compile(r"^(?:WARNING|DEPRECATION):")
ERROR_RE = re.compile(r"^ERROR:\s*(.+)$")
SHOW_FIELD_RE = re.compile(r"^([A-Za-z][A-Za-z-]*):\s?(.*)$")

SHOW_FIELDS = {
    "Name": "name",
    "Version": "version",
    "Summary": "summary",
    "Home-page": "homepage",
    "Author": "author",
    "Author-email": "author_email",
    "License": "license",
    "Location": "location",
    "Requires": "requires",
    "Required-by": "required_by",
}


def split_requirement(token: str) -> Package:
    """'requests-2.31.0' -> requests / 2.31.0. Names may contain dashes, versions may not."""
    name, sep, version = token.rpartition("-")
    if not sep:
        return Package(name=token, version="")
    return Package(name=name, version=version)


class PipInstallTool(ToolAdapter):
    """Parses `pip install` output, including `--dry-run`."""

    name = "pip-install"
    description = "Install Python packages with pip"
    variants = {None: (PipInstallResult, PipInstallResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> PipInstallResult:
        installed = []
        warnings = []
        errors = []
        dry_run = False
        for line in clean_lines(capture.combined):
            line = line.strip()
            match = INSTALLED_RE.match(line)
            if match:
                dry_run = dry_run or match.group(1) == "Would install"
                installed.extend(split_requirement(token) for token in match.group(2).split())
                continue
            if WARNING_RE.match(line):
                warnings.append(line)
                continue
            error = ERROR_RE.match(line)
            if error:
                errors.append(error.group(1))

        success = self.exit_success(capture.exit_code)
        return PipInstallResult(
            success=success,
            total=len(installed),
            installed=installed,
            already_satisfied="already satisfied" in capture.combined.lower(),
            dry_run=dry_run,
            warnings=warnings,
            error="\n".join(errors) if errors and not success else None,
        )

    @staticmethod
    def _fixed_sentence(result) -> Optional[str]:
        if result.already_satisfied and result.total == 0 and result.success:
            return "All requirements already satisfied."
        if not result.success:
            return "pip install failed."
        return None

    def format(self, result: PipInstallResult) -> str:
        fixed = self._fixed_sentence(result)
        if fixed and not result.success and result.error:
            return "\n".join([fixed] + [f"  {line}" for line in result.error.splitlines()])
        if fixed:
            return fixed
        if result.total == 0:
            return "pip install: nothing to install."
        verb = "Would install" if result.dry_run else "Installed"
        lines = [f"{verb} {plural(result.total, 'package')}:"]
        lines.extend(f"  {pkg.name}=={pkg.version}" for pkg in result.installed)
        return "\n".join(lines)

    def format_compact(self, result: PipInstallResultCompact) -> str:
        fixed = self._fixed_sentence(result)
        if fixed:
            return fixed
        if result.total == 0:
            return "pip install: nothing to install."
        verb = "Would install" if result.dry_run else "Installed"
        return f"{verb} {plural(result.total, 'package')}."


class PipListTool(ToolAdapter):
    """Parses `pip list --format json`, optionally with `--outdated`."""

    name = "pip-list"
    description = "List installed Python packages"
    variants = {None: (PipListResult, PipListResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> PipListResult:
        success = self.exit_success(capture.exit_code)
        text = strip_ansi(capture.stdout).strip()
        if not text:
            return PipListResult(success=success)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"pip list produced invalid JSON: {e}")
            return PipListResult(success=False, error=f"Invalid JSON output: {e}")
        if not isinstance(data, list):
            logger.warning(f"pip list JSON root is {type(data).__name__}, expected array")
            return PipListResult(success=False, error="Unexpected JSON root, expected an array")

        packages = []
        for entry in data:
            if not isinstance(entry, dict) or "name" not in entry:
                continue
            packages.append(
                PipListPackage(
                    name=str(entry["name"]),
                    version=str(entry.get("version", "")),
                    latest_version=entry.get("latest_version"),
                    latest_filetype=entry.get("latest_filetype"),
                    editable_project_location=entry.get("editable_project_location"),
                )
            )
        return PipListResult(
            success=success,
            total=len(packages),
            outdated=any(p.latest_version for p in packages),
            packages=packages,
        )

    def format(self, result: PipListResult) -> str:
        if result.error:
            return f"pip list failed: {result.error}"
        if result.total == 0:
            return "No packages found."
        if result.outdated:
            lines = [f"{plural(result.total, 'outdated package')}:"]
            lines.extend(
                f"  {p.name} {p.version} -> {p.latest_version}" for p in result.packages
            )
        else:
            lines = [f"{plural(result.total, 'package')}:"]
            lines.extend(f"  {p.name}=={p.version}" for p in result.packages)
        return "\n".join(lines)

    def format_compact(self, result: PipListResultCompact) -> str:
        if result.error:
            return f"pip list failed: {result.error}"
        if result.total == 0:
            return "No packages found."
        noun = "outdated package" if result.outdated else "package"
        return f"{plural(result.total, noun)}."


class PipShowTool(ToolAdapter):
    """Parses the `Key: value` metadata block printed by `pip show`."""

    name = "pip-show"
    description = "Show metadata for an installed Python package"
    variants = {None: (PipShowResult, PipShowResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> PipShowResult:
        fields: dict = {}
        for line in clean_lines(capture.stdout):
            # Only the first package block is reported.
            if line.strip() == "---":
                break
            match = SHOW_FIELD_RE.match(line)
            if not match or match.group(1) not in SHOW_FIELDS:
                continue
            key = SHOW_FIELDS[match.group(1)]
            value = match.group(2).strip()
            if key in ("requires", "required_by"):
                fields[key] = [item.strip() for item in value.split(",") if item.strip()]
            elif value:
                fields[key] = value

        success = self.exit_success(capture.exit_code)
        return PipShowResult(
            success=success,
            name=fields.get("name"),
            version=fields.get("version"),
            summary=fields.get("summary"),
            homepage=fields.get("homepage"),
            author=fields.get("author"),
            author_email=fields.get("author_email"),
            license=fields.get("license"),
            location=fields.get("location"),
            requires=fields.get("requires", []),
            required_by=fields.get("required_by") or None,
            error=None if success else strip_ansi(capture.stderr).strip() or None,
        )

    @staticmethod
    def _header(result) -> Optional[str]:
        if not result.name:
            return "pip show: package not found."
        header = f"{result.name}=={result.version}" if result.version else result.name
        if result.summary:
            header += f": {result.summary}"
        return header

    def format(self, result: PipShowResult) -> str:
        header = self._header(result)
        if not result.name:
            if result.error:
                return f"{header}\n  {result.error.splitlines()[0]}"
            return header
        lines = [header]
        if result.location:
            lines.append(f"  Location: {result.location}")
        if result.requires:
            lines.append(f"  Requires: {', '.join(result.requires)}")
        if result.required_by:
            lines.append(f"  Required by: {', '.join(result.required_by)}")
        return "\n".join(lines)

    def format_compact(self, result: PipShowResultCompact) -> str:
        return self._header(result)
