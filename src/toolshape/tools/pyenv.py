# src/toolshape/tools/pyenv.py
"""pyenv output parsers, one per subcommand."""

import logging
import re
from typing import Any, Optional

from ..core.textutil import clean_lines, plural, strip_ansi
from ..core.types import RawCapture
from ..schemas.envs import (
    PyenvGlobal,
    PyenvGlobalCompact,
    PyenvInstall,
    PyenvInstallCompact,
    PyenvInstallList,
    PyenvInstallListCompact,
    PyenvLocal,
    PyenvLocalCompact,
    PyenvRehash,
    PyenvRehashCompact,
    PyenvResult,
    PyenvResultCompact,
    PyenvVersion,
    PyenvVersionCompact,
    PyenvVersionEntry,
    PyenvVersions,
    PyenvVersionsCompact,
    PyenvWhich,
    PyenvWhichCompact,
)
from .base import MultiActionAdapter

logger = logging.getLogger(__name__)

# "* 3.12.0 (set by /home/me/.pyenv/version)" or "  3.11.4"
VERSION_LINE_RE = re.compile(r"^(\*)?\s*(\S+)(?:\s+\(set by (.+)\))?\s*$")
INSTALLED_RE = re.compile(r"Installed (?:Python-)?(\S+) to (\S+)")
ALREADY_RE = re.compile(r"(\S+) already exists")


def _error(capture: RawCapture) -> Optional[str]:
    text = strip_ansi(capture.stderr).strip() or strip_ansi(capture.stdout).strip()
    return text or None


def _first_line(text: str) -> str:
    for line in clean_lines(text):
        if line.strip():
            return line.strip()
    return ""


class PyenvTool(MultiActionAdapter):
    """Parses pyenv's plain-text output."""

    name = "pyenv"
    description = "Manage Python versions with pyenv"
    variants = {
        "versions": (PyenvVersions, PyenvVersionsCompact),
        "version": (PyenvVersion, PyenvVersionCompact),
        "install": (PyenvInstall, PyenvInstallCompact),
        "local": (PyenvLocal, PyenvLocalCompact),
        "global": (PyenvGlobal, PyenvGlobalCompact),
        "install-list": (PyenvInstallList, PyenvInstallListCompact),
        "which": (PyenvWhich, PyenvWhichCompact),
        "rehash": (PyenvRehash, PyenvRehashCompact),
    }
    schema = PyenvResult
    compact_schema = PyenvResultCompact

    # --- parsers ---

    def parse_versions(self, capture: RawCapture) -> PyenvVersions:
        if not self.exit_success(capture.exit_code):
            return PyenvVersions(success=False, error=_error(capture))
        versions = []
        for line in clean_lines(capture.stdout):
            if not line.strip():
                continue
            match = VERSION_LINE_RE.match(line.strip())
            if not match:
                continue
            versions.append(
                PyenvVersionEntry(
                    version=match.group(2),
                    current=bool(match.group(1)),
                    origin=match.group(3),
                )
            )
        current = next((v.version for v in versions if v.current), None)
        return PyenvVersions(success=True, total=len(versions), current=current, versions=versions)

    def parse_version(self, capture: RawCapture) -> PyenvVersion:
        if not self.exit_success(capture.exit_code):
            return PyenvVersion(success=False, error=_error(capture))
        match = VERSION_LINE_RE.match(_first_line(capture.stdout))
        if not match:
            return PyenvVersion(success=True)
        return PyenvVersion(success=True, version=match.group(2), origin=match.group(3))

    def parse_install(self, capture: RawCapture) -> PyenvInstall:
        text = strip_ansi(capture.combined)
        installed = INSTALLED_RE.search(text)
        already = ALREADY_RE.search(text)
        if not self.exit_success(capture.exit_code):
            return PyenvInstall(
                success=False,
                already_installed=already is not None,
                error=_error(capture),
            )
        return PyenvInstall(
            success=True,
            installed=installed.group(1) if installed else None,
            path=installed.group(2) if installed else None,
            already_installed=already is not None,
        )

    def parse_local(self, capture: RawCapture) -> PyenvLocal:
        if not self.exit_success(capture.exit_code):
            return PyenvLocal(success=False, error=_error(capture))
        return PyenvLocal(success=True, local_version=_first_line(capture.stdout) or None)

    def parse_global(self, capture: RawCapture) -> PyenvGlobal:
        if not self.exit_success(capture.exit_code):
            return PyenvGlobal(success=False, error=_error(capture))
        return PyenvGlobal(success=True, global_version=_first_line(capture.stdout) or None)

    def parse_install_list(self, capture: RawCapture) -> PyenvInstallList:
        if not self.exit_success(capture.exit_code):
            return PyenvInstallList(success=False, error=_error(capture))
        available = [
            line.strip()
            for line in clean_lines(capture.stdout)
            if line.strip() and not line.strip().endswith(":")
        ]
        return PyenvInstallList(success=True, total=len(available), available_versions=available)

    def parse_which(self, capture: RawCapture) -> PyenvWhich:
        if not self.exit_success(capture.exit_code):
            return PyenvWhich(success=False, error=_error(capture))
        return PyenvWhich(success=True, command_path=_first_line(capture.stdout) or None)

    def parse_rehash(self, capture: RawCapture) -> PyenvRehash:
        if not self.exit_success(capture.exit_code):
            return PyenvRehash(success=False, error=_error(capture))
        return PyenvRehash(success=True)

    def surrogates(self, result) -> dict[str, Any]:
        if isinstance(result, PyenvVersions):
            return {"names": [entry.version for entry in result.versions]}
        return {}

    # --- formatters ---

    @staticmethod
    def _failed(result) -> Optional[str]:
        if result.success:
            return None
        label = result.action.replace("-", " ")
        if result.error:
            return f"pyenv {label} failed: {_first_line(result.error)}"
        return f"pyenv {label} failed."

    def format_versions(self, result: PyenvVersions) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.total == 0:
            return "pyenv: no versions installed."
        lines = [f"{plural(result.total, 'version')} installed:"]
        for entry in result.versions:
            lines.append(f"  {entry.version} *" if entry.current else f"  {entry.version}")
        return "\n".join(lines)

    def format_compact_versions(self, result: PyenvVersionsCompact) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.total == 0:
            return "pyenv: no versions installed."
        current = f" (current: {result.current})" if result.current else ""
        return f"{plural(result.total, 'version')} installed{current}: {', '.join(result.names)}"

    def format_version(self, result) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if not result.version:
            return "pyenv: no version set."
        return f"pyenv: current version is {result.version}"

    format_compact_version = format_version

    def format_install(self, result) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.installed:
            return f"pyenv: installed Python {result.installed}"
        return "pyenv: installation completed."

    format_compact_install = format_install

    def format_local(self, result) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.local_version:
            return f"pyenv: local version set to {result.local_version}"
        return "pyenv: local version set."

    format_compact_local = format_local

    def format_global(self, result) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.global_version:
            return f"pyenv: global version set to {result.global_version}"
        return "pyenv: global version set."

    format_compact_global = format_global

    def format_install_list(self, result: PyenvInstallList) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.total == 0:
            return "pyenv: no versions available."
        lines = [f"{plural(result.total, 'version')} available:"]
        lines.extend(f"  {version}" for version in result.available_versions)
        return "\n".join(lines)

    def format_compact_install_list(self, result: PyenvInstallListCompact) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if result.total == 0:
            return "pyenv: no versions available."
        return f"{plural(result.total, 'version')} available."

    def format_which(self, result) -> str:
        failed = self._failed(result)
        if failed:
            return failed
        if not result.command_path:
            return "pyenv: command not found."
        return result.command_path

    format_compact_which = format_which

    def format_rehash(self, result) -> str:
        return self._failed(result) or "pyenv: shims rehashed."

    format_compact_rehash = format_rehash
