# src/toolshape/tools/conda.py
"""conda --json output parsers, one per action."""

import json
import logging
import posixpath
from typing import Any, Optional

from ..core.textutil import plural, strip_ansi
from ..core.types import RawCapture
from ..schemas.envs import (
    CondaEnvironment,
    CondaEnvList,
    CondaEnvListCompact,
    CondaInfo,
    CondaInfoCompact,
    CondaList,
    CondaListCompact,
    CondaMutation,
    CondaMutationCompact,
    CondaPackage,
    CondaResult,
    CondaResultCompact,
)
from .base import MultiActionAdapter

logger = logging.getLogger(__name__)

MUTATION_ACTIONS = ("install", "create", "remove", "update")


def _load_json(text: str) -> tuple[Any, Optional[str]]:
    text = strip_ansi(text).strip()
    if not text:
        return None, "No JSON output"
    try:
        return json.loads(text), None
    except json.JSONDecodeError as e:
        logger.warning(f"conda produced invalid JSON: {e}")
        return None, f"Invalid JSON output: {e}"


def _text(data: dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    return str(value) if value else None


def _package(entry: dict[str, Any]) -> CondaPackage:
    return CondaPackage(
        name=str(entry.get("name", "")),
        version=str(entry.get("version", "")),
        channel=entry.get("channel") or None,
        build_string=entry.get("build_string") or None,
    )


def _env_name(path: str) -> str:
    normalized = path.replace("\\", "/").rstrip("/")
    parent = posixpath.basename(posixpath.dirname(normalized))
    # Named environments live under an envs/ directory; anything else is a root prefix.
    if parent != "envs":
        return "base"
    return posixpath.basename(normalized)


class CondaTool(MultiActionAdapter):
    """Parses `conda <action> --json` for list, info, env list and package mutations."""

    name = "conda"
    description = "Inspect and manage conda environments"
    variants = {
        "list": (CondaList, CondaListCompact),
        "info": (CondaInfo, CondaInfoCompact),
        "env-list": (CondaEnvList, CondaEnvListCompact),
        "install": (CondaMutation, CondaMutationCompact),
        "create": (CondaMutation, CondaMutationCompact),
        "remove": (CondaMutation, CondaMutationCompact),
        "update": (CondaMutation, CondaMutationCompact),
    }
    schema = CondaResult
    compact_schema = CondaResultCompact

    # --- parsers ---

    def parse_list(self, capture: RawCapture) -> CondaList:
        data, error = _load_json(capture.stdout)
        if error or not isinstance(data, list):
            return CondaList(success=False, parse_error=error or "Expected a JSON array")
        packages = [_package(entry) for entry in data if isinstance(entry, dict)]
        return CondaList(
            success=self.exit_success(capture.exit_code),
            total=len(packages),
            packages=packages,
        )

    def parse_info(self, capture: RawCapture) -> CondaInfo:
        data, error = _load_json(capture.stdout)
        if error or not isinstance(data, dict):
            return CondaInfo(success=False, parse_error=error or "Expected a JSON object")
        return CondaInfo(
            success=self.exit_success(capture.exit_code),
            conda_version=_text(data, "conda_version"),
            platform=_text(data, "platform"),
            python_version=_text(data, "python_version"),
            default_prefix=_text(data, "default_prefix"),
            active_prefix=data.get("active_prefix") or None,
            channels=[str(c) for c in data.get("channels") or []],
            envs_dirs=[str(d) for d in data.get("envs_dirs") or []],
            pkgs_dirs=[str(d) for d in data.get("pkgs_dirs") or []],
        )

    def parse_env_list(self, capture: RawCapture) -> CondaEnvList:
        data, error = _load_json(capture.stdout)
        if error or not isinstance(data, dict) or not isinstance(data.get("envs"), list):
            return CondaEnvList(success=False, parse_error=error or "Expected an object with 'envs'")
        active = data.get("active_prefix")
        environments = [
            CondaEnvironment(name=_env_name(str(path)), path=str(path), active=path == active)
            for path in data["envs"]
        ]
        return CondaEnvList(
            success=self.exit_success(capture.exit_code),
            total=len(environments),
            environments=environments,
        )

    def _parse_mutation(self, capture: RawCapture, action: str) -> CondaMutation:
        data, error = _load_json(capture.stdout)
        if error or not isinstance(data, dict):
            return CondaMutation(
                action=action,
                success=False,
                error=strip_ansi(capture.stderr).strip() or None,
                parse_error=error or "Expected a JSON object",
            )
        if data.get("error") or data.get("exception_name"):
            return CondaMutation(
                action=action,
                success=False,
                error=str(data.get("error") or data.get("exception_name")),
            )
        actions = data.get("actions") if isinstance(data.get("actions"), dict) else {}
        added = [_package(e) for e in (actions.get("LINK") or []) if isinstance(e, dict)]
        removed = [_package(e) for e in (actions.get("UNLINK") or []) if isinstance(e, dict)]
        return CondaMutation(
            action=action,
            success=self.exit_success(capture.exit_code) and data.get("success", True) is not False,
            total_added=len(added),
            total_removed=len(removed),
            added=added,
            removed=removed,
            prefix=actions.get("PREFIX") or data.get("prefix") or None,
            dry_run=bool(data.get("dry_run", False)),
        )

    def parse_install(self, capture: RawCapture) -> CondaMutation:
        return self._parse_mutation(capture, "install")

    def parse_create(self, capture: RawCapture) -> CondaMutation:
        return self._parse_mutation(capture, "create")

    def parse_remove(self, capture: RawCapture) -> CondaMutation:
        return self._parse_mutation(capture, "remove")

    def parse_update(self, capture: RawCapture) -> CondaMutation:
        return self._parse_mutation(capture, "update")

    def surrogates(self, result) -> dict[str, Any]:
        if isinstance(result, CondaEnvList):
            return {"names": [env.name for env in result.environments]}
        return {}

    # --- formatters ---

    def format_list(self, result: CondaList) -> str:
        if result.parse_error:
            return f"conda list failed: {result.parse_error}"
        if result.total == 0:
            return "conda: no packages found."
        lines = [f"conda: {plural(result.total, 'package')}:"]
        for pkg in result.packages:
            channel = f" ({pkg.channel})" if pkg.channel else ""
            lines.append(f"  {pkg.name}=={pkg.version}{channel}")
        return "\n".join(lines)

    def format_compact_list(self, result: CondaListCompact) -> str:
        if result.parse_error:
            return f"conda list failed: {result.parse_error}"
        if result.total == 0:
            return "conda: no packages found."
        return f"conda: {plural(result.total, 'package')}."

    def _info_header(self, result) -> str:
        header = f"conda {result.conda_version or 'unknown version'}"
        if result.platform:
            header += f" on {result.platform}"
        if result.python_version:
            header += f", Python {result.python_version}"
        return header

    def format_info(self, result: CondaInfo) -> str:
        if result.parse_error:
            return f"conda info failed: {result.parse_error}"
        lines = [self._info_header(result)]
        if result.default_prefix:
            lines.append(f"  default prefix: {result.default_prefix}")
        if result.active_prefix:
            lines.append(f"  active prefix: {result.active_prefix}")
        if result.channels:
            lines.append(f"  channels: {', '.join(result.channels)}")
        return "\n".join(lines)

    def format_compact_info(self, result: CondaInfoCompact) -> str:
        if result.parse_error:
            return f"conda info failed: {result.parse_error}"
        return self._info_header(result)

    def format_env_list(self, result: CondaEnvList) -> str:
        if result.parse_error:
            return f"conda env list failed: {result.parse_error}"
        if result.total == 0:
            return "conda: no environments found."
        lines = [f"conda: {plural(result.total, 'environment')}:"]
        for env in result.environments:
            marker = "*" if env.active else " "
            lines.append(f"  {marker} {env.name} {env.path}")
        return "\n".join(lines)

    def format_compact_env_list(self, result: CondaEnvListCompact) -> str:
        if result.parse_error:
            return f"conda env list failed: {result.parse_error}"
        if result.total == 0:
            return "conda: no environments found."
        return f"conda: {plural(result.total, 'environment')}: {', '.join(result.names)}"

    def _mutation_summary(self, result) -> Optional[str]:
        if not result.success:
            return f"conda {result.action} failed."
        if result.total_added == 0 and result.total_removed == 0:
            return f"conda {result.action}: nothing to do."
        prefix = "(dry run) " if result.dry_run else ""
        return (
            f"conda {result.action}: {prefix}{result.total_added} added, "
            f"{result.total_removed} removed"
        )

    def _format_mutation(self, result: CondaMutation) -> str:
        lines = [self._mutation_summary(result)]
        if not result.success:
            detail = result.error or result.parse_error
            if detail:
                lines.append(f"  {detail}")
            return "\n".join(lines)
        lines.extend(f"  + {pkg.name}=={pkg.version}" for pkg in result.added)
        lines.extend(f"  - {pkg.name}=={pkg.version}" for pkg in result.removed)
        return "\n".join(lines)

    format_install = format_create = format_remove = format_update = _format_mutation

    def _format_mutation_compact(self, result: CondaMutationCompact) -> str:
        return self._mutation_summary(result)

    format_compact_install = format_compact_create = _format_mutation_compact
    format_compact_remove = format_compact_update = _format_mutation_compact
