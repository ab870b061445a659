# src/toolshape/core/registry.py
"""Process-wide parser registry and the handle() entry point."""

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..tools.base import ToolAdapter
from ..tools.biome import BiomeTool
from ..tools.black import BlackTool
from ..tools.cargo import CargoBuildTool
from ..tools.conda import CondaTool
from ..tools.docker import (
    DockerBuildTool,
    DockerComposeLogsTool,
    DockerComposePsTool,
    DockerLogsTool,
    DockerPsTool,
)
from ..tools.eslint import EslintTool
from ..tools.git import GitBranchTool, GitDiffTool, GitLogTool, GitStatusTool
from ..tools.go import GoBuildTool, GolangciLintTool, GoTestTool, GoVetTool
from ..tools.hadolint import HadolintTool
from ..tools.jest import JestTool
from ..tools.mypy import MypyTool
from ..tools.npm_audit import NpmAuditTool
from ..tools.oxlint import OxlintTool
from ..tools.pip import PipInstallTool, PipListTool, PipShowTool
from ..tools.pip_audit import PipAuditTool
from ..tools.poetry import PoetryTool
from ..tools.prettier import PrettierCheckTool
from ..tools.pyenv import PyenvTool
from ..tools.pytest_runner import PytestTool
from ..tools.ruff import RuffCheckTool, RuffFormatTool
from ..tools.shellcheck import ShellcheckTool
from ..tools.stylelint import StylelintTool
from ..tools.trivy import TrivyTool
from ..tools.tsc import TscTool
from ..tools.uv import UvInstallTool, UvRunTool
from .config import FORCE_FULL_SCHEMA
from .exceptions import UnknownToolError
from .types import HandledResult, RawCapture

logger = logging.getLogger(__name__)

ADAPTER_CLASSES: tuple[type[ToolAdapter], ...] = (
    # Python
    PytestTool,
    MypyTool,
    RuffCheckTool,
    RuffFormatTool,
    BlackTool,
    PipInstallTool,
    PipListTool,
    PipShowTool,
    PipAuditTool,
    UvInstallTool,
    UvRunTool,
    CondaTool,
    PyenvTool,
    PoetryTool,
    # Lint and format
    EslintTool,
    StylelintTool,
    BiomeTool,
    OxlintTool,
    ShellcheckTool,
    HadolintTool,
    PrettierCheckTool,
    # Git
    GitStatusTool,
    GitLogTool,
    GitDiffTool,
    GitBranchTool,
    # Go
    GoBuildTool,
    GoVetTool,
    GoTestTool,
    GolangciLintTool,
    # JavaScript / TypeScript
    JestTool,
    TscTool,
    NpmAuditTool,
    # Security
    TrivyTool,
    # Rust
    CargoBuildTool,
    # Containers
    DockerPsTool,
    DockerBuildTool,
    DockerLogsTool,
    DockerComposePsTool,
    DockerComposeLogsTool,
)


def _build_registry(
    classes: tuple[type[ToolAdapter], ...],
) -> Mapping[tuple[str, Optional[str]], ToolAdapter]:
    """Instantiate every adapter once and key it by (tool, action)."""
    entries: dict[tuple[str, Optional[str]], ToolAdapter] = {}
    for adapter_class in classes:
        adapter = adapter_class()
        for action in adapter.actions:
            key = (adapter.name, action)
            if key in entries:
                raise ValueError(
                    f"Duplicate parser for {adapter.name}"
                    f"{f' ({action})' if action else ''}: "
                    f"{entries[key].__class__.__name__} and {adapter_class.__name__}"
                )
            entries[key] = adapter
    logger.debug(f"Registered {len(entries)} parsers for {len(classes)} tools")
    return MappingProxyType(entries)


REGISTRY = _build_registry(ADAPTER_CLASSES)
_TOOLS: Mapping[str, ToolAdapter] = MappingProxyType(
    {adapter.name: adapter for adapter in REGISTRY.values()}
)


def get_adapter(tool: str, action: Optional[str] = None) -> ToolAdapter:
    """Look up the adapter for a tool/action pair, raising UnknownToolError if none matches."""
    adapter = REGISTRY.get((tool, action))
    if adapter is not None:
        return adapter
    adapter = _TOOLS.get(tool)
    if adapter is None:
        raise UnknownToolError(tool)
    # Multi-action tools need an explicit action; resolve_action raises otherwise.
    adapter.resolve_action(action)
    return adapter


def available_tools() -> list[str]:
    return sorted(_TOOLS)


def get_tool_info(tool: str) -> dict[str, Any]:
    adapter = _TOOLS.get(tool)
    if adapter is None:
        raise UnknownToolError(tool)
    return {
        "name": adapter.name,
        "description": adapter.description,
        "actions": [action for action in adapter.actions if action is not None],
        "exit_codes": dict(sorted(adapter.exit_codes.items())),
    }


def handle(
    tool: str,
    capture: RawCapture,
    compact: bool = False,
    action: Optional[str] = None,
    auto_compact: bool = False,
    force_full: bool = FORCE_FULL_SCHEMA,
) -> HandledResult:
    """
    Parse one capture for `tool` and return its structured payload and text.

    ContractViolation and SchemaViolation propagate; every other parse
    anomaly is reported inside the payload.
    """
    adapter = get_adapter(tool, action)
    logger.debug(f"Handling {tool}{f' {action}' if action else ''} (compact={compact})")
    return adapter.process(
        capture,
        action=action,
        compact=compact,
        auto_compact=auto_compact,
        force_full=force_full,
    )


def get_schema(tool: str, action: Optional[str] = None, compact: bool = False) -> Any:
    """
    Validation target for a tool's payloads.

    Without an action a multi-action tool returns its discriminated union, so
    the payload's own `action` tag selects the variant.
    """
    adapter = _TOOLS.get(tool)
    if adapter is None:
        raise UnknownToolError(tool)
    if action is None:
        return adapter.compact_schema if compact else adapter.schema
    canonical, compact_model = adapter.variants[adapter.resolve_action(action)]
    return compact_model if compact else canonical
