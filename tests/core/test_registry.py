# tests/core/test_registry.py
"""Tests for the process-wide parser registry."""

import pytest

from toolshape.core.exceptions import UnknownToolError
from toolshape.core.registry import (
    ADAPTER_CLASSES,
    REGISTRY,
    _build_registry,
    available_tools,
    get_adapter,
    get_schema,
    get_tool_info,
)
from toolshape.schemas.envs import CondaList, CondaResult
from toolshape.tools.pytest_runner import PytestTool
from toolshape.tools.ruff import RuffCheckTool


class TestRegistry:
    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            REGISTRY[("new-tool", None)] = None

    def test_keys_are_tool_action_pairs(self):
        assert ("ruff-check", None) in REGISTRY
        assert ("conda", "list") in REGISTRY
        assert ("conda", "env-list") in REGISTRY
        assert ("conda", None) not in REGISTRY

    def test_every_adapter_registered(self):
        names = available_tools()
        assert len(names) == len(ADAPTER_CLASSES)
        for expected in ("pytest", "mypy", "eslint", "git-status", "go-test", "trivy", "cargo-build"):
            assert expected in names
        assert names == sorted(names)

    def test_duplicate_registration_rejected(self):
        with pytest.raises(ValueError, match="Duplicate parser"):
            _build_registry((PytestTool, PytestTool))

    def test_single_instance_per_tool(self):
        assert REGISTRY[("conda", "list")] is REGISTRY[("conda", "info")]


class TestLookup:
    def test_single_action_tool(self):
        assert isinstance(get_adapter("ruff-check"), RuffCheckTool)

    def test_unknown_tool(self):
        with pytest.raises(UnknownToolError, match="No parser registered for nope"):
            get_adapter("nope")

    def test_multi_action_tool_requires_action(self):
        with pytest.raises(UnknownToolError):
            get_adapter("conda")

    def test_unknown_action(self):
        with pytest.raises(UnknownToolError) as exc_info:
            get_adapter("conda", "explode")
        assert exc_info.value.action == "explode"

    def test_action_on_single_action_tool_rejected(self):
        with pytest.raises(UnknownToolError):
            get_adapter("ruff-check", "list")

    def test_tool_info(self):
        info = get_tool_info("pyenv")
        assert info["name"] == "pyenv"
        assert "install-list" in info["actions"]
        assert get_tool_info("mypy")["actions"] == []

    def test_schema_lookup(self):
        assert get_schema("conda") is CondaResult
        assert get_schema("conda", "list") is CondaList
        compact = get_schema("conda", "list", compact=True)
        assert compact.__name__ == "CondaListCompact"
