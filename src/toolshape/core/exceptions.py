# src/toolshape/core/exceptions.py
"""Custom exception hierarchy for toolshape."""

from typing import Any, Optional


class ToolShapeError(Exception):
    """Base exception for all toolshape errors."""
    pass


class ConfigurationError(ToolShapeError):
    """Raised when there's a configuration issue."""
    pass


class UnknownToolError(ToolShapeError):
    """Raised when no parser is registered for a tool/action pair."""

    def __init__(self, tool: str, action: Optional[str] = None):
        self.tool = tool
        self.action = action
        label = f"{tool} ({action})" if action else tool
        super().__init__(f"No parser registered for {label}")


class ContractViolation(ToolShapeError):
    """Raised when a machine-readable output format breaks its structural guarantee."""

    def __init__(self, tool: str, detail: str):
        self.tool = tool
        self.detail = detail
        super().__init__(f"{tool}: {detail}")


class SchemaViolation(ToolShapeError):
    """Raised when a result payload does not match its declared schema."""

    def __init__(self, model: str, errors: list[dict[str, Any]]):
        self.model = model
        self.errors = errors
        locations = ", ".join(
            ".".join(str(part) for part in err.get("loc", ())) or "<root>"
            for err in errors
        )
        super().__init__(f"{model} failed validation at: {locations}")
