"""
Shared types for toolshape captures and handled results.

RawCapture: the (stdout, stderr, exitCode) triple handed over by the process layer.
HandledResult: what the pipeline returns to the protocol layer.
"""

from dataclasses import dataclass
from typing import Any, TypedDict


@dataclass(frozen=True)
class RawCapture:
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    truncated: bool = False
    # Wall-clock seconds measured by the process layer, when it measured them.
    duration: float = 0.0

    @property
    def combined(self) -> str:
        return f"{self.stdout}\n{self.stderr}"


class HandledResult(TypedDict):
    tool: str
    action: str | None
    structured: dict[str, Any]
    text: str
    compact: bool
