# src/toolshape/tools/cargo.py
"""cargo build --message-format=json parser."""

import json
import logging
from typing import Any, Optional

from ..core.textutil import clean_lines, to_int
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.build import CompileResult
from .base import CLEAN, ISSUES
from .compiling import CompileAdapter

logger = logging.getLogger(__name__)

LEVELS = {"error": "error", "warning": "warning", "note": "info", "help": "info"}


def _primary_span(message: dict[str, Any]) -> Optional[dict[str, Any]]:
    spans = [span for span in message.get("spans") or [] if isinstance(span, dict)]
    for span in spans:
        if span.get("is_primary"):
            return span
    return spans[0] if spans else None


class CargoBuildTool(CompileAdapter):
    """Collects rustc diagnostics from cargo's compiler-message records."""

    name = "cargo-build"
    description = "Compile Rust crates with cargo"
    label = "cargo build"
    exit_codes = {0: CLEAN, 101: ISSUES}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> CompileResult:
        diagnostics = []
        seen = set()
        build_success = None
        for line in clean_lines(capture.stdout):
            line = line.strip()
            if not line.startswith("{"):
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(record, dict):
                continue
            reason = record.get("reason")
            if reason == "build-finished":
                build_success = bool(record.get("success"))
                continue
            if reason != "compiler-message" or not isinstance(record.get("message"), dict):
                continue

            message = record["message"]
            span = _primary_span(message)
            # Span-less messages are summaries such as "aborting due to 2 previous errors".
            if span is None:
                continue
            code = message.get("code") if isinstance(message.get("code"), dict) else {}
            diagnostic = Diagnostic(
                file=str(span.get("file_name", "")),
                line=to_int(span.get("line_start")),
                column=to_int(span.get("column_start")) or None,
                end_line=to_int(span.get("line_end")) or None,
                end_column=to_int(span.get("column_end")) or None,
                code=code.get("code") or None,
                severity=LEVELS.get(str(message.get("level", "")), "warning"),
                message=str(message.get("message", "")),
            )
            # A crate built for several targets repeats the same diagnostic.
            key = (diagnostic.file, diagnostic.line, diagnostic.column, diagnostic.code, diagnostic.message)
            if key in seen:
                continue
            seen.add(key)
            diagnostics.append(diagnostic)

        errors = sum(1 for d in diagnostics if d.severity == "error")
        success = self.exit_success(capture.exit_code) and errors == 0
        if build_success is not None:
            success = success and build_success
        return self.build_result(capture, diagnostics, success=success)
