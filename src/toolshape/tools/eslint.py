# src/toolshape/tools/eslint.py
"""ESLint JSON formatter parser."""

import logging
from typing import Optional

from ..core.exceptions import ContractViolation
from ..core.textutil import to_int
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.lint import LintResult
from .linting import LintAdapter

logger = logging.getLogger(__name__)

SEVERITIES = {2: "error", 1: "warning"}


class EslintTool(LintAdapter):
    """Parses `eslint --format json`."""

    name = "eslint"
    description = "Lint JavaScript and TypeScript with ESLint"

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> LintResult:
        data, error = self.load_json(capture)
        if error:
            return self.empty_result(capture, error=error)
        if data is None:
            return self.empty_result(capture)

        # The JSON formatter always emits one entry per linted file.
        if not isinstance(data, list):
            logger.error(f"eslint JSON root is {type(data).__name__}, expected array")
            raise ContractViolation(self.name, f"expected a JSON array, got {type(data).__name__}")

        diagnostics = []
        fixable = 0
        for index, file_result in enumerate(data):
            if not isinstance(file_result, dict):
                raise ContractViolation(self.name, f"file result #{index} is not an object")
            path = str(file_result.get("filePath", ""))
            fixable += to_int(file_result.get("fixableErrorCount"))
            fixable += to_int(file_result.get("fixableWarningCount"))
            for message in file_result.get("messages") or []:
                if not isinstance(message, dict):
                    continue
                diagnostics.append(
                    Diagnostic(
                        file=path,
                        line=to_int(message.get("line")),
                        column=to_int(message.get("column")) or None,
                        end_line=to_int(message.get("endLine")) or None,
                        end_column=to_int(message.get("endColumn")) or None,
                        code=message.get("ruleId") or "unknown",
                        severity=SEVERITIES.get(to_int(message.get("severity")), "warning"),
                        message=str(message.get("message", "")),
                        fixable=True if message.get("fix") else None,
                    )
                )

        return self.build_result(capture, diagnostics, files_checked=len(data), fixable=fixable)
