# src/toolshape/tools/tsc.py
"""TypeScript compiler output parser."""

import logging
import re
from typing import Optional

from ..core.textutil import clean_lines, to_int
from ..core.types import RawCapture
from ..schemas.base import Diagnostic
from ..schemas.build import CompileResult
from .base import CLEAN, ISSUES
from .compiling import CompileAdapter

logger = logging.getLogger(__name__)

# src/app.ts(12,5): error TS2322: Type 'string' is not assignable to type 'number'.
TSC_DIAGNOSTIC_RE = re.compile(r"^(.+?)\((\d+),(\d+)\):\s+(error|warning)\s+TS(\d+):\s+(.+)$")
# error TS5023: Unknown compiler option 'foo'.
TSC_GLOBAL_RE = re.compile(r"^(error|warning)\s+TS(\d+):\s+(.+)$")


class TscTool(CompileAdapter):
    """Parses `tsc --noEmit --pretty false` diagnostics."""

    name = "tsc"
    description = "Type-check TypeScript with tsc"
    # 1: diagnostics, outputs skipped; 2: diagnostics, outputs generated.
    exit_codes = {0: CLEAN, 1: ISSUES, 2: ISSUES}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> CompileResult:
        diagnostics = []
        for line in clean_lines(capture.combined):
            line = line.strip()
            match = TSC_DIAGNOSTIC_RE.match(line)
            if match:
                diagnostics.append(
                    Diagnostic(
                        file=match.group(1),
                        line=to_int(match.group(2)),
                        column=to_int(match.group(3)),
                        severity=match.group(4),
                        code=f"TS{match.group(5)}",
                        message=match.group(6),
                    )
                )
                continue
            match = TSC_GLOBAL_RE.match(line)
            if match:
                diagnostics.append(
                    Diagnostic(
                        file="",
                        line=0,
                        severity=match.group(1),
                        code=f"TS{match.group(2)}",
                        message=match.group(3),
                    )
                )
        return self.build_result(capture, diagnostics)
