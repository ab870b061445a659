import json

from toolshape.core.types import RawCapture
from toolshape.tools.cargo import CargoBuildTool


def compiler_message(level, text, code=None, file_name="src/main.rs", line=4, column=9, primary=True):
    return {
        "reason": "compiler-message",
        "package_id": "demo 0.1.0",
        "message": {
            "level": level,
            "message": text,
            "code": {"code": code, "explanation": None} if code else None,
            "spans": [
                {
                    "file_name": file_name,
                    "line_start": line,
                    "line_end": line,
                    "column_start": column,
                    "column_end": column + 3,
                    "is_primary": primary,
                }
            ],
        },
    }


def cargo_capture(records, exit_code):
    stdout = "\n".join(json.dumps(record) for record in records)
    return RawCapture(stdout=stdout, stderr="   Compiling demo v0.1.0", exit_code=exit_code)


def test_cargo_errors_and_warnings():
    unused = compiler_message("warning", "unused variable: `x`", code="unused_variables")
    records = [
        {"reason": "compiler-artifact", "package_id": "dep 1.0.0"},
        unused,
        unused,
        compiler_message("error", "mismatched types", code="E0308", line=7, column=18),
        {"reason": "compiler-message", "message": {"level": "error", "message": "aborting due to 1 previous error", "spans": []}},
        {"reason": "build-finished", "success": False},
    ]
    tool = CargoBuildTool()
    result = tool.parse_output(cargo_capture(records, exit_code=101))
    assert result.success is False
    assert (result.total, result.errors, result.warnings) == (2, 1, 1)
    assert result.diagnostics[1].code == "E0308"
    assert result.diagnostics[1].end_column == 21

    lines = tool.format(result).splitlines()
    assert lines[0] == "cargo build: 1 error, 1 warning"
    assert lines[2] == "  src/main.rs:7:18 error E0308: mismatched types"


def test_cargo_notes_are_info():
    records = [compiler_message("note", "see also"), {"reason": "build-finished", "success": True}]
    result = CargoBuildTool().parse_output(cargo_capture(records, exit_code=0))
    assert result.success is True
    assert result.diagnostics[0].severity == "info"


def test_cargo_clean_build():
    tool = CargoBuildTool()
    result = tool.parse_output(cargo_capture([{"reason": "build-finished", "success": True}], exit_code=0))
    assert tool.format(result) == "cargo build: no errors."
