import json

import pytest

from toolshape.core.exceptions import ContractViolation
from toolshape.core.types import RawCapture
from toolshape.schemas.base import heavy_field_aliases
from toolshape.schemas.python import RuffResult, RuffResultCompact
from toolshape.tools.ruff import RuffCheckTool, RuffFormatTool


@pytest.fixture
def unused_import_capture():
    entry = {
        "code": "F401",
        "filename": "a.py",
        "location": {"row": 1, "column": 1},
        "end_location": {"row": 1, "column": 10},
        "message": "'os' imported but unused",
        "fix": {"applicability": "safe", "edits": []},
    }
    return RawCapture(stdout=json.dumps([entry]), stderr="", exit_code=1)


def assert_ruff_schema(payload):
    assert isinstance(payload, dict)
    assert isinstance(payload["success"], bool)
    assert isinstance(payload["total"], int)
    assert isinstance(payload["fixable"], int)


def test_ruff_single_fixable_diagnostic(unused_import_capture):
    tool = RuffCheckTool()
    result = tool.parse_output(unused_import_capture)
    assert_ruff_schema(result.dump())
    assert result.success is False
    assert result.total == 1
    assert result.fixable == 1
    diag = result.diagnostics[0]
    assert (diag.file, diag.line, diag.column, diag.code) == ("a.py", 1, 1, "F401")
    assert diag.end_column == 10
    assert diag.fixable is True

    text = tool.format(result)
    assert "a.py:1:1 F401: 'os' imported but unused" in text
    assert text.splitlines()[0] == "ruff: 1 issue (1 fixable)"


def test_ruff_clean_run():
    tool = RuffCheckTool()
    result = tool.parse_output(RawCapture(stdout="[]", stderr="", exit_code=0))
    assert result.success is True
    assert result.total == 0
    assert tool.format(result) == "ruff: no issues found."


def test_ruff_fixed_count_from_stderr():
    capture = RawCapture(stdout="[]", stderr="Found 3 errors (3 fixed, 0 remaining).", exit_code=0)
    tool = RuffCheckTool()
    result = tool.parse_output(capture)
    assert result.fixed_count == 3
    assert tool.format(result) == "ruff: no issues remaining (3 fixed)."


def test_ruff_invalid_json_degrades():
    capture = RawCapture(stdout="not json at all", stderr="", exit_code=2)
    tool = RuffCheckTool()
    result = tool.parse_output(capture)
    assert result.success is False
    assert result.error.startswith("Invalid JSON output")
    assert result.raw_output == "not json at all"
    assert tool.format(result).startswith("ruff: Invalid JSON output")


def test_ruff_non_array_root_is_contract_violation():
    capture = RawCapture(stdout='{"diagnostics": []}', stderr="", exit_code=1)
    with pytest.raises(ContractViolation) as exc_info:
        RuffCheckTool().parse_output(capture)
    assert exc_info.value.tool == "ruff-check"


def test_ruff_compact_drops_diagnostics(unused_import_capture):
    tool = RuffCheckTool()
    compact = tool.compact(tool.parse_output(unused_import_capture))
    payload = compact.dump()
    assert not heavy_field_aliases(RuffResult, RuffResultCompact) & set(payload)
    assert payload["total"] == 1
    assert tool.format_compact(compact) == "ruff: 1 issue (1 fixable)"


def test_ruff_parse_is_deterministic(unused_import_capture):
    tool = RuffCheckTool()
    first = tool.process(unused_import_capture)
    second = tool.process(unused_import_capture)
    assert first == second


def test_ruff_format_check_mode():
    stderr = "Would reformat: src/app.py\nWould reformat: src/util.py\n2 files would be reformatted, 8 files already formatted\n"
    tool = RuffFormatTool()
    result = tool.parse_output(RawCapture(stdout="", stderr=stderr, exit_code=1))
    assert result.check_mode is True
    assert result.files_changed == 2
    assert result.files_unchanged == 8
    assert result.files == ["src/app.py", "src/util.py"]
    assert tool.format(result).splitlines() == [
        "ruff format: 2 files would be reformatted, 8 unchanged",
        "  src/app.py",
        "  src/util.py",
    ]


def test_ruff_format_nothing_to_do():
    tool = RuffFormatTool()
    result = tool.parse_output(RawCapture(stdout="1 file left unchanged\n", stderr=""))
    assert tool.format(result) == "ruff format: 1 file already formatted."
    empty = tool.parse_output(RawCapture(stdout="", stderr=""))
    assert tool.format(empty) == "ruff format: no files found."
