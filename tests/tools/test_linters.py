import json

import pytest

from toolshape.core.exceptions import ContractViolation
from toolshape.core.types import RawCapture
from toolshape.schemas.base import heavy_field_aliases
from toolshape.schemas.lint import LintResult, LintResultCompact
from toolshape.tools.biome import BiomeTool
from toolshape.tools.eslint import EslintTool
from toolshape.tools.hadolint import HadolintTool
from toolshape.tools.linting import level_to_severity
from toolshape.tools.oxlint import OxlintTool
from toolshape.tools.prettier import PrettierCheckTool
from toolshape.tools.shellcheck import ShellcheckTool
from toolshape.tools.stylelint import StylelintTool


def json_capture(data, exit_code=1):
    return RawCapture(stdout=json.dumps(data), stderr="", exit_code=exit_code)


def assert_lint_schema(payload):
    assert isinstance(payload, dict)
    assert isinstance(payload["success"], bool)
    assert payload["total"] == payload["errors"] + payload["warnings"] + payload["infos"]
    assert isinstance(payload["filesChecked"], int)


@pytest.mark.parametrize(
    "level,expected",
    [("error", "error"), ("FATAL", "error"), ("warning", "warning"), ("hint", "info"), ("style", "info"), (None, "warning")],
)
def test_level_to_severity(level, expected):
    assert level_to_severity(level) == expected


class TestEslint:
    """ESLint's JSON formatter is a strict contract."""

    REPORT = [
        {
            "filePath": "/src/app.js",
            "messages": [
                {"ruleId": "no-unused-vars", "severity": 2, "message": "'x' is defined but never used.", "line": 3, "column": 7},
                {"ruleId": "semi", "severity": 1, "message": "Missing semicolon.", "line": 5, "column": 12, "fix": {"range": [1, 1], "text": ";"}},
                {"ruleId": None, "severity": 2, "message": "Parsing error: Unexpected token", "line": 9, "column": 1},
            ],
            "fixableErrorCount": 0,
            "fixableWarningCount": 1,
        },
        {"filePath": "/src/util.js", "messages": [], "fixableErrorCount": 0, "fixableWarningCount": 0},
    ]

    def test_diagnostics(self):
        tool = EslintTool()
        result = tool.parse_output(json_capture(self.REPORT))
        assert_lint_schema(result.dump())
        assert result.success is False
        assert (result.errors, result.warnings) == (2, 1)
        assert result.fixable == 1
        assert result.files_checked == 2
        assert result.diagnostics[2].code == "unknown"
        assert result.diagnostics[1].fixable is True

        lines = tool.format(result).splitlines()
        assert lines[0] == "Lint: 2 errors, 1 warning (1 fixable)"
        assert lines[1] == "  /src/app.js:3:7 error no-unused-vars: 'x' is defined but never used."

    def test_clean(self):
        tool = EslintTool()
        report = [{"filePath": "/src/app.js", "messages": []}]
        result = tool.parse_output(json_capture(report, exit_code=0))
        assert result.success is True
        assert tool.format(result) == "Lint: no issues found (1 file checked)."

    def test_object_root_is_contract_violation(self):
        with pytest.raises(ContractViolation):
            EslintTool().parse_output(json_capture({"results": []}))

    def test_non_object_file_result_is_contract_violation(self):
        with pytest.raises(ContractViolation, match="file result #0"):
            EslintTool().parse_output(json_capture(["oops"]))

    def test_invalid_json_is_reported_in_payload(self):
        tool = EslintTool()
        result = tool.parse_output(RawCapture(stdout="Oops! Something went wrong!", stderr="", exit_code=2))
        assert result.success is False
        assert tool.format(result).startswith("eslint: Invalid JSON output")

    def test_compact(self):
        tool = EslintTool()
        compact = tool.compact(tool.parse_output(json_capture(self.REPORT)))
        assert not heavy_field_aliases(LintResult, LintResultCompact) & set(compact.dump())
        assert tool.format_compact(compact) == "Lint: 2 errors, 1 warning (1 fixable)"


class TestStylelint:
    def test_warnings_and_deduplicated_deprecations(self):
        deprecation = {"text": "'color-hex-case' has been deprecated.", "reference": "https://stylelint.io/migration"}
        report = [
            {
                "source": "/styles/a.css",
                "warnings": [
                    {"line": 2, "column": 3, "rule": "color-no-invalid-hex", "severity": "error", "text": "Unexpected invalid hex color"},
                ],
                "deprecations": [deprecation],
            },
            {"source": "/styles/b.css", "warnings": [], "deprecations": [deprecation]},
        ]
        tool = StylelintTool()
        result = tool.parse_output(json_capture(report, exit_code=2))
        assert_lint_schema(result.dump())
        assert result.errors == 1
        assert result.files_checked == 2
        assert result.deprecation_count == 1
        text = tool.format(result)
        assert "  /styles/a.css:2:3 error color-no-invalid-hex: Unexpected invalid hex color" in text
        assert text.endswith("  deprecated: 'color-hex-case' has been deprecated. (https://stylelint.io/migration)")

    def test_clean_with_deprecations(self):
        report = [{"source": "/a.css", "warnings": [], "deprecations": [{"text": "old rule"}]}]
        tool = StylelintTool()
        result = tool.parse_output(json_capture(report, exit_code=0))
        assert tool.format(result) == "Lint: no issues found (1 file checked). 1 deprecation."

    def test_unexpected_root_degrades(self):
        result = StylelintTool().parse_output(json_capture({"nope": True}))
        assert result.success is False
        assert result.error.startswith("Unexpected JSON shape")


class TestBiome:
    def test_both_position_shapes(self):
        report = {
            "diagnostics": [
                {
                    "category": "lint/suspicious/noDebugger",
                    "severity": "error",
                    "description": "This is an unexpected use of the debugger statement.",
                    "location": {"path": {"file": "src/a.ts"}, "start": {"line": 4, "column": 2}},
                },
                {
                    "category": "lint/style/useConst",
                    "severity": "warning",
                    "message": "This let declares a variable that is only assigned once.",
                    "location": {"path": "src/b.ts", "sourceCode": {"lineNumber": 8, "columnNumber": 1}},
                },
                {
                    "category": "lint/style/useConst",
                    "severity": "information",
                    "description": "Another one.",
                    "location": {"path": "src/b.ts"},
                },
            ]
        }
        tool = BiomeTool()
        result = tool.parse_output(json_capture(report))
        assert_lint_schema(result.dump())
        assert result.files_checked == 2
        assert [(d.file, d.line, d.column, d.severity) for d in result.diagnostics] == [
            ("src/a.ts", 4, 2, "error"),
            ("src/b.ts", 8, 1, "warning"),
            ("src/b.ts", 0, None, "info"),
        ]
        assert tool.format_compact(tool.compact(result)) == "Lint: 1 error, 1 warning, 1 info"


class TestOxlint:
    def test_line_delimited_objects(self):
        stdout = "\n".join(
            [
                json.dumps({"file": "a.js", "line": 1, "column": 5, "ruleId": "no-debugger", "severity": "deny", "message": "debugger statement"}),
                json.dumps({"file": "b.js", "line": 2, "severity": "warn", "message": "unused variable"}),
                json.dumps({"summary": True}),
                "Finished in 12ms on 2 files with 95 rules using 8 threads.",
                "{broken",
            ]
        )
        tool = OxlintTool()
        result = tool.parse_output(RawCapture(stdout=stdout, stderr="", exit_code=1))
        assert_lint_schema(result.dump())
        assert result.total == 2
        assert (result.errors, result.warnings) == (1, 1)
        assert result.diagnostics[1].code is None
        assert tool.format(result).splitlines()[1] == "  a.js:1:5 error no-debugger: debugger statement"


class TestShellcheck:
    def test_codes_are_prefixed(self):
        report = [
            {"file": "deploy.sh", "line": 3, "endLine": 3, "column": 6, "endColumn": 10, "level": "warning", "code": 2086, "message": "Double quote to prevent globbing and word splitting."},
            {"file": "deploy.sh", "line": 7, "column": 1, "level": "style", "code": 2006, "message": "Use $(...) notation instead of legacy backticks."},
        ]
        tool = ShellcheckTool()
        result = tool.parse_output(json_capture(report))
        assert [d.code for d in result.diagnostics] == ["SC2086", "SC2006"]
        assert (result.warnings, result.infos) == (1, 1)
        assert result.success is True
        assert result.files_checked == 1

    def test_empty_output(self):
        tool = ShellcheckTool()
        result = tool.parse_output(RawCapture(stdout="", stderr="", exit_code=0))
        assert tool.format(result) == "Lint: no issues found (0 files checked)."


class TestHadolint:
    def test_rules(self):
        report = [{"file": "Dockerfile", "line": 1, "column": 1, "code": "DL3006", "level": "warning", "message": "Always tag the version of an image explicitly"}]
        tool = HadolintTool()
        result = tool.parse_output(json_capture(report))
        assert result.warnings == 1
        assert tool.format(result).splitlines() == [
            "Lint: 0 errors, 1 warning",
            "  Dockerfile:1:1 warning DL3006: Always tag the version of an image explicitly",
        ]

    def test_unknown_exit_code_is_fatal(self):
        result = HadolintTool().parse_output(RawCapture(stdout="[]", stderr="", exit_code=2))
        assert result.success is False


class TestPrettierCheck:
    def test_unformatted_files(self):
        stderr = "Checking formatting...\n[warn] src/a.ts\n[warn] src/b.css\n[warn] src/a.ts\n[warn] Code style issues found in 2 files. Run Prettier with --write to fix.\n"
        tool = PrettierCheckTool()
        result = tool.parse_output(RawCapture(stdout="", stderr=stderr, exit_code=1))
        assert result.formatted is False
        assert result.files == ["src/a.ts", "src/b.css"]
        assert tool.format(result).splitlines() == [
            "2 files need formatting:",
            "  src/a.ts",
            "  src/b.css",
        ]
        assert tool.format_compact(tool.compact(result)) == "2 files need formatting."

    def test_single_file(self):
        tool = PrettierCheckTool()
        result = tool.parse_output(RawCapture(stdout="", stderr="[warn] index.js\n", exit_code=1))
        assert tool.format_compact(tool.compact(result)) == "1 file needs formatting."

    def test_all_formatted(self):
        tool = PrettierCheckTool()
        result = tool.parse_output(RawCapture(stdout="Checking formatting...\nAll matched files use Prettier code style!\n", stderr=""))
        assert result.success is True
        assert tool.format(result) == "All files are formatted."

    def test_failure_without_files(self):
        tool = PrettierCheckTool()
        result = tool.parse_output(RawCapture(stdout="", stderr="[error] No files matching the pattern were found", exit_code=2))
        assert tool.format(result) == "Formatting check failed."
