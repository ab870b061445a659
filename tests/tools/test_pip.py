import json

from toolshape.core.types import RawCapture
from toolshape.schemas.base import heavy_field_aliases
from toolshape.schemas.python import PipShowResult, PipShowResultCompact
from toolshape.tools.pip import PipInstallTool, PipListTool, PipShowTool, split_requirement


def test_split_requirement_keeps_dashed_names():
    pkg = split_requirement("charset-normalizer-3.3.2")
    assert (pkg.name, pkg.version) == ("charset-normalizer", "3.3.2")
    assert split_requirement("odd").version == ""


class TestPipInstall:
    """pip install reports."""

    def test_installed_packages(self):
        stdout = "Collecting flask\n  Downloading flask-3.0.0-py3-none-any.whl\nSuccessfully installed blinker-1.7.0 flask-3.0.0\n"
        tool = PipInstallTool()
        result = tool.parse_output(RawCapture(stdout=stdout, stderr=""))
        assert result.success is True
        assert result.total == 2
        assert tool.format(result).splitlines() == [
            "Installed 2 packages:",
            "  blinker==1.7.0",
            "  flask==3.0.0",
        ]
        assert tool.format_compact(tool.compact(result)) == "Installed 2 packages."

    def test_already_satisfied(self):
        stdout = "Requirement already satisfied: flask in ./venv/lib/python3.12/site-packages (3.0.0)\n"
        tool = PipInstallTool()
        result = tool.parse_output(RawCapture(stdout=stdout, stderr=""))
        assert result.already_satisfied is True
        assert tool.format(result) == "All requirements already satisfied."

    def test_failure_lists_errors(self):
        stderr = (
            "ERROR: Could not find a version that satisfies the requirement nope\n"
            "ERROR: No matching distribution found for nope\n"
        )
        tool = PipInstallTool()
        result = tool.parse_output(RawCapture(stdout="", stderr=stderr, exit_code=1))
        assert result.success is False
        assert tool.format(result).splitlines() == [
            "pip install failed.",
            "  Could not find a version that satisfies the requirement nope",
            "  No matching distribution found for nope",
        ]
        assert tool.format_compact(tool.compact(result)) == "pip install failed."

    def test_dry_run(self):
        stdout = "Would install flask-3.0.0\n"
        tool = PipInstallTool()
        result = tool.parse_output(RawCapture(stdout=stdout, stderr=""))
        assert result.dry_run is True
        assert tool.format(result).startswith("Would install 1 package:")


class TestPipList:
    def test_packages(self):
        stdout = json.dumps([{"name": "flask", "version": "3.0.0"}])
        tool = PipListTool()
        result = tool.parse_output(RawCapture(stdout=stdout, stderr=""))
        assert result.total == 1
        assert result.outdated is False
        assert tool.format(result) == "1 package:\n  flask==3.0.0"

    def test_outdated(self):
        stdout = json.dumps(
            [{"name": "flask", "version": "2.0.0", "latest_version": "3.0.0", "latest_filetype": "wheel"}]
        )
        tool = PipListTool()
        result = tool.parse_output(RawCapture(stdout=stdout, stderr=""))
        assert result.outdated is True
        assert tool.format(result) == "1 outdated package:\n  flask 2.0.0 -> 3.0.0"

    def test_empty(self):
        tool = PipListTool()
        result = tool.parse_output(RawCapture(stdout="", stderr=""))
        assert tool.format(result) == "No packages found."

    def test_invalid_json(self):
        result = PipListTool().parse_output(RawCapture(stdout="[{", stderr=""))
        assert result.success is False
        assert result.error.startswith("Invalid JSON output")


class TestPipShow:
    SHOW_OUTPUT = "\n".join(
        [
            "Name: requests",
            "Version: 2.31.0",
            "Summary: Python HTTP for Humans.",
            "Home-page: https://requests.readthedocs.io",
            "Author: Kenneth Reitz",
            "License: Apache 2.0",
            "Location: /venv/lib/python3.12/site-packages",
            "Requires: certifi, charset-normalizer, idna, urllib3",
            "Required-by: ",
        ]
    )

    def test_metadata_block(self):
        tool = PipShowTool()
        result = tool.parse_output(RawCapture(stdout=self.SHOW_OUTPUT, stderr=""))
        assert result.name == "requests"
        assert result.requires == ["certifi", "charset-normalizer", "idna", "urllib3"]
        assert result.required_by is None
        lines = tool.format(result).splitlines()
        assert lines[0] == "requests==2.31.0: Python HTTP for Humans."
        assert "  Requires: certifi, charset-normalizer, idna, urllib3" in lines

    def test_compact_drops_requirements(self):
        tool = PipShowTool()
        compact = tool.compact(tool.parse_output(RawCapture(stdout=self.SHOW_OUTPUT, stderr="")))
        assert not heavy_field_aliases(PipShowResult, PipShowResultCompact) & set(compact.dump())
        assert tool.format_compact(compact) == "requests==2.31.0: Python HTTP for Humans."

    def test_not_found(self):
        capture = RawCapture(stdout="", stderr="WARNING: Package(s) not found: nope", exit_code=1)
        tool = PipShowTool()
        result = tool.parse_output(capture)
        assert result.success is False
        assert result.error == "WARNING: Package(s) not found: nope"
        assert result.dump() == {
            "success": False,
            "requires": [],
            "error": "WARNING: Package(s) not found: nope",
        }
        assert tool.format(result).splitlines() == [
            "pip show: package not found.",
            "  WARNING: Package(s) not found: nope",
        ]
        assert tool.format_compact(tool.compact(result)) == "pip show: package not found."
