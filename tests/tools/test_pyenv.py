from toolshape.core.types import RawCapture
from toolshape.tools.pyenv import PyenvTool

VERSIONS_OUTPUT = "  system\n* 3.12.0 (set by /home/dev/.pyenv/version)\n  3.11.4\n"


def test_pyenv_versions():
    tool = PyenvTool()
    result = tool.parse_output(RawCapture(stdout=VERSIONS_OUTPUT, stderr=""), "versions")
    assert result.total == 3
    assert result.current == "3.12.0"
    assert result.versions[1].origin == "/home/dev/.pyenv/version"
    assert tool.format(result).splitlines() == [
        "3 versions installed:",
        "  system",
        "  3.12.0 *",
        "  3.11.4",
    ]
    compact = tool.compact(result)
    assert tool.format_compact(compact) == "3 versions installed (current: 3.12.0): system, 3.12.0, 3.11.4"


def test_pyenv_version():
    tool = PyenvTool()
    result = tool.parse_output(RawCapture(stdout="3.12.0 (set by PYENV_VERSION environment variable)\n", stderr=""), "version")
    assert result.version == "3.12.0"
    assert result.origin == "PYENV_VERSION environment variable"
    assert tool.format(result) == "pyenv: current version is 3.12.0"


def test_pyenv_install_list_skips_header():
    tool = PyenvTool()
    result = tool.parse_output(RawCapture(stdout="Available versions:\n  2.1.3\n  3.12.0\n", stderr=""), "install-list")
    assert result.available_versions == ["2.1.3", "3.12.0"]
    assert tool.format_compact(tool.compact(result)) == "2 versions available."


def test_pyenv_install():
    stderr = "Downloading Python-3.12.1.tar.xz...\nInstalled Python-3.12.1 to /home/dev/.pyenv/versions/3.12.1\n"
    tool = PyenvTool()
    result = tool.parse_output(RawCapture(stdout="", stderr=stderr), "install")
    assert result.installed == "3.12.1"
    assert result.path == "/home/dev/.pyenv/versions/3.12.1"
    assert tool.format(result) == "pyenv: installed Python 3.12.1"


def test_pyenv_which_failure():
    capture = RawCapture(stdout="", stderr="pyenv: black: command not found\n", exit_code=127)
    tool = PyenvTool()
    result = tool.parse_output(capture, "which")
    assert result.success is False
    assert tool.format(result) == "pyenv which failed: pyenv: black: command not found"


def test_pyenv_rehash():
    tool = PyenvTool()
    assert tool.format(tool.parse_output(RawCapture(stdout="", stderr=""), "rehash")) == "pyenv: shims rehashed."
