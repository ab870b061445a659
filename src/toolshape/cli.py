# src/toolshape/cli.py
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from toolshape.core.config import FORCE_FULL_SCHEMA, MAX_OUTPUT_CHARS, configure_logging
from toolshape.core.exceptions import (
    ConfigurationError,
    ContractViolation,
    SchemaViolation,
    UnknownToolError,
)
from toolshape.core.registry import available_tools, get_schema, get_tool_info, handle
from toolshape.core.textutil import truncate_capture
from toolshape.core.types import RawCapture
from toolshape.core.validation import validate_payload

app = typer.Typer(
    name="toolshape",
    help="Turn captured developer-tool output into structured, compact payloads.",
    add_completion=False,
    no_args_is_help=True,
)

cli_console = Console()
err_console = Console(stderr=True)
module_logger = logging.getLogger("toolshape.cli")


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (defaults to TOOLSHAPE_LOG_LEVEL or WARNING)."
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines."),
):
    """
    toolshape: parse, compact and render developer tool output.
    """
    try:
        configure_logging(log_level, json_logs=json_logs)
    except ConfigurationError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level")
    module_logger.debug("Main CLI callback invoked.")


def _read_text(path: Optional[Path]) -> str:
    if path is None:
        return ""
    if str(path) == "-":
        return sys.stdin.read()
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    return path.read_text(encoding="utf-8", errors="replace")


def _load_capture_file(path: Path) -> RawCapture:
    """Read a capture saved as YAML or JSON with stdout/stderr/exitCode keys."""
    if not path.exists():
        raise typer.BadParameter(f"Capture file not found: {path}", param_hint="--capture")
    text = path.read_text(encoding="utf-8", errors="replace")
    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise typer.BadParameter(f"Could not read capture {path}: {e}", param_hint="--capture")
    if not isinstance(data, dict):
        raise typer.BadParameter(f"Capture {path} must be a mapping", param_hint="--capture")

    exit_code = data.get("exitCode", data.get("exit_code", 0))
    try:
        return RawCapture(
            stdout=str(data.get("stdout") or ""),
            stderr=str(data.get("stderr") or ""),
            exit_code=int(exit_code),
            truncated=bool(data.get("truncated", False)),
            duration=float(data.get("duration") or 0.0),
        )
    except (TypeError, ValueError) as e:
        raise typer.BadParameter(f"Invalid capture field in {path}: {e}", param_hint="--capture")


def _fail(message: str, error: Exception) -> None:
    err_console.print(f"[bold red]{message}:[/bold red] {error}")
    module_logger.debug(f"{message}: {error!r}")
    raise typer.Exit(code=1)


@app.command()
def tools():
    """
    List every registered tool with its actions.
    """
    table = Table(title="Registered tools")
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Actions", style="magenta")
    table.add_column("Description")
    for name in available_tools():
        info = get_tool_info(name)
        table.add_row(name, ", ".join(info["actions"]) or "-", info["description"])
    cli_console.print(table)


@app.command()
def parse(
    tool: str = typer.Argument(..., help="Tool id, e.g. ruff-check or conda."),
    action: Optional[str] = typer.Option(None, "--action", "-a", help="Action for multi-action tools."),
    stdout_file: Optional[Path] = typer.Option(
        None, "--stdout", help="File holding the captured stdout ('-' reads stdin)."
    ),
    stderr_file: Optional[Path] = typer.Option(None, "--stderr", help="File holding the captured stderr."),
    exit_code: int = typer.Option(0, "--exit-code", "-e", help="Exit code of the captured run."),
    capture_file: Optional[Path] = typer.Option(
        None, "--capture", "-c", help="YAML or JSON capture with stdout, stderr and exitCode."
    ),
    compact: bool = typer.Option(False, "--compact", help="Always return the compact form."),
    auto_compact: bool = typer.Option(
        False, "--auto-compact", help="Return the compact form when the full payload is not smaller than stdout."
    ),
    force_full: bool = typer.Option(FORCE_FULL_SCHEMA, "--force-full", help="Never compact."),
    max_chars: int = typer.Option(
        MAX_OUTPUT_CHARS, "--max-chars", min=1, help="Character budget applied to each stream."
    ),
    text: bool = typer.Option(False, "--text/--json", help="Print the text rendering instead of JSON."),
):
    """
    Parse a captured tool run and print its structured payload.
    """
    if capture_file is not None:
        capture = _load_capture_file(capture_file)
    else:
        capture = RawCapture(
            stdout=_read_text(stdout_file),
            stderr=_read_text(stderr_file),
            exit_code=exit_code,
        )
    capture = truncate_capture(capture, max_chars)

    try:
        result = handle(
            tool,
            capture,
            compact=compact,
            action=action,
            auto_compact=auto_compact,
            force_full=force_full,
        )
    except UnknownToolError as e:
        _fail("Unknown tool", e)
    except ContractViolation as e:
        _fail("Output contract violated", e)
    except SchemaViolation as e:
        _fail("Schema violation", e)

    if text:
        cli_console.print(result["text"], markup=False, emoji=False, highlight=False, soft_wrap=True)
    else:
        cli_console.print_json(data=result["structured"])


@app.command()
def validate(
    tool: str = typer.Argument(..., help="Tool id whose schema to validate against."),
    payload_file: Path = typer.Argument(..., help="JSON payload to validate."),
    action: Optional[str] = typer.Option(None, "--action", "-a", help="Validate against one action variant."),
    compact: bool = typer.Option(False, "--compact", help="Validate against the compact schema."),
):
    """
    Check a JSON payload against a tool's canonical or compact schema.
    """
    text = _read_text(payload_file)
    try:
        payload: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"{payload_file} is not valid JSON: {e}")

    try:
        schema = get_schema(tool, action=action, compact=compact)
        validate_payload(schema, payload)
    except UnknownToolError as e:
        _fail("Unknown tool", e)
    except SchemaViolation as e:
        table = Table(title=f"{e.model}: {len(e.errors)} violation(s)")
        table.add_column("Location", style="cyan")
        table.add_column("Type", style="magenta")
        table.add_column("Message")
        for err in e.errors:
            table.add_row(".".join(str(part) for part in err["loc"]) or "<root>", err["type"], err["msg"])
        err_console.print(table)
        raise typer.Exit(code=1)

    form = "compact" if compact else "canonical"
    cli_console.print(
        Panel.fit(
            f"[bold green]Valid[/bold green] {form} payload for [cyan]{tool}[/cyan]"
            + (f" ({action})" if action else ""),
            border_style="green",
        )
    )


if __name__ == "__main__":
    app()
