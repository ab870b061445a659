import json
import logging
import os
from datetime import datetime, timezone

from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from .exceptions import ConfigurationError

console = Console()
load_dotenv()

TRUNCATION_MARKER = "…"


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < 1:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _bool_from_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# --- Output budgets ---
MAX_OUTPUT_CHARS = _int_from_env("TOOLSHAPE_MAX_OUTPUT_CHARS", 50000)
RAW_PREVIEW_CHARS = _int_from_env("TOOLSHAPE_RAW_PREVIEW_CHARS", 500)

# --- Compaction ---
FORCE_FULL_SCHEMA = _bool_from_env("TOOLSHAPE_FORCE_FULL")

# --- Logging ---
LOG_LEVEL = os.getenv("TOOLSHAPE_LOG_LEVEL", "WARNING").upper()


class JSONFormatter(logging.Formatter):
    """Formats log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("tool", "action", "compact"):
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: str | None = None, json_logs: bool = False) -> logging.Logger:
    """
    Attach a single handler to the package logger.

    Rich output goes to stderr so that payloads printed on stdout stay clean.
    Calling this again replaces the previous handler.
    """
    level_name = (level or LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, None)
    if not isinstance(numeric_level, int):
        raise ConfigurationError(f"Unknown log level: {level_name}")

    package_logger = logging.getLogger("toolshape")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    if json_logs:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
    else:
        handler = RichHandler(
            console=Console(stderr=True), show_path=False, rich_tracebacks=True
        )
    package_logger.addHandler(handler)
    package_logger.setLevel(numeric_level)
    package_logger.propagate = False
    return package_logger
