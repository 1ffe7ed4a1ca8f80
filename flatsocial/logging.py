"""Loguru configuration for flatsocial.

Console output goes to stderr so command output on stdout stays clean. In
JSON mode every record becomes one JSON object carrying the active command
context (``command``, ``user_id``) and any ``logger.bind()`` extras. A rotated
log file under the data directory is added when ``log_to_file`` is set.

Example:
    >>> from flatsocial.logging import log_context, logger
    >>> with log_context(command="post", user_id="3"):
    ...     logger.info("Posting")
"""

import json
import sys
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from loguru import logger as loguru_logger

from flatsocial.config import settings

# =============================================================================
# Command Context
# =============================================================================

command_var: ContextVar[str | None] = ContextVar("command", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)

HUMAN_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[command]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time} | {level} | {extra[command]} | {name}:{line} | {message}"


# =============================================================================
# Record Patching
# =============================================================================


def to_json(record: dict[str, Any]) -> str:
    """Render one record as a compact JSON object.

    Args:
        record: Loguru log record dictionary

    Returns:
        JSON string
    """
    payload: dict[str, Any] = {
        "time": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
        "message": record["message"],
    }
    payload.update({k: v for k, v in record["extra"].items() if k != "json" and v is not None})

    if exc := record["exception"]:
        payload["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value),
            "traceback": traceback.format_exception(exc.type, exc.value, exc.traceback),
        }

    return json.dumps(payload, default=str)


def add_context(record: dict[str, Any]) -> None:
    """Copy the command context into ``extra`` and pre-render the JSON line."""
    record["extra"].setdefault("command", command_var.get() or "-")
    if user_id := user_id_var.get():
        record["extra"].setdefault("user_id", user_id)
    record["extra"]["json"] = to_json(record)


def json_format(record: dict[str, Any]) -> str:
    return "{extra[json]}\n"


# =============================================================================
# Logger Configuration
# =============================================================================


def setup_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: Path | None = None,
    colorize: bool = True,
) -> Any:
    """Replace every loguru sink with the flatsocial ones.

    Args:
        level: Minimum level for all sinks
        json_logs: Emit JSON lines instead of the human format
        log_file: Rotated log file to add, if any
        colorize: Colour the human-readable console output

    Returns:
        The configured logger
    """
    loguru_logger.remove()
    loguru_logger.configure(patcher=add_context)

    console_format = json_format if json_logs else HUMAN_FORMAT
    loguru_logger.add(
        sys.stderr,
        level=level,
        format=console_format,
        colorize=colorize and not json_logs,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        loguru_logger.add(
            log_file,
            level=level,
            format=json_format if json_logs else FILE_FORMAT,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            enqueue=True,
        )

    return loguru_logger


logger = setup_logging(
    level=settings.log_level,
    json_logs=settings.log_json,
    log_file=settings.log_file if settings.log_to_file else None,
    colorize=not settings.log_json,
)


# =============================================================================
# Context Helpers
# =============================================================================


def set_log_context(command: str | None = None, user_id: str | None = None) -> None:
    """Attach a command name and acting user to subsequent log records."""
    if command is not None:
        command_var.set(command)
    if user_id is not None:
        user_id_var.set(user_id)


def clear_log_context() -> None:
    command_var.set(None)
    user_id_var.set(None)


def get_log_context() -> dict[str, str | None]:
    return {"command": command_var.get(), "user_id": user_id_var.get()}


@contextmanager
def log_context(command: str | None = None, user_id: str | None = None) -> Iterator[None]:
    """Scope a command context to a block, restoring the previous one after."""
    tokens = []
    if command is not None:
        tokens.append((command_var, command_var.set(command)))
    if user_id is not None:
        tokens.append((user_id_var, user_id_var.set(user_id)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


__all__ = [
    "logger",
    "command_var",
    "user_id_var",
    "setup_logging",
    "set_log_context",
    "clear_log_context",
    "get_log_context",
    "log_context",
    "to_json",
]
