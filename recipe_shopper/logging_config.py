"""Logging configuration for the recipe-shopper command line."""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

# Plan being built, attached to every record emitted meanwhile
plan_id_ctx: ContextVar[str | None] = ContextVar("plan_id", default=None)


class StructuredJsonFormatter(logging.Formatter):
    """JSON formatter, one object per line, for piping into log tooling."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if plan_id := plan_id_ctx.get():
            log_data["plan_id"] = plan_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data["location"] = {
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }

        return json.dumps(log_data, ensure_ascii=False)


class ContextualFormatter(logging.Formatter):
    """Human-readable formatter with the current plan as context."""

    def format(self, record: logging.LogRecord) -> str:
        plan_id = plan_id_ctx.get()
        context_str = f" [plan={plan_id}]" if plan_id else ""

        timestamp = datetime.now().strftime("%H:%M:%S")
        level = record.levelname.ljust(8)
        formatted = f"{timestamp} | {level} | {record.name}{context_str} | {record.getMessage()}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def configure_logging(log_level: str = "WARNING", json_format: bool = False) -> None:
    """
    Configure logging for the application.

    Logs go to stderr so command output on stdout stays clean.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Emit one JSON object per record instead of text
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)
    formatter: logging.Formatter = (
        StructuredJsonFormatter() if json_format else ContextualFormatter()
    )

    logger = logging.getLogger("recipe_shopper")
    logger.setLevel(level)

    # Replace handlers from an earlier call
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False

    logger.debug("Logging configured: level=%s, format=%s", log_level, "json" if json_format else "text")


class plan_context:
    """Context manager tagging log records with a plan id."""

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        self._token: Any = None

    def __enter__(self) -> "plan_context":
        self._token = plan_id_ctx.set(self.plan_id)
        return self

    def __exit__(self, *args: Any) -> None:
        plan_id_ctx.reset(self._token)
