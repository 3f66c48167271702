"""Tests for logging configuration."""

import json
import logging

from recipe_shopper.logging_config import (
    ContextualFormatter,
    StructuredJsonFormatter,
    configure_logging,
    plan_context,
    plan_id_ctx,
)


def make_record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="recipe_shopper.planner",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_sets_level_and_single_handler(self):
        configure_logging("DEBUG")
        configure_logging("INFO")
        logger = logging.getLogger("recipe_shopper")
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        assert not logger.propagate

    def test_json_format(self):
        configure_logging(json_format=True)
        (handler,) = logging.getLogger("recipe_shopper").handlers
        assert isinstance(handler.formatter, StructuredJsonFormatter)

    def test_unknown_level_falls_back_to_warning(self):
        configure_logging("CHATTY")
        assert logging.getLogger("recipe_shopper").level == logging.WARNING


class TestFormatters:
    """Tests for the log formatters."""

    def test_json_formatter(self):
        data = json.loads(StructuredJsonFormatter().format(make_record()))
        assert data["level"] == "WARNING"
        assert data["logger"] == "recipe_shopper.planner"
        assert data["message"] == "hello"
        assert "plan_id" not in data

    def test_json_formatter_with_plan(self):
        with plan_context("week-42"):
            data = json.loads(StructuredJsonFormatter().format(make_record()))
        assert data["plan_id"] == "week-42"

    def test_contextual_formatter(self):
        with plan_context("week-42"):
            line = ContextualFormatter().format(make_record())
        assert "[plan=week-42]" in line
        assert line.endswith("| hello")

    def test_plan_context_resets(self):
        with plan_context("outer"):
            with plan_context("inner"):
                assert plan_id_ctx.get() == "inner"
            assert plan_id_ctx.get() == "outer"
        assert plan_id_ctx.get() is None
