"""Tests for the structured logging system (dividend_kernel/logging_config.py)."""

import json
import logging
from io import StringIO
from uuid import uuid4

import pytest

from dividend_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "dividend_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("period_settled", extra={"period_index": 3, "remainder": 7})

        record = _parse_log(stream)
        assert record["period_index"] == 3
        assert record["remainder"] == 7

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        LogContext.set(ledger_id="ledger-1", actor="0xadmin")
        logger.info("test_msg")

        record = _parse_log(stream)
        assert record["ledger_id"] == "ledger-1"
        assert record["actor"] == "0xadmin"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_ledger_exception_code_extracted(self):
        """Kernel exceptions carry a .code attribute and structured fields."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from dividend_kernel.exceptions import OutOfOrderError

        try:
            raise OutOfOrderError(4, 3)
        except OutOfOrderError:
            logger.error("settlement_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "OUT_OF_ORDER"
        assert record["exc_type"] == "OutOfOrderError"
        assert record["exc_period_index"] == 4
        assert record["exc_required_index"] == 3

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "ledger_id" not in record
        assert "actor" not in record

    def test_uuid_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("with_uuid", extra={"deposit_id": uid})

        record = _parse_log(stream)
        assert record["deposit_id"] == str(uid)

    def test_large_integers_survive(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        amount = 10**40 + 7
        get_logger("test").info("deposit_recorded", extra={"amount": amount})

        assert _parse_log(stream)["amount"] == amount

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")  # below the default INFO level

        logs = _parse_all_logs(stream)
        assert len(logs) == 2
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= set(record)


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", operation="mint")
        assert LogContext.get_all() == {"correlation_id": "x", "operation": "mint"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(operation="outer")
        with LogContext.bind(operation="inner"):
            assert LogContext.get_all()["operation"] == "inner"
        assert LogContext.get_all()["operation"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "ledger_id" not in LogContext.get_all()
        with LogContext.bind(ledger_id="temp"):
            assert LogContext.get_all()["ledger_id"] == "temp"
        assert "ledger_id" not in LogContext.get_all()

    def test_bind_skips_none_values(self):
        with LogContext.bind(ledger_id="l", actor=None):
            assert LogContext.get_all() == {"ledger_id": "l"}

    def test_all_fields(self):
        LogContext.set(correlation_id="c", ledger_id="l", actor="a", operation="o")
        ctx = LogContext.get_all()
        assert len(ctx) == 4
        assert ctx["actor"] == "a"


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        assert len(logging.getLogger("dividend_kernel").handlers) == 1

    def test_level_name_accepted(self):
        """Settings carry the level as a name; lower case is tolerated."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level="debug")
        get_logger("test").debug("verbose")
        assert _parse_log(stream)["message"] == "verbose"

    def test_unknown_context_field_rejected(self):
        with pytest.raises(TypeError):
            LogContext.set(holder="0xalice")

    def test_get_logger_returns_child(self):
        logger = get_logger("services.settlement")
        assert logger.name == "dividend_kernel.services.settlement"

    def test_logger_hierarchy(self):
        """Child loggers inherit the dividend_kernel root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "dividend_kernel.deep.nested.module"


# ---------------------------------------------------------------------------
# Service integration
# ---------------------------------------------------------------------------


class TestServiceLogContext:
    """Ledger operations bind ledger_id, actor and operation."""

    def test_mint_log_carries_context(self, ledger, captured_logs):
        ledger.mint("0xadmin", "0xalice", 3)

        minted = [r for r in captured_logs() if r["message"] == "shares_minted"]
        assert len(minted) == 1
        assert minted[0]["ledger_id"] == str(ledger.ledger_id)
        assert minted[0]["actor"] == "0xadmin"
        assert minted[0]["operation"] == "mint"
        assert minted[0]["amount"] == 3

    def test_context_cleared_after_call(self, ledger):
        ledger.deposit("0xpayer", 5)
        assert LogContext.get_all() == {}
