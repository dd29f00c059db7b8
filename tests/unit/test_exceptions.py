"""Tests for the kernel exception hierarchy and error codes."""

import pytest

from dividend_kernel import exceptions as exc_module
from dividend_kernel.exceptions import (
    AlreadySettledError,
    AmountError,
    AuthorizationError,
    ConfigurationError,
    DividendLedgerError,
    InsufficientSharesError,
    InvalidAmountError,
    InvalidConfigError,
    InvalidPeriodIndexError,
    NotYetElapsedError,
    OutOfOrderError,
    SettlementError,
    TimestampBeforeCreationError,
    UnauthorizedError,
)


def _all_error_classes() -> list[type]:
    return [
        obj
        for obj in vars(exc_module).values()
        if isinstance(obj, type) and issubclass(obj, DividendLedgerError)
    ]


class TestErrorCodes:
    """Every error is identifiable by a machine-readable code."""

    def test_every_class_declares_own_code(self):
        for cls in _all_error_classes():
            assert "code" in vars(cls), f"{cls.__name__} inherits its code"

    def test_codes_are_unique(self):
        codes = [cls.code for cls in _all_error_classes()]
        assert len(codes) == len(set(codes))

    def test_codes_are_upper_snake_case(self):
        for cls in _all_error_classes():
            assert cls.code == cls.code.upper()
            assert " " not in cls.code


class TestHierarchy:
    """Callers can catch by family."""

    @pytest.mark.parametrize(
        "error, family",
        [
            (InvalidConfigError("period_seconds", 0, "must be greater than zero"), ConfigurationError),
            (UnauthorizedError("0xbob", "mint", "admin"), AuthorizationError),
            (InvalidAmountError("deposit", 0), AmountError),
            (InsufficientSharesError("0xbob", 5, 2), AmountError),
            (NotYetElapsedError(0, current_index=0), SettlementError),
            (OutOfOrderError(2, 1), SettlementError),
            (AlreadySettledError(0), SettlementError),
        ],
    )
    def test_family(self, error, family):
        assert isinstance(error, family)
        assert isinstance(error, DividendLedgerError)


class TestStructuredFields:
    """Exceptions expose the values needed to react to them."""

    def test_out_of_order_names_required_index(self):
        error = OutOfOrderError(5, 4, holder="0xalice")
        assert error.required_index == 4
        assert error.holder == "0xalice"
        assert "0xalice" in str(error)

    def test_not_yet_elapsed_period_message(self):
        error = NotYetElapsedError(3, current_index=3)
        assert error.holder is None
        assert "has not elapsed" in str(error)

    def test_not_yet_elapsed_holder_message(self):
        error = NotYetElapsedError(3, holder="0xalice")
        assert "period log is not settled" in str(error)

    def test_insufficient_shares_fields(self):
        error = InsufficientSharesError("0xbob", 7, 2)
        assert (error.requested, error.available) == (7, 2)

    def test_invalid_config_fields(self):
        error = InvalidConfigError("period_seconds", 0, "must be greater than zero")
        assert error.field == "period_seconds"
        assert error.value == 0

    def test_timestamp_before_creation(self):
        error = TimestampBeforeCreationError("2023-01-01T00:00:00+00:00", "2024-01-01T00:00:00+00:00")
        assert error.code == "TIMESTAMP_BEFORE_CREATION"

    def test_invalid_period_index(self):
        assert InvalidPeriodIndexError(-1).period_index == -1
