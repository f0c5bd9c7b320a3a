"""Tests for lp_common.errors and lp_common.response."""

import pytest

from src.lp_common.errors import (
    AgentGraduatedError,
    AgentNotFoundError,
    AlreadyGraduatedError,
    AppError,
    InsufficientBalanceError,
    InsufficientLiquidityError,
    PersistenceConflictError,
    SlippageExceededError,
    TradeTimeoutError,
)
from src.lp_common.response import error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500
        assert err.kind == "Internal"

    def test_is_exception(self) -> None:
        err = AppError(code=4001, message="test")
        assert isinstance(err, Exception)
        assert str(err) == "test"


class TestSpecificErrors:
    @pytest.mark.parametrize(
        ("err", "code", "status", "kind"),
        [
            (AgentNotFoundError("AGT-1"), 3001, 404, "AgentNotFound"),
            (AgentGraduatedError("AGT-1", "graduating"), 3003, 422, "AgentGraduated"),
            (SlippageExceededError(10, 9), 4006, 422, "SlippageExceeded"),
            (PersistenceConflictError("AGT-1"), 4009, 409, "PersistenceConflict"),
            (TradeTimeoutError(), 4010, 504, "TradeTimeout"),
            (AlreadyGraduatedError("AGT-1", "graduated"), 5001, 409, "AlreadyGraduated"),
        ],
    )
    def test_codes(self, err: AppError, code: int, status: int, kind: str) -> None:
        assert (err.code, err.http_status, err.kind) == (code, status, kind)

    def test_insufficient_balance_message(self) -> None:
        err = InsufficientBalanceError(required=6500, available=3000)
        assert "6500" in err.message
        assert "3000" in err.message

    def test_liquidity_message_formats_amounts(self) -> None:
        err = InsufficientLiquidityError(required=1.5, available=1.0)
        assert "1.50000000" in err.message


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"id": "abc"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": "abc"}
        assert resp.error is None

    def test_error_carries_kind(self) -> None:
        resp = error_response(4006, "Slippage exceeded", "SlippageExceeded")
        assert resp.code == 4006
        assert resp.data is None
        assert resp.error == "SlippageExceeded"

    def test_serialization(self) -> None:
        d = success_response({"price": 0.00001}).model_dump()
        assert set(d) == {"code", "message", "data", "error", "timestamp", "request_id"}
        assert d["request_id"].startswith("req_")
