"""Unit tests for TradeEngine: serialized execution against in-memory repositories."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.lp_common.agent_locks import AgentLockRegistry
from src.lp_common.errors import (
    AgentGraduatedError,
    AgentNotActiveError,
    AgentNotFoundError,
    CurveAtCapacityError,
    InsufficientBalanceError,
    InvalidAmountError,
    PersistenceConflictError,
    SlippageExceededError,
    TradeTimeoutError,
)
from src.lp_curve.domain.evaluation import evaluate_buy
from src.lp_curve.domain.models import CurveState
from src.lp_curve.domain.presets import get_preset
from src.lp_trading.engine.engine import TradeEngine
from tests.unit.fakes import (
    FakeAgentRepo,
    FakePositionRepo,
    FakeSession,
    FakeTradeRepo,
    make_agent,
)


class _Stack:
    def __init__(self, *agents: Any) -> None:
        self.agents = FakeAgentRepo(*agents)
        self.positions = FakePositionRepo()
        self.trades = FakeTradeRepo()
        self.engine = TradeEngine(
            agents=self.agents,
            positions=self.positions,
            trades=self.trades,
            locks=AgentLockRegistry(),
            platform_recipient="TREASURY",
        )


@pytest.fixture
def stack() -> _Stack:
    return _Stack(
        make_agent("AGT-7", preset="v7"),
        make_agent("AGT-5", preset="v5"),
        make_agent("AGT-NEW", status="ACTIVATING"),
        make_agent("AGT-GRAD", phase="graduating"),
    )


class TestBuy:
    async def test_buy_updates_state_position_and_ledger(self, stack: _Stack) -> None:
        db = FakeSession()
        record = await stack.engine.execute(db, "AGT-7", "alice", "buy", 1000)

        state = stack.agents.agents["AGT-7"].state
        assert state.shares_sold == pytest.approx(record.tokens_amount)
        assert state.reserve_raised == pytest.approx(950)
        assert state.version == 1
        assert stack.positions.balances[("AGT-7", "alice")] == pytest.approx(record.tokens_amount)
        assert record.holder_balance_after == pytest.approx(record.tokens_amount)
        assert stack.trades.records == [record]
        db.commit.assert_awaited_once()
        db.rollback.assert_not_awaited()

    async def test_fee_entries_match_split(self, stack: _Stack) -> None:
        record = await stack.engine.execute(FakeSession(), "AGT-5", "alice", "buy", 10)
        by_type = {e.recipient_type: e for e in stack.trades.fee_entries}
        assert set(by_type) == {"CREATOR", "PLATFORM", "LP"}
        assert by_type["CREATOR"].recipient_id == "creator-1"
        assert by_type["PLATFORM"].recipient_id == "TREASURY"
        assert by_type["LP"].recipient_id == "LP:AGT-5"
        assert sum(e.amount for e in by_type.values()) == pytest.approx(record.fee_total)

    async def test_two_way_split_writes_no_lp_entry(self, stack: _Stack) -> None:
        await stack.engine.execute(FakeSession(), "AGT-7", "alice", "buy", 10)
        assert {e.recipient_type for e in stack.trades.fee_entries} == {"CREATOR", "PLATFORM"}

    async def test_result_matches_pure_evaluation(self, stack: _Stack) -> None:
        expected = evaluate_buy("AGT-7", get_preset("v7"), CurveState(), 1000)
        record = await stack.engine.execute(FakeSession(), "AGT-7", "alice", "buy", 1000)
        assert record.tokens_amount == expected.tokens
        assert record.price_after == expected.price_after


class TestSell:
    async def test_round_trip(self, stack: _Stack) -> None:
        buy = await stack.engine.execute(FakeSession(), "AGT-7", "alice", "buy", 1000)
        sell = await stack.engine.execute(
            FakeSession(), "AGT-7", "alice", "sell", buy.tokens_amount
        )
        state = stack.agents.agents["AGT-7"].state
        assert state.shares_sold == 0
        assert state.reserve_raised == pytest.approx(0, abs=1e-6)
        assert sell.net_amount == pytest.approx(950 * 0.95, rel=1e-9)
        assert stack.positions.balances[("AGT-7", "alice")] == pytest.approx(0, abs=1e-9)

    async def test_sell_without_position(self, stack: _Stack) -> None:
        await stack.engine.execute(FakeSession(), "AGT-7", "alice", "buy", 1000)
        db = FakeSession()
        with pytest.raises(InsufficientBalanceError):
            await stack.engine.execute(db, "AGT-7", "bob", "sell", 1)
        db.rollback.assert_awaited_once()
        assert stack.agents.agents["AGT-7"].state.version == 1


class TestRejections:
    async def test_invalid_amount_before_any_read(self, stack: _Stack) -> None:
        db = FakeSession()
        with pytest.raises(InvalidAmountError):
            await stack.engine.execute(db, "AGT-7", "alice", "buy", -1)
        db.commit.assert_not_awaited()

    async def test_unknown_agent(self, stack: _Stack) -> None:
        with pytest.raises(AgentNotFoundError):
            await stack.engine.execute(FakeSession(), "AGT-X", "alice", "buy", 1)

    async def test_not_live(self, stack: _Stack) -> None:
        with pytest.raises(AgentNotActiveError):
            await stack.engine.execute(FakeSession(), "AGT-NEW", "alice", "buy", 1)

    async def test_graduating_rejects_trades(self, stack: _Stack) -> None:
        with pytest.raises(AgentGraduatedError):
            await stack.engine.execute(FakeSession(), "AGT-GRAD", "alice", "buy", 1)

    async def test_slippage_leaves_state_untouched(self, stack: _Stack) -> None:
        db = FakeSession()
        with pytest.raises(SlippageExceededError):
            await stack.engine.execute(db, "AGT-7", "alice", "buy", 1000, min_out=1e12)
        assert stack.agents.agents["AGT-7"].state.version == 0
        assert stack.trades.records == []
        db.rollback.assert_awaited_once()

    async def test_min_out_at_exact_output_passes(self, stack: _Stack) -> None:
        expected = evaluate_buy("AGT-7", get_preset("v7"), CurveState(), 1000).tokens
        record = await stack.engine.execute(
            FakeSession(), "AGT-7", "alice", "buy", 1000, min_out=expected
        )
        assert record.tokens_amount == expected

    async def test_capacity(self, stack: _Stack) -> None:
        first = await stack.engine.execute(FakeSession(), "AGT-5", "alice", "buy", 10_000)
        assert first.capacity_clamped
        with pytest.raises(CurveAtCapacityError):
            await stack.engine.execute(FakeSession(), "AGT-5", "alice", "buy", 1)

    async def test_version_conflict(self, stack: _Stack) -> None:
        class RacingAgents(FakeAgentRepo):
            async def update_curve_state(self, *args: Any, **kwargs: Any) -> bool:
                return False

        engine = TradeEngine(
            agents=RacingAgents(make_agent("AGT-7", preset="v7")),
            positions=FakePositionRepo(),
            trades=FakeTradeRepo(),
            locks=AgentLockRegistry(),
        )
        db = FakeSession()
        with pytest.raises(PersistenceConflictError):
            await engine.execute(db, "AGT-7", "alice", "buy", 10)
        db.rollback.assert_awaited_once()

    async def test_timeout(self, stack: _Stack) -> None:
        class SlowAgents(FakeAgentRepo):
            async def get_for_update(self, db: Any, agent_id: str) -> Any:
                await asyncio.sleep(0.5)
                return None

        engine = TradeEngine(
            agents=SlowAgents(),
            positions=FakePositionRepo(),
            trades=FakeTradeRepo(),
            locks=AgentLockRegistry(),
            timeout_seconds=0.01,
        )
        with pytest.raises(TradeTimeoutError):
            await engine.execute(FakeSession(), "AGT-7", "alice", "buy", 10)


class TestConcurrency:
    async def test_concurrent_buys_equal_sequential(self) -> None:
        amounts = [100.0, 250.0, 75.5, 1000.0, 33.3, 500.0, 12.0, 800.0]

        sequential = _Stack(make_agent("AGT-7", preset="v7"))
        for i, amount in enumerate(amounts):
            await sequential.engine.execute(FakeSession(), "AGT-7", f"h{i}", "buy", amount)

        concurrent = _Stack(make_agent("AGT-7", preset="v7"))
        await asyncio.gather(*[
            concurrent.engine.execute(FakeSession(), "AGT-7", f"h{i}", "buy", amount)
            for i, amount in enumerate(amounts)
        ])

        seq_state = sequential.agents.agents["AGT-7"].state
        con_state = concurrent.agents.agents["AGT-7"].state
        assert con_state.version == len(amounts)
        assert con_state.reserve_raised == pytest.approx(seq_state.reserve_raised, rel=1e-12)
        assert con_state.shares_sold == pytest.approx(seq_state.shares_sold, rel=1e-9)
        # Ledger invariant: balances account for every token issued
        assert sum(concurrent.positions.balances.values()) == pytest.approx(
            con_state.shares_sold, rel=1e-12
        )

    async def test_lock_held_during_execution(self) -> None:
        locks = AgentLockRegistry()
        seen: list[bool] = []

        class ObservingAgents(FakeAgentRepo):
            async def get_for_update(self, db: Any, agent_id: str) -> Any:
                seen.append(locks.get(agent_id).locked())
                return await super().get_for_update(db, agent_id)

        engine = TradeEngine(
            agents=ObservingAgents(make_agent("AGT-7", preset="v7")),
            positions=FakePositionRepo(),
            trades=FakeTradeRepo(),
            locks=locks,
        )
        await engine.execute(FakeSession(), "AGT-7", "alice", "buy", 10)
        assert seen == [True]


class TestHooks:
    async def test_hooks_run_after_commit(self, stack: _Stack) -> None:
        hook = AsyncMock()
        stack.engine.add_hook(hook)
        record = await stack.engine.execute(FakeSession(), "AGT-7", "alice", "buy", 10)
        await stack.engine.drain()
        hook.assert_awaited_once()
        agent, hooked_record, evaluation = hook.await_args.args
        assert agent.id == "AGT-7"
        assert hooked_record is record
        assert evaluation.tokens == record.tokens_amount

    async def test_failing_hook_does_not_fail_trade(self, stack: _Stack) -> None:
        stack.engine.add_hook(AsyncMock(side_effect=RuntimeError("boom")))
        record = await stack.engine.execute(FakeSession(), "AGT-7", "alice", "buy", 10)
        await stack.engine.drain()
        assert stack.trades.records == [record]

    async def test_hooks_not_run_on_rejection(self, stack: _Stack) -> None:
        hook = AsyncMock()
        stack.engine.add_hook(hook)
        with pytest.raises(SlippageExceededError):
            await stack.engine.execute(FakeSession(), "AGT-7", "alice", "buy", 10, min_out=1e12)
        await stack.engine.drain()
        hook.assert_not_awaited()
