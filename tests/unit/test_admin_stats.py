"""Unit tests for AdminService stats and TradeQueryService reads."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from src.lp_admin.application.service import AdminService
from src.lp_common.agent_locks import AgentLockRegistry
from src.lp_common.errors import AgentNotFoundError
from src.lp_trading.application.service import TradeQueryService
from src.lp_trading.engine.engine import TradeEngine
from tests.unit.fakes import (
    FakeAgentRepo,
    FakePositionRepo,
    FakeSession,
    FakeTradeRepo,
    make_agent,
)


@pytest.fixture
async def traded() -> tuple[FakeAgentRepo, FakeTradeRepo]:
    agents = FakeAgentRepo(make_agent("AGT-1", preset="v7"), make_agent("AGT-2", preset="v7"))
    trades = FakeTradeRepo()
    engine = TradeEngine(
        agents=agents, positions=FakePositionRepo(), trades=trades, locks=AgentLockRegistry()
    )
    first = await engine.execute(FakeSession(), "AGT-1", "alice", "buy", 100)
    await engine.execute(FakeSession(), "AGT-1", "bob", "buy", 200)
    await engine.execute(FakeSession(), "AGT-1", "alice", "sell", first.tokens_amount / 2)
    return agents, trades


class TestAgentStats:
    async def test_stats(self, traded: tuple[FakeAgentRepo, FakeTradeRepo]) -> None:
        agents, trades = traded
        stats = await AdminService(agents=agents, trades=trades).get_agent_stats(
            FakeSession(), "AGT-1"
        )
        assert stats["total_trades"] == 3
        assert stats["buy_count"] == 2
        assert stats["sell_count"] == 1
        assert stats["unique_traders"] == 2
        assert stats["total_fees"] == pytest.approx(sum(r.fee_total for r in trades.records))
        assert stats["shares_sold"] == agents.agents["AGT-1"].state.shares_sold
        assert stats["phase"] == "active"

    async def test_agent_without_trades(self, traded: tuple[FakeAgentRepo, FakeTradeRepo]) -> None:
        agents, trades = traded
        stats = await AdminService(agents=agents, trades=trades).get_agent_stats(
            FakeSession(), "AGT-2"
        )
        assert stats["total_trades"] == 0
        assert stats["total_volume"] == 0

    async def test_missing_agent(self, traded: tuple[FakeAgentRepo, FakeTradeRepo]) -> None:
        agents, trades = traded
        with pytest.raises(AgentNotFoundError):
            await AdminService(agents=agents, trades=trades).get_agent_stats(FakeSession(), "X")


class TestVerifyInvariants:
    async def test_reports_violations(self) -> None:
        rows = [
            SimpleNamespace(id="AGT-1", tradeable_cap=100.0, shares_sold=50.0, reserve_raised=1.0),
            SimpleNamespace(id="AGT-2", tradeable_cap=100.0, shares_sold=150.0, reserve_raised=1.0),
        ]

        def _result(value: object) -> MagicMock:
            result = MagicMock()
            result.fetchall.return_value = value
            result.scalar_one.return_value = value
            return result

        db = FakeSession()
        # agents listing, AGT-1 balance sum, fee ledger (AGT-2 fails before its balance query)
        db.execute.side_effect = [_result(rows), _result(50.0), _result([])]
        report = await AdminService(agents=FakeAgentRepo(), trades=FakeTradeRepo()).verify_all_invariants(db)
        assert report["checked_agents"] == 2
        assert not report["ok"]
        [violation] = report["violations"]
        assert "INV-1" in violation


class TestTradeQuery:
    async def test_newest_first(self, traded: tuple[FakeAgentRepo, FakeTradeRepo]) -> None:
        agents, trades = traded
        rows = await TradeQueryService(agents=agents, trades=trades).list_recent(
            FakeSession(), "AGT-1", limit=2
        )
        assert [r.trade_type for r in rows] == ["sell", "buy"]

    async def test_unknown_agent(self, traded: tuple[FakeAgentRepo, FakeTradeRepo]) -> None:
        agents, trades = traded
        with pytest.raises(AgentNotFoundError):
            await TradeQueryService(agents=agents, trades=trades).list_recent(FakeSession(), "X")
