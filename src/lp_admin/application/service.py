"""Admin application service: per-agent stats and store-wide invariant checks."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_agent.domain.repository import AgentRepositoryProtocol
from src.lp_agent.infrastructure.persistence import AgentRepository
from src.lp_common.errors import AgentNotFoundError
from src.lp_curve.domain.pricing import calculate_current_price, get_graduation_progress
from src.lp_trading.domain.invariants import (
    verify_agent_ledger,
    verify_curve_state,
    verify_fee_ledger,
)
from src.lp_trading.domain.repository import TradeRepositoryProtocol
from src.lp_trading.infrastructure.trades_repository import TradeRepository

_LIST_AGENT_STATE_SQL = text(
    "SELECT id, tradeable_cap, shares_sold, reserve_raised FROM agents ORDER BY id"
)


class AdminService:
    def __init__(
        self,
        agents: AgentRepositoryProtocol | None = None,
        trades: TradeRepositoryProtocol | None = None,
    ) -> None:
        self._agents: AgentRepositoryProtocol = agents or AgentRepository()
        self._trades: TradeRepositoryProtocol = trades or TradeRepository()

    async def get_agent_stats(self, db: AsyncSession, agent_id: str) -> dict[str, Any]:
        agent = await self._agents.get_by_id(db, agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        stats = await self._trades.get_stats(db, agent_id)
        return {
            "agent_id": agent_id,
            "status": agent.status,
            "phase": agent.state.phase,
            "current_price": calculate_current_price(agent.state, agent.config),
            "shares_sold": agent.state.shares_sold,
            "reserve_raised": agent.state.reserve_raised,
            "graduation_progress": get_graduation_progress(agent.config, agent.state),
            "total_trades": stats.total_trades,
            "buy_count": stats.buy_count,
            "sell_count": stats.sell_count,
            "total_volume": stats.total_volume,
            "total_fees": stats.total_fees,
            "unique_traders": stats.unique_traders,
        }

    async def verify_all_invariants(self, db: AsyncSession) -> dict[str, object]:
        """Run per-agent (INV-1/2/5) and global fee ledger (INV-F) checks."""
        violations: list[str] = []
        rows = (await db.execute(_LIST_AGENT_STATE_SQL)).fetchall()
        for row in rows:
            try:
                verify_curve_state(_CurveShim(row), _CurveShim(row))  # type: ignore[arg-type]
                await verify_agent_ledger(row.id, float(row.shares_sold), db)
            except AssertionError as e:
                violations.append(str(e))
        violations.extend(await verify_fee_ledger(db))
        return {"ok": len(violations) == 0, "checked_agents": len(rows), "violations": violations}


class _CurveShim:
    """Duck-typed CurveConfig/CurveState carrying only the fields the checks read."""

    def __init__(self, row: Any) -> None:
        self.tradeable_cap = float(row.tradeable_cap)
        self.shares_sold = float(row.shares_sold)
        self.reserve_raised = float(row.reserve_raised)
