"""Trading application layer: engine wiring and trade history reads."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_agent.domain.repository import AgentRepositoryProtocol
from src.lp_agent.infrastructure.persistence import AgentRepository
from src.lp_common.errors import AgentNotFoundError
from src.lp_graduation.application.manager import get_graduation_manager
from src.lp_graduation.application.signal import GraduationSignal
from src.lp_recovery.application.payout_hook import FeePayoutHook
from src.lp_recovery.infrastructure.payout_client import get_payout_client
from src.lp_trading.domain.models import TradeRecord
from src.lp_trading.domain.repository import TradeRepositoryProtocol
from src.lp_trading.engine.engine import TradeEngine
from src.lp_trading.infrastructure.trades_repository import TradeRepository

logger = logging.getLogger(__name__)

_engine: TradeEngine | None = None


def build_trade_engine() -> TradeEngine:
    engine = TradeEngine()
    client = get_payout_client()
    if client is not None:
        engine.add_hook(FeePayoutHook(client))
    else:
        logger.info("No payout webhook configured; fees are recorded in the ledger only")
    engine.add_hook(GraduationSignal(get_graduation_manager()))
    return engine


def get_trade_engine() -> TradeEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = build_trade_engine()
    return _engine


class TradeQueryService:
    def __init__(
        self,
        agents: AgentRepositoryProtocol | None = None,
        trades: TradeRepositoryProtocol | None = None,
    ) -> None:
        self._agents: AgentRepositoryProtocol = agents or AgentRepository()
        self._trades: TradeRepositoryProtocol = trades or TradeRepository()

    async def list_recent(
        self, db: AsyncSession, agent_id: str, limit: int = 50
    ) -> list[TradeRecord]:
        if await self._agents.get_by_id(db, agent_id) is None:
            raise AgentNotFoundError(agent_id)
        return await self._trades.list_recent(db, agent_id, limit)
