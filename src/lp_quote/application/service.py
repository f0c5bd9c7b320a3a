"""QuoteService — read-only trade preview.

Takes no locks and writes nothing, so it is safe to call concurrently and
unauthenticated. Execution never consumes a quote: the trade engine
re-evaluates against locked state.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.lp_agent.domain.repository import AgentRepositoryProtocol
from src.lp_agent.domain.rules import ensure_tradeable
from src.lp_agent.infrastructure.persistence import AgentRepository
from src.lp_common.enums import TradeAction
from src.lp_common.errors import (
    AgentNotFoundError,
    AppError,
    HolderRequiredError,
    InvalidAmountError,
    QuoteTimeoutError,
)
from src.lp_curve.domain.evaluation import evaluate_trade, validate_amount
from src.lp_position.domain.repository import PositionRepositoryProtocol
from src.lp_position.infrastructure.persistence import PositionRepository
from src.lp_quote.application.schemas import QuoteResponse

logger = logging.getLogger(__name__)


class QuoteService:
    def __init__(
        self,
        agents: AgentRepositoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._agents: AgentRepositoryProtocol = agents or AgentRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionRepository()
        self._timeout = timeout_seconds or settings.QUOTE_TIMEOUT_SECONDS

    async def quote(
        self,
        db: AsyncSession,
        agent_id: str,
        action: str,
        amount: float,
        holder_id: str | None = None,
    ) -> QuoteResponse:
        """Preview a buy or sell.

        Raises AgentNotFoundError for unknown agents and QuoteTimeoutError when
        the store does not answer in time; every other rejection comes back
        as ``valid=False`` with the error kind.
        """
        try:
            async with asyncio.timeout(self._timeout):
                return await self._quote(db, agent_id, action, amount, holder_id)
        except TimeoutError:
            logger.warning("Quote timed out: agent=%s action=%s", agent_id, action)
            raise QuoteTimeoutError() from None

    async def _quote(
        self,
        db: AsyncSession,
        agent_id: str,
        action: str,
        amount: float,
        holder_id: str | None,
    ) -> QuoteResponse:
        # Amount is checked before any state read.
        try:
            validate_amount(amount)
        except InvalidAmountError as exc:
            return QuoteResponse.rejected(agent_id, action, amount, exc)

        agent = await self._agents.get_by_id(db, agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)

        try:
            ensure_tradeable(agent)
            balance = 0.0
            if action == TradeAction.SELL:
                if not holder_id:
                    raise HolderRequiredError()
                position = await self._positions.get(db, agent_id, holder_id)
                balance = position.token_balance if position else 0.0
            evaluation = evaluate_trade(agent_id, action, agent.config, agent.state, amount, balance)
        except AppError as exc:
            logger.debug("Quote rejected: agent=%s kind=%s", agent_id, exc.kind)
            return QuoteResponse.rejected(agent_id, action, amount, exc)

        return QuoteResponse.from_evaluation(agent_id, evaluation)
