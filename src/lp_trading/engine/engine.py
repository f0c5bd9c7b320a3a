"""TradeEngine — serialized per-agent trade execution.

One trade = one transaction:
  lock(agent) → SELECT … FOR UPDATE → re-evaluate → slippage check →
  versioned state write → position upsert → trade row → fee ledger → COMMIT

Post-commit hooks (fee payouts, graduation signal) run as background tasks
after the lock is released and never affect the trade's outcome.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.lp_agent.domain.models import Agent
from src.lp_agent.domain.repository import AgentRepositoryProtocol
from src.lp_agent.domain.rules import ensure_tradeable
from src.lp_agent.infrastructure.persistence import AgentRepository
from src.lp_common.agent_locks import AgentLockRegistry, get_agent_locks
from src.lp_common.datetime_utils import utc_now
from src.lp_common.enums import TradeAction
from src.lp_common.errors import (
    AgentNotFoundError,
    PersistenceConflictError,
    SlippageExceededError,
    TradeTimeoutError,
)
from src.lp_common.id_generator import generate_id
from src.lp_curve.domain.evaluation import evaluate_trade, validate_amount
from src.lp_curve.domain.models import TradeEvaluation
from src.lp_position.domain.repository import PositionRepositoryProtocol
from src.lp_position.infrastructure.persistence import PositionRepository
from src.lp_trading.domain.fees import build_fee_entries
from src.lp_trading.domain.invariants import verify_curve_state, verify_trade_record
from src.lp_trading.domain.models import TradeRecord
from src.lp_trading.domain.repository import TradeRepositoryProtocol
from src.lp_trading.infrastructure.trades_repository import TradeRepository

logger = logging.getLogger(__name__)

PostTradeHook = Callable[[Agent, TradeRecord, TradeEvaluation], Awaitable[None]]


def _build_record(
    agent: Agent, holder_id: str, ev: TradeEvaluation, holder_balance_after: float
) -> TradeRecord:
    return TradeRecord(
        trade_id=generate_id("TRD"),
        agent_id=agent.id,
        holder_id=holder_id,
        trade_type=ev.action,
        amount_in=ev.amount_in,
        tokens_amount=ev.tokens,
        gross_amount=ev.gross_amount,
        net_amount=ev.net_amount,
        fee_total=ev.fee,
        creator_fee=ev.fees.creator_fee,
        platform_fee=ev.fees.platform_fee,
        lp_fee=ev.fees.lp_fee,
        price_before=ev.price_before,
        price_after=ev.price_after,
        avg_price=ev.avg_price,
        shares_sold_after=ev.new_state.shares_sold,
        reserve_raised_after=ev.new_state.reserve_raised,
        holder_balance_after=holder_balance_after,
        executed_at=utc_now(),
        capacity_clamped=ev.capacity_clamped,
    )


class TradeEngine:
    def __init__(
        self,
        agents: AgentRepositoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        trades: TradeRepositoryProtocol | None = None,
        locks: AgentLockRegistry | None = None,
        hooks: list[PostTradeHook] | None = None,
        timeout_seconds: float | None = None,
        platform_recipient: str | None = None,
    ) -> None:
        self._agents: AgentRepositoryProtocol = agents or AgentRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionRepository()
        self._trades: TradeRepositoryProtocol = trades or TradeRepository()
        self._locks = locks or get_agent_locks()
        self._hooks: list[PostTradeHook] = list(hooks or [])
        self._timeout = timeout_seconds or settings.TRADE_TIMEOUT_SECONDS
        self._platform_recipient = platform_recipient or settings.PLATFORM_FEE_RECIPIENT
        self._background: set[asyncio.Task[None]] = set()

    def add_hook(self, hook: PostTradeHook) -> None:
        self._hooks.append(hook)

    async def execute(
        self,
        db: AsyncSession,
        agent_id: str,
        holder_id: str,
        action: str,
        amount: float,
        min_out: float | None = None,
    ) -> TradeRecord:
        """Main entry point. Returns the committed TradeRecord or raises AppError."""
        validate_amount(amount)
        try:
            async with asyncio.timeout(self._timeout):
                agent, record, evaluation = await self._execute_serialized(
                    db, agent_id, holder_id, action, amount, min_out
                )
        except TimeoutError:
            logger.error(
                "Trade timed out, outcome unknown: agent=%s holder=%s action=%s amount=%s",
                agent_id, holder_id, action, amount,
            )
            raise TradeTimeoutError() from None

        self._fire_post_commit(agent, record, evaluation)
        return record

    async def _execute_serialized(
        self,
        db: AsyncSession,
        agent_id: str,
        holder_id: str,
        action: str,
        amount: float,
        min_out: float | None,
    ) -> tuple[Agent, TradeRecord, TradeEvaluation]:
        async with self._locks.get(agent_id):
            try:
                agent, record, evaluation = await self._apply(
                    db, agent_id, holder_id, action, amount, min_out
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info(
            "Trade committed: %s agent=%s holder=%s type=%s tokens=%.6f gross=%.6f "
            "shares_sold=%.6f reserve=%.6f",
            record.trade_id, agent_id, holder_id, record.trade_type, record.tokens_amount,
            record.gross_amount, record.shares_sold_after, record.reserve_raised_after,
        )
        return agent, record, evaluation

    async def _apply(
        self,
        db: AsyncSession,
        agent_id: str,
        holder_id: str,
        action: str,
        amount: float,
        min_out: float | None,
    ) -> tuple[Agent, TradeRecord, TradeEvaluation]:
        # Load agent row FOR UPDATE
        agent = await self._agents.get_for_update(db, agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        ensure_tradeable(agent)

        balance = 0.0
        if action == TradeAction.SELL:
            position = await self._positions.get_for_update(db, agent_id, holder_id)
            balance = position.token_balance if position else 0.0

        # Recompute server-side; client quotes are never trusted
        evaluation = evaluate_trade(agent_id, action, agent.config, agent.state, amount, balance)
        if min_out is not None and evaluation.output_amount < min_out:
            raise SlippageExceededError(min_out, evaluation.output_amount)

        verify_curve_state(agent.config, evaluation.new_state)
        written = await self._agents.update_curve_state(
            db, agent_id, evaluation.new_state, agent.state.version
        )
        if not written:
            logger.warning(
                "Version conflict: agent=%s expected_version=%d", agent_id, agent.state.version
            )
            raise PersistenceConflictError(agent_id)

        delta = evaluation.tokens if action == TradeAction.BUY else -evaluation.tokens
        balance_after = await self._positions.apply_delta(db, agent_id, holder_id, delta)

        record = _build_record(agent, holder_id, evaluation, balance_after)
        verify_trade_record(record)
        await self._trades.append(db, record)
        await self._trades.append_fee_entries(
            db, build_fee_entries(record, agent.creator_id, self._platform_recipient)
        )
        return agent, record, evaluation

    # ------------------------------------------------------------------
    # Post-commit side effects
    # ------------------------------------------------------------------

    def _fire_post_commit(
        self, agent: Agent, record: TradeRecord, evaluation: TradeEvaluation
    ) -> None:
        for hook in self._hooks:
            task = asyncio.create_task(self._run_hook(hook, agent, record, evaluation))
            self._background.add(task)
            task.add_done_callback(self._background.discard)

    async def _run_hook(
        self,
        hook: PostTradeHook,
        agent: Agent,
        record: TradeRecord,
        evaluation: TradeEvaluation,
    ) -> None:
        try:
            await hook(agent, record, evaluation)
        except Exception:
            # Hooks record their own failures; anything reaching here is a bug in the hook.
            logger.exception(
                "Post-trade hook %s failed for trade %s",
                getattr(hook, "__name__", type(hook).__name__),
                record.trade_id,
            )

    async def drain(self) -> None:
        """Wait for in-flight post-commit tasks (shutdown and tests)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
