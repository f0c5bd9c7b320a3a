"""GraduationManager — moves an agent off its bonding curve.

graduate() runs two short transactions under the agent lock shared with the
TradeEngine:

  1. lock row → eligibility → holder snapshot → pending GraduationEvent → COMMIT
  2. lock row → (re-snapshot if a trade slipped in) → guarded phase flip → COMMIT

The event therefore exists before the phase changes, and a crash between the
two commits leaves a pending event plus an ``active`` agent that the
graduation recovery sweep picks up and finishes. The pub/sub notification is
sent after the lock is released; a publish failure is recorded as a
GRADUATION_DEPLOY downstream failure and never undoes the graduation.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.lp_agent.domain.models import Agent
from src.lp_agent.domain.repository import AgentRepositoryProtocol
from src.lp_agent.infrastructure.persistence import AgentRepository
from src.lp_common.agent_locks import AgentLockRegistry, get_agent_locks
from src.lp_common.enums import AgentStatus, CurvePhase, FailureType, GraduationStatus
from src.lp_common.errors import (
    AgentNotActiveError,
    AgentNotFoundError,
    AlreadyGraduatedError,
    GraduationEventNotFoundError,
    GraduationNotPendingError,
    NotEligibleError,
)
from src.lp_common.id_generator import generate_id
from src.lp_curve.domain.pricing import can_graduate, get_graduation_progress
from src.lp_graduation.domain.models import (
    GraduationCheck,
    GraduationEvent,
    GraduationResult,
    GraduationStatusView,
    HolderSnapshotEntry,
)
from src.lp_graduation.domain.repository import (
    GraduationEventRepositoryProtocol,
    GraduationPublisherProtocol,
)
from src.lp_graduation.infrastructure.persistence import GraduationEventRepository
from src.lp_graduation.infrastructure.publisher import RedisGraduationPublisher
from src.lp_position.domain.models import holder_share_pct
from src.lp_position.domain.repository import PositionRepositoryProtocol
from src.lp_position.infrastructure.persistence import PositionRepository
from src.lp_recovery.application.recorder import FailureRecorder

logger = logging.getLogger(__name__)


class GraduationManager:
    def __init__(
        self,
        agents: AgentRepositoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        events: GraduationEventRepositoryProtocol | None = None,
        publisher: GraduationPublisherProtocol | None = None,
        recorder: FailureRecorder | None = None,
        locks: AgentLockRegistry | None = None,
        requires_deployment: bool | None = None,
    ) -> None:
        self._agents: AgentRepositoryProtocol = agents or AgentRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionRepository()
        self._events: GraduationEventRepositoryProtocol = events or GraduationEventRepository()
        self._publisher: GraduationPublisherProtocol = publisher or RedisGraduationPublisher()
        self._recorder = recorder or FailureRecorder()
        self._locks = locks or get_agent_locks()
        self._requires_deployment = (
            settings.GRADUATION_REQUIRES_DEPLOYMENT
            if requires_deployment is None
            else requires_deployment
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def check(self, db: AsyncSession, agent_id: str) -> GraduationCheck:
        agent = await self._agents.get_by_id(db, agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        config, state = agent.config, agent.state
        return GraduationCheck(
            agent_id=agent_id,
            eligible=state.phase == CurvePhase.ACTIVE and can_graduate(config, state),
            reserve_raised=state.reserve_raised,
            threshold=config.graduation_threshold,
            remaining=max(0.0, config.graduation_threshold - state.reserve_raised),
            progress=get_graduation_progress(config, state),
            phase=state.phase,
        )

    async def status(self, db: AsyncSession, agent_id: str) -> GraduationStatusView:
        agent = await self._agents.get_by_id(db, agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        event = await self._events.get_by_agent(db, agent_id)
        return GraduationStatusView(agent_id=agent_id, phase=agent.state.phase, event=event)

    # ------------------------------------------------------------------
    # graduate
    # ------------------------------------------------------------------

    async def graduate(self, db: AsyncSession, agent_id: str) -> GraduationResult:
        """Idempotent: a second call raises AlreadyGraduatedError and changes nothing."""
        async with self._locks.get(agent_id):
            try:
                agent = await self._load_eligible(db, agent_id)
                existing = await self._events.get_by_agent(db, agent_id)
                if existing is not None and existing.status != GraduationStatus.PENDING:
                    raise AlreadyGraduatedError(agent_id, agent.state.phase)
                event_id = existing.id if existing else generate_id("GRD")
                event = await self._snapshot(db, agent, event_id)
                snapshot_version = agent.state.version
                await self._events.save_pending(db, event)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

            target = CurvePhase.GRADUATING if self._requires_deployment else CurvePhase.GRADUATED
            try:
                agent = await self._agents.get_for_update(db, agent_id)
                if agent is None:
                    raise AgentNotFoundError(agent_id)
                if agent.state.version != snapshot_version:
                    # Another process traded between the two transactions
                    event = await self._snapshot(db, agent, event_id)
                    await self._events.save_pending(db, event)
                moved = await self._agents.set_phase(
                    db, agent_id, CurvePhase.ACTIVE.value, target.value
                )
                if not moved:
                    raise AlreadyGraduatedError(agent_id, agent.state.phase)
                if target == CurvePhase.GRADUATED:
                    await self._events.mark_completed(db, agent_id)
                    event.status = GraduationStatus.COMPLETED.value
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Agent graduated: %s phase=%s event=%s reserve=%.6f holders=%d",
            agent_id, target.value, event.id, event.reserve_at_graduation, event.holder_count,
        )
        await self._publish(event)
        return GraduationResult(success=True, phase=target.value, event=event)

    async def _load_eligible(self, db: AsyncSession, agent_id: str) -> Agent:
        agent = await self._agents.get_for_update(db, agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        if agent.state.phase != CurvePhase.ACTIVE:
            raise AlreadyGraduatedError(agent_id, agent.state.phase)
        if agent.status != AgentStatus.LIVE:
            raise AgentNotActiveError(agent_id, agent.status)
        if not can_graduate(agent.config, agent.state):
            raise NotEligibleError(agent.state.reserve_raised, agent.config.graduation_threshold)
        return agent

    async def _snapshot(self, db: AsyncSession, agent: Agent, event_id: str) -> GraduationEvent:
        holders = await self._positions.list_holders(db, agent.id)
        shares_sold = agent.state.shares_sold
        return GraduationEvent(
            id=event_id,
            agent_id=agent.id,
            reserve_at_graduation=agent.state.reserve_raised,
            shares_sold_at_graduation=shares_sold,
            holder_snapshot=[
                HolderSnapshotEntry(
                    holder_id=p.holder_id,
                    balance=p.token_balance,
                    percentage=holder_share_pct(p.token_balance, shares_sold),
                )
                for p in holders
            ],
        )

    async def _publish(self, event: GraduationEvent) -> None:
        try:
            await self._publisher.publish(event)
        except Exception as exc:
            logger.exception("Graduation notification failed for agent %s", event.agent_id)
            await self._recorder.record(
                agent_id=event.agent_id,
                failure_type=FailureType.GRADUATION_DEPLOY.value,
                reason=f"Notification failed: {exc}",
                reference_id=event.id,
            )

    # ------------------------------------------------------------------
    # Deployment callbacks
    # ------------------------------------------------------------------

    async def complete(
        self, db: AsyncSession, agent_id: str, success: bool, reason: str | None = None
    ) -> GraduationStatusView:
        """Report the outcome of the post-graduation deployment."""
        async with self._locks.get(agent_id):
            try:
                agent = await self._agents.get_for_update(db, agent_id)
                if agent is None:
                    raise AgentNotFoundError(agent_id)
                event = await self._events.get_by_agent(db, agent_id)
                if event is None:
                    raise GraduationEventNotFoundError(agent_id)
                if event.status != GraduationStatus.PENDING:
                    raise GraduationNotPendingError(agent_id, event.status)

                phase = agent.state.phase
                if phase == CurvePhase.ACTIVE:
                    # Event written but the phase flip never happened; graduate() finishes it
                    raise GraduationNotPendingError(agent_id, phase)
                if success:
                    if phase == CurvePhase.GRADUATING:
                        moved = await self._agents.set_phase(
                            db, agent_id, CurvePhase.GRADUATING.value, CurvePhase.GRADUATED.value
                        )
                        if not moved:
                            raise GraduationNotPendingError(agent_id, phase)
                        phase = CurvePhase.GRADUATED.value
                    await self._events.mark_completed(db, agent_id)
                    event.status = GraduationStatus.COMPLETED.value
                else:
                    failure_reason = reason or "Deployment failed"
                    await self._events.mark_failed(db, agent_id, failure_reason)
                    event.status = GraduationStatus.FAILED.value
                    event.failure_reason = failure_reason
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        if success:
            logger.info("Graduation completed: agent=%s event=%s", agent_id, event.id)
        else:
            await self._recorder.record(
                agent_id=agent_id,
                failure_type=FailureType.GRADUATION_DEPLOY.value,
                reason=event.failure_reason or "Deployment failed",
                reference_id=event.id,
            )
        return GraduationStatusView(agent_id=agent_id, phase=phase, event=event)

    async def republish(self, db: AsyncSession, agent_id: str) -> GraduationEvent:
        """Re-send the notification for a graduated agent, reopening a failed event.

        Raises on publish failure so the retry sweep can count the attempt.
        """
        async with self._locks.get(agent_id):
            try:
                event = await self._events.get_by_agent(db, agent_id)
                if event is None:
                    raise GraduationEventNotFoundError(agent_id)
                if event.status == GraduationStatus.FAILED:
                    await self._events.reopen(db, agent_id)
                    event.status = GraduationStatus.PENDING.value
                    event.failure_reason = None
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        await self._publisher.publish(event)
        return event


_manager: GraduationManager | None = None


def get_graduation_manager() -> GraduationManager:
    global _manager  # noqa: PLW0603
    if _manager is None:
        _manager = GraduationManager()
    return _manager
