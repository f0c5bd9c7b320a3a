"""RecoveryService — operator sweeps that repair state left by partial failures.

* retry_failure / retry_agent / retry_all_pending — re-attempt recorded
  downstream failures (fee payouts, graduation notifications)
* fail_stuck_agents — agents stuck in ACTIVATING past the timeout → FAILED
* recover_graduations — LIVE agents over threshold that never graduated

Every sweep is safe to re-run: resolved failures are skipped, guarded UPDATEs
never move an agent twice, and graduate() is idempotent.
"""

import logging

from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.lp_agent.domain.repository import AgentRepositoryProtocol
from src.lp_agent.infrastructure.persistence import AgentRepository
from src.lp_common.datetime_utils import minutes_ago
from src.lp_common.enums import FailureStatus, FailureType
from src.lp_common.errors import AppError, DownstreamFailureError, FailureNotFoundError
from src.lp_graduation.application.manager import GraduationManager, get_graduation_manager
from src.lp_recovery.domain.models import (
    DownstreamFailure,
    GraduationSweepResult,
    RetryOutcome,
    RetrySummary,
)
from src.lp_recovery.domain.repository import FailureRepositoryProtocol
from src.lp_recovery.infrastructure.failures_repository import FailureRepository
from src.lp_recovery.infrastructure.payout_client import PayoutClient, get_payout_client

logger = logging.getLogger(__name__)

_PAYOUT_TYPES = {FailureType.CREATOR_PAYOUT.value, FailureType.PLATFORM_PAYOUT.value}


class RecoveryService:
    def __init__(
        self,
        failures: FailureRepositoryProtocol | None = None,
        agents: AgentRepositoryProtocol | None = None,
        payout_client: PayoutClient | None = None,
        manager: GraduationManager | None = None,
        stuck_timeout_minutes: int | None = None,
    ) -> None:
        self._failures: FailureRepositoryProtocol = failures or FailureRepository()
        self._agents: AgentRepositoryProtocol = agents or AgentRepository()
        self._payout_client = payout_client or get_payout_client()
        self._manager = manager
        self._stuck_timeout = stuck_timeout_minutes or settings.STUCK_CREATION_TIMEOUT_MINUTES

    @property
    def manager(self) -> GraduationManager:
        return self._manager or get_graduation_manager()

    # ------------------------------------------------------------------
    # Downstream failures
    # ------------------------------------------------------------------

    async def retry_failure(self, db: AsyncSession, failure_id: str) -> RetryOutcome:
        try:
            failure = await self._failures.get_for_update(db, failure_id)
            if failure is None:
                raise FailureNotFoundError(failure_id)
            if failure.status == FailureStatus.RESOLVED:
                await db.rollback()
                return RetryOutcome(failure_id, True, "Already resolved", skipped=True)
            if failure.status == FailureStatus.ABANDONED:
                await db.rollback()
                return RetryOutcome(failure_id, False, "Abandoned", skipped=True)
            if failure.retry_count >= failure.max_retries:
                await self._failures.mark_abandoned(db, failure_id)
                await db.commit()
                logger.warning(
                    "Downstream failure abandoned after %d retries: %s",
                    failure.retry_count, failure_id,
                )
                return RetryOutcome(
                    failure_id, False, "Max retries exceeded",
                    skipped=True, retry_count=failure.retry_count,
                )
            # Count the attempt before the side effect
            await self._failures.mark_retrying(db, failure_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        attempt = failure.retry_count + 1
        try:
            await self._attempt(db, failure)
        except (AppError, RedisError, OSError) as exc:
            reason = f"{failure.failure_reason} | Retry {attempt}: {exc}"
            try:
                await self._failures.mark_pending(db, failure_id, reason)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            logger.warning("Retry %d failed for %s: %s", attempt, failure_id, exc)
            return RetryOutcome(failure_id, False, str(exc), retry_count=attempt)

        try:
            await self._failures.mark_resolved(db, failure_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Downstream failure resolved on retry %d: %s", attempt, failure_id)
        return RetryOutcome(failure_id, True, "Resolved", retry_count=attempt)

    async def _attempt(self, db: AsyncSession, failure: DownstreamFailure) -> None:
        if failure.failure_type in _PAYOUT_TYPES:
            if self._payout_client is None:
                raise DownstreamFailureError("No payout webhook configured")
            await self._payout_client.send(
                failure.recipient_id or "",
                failure.amount,
                failure.reference_id,
                failure.failure_type,
            )
        elif failure.failure_type == FailureType.GRADUATION_DEPLOY:
            await self.manager.republish(db, failure.agent_id)
        else:
            raise DownstreamFailureError(f"Unknown failure type {failure.failure_type}")

    async def retry_agent(self, db: AsyncSession, agent_id: str) -> RetrySummary:
        return await self._retry_many(db, agent_id)

    async def retry_all_pending(self, db: AsyncSession) -> RetrySummary:
        return await self._retry_many(db, None)

    async def _retry_many(self, db: AsyncSession, agent_id: str | None) -> RetrySummary:
        open_failures = await self._failures.list_open(db, agent_id)
        await db.rollback()
        summary = RetrySummary()
        for failure in open_failures:
            summary.results.append(await self.retry_failure(db, failure.id))
        logger.info(
            "Retry sweep done: agent=%s total=%d successful=%d failed=%d skipped=%d",
            agent_id or "*", summary.total, summary.successful, summary.failed, summary.skipped,
        )
        return summary

    # ------------------------------------------------------------------
    # Agent sweeps
    # ------------------------------------------------------------------

    async def fail_stuck_agents(self, db: AsyncSession) -> list[str]:
        reason = f"Activation timed out after {self._stuck_timeout} minutes"
        try:
            failed = await self._agents.fail_stuck_activations(
                db, minutes_ago(self._stuck_timeout), reason
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if failed:
            logger.warning("Marked %d stuck agents FAILED: %s", len(failed), ", ".join(failed))
        return failed

    async def recover_graduations(self, db: AsyncSession) -> GraduationSweepResult:
        candidates = await self._agents.list_graduation_candidates(db)
        await db.rollback()
        result = GraduationSweepResult(checked=len(candidates))
        for agent_id in candidates:
            try:
                await self.manager.graduate(db, agent_id)
            except AppError as exc:
                logger.warning("Graduation recovery for %s failed: %s", agent_id, exc.message)
                result.errors[agent_id] = exc.kind
            except Exception:
                logger.exception("Graduation recovery for %s crashed", agent_id)
                result.errors[agent_id] = "Internal"
            else:
                result.graduated.append(agent_id)
        return result
