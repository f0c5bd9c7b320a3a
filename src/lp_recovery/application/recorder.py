"""FailureRecorder — persists DownstreamFailure rows in their own transaction.

Used from post-commit hooks and the graduation manager, where the primary
operation has already committed and must not be rolled back.
"""

import logging
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.lp_common.database import async_session_factory
from src.lp_common.id_generator import generate_id
from src.lp_recovery.domain.models import DownstreamFailure
from src.lp_recovery.domain.repository import FailureRepositoryProtocol
from src.lp_recovery.infrastructure.failures_repository import FailureRepository

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]


class FailureRecorder:
    def __init__(
        self,
        repo: FailureRepositoryProtocol | None = None,
        session_factory: SessionFactory | None = None,
        max_retries: int | None = None,
    ) -> None:
        self._repo: FailureRepositoryProtocol = repo or FailureRepository()
        self._session_factory = session_factory or async_session_factory
        self._max_retries = max_retries if max_retries is not None else settings.PAYOUT_MAX_RETRIES

    async def record(
        self,
        agent_id: str,
        failure_type: str,
        reason: str,
        reference_id: str,
        recipient_id: str | None = None,
        amount: float = 0.0,
    ) -> DownstreamFailure:
        failure = DownstreamFailure(
            id=generate_id("FLR"),
            agent_id=agent_id,
            failure_type=failure_type,
            recipient_id=recipient_id,
            amount=amount,
            reference_id=reference_id,
            failure_reason=reason,
            max_retries=self._max_retries,
        )
        async with self._session_factory() as db:
            try:
                await self._repo.create(db, failure)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.warning(
            "Downstream failure recorded: %s type=%s agent=%s ref=%s reason=%s",
            failure.id, failure_type, agent_id, reference_id, reason,
        )
        return failure
