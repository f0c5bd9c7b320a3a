from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_recovery.domain.models import DownstreamFailure


class FailureRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, failure: DownstreamFailure) -> None: ...

    async def get_for_update(
        self, db: AsyncSession, failure_id: str
    ) -> DownstreamFailure | None: ...

    async def list_open(
        self, db: AsyncSession, agent_id: str | None = None
    ) -> list[DownstreamFailure]:
        """Failures still pending or retrying, oldest first."""
        ...

    async def mark_retrying(self, db: AsyncSession, failure_id: str) -> None:
        """Set status=retrying, increment retry_count, stamp last_retry_at."""
        ...

    async def mark_resolved(self, db: AsyncSession, failure_id: str) -> None: ...

    async def mark_pending(self, db: AsyncSession, failure_id: str, reason: str) -> None: ...

    async def mark_abandoned(self, db: AsyncSession, failure_id: str) -> None: ...
