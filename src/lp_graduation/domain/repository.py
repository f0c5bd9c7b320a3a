from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_graduation.domain.models import GraduationEvent


class GraduationEventRepositoryProtocol(Protocol):
    async def get_by_agent(self, db: AsyncSession, agent_id: str) -> GraduationEvent | None: ...

    async def save_pending(self, db: AsyncSession, event: GraduationEvent) -> None:
        """Insert, or refresh the snapshot of the agent's still-pending event."""
        ...

    async def mark_completed(self, db: AsyncSession, agent_id: str) -> None: ...

    async def mark_failed(self, db: AsyncSession, agent_id: str, reason: str) -> None: ...

    async def reopen(self, db: AsyncSession, agent_id: str) -> None:
        """failed → pending, so a redeploy can report back through complete()."""
        ...


class GraduationPublisherProtocol(Protocol):
    async def publish(self, event: GraduationEvent) -> None: ...
