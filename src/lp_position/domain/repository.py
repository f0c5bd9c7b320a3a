from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_position.domain.models import Position


class PositionRepositoryProtocol(Protocol):
    async def get(self, db: AsyncSession, agent_id: str, holder_id: str) -> Position | None: ...

    async def get_for_update(
        self, db: AsyncSession, agent_id: str, holder_id: str
    ) -> Position | None: ...

    async def apply_delta(
        self, db: AsyncSession, agent_id: str, holder_id: str, delta: float
    ) -> float:
        """Create-or-update the position by ``delta`` tokens; returns the new balance."""
        ...

    async def list_holders(self, db: AsyncSession, agent_id: str) -> list[Position]:
        """Positions with a positive balance, largest first."""
        ...
