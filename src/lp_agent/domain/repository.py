"""Repository Protocol — dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_agent.domain.models import Agent
from src.lp_curve.domain.models import CurveState


class AgentRepositoryProtocol(Protocol):
    async def get_by_id(self, db: AsyncSession, agent_id: str) -> Agent | None: ...

    async def get_for_update(self, db: AsyncSession, agent_id: str) -> Agent | None:
        """Row-locking read; caller must be inside a transaction."""
        ...

    async def create(self, db: AsyncSession, agent: Agent) -> None: ...

    async def update_curve_state(
        self, db: AsyncSession, agent_id: str, new_state: CurveState, expected_version: int
    ) -> bool:
        """Write shares_sold/reserve_raised iff version matches and phase is active."""
        ...

    async def set_phase(
        self, db: AsyncSession, agent_id: str, from_phase: str, to_phase: str
    ) -> bool:
        """Guarded forward phase move; False when the agent is no longer in ``from_phase``."""
        ...

    async def activate(self, db: AsyncSession, agent_id: str) -> bool: ...

    async def fail_stuck_activations(
        self, db: AsyncSession, cutoff: datetime, reason: str
    ) -> list[str]: ...

    async def list_graduation_candidates(self, db: AsyncSession) -> list[str]: ...
