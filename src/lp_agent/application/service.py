"""AgentApplicationService — agent registration, activation and read models.

Agents are created in ACTIVATING (the out-of-process token deployment has
not confirmed yet) and move to LIVE on activation. Agents that never get
activated are swept to FAILED by the recovery service.
"""

import logging
from dataclasses import replace

from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_agent.application.schemas import (
    AgentResponse,
    CreateAgentRequest,
    MarketDataResponse,
)
from src.lp_agent.domain.models import Agent
from src.lp_agent.domain.repository import AgentRepositoryProtocol
from src.lp_agent.infrastructure.persistence import AgentRepository
from src.lp_common.datetime_utils import utc_now
from src.lp_common.enums import AgentStatus
from src.lp_common.errors import AgentNotActivatingError, AgentNotFoundError
from src.lp_common.id_generator import generate_id
from src.lp_curve.domain.models import CurveConfig, CurveState
from src.lp_curve.domain.presets import (
    DEFAULT_PRESET,
    dynamic_graduation_threshold,
    get_preset,
)
from src.lp_curve.domain.pricing import get_market_data

logger = logging.getLogger(__name__)


def _resolve_config(req: CreateAgentRequest) -> CurveConfig:
    if req.curve is not None:
        config = req.curve.to_domain()
    else:
        config = get_preset(req.preset or DEFAULT_PRESET)
    if req.usd_rate is not None:
        # Threshold tracks a fixed USD market-cap target at the given rate
        config = replace(config, graduation_threshold=dynamic_graduation_threshold(req.usd_rate))
    config.validate()
    return config


class AgentApplicationService:
    def __init__(self, repo: AgentRepositoryProtocol | None = None) -> None:
        self._repo: AgentRepositoryProtocol = repo or AgentRepository()

    async def create_agent(
        self, db: AsyncSession, req: CreateAgentRequest, creator_id: str
    ) -> AgentResponse:
        config = _resolve_config(req)
        now = utc_now()
        agent = Agent(
            id=generate_id("AGT"),
            name=req.name,
            symbol=req.symbol.upper(),
            creator_id=creator_id,
            status=AgentStatus.ACTIVATING.value,
            config=config,
            state=CurveState(),
            created_at=now,
            updated_at=now,
        )
        try:
            await self._repo.create(db, agent)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Agent created: id=%s symbol=%s creator=%s", agent.id, agent.symbol, creator_id)
        return AgentResponse.from_domain(agent)

    async def activate_agent(self, db: AsyncSession, agent_id: str) -> AgentResponse:
        try:
            agent = await self._repo.get_for_update(db, agent_id)
            if agent is None:
                raise AgentNotFoundError(agent_id)
            if not await self._repo.activate(db, agent_id):
                raise AgentNotActivatingError(agent_id, agent.status)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        agent.status = AgentStatus.LIVE.value
        agent.activated_at = utc_now()
        logger.info("Agent activated: id=%s", agent_id)
        return AgentResponse.from_domain(agent)

    async def get_agent(self, db: AsyncSession, agent_id: str) -> AgentResponse:
        agent = await self._repo.get_by_id(db, agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return AgentResponse.from_domain(agent)

    async def get_market_data(self, db: AsyncSession, agent_id: str) -> MarketDataResponse:
        agent = await self._repo.get_by_id(db, agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return MarketDataResponse.from_domain(agent_id, get_market_data(agent.config, agent.state))
