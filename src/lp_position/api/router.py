"""Positions REST API — 2 endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_agent.infrastructure.persistence import AgentRepository
from src.lp_common.database import get_db_session
from src.lp_common.errors import AgentNotFoundError
from src.lp_common.response import ApiResponse, success_response
from src.lp_position.application.schemas import (
    HolderItem,
    HolderListResponse,
    PositionResponse,
)
from src.lp_position.domain.models import Position, holder_share_pct
from src.lp_position.infrastructure.persistence import PositionRepository

router = APIRouter(tags=["positions"])
_repo = PositionRepository()
_agents = AgentRepository()


@router.get("/positions/{agent_id}/{holder_id}")
async def get_position(
    agent_id: str,
    holder_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    pos = await _repo.get(db, agent_id, holder_id)
    if pos is None:
        # No row yet means the holder never bought.
        pos = Position(agent_id=agent_id, holder_id=holder_id)
    return success_response(PositionResponse.from_domain(pos).model_dump(mode="json"))


@router.get("/agents/{agent_id}/holders")
async def list_holders(
    agent_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    agent = await _agents.get_by_id(db, agent_id)
    if agent is None:
        raise AgentNotFoundError(agent_id)
    holders = await _repo.list_holders(db, agent_id)
    sold = agent.state.shares_sold
    data = HolderListResponse(
        agent_id=agent_id,
        items=[
            HolderItem(
                holder_id=p.holder_id,
                balance=p.token_balance,
                percentage=holder_share_pct(p.token_balance, sold),
            )
            for p in holders
        ],
        total=len(holders),
    )
    return success_response(data.model_dump())
