"""lp_agent REST endpoints.

POST /agents                       — register an agent (ACTIVATING)
POST /agents/{agent_id}/activate   — admin: deployment confirmed, agent goes LIVE
GET  /agents/{agent_id}            — agent detail with curve config and state
GET  /agents/{agent_id}/market     — price, market cap, FDV, graduation progress
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_agent.application.schemas import CreateAgentRequest
from src.lp_agent.application.service import AgentApplicationService
from src.lp_common.database import get_db_session
from src.lp_common.response import ApiResponse, success_response
from src.lp_gateway.auth.dependencies import Principal, get_current_holder, require_admin

router = APIRouter(prefix="/agents", tags=["agents"])

_service = AgentApplicationService()


@router.post("", status_code=201)
async def create_agent(
    req: CreateAgentRequest,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_holder)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_agent(db, req, principal.holder_id)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{agent_id}/activate")
async def activate_agent(
    agent_id: str,
    request: Request,
    admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.activate_agent(db, agent_id)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{agent_id}")
async def get_agent(
    agent_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_agent(db, agent_id)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{agent_id}/market")
async def get_market_data(
    agent_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_market_data(db, agent_id)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
