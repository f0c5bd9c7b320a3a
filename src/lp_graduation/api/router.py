"""lp_graduation REST endpoints.

POST /graduation/check      — eligibility and progress
POST /graduation/graduate   — admin: run graduation now
GET  /graduation/status     — phase plus the graduation event, if any
POST /graduation/complete   — admin: deployment outcome callback
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_common.database import get_db_session
from src.lp_common.response import ApiResponse, success_response
from src.lp_gateway.auth.dependencies import Principal, require_admin
from src.lp_graduation.application.manager import get_graduation_manager
from src.lp_graduation.application.schemas import (
    AgentRef,
    CompleteGraduationRequest,
    GraduateResponse,
    GraduationCheckResponse,
    GraduationStatusResponse,
)

router = APIRouter(prefix="/graduation", tags=["graduation"])


@router.post("/check")
async def check_graduation(
    req: AgentRef,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    check = await get_graduation_manager().check(db, req.agent_id)
    resp = success_response(GraduationCheckResponse.from_domain(check).model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/graduate")
async def graduate(
    req: AgentRef,
    request: Request,
    admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await get_graduation_manager().graduate(db, req.agent_id)
    resp = success_response(GraduateResponse.from_domain(result).model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/status")
async def graduation_status(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    agent_id: str = Query(..., min_length=1),
) -> ApiResponse:
    view = await get_graduation_manager().status(db, agent_id)
    resp = success_response(GraduationStatusResponse.from_domain(view).model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/complete")
async def complete_graduation(
    req: CompleteGraduationRequest,
    request: Request,
    admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    view = await get_graduation_manager().complete(db, req.agent_id, req.success, req.reason)
    resp = success_response(GraduationStatusResponse.from_domain(view).model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
