"""Admin REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_admin.application.service import AdminService
from src.lp_common.database import get_db_session
from src.lp_common.response import ApiResponse, success_response
from src.lp_gateway.auth.dependencies import Principal, require_admin

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


@router.get("/agents/{agent_id}/stats")
async def get_agent_stats(
    agent_id: str,
    request: Request,
    admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_agent_stats(db, agent_id)
    resp = success_response(result)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/verify-invariants")
async def verify_invariants(
    admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.verify_all_invariants(db)
    return success_response(result)
