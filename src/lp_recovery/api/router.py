"""Operator recovery endpoints (admin only).

POST /admin/recovery/retry-failures   — retry recorded downstream failures
POST /admin/recovery/stuck-agents     — fail agents stuck in ACTIVATING
POST /admin/recovery/graduations      — graduate eligible agents that were missed
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_common.database import get_db_session
from src.lp_common.response import ApiResponse, success_response
from src.lp_gateway.auth.dependencies import Principal, require_admin
from src.lp_recovery.application.schemas import (
    GraduationSweepResponse,
    RetryFailuresRequest,
    RetrySummaryResponse,
    StuckAgentsResponse,
)
from src.lp_recovery.application.service import RecoveryService
from src.lp_recovery.domain.models import RetrySummary

router = APIRouter(prefix="/admin/recovery", tags=["recovery"])

_service = RecoveryService()


@router.post("/retry-failures")
async def retry_failures(
    req: RetryFailuresRequest,
    request: Request,
    admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    if req.failure_id:
        summary = RetrySummary([await _service.retry_failure(db, req.failure_id)])
    elif req.agent_id:
        summary = await _service.retry_agent(db, req.agent_id)
    else:
        summary = await _service.retry_all_pending(db)
    resp = success_response(RetrySummaryResponse.from_domain(summary).model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/stuck-agents")
async def fail_stuck_agents(
    request: Request,
    admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    failed = await _service.fail_stuck_agents(db)
    result = StuckAgentsResponse(failed_count=len(failed), agent_ids=failed)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/graduations")
async def recover_graduations(
    request: Request,
    admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.recover_graduations(db)
    resp = success_response(GraduationSweepResponse.from_domain(result).model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
