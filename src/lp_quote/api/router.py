"""POST /quote — public trade preview."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_common.database import get_db_session
from src.lp_common.response import ApiResponse, success_response
from src.lp_quote.application.schemas import QuoteRequest
from src.lp_quote.application.service import QuoteService

router = APIRouter(prefix="/quote", tags=["quote"])

_service = QuoteService()


@router.post("")
async def get_quote(
    req: QuoteRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.quote(db, req.agent_id, req.action, req.amount, req.holder_id)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
