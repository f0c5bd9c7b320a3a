"""lp_trading REST endpoints.

POST /trades                  — execute a buy or sell (authenticated, rate limited)
GET  /agents/{agent_id}/trades — most recent trades, newest first
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_common.database import get_db_session
from src.lp_common.errors import HolderMismatchError
from src.lp_common.response import ApiResponse, success_response
from src.lp_gateway.auth.dependencies import Principal
from src.lp_gateway.middleware.rate_limit import enforce_trade_rate_limit
from src.lp_trading.application.schemas import (
    TradeListResponse,
    TradeRecordOut,
    TradeRequest,
    TradeResponse,
)
from src.lp_trading.application.service import TradeQueryService, get_trade_engine

router = APIRouter(tags=["trading"])

_query_service = TradeQueryService()


@router.post("/trades")
async def execute_trade(
    req: TradeRequest,
    request: Request,
    principal: Annotated[Principal, Depends(enforce_trade_rate_limit)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    if req.holder_id != principal.holder_id:
        raise HolderMismatchError(req.holder_id)
    record = await get_trade_engine().execute(
        db, req.agent_id, req.holder_id, req.action, req.amount, req.min_out
    )
    result = TradeResponse(success=True, trade=TradeRecordOut.from_domain(record))
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/agents/{agent_id}/trades")
async def list_trades(
    agent_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    records = await _query_service.list_recent(db, agent_id, limit)
    result = TradeListResponse(
        agent_id=agent_id,
        items=[TradeRecordOut.from_domain(r) for r in records],
        total=len(records),
    )
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
