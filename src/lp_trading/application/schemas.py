"""Pydantic schemas for trade execution and trade history."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from src.lp_trading.domain.models import TradeRecord


class TradeRequest(BaseModel):
    agent_id: str = Field(..., min_length=1)
    holder_id: str = Field(..., min_length=1)
    action: Literal["buy", "sell"]
    # Range checks live in the curve layer so every entry point rejects alike
    amount: float
    min_out: float | None = Field(None, ge=0)


class TradeRecordOut(BaseModel):
    trade_id: str
    agent_id: str
    holder_id: str
    trade_type: str
    amount_in: float
    tokens_amount: float
    gross_amount: float
    net_amount: float
    fee_total: float
    creator_fee: float
    platform_fee: float
    lp_fee: float
    price_before: float
    price_after: float
    avg_price: float
    shares_sold_after: float
    reserve_raised_after: float
    holder_balance_after: float
    capacity_clamped: bool
    executed_at: datetime

    @classmethod
    def from_domain(cls, record: TradeRecord) -> "TradeRecordOut":
        return cls(
            trade_id=record.trade_id,
            agent_id=record.agent_id,
            holder_id=record.holder_id,
            trade_type=record.trade_type,
            amount_in=record.amount_in,
            tokens_amount=record.tokens_amount,
            gross_amount=record.gross_amount,
            net_amount=record.net_amount,
            fee_total=record.fee_total,
            creator_fee=record.creator_fee,
            platform_fee=record.platform_fee,
            lp_fee=record.lp_fee,
            price_before=record.price_before,
            price_after=record.price_after,
            avg_price=record.avg_price,
            shares_sold_after=record.shares_sold_after,
            reserve_raised_after=record.reserve_raised_after,
            holder_balance_after=record.holder_balance_after,
            capacity_clamped=record.capacity_clamped,
            executed_at=record.executed_at,
        )


class TradeResponse(BaseModel):
    success: bool
    trade: TradeRecordOut


class TradeListResponse(BaseModel):
    agent_id: str
    items: list[TradeRecordOut]
    total: int
