"""Pydantic schemas for the quote endpoint.

A rejected quote is still a successful response: ``valid`` is false and
``error`` carries the rejection kind (e.g. "InsufficientBalance").
"""

import math
from typing import Literal

from pydantic import BaseModel

from src.lp_common.errors import AppError
from src.lp_curve.domain.models import TradeEvaluation


class QuoteRequest(BaseModel):
    agent_id: str
    action: Literal["buy", "sell"]
    amount: float
    holder_id: str | None = None


class QuoteResponse(BaseModel):
    valid: bool
    agent_id: str
    action: str
    amount_in: float
    error: str | None = None
    message: str | None = None
    shares_out: float | None = None
    prompt_out: float | None = None
    gross_amount: float = 0.0
    net_amount: float = 0.0
    fee: float = 0.0
    creator_fee: float = 0.0
    platform_fee: float = 0.0
    lp_fee: float = 0.0
    price_before: float = 0.0
    avg_price: float = 0.0
    new_price: float = 0.0
    price_impact: float = 0.0
    graduation_progress_after: float | None = None
    can_graduate_after: bool = False
    capacity_clamped: bool = False

    @classmethod
    def rejected(
        cls, agent_id: str, action: str, amount: object, exc: AppError
    ) -> "QuoteResponse":
        numeric = isinstance(amount, (int, float)) and not isinstance(amount, bool)
        return cls(
            valid=False,
            agent_id=agent_id,
            action=action,
            amount_in=float(amount) if numeric and math.isfinite(amount) else 0.0,  # type: ignore[arg-type]
            error=exc.kind,
            message=exc.message,
        )

    @classmethod
    def from_evaluation(cls, agent_id: str, ev: TradeEvaluation) -> "QuoteResponse":
        return cls(
            valid=True,
            agent_id=agent_id,
            action=ev.action,
            amount_in=ev.amount_in,
            shares_out=ev.tokens if ev.action == "buy" else None,
            prompt_out=ev.net_amount if ev.action == "sell" else None,
            gross_amount=ev.gross_amount,
            net_amount=ev.net_amount,
            fee=ev.fee,
            creator_fee=ev.fees.creator_fee,
            platform_fee=ev.fees.platform_fee,
            lp_fee=ev.fees.lp_fee,
            price_before=ev.price_before,
            avg_price=ev.avg_price,
            new_price=ev.price_after,
            price_impact=ev.price_impact_pct,
            graduation_progress_after=ev.graduation_progress_after,
            can_graduate_after=ev.can_graduate_after,
            capacity_clamped=ev.capacity_clamped,
        )
