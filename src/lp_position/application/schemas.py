"""Pydantic schemas for positions API."""
from datetime import datetime

from pydantic import BaseModel

from src.lp_position.domain.models import Position


class PositionResponse(BaseModel):
    agent_id: str
    holder_id: str
    token_balance: float
    last_updated: datetime | None

    @classmethod
    def from_domain(cls, position: Position) -> "PositionResponse":
        return cls(
            agent_id=position.agent_id,
            holder_id=position.holder_id,
            token_balance=position.token_balance,
            last_updated=position.last_updated,
        )


class HolderItem(BaseModel):
    holder_id: str
    balance: float
    percentage: float


class HolderListResponse(BaseModel):
    agent_id: str
    items: list[HolderItem]
    total: int
