"""Domain models for lp_position."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Position:
    """Token balance of one holder in one agent; rows are never deleted."""

    agent_id: str
    holder_id: str
    token_balance: float = 0.0
    last_updated: datetime | None = None


def holder_share_pct(balance: float, shares_sold: float) -> float:
    """Percentage of circulating curve supply held; 0 when nothing is in circulation."""
    if shares_sold <= 0:
        return 0.0
    return balance / shares_sold * 100.0
