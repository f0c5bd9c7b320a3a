"""Domain models for lp_trading."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TradeRecord:
    """Append-only ledger row written in the same transaction as the state change."""

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
    executed_at: datetime
    capacity_clamped: bool = False


@dataclass(frozen=True)
class FeeLedgerEntry:
    entry_id: str
    trade_id: str
    agent_id: str
    recipient_type: str
    recipient_id: str
    amount: float


@dataclass(frozen=True)
class TradeStats:
    agent_id: str
    total_trades: int
    buy_count: int
    sell_count: int
    total_volume: float
    total_fees: float
    unique_traders: int
