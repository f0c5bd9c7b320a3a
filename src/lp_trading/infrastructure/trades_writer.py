"""Persist a single trade row to the trades table."""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_trading.domain.models import TradeRecord

_INSERT_TRADE_SQL = text("""
    INSERT INTO trades (
        trade_id, agent_id, holder_id, trade_type,
        amount_in, tokens_amount, gross_amount, net_amount,
        fee_total, creator_fee, platform_fee, lp_fee,
        price_before, price_after, avg_price,
        shares_sold_after, reserve_raised_after, holder_balance_after,
        capacity_clamped, executed_at
    ) VALUES (
        :trade_id, :agent_id, :holder_id, :trade_type,
        :amount_in, :tokens_amount, :gross_amount, :net_amount,
        :fee_total, :creator_fee, :platform_fee, :lp_fee,
        :price_before, :price_after, :avg_price,
        :shares_sold_after, :reserve_raised_after, :holder_balance_after,
        :capacity_clamped, :executed_at
    )
""")


async def write_trade(record: TradeRecord, db: AsyncSession) -> None:
    """Insert one row into the trades table within the caller's transaction."""
    await db.execute(
        _INSERT_TRADE_SQL,
        {
            "trade_id": record.trade_id,
            "agent_id": record.agent_id,
            "holder_id": record.holder_id,
            "trade_type": record.trade_type,
            "amount_in": record.amount_in,
            "tokens_amount": record.tokens_amount,
            "gross_amount": record.gross_amount,
            "net_amount": record.net_amount,
            "fee_total": record.fee_total,
            "creator_fee": record.creator_fee,
            "platform_fee": record.platform_fee,
            "lp_fee": record.lp_fee,
            "price_before": record.price_before,
            "price_after": record.price_after,
            "avg_price": record.avg_price,
            "shares_sold_after": record.shares_sold_after,
            "reserve_raised_after": record.reserve_raised_after,
            "holder_balance_after": record.holder_balance_after,
            "capacity_clamped": record.capacity_clamped,
            "executed_at": record.executed_at,
        },
    )
