"""TradeRepository — append and query the trade ledger."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_trading.domain.models import FeeLedgerEntry, TradeRecord, TradeStats
from src.lp_trading.infrastructure.fee_ledger import write_fee_entries
from src.lp_trading.infrastructure.trades_writer import write_trade

_LIST_RECENT_SQL = text("""
    SELECT trade_id, agent_id, holder_id, trade_type,
           amount_in, tokens_amount, gross_amount, net_amount,
           fee_total, creator_fee, platform_fee, lp_fee,
           price_before, price_after, avg_price,
           shares_sold_after, reserve_raised_after, holder_balance_after,
           capacity_clamped, executed_at
    FROM trades
    WHERE agent_id = :agent_id
    ORDER BY executed_at DESC, trade_id DESC
    LIMIT :limit
""")

_STATS_SQL = text("""
    SELECT
        COUNT(*) AS total_trades,
        COUNT(*) FILTER (WHERE trade_type = 'buy') AS buy_count,
        COUNT(*) FILTER (WHERE trade_type = 'sell') AS sell_count,
        COALESCE(SUM(gross_amount), 0) AS total_volume,
        COALESCE(SUM(fee_total), 0) AS total_fees,
        COUNT(DISTINCT holder_id) AS unique_traders
    FROM trades
    WHERE agent_id = :agent_id
""")


def _row_to_trade(row: object) -> TradeRecord:
    return TradeRecord(
        trade_id=row.trade_id,  # type: ignore[attr-defined]
        agent_id=row.agent_id,  # type: ignore[attr-defined]
        holder_id=row.holder_id,  # type: ignore[attr-defined]
        trade_type=row.trade_type,  # type: ignore[attr-defined]
        amount_in=row.amount_in,  # type: ignore[attr-defined]
        tokens_amount=row.tokens_amount,  # type: ignore[attr-defined]
        gross_amount=row.gross_amount,  # type: ignore[attr-defined]
        net_amount=row.net_amount,  # type: ignore[attr-defined]
        fee_total=row.fee_total,  # type: ignore[attr-defined]
        creator_fee=row.creator_fee,  # type: ignore[attr-defined]
        platform_fee=row.platform_fee,  # type: ignore[attr-defined]
        lp_fee=row.lp_fee,  # type: ignore[attr-defined]
        price_before=row.price_before,  # type: ignore[attr-defined]
        price_after=row.price_after,  # type: ignore[attr-defined]
        avg_price=row.avg_price,  # type: ignore[attr-defined]
        shares_sold_after=row.shares_sold_after,  # type: ignore[attr-defined]
        reserve_raised_after=row.reserve_raised_after,  # type: ignore[attr-defined]
        holder_balance_after=row.holder_balance_after,  # type: ignore[attr-defined]
        capacity_clamped=row.capacity_clamped,  # type: ignore[attr-defined]
        executed_at=row.executed_at,  # type: ignore[attr-defined]
    )


class TradeRepository:
    async def append(self, db: AsyncSession, record: TradeRecord) -> None:
        await write_trade(record, db)

    async def append_fee_entries(self, db: AsyncSession, entries: list[FeeLedgerEntry]) -> None:
        await write_fee_entries(entries, db)

    async def list_recent(
        self, db: AsyncSession, agent_id: str, limit: int
    ) -> list[TradeRecord]:
        rows = (
            await db.execute(_LIST_RECENT_SQL, {"agent_id": agent_id, "limit": limit})
        ).fetchall()
        return [_row_to_trade(row) for row in rows]

    async def get_stats(self, db: AsyncSession, agent_id: str) -> TradeStats:
        row = (await db.execute(_STATS_SQL, {"agent_id": agent_id})).fetchone()
        return TradeStats(
            agent_id=agent_id,
            total_trades=int(row.total_trades) if row else 0,
            buy_count=int(row.buy_count) if row else 0,
            sell_count=int(row.sell_count) if row else 0,
            total_volume=float(row.total_volume) if row else 0.0,
            total_fees=float(row.total_fees) if row else 0.0,
            unique_traders=int(row.unique_traders) if row else 0,
        )
