"""DB helper for fee_ledger rows.

Called from the trade engine within the trade transaction, so a trade and
its fee credits commit or roll back together. Actual payouts happen after
commit and may fail independently.
"""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_trading.domain.models import FeeLedgerEntry

_INSERT_FEE_SQL = text("""
    INSERT INTO fee_ledger
        (entry_id, trade_id, agent_id, recipient_type, recipient_id, amount)
    VALUES (:entry_id, :trade_id, :agent_id, :recipient_type, :recipient_id, :amount)
""")


async def write_fee_entries(entries: list[FeeLedgerEntry], db: AsyncSession) -> None:
    for entry in entries:
        await db.execute(
            _INSERT_FEE_SQL,
            {
                "entry_id": entry.entry_id,
                "trade_id": entry.trade_id,
                "agent_id": entry.agent_id,
                "recipient_type": entry.recipient_type,
                "recipient_id": entry.recipient_id,
                "amount": entry.amount,
            },
        )
