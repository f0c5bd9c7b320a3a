"""Fee routing: one ledger entry per non-zero fee share of a trade."""

from src.lp_common.enums import FeeRecipientType
from src.lp_common.id_generator import generate_id
from src.lp_trading.domain.models import FeeLedgerEntry, TradeRecord


def lp_recipient_id(agent_id: str) -> str:
    """LP share is held for the agent's post-graduation pool."""
    return f"LP:{agent_id}"


def build_fee_entries(
    record: TradeRecord, creator_id: str, platform_recipient: str
) -> list[FeeLedgerEntry]:
    shares = (
        (FeeRecipientType.CREATOR, creator_id, record.creator_fee),
        (FeeRecipientType.PLATFORM, platform_recipient, record.platform_fee),
        (FeeRecipientType.LP, lp_recipient_id(record.agent_id), record.lp_fee),
    )
    return [
        FeeLedgerEntry(
            entry_id=generate_id("FEE"),
            trade_id=record.trade_id,
            agent_id=record.agent_id,
            recipient_type=recipient_type.value,
            recipient_id=recipient_id,
            amount=amount,
        )
        for recipient_type, recipient_id, amount in shares
        if amount > 0
    ]
