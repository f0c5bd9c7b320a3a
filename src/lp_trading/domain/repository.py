from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_trading.domain.models import FeeLedgerEntry, TradeRecord, TradeStats


class TradeRepositoryProtocol(Protocol):
    async def append(self, db: AsyncSession, record: TradeRecord) -> None: ...

    async def append_fee_entries(
        self, db: AsyncSession, entries: list[FeeLedgerEntry]
    ) -> None: ...

    async def list_recent(
        self, db: AsyncSession, agent_id: str, limit: int
    ) -> list[TradeRecord]: ...

    async def get_stats(self, db: AsyncSession, agent_id: str) -> TradeStats: ...
