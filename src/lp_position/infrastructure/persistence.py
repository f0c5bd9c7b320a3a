"""PositionRepository — raw SQL against the ``positions`` table.

Writes happen inside the trade transaction opened by the engine; this class
never commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_position.domain.models import Position

_GET_POSITION_SQL = text("""
    SELECT agent_id, holder_id, token_balance, last_updated
    FROM positions
    WHERE agent_id = :agent_id AND holder_id = :holder_id
""")

_GET_POSITION_FOR_UPDATE_SQL = text("""
    SELECT agent_id, holder_id, token_balance, last_updated
    FROM positions
    WHERE agent_id = :agent_id AND holder_id = :holder_id
    FOR UPDATE
""")

_UPSERT_POSITION_SQL = text("""
    INSERT INTO positions (agent_id, holder_id, token_balance, last_updated)
    VALUES (:agent_id, :holder_id, :delta, NOW())
    ON CONFLICT (agent_id, holder_id) DO UPDATE
    SET token_balance = positions.token_balance + EXCLUDED.token_balance,
        last_updated = NOW()
    RETURNING token_balance
""")

_LIST_HOLDERS_SQL = text("""
    SELECT agent_id, holder_id, token_balance, last_updated
    FROM positions
    WHERE agent_id = :agent_id AND token_balance > 0
    ORDER BY token_balance DESC, holder_id ASC
""")


def _row_to_position(row: object) -> Position:
    return Position(
        agent_id=row.agent_id,  # type: ignore[attr-defined]
        holder_id=row.holder_id,  # type: ignore[attr-defined]
        token_balance=row.token_balance,  # type: ignore[attr-defined]
        last_updated=row.last_updated,  # type: ignore[attr-defined]
    )


class PositionRepository:
    async def get(self, db: AsyncSession, agent_id: str, holder_id: str) -> Position | None:
        row = (
            await db.execute(_GET_POSITION_SQL, {"agent_id": agent_id, "holder_id": holder_id})
        ).fetchone()
        return _row_to_position(row) if row else None

    async def get_for_update(
        self, db: AsyncSession, agent_id: str, holder_id: str
    ) -> Position | None:
        row = (
            await db.execute(
                _GET_POSITION_FOR_UPDATE_SQL, {"agent_id": agent_id, "holder_id": holder_id}
            )
        ).fetchone()
        return _row_to_position(row) if row else None

    async def apply_delta(
        self, db: AsyncSession, agent_id: str, holder_id: str, delta: float
    ) -> float:
        result = await db.execute(
            _UPSERT_POSITION_SQL,
            {"agent_id": agent_id, "holder_id": holder_id, "delta": delta},
        )
        return float(result.scalar_one())

    async def list_holders(self, db: AsyncSession, agent_id: str) -> list[Position]:
        rows = (await db.execute(_LIST_HOLDERS_SQL, {"agent_id": agent_id})).fetchall()
        return [_row_to_position(row) for row in rows]
