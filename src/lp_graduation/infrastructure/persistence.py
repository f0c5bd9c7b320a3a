"""GraduationEventRepository — raw SQL against ``graduation_events``.

The holder snapshot is stored as JSONB. ``agent_id`` is UNIQUE, so a second
event for the same agent is impossible even if two processes race.
"""
import json

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_graduation.domain.models import GraduationEvent, HolderSnapshotEntry

_GET_BY_AGENT_SQL = text("""
    SELECT id, agent_id, status, reserve_at_graduation, shares_sold_at_graduation,
           holder_snapshot, failure_reason, created_at, completed_at
    FROM graduation_events
    WHERE agent_id = :agent_id
""")

_UPSERT_PENDING_SQL = text("""
    INSERT INTO graduation_events (
        id, agent_id, status, reserve_at_graduation, shares_sold_at_graduation,
        holder_count, holder_snapshot
    ) VALUES (
        :id, :agent_id, 'pending', :reserve, :shares_sold,
        :holder_count, CAST(:snapshot AS JSONB)
    )
    ON CONFLICT (agent_id) DO UPDATE
    SET reserve_at_graduation = EXCLUDED.reserve_at_graduation,
        shares_sold_at_graduation = EXCLUDED.shares_sold_at_graduation,
        holder_count = EXCLUDED.holder_count,
        holder_snapshot = EXCLUDED.holder_snapshot
    WHERE graduation_events.status = 'pending'
""")

_MARK_COMPLETED_SQL = text("""
    UPDATE graduation_events
    SET status = 'completed', completed_at = NOW(), failure_reason = NULL
    WHERE agent_id = :agent_id
""")

_MARK_FAILED_SQL = text("""
    UPDATE graduation_events
    SET status = 'failed', failure_reason = :reason
    WHERE agent_id = :agent_id
""")

_REOPEN_SQL = text("""
    UPDATE graduation_events
    SET status = 'pending'
    WHERE agent_id = :agent_id AND status = 'failed'
""")


def _row_to_event(row: object) -> GraduationEvent:
    raw = row.holder_snapshot  # type: ignore[attr-defined]
    # asyncpg returns JSONB as str unless a codec is registered
    entries = json.loads(raw) if isinstance(raw, str) else (raw or [])
    return GraduationEvent(
        id=row.id,  # type: ignore[attr-defined]
        agent_id=row.agent_id,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        reserve_at_graduation=row.reserve_at_graduation,  # type: ignore[attr-defined]
        shares_sold_at_graduation=row.shares_sold_at_graduation,  # type: ignore[attr-defined]
        holder_snapshot=[HolderSnapshotEntry(**e) for e in entries],
        failure_reason=row.failure_reason,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        completed_at=row.completed_at,  # type: ignore[attr-defined]
    )


class GraduationEventRepository:
    async def get_by_agent(self, db: AsyncSession, agent_id: str) -> GraduationEvent | None:
        row = (await db.execute(_GET_BY_AGENT_SQL, {"agent_id": agent_id})).fetchone()
        return _row_to_event(row) if row else None

    async def save_pending(self, db: AsyncSession, event: GraduationEvent) -> None:
        snapshot = [
            {"holder_id": h.holder_id, "balance": h.balance, "percentage": h.percentage}
            for h in event.holder_snapshot
        ]
        await db.execute(
            _UPSERT_PENDING_SQL,
            {
                "id": event.id,
                "agent_id": event.agent_id,
                "reserve": event.reserve_at_graduation,
                "shares_sold": event.shares_sold_at_graduation,
                "holder_count": event.holder_count,
                "snapshot": json.dumps(snapshot),
            },
        )

    async def mark_completed(self, db: AsyncSession, agent_id: str) -> None:
        await db.execute(_MARK_COMPLETED_SQL, {"agent_id": agent_id})

    async def mark_failed(self, db: AsyncSession, agent_id: str, reason: str) -> None:
        await db.execute(_MARK_FAILED_SQL, {"agent_id": agent_id, "reason": reason})

    async def reopen(self, db: AsyncSession, agent_id: str) -> None:
        await db.execute(_REOPEN_SQL, {"agent_id": agent_id})
