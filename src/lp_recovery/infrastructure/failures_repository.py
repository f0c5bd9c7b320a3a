"""FailureRepository — raw SQL against ``downstream_failures``."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_recovery.domain.models import DownstreamFailure

_COLUMNS = """
    id, agent_id, failure_type, recipient_id, amount, reference_id,
    failure_reason, status, retry_count, max_retries,
    last_retry_at, resolved_at, created_at
"""

_INSERT_SQL = text("""
    INSERT INTO downstream_failures (
        id, agent_id, failure_type, recipient_id, amount, reference_id,
        failure_reason, status, retry_count, max_retries
    ) VALUES (
        :id, :agent_id, :failure_type, :recipient_id, :amount, :reference_id,
        :failure_reason, :status, :retry_count, :max_retries
    )
""")

_GET_FOR_UPDATE_SQL = text(
    f"SELECT {_COLUMNS} FROM downstream_failures WHERE id = :failure_id FOR UPDATE"
)

_LIST_OPEN_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM downstream_failures
    WHERE status IN ('pending', 'retrying')
      AND (CAST(:agent_id AS TEXT) IS NULL OR agent_id = CAST(:agent_id AS TEXT))
    ORDER BY created_at ASC, id ASC
""")

_MARK_RETRYING_SQL = text("""
    UPDATE downstream_failures
    SET status = 'retrying', retry_count = retry_count + 1, last_retry_at = NOW()
    WHERE id = :failure_id
""")

_MARK_RESOLVED_SQL = text("""
    UPDATE downstream_failures
    SET status = 'resolved', resolved_at = NOW()
    WHERE id = :failure_id
""")

_MARK_PENDING_SQL = text("""
    UPDATE downstream_failures
    SET status = 'pending', failure_reason = :reason
    WHERE id = :failure_id
""")

_MARK_ABANDONED_SQL = text("""
    UPDATE downstream_failures
    SET status = 'abandoned'
    WHERE id = :failure_id
""")


def _row_to_failure(row: object) -> DownstreamFailure:
    return DownstreamFailure(
        id=row.id,  # type: ignore[attr-defined]
        agent_id=row.agent_id,  # type: ignore[attr-defined]
        failure_type=row.failure_type,  # type: ignore[attr-defined]
        recipient_id=row.recipient_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        failure_reason=row.failure_reason,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        retry_count=row.retry_count,  # type: ignore[attr-defined]
        max_retries=row.max_retries,  # type: ignore[attr-defined]
        last_retry_at=row.last_retry_at,  # type: ignore[attr-defined]
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class FailureRepository:
    async def create(self, db: AsyncSession, failure: DownstreamFailure) -> None:
        await db.execute(
            _INSERT_SQL,
            {
                "id": failure.id,
                "agent_id": failure.agent_id,
                "failure_type": failure.failure_type,
                "recipient_id": failure.recipient_id,
                "amount": failure.amount,
                "reference_id": failure.reference_id,
                "failure_reason": failure.failure_reason,
                "status": failure.status,
                "retry_count": failure.retry_count,
                "max_retries": failure.max_retries,
            },
        )

    async def get_for_update(
        self, db: AsyncSession, failure_id: str
    ) -> DownstreamFailure | None:
        row = (await db.execute(_GET_FOR_UPDATE_SQL, {"failure_id": failure_id})).fetchone()
        return _row_to_failure(row) if row else None

    async def list_open(
        self, db: AsyncSession, agent_id: str | None = None
    ) -> list[DownstreamFailure]:
        rows = (await db.execute(_LIST_OPEN_SQL, {"agent_id": agent_id})).fetchall()
        return [_row_to_failure(row) for row in rows]

    async def mark_retrying(self, db: AsyncSession, failure_id: str) -> None:
        await db.execute(_MARK_RETRYING_SQL, {"failure_id": failure_id})

    async def mark_resolved(self, db: AsyncSession, failure_id: str) -> None:
        await db.execute(_MARK_RESOLVED_SQL, {"failure_id": failure_id})

    async def mark_pending(self, db: AsyncSession, failure_id: str, reason: str) -> None:
        await db.execute(_MARK_PENDING_SQL, {"failure_id": failure_id, "reason": reason})

    async def mark_abandoned(self, db: AsyncSession, failure_id: str) -> None:
        await db.execute(_MARK_ABANDONED_SQL, {"failure_id": failure_id})
