"""007: create downstream_failures table

Revision ID: 007
Revises: 006
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE downstream_failures (
            id              VARCHAR(64)         PRIMARY KEY,
            agent_id        VARCHAR(64)         NOT NULL REFERENCES agents (id),
            failure_type    VARCHAR(32)         NOT NULL,
            recipient_id    VARCHAR(64),
            amount          DOUBLE PRECISION    NOT NULL DEFAULT 0,
            reference_id    VARCHAR(64)         NOT NULL,
            failure_reason  TEXT                NOT NULL,
            status          VARCHAR(16)         NOT NULL DEFAULT 'pending',
            retry_count     INT                 NOT NULL DEFAULT 0,
            max_retries     INT                 NOT NULL DEFAULT 3,
            last_retry_at   TIMESTAMPTZ,
            resolved_at     TIMESTAMPTZ,
            created_at      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_downstream_failures_type      CHECK (
                failure_type IN ('CREATOR_PAYOUT', 'PLATFORM_PAYOUT', 'GRADUATION_DEPLOY')
            ),
            CONSTRAINT ck_downstream_failures_status    CHECK (
                status IN ('pending', 'retrying', 'resolved', 'abandoned')
            ),
            CONSTRAINT ck_downstream_failures_retries   CHECK (retry_count >= 0 AND max_retries >= 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_downstream_failures_open
            ON downstream_failures (agent_id, created_at)
            WHERE status IN ('pending', 'retrying');
    """)
    op.execute("COMMENT ON TABLE downstream_failures IS 'Post-commit side effects that failed and await retry';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS downstream_failures CASCADE;")
