"""006: create graduation_events table

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE graduation_events (
            id                          VARCHAR(64)         PRIMARY KEY,
            agent_id                    VARCHAR(64)         NOT NULL REFERENCES agents (id),
            status                      VARCHAR(16)         NOT NULL DEFAULT 'pending',
            reserve_at_graduation       DOUBLE PRECISION    NOT NULL,
            shares_sold_at_graduation   DOUBLE PRECISION    NOT NULL,
            holder_count                INT                 NOT NULL DEFAULT 0,
            holder_snapshot             JSONB               NOT NULL DEFAULT '[]'::jsonb,
            failure_reason              TEXT,
            created_at                  TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            completed_at                TIMESTAMPTZ,
            CONSTRAINT uq_graduation_events_agent   UNIQUE (agent_id),
            CONSTRAINT ck_graduation_events_status  CHECK (status IN ('pending', 'completed', 'failed'))
        );
    """)
    op.execute("COMMENT ON TABLE graduation_events IS 'One graduation per agent with the holder snapshot taken at graduation';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS graduation_events CASCADE;")
