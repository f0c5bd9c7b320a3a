"""003: create positions table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE positions (
            id              BIGSERIAL           PRIMARY KEY,
            agent_id        VARCHAR(64)         NOT NULL REFERENCES agents (id),
            holder_id       VARCHAR(64)         NOT NULL,
            token_balance   DOUBLE PRECISION    NOT NULL DEFAULT 0,
            last_updated    TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_positions_agent_holder    UNIQUE (agent_id, holder_id),
            CONSTRAINT ck_positions_balance_gte_0   CHECK (token_balance >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_positions_holder ON positions (holder_id);")
    op.execute("COMMENT ON TABLE positions IS 'Token balance per (agent, holder); rows are never deleted';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
