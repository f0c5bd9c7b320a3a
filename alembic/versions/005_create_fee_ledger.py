"""005: create fee_ledger table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE fee_ledger (
            entry_id        VARCHAR(64)         PRIMARY KEY,
            trade_id        VARCHAR(64)         NOT NULL REFERENCES trades (trade_id),
            agent_id        VARCHAR(64)         NOT NULL REFERENCES agents (id),
            recipient_type  VARCHAR(16)         NOT NULL,
            recipient_id    VARCHAR(64)         NOT NULL,
            amount          DOUBLE PRECISION    NOT NULL,
            created_at      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_fee_ledger_recipient_type CHECK (recipient_type IN ('CREATOR', 'PLATFORM', 'LP')),
            CONSTRAINT ck_fee_ledger_amount_gt_0    CHECK (amount > 0)
        );
    """)
    op.execute("CREATE INDEX idx_fee_ledger_trade ON fee_ledger (trade_id);")
    op.execute("CREATE INDEX idx_fee_ledger_recipient ON fee_ledger (recipient_type, recipient_id);")
    op.execute("COMMENT ON TABLE fee_ledger IS 'Per-trade fee credits to creator, platform and LP';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS fee_ledger CASCADE;")
