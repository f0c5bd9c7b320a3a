"""004: create trades table (append-only)

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE trades (
            trade_id                VARCHAR(64)         PRIMARY KEY,
            agent_id                VARCHAR(64)         NOT NULL REFERENCES agents (id),
            holder_id               VARCHAR(64)         NOT NULL,
            trade_type              VARCHAR(8)          NOT NULL,
            amount_in               DOUBLE PRECISION    NOT NULL,
            tokens_amount           DOUBLE PRECISION    NOT NULL,
            gross_amount            DOUBLE PRECISION    NOT NULL,
            net_amount              DOUBLE PRECISION    NOT NULL,
            fee_total               DOUBLE PRECISION    NOT NULL,
            creator_fee             DOUBLE PRECISION    NOT NULL,
            platform_fee            DOUBLE PRECISION    NOT NULL,
            lp_fee                  DOUBLE PRECISION    NOT NULL DEFAULT 0,
            price_before            DOUBLE PRECISION    NOT NULL,
            price_after             DOUBLE PRECISION    NOT NULL,
            avg_price               DOUBLE PRECISION    NOT NULL,
            shares_sold_after       DOUBLE PRECISION    NOT NULL,
            reserve_raised_after    DOUBLE PRECISION    NOT NULL,
            holder_balance_after    DOUBLE PRECISION    NOT NULL,
            capacity_clamped        BOOLEAN             NOT NULL DEFAULT FALSE,
            executed_at             TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_trades_type       CHECK (trade_type IN ('buy', 'sell')),
            CONSTRAINT ck_trades_tokens_gt_0 CHECK (tokens_amount > 0),
            CONSTRAINT ck_trades_fee_gte_0  CHECK (fee_total >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_trades_agent_time ON trades (agent_id, executed_at DESC);")
    op.execute("CREATE INDEX idx_trades_holder ON trades (holder_id);")
    op.execute("COMMENT ON TABLE trades IS 'Executed curve trades; append-only';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS trades CASCADE;")
