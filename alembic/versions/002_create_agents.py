"""002: create agents table (curve config + curve state on one row)

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE agents (
            id                      VARCHAR(64)         PRIMARY KEY,
            name                    VARCHAR(128)        NOT NULL,
            symbol                  VARCHAR(16)         NOT NULL,
            creator_id              VARCHAR(64)         NOT NULL,
            status                  VARCHAR(16)         NOT NULL DEFAULT 'ACTIVATING',
            p0                      DOUBLE PRECISION    NOT NULL,
            p1                      DOUBLE PRECISION    NOT NULL,
            tradeable_cap           DOUBLE PRECISION    NOT NULL,
            graduation_threshold    DOUBLE PRECISION    NOT NULL,
            trading_fee_bps         INT                 NOT NULL,
            creator_fee_share_bps   INT                 NOT NULL,
            platform_fee_share_bps  INT                 NOT NULL,
            lp_fee_share_bps        INT                 NOT NULL DEFAULT 0,
            total_supply            DOUBLE PRECISION,
            shares_sold             DOUBLE PRECISION    NOT NULL DEFAULT 0,
            reserve_raised          DOUBLE PRECISION    NOT NULL DEFAULT 0,
            phase                   VARCHAR(16)         NOT NULL DEFAULT 'active',
            version                 BIGINT              NOT NULL DEFAULT 0,
            failure_reason          TEXT,
            activated_at            TIMESTAMPTZ,
            failed_at               TIMESTAMPTZ,
            graduated_at            TIMESTAMPTZ,
            created_at              TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_agents_status         CHECK (status IN ('ACTIVATING', 'LIVE', 'FAILED')),
            CONSTRAINT ck_agents_phase          CHECK (phase IN ('active', 'graduating', 'graduated')),
            CONSTRAINT ck_agents_prices_gt_0    CHECK (p0 > 0 AND p1 > 0),
            CONSTRAINT ck_agents_cap_gt_0       CHECK (tradeable_cap > 0),
            CONSTRAINT ck_agents_threshold_gt_0 CHECK (graduation_threshold > 0),
            CONSTRAINT ck_agents_fee_bps        CHECK (trading_fee_bps >= 0 AND trading_fee_bps < 10000),
            CONSTRAINT ck_agents_fee_split      CHECK (
                creator_fee_share_bps >= 0 AND platform_fee_share_bps >= 0 AND lp_fee_share_bps >= 0
                AND creator_fee_share_bps + platform_fee_share_bps + lp_fee_share_bps = 10000
            ),
            CONSTRAINT ck_agents_supply_gte_cap CHECK (total_supply IS NULL OR total_supply >= tradeable_cap),
            CONSTRAINT ck_agents_shares_sold    CHECK (shares_sold >= 0 AND shares_sold <= tradeable_cap),
            CONSTRAINT ck_agents_reserve_gte_0  CHECK (reserve_raised >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_agents_status_phase ON agents (status, phase);")
    op.execute("CREATE INDEX idx_agents_creator ON agents (creator_id);")
    op.execute("""
        CREATE TRIGGER trg_agents_updated_at
            BEFORE UPDATE ON agents
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE agents IS 'Agent tokens: bonding curve parameters and live curve state';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS agents CASCADE;")
