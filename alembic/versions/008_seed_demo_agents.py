"""008: seed demo agents

Revision ID: 008
Revises: 007
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # One LIVE agent per curve preset
    op.execute("""
        INSERT INTO agents (
            id, name, symbol, creator_id, status,
            p0, p1, tradeable_cap, graduation_threshold,
            trading_fee_bps, creator_fee_share_bps, platform_fee_share_bps, lp_fee_share_bps,
            total_supply, activated_at
        ) VALUES
            ('AGT-DEMO-V5', 'Demo Agent V5', 'DEMO5', 'CREATOR-DEMO', 'LIVE',
             0.00004, 0.0001, 1000000, 42000,
             500, 4000, 4000, 2000,
             NULL, NOW()),
            ('AGT-DEMO-V7', 'Demo Agent V7', 'DEMO7', 'CREATOR-DEMO', 'LIVE',
             0.00004, 0.0003, 248000000, 42160,
             500, 5000, 5000, 0,
             1000000000, NOW());
    """)


def downgrade() -> None:
    op.execute("DELETE FROM agents WHERE id IN ('AGT-DEMO-V5', 'AGT-DEMO-V7');")
