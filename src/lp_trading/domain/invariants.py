"""Curve and trade invariants, checked inside the trade transaction.

Violations raise AssertionError; the engine rolls back and the request
surfaces as a 500.

INV-1: 0 <= shares_sold <= tradeable_cap
INV-2: reserve_raised >= 0
INV-3: fee + net == gross
INV-4: creator_fee + platform_fee + lp_fee == fee
INV-5: sum of holder balances == shares_sold (store-level, see verify_agent_ledger)
INV-F: sum of fee_ledger amounts == sum of trade fees (global, see verify_fee_ledger)
"""

import logging
import math

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_curve.domain.models import CurveConfig, CurveState
from src.lp_trading.domain.models import TradeRecord

logger = logging.getLogger(__name__)

_REL_TOL = 1e-9
_ABS_TOL = 1e-9

_BALANCE_SUM_SQL = text("""
    SELECT COALESCE(SUM(token_balance), 0) AS total
    FROM positions
    WHERE agent_id = :agent_id
""")


def _close(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=_REL_TOL, abs_tol=_ABS_TOL)


def verify_curve_state(config: CurveConfig, state: CurveState) -> None:
    assert 0 <= state.shares_sold <= config.tradeable_cap, (
        f"INV-1 violated: shares_sold={state.shares_sold} outside [0, {config.tradeable_cap}]"
    )
    assert state.reserve_raised >= 0, (
        f"INV-2 violated: reserve_raised={state.reserve_raised} < 0"
    )


def verify_trade_record(record: TradeRecord) -> None:
    assert _close(record.fee_total + record.net_amount, record.gross_amount), (
        f"INV-3 violated: fee({record.fee_total}) + net({record.net_amount}) "
        f"!= gross({record.gross_amount})"
    )
    split = record.creator_fee + record.platform_fee + record.lp_fee
    assert _close(split, record.fee_total), (
        f"INV-4 violated: creator+platform+lp={split} != fee={record.fee_total}"
    )


async def verify_agent_ledger(agent_id: str, shares_sold: float, db: AsyncSession) -> None:
    """INV-5: positions must account for every token the curve has issued."""
    total = float((await db.execute(_BALANCE_SUM_SQL, {"agent_id": agent_id})).scalar_one())
    assert math.isclose(total, shares_sold, rel_tol=1e-6, abs_tol=1e-6), (
        f"INV-5 violated: agent={agent_id} sum(balances)={total} != shares_sold={shares_sold}"
    )
    logger.debug("Ledger OK: agent=%s shares_sold=%f", agent_id, shares_sold)


_FEE_LEDGER_MISMATCH_SQL = text("""
    SELECT t.agent_id, t.fee_total, COALESCE(l.ledger_total, 0) AS ledger_total
    FROM (
        SELECT agent_id, SUM(fee_total) AS fee_total FROM trades GROUP BY agent_id
    ) t
    LEFT JOIN (
        SELECT agent_id, SUM(amount) AS ledger_total FROM fee_ledger GROUP BY agent_id
    ) l ON l.agent_id = t.agent_id
""")


async def verify_fee_ledger(db: AsyncSession) -> list[str]:
    """INV-F: every fee charged on a trade is booked to a recipient. Returns violations."""
    violations: list[str] = []
    for row in (await db.execute(_FEE_LEDGER_MISMATCH_SQL)).fetchall():
        charged, booked = float(row.fee_total), float(row.ledger_total)
        if not math.isclose(charged, booked, rel_tol=1e-6, abs_tol=1e-6):
            msg = (
                f"INV-F violated: agent={row.agent_id} trade fees={charged} "
                f"!= fee ledger={booked}"
            )
            violations.append(msg)
            logger.error(msg)
    return violations
