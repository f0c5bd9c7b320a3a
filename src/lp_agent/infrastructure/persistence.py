"""AgentRepository — concrete implementation of AgentRepositoryProtocol.

All queries use raw text() SQL (no ORM). Curve parameters and curve state live
on the same ``agents`` row so a single ``FOR UPDATE`` covers both.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.lp_agent.domain.models import Agent
from src.lp_common.enums import CurvePhase, is_forward_transition
from src.lp_curve.domain.models import CurveConfig, CurveState

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_AGENT_COLUMNS = """
    id, name, symbol, creator_id, status,
    p0, p1, tradeable_cap, graduation_threshold,
    trading_fee_bps, creator_fee_share_bps, platform_fee_share_bps, lp_fee_share_bps,
    total_supply,
    shares_sold, reserve_raised, phase, version,
    failure_reason, activated_at, failed_at, graduated_at,
    created_at, updated_at
"""

_GET_AGENT_SQL = text(f"SELECT {_AGENT_COLUMNS} FROM agents WHERE id = :agent_id")

_GET_AGENT_FOR_UPDATE_SQL = text(
    f"SELECT {_AGENT_COLUMNS} FROM agents WHERE id = :agent_id FOR UPDATE"
)

_INSERT_AGENT_SQL = text("""
    INSERT INTO agents (
        id, name, symbol, creator_id, status,
        p0, p1, tradeable_cap, graduation_threshold,
        trading_fee_bps, creator_fee_share_bps, platform_fee_share_bps, lp_fee_share_bps,
        total_supply, shares_sold, reserve_raised, phase, version
    ) VALUES (
        :id, :name, :symbol, :creator_id, :status,
        :p0, :p1, :tradeable_cap, :graduation_threshold,
        :trading_fee_bps, :creator_fee_share_bps, :platform_fee_share_bps, :lp_fee_share_bps,
        :total_supply, :shares_sold, :reserve_raised, :phase, :version
    )
""")

_UPDATE_CURVE_STATE_SQL = text("""
    UPDATE agents
    SET shares_sold = :shares_sold,
        reserve_raised = :reserve_raised,
        version = version + 1
    WHERE id = :agent_id
      AND version = :expected_version
      AND phase = 'active'
""")

_SET_PHASE_SQL = text("""
    UPDATE agents
    SET phase = :to_phase,
        version = version + 1,
        graduated_at = CASE WHEN CAST(:mark_graduated AS BOOLEAN) THEN NOW() ELSE graduated_at END
    WHERE id = :agent_id AND phase = :from_phase
""")

_ACTIVATE_SQL = text("""
    UPDATE agents
    SET status = 'LIVE', activated_at = NOW()
    WHERE id = :agent_id AND status = 'ACTIVATING'
""")

_FAIL_STUCK_SQL = text("""
    UPDATE agents
    SET status = 'FAILED', failed_at = NOW(), failure_reason = :reason
    WHERE status = 'ACTIVATING' AND created_at < :cutoff
    RETURNING id
""")

_GRADUATION_CANDIDATES_SQL = text("""
    SELECT id FROM agents
    WHERE status = 'LIVE'
      AND phase = 'active'
      AND reserve_raised >= graduation_threshold
    ORDER BY reserve_raised DESC
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_agent(row: object) -> Agent:
    config = CurveConfig(
        p0=row.p0,  # type: ignore[attr-defined]
        p1=row.p1,  # type: ignore[attr-defined]
        tradeable_cap=row.tradeable_cap,  # type: ignore[attr-defined]
        graduation_threshold=row.graduation_threshold,  # type: ignore[attr-defined]
        trading_fee_bps=row.trading_fee_bps,  # type: ignore[attr-defined]
        creator_fee_share_bps=row.creator_fee_share_bps,  # type: ignore[attr-defined]
        platform_fee_share_bps=row.platform_fee_share_bps,  # type: ignore[attr-defined]
        lp_fee_share_bps=row.lp_fee_share_bps,  # type: ignore[attr-defined]
        total_supply=row.total_supply,  # type: ignore[attr-defined]
    )
    state = CurveState(
        shares_sold=row.shares_sold,  # type: ignore[attr-defined]
        reserve_raised=row.reserve_raised,  # type: ignore[attr-defined]
        phase=row.phase,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
    )
    return Agent(
        id=row.id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        symbol=row.symbol,  # type: ignore[attr-defined]
        creator_id=row.creator_id,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        config=config,
        state=state,
        failure_reason=row.failure_reason,  # type: ignore[attr-defined]
        activated_at=row.activated_at,  # type: ignore[attr-defined]
        failed_at=row.failed_at,  # type: ignore[attr-defined]
        graduated_at=row.graduated_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AgentRepository:
    async def get_by_id(self, db: AsyncSession, agent_id: str) -> Agent | None:
        row = (await db.execute(_GET_AGENT_SQL, {"agent_id": agent_id})).fetchone()
        return _row_to_agent(row) if row else None

    async def get_for_update(self, db: AsyncSession, agent_id: str) -> Agent | None:
        row = (await db.execute(_GET_AGENT_FOR_UPDATE_SQL, {"agent_id": agent_id})).fetchone()
        return _row_to_agent(row) if row else None

    async def create(self, db: AsyncSession, agent: Agent) -> None:
        c, s = agent.config, agent.state
        await db.execute(
            _INSERT_AGENT_SQL,
            {
                "id": agent.id,
                "name": agent.name,
                "symbol": agent.symbol,
                "creator_id": agent.creator_id,
                "status": agent.status,
                "p0": c.p0,
                "p1": c.p1,
                "tradeable_cap": c.tradeable_cap,
                "graduation_threshold": c.graduation_threshold,
                "trading_fee_bps": c.trading_fee_bps,
                "creator_fee_share_bps": c.creator_fee_share_bps,
                "platform_fee_share_bps": c.platform_fee_share_bps,
                "lp_fee_share_bps": c.lp_fee_share_bps,
                "total_supply": c.total_supply,
                "shares_sold": s.shares_sold,
                "reserve_raised": s.reserve_raised,
                "phase": s.phase,
                "version": s.version,
            },
        )

    async def update_curve_state(
        self, db: AsyncSession, agent_id: str, new_state: CurveState, expected_version: int
    ) -> bool:
        result = await db.execute(
            _UPDATE_CURVE_STATE_SQL,
            {
                "agent_id": agent_id,
                "shares_sold": new_state.shares_sold,
                "reserve_raised": new_state.reserve_raised,
                "expected_version": expected_version,
            },
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def set_phase(
        self, db: AsyncSession, agent_id: str, from_phase: str, to_phase: str
    ) -> bool:
        if not is_forward_transition(CurvePhase(from_phase), CurvePhase(to_phase)):
            raise ValueError(f"Phase cannot move from {from_phase} to {to_phase}")
        result = await db.execute(
            _SET_PHASE_SQL,
            {
                "agent_id": agent_id,
                "from_phase": from_phase,
                "to_phase": to_phase,
                "mark_graduated": to_phase == "graduated",
            },
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def activate(self, db: AsyncSession, agent_id: str) -> bool:
        result = await db.execute(_ACTIVATE_SQL, {"agent_id": agent_id})
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def fail_stuck_activations(
        self, db: AsyncSession, cutoff: datetime, reason: str
    ) -> list[str]:
        rows = (
            await db.execute(_FAIL_STUCK_SQL, {"cutoff": cutoff, "reason": reason})
        ).fetchall()
        return [row.id for row in rows]

    async def list_graduation_candidates(self, db: AsyncSession) -> list[str]:
        rows = (await db.execute(_GRADUATION_CANDIDATES_SQL)).fetchall()
        return [row.id for row in rows]
