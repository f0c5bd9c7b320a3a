"""Unit tests for GraduationManager and the post-trade graduation signal."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from src.lp_common.agent_locks import AgentLockRegistry
from src.lp_common.errors import (
    AgentNotActiveError,
    AgentNotFoundError,
    AlreadyGraduatedError,
    GraduationEventNotFoundError,
    GraduationNotPendingError,
    NotEligibleError,
)
from src.lp_graduation.application.manager import GraduationManager
from src.lp_graduation.application.signal import GraduationSignal
from src.lp_graduation.domain.models import GraduationEvent
from src.lp_recovery.application.recorder import FailureRecorder
from tests.unit.fakes import (
    FakeAgentRepo,
    FakeEventRepo,
    FakeFailureRepo,
    FakePositionRepo,
    FakePublisher,
    FakeSession,
    make_agent,
)

SHARES = 30_000_000.0


class _Graduation:
    def __init__(self, requires_deployment: bool = True, publish_error: Exception | None = None):
        self.agents = FakeAgentRepo(
            make_agent("AGT-RDY", preset="v7", shares_sold=SHARES, reserve_raised=45_000),
            make_agent("AGT-LOW", preset="v7", shares_sold=1_000, reserve_raised=10),
            make_agent("AGT-NEW", preset="v7", status="ACTIVATING", reserve_raised=45_000),
        )
        self.positions = FakePositionRepo()
        self.positions.seed("AGT-RDY", "alice", SHARES * 0.75)
        self.positions.seed("AGT-RDY", "bob", SHARES * 0.25)
        self.positions.seed("AGT-RDY", "carol", 0.0)
        self.events = FakeEventRepo()
        self.publisher = FakePublisher(error=publish_error)
        self.failures = FakeFailureRepo()
        self.manager = GraduationManager(
            agents=self.agents,
            positions=self.positions,
            events=self.events,
            publisher=self.publisher,
            recorder=FailureRecorder(repo=self.failures, session_factory=FakeSession),
            locks=AgentLockRegistry(),
            requires_deployment=requires_deployment,
        )


@pytest.fixture
def grad() -> _Graduation:
    return _Graduation()


class TestCheck:
    async def test_eligible(self, grad: _Graduation) -> None:
        check = await grad.manager.check(FakeSession(), "AGT-RDY")
        assert check.eligible
        assert check.remaining == 0
        assert check.progress == 100.0
        assert not check.is_graduated

    async def test_not_eligible(self, grad: _Graduation) -> None:
        check = await grad.manager.check(FakeSession(), "AGT-LOW")
        assert not check.eligible
        assert check.remaining == pytest.approx(42_160 - 10)

    async def test_graduated_agent_is_not_eligible(self, grad: _Graduation) -> None:
        await grad.manager.graduate(FakeSession(), "AGT-RDY")
        check = await grad.manager.check(FakeSession(), "AGT-RDY")
        assert not check.eligible
        assert check.is_graduated

    async def test_unknown(self, grad: _Graduation) -> None:
        with pytest.raises(AgentNotFoundError):
            await grad.manager.check(FakeSession(), "AGT-X")


class TestGraduate:
    async def test_moves_to_graduating_and_snapshots_holders(self, grad: _Graduation) -> None:
        db = FakeSession()
        result = await grad.manager.graduate(db, "AGT-RDY")

        assert result.success
        assert result.phase == "graduating"
        assert result.holder_count == 2
        assert grad.agents.agents["AGT-RDY"].state.phase == "graduating"
        assert db.commit.await_count == 2

        event = grad.events.events["AGT-RDY"]
        assert event.status == "pending"
        assert event.id.startswith("GRD")
        assert event.reserve_at_graduation == 45_000
        assert event.shares_sold_at_graduation == SHARES
        assert [(h.holder_id, h.percentage) for h in event.holder_snapshot] == [
            ("alice", pytest.approx(75.0)),
            ("bob", pytest.approx(25.0)),
        ]
        assert [e.id for e in grad.publisher.published] == [event.id]

    async def test_direct_graduation_completes_event(self) -> None:
        grad = _Graduation(requires_deployment=False)
        result = await grad.manager.graduate(FakeSession(), "AGT-RDY")
        assert result.phase == "graduated"
        assert result.event.status == "completed"
        assert grad.events.events["AGT-RDY"].status == "completed"
        assert grad.agents.agents["AGT-RDY"].graduated_at is not None

    async def test_second_call_is_rejected_without_changes(self, grad: _Graduation) -> None:
        first = await grad.manager.graduate(FakeSession(), "AGT-RDY")
        version = grad.agents.agents["AGT-RDY"].state.version
        with pytest.raises(AlreadyGraduatedError):
            await grad.manager.graduate(FakeSession(), "AGT-RDY")
        assert grad.agents.agents["AGT-RDY"].state.version == version
        assert grad.events.events["AGT-RDY"].id == first.event.id
        assert len(grad.publisher.published) == 1

    async def test_below_threshold(self, grad: _Graduation) -> None:
        db = FakeSession()
        with pytest.raises(NotEligibleError):
            await grad.manager.graduate(db, "AGT-LOW")
        db.rollback.assert_awaited_once()
        assert grad.events.events == {}

    async def test_not_live(self, grad: _Graduation) -> None:
        with pytest.raises(AgentNotActiveError):
            await grad.manager.graduate(FakeSession(), "AGT-NEW")

    async def test_unknown_agent(self, grad: _Graduation) -> None:
        with pytest.raises(AgentNotFoundError):
            await grad.manager.graduate(FakeSession(), "AGT-X")

    async def test_finishes_interrupted_graduation(self, grad: _Graduation) -> None:
        # Pending event written, phase flip lost
        await grad.events.save_pending(
            FakeSession(),
            GraduationEvent(
                id="GRD-OLD",
                agent_id="AGT-RDY",
                reserve_at_graduation=45_000,
                shares_sold_at_graduation=SHARES,
            ),
        )
        result = await grad.manager.graduate(FakeSession(), "AGT-RDY")
        assert result.event.id == "GRD-OLD"
        assert grad.agents.agents["AGT-RDY"].state.phase == "graduating"

    @pytest.mark.parametrize("success", [True, False])
    async def test_deployment_report_before_phase_flip_rejected(
        self, grad: _Graduation, success: bool
    ) -> None:
        await grad.events.save_pending(
            FakeSession(),
            GraduationEvent(
                id="GRD-OLD",
                agent_id="AGT-RDY",
                reserve_at_graduation=45_000,
                shares_sold_at_graduation=SHARES,
            ),
        )
        with pytest.raises(GraduationNotPendingError):
            await grad.manager.complete(FakeSession(), "AGT-RDY", success=success)
        assert grad.events.events["AGT-RDY"].status == "pending"
        assert grad.failures.failures == {}

        # The agent can still finish graduating
        result = await grad.manager.graduate(FakeSession(), "AGT-RDY")
        assert result.event.id == "GRD-OLD"
        assert grad.agents.agents["AGT-RDY"].state.phase == "graduating"

    async def test_resnapshots_when_trade_slips_in(self, grad: _Graduation) -> None:
        class TradingBetweenCommits(FakeAgentRepo):
            reads = 0

            async def get_for_update(self, db: Any, agent_id: str) -> Any:
                self.reads += 1
                if self.reads == 2:
                    # A trade on another process lands between the two transactions
                    agent = self.agents[agent_id]
                    agent.state.shares_sold += 1_000
                    agent.state.version += 1
                    grad.positions.balances[(agent_id, "dave")] = 1_000
                return await super().get_for_update(db, agent_id)

        grad.manager._agents = TradingBetweenCommits(  # noqa: SLF001
            *grad.agents.agents.values()
        )
        result = await grad.manager.graduate(FakeSession(), "AGT-RDY")
        holders = {h.holder_id for h in result.event.holder_snapshot}
        assert holders == {"alice", "bob", "dave"}
        assert result.event.shares_sold_at_graduation == SHARES + 1_000
        assert grad.events.events["AGT-RDY"].holder_count == 3

    async def test_publish_failure_is_recorded_not_raised(self) -> None:
        grad = _Graduation(publish_error=ConnectionError("redis down"))
        result = await grad.manager.graduate(FakeSession(), "AGT-RDY")
        assert result.success
        assert grad.agents.agents["AGT-RDY"].state.phase == "graduating"
        [failure] = grad.failures.failures.values()
        assert failure.failure_type == "GRADUATION_DEPLOY"
        assert failure.reference_id == result.event.id
        assert "redis down" in failure.failure_reason


class TestComplete:
    async def test_success(self, grad: _Graduation) -> None:
        await grad.manager.graduate(FakeSession(), "AGT-RDY")
        view = await grad.manager.complete(FakeSession(), "AGT-RDY", success=True)
        assert view.phase == "graduated"
        assert view.status == "completed"
        assert view.is_graduated
        assert grad.agents.agents["AGT-RDY"].state.phase == "graduated"

    async def test_failure_records_downstream_failure(self, grad: _Graduation) -> None:
        await grad.manager.graduate(FakeSession(), "AGT-RDY")
        view = await grad.manager.complete(
            FakeSession(), "AGT-RDY", success=False, reason="pool creation reverted"
        )
        assert view.status == "failed"
        assert view.phase == "graduating"
        assert grad.events.events["AGT-RDY"].failure_reason == "pool creation reverted"
        [failure] = grad.failures.failures.values()
        assert failure.failure_type == "GRADUATION_DEPLOY"
        assert failure.failure_reason == "pool creation reverted"

    async def test_completed_event_cannot_complete_again(self, grad: _Graduation) -> None:
        await grad.manager.graduate(FakeSession(), "AGT-RDY")
        await grad.manager.complete(FakeSession(), "AGT-RDY", success=True)
        with pytest.raises(GraduationNotPendingError):
            await grad.manager.complete(FakeSession(), "AGT-RDY", success=True)

    async def test_no_event(self, grad: _Graduation) -> None:
        with pytest.raises(GraduationEventNotFoundError):
            await grad.manager.complete(FakeSession(), "AGT-LOW", success=True)


class TestRepublish:
    async def test_reopens_failed_event(self, grad: _Graduation) -> None:
        await grad.manager.graduate(FakeSession(), "AGT-RDY")
        await grad.manager.complete(FakeSession(), "AGT-RDY", success=False, reason="x")
        event = await grad.manager.republish(FakeSession(), "AGT-RDY")
        assert event.status == "pending"
        assert grad.events.events["AGT-RDY"].status == "pending"
        assert len(grad.publisher.published) == 2

    async def test_publish_error_propagates(self, grad: _Graduation) -> None:
        await grad.manager.graduate(FakeSession(), "AGT-RDY")
        grad.publisher.error = ConnectionError("still down")
        with pytest.raises(ConnectionError):
            await grad.manager.republish(FakeSession(), "AGT-RDY")

    async def test_missing_event(self, grad: _Graduation) -> None:
        with pytest.raises(GraduationEventNotFoundError):
            await grad.manager.republish(FakeSession(), "AGT-RDY")


class TestStatus:
    async def test_before_and_after(self, grad: _Graduation) -> None:
        before = await grad.manager.status(FakeSession(), "AGT-RDY")
        assert not before.is_graduated
        assert before.status is None
        await grad.manager.graduate(FakeSession(), "AGT-RDY")
        after = await grad.manager.status(FakeSession(), "AGT-RDY")
        assert after.is_graduated
        assert after.status == "pending"


class TestSignal:
    async def test_graduates_when_threshold_crossed(self, grad: _Graduation) -> None:
        signal = GraduationSignal(grad.manager, session_factory=FakeSession)
        agent = grad.agents.agents["AGT-RDY"]
        await signal(agent, MagicMock(trade_id="TRD-1"), MagicMock(can_graduate_after=True))
        assert grad.agents.agents["AGT-RDY"].state.phase == "graduating"

    async def test_ignores_trades_below_threshold(self, grad: _Graduation) -> None:
        signal = GraduationSignal(grad.manager, session_factory=FakeSession)
        agent = grad.agents.agents["AGT-RDY"]
        await signal(agent, MagicMock(trade_id="TRD-1"), MagicMock(can_graduate_after=False))
        assert grad.agents.agents["AGT-RDY"].state.phase == "active"

    async def test_swallows_already_graduated(self, grad: _Graduation) -> None:
        await grad.manager.graduate(FakeSession(), "AGT-RDY")
        signal = GraduationSignal(grad.manager, session_factory=FakeSession)
        agent = grad.agents.agents["AGT-RDY"]
        await signal(agent, MagicMock(trade_id="TRD-2"), MagicMock(can_graduate_after=True))
        assert len(grad.publisher.published) == 1
