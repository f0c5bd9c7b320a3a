from datetime import datetime

from pydantic import BaseModel, Field

from src.lp_graduation.domain.models import (
    GraduationCheck,
    GraduationEvent,
    GraduationResult,
    GraduationStatusView,
)


class AgentRef(BaseModel):
    agent_id: str = Field(..., min_length=1)


class CompleteGraduationRequest(BaseModel):
    agent_id: str = Field(..., min_length=1)
    success: bool
    reason: str | None = Field(None, max_length=512)


class HolderSnapshotOut(BaseModel):
    holder_id: str
    balance: float
    percentage: float


class GraduationEventOut(BaseModel):
    id: str
    agent_id: str
    status: str
    reserve_at_graduation: float
    shares_sold_at_graduation: float
    holder_count: int
    holder_snapshot: list[HolderSnapshotOut]
    failure_reason: str | None
    created_at: datetime | None
    completed_at: datetime | None

    @classmethod
    def from_domain(cls, event: GraduationEvent) -> "GraduationEventOut":
        return cls(
            id=event.id,
            agent_id=event.agent_id,
            status=event.status,
            reserve_at_graduation=event.reserve_at_graduation,
            shares_sold_at_graduation=event.shares_sold_at_graduation,
            holder_count=event.holder_count,
            holder_snapshot=[
                HolderSnapshotOut(holder_id=h.holder_id, balance=h.balance, percentage=h.percentage)
                for h in event.holder_snapshot
            ],
            failure_reason=event.failure_reason,
            created_at=event.created_at,
            completed_at=event.completed_at,
        )


class GraduationCheckResponse(BaseModel):
    agent_id: str
    eligible: bool
    reserve_raised: float
    threshold: float
    remaining: float
    progress: float
    is_graduated: bool
    phase: str

    @classmethod
    def from_domain(cls, check: GraduationCheck) -> "GraduationCheckResponse":
        return cls(
            agent_id=check.agent_id,
            eligible=check.eligible,
            reserve_raised=check.reserve_raised,
            threshold=check.threshold,
            remaining=check.remaining,
            progress=check.progress,
            is_graduated=check.is_graduated,
            phase=check.phase,
        )


class GraduateResponse(BaseModel):
    success: bool
    status: str
    holder_count: int
    event: GraduationEventOut

    @classmethod
    def from_domain(cls, result: GraduationResult) -> "GraduateResponse":
        return cls(
            success=result.success,
            status=result.phase,
            holder_count=result.holder_count,
            event=GraduationEventOut.from_domain(result.event),
        )


class GraduationStatusResponse(BaseModel):
    agent_id: str
    is_graduated: bool
    phase: str
    status: str | None
    event: GraduationEventOut | None

    @classmethod
    def from_domain(cls, view: GraduationStatusView) -> "GraduationStatusResponse":
        return cls(
            agent_id=view.agent_id,
            is_graduated=view.is_graduated,
            phase=view.phase,
            status=view.status,
            event=GraduationEventOut.from_domain(view.event) if view.event else None,
        )
