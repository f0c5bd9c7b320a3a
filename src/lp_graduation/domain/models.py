"""Domain models for lp_graduation."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from src.lp_common.enums import GraduationStatus


@dataclass(frozen=True)
class HolderSnapshotEntry:
    holder_id: str
    balance: float
    percentage: float


@dataclass
class GraduationEvent:
    """One per agent; written ``pending`` before the phase flip."""

    id: str
    agent_id: str
    reserve_at_graduation: float
    shares_sold_at_graduation: float
    holder_snapshot: list[HolderSnapshotEntry] = field(default_factory=list)
    status: str = GraduationStatus.PENDING.value
    failure_reason: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def holder_count(self) -> int:
        return len(self.holder_snapshot)

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe form used for the pub/sub notification."""
        return {
            "event_id": self.id,
            "agent_id": self.agent_id,
            "status": self.status,
            "reserve_at_graduation": self.reserve_at_graduation,
            "shares_sold_at_graduation": self.shares_sold_at_graduation,
            "holder_count": self.holder_count,
            "holder_snapshot": [asdict(h) for h in self.holder_snapshot],
        }


@dataclass(frozen=True)
class GraduationCheck:
    agent_id: str
    eligible: bool
    reserve_raised: float
    threshold: float
    remaining: float
    progress: float
    phase: str

    @property
    def is_graduated(self) -> bool:
        return self.phase != "active"


@dataclass(frozen=True)
class GraduationResult:
    success: bool
    phase: str
    event: GraduationEvent

    @property
    def holder_count(self) -> int:
        return self.event.holder_count


@dataclass(frozen=True)
class GraduationStatusView:
    agent_id: str
    phase: str
    event: GraduationEvent | None

    @property
    def is_graduated(self) -> bool:
        return self.phase != "active"

    @property
    def status(self) -> str | None:
        return self.event.status if self.event else None
