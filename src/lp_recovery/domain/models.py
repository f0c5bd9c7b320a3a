"""Domain models for lp_recovery."""

from dataclasses import dataclass, field
from datetime import datetime

from src.lp_common.enums import FailureStatus


@dataclass
class DownstreamFailure:
    """A side effect that failed after its trade or graduation committed.

    Lifecycle: pending → retrying → resolved, or → abandoned once
    ``retry_count`` reaches ``max_retries``.
    """

    id: str
    agent_id: str
    failure_type: str
    recipient_id: str | None
    amount: float
    reference_id: str
    failure_reason: str
    status: str = FailureStatus.PENDING.value
    retry_count: int = 0
    max_retries: int = 3
    last_retry_at: datetime | None = None
    resolved_at: datetime | None = None
    created_at: datetime | None = None


@dataclass
class RetryOutcome:
    failure_id: str
    success: bool
    message: str
    skipped: bool = False
    retry_count: int | None = None


@dataclass
class RetrySummary:
    results: list[RetryOutcome] = field(default_factory=list)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success and not r.skipped)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def total(self) -> int:
        return len(self.results)


@dataclass
class GraduationSweepResult:
    checked: int = 0
    graduated: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
