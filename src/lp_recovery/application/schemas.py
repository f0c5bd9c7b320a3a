from pydantic import BaseModel, Field

from src.lp_recovery.domain.models import GraduationSweepResult, RetryOutcome, RetrySummary


class RetryFailuresRequest(BaseModel):
    """Exactly one failure, one agent's failures, or every open failure when both are empty."""

    failure_id: str | None = Field(None, min_length=1)
    agent_id: str | None = Field(None, min_length=1)


class RetryOutcomeOut(BaseModel):
    failure_id: str
    success: bool
    skipped: bool
    message: str
    retry_count: int | None

    @classmethod
    def from_domain(cls, outcome: RetryOutcome) -> "RetryOutcomeOut":
        return cls(
            failure_id=outcome.failure_id,
            success=outcome.success,
            skipped=outcome.skipped,
            message=outcome.message,
            retry_count=outcome.retry_count,
        )


class RetrySummaryResponse(BaseModel):
    successful: int
    failed: int
    skipped: int
    total: int
    results: list[RetryOutcomeOut]

    @classmethod
    def from_domain(cls, summary: RetrySummary) -> "RetrySummaryResponse":
        return cls(
            successful=summary.successful,
            failed=summary.failed,
            skipped=summary.skipped,
            total=summary.total,
            results=[RetryOutcomeOut.from_domain(r) for r in summary.results],
        )


class StuckAgentsResponse(BaseModel):
    failed_count: int
    agent_ids: list[str]


class GraduationSweepResponse(BaseModel):
    checked: int
    graduated: list[str]
    errors: dict[str, str]

    @classmethod
    def from_domain(cls, result: GraduationSweepResult) -> "GraduationSweepResponse":
        return cls(checked=result.checked, graduated=result.graduated, errors=result.errors)
