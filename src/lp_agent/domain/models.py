"""Domain models for lp_agent — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime

from src.lp_curve.domain.models import CurveConfig, CurveState


@dataclass
class Agent:
    id: str
    name: str
    symbol: str
    creator_id: str
    status: str
    config: CurveConfig
    state: CurveState
    failure_reason: str | None = None
    activated_at: datetime | None = None
    failed_at: datetime | None = None
    graduated_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
