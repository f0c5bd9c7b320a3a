"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class AgentStatus(str, Enum):
    """Creation lifecycle of an agent; only LIVE agents trade."""
    ACTIVATING = "ACTIVATING"
    LIVE = "LIVE"
    FAILED = "FAILED"


class CurvePhase(str, Enum):
    """Curve lifecycle; moves forward only."""
    ACTIVE = "active"
    GRADUATING = "graduating"
    GRADUATED = "graduated"


class TradeAction(str, Enum):
    BUY = "buy"
    SELL = "sell"


class FeeRecipientType(str, Enum):
    CREATOR = "CREATOR"
    PLATFORM = "PLATFORM"
    LP = "LP"


class GraduationStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class FailureType(str, Enum):
    CREATOR_PAYOUT = "CREATOR_PAYOUT"
    PLATFORM_PAYOUT = "PLATFORM_PAYOUT"
    GRADUATION_DEPLOY = "GRADUATION_DEPLOY"


class FailureStatus(str, Enum):
    PENDING = "pending"
    RETRYING = "retrying"
    RESOLVED = "resolved"
    ABANDONED = "abandoned"


_PHASE_ORDER = {
    CurvePhase.ACTIVE: 0,
    CurvePhase.GRADUATING: 1,
    CurvePhase.GRADUATED: 2,
}


def is_forward_transition(current: CurvePhase, target: CurvePhase) -> bool:
    """True when ``target`` lies strictly after ``current`` in the curve lifecycle."""
    return _PHASE_ORDER[target] > _PHASE_ORDER[current]
