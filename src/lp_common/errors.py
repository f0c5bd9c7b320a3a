"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Holder
  3xxx: Agent
  4xxx: Trade
  5xxx: Graduation
  6xxx: Recovery
  9xxx: System

Every error also carries a stable ``kind`` string that API callers can switch on
without parsing the message.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        kind: str = "Internal",
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.kind = kind
        super().__init__(message)


# --- 1xxx: Auth/Holder ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401, "InvalidCredentials")


class HolderMismatchError(AppError):
    def __init__(self, holder_id: str) -> None:
        super().__init__(
            1006, f"Token subject does not match holder {holder_id}", 403, "HolderMismatch"
        )


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1007, "Admin role required", 403, "AdminRequired")


# --- 3xxx: Agent ---

class AgentNotFoundError(AppError):
    def __init__(self, agent_id: str) -> None:
        super().__init__(3001, f"Agent not found: {agent_id}", 404, "AgentNotFound")


class AgentNotActiveError(AppError):
    def __init__(self, agent_id: str, status: str) -> None:
        super().__init__(
            3002, f"Agent {agent_id} is not tradeable (status={status})", 422, "NotActive"
        )


class AgentGraduatedError(AppError):
    def __init__(self, agent_id: str, phase: str) -> None:
        super().__init__(
            3003,
            f"Agent {agent_id} has left the curve (phase={phase})",
            422,
            "AgentGraduated",
        )


class InvalidCurveConfigError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3004, f"Invalid curve config: {detail}", 422, "InvalidCurveConfig")


class AgentNotActivatingError(AppError):
    def __init__(self, agent_id: str, status: str) -> None:
        super().__init__(
            3005,
            f"Agent {agent_id} cannot be activated from status {status}",
            409,
            "AgentNotActivating",
        )


# --- 4xxx: Trade ---

class InvalidAmountError(AppError):
    def __init__(self, amount: object) -> None:
        super().__init__(4001, f"Invalid amount: {amount}", 422, "InvalidAmount")


class AmountTooSmallError(AppError):
    def __init__(self) -> None:
        super().__init__(4002, "Amount too small after fees", 422, "AmountTooSmall")


class CurveAtCapacityError(AppError):
    def __init__(self, agent_id: str) -> None:
        super().__init__(
            4003, f"Curve for agent {agent_id} is at capacity", 422, "CurveAtCapacity"
        )


class InsufficientLiquidityError(AppError):
    def __init__(self, required: float, available: float) -> None:
        super().__init__(
            4004,
            f"Insufficient liquidity: payout {required:.8f} exceeds reserve {available:.8f}",
            422,
            "InsufficientLiquidity",
        )


class ExceedsCirculatingSupplyError(AppError):
    def __init__(self, tokens: float, shares_sold: float) -> None:
        super().__init__(
            4005,
            f"Cannot sell {tokens} tokens: only {shares_sold} in circulation",
            422,
            "ExceedsCirculatingSupply",
        )


class SlippageExceededError(AppError):
    def __init__(self, expected_min: float, actual: float) -> None:
        super().__init__(
            4006,
            f"Slippage exceeded: minimum {expected_min}, got {actual}",
            422,
            "SlippageExceeded",
        )


class HolderRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(4007, "holder_id is required for sell quotes", 422, "HolderRequired")


class InsufficientBalanceError(AppError):
    def __init__(self, required: float, available: float) -> None:
        super().__init__(
            4008,
            f"Insufficient balance: required {required} tokens, available {available}",
            422,
            "InsufficientBalance",
        )


class PersistenceConflictError(AppError):
    def __init__(self, agent_id: str) -> None:
        super().__init__(
            4009,
            f"Concurrent update detected for agent {agent_id}; re-quote and retry",
            409,
            "PersistenceConflict",
        )


class TradeTimeoutError(AppError):
    def __init__(self) -> None:
        super().__init__(
            4010,
            "Trade timed out with unknown outcome; re-query positions and trades before retrying",
            504,
            "TradeTimeout",
        )


class QuoteTimeoutError(AppError):
    def __init__(self) -> None:
        super().__init__(4011, "Quote timed out", 504, "QuoteTimeout")


# --- 5xxx: Graduation ---

class AlreadyGraduatedError(AppError):
    def __init__(self, agent_id: str, phase: str) -> None:
        super().__init__(
            5001, f"Agent {agent_id} already graduated (phase={phase})", 409, "AlreadyGraduated"
        )


class NotEligibleError(AppError):
    def __init__(self, reserve: float, threshold: float) -> None:
        super().__init__(
            5002,
            f"Not eligible to graduate: reserve {reserve:.4f} below threshold {threshold:.4f}",
            422,
            "NotEligible",
        )


class GraduationEventNotFoundError(AppError):
    def __init__(self, agent_id: str) -> None:
        super().__init__(
            5003, f"No graduation event for agent {agent_id}", 404, "GraduationEventNotFound"
        )


class GraduationNotPendingError(AppError):
    def __init__(self, agent_id: str, status: str) -> None:
        super().__init__(
            5004,
            f"Graduation event for agent {agent_id} is not pending (status={status})",
            409,
            "GraduationNotPending",
        )


# --- 6xxx: Recovery ---

class FailureNotFoundError(AppError):
    def __init__(self, failure_id: str) -> None:
        super().__init__(6001, f"Failure record not found: {failure_id}", 404, "FailureNotFound")


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429, "RateLimited")


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500, "Internal")


class DownstreamFailureError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Downstream failure: {detail}", 502, "DownstreamFailure")
