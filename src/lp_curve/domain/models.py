"""Domain models for lp_curve — pure dataclasses, no I/O."""

from dataclasses import dataclass

from src.lp_common.enums import CurvePhase
from src.lp_common.errors import InvalidCurveConfigError

BPS_DENOMINATOR = 10_000


@dataclass(frozen=True)
class CurveConfig:
    """Immutable per-agent curve parameters, fixed at agent creation."""

    p0: float
    p1: float
    tradeable_cap: float
    graduation_threshold: float
    trading_fee_bps: int
    creator_fee_share_bps: int
    platform_fee_share_bps: int
    lp_fee_share_bps: int = 0
    total_supply: float | None = None

    @property
    def slope(self) -> float:
        return (self.p1 - self.p0) / self.tradeable_cap

    @property
    def supply_for_fdv(self) -> float:
        return self.total_supply if self.total_supply is not None else self.tradeable_cap

    def validate(self) -> None:
        if not (self.p0 > 0 and self.p1 > 0):
            raise InvalidCurveConfigError(f"prices must be positive (p0={self.p0}, p1={self.p1})")
        if not self.tradeable_cap > 0:
            raise InvalidCurveConfigError(f"tradeable_cap must be positive ({self.tradeable_cap})")
        if not self.graduation_threshold > 0:
            raise InvalidCurveConfigError(
                f"graduation_threshold must be positive ({self.graduation_threshold})"
            )
        if not 0 <= self.trading_fee_bps < BPS_DENOMINATOR:
            raise InvalidCurveConfigError(f"trading_fee_bps out of range ({self.trading_fee_bps})")
        shares = (self.creator_fee_share_bps, self.platform_fee_share_bps, self.lp_fee_share_bps)
        if any(s < 0 for s in shares):
            raise InvalidCurveConfigError(f"fee shares must be non-negative {shares}")
        if sum(shares) != BPS_DENOMINATOR:
            raise InvalidCurveConfigError(
                f"creator + platform + lp fee shares must equal {BPS_DENOMINATOR} bps, got {sum(shares)}"
            )
        if self.total_supply is not None and self.total_supply < self.tradeable_cap:
            raise InvalidCurveConfigError("total_supply must be >= tradeable_cap")


@dataclass
class CurveState:
    """Mutable per-agent curve state; ``version`` backs the optimistic write check."""

    shares_sold: float = 0.0
    reserve_raised: float = 0.0
    phase: str = CurvePhase.ACTIVE.value
    version: int = 0


@dataclass(frozen=True)
class FeeDistribution:
    creator_fee: float
    platform_fee: float
    lp_fee: float

    @property
    def total(self) -> float:
        return self.creator_fee + self.platform_fee + self.lp_fee


@dataclass(frozen=True)
class BuyResult:
    tokens_out: float
    fee: float
    net_amount_in: float
    price_start: float
    price_end: float
    avg_price: float
    capacity_clamped: bool = False


@dataclass(frozen=True)
class SellResult:
    gross_amount_out: float
    fee: float
    net_amount_out: float
    price_start: float
    price_end: float
    avg_price: float


@dataclass(frozen=True)
class TradeEvaluation:
    """Outcome of a validated buy or sell against a given state.

    ``new_state`` is the state that would result from applying the trade;
    quote and execution share this object so both paths apply identical rules.
    """

    action: str
    amount_in: float
    tokens: float
    gross_amount: float
    net_amount: float
    fee: float
    fees: FeeDistribution
    price_before: float
    price_after: float
    avg_price: float
    price_impact_pct: float
    new_state: CurveState
    graduation_progress_after: float
    can_graduate_after: bool
    capacity_clamped: bool = False

    @property
    def output_amount(self) -> float:
        """What the trader receives: tokens for a buy, net currency for a sell."""
        return self.tokens if self.action == "buy" else self.net_amount


@dataclass(frozen=True)
class MarketData:
    current_price: float
    market_cap: float
    fdv: float
    shares_sold: float
    shares_remaining: float
    percent_sold: float
    reserve_raised: float
    graduation_threshold: float
    graduation_progress: float
    phase: str
