"""Named curve parameter sets.

Earlier curve generations differ only in parameters, so each one is a
CurveConfig value rather than a separate code path.
"""

from src.lp_common.errors import InvalidCurveConfigError
from src.lp_curve.domain.models import CurveConfig

# Database-mode threshold used when no USD peg is configured.
DEFAULT_GRADUATION_THRESHOLD = 42_000.0

MIN_DYNAMIC_THRESHOLD = 25_000.0
MAX_DYNAMIC_THRESHOLD = 200_000.0
DEFAULT_TARGET_MARKET_CAP_USD = 75_000.0

CURVE_PRESETS: dict[str, CurveConfig] = {
    # 40 / 40 / 20 three-way split
    "v5": CurveConfig(
        p0=0.00004,
        p1=0.0001,
        tradeable_cap=1_000_000,
        graduation_threshold=DEFAULT_GRADUATION_THRESHOLD,
        trading_fee_bps=500,
        creator_fee_share_bps=4_000,
        platform_fee_share_bps=4_000,
        lp_fee_share_bps=2_000,
    ),
    # 248M tradeable out of 1B; the rest is LP allocation and reserves
    "v7": CurveConfig(
        p0=0.00004,
        p1=0.0003,
        tradeable_cap=248_000_000,
        graduation_threshold=42_160.0,
        trading_fee_bps=500,
        creator_fee_share_bps=5_000,
        platform_fee_share_bps=5_000,
        lp_fee_share_bps=0,
        total_supply=1_000_000_000,
    ),
}

DEFAULT_PRESET = "v7"


def get_preset(name: str) -> CurveConfig:
    try:
        return CURVE_PRESETS[name]
    except KeyError:
        raise InvalidCurveConfigError(
            f"unknown preset {name!r}; expected one of {sorted(CURVE_PRESETS)}"
        ) from None


def dynamic_graduation_threshold(
    usd_rate: float, target_market_cap_usd: float = DEFAULT_TARGET_MARKET_CAP_USD
) -> float:
    """Reserve needed to reach a USD market-cap target, bounded to [25k, 200k]."""
    if usd_rate <= 0:
        raise InvalidCurveConfigError(f"usd_rate must be positive ({usd_rate})")
    raw = target_market_cap_usd / usd_rate
    return max(MIN_DYNAMIC_THRESHOLD, min(MAX_DYNAMIC_THRESHOLD, raw))
