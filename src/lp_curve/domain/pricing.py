"""Linear bonding-curve math.

price(s) = p0 + (p1 - p0) * min(s, cap) / cap

Every function here is pure: config and state in, numbers out. Callers that
need typed rejections (quotes, execution) go through ``evaluation.py``.
"""

import math

from src.lp_curve.domain.models import (
    BPS_DENOMINATOR,
    BuyResult,
    CurveConfig,
    CurveState,
    FeeDistribution,
    MarketData,
    SellResult,
)

# Below this slope the curve is treated as flat and the quadratic degenerates.
FLAT_SLOPE_EPSILON = 1e-15


def price_at(shares: float, config: CurveConfig) -> float:
    """Spot price after ``shares`` tokens have been sold, clamped to [0, cap]."""
    s = min(max(shares, 0.0), config.tradeable_cap)
    return config.p0 + (config.p1 - config.p0) * s / config.tradeable_cap


def calculate_current_price(state: CurveState, config: CurveConfig) -> float:
    return price_at(state.shares_sold, config)


def calculate_fee(amount: float, config: CurveConfig) -> float:
    return amount * config.trading_fee_bps / BPS_DENOMINATOR


def calculate_buy_return(
    config: CurveConfig, state: CurveState, gross_amount_in: float
) -> BuyResult:
    """Tokens minted for ``gross_amount_in`` currency.

    The integral of a linear price over [s, s + t] is
    ``price_start * t + slope / 2 * t²``; setting it equal to the net input
    gives a quadratic in t. The positive root is computed as
    ``2c / (b + sqrt(b² + 2·slope·c))``, algebraically equal to the textbook
    ``(-b + sqrt(b² - 4ac)) / 2a`` but without cancellation for small slopes.
    """
    fee = calculate_fee(gross_amount_in, config)
    net = gross_amount_in - fee
    price_start = calculate_current_price(state, config)
    remaining = max(0.0, config.tradeable_cap - state.shares_sold)
    slope = config.slope

    if abs(slope) < FLAT_SLOPE_EPSILON:
        tokens_out = net / price_start
    else:
        discriminant = price_start * price_start + 2.0 * slope * net
        if discriminant < 0:
            # Decreasing curve that cannot absorb the input before price hits zero.
            tokens_out = remaining
        else:
            tokens_out = 2.0 * net / (price_start + math.sqrt(discriminant))

    clamped = tokens_out > remaining
    if clamped:
        tokens_out = remaining

    price_end = price_at(state.shares_sold + tokens_out, config)
    return BuyResult(
        tokens_out=tokens_out,
        fee=fee,
        net_amount_in=net,
        price_start=price_start,
        price_end=price_end,
        avg_price=(price_start + price_end) / 2.0,
        capacity_clamped=clamped,
    )


def calculate_sell_return(
    config: CurveConfig, state: CurveState, tokens_in: float
) -> SellResult:
    """Currency returned for burning ``tokens_in``; endpoint average is exact for a line."""
    price_start = calculate_current_price(state, config)
    price_end = price_at(state.shares_sold - tokens_in, config)
    avg_price = (price_start + price_end) / 2.0
    gross = tokens_in * avg_price
    fee = calculate_fee(gross, config)
    return SellResult(
        gross_amount_out=gross,
        fee=fee,
        net_amount_out=gross - fee,
        price_start=price_start,
        price_end=price_end,
        avg_price=avg_price,
    )


def calculate_fee_distribution(config: CurveConfig, fee: float) -> FeeDistribution:
    """Split ``fee`` into creator / platform / lp; lp takes the remainder."""
    creator = fee * config.creator_fee_share_bps / BPS_DENOMINATOR
    platform = fee * config.platform_fee_share_bps / BPS_DENOMINATOR
    return FeeDistribution(
        creator_fee=creator,
        platform_fee=platform,
        lp_fee=fee - creator - platform,
    )


def can_graduate(config: CurveConfig, state: CurveState) -> bool:
    return state.reserve_raised >= config.graduation_threshold


def get_graduation_progress(config: CurveConfig, state: CurveState) -> float:
    return min(100.0, 100.0 * state.reserve_raised / config.graduation_threshold)


def calculate_price_impact(price_before: float, price_after: float) -> float:
    """Absolute percent move of the spot price caused by a trade."""
    if price_before <= 0:
        return 0.0
    return abs(price_after - price_before) / price_before * 100.0


def calculate_market_cap(config: CurveConfig, state: CurveState) -> float:
    return calculate_current_price(state, config) * state.shares_sold


def calculate_fdv(config: CurveConfig, state: CurveState) -> float:
    return calculate_current_price(state, config) * config.supply_for_fdv


def get_market_data(config: CurveConfig, state: CurveState) -> MarketData:
    remaining = max(0.0, config.tradeable_cap - state.shares_sold)
    return MarketData(
        current_price=calculate_current_price(state, config),
        market_cap=calculate_market_cap(config, state),
        fdv=calculate_fdv(config, state),
        shares_sold=state.shares_sold,
        shares_remaining=remaining,
        percent_sold=100.0 * state.shares_sold / config.tradeable_cap,
        reserve_raised=state.reserve_raised,
        graduation_threshold=config.graduation_threshold,
        graduation_progress=get_graduation_progress(config, state),
        phase=state.phase,
    )
