"""Trade evaluation rules shared by the quote and execution paths.

``evaluate_buy`` / ``evaluate_sell`` run the curve math, enforce every
rejection rule, and return the would-be state. They never touch storage:
the quote service turns raised errors into ``valid: false`` quotes, the
trade engine lets them propagate and rolls back.
"""

import math
from dataclasses import replace

from src.lp_common.errors import (
    AmountTooSmallError,
    CurveAtCapacityError,
    ExceedsCirculatingSupplyError,
    InsufficientBalanceError,
    InsufficientLiquidityError,
    InvalidAmountError,
)
from src.lp_curve.domain.models import CurveConfig, CurveState, TradeEvaluation
from src.lp_curve.domain.pricing import (
    calculate_buy_return,
    calculate_fee_distribution,
    calculate_price_impact,
    calculate_sell_return,
    can_graduate,
    get_graduation_progress,
)

# Relative slack allowed when comparing a sell with the reserve or with
# shares_sold. Both are float sums of many trades, so an exact inverse sell
# can land a few ulps above them.
RESERVE_TOLERANCE = 1e-9


def validate_amount(amount: object) -> float:
    """Reject non-numeric, non-finite and non-positive amounts."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidAmountError(amount)
    value = float(amount)
    if not math.isfinite(value) or value <= 0:
        raise InvalidAmountError(amount)
    return value


def evaluate_buy(
    agent_id: str, config: CurveConfig, state: CurveState, gross_amount_in: float
) -> TradeEvaluation:
    amount = validate_amount(gross_amount_in)
    if state.shares_sold >= config.tradeable_cap:
        raise CurveAtCapacityError(agent_id)

    result = calculate_buy_return(config, state, amount)
    if result.tokens_out <= 0 or result.net_amount_in <= 0:
        raise AmountTooSmallError()

    new_state = replace(
        state,
        shares_sold=min(config.tradeable_cap, state.shares_sold + result.tokens_out),
        reserve_raised=state.reserve_raised + result.net_amount_in,
    )
    return TradeEvaluation(
        action="buy",
        amount_in=amount,
        tokens=result.tokens_out,
        gross_amount=amount,
        net_amount=result.net_amount_in,
        fee=result.fee,
        fees=calculate_fee_distribution(config, result.fee),
        price_before=result.price_start,
        price_after=result.price_end,
        avg_price=result.avg_price,
        price_impact_pct=calculate_price_impact(result.price_start, result.price_end),
        new_state=new_state,
        graduation_progress_after=get_graduation_progress(config, new_state),
        can_graduate_after=can_graduate(config, new_state),
        capacity_clamped=result.capacity_clamped,
    )


def evaluate_sell(
    agent_id: str,
    config: CurveConfig,
    state: CurveState,
    tokens_in: float,
    holder_balance: float,
) -> TradeEvaluation:
    tokens = validate_amount(tokens_in)
    if tokens > holder_balance:
        raise InsufficientBalanceError(tokens, holder_balance)
    if tokens > state.shares_sold * (1 + RESERVE_TOLERANCE):
        raise ExceedsCirculatingSupplyError(tokens, state.shares_sold)

    # A last seller's balance can sit a few ulps above shares_sold; burn at most what is out
    result = calculate_sell_return(config, state, min(tokens, state.shares_sold))
    if result.net_amount_out <= 0:
        raise AmountTooSmallError()
    limit = state.reserve_raised * (1 + RESERVE_TOLERANCE) + 1e-12
    if result.gross_amount_out > limit:
        raise InsufficientLiquidityError(result.gross_amount_out, state.reserve_raised)

    # The whole gross payout leaves the reserve; the fee share is routed to the fee ledger.
    new_state = replace(
        state,
        shares_sold=max(0.0, state.shares_sold - tokens),
        reserve_raised=max(0.0, state.reserve_raised - result.gross_amount_out),
    )
    return TradeEvaluation(
        action="sell",
        amount_in=tokens,
        tokens=tokens,
        gross_amount=result.gross_amount_out,
        net_amount=result.net_amount_out,
        fee=result.fee,
        fees=calculate_fee_distribution(config, result.fee),
        price_before=result.price_start,
        price_after=result.price_end,
        avg_price=result.avg_price,
        price_impact_pct=calculate_price_impact(result.price_start, result.price_end),
        new_state=new_state,
        graduation_progress_after=get_graduation_progress(config, new_state),
        can_graduate_after=can_graduate(config, new_state),
    )


def evaluate_trade(
    agent_id: str,
    action: str,
    config: CurveConfig,
    state: CurveState,
    amount: float,
    holder_balance: float = 0.0,
) -> TradeEvaluation:
    if action == "buy":
        return evaluate_buy(agent_id, config, state, amount)
    return evaluate_sell(agent_id, config, state, amount, holder_balance)
