"""Unit tests for the linear bonding-curve math."""

import math

import pytest

from src.lp_curve.domain.models import CurveConfig, CurveState
from src.lp_curve.domain.pricing import (
    calculate_buy_return,
    calculate_current_price,
    calculate_fdv,
    calculate_fee,
    calculate_fee_distribution,
    calculate_market_cap,
    calculate_price_impact,
    calculate_sell_return,
    can_graduate,
    get_graduation_progress,
    get_market_data,
    price_at,
)
from src.lp_curve.domain.presets import get_preset

V5 = get_preset("v5")
V7 = get_preset("v7")


class TestPrice:
    def test_starts_at_p0(self) -> None:
        assert calculate_current_price(CurveState(), V5) == pytest.approx(0.00004)

    def test_ends_at_p1_at_cap(self) -> None:
        assert price_at(V5.tradeable_cap, V5) == pytest.approx(0.0001)

    def test_clamped_outside_range(self) -> None:
        assert price_at(-10, V5) == price_at(0, V5)
        assert price_at(V5.tradeable_cap * 2, V5) == price_at(V5.tradeable_cap, V5)

    def test_monotonic_non_decreasing(self) -> None:
        points = [V7.tradeable_cap * i / 50 for i in range(51)]
        prices = [price_at(s, V7) for s in points]
        assert all(b >= a for a, b in zip(prices, prices[1:]))

    def test_midpoint_is_average(self) -> None:
        assert price_at(V5.tradeable_cap / 2, V5) == pytest.approx(0.00007)


class TestBuy:
    def test_fee_and_net(self) -> None:
        result = calculate_buy_return(V7, CurveState(), 1000)
        assert result.fee == pytest.approx(50)
        assert result.net_amount_in == pytest.approx(950)

    def test_tokens_satisfy_integral(self) -> None:
        result = calculate_buy_return(V7, CurveState(), 1000)
        t = result.tokens_out
        cost = V7.p0 * t + V7.slope / 2 * t * t
        assert cost == pytest.approx(950, rel=1e-9)
        assert not result.capacity_clamped

    def test_price_increases_after_buy(self) -> None:
        result = calculate_buy_return(V7, CurveState(), 1000)
        assert result.price_end > result.price_start
        assert result.price_start < result.avg_price < result.price_end

    def test_capacity_clamp_exact(self) -> None:
        state = CurveState(shares_sold=V5.tradeable_cap - 100)
        result = calculate_buy_return(V5, state, 10_000)
        assert result.capacity_clamped
        assert result.tokens_out == 100
        assert result.price_end == pytest.approx(V5.p1)

    def test_flat_curve(self) -> None:
        flat = CurveConfig(
            p0=0.01, p1=0.01, tradeable_cap=1_000_000, graduation_threshold=1000,
            trading_fee_bps=100, creator_fee_share_bps=5000, platform_fee_share_bps=5000,
        )
        result = calculate_buy_return(flat, CurveState(), 101)
        assert result.tokens_out == pytest.approx(9999)
        assert result.price_end == pytest.approx(0.01)

    def test_small_slope_is_stable(self) -> None:
        # Textbook root loses precision here; the stable form must not.
        tiny = CurveConfig(
            p0=1.0, p1=1.0 + 1e-9, tradeable_cap=1e9, graduation_threshold=1e6,
            trading_fee_bps=0, creator_fee_share_bps=5000, platform_fee_share_bps=5000,
        )
        result = calculate_buy_return(tiny, CurveState(), 1000)
        assert result.tokens_out == pytest.approx(1000, rel=1e-9)


class TestSell:
    def test_round_trip_returns_net_in(self) -> None:
        buy = calculate_buy_return(V7, CurveState(), 1000)
        state = CurveState(shares_sold=buy.tokens_out, reserve_raised=buy.net_amount_in)
        sell = calculate_sell_return(V7, state, buy.tokens_out)
        assert sell.gross_amount_out == pytest.approx(buy.net_amount_in, rel=1e-9)
        assert sell.net_amount_out == pytest.approx(950 * 0.95, rel=1e-9)

    def test_price_decreases_after_sell(self) -> None:
        state = CurveState(shares_sold=1_000_000, reserve_raised=100)
        sell = calculate_sell_return(V7, state, 500_000)
        assert sell.price_end < sell.price_start

    def test_fee_plus_net_equals_gross(self) -> None:
        state = CurveState(shares_sold=10_000_000, reserve_raised=500)
        sell = calculate_sell_return(V7, state, 1_234_567)
        assert sell.fee + sell.net_amount_out == pytest.approx(sell.gross_amount_out)


class TestFees:
    def test_fee_bps(self) -> None:
        assert calculate_fee(10_000, V5) == pytest.approx(500)

    def test_three_way_split_conserves(self) -> None:
        dist = calculate_fee_distribution(V5, 500)
        assert dist.creator_fee == pytest.approx(200)
        assert dist.platform_fee == pytest.approx(200)
        assert dist.lp_fee == pytest.approx(100)
        assert dist.total == pytest.approx(500)

    def test_two_way_split_has_no_lp(self) -> None:
        dist = calculate_fee_distribution(V7, 50)
        assert dist.lp_fee == pytest.approx(0, abs=1e-12)
        assert dist.creator_fee + dist.platform_fee == pytest.approx(50)

    @pytest.mark.parametrize("fee", [0.0, 1e-9, 0.3, 12345.678])
    def test_split_sums_to_fee(self, fee: float) -> None:
        total = calculate_fee_distribution(V5, fee).total
        assert math.isclose(total, fee, rel_tol=1e-12, abs_tol=1e-12)


class TestGraduation:
    def test_threshold_boundary(self) -> None:
        below = CurveState(reserve_raised=V5.graduation_threshold - 0.01)
        at = CurveState(reserve_raised=V5.graduation_threshold)
        assert not can_graduate(V5, below)
        assert can_graduate(V5, at)

    def test_progress_capped_at_100(self) -> None:
        assert get_graduation_progress(V5, CurveState(reserve_raised=21_000)) == pytest.approx(50)
        assert get_graduation_progress(V5, CurveState(reserve_raised=1e9)) == 100.0


class TestMarketData:
    def test_price_impact_absolute(self) -> None:
        assert calculate_price_impact(1.0, 1.1) == pytest.approx(10)
        assert calculate_price_impact(1.0, 0.9) == pytest.approx(10)
        assert calculate_price_impact(0.0, 1.0) == 0.0

    def test_market_cap_and_fdv(self) -> None:
        state = CurveState(shares_sold=124_000_000)
        price = calculate_current_price(state, V7)
        assert calculate_market_cap(V7, state) == pytest.approx(price * 124_000_000)
        assert calculate_fdv(V7, state) == pytest.approx(price * 1_000_000_000)

    def test_fdv_defaults_to_cap_without_total_supply(self) -> None:
        state = CurveState(shares_sold=10)
        assert calculate_fdv(V5, state) == pytest.approx(
            calculate_current_price(state, V5) * V5.tradeable_cap
        )

    def test_market_data_snapshot(self) -> None:
        data = get_market_data(V5, CurveState(shares_sold=250_000, reserve_raised=21_000))
        assert data.shares_remaining == 750_000
        assert data.percent_sold == pytest.approx(25)
        assert data.graduation_progress == pytest.approx(50)
        assert data.phase == "active"
