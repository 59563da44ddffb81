import math
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from calculations import calculate_projection
from config import GROWTH_TIERS, LIQUIDATION_RISK_TIERS
from insights import (
    GROWTH_TIER_ORDER,
    LIQUIDATION_RISK_ORDER,
    build_insight_data,
    calculate_cashflows,
    calculate_escape_velocity,
    calculate_portfolio_growth,
    calculate_portfolio_mix,
    classify_growth,
    classify_liquidation_risk,
    calculate_liquidation_data,
    compare_escape_velocity,
    find_escape_velocity_year,
    loan_risk_level,
)
from loans import calculate_liquidation_buffer
from models import PortfolioConfig


def _config(**overrides):
    params = dict(
        btc_stack=10.0,
        savings_pct=100.0,
        investments_pct=0.0,
        speculation_pct=0.0,
        exchange_rate=10000.0,
        btc_price_rates=(0.0,) * 10,
        inflation_rates=(0.0,) * 10,
        income_rates=(10.0,) * 10,
        starting_expenses=1500.0,
        time_horizon=4,
        activation_year=2,
        income_allocation_pct=10.0,
        income_reinvestment_pct=0.0,
        collateral_pct=0.0,
        enable_annual_reallocation=False,
    )
    params.update(overrides)
    return PortfolioConfig(**params)


def test_escape_velocity_first_year_income_exceeds_expenses():
    income = [50000] * 3 + [120000, 150000]
    expenses = [75000] * 5
    assert find_escape_velocity_year(income, expenses) == 3
    assert find_escape_velocity_year(income, expenses, time_horizon=4) == 3


def test_escape_velocity_is_strict():
    assert find_escape_velocity_year([75000, 80000], [75000, 75000]) == 1


def test_escape_velocity_never_reached():
    assert find_escape_velocity_year([1, 2, 3], [10, 10, 10]) is None
    # Only years inside the horizon are scanned
    assert find_escape_velocity_year([0, 0, 0, 100], [10] * 4, time_horizon=2) is None


def test_escape_velocity_disabled():
    assert find_escape_velocity_year([100], [10], enabled=False) is None


def test_escape_velocity_swapping_series_only_changes_year():
    income = [10, 20, 30, 40]
    expenses = [25, 25, 25, 25]
    assert find_escape_velocity_year(income, expenses) == 2
    assert find_escape_velocity_year(expenses, income) == 0


def test_escape_velocity_base_and_leveraged():
    config = _config(collateral_pct=50.0, ltv_ratio=40.0, loan_rate=5.0)
    escape = calculate_escape_velocity(calculate_projection(config), config)
    assert escape.base_year is None
    assert escape.leveraged_year == 0


def test_zero_collateral_skips_leveraged_escape_velocity():
    config = _config(starting_expenses=500.0)
    escape = calculate_escape_velocity(calculate_projection(config), config)
    assert escape.base_year == 0
    assert escape.leveraged_year is None


def test_compare_escape_velocity_outcomes_are_distinct():
    leverage = compare_escape_velocity(5, 3)
    base = compare_escape_velocity(3, 5)
    tie = compare_escape_velocity(4, 4)

    assert (leverage.outcome, leverage.advantage_years) == ("leverage", 2)
    assert (base.outcome, base.advantage_years) == ("base", -2)
    assert (tie.outcome, tie.advantage_years) == ("tie", 0)
    assert "2 year(s) earlier" in leverage.message
    assert "2 year(s) earlier" in base.message
    assert len({leverage.message, base.message, tie.message}) == 3


def test_compare_escape_velocity_requires_both_years():
    assert compare_escape_velocity(None, 3) is None
    assert compare_escape_velocity(3, None) is None


def test_growth_tiers_are_monotonic():
    samples = [-50, -0.01, 0, 0.01, 50, 100, 250, 500, 750, 1000, 10000]
    ranks = [GROWTH_TIER_ORDER.index(classify_growth(value)) for value in samples]
    assert ranks == sorted(ranks)
    assert classify_growth(-50) == GROWTH_TIER_ORDER[0]
    assert classify_growth(10000) == GROWTH_TIER_ORDER[-1]


def test_growth_tier_boundaries_are_exclusive():
    for name, threshold in GROWTH_TIERS[1:]:
        assert classify_growth(threshold) != name
        assert classify_growth(threshold + 0.01) == name


def test_liquidation_risk_tiers_are_monotonic():
    samples = [-40, 0, 24.99, 25, 49.99, 50, 99.99, 100, 400]
    ranks = [LIQUIDATION_RISK_ORDER.index(classify_liquidation_risk(value)) for value in samples]
    assert ranks == sorted(ranks)
    assert classify_liquidation_risk(-40) == "at_risk"
    assert classify_liquidation_risk(400) == "very_safe"


def test_liquidation_risk_boundaries():
    for name, upper in LIQUIDATION_RISK_TIERS:
        if upper is None:
            continue
        assert classify_liquidation_risk(upper - 0.01) == name
        assert classify_liquidation_risk(upper) != name
    assert classify_liquidation_risk(100) == "very_safe"


def test_loan_risk_level():
    assert loan_risk_level(150) == "low"
    assert loan_risk_level(75) == "moderate"
    assert loan_risk_level(30) == "high"
    assert loan_risk_level(10) == "extreme"


def test_portfolio_growth_reports_cost_of_income():
    config = _config()
    growth = calculate_portfolio_growth(calculate_projection(config), config)
    assert growth.final_btc_with_income == pytest.approx(9)
    assert growth.final_btc_without_income == pytest.approx(10)
    assert growth.btc_growth_with_income == -10
    assert growth.btc_growth_without_income == 0
    assert growth.btc_growth_difference == 10


def test_portfolio_growth_with_zero_stack():
    config = _config(btc_stack=0.0)
    growth = calculate_portfolio_growth(calculate_projection(config), config)
    assert growth.btc_growth_with_income == 0
    assert math.isnan(growth.btc_growth_difference)


def test_cashflows():
    config = _config()
    cashflows = calculate_cashflows(calculate_projection(config), config)
    assert cashflows.activation_year.without_leverage == pytest.approx(-500)
    assert cashflows.final_year.without_leverage == pytest.approx(-500)
    assert cashflows.activation_year.with_leverage == pytest.approx(-500)


def test_portfolio_mix_drifts_toward_growing_buckets():
    config = _config(
        savings_pct=50.0,
        investments_pct=50.0,
        investments_start_yield=10.0,
        investments_end_yield=10.0,
        time_horizon=2,
        activation_year=0,
    )
    mix = calculate_portfolio_mix(config)
    assert mix.final_investments_pct == pytest.approx(60.5 / 110.5 * 100)
    assert mix.final_savings_pct == pytest.approx(50 / 110.5 * 100)
    assert mix.mix_change == pytest.approx(50 - 50 / 110.5 * 100)


def test_portfolio_mix_zero_horizon_unchanged():
    mix = calculate_portfolio_mix(_config(savings_pct=60.0, investments_pct=40.0, time_horizon=0))
    assert (mix.final_savings_pct, mix.final_investments_pct, mix.mix_change) == (60.0, 40.0, 0.0)


def test_insight_data_without_loan():
    config = _config()
    insights = build_insight_data(calculate_projection(config), config)
    assert insights.liquidation is None
    assert insights.escape_velocity.leveraged_year is None
    assert insights.escape_velocity_comparison is None
    assert insights.portfolio_mix is None
    assert insights.growth_tier == "decline"


def test_insight_data_with_loan():
    config = _config(
        savings_pct=80.0,
        investments_pct=20.0,
        collateral_pct=50.0,
        ltv_ratio=40.0,
        loan_rate=5.0,
        starting_expenses=500.0,
    )
    insights = build_insight_data(calculate_projection(config), config)
    assert insights.liquidation.liquidation_price == pytest.approx(10000 * 40 / 80)
    assert insights.liquidation.liquidation_buffer == pytest.approx(100)
    assert insights.liquidation.risk_tier == "very_safe"
    assert insights.escape_velocity_comparison.outcome == "tie"
    assert insights.portfolio_mix is not None


def test_liquidation_data_uses_loan_buffer():
    config = _config(
        btc_price_rates=(10.0, -30.0, 20.0, 20.0, 0.0),
        collateral_pct=50.0,
        ltv_ratio=40.0,
        activation_year=1,
    )
    liquidation = calculate_liquidation_data(config)
    assert liquidation.liquidation_buffer == calculate_liquidation_buffer(config, 1, config.time_horizon)
    assert liquidation.min_btc_price == pytest.approx(7700)
    assert liquidation.liquidation_price == pytest.approx(11000 * 0.5)


def test_liquidation_data_with_zero_price_is_undefined():
    config = _config(exchange_rate=0.0, collateral_pct=50.0, ltv_ratio=40.0)
    liquidation = calculate_liquidation_data(config)
    assert math.isnan(liquidation.liquidation_buffer)
    assert liquidation.risk_tier == "at_risk"
    assert classify_liquidation_risk(math.nan) == "at_risk"
