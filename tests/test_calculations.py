import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from calculations import (
    calculate_projection,
    project_expenses,
    to_btc_equivalent,
)
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


def test_project_expenses_compounds_inflation():
    assert project_expenses(100, [10, 10], 2) == pytest.approx([100, 110, 121])
    assert project_expenses(75000, [], 3) == [75000, 75000, 75000, 75000]


def test_to_btc_equivalent():
    assert to_btc_equivalent(0, 50000) == 0
    assert to_btc_equivalent(0, 0) == 0
    assert to_btc_equivalent(100000, 50000) == 2


def test_series_cover_every_year():
    results = calculate_projection(_config())
    expected_length = 5
    for series in (
        results.years,
        results.btc_with_income,
        results.btc_without_income,
        results.btc_prices,
        results.usd_income,
        results.usd_income_with_leverage,
        results.btc_income,
        results.annual_expenses,
        results.btc_expenses,
        results.income_at_activation_years,
        results.income_at_activation_years_with_leverage,
        results.expenses_at_activation_years,
    ):
        assert len(series) == expected_length


def test_income_starts_at_activation_year():
    results = calculate_projection(_config())
    assert results.usd_income == pytest.approx([0, 0, 1000, 1000, 1000])
    assert results.btc_income == pytest.approx([0, 0, 0.1, 0.1, 0.1])
    assert results.btc_with_income == pytest.approx([10, 10, 9, 9, 9])


def test_income_reinvestment_grows_pool():
    results = calculate_projection(_config(income_reinvestment_pct=50.0))
    assert results.usd_income == pytest.approx([0, 0, 500, 525, 551.25])


def test_zero_collateral_has_no_loan_and_no_leverage():
    results = calculate_projection(_config())
    assert results.loan is None
    assert results.usd_income_with_leverage == results.usd_income
    assert results.income_at_activation_years_with_leverage == results.income_at_activation_years


def test_leveraged_income_nets_frozen_debt_service():
    config = _config(collateral_pct=50.0, ltv_ratio=40.0, loan_rate=5.0, interest_only=True)
    results = calculate_projection(config)
    assert results.loan.loan_principal == pytest.approx(20000)
    assert results.loan.annual_payments == pytest.approx(1000)
    # (10,000 pool + 20,000 principal) * 10% - 1,000 debt service
    assert results.usd_income_with_leverage == pytest.approx([0, 0, 2000, 2000, 2000])


def test_leverage_requires_income_allocation():
    config = _config(collateral_pct=50.0, ltv_ratio=40.0, income_allocation_pct=0.0)
    results = calculate_projection(config)
    assert results.usd_income_with_leverage == [0.0] * 5


def test_income_potential_per_activation_year():
    config = _config(collateral_pct=50.0, ltv_ratio=40.0, loan_rate=5.0, interest_only=True)
    results = calculate_projection(config)
    assert results.income_at_activation_years == pytest.approx([1000] * 5)
    assert results.income_at_activation_years_with_leverage == pytest.approx([2000] * 5)
    assert results.expenses_at_activation_years == pytest.approx([1500] * 5)


def test_leveraged_income_potential_floored_at_zero():
    config = _config(collateral_pct=50.0, ltv_ratio=40.0, loan_rate=50.0, interest_only=True)
    results = calculate_projection(config)
    assert min(results.income_at_activation_years_with_leverage) == 0


def test_expenses_and_btc_expenses():
    config = _config(inflation_rates=(10.0,) * 10, btc_price_rates=(100.0,) * 10)
    results = calculate_projection(config)
    assert results.annual_expenses[:3] == pytest.approx([1500, 1650, 1815])
    assert results.btc_expenses[1] == pytest.approx(1650 / 20000)


def test_activation_beyond_horizon_warns_and_generates_no_income():
    results = calculate_projection(_config(activation_year=8))
    assert results.warnings
    assert results.usd_income == [0.0] * 5
    assert results.btc_with_income == results.btc_without_income


def test_projection_is_idempotent():
    config = PortfolioConfig()
    first = calculate_projection(config)
    second = calculate_projection(config)
    assert first == second
    assert first.btc_with_income == second.btc_with_income


def test_headline_loan_values_use_todays_price():
    config = _config(collateral_pct=50.0, ltv_ratio=40.0, loan_rate=5.0)
    results = calculate_projection(config)
    assert results.loan_principal == pytest.approx(10 * 0.5 * 0.4 * 10000)
    assert results.loan_interest == pytest.approx(20000 * 0.05)


def test_to_frame():
    frame = calculate_projection(_config()).to_frame()
    assert frame.shape == (5, 8)
    assert frame.index.name == "Year"
    assert frame["Income (USD)"].tolist() == pytest.approx([0, 0, 1000, 1000, 1000])


def test_price_crash_scales_both_stack_tracks():
    baseline = calculate_projection(_config())
    crashed = calculate_projection(_config(price_crash_pct=50.0))

    assert crashed.btc_with_income == pytest.approx([btc / 2 for btc in baseline.btc_with_income])
    assert crashed.btc_without_income == pytest.approx([btc / 2 for btc in baseline.btc_without_income])
    assert crashed.btc_with_income[-1] == pytest.approx(4.5)
    # Income is drawn from the stack before the crash is applied
    assert crashed.usd_income == baseline.usd_income
    assert crashed.income_at_activation_years == baseline.income_at_activation_years


def test_no_price_crash_by_default():
    assert _config().price_crash_pct == 0
    assert calculate_projection(_config()).btc_without_income == pytest.approx([10.0] * 5)
