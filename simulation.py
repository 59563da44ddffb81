"""Year-by-year BTC stack growth across the savings/investments/speculation buckets."""

from dataclasses import dataclass

import numpy as np

from models import PortfolioConfig
from rates import interpolate_yield

BUCKETS = ("savings", "investments", "speculation")


@dataclass
class StackProjection:
    """BTC stack per year, ``0..time_horizon`` inclusive.

    ``btc_with_income`` has the income allocation carved out at the activation
    year; ``btc_without_income`` is the same policy left untouched.
    ``btc_allocated_to_income`` is the BTC removed at activation (``0`` when
    activation falls outside the horizon).
    """

    btc_with_income: list[float]
    btc_without_income: list[float]
    btc_allocated_to_income: float


def bucket_yields(config: PortfolioConfig, year: int) -> tuple[float, float]:
    """Investment and speculation yields (percent) applied during ``year``."""
    investments = interpolate_yield(
        year,
        config.investments_start_yield,
        config.investments_end_yield,
        config.time_horizon,
    )
    speculation = interpolate_yield(
        year,
        config.speculation_start_yield,
        config.speculation_end_yield,
        config.time_horizon,
    )
    return investments, speculation


def split_stack(config: PortfolioConfig, stack: float) -> tuple[float, float, float]:
    return (
        stack * config.savings_pct / 100,
        stack * config.investments_pct / 100,
        stack * config.speculation_pct / 100,
    )


def step_buckets(
    config: PortfolioConfig,
    buckets: tuple[float, float, float],
    year: int,
    reallocate: bool,
) -> tuple[float, float, float]:
    """Advance the buckets from ``year`` to ``year + 1``.

    With ``reallocate`` the current total is first reset to the target
    percentages, then each bucket earns its yield. Otherwise each bucket
    compounds on its own and savings earn nothing.
    """
    investments_yield, speculation_yield = bucket_yields(config, year)
    if reallocate:
        savings, investments, speculation = split_stack(config, sum(buckets))
    else:
        savings, investments, speculation = buckets
    return (
        savings,
        investments * (1 + investments_yield / 100),
        speculation * (1 + speculation_yield / 100),
    )


def simulate_allocation_buckets(
    config: PortfolioConfig, reallocate: bool | None = None
) -> dict[str, list[float]]:
    """BTC held in each bucket at the start of every year.

    Under annual reallocation the recorded values are the rebalanced amounts,
    i.e. ``total * pct / 100`` for the year's starting total.
    """
    if reallocate is None:
        reallocate = config.enable_annual_reallocation

    series = {name: [] for name in BUCKETS}
    buckets = split_stack(config, config.btc_stack)
    for year in range(config.time_horizon + 1):
        recorded = split_stack(config, sum(buckets)) if reallocate else buckets
        for name, value in zip(BUCKETS, recorded):
            series[name].append(value)
        if year < config.time_horizon:
            buckets = step_buckets(config, buckets, year, reallocate)
    return series


def simulate_stack(
    config: PortfolioConfig,
    initial_stack: float | None = None,
    years: int | None = None,
    reallocate: bool | None = None,
) -> list[float]:
    """Total BTC stack for years ``0..years`` (defaults to the horizon)."""
    if initial_stack is None:
        initial_stack = config.btc_stack
    if years is None:
        years = config.time_horizon
    if reallocate is None:
        reallocate = config.enable_annual_reallocation

    buckets = split_stack(config, initial_stack)
    totals = [initial_stack]
    for year in range(years):
        buckets = step_buckets(config, buckets, year, reallocate)
        totals.append(sum(buckets))
    return totals


def project_btc_stack(config: PortfolioConfig) -> StackProjection:
    """Run both tracks of the growth simulation under the configured policy."""

    reallocate = config.enable_annual_reallocation
    keep_pct = (100 - config.income_allocation_pct) / 100

    with_income = split_stack(config, config.btc_stack)
    without_income = split_stack(config, config.btc_stack)
    btc_with_income = []
    btc_without_income = []
    allocated = 0.0

    for year in range(config.time_horizon + 1):
        if year == config.activation_year:
            allocated = sum(with_income) * config.income_allocation_pct / 100
            with_income = tuple(value * keep_pct for value in with_income)

        btc_with_income.append(max(0.0, sum(with_income)))
        btc_without_income.append(max(0.0, sum(without_income)))

        if year < config.time_horizon:
            with_income = step_buckets(config, with_income, year, reallocate)
            without_income = step_buckets(config, without_income, year, reallocate)

    return StackProjection(
        btc_with_income=btc_with_income,
        btc_without_income=btc_without_income,
        btc_allocated_to_income=allocated,
    )


def cumulative_bucket_growth(config: PortfolioConfig) -> tuple[float, float]:
    """Total growth multipliers of investments and speculation over the horizon."""
    if config.time_horizon <= 0:
        return 1.0, 1.0
    yields = np.array([bucket_yields(config, y) for y in range(config.time_horizon)], dtype=float)
    factors = np.prod(1 + yields / 100, axis=0)
    return float(factors[0]), float(factors[1])
