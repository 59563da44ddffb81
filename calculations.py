"""Income, expense and full projection calculations for the BTC portfolio planner."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from loans import LoanDetails, calculate_btc_stack_at_activation, calculate_loan_details
from models import PortfolioConfig
from rates import project_btc_prices, resolve_custom_rate
from simulation import StackProjection, project_btc_stack


@dataclass
class ProjectionResults:
    """Results returned from :func:`calculate_projection`.

    Every list covers years ``0..time_horizon`` inclusive. The
    ``*_at_activation_years`` lists answer "what if income started in year N"
    for every N, independent of the configured activation year.
    """

    years: list[int]
    btc_with_income: list[float]
    btc_without_income: list[float]
    btc_prices: list[float]
    usd_income: list[float]
    usd_income_with_leverage: list[float]
    btc_income: list[float]
    btc_income_with_leverage: list[float]
    annual_expenses: list[float]
    btc_expenses: list[float]
    income_at_activation_years: list[float]
    income_at_activation_years_with_leverage: list[float]
    expenses_at_activation_years: list[float]
    loan: Optional[LoanDetails] = None
    loan_principal: float = 0.0
    loan_interest: float = 0.0
    warnings: list[str] = field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        """Per-year series as a DataFrame indexed by year."""
        return pd.DataFrame(
            {
                "BTC With Income": self.btc_with_income,
                "BTC Without Income": self.btc_without_income,
                "BTC Price (USD)": self.btc_prices,
                "Income (USD)": self.usd_income,
                "Income With Leverage (USD)": self.usd_income_with_leverage,
                "Income (₿)": self.btc_income,
                "Expenses (USD)": self.annual_expenses,
                "Expenses (₿)": self.btc_expenses,
            },
            index=pd.Index(self.years, name="Year"),
        )


def project_expenses(
    starting_expenses: float, inflation_rates: Sequence[float], time_horizon: int
) -> list[float]:
    """Compound ``starting_expenses`` by each year's inflation rate."""
    growth = np.array(
        [1 + resolve_custom_rate(inflation_rates, y) / 100 for y in range(max(time_horizon, 0))],
        dtype=float,
    )
    return (starting_expenses * np.cumprod(np.r_[1.0, growth])).tolist()


def to_btc_equivalent(usd_value: float, btc_price: float) -> float:
    """Convert USD to BTC at ``btc_price``; zero stays exactly zero."""
    if usd_value == 0:
        return 0.0
    if btc_price == 0:
        return float("nan")
    return usd_value / btc_price


def _net_yield(pool: float, rate_pct: float, reinvestment_pct: float) -> tuple[float, float]:
    """Split a pool's yield into (spendable income, reinvested amount)."""
    generated = pool * rate_pct / 100 if pool > 0 else 0.0
    reinvested = generated * reinvestment_pct / 100
    return generated - reinvested, reinvested


def project_income(
    config: PortfolioConfig,
    stack: StackProjection,
    btc_prices: Sequence[float],
    loan: Optional[LoanDetails],
) -> tuple[list[float], list[float]]:
    """USD income per year without and with leverage.

    The income pool is seeded once at the activation year from the BTC carved
    out of the stack. The leveraged pool adds the loan principal and pays the
    annual debt service computed at activation, held constant thereafter.
    """
    leveraged = loan is not None and config.income_allocation_pct > 0
    principal = loan.loan_principal if leveraged else 0.0
    debt_service = loan.annual_payments if leveraged else 0.0

    base_pool = 0.0
    leveraged_pool = 0.0
    usd_income = []
    usd_income_with_leverage = []

    for year in range(config.time_horizon + 1):
        if year == config.activation_year:
            base_pool = stack.btc_allocated_to_income * btc_prices[year]
            leveraged_pool = base_pool + principal

        if year < config.activation_year:
            usd_income.append(0.0)
            usd_income_with_leverage.append(0.0)
            continue

        rate = resolve_custom_rate(config.income_rates, year)
        base_income, base_reinvested = _net_yield(base_pool, rate, config.income_reinvestment_pct)
        leveraged_income, leveraged_reinvested = _net_yield(
            leveraged_pool, rate, config.income_reinvestment_pct
        )

        base_pool += base_reinvested
        leveraged_pool += leveraged_reinvested

        usd_income.append(base_income)
        usd_income_with_leverage.append(
            leveraged_income - debt_service if leveraged else base_income
        )

    return usd_income, usd_income_with_leverage


def calculate_income_potential(
    config: PortfolioConfig, btc_prices: Sequence[float], annual_expenses: Sequence[float]
) -> tuple[list[float], list[float], list[float]]:
    """First-year income if activation happened in each year of the horizon.

    Returns ``(income, income_with_leverage, expenses)``. Leveraged income is
    floored at zero; without a loan it equals the base income.
    """
    income = []
    income_with_leverage = []
    expenses = []

    for year in range(config.time_horizon + 1):
        stack = calculate_btc_stack_at_activation(config, year)
        pool = stack * config.income_allocation_pct / 100 * btc_prices[year]
        rate = resolve_custom_rate(config.income_rates, year)
        annual_income, _ = _net_yield(pool, rate, config.income_reinvestment_pct)

        leveraged_income = annual_income
        if config.collateral_pct > 0:
            loan = calculate_loan_details(config, year)
            if loan is not None:
                gross, _ = _net_yield(
                    pool + loan.loan_principal, rate, config.income_reinvestment_pct
                )
                leveraged_income = max(0.0, gross - loan.annual_payments)

        income.append(annual_income)
        income_with_leverage.append(leveraged_income)
        expenses.append(annual_expenses[year])

    return income, income_with_leverage, expenses


def calculate_projection(config: PortfolioConfig) -> ProjectionResults:
    """Project the portfolio across the whole horizon.

    This is a pure function of ``config``: identical configurations give
    identical results, so callers may cache on the configuration itself.
    ``price_crash_pct`` scales both BTC stack tracks once the stack is
    projected; income and loan figures come from the unscaled stack.
    """
    horizon = config.time_horizon
    warnings = []
    if config.activation_year > horizon:
        message = (
            f"Activation year {config.activation_year} is beyond the {horizon}-year horizon; "
            "no income will be generated"
        )
        logging.warning(message)
        warnings.append(message)

    btc_prices = project_btc_prices(config.exchange_rate, config.btc_price_rates, horizon)
    annual_expenses = project_expenses(config.starting_expenses, config.inflation_rates, horizon)
    stack = project_btc_stack(config)
    crash_multiplier = 1 - config.price_crash_pct / 100
    btc_with_income = [btc * crash_multiplier for btc in stack.btc_with_income]
    btc_without_income = [btc * crash_multiplier for btc in stack.btc_without_income]

    loan = calculate_loan_details(config, config.activation_year)
    usd_income, usd_income_with_leverage = project_income(config, stack, btc_prices, loan)

    income_potential, income_potential_leveraged, expenses_potential = calculate_income_potential(
        config, btc_prices, annual_expenses
    )

    # Headline loan figures use today's stack and price
    display_collateral = config.btc_stack * (config.savings_pct / 100) * (config.collateral_pct / 100)
    loan_principal = display_collateral * (config.ltv_ratio / 100) * config.exchange_rate
    loan_interest = loan_principal * (config.loan_rate / 100)

    logging.debug(
        f"Projected {horizon + 1} years: final stack {btc_with_income[-1]:.4f} BTC "
        f"with income, {btc_without_income[-1]:.4f} BTC without"
    )

    return ProjectionResults(
        years=list(range(horizon + 1)),
        btc_with_income=btc_with_income,
        btc_without_income=btc_without_income,
        btc_prices=btc_prices,
        usd_income=usd_income,
        usd_income_with_leverage=usd_income_with_leverage,
        btc_income=[to_btc_equivalent(v, p) for v, p in zip(usd_income, btc_prices)],
        btc_income_with_leverage=[
            to_btc_equivalent(v, p) for v, p in zip(usd_income_with_leverage, btc_prices)
        ],
        annual_expenses=annual_expenses,
        btc_expenses=[to_btc_equivalent(v, p) for v, p in zip(annual_expenses, btc_prices)],
        income_at_activation_years=income_potential,
        income_at_activation_years_with_leverage=income_potential_leveraged,
        expenses_at_activation_years=expenses_potential,
        loan=loan,
        loan_principal=loan_principal,
        loan_interest=loan_interest,
        warnings=warnings,
    )
