"""Collateralized loan calculations against the savings bucket."""

import logging
from dataclasses import dataclass
from typing import Optional

from config import LIQUIDATION_THRESHOLD_PCT
from models import PortfolioConfig
from rates import btc_price_at_year, project_btc_prices
from simulation import simulate_stack


@dataclass
class LoanDetails:
    """Loan originated at an activation year."""

    loan_principal: float
    liquidation_price: float
    annual_payments: float
    collateral_btc: float
    btc_stack_at_activation: float
    btc_price_at_activation: float


@dataclass
class CollateralPotential:
    additional_btc: float
    improved_liquidation_price: float


def calculate_btc_stack_at_activation(
    config: PortfolioConfig, activation_year: int, initial_stack: float | None = None
) -> float:
    """Replay independent bucket compounding for ``activation_year`` years."""
    if initial_stack is None:
        initial_stack = config.btc_stack
    if activation_year <= 0:
        return initial_stack
    return simulate_stack(config, initial_stack, activation_year, reallocate=False)[-1]


def calculate_annual_payments(
    principal: float, rate: float, term_years: int, interest_only: bool
) -> float:
    """Yearly debt service for a loan.

    Interest-only loans pay ``principal * rate``. Amortizing loans use the
    standard fixed-payment formula; a zero rate spreads the principal evenly.
    A non-positive amortization term has no defined payment and gives ``nan``.
    """
    r = rate / 100
    if interest_only:
        return principal * r
    if term_years <= 0:
        logging.debug(f"Amortizing payment undefined for a {term_years}-year term")
        return float("nan")
    if r == 0:
        return principal / term_years
    growth = (1 + r) ** term_years
    return principal * (r * growth) / (growth - 1)


def calculate_liquidation_price(btc_price: float, ltv_ratio: float) -> float:
    """BTC price at which the pledged collateral hits the liquidation threshold."""
    return btc_price * (ltv_ratio / LIQUIDATION_THRESHOLD_PCT)


def calculate_loan_details(
    config: PortfolioConfig, activation_year: int
) -> Optional[LoanDetails]:
    """Loan taken against the savings bucket at ``activation_year``.

    Returns ``None`` when there is no collateral or no LTV, i.e. no loan.
    """
    if not config.has_loan:
        return None

    stack = calculate_btc_stack_at_activation(config, activation_year)
    collateral_btc = stack * (config.savings_pct / 100) * (config.collateral_pct / 100)
    btc_price = btc_price_at_year(config.exchange_rate, config.btc_price_rates, activation_year)
    principal = collateral_btc * (config.ltv_ratio / 100) * btc_price

    return LoanDetails(
        loan_principal=principal,
        liquidation_price=calculate_liquidation_price(btc_price, config.ltv_ratio),
        annual_payments=calculate_annual_payments(
            principal, config.loan_rate, config.loan_term_years, config.interest_only
        ),
        collateral_btc=collateral_btc,
        btc_stack_at_activation=stack,
        btc_price_at_activation=btc_price,
    )


def price_range(
    config: PortfolioConfig, start_year: int, end_year: int
) -> Optional[tuple[float, float]]:
    """Minimum and maximum BTC price over ``start_year..end_year`` inclusive."""
    if end_year < start_year:
        return None
    prices = project_btc_prices(config.exchange_rate, config.btc_price_rates, end_year)
    window = prices[start_year : end_year + 1]
    return min(window), max(window)


def calculate_liquidation_buffer(
    config: PortfolioConfig, activation_year: int, horizon_end_year: int | None = None
) -> Optional[float]:
    """Percent distance of the lowest projected price above the liquidation price.

    Negative values mean the loan would have been liquidated inside the window.
    """
    if horizon_end_year is None:
        horizon_end_year = config.time_horizon
    loan = calculate_loan_details(config, activation_year)
    if loan is None:
        return None
    prices = price_range(config, activation_year, horizon_end_year)
    if prices is None:
        return None
    if loan.liquidation_price == 0:
        return float("nan")
    min_price = prices[0]
    return (min_price - loan.liquidation_price) / loan.liquidation_price * 100


def calculate_additional_collateral_potential(
    config: PortfolioConfig, activation_year: int
) -> Optional[CollateralPotential]:
    """How much unpledged savings could be added to push liquidation lower."""
    loan = calculate_loan_details(config, activation_year)
    if loan is None:
        return None

    full_savings = loan.btc_stack_at_activation * (config.savings_pct / 100)
    additional = full_savings - loan.collateral_btc
    if config.collateral_pct >= 100 or additional <= 0:
        return None

    total_collateral = loan.collateral_btc + additional
    improved = loan.loan_principal / (total_collateral * LIQUIDATION_THRESHOLD_PCT / 100)
    return CollateralPotential(
        additional_btc=additional,
        improved_liquidation_price=improved,
    )
