"""Escape velocity, growth and liquidation-risk insights derived from a projection."""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from calculations import ProjectionResults
from config import (
    GROWTH_TIER_LABELS,
    GROWTH_TIERS,
    LIQUIDATION_RISK_LABELS,
    LIQUIDATION_RISK_TIERS,
    LOAN_RISK_LEVELS,
)
from loans import calculate_liquidation_buffer, calculate_loan_details, price_range
from models import PortfolioConfig
from simulation import cumulative_bucket_growth

GROWTH_TIER_ORDER = tuple(name for name, _ in GROWTH_TIERS)
LIQUIDATION_RISK_ORDER = tuple(name for name, _ in LIQUIDATION_RISK_TIERS)


@dataclass
class EscapeVelocity:
    base_year: Optional[int]
    leveraged_year: Optional[int]


@dataclass
class EscapeVelocityComparison:
    """``advantage_years`` is ``base_year - leveraged_year``."""

    outcome: str  # "leverage", "base" or "tie"
    advantage_years: int
    message: str


@dataclass
class PortfolioGrowth:
    btc_growth_with_income: float
    btc_growth_without_income: float
    btc_growth_difference: float
    final_btc_with_income: float
    final_btc_without_income: float


@dataclass
class Cashflow:
    without_leverage: float
    with_leverage: float


@dataclass
class Cashflows:
    activation_year: Cashflow
    final_year: Cashflow


@dataclass
class PortfolioMix:
    final_savings_pct: float
    final_investments_pct: float
    final_speculation_pct: float
    mix_change: float


@dataclass
class LiquidationData:
    liquidation_price: float
    min_btc_price: float
    max_btc_price: float
    liquidation_buffer: float
    risk_tier: str


@dataclass
class InsightData:
    growth: PortfolioGrowth
    growth_tier: str
    cashflows: Cashflows
    escape_velocity: EscapeVelocity
    escape_velocity_comparison: Optional[EscapeVelocityComparison] = None
    liquidation: Optional[LiquidationData] = None
    portfolio_mix: Optional[PortfolioMix] = None


def _at(series: Sequence[float], index: int) -> float:
    return series[index] if 0 <= index < len(series) else 0.0


def find_escape_velocity_year(
    income: Sequence[float],
    expenses: Sequence[float],
    enabled: bool = True,
    time_horizon: int | None = None,
) -> Optional[int]:
    """First year in ``0..time_horizon`` where income strictly exceeds expenses.

    The horizon defaults to the longer of the two series. Missing entries
    count as zero. Returns ``None`` when disabled or never reached.
    """
    if not enabled:
        return None
    if time_horizon is None:
        time_horizon = max(len(income), len(expenses)) - 1
    for year in range(time_horizon + 1):
        if _at(income, year) > _at(expenses, year):
            return year
    return None


def calculate_escape_velocity(
    results: ProjectionResults, config: PortfolioConfig
) -> EscapeVelocity:
    """Escape velocity by activation year, with and without leverage."""
    base = find_escape_velocity_year(
        results.income_at_activation_years,
        results.expenses_at_activation_years,
        time_horizon=config.time_horizon,
    )
    leveraged = find_escape_velocity_year(
        results.income_at_activation_years_with_leverage,
        results.expenses_at_activation_years,
        enabled=config.collateral_pct > 0,
        time_horizon=config.time_horizon,
    )
    return EscapeVelocity(base_year=base, leveraged_year=leveraged)


def compare_escape_velocity(
    base_year: Optional[int], leveraged_year: Optional[int]
) -> Optional[EscapeVelocityComparison]:
    """Compare when each scenario reaches escape velocity.

    Returns ``None`` unless both scenarios reach it.
    """
    if base_year is None or leveraged_year is None:
        return None
    difference = base_year - leveraged_year
    if difference > 0:
        return EscapeVelocityComparison(
            outcome="leverage",
            advantage_years=difference,
            message=f"Leverage achieves escape velocity {difference} year(s) earlier",
        )
    if difference < 0:
        return EscapeVelocityComparison(
            outcome="base",
            advantage_years=difference,
            message=f"Base scenario achieves escape velocity {-difference} year(s) earlier",
        )
    return EscapeVelocityComparison(
        outcome="tie",
        advantage_years=0,
        message="Both scenarios achieve escape velocity in the same year",
    )


def classify_growth(growth_pct: float) -> str:
    """Bucket a stack growth percentage into a named tier."""
    tier = GROWTH_TIER_ORDER[0]
    for name, threshold in GROWTH_TIERS[1:]:
        if growth_pct > threshold:
            tier = name
    return tier


def growth_label(growth_pct: float) -> str:
    return GROWTH_TIER_LABELS[classify_growth(growth_pct)]


def classify_liquidation_risk(buffer_pct: float) -> str:
    """Bucket a liquidation buffer percentage into a risk tier.

    An undefined (NaN) buffer lands in the riskiest tier.
    """
    if math.isnan(buffer_pct):
        return LIQUIDATION_RISK_ORDER[0]
    for name, upper in LIQUIDATION_RISK_TIERS:
        if upper is None or buffer_pct < upper:
            return name
    return LIQUIDATION_RISK_ORDER[-1]


def liquidation_risk_label(buffer_pct: float) -> str:
    return LIQUIDATION_RISK_LABELS[classify_liquidation_risk(buffer_pct)]


def loan_risk_level(buffer_pct: float) -> str:
    """``low``/``moderate``/``high``/``extreme`` for a liquidation buffer."""
    return LOAN_RISK_LEVELS[classify_liquidation_risk(buffer_pct)]


def _round2(value: float) -> float:
    return round(value, 2) if math.isfinite(value) else value


def calculate_portfolio_growth(
    results: ProjectionResults, config: PortfolioConfig
) -> PortfolioGrowth:
    """Percentage growth of the stack with and without income generation."""
    if not results.btc_with_income:
        return PortfolioGrowth(0.0, 0.0, 0.0, config.btc_stack, config.btc_stack)

    final_with = results.btc_with_income[-1]
    final_without = results.btc_without_income[-1]

    if config.btc_stack == 0:
        return PortfolioGrowth(
            btc_growth_with_income=0.0 if final_with == 0 else math.inf,
            btc_growth_without_income=0.0 if final_without == 0 else math.inf,
            btc_growth_difference=math.nan,
            final_btc_with_income=final_with,
            final_btc_without_income=final_without,
        )

    with_income = _round2((final_with - config.btc_stack) / config.btc_stack * 100)
    without_income = _round2((final_without - config.btc_stack) / config.btc_stack * 100)
    return PortfolioGrowth(
        btc_growth_with_income=with_income,
        btc_growth_without_income=without_income,
        btc_growth_difference=_round2(without_income - with_income),
        final_btc_with_income=final_with,
        final_btc_without_income=final_without,
    )


def calculate_cashflows(results: ProjectionResults, config: PortfolioConfig) -> Cashflows:
    """Income minus expenses at the activation year and in the final year."""
    year = config.activation_year
    expenses = _at(results.annual_expenses, year)
    final_expenses = results.annual_expenses[-1] if results.annual_expenses else 0.0
    final_income = results.usd_income[-1] if results.usd_income else 0.0
    final_leveraged = (
        results.usd_income_with_leverage[-1] if results.usd_income_with_leverage else 0.0
    )
    return Cashflows(
        activation_year=Cashflow(
            without_leverage=_at(results.usd_income, year) - expenses,
            with_leverage=_at(results.usd_income_with_leverage, year) - expenses,
        ),
        final_year=Cashflow(
            without_leverage=final_income - final_expenses,
            with_leverage=final_leveraged - final_expenses,
        ),
    )


def calculate_portfolio_mix(config: PortfolioConfig) -> PortfolioMix:
    """Allocation drift after independent compounding over the horizon."""
    if config.time_horizon <= 0:
        return PortfolioMix(config.savings_pct, config.investments_pct, config.speculation_pct, 0.0)

    investment_growth, speculation_growth = cumulative_bucket_growth(config)
    weighted_investments = config.investments_pct * investment_growth
    weighted_speculation = config.speculation_pct * speculation_growth
    total = config.savings_pct + weighted_investments + weighted_speculation
    if total == 0:
        return PortfolioMix(0.0, 0.0, 0.0, 0.0)

    final_investments = weighted_investments / total * 100
    final_speculation = weighted_speculation / total * 100
    final_savings = 100 - final_investments - final_speculation
    return PortfolioMix(
        final_savings_pct=final_savings,
        final_investments_pct=final_investments,
        final_speculation_pct=final_speculation,
        mix_change=abs(final_savings - config.savings_pct),
    )


def calculate_liquidation_data(
    config: PortfolioConfig, activation_year: int | None = None
) -> Optional[LiquidationData]:
    """Liquidation price against the projected price range after activation."""
    if activation_year is None:
        activation_year = config.activation_year
    if config.collateral_pct <= 0:
        return None
    loan = calculate_loan_details(config, activation_year)
    if loan is None:
        return None
    buffer = calculate_liquidation_buffer(config, activation_year, config.time_horizon)
    if buffer is None:
        return None
    min_price, max_price = price_range(config, activation_year, config.time_horizon)
    return LiquidationData(
        liquidation_price=loan.liquidation_price,
        min_btc_price=min_price,
        max_btc_price=max_price,
        liquidation_buffer=buffer,
        risk_tier=classify_liquidation_risk(buffer),
    )


def build_insight_data(results: ProjectionResults, config: PortfolioConfig) -> InsightData:
    """Collect every insight for the configured activation year."""
    growth = calculate_portfolio_growth(results, config)
    escape = calculate_escape_velocity(results, config)
    return InsightData(
        growth=growth,
        growth_tier=classify_growth(growth.btc_growth_with_income),
        cashflows=calculate_cashflows(results, config),
        escape_velocity=escape,
        escape_velocity_comparison=compare_escape_velocity(escape.base_year, escape.leveraged_year),
        liquidation=calculate_liquidation_data(config),
        portfolio_mix=calculate_portfolio_mix(config) if config.savings_pct < 100 else None,
    )
