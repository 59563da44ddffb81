"""Immutable configuration record consumed by every engine call."""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping

from config import (
    DEFAULT_ACTIVATION_YEAR,
    DEFAULT_BTC_PRICE_RATE,
    DEFAULT_BTC_STACK,
    DEFAULT_COLLATERAL_PCT,
    DEFAULT_ENABLE_ANNUAL_REALLOCATION,
    DEFAULT_EXCHANGE_RATE,
    DEFAULT_INCOME_ALLOCATION_PCT,
    DEFAULT_INCOME_REINVESTMENT_PCT,
    DEFAULT_INCOME_YIELD,
    DEFAULT_INFLATION_RATE,
    DEFAULT_INTEREST_ONLY,
    DEFAULT_INVESTMENTS_END_YIELD,
    DEFAULT_INVESTMENTS_PCT,
    DEFAULT_INVESTMENTS_START_YIELD,
    DEFAULT_LOAN_RATE,
    DEFAULT_LOAN_TERM_YEARS,
    DEFAULT_LTV_RATIO,
    DEFAULT_PRICE_CRASH_PCT,
    DEFAULT_RATE_ARRAY_LENGTH,
    DEFAULT_SAVINGS_PCT,
    DEFAULT_SPECULATION_END_YIELD,
    DEFAULT_SPECULATION_PCT,
    DEFAULT_SPECULATION_START_YIELD,
    DEFAULT_STARTING_EXPENSES,
    DEFAULT_TIME_HORIZON,
)

RATE_ARRAY_FIELDS = ("btc_price_rates", "inflation_rates", "income_rates")


def _flat(rate: float) -> tuple[float, ...]:
    return tuple(float(rate) for _ in range(DEFAULT_RATE_ARRAY_LENGTH))


@dataclass(frozen=True)
class PortfolioConfig:
    """Inputs for one simulation run.

    Percentages are expressed in percent (``65.0`` means 65%). The per-year
    rate arrays are tuples so that the whole record is hashable and two
    structurally equal configurations share a cache entry.
    """

    time_horizon: int = DEFAULT_TIME_HORIZON
    btc_stack: float = DEFAULT_BTC_STACK
    exchange_rate: float = DEFAULT_EXCHANGE_RATE

    savings_pct: float = DEFAULT_SAVINGS_PCT
    investments_pct: float = DEFAULT_INVESTMENTS_PCT
    speculation_pct: float = DEFAULT_SPECULATION_PCT

    investments_start_yield: float = DEFAULT_INVESTMENTS_START_YIELD
    investments_end_yield: float = DEFAULT_INVESTMENTS_END_YIELD
    speculation_start_yield: float = DEFAULT_SPECULATION_START_YIELD
    speculation_end_yield: float = DEFAULT_SPECULATION_END_YIELD

    activation_year: int = DEFAULT_ACTIVATION_YEAR
    starting_expenses: float = DEFAULT_STARTING_EXPENSES

    btc_price_rates: tuple[float, ...] = field(
        default_factory=lambda: _flat(DEFAULT_BTC_PRICE_RATE)
    )
    inflation_rates: tuple[float, ...] = field(
        default_factory=lambda: _flat(DEFAULT_INFLATION_RATE)
    )
    income_rates: tuple[float, ...] = field(
        default_factory=lambda: _flat(DEFAULT_INCOME_YIELD)
    )

    collateral_pct: float = DEFAULT_COLLATERAL_PCT
    ltv_ratio: float = DEFAULT_LTV_RATIO
    loan_rate: float = DEFAULT_LOAN_RATE
    loan_term_years: int = DEFAULT_LOAN_TERM_YEARS
    interest_only: bool = DEFAULT_INTEREST_ONLY

    income_allocation_pct: float = DEFAULT_INCOME_ALLOCATION_PCT
    income_reinvestment_pct: float = DEFAULT_INCOME_REINVESTMENT_PCT
    enable_annual_reallocation: bool = DEFAULT_ENABLE_ANNUAL_REALLOCATION

    # Stress input: both BTC stack tracks are scaled by 1 - price_crash_pct / 100
    price_crash_pct: float = DEFAULT_PRICE_CRASH_PCT

    def __post_init__(self):
        # Accept lists from callers but store tuples to keep the record hashable
        for name in RATE_ARRAY_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

    @property
    def has_loan(self) -> bool:
        return self.collateral_pct != 0 and self.ltv_ratio != 0


def replace_config(config: PortfolioConfig, **changes) -> PortfolioConfig:
    """Return a new configuration with ``changes`` applied."""

    return replace(config, **changes)


def config_from_mapping(values: Mapping[str, Any]) -> PortfolioConfig:
    """Build a configuration from a flat mapping such as UI state.

    Keys that are not configuration fields are ignored; missing keys take
    their defaults.
    """

    names = {f.name for f in fields(PortfolioConfig)}
    return PortfolioConfig(**{k: v for k, v in values.items() if k in names})
