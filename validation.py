# validation.py
import logging
from dataclasses import dataclass, field
from typing import Mapping

from config import (
    ALLOCATION_TOTAL,
    BTC_STACK_MAX,
    COLLATERAL_WARN_PCT,
    LOAN_RATE_WARN_HIGH,
    LOAN_RATE_WARN_LOW,
    LOAN_TERM_MIN,
    LOAN_TERM_WARN_YEARS,
    LTV_WARN_HIGH,
    LTV_WARN_LOW,
    PERCENT_RANGE,
    TIME_HORIZON_RANGE,
    YIELD_RANGE,
)
from models import PortfolioConfig

ALLOCATION_FIELDS = ("savings_pct", "investments_pct", "speculation_pct")


@dataclass
class AllocationCheck:
    is_valid: bool
    total: float
    error: str = ""


@dataclass
class ValidationResult:
    """Outcome of :func:`validate_configuration`.

    ``errors`` and ``warnings`` map a field name to a message. Nothing here is
    raised; callers decide whether to block on errors or just show warnings.
    """

    is_valid: bool
    errors: dict[str, str] = field(default_factory=dict)
    warnings: dict[str, str] = field(default_factory=dict)


def validate_allocation(savings_pct, investments_pct, speculation_pct) -> AllocationCheck:
    """Check that the three buckets sum to exactly 100.

    No tolerance is applied; callers are expected to round beforehand.
    """
    total = savings_pct + investments_pct + speculation_pct
    is_valid = total == ALLOCATION_TOTAL
    error = "" if is_valid else f"Allocations must sum to 100% (current: {total}%)"
    return AllocationCheck(is_valid=is_valid, total=total, error=error)


def adjust_allocation(
    current: Mapping[str, float],
    updates: Mapping[str, float],
    min_threshold: float = 0,
) -> dict[str, float]:
    """Apply ``updates`` to an allocation and rebalance when possible.

    Every field is raised to at least ``min_threshold``. When exactly one field
    was updated and the total is off 100, the remaining budget is shared by the
    other two fields in proportion to their previous values. If those two were
    both zero nothing is redistributed and the total may stay off 100.
    Multi-field updates are applied as given.
    """
    unknown = set(updates) - set(ALLOCATION_FIELDS)
    if unknown:
        raise ValueError(f"Unknown allocation fields: {sorted(unknown)}")

    allocation = {name: current[name] for name in ALLOCATION_FIELDS}
    allocation.update(updates)

    for name in ALLOCATION_FIELDS:
        if allocation[name] < min_threshold:
            allocation[name] = min_threshold

    total = sum(allocation.values())
    if total != ALLOCATION_TOTAL and len(updates) == 1:
        (updated,) = updates
        others = [name for name in ALLOCATION_FIELDS if name != updated]
        remaining = ALLOCATION_TOTAL - allocation[updated]
        other_total = sum(current[name] for name in others)

        if other_total > 0:
            for name in others:
                proportion = current[name] / other_total
                allocation[name] = max(min_threshold, remaining * proportion)

    return allocation


def validate_loan_configuration(config: PortfolioConfig) -> ValidationResult:
    """Sanity checks on the leverage settings."""
    errors = {}
    warnings = {}

    if config.ltv_ratio > LTV_WARN_HIGH:
        warnings["ltv_ratio"] = "LTV ratio above 50% increases liquidation risk significantly"
    elif config.ltv_ratio < LTV_WARN_LOW and config.collateral_pct > 0:
        warnings["ltv_ratio"] = "Very low LTV ratio may limit the effectiveness of leverage"

    if config.loan_rate < LOAN_RATE_WARN_LOW:
        warnings["loan_rate"] = "Unusually low loan rate - verify this is realistic"
    elif config.loan_rate > LOAN_RATE_WARN_HIGH:
        warnings["loan_rate"] = "High loan rate significantly increases cost of leverage"

    if config.loan_term_years < LOAN_TERM_MIN:
        errors["loan_term_years"] = "Loan term must be at least 1 year"
    elif config.loan_term_years > LOAN_TERM_WARN_YEARS:
        warnings["loan_term_years"] = "Very long loan terms increase exposure to rate changes"

    if config.collateral_pct > COLLATERAL_WARN_PCT:
        warnings["collateral_pct"] = "Using most of your stack as collateral increases risk"

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def _check_percent(errors, name, value, label):
    lo, hi = PERCENT_RANGE
    if not lo <= value <= hi:
        errors[name] = f"{label} must be between {lo:g}% and {hi:g}%"


def _check_yields(errors, name, start, end, label):
    lo, hi = YIELD_RANGE
    if start < lo or end < lo:
        errors[name] = f"{label} yields cannot be negative"
    elif start > hi or end > hi:
        errors[name] = f"{label} yields cannot exceed {hi:g}%"


def validate_configuration(config: PortfolioConfig) -> ValidationResult:
    """Validate a configuration and return any errors and warnings found.

    The loan term is checked even without a loan; the remaining leverage
    checks from :func:`validate_loan_configuration` only run when one exists.
    """
    errors = {}
    warnings = {}

    if not TIME_HORIZON_RANGE[0] <= config.time_horizon <= TIME_HORIZON_RANGE[1]:
        errors["time_horizon"] = (
            f"Time horizon must be between {TIME_HORIZON_RANGE[0]} and {TIME_HORIZON_RANGE[1]} years"
        )

    if config.btc_stack <= 0:
        errors["btc_stack"] = "BTC stack must be greater than 0"
    elif config.btc_stack > BTC_STACK_MAX:
        errors["btc_stack"] = "BTC stack cannot exceed 1,000,000 BTC"

    for name, label in (
        ("savings_pct", "Savings allocation"),
        ("investments_pct", "Investments allocation"),
        ("speculation_pct", "Speculation allocation"),
    ):
        _check_percent(errors, name, getattr(config, name), label)

    if not any(name in errors for name in ALLOCATION_FIELDS):
        check = validate_allocation(
            config.savings_pct, config.investments_pct, config.speculation_pct
        )
        if not check.is_valid:
            errors["allocation"] = check.error

    _check_yields(
        errors,
        "investments_yield",
        config.investments_start_yield,
        config.investments_end_yield,
        "Investment",
    )
    _check_yields(
        errors,
        "speculation_yield",
        config.speculation_start_yield,
        config.speculation_end_yield,
        "Speculation",
    )

    _check_percent(errors, "collateral_pct", config.collateral_pct, "Collateral")
    _check_percent(errors, "ltv_ratio", config.ltv_ratio, "Loan-to-value ratio")
    _check_percent(errors, "loan_rate", config.loan_rate, "Loan rate")
    _check_percent(errors, "income_allocation_pct", config.income_allocation_pct, "Income allocation")
    _check_percent(
        errors, "income_reinvestment_pct", config.income_reinvestment_pct, "Income reinvestment"
    )
    _check_percent(errors, "price_crash_pct", config.price_crash_pct, "Price crash")

    if config.loan_term_years < LOAN_TERM_MIN:
        errors["loan_term_years"] = "Loan term must be at least 1 year"

    if config.activation_year < 0:
        errors["activation_year"] = "Activation year cannot be negative"
    elif config.activation_year > config.time_horizon:
        warnings["activation_year"] = "Activation year should not be after the end of the time horizon"

    if config.starting_expenses <= 0:
        warnings["starting_expenses"] = "Starting expenses should be greater than 0"

    if config.exchange_rate <= 0:
        warnings["exchange_rate"] = "Exchange rate should be greater than 0"

    if config.has_loan:
        loan = validate_loan_configuration(config)
        errors.update(loan.errors)
        for name, message in loan.warnings.items():
            warnings.setdefault(name, message)

    for name, message in errors.items():
        logging.warning(f"Invalid configuration ({name}): {message}")

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
