"""Per-year rate resolution for yields, inflation, income and BTC price."""

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from config import (
    ECONOMIC_SCENARIOS,
    PRESET_CURVE_EXPONENT,
    SAYLOR_END_RATE,
    SAYLOR_START_RATE,
)

RATE_MODES = ("flat", "linear", "preset", "saylor", "custom")


@dataclass(frozen=True)
class RateCurve:
    """Description of a rate curve in percent per year.

    Only the fields relevant to ``mode`` are read: ``flat`` for flat mode,
    ``start``/``end`` for linear mode, ``preset`` plus ``curve`` (one of
    ``"inflation"``, ``"btc_price"``, ``"income_yield"``) for preset mode and
    ``custom`` for custom mode.
    """

    mode: str = "flat"
    flat: float = 0.0
    start: float = 0.0
    end: float = 0.0
    preset: str = "debasement"
    curve: str = "btc_price"
    custom: tuple[float, ...] = ()


def interpolate_yield(year: int, start: float, end: float, time_horizon: int) -> float:
    """Linearly interpolate a yield from ``start`` to ``end`` over the horizon.

    A zero horizon leaves the interpolation undefined and returns ``nan``
    (unless both ends are zero, which always yields ``0``).
    """
    if start == 0 and end == 0:
        return 0.0
    if time_horizon == 0:
        logging.debug("Yield interpolation with zero time horizon is undefined")
        return float("nan")
    return start - (start - end) * (year / time_horizon)


def resolve_custom_rate(rates: Sequence[float], year: int) -> float:
    """Return ``rates[year]`` or ``0`` when the array is too short."""
    if year < 0:
        raise ValueError("year must be non-negative")
    if year >= len(rates):
        return 0.0
    return float(rates[year])


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def _preset_rates(start: float, end: float, time_horizon: int) -> list[float]:
    rates = []
    for i in range(time_horizon + 1):
        progress = i / max(1, time_horizon - 1)
        curved = progress ** PRESET_CURVE_EXPONENT
        rate = start + (end - start) * curved
        # Presets snap to even whole percentages
        rates.append(_round_half_up(rate / 2) * 2)
    return rates


def _scenario_bounds(preset: str, curve: str) -> tuple[float, float]:
    try:
        return ECONOMIC_SCENARIOS[preset][curve]
    except KeyError:
        raise ValueError(f"Unknown economic scenario preset {preset!r} / curve {curve!r}")


def rate_at(curve: RateCurve, year: int, time_horizon: int) -> float:
    """Resolve the rate of ``curve`` for a single ``year``."""

    if curve.mode == "flat":
        return float(curve.flat)
    if curve.mode == "linear":
        if time_horizon == 0:
            logging.debug("Linear rate curve with zero time horizon is undefined")
            return float("nan")
        return curve.start - (curve.start - curve.end) * (year / time_horizon)
    if curve.mode == "custom":
        return resolve_custom_rate(curve.custom, year)
    if curve.mode in ("preset", "saylor"):
        rates = generate_rates(curve, max(time_horizon, year))
        return rates[year]
    raise ValueError(f"Unknown rate mode {curve.mode!r}; expected one of {RATE_MODES}")


def generate_rates(curve: RateCurve, time_horizon: int) -> list[float]:
    """Expand ``curve`` into an array covering years ``0..time_horizon``.

    Linear curves use ``year / time_horizon`` as progress, so a zero
    horizon gives ``[nan]`` exactly as :func:`rate_at` does. Preset and
    Saylor values round halves up.
    Custom curves are padded with ``0`` where the stored array is short.
    """
    horizon = max(0, int(time_horizon))

    if curve.mode == "flat":
        return [float(curve.flat)] * (horizon + 1)
    if curve.mode == "linear":
        return [rate_at(curve, i, horizon) for i in range(horizon + 1)]
    if curve.mode == "preset":
        start, end = _scenario_bounds(curve.preset, curve.curve)
        return _preset_rates(start, end, horizon)
    if curve.mode == "saylor":
        return [
            _round_half_up(
                SAYLOR_START_RATE - (SAYLOR_START_RATE - SAYLOR_END_RATE) * (i / max(1, horizon - 1))
            )
            for i in range(horizon + 1)
        ]
    if curve.mode == "custom":
        return [resolve_custom_rate(curve.custom, i) for i in range(horizon + 1)]
    raise ValueError(f"Unknown rate mode {curve.mode!r}; expected one of {RATE_MODES}")


def project_btc_prices(
    exchange_rate: float, rates: Sequence[float], time_horizon: int
) -> list[float]:
    """Compound the BTC price forward from ``exchange_rate``.

    ``price[0]`` is always the exchange rate; ``price[y]`` applies the rate of
    year ``y - 1``. Missing rates count as 0%.
    """
    growth = np.array(
        [1 + resolve_custom_rate(rates, y) / 100 for y in range(max(time_horizon, 0))],
        dtype=float,
    )
    factors = np.cumprod(np.r_[1.0, growth])
    return (exchange_rate * factors).tolist()


def btc_price_at_year(exchange_rate: float, rates: Sequence[float], year: int) -> float:
    """BTC price at a single ``year``; see :func:`project_btc_prices`."""
    if year < 0:
        raise ValueError("year must be non-negative")
    return project_btc_prices(exchange_rate, rates, year)[year]


def average_rate(rates: Sequence[float], time_horizon: int | None = None) -> float:
    """Arithmetic mean of years ``1..time_horizon`` (year 0 excluded), to 1 dp."""
    if not rates:
        return 0.0
    relevant = rates[1 : time_horizon + 1] if time_horizon else rates[1:]
    if not relevant:
        return 0.0
    return round(sum(relevant) / len(relevant), 1)


def calculate_cagr(annual_rates: Sequence[float], time_horizon: int) -> float:
    """Compound annual growth rate implied by years ``0..time_horizon - 1``."""
    if not annual_rates or time_horizon <= 0:
        return 0.0
    used = list(annual_rates[:time_horizon])
    compounded = float(np.prod([1 + r / 100 for r in used]))
    return round((compounded ** (1 / len(used)) - 1) * 100, 1)
