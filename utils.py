# utils.py
import math
from dataclasses import asdict

import streamlit as st

from models import PortfolioConfig


def initialize_session_state():
    """Initialize the Streamlit session state variables.

    Every configuration field is seeded with its default so widgets keyed on
    the field name pick it up.

    Examples
    --------
    >>> initialize_session_state()
    >>> st.session_state.setdefault("extra_key", "default")
    """
    for key, value in asdict(PortfolioConfig()).items():
        st.session_state.setdefault(key, value)
    st.session_state.setdefault("economic_scenario", "debasement")
    st.session_state.setdefault("results_available", False)


def format_currency(value: float) -> tuple[str, bool]:
    """Format a USD amount as whole dollars.

    Negative amounts are wrapped in parentheses. Infinite values render as
    ``$∞`` and NaN as ``$--`` so degenerate projections can still be shown.

    Returns:
        tuple: ``(formatted, is_positive)``.
    """
    if math.isnan(value):
        return "$--", True
    if math.isinf(value):
        return ("$∞", True) if value > 0 else ("($∞)", False)

    is_positive = value >= 0
    rounded = abs(round(value))
    formatted = f"${rounded:,}"
    return (formatted, True) if is_positive else (f"({formatted})", False)


def format_btc(value: float, decimals: int = 2) -> str:
    if not math.isfinite(value):
        return "₿--"
    return f"₿{value:,.{decimals}f}"
