# main.py
import logging

import streamlit as st

from calculations import calculate_projection
from config import (
    BTC_STACK_MAX,
    BTC_STACK_STEP,
    ECONOMIC_SCENARIOS,
    EXCHANGE_RATE_STEP,
    EXPENSES_STEP,
    PERCENT_STEP,
    TIME_HORIZON_RANGE,
)
from insights import build_insight_data, growth_label, liquidation_risk_label
from loans import calculate_additional_collateral_potential
from models import PortfolioConfig, config_from_mapping
from rates import RateCurve, generate_rates
from simulation import simulate_allocation_buckets
from utils import format_btc, format_currency, initialize_session_state
from validation import validate_configuration
from visualization import show_projection_charts


@st.cache_data
def _cached_calculate_projection(config: PortfolioConfig):
    return calculate_projection(config)


@st.cache_data
def _cached_allocation_buckets(config: PortfolioConfig):
    return simulate_allocation_buckets(config)


def _on_input_change():
    st.session_state.results_available = False


def scenario_rates(scenario: str, time_horizon: int) -> dict[str, tuple[float, ...]]:
    """Per-year rate arrays for an economic scenario preset."""
    return {
        field_name: tuple(
            generate_rates(RateCurve(mode="preset", preset=scenario, curve=curve), time_horizon)
        )
        for field_name, curve in (
            ("btc_price_rates", "btc_price"),
            ("inflation_rates", "inflation"),
            ("income_rates", "income_yield"),
        )
    }


def build_config(inputs: dict) -> PortfolioConfig:
    """Turn raw form inputs into a configuration, expanding the scenario rates."""
    values = dict(inputs)
    scenario = values.pop("economic_scenario", None)
    if scenario in ECONOMIC_SCENARIOS:
        values.update(scenario_rates(scenario, int(values.get("time_horizon", 0))))
    return config_from_mapping(values)


def render_calculator():
    with st.form("portfolio_form"):
        col1, col2, col3 = st.columns(3)
        with col1:
            btc_stack = st.number_input(
                "BTC Stack (₿)",
                min_value=0.0,
                max_value=BTC_STACK_MAX,
                step=BTC_STACK_STEP,
                key="btc_stack",
            )
        with col2:
            exchange_rate = st.number_input(
                "BTC Price Today (USD)", min_value=0.0, step=EXCHANGE_RATE_STEP, key="exchange_rate"
            )
        with col3:
            time_horizon = st.number_input(
                "Time Horizon (years)",
                min_value=TIME_HORIZON_RANGE[0],
                max_value=TIME_HORIZON_RANGE[1],
                step=1,
                key="time_horizon",
            )

        col4, col5, col6 = st.columns(3)
        with col4:
            savings_pct = st.number_input("Savings (%)", 0.0, 100.0, step=PERCENT_STEP, key="savings_pct")
        with col5:
            investments_pct = st.number_input(
                "Investments (%)", 0.0, 100.0, step=PERCENT_STEP, key="investments_pct"
            )
        with col6:
            speculation_pct = st.number_input(
                "Speculation (%)", 0.0, 100.0, step=PERCENT_STEP, key="speculation_pct"
            )

        col7, col8, col9 = st.columns(3)
        with col7:
            activation_year = st.number_input("Activation Year", min_value=0, step=1, key="activation_year")
            starting_expenses = st.number_input(
                "Annual Expenses (USD)", min_value=0.0, step=EXPENSES_STEP, key="starting_expenses"
            )
        with col8:
            income_allocation_pct = st.number_input(
                "Income Allocation (%)", 0.0, 100.0, step=PERCENT_STEP, key="income_allocation_pct"
            )
            income_reinvestment_pct = st.number_input(
                "Income Reinvestment (%)", 0.0, 100.0, step=PERCENT_STEP, key="income_reinvestment_pct"
            )
        with col9:
            economic_scenario = st.selectbox(
                "Economic Scenario",
                list(ECONOMIC_SCENARIOS),
                format_func=lambda key: ECONOMIC_SCENARIOS[key]["name"],
                key="economic_scenario",
            )
            enable_annual_reallocation = st.checkbox(
                "Rebalance annually", key="enable_annual_reallocation"
            )

        col10, col11, col12 = st.columns(3)
        with col10:
            collateral_pct = st.number_input(
                "Collateral (% of savings)", 0.0, 100.0, step=PERCENT_STEP, key="collateral_pct"
            )
            ltv_ratio = st.number_input("LTV (%)", 0.0, 100.0, step=PERCENT_STEP, key="ltv_ratio")
        with col11:
            loan_rate = st.number_input("Loan Rate (%)", 0.0, 100.0, step=0.5, key="loan_rate")
            loan_term_years = st.number_input("Loan Term (years)", min_value=0, step=1, key="loan_term_years")
        with col12:
            interest_only = st.checkbox("Interest only", key="interest_only")
            price_crash_pct = st.number_input(
                "Price Crash (%)", 0.0, 100.0, step=PERCENT_STEP, key="price_crash_pct"
            )

        submitted = st.form_submit_button("Project Portfolio")

    if not submitted:
        return None

    _on_input_change()
    return {
        "btc_stack": float(btc_stack),
        "exchange_rate": float(exchange_rate),
        "time_horizon": int(time_horizon),
        "savings_pct": float(savings_pct),
        "investments_pct": float(investments_pct),
        "speculation_pct": float(speculation_pct),
        "activation_year": int(activation_year),
        "starting_expenses": float(starting_expenses),
        "income_allocation_pct": float(income_allocation_pct),
        "income_reinvestment_pct": float(income_reinvestment_pct),
        "economic_scenario": economic_scenario,
        "enable_annual_reallocation": bool(enable_annual_reallocation),
        "collateral_pct": float(collateral_pct),
        "ltv_ratio": float(ltv_ratio),
        "loan_rate": float(loan_rate),
        "loan_term_years": int(loan_term_years),
        "interest_only": bool(interest_only),
        "price_crash_pct": float(price_crash_pct),
    }


def render_results(results, config: PortfolioConfig):
    """Render the projection summary and return the insight data."""

    insights = build_insight_data(results, config)
    growth = insights.growth

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Final Stack (with income)", format_btc(growth.final_btc_with_income))
    with col2:
        st.metric("Final Stack (without income)", format_btc(growth.final_btc_without_income))
    with col3:
        st.metric("Cost of Income", f"{growth.btc_growth_difference:.2f}%")

    st.write(
        f"**{growth_label(growth.btc_growth_with_income)}:** "
        f"{growth.btc_growth_with_income:,.0f}% BTC stack growth over {config.time_horizon} years."
    )

    escape = insights.escape_velocity
    if escape.base_year is not None:
        st.success(f"Escape velocity (base): year {escape.base_year}")
    else:
        st.warning("Escape velocity (base): not reached within the horizon")
    if config.collateral_pct > 0:
        if escape.leveraged_year is not None:
            st.success(f"Escape velocity (leveraged): year {escape.leveraged_year}")
        else:
            st.warning("Escape velocity (leveraged): not reached within the horizon")
    if insights.escape_velocity_comparison is not None:
        st.info(insights.escape_velocity_comparison.message)

    cashflow = insights.cashflows.activation_year
    base_text, _ = format_currency(cashflow.without_leverage)
    leveraged_text, _ = format_currency(cashflow.with_leverage)
    st.write(
        f"Cashflow at activation year {config.activation_year}: {base_text} without leverage, "
        f"{leveraged_text} with leverage."
    )

    if results.loan is not None:
        principal_text, _ = format_currency(results.loan.loan_principal)
        payments_text, _ = format_currency(results.loan.annual_payments)
        liquidation_text, _ = format_currency(results.loan.liquidation_price)
        st.write(
            f"Loan of {principal_text} against {format_btc(results.loan.collateral_btc, 4)} "
            f"costs {payments_text} per year; liquidation below {liquidation_text}."
        )
    if insights.liquidation is not None:
        buffer = insights.liquidation.liquidation_buffer
        st.write(f"**{liquidation_risk_label(buffer)}:** {buffer:,.0f}% above liquidation price.")
        potential = calculate_additional_collateral_potential(config, config.activation_year)
        if potential is not None:
            improved_text, _ = format_currency(potential.improved_liquidation_price)
            st.write(
                f"Pledging another {format_btc(potential.additional_btc, 4)} of savings "
                f"would lower liquidation to {improved_text}."
            )

    for message in results.warnings:
        st.warning(message)

    show_projection_charts(
        results,
        buckets=_cached_allocation_buckets(config),
        show_leverage=config.collateral_pct > 0,
    )
    st.info(
        "Note: Bitcoin prices are highly volatile. These projections are estimates and should not be considered financial advice."
    )
    return insights


def main():
    st.title("BTC Escape Velocity")
    initialize_session_state()

    inputs = render_calculator()
    if inputs is not None:
        config = build_config(inputs)
        validation = validate_configuration(config)
        for message in validation.errors.values():
            st.error(message)
        for message in validation.warnings.values():
            st.warning(message)
        if validation.is_valid:
            st.session_state["results_data"] = (
                _cached_calculate_projection(config),
                config,
            )
            st.session_state.results_available = True
        else:
            logging.warning(f"Projection skipped: {len(validation.errors)} validation error(s)")

    if st.session_state.get("results_available"):
        results, config = st.session_state["results_data"]
        render_results(results, config)


if __name__ == "__main__":
    main()
