# visualization.py
import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from calculations import ProjectionResults

BTC_COLOR = (253, 150, 68)
BASE_COLOR = (99, 110, 250)
LEVERAGE_COLOR = (138, 201, 38)
EXPENSE_COLOR = (255, 89, 94)
BUCKET_COLORS = {
    "Savings (₿)": (34, 197, 94),
    "Investments (₿)": (59, 130, 246),
    "Speculation (₿)": (168, 85, 247),
}


def _rgba(rgb: tuple[int, int, int], alpha: float) -> str:
    r, g, b = rgb
    return f"rgba({r}, {g}, {b}, {alpha})"


def build_btc_growth_figure(results: ProjectionResults) -> go.Figure:
    """Line chart of the BTC stack with and without income generation."""

    df = pd.DataFrame(
        {
            "Year": results.years,
            "With Income (₿)": results.btc_with_income,
            "Without Income (₿)": results.btc_without_income,
        }
    )
    fig = px.line(df, x="Year", y=["With Income (₿)", "Without Income (₿)"])

    fig.data[0].line.color = _rgba(BTC_COLOR, 1.0)
    fig.data[0].fill = "tozeroy"
    fig.data[0].fillcolor = _rgba(BTC_COLOR, 0.2)
    fig.data[1].line.color = _rgba(BASE_COLOR, 1.0)
    fig.data[1].line.dash = "dash"

    fig.update_layout(margin=dict(t=0, b=0, l=0, r=0), yaxis_title="Stack (₿)")
    return fig


def build_income_figure(results: ProjectionResults, show_leverage: bool = True) -> go.Figure:
    """Income versus expenses by activation year.

    Each point is the first-year income if income generation started that
    year, which is what the escape velocity scan compares against expenses.
    """

    columns = {
        "Year": results.years,
        "Income (USD)": results.income_at_activation_years,
        "Expenses (USD)": results.expenses_at_activation_years,
    }
    if show_leverage:
        columns["Income With Leverage (USD)"] = results.income_at_activation_years_with_leverage
    df = pd.DataFrame(columns)

    y = [name for name in df.columns if name != "Year"]
    fig = px.line(df, x="Year", y=y)

    colors = {
        "Income (USD)": BASE_COLOR,
        "Expenses (USD)": EXPENSE_COLOR,
        "Income With Leverage (USD)": LEVERAGE_COLOR,
    }
    for trace in fig.data:
        trace.line.color = _rgba(colors[trace.name], 1.0)

    fig.update_layout(margin=dict(t=0, b=0, l=0, r=0), yaxis_title="USD per year")
    return fig


def build_allocation_figure(buckets: dict[str, list[float]]) -> go.Figure:
    """Stacked bars of BTC held in each bucket per year."""

    labels = {
        "savings": "Savings (₿)",
        "investments": "Investments (₿)",
        "speculation": "Speculation (₿)",
    }
    years = list(range(len(buckets["savings"])))
    fig = go.Figure()
    for key, label in labels.items():
        fig.add_trace(
            go.Bar(
                x=years,
                y=buckets[key],
                name=label,
                marker_color=_rgba(BUCKET_COLORS[label], 0.8),
            )
        )
    fig.update_layout(barmode="stack", margin=dict(t=0, b=0, l=0, r=0), yaxis_title="BTC (₿)")
    return fig


def show_projection_charts(results: ProjectionResults, buckets: dict[str, list[float]] | None = None,
                           show_leverage: bool = True) -> None:
    """Render the projection charts with Streamlit."""

    st.subheader("BTC Stack Growth")
    st.plotly_chart(
        build_btc_growth_figure(results),
        use_container_width=True,
        config={"displayModeBar": False},
    )

    st.subheader("Income Potential by Activation Year")
    st.plotly_chart(
        build_income_figure(results, show_leverage=show_leverage),
        use_container_width=True,
        config={"displayModeBar": False},
    )

    if buckets is not None:
        st.subheader("Allocation Evolution")
        st.plotly_chart(
            build_allocation_figure(buckets),
            use_container_width=True,
            config={"displayModeBar": False},
        )
