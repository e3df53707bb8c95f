from typing import Mapping, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from fintrack.domain import NetWorthSample

PALETTE = ["#f1c40f", "#e67e22", "#1abc9c", "#9b59b6", "#e74c3c", "#3498db", "#2ecc71"]


def template_for(theme: str) -> str:
    return "plotly_dark" if theme == "dark" else "plotly_white"


def category_pie(categories: Mapping[str, float], theme: str = "light") -> go.Figure:
    df = pd.DataFrame({"Category": list(categories.keys()), "Amount": list(categories.values())})
    fig = px.pie(df, values="Amount", names="Category", title="Expenses by Category",
                 color_discrete_sequence=PALETTE, template=template_for(theme))
    fig.update_layout(height=320, margin=dict(t=40, b=10, l=10, r=10))
    return fig


def summary_bar(income: float, expense: float, saved: float, theme: str = "light") -> go.Figure:
    fig = go.Figure(go.Bar(
        x=["Income", "Expenses", "Savings"],
        y=[income, expense, saved],
        marker_color=["#2ecc71", "#e74c3c", "#3498db"],
    ))
    fig.update_layout(title="Summary", template=template_for(theme), height=320,
                      margin=dict(t=40, b=10, l=10, r=10))
    return fig


def net_worth_line(history: Sequence[NetWorthSample], theme: str = "light") -> go.Figure:
    fig = go.Figure(go.Scatter(
        x=[s.date for s in history], y=[s.value for s in history], mode="lines+markers", name="Net worth",
    ))
    fig.update_layout(title="Net Worth", template=template_for(theme), margin=dict(t=40, b=10, l=10, r=10))
    return fig


def monthly_bars(income: Mapping[str, float], expense: Mapping[str, float], theme: str = "light") -> go.Figure:
    months = sorted(set(income) | set(expense))
    fig = go.Figure()
    fig.add_trace(go.Bar(x=months, y=[income.get(m, 0) for m in months], name="Income", marker_color="#2ecc71"))
    fig.add_trace(go.Bar(x=months, y=[expense.get(m, 0) for m in months], name="Expense", marker_color="#e74c3c"))
    fig.update_layout(barmode="group", title="Monthly Cash Flow", template=template_for(theme),
                      margin=dict(t=40, b=10, l=10, r=10))
    return fig
