import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from datetime import date

import pandas as pd
import streamlit as st

from app.charts import category_pie, monthly_bars, net_worth_line, summary_bar
from fintrack.aggregates import (
    expenses_by_category, goal_completion_pct, position_return_pct,
    position_value, summary, unrealized_pnl,
)
from fintrack.config import CURRENCY, SEED_FILE, STATE_FILE
from fintrack.csv_io import decode_upload, export_csv, import_csv, transactions_frame
from fintrack.domain import (
    EXPENSE, INCOME,
    GoalRequest, InvestmentRequest, SubscriptionRequest, TransactionRequest,
)
from fintrack.filters import by_text, iter_transactions
from fintrack.forecast import forecast_expenses, monthly_totals, project_month_end
from fintrack.insights import (
    budget_status, health_label, health_score, insight_message,
    savings_goal_progress, upcoming_subscriptions,
)
from fintrack.services import ReportService
from fintrack.storage import JsonFileStorage, load_seed
from fintrack.store import Store
from fintrack.transforms import (
    add_goal, add_subscription, add_transaction, buy_investment, contribute,
    delete_goal, delete_investment, delete_subscription, delete_transaction,
    import_transactions, reset_state, sell_investment, set_budget, toggle_theme, update_price,
)

logging.basicConfig(level=logging.INFO)

st.set_page_config(page_title="Personal Finance Dashboard", layout="wide")

if "store" not in st.session_state:
    st.session_state.store = Store(JsonFileStorage(STATE_FILE))

store: Store = st.session_state.store


def money(value: float) -> str:
    return f"{CURRENCY}{value:,.0f}"


def run(reducer, *args, success: str = ""):
    """Dispatch and report the outcome; rerun the script so every view sees the new state."""
    result = store.dispatch(reducer, *args)
    if result.is_left():
        st.error(result.get_error()["message"])
        return
    st.session_state.flash = list(store.alerts) + ([success] if success else [])
    st.rerun()


for msg in st.session_state.pop("flash", []):
    st.toast(msg)

state = store.state
theme = state.theme

st.sidebar.markdown("### 💰 Finance Dashboard")
if st.sidebar.button("🌓 Toggle theme"):
    run(toggle_theme)
if SEED_FILE.exists() and not state.transactions:
    if st.sidebar.button("Load demo data"):
        run(import_transactions, load_seed(SEED_FILE).transactions, success="Demo data loaded")

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Overview", "🧾 Transactions", "🎯 Goals", "📈 Investments", "🔁 Subscriptions", "📂 Import / Export"]
)

totals = summary(state)
categories = expenses_by_category(state.transactions)

if menu == "🏠 Overview":
    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Income", money(totals["income"]))
    k2.metric("Expenses", money(totals["expense"]))
    k3.metric("Savings", money(totals["savings"]))
    k4.metric("Net Worth", money(totals["net_worth"]))

    score = health_score(totals["income"], totals["expense"], totals["savings"], state.budget)
    st.subheader(f"❤️ Financial health: {score}/100 ({health_label(score)})")
    st.progress(score / 100)
    st.info(insight_message(totals["income"], totals["expense"], totals["savings"], state.budget, categories))

    progress = savings_goal_progress(totals["income"], totals["savings"])
    st.write(f"**Savings goal progress:** {progress:.0f}%")
    st.progress(progress / 100)

    with st.form("budget_form"):
        new_budget = st.number_input("Monthly budget", min_value=0.0, value=float(state.budget), step=500.0)
        if st.form_submit_button("Set budget"):
            run(set_budget, new_budget, success="Budget updated")
    status = budget_status(totals["expense"], state.budget)
    if status["exceeded"]:
        st.warning(status["message"])
    elif status["is_set"]:
        st.caption(status["message"])
        st.progress(min(status["percent_used"], 100) / 100)

    col_left, col_right = st.columns(2)
    with col_left:
        if categories:
            st.plotly_chart(category_pie(categories, theme), use_container_width=True)
        else:
            st.info("No expenses yet.")
    with col_right:
        st.plotly_chart(summary_bar(totals["income"], totals["expense"], totals["savings"], theme),
                        use_container_width=True)

    if state.transactions:
        st.plotly_chart(
            monthly_bars(monthly_totals(state.transactions, INCOME), monthly_totals(state.transactions, EXPENSE), theme),
            use_container_width=True,
        )
        f1, f2 = st.columns(2)
        f1.metric("Forecast next month", money(forecast_expenses(state.transactions)))
        f2.metric("Projected month-end spend", money(project_month_end(state.transactions, date.today())))
    if len(state.net_worth_history) > 1:
        st.plotly_chart(net_worth_line(state.net_worth_history, theme), use_container_width=True)

elif menu == "🧾 Transactions":
    st.title("🧾 Transactions")
    with st.form("tx_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            tx_date = st.date_input("Date")
            amount = st.number_input("Amount", min_value=0.0, step=100.0, format="%.2f")
        with col2:
            category = st.text_input("Category", value="Food")
            kind = st.selectbox("Type", [EXPENSE, INCOME])
        notes = st.text_input("Notes (optional)")
        if st.form_submit_button("Add Transaction"):
            run(add_transaction, TransactionRequest(category=category, amount=amount, type=kind,
                                                    date=tx_date.isoformat(), notes=notes),
                success="Transaction added")

    query = st.text_input("🔎 Filter by category or notes")
    shown = list(iter_transactions(state.transactions, by_text(query)))
    if not shown:
        st.info("No matching transactions.")
    else:
        st.dataframe(transactions_frame(shown), use_container_width=True)
        labels = {f"{t.date} · {t.category} · {money(t.amount)} ({t.type})": t.id for t in shown}
        to_delete = st.selectbox("Delete transaction", list(labels.keys()))
        if st.button("Delete", key="btn_delete_tx"):
            run(delete_transaction, labels[to_delete], success="Transaction deleted")

elif menu == "🎯 Goals":
    st.title("🎯 Savings Goals")
    st.caption(f"Available savings: {money(totals['savings'])}")
    with st.form("goal_form", clear_on_submit=True):
        name = st.text_input("Goal name")
        target = st.number_input("Target", min_value=0.0, step=1000.0)
        has_deadline = st.checkbox("Set a deadline")
        deadline = st.date_input("Deadline")
        if st.form_submit_button("Add Goal"):
            run(add_goal, GoalRequest(name=name, target=target,
                                      deadline=deadline.isoformat() if has_deadline else None),
                success="Goal added")

    if not state.goals:
        st.info("No goals yet.")
    for g in state.goals:
        pct = goal_completion_pct(g)
        st.write(f"**{g.name}** {money(g.current)} / {money(g.target)}"
                 + (f" · due {g.deadline}" if g.deadline else "")
                 + (" ✅" if g.completed else ""))
        st.progress(pct / 100)
        c1, c2, c3 = st.columns([2, 1, 1])
        amount = c1.number_input("Contribution", min_value=0.0, step=500.0, key=f"contrib_{g.id}")
        if c2.button("Contribute", key=f"btn_contrib_{g.id}", disabled=g.completed):
            run(contribute, g.id, amount, success=f"Added to {g.name}")
        if c3.button("Delete", key=f"btn_del_goal_{g.id}"):
            run(delete_goal, g.id)

elif menu == "📈 Investments":
    st.title("📈 Investments")
    with st.form("buy_form", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        ticker = c1.text_input("Ticker")
        qty = c2.number_input("Quantity", min_value=0.0, step=1.0)
        price = c3.number_input("Buy price", min_value=0.0, step=10.0)
        if st.form_submit_button("Buy"):
            run(buy_investment, InvestmentRequest(ticker=ticker, qty=qty, buy_price=price), success="Position opened")

    if not state.investments:
        st.info("No open positions.")
    else:
        st.dataframe(pd.DataFrame([
            {"Ticker": i.ticker, "Qty": i.qty, "Buy": i.buy_price, "Current": i.current_price,
             "Value": position_value(i), "P&L": unrealized_pnl(i), "Return %": round(position_return_pct(i), 2)}
            for i in state.investments
        ]), use_container_width=True)
        st.metric("Portfolio value", money(totals["portfolio_value"]))

        labels = {f"{i.ticker} ×{i.qty:g}": i.id for i in state.investments}
        chosen = st.selectbox("Position", list(labels.keys()))
        inv_id = labels[chosen]
        new_price = st.number_input("Price", min_value=0.0, step=10.0, key="inv_price")
        b1, b2, b3 = st.columns(3)
        if b1.button("Update price"):
            run(update_price, inv_id, new_price, success="Price updated")
        if b2.button("Sell all"):
            run(sell_investment, inv_id, new_price, success="Position closed")
        if b3.button("Delete (no sale)"):
            run(delete_investment, inv_id)

elif menu == "🔁 Subscriptions":
    st.title("🔁 Subscriptions")
    with st.form("sub_form", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        name = c1.text_input("Name")
        amount = c2.number_input("Monthly cost", min_value=0.0, step=50.0)
        due_day = c3.number_input("Due day", min_value=1, max_value=31, value=1, step=1)
        if st.form_submit_button("Add Subscription"):
            run(add_subscription, SubscriptionRequest(name=name, amount=amount, due_day=int(due_day)),
                success="Subscription added")

    st.metric("Monthly burn rate", money(totals["burn_rate"]))
    for sub, due in upcoming_subscriptions(state.subscriptions, date.today()):
        st.warning(f"⏰ {sub.name} ({money(sub.amount)}) due {due.isoformat()}")
    for s in state.subscriptions:
        c1, c2 = st.columns([4, 1])
        c1.write(f"**{s.name}** {money(s.amount)} · day {s.due_day}")
        if c2.button("Delete", key=f"btn_del_sub_{s.id}"):
            run(delete_subscription, s.id)

elif menu == "📂 Import / Export":
    st.title("📂 Import / Export")
    if state.transactions:
        st.download_button("⬇ Download CSV", export_csv(state.transactions),
                           file_name="finance_data.csv", mime="text/csv")
    else:
        st.info("No transactions to export.")

    uploaded = st.file_uploader("Import CSV", type=["csv"])
    if uploaded is not None and st.button("Import"):
        text = decode_upload(uploaded.getvalue())
        if text.is_left():
            st.error(text.get_error()["message"])
        else:
            run(import_transactions, import_csv(text.get_or_else("")), success="Transactions imported")

    st.subheader("Report data")
    report = ReportService().build(state)
    for v in report["validation"]:
        for msg in v["messages"]:
            st.caption(f"⚠️ {msg}")
    st.json(report["result"], expanded=False)

    st.divider()
    if st.checkbox("I understand this deletes everything"):
        if st.button("Reset all data"):
            run(reset_state, success="All data cleared")
