import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
import plotly.express as px

from compass import config
from compass.advisor import PlanRequest, describe_goals, describe_spending, generate_financial_plan
from compass.aggregation import net_balance
from compass.domain import EXPENSE, PERIODS, TRANSACTION_TYPES
from compass.errors import CompassError
from compass.formatting import format_currency, format_date
from compass.logging_setup import configure_logging
from compass.progress import goal_progress, goal_remaining
from compass.services import BudgetService, owned_entry
from compass.simulator import Outcome
from compass.store import JsonStore
from compass.transforms import load_seed

configure_logging()
st.set_page_config(page_title="Fiscal Compass", layout="wide")

CURRENCY = config.CURRENCY


def money(amount):
    return format_currency(amount, CURRENCY)


def open_service(user_id):
    store = JsonStore(user_id)
    if not store.path.exists() and config.SEED_PATH.exists():
        store.save(load_seed(str(config.SEED_PATH)))
    return BudgetService(store)


def show_errors(result):
    if result.is_left():
        st.error(result.get_error()["message"])
        return True
    return False


st.sidebar.markdown("### 👤 Profile")
user_id = st.sidebar.text_input("User", value=st.session_state.get("user_id", config.USER_ID)).strip() or config.USER_ID
st.session_state["user_id"] = user_id

try:
    service = open_service(user_id)
    snap = service.store.snapshot()
except CompassError as e:
    st.error(f"Could not load your data: {e}")
    st.stop()

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Dashboard", "🧾 Transactions", "💰 Budgets", "🎯 Goals", "💳 Payments", "🤖 Advisor"]
)

if menu == "🏠 Dashboard":
    st.title("🏠 Dashboard")
    report = service.dashboard()
    result = report["result"]
    overview = result["overview"]

    k1, k2, k3 = st.columns(3)
    with k1:
        st.metric("Balance", money(net_balance(snap.transactions)))
    with k2:
        st.metric("Spent this month", f"{money(overview.spent)} / {money(overview.limit)}")
    with k3:
        st.metric("Monthly budget used", f"{overview.progress}%")
    st.progress(min(overview.progress, 100) / 100)

    weekly_top = result["weekly_top"]
    if weekly_top:
        category, amount = weekly_top
        st.info(f"You've spent {money(amount)} on {category.lower()} this week.")

    for entry in report["validation"]:
        for msg in entry["messages"]:
            st.warning(msg)

    c1, c2 = st.columns(2)
    with c1:
        by_category = result["by_category"]
        if by_category:
            df_cat = pd.DataFrame({"Category": list(by_category), "Total": list(by_category.values())})
            fig_cat = px.pie(df_cat, values="Total", names="Category", title="Spending by category (this month)")
            st.plotly_chart(fig_cat, use_container_width=True)
        else:
            st.info("No expenses recorded this month.")
    with c2:
        trend = result["trend"]
        fig_ts = go.Figure()
        fig_ts.add_trace(go.Scatter(x=[label for label, _ in trend], y=[total for _, total in trend],
                                    mode="lines+markers", name="Spending"))
        fig_ts.update_layout(title="Spending, last 6 months", margin=dict(t=40, b=10, l=10, r=10))
        st.plotly_chart(fig_ts, use_container_width=True)

elif menu == "🧾 Transactions":
    st.title("🧾 Transactions")
    with st.form("add_transaction", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        description = c1.text_input("Description")
        amount = c2.number_input("Amount", min_value=0.0, step=0.01)
        tx_type = c3.selectbox("Type", TRANSACTION_TYPES)
        c4, c5 = st.columns(2)
        category = c4.text_input("Category")
        tx_date = c5.date_input("Date", value=date.today())
        if st.form_submit_button("Add transaction"):
            result = service.add_transaction({
                "description": description, "amount": amount, "type": tx_type,
                "category": category, "date": tx_date,
            })
            if not show_errors(result):
                st.success(f"Added {description}.")
                st.rerun()

    if snap.transactions:
        df = pd.DataFrame([t.__dict__ for t in snap.transactions])
        df = df.sort_values("date", ascending=False)
        disp = df.assign(
            date=df["date"].map(format_date),
            amount=df.apply(lambda r: money(r["amount"] if r["type"] != EXPENSE else -r["amount"]), axis=1),
        )[["date", "description", "category", "type", "amount"]]
        st.dataframe(disp.reset_index(drop=True), use_container_width=True)
        st.download_button("⬇ Download CSV", df.to_csv(index=False), file_name="transactions.csv")

        to_delete = st.selectbox("Delete transaction", [""] + [t.id for t in snap.transactions],
                                 format_func=lambda tid: next((f"{t.date} {t.description} {money(t.amount)}"
                                                               for t in snap.transactions if t.id == tid), "-"))
        if to_delete and st.button("Delete"):
            service.delete_transaction(to_delete)
            st.rerun()
    else:
        st.info("No transactions yet.")

elif menu == "💰 Budgets":
    st.title("💰 Budgets")
    editing = st.selectbox("Edit budget", [""] + [b.id for b in snap.budgets],
                           format_func=lambda bid: next((f"{b.category} ({b.period})"
                                                         for b in snap.budgets if b.id == bid), "New budget"))
    current = next((b for b in snap.budgets if b.id == editing), None)
    with st.form("budget_form", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        category = c1.text_input("Category", value=current.category if current else "")
        limit = c2.number_input("Limit", min_value=0.0, step=1.0, value=float(current.limit) if current else 0.0)
        period = c3.selectbox("Period", PERIODS, index=PERIODS.index(current.period) if current else 0)
        if st.form_submit_button("Update budget" if current else "Add budget"):
            result = service.save_budget({"id": editing or None, "category": category, "limit": limit, "period": period})
            if not show_errors(result):
                st.rerun()

    for status in service.statuses():
        b = status.budget
        st.subheader(f"{b.category} ({b.period})")
        st.caption(f"{format_date(status.interval.start)} to {format_date(status.interval.end)}")
        st.write(f"Spent {money(status.spent)} / Limit {money(b.limit)} · {status.progress}%")
        st.progress(min(status.progress, 100) / 100)
        if status.is_over:
            st.error(f"You are over budget by {money(status.overage)}!")
        if status.skipped:
            st.warning(f"{status.skipped} transaction(s) with unreadable dates were left out.")
        if st.button("Delete", key=f"del_{b.id}"):
            service.delete_budget(b.id)
            st.rerun()

elif menu == "🎯 Goals":
    st.title("🎯 Goals")
    with st.form("goal_form", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        description = c1.text_input("Description")
        target = c2.number_input("Target amount", min_value=0.0, step=10.0)
        saved = c3.number_input("Current amount", min_value=0.0, step=10.0)
        has_deadline = st.checkbox("Set a deadline")
        deadline = st.date_input("Deadline", value=date.today()) if has_deadline else None
        if st.form_submit_button("Add goal"):
            result = service.save_goal({"description": description, "target_amount": target,
                                        "current_amount": saved, "deadline": deadline})
            if not show_errors(result):
                st.rerun()

    for g in snap.goals:
        st.subheader(g.description)
        deadline_text = f" (Deadline: {format_date(g.deadline)})" if g.deadline else ""
        st.write(f"Progress: {money(g.current_amount)} / {money(g.target_amount)}{deadline_text}")
        st.progress(min(goal_progress(g), 100) / 100)
        st.caption(f"{money(goal_remaining(g))} to go")
        c1, c2, c3 = st.columns([2, 1, 1])
        add = c1.number_input("Contribution", min_value=0.0, step=10.0, key=f"add_{g.id}")
        if c2.button("Contribute", key=f"contrib_{g.id}") and add > 0:
            service.contribute(g.id, add)
            st.rerun()
        if c3.button("Delete", key=f"delgoal_{g.id}"):
            service.delete_goal(g.id)
            st.rerun()

elif menu == "💳 Payments":
    st.title("💳 Payment simulation")
    st.caption("Checks a payment against your budget without recording anything.")
    categories = sorted({b.category for b in snap.budgets} | {t.category for t in snap.transactions if t.type == EXPENSE})
    with st.form("payment_form"):
        amount = st.number_input("Amount", min_value=0.0, step=0.01)
        category = st.selectbox("Category", categories) if categories else st.text_input("Category")
        submitted = st.form_submit_button("Simulate payment")
    if submitted:
        if amount <= 0:
            st.error("Amount must be positive")
        else:
            st.session_state["simulation"] = (user_id, service.simulate(amount, category))

    simulation = owned_entry(st.session_state.get("simulation"), user_id)
    if simulation is not None:
        if simulation.outcome is Outcome.OVER_BUDGET:
            st.error(simulation.message(CURRENCY))
        elif simulation.outcome is Outcome.WITHIN_BUDGET:
            st.success(simulation.message(CURRENCY))
        else:
            st.info(simulation.message(CURRENCY))
        if simulation.skipped:
            st.warning(f"{simulation.skipped} transaction(s) with unreadable dates were left out.")
        if st.button("Record this payment"):
            for alert in service.record(simulation):
                st.warning(alert["alert"])
            st.session_state.pop("simulation")
            st.success("Payment recorded as an expense.")

elif menu == "🤖 Advisor":
    st.title("🤖 Financial advisor")
    today = date.today()
    with st.form("advisor_form"):
        patterns = st.text_area("Your spending patterns", value=describe_spending(snap.transactions, snap.budgets, today), height=150)
        goals_text = st.text_area("Your financial goals", value=describe_goals(snap.goals), height=150)
        submitted = st.form_submit_button("Generate financial plan")
    if submitted:
        try:
            with st.spinner("Generating your plan..."):
                st.session_state["plan"] = (user_id, generate_financial_plan(PlanRequest(patterns, goals_text)))
        except ValueError as e:
            st.error(str(e))
        except CompassError as e:
            st.error(f"Could not generate financial plan. {e}")

    plan = owned_entry(st.session_state.get("plan"), user_id)
    if plan is not None:
        st.subheader("Your personalized financial plan")
        st.write(plan.summary)
        tabs = st.tabs(["Spending analysis", "Action steps", "Investment plan", "Progress tracking"])
        with tabs[0]:
            st.table(pd.DataFrame([{
                "Category": c.category_name,
                "Current": money(c.old_amount),
                "Suggested": money(c.new_amount),
                "Change": c.change_description,
            } for c in plan.spending_analysis]))
        with tabs[1]:
            st.markdown(plan.action_steps)
        with tabs[2]:
            st.markdown(plan.investment_plan)
        with tabs[3]:
            st.markdown(plan.progress_tracking)
