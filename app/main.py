import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
from datetime import datetime

import streamlit as st
import pandas as pd
import plotly.express as px

from mtracker.aggregation import (
    compute_budget_status,
    compute_income_usage,
    compute_month_key,
    compute_totals,
    group_by_day,
    previous_budgets,
    recent_transactions,
    spent_in_month,
)
from mtracker.async_reports import budget_history
from mtracker.coerce import parse_timestamp
from mtracker.config import get_settings
from mtracker.context import create_app_context
from mtracker.domain import EXPENSE, INCOME, PERIODS, Period
from mtracker.errors import MTrackerError
from mtracker.formatting import format_amount, format_money, format_number, format_time
from mtracker.functional import build_transaction
from mtracker.logging_config import configure_logging

st.set_page_config(page_title="M-Tracker", layout="wide")

PERIOD_LABELS = {Period.MONTH: "This month", Period.WEEK: "This week", Period.ALL: "All time"}

if "ctx" not in st.session_state:
    settings = get_settings()
    configure_logging(settings.log_level)
    st.session_state.ctx = create_app_context(settings)
    st.session_state.summary = st.session_state.ctx.live_summary()

ctx = st.session_state.ctx
summary = st.session_state.summary
symbol = ctx.currency.currency.symbol


def tx_to_df(tx_list):
    rows = []
    for t in tx_list:
        rows.append({
            "Time": format_time(t.created_at or t.date),
            "Title": t.title,
            "Note": t.note or "",
            "Amount": format_amount(t.amount, symbol),
        })
    return pd.DataFrame(rows, columns=["Time", "Title", "Note", "Amount"])


def render_usage(status, caption: str) -> None:
    st.caption(caption.format(percent=status.percent))
    st.progress(float(status.ratio))


st.sidebar.markdown("### 👤 Profile")
if ctx.session.user_id is None:
    with st.sidebar.form("login_form"):
        nickname = st.text_input("Nickname", value=st.session_state.get("nickname", ""))
        if st.form_submit_button("Sign in"):
            try:
                ctx.sign_in(nickname)
                st.session_state["nickname"] = nickname.strip()
                st.rerun()
            except ValueError as e:
                st.error(str(e))
    st.title("M-Tracker")
    st.info("Sign in from the sidebar to start tracking.")
    st.stop()

st.sidebar.caption(f"Hello, {ctx.session.user_id}!")

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Dashboard", "➕ Add", "🕘 History", "📊 Statistics", "💰 Budget", "⚙️ Settings"]
)

transactions = ctx.transactions.snapshot()

if menu == "🏠 Dashboard":
    st.title("🏠 Dashboard")
    st.caption("Here's a quick snapshot of your finances today.")

    totals = compute_totals(transactions)
    k1, k2, k3 = st.columns(3)
    with k1:
        st.metric("Income", format_money(totals.income, symbol))
    with k2:
        st.metric("Expenses", f"-{symbol}{format_number(totals.expenses)}")
    with k3:
        st.metric("Balance", format_money(totals.balance, symbol))

    st.subheader("Recent transactions")
    recent = recent_transactions(transactions, ctx.settings.recent_limit)
    if recent:
        st.table(tx_to_df(recent))
    else:
        st.info("No transactions yet. Start by adding your first one.")

    st.subheader("Statistics")
    render_usage(compute_income_usage(totals), "You've spent {percent}% of your income in this period.")

elif menu == "➕ Add":
    editing = ctx.transactions.get(st.session_state.get("editing_id", ""))
    st.title("✏️ Edit transaction" if editing else "➕ Add transaction")

    default_kind = editing.category_type if editing else EXPENSE
    kind = st.radio("Type", [EXPENSE, INCOME], index=[EXPENSE, INCOME].index(default_kind),
                    format_func=str.capitalize, horizontal=True)
    cats = ctx.transactions.categories(kind)

    with st.form("transaction_form", clear_on_submit=not editing):
        cat_ids = [c.id for c in cats]
        default_cat = cat_ids.index(editing.category_id) if editing and editing.category_id in cat_ids else 0
        category_id = st.selectbox(
            "Category",
            cat_ids,
            index=default_cat,
            format_func=lambda cid: next(c.label for c in cats if c.id == cid),
        ) if cats else None
        amount_text = st.text_input(f"Amount ({symbol})", value=str(abs(editing.amount)) if editing else "")
        note = st.text_input("Note (optional)", value=(editing.note or "") if editing else "")
        image_uri = st.text_input("Photo URL (optional)", value=(editing.image_uri or "") if editing else "")
        submitted = st.form_submit_button("Save changes" if editing else "Add transaction")

    if submitted:
        result = build_transaction(kind, category_id, amount_text, cats, note, image_uri, existing=editing)
        if result.is_left():
            st.error(result.get_error()["message"])
        else:
            tx = result.get_or_else(None)
            if editing:
                ctx.transactions.update(editing.id, tx)
                st.session_state.pop("editing_id", None)
                st.success("Transaction updated")
            else:
                ctx.transactions.add(tx)
                st.success("Transaction added")

    if editing and st.button("Cancel editing"):
        st.session_state.pop("editing_id", None)
        st.rerun()

elif menu == "🕘 History":
    st.title("🕘 History")
    st.caption("All your transactions, grouped by date.")

    if not transactions:
        st.info("You don't have any transactions yet.")
    else:
        for group in group_by_day(transactions):
            st.subheader(group.title)
            st.table(tx_to_df(group.items))

        st.divider()
        st.subheader("Transaction details")
        tx_id = st.selectbox(
            "Transaction",
            [t.id for t in transactions],
            format_func=lambda i: next(f"{t.title} {format_amount(t.amount, symbol)}" for t in transactions if t.id == i),
        )
        tx = ctx.transactions.get(tx_id)
        if tx is not None:
            created = parse_timestamp(tx.created_at or tx.date)
            st.metric(tx.title, format_amount(tx.amount, symbol))
            st.write(f"**Type:** {tx.category_type}")
            st.write(f"**Date:** {created.strftime('%x') if created else '-'} {format_time(tx.created_at or tx.date)}")
            if tx.note:
                st.write(f"**Note:** {tx.note}")
            if tx.image_uri:
                st.image(tx.image_uri)
            c1, c2 = st.columns(2)
            with c1:
                if st.button("Edit"):
                    st.session_state["editing_id"] = tx.id
                    st.info("Open the Add page to edit this transaction.")
            with c2:
                if st.button("Delete"):
                    try:
                        ctx.transactions.delete(tx.id)
                        st.rerun()
                    except MTrackerError as e:
                        st.error(str(e))

elif menu == "📊 Statistics":
    st.title("📊 Statistics")
    st.caption("Get a deeper insight into your income and spending.")

    period = st.radio("Period", list(PERIODS), format_func=PERIOD_LABELS.get, horizontal=True,
                      index=list(PERIODS).index(summary.period))
    result = summary.select_period(period)["result"]
    totals = result["totals"]
    count = result["count"]

    st.subheader("Overview")
    st.caption(f"{count} transaction{'' if count == 1 else 's'} in this period.")
    k1, k2, k3 = st.columns(3)
    with k1:
        st.metric("Income", format_money(totals.income, symbol))
    with k2:
        st.metric("Expenses", f"-{symbol}{format_number(totals.expenses)}")
    with k3:
        st.metric("Balance", format_money(totals.balance, symbol))
    usage = result["income_usage"]
    render_usage(usage, "{percent}% of income spent")
    st.caption(f"Remaining: {format_money(usage.remaining, symbol)}")

    st.subheader("Spending activity")
    bars = result["activity"]
    if not bars:
        st.info("You don't have any expense transactions yet.")
    else:
        df_act = pd.DataFrame([
            {"Title": b.transaction.title, "Amount": abs(b.transaction.amount), "Width": b.width}
            for b in bars
        ])
        fig = px.bar(
            df_act,
            x="Width",
            y="Title",
            orientation="h",
            hover_data={"Amount": True, "Width": False},
            labels={"Width": "", "Title": ""},
            template="plotly_dark",
        )
        fig.update_layout(xaxis=dict(range=[0, 1], showticklabels=False), margin=dict(t=10, b=10, l=10, r=10))
        st.plotly_chart(fig, use_container_width=True)

elif menu == "💰 Budget":
    st.title("💰 Budget plan")
    st.caption("Start or adjust your monthly spending plan.")

    month_key = compute_month_key(datetime.now())
    current = ctx.budgets.get_budget_for_month(month_key)
    spent_abs = abs(spent_in_month(transactions, month_key))

    st.subheader(f"{month_key} – current month")
    if current:
        status = compute_budget_status(current, spent_abs)
        k1, k2, k3 = st.columns(3)
        with k1:
            st.metric("Budget", f"{symbol}{format_number(current.total_budget)}")
        with k2:
            st.metric("Spent so far", f"{symbol}{format_number(spent_abs)}")
        with k3:
            st.metric("Remaining", format_money(status.remaining, symbol))
        render_usage(status, "{percent}% of budget used")
        if status.over:
            st.warning("You are over budget this month.")
    else:
        st.info("You don't have a budget for this month yet.")

    with st.form("budget_form"):
        value = st.text_input(f"Monthly budget ({symbol})",
                              value=str(current.total_budget) if current else "")
        if st.form_submit_button("Save budget"):
            saved = ctx.budgets.set_monthly_budget(month_key, value)
            if saved.is_left():
                st.error(saved.get_error()["message"])
            else:
                st.success("Budget saved")
                st.rerun()

    st.subheader("Previous months")
    previous = previous_budgets(ctx.budgets.budgets(), month_key)
    if not previous:
        st.info("No previous budgets yet.")
    else:
        history = asyncio.run(budget_history({b.month_key: b for b in previous}, transactions))
        st.table(pd.DataFrame([
            {
                "Month": h["month_key"],
                "Budget": f"{symbol}{format_number(h['budget'].total_budget)}",
                "Spent": f"{symbol}{format_number(h['spent_abs'])}",
                "Used": f"{h['status'].percent}%",
            }
            for h in history
        ]))

elif menu == "⚙️ Settings":
    st.title("⚙️ Settings")

    col_exp, col_inc = st.columns(2)
    with col_exp:
        st.subheader("Expense categories")
        st.write(", ".join(c.label for c in ctx.transactions.expense_categories))
        with st.form("expense_category", clear_on_submit=True):
            name = st.text_input("New expense category")
            if st.form_submit_button("Add") and name.strip():
                if ctx.transactions.add_category(EXPENSE, name) is None:
                    st.warning("That category already exists.")
                st.rerun()
    with col_inc:
        st.subheader("Income categories")
        st.write(", ".join(c.label for c in ctx.transactions.income_categories))
        with st.form("income_category", clear_on_submit=True):
            name = st.text_input("New income category")
            if st.form_submit_button("Add") and name.strip():
                if ctx.transactions.add_category(INCOME, name) is None:
                    st.warning("That category already exists.")
                st.rerun()

    st.subheader("Currency")
    codes = [c.code for c in ctx.currency.currencies]
    code = st.selectbox(
        "Display currency",
        codes,
        index=codes.index(ctx.currency.currency.code),
        format_func=lambda c: next(x.label for x in ctx.currency.currencies if x.code == c),
    )
    if code != ctx.currency.code:
        ctx.currency.set_code(code)
        st.rerun()

    st.subheader("Danger zone")
    st.caption("This will clear all your saved transactions.")
    if st.button("🗑 Reset all data"):
        ctx.transactions.reset()
        st.rerun()

    if st.button("Log out"):
        ctx.session.sign_out()
        st.rerun()
