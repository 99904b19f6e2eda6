import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
from datetime import datetime, time as dt_time
from decimal import Decimal

import plotly.express as px
import streamlit as st

from pennywise.api import DashboardApi
from pennywise.config import TOKEN_ENV_VAR, configure_logging
from pennywise.controller import DashboardController
from pennywise.credentials import SessionCredentials
from pennywise.domain import BudgetCard, BudgetDraft, TransactionDraft
from pennywise.events import EventBus, failure_notice_handler, FETCH_FAILED, MUTATION_FAILED
from pennywise.transforms import budget_frame, transactions_frame

st.set_page_config(page_title="Pennywise Dashboard", layout="wide")

if "controller" not in st.session_state:
    configure_logging()
    st.session_state.token = st.session_state.get("token") or os.getenv(TOKEN_ENV_VAR, "")
    notices = st.session_state.notices = []

    def collect_notice(event, payload):
        result = failure_notice_handler(event, payload)
        if result:
            notices.append(result["notice"])
        return result

    bus = EventBus()
    bus.subscribe(FETCH_FAILED, collect_notice)
    bus.subscribe(MUTATION_FAILED, collect_notice)

    st.session_state.controller = DashboardController(
        api=DashboardApi(),
        credentials=SessionCredentials(st.session_state),
        bus=bus,
    )
    asyncio.run(st.session_state.controller.activate())

controller: DashboardController = st.session_state.controller

st.sidebar.markdown("### 🔑 Session")
token = st.sidebar.text_input("Bearer token", value=st.session_state.get("token", ""), type="password")
if token != st.session_state.get("token"):
    st.session_state.token = token
if st.sidebar.button("🔄 Reload"):
    controller.deactivate()
    asyncio.run(controller.activate())
    st.rerun()

view = controller.view()

for notice in st.session_state.notices:
    st.toast(notice)
st.session_state.notices.clear()


def render_card(card: BudgetCard, color: str = "hsl(355, 57%, 57%)"):
    total = float(card.total)
    spent = float(card.spent)
    st.markdown(f"**{card.heading}**")
    st.metric(
        "Spent",
        f"{spent:,.2f} / {total:,.2f}",
        f"{float(card.remaining):,.2f} remaining",
    )
    st.progress(min(spent / total, 1.0) if total > 0 else 0.0)


if view.show_add_transaction_form:
    with st.container(border=True):
        st.subheader("➕ Add Transaction")
        if view.notice:
            st.error(view.notice)
        with st.form("add_transaction"):
            options = controller.category_index
            category_id = st.selectbox(
                "Category",
                options=list(options.keys()),
                format_func=lambda cid: options.get(cid, str(cid)),
            )
            amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
            description = st.text_input("Description")
            when = st.date_input("Transaction date")
            submitted = st.form_submit_button("Add")
        if submitted and category_id is not None:
            draft = TransactionDraft(
                category_id=category_id,
                amount=Decimal(str(amount)),
                transaction_date=datetime.combine(when, dt_time()),
                description=description,
            )
            if asyncio.run(controller.submit_transaction(draft)):
                st.success("✅ Transaction added!")
            st.rerun()
        if st.button("Close", key="close_add_transaction"):
            asyncio.run(controller.close_add_transaction(created=False))
            st.rerun()

if view.show_add_budget_form:
    with st.container(border=True):
        st.subheader("➕ Add Budget")
        if view.notice:
            st.error(view.notice)
        with st.form("add_budget"):
            options = {None: "Overall", **controller.category_index}
            category_id = st.selectbox(
                "Category",
                options=list(options.keys()),
                format_func=lambda cid: options[cid],
            )
            limit = st.number_input("Amount limit", min_value=0.0, step=10.0, format="%.2f")
            submitted = st.form_submit_button("Save")
        if submitted:
            draft = BudgetDraft(category_id=category_id, amount_limit=Decimal(str(limit)))
            asyncio.run(controller.submit_budget(draft))
            st.rerun()
        if st.button("Close", key="close_add_budget"):
            asyncio.run(controller.close_add_budget())
            st.rerun()

st.title("Monthly Budget Summary")

for message in view.errors.values():
    st.warning(message)

if view.overall_card is not None:
    render_card(view.overall_card)

st.subheader("Categories")
if view.budget_cards:
    cols = st.columns(min(len(view.budget_cards), 4))
    for idx, card in enumerate(view.budget_cards):
        with cols[idx % len(cols)]:
            render_card(card)

    budget_df = budget_frame(view.budget_cards)
    fig_budget = px.bar(
        budget_df,
        x="Category",
        y=["Spent", "Remaining"],
        title="Spending by Category",
        template="plotly_dark",
        barmode="stack",
    )
    st.plotly_chart(fig_budget, use_container_width=True)
else:
    st.info("No category budgets yet.")

if st.button("Add New Budget"):
    controller.open_add_budget()
    st.rerun()

st.title("Transactions")
if view.loading:
    st.info("Loading transactions...")
elif view.visible_transactions:
    df = transactions_frame(view.visible_transactions)
    if view.show_all:
        st.dataframe(df, use_container_width=True, hide_index=True, height=400)
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)
    delete_id = st.selectbox(
        "🗑️ Delete transaction",
        options=[None] + [t.id for t in view.visible_transactions],
    )
    if delete_id is not None and st.button("Delete"):
        controller.on_delete_transaction(delete_id)
else:
    st.info("No transactions to display.")

c1, c2 = st.columns(2)
with c1:
    if view.can_show_more and st.button("Show More"):
        controller.show_more()
        st.rerun()
with c2:
    if st.button("Add Transaction"):
        controller.open_add_transaction()
        st.rerun()
