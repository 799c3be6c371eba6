"""Cashflow page: deposits, withdrawals and period balance."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from datetime import date, timedelta

import pandas as pd
import plotly.graph_objects as go
import streamlit as st
from dashboard.utils import api_get, api_post, bookmaker_options, fmt_money

st.set_page_config(page_title="Cashflow | Bet Ledger", layout="wide")

st.title("Cashflow")

monthly = api_get("/api/transactions/cashflow/monthly")
if monthly:
    df = pd.DataFrame(monthly).sort_values("month")
    for col in ("deposits", "withdrawals", "net_flow"):
        df[col] = df[col].astype(float)

    fig = go.Figure()
    fig.add_trace(go.Bar(x=df["month"], y=df["deposits"], name="Deposits", marker_color="steelblue"))
    fig.add_trace(go.Bar(x=df["month"], y=-df["withdrawals"], name="Withdrawals", marker_color="indianred"))
    fig.add_trace(go.Scatter(x=df["month"], y=df["net_flow"], mode="lines+markers", name="Net flow"))
    fig.update_layout(barmode="relative", height=340)
    st.plotly_chart(fig, use_container_width=True)
else:
    st.info("No transactions yet.")

col_d, col_w = st.columns(2)
for col, kind in ((col_d, "deposits"), (col_w, "withdrawals")):
    summary = api_get(f"/api/transactions/summary/{kind}")
    with col:
        st.subheader(kind.title())
        if summary and summary["by_bookmaker"]:
            st.metric("Total", fmt_money(summary["totals"]["total_amount"]), delta=f"{summary['totals']['count']} txns")
            st.dataframe(
                pd.DataFrame(summary["by_bookmaker"])[
                    ["bookmaker_name", "count", "total_amount", "avg_amount", "percentage_of_total"]
                ],
                use_container_width=True,
                hide_index=True,
            )
        else:
            st.caption("None recorded.")

st.markdown("---")

# --- Period balance ---
st.subheader("Balance Movement")
c1, c2 = st.columns(2)
start = c1.date_input("From", value=date.today() - timedelta(days=30))
end = c2.date_input("To", value=date.today())
if end >= start:
    period = api_get(f"/api/transactions/balance/{start.isoformat()}/{end.isoformat()}")
    if period:
        st.metric("Net movement", fmt_money(period["total_balance"]))
        if period["by_bookmaker"]:
            st.dataframe(pd.DataFrame(period["by_bookmaker"]), use_container_width=True, hide_index=True)
else:
    st.warning("'To' must not be before 'From'.")

st.markdown("---")

# --- New transaction ---
st.subheader("Record Transaction")
options = bookmaker_options()
if options:
    with st.form("new_transaction"):
        bookmaker = st.selectbox("Bookmaker", list(options))
        kind = st.radio("Type", ["deposit", "withdrawal"], horizontal=True)
        amount = st.number_input("Amount", min_value=0.01, value=50.0, step=10.0)
        tx_date = st.date_input("Date", value=date.today())
        info = st.text_input("Info (optional)")
        if st.form_submit_button("Save"):
            created = api_post("/api/transactions", {
                "bookmaker_id": options[bookmaker],
                "type": kind,
                "amount": amount,
                "date": tx_date.isoformat(),
                "info": info or None,
            })
            if created:
                st.success(f"Transaction #{created['id']} saved")
