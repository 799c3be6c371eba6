"""Freebets page: pending offers and conversion."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

import pandas as pd
import plotly.express as px
import streamlit as st
from dashboard.utils import api_get, fmt_money

st.set_page_config(page_title="Freebets | Bet Ledger", layout="wide")

st.title("Freebets")

conversion = api_get("/api/freebets/conversion-rate")
if not conversion or conversion["totals"]["total_freebets"] == 0:
    st.info("No freebets recorded yet.")
    st.stop()

totals = conversion["totals"]
c1, c2, c3, c4 = st.columns(4)
c1.metric("Freebets", totals["total_freebets"])
c2.metric("Total Value", fmt_money(totals["total_amount"]))
c3.metric("Profit Extracted", fmt_money(totals["total_profit"]))
c4.metric("Conversion", f"{float(totals['overall_conversion_rate']):.1f}%")

by_bm = pd.DataFrame(conversion["by_bookmaker"])
if not by_bm.empty:
    by_bm["conversion_rate"] = by_bm["conversion_rate"].astype(float)
    fig = px.bar(
        by_bm, x="bookmaker_name", y="conversion_rate",
        labels={"conversion_rate": "Conversion (%)", "bookmaker_name": "Bookmaker"},
    )
    fig.update_layout(height=300)
    st.plotly_chart(fig, use_container_width=True)
    st.dataframe(by_bm, use_container_width=True, hide_index=True)

st.markdown("---")

st.subheader("Expiring Soon")
days = st.slider("Days ahead", 1, 60, 7)
expiring = api_get("/api/freebets/expiring", {"days": days})
if expiring:
    st.dataframe(pd.DataFrame(expiring), use_container_width=True, hide_index=True)
else:
    st.caption("No pending freebets in this window.")
