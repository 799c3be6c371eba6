"""Performance page: win rate, ROI and monthly results per bookmaker."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st
from dashboard.utils import api_get, fmt_money

st.set_page_config(page_title="Performance | Bet Ledger", layout="wide")

st.title("Performance Overview")

stats = api_get("/api/bets/stats/summary")

if not stats:
    st.info("No bets yet.")
    st.stop()

df = pd.DataFrame(stats)
for col in ("total_staked", "total_result", "total_liability", "win_rate", "roi", "avg_stake"):
    df[col] = df[col].astype(float)

# --- Key metrics ---
staked = df["total_staked"].sum()
result = df["total_result"].sum()
won = df["won_bets"].sum()
lost = df["lost_bets"].sum()

c1, c2, c3, c4, c5 = st.columns(5)
c1.metric("Total Bets", int(df["total_bets"].sum()))
c2.metric("Win Rate", f"{(won / (won + lost) * 100) if won + lost else 0:.1f}%")
c3.metric("Net Result", fmt_money(result))
c4.metric("ROI", f"{(result / staked * 100) if staked else 0:.2f}%")
c5.metric("Open Liability", fmt_money(df["total_liability"].sum()))

st.markdown("---")

col_l, col_r = st.columns(2)
with col_l:
    st.subheader("Result by Bookmaker")
    fig = px.bar(
        df, x="bookmaker_name", y="total_result", color="roi",
        color_continuous_scale="RdYlGn",
        labels={"total_result": "Result", "bookmaker_name": "Bookmaker"},
    )
    fig.update_layout(height=300, coloraxis_showscale=False)
    st.plotly_chart(fig, use_container_width=True)

with col_r:
    st.subheader("Win Rate by Bookmaker")
    fig = px.bar(
        df, x="bookmaker_name", y="win_rate",
        labels={"win_rate": "Win Rate (%)", "bookmaker_name": "Bookmaker"},
    )
    fig.update_layout(height=300)
    st.plotly_chart(fig, use_container_width=True)

st.dataframe(df, use_container_width=True, hide_index=True)

st.markdown("---")

# --- Monthly results ---
st.subheader("Monthly Results")
monthly = api_get("/api/bets/summary/monthly")
if monthly:
    mdf = pd.DataFrame(monthly).sort_values("month")
    mdf["total_result"] = mdf["total_result"].astype(float)
    mdf["cumulative"] = mdf["total_result"].cumsum()

    fig_m = go.Figure()
    fig_m.add_trace(go.Bar(x=mdf["month"], y=mdf["total_result"], name="Monthly result"))
    fig_m.add_trace(go.Scatter(x=mdf["month"], y=mdf["cumulative"], mode="lines+markers", name="Cumulative"))
    fig_m.add_hline(y=0, line_dash="dash", line_color="gray")
    fig_m.update_layout(height=340, xaxis_title="Month", yaxis_title="Result")
    st.plotly_chart(fig_m, use_container_width=True)

# --- Balance history from daily snapshots ---
st.subheader("Balance History")
days = st.select_slider("Window (days)", [7, 14, 30, 60, 90, 180, 365], value=30)
snaps = api_get("/api/snapshots", {"days": days})
if snaps:
    sdf = pd.DataFrame(snaps)
    sdf["balance"] = sdf["balance"].astype(float)
    fig_s = px.line(sdf.sort_values("snapshot_date"), x="snapshot_date", y="balance", color="bookmaker_name")
    fig_s.update_layout(height=320)
    st.plotly_chart(fig_s, use_container_width=True)
else:
    st.info("No balance snapshots in this window yet.")
