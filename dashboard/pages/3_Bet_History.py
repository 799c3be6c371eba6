"""Bet History page: filterable table with CSV export."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from datetime import date, timedelta

import pandas as pd
import streamlit as st
from dashboard.utils import STATUS_ICONS, api_get, fmt_money

st.set_page_config(page_title="Bet History | Bet Ledger", layout="wide")

st.title("Bet History")

# --- Filters ---
col_f1, col_f2, col_f3 = st.columns(3)
with col_f1:
    days = st.selectbox("Date window", [7, 14, 30, 60, 90, 180, 365], index=4)
with col_f2:
    status_filter = st.selectbox("Status", ["all", "pending", "won", "lost"])
with col_f3:
    type_filter = st.selectbox("Bet type", ["all", "backBet", "layBet", "mugBet", "freeBet", "personal", "other"])

end = date.today()
start = end - timedelta(days=days)
data = api_get(f"/api/bets/period/{start.isoformat()}/{end.isoformat()}")

if not data:
    st.info("No bets found in this window.")
    st.stop()

df = pd.DataFrame(data)

if status_filter != "all":
    df = df[df["status"] == status_filter]
if type_filter != "all":
    df = df[df["bet_type"] == type_filter]

if df.empty:
    st.info("No bets after applying filters.")
    st.stop()

for col in ("stake", "odds", "liability", "result"):
    df[col] = df[col].astype(float)
df["status"] = df["status"].map(lambda s: f"{STATUS_ICONS.get(s, '')} {s}")

# --- Sort controls ---
sort_col, sort_dir = st.columns(2)
with sort_col:
    sort_by = st.selectbox("Sort by", ["bet_date", "result", "stake", "odds"])
with sort_dir:
    ascending = st.radio("Direction", ["Descending", "Ascending"], horizontal=True) == "Ascending"

df = df.sort_values(sort_by, ascending=ascending, na_position="last")

display_cols = [
    "id", "bet_date", "bookmaker_name", "event", "bet", "bet_type", "bank",
    "odds", "stake", "liability", "status", "result", "matched_bet_id", "promo",
]
rename_map = {
    "id": "ID", "bet_date": "Date", "bookmaker_name": "Bookmaker", "event": "Event",
    "bet": "Selection", "bet_type": "Type", "bank": "Bank", "odds": "Odds",
    "stake": "Stake", "liability": "Liability", "status": "Status", "result": "Result",
    "matched_bet_id": "Matched", "promo": "Promo",
}

st.write(f"**{len(df)} bet(s)**")
st.dataframe(df[display_cols].rename(columns=rename_map), use_container_width=True, hide_index=True)

settled = df[df["status"].str.contains("won|lost")]
if not settled.empty:
    total = settled["result"].sum()
    staked = settled["stake"].sum()
    st.markdown(
        f"**Summary (settled):** {len(settled)} bets | "
        f"result **{fmt_money(total)}** | ROI **{(total / staked * 100) if staked else 0:.1f}%**"
    )

# --- CSV export ---
st.markdown("---")
csv = df[display_cols].rename(columns=rename_map).to_csv(index=False).encode("utf-8")
st.download_button(
    label="Export to CSV",
    data=csv,
    file_name="bet_ledger_history.csv",
    mime="text/csv",
)
