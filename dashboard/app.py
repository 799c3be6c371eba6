"""
Streamlit Dashboard for the Bet Ledger
Bookmaker balances, bet entry and settlement
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date

import pandas as pd
import streamlit as st

from dashboard.utils import STATUS_ICONS, api_get, api_post, api_put, bookmaker_options, fmt_money

st.set_page_config(
    page_title="Bet Ledger",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

BET_TYPES = ["backBet", "layBet", "mugBet", "freeBet", "personal", "other"]


# ==============================================================================
# SIDEBAR
# ==============================================================================

with st.sidebar:
    st.title("📒 Bet Ledger")
    st.markdown("---")
    page = st.radio("Navigate", ["🏦 Balances", "➕ New Bet", "🕒 Pending Bets"])
    st.caption("See sidebar pages for Performance, History, Cashflow & Freebets.")

    st.markdown("---")
    health = api_get("/health")
    if health:
        st.caption(f"API: {health['status']} | scheduler: {health['scheduler']}")


# ==============================================================================
# BALANCES
# ==============================================================================

if page == "🏦 Balances":
    st.title("Bookmaker Balances")

    bookmakers = api_get("/api/bookmakers") or []
    if not bookmakers:
        st.info("No bookmakers yet. Run scripts/init_db.py --seed for demo data.")
        st.stop()

    rows = []
    for bm in bookmakers:
        bal = api_get(f"/api/bookmakers/{bm['id']}/balance")
        if bal:
            rows.append({"bookmaker": bm["name"], "type": bm["type"], "balance": bal["balance"], **bal["breakdown"]})

    df = pd.DataFrame(rows)
    total = df["balance"].sum() if not df.empty else 0
    exposure = df["total_liability"].sum() if not df.empty else 0

    c1, c2, c3 = st.columns(3)
    c1.metric("Total Balance", fmt_money(total))
    c2.metric("Open Liability", fmt_money(exposure))
    c3.metric("Bookmakers", len(bookmakers))

    st.dataframe(df, use_container_width=True, hide_index=True)

    st.markdown("---")
    st.subheader("Recent Activity")
    names = {bm["name"]: bm["id"] for bm in bookmakers}
    chosen = st.selectbox("Bookmaker", list(names))
    activity = api_get(f"/api/bookmakers/{names[chosen]}/activity", {"limit": 20})
    if activity and activity["activity"]:
        st.dataframe(pd.DataFrame(activity["activity"]), use_container_width=True, hide_index=True)
    else:
        st.info("No activity yet.")


# ==============================================================================
# NEW BET
# ==============================================================================

elif page == "➕ New Bet":
    st.title("Record a Bet")
    options = bookmaker_options()
    if not options:
        st.info("Create a bookmaker first.")
        st.stop()

    with st.form("new_bet"):
        c1, c2 = st.columns(2)
        with c1:
            bookmaker = st.selectbox("Bookmaker", list(options))
            bet_type = st.selectbox("Bet type", BET_TYPES)
            bank = st.selectbox("Bank", ["real", "freebet"])
            stake = st.number_input("Stake", min_value=0.01, value=10.0, step=1.0)
            odds = st.number_input("Odds (decimal)", min_value=1.01, value=2.0, step=0.01)
        with c2:
            event = st.text_input("Event")
            selection = st.text_input("Selection")
            bet_date = st.date_input("Bet date", value=date.today())
            event_date = st.date_input("Event date", value=date.today())
            promo = st.text_input("Promo (optional)")
        submitted = st.form_submit_button("Save bet")

    if submitted:
        created = api_post("/api/bets", {
            "bookmaker_id": options[bookmaker],
            "bet_type": bet_type,
            "bank": bank,
            "stake": stake,
            "odds": odds,
            "event": event,
            "bet": selection,
            "bet_date": bet_date.isoformat(),
            "event_date": event_date.isoformat(),
            "promo": promo or None,
        })
        if created:
            st.success(
                f"Bet #{created['id']} saved; liability {fmt_money(created['liability'])}"
            )


# ==============================================================================
# PENDING BETS
# ==============================================================================

else:
    st.title("Pending Bets")
    pending = api_get("/api/bets/status/pending") or []
    if not pending:
        st.info("Nothing pending.")
        st.stop()

    for bet in pending:
        with st.expander(
            f"{STATUS_ICONS['pending']} #{bet['id']} {bet['event']} | {bet['bet']} "
            f"({bet['bet_type']} @ {bet['odds']}) on {bet['bookmaker_name']}"
        ):
            st.write(f"Stake {fmt_money(bet['stake'])}, liability {fmt_money(bet['liability'])}")
            won_col, lost_col = st.columns(2)
            if won_col.button("Won", key=f"won_{bet['id']}"):
                if api_put(f"/api/bets/{bet['id']}/settle", {"status": "won"}):
                    st.rerun()
            if lost_col.button("Lost", key=f"lost_{bet['id']}"):
                if api_put(f"/api/bets/{bet['id']}/settle", {"status": "lost"}):
                    st.rerun()
