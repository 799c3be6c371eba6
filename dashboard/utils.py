"""Shared utilities for all dashboard pages."""

import os
import requests
import streamlit as st
from dotenv import load_dotenv

load_dotenv()

_API_URL = os.getenv("API_URL", "http://localhost:8000")


def _send(method: str, endpoint: str, **kwargs):
    try:
        r = requests.request(method, f"{_API_URL}{endpoint}", timeout=15, **kwargs)
        r.raise_for_status()
        return r.json()
    except requests.HTTPError as exc:
        detail = exc.response.json().get("detail", str(exc)) if exc.response is not None else str(exc)
        st.error(f"API {exc.response.status_code}: {detail}")
        return None
    except Exception as exc:
        st.error(f"Request failed: {exc}")
        return None


def api_get(endpoint: str, params: dict = None):
    return _send("GET", endpoint, params=params)


def api_post(endpoint: str, payload: dict):
    return _send("POST", endpoint, json=payload)


def api_put(endpoint: str, payload: dict):
    return _send("PUT", endpoint, json=payload)


def bookmaker_options() -> dict:
    """name -> id for select boxes."""
    bookmakers = api_get("/api/bookmakers") or []
    return {bm["name"]: bm["id"] for bm in bookmakers}


def fmt_money(value) -> str:
    return f"€{float(value or 0):,.2f}"


STATUS_ICONS = {
    "pending": "🕒",
    "won":     "🟢",
    "lost":    "🔴",
}
