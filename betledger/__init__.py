"""Bet Ledger: bookmaker balances, bet settlement and performance tracking."""

__version__ = "1.0.0"
