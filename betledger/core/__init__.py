"""Core settlement and aggregation mathematics for the Bet Ledger.

This package contains pure building blocks:

- ``money``      : Decimal coercion and the single round-half-up helper
- ``enums``      : closed sets of persisted string values
- ``settlement`` : liability, commission and result for a single bet
- ``aggregation``: balances, win rate, ROI, cashflow and freebet rollups

Nothing in this package imports from ``betledger.services`` or
``betledger.models``.  All modules are side-effect-free and unit-testable
in isolation.
"""
