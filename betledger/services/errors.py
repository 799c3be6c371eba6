"""Failure classes raised by the service layer and mapped to HTTP codes by the API."""


class RecordNotFound(LookupError):
    """The requested bookmaker, bet, transaction or freebet does not exist."""

    def __init__(self, kind: str, record_id: int):
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class LedgerConflict(Exception):
    """The operation would break a ledger rule (duplicate name, settled bet, FK in use)."""
