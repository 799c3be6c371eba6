"""Closed sets of string values persisted in the ledger tables.

Members subclass ``str`` so they compare equal to the raw column values
loaded from the database (``BetStatus.PENDING == "pending"``).
"""

from enum import Enum


class BetStatus(str, Enum):
    PENDING = "pending"
    WON = "won"
    LOST = "lost"


class BetType(str, Enum):
    BACK_BET = "backBet"
    LAY_BET = "layBet"
    MUG_BET = "mugBet"
    FREE_BET = "freeBet"
    PERSONAL = "personal"
    OTHER = "other"


class Bank(str, Enum):
    """Which money funded the bet."""

    REAL = "real"
    FREEBET = "freebet"


class BookMakerType(str, Enum):
    REGULAR = "regular"
    EXCHANGE = "exchange"


class TransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class FreebetStatus(str, Enum):
    RECEIVED = "received"
    PENDING = "pending"
    REJECTED = "rejected"
    CLAIMING = "claiming"
    OTHER = "other"


class FreebetType(str, Enum):
    FREEBET_ON_WIN = "freebet-on-win"
    FREEBET_ON_LOSS = "freebet-on-loss"
    BET_AND_GET = "bet-and-get"
    LOYALTY = "loyalty"
    OTHER = "other"


#: Bet statuses after which settlement fields are frozen.
TERMINAL_STATUSES = frozenset({BetStatus.WON.value, BetStatus.LOST.value})
