"""
Pydantic request schemas for the Bet Ledger API.

Settlement fields (liability, result) never appear in a request: they are
always derived from status, bet type, stake, odds and the bookmaker's
commission.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

BetStatusLiteral = Literal["pending", "won", "lost"]
BetTypeLiteral = Literal["backBet", "layBet", "mugBet", "freeBet", "personal", "other"]
BankLiteral = Literal["real", "freebet"]
BookMakerTypeLiteral = Literal["regular", "exchange"]
TransactionTypeLiteral = Literal["deposit", "withdrawal"]
FreebetStatusLiteral = Literal["received", "pending", "rejected", "claiming", "other"]
FreebetTypeLiteral = Literal["freebet-on-win", "freebet-on-loss", "bet-and-get", "loyalty", "other"]


# ---------------------------------------------------------------------------
# Bookmakers
# ---------------------------------------------------------------------------

class BookMakerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: BookMakerTypeLiteral
    commission: float = Field(..., ge=0, le=100, description="% taken from winning profit")
    initial_balance: float = Field(0.0, description="Balance before any tracked activity")
    info: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be blank")
        return v


class BookMakerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[BookMakerTypeLiteral] = None
    commission: Optional[float] = Field(None, ge=0, le=100)
    initial_balance: Optional[float] = None
    info: Optional[str] = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Bets
# ---------------------------------------------------------------------------

class BetCreate(BaseModel):
    """
    Payload for POST /api/bets.

    ``status`` defaults to pending; a bet may also be recorded already
    resolved, in which case its result is computed immediately.
    """

    bookmaker_id: int = Field(..., description="FK to bookmakers.id")
    bank: BankLiteral = "real"
    bet_type: BetTypeLiteral
    bet_date: dt.date
    event_date: dt.date
    event: str = Field(..., min_length=1, max_length=200)
    bet: str = Field(..., min_length=1, max_length=200, description="Selection backed or laid")
    stake: float = Field(..., gt=0)
    odds: float = Field(..., gt=1, description="Decimal (European) odds")
    status: BetStatusLiteral = "pending"
    matched_bet_id: Optional[int] = None
    promo: Optional[str] = Field(None, max_length=100)
    info: Optional[str] = Field(None, max_length=500)

    model_config = {
        "json_schema_extra": {
            "example": {
                "bookmaker_id": 1,
                "bank": "real",
                "bet_type": "layBet",
                "bet_date": "2024-03-02",
                "event_date": "2024-03-03",
                "event": "Real Madrid v Sevilla",
                "bet": "Real Madrid",
                "stake": 100.0,
                "odds": 2.5,
                "status": "pending",
            }
        }
    }


class BetUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    bookmaker_id: Optional[int] = None
    bank: Optional[BankLiteral] = None
    bet_type: Optional[BetTypeLiteral] = None
    bet_date: Optional[dt.date] = None
    event_date: Optional[dt.date] = None
    event: Optional[str] = Field(None, min_length=1, max_length=200)
    bet: Optional[str] = Field(None, min_length=1, max_length=200)
    stake: Optional[float] = Field(None, gt=0)
    odds: Optional[float] = Field(None, gt=1)
    status: Optional[BetStatusLiteral] = None
    matched_bet_id: Optional[int] = None
    promo: Optional[str] = Field(None, max_length=100)
    info: Optional[str] = Field(None, max_length=500)


class BetSettle(BaseModel):
    """Payload for PUT /api/bets/{bet_id}/settle."""

    status: Literal["won", "lost"]


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

class TransactionCreate(BaseModel):
    bookmaker_id: int
    date: dt.date
    type: TransactionTypeLiteral
    amount: float = Field(..., gt=0)
    info: Optional[str] = Field(None, max_length=500)


class TransactionUpdate(BaseModel):
    bookmaker_id: Optional[int] = None
    date: Optional[dt.date] = None
    type: Optional[TransactionTypeLiteral] = None
    amount: Optional[float] = Field(None, gt=0)
    info: Optional[str] = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Freebets
# ---------------------------------------------------------------------------

class FreebetCreate(BaseModel):
    bookmaker_id: int
    date: dt.date
    type: FreebetTypeLiteral
    amount: Optional[float] = Field(None, ge=0)
    event: str = Field(..., min_length=1, max_length=200)
    bet: Optional[str] = Field(None, max_length=200)
    requirements: Optional[str] = Field(None, max_length=500)
    status: FreebetStatusLiteral = "pending"


class FreebetUpdate(BaseModel):
    bookmaker_id: Optional[int] = None
    date: Optional[dt.date] = None
    type: Optional[FreebetTypeLiteral] = None
    amount: Optional[float] = Field(None, ge=0)
    event: Optional[str] = Field(None, min_length=1, max_length=200)
    bet: Optional[str] = Field(None, max_length=200)
    requirements: Optional[str] = Field(None, max_length=500)
    status: Optional[FreebetStatusLiteral] = None

