"""
Deposits and withdrawals: CRUD, filters and cash-flow rollups.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from betledger.core.aggregation import (
    monthly_cashflow,
    period_balance,
    transaction_stats_by_bookmaker,
    transaction_type_summary,
)
from betledger.core.enums import TransactionType
from betledger.core.money import round_money
from betledger.models import Bet, Transaction
from betledger.schemas import TransactionCreate, TransactionUpdate
from betledger.services.bookmakers import bookmaker_names, get_bookmaker
from betledger.services.errors import RecordNotFound

logger = logging.getLogger(__name__)


def transaction_to_dict(t: Transaction) -> Dict:
    return {
        "id": t.id,
        "bookmaker_id": t.bookmaker_id,
        "bookmaker_name": t.bookmaker.name if t.bookmaker else None,
        "date": t.date.isoformat() if t.date else None,
        "type": t.type,
        "amount": round_money(t.amount),
        "info": t.info,
    }


def get_transaction(db: Session, transaction_id: int) -> Transaction:
    t = db.query(Transaction).filter(Transaction.id == transaction_id).first()
    if t is None:
        raise RecordNotFound("Transaction", transaction_id)
    return t


def list_transactions(
    db: Session,
    bookmaker_id: Optional[int] = None,
    transaction_type: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Dict]:
    q = db.query(Transaction).options(joinedload(Transaction.bookmaker))
    if bookmaker_id is not None:
        q = q.filter(Transaction.bookmaker_id == bookmaker_id)
    if transaction_type:
        q = q.filter(Transaction.type == transaction_type)
    if start_date is not None:
        q = q.filter(Transaction.date >= start_date)
    if end_date is not None:
        q = q.filter(Transaction.date <= end_date)
    q = q.order_by(Transaction.date.desc(), Transaction.id.desc())
    return [transaction_to_dict(t) for t in q.all()]


def create_transaction(db: Session, payload: TransactionCreate) -> Dict:
    get_bookmaker(db, payload.bookmaker_id)
    t = Transaction(
        bookmaker_id=payload.bookmaker_id,
        date=payload.date,
        type=payload.type,
        amount=round_money(payload.amount),
        info=payload.info,
    )
    db.add(t)
    db.commit()
    db.refresh(t)
    logger.info("Transaction %d created: %s %s (bookmaker %d)", t.id, t.type, t.amount, t.bookmaker_id)
    return transaction_to_dict(t)


def update_transaction(db: Session, transaction_id: int, payload: TransactionUpdate) -> Dict:
    t = get_transaction(db, transaction_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "bookmaker_id" in changes:
        get_bookmaker(db, changes["bookmaker_id"])
    if "amount" in changes:
        changes["amount"] = round_money(changes["amount"])

    for key, value in changes.items():
        setattr(t, key, value)
    db.commit()
    db.refresh(t)
    logger.info("Transaction %d updated: %s", transaction_id, sorted(changes))
    return transaction_to_dict(t)


def delete_transaction(db: Session, transaction_id: int) -> None:
    t = get_transaction(db, transaction_id)
    db.delete(t)
    db.commit()
    logger.info("Transaction %d deleted", transaction_id)


# ---------------------------------------------------------------------------
# Rollups
# ---------------------------------------------------------------------------

def get_transaction_stats(db: Session) -> List[Dict]:
    return transaction_stats_by_bookmaker(db.query(Transaction).all(), bookmaker_names(db))


def get_period_balance(db: Session, start_date: date, end_date: date) -> Dict:
    """Per-bookmaker balance movement between two dates, both inclusive."""
    transactions = (
        db.query(Transaction)
        .filter(Transaction.date >= start_date, Transaction.date <= end_date)
        .all()
    )
    bets = db.query(Bet).filter(Bet.bet_date >= start_date, Bet.bet_date <= end_date).all()
    return period_balance(transactions, bets, start_date, end_date, bookmaker_names(db))


def get_monthly_cashflow(db: Session) -> List[Dict]:
    return monthly_cashflow(db.query(Transaction).all())


def get_type_summary(db: Session, transaction_type: TransactionType) -> Dict:
    """Deposits or withdrawals per bookmaker with each one's share of the total."""
    transactions = db.query(Transaction).filter(Transaction.type == transaction_type.value).all()
    return transaction_type_summary(transactions, transaction_type.value, bookmaker_names(db))
