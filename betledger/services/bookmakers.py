"""
Bookmaker accounts: CRUD plus balance, activity and performance views.

All public functions receive a SQLAlchemy Session and return plain dicts
so they can be called from FastAPI endpoints or background jobs without
importing any web-layer code.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from betledger.core.aggregation import bookmaker_performance, compute_balance, recent_activity
from betledger.core.money import round_money
from betledger.models import Bet, BookMaker, Freebet, Transaction
from betledger.schemas import BookMakerCreate, BookMakerUpdate
from betledger.services.errors import LedgerConflict, RecordNotFound

logger = logging.getLogger(__name__)


def bookmaker_to_dict(bm: BookMaker) -> Dict:
    return {
        "id": bm.id,
        "name": bm.name,
        "type": bm.type,
        "commission": round_money(bm.commission),
        "initial_balance": round_money(bm.initial_balance),
        "info": bm.info,
    }


def get_bookmaker(db: Session, bookmaker_id: int) -> BookMaker:
    bm = db.query(BookMaker).filter(BookMaker.id == bookmaker_id).first()
    if bm is None:
        raise RecordNotFound("BookMaker", bookmaker_id)
    return bm


def bookmaker_names(db: Session) -> Dict[int, str]:
    """id → name map used to label per-bookmaker rollups."""
    return dict(db.query(BookMaker.id, BookMaker.name).all())


def _check_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    q = db.query(BookMaker.id).filter(BookMaker.name == name)
    if exclude_id is not None:
        q = q.filter(BookMaker.id != exclude_id)
    if q.first():
        raise LedgerConflict(f"A bookmaker named {name!r} already exists")


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

def list_bookmakers(db: Session) -> List[Dict]:
    return [bookmaker_to_dict(bm) for bm in db.query(BookMaker).order_by(BookMaker.name).all()]


def create_bookmaker(db: Session, payload: BookMakerCreate) -> Dict:
    _check_unique_name(db, payload.name)
    bm = BookMaker(
        name=payload.name,
        type=payload.type,
        commission=round_money(payload.commission),
        initial_balance=round_money(payload.initial_balance),
        info=payload.info,
    )
    db.add(bm)
    db.commit()
    db.refresh(bm)
    logger.info("BookMaker created: %s (id=%d, commission=%s%%)", bm.name, bm.id, bm.commission)
    return bookmaker_to_dict(bm)


def update_bookmaker(db: Session, bookmaker_id: int, payload: BookMakerUpdate) -> Dict:
    bm = get_bookmaker(db, bookmaker_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "name" in changes:
        _check_unique_name(db, changes["name"], exclude_id=bookmaker_id)
    for money_field in ("commission", "initial_balance"):
        if money_field in changes:
            changes[money_field] = round_money(changes[money_field])

    for key, value in changes.items():
        setattr(bm, key, value)
    db.commit()
    db.refresh(bm)
    logger.info("BookMaker %d updated: %s", bookmaker_id, sorted(changes))
    return bookmaker_to_dict(bm)


def delete_bookmaker(db: Session, bookmaker_id: int) -> None:
    """Delete a bookmaker that owns no bets, transactions or freebets."""
    bm = get_bookmaker(db, bookmaker_id)
    for model, label in ((Bet, "bets"), (Transaction, "transactions"), (Freebet, "freebets")):
        count = db.query(func.count(model.id)).filter(model.bookmaker_id == bookmaker_id).scalar()
        if count:
            raise LedgerConflict(
                f"Cannot delete bookmaker {bookmaker_id}: it has {count} associated {label}"
            )
    db.delete(bm)
    db.commit()
    logger.info("BookMaker %d deleted", bookmaker_id)


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------

def get_bookmaker_balance(db: Session, bookmaker_id: int) -> Dict:
    bm = get_bookmaker(db, bookmaker_id)
    transactions = db.query(Transaction).filter(Transaction.bookmaker_id == bookmaker_id).all()
    bets = db.query(Bet).filter(Bet.bookmaker_id == bookmaker_id).all()

    return {
        "bookmaker_id": bm.id,
        "bookmaker_name": bm.name,
        **compute_balance(bm.initial_balance, transactions, bets),
    }


def get_bookmaker_activity(db: Session, bookmaker_id: int, limit: int = 10) -> Dict:
    """Latest transactions and bets of one bookmaker, merged by date."""
    bm = get_bookmaker(db, bookmaker_id)
    transactions = (
        db.query(Transaction)
        .filter(Transaction.bookmaker_id == bookmaker_id)
        .order_by(Transaction.date.desc())
        .limit(limit)
        .all()
    )
    bets = (
        db.query(Bet)
        .filter(Bet.bookmaker_id == bookmaker_id)
        .order_by(Bet.bet_date.desc())
        .limit(limit)
        .all()
    )
    return {
        "bookmaker_name": bm.name,
        "activity": recent_activity(transactions, bets, limit=limit),
    }


def get_bookmaker_performance(
    db: Session,
    bookmaker_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Dict:
    """Win rate, ROI and odds profile; restricted to a window when both dates are given."""
    bm = get_bookmaker(db, bookmaker_id)
    q = db.query(Bet).filter(Bet.bookmaker_id == bookmaker_id)
    windowed = start_date is not None and end_date is not None
    if windowed:
        q = q.filter(Bet.bet_date >= start_date, Bet.bet_date <= end_date)

    return {
        "bookmaker_name": bm.name,
        "period": {
            "start_date": start_date.isoformat() if windowed else "All time",
            "end_date": end_date.isoformat() if windowed else "All time",
        },
        "performance": bookmaker_performance(q.all()),
    }
