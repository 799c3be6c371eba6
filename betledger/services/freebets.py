"""
Freebet offers: CRUD, filters and the conversion report.

The conversion report links freebet offers to the ``freeBet`` bets of the
same bookmaker; there is no per-offer link between a freebet and the bet
that used it.
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from betledger.core.aggregation import freebet_conversion, freebet_stats_by_bookmaker
from betledger.core.enums import BetType, FreebetStatus
from betledger.core.money import round_money, to_decimal
from betledger.models import Bet, Freebet
from betledger.schemas import FreebetCreate, FreebetUpdate
from betledger.services.bookmakers import bookmaker_names, get_bookmaker
from betledger.services.errors import RecordNotFound

logger = logging.getLogger(__name__)


def freebet_to_dict(f: Freebet) -> Dict:
    return {
        "id": f.id,
        "bookmaker_id": f.bookmaker_id,
        "bookmaker_name": f.bookmaker.name if f.bookmaker else None,
        "date": f.date.isoformat() if f.date else None,
        "type": f.type,
        "amount": round_money(f.amount) if f.amount is not None else None,
        "event": f.event,
        "bet": f.bet,
        "requirements": f.requirements,
        "status": f.status,
    }


def get_freebet(db: Session, freebet_id: int) -> Freebet:
    f = db.query(Freebet).filter(Freebet.id == freebet_id).first()
    if f is None:
        raise RecordNotFound("Freebet", freebet_id)
    return f


def _query(db: Session):
    return db.query(Freebet).options(joinedload(Freebet.bookmaker))


def list_freebets(
    db: Session,
    bookmaker_id: Optional[int] = None,
    status: Optional[str] = None,
) -> List[Dict]:
    q = _query(db)
    if bookmaker_id is not None:
        q = q.filter(Freebet.bookmaker_id == bookmaker_id)
    if status:
        q = q.filter(Freebet.status == status)
    q = q.order_by(Freebet.date.desc(), Freebet.id.desc())
    return [freebet_to_dict(f) for f in q.all()]


def create_freebet(db: Session, payload: FreebetCreate) -> Dict:
    get_bookmaker(db, payload.bookmaker_id)
    data = payload.model_dump()
    if data["amount"] is not None:
        data["amount"] = round_money(data["amount"])
    f = Freebet(**data)
    db.add(f)
    db.commit()
    db.refresh(f)
    logger.info("Freebet %d created: %s %s (%s)", f.id, f.type, f.amount, f.status)
    return freebet_to_dict(f)


def update_freebet(db: Session, freebet_id: int, payload: FreebetUpdate) -> Dict:
    f = get_freebet(db, freebet_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "bookmaker_id" in changes:
        get_bookmaker(db, changes["bookmaker_id"])
    if "amount" in changes:
        changes["amount"] = round_money(changes["amount"])

    for key, value in changes.items():
        setattr(f, key, value)
    db.commit()
    db.refresh(f)
    logger.info("Freebet %d updated: %s", freebet_id, sorted(changes))
    return freebet_to_dict(f)


def delete_freebet(db: Session, freebet_id: int) -> None:
    f = get_freebet(db, freebet_id)
    db.delete(f)
    db.commit()
    logger.info("Freebet %d deleted", freebet_id)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

def get_freebet_stats(db: Session) -> List[Dict]:
    return freebet_stats_by_bookmaker(db.query(Freebet).all(), bookmaker_names(db))


def get_expiring_freebets(db: Session, days: int = 7, today: Optional[date] = None) -> List[Dict]:
    """Pending freebets dated between today and ``days`` from now."""
    today = today or date.today()
    q = (
        _query(db)
        .filter(
            Freebet.status == FreebetStatus.PENDING.value,
            Freebet.date >= today,
            Freebet.date <= today + timedelta(days=days),
        )
        .order_by(Freebet.date.asc())
    )
    return [freebet_to_dict(f) for f in q.all()]


def get_freebets_by_value(db: Session, min_amount: float) -> List[Dict]:
    """Freebets worth at least ``min_amount``, largest first."""
    q = (
        _query(db)
        .filter(Freebet.amount >= to_decimal(min_amount))
        .order_by(Freebet.amount.desc())
    )
    return [freebet_to_dict(f) for f in q.all()]


def get_conversion_rate(db: Session) -> Dict:
    freebets = db.query(Freebet).all()
    bets = db.query(Bet).filter(Bet.bet_type == BetType.FREE_BET.value).all()
    return freebet_conversion(freebets, bets, bookmaker_names(db))
