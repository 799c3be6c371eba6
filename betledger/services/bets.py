"""
Bet lifecycle: creation, settlement, edits, deletion and bet queries.

A bet is created pending (or directly resolved), transitions exactly once
to won/lost, and is then frozen: its settlement fields can no longer be
edited and it can no longer be deleted.  ``liability`` and ``result`` are
never taken from the caller; every write to a pending bet recomputes them
through :func:`betledger.core.settlement.settle_bet` with the owning
bookmaker's commission.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from betledger.core.aggregation import bet_stats_by_bookmaker, bets_summary_by_period
from betledger.core.enums import TERMINAL_STATUSES, BetStatus
from betledger.core.money import round_money, round_odds, to_decimal
from betledger.core.settlement import settle_bet
from betledger.models import Bet
from betledger.schemas import BetCreate, BetUpdate
from betledger.services.bookmakers import bookmaker_names, get_bookmaker
from betledger.services.errors import LedgerConflict, RecordNotFound

logger = logging.getLogger(__name__)

#: Fields frozen once a bet is won or lost.
SETTLEMENT_FIELDS = ("bookmaker_id", "bet_type", "stake", "odds", "status")


def bet_to_dict(b: Bet) -> Dict:
    return {
        "id": b.id,
        "bookmaker_id": b.bookmaker_id,
        "bookmaker_name": b.bookmaker.name if b.bookmaker else None,
        "bet_date": b.bet_date.isoformat() if b.bet_date else None,
        "event_date": b.event_date.isoformat() if b.event_date else None,
        "event": b.event,
        "bet": b.bet,
        "bank": b.bank,
        "bet_type": b.bet_type,
        "stake": round_money(b.stake),
        "odds": to_decimal(b.odds),
        "status": b.status,
        "liability": round_money(b.liability),
        "result": round_money(b.result),
        "matched_bet_id": b.matched_bet_id,
        "promo": b.promo,
        "info": b.info,
    }


def get_bet(db: Session, bet_id: int) -> Bet:
    bet = db.query(Bet).filter(Bet.id == bet_id).first()
    if bet is None:
        raise RecordNotFound("Bet", bet_id)
    return bet


def _apply_settlement(bet: Bet, commission) -> None:
    """Recompute the derived fields from the bet's current attributes."""
    s = settle_bet(bet.status, bet.bet_type, bet.stake, bet.odds, commission)
    bet.liability = s.liability
    bet.result = s.result


def _comparable(value):
    """Normalize numbers so 100 == 100.0 == Decimal('100.00') when diffing."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return to_decimal(value)
    return value


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def create_bet(db: Session, payload: BetCreate) -> Dict:
    """
    Record a new bet with liability and result computed from its inputs.

    Raises:
        RecordNotFound: unknown bookmaker.
        InvalidBetInput: stake not positive or odds not above 1.
    """
    bm = get_bookmaker(db, payload.bookmaker_id)

    bet = Bet(
        bookmaker_id=bm.id,
        bank=payload.bank,
        bet_type=payload.bet_type,
        bet_date=payload.bet_date,
        event_date=payload.event_date,
        event=payload.event,
        bet=payload.bet,
        stake=round_money(payload.stake),
        odds=round_odds(payload.odds),
        status=payload.status,
        matched_bet_id=payload.matched_bet_id,
        promo=payload.promo,
        info=payload.info,
    )
    _apply_settlement(bet, bm.commission)

    db.add(bet)
    db.commit()
    db.refresh(bet)

    logger.info(
        "Bet %d created: %s %s @ %s stake %s (%s) liability %s result %s",
        bet.id, bet.bet_type, bet.bet, bet.odds, bet.stake, bet.status, bet.liability, bet.result,
    )
    return bet_to_dict(bet)


def update_bet(db: Session, bet_id: int, payload: BetUpdate) -> Dict:
    """
    Partial update.  Omitted fields keep their stored value.  A bet that
    was pending is recomputed from the final values; a won/lost bet keeps
    the liability and result it was settled with.

    Raises:
        LedgerConflict: a settlement field of a won/lost bet would change.
    """
    bet = get_bet(db, bet_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "stake" in changes:
        changes["stake"] = round_money(changes["stake"])
    if "odds" in changes:
        changes["odds"] = round_odds(changes["odds"])

    was_pending = bet.status == BetStatus.PENDING
    if not was_pending:
        frozen = [
            f for f in SETTLEMENT_FIELDS
            if f in changes and _comparable(changes[f]) != _comparable(getattr(bet, f))
        ]
        if frozen:
            raise LedgerConflict(
                f"Bet {bet_id} is already {bet.status}; cannot change {', '.join(frozen)}"
            )

    bm = get_bookmaker(db, changes.get("bookmaker_id", bet.bookmaker_id))

    for key, value in changes.items():
        setattr(bet, key, value)

    if was_pending:
        _apply_settlement(bet, bm.commission)

    db.commit()
    db.refresh(bet)
    logger.info("Bet %d updated: %s", bet_id, sorted(changes))
    return bet_to_dict(bet)


def settle(db: Session, bet_id: int, status: str) -> Dict:
    """Resolve a pending bet as won or lost; a bet can only be settled once."""
    bet = get_bet(db, bet_id)
    if bet.status != BetStatus.PENDING:
        raise LedgerConflict(f"Bet {bet_id} is already settled as {bet.status}")

    bm = get_bookmaker(db, bet.bookmaker_id)
    bet.status = status
    _apply_settlement(bet, bm.commission)
    db.commit()
    db.refresh(bet)

    logger.info(
        "%s: bet %d (%s %s) | result %s",
        status.upper(), bet.id, bet.bet_type, bet.bet, bet.result,
    )
    return bet_to_dict(bet)


def delete_bet(db: Session, bet_id: int) -> None:
    """Only pending bets may be deleted."""
    bet = get_bet(db, bet_id)
    if bet.status in TERMINAL_STATUSES:
        raise LedgerConflict(f"Cannot delete bet {bet_id}: it is already {bet.status}")
    db.delete(bet)
    db.commit()
    logger.info("Bet %d deleted", bet_id)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def _base_query(db: Session):
    return db.query(Bet).options(joinedload(Bet.bookmaker))


def list_bets(
    db: Session,
    bet_type: Optional[str] = None,
    status: Optional[str] = None,
    bookmaker_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> List[Dict]:
    """Filtered bets, newest first.  ``limit=None`` returns every match."""
    q = _base_query(db)
    if bet_type:
        q = q.filter(Bet.bet_type == bet_type)
    if status:
        q = q.filter(Bet.status == status)
    if bookmaker_id is not None:
        q = q.filter(Bet.bookmaker_id == bookmaker_id)
    if start_date is not None:
        q = q.filter(Bet.bet_date >= start_date)
    if end_date is not None:
        q = q.filter(Bet.bet_date <= end_date)

    q = q.order_by(Bet.bet_date.desc(), Bet.id.desc())
    if limit is not None:
        q = q.offset((page - 1) * limit).limit(limit)
    return [bet_to_dict(b) for b in q.all()]


def bets_for_bookmaker(db: Session, bookmaker_id: int) -> List[Dict]:
    get_bookmaker(db, bookmaker_id)
    return list_bets(db, bookmaker_id=bookmaker_id)


def get_bet_stats(db: Session) -> List[Dict]:
    """Per-bookmaker counts, win rate, ROI and exposure."""
    return bet_stats_by_bookmaker(db.query(Bet).all(), bookmaker_names(db))


def get_bets_summary(db: Session, period: str) -> List[Dict]:
    """Daily (``period="day"``) or monthly (``"month"``) bet summary."""
    return bets_summary_by_period(db.query(Bet).all(), period=period)
