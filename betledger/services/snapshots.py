"""
Daily balance snapshots.

One BalanceSnapshot row per bookmaker per day, written by the scheduler
(or on demand from the admin endpoint).  Re-running for the same day
overwrites that day's rows.
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from betledger.core.aggregation import compute_balance
from betledger.core.money import round_money
from betledger.models import BalanceSnapshot, Bet, BookMaker, Database, Transaction

logger = logging.getLogger(__name__)


def snapshot_to_dict(s: BalanceSnapshot) -> Dict:
    return {
        "snapshot_date": s.snapshot_date.isoformat(),
        "bookmaker_id": s.bookmaker_id,
        "bookmaker_name": s.bookmaker.name if s.bookmaker else None,
        "initial_balance": round_money(s.initial_balance),
        "total_deposits": round_money(s.total_deposits),
        "total_withdrawals": round_money(s.total_withdrawals),
        "total_results": round_money(s.total_results),
        "total_liability": round_money(s.total_liability),
        "balance": round_money(s.balance),
    }


def generate_daily_snapshot(db: Session, snapshot_date: Optional[date] = None) -> List[BalanceSnapshot]:
    """Store every bookmaker's current balance breakdown under ``snapshot_date`` (default today)."""
    snapshot_date = snapshot_date or date.today()

    existing = {
        s.bookmaker_id: s
        for s in db.query(BalanceSnapshot).filter(BalanceSnapshot.snapshot_date == snapshot_date)
    }

    snaps = []
    total = round_money(0)
    for bm in db.query(BookMaker).order_by(BookMaker.id).all():
        transactions = db.query(Transaction).filter(Transaction.bookmaker_id == bm.id).all()
        bets = db.query(Bet).filter(Bet.bookmaker_id == bm.id).all()
        computed = compute_balance(bm.initial_balance, transactions, bets)

        snap = existing.get(bm.id)
        if snap is None:
            snap = BalanceSnapshot(snapshot_date=snapshot_date, bookmaker_id=bm.id)
            db.add(snap)
        for key, value in computed["breakdown"].items():
            setattr(snap, key, value)
        snap.balance = computed["balance"]
        total += computed["balance"]
        snaps.append(snap)

    db.commit()
    logger.info("Balance snapshot %s: %d bookmakers, total balance %s", snapshot_date, len(snaps), total)
    return snaps


def list_snapshots(db: Session, days: int = 30, today: Optional[date] = None) -> List[Dict]:
    """Snapshots of the last ``days`` days, newest first."""
    since = (today or date.today()) - timedelta(days=days)
    q = (
        db.query(BalanceSnapshot)
        .options(joinedload(BalanceSnapshot.bookmaker))
        .filter(BalanceSnapshot.snapshot_date >= since)
        .order_by(BalanceSnapshot.snapshot_date.desc(), BalanceSnapshot.bookmaker_id)
    )
    return [snapshot_to_dict(s) for s in q.all()]


def run_snapshot_job(database: Database) -> None:
    """Scheduler entry point: owns its session and never raises."""
    db = database.session()
    try:
        generate_daily_snapshot(db)
    except Exception as exc:
        db.rollback()
        logger.error("Daily snapshot job failed: %s", exc, exc_info=True)
    finally:
        db.close()
