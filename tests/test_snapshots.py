"""Tests for the daily balance snapshot job."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from betledger.models import BalanceSnapshot
from betledger.schemas import BetCreate, BookMakerCreate, TransactionCreate
from betledger.services.bets import create_bet
from betledger.services.bookmakers import create_bookmaker
from betledger.services.snapshots import generate_daily_snapshot, list_snapshots, run_snapshot_job
from betledger.services.transactions import create_transaction

DAY = date(2024, 3, 10)


def _seed(session):
    bm = create_bookmaker(session, BookMakerCreate(name="Alpha", type="regular", commission=0, initial_balance=50))
    create_transaction(session, TransactionCreate(bookmaker_id=bm["id"], date=DAY, type="deposit", amount=100))
    return bm


def test_snapshot_per_bookmaker(session):
    _seed(session)
    create_bookmaker(session, BookMakerCreate(name="Beta", type="exchange", commission=2))

    snaps = generate_daily_snapshot(session, DAY)

    assert len(snaps) == 2
    alpha = next(s for s in snaps if s.bookmaker.name == "Alpha")
    assert alpha.balance == Decimal("150.00")
    assert alpha.total_deposits == Decimal("100.00")


def test_rerun_same_day_overwrites(session):
    bm = _seed(session)
    generate_daily_snapshot(session, DAY)

    create_bet(session, BetCreate(
        bookmaker_id=bm["id"], bet_type="backBet", bet_date=DAY, event_date=DAY,
        event="A v B", bet="A", stake=20, odds=2.0,
    ))
    generate_daily_snapshot(session, DAY)

    rows = session.query(BalanceSnapshot).all()
    assert len(rows) == 1
    assert rows[0].total_liability == Decimal("20.00")
    assert rows[0].balance == Decimal("130.00")


def test_list_snapshots_window(session):
    _seed(session)
    generate_daily_snapshot(session, date(2024, 1, 1))
    generate_daily_snapshot(session, DAY)

    rows = list_snapshots(session, days=30, today=DAY)
    assert [r["snapshot_date"] for r in rows] == ["2024-03-10"]
    assert rows[0]["bookmaker_name"] == "Alpha"


def test_job_rolls_back_and_closes_on_failure():
    db = MagicMock()
    db.query.side_effect = RuntimeError("connection lost")
    database = MagicMock()
    database.session.return_value = db

    run_snapshot_job(database)  # must not raise

    db.rollback.assert_called_once()
    db.close.assert_called_once()


def test_job_writes_snapshot(database):
    s = database.session()
    _seed(s)
    s.close()

    run_snapshot_job(database)

    check = database.session()
    assert check.query(BalanceSnapshot).count() == 1
    check.close()
