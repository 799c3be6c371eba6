"""Service-layer tests for ledger rules that the API relies on."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from betledger.core.enums import BetType
from betledger.core.settlement import settle_bet
from betledger.models import Bet, BookMaker
from betledger.schemas import BetCreate, BetUpdate, BookMakerCreate, FreebetCreate
from betledger.services import bets as bet_service
from betledger.services.bookmakers import create_bookmaker, get_bookmaker_performance
from betledger.services.errors import LedgerConflict, RecordNotFound
from betledger.services.freebets import create_freebet, get_expiring_freebets


@pytest.fixture
def regular(session):
    return create_bookmaker(session, BookMakerCreate(name="Bookie", type="regular", commission=0))


@pytest.fixture
def exchange(session):
    return create_bookmaker(session, BookMakerCreate(name="Exchange", type="exchange", commission=2))


def _create(session, bookmaker_id, **overrides):
    data = dict(
        bookmaker_id=bookmaker_id, bet_type="backBet", bet_date=date(2024, 3, 1),
        event_date=date(2024, 3, 2), event="A v B", bet="A", stake=10, odds=3.0,
    )
    data.update(overrides)
    return bet_service.create_bet(session, BetCreate(**data))


def test_create_resolved_bet_computes_result(session, regular):
    bet = _create(session, regular["id"], status="won")
    assert bet["result"] == Decimal("20.00")
    assert bet["liability"] == Decimal("0.00")


def test_moving_pending_bet_uses_new_bookmaker_commission(session, regular, exchange):
    bet = _create(session, regular["id"], bet_type="layBet")
    moved = bet_service.update_bet(session, bet["id"], BetUpdate(bookmaker_id=exchange["id"], status="won"))
    # lay win keeps the backer's stake minus 2% commission
    assert moved["result"] == Decimal("9.80")
    assert moved["bookmaker_name"] == "Exchange"


def test_status_change_on_settled_bet_conflicts(session, regular):
    bet = _create(session, regular["id"])
    bet_service.settle(session, bet["id"], "won")
    with pytest.raises(LedgerConflict):
        bet_service.update_bet(session, bet["id"], BetUpdate(status="lost"))


def test_settle_unknown_bet(session):
    with pytest.raises(RecordNotFound):
        bet_service.settle(session, 12345, "won")


def test_bet_stats(session, regular):
    won = _create(session, regular["id"])
    bet_service.settle(session, won["id"], "won")
    _create(session, regular["id"])

    (row,) = bet_service.get_bet_stats(session)
    assert row["bookmaker_name"] == "Bookie"
    assert row["total_bets"] == 2
    assert row["total_liability"] == Decimal("10.00")
    assert row["win_rate"] == Decimal("100.00")


def test_performance_window_needs_both_dates(session, regular):
    _create(session, regular["id"], bet_date=date(2024, 1, 1))
    _create(session, regular["id"], bet_date=date(2024, 3, 1))

    all_time = get_bookmaker_performance(session, regular["id"], start_date=date(2024, 2, 1))
    assert all_time["period"]["start_date"] == "All time"
    assert all_time["performance"]["total_bets"] == 2

    windowed = get_bookmaker_performance(session, regular["id"], date(2024, 2, 1), date(2024, 3, 31))
    assert windowed["performance"]["total_bets"] == 1


def test_expiring_freebets(session, regular):
    today = date(2024, 3, 10)
    for offset, status in ((1, "pending"), (3, "received"), (30, "pending"), (-1, "pending")):
        create_freebet(session, FreebetCreate(
            bookmaker_id=regular["id"], date=today + timedelta(days=offset), type="loyalty",
            amount=5, event="A v B", status=status,
        ))

    rows = get_expiring_freebets(session, days=7, today=today)
    assert [r["date"] for r in rows] == ["2024-03-11"]


def test_settled_bet_accepts_unrounded_odds_resubmission(session, exchange):
    bet = _create(session, exchange["id"], odds=2.5555, status="won")
    again = bet_service.update_bet(session, bet["id"], BetUpdate(odds=2.5555, info="checked"))
    assert again["odds"] == Decimal("2.556")
    assert again["result"] == bet["result"]


@pytest.mark.parametrize("bet_type", [t.value for t in BetType])
def test_stored_settlement_matches_recalculation(database, session, exchange, bet_type):
    """Every persisted row re-derives to its stored liability and result."""
    for stake, odds in ((19.995, 2.5555), (7.5, 1.3337), (100, 11.0)):
        for status in ("pending", "won", "lost"):
            _create(session, exchange["id"], bet_type=bet_type, stake=stake, odds=odds, status=status)
        pending = _create(session, exchange["id"], bet_type=bet_type, stake=stake, odds=odds)
        bet_service.update_bet(session, pending["id"], BetUpdate(info="note"))
        bet_service.settle(session, pending["id"], "lost")
        edited = _create(session, exchange["id"], bet_type=bet_type, stake=stake, odds=odds)
        bet_service.update_bet(session, edited["id"], BetUpdate(odds=odds + 0.0004, status="won"))

    check = database.session()
    try:
        commission = check.get(BookMaker, exchange["id"]).commission
        rows = check.query(Bet).all()
        assert len(rows) == 15
        for b in rows:
            expected = settle_bet(b.status, b.bet_type, b.stake, b.odds, commission)
            assert (b.liability, b.result) == (expected.liability, expected.result), b.id
    finally:
        check.close()
