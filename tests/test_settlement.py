"""Tests for the bet settlement calculator."""

from decimal import Decimal

import pytest

from betledger.core.settlement import (
    InvalidBetInput,
    Settlement,
    calculate_commission,
    calculate_liability,
    calculate_result,
    settle_bet,
    validate_bet_inputs,
)

ALL_TYPES = ["backBet", "layBet", "mugBet", "freeBet", "personal", "other"]


# ---------------------------------------------------------------------------
# Liability
# ---------------------------------------------------------------------------

def test_lay_liability():
    assert calculate_liability("pending", "layBet", 100, 2.5) == Decimal("150.00")

def test_back_liability_is_stake():
    assert calculate_liability("pending", "backBet", 100, 2.5) == Decimal("100.00")

def test_freebet_liability_is_zero():
    assert calculate_liability("pending", "freeBet", 50, 3.0) == Decimal("0.00")

@pytest.mark.parametrize("bet_type", ALL_TYPES)
@pytest.mark.parametrize("status", ["won", "lost"])
def test_resolved_bets_carry_no_liability(status, bet_type):
    assert calculate_liability(status, bet_type, 100, 2.5) == 0

def test_liability_rounds_half_up():
    # 10.05 * 1.5 = 15.075
    assert calculate_liability("pending", "layBet", 10.05, 2.5) == Decimal("15.08")


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

def test_back_win_net_of_commission():
    # 150 profit, 5% commission = 7.50
    assert calculate_result("won", "backBet", 100, 2.5, 0, 5) == Decimal("142.50")

def test_back_loss_is_minus_stake():
    assert calculate_result("lost", "backBet", 100, 2.5, 0, 5) == Decimal("-100.00")

def test_lay_loss_pays_liability():
    assert calculate_result("lost", "layBet", 100, 2.5, 150, 0) == Decimal("-150.00")

def test_lay_win_keeps_backer_stake_minus_commission():
    assert calculate_result("won", "layBet", 100, 2.5, 0, 2) == Decimal("98.00")

def test_freebet_win():
    assert calculate_result("won", "freeBet", 50, 3.0, 0, 0) == Decimal("100.00")

def test_freebet_loss_costs_nothing():
    assert calculate_result("lost", "freeBet", 50, 3.0, 0, 0) == 0

@pytest.mark.parametrize("bet_type", ALL_TYPES)
def test_pending_result_is_zero(bet_type):
    assert calculate_result("pending", bet_type, 100, 2.5, 150, 5) == 0

@pytest.mark.parametrize("bet_type", ["mugBet", "personal", "other", "somethingNew"])
def test_other_types_settle_like_back_bets(bet_type):
    assert calculate_result("won", bet_type, 100, 2.5, 0, 0) == calculate_result(
        "won", "backBet", 100, 2.5, 0, 0
    )
    assert calculate_result("lost", bet_type, 100, 2.5, 0, 0) == Decimal("-100.00")

def test_missing_commission_counts_as_zero():
    assert calculate_result("won", "backBet", 10, 2.0, 0, None) == Decimal("10.00")

def test_commission():
    assert calculate_commission(150, 5) == Decimal("7.50")
    assert calculate_commission(0.333, 10) == Decimal("0.03")


# ---------------------------------------------------------------------------
# settle_bet
# ---------------------------------------------------------------------------

def test_settle_pending_lay():
    assert settle_bet("pending", "layBet", 100, 2.5) == Settlement(Decimal("150.00"), Decimal("0.00"))

def test_settle_lay_recorded_as_lost_loses_exposure():
    s = settle_bet("lost", "layBet", 100, 2.5)
    assert s.liability == 0
    assert s.result == Decimal("-150.00")

def test_settle_uses_commission():
    s = settle_bet("won", "backBet", 100, 2.5, commission_percent=5)
    assert s.result == Decimal("142.50")

@pytest.mark.parametrize("status", ["pending", "won", "lost"])
@pytest.mark.parametrize("bet_type", ALL_TYPES)
def test_settle_is_idempotent(status, bet_type):
    first = settle_bet(status, bet_type, "37.37", "3.3", 4.5)
    assert settle_bet(status, bet_type, "37.37", "3.3", 4.5) == first

def test_float_and_decimal_inputs_agree():
    assert settle_bet("won", "backBet", 19.99, 1.85, 2) == settle_bet(
        "won", "backBet", Decimal("19.99"), Decimal("1.85"), Decimal("2")
    )


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("stake, odds", [
    (0, 2.0),
    (-5, 2.0),
    (None, 2.0),
    (10, 1.0),
    (10, 0.5),
    (10, None),
    ("abc", 2.0),
    (10, "nan"),
    ("inf", 2.0),
])
def test_invalid_inputs_rejected(stake, odds):
    with pytest.raises(InvalidBetInput):
        validate_bet_inputs(stake, odds)

def test_settle_rejects_invalid_odds():
    with pytest.raises(InvalidBetInput, match="odds"):
        settle_bet("pending", "backBet", 10, 1)

def test_invalid_bet_input_is_value_error():
    assert issubclass(InvalidBetInput, ValueError)
