"""Tests for the money helpers."""

from decimal import Decimal, InvalidOperation

import pytest

from betledger.core.money import round_money, round_odds, safe_average, safe_percentage, sum_money, to_decimal


@pytest.mark.parametrize("value, expected", [
    (2.675, "2.68"),
    (2.665, "2.67"),
    (-7.125, "-7.13"),
    ("0.005", "0.01"),
    (1, "1.00"),
    (None, "0.00"),
])
def test_round_half_up(value, expected):
    assert round_money(value) == Decimal(expected)

def test_round_odds_to_three_places():
    assert round_odds(2.5555) == Decimal("2.556")
    assert round_odds(2.5) == Decimal("2.500")

def test_float_goes_through_str():
    assert to_decimal(0.1) == Decimal("0.1")

def test_bool_rejected():
    with pytest.raises(InvalidOperation):
        to_decimal(True)

def test_sum_money_rounds_once():
    # per-item rounding would give 0.02 + 0.02 + 0.02
    assert sum_money(["0.015", "0.015", "0.015"]) == Decimal("0.05")

def test_sum_money_treats_none_as_zero():
    assert sum_money([None, 5, None]) == Decimal("5.00")

def test_safe_percentage_zero_denominator():
    assert safe_percentage(10, 0) == 0

def test_safe_percentage():
    assert safe_percentage(1, 3) == Decimal("33.33")

def test_safe_average():
    assert safe_average(10, 3) == Decimal("3.33")
    assert safe_average(10, 0) == 0
