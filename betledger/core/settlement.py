"""Settlement mathematics for a single bet (pure functions, no I/O).

Three primitives turn a bet's raw attributes into money:

* :func:`calculate_liability`: money at risk while the bet is pending.
* :func:`calculate_commission`: the bookmaker's cut of a winning profit.
* :func:`calculate_result`: realized profit/loss once the bet resolves.

The primitives never raise: an unknown ``bet_type`` falls back to the
back-bet formula and missing numbers are treated as zero.  Input checking
lives in :func:`validate_bet_inputs`, and :func:`settle_bet` combines the
two so callers can tell "nothing to compute" (a zero) from "bad data"
(:class:`InvalidBetInput`).

Payoff table (``P = stake × (odds − 1)``, ``c(x)`` = commission on ``x``)::

    bet_type                        won            lost
    backBet/mugBet/personal/other   P − c(P)       −stake
    layBet                          stake − c(s)   −liability
    freeBet                         P − c(P)       0

Every output is rounded half-up to 2 decimals via
:func:`~betledger.core.money.round_money`.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from betledger.core.enums import BetStatus, BetType
from betledger.core.money import HUNDRED, ONE, ZERO, Number, round_money, to_decimal


class InvalidBetInput(ValueError):
    """Raised when a bet cannot be settled because its inputs are invalid."""


@dataclass(frozen=True)
class Settlement:
    """Derived settlement fields for one bet."""

    liability: Decimal
    result: Decimal


def calculate_liability(status: str, bet_type: str, stake: Number, odds: Number) -> Decimal:
    """Money at risk on a pending bet; 0 for any resolved bet."""
    if status != BetStatus.PENDING:
        return round_money(0)

    stake_d = to_decimal(stake)
    match bet_type:
        case BetType.LAY_BET:
            return round_money(stake_d * (to_decimal(odds) - ONE))
        case BetType.FREE_BET:
            return round_money(0)
        case _:
            return round_money(stake_d)


def calculate_commission(profit: Number, commission_percent: Optional[Number]) -> Decimal:
    """Flat percentage fee on a winning profit."""
    return round_money(to_decimal(profit) * to_decimal(commission_percent) / HUNDRED)


def _net_of_commission(profit: Decimal, commission_percent: Optional[Number]) -> Decimal:
    return round_money(profit - calculate_commission(profit, commission_percent))


def calculate_result(
    status: str,
    bet_type: str,
    stake: Number,
    odds: Number,
    liability: Optional[Number],
    commission_percent: Optional[Number] = 0,
) -> Decimal:
    """Realized profit (positive) or loss (negative) of a resolved bet.

    Pending bets always return 0.  ``liability`` is only read for a lost
    lay bet, where it is the amount the layer pays out.
    """
    if status == BetStatus.PENDING:
        return round_money(0)

    won = status == BetStatus.WON
    stake_d = to_decimal(stake)

    match bet_type:
        case BetType.LAY_BET:
            if won:
                return _net_of_commission(stake_d, commission_percent)
            return ZERO - round_money(liability)
        case BetType.FREE_BET:
            if won:
                return _net_of_commission(stake_d * (to_decimal(odds) - ONE), commission_percent)
            return round_money(0)
        case _:
            # backBet, mugBet, personal, other and anything unrecognized
            if won:
                return _net_of_commission(stake_d * (to_decimal(odds) - ONE), commission_percent)
            return ZERO - round_money(stake_d)


def validate_bet_inputs(stake: Optional[Number], odds: Optional[Number]) -> None:
    """Reject a stake that is not positive or odds that are not above 1.

    Raises:
        InvalidBetInput: describing the first offending field.
    """
    try:
        stake_d = to_decimal(stake) if stake is not None else None
        odds_d = to_decimal(odds) if odds is not None else None
    except (InvalidOperation, ValueError) as exc:
        raise InvalidBetInput(f"stake and odds must be numeric: {exc}") from exc

    if stake_d is None or not stake_d.is_finite() or stake_d <= 0:
        raise InvalidBetInput(f"stake must be positive, got {stake!r}")
    if odds_d is None or not odds_d.is_finite() or odds_d <= ONE:
        raise InvalidBetInput(f"odds must be greater than 1, got {odds!r}")


def settle_bet(
    status: str,
    bet_type: str,
    stake: Number,
    odds: Number,
    commission_percent: Optional[Number] = 0,
) -> Settlement:
    """Validate inputs and derive ``liability`` and ``result`` together.

    The liability passed to :func:`calculate_result` is the exposure the
    bet carried while pending, so a lay bet recorded directly as lost still
    loses its full liability even though its stored liability is 0.
    """
    validate_bet_inputs(stake, odds)
    exposure = calculate_liability(BetStatus.PENDING, bet_type, stake, odds)
    return Settlement(
        liability=calculate_liability(status, bet_type, stake, odds),
        result=calculate_result(status, bet_type, stake, odds, exposure, commission_percent),
    )
