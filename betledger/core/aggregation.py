"""
Rollups over persisted bets, transactions and freebets.

Every function here is pure: it receives already-loaded records and
returns plain dicts (or ``Decimal``) so it can be called from the service
layer, a scheduled job or a test without a database.  Records are
duck-typed; anything exposing the ORM attribute names works (ORM rows,
dataclasses, ``MagicMock`` fakes).

Conventions:
  * money values are ``Decimal`` rounded half-up to 2 decimals
  * every division by zero resolves to 0, never an error or NaN
  * per-bookmaker rows carry both ``bookmaker_id`` and ``bookmaker_name``
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from betledger.core.enums import BetStatus, BetType, FreebetStatus, TransactionType
from betledger.core.money import (
    ZERO,
    Number,
    round_money,
    safe_average,
    safe_percentage,
    sum_money,
    to_decimal,
)


# ---------------------------------------------------------------------------
# Ratios
# ---------------------------------------------------------------------------

def win_rate(won: int, lost: int) -> Decimal:
    """Won / resolved × 100.  Pending bets never enter the denominator."""
    return safe_percentage(won, won + lost)


def roi(total_result: Number, total_staked: Number) -> Decimal:
    """Net result / total staked × 100."""
    return safe_percentage(total_result, total_staked)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _is_settled(bet: Any) -> bool:
    return bet.status != BetStatus.PENDING


def _count_status(bets: Iterable[Any], status: str) -> int:
    return sum(1 for b in bets if b.status == status)


def _in_window(d: Optional[date], start: date, end: date) -> bool:
    return d is not None and start <= d <= end


def _name(bookmaker_names: Optional[Mapping[int, str]], bookmaker_id: int) -> Optional[str]:
    if bookmaker_names is None:
        return None
    return bookmaker_names.get(bookmaker_id)


def _group_by_bookmaker(records: Iterable[Any]) -> Dict[int, List[Any]]:
    groups: Dict[int, List[Any]] = defaultdict(list)
    for r in records:
        groups[r.bookmaker_id].append(r)
    return groups


def _iso(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d is not None else None


def _transaction_totals(transactions: Iterable[Any]) -> tuple[Decimal, Decimal]:
    deposits = ZERO
    withdrawals = ZERO
    for t in transactions:
        if t.type == TransactionType.DEPOSIT:
            deposits += to_decimal(t.amount)
        elif t.type == TransactionType.WITHDRAWAL:
            withdrawals += to_decimal(t.amount)
    return round_money(deposits), round_money(withdrawals)


def _bet_totals(bets: Iterable[Any]) -> tuple[Decimal, Decimal]:
    """(Σresult of settled bets, Σliability of pending bets)."""
    results = ZERO
    liability = ZERO
    for b in bets:
        if _is_settled(b):
            results += to_decimal(b.result)
        else:
            liability += to_decimal(b.liability)
    return round_money(results), round_money(liability)


# ---------------------------------------------------------------------------
# Balance
# ---------------------------------------------------------------------------

def compute_balance(
    initial_balance: Optional[Number],
    transactions: Iterable[Any],
    bets: Iterable[Any],
) -> Dict:
    """
    Current balance of one bookmaker account.

        balance = initial + Σdeposits − Σwithdrawals
                  + Σresult(settled) − Σliability(pending)

    Each breakdown term is rounded on its own before summation, so adding
    the breakdown back up reproduces ``balance`` exactly.
    """
    initial = round_money(initial_balance)
    deposits, withdrawals = _transaction_totals(transactions)
    results, liability = _bet_totals(bets)

    return {
        "balance": initial + deposits - withdrawals + results - liability,
        "breakdown": {
            "initial_balance": initial,
            "total_deposits": deposits,
            "total_withdrawals": withdrawals,
            "total_results": results,
            "total_liability": liability,
        },
    }


def period_balance(
    transactions: Iterable[Any],
    bets: Iterable[Any],
    start_date: date,
    end_date: date,
    bookmaker_names: Optional[Mapping[int, str]] = None,
) -> Dict:
    """
    Net balance movement per bookmaker inside an inclusive date window.

    Transactions are filtered on ``date`` and bets on ``bet_date``.  A
    bookmaker with activity on only one side still appears, with the
    missing side reported as 0.  The account's initial balance is not
    part of a period movement.
    """
    txs = _group_by_bookmaker(t for t in transactions if _in_window(t.date, start_date, end_date))
    bts = _group_by_bookmaker(b for b in bets if _in_window(b.bet_date, start_date, end_date))

    rows = []
    total = ZERO
    for bm_id in sorted(set(txs) | set(bts)):
        deposits, withdrawals = _transaction_totals(txs.get(bm_id, []))
        results, liability = _bet_totals(bts.get(bm_id, []))
        balance = deposits - withdrawals + results - liability
        total += balance
        rows.append({
            "bookmaker_id": bm_id,
            "bookmaker_name": _name(bookmaker_names, bm_id),
            "deposits": deposits,
            "withdrawals": withdrawals,
            "results": results,
            "liability": liability,
            "balance": balance,
        })

    return {
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "total_balance": round_money(total),
        "by_bookmaker": rows,
    }


# ---------------------------------------------------------------------------
# Cashflow
# ---------------------------------------------------------------------------

def monthly_cashflow(transactions: Iterable[Any]) -> List[Dict]:
    """Deposits vs withdrawals per calendar month, newest month first."""
    months: Dict[str, Dict[str, Any]] = {}
    for t in transactions:
        if t.date is None:
            continue
        key = t.date.strftime("%Y-%m")
        m = months.setdefault(key, {
            "deposits": ZERO, "withdrawals": ZERO,
            "deposit_count": 0, "withdrawal_count": 0,
        })
        if t.type == TransactionType.DEPOSIT:
            m["deposits"] += to_decimal(t.amount)
            m["deposit_count"] += 1
        elif t.type == TransactionType.WITHDRAWAL:
            m["withdrawals"] += to_decimal(t.amount)
            m["withdrawal_count"] += 1

    rows = []
    for key in sorted(months, reverse=True):
        m = months[key]
        deposits = round_money(m["deposits"])
        withdrawals = round_money(m["withdrawals"])
        rows.append({
            "month": key,
            "deposits": deposits,
            "withdrawals": withdrawals,
            "deposit_count": m["deposit_count"],
            "withdrawal_count": m["withdrawal_count"],
            "net_flow": deposits - withdrawals,
            "avg_deposit_amount": safe_average(m["deposits"], m["deposit_count"]),
            "avg_withdrawal_amount": safe_average(m["withdrawals"], m["withdrawal_count"]),
        })
    return rows


def transaction_type_summary(
    transactions: Iterable[Any],
    transaction_type: str,
    bookmaker_names: Optional[Mapping[int, str]] = None,
) -> Dict:
    """
    Per-bookmaker summary of one transaction type (deposits or withdrawals).

    ``percentage_of_total`` is each bookmaker's share of the grand total
    across all bookmakers, not of its own transactions.
    """
    groups = _group_by_bookmaker(t for t in transactions if t.type == transaction_type)

    grand_total = ZERO
    rows = []
    for bm_id, grp in groups.items():
        amounts = [to_decimal(t.amount) for t in grp]
        dates = [t.date for t in grp if t.date is not None]
        total = sum(amounts, ZERO)
        grand_total += total
        rows.append({
            "bookmaker_id": bm_id,
            "bookmaker_name": _name(bookmaker_names, bm_id),
            "count": len(grp),
            "total_amount": round_money(total),
            "avg_amount": safe_average(total, len(grp)),
            "min_amount": round_money(min(amounts)),
            "max_amount": round_money(max(amounts)),
            "first_date": _iso(min(dates)) if dates else None,
            "last_date": _iso(max(dates)) if dates else None,
            "_exact_total": total,
        })

    for row in rows:
        row["percentage_of_total"] = safe_percentage(row.pop("_exact_total"), grand_total)

    rows.sort(key=lambda r: r["total_amount"], reverse=True)
    return {
        "transaction_type": transaction_type,
        "totals": {
            "count": sum(r["count"] for r in rows),
            "total_amount": round_money(grand_total),
        },
        "by_bookmaker": rows,
    }


def transaction_stats_by_bookmaker(
    transactions: Iterable[Any],
    bookmaker_names: Optional[Mapping[int, str]] = None,
) -> List[Dict]:
    rows = []
    for bm_id, grp in sorted(_group_by_bookmaker(transactions).items()):
        deposits, withdrawals = _transaction_totals(grp)
        dates = [t.date for t in grp if t.date is not None]
        rows.append({
            "bookmaker_id": bm_id,
            "bookmaker_name": _name(bookmaker_names, bm_id),
            "total_transactions": len(grp),
            "total_deposits": deposits,
            "total_withdrawals": withdrawals,
            "first_transaction": _iso(min(dates)) if dates else None,
            "last_transaction": _iso(max(dates)) if dates else None,
        })
    return rows


# ---------------------------------------------------------------------------
# Bet performance
# ---------------------------------------------------------------------------

def bet_stats_by_bookmaker(
    bets: Iterable[Any],
    bookmaker_names: Optional[Mapping[int, str]] = None,
) -> List[Dict]:
    """Win rate, ROI and exposure per bookmaker."""
    rows = []
    for bm_id, grp in sorted(_group_by_bookmaker(bets).items()):
        won = _count_status(grp, BetStatus.WON)
        lost = _count_status(grp, BetStatus.LOST)
        staked = sum_money(b.stake for b in grp)
        results, liability = _bet_totals(grp)
        dates = [b.bet_date for b in grp if b.bet_date is not None]
        rows.append({
            "bookmaker_id": bm_id,
            "bookmaker_name": _name(bookmaker_names, bm_id),
            "total_bets": len(grp),
            "won_bets": won,
            "lost_bets": lost,
            "pending_bets": _count_status(grp, BetStatus.PENDING),
            "total_staked": staked,
            "total_result": results,
            "total_liability": liability,
            "first_bet": _iso(min(dates)) if dates else None,
            "last_bet": _iso(max(dates)) if dates else None,
            "win_rate": win_rate(won, lost),
            "avg_stake": safe_average(staked, len(grp)),
            "roi": roi(results, staked),
        })
    return rows


def bets_summary_by_period(bets: Iterable[Any], period: str = "day") -> List[Dict]:
    """
    Bets grouped by calendar day (``"day"``) or month (``"month"``),
    newest first.
    """
    if period not in ("day", "month"):
        raise ValueError(f"period must be 'day' or 'month', got {period!r}")
    fmt = "%Y-%m-%d" if period == "day" else "%Y-%m"

    groups: Dict[str, List[Any]] = defaultdict(list)
    for b in bets:
        if b.bet_date is not None:
            groups[b.bet_date.strftime(fmt)].append(b)

    rows = []
    for key in sorted(groups, reverse=True):
        grp = groups[key]
        won = _count_status(grp, BetStatus.WON)
        lost = _count_status(grp, BetStatus.LOST)
        staked = sum_money(b.stake for b in grp)
        result = sum_money(b.result for b in grp)
        rows.append({
            period: key,
            "total_bets": len(grp),
            "total_staked": staked,
            "won_bets": won,
            "lost_bets": lost,
            "total_result": result,
            "win_rate": win_rate(won, lost),
            "avg_stake": safe_average(staked, len(grp)),
            "roi": roi(result, staked),
            "avg_odds": safe_average(sum(to_decimal(b.odds) for b in grp), len(grp)),
        })
    return rows


def bookmaker_performance(bets: Iterable[Any]) -> Dict:
    """Performance metrics for the bets of one bookmaker."""
    bets = list(bets)
    won = _count_status(bets, BetStatus.WON)
    lost = _count_status(bets, BetStatus.LOST)
    staked = sum_money(b.stake for b in bets)
    profit = sum_money(b.result for b in bets)
    odds = [to_decimal(b.odds) for b in bets]

    return {
        "total_bets": len(bets),
        "won_bets": won,
        "lost_bets": lost,
        "total_staked": staked,
        "total_profit": profit,
        "avg_stake": safe_average(staked, len(bets)),
        "avg_odds": safe_average(sum(odds, ZERO), len(odds)),
        "min_odds": round_money(min(odds)) if odds else round_money(ZERO),
        "max_odds": round_money(max(odds)) if odds else round_money(ZERO),
        "bet_types_used": len({b.bet_type for b in bets}),
        "win_rate": win_rate(won, lost),
        "roi": roi(profit, staked),
    }


# ---------------------------------------------------------------------------
# Freebets
# ---------------------------------------------------------------------------

def freebet_stats_by_bookmaker(
    freebets: Iterable[Any],
    bookmaker_names: Optional[Mapping[int, str]] = None,
) -> List[Dict]:
    rows = []
    for bm_id, grp in sorted(_group_by_bookmaker(freebets).items()):
        row = {
            "bookmaker_id": bm_id,
            "bookmaker_name": _name(bookmaker_names, bm_id),
            "total_freebets": len(grp),
            "total_amount": sum_money(f.amount for f in grp),
        }
        for status in FreebetStatus:
            row[status.value] = _count_status(grp, status)
        rows.append(row)
    return rows


def freebet_conversion(
    freebets: Iterable[Any],
    bets: Iterable[Any],
    bookmaker_names: Optional[Mapping[int, str]] = None,
) -> Dict:
    """
    How much of the promotional credit turned into realized profit.

    Profit is Σresult of the bookmaker's resolved ``freeBet`` bets; the
    conversion rate divides it by the bookmaker's total freebet amount.
    Only bookmakers holding at least one freebet record are reported.
    """
    profit_by_bm: Dict[int, Decimal] = defaultdict(lambda: ZERO)
    for b in bets:
        if b.bet_type == BetType.FREE_BET and _is_settled(b):
            profit_by_bm[b.bookmaker_id] += to_decimal(b.result)

    rows = []
    for bm_id, grp in _group_by_bookmaker(freebets).items():
        amount = sum_money(f.amount for f in grp)
        profit = round_money(profit_by_bm.get(bm_id, ZERO))
        received = _count_status(grp, FreebetStatus.RECEIVED)
        rows.append({
            "bookmaker_id": bm_id,
            "bookmaker_name": _name(bookmaker_names, bm_id),
            "total_freebets": len(grp),
            "total_freebet_amount": amount,
            "avg_freebet_amount": safe_average(amount, len(grp)),
            "received_freebets": received,
            "rejected_freebets": _count_status(grp, FreebetStatus.REJECTED),
            "total_profit": profit,
            "conversion_rate": safe_percentage(profit, amount),
            "success_rate": safe_percentage(received, len(grp)),
        })
    rows.sort(key=lambda r: r["total_freebet_amount"], reverse=True)

    total_freebets = sum(r["total_freebets"] for r in rows)
    total_amount = sum((r["total_freebet_amount"] for r in rows), ZERO)
    total_profit = sum((r["total_profit"] for r in rows), ZERO)
    received = sum(r["received_freebets"] for r in rows)

    return {
        "totals": {
            "total_freebets": total_freebets,
            "total_amount": total_amount,
            "total_profit": total_profit,
            "received_freebets": received,
            "rejected_freebets": sum(r["rejected_freebets"] for r in rows),
            "overall_conversion_rate": safe_percentage(total_profit, total_amount),
            "overall_success_rate": safe_percentage(received, total_freebets),
        },
        "by_bookmaker": rows,
    }


# ---------------------------------------------------------------------------
# Activity feed
# ---------------------------------------------------------------------------

def recent_activity(transactions: Iterable[Any], bets: Iterable[Any], limit: int = 10) -> List[Dict]:
    """Transactions and bets merged into one feed, most recent first."""
    feed = [
        {
            "activity_type": "transaction",
            "id": t.id,
            "date": t.date,
            "type": t.type,
            "amount": round_money(t.amount),
            "info": t.info,
        }
        for t in transactions
    ]
    feed += [
        {
            "activity_type": "bet",
            "id": b.id,
            "date": b.bet_date,
            "type": b.bet_type,
            "amount": round_money(b.stake),
            "status": b.status,
            "result": round_money(b.result),
            "event": b.event,
            "info": b.info,
        }
        for b in bets
    ]
    feed.sort(key=lambda a: a["date"] or date.min, reverse=True)
    return [{**a, "date": _iso(a["date"])} for a in feed[:limit]]
