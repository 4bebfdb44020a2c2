"""
Balance Calculator

balance = member meal units × meal rate − member deposits

Positive: the member owes the fund (due).
Negative: the member has overpaid (surplus).
Zero: settled.

CRITICAL: The meal rate is global. Every member of one ledger state
must be charged against the SAME LedgerStats, so callers compute the
stats once and pass them in. all_balances() does exactly that.
"""

from datetime import date
from typing import Optional, Union
from uuid import UUID

from messledger.engine.aggregation import (
    compute_stats,
    member_deposits,
    member_meal_units,
)
from messledger.ledger.errors import UnsupportedModeError
from messledger.ledger.store import LedgerStore
from messledger.models.ledger import LedgerMode, LedgerStats, MemberBalance


def _require_shared(store: LedgerStore) -> None:
    if store.mode != LedgerMode.SHARED:
        raise UnsupportedModeError("Member balances exist only in shared ledgers")


def member_balance(
    store: LedgerStore,
    member_id: Union[UUID, str],
    stats: LedgerStats,
    as_of: date,
) -> Optional[MemberBalance]:
    """
    Balance of one member against a given stats snapshot.

    Returns None for an unknown member.
    """
    _require_shared(store)
    member = store.get_member(member_id)
    if member is None:
        return None

    units = member_meal_units(store, member.id, as_of)
    deposits = member_deposits(store, member.id)
    return MemberBalance(
        member_id=member.id,
        member_name=member.name,
        meal_units=units,
        deposits=deposits,
        balance=units * stats.meal_rate - deposits,
    )


def all_balances(
    store: LedgerStore,
    as_of: date,
) -> tuple[LedgerStats, list[MemberBalance]]:
    """
    Balances of every current member, in member order.

    Computes one LedgerStats and returns it alongside the balances
    so the caller can show the rate they were charged at.
    """
    _require_shared(store)
    stats = compute_stats(store, as_of)
    balances = []
    for member in store.members:
        balance = member_balance(store, member.id, stats, as_of)
        if balance is not None:
            balances.append(balance)
    return stats, balances
