"""
Aggregation Engine

DESIGN DECISION: Every statistic is recomputed from the full record set
on every call. There is no cached or incremental state, so there is
nothing to invalidate when a record is added, deleted or relabelled.
Household ledgers are small enough that a full pass is cheap.

Meal units need one extra rule. An absent meal entry means "attended
all meals", so the engine must know which (date, member) pairs are
tracked at all:

- Shared mode: each current member from their joined date through
  `as_of`, plus stored entries of removed members up to `as_of`
- Personal mode: every day from the tracking start through `as_of`.
  Without an explicit tracking start, the earliest deposit or expense
  date is used

A stored entry outside that window is ignored, so an explicit
all-attended entry always counts the same as an absent one.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Iterator, Optional, Union
from uuid import UUID

from messledger.models.ledger import (
    AttendanceKey,
    Deposit,
    Expense,
    LedgerMode,
    LedgerStats,
    MealEntry,
    UnitWeights,
)
from messledger.ledger.store import LedgerStore


ZERO = Decimal("0")


def sum_amounts(records: Iterable[Union[Deposit, Expense]]) -> Decimal:
    return sum((r.amount for r in records), ZERO)


def meal_units(entry: MealEntry, weights: UnitWeights) -> Decimal:
    """Weighted units of one attendance entry."""
    units = ZERO
    if entry.breakfast:
        units += weights.breakfast
    if entry.lunch:
        units += weights.lunch
    if entry.dinner:
        units += weights.dinner
    return units


def _days(start: date, end: date) -> Iterator[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def tracking_start_for(store: LedgerStore) -> Optional[date]:
    """Earliest deposit or expense date, used as the personal-mode tracking start."""
    dates = [d.date for d in store.deposits]
    dates += [e.date for e in store.expenses]
    return min(dates) if dates else None


def tracked_keys(
    store: LedgerStore,
    as_of: date,
    tracking_start: Optional[date] = None,
    member_id: Optional[UUID] = None,
) -> list[AttendanceKey]:
    """
    Every attendance key counted for meals, in date order.

    Stored entries only count inside the same window as the defaults,
    so an explicit all-attended entry counts exactly like an absent one.
    Entries of deleted members count up to `as_of`.

    Args:
        store: The ledger
        as_of: Last day to count (inclusive)
        tracking_start: Personal mode only; overrides the derived start
        member_id: Shared mode only; restrict to one member
    """
    stored = store.meal_entries
    keys: set[AttendanceKey] = set()

    if store.mode == LedgerMode.SHARED:
        joined = {m.id: m.joined_date for m in store.members}
        for mid, joined_date in joined.items():
            if member_id is None or mid == member_id:
                for day in _days(joined_date, as_of):
                    keys.add(AttendanceKey(date=day, member_id=mid))
        for key in stored:
            if key.member_id is None or key.date > as_of:
                continue
            if member_id is not None and key.member_id != member_id:
                continue
            if key.member_id in joined and key.date < joined[key.member_id]:
                continue
            keys.add(key)
    else:
        start = tracking_start or tracking_start_for(store)
        if start is None:
            return []
        for day in _days(start, as_of):
            keys.add(AttendanceKey(date=day))
        keys.update(
            key for key in stored
            if key.member_id is None and start <= key.date <= as_of
        )

    return sorted(keys, key=lambda k: (k.date, str(k.member_id or "")))


def iter_attendance(
    store: LedgerStore,
    as_of: date,
    tracking_start: Optional[date] = None,
    member_id: Optional[UUID] = None,
) -> Iterator[tuple[AttendanceKey, MealEntry]]:
    """Tracked keys paired with their entry, default applied on read."""
    stored = store.meal_entries
    default = MealEntry()
    for key in tracked_keys(store, as_of, tracking_start, member_id):
        yield key, stored.get(key, default)


def total_meal_units(
    store: LedgerStore,
    as_of: date,
    tracking_start: Optional[date] = None,
) -> Decimal:
    weights = store.weights
    return sum(
        (meal_units(entry, weights) for _, entry in iter_attendance(store, as_of, tracking_start)),
        ZERO,
    )


def member_meal_units(store: LedgerStore, member_id: UUID, as_of: date) -> Decimal:
    weights = store.weights
    return sum(
        (meal_units(entry, weights) for _, entry in iter_attendance(store, as_of, member_id=member_id)),
        ZERO,
    )


def member_deposits(store: LedgerStore, member_id: UUID) -> Decimal:
    return sum_amounts(d for d in store.deposits if d.member_id == member_id)


def compute_stats(
    store: LedgerStore,
    as_of: date,
    tracking_start: Optional[date] = None,
) -> LedgerStats:
    """
    Global totals over the whole ledger (no filtering).

    meal_rate is 0 when no meal units are recorded. That is a defined
    floor value, not an error.
    """
    total_deposits = sum_amounts(store.deposits)
    total_expenses = sum_amounts(store.expenses)
    units = total_meal_units(store, as_of, tracking_start)
    meal_rate = total_expenses / units if units > 0 else ZERO

    return LedgerStats(
        total_deposits=total_deposits,
        total_expenses=total_expenses,
        cash_in_hand=total_deposits - total_expenses,
        total_meal_units=units,
        meal_rate=meal_rate,
    )


def totals_by_category(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """Sum of expense amounts per `items` label, in first-seen order."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        totals[expense.items] += expense.amount
    return dict(totals)
