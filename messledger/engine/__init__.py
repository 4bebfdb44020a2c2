"""Aggregation and balance computations."""

from messledger.engine.aggregation import (
    compute_stats,
    iter_attendance,
    meal_units,
    member_deposits,
    member_meal_units,
    sum_amounts,
    totals_by_category,
    total_meal_units,
    tracked_keys,
)
from messledger.engine.balance import all_balances, member_balance

__all__ = [
    "all_balances",
    "compute_stats",
    "iter_attendance",
    "meal_units",
    "member_balance",
    "member_deposits",
    "member_meal_units",
    "sum_amounts",
    "totals_by_category",
    "total_meal_units",
    "tracked_keys",
]
