"""
Data Models Package

This package contains all Pydantic models used by the mess ledger.
Every record the ledger stores must conform to these schemas.
"""

from messledger.models.ledger import (
    DEFAULT_MEAL_ENTRY,
    ActionType,
    AttendanceKey,
    BalanceStatus,
    Deposit,
    Expense,
    Language,
    LedgerMode,
    LedgerStats,
    MealEntry,
    MealType,
    Member,
    MemberBalance,
    TransactionProposal,
    UnitWeights,
    ValidationIssue,
)
from messledger.models.snapshot import LedgerSnapshot, MealRecord

__all__ = [
    # Records
    "Deposit",
    "Expense",
    "Member",
    # Meal attendance
    "AttendanceKey",
    "DEFAULT_MEAL_ENTRY",
    "MealEntry",
    "MealRecord",
    "MealType",
    "UnitWeights",
    # Enums
    "ActionType",
    "BalanceStatus",
    "Language",
    "LedgerMode",
    # Derived values
    "LedgerStats",
    "MemberBalance",
    # Contracts
    "LedgerSnapshot",
    "TransactionProposal",
    "ValidationIssue",
]
