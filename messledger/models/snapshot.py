"""
Ledger Snapshot

The complete persisted state of a ledger, as one value.
Storage backends read and write snapshots; they never see the store.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from messledger.models.ledger import (
    AttendanceKey,
    Deposit,
    Expense,
    Language,
    LedgerMode,
    MealEntry,
    Member,
)


class MealRecord(BaseModel):
    """A stored meal entry flattened with its key."""
    model_config = ConfigDict(frozen=True)

    date: date
    member_id: Optional[UUID] = None
    breakfast: bool = True
    lunch: bool = True
    dinner: bool = True

    @property
    def key(self) -> AttendanceKey:
        return AttendanceKey(date=self.date, member_id=self.member_id)

    @property
    def entry(self) -> MealEntry:
        return MealEntry(
            breakfast=self.breakfast,
            lunch=self.lunch,
            dinner=self.dinner,
        )

    @classmethod
    def from_entry(cls, key: AttendanceKey, entry: MealEntry) -> "MealRecord":
        return cls(
            date=key.date,
            member_id=key.member_id,
            breakfast=entry.breakfast,
            lunch=entry.lunch,
            dinner=entry.dinner,
        )


class LedgerSnapshot(BaseModel):
    """Every collection of the ledger plus the language preference."""

    mode: LedgerMode = LedgerMode.SHARED
    members: list[Member] = Field(default_factory=list)
    deposits: list[Deposit] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    meals: list[MealRecord] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    language: Language = Language.ENGLISH

    @property
    def is_empty(self) -> bool:
        return not (
            self.members
            or self.deposits
            or self.expenses
            or self.meals
            or self.categories
        )
