"""
Time and Category Filters

Pure functions over ledger records for reporting and on-screen lists.

Month filtering uses calendar month and year equality, never a
rolling 30-day window.

Category filtering has two states that look alike but are not:
- UNFILTERED (empty selection): show everything, including categories
  added later
- A concrete selection, even one holding every current category:
  a category added afterwards is NOT included until reselected
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from messledger.engine.aggregation import sum_amounts, totals_by_category
from messledger.ledger.store import LedgerStore
from messledger.models.ledger import Deposit, Expense


Dated = TypeVar("Dated", Deposit, Expense)


def filter_by_month(records: Iterable[Dated], year: int, month: int) -> list[Dated]:
    """Records dated in the given calendar month, in their original order."""
    return [r for r in records if r.date.year == year and r.date.month == month]


def chronological(records: Iterable[Dated]) -> list[Dated]:
    """Oldest first; records on the same day keep insertion order."""
    return sorted(records, key=lambda r: r.date)


def most_recent_first(records: Iterable[Dated]) -> list[Dated]:
    """Newest first; records on the same day show the latest-added first."""
    return list(reversed(chronological(records)))


def available_periods(
    records: Iterable[Union[Deposit, Expense]],
) -> tuple[list[int], dict[int, list[int]]]:
    """
    Years with records and the months per year.

    Returns:
        (years_list, { year: [month1, month2, ...], ... })
    """
    months_by_year: dict[int, set[int]] = defaultdict(set)
    for record in records:
        months_by_year[record.date.year].add(record.date.month)
    years = sorted(months_by_year)
    return years, {y: sorted(months_by_year[y]) for y in years}


class CategorySelection(BaseModel):
    """
    A multi-select category filter.

    An empty selection means "no filter", not "show none".
    """
    model_config = ConfigDict(frozen=True)

    selected: frozenset[str] = Field(default_factory=frozenset)

    @classmethod
    def unfiltered(cls) -> "CategorySelection":
        return cls()

    @classmethod
    def of(cls, names: Iterable[str]) -> "CategorySelection":
        return cls(selected=frozenset(names))

    @classmethod
    def all_of(cls, categories: Iterable[str]) -> "CategorySelection":
        """'Select all': a concrete snapshot of every current category."""
        return cls.of(categories)

    @property
    def is_unfiltered(self) -> bool:
        return not self.selected

    def toggle(self, name: str) -> "CategorySelection":
        if name in self.selected:
            return CategorySelection(selected=self.selected - {name})
        return CategorySelection(selected=self.selected | {name})

    def matches(self, items: str) -> bool:
        return self.is_unfiltered or items in self.selected


def filter_by_category(
    expenses: Iterable[Expense],
    selection: Optional[CategorySelection] = None,
) -> list[Expense]:
    selection = selection or CategorySelection.unfiltered()
    return [e for e in expenses if selection.matches(e.items)]


class MonthView(BaseModel):
    """Deposits and expenses of one calendar month, oldest first."""
    model_config = ConfigDict(frozen=True)

    year: int
    month: int
    selection: CategorySelection
    deposits: list[Deposit]
    expenses: list[Expense]

    @property
    def total_deposits(self) -> Decimal:
        return sum_amounts(self.deposits)

    @property
    def total_expenses(self) -> Decimal:
        return sum_amounts(self.expenses)

    @property
    def category_totals(self) -> dict[str, Decimal]:
        return totals_by_category(self.expenses)

    @property
    def label(self) -> str:
        return date(self.year, self.month, 1).strftime("%B %Y")


def month_view(
    store: LedgerStore,
    year: int,
    month: int,
    selection: Optional[CategorySelection] = None,
) -> MonthView:
    """
    Month-scoped view for reports.

    The category filter applies to expenses only; deposits have no
    category.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    selection = selection or CategorySelection.unfiltered()
    deposits = chronological(filter_by_month(store.deposits, year, month))
    expenses = chronological(
        filter_by_category(filter_by_month(store.expenses, year, month), selection)
    )
    return MonthView(
        year=year,
        month=month,
        selection=selection,
        deposits=deposits,
        expenses=expenses,
    )
