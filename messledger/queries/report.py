"""
Monthly Report Builder

DESIGN DECISION: The report is DETERMINISTIC.
It contains exactly the records of the filtered month view, in
ascending date order, and the totals computed from them. The cash in
hand line comes from the unfiltered global aggregation, because it is
the fund's real balance, not a property of the selected month.

The text layout is a presentation concern; the set and order of
records and the numbers shown are not.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from messledger.engine.aggregation import compute_stats
from messledger.ledger.store import LedgerStore
from messledger.models.ledger import LedgerStats
from messledger.queries.filters import CategorySelection, MonthView, month_view


def _money(amount: Decimal) -> str:
    return f"{amount:,.2f}"


class MonthlyReport(BaseModel):
    """A month view plus the global stats it is reported against."""
    model_config = ConfigDict(frozen=True)

    view: MonthView
    stats: LedgerStats
    member_names: dict[str, str] = Field(default_factory=dict)

    @property
    def cash_in_hand(self) -> Decimal:
        return self.stats.cash_in_hand

    def _describe_filter(self) -> str:
        if self.view.selection.is_unfiltered:
            return "all categories"
        return ", ".join(sorted(self.view.selection.selected))

    def to_text(self) -> str:
        """Plain-text summary suitable for sharing in a chat message."""
        lines = [
            f"Mess Ledger Report: {self.view.label}",
            f"Categories: {self._describe_filter()}",
            "",
            "Deposits",
        ]

        if self.view.deposits:
            for deposit in self.view.deposits:
                who = ""
                if deposit.member_id:
                    who = f" {self.member_names.get(str(deposit.member_id), 'Unknown member')}"
                lines.append(f"  {deposit.date.isoformat()}{who}: {_money(deposit.amount)}")
        else:
            lines.append("  (none)")
        lines.append(f"Total deposits: {_money(self.view.total_deposits)}")

        lines += ["", "Expenses"]
        if self.view.expenses:
            for expense in self.view.expenses:
                shopper = f" ({expense.shopper_name})" if expense.shopper_name else ""
                lines.append(
                    f"  {expense.date.isoformat()} {expense.items}{shopper}: "
                    f"{_money(expense.amount)}"
                )
        else:
            lines.append("  (none)")
        lines.append(f"Total expenses: {_money(self.view.total_expenses)}")

        category_totals = self.view.category_totals
        if len(category_totals) > 1:
            lines += ["", "By category"]
            for name, total in category_totals.items():
                lines.append(f"  {name}: {_money(total)}")

        lines += ["", f"Cash in hand: {_money(self.cash_in_hand)}"]
        return "\n".join(lines)


def build_report(
    store: LedgerStore,
    year: int,
    month: int,
    as_of: date,
    selection: Optional[CategorySelection] = None,
    stats: Optional[LedgerStats] = None,
) -> MonthlyReport:
    """
    Build the share report for one month.

    Args:
        store: The ledger
        year, month: Calendar month to report
        as_of: Day the global stats are computed for
        selection: Category filter for expenses (default: no filter)
        stats: Precomputed global stats for the same ledger state, if
            the caller already has them
    """
    view = month_view(store, year, month, selection)
    return MonthlyReport(
        view=view,
        stats=stats or compute_stats(store, as_of),
        member_names={str(m.id): m.name for m in store.members},
    )
