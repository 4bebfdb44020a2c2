"""
Category Manager

Expense categories are a free-form, ordered set of labels.
Expenses reference them BY VALUE through their `items` field, so the
set and the history are stored independently:

- Deleting a category never touches expenses; they keep the orphaned label
- Renaming a category rewrites history ONLY when the caller asks for it

DESIGN DECISION: Whether a rename cascades to history is a policy input
from the caller (typically a yes/no confirmation), never inferred here.
"""

from typing import TYPE_CHECKING, Iterable, Iterator

from messledger.ledger.errors import RecordValidationError
from messledger.log import get_logger

if TYPE_CHECKING:
    from messledger.ledger.store import LedgerStore


logger = get_logger(__name__)


class CategoryManager:
    """
    The ordered category set of one ledger.

    Names are unique with a case-sensitive exact match.
    Insertion order is display order.
    """

    def __init__(self, store: "LedgerStore"):
        self._store = store
        self._names: list[str] = []

    def _load(self, names: Iterable[str]) -> None:
        """Restore from persisted state, dropping duplicates."""
        self._names = []
        for name in names:
            if name not in self._names:
                self._names.append(name)

    @property
    def names(self) -> list[str]:
        return list(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

    def __len__(self) -> int:
        return len(self._names)

    @staticmethod
    def _clean(name: str, field: str) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise RecordValidationError.single(
                "category",
                field=field,
                issue_type="missing",
                message="Category name cannot be empty",
            )
        return cleaned

    def add(self, name: str) -> bool:
        """
        Add a category unless it already exists.

        Returns True when a new category was added. A duplicate is
        silently ignored.
        """
        name = self._clean(name, "name")
        if name in self._names:
            logger.debug("category_exists", name=name)
            return False
        self._names = [*self._names, name]
        self._store._notify("category_added", name=name)
        return True

    def delete(self, name: str) -> bool:
        """
        Remove a category from the set. Expenses are not touched.

        Returns True if the category existed.
        """
        if name not in self._names:
            logger.debug("category_not_found", name=name)
            return False
        self._names = [n for n in self._names if n != name]
        self._store._notify("category_deleted", name=name)
        return True

    def rename(self, old_name: str, new_name: str, cascade_to_history: bool) -> int:
        """
        Rename a category in place, keeping its position.

        Args:
            old_name: Existing category name (exact match)
            new_name: Replacement name
            cascade_to_history: If True, every expense labelled exactly
                `old_name` is relabelled `new_name`. If False, history
                keeps the old label.

        Returns:
            Number of expenses relabelled (0 when not cascading or when
            the category does not exist).

        If `new_name` is already in the set, the two entries merge and
        the existing one keeps its position.
        """
        new_name = self._clean(new_name, "new_name")
        if old_name not in self._names:
            logger.debug("category_not_found", name=old_name)
            return 0
        if old_name == new_name:
            return 0

        if new_name in self._names:
            names = [n for n in self._names if n != old_name]
        else:
            names = [new_name if n == old_name else n for n in self._names]

        relabelled = 0
        if cascade_to_history:
            expenses, relabelled = self._store._expenses_relabelled(old_name, new_name)
            # Both collections are fully built before either is swapped in
            self._store._swap_expenses(expenses)
        self._names = names

        self._store._notify(
            "category_renamed",
            old_name=old_name,
            new_name=new_name,
            cascade_to_history=cascade_to_history,
            expenses_relabelled=relabelled,
        )
        return relabelled
