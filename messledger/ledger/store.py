"""
Ledger Store

DESIGN DECISION: Each collection is an arena of frozen records indexed
by id. Nothing outside the store holds a mutable reference into it:
accessors return fresh lists, and every change goes through an explicit
add/delete/toggle operation.

GUARANTEES:
- A rejected operation leaves the store exactly as it was
- Deleting an unknown id is a silent no-op
- Absent meal entries read as "all meals attended"; that default is
  applied on read and never written back by a read
- Subscribers are notified after every successful mutation, so the
  session can persist the new snapshot
- If a subscriber raises, the mutation is rolled back before the error
  propagates
"""

from datetime import date
from typing import Any, Callable, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ValidationError

from messledger.ledger.categories import CategoryManager
from messledger.ledger.errors import RecordValidationError, UnsupportedModeError
from messledger.log import get_logger
from messledger.models.ledger import (
    DEFAULT_MEAL_ENTRY,
    ActionType,
    AttendanceKey,
    Deposit,
    Expense,
    Language,
    LedgerMode,
    MealEntry,
    MealType,
    Member,
    TransactionProposal,
    UnitWeights,
)
from messledger.models.snapshot import LedgerSnapshot, MealRecord


logger = get_logger(__name__)

Listener = Callable[["LedgerStore"], None]
RecordId = Union[UUID, str]


class LedgerStore:
    """
    In-memory ledger for one session.

    The store is rehydrated from a LedgerSnapshot at startup and lives
    until the application exits. It performs no I/O itself.
    """

    def __init__(
        self,
        mode: LedgerMode = LedgerMode.SHARED,
        language: Language = Language.ENGLISH,
    ):
        self._mode = LedgerMode(mode)
        self._weights = UnitWeights.for_mode(self._mode)
        self._language = Language(language)
        self._members: dict[UUID, Member] = {}
        self._deposits: dict[UUID, Deposit] = {}
        self._expenses: dict[UUID, Expense] = {}
        self._meals: dict[AttendanceKey, MealEntry] = {}
        self._listeners: list[Listener] = []
        self.categories = CategoryManager(self)
        self._committed = self._checkpoint()

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> LedgerMode:
        return self._mode

    @property
    def weights(self) -> UnitWeights:
        return self._weights

    @property
    def language(self) -> Language:
        return self._language

    @property
    def members(self) -> list[Member]:
        return list(self._members.values())

    @property
    def deposits(self) -> list[Deposit]:
        return list(self._deposits.values())

    @property
    def expenses(self) -> list[Expense]:
        return list(self._expenses.values())

    @property
    def meal_entries(self) -> dict[AttendanceKey, MealEntry]:
        """Stored entries only. Use meal_entry() to read with the default."""
        return dict(self._meals)

    def get_member(self, member_id: RecordId) -> Optional[Member]:
        key = _coerce_id(member_id)
        return self._members.get(key) if key else None

    def get_deposit(self, deposit_id: RecordId) -> Optional[Deposit]:
        key = _coerce_id(deposit_id)
        return self._deposits.get(key) if key else None

    def get_expense(self, expense_id: RecordId) -> Optional[Expense]:
        key = _coerce_id(expense_id)
        return self._expenses.get(key) if key else None

    # -------------------------------------------------------------------------
    # Subscribers
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback run after every successful mutation.

        Returns a function that removes the callback again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str, **details: Any) -> None:
        logger.info(event, mode=self._mode.value, **details)
        try:
            for listener in list(self._listeners):
                listener(self)
        except Exception:
            self._restore(self._committed)
            logger.warning("mutation_rolled_back", mutation=event)
            raise
        self._committed = self._checkpoint()

    def _checkpoint(self) -> tuple:
        """Copy of the state a failed notification rolls back to."""
        return (
            dict(self._members),
            dict(self._deposits),
            dict(self._expenses),
            dict(self._meals),
            self.categories.names,
            self._language,
        )

    def _restore(self, checkpoint: tuple) -> None:
        members, deposits, expenses, meals, categories, language = checkpoint
        self._members = dict(members)
        self._deposits = dict(deposits)
        self._expenses = dict(expenses)
        self._meals = dict(meals)
        self.categories._load(categories)
        self._language = language

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    def add_member(
        self,
        name: str,
        room_no: str = "",
        joined_date: Optional[Union[date, str]] = None,
    ) -> Member:
        fields: dict[str, Any] = {"name": name, "room_no": room_no}
        if joined_date is not None:
            fields["joined_date"] = joined_date
        member = _build(Member, "member", fields)
        self._members[member.id] = member
        self._notify("member_added", member_id=str(member.id), name=member.name)
        return member

    def delete_member(self, member_id: RecordId) -> bool:
        """
        Remove a member. Their deposits and meal entries stay in the ledger.

        Returns True if a member was removed.
        """
        key = _coerce_id(member_id)
        if key is None or key not in self._members:
            logger.debug("member_not_found", member_id=str(member_id))
            return False
        del self._members[key]
        self._notify("member_deleted", member_id=str(key))
        return True

    # -------------------------------------------------------------------------
    # Deposits
    # -------------------------------------------------------------------------

    def add_deposit(
        self,
        amount: Any,
        date: Any,
        member_id: Optional[RecordId] = None,
        notes: Optional[str] = None,
    ) -> Deposit:
        deposit = _build(
            Deposit,
            "deposit",
            {"amount": amount, "date": date, "member_id": member_id, "notes": notes},
        )
        self._deposits[deposit.id] = deposit
        self._notify(
            "deposit_added",
            deposit_id=str(deposit.id),
            amount=str(deposit.amount),
            date=deposit.date.isoformat(),
        )
        return deposit

    def delete_deposit(self, deposit_id: RecordId) -> bool:
        key = _coerce_id(deposit_id)
        if key is None or key not in self._deposits:
            logger.debug("deposit_not_found", deposit_id=str(deposit_id))
            return False
        del self._deposits[key]
        self._notify("deposit_deleted", deposit_id=str(key))
        return True

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        amount: Any,
        date: Any,
        items: Optional[str],
        shopper_name: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Expense:
        expense = _build(
            Expense,
            "expense",
            {
                "amount": amount,
                "date": date,
                "items": items,
                "shopper_name": shopper_name,
                "notes": notes,
            },
        )
        self._expenses[expense.id] = expense
        self._notify(
            "expense_added",
            expense_id=str(expense.id),
            amount=str(expense.amount),
            items=expense.items,
            date=expense.date.isoformat(),
        )
        return expense

    def delete_expense(self, expense_id: RecordId) -> bool:
        key = _coerce_id(expense_id)
        if key is None or key not in self._expenses:
            logger.debug("expense_not_found", expense_id=str(expense_id))
            return False
        del self._expenses[key]
        self._notify("expense_deleted", expense_id=str(key))
        return True

    def _expenses_relabelled(
        self,
        old_items: str,
        new_items: str,
    ) -> tuple[dict[UUID, Expense], int]:
        """
        Build a relabelled copy of the expense arena without touching it.

        The caller swaps the copy in, so a cascade is all-or-nothing.
        """
        relabelled: dict[UUID, Expense] = {}
        changed = 0
        for expense_id, expense in self._expenses.items():
            if expense.items == old_items:
                relabelled[expense_id] = expense.model_copy(update={"items": new_items})
                changed += 1
            else:
                relabelled[expense_id] = expense
        return relabelled, changed

    def _swap_expenses(self, expenses: dict[UUID, Expense]) -> None:
        self._expenses = expenses

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def add_category(self, name: str) -> bool:
        return self.categories.add(name)

    def delete_category(self, name: str) -> bool:
        return self.categories.delete(name)

    def rename_category(
        self,
        old_name: str,
        new_name: str,
        cascade_to_history: bool = False,
    ) -> int:
        return self.categories.rename(old_name, new_name, cascade_to_history)

    # -------------------------------------------------------------------------
    # Meal attendance
    # -------------------------------------------------------------------------

    def _attendance_key(
        self,
        day: Union[date, str],
        member_id: Optional[RecordId],
    ) -> AttendanceKey:
        if self._mode == LedgerMode.SHARED and member_id is None:
            raise UnsupportedModeError(
                "Shared ledgers track meals per member; member_id is required"
            )
        if self._mode == LedgerMode.PERSONAL and member_id is not None:
            raise UnsupportedModeError(
                "Personal ledgers track meals per date only; member_id must be omitted"
            )
        try:
            return AttendanceKey(date=day, member_id=member_id)
        except ValidationError as e:
            raise RecordValidationError.from_pydantic("meal attendance", e)

    def meal_entry(
        self,
        day: Union[date, str],
        member_id: Optional[RecordId] = None,
    ) -> MealEntry:
        """Read attendance for a key, with absent entries read as all attended."""
        key = self._attendance_key(day, member_id)
        return self._meals.get(key, DEFAULT_MEAL_ENTRY)

    def toggle_meal(
        self,
        day: Union[date, str],
        meal: Union[MealType, str],
        member_id: Optional[RecordId] = None,
    ) -> MealEntry:
        """
        Flip one meal flag for a key.

        The entry is materialized from the all-attended default on its
        first toggle; the other two flags are preserved.
        """
        try:
            meal_type = MealType(meal)
        except ValueError:
            raise RecordValidationError.single(
                "meal attendance",
                field="meal",
                issue_type="enum",
                message=f"Unknown meal: {meal!r}",
            )
        key = self._attendance_key(day, member_id)
        if key.member_id is not None and key.member_id not in self._members:
            raise RecordValidationError.single(
                "meal attendance",
                field="member_id",
                issue_type="not_found",
                message=f"Unknown member: {key.member_id}",
            )
        entry = self._meals.get(key, DEFAULT_MEAL_ENTRY).toggled(meal_type)
        self._meals[key] = entry
        self._notify(
            "meal_toggled",
            date=key.date.isoformat(),
            member_id=str(key.member_id) if key.member_id else None,
            meal=meal_type.value,
            attended=getattr(entry, meal_type.value),
        )
        return entry

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    def set_language(self, language: Union[Language, str]) -> None:
        try:
            new_language = Language(language)
        except ValueError:
            raise RecordValidationError.single(
                "preferences",
                field="language",
                issue_type="enum",
                message=f"Unsupported language: {language!r}",
            )
        if new_language == self._language:
            return
        self._language = new_language
        self._notify("language_changed", language=new_language.value)

    # -------------------------------------------------------------------------
    # Assistant proposals
    # -------------------------------------------------------------------------

    def apply_proposal(
        self,
        proposal: TransactionProposal,
    ) -> Optional[Union[Deposit, Expense]]:
        """
        Write a user-confirmed assistant proposal to the ledger.

        CRITICAL: Called ONLY after explicit user confirmation.
        The proposal gets no special treatment: it goes through the same
        add operation (and the same record checks) as a form entry.
        """
        if proposal.action_type == ActionType.DEPOSIT:
            return self.add_deposit(
                member_id=proposal.member_id,
                amount=proposal.amount,
                date=proposal.date,
            )
        if proposal.action_type == ActionType.EXPENSE:
            return self.add_expense(
                shopper_name=proposal.shopper_name,
                items=proposal.items,
                amount=proposal.amount,
                date=proposal.date,
            )
        logger.info("proposal_ignored", action_type=proposal.action_type.value)
        return None

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            mode=self._mode,
            members=self.members,
            deposits=self.deposits,
            expenses=self.expenses,
            meals=[
                MealRecord.from_entry(key, entry)
                for key, entry in self._meals.items()
            ],
            categories=self.categories.names,
            language=self._language,
        )

    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot) -> "LedgerStore":
        """Rehydrate a store. Subscribers are not carried over."""
        store = cls(mode=snapshot.mode, language=snapshot.language)
        store._members = {m.id: m for m in snapshot.members}
        store._deposits = {d.id: d for d in snapshot.deposits}
        store._expenses = {e.id: e for e in snapshot.expenses}
        store._meals = {record.key: record.entry for record in snapshot.meals}
        store.categories._load(snapshot.categories)
        store._committed = store._checkpoint()
        return store


def _build(model: type[BaseModel], record_type: str, fields: dict[str, Any]) -> Any:
    """Construct a record or raise RecordValidationError."""
    try:
        return model(**fields)
    except ValidationError as e:
        raise RecordValidationError.from_pydantic(record_type, e)


def _coerce_id(value: Optional[RecordId]) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None
