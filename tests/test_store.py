"""Tests for the ledger store."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from messledger.ledger import LedgerStore, RecordValidationError, UnsupportedModeError
from messledger.models import (
    ActionType,
    Deposit,
    Expense,
    Language,
    LedgerMode,
    MealEntry,
    TransactionProposal,
)


class TestRecords:
    """Tests for add and delete operations."""

    def test_add_deposit_returns_record(self, store):
        """Test that add returns the fully formed record."""
        deposit = store.add_deposit(amount="500", date="2024-01-01")
        assert isinstance(deposit, Deposit)
        assert deposit.amount == Decimal("500")
        assert store.deposits == [deposit]
        assert store.get_deposit(deposit.id) == deposit

    def test_invalid_deposit_leaves_store_unchanged(self, store):
        """Test that a rejected record is never stored."""
        with pytest.raises(RecordValidationError) as exc_info:
            store.add_deposit(amount="-5", date="2024-01-01")
        assert store.deposits == []
        assert exc_info.value.record_type == "deposit"
        assert exc_info.value.issues[0].field == "amount"

    def test_invalid_date_is_rejected(self, store):
        """Test that an unparseable date is a validation failure."""
        with pytest.raises(RecordValidationError):
            store.add_expense(amount="10", date="not-a-date", items="Rice")
        assert store.expenses == []

    def test_records_keep_insertion_order(self, store):
        """Test that accessors list records in the order they were added."""
        first = store.add_expense(amount="1", date="2024-01-05", items="Rice")
        second = store.add_expense(amount="2", date="2024-01-01", items="Fish")
        assert store.expenses == [first, second]

    def test_delete_expense(self, store):
        """Test deleting an existing expense."""
        expense = store.add_expense(amount="10", date="2024-01-01", items="Rice")
        assert store.delete_expense(expense.id) is True
        assert store.expenses == []

    def test_delete_unknown_id_is_noop(self, store):
        """Test that deleting an unknown id changes nothing."""
        deposit = store.add_deposit(amount="10", date="2024-01-01")
        events = []
        store.subscribe(events.append)

        assert store.delete_deposit(uuid4()) is False
        assert store.delete_expense("not-a-uuid") is False
        assert store.delete_member(uuid4()) is False
        assert store.deposits == [deposit]
        assert events == []

    def test_delete_member_keeps_history(self, store):
        """Test that a member's deposits and meals survive their removal."""
        member = store.add_member("Karim", joined_date=date(2024, 1, 1))
        store.add_deposit(amount="100", date="2024-01-01", member_id=member.id)
        store.toggle_meal(date(2024, 1, 1), "lunch", member_id=member.id)

        assert store.delete_member(str(member.id)) is True
        assert store.members == []
        assert len(store.deposits) == 1
        assert len(store.meal_entries) == 1

    def test_add_expense_without_shopper(self, store):
        """Test that the shopper is optional."""
        expense = store.add_expense(amount="10", date="2024-01-01", items="Rice")
        assert isinstance(expense, Expense)
        assert expense.shopper_name is None


class TestMealAttendance:
    """Tests for meal toggles and reads."""

    def test_absent_entry_reads_as_all_attended(self, store):
        """Test the read-time default."""
        member = store.add_member("Karim")
        assert store.meal_entry(date(2024, 1, 1), member.id) == MealEntry()
        assert store.meal_entries == {}

    def test_toggle_materializes_from_default(self, store):
        """Test that the first toggle starts from all-true."""
        member = store.add_member("Karim")
        entry = store.toggle_meal(date(2024, 1, 1), "breakfast", member_id=member.id)
        assert entry == MealEntry(breakfast=False, lunch=True, dinner=True)
        assert store.meal_entry(date(2024, 1, 1), member.id) == entry
        assert len(store.meal_entries) == 1

    def test_toggle_twice_restores(self, store):
        """Test that toggling the same meal twice returns to attended."""
        member = store.add_member("Karim")
        store.toggle_meal("2024-01-01", "dinner", member_id=member.id)
        entry = store.toggle_meal("2024-01-01", "dinner", member_id=member.id)
        assert entry == MealEntry()

    def test_toggle_is_per_member(self, store):
        """Test that one member's toggle does not affect another."""
        karim = store.add_member("Karim")
        rahim = store.add_member("Rahim")
        store.toggle_meal("2024-01-01", "lunch", member_id=karim.id)
        assert store.meal_entry("2024-01-01", rahim.id) == MealEntry()

    def test_personal_mode_keys_by_date(self, personal_store):
        """Test single-user attendance keyed by date only."""
        entry = personal_store.toggle_meal("2024-01-01", "lunch")
        assert entry.lunch is False
        assert personal_store.meal_entry("2024-01-01") == entry

    def test_shared_mode_requires_member(self, store):
        """Test that a date-only key is rejected in shared mode."""
        with pytest.raises(UnsupportedModeError):
            store.toggle_meal("2024-01-01", "lunch")

    def test_personal_mode_rejects_member(self, personal_store):
        """Test that a per-member key is rejected in personal mode."""
        with pytest.raises(UnsupportedModeError):
            personal_store.toggle_meal("2024-01-01", "lunch", member_id=uuid4())

    def test_unknown_meal_is_rejected(self, store):
        """Test that only breakfast, lunch and dinner exist."""
        member = store.add_member("Karim")
        with pytest.raises(RecordValidationError):
            store.toggle_meal("2024-01-01", "supper", member_id=member.id)
        assert store.meal_entries == {}

    def test_bad_date_is_rejected(self, personal_store):
        """Test that an unparseable date is a validation failure."""
        with pytest.raises(RecordValidationError):
            personal_store.toggle_meal("yesterday", "lunch")

    def test_unknown_member_is_rejected(self, store):
        """Test that meals can only be toggled for a current member."""
        store.add_member("Karim")
        with pytest.raises(RecordValidationError) as excinfo:
            store.toggle_meal("2024-01-01", "lunch", member_id=uuid4())
        assert excinfo.value.issues[0].field == "member_id"
        assert store.meal_entries == {}

    def test_deleted_member_cannot_be_toggled(self, store):
        """Test that a removed member's attendance is frozen."""
        member = store.add_member("Karim")
        store.delete_member(member.id)
        with pytest.raises(RecordValidationError):
            store.toggle_meal("2024-01-01", "lunch", member_id=member.id)


class TestSubscribers:
    """Tests for change notification."""

    def test_listener_called_after_each_mutation(self, store):
        """Test that listeners see every successful mutation."""
        calls = []
        store.subscribe(calls.append)

        member = store.add_member("Karim")
        store.add_deposit(amount="10", date="2024-01-01", member_id=member.id)
        store.toggle_meal("2024-01-01", "lunch", member_id=member.id)
        store.add_category("Rice")

        assert len(calls) == 4
        assert all(c is store for c in calls)

    def test_failed_mutation_does_not_notify(self, store):
        """Test that rejected input is silent."""
        calls = []
        store.subscribe(calls.append)
        with pytest.raises(RecordValidationError):
            store.add_member("")
        assert calls == []

    def test_unsubscribe(self, store):
        """Test that an unsubscribed listener is no longer called."""
        calls = []
        unsubscribe = store.subscribe(calls.append)
        unsubscribe()
        store.add_member("Karim")
        assert calls == []

    def test_failing_listener_rolls_back_add(self, store):
        """Test that a listener error undoes the add and propagates."""
        store.add_deposit(amount="10", date="2024-01-01")

        def fail(_):
            raise RuntimeError("disk full")

        store.subscribe(fail)
        with pytest.raises(RuntimeError):
            store.add_expense(amount="300", date="2024-01-05", items="Groceries")
        assert store.expenses == []
        assert len(store.deposits) == 1

    def test_failing_listener_rolls_back_every_kind_of_change(self, store):
        """Test rollback of deletes, toggles, categories and language."""
        member = store.add_member("Karim")
        expense = store.add_expense(amount="5", date="2024-01-02", items="Rice")
        store.add_category("Rice")
        before = store.snapshot()

        def fail(_):
            raise RuntimeError("disk full")

        store.subscribe(fail)
        with pytest.raises(RuntimeError):
            store.delete_member(member.id)
        with pytest.raises(RuntimeError):
            store.delete_expense(expense.id)
        with pytest.raises(RuntimeError):
            store.toggle_meal("2024-01-01", "lunch", member_id=member.id)
        with pytest.raises(RuntimeError):
            store.rename_category("Rice", "Chal", cascade_to_history=True)
        with pytest.raises(RuntimeError):
            store.delete_category("Rice")
        with pytest.raises(RuntimeError):
            store.set_language("bn")

        assert store.snapshot() == before

    def test_store_keeps_working_after_rollback(self, store):
        """Test that the next successful change builds on the restored state."""
        attempts = []

        def fail_first(_):
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("disk full")

        store.subscribe(fail_first)
        with pytest.raises(RuntimeError):
            store.add_member("Karim")
        store.add_member("Rahim")

        assert [m.name for m in store.members] == ["Rahim"]


class TestPreferences:
    """Tests for the language preference."""

    def test_set_language(self, store):
        """Test switching to Bangla."""
        store.set_language("bn")
        assert store.language == Language.BANGLA

    def test_unknown_language_is_rejected(self, store):
        """Test that only the supported languages are accepted."""
        with pytest.raises(RecordValidationError):
            store.set_language("fr")
        assert store.language == Language.ENGLISH


class TestProposals:
    """Tests for applying confirmed assistant proposals."""

    def test_deposit_proposal(self, store):
        """Test that a deposit proposal becomes a deposit."""
        member = store.add_member("Karim")
        proposal = TransactionProposal(
            action_type=ActionType.DEPOSIT,
            amount=500,
            date="2024-01-01",
            member_id=str(member.id),
            summary="Karim deposited 500",
        )
        record = store.apply_proposal(proposal)
        assert isinstance(record, Deposit)
        assert record.member_id == member.id
        assert record.amount == Decimal("500")

    def test_expense_proposal(self, store):
        """Test that an expense proposal becomes an expense."""
        proposal = TransactionProposal(
            action_type=ActionType.EXPENSE,
            amount=120.5,
            date="2024-01-02",
            shopper_name="Karim",
            items="Vegetables",
        )
        record = store.apply_proposal(proposal)
        assert isinstance(record, Expense)
        assert record.items == "Vegetables"
        assert record.shopper_name == "Karim"

    def test_unknown_proposal_is_noop(self, store):
        """Test that UNKNOWN adds nothing."""
        proposal = TransactionProposal(action_type=ActionType.UNKNOWN)
        assert store.apply_proposal(proposal) is None
        assert store.deposits == [] and store.expenses == []

    def test_invalid_proposal_is_rejected(self, store):
        """Test that proposals go through the normal record checks."""
        proposal = TransactionProposal(action_type=ActionType.EXPENSE, amount=-1, date="2024-01-01")
        with pytest.raises(RecordValidationError):
            store.apply_proposal(proposal)
        assert store.expenses == []


class TestSnapshots:
    """Tests for snapshot and rehydration."""

    def test_round_trip(self, store):
        """Test that a rehydrated store holds the same state."""
        member = store.add_member("Karim", joined_date=date(2024, 1, 1))
        store.add_deposit(amount="500", date="2024-01-01", member_id=member.id)
        store.add_expense(amount="300", date="2024-01-05", items="Groceries")
        store.toggle_meal("2024-01-03", "breakfast", member_id=member.id)
        store.add_category("Groceries")
        store.set_language("bn")

        restored = LedgerStore.from_snapshot(store.snapshot())

        assert restored.mode == LedgerMode.SHARED
        assert restored.members == store.members
        assert restored.deposits == store.deposits
        assert restored.expenses == store.expenses
        assert restored.meal_entries == store.meal_entries
        assert restored.categories.names == ["Groceries"]
        assert restored.language == Language.BANGLA
