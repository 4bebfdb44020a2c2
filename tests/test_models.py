"""
Tests for the Mess Ledger models

Test strategy:
1. Unit tests for individual components (models, store, engine)
2. Integration tests for flows (with fake external services)
3. No real API calls in tests (use fakes)
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from messledger.models import (
    DEFAULT_MEAL_ENTRY,
    ActionType,
    AttendanceKey,
    BalanceStatus,
    Deposit,
    Expense,
    LedgerMode,
    LedgerSnapshot,
    MealEntry,
    MealRecord,
    MealType,
    Member,
    MemberBalance,
    TransactionProposal,
    UnitWeights,
)


class TestRecordModels:
    """Tests for the persisted record models."""

    def test_member_creation(self):
        """Test Member model creation with defaults."""
        member = Member(name="Karim", room_no="204")
        assert member.name == "Karim"
        assert member.room_no == "204"
        assert member.joined_date == date.today()
        assert isinstance(member.id, UUID)

    def test_member_strips_whitespace(self):
        """Test that whitespace is stripped from member name."""
        member = Member(name="  Karim  ")
        assert member.name == "Karim"

    def test_member_requires_name(self):
        """Test that a blank name is rejected."""
        with pytest.raises(ValueError):
            Member(name="   ")

    def test_ids_are_unique(self):
        """Test that every record gets its own id."""
        assert Member(name="A").id != Member(name="A").id

    def test_deposit_creation(self):
        """Test Deposit model creation."""
        deposit = Deposit(amount="500", date="2024-01-01")
        assert deposit.amount == Decimal("500")
        assert deposit.date == date(2024, 1, 1)
        assert deposit.member_id is None

    def test_deposit_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Deposit(amount=Decimal("-1"), date=date(2024, 1, 1))

    def test_deposit_rejects_non_finite_amount(self):
        """Test that NaN and infinity are rejected."""
        with pytest.raises(ValueError):
            Deposit(amount="NaN", date=date(2024, 1, 1))
        with pytest.raises(ValueError):
            Deposit(amount="Infinity", date=date(2024, 1, 1))

    def test_deposit_rejects_non_numeric_amount(self):
        """Test that a non-numeric amount is rejected."""
        with pytest.raises(ValueError):
            Deposit(amount="five hundred", date=date(2024, 1, 1))

    def test_blank_member_id_means_absent(self):
        """Test that an empty form value for member_id becomes None."""
        deposit = Deposit(amount="10", date=date(2024, 1, 1), member_id="")
        assert deposit.member_id is None

    def test_expense_requires_items(self):
        """Test that an expense without items is rejected."""
        with pytest.raises(ValueError):
            Expense(amount="10", date=date(2024, 1, 1), items="")

    def test_records_are_frozen(self):
        """Test that records cannot be edited in place."""
        expense = Expense(amount="10", date=date(2024, 1, 1), items="Rice")
        with pytest.raises(ValueError):
            expense.items = "Fish"

    def test_storage_dict_uses_camel_case(self):
        """Test persisted field names."""
        member_id = uuid4()
        deposit = Deposit(amount="500", date=date(2024, 1, 1), member_id=member_id)
        data = deposit.to_storage_dict()
        assert data["memberId"] == str(member_id)
        assert data["date"] == "2024-01-01"
        assert "notes" not in data

        expense = Expense(amount="1", date=date(2024, 1, 1), items="Tea", shopper_name="Me")
        assert expense.to_storage_dict()["shopperName"] == "Me"

    def test_storage_dict_amounts_are_numbers(self):
        """Test that whole amounts dump as int and fractional ones as float."""
        deposit = Deposit(amount="500.00", date=date(2024, 1, 1))
        expense = Expense(amount="12.75", date=date(2024, 1, 1), items="Tea")
        assert deposit.to_storage_dict()["amount"] == 500
        assert isinstance(deposit.to_storage_dict()["amount"], int)
        assert expense.to_storage_dict()["amount"] == 12.75
        assert deposit.model_dump()["amount"] == Decimal("500.00")

    def test_records_load_from_camel_case(self):
        """Test that persisted dicts validate back into records."""
        member = Member.model_validate(
            {"id": str(uuid4()), "name": "Karim", "roomNo": "3", "joinedDate": "2024-02-01"}
        )
        assert member.room_no == "3"
        assert member.joined_date == date(2024, 2, 1)


class TestMealModels:
    """Tests for meal attendance models."""

    def test_default_entry_is_all_attended(self):
        """Test that the default entry has every meal attended."""
        assert DEFAULT_MEAL_ENTRY == MealEntry(breakfast=True, lunch=True, dinner=True)

    def test_toggled_flips_exactly_one_flag(self):
        """Test that toggling preserves the other flags."""
        entry = MealEntry().toggled(MealType.LUNCH)
        assert entry == MealEntry(breakfast=True, lunch=False, dinner=True)
        assert entry.toggled(MealType.LUNCH) == MealEntry()

    def test_attendance_keys_are_hashable(self):
        """Test that equal keys collapse in a set."""
        member_id = uuid4()
        keys = {
            AttendanceKey(date=date(2024, 1, 1), member_id=member_id),
            AttendanceKey(date="2024-01-01", member_id=str(member_id)),
        }
        assert len(keys) == 1

    def test_unit_weights_per_mode(self):
        """Test breakfast weight under each mode."""
        assert UnitWeights.for_mode(LedgerMode.SHARED).breakfast == Decimal("0.5")
        assert UnitWeights.for_mode(LedgerMode.PERSONAL).breakfast == Decimal("1")
        assert UnitWeights.for_mode(LedgerMode.SHARED).lunch == Decimal("1")

    def test_meal_record_round_trip(self):
        """Test flattening a keyed entry and reading it back."""
        key = AttendanceKey(date=date(2024, 1, 2))
        entry = MealEntry(dinner=False)
        record = MealRecord.from_entry(key, entry)
        assert record.key == key
        assert record.entry == entry


class TestDerivedModels:
    """Tests for balances, proposals and snapshots."""

    @pytest.mark.parametrize(
        "balance, status",
        [
            (Decimal("12.5"), BalanceStatus.DUE),
            (Decimal("-3"), BalanceStatus.SURPLUS),
            (Decimal("0"), BalanceStatus.SETTLED),
        ],
    )
    def test_balance_status(self, balance, status):
        """Test due/surplus/settled from the balance sign."""
        member_balance = MemberBalance(
            member_id=uuid4(),
            member_name="Karim",
            meal_units=Decimal("10"),
            deposits=Decimal("0"),
            balance=balance,
        )
        assert member_balance.status == status

    def test_proposal_from_camel_case_json(self):
        """Test parsing the assistant's JSON shape."""
        proposal = TransactionProposal.model_validate({
            "actionType": "EXPENSE",
            "amount": 250,
            "date": "2024-03-01",
            "shopperName": "Karim",
            "items": "Fish",
            "summary": "Karim bought fish for 250",
        })
        assert proposal.action_type == ActionType.EXPENSE
        assert proposal.shopper_name == "Karim"
        assert proposal.member_id is None

    def test_proposal_rejects_unknown_action(self):
        """Test that the action type must be one of the known kinds."""
        with pytest.raises(ValueError):
            TransactionProposal.model_validate({"actionType": "REFUND"})

    def test_empty_snapshot(self):
        """Test the empty snapshot defaults."""
        snapshot = LedgerSnapshot()
        assert snapshot.is_empty
        assert snapshot.mode == LedgerMode.SHARED
