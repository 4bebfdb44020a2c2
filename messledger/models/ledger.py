"""
Core Data Models for the Mess Ledger

These models define the schemas for every record the ledger holds.
They are designed to:
1. Reject invalid amounts and missing fields at creation time
2. Be immutable once created (records are replaced, never edited)
3. Serialize with the field names the persisted state has always used
   (memberId, shopperName, roomNo, joinedDate)

DESIGN DECISION: Amounts are Decimal, not float.
Cash in hand must equal deposits minus expenses exactly,
and float drift would break that after a few hundred records.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS
# =============================================================================

class LedgerMode(str, Enum):
    """
    How the ledger is shared.

    SHARED: several members eat together, attendance is tracked per member
            and breakfast counts as half a unit.
    PERSONAL: one person tracks their own meals, attendance is keyed by
              date only and breakfast counts as a full unit.
    """
    SHARED = "shared"
    PERSONAL = "personal"


class MealType(str, Enum):
    """The three meals of a day."""
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class Language(str, Enum):
    """User interface language preference."""
    ENGLISH = "en"
    BANGLA = "bn"


class BalanceStatus(str, Enum):
    """Sign of a member's balance."""
    DUE = "due"            # Member owes the fund
    SURPLUS = "surplus"    # Member has overpaid
    SETTLED = "settled"


class ActionType(str, Enum):
    """Kind of transaction proposed by the assistant."""
    DEPOSIT = "DEPOSIT"
    EXPENSE = "EXPENSE"
    UNKNOWN = "UNKNOWN"


# =============================================================================
# BASE
# =============================================================================

class LedgerRecord(BaseModel):
    """
    Base for persisted records.

    Records are frozen: the store replaces them with model_copy()
    instead of mutating fields.
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID, generated at creation"
    )

    def to_storage_dict(self) -> dict[str, Any]:
        """Plain JSON-ready dict using the persisted (camelCase) names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _amount_to_number(v: Decimal) -> Union[int, float]:
    """JSON number for a stored amount: whole amounts as int."""
    if v == v.to_integral_value():
        return int(v)
    return float(v)


# =============================================================================
# RECORDS
# =============================================================================

class Member(LedgerRecord):
    """A person sharing the mess."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    room_no: str = Field(
        default="",
        max_length=20,
        description="Room number"
    )
    joined_date: date = Field(
        default_factory=date.today,
        description="First day the member's meals are tracked"
    )


class Deposit(LedgerRecord):
    """Money added to the shared fund."""

    amount: Decimal = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="Amount deposited"
    )
    date: date
    member_id: Optional[UUID] = Field(
        default=None,
        description="Depositing member (absent in personal mode)"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )

    @field_validator("member_id", "notes", mode="before")
    @classmethod
    def blank_means_absent(cls, v: Any) -> Any:
        """Empty form fields arrive as "" and mean 'not given'."""
        return _blank_to_none(v)

    @field_serializer("amount", when_used="json")
    def amount_as_number(self, v: Decimal) -> Union[int, float]:
        return _amount_to_number(v)


class Expense(LedgerRecord):
    """
    Money spent from the fund.

    `items` doubles as the category label. It references the
    category set by value, so it can outlive the category itself.
    """

    amount: Decimal = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="Amount spent"
    )
    date: date
    items: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What was bought; used as the category label"
    )
    shopper_name: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Who did the shopping"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )

    @field_validator("shopper_name", "notes", mode="before")
    @classmethod
    def blank_means_absent(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_serializer("amount", when_used="json")
    def amount_as_number(self, v: Decimal) -> Union[int, float]:
        return _amount_to_number(v)


# =============================================================================
# MEAL ATTENDANCE
# =============================================================================

class MealEntry(BaseModel):
    """
    Attendance flags for one key.

    The all-true default is what an absent entry reads as.
    """
    model_config = ConfigDict(frozen=True)

    breakfast: bool = True
    lunch: bool = True
    dinner: bool = True

    def toggled(self, meal: MealType) -> "MealEntry":
        """Return a copy with exactly one flag flipped."""
        current = getattr(self, meal.value)
        return self.model_copy(update={meal.value: not current})


DEFAULT_MEAL_ENTRY = MealEntry()


class AttendanceKey(BaseModel):
    """
    Key of a meal entry.

    member_id is None in personal mode, where attendance is per date only.
    """
    model_config = ConfigDict(frozen=True)

    date: date
    member_id: Optional[UUID] = None


class UnitWeights(BaseModel):
    """
    Meal units contributed by each attended meal.

    The two modes deliberately weigh breakfast differently.
    """
    model_config = ConfigDict(frozen=True)

    breakfast: Decimal = Field(ge=0)
    lunch: Decimal = Field(default=Decimal("1"), ge=0)
    dinner: Decimal = Field(default=Decimal("1"), ge=0)

    @classmethod
    def for_mode(cls, mode: LedgerMode) -> "UnitWeights":
        if mode == LedgerMode.SHARED:
            return cls(breakfast=Decimal("0.5"))
        return cls(breakfast=Decimal("1"))


# =============================================================================
# DERIVED VALUES
# =============================================================================

class LedgerStats(BaseModel):
    """
    Global totals for one state of the ledger.

    Every member balance must be computed against the same LedgerStats,
    so all members pay the same meal rate.
    """
    model_config = ConfigDict(frozen=True)

    total_deposits: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    cash_in_hand: Decimal = Decimal("0")
    total_meal_units: Decimal = Decimal("0")
    meal_rate: Decimal = Decimal("0")


class MemberBalance(BaseModel):
    """One member's settlement position."""
    model_config = ConfigDict(frozen=True)

    member_id: UUID
    member_name: str
    meal_units: Decimal
    deposits: Decimal
    balance: Decimal

    @property
    def status(self) -> BalanceStatus:
        if self.balance > 0:
            return BalanceStatus.DUE
        if self.balance < 0:
            return BalanceStatus.SURPLUS
        return BalanceStatus.SETTLED


# =============================================================================
# ASSISTANT CONTRACT
# =============================================================================

class TransactionProposal(BaseModel):
    """
    A transaction parsed from free text by the assistant.

    CRITICAL: This is PROPOSED data. It is only written to the ledger
    after the user confirms it, and then only through the normal
    add operations, which apply the usual record checks.

    amount and date are kept loose on purpose: a bad value must be
    rejected by the record it would create, not silently here.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    action_type: ActionType
    amount: Any = None
    date: Any = None
    member_id: Optional[str] = None
    shopper_name: Optional[str] = None
    items: Optional[str] = None
    summary: str = ""


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in the fields of a new record."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'greater_than_equal')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
