"""Shared fixtures for the Mess Ledger tests."""

from datetime import date

import pytest

from messledger.ledger import LedgerStore
from messledger.models import LedgerMode


@pytest.fixture
def store():
    """An empty shared (multi-member) ledger."""
    return LedgerStore(mode=LedgerMode.SHARED)


@pytest.fixture
def personal_store():
    """An empty personal (single-user) ledger."""
    return LedgerStore(mode=LedgerMode.PERSONAL)


@pytest.fixture
def january_store(store):
    """
    One member eating lunch and dinner (no breakfast) every day of
    January 2024, with one deposit and one expense.
    """
    member = store.add_member("Rahim", room_no="101", joined_date=date(2024, 1, 1))
    for day in range(1, 32):
        store.toggle_meal(date(2024, 1, day), "breakfast", member_id=member.id)
    store.add_deposit(amount="500", date=date(2024, 1, 1), member_id=member.id)
    store.add_expense(amount="300", date=date(2024, 1, 5), items="Groceries")
    return store
