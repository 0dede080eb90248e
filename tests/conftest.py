"""
Shared fixtures for Apartment Ledger tests.

No test talks to Google Sheets or Cloudinary; the record store is the
in-memory backend, or a subclass of it that fails on demand.
"""

from datetime import date
from decimal import Decimal

import pytest

from apartment_ledger.audit import AuditLogger
from apartment_ledger.models.ledger import Entry, Owner
from apartment_ledger.models.period import Period
from apartment_ledger.orchestrator import LedgerSession
from apartment_ledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    StorageError,
)


USER_ID = "test-ledger"
TODAY = date(2024, 3, 15)


class FailingLedgerStorage(InMemoryLedgerStorage):
    """In-memory store whose writes raise StorageError while `failing` is set."""

    def __init__(self):
        super().__init__()
        self.failing = False

    def _check(self, operation: str):
        if self.failing:
            raise StorageError(f"{operation} unavailable")

    async def insert_owners(self, user_id, owners):
        self._check("insert_owners")
        return await super().insert_owners(user_id, owners)

    async def update_owner(self, user_id, owner):
        self._check("update_owner")
        return await super().update_owner(user_id, owner)

    async def insert_entries(self, user_id, entries):
        self._check("insert_entries")
        return await super().insert_entries(user_id, entries)

    async def update_entry(self, user_id, entry):
        self._check("update_entry")
        return await super().update_entry(user_id, entry)

    async def delete_entry(self, user_id, entry_id):
        self._check("delete_entry")
        return await super().delete_entry(user_id, entry_id)

    async def upsert_rental_income(self, user_id, period, rental_income):
        self._check("upsert_rental_income")
        return await super().upsert_rental_income(user_id, period, rental_income)


def make_entry(period: str, value: str, **fields) -> Entry:
    return Entry(period=Period.parse(period), value=Decimal(value), **fields)


@pytest.fixture
def storage():
    return FailingLedgerStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage, user_id=USER_ID)


@pytest.fixture
def owners():
    return [
        Owner(name="Ana", percentage=Decimal("50"), position=0),
        Owner(name="Bruno", percentage=Decimal("30"), position=1),
        Owner(name="Carla", percentage=Decimal("20"), position=2),
    ]


@pytest.fixture
def session(storage, audit_logger):
    return LedgerSession(
        storage=storage,
        user_id=USER_ID,
        audit_logger=audit_logger,
        today=TODAY,
    )
