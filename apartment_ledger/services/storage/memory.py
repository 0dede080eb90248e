"""
In-Memory Storage Implementation

Dictionary-backed record store with the same contract as the Google Sheets
backend. Used when no spreadsheet is configured and in tests.

Records are copied on the way in and out so callers never share mutable
state with the store.
"""

from typing import Optional
from uuid import UUID, uuid4

from apartment_ledger.models.audit import AuditEvent
from apartment_ledger.models.ledger import Entry, Owner, RentalIncome
from apartment_ledger.models.period import Period
from apartment_ledger.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    NotFoundError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Ledger record store held in process memory."""

    def __init__(self):
        self._owners: dict[str, list[Owner]] = {}
        self._entries: dict[str, list[Entry]] = {}
        self._rental_income: dict[str, dict[str, RentalIncome]] = {}

    async def list_owners(self, user_id: str) -> list[Owner]:
        owners = [o.model_copy() for o in self._owners.get(user_id, [])]
        owners.sort(key=lambda o: o.position)
        return owners

    async def insert_owners(self, user_id: str, owners: list[Owner]) -> bool:
        self._owners.setdefault(user_id, []).extend(o.model_copy() for o in owners)
        return True

    async def update_owner(self, user_id: str, owner: Owner) -> bool:
        owners = self._owners.get(user_id, [])
        for index, existing in enumerate(owners):
            if existing.id == owner.id:
                owners[index] = owner.model_copy()
                return True
        raise NotFoundError(f"Owner not found: {owner.id}")

    async def list_entries(self, user_id: str) -> list[Entry]:
        return [e.model_copy() for e in self._entries.get(user_id, [])]

    async def insert_entries(self, user_id: str, entries: list[Entry]) -> bool:
        self._entries.setdefault(user_id, []).extend(e.model_copy() for e in entries)
        return True

    async def update_entry(self, user_id: str, entry: Entry) -> bool:
        entries = self._entries.get(user_id, [])
        for index, existing in enumerate(entries):
            if existing.id == entry.id:
                entries[index] = entry.model_copy()
                return True
        raise NotFoundError(f"Entry not found: {entry.id}")

    async def delete_entry(self, user_id: str, entry_id: UUID) -> bool:
        entries = self._entries.get(user_id, [])
        for index, existing in enumerate(entries):
            if existing.id == entry_id:
                del entries[index]
                return True
        return False

    async def list_rental_income(self, user_id: str) -> dict[str, RentalIncome]:
        return {
            key: rental.model_copy()
            for key, rental in self._rental_income.get(user_id, {}).items()
        }

    async def upsert_rental_income(
        self,
        user_id: str,
        period: Period,
        rental_income: RentalIncome,
    ) -> RentalIncome:
        stored = rental_income
        if stored.id is None:
            stored = stored.model_copy(update={"id": uuid4()})
        self._rental_income.setdefault(user_id, {})[period.key] = stored.model_copy()
        return stored


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in process memory."""

    def __init__(self, max_events: Optional[int] = None):
        self._events: list[AuditEvent] = []
        self._max_events = max_events

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        if self._max_events is not None and len(self._events) > self._max_events:
            del self._events[0]
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
