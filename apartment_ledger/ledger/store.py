"""
Entry Store

In-memory mirror of one ledger's records, organised as one PeriodBucket per
period key.

CACHE CONTRACT:
- The cache is write-through. Every write goes to the record store first;
  the touched bucket(s) are refreshed only after the store acknowledges it.
- A failed write raises StorageError and leaves the cache unchanged.
- Reading a period that has no bucket yields an empty default bucket. Reads
  never create buckets; the first successful write to a period does.
- load() discards the cache and rebuilds it from the record store.
"""

from typing import Any, Optional
from uuid import UUID

import structlog

from apartment_ledger.models.ledger import (
    Entry,
    PeriodBucket,
    RentalIncome,
    coerce_entry_updates,
)
from apartment_ledger.models.period import Period
from apartment_ledger.services.storage.interface import (
    LedgerStorageInterface,
    NotFoundError,
)


logger = structlog.get_logger(__name__)


class LedgerStore:
    """Write-through cache of entries and rental income, keyed by period."""

    def __init__(self, storage: LedgerStorageInterface, user_id: str):
        self._storage = storage
        self._user_id = user_id
        self._buckets: dict[str, PeriodBucket] = {}

    async def load(self) -> None:
        """Replace the cache with the record store's current contents."""
        entries = await self._storage.list_entries(self._user_id)
        rental_records = await self._storage.list_rental_income(self._user_id)

        buckets: dict[str, PeriodBucket] = {}
        for key, rental in rental_records.items():
            buckets[key] = PeriodBucket(period=Period.parse(key), rental_income=rental)
        for entry in entries:
            bucket = buckets.setdefault(entry.period.key, PeriodBucket(period=entry.period))
            bucket.entries.append(entry)

        self._buckets = buckets
        logger.debug(
            "ledger_store_loaded",
            user_id=self._user_id,
            periods=len(buckets),
            entries=len(entries),
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def bucket(self, period: Period) -> PeriodBucket:
        """The bucket of a period, or an empty default if it has none."""
        existing = self._buckets.get(period.key)
        if existing is not None:
            return existing
        return PeriodBucket(period=period)

    def snapshot(self) -> dict[str, PeriodBucket]:
        """All buckets by period key. The mapping is a copy; buckets are shared."""
        return dict(self._buckets)

    def entry_count(self) -> int:
        return sum(len(b.entries) for b in self._buckets.values())

    def find_entry(self, period: Period, entry_id: UUID) -> Optional[Entry]:
        for entry in self.bucket(period).entries:
            if entry.id == entry_id:
                return entry
        return None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _replace_bucket(self, bucket: PeriodBucket) -> None:
        self._buckets[bucket.period.key] = bucket

    async def add_entries(self, entries: list[Entry]) -> list[Entry]:
        """
        Persist a batch of entries, then place each in its period bucket.

        The batch goes to the record store in one call; if it fails none of
        the entries appear in the cache.
        """
        if not entries:
            return []

        await self._storage.insert_entries(self._user_id, entries)

        for entry in entries:
            current = self.bucket(entry.period)
            self._replace_bucket(current.model_copy(
                update={"entries": [*current.entries, entry]}
            ))
        return entries

    async def update_entry(
        self,
        period: Period,
        entry_id: UUID,
        updates: dict[str, Any],
    ) -> Entry:
        """
        Merge field updates into an entry of `period` and persist it.

        Typed fields (value, due_day, total_installments, start_date) get
        the same coercion as new entries.

        Raises:
            NotFoundError: If the period has no such entry
            ValidationError: If the merged entry is invalid
        """
        existing = self.find_entry(period, entry_id)
        if existing is None:
            raise NotFoundError(f"Entry {entry_id} not found in {period.key}")

        # id and period identify the record; they are not editable here
        editable = coerce_entry_updates(
            {k: v for k, v in updates.items() if k not in ("id", "period")}
        )
        updated = Entry.model_validate({**existing.model_dump(), **editable})

        await self._storage.update_entry(self._user_id, updated)

        current = self.bucket(period)
        self._replace_bucket(current.model_copy(update={
            "entries": [updated if e.id == entry_id else e for e in current.entries]
        }))
        return updated

    async def delete_entry(self, period: Period, entry_id: UUID) -> Entry:
        """
        Delete one entry from `period`. Sibling installments are kept.

        Raises:
            NotFoundError: If the period has no such entry
        """
        existing = self.find_entry(period, entry_id)
        if existing is None:
            raise NotFoundError(f"Entry {entry_id} not found in {period.key}")

        await self._storage.delete_entry(self._user_id, entry_id)

        current = self.bucket(period)
        self._replace_bucket(current.model_copy(update={
            "entries": [e for e in current.entries if e.id != entry_id]
        }))
        return existing

    async def set_rental_income(self, period: Period, rental_income: RentalIncome) -> RentalIncome:
        """Upsert the rental income of `period`, replacing the cached record."""
        stored = await self._storage.upsert_rental_income(self._user_id, period, rental_income)

        current = self.bucket(period)
        self._replace_bucket(current.model_copy(update={"rental_income": stored}))
        return stored
