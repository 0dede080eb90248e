"""Tests for the write-through entry store."""

import pytest
from decimal import Decimal
from uuid import uuid4

from apartment_ledger.ledger import LedgerStore, expand
from apartment_ledger.models.ledger import EntryDraft, RentalIncome
from apartment_ledger.models.period import Period
from apartment_ledger.services.storage import NotFoundError, StorageError

from tests.conftest import USER_ID, make_entry


MARCH = Period(year=2024, month=3)
APRIL = Period(year=2024, month=4)


@pytest.fixture
def store(storage):
    return LedgerStore(storage, USER_ID)


class TestLoad:
    """Tests for rebuilding the cache from the record store."""

    @pytest.mark.asyncio
    async def test_load_groups_by_period(self, storage, store):
        await storage.insert_entries(USER_ID, [
            make_entry("2024-03", "100"),
            make_entry("2024-03", "200"),
            make_entry("2024-04", "300"),
        ])
        await storage.upsert_rental_income(USER_ID, MARCH, RentalIncome(value="1500", is_active=True))

        await store.load()

        assert len(store.bucket(MARCH).entries) == 2
        assert len(store.bucket(APRIL).entries) == 1
        assert store.bucket(MARCH).rental_income.value == Decimal("1500")
        assert store.entry_count() == 3

    @pytest.mark.asyncio
    async def test_load_ignores_other_users(self, storage, store):
        await storage.insert_entries("someone-else", [make_entry("2024-03", "100")])
        await store.load()
        assert store.entry_count() == 0

    @pytest.mark.asyncio
    async def test_rental_only_period(self, storage, store):
        await storage.upsert_rental_income(USER_ID, APRIL, RentalIncome(value="900", is_active=True))
        await store.load()
        assert store.bucket(APRIL).entries == []
        assert store.bucket(APRIL).rental_income.value == Decimal("900")


class TestReads:
    """Tests for reading buckets."""

    def test_missing_bucket_is_empty_default(self, store):
        bucket = store.bucket(MARCH)
        assert bucket.period == MARCH
        assert bucket.entries == []
        assert bucket.rental_income.is_active is False

    def test_reads_do_not_create_buckets(self, store):
        store.bucket(MARCH)
        assert store.snapshot() == {}


class TestWrites:
    """Tests for write-through updates."""

    @pytest.mark.asyncio
    async def test_add_entries_places_each_installment(self, storage, store):
        entries = expand(EntryDraft(value="1200", total_installments=3), MARCH)
        await store.add_entries(entries)

        assert [e.current_installment for e in store.bucket(MARCH).entries] == [1]
        assert [e.current_installment for e in store.bucket(APRIL).entries] == [2]
        assert [e.current_installment for e in store.bucket(MARCH.shift(2)).entries] == [3]
        assert len(await storage.list_entries(USER_ID)) == 3

    @pytest.mark.asyncio
    async def test_add_nothing(self, store):
        assert await store.add_entries([]) == []

    @pytest.mark.asyncio
    async def test_failed_add_leaves_cache_unchanged(self, storage, store):
        """Test that a rejected batch adds none of its entries."""
        storage.failing = True
        entries = expand(EntryDraft(value="1200", total_installments=3), MARCH)

        with pytest.raises(StorageError):
            await store.add_entries(entries)

        assert store.snapshot() == {}
        assert store.entry_count() == 0

    @pytest.mark.asyncio
    async def test_update_entry_merges_fields(self, storage, store):
        entry = make_entry("2024-03", "100", name="Condo")
        await store.add_entries([entry])

        updated = await store.update_entry(MARCH, entry.id, {"value": Decimal("150"), "name": "Condo fee"})

        assert updated.id == entry.id
        assert updated.value == Decimal("150")
        assert updated.name == "Condo fee"
        assert store.find_entry(MARCH, entry.id).value == Decimal("150")
        assert (await storage.list_entries(USER_ID))[0].value == Decimal("150")

    @pytest.mark.asyncio
    async def test_update_coerces_free_form_input(self, storage, store):
        """Test that blank or garbled edits fall back like new entries do."""
        entry = make_entry("2024-03", "100", due_day=10)
        await store.add_entries([entry])

        updated = await store.update_entry(MARCH, entry.id, {
            "value": "",
            "due_day": "abc",
            "total_installments": "garbage",
        })

        assert updated.value == Decimal("0")
        assert updated.due_day is None
        assert updated.total_installments == 1
        assert (await storage.list_entries(USER_ID))[0].value == Decimal("0")

    @pytest.mark.asyncio
    async def test_update_parses_typed_text(self, store):
        entry = make_entry("2024-03", "100")
        await store.add_entries([entry])

        updated = await store.update_entry(MARCH, entry.id, {
            "value": "1250,5",
            "due_day": "15",
            "start_date": "2024-06",
        })

        assert updated.value == Decimal("1250.5")
        assert updated.due_day == 15
        assert updated.start_date == Period(year=2024, month=6)

    @pytest.mark.asyncio
    async def test_update_cannot_move_entry(self, store):
        entry = make_entry("2024-03", "100")
        await store.add_entries([entry])

        updated = await store.update_entry(MARCH, entry.id, {"period": APRIL, "id": uuid4()})

        assert updated.id == entry.id
        assert updated.period == MARCH

    @pytest.mark.asyncio
    async def test_update_only_touches_one_installment(self, store):
        entries = expand(EntryDraft(value="1200", total_installments=3), MARCH)
        await store.add_entries(entries)

        await store.update_entry(MARCH, entries[0].id, {"value": Decimal("1000")})

        assert store.bucket(MARCH).entries[0].value == Decimal("1000")
        assert store.bucket(APRIL).entries[0].value == Decimal("1200")

    @pytest.mark.asyncio
    async def test_update_missing_entry(self, store):
        with pytest.raises(NotFoundError):
            await store.update_entry(MARCH, uuid4(), {"value": Decimal("1")})

    @pytest.mark.asyncio
    async def test_update_in_wrong_period(self, store):
        entry = make_entry("2024-03", "100")
        await store.add_entries([entry])
        with pytest.raises(NotFoundError):
            await store.update_entry(APRIL, entry.id, {"value": Decimal("1")})

    @pytest.mark.asyncio
    async def test_failed_update_leaves_cache_unchanged(self, storage, store):
        entry = make_entry("2024-03", "100")
        await store.add_entries([entry])
        storage.failing = True

        with pytest.raises(StorageError):
            await store.update_entry(MARCH, entry.id, {"value": Decimal("999")})

        assert store.find_entry(MARCH, entry.id).value == Decimal("100")

    @pytest.mark.asyncio
    async def test_delete_keeps_siblings(self, storage, store):
        """Test that deleting one installment leaves the others."""
        entries = expand(EntryDraft(value="1200", total_installments=3), MARCH)
        await store.add_entries(entries)

        deleted = await store.delete_entry(APRIL, entries[1].id)

        assert deleted.id == entries[1].id
        assert store.bucket(APRIL).entries == []
        assert len(store.bucket(MARCH).entries) == 1
        assert len(await storage.list_entries(USER_ID)) == 2

    @pytest.mark.asyncio
    async def test_failed_delete_leaves_cache_unchanged(self, storage, store):
        entry = make_entry("2024-03", "100")
        await store.add_entries([entry])
        storage.failing = True

        with pytest.raises(StorageError):
            await store.delete_entry(MARCH, entry.id)

        assert store.find_entry(MARCH, entry.id) is not None

    @pytest.mark.asyncio
    async def test_set_rental_income(self, storage, store):
        stored = await store.set_rental_income(MARCH, RentalIncome(value="1500", is_active=True))

        assert stored.id is not None
        assert store.bucket(MARCH).rental_income == stored
        assert (await storage.list_rental_income(USER_ID))["2024-03"].value == Decimal("1500")

    @pytest.mark.asyncio
    async def test_rental_income_replaced_wholesale(self, store):
        first = await store.set_rental_income(MARCH, RentalIncome(value="1500", is_active=True))
        await store.set_rental_income(
            MARCH,
            RentalIncome(id=first.id, value="1600", is_active=True, contract_duration=12, contract_start_date="2024-03"),
        )

        rental = store.bucket(MARCH).rental_income
        assert rental.value == Decimal("1600")
        assert rental.contract_duration == 12

    @pytest.mark.asyncio
    async def test_failed_rental_income_leaves_cache_unchanged(self, storage, store):
        storage.failing = True
        with pytest.raises(StorageError):
            await store.set_rental_income(MARCH, RentalIncome(value="1500", is_active=True))
        assert store.snapshot() == {}
