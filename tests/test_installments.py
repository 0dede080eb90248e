"""Tests for installment expansion."""

import pytest
from decimal import Decimal
from itertools import count
from uuid import UUID

from apartment_ledger.ledger import expand, siblings_of
from apartment_ledger.models.ledger import EntryCategory, EntryDraft, EntryType
from apartment_ledger.models.period import Period


class TestExpand:
    """Tests for expanding one submission into installment entries."""

    def test_three_installments(self):
        """Test that each installment lands one month after the previous."""
        draft = EntryDraft(
            name="Builder installment",
            value="1200",
            category=EntryCategory.FINANCING_BUILDER,
            total_installments=3,
        )
        entries = expand(draft, Period(year=2024, month=3))

        assert [e.period.key for e in entries] == ["2024-03", "2024-04", "2024-05"]
        assert [e.current_installment for e in entries] == [1, 2, 3]
        assert all(e.total_installments == 3 for e in entries)
        assert all(e.value == Decimal("1200") for e in entries)
        assert all(e.category == EntryCategory.FINANCING_BUILDER for e in entries)

    def test_installments_share_parent(self):
        draft = EntryDraft(value="100", total_installments=3)
        entries = expand(draft, Period(year=2024, month=3))

        parent_ids = {e.parent_id for e in entries}
        assert len(parent_ids) == 1
        assert None not in parent_ids
        assert len({e.id for e in entries}) == 3
        assert entries[0].parent_id not in {e.id for e in entries}

    def test_single_entry_has_no_parent(self):
        """Test that a one-off entry gets no parent_id."""
        entries = expand(EntryDraft(name="Paint", value="80"), Period(year=2024, month=3))

        assert len(entries) == 1
        assert entries[0].parent_id is None
        assert entries[0].current_installment == 1
        assert entries[0].period.key == "2024-03"

    def test_crosses_year_boundary(self):
        draft = EntryDraft(value="50", total_installments=3)
        entries = expand(draft, Period(year=2024, month=11))
        assert [e.period.key for e in entries] == ["2024-11", "2024-12", "2025-01"]

    def test_copies_draft_fields(self):
        draft = EntryDraft(
            name="Side income",
            value="300",
            type=EntryType.INCOME,
            due_day="10",
            start_date="2024-06",
            total_installments=2,
        )
        entries = expand(draft, Period(year=2024, month=3))
        for entry in entries:
            assert entry.name == "Side income"
            assert entry.type == EntryType.INCOME
            assert entry.due_day == 10
            assert entry.start_date == Period(year=2024, month=6)

    def test_id_factory(self):
        """Test that IDs come from the given factory, parent first."""
        counter = count(1)
        entries = expand(
            EntryDraft(value="10", total_installments=2),
            Period(year=2024, month=1),
            id_factory=lambda: UUID(int=next(counter)),
        )
        assert entries[0].parent_id == UUID(int=1)
        assert [e.id for e in entries] == [UUID(int=2), UUID(int=3)]

    @pytest.mark.parametrize("raw", ["", "0", "-2", "abc"])
    def test_bad_installment_count_means_one(self, raw):
        entries = expand(EntryDraft(value="10", total_installments=raw), Period(year=2024, month=1))
        assert len(entries) == 1


class TestSiblings:
    """Tests for finding the installments of one plan."""

    def test_siblings_of(self):
        plan = expand(EntryDraft(value="10", total_installments=3), Period(year=2024, month=1))
        other = expand(EntryDraft(value="99"), Period(year=2024, month=2))
        everything = [plan[2], other[0], plan[0], plan[1]]

        assert siblings_of(plan[1], everything) == plan

    def test_single_entry_is_its_own_plan(self):
        entry = expand(EntryDraft(value="10"), Period(year=2024, month=1))[0]
        assert siblings_of(entry, [entry]) == [entry]
