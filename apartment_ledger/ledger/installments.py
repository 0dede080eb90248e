"""
Installment Expansion

One user submission becomes one entry per installment. Installment i
(0-based) lands in the period i months after the anchor period, carries the
full undivided value and shares a parent_id with its siblings.
"""

from typing import Callable, Optional
from uuid import UUID, uuid4

from apartment_ledger.models.ledger import Entry, EntryDraft
from apartment_ledger.models.period import Period


def expand(
    draft: EntryDraft,
    anchor: Period,
    id_factory: Callable[[], UUID] = uuid4,
) -> list[Entry]:
    """
    Expand a draft into its installment entries.

    Args:
        draft: The submitted expense or income
        anchor: Period the first installment belongs to (usually the
                period being viewed when the draft was submitted)
        id_factory: Source of entry and parent IDs

    Returns:
        total_installments entries, in period order. A parent_id is only
        assigned when there is more than one installment.
    """
    total = max(draft.total_installments, 1)
    parent_id: Optional[UUID] = id_factory() if total > 1 else None

    return [
        Entry(
            id=id_factory(),
            period=anchor.shift(i),
            name=draft.name,
            value=draft.value,
            category=draft.category,
            periodicity=draft.periodicity,
            type=draft.type,
            due_day=draft.due_day,
            start_date=draft.start_date,
            total_installments=total,
            current_installment=i + 1,
            parent_id=parent_id,
        )
        for i in range(total)
    ]


def siblings_of(entry: Entry, entries: list[Entry]) -> list[Entry]:
    """All installments of the same plan as `entry`, ordered by installment."""
    if entry.parent_id is None:
        return [entry]
    plan = [e for e in entries if e.parent_id == entry.parent_id]
    return sorted(plan, key=lambda e: e.current_installment)
