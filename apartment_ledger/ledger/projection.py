"""
Yearly Projection

Walks the twelve periods of a year and totals what is expected to go out
(expense entries) and come in (income entries plus rental income).

INCLUSION RULES, per period P:
- An entry with a start_date counts only when P >= start_date.
- Rental income counts only when active with a positive value, and then:
  - with a contract (start + duration): start <= P < start + duration months
  - with no duration: always (indefinite contract)
  - with a duration but no start: never
"""

from decimal import Decimal
from typing import Mapping

from apartment_ledger.models.ledger import (
    Entry,
    EntryType,
    PeriodBucket,
    ProjectionRow,
    ProjectionSummary,
    RentalIncome,
)
from apartment_ledger.models.period import Period


def entry_applies(entry: Entry, period: Period) -> bool:
    if entry.start_date is None:
        return True
    return period >= entry.start_date


def rental_applies(rental: RentalIncome, period: Period) -> bool:
    if not rental.is_active or rental.value <= 0:
        return False
    if rental.contract_duration is None:
        return True
    if rental.contract_start_date is None:
        return False
    return rental.contract_start_date <= period < rental.contract_end


def project_period(bucket: PeriodBucket) -> ProjectionRow:
    """Projected totals for one bucket."""
    period = bucket.period
    expenses = Decimal("0")
    revenue = Decimal("0")

    for entry in bucket.entries:
        if not entry_applies(entry, period):
            continue
        if entry.type == EntryType.EXPENSE:
            expenses += entry.value
        elif entry.type == EntryType.INCOME:
            revenue += entry.value

    if rental_applies(bucket.rental_income, period):
        revenue += bucket.rental_income.value

    return ProjectionRow(
        month=period.label,
        expenses=expenses,
        revenue=revenue,
        date=period.first_day,
    )


def project_for(year: int, buckets: Mapping[str, PeriodBucket]) -> list[ProjectionRow]:
    """
    Project a calendar year, January to December.

    Args:
        year: Year to project
        buckets: Ledger snapshot by period key; missing periods count as empty

    Returns:
        Exactly twelve rows
    """
    rows = []
    for period in Period(year=year, month=1).months_in_year():
        bucket = buckets.get(period.key) or PeriodBucket(period=period)
        rows.append(project_period(bucket))
    return rows


def summarize_projection(rows: list[ProjectionRow]) -> ProjectionSummary:
    total_revenue = sum((r.revenue for r in rows), Decimal("0"))
    total_expenses = sum((r.expenses for r in rows), Decimal("0"))
    return ProjectionSummary(
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        net=total_revenue - total_expenses,
    )
