"""
Balance Calculation

Splits one period's costs and rental credit between the owners.

Two choices are configurable:

SPLIT POLICY
- EQUAL (default): every owner gets total / owner_count. Owner percentages
  are carried into the result for display but not used.
- WEIGHTED: every owner gets total * percentage / sum(percentages).

EXPENSE FILTER
- ALL_ENTRIES (default): the expense total is the sum of every entry in the
  period, income-type entries included.
- EXPENSES_ONLY: income-type entries are left out of the total.

Both defaults reproduce the ledger's historical figures.
"""

from decimal import Decimal
from typing import Iterable, Optional

from apartment_ledger.config.settings import ExpenseFilter, LedgerSettings, SplitPolicy
from apartment_ledger.models.ledger import (
    Entry,
    EntryType,
    Owner,
    OwnerBalance,
    PeriodSummary,
    RentalIncome,
)


class BalanceCalculator:
    """Derives per-owner balances for one period. Stateless apart from policy."""

    def __init__(
        self,
        split_policy: SplitPolicy = SplitPolicy.EQUAL,
        expense_filter: ExpenseFilter = ExpenseFilter.ALL_ENTRIES,
    ):
        self.split_policy = split_policy
        self.expense_filter = expense_filter

    @classmethod
    def from_settings(cls, settings: Optional[LedgerSettings] = None) -> "BalanceCalculator":
        settings = settings or LedgerSettings()
        return cls(
            split_policy=settings.split_policy,
            expense_filter=settings.expense_filter,
        )

    def total_expenses(self, entries: Iterable[Entry]) -> Decimal:
        """Sum of the entries that count as expenses under the current filter."""
        if self.expense_filter == ExpenseFilter.EXPENSES_ONLY:
            entries = (e for e in entries if e.type == EntryType.EXPENSE)
        return sum((e.value for e in entries), Decimal("0"))

    def summarize(
        self,
        entries: Iterable[Entry],
        rental_income: RentalIncome,
    ) -> PeriodSummary:
        """Headline totals of a period."""
        total = self.total_expenses(entries)
        rental = rental_income.effective_value
        return PeriodSummary(
            total_expenses=total,
            rental_income=rental,
            net_balance=rental - total,
        )

    def _weights(self, owners: list[Owner]) -> list[Decimal]:
        """Each owner's percentage as a fraction of all percentages."""
        total_percentage = sum((o.percentage for o in owners), Decimal("0"))
        if total_percentage == 0:
            raise ValueError("Weighted split needs at least one owner with a percentage")
        return [o.percentage / total_percentage for o in owners]

    def balances_for(
        self,
        entries: Iterable[Entry],
        rental_income: RentalIncome,
        owners: list[Owner],
    ) -> list[OwnerBalance]:
        """
        Split a period between owners.

        Args:
            entries: The period's entries
            rental_income: The period's rental income record
            owners: Owners to split between (must not be empty)

        Returns:
            One OwnerBalance per owner, in the order given

        Raises:
            ValueError: If there are no owners, or a weighted split has
                        nothing to weigh by
        """
        if not owners:
            raise ValueError("At least one owner is required to split a period")

        total = self.total_expenses(entries)
        rental = rental_income.effective_value
        net = total - rental

        if self.split_policy == SplitPolicy.EQUAL:
            # Divide first so equal shares are exactly identical
            count = len(owners)
            return [
                OwnerBalance(
                    owner_id=owner.id,
                    owner_name=owner.name,
                    total_expenses=total / count,
                    rental_credit=rental / count,
                    final_balance=net / count,
                    percentage=owner.percentage,
                )
                for owner in owners
            ]

        return [
            OwnerBalance(
                owner_id=owner.id,
                owner_name=owner.name,
                total_expenses=total * weight,
                rental_credit=rental * weight,
                final_balance=net * weight,
                percentage=owner.percentage,
            )
            for owner, weight in zip(owners, self._weights(owners))
        ]
