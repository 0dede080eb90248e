"""Tests for balance calculation."""

import pytest
from decimal import Decimal

from apartment_ledger.config import ExpenseFilter, LedgerSettings, SplitPolicy
from apartment_ledger.ledger import BalanceCalculator
from apartment_ledger.models.ledger import EntryType, Owner, RentalIncome

from tests.conftest import make_entry


@pytest.fixture
def march_entries():
    return [
        make_entry("2024-03", "500", name="Condominium"),
        make_entry("2024-03", "400", name="Bank financing"),
    ]


class TestTotals:
    """Tests for period totals and summaries."""

    def test_total_expenses(self, march_entries):
        assert BalanceCalculator().total_expenses(march_entries) == Decimal("900")

    def test_total_of_nothing_is_zero(self):
        assert BalanceCalculator().total_expenses([]) == Decimal("0")

    def test_all_entries_counts_income(self):
        """Test that income entries add to the total under the default filter."""
        entries = [
            make_entry("2024-03", "500"),
            make_entry("2024-03", "100", type=EntryType.INCOME),
        ]
        assert BalanceCalculator().total_expenses(entries) == Decimal("600")

    def test_expenses_only_skips_income(self):
        entries = [
            make_entry("2024-03", "500"),
            make_entry("2024-03", "100", type=EntryType.INCOME),
        ]
        calculator = BalanceCalculator(expense_filter=ExpenseFilter.EXPENSES_ONLY)
        assert calculator.total_expenses(entries) == Decimal("500")

    def test_summary_net_is_rental_minus_expenses(self, march_entries):
        summary = BalanceCalculator().summarize(
            march_entries,
            RentalIncome(value="1500", is_active=True),
        )
        assert summary.total_expenses == Decimal("900")
        assert summary.rental_income == Decimal("1500")
        assert summary.net_balance == Decimal("600")

    def test_summary_ignores_inactive_rental(self, march_entries):
        summary = BalanceCalculator().summarize(
            march_entries,
            RentalIncome(value="1500", is_active=False),
        )
        assert summary.rental_income == Decimal("0")
        assert summary.net_balance == Decimal("-900")


class TestEqualSplit:
    """Tests for the default equal split."""

    def test_split_between_three(self, march_entries, owners):
        """Test that 900 between three owners is 300 each."""
        balances = BalanceCalculator().balances_for(march_entries, RentalIncome(), owners)

        assert [b.owner_name for b in balances] == ["Ana", "Bruno", "Carla"]
        for balance in balances:
            assert balance.total_expenses == Decimal("300")
            assert balance.rental_credit == Decimal("0")
            assert balance.final_balance == Decimal("300")

    def test_rental_credit(self, march_entries, owners):
        balances = BalanceCalculator().balances_for(
            march_entries,
            RentalIncome(value="300", is_active=True),
            owners,
        )
        for balance in balances:
            assert balance.rental_credit == Decimal("100")
            assert balance.final_balance == Decimal("200")

    def test_ignores_percentages(self, march_entries, owners):
        """Test that equal split carries percentages without using them."""
        balances = BalanceCalculator().balances_for(march_entries, RentalIncome(), owners)
        assert [b.percentage for b in balances] == [Decimal("50"), Decimal("30"), Decimal("20")]
        assert len({b.final_balance for b in balances}) == 1

    def test_uneven_division_gives_identical_shares(self, owners):
        entries = [make_entry("2024-03", "100")]
        balances = BalanceCalculator().balances_for(entries, RentalIncome(), owners)
        assert len({b.total_expenses for b in balances}) == 1

    @pytest.mark.parametrize("owner_count", [1, 2, 3, 7])
    def test_shares_add_up_to_net(self, owner_count):
        """Test that owners' final balances sum to the period net."""
        owners = [Owner(name=f"Owner {i}") for i in range(owner_count)]
        rental = RentalIncome(value="250", is_active=True)
        entries = [make_entry("2024-03", "100"), make_entry("2024-03", "333.33")]

        balances = BalanceCalculator().balances_for(entries, rental, owners)

        net = Decimal("433.33") - Decimal("250")
        assert abs(sum(b.final_balance for b in balances) - net) < Decimal("1e-20")
        assert len({b.final_balance for b in balances}) == 1

    def test_rental_above_expenses_is_negative(self, owners):
        balances = BalanceCalculator().balances_for(
            [make_entry("2024-03", "300")],
            RentalIncome(value="900", is_active=True),
            owners,
        )
        assert all(b.final_balance == Decimal("-200") for b in balances)

    def test_requires_owners(self, march_entries):
        with pytest.raises(ValueError, match="At least one owner"):
            BalanceCalculator().balances_for(march_entries, RentalIncome(), [])


class TestWeightedSplit:
    """Tests for the percentage-weighted split."""

    def test_split_by_percentage(self, owners):
        calculator = BalanceCalculator(split_policy=SplitPolicy.WEIGHTED)
        balances = calculator.balances_for(
            [make_entry("2024-03", "1000")],
            RentalIncome(value="500", is_active=True),
            owners,
        )
        assert [b.total_expenses for b in balances] == [Decimal("500"), Decimal("300"), Decimal("200")]
        assert [b.rental_credit for b in balances] == [Decimal("250"), Decimal("150"), Decimal("100")]
        assert [b.final_balance for b in balances] == [Decimal("250"), Decimal("150"), Decimal("100")]

    def test_percentages_need_not_sum_to_100(self):
        owners = [Owner(name="A", percentage=Decimal("1")), Owner(name="B", percentage=Decimal("3"))]
        calculator = BalanceCalculator(split_policy=SplitPolicy.WEIGHTED)
        balances = calculator.balances_for([make_entry("2024-03", "400")], RentalIncome(), owners)
        assert [b.total_expenses for b in balances] == [Decimal("100"), Decimal("300")]

    def test_all_zero_percentages(self):
        owners = [Owner(name="A"), Owner(name="B")]
        calculator = BalanceCalculator(split_policy=SplitPolicy.WEIGHTED)
        with pytest.raises(ValueError, match="Weighted split"):
            calculator.balances_for([make_entry("2024-03", "400")], RentalIncome(), owners)


class TestFromSettings:
    """Tests for building a calculator from configuration."""

    def test_defaults(self):
        calculator = BalanceCalculator.from_settings(LedgerSettings())
        assert calculator.split_policy == SplitPolicy.EQUAL
        assert calculator.expense_filter == ExpenseFilter.ALL_ENTRIES

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("LEDGER_SPLIT_POLICY", "weighted")
        monkeypatch.setenv("LEDGER_EXPENSE_FILTER", "expenses_only")

        calculator = BalanceCalculator.from_settings()
        assert calculator.split_policy == SplitPolicy.WEIGHTED
        assert calculator.expense_filter == ExpenseFilter.EXPENSES_ONLY

    def test_installment_cap(self, monkeypatch):
        assert LedgerSettings().max_installments == 360
        monkeypatch.setenv("LEDGER_MAX_INSTALLMENTS", "24")
        assert LedgerSettings().max_installments == 24
