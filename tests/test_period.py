"""Tests for month bucketing."""

import pytest
from datetime import date

from apartment_ledger.models.period import Period, period_key_of


class TestPeriodKeys:
    """Tests for period keys and parsing."""

    def test_key_is_zero_padded(self):
        assert Period(year=2024, month=3).key == "2024-03"
        assert str(Period(year=2024, month=11)) == "2024-11"

    def test_parse(self):
        assert Period.parse("2024-03") == Period(year=2024, month=3)
        assert Period.parse("2024-3") == Period(year=2024, month=3)

    def test_parse_full_date(self):
        """Test that the day of an ISO date is dropped."""
        assert Period.parse("2024-03-31") == Period(year=2024, month=3)

    @pytest.mark.parametrize("key", ["", "2024", "2024-13", "2024-00", "abcd-ef"])
    def test_parse_rejects_invalid(self, key):
        with pytest.raises(ValueError):
            Period.parse(key)

    def test_from_date(self):
        assert Period.from_date(date(2024, 1, 31)).key == "2024-01"
        assert period_key_of(date(2023, 12, 5)) == "2023-12"

    def test_first_day_and_label(self):
        period = Period(year=2024, month=2)
        assert period.first_day == date(2024, 2, 1)
        assert period.label == "Feb"


class TestPeriodArithmetic:
    """Tests for month shifting and ordering."""

    def test_shift_forward_across_year(self):
        assert Period(year=2024, month=12).shift(1) == Period(year=2025, month=1)

    def test_shift_backward_across_year(self):
        assert Period(year=2024, month=1).shift(-1) == Period(year=2023, month=12)

    def test_shift_many(self):
        assert Period(year=2024, month=3).shift(13) == Period(year=2025, month=4)
        assert Period(year=2024, month=3).shift(-27) == Period(year=2021, month=12)

    def test_end_of_month_does_not_overflow(self):
        """Test that Jan 31 plus one month is February, not March."""
        assert Period.from_date(date(2024, 1, 31)).shift(1).key == "2024-02"

    def test_twelve_months_is_next_year(self):
        for month in range(1, 13):
            shifted = Period(year=2024, month=month).shift(12)
            assert (shifted.year, shifted.month) == (2025, month)

    def test_shift_round_trip(self):
        period = Period(year=2024, month=7)
        assert period.shift(5).shift(-5) == period

    def test_ordering(self):
        periods = [
            Period(year=2025, month=1),
            Period(year=2024, month=12),
            Period(year=2024, month=2),
        ]
        assert sorted(periods) == [
            Period(year=2024, month=2),
            Period(year=2024, month=12),
            Period(year=2025, month=1),
        ]
        assert Period(year=2024, month=2) <= Period(year=2024, month=2)
        assert Period(year=2024, month=3) > Period(year=2024, month=2)

    def test_hashable(self):
        """Test that equal periods are interchangeable as dict keys."""
        lookup = {Period(year=2024, month=3): "march"}
        assert lookup[Period.parse("2024-03")] == "march"

    def test_months_in_year(self):
        months = Period(year=2024, month=7).months_in_year()
        assert len(months) == 12
        assert months[0].key == "2024-01"
        assert months[-1].key == "2024-12"
