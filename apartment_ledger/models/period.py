"""
Month Bucketing

A Period is a calendar month as a plain (year, month) pair. Every entry,
rental income record and projection row is keyed by a Period.

DESIGN DECISION: Periods carry no day-of-month. Month arithmetic is done on
the pair alone, so adding months to "Jan 31" can never roll into March.
"""

from datetime import date
from functools import total_ordering

from pydantic import BaseModel, ConfigDict, Field


@total_ordering
class Period(BaseModel):
    """A calendar month, rendered as a canonical "YYYY-MM" key."""

    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)

    @classmethod
    def from_date(cls, value: date) -> "Period":
        return cls(year=value.year, month=value.month)

    @classmethod
    def parse(cls, key: str) -> "Period":
        """
        Parse a "YYYY-MM" key.

        A full ISO date ("YYYY-MM-DD") is accepted too; the day is dropped.
        """
        parts = key.strip().split("-")
        if len(parts) < 2:
            raise ValueError(f"Invalid period key: {key!r}")
        try:
            return cls(year=int(parts[0]), month=int(parts[1]))
        except ValueError as e:
            raise ValueError(f"Invalid period key: {key!r}") from e

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def ordinal(self) -> int:
        """Months since year 0, used for ordering and arithmetic."""
        return self.year * 12 + (self.month - 1)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def label(self) -> str:
        """Short month name, e.g. "Jan"."""
        return self.first_day.strftime("%b")

    def shift(self, months: int) -> "Period":
        """Return the period `months` months away (negative goes back)."""
        year, month_index = divmod(self.ordinal + months, 12)
        return Period(year=year, month=month_index + 1)

    def months_in_year(self) -> list["Period"]:
        """All twelve periods of this period's year, January first."""
        return [Period(year=self.year, month=m) for m in range(1, 13)]

    def __lt__(self, other: "Period") -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.ordinal < other.ordinal

    def __str__(self) -> str:
        return self.key


def period_key_of(value: date) -> str:
    """Format a date as its "YYYY-MM" period key."""
    return Period.from_date(value).key
