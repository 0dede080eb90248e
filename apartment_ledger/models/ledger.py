"""
Core Data Models for Apartment Ledger

These models define the records the ledger works with:
1. Owners who share the apartment costs
2. Entries (expenses and incomes), one per installment and period
3. Rental income, one record per period
4. Derived views (balances, summaries, projection rows)

DESIGN DECISION: Money is Decimal everywhere. Floats only appear at the UI
boundary where charts need them.

Drafts coming from free-form input are coerced rather than rejected: a blank
amount becomes zero, a blank installment count becomes one. Stored records
are validated strictly.
"""

import re
from datetime import date, datetime, timezone
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from apartment_ledger.models.period import Period


LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class EntryCategory(str, Enum):
    """What kind of cost or income an entry represents."""
    FINANCING_BANK = "financing_bank"
    FINANCING_BUILDER = "financing_builder"
    CONDOMINIUM = "condominium"
    OTHER = "other"


class Periodicity(str, Enum):
    """How often an entry recurs. Informational; installments drive placement."""
    MONTHLY = "monthly"
    YEARLY = "yearly"
    ONE_TIME = "one_time"


class EntryType(str, Enum):
    """Whether an entry is money going out or coming in."""
    EXPENSE = "expense"
    INCOME = "income"


# =============================================================================
# INPUT COERCION
# =============================================================================

def parse_amount(raw: Any) -> Decimal:
    """
    Parse a free-form amount, defaulting to zero.

    Accepts numbers and strings; a comma decimal separator is tolerated.
    """
    if raw is None or isinstance(raw, bool):
        return Decimal("0")
    if isinstance(raw, Decimal):
        return raw if raw.is_finite() else Decimal("0")
    text = str(raw).strip().replace(",", ".")
    if not text:
        return Decimal("0")
    try:
        value = Decimal(text)
    except InvalidOperation:
        return Decimal("0")
    return value if value.is_finite() else Decimal("0")


def parse_int(raw: Any) -> Optional[int]:
    """
    Parse a free-form integer from its leading digits.

    "12abc" -> 12, "3.7" -> 3, "1e3" -> 1. Returns None when the input does
    not start with a number.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    match = LEADING_INT.match(str(raw))
    if match is None:
        return None
    return int(match.group(1))


def coerce_due_day(raw: Any) -> Optional[int]:
    """A due day in 1..31, or None."""
    day = parse_int(raw)
    if day is None or not 1 <= day <= 31:
        return None
    return day


def coerce_installment_count(raw: Any) -> int:
    """An installment count of at least one."""
    count = parse_int(raw)
    if count is None or count < 1:
        return 1
    return count


def coerce_entry_updates(updates: dict[str, Any]) -> dict[str, Any]:
    """
    Apply the free-form input rules to an entry edit.

    Only the numeric and date fields a user types into are touched; other
    fields pass through for the model to validate.
    """
    coerced = dict(updates)
    if "value" in coerced:
        coerced["value"] = parse_amount(coerced["value"])
    if "due_day" in coerced:
        coerced["due_day"] = coerce_due_day(coerced["due_day"])
    if "total_installments" in coerced:
        coerced["total_installments"] = coerce_installment_count(coerced["total_installments"])
    if "start_date" in coerced:
        coerced["start_date"] = coerce_period(coerced["start_date"])
    return coerced


def coerce_period(value: Any) -> Any:
    """Accept "YYYY-MM" strings and dates wherever a Period is expected."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return Period.parse(value)
    if isinstance(value, (date, datetime)):
        return Period.from_date(value)
    return value


# =============================================================================
# OWNERS
# =============================================================================

class Owner(BaseModel):
    """
    One of the people sharing the apartment.

    The percentage is a weight shown to the user. It is not required to sum
    to 100 across owners.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique owner ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    percentage: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Informational share weight"
    )
    image_ref: Optional[str] = Field(
        default=None,
        description="URL of the owner's avatar image"
    )
    position: int = Field(
        default=0,
        ge=0,
        description="Display order"
    )


def default_owners(count: int = 3) -> list[Owner]:
    """
    The owners a new ledger starts with.

    Percentages split 100 evenly to two decimals, with the remainder
    going to the last owner (33.33 / 33.33 / 33.34 for three).
    """
    if count < 1:
        raise ValueError("At least one owner is required")
    share = (Decimal("100") / count).quantize(Decimal("0.01"), rounding=ROUND_DOWN)
    owners = []
    for index in range(count):
        percentage = share
        if index == count - 1:
            percentage = Decimal("100") - share * (count - 1)
        owners.append(Owner(
            name=f"Owner {index + 1}",
            percentage=percentage,
            position=index,
        ))
    return owners


# =============================================================================
# ENTRIES
# =============================================================================

class EntryDraft(BaseModel):
    """
    An expense or income as submitted by the user, before expansion.

    Numeric fields come from free-form inputs and are coerced, never
    rejected:
    - value: unparseable -> 0
    - total_installments: unparseable or < 1 -> 1
    - due_day: unparseable or outside 1..31 -> None
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        default="",
        max_length=200,
    )
    value: Decimal = Decimal("0")
    category: EntryCategory = EntryCategory.OTHER
    periodicity: Periodicity = Periodicity.MONTHLY
    type: EntryType = EntryType.EXPENSE
    due_day: Optional[int] = None
    start_date: Optional[Period] = None
    total_installments: int = 1

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> Decimal:
        return parse_amount(v)

    @field_validator("due_day", mode="before")
    @classmethod
    def validate_due_day(cls, v: Any) -> Optional[int]:
        return coerce_due_day(v)

    @field_validator("total_installments", mode="before")
    @classmethod
    def validate_installments(cls, v: Any) -> int:
        return coerce_installment_count(v)

    @field_validator("start_date", mode="before")
    @classmethod
    def coerce_start_date(cls, v: Any) -> Any:
        return coerce_period(v)


class Entry(BaseModel):
    """
    A single persisted expense or income line in one period.

    Installment plans are stored as N entries sharing a parent_id, one per
    period. Each is edited and deleted independently.

    `period` is the bucket the entry lives in. `start_date` is a separate
    optional date used only to hold an entry back in projections.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique entry ID"
    )
    period: Period = Field(
        ...,
        description="Period bucket this entry belongs to"
    )
    name: str = Field(
        default="",
        max_length=200,
    )
    value: Decimal = Field(
        default=Decimal("0"),
        description="Amount (expected non-negative, not enforced)"
    )
    category: EntryCategory = EntryCategory.OTHER
    periodicity: Periodicity = Periodicity.MONTHLY
    type: EntryType = EntryType.EXPENSE
    due_day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
    )
    start_date: Optional[Period] = None
    total_installments: int = Field(default=1, ge=1)
    current_installment: int = Field(default=1, ge=1)
    parent_id: Optional[UUID] = None
    created_at: datetime = Field(
        default_factory=utc_now,
    )

    @field_validator("period", "start_date", mode="before")
    @classmethod
    def coerce_periods(cls, v: Any) -> Any:
        return coerce_period(v)

    @model_validator(mode="after")
    def validate_installment(self) -> "Entry":
        if self.current_installment > self.total_installments:
            raise ValueError("Current installment cannot exceed total installments")
        return self

    @property
    def is_installment(self) -> bool:
        return self.total_installments > 1


# =============================================================================
# RENTAL INCOME
# =============================================================================

class RentalIncome(BaseModel):
    """
    The rental income record of one period.

    A contract window is described by contract_start_date plus
    contract_duration (months). Without a duration the income is indefinite.
    A duration without a start date is rejected here.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[UUID] = None
    name: str = Field(
        default="Rental income",
        max_length=200,
    )
    value: Decimal = Decimal("0")
    is_active: bool = False
    contract_duration: Optional[int] = Field(
        default=None,
        ge=1,
        description="Contract length in months; None means indefinite"
    )
    contract_start_date: Optional[Period] = None
    start_date: Optional[Period] = None

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> Decimal:
        return parse_amount(v)

    @field_validator("contract_start_date", "start_date", mode="before")
    @classmethod
    def coerce_periods(cls, v: Any) -> Any:
        return coerce_period(v)

    @model_validator(mode="after")
    def validate_contract(self) -> "RentalIncome":
        if self.contract_duration is not None and self.contract_start_date is None:
            raise ValueError("Contract start date is required when a contract duration is set")
        return self

    @property
    def effective_value(self) -> Decimal:
        """The amount that counts this period (zero while inactive)."""
        return self.value if self.is_active else Decimal("0")

    @property
    def contract_end(self) -> Optional[Period]:
        """First period no longer covered by the contract."""
        if self.contract_duration is None or self.contract_start_date is None:
            return None
        return self.contract_start_date.shift(self.contract_duration)


class PeriodBucket(BaseModel):
    """Everything recorded for one period: its entries and its rental income."""

    period: Period
    entries: list[Entry] = Field(default_factory=list)
    rental_income: RentalIncome = Field(default_factory=RentalIncome)


# =============================================================================
# DERIVED VIEWS (never persisted)
# =============================================================================

class OwnerBalance(BaseModel):
    """One owner's share of a period's costs and rental credit."""

    owner_id: UUID
    owner_name: str
    total_expenses: Decimal
    rental_credit: Decimal
    final_balance: Decimal
    percentage: Decimal


class PeriodSummary(BaseModel):
    """Headline figures for one period."""

    total_expenses: Decimal
    rental_income: Decimal
    net_balance: Decimal = Field(
        ...,
        description="Effective rental income minus total expenses"
    )


class ProjectionRow(BaseModel):
    """Projected totals for one calendar month."""

    month: str = Field(..., description="Short month label, e.g. 'Jan'")
    expenses: Decimal
    revenue: Decimal
    date: date

    @property
    def net(self) -> Decimal:
        return self.revenue - self.expenses


class ProjectionSummary(BaseModel):
    """Totals across a year of projection rows."""

    total_revenue: Decimal
    total_expenses: Decimal
    net: Decimal


# =============================================================================
# IMAGE UPLOADS
# =============================================================================

class ImageUpload(BaseModel):
    """An owner avatar upload before it is sent to the image host."""

    upload_id: UUID = Field(
        default_factory=uuid4,
        description="Unique upload identifier"
    )
    uploaded_at: datetime = Field(
        default_factory=utc_now
    )
    owner_id: UUID
    original_filename: str
    file_size_bytes: int = Field(ge=0)
    mime_type: str

    @field_validator('mime_type')
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Only allow image types."""
        allowed = {'image/jpeg', 'image/png', 'image/webp'}
        if v.lower() not in allowed:
            raise ValueError(f"Unsupported image type: {v}. Allowed: {allowed}")
        return v.lower()
