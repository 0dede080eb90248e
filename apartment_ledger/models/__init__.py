"""
Data Models Package

This package contains all Pydantic models used in the Apartment Ledger.
All data flowing through the ledger must conform to these schemas.
"""

from apartment_ledger.models.period import Period, period_key_of
from apartment_ledger.models.ledger import (
    Entry,
    EntryCategory,
    EntryDraft,
    EntryType,
    ImageUpload,
    Owner,
    OwnerBalance,
    PeriodBucket,
    PeriodSummary,
    Periodicity,
    ProjectionRow,
    ProjectionSummary,
    RentalIncome,
    default_owners,
    parse_amount,
    parse_int,
)
from apartment_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Periods
    "Period",
    "period_key_of",
    # Ledger models
    "Entry",
    "EntryCategory",
    "EntryDraft",
    "EntryType",
    "ImageUpload",
    "Owner",
    "OwnerBalance",
    "PeriodBucket",
    "PeriodSummary",
    "Periodicity",
    "ProjectionRow",
    "ProjectionSummary",
    "RentalIncome",
    "default_owners",
    "parse_amount",
    "parse_int",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
