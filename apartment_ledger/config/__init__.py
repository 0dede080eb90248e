"""Configuration package."""

from apartment_ledger.config.settings import (
    AppSettings,
    CloudinarySettings,
    ExpenseFilter,
    GoogleSheetsSettings,
    LedgerSettings,
    Settings,
    SplitPolicy,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "CloudinarySettings",
    "ExpenseFilter",
    "GoogleSheetsSettings",
    "LedgerSettings",
    "Settings",
    "SplitPolicy",
    "get_settings",
    "validate_all_settings",
]
