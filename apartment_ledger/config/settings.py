"""
Configuration Management for Apartment Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SplitPolicy(str, Enum):
    """
    How a period's costs are divided between owners.

    EQUAL divides by head count and ignores owner percentages.
    WEIGHTED divides proportionally to each owner's percentage.
    """
    EQUAL = "equal"
    WEIGHTED = "weighted"


class ExpenseFilter(str, Enum):
    """
    Which entries count toward a period's expense total for balances.

    ALL_ENTRIES sums every entry in the period, incomes included.
    EXPENSES_ONLY sums expense-type entries only.
    """
    ALL_ENTRIES = "all_entries"
    EXPENSES_ONLY = "expenses_only"


class CloudinarySettings(BaseSettings):
    """Cloudinary image hosting configuration (owner avatars)."""

    model_config = SettingsConfigDict(
        env_prefix="CLOUDINARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    cloud_name: str = Field(
        ...,
        description="Cloudinary cloud name"
    )
    api_key: str = Field(
        ...,
        description="Cloudinary API key"
    )
    api_secret: str = Field(
        ...,
        description="Cloudinary API secret"
    )
    folder: str = Field(
        default="apartment_ledger",
        description="Folder uploaded avatars are stored under"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    owners_sheet_name: str = Field(
        default="Owners",
        description="Name of the sheet for owners"
    )
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for expense and income entries"
    )
    rental_income_sheet_name: str = Field(
        default="RentalIncome",
        description="Name of the sheet for per-period rental income"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class LedgerSettings(BaseSettings):
    """Calculation policies for balances and projections."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    split_policy: SplitPolicy = Field(
        default=SplitPolicy.EQUAL,
        description="How period costs are divided between owners"
    )
    expense_filter: ExpenseFilter = Field(
        default=ExpenseFilter.ALL_ENTRIES,
        description="Which entries count toward the balance expense total"
    )
    default_owner_count: int = Field(
        default=3,
        ge=1,
        le=12,
        description="Owners created for a new ledger"
    )
    max_installments: int = Field(
        default=360,
        ge=1,
        le=1200,
        description="Largest installment plan a single entry may expand into"
    )
    projection_year_span: int = Field(
        default=10,
        ge=0,
        le=50,
        description="How many years past the current one the projection offers"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Ledger identity in the record store
    ledger_user_id: str = Field(
        default="default",
        min_length=1,
        description="Opaque key all records of this ledger are stored under"
    )
    currency_code: str = Field(
        default="BRL",
        min_length=3,
        max_length=3,
        description="ISO currency code used when displaying amounts"
    )

    # File upload limits
    max_upload_size_mb: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum avatar upload size in MB"
    )
    supported_image_formats: str = Field(
        default="jpg,jpeg,png,webp",
        description="Comma-separated list of supported image formats"
    )

    @property
    def supported_formats_list(self) -> list[str]:
        """Get supported formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_image_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def cloudinary(self) -> CloudinarySettings:
        return CloudinarySettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("cloudinary", "google_sheets", "ledger", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
