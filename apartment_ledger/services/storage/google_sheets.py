"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the record store because:
1. The owners can view and fix their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (one apartment is fine)
- No transactions (installment batches go out in one append_rows call)
- Limited query capabilities (we filter in Python)

Record operations are never retried: a failed call surfaces to the user
and the in-memory ledger stays as it was. Only establishing the connection
is retried.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from apartment_ledger.config import get_settings
from apartment_ledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from apartment_ledger.models.ledger import (
    Entry,
    EntryCategory,
    EntryType,
    Owner,
    Periodicity,
    RentalIncome,
)
from apartment_ledger.models.period import Period
from apartment_ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)


# Column mappings for Owners sheet
OWNER_COLUMNS = [
    "id",
    "user_id",
    "name",
    "percentage",
    "image_ref",
    "position",
]

# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "period_key",
    "name",
    "value",
    "category",
    "periodicity",
    "type",
    "due_day",
    "start_date",
    "total_installments",
    "current_installment",
    "parent_id",
    "created_at",
]

# Column mappings for RentalIncome sheet
RENTAL_INCOME_COLUMNS = [
    "id",
    "user_id",
    "period_key",
    "name",
    "value",
    "is_active",
    "contract_duration",
    "contract_start_date",
    "start_date",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "period_key",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows and blanks."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def _parse_timestamp(text: str) -> datetime:
    """Parse an ISO timestamp; rows written without an offset are UTC."""
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet creation.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_owners_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_worksheet(
            self._settings.owners_sheet_name, OWNER_COLUMNS, rows=100
        )

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_worksheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS
        )

    def get_rental_income_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_worksheet(
            self._settings.rental_income_sheet_name, RENTAL_INCOME_COLUMNS
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_worksheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of the ledger record store.

    Each collection is one worksheet with one record per row. The second
    column of every sheet is the user_id the record belongs to.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    # -------------------------------------------------------------------------
    # Row conversion
    # -------------------------------------------------------------------------

    def _owner_to_row(self, user_id: str, owner: Owner) -> list:
        return [
            str(owner.id),
            user_id,
            owner.name,
            str(owner.percentage),
            owner.image_ref or "",
            str(owner.position),
        ]

    def _row_to_owner(self, row: list) -> Owner:
        return Owner(
            id=UUID(_cell(row, 0)),
            name=_cell(row, 2),
            percentage=Decimal(_cell(row, 3, "0")),
            image_ref=_cell(row, 4) or None,
            position=int(_cell(row, 5, "0")),
        )

    def _entry_to_row(self, user_id: str, entry: Entry) -> list:
        return [
            str(entry.id),
            user_id,
            entry.period.key,
            entry.name,
            str(entry.value),
            entry.category.value,
            entry.periodicity.value,
            entry.type.value,
            str(entry.due_day) if entry.due_day else "",
            entry.start_date.key if entry.start_date else "",
            str(entry.total_installments),
            str(entry.current_installment),
            str(entry.parent_id) if entry.parent_id else "",
            entry.created_at.isoformat(),
        ]

    def _row_to_entry(self, row: list) -> Entry:
        created_at = _cell(row, 13)
        return Entry(
            id=UUID(_cell(row, 0)),
            period=Period.parse(_cell(row, 2)),
            name=_cell(row, 3),
            value=Decimal(_cell(row, 4, "0")),
            category=EntryCategory(_cell(row, 5, EntryCategory.OTHER.value)),
            periodicity=Periodicity(_cell(row, 6, Periodicity.MONTHLY.value)),
            type=EntryType(_cell(row, 7, EntryType.EXPENSE.value)),
            due_day=int(_cell(row, 8)) if _cell(row, 8) else None,
            start_date=_cell(row, 9) or None,
            total_installments=int(_cell(row, 10, "1")),
            current_installment=int(_cell(row, 11, "1")),
            parent_id=UUID(_cell(row, 12)) if _cell(row, 12) else None,
            created_at=_parse_timestamp(created_at) if created_at else datetime.now(timezone.utc),
        )

    def _rental_to_row(self, user_id: str, period: Period, rental: RentalIncome) -> list:
        return [
            str(rental.id) if rental.id else "",
            user_id,
            period.key,
            rental.name,
            str(rental.value),
            str(rental.is_active),
            str(rental.contract_duration) if rental.contract_duration else "",
            rental.contract_start_date.key if rental.contract_start_date else "",
            rental.start_date.key if rental.start_date else "",
        ]

    def _row_to_rental(self, row: list) -> RentalIncome:
        return RentalIncome(
            id=UUID(_cell(row, 0)) if _cell(row, 0) else None,
            name=_cell(row, 3, "Rental income"),
            value=Decimal(_cell(row, 4, "0")),
            is_active=_cell(row, 5).lower() == "true",
            contract_duration=int(_cell(row, 6)) if _cell(row, 6) else None,
            contract_start_date=_cell(row, 7) or None,
            start_date=_cell(row, 8) or None,
        )

    def _user_rows(self, sheet: gspread.Worksheet, user_id: str):
        """Yield (sheet_row_number, row) for one user's records, skipping the header."""
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and _cell(row, 0) and _cell(row, 1) == user_id:
                yield idx, row

    # -------------------------------------------------------------------------
    # Owners
    # -------------------------------------------------------------------------

    async def list_owners(self, user_id: str) -> list[Owner]:
        """List owners ordered by position."""
        try:
            sheet = self._client.get_owners_sheet()
            owners = []
            for idx, row in self._user_rows(sheet, user_id):
                try:
                    owners.append(self._row_to_owner(row))
                except Exception as e:
                    logger.warning("owner_row_skipped", sheet_row=idx, error=str(e))
            owners.sort(key=lambda o: o.position)
            return owners
        except Exception as e:
            raise StorageError(f"Failed to list owners: {e}")

    async def insert_owners(self, user_id: str, owners: list[Owner]) -> bool:
        """Append owners in one call."""
        try:
            sheet = self._client.get_owners_sheet()
            rows = [self._owner_to_row(user_id, owner) for owner in owners]
            sheet.append_rows(rows, value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to insert owners: {e}")

    async def update_owner(self, user_id: str, owner: Owner) -> bool:
        """Replace an owner row."""
        try:
            sheet = self._client.get_owners_sheet()
            for idx, row in self._user_rows(sheet, user_id):
                if row[0] == str(owner.id):
                    sheet.update(
                        range_name=f"A{idx}",
                        values=[self._owner_to_row(user_id, owner)],
                    )
                    return True
            raise NotFoundError(f"Owner not found: {owner.id}")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update owner: {e}")

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    async def list_entries(self, user_id: str) -> list[Entry]:
        """List all entries of a ledger."""
        try:
            sheet = self._client.get_transactions_sheet()
            entries = []
            for idx, row in self._user_rows(sheet, user_id):
                try:
                    entries.append(self._row_to_entry(row))
                except Exception as e:
                    logger.warning("entry_row_skipped", sheet_row=idx, error=str(e))
            return entries
        except Exception as e:
            raise StorageError(f"Failed to list entries: {e}")

    async def insert_entries(self, user_id: str, entries: list[Entry]) -> bool:
        """Append a batch of entries in one call."""
        try:
            sheet = self._client.get_transactions_sheet()
            rows = [self._entry_to_row(user_id, entry) for entry in entries]
            sheet.append_rows(rows, value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to insert entries: {e}")

    async def update_entry(self, user_id: str, entry: Entry) -> bool:
        """Replace an entry row."""
        try:
            sheet = self._client.get_transactions_sheet()
            for idx, row in self._user_rows(sheet, user_id):
                if row[0] == str(entry.id):
                    sheet.update(
                        range_name=f"A{idx}",
                        values=[self._entry_to_row(user_id, entry)],
                    )
                    return True
            raise NotFoundError(f"Entry not found: {entry.id}")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update entry: {e}")

    async def delete_entry(self, user_id: str, entry_id: UUID) -> bool:
        """Delete an entry row."""
        try:
            sheet = self._client.get_transactions_sheet()
            for idx, row in self._user_rows(sheet, user_id):
                if row[0] == str(entry_id):
                    sheet.delete_rows(idx)
                    return True
            return False
        except Exception as e:
            raise StorageError(f"Failed to delete entry: {e}")

    # -------------------------------------------------------------------------
    # Rental income
    # -------------------------------------------------------------------------

    async def list_rental_income(self, user_id: str) -> dict[str, RentalIncome]:
        """List rental income keyed by period key."""
        try:
            sheet = self._client.get_rental_income_sheet()
            records = {}
            for idx, row in self._user_rows(sheet, user_id):
                try:
                    period = Period.parse(_cell(row, 2))
                    records[period.key] = self._row_to_rental(row)
                except Exception as e:
                    logger.warning("rental_income_row_skipped", sheet_row=idx, error=str(e))
            return records
        except Exception as e:
            raise StorageError(f"Failed to list rental income: {e}")

    async def upsert_rental_income(
        self,
        user_id: str,
        period: Period,
        rental_income: RentalIncome,
    ) -> RentalIncome:
        """Insert or replace the rental income row of (user_id, period)."""
        try:
            sheet = self._client.get_rental_income_sheet()
            stored = rental_income
            if stored.id is None:
                stored = stored.model_copy(update={"id": uuid4()})
            new_row = self._rental_to_row(user_id, period, stored)

            for idx, row in self._user_rows(sheet, user_id):
                if _cell(row, 2) == period.key:
                    sheet.update(range_name=f"A{idx}", values=[new_row])
                    return stored

            sheet.append_row(new_row, value_input_option="RAW")
            return stored
        except Exception as e:
            raise StorageError(f"Failed to save rental income: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=_parse_timestamp(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            user_id=_cell(row, 4) or None,
            entity_type=_cell(row, 5) or None,
            entity_id=UUID(_cell(row, 6)) if _cell(row, 6) else None,
            period_key=_cell(row, 7) or None,
            description=_cell(row, 8),
            details=json.loads(_cell(row, 9)) if _cell(row, 9) else {},
            error_message=_cell(row, 10) or None,
            is_user_action=_cell(row, 11).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_event_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]

            events = []
            for row in all_rows:
                if row and row[0]:
                    try:
                        events.append(self._row_to_event(row))
                    except Exception:
                        continue

            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
