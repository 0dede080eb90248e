"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the record store.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing and offline use
3. Keep the ledger engine decoupled from storage implementation

Three record collections are kept, all keyed by an opaque user_id:
- owners (ordered by position)
- transactions (one row per entry / installment)
- rental income (one row per user and period)

The interface is intentionally simple - we're not building a full ORM.
Just the operations the ledger needs.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from apartment_ledger.models.audit import AuditEvent
from apartment_ledger.models.ledger import Entry, Owner, RentalIncome
from apartment_ledger.models.period import Period


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger record storage.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods. Every failure is raised as StorageError.
    """

    # -------------------------------------------------------------------------
    # Owners
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_owners(self, user_id: str) -> list[Owner]:
        """
        List the owners of a ledger, ordered by position.

        Args:
            user_id: Ledger key

        Returns:
            Owners in display order (empty for a new ledger)
        """
        pass

    @abstractmethod
    async def insert_owners(self, user_id: str, owners: list[Owner]) -> bool:
        """
        Insert a batch of owners.

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def update_owner(self, user_id: str, owner: Owner) -> bool:
        """
        Replace an existing owner record.

        Raises:
            NotFoundError: If the owner doesn't exist
            StorageError: If the update fails
        """
        pass

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_entries(self, user_id: str) -> list[Entry]:
        """
        List every entry of a ledger, across all periods.

        Returns:
            Entries in insertion order
        """
        pass

    @abstractmethod
    async def insert_entries(self, user_id: str, entries: list[Entry]) -> bool:
        """
        Insert a batch of entries in a single call.

        Either the whole batch is stored or the call fails.

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def update_entry(self, user_id: str, entry: Entry) -> bool:
        """
        Replace an existing entry.

        Raises:
            NotFoundError: If the entry doesn't exist
            StorageError: If the update fails
        """
        pass

    @abstractmethod
    async def delete_entry(self, user_id: str, entry_id: UUID) -> bool:
        """
        Delete one entry by ID. Sibling installments are not touched.

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    # -------------------------------------------------------------------------
    # Rental income
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_rental_income(self, user_id: str) -> dict[str, RentalIncome]:
        """
        List rental income records keyed by period key ("YYYY-MM").
        """
        pass

    @abstractmethod
    async def upsert_rental_income(
        self,
        user_id: str,
        period: Period,
        rental_income: RentalIncome,
    ) -> RentalIncome:
        """
        Insert or replace the rental income of one period.

        The natural key is (user_id, period). The stored record replaces
        the previous one wholesale.

        Returns:
            The stored record (with an ID assigned if it had none)

        Raises:
            StorageError: If the upsert fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
