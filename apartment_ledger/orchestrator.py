"""
Ledger Session for Apartment Ledger

This module ties together the components and defines the flows the
dashboard drives:
1. Loading a ledger (owners + entries + rental income)
2. Navigating months and projection years
3. Writing entries, rental income and owner details
4. Reading balances, summaries and projections

DESIGN DECISION: The session enforces the boundaries:
- Writes go to the record store before the in-memory view changes
- A failed write is audited and re-raised; the view keeps its old state
- Calculations are re-derived on every read, never stored

This is the "glue" between the UI and the ledger engine.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import structlog

from apartment_ledger.audit import AuditLogger
from apartment_ledger.config import SplitPolicy, get_settings
from apartment_ledger.ledger import (
    BalanceCalculator,
    LedgerStore,
    expand,
    project_for,
    summarize_projection,
)
from apartment_ledger.models.ledger import (
    Entry,
    EntryDraft,
    ImageUpload,
    Owner,
    OwnerBalance,
    PeriodSummary,
    ProjectionRow,
    ProjectionSummary,
    RentalIncome,
    default_owners,
)
from apartment_ledger.models.period import Period
from apartment_ledger.services.image import CloudinaryImageService, ImageServiceError
from apartment_ledger.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)


class LedgerSession:
    """
    One user's working session over a ledger.

    Holds the selected month, the selected projection year, the owners and
    the entry store. All reads are computed from the store on demand.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        user_id: str,
        audit_logger: Optional[AuditLogger] = None,
        calculator: Optional[BalanceCalculator] = None,
        image_service: Optional[CloudinaryImageService] = None,
        today: Optional[date] = None,
        default_owner_count: int = 3,
        max_installments: int = 360,
    ):
        self._storage = storage
        self._user_id = user_id
        self._audit_logger = audit_logger
        self._calculator = calculator or BalanceCalculator()
        self._image_service = image_service
        self._today = today or date.today()
        self._default_owner_count = default_owner_count
        self._max_installments = max_installments

        self._store = LedgerStore(storage, user_id)
        self._owners: list[Owner] = []
        self.current_period = Period.from_date(self._today)
        self.selected_year = self._today.year

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def store(self) -> LedgerStore:
        return self._store

    async def _audit_failure(
        self,
        operation: str,
        error: Exception,
        period: Optional[Period] = None,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_save_failed(
                operation=operation,
                error_message=str(error),
                period_key=period.key if period else None,
            )

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load(self) -> None:
        """
        Load owners and entries from the record store.

        A ledger with no owners yet gets the default owners.

        Raises:
            StorageError: If the record store cannot be read
        """
        try:
            owners = await self._storage.list_owners(self._user_id)
            if not owners:
                owners = default_owners(self._default_owner_count)
                await self._storage.insert_owners(self._user_id, owners)
                if self._audit_logger:
                    await self._audit_logger.log_owners_initialized([o.name for o in owners])
            await self._store.load()
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_load_failed(str(e))
            raise

        self._owners = owners
        if self._audit_logger:
            await self._audit_logger.log_ledger_loaded(
                owner_count=len(owners),
                entry_count=self._store.entry_count(),
                period_count=len(self._store.snapshot()),
            )

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def select_period(self, period: Period) -> Period:
        self.current_period = period
        return period

    def next_period(self) -> Period:
        return self.select_period(self.current_period.shift(1))

    def previous_period(self) -> Period:
        return self.select_period(self.current_period.shift(-1))

    def go_to_current_period(self) -> Period:
        return self.select_period(Period.from_date(self._today))

    def select_year(self, year: int) -> int:
        self.selected_year = year
        return year

    def available_years(self, span: int = 10) -> list[int]:
        """Years offered for projection: this year and the next `span`."""
        return [self._today.year + offset for offset in range(span + 1)]

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def owners(self) -> list[Owner]:
        return list(self._owners)

    @property
    def entries(self) -> list[Entry]:
        """Entries of the selected month."""
        return list(self._store.bucket(self.current_period).entries)

    @property
    def rental_income(self) -> RentalIncome:
        """Rental income of the selected month."""
        return self._store.bucket(self.current_period).rental_income

    def total_expenses(self) -> Decimal:
        return self._calculator.total_expenses(self.entries)

    def summary(self) -> PeriodSummary:
        return self._calculator.summarize(self.entries, self.rental_income)

    def owner_balances(self) -> list[OwnerBalance]:
        return self._calculator.balances_for(self.entries, self.rental_income, self._owners)

    def projections(self, year: Optional[int] = None) -> list[ProjectionRow]:
        return project_for(year or self.selected_year, self._store.snapshot())

    def projection_summary(self, year: Optional[int] = None) -> ProjectionSummary:
        return summarize_projection(self.projections(year))

    # -------------------------------------------------------------------------
    # Entry writes
    # -------------------------------------------------------------------------

    async def add_entry(self, draft: EntryDraft) -> list[Entry]:
        """
        Add an expense or income, expanded into its installments.

        The first installment lands in the selected month.

        Raises:
            ValueError: If the plan has more installments than allowed
            StorageError: If the batch could not be stored (nothing is added)
        """
        if draft.total_installments > self._max_installments:
            raise ValueError(
                f"An entry can have at most {self._max_installments} installments"
            )
        entries = expand(draft, self.current_period)
        try:
            await self._store.add_entries(entries)
        except StorageError as e:
            await self._audit_failure("add_entry", e, self.current_period)
            raise

        if self._audit_logger:
            await self._audit_logger.log_entries_created(
                entry_ids=[e.id for e in entries],
                name=draft.name,
                value=str(draft.value),
                first_period=self.current_period.key,
                parent_id=entries[0].parent_id,
            )
        return entries

    async def update_entry(self, entry_id: UUID, **updates: Any) -> Entry:
        """
        Update fields of an entry in the selected month.

        Only this installment changes; its siblings are left alone.
        """
        period = self.current_period
        try:
            updated = await self._store.update_entry(period, entry_id, updates)
        except StorageError as e:
            await self._audit_failure("update_entry", e, period)
            raise

        if self._audit_logger:
            await self._audit_logger.log_entry_updated(
                entry_id=entry_id,
                period_key=period.key,
                changed_fields=sorted(updates),
            )
        return updated

    async def delete_entry(self, entry_id: UUID) -> Entry:
        """Delete one entry of the selected month. Siblings are kept."""
        period = self.current_period
        try:
            deleted = await self._store.delete_entry(period, entry_id)
        except StorageError as e:
            await self._audit_failure("delete_entry", e, period)
            raise

        if self._audit_logger:
            await self._audit_logger.log_entry_deleted(entry_id=entry_id, period_key=period.key)
        return deleted

    # -------------------------------------------------------------------------
    # Rental income
    # -------------------------------------------------------------------------

    async def set_rental_income(self, rental_income: RentalIncome) -> RentalIncome:
        """Replace the rental income of the selected month."""
        period = self.current_period
        try:
            stored = await self._store.set_rental_income(period, rental_income)
        except StorageError as e:
            await self._audit_failure("set_rental_income", e, period)
            raise

        if self._audit_logger:
            await self._audit_logger.log_rental_income_saved(
                period_key=period.key,
                value=str(stored.value),
                is_active=stored.is_active,
            )
        return stored

    # -------------------------------------------------------------------------
    # Owners
    # -------------------------------------------------------------------------

    def _find_owner(self, owner_id: UUID) -> tuple[int, Owner]:
        for index, owner in enumerate(self._owners):
            if owner.id == owner_id:
                return index, owner
        raise NotFoundError(f"Owner not found: {owner_id}")

    async def update_owner(self, owner_id: UUID, **updates: Any) -> Owner:
        """
        Update an owner's name, percentage or image.

        Raises:
            NotFoundError: If the owner is not part of this ledger
            ValueError: If the update leaves a weighted split with no
                        percentages to weigh by
            StorageError: If the update could not be stored
        """
        index, existing = self._find_owner(owner_id)
        editable = {k: v for k, v in updates.items() if k != "id"}
        updated = Owner.model_validate({**existing.model_dump(), **editable})

        if self._calculator.split_policy == SplitPolicy.WEIGHTED:
            others = [o for o in self._owners if o.id != owner_id]
            if all(o.percentage == 0 for o in [*others, updated]):
                raise ValueError("At least one owner needs a percentage above zero")

        try:
            await self._storage.update_owner(self._user_id, updated)
        except StorageError as e:
            await self._audit_failure("update_owner", e)
            raise

        self._owners[index] = updated
        if self._audit_logger:
            await self._audit_logger.log_owner_updated(
                owner_id=owner_id,
                changed_fields=sorted(editable),
            )
        return updated

    async def upload_owner_image(
        self,
        owner_id: UUID,
        image_bytes: bytes,
        filename: str,
        mime_type: str,
    ) -> Owner:
        """
        Host a new avatar for an owner and store its URL as image_ref.

        Raises:
            ImageServiceError: If no image service is configured or the
                               image is rejected or fails to upload
            StorageError: If the owner record could not be updated
        """
        self._find_owner(owner_id)
        if self._image_service is None:
            raise ImageServiceError("Image hosting is not configured")

        upload = ImageUpload(
            owner_id=owner_id,
            original_filename=filename,
            file_size_bytes=len(image_bytes),
            mime_type=mime_type,
        )
        try:
            image_ref = await self._image_service.upload_owner_image(image_bytes, upload)
        except ImageServiceError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="cloudinary",
                    error_message=str(e),
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_owner_image_uploaded(
                owner_id=owner_id,
                filename=filename,
                file_size=len(image_bytes),
            )
        return await self.update_owner(owner_id, image_ref=image_ref)


def create_app_components(
    use_storage: bool = True,
    today: Optional[date] = None,
) -> tuple[LedgerSession, Optional[GoogleSheetsClient]]:
    """
    Factory function to create the application session.

    Args:
        use_storage: Whether to use Google Sheets storage.
                    Falls back to in-memory storage when False or when
                    Sheets is not configured.
        today: Date the session treats as today

    Returns:
        (ledger_session, sheets_client)
    """
    settings = get_settings()
    app_settings = settings.app
    ledger_settings = settings.ledger

    sheets_client = None
    storage: LedgerStorageInterface
    audit_logger: AuditLogger

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            storage = GoogleSheetsLedgerStorage(sheets_client)
            audit_logger = AuditLogger(
                GoogleSheetsAuditStorage(sheets_client),
                user_id=app_settings.ledger_user_id,
            )
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            storage = InMemoryLedgerStorage()
            audit_logger = AuditLogger(user_id=app_settings.ledger_user_id)
    else:
        storage = InMemoryLedgerStorage()
        audit_logger = AuditLogger(user_id=app_settings.ledger_user_id)

    try:
        image_service = CloudinaryImageService()
    except Exception:
        # Avatars are optional; uploads report "not configured"
        image_service = None

    session = LedgerSession(
        storage=storage,
        user_id=app_settings.ledger_user_id,
        audit_logger=audit_logger,
        calculator=BalanceCalculator.from_settings(ledger_settings),
        image_service=image_service,
        today=today,
        default_owner_count=ledger_settings.default_owner_count,
        max_installments=ledger_settings.max_installments,
    )
    return session, sheets_client
