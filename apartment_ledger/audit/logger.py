"""
Audit Logger

DESIGN DECISION: Every write to the ledger is logged.
This provides:
1. Complete traceability of who changed which period
2. Debugging capability when a save fails
3. A history the owners can read back

The audit logger:
- Is async to match the storage layer
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

from typing import Optional
from uuid import UUID

import structlog

from apartment_ledger.models.audit import AuditEvent, AuditEventBuilder
from apartment_ledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        user_id: Optional[str] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            user_id: Ledger the events belong to
        """
        self._storage = storage
        self._user_id = user_id
        self._logger = structlog.get_logger("apartment_ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_ledger_loaded(
        self,
        owner_count: int,
        entry_count: int,
        period_count: int,
    ) -> None:
        await self.log(AuditEventBuilder.ledger_loaded(
            user_id=self._user_id,
            owner_count=owner_count,
            entry_count=entry_count,
            period_count=period_count,
        ))

    async def log_owners_initialized(self, owner_names: list[str]) -> None:
        await self.log(AuditEventBuilder.owners_initialized(
            user_id=self._user_id,
            owner_names=owner_names,
        ))

    async def log_owner_updated(
        self,
        owner_id: UUID,
        changed_fields: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.owner_updated(
            user_id=self._user_id,
            owner_id=owner_id,
            changed_fields=changed_fields,
        ))

    async def log_owner_image_uploaded(
        self,
        owner_id: UUID,
        filename: str,
        file_size: int,
    ) -> None:
        await self.log(AuditEventBuilder.owner_image_uploaded(
            user_id=self._user_id,
            owner_id=owner_id,
            filename=filename,
            file_size=file_size,
        ))

    async def log_entries_created(
        self,
        entry_ids: list[UUID],
        name: str,
        value: str,
        first_period: str,
        parent_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.entries_created(
            user_id=self._user_id,
            entry_ids=entry_ids,
            name=name,
            value=value,
            first_period=first_period,
            parent_id=parent_id,
        ))

    async def log_entry_updated(
        self,
        entry_id: UUID,
        period_key: str,
        changed_fields: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.entry_updated(
            user_id=self._user_id,
            entry_id=entry_id,
            period_key=period_key,
            changed_fields=changed_fields,
        ))

    async def log_entry_deleted(self, entry_id: UUID, period_key: str) -> None:
        await self.log(AuditEventBuilder.entry_deleted(
            user_id=self._user_id,
            entry_id=entry_id,
            period_key=period_key,
        ))

    async def log_rental_income_saved(
        self,
        period_key: str,
        value: str,
        is_active: bool,
    ) -> None:
        await self.log(AuditEventBuilder.rental_income_saved(
            user_id=self._user_id,
            period_key=period_key,
            value=value,
            is_active=is_active,
        ))

    async def log_save_failed(
        self,
        operation: str,
        error_message: str,
        period_key: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.save_failed(
            user_id=self._user_id,
            operation=operation,
            error_message=error_message,
            period_key=period_key,
        ))

    async def log_load_failed(self, error_message: str) -> None:
        await self.log(AuditEventBuilder.load_failed(
            user_id=self._user_id,
            error_message=error_message,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            user_id=self._user_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
    ) -> None:
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            user_id=self._user_id,
        ))
