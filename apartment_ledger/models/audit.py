"""
Audit Models for Apartment Ledger

Every write to the ledger is logged for audit purposes.
This provides:
1. Traceability of who changed which period
2. Debugging information when a save fails
3. A history the owners can read back

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from apartment_ledger.models.ledger import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    LEDGER_LOADED = "ledger_loaded"
    OWNERS_INITIALIZED = "owners_initialized"

    # Owners
    OWNER_UPDATED = "owner_updated"
    OWNER_IMAGE_UPLOADED = "owner_image_uploaded"

    # Entries
    ENTRY_CREATED = "entry_created"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_DELETED = "entry_deleted"

    # Rental income
    RENTAL_INCOME_SAVED = "rental_income_saved"

    # Failures
    SAVE_FAILED = "save_failed"
    LOAD_FAILED = "load_failed"
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every ledger write creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what is this about?
    user_id: Optional[str] = Field(
        default=None,
        description="Ledger the event belongs to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'entry', 'owner', 'rental_income')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    period_key: Optional[str] = Field(
        default=None,
        description="Period the event touched, if any"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "period_key": self.period_key,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, entity_type,
         entity_id, period_key, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            self.period_key or "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entries_created(user_id, entries)
        event = AuditEventBuilder.save_failed(user_id, "delete_entry", error)
    """

    @staticmethod
    def ledger_loaded(
        user_id: str,
        owner_count: int,
        entry_count: int,
        period_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            description=f"Ledger loaded: {entry_count} entries across {period_count} periods",
            details={
                "owner_count": owner_count,
                "entry_count": entry_count,
                "period_count": period_count,
            },
        )

    @staticmethod
    def owners_initialized(
        user_id: str,
        owner_names: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OWNERS_INITIALIZED,
            user_id=user_id,
            entity_type="owner",
            description=f"Created {len(owner_names)} default owners",
            details={
                "owners": owner_names,
            },
        )

    @staticmethod
    def owner_updated(
        user_id: str,
        owner_id: UUID,
        changed_fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OWNER_UPDATED,
            user_id=user_id,
            entity_type="owner",
            entity_id=owner_id,
            description=f"Owner updated: {', '.join(changed_fields) or 'no changes'}",
            details={
                "changed_fields": changed_fields,
            },
            is_user_action=True,
        )

    @staticmethod
    def owner_image_uploaded(
        user_id: str,
        owner_id: UUID,
        filename: str,
        file_size: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OWNER_IMAGE_UPLOADED,
            user_id=user_id,
            entity_type="owner",
            entity_id=owner_id,
            description=f"Owner image uploaded: {filename}",
            details={
                "filename": filename,
                "file_size_bytes": file_size,
            },
            is_user_action=True,
        )

    @staticmethod
    def entries_created(
        user_id: str,
        entry_ids: list[UUID],
        name: str,
        value: str,
        first_period: str,
        parent_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_CREATED,
            user_id=user_id,
            entity_type="entry",
            entity_id=parent_id or (entry_ids[0] if entry_ids else None),
            period_key=first_period,
            description=f"Entry created: {name or 'unnamed'} - {value} x {len(entry_ids)}",
            details={
                "entry_ids": [str(entry_id) for entry_id in entry_ids],
                "installments": len(entry_ids),
                "value": value,
            },
            is_user_action=True,
        )

    @staticmethod
    def entry_updated(
        user_id: str,
        entry_id: UUID,
        period_key: str,
        changed_fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_UPDATED,
            user_id=user_id,
            entity_type="entry",
            entity_id=entry_id,
            period_key=period_key,
            description=f"Entry updated: {', '.join(changed_fields) or 'no changes'}",
            details={
                "changed_fields": changed_fields,
            },
            is_user_action=True,
        )

    @staticmethod
    def entry_deleted(
        user_id: str,
        entry_id: UUID,
        period_key: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_DELETED,
            user_id=user_id,
            entity_type="entry",
            entity_id=entry_id,
            period_key=period_key,
            description="Entry deleted",
            is_user_action=True,
        )

    @staticmethod
    def rental_income_saved(
        user_id: str,
        period_key: str,
        value: str,
        is_active: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RENTAL_INCOME_SAVED,
            user_id=user_id,
            entity_type="rental_income",
            period_key=period_key,
            description=f"Rental income saved: {value} ({'active' if is_active else 'inactive'})",
            details={
                "value": value,
                "is_active": is_active,
            },
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        user_id: str,
        operation: str,
        error_message: str,
        period_key: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            period_key=period_key,
            description=f"Save failed: {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def load_failed(
        user_id: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description="Ledger load failed",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
        )
