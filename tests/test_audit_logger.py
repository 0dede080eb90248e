"""Tests for the audit logger."""

import pytest
from datetime import timedelta
from uuid import uuid4

from apartment_ledger.audit import AuditLogger
from apartment_ledger.models.audit import AuditEventBuilder, AuditEventType, AuditSeverity
from apartment_ledger.services.storage import InMemoryAuditStorage


class BrokenAuditStorage(InMemoryAuditStorage):
    async def append_event(self, event):
        raise RuntimeError("sheet is read-only")


class TestAuditLogger:
    """Tests for AuditLogger persistence and failure handling."""

    @pytest.mark.asyncio
    async def test_events_are_stored_with_user(self):
        storage = InMemoryAuditStorage()
        audit = AuditLogger(storage, user_id="ledger-1")

        await audit.log_entry_deleted(entry_id=uuid4(), period_key="2024-03")

        [event] = await storage.get_recent_events()
        assert event.event_type == AuditEventType.ENTRY_DELETED
        assert event.user_id == "ledger-1"
        assert event.period_key == "2024-03"

    @pytest.mark.asyncio
    async def test_save_failed_is_an_error(self):
        storage = InMemoryAuditStorage()
        audit = AuditLogger(storage, user_id="ledger-1")

        await audit.log_save_failed("add_entry", "quota exceeded", period_key="2024-03")

        [event] = await storage.get_recent_events()
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "quota exceeded"

    @pytest.mark.asyncio
    async def test_storage_failure_is_not_raised(self):
        """Test that a broken audit store never breaks the caller."""
        audit = AuditLogger(BrokenAuditStorage(), user_id="ledger-1")
        event = AuditEventBuilder.system_error(error_type="Test", error_message="boom")
        assert await audit.log(event) is False

    @pytest.mark.asyncio
    async def test_without_storage(self):
        event = AuditEventBuilder.system_error(error_type="Test", error_message="local only")
        assert await AuditLogger().log(event) is True

    @pytest.mark.asyncio
    async def test_recent_events_newest_first(self):
        storage = InMemoryAuditStorage()
        older = AuditEventBuilder.load_failed(user_id="ledger-1", error_message="first")
        newer = AuditEventBuilder.load_failed(user_id="ledger-1", error_message="second")
        newer = newer.model_copy(update={"timestamp": older.timestamp + timedelta(seconds=1)})

        await storage.append_event(older)
        await storage.append_event(newer)

        events = await storage.get_recent_events(limit=1)
        assert [e.error_message for e in events] == ["second"]

    @pytest.mark.asyncio
    async def test_max_events(self):
        storage = InMemoryAuditStorage(max_events=2)
        audit = AuditLogger(storage)
        for _ in range(3):
            await audit.log_owners_initialized(["Owner 1"])
        assert len(await storage.get_recent_events()) == 2
