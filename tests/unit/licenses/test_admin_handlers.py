"""
Unit tests for the administrative query and command handlers.
"""
import uuid
from datetime import timedelta
from decimal import Decimal

import pytest

from core.domain.exceptions import InvalidLicenseInputError, LicenseNotFoundError
from licenses.application.commands.delete_license import DeleteLicenseCommand
from licenses.application.commands.log_access import LogAccessCommand
from licenses.application.commands.toggle_lock import ToggleLockCommand
from licenses.application.commands.update_license import UpdateLicenseCommand
from licenses.application.handlers.license_admin_handlers import (
    MANUAL_LOCK_REASON,
    DeleteLicenseHandler,
    ToggleLockHandler,
    UpdateLicenseHandler,
)
from licenses.application.handlers.license_query_handlers import (
    GetLicenseDetailsHandler,
    InspectLicenseHandler,
    ListLicensesByEmailHandler,
)
from licenses.application.handlers.log_access_handler import LogAccessHandler
from licenses.application.queries.get_license_details import GetLicenseDetailsQuery
from licenses.application.queries.inspect_license import InspectLicenseQuery
from licenses.application.queries.list_licenses_by_email import ListLicensesByEmailQuery
from licenses.domain.access_log import AccessLog
from licenses.domain.events import LicenseDeleted, LicenseLocked, LicenseUnlocked


@pytest.mark.asyncio
class TestInspectLicenseHandler:
    """Tests for InspectLicenseHandler."""

    async def test_by_id_unused(self, license_repository, license_factory, clock):
        """Test inspecting an unused license by ID."""
        license = license_repository.add(license_factory())
        handler = InspectLicenseHandler(license_repository, clock=clock)

        result = await handler.handle(InspectLicenseQuery(license_id=license.id))

        assert result.valid is True
        assert result.message == "License code is valid and not used yet"
        assert result.details.is_used is False

    async def test_by_email_and_code_in_use(self, license_repository, license_factory, clock):
        """Test inspecting a used license by email and code."""
        license = license_repository.add(license_factory(is_used=True))
        handler = InspectLicenseHandler(license_repository, clock=clock)

        result = await handler.handle(
            InspectLicenseQuery(email=license.email, code=license.code)
        )

        assert result.valid is True
        assert result.message == "License code is valid and in use"

    async def test_lapsed_reported_without_mutation(self, license_repository, license_factory, clock, now):
        """Test inspection reports a lapsed license without flagging it."""
        license = license_repository.add(license_factory(expires_at=now - timedelta(days=1)))
        handler = InspectLicenseHandler(license_repository, clock=clock)

        result = await handler.handle(InspectLicenseQuery(license_id=license.id))

        assert result.valid is False
        assert result.message == "License code has expired"
        assert result.details.expired is True
        assert license_repository.licenses[license.id].is_expired is False

    async def test_expired_flag_with_future_expiration(
        self, license_repository, license_factory, clock, now
    ):
        """Test the expired flag makes a license invalid despite a future expiration."""
        license = license_repository.add(
            license_factory(is_expired=True, expires_at=now + timedelta(days=5))
        )
        handler = InspectLicenseHandler(license_repository, clock=clock)

        result = await handler.handle(InspectLicenseQuery(license_id=license.id))

        assert result.valid is False
        assert result.details.expired is True

    async def test_locked(self, license_repository, license_factory, clock):
        """Test inspecting a locked license."""
        license = license_repository.add(license_factory(locked=True))
        handler = InspectLicenseHandler(license_repository, clock=clock)

        result = await handler.handle(InspectLicenseQuery(license_id=license.id))

        assert result.valid is False
        assert result.message == "License code is locked"

    async def test_not_found(self, license_repository, clock):
        """Test unknown identifiers."""
        handler = InspectLicenseHandler(license_repository, clock=clock)

        by_id = await handler.handle(InspectLicenseQuery(license_id=uuid.uuid4()))
        by_code = await handler.handle(InspectLicenseQuery(email="a@b.com", code="NOPE"))

        assert by_id.valid is False
        assert by_id.message == "License not found"
        assert by_code.message == "License code is invalid or does not match"

    async def test_missing_identifiers(self, license_repository, clock):
        """Test a query without identifiers."""
        handler = InspectLicenseHandler(license_repository, clock=clock)

        result = await handler.handle(InspectLicenseQuery(email="a@b.com"))

        assert result.valid is False
        assert result.details is None


@pytest.mark.asyncio
class TestGetLicenseDetailsHandler:
    """Tests for GetLicenseDetailsHandler."""

    async def test_details_with_stats(
        self, license_repository, access_log_repository, license_factory, clock, now
    ):
        """Test access statistics and risk level."""
        license = license_repository.add(license_factory(warning_count=1))
        for minutes, ip, risky in [
            (5, "1.1.1.1", False),
            (10, "1.1.1.1", False),
            (15, "2.2.2.2", True),
            (20, "3.3.3.3", False),
            (25, "4.4.4.4", False),
        ]:
            access_log_repository.entries.append(
                AccessLog.create(
                    license_id=license.id,
                    email=license.email,
                    ip=ip,
                    is_risky=risky,
                    accessed_at=now - timedelta(minutes=minutes),
                )
            )
        handler = GetLicenseDetailsHandler(license_repository, access_log_repository, clock=clock)

        details = await handler.handle(GetLicenseDetailsQuery(license_id=license.id))

        assert details.license.code == license.code
        assert details.stats.total_accesses == 5
        assert details.stats.recent_risky_accesses == 1
        assert details.stats.common_ips == ["1.1.1.1", "2.2.2.2", "3.3.3.3"]
        assert details.stats.last_access_time == now - timedelta(minutes=5)
        assert details.stats.risk_level == "medium"
        assert details.stats.is_risky is True

    async def test_safe_license(self, license_repository, access_log_repository, license_factory, clock):
        """Test a license without history is safe."""
        license = license_repository.add(license_factory())
        handler = GetLicenseDetailsHandler(license_repository, access_log_repository, clock=clock)

        details = await handler.handle(GetLicenseDetailsQuery(license_id=license.id))

        assert details.stats.risk_level == "safe"
        assert details.stats.is_risky is False
        assert details.stats.last_access_time is None

    async def test_not_found(self, license_repository, access_log_repository, clock):
        """Test details of an unknown license."""
        handler = GetLicenseDetailsHandler(license_repository, access_log_repository, clock=clock)

        with pytest.raises(LicenseNotFoundError):
            await handler.handle(GetLicenseDetailsQuery(license_id=uuid.uuid4()))


@pytest.mark.asyncio
class TestListLicensesByEmailHandler:
    """Tests for ListLicensesByEmailHandler."""

    async def test_codes_are_masked(self, license_repository, license_factory, now):
        """Test listed codes are masked, newest first."""
        older = license_repository.add(
            license_factory(code="AAAA-BBBB-CCCC", created_at=now - timedelta(days=2))
        )
        newer = license_repository.add(
            license_factory(code="DDDD-EEEE-FFFF", created_at=now - timedelta(days=1))
        )
        license_repository.add(license_factory(email="other@example.com"))
        handler = ListLicensesByEmailHandler(license_repository)

        result = await handler.handle(ListLicensesByEmailQuery(email="owner@example.com"))

        assert [dto.id for dto in result] == [newer.id, older.id]
        assert [dto.code for dto in result] == ["D**D-E**E-F**F", "A**A-B**B-C**C"]
        assert license_repository.licenses[older.id].code == "AAAA-BBBB-CCCC"


@pytest.mark.asyncio
class TestUpdateLicenseHandler:
    """Tests for UpdateLicenseHandler."""

    async def test_update_fields(self, license_repository, license_factory, clock, now):
        """Test updating administrative fields."""
        license = license_repository.add(license_factory())
        handler = UpdateLicenseHandler(license_repository, clock=clock)
        expires_at = now + timedelta(days=90)

        result = await handler.handle(
            UpdateLicenseCommand(
                license_id=license.id,
                email="new@example.com",
                remark="renewed",
                purchase_amount="10.50",
                expires_at=expires_at,
            )
        )

        assert result.email == "new@example.com"
        assert result.remark == "renewed"
        assert result.purchase_amount == Decimal("10.50")
        assert result.expires_at == expires_at
        assert result.code == license.code

    async def test_extension_keeps_expired_flag(self, license_repository, license_factory, clock, now):
        """Test moving the expiration forward does not clear the expired flag."""
        license = license_repository.add(license_factory(is_expired=True))
        handler = UpdateLicenseHandler(license_repository, clock=clock)

        result = await handler.handle(
            UpdateLicenseCommand(license_id=license.id, expires_at=now + timedelta(days=30))
        )

        assert result.is_expired is True

    async def test_no_changes(self, license_repository, license_factory, clock):
        """Test an empty update returns the license unchanged."""
        license = license_repository.add(license_factory())
        handler = UpdateLicenseHandler(license_repository, clock=clock)

        result = await handler.handle(UpdateLicenseCommand(license_id=license.id))

        assert result.id == license.id
        assert result.email == license.email

    @pytest.mark.parametrize(
        "changes",
        [{"email": "broken"}, {"purchase_amount": "-1"}],
    )
    async def test_invalid_values(self, license_repository, license_factory, clock, changes):
        """Test invalid new values are rejected."""
        license = license_repository.add(license_factory())
        handler = UpdateLicenseHandler(license_repository, clock=clock)

        with pytest.raises(InvalidLicenseInputError):
            await handler.handle(UpdateLicenseCommand(license_id=license.id, **changes))

    async def test_past_expiration_rejected(self, license_repository, license_factory, clock, now):
        """Test a past expiration is rejected."""
        license = license_repository.add(license_factory())
        handler = UpdateLicenseHandler(license_repository, clock=clock)

        with pytest.raises(InvalidLicenseInputError):
            await handler.handle(
                UpdateLicenseCommand(license_id=license.id, expires_at=now - timedelta(days=1))
            )

    async def test_not_found(self, license_repository, clock):
        """Test updating an unknown license."""
        handler = UpdateLicenseHandler(license_repository, clock=clock)

        with pytest.raises(LicenseNotFoundError):
            await handler.handle(UpdateLicenseCommand(license_id=uuid.uuid4(), remark="x"))


@pytest.mark.asyncio
class TestDeleteLicenseHandler:
    """Tests for DeleteLicenseHandler."""

    async def test_delete(self, license_repository, license_factory, recorded_events):
        """Test deleting a license."""
        license = license_repository.add(license_factory())
        handler = DeleteLicenseHandler(license_repository)

        assert await handler.handle(DeleteLicenseCommand(license_id=license.id)) is True
        assert license.id not in license_repository.licenses
        assert len(recorded_events.of_type(LicenseDeleted)) == 1

    async def test_not_found(self, license_repository):
        """Test deleting an unknown license."""
        handler = DeleteLicenseHandler(license_repository)

        with pytest.raises(LicenseNotFoundError):
            await handler.handle(DeleteLicenseCommand(license_id=uuid.uuid4()))


@pytest.mark.asyncio
class TestToggleLockHandler:
    """Tests for ToggleLockHandler."""

    async def test_lock_and_unlock(self, license_repository, license_factory, recorded_events):
        """Test a manual lock then unlock keeps the warning count."""
        license = license_repository.add(license_factory(warning_count=5))
        handler = ToggleLockHandler(license_repository)

        locked = await handler.handle(ToggleLockCommand(license_id=license.id, locked=True))
        unlocked = await handler.handle(ToggleLockCommand(license_id=license.id, locked=False))

        assert locked.locked is True
        assert unlocked.locked is False
        assert license_repository.licenses[license.id].warning_count == 5

        lock_events = recorded_events.of_type(LicenseLocked)
        assert len(lock_events) == 1
        assert lock_events[0].reason == MANUAL_LOCK_REASON
        assert len(recorded_events.of_type(LicenseUnlocked)) == 1

    async def test_no_state_change_publishes_nothing(
        self, license_repository, license_factory, recorded_events
    ):
        """Test locking an already locked license publishes nothing."""
        license = license_repository.add(license_factory(locked=True))
        handler = ToggleLockHandler(license_repository)

        result = await handler.handle(ToggleLockCommand(license_id=license.id, locked=True))

        assert result.locked is True
        assert recorded_events.events == []

    async def test_not_found(self, license_repository):
        """Test toggling an unknown license."""
        handler = ToggleLockHandler(license_repository)

        with pytest.raises(LicenseNotFoundError):
            await handler.handle(ToggleLockCommand(license_id=uuid.uuid4(), locked=True))


@pytest.mark.asyncio
class TestLogAccessHandler:
    """Tests for LogAccessHandler."""

    async def test_logs_access(self, license_repository, access_log_repository, license_factory, clock, now):
        """Test a verified client's access is recorded as not risky."""
        license = license_repository.add(license_factory())
        handler = LogAccessHandler(license_repository, access_log_repository, clock=clock)

        result = await handler.handle(
            LogAccessCommand(
                email=license.email, code=license.code, ip="5.5.5.5", page_path="/dashboard"
            )
        )

        assert result.success is True
        assert result.message == "Access logged"
        entry = access_log_repository.entries[0]
        assert (entry.ip, entry.is_risky, entry.accessed_at) == ("5.5.5.5", False, now)

    async def test_unknown_license(self, license_repository, access_log_repository, clock):
        """Test logging against an unknown license."""
        handler = LogAccessHandler(license_repository, access_log_repository, clock=clock)

        result = await handler.handle(LogAccessCommand(email="a@b.com", code="NOPE", ip="1.1.1.1"))

        assert result.success is False
        assert result.message == "Invalid license code"
        assert access_log_repository.entries == []

    async def test_missing_ip(self, license_repository, access_log_repository, license_factory, clock):
        """Test logging without an IP."""
        license = license_repository.add(license_factory())
        handler = LogAccessHandler(license_repository, access_log_repository, clock=clock)

        result = await handler.handle(LogAccessCommand(email=license.email, code=license.code, ip=""))

        assert result.success is False
