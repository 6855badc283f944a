"""
Pytest configuration and shared fixtures.
"""

import dataclasses
import uuid
from collections import Counter
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.domain.events import EventHandler
from core.domain.exceptions import LicenseNotFoundError, StoreError
from core.infrastructure.events import event_bus
from licenses.domain.access_log import AccessLog, WarningUpdate
from licenses.domain.events import (
    LicenseDeleted,
    LicenseExpired,
    LicenseIssued,
    LicenseLocked,
    LicenseUnlocked,
    RiskyAccessDetected,
)
from licenses.domain.license import License
from licenses.domain.services import RiskPolicy
from licenses.infrastructure.repositories.django_access_log_repository import (
    DjangoAccessLogRepository,
)
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from licenses.ports.access_log_repository import AccessLogRepository
from licenses.ports.license_repository import LicenseRepository
from licenses.ports.notifier import NotificationResult, Notifier

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class InMemoryLicenseRepository(LicenseRepository):
    """LicenseRepository keeping entities in a dict."""

    def __init__(self):
        self.licenses = {}
        self.fail = False
        self.exists_calls = []

    def _check(self):
        if self.fail:
            raise StoreError()

    def _replace(self, license_id, **changes):
        license = dataclasses.replace(self.licenses[license_id], **changes)
        self.licenses[license_id] = license
        return license

    def add(self, license: License) -> License:
        self.licenses[license.id] = license
        return license

    async def find_by_id(self, license_id):
        self._check()
        return self.licenses.get(license_id)

    async def find_by_code(self, code):
        self._check()
        return next((l for l in self.licenses.values() if l.code == code), None)

    async def find_by_email_and_code(self, email, code):
        self._check()
        return next(
            (l for l in self.licenses.values() if l.email == email and l.code == code),
            None,
        )

    async def find_by_email(self, email):
        self._check()
        found = [l for l in self.licenses.values() if l.email == email]
        return sorted(found, key=lambda l: l.created_at, reverse=True)

    async def exists_by_code(self, code):
        self._check()
        self.exists_calls.append(code)
        return any(l.code == code for l in self.licenses.values())

    async def create(self, license):
        self._check()
        return self.add(license)

    async def update(self, license_id, changes):
        self._check()
        if license_id not in self.licenses:
            return None
        return self._replace(license_id, **changes)

    async def delete(self, license_id):
        self._check()
        return self.licenses.pop(license_id, None) is not None

    async def mark_used(self, license_id):
        self._check()
        self._replace(license_id, is_used=True)

    async def mark_expired(self, license_id):
        self._check()
        if self.licenses[license_id].is_expired:
            return False
        self._replace(license_id, is_expired=True)
        return True

    async def update_last_ip(self, license_id, ip):
        self._check()
        license = self.licenses.get(license_id)
        if license is None or license.locked:
            return False
        self._replace(license_id, last_ip=ip)
        return True

    async def record_warning(self, license_id, ip, lock_threshold):
        self._check()
        if license_id not in self.licenses:
            raise LicenseNotFoundError()
        license = self.licenses[license_id]
        count = license.warning_count + 1
        newly_locked = not license.locked and count >= lock_threshold
        updated = self._replace(
            license_id,
            warning_count=count,
            last_ip=ip,
            locked=license.locked or newly_locked,
        )
        return WarningUpdate(
            warning_count=count, locked=updated.locked, newly_locked=newly_locked
        )

    async def set_locked(self, license_id, locked):
        self._check()
        if license_id not in self.licenses:
            return None
        return self._replace(license_id, locked=locked)

    def _past_expiry(self, now):
        return [
            l for l in self.licenses.values()
            if l.expires_at is not None and l.expires_at < now and not l.is_expired
        ]

    async def bulk_mark_expired(self, now):
        self._check()
        expired = self._past_expiry(now)
        for license in expired:
            self._replace(license.id, is_expired=True)
        return len(expired)

    async def count_past_expiry(self, now):
        self._check()
        return len(self._past_expiry(now))

    async def find_expiring_between(self, start, end):
        self._check()
        found = [
            l for l in self.licenses.values()
            if not l.is_expired
            and not l.locked
            and l.expires_at is not None
            and start <= l.expires_at <= end
        ]
        return sorted(found, key=lambda l: l.expires_at)


class InMemoryAccessLogRepository(AccessLogRepository):
    """AccessLogRepository keeping entries in a list."""

    def __init__(self):
        self.entries = []

    async def create(self, access_log):
        self.entries.append(access_log)
        return access_log

    def for_license(self, license_id):
        return [e for e in self.entries if e.license_id == license_id]

    async def count_risky_since(self, license_id, since):
        return sum(1 for e in self.for_license(license_id) if e.is_risky and e.accessed_at >= since)

    async def count_for_license(self, license_id):
        return len(self.for_license(license_id))

    async def find_common_ips(self, license_id, limit=3):
        counts = Counter(e.ip for e in self.for_license(license_id))
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [ip for ip, _ in ranked[:limit]]

    async def find_last_access_time(self, license_id):
        times = [e.accessed_at for e in self.for_license(license_id)]
        return max(times) if times else None


class RecordingNotifier(Notifier):
    """
    Notifier recording every call.

    Kinds listed in ``failing`` return a failed result; kinds listed in
    ``raising`` raise like a misbehaving provider client.
    """

    def __init__(self, failing=(), raising=()):
        self.calls = []
        self.failing = set(failing)
        self.raising = set(raising)

    def _result(self, kind, *args):
        self.calls.append((kind,) + args)
        if kind in self.raising:
            raise RuntimeError("provider API rejected request")
        if kind in self.failing:
            return NotificationResult.failed(f"{kind} delivery failed")
        return NotificationResult.sent(f"<{kind}-{len(self.calls)}@test>")

    def sent(self, kind):
        return [call for call in self.calls if call[0] == kind]

    async def send_license_code(self, email, code):
        return self._result("license_code", email, code)

    async def send_security_warning(self, email, ip):
        return self._result("security_warning", email, ip)

    async def send_account_lock(self, email, reason):
        return self._result("account_lock", email, reason)

    async def send_expiration_reminder(self, email, code, expires_at, days_left):
        return self._result("expiration_reminder", email, code, expires_at, days_left)


class RecordingEventHandler(EventHandler):
    """Collects published events."""

    def __init__(self):
        self.events = []

    async def handle(self, event):
        self.events.append(event)

    def of_type(self, event_type):
        return [e for e in self.events if isinstance(e, event_type)]


def make_license(**overrides) -> License:
    """Build a License entity with sensible defaults."""
    values = {
        "id": uuid.uuid4(),
        "code": "ABCD-EFGH-IJKL-MNOP-Q",
        "email": "owner@example.com",
        "purchase_amount": Decimal("99.00"),
        "remark": "",
        "is_used": False,
        "locked": False,
        "is_expired": False,
        "expires_at": None,
        "last_ip": None,
        "warning_count": 0,
        "created_at": NOW - timedelta(days=30),
        "updated_at": NOW - timedelta(days=30),
    }
    values.update(overrides)
    return License(**values)


def make_risky_logs(license: License, count: int, at: datetime = NOW):
    """Build risky access log entries of a license within the last hour."""
    return [
        AccessLog.create(
            license_id=license.id,
            email=license.email,
            ip=f"10.0.0.{i + 1}",
            is_risky=True,
            accessed_at=at - timedelta(minutes=10 * (i + 1)),
        )
        for i in range(count)
    ]


@pytest.fixture
def clock():
    """Fixture for a fixed clock."""
    return lambda: NOW


@pytest.fixture
def license_repository():
    """Fixture for an in-memory LicenseRepository."""
    return InMemoryLicenseRepository()


@pytest.fixture
def access_log_repository():
    """Fixture for an in-memory AccessLogRepository."""
    return InMemoryAccessLogRepository()


@pytest.fixture
def notifier():
    """Fixture for a RecordingNotifier."""
    return RecordingNotifier()


@pytest.fixture
def risk_policy():
    """Fixture for the default RiskPolicy."""
    return RiskPolicy()


@pytest.fixture
def recorded_events():
    """Fixture subscribing a recorder to every license event."""
    recorder = RecordingEventHandler()
    event_types = (
        LicenseIssued,
        RiskyAccessDetected,
        LicenseLocked,
        LicenseUnlocked,
        LicenseExpired,
        LicenseDeleted,
    )
    for event_type in event_types:
        event_bus.subscribe(event_type, recorder)
    yield recorder
    for event_type in event_types:
        event_bus.unsubscribe(event_type, recorder)


@pytest.fixture
def django_license_repository():
    """Fixture for the Django LicenseRepository."""
    return DjangoLicenseRepository()


@pytest.fixture
def django_access_log_repository():
    """Fixture for the Django AccessLogRepository."""
    return DjangoAccessLogRepository()


@pytest.fixture
def now():
    """Fixture for the fixed current time."""
    return NOW


@pytest.fixture
def license_factory():
    """Fixture for the License entity factory."""
    return make_license


@pytest.fixture
def risky_logs_factory():
    """Fixture for the risky access log factory."""
    return make_risky_logs
