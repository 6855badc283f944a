"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from asgiref.sync import sync_to_async
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from core.domain.exceptions import LicenseNotFoundError
from core.infrastructure.database import translate_store_errors
from licenses.domain.access_log import WarningUpdate
from licenses.domain.license import License
from licenses.infrastructure.models import License as LicenseModel
from licenses.ports.license_repository import LicenseRepository

UPDATABLE_FIELDS = {"email", "remark", "purchase_amount", "expires_at"}


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    State transitions on the risk path are single conditional UPDATE
    statements so they stay correct under concurrent verification.
    """

    def _to_domain(self, model: LicenseModel) -> License:
        """
        Convert Django model to domain entity.

        Args:
            model: Django License model

        Returns:
            License domain entity
        """
        return License(
            id=model.id,
            code=model.code,
            email=model.email,
            purchase_amount=model.purchase_amount,
            remark=model.remark,
            is_used=model.is_used,
            locked=model.locked,
            is_expired=model.is_expired,
            expires_at=model.expires_at,
            last_ip=model.last_ip,
            warning_count=model.warning_count,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _get(self, **lookup) -> Optional[License]:
        try:
            return self._to_domain(LicenseModel.objects.get(**lookup))
        except LicenseModel.DoesNotExist:
            return None

    @sync_to_async
    @translate_store_errors
    def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        return self._get(id=license_id)

    @sync_to_async
    @translate_store_errors
    def find_by_code(self, code: str) -> Optional[License]:
        return self._get(code=code)

    @sync_to_async
    @translate_store_errors
    def find_by_email_and_code(self, email: str, code: str) -> Optional[License]:
        return self._get(email=email, code=code)

    @sync_to_async
    @translate_store_errors
    def find_by_email(self, email: str) -> List[License]:
        models = LicenseModel.objects.filter(email=email).order_by("-created_at")
        return [self._to_domain(model) for model in models]

    @sync_to_async
    @translate_store_errors
    def exists_by_code(self, code: str) -> bool:
        return LicenseModel.objects.filter(code=code).exists()

    @sync_to_async
    @translate_store_errors
    def create(self, license: License) -> License:
        """
        Persist a new license.

        Args:
            license: License entity to create

        Returns:
            Created license entity
        """
        model = LicenseModel.objects.create(
            id=license.id,
            code=license.code,
            email=license.email,
            purchase_amount=license.purchase_amount,
            remark=license.remark,
            is_used=license.is_used,
            locked=license.locked,
            is_expired=license.is_expired,
            expires_at=license.expires_at,
            last_ip=license.last_ip,
            warning_count=license.warning_count,
            created_at=license.created_at,
        )
        return self._to_domain(model)

    @sync_to_async
    @translate_store_errors
    def update(self, license_id: uuid.UUID, changes: Dict[str, Any]) -> Optional[License]:
        """
        Apply a partial update of administrative fields.

        Args:
            license_id: License UUID
            changes: Field names mapped to new values

        Returns:
            Updated license entity or None if not found

        Raises:
            ValueError: If a field outside the administrative set is given
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        updated = LicenseModel.objects.filter(id=license_id).update(
            updated_at=timezone.now(), **changes
        )
        if not updated:
            return None
        return self._get(id=license_id)

    @sync_to_async
    @translate_store_errors
    def delete(self, license_id: uuid.UUID) -> bool:
        deleted, _ = LicenseModel.objects.filter(id=license_id).delete()
        return deleted > 0

    @sync_to_async
    @translate_store_errors
    def mark_used(self, license_id: uuid.UUID) -> None:
        LicenseModel.objects.filter(id=license_id, is_used=False).update(
            is_used=True, updated_at=timezone.now()
        )

    @sync_to_async
    @translate_store_errors
    def mark_expired(self, license_id: uuid.UUID) -> bool:
        updated = LicenseModel.objects.filter(id=license_id, is_expired=False).update(
            is_expired=True, updated_at=timezone.now()
        )
        return updated > 0

    @sync_to_async
    @translate_store_errors
    def update_last_ip(self, license_id: uuid.UUID, ip: str) -> bool:
        updated = LicenseModel.objects.filter(id=license_id, locked=False).update(
            last_ip=ip, updated_at=timezone.now()
        )
        return updated > 0

    @sync_to_async
    @translate_store_errors
    def record_warning(
        self, license_id: uuid.UUID, ip: str, lock_threshold: int
    ) -> WarningUpdate:
        """
        Atomically increment ``warning_count`` and evaluate the lock threshold.

        The row is locked for the duration of the transaction, so concurrent
        risky attempts are serialized and each sees its own post-increment
        count.

        Args:
            license_id: License UUID
            ip: IP of the risky attempt
            lock_threshold: Warning count at which the license is locked

        Returns:
            WarningUpdate with the post-increment state

        Raises:
            LicenseNotFoundError: If the license no longer exists
        """
        with transaction.atomic():
            try:
                model = LicenseModel.objects.select_for_update().get(id=license_id)
            except LicenseModel.DoesNotExist:
                raise LicenseNotFoundError()

            now = timezone.now()
            LicenseModel.objects.filter(id=license_id).update(
                warning_count=F("warning_count") + 1, last_ip=ip, updated_at=now
            )
            model.refresh_from_db(fields=["warning_count", "locked"])

            newly_locked = False
            if not model.locked and model.warning_count >= lock_threshold:
                LicenseModel.objects.filter(id=license_id).update(locked=True, updated_at=now)
                newly_locked = True

            return WarningUpdate(
                warning_count=model.warning_count,
                locked=model.locked or newly_locked,
                newly_locked=newly_locked,
            )

    @sync_to_async
    @translate_store_errors
    def set_locked(self, license_id: uuid.UUID, locked: bool) -> Optional[License]:
        updated = LicenseModel.objects.filter(id=license_id).update(
            locked=locked, updated_at=timezone.now()
        )
        if not updated:
            return None
        return self._get(id=license_id)

    @sync_to_async
    @translate_store_errors
    def bulk_mark_expired(self, now: datetime) -> int:
        """
        Flip ``is_expired`` for every license past its expiration.

        A single set-based UPDATE; rows touched concurrently by verification
        are never read back and rewritten.
        """
        return LicenseModel.objects.filter(
            expires_at__lt=now, is_expired=False
        ).update(is_expired=True, updated_at=timezone.now())

    @sync_to_async
    @translate_store_errors
    def count_past_expiry(self, now: datetime) -> int:
        return LicenseModel.objects.filter(expires_at__lt=now, is_expired=False).count()

    @sync_to_async
    @translate_store_errors
    def find_expiring_between(self, start: datetime, end: datetime) -> List[License]:
        models = LicenseModel.objects.filter(
            is_expired=False,
            locked=False,
            expires_at__gte=start,
            expires_at__lte=end,
        ).order_by("expires_at")
        return [self._to_domain(model) for model in models]
