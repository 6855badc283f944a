"""
Django implementation of AccessLogRepository port.
"""
import uuid
from datetime import datetime
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db.models import Count, Max

from core.infrastructure.database import translate_store_errors
from licenses.domain.access_log import AccessLog
from licenses.infrastructure.models import AccessLog as AccessLogModel
from licenses.ports.access_log_repository import AccessLogRepository


class DjangoAccessLogRepository(AccessLogRepository):
    """Django ORM implementation of AccessLogRepository."""

    def _to_domain(self, model: AccessLogModel) -> AccessLog:
        return AccessLog(
            id=model.id,
            license_id=model.license_id,
            email=model.email,
            ip=model.ip,
            is_risky=model.is_risky,
            accessed_at=model.accessed_at,
        )

    @sync_to_async
    @translate_store_errors
    def create(self, access_log: AccessLog) -> AccessLog:
        model = AccessLogModel.objects.create(
            id=access_log.id,
            license_id=access_log.license_id,
            email=access_log.email,
            ip=access_log.ip,
            is_risky=access_log.is_risky,
            accessed_at=access_log.accessed_at,
        )
        return self._to_domain(model)

    @sync_to_async
    @translate_store_errors
    def count_risky_since(self, license_id: uuid.UUID, since: datetime) -> int:
        return AccessLogModel.objects.filter(
            license_id=license_id, is_risky=True, accessed_at__gte=since
        ).count()

    @sync_to_async
    @translate_store_errors
    def count_for_license(self, license_id: uuid.UUID) -> int:
        return AccessLogModel.objects.filter(license_id=license_id).count()

    @sync_to_async
    @translate_store_errors
    def find_common_ips(self, license_id: uuid.UUID, limit: int = 3) -> List[str]:
        """
        Find the most frequent IPs of a license.

        Ties are broken by IP so the result is deterministic.
        """
        rows = (
            AccessLogModel.objects.filter(license_id=license_id)
            .values("ip")
            .annotate(hits=Count("id"))
            .order_by("-hits", "ip")[:limit]
        )
        return [row["ip"] for row in rows]

    @sync_to_async
    @translate_store_errors
    def find_last_access_time(self, license_id: uuid.UUID) -> Optional[datetime]:
        result = AccessLogModel.objects.filter(license_id=license_id).aggregate(
            last=Max("accessed_at")
        )
        return result["last"]
