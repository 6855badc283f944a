"""
License query handlers.

Administrative read-only views: inspection, details with risk statistics,
and listing by owner.
"""
from datetime import datetime
from typing import Callable, List, Optional

from django.utils import timezone

from core.domain.exceptions import LicenseNotFoundError
from core.domain.value_objects import RiskLevel
from licenses.application.dto.license_dto import (
    InspectDetailsDTO,
    InspectResultDTO,
    LicenseDetailsDTO,
    LicenseDTO,
    LicenseStatsDTO,
)
from licenses.application.queries.get_license_details import GetLicenseDetailsQuery
from licenses.application.queries.inspect_license import InspectLicenseQuery
from licenses.application.queries.list_licenses_by_email import ListLicensesByEmailQuery
from licenses.domain.access_log import AccessStats
from licenses.domain.license import License
from licenses.domain.masking import mask_records
from licenses.domain.services import DEFAULT_RISK_POLICY, RiskClassifier, RiskPolicy
from licenses.ports.access_log_repository import AccessLogRepository
from licenses.ports.license_repository import LicenseRepository


class InspectLicenseHandler:
    """Handler for InspectLicenseQuery."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.license_repository = license_repository
        self.clock = clock or timezone.now

    async def handle(self, query: InspectLicenseQuery) -> InspectResultDTO:
        """
        Handle inspect license query.

        Unlike verification this never changes the license.

        Args:
            query: InspectLicenseQuery

        Returns:
            InspectResultDTO
        """
        if query.license_id:
            license = await self.license_repository.find_by_id(query.license_id)
            if license is None:
                return InspectResultDTO(valid=False, message="License not found")
        elif query.email and query.code:
            license = await self.license_repository.find_by_email_and_code(
                query.email, query.code
            )
            if license is None:
                return InspectResultDTO(
                    valid=False, message="License code is invalid or does not match"
                )
        else:
            return InspectResultDTO(
                valid=False, message="Provide a license ID or an email and license code"
            )

        now = self.clock()
        expired = license.is_expired_at(now)
        return InspectResultDTO(
            valid=license.is_valid(now),
            message=self._message(license, expired),
            details=InspectDetailsDTO(
                is_used=license.is_used,
                locked=license.locked,
                expired=expired,
                expires_at=license.expires_at,
            ),
        )

    @staticmethod
    def _message(license: License, expired: bool) -> str:
        if license.locked:
            return "License code is locked"
        if expired:
            return "License code has expired"
        if not license.is_used:
            return "License code is valid and not used yet"
        return "License code is valid and in use"


class GetLicenseDetailsHandler:
    """Handler for GetLicenseDetailsQuery."""

    COMMON_IPS_LIMIT = 3

    def __init__(
        self,
        license_repository: LicenseRepository,
        access_log_repository: AccessLogRepository,
        policy: Optional[RiskPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.license_repository = license_repository
        self.access_log_repository = access_log_repository
        self.policy = policy or DEFAULT_RISK_POLICY
        self.clock = clock or timezone.now

    async def handle(self, query: GetLicenseDetailsQuery) -> LicenseDetailsDTO:
        """
        Handle get license details query.

        Args:
            query: GetLicenseDetailsQuery

        Returns:
            LicenseDetailsDTO with the unmasked license and its statistics

        Raises:
            LicenseNotFoundError: If license not found
        """
        license = await self.license_repository.find_by_id(query.license_id)
        if license is None:
            raise LicenseNotFoundError(f"License {query.license_id} not found")

        since = self.policy.window_start(self.clock())
        stats = AccessStats(
            total_accesses=await self.access_log_repository.count_for_license(license.id),
            recent_risky_accesses=await self.access_log_repository.count_risky_since(
                license.id, since
            ),
            common_ips=await self.access_log_repository.find_common_ips(
                license.id, self.COMMON_IPS_LIMIT
            ),
            last_access_time=await self.access_log_repository.find_last_access_time(license.id),
        )
        risk_level = RiskClassifier.classify(license, stats)

        return LicenseDetailsDTO(
            license=LicenseDTO.from_entity(license),
            stats=LicenseStatsDTO(
                total_accesses=stats.total_accesses,
                common_ips=list(stats.common_ips),
                recent_risky_accesses=stats.recent_risky_accesses,
                last_access_time=stats.last_access_time,
                risk_level=str(risk_level),
                is_risky=risk_level != RiskLevel.SAFE,
            ),
        )


class ListLicensesByEmailHandler:
    """Handler for ListLicensesByEmailQuery."""

    def __init__(self, license_repository: LicenseRepository):
        self.license_repository = license_repository

    async def handle(self, query: ListLicensesByEmailQuery) -> List[LicenseDTO]:
        """
        Handle list licenses by email query.

        Args:
            query: ListLicensesByEmailQuery

        Returns:
            List of LicenseDTO with masked codes
        """
        licenses = await self.license_repository.find_by_email(query.email)
        return mask_records([LicenseDTO.from_entity(license) for license in licenses])
