"""
License service.

Single entry point for callers (transport layers, Celery tasks, management
commands) that wires the license handlers to their collaborators.
"""
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional

from licenses.application.commands.delete_license import DeleteLicenseCommand
from licenses.application.commands.expiration import (
    MarkExpiredLicensesCommand,
    SendExpirationRemindersCommand,
)
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.commands.log_access import LogAccessCommand
from licenses.application.commands.toggle_lock import ToggleLockCommand
from licenses.application.commands.update_license import UpdateLicenseCommand
from licenses.application.commands.verify_license import VerifyLicenseCommand
from licenses.application.dto.license_dto import (
    ExpirySweepResultDTO,
    InspectResultDTO,
    IssueLicenseResultDTO,
    LicenseDetailsDTO,
    LicenseDTO,
    LogAccessResultDTO,
    ReminderSummaryDTO,
    ToggleLockResultDTO,
    VerificationResultDTO,
)
from licenses.application.handlers.expiration_handlers import (
    MarkExpiredLicensesHandler,
    SendExpirationRemindersHandler,
)
from licenses.application.handlers.issue_license_handler import IssueLicenseHandler
from licenses.application.handlers.license_admin_handlers import (
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
from licenses.application.handlers.verify_license_handler import VerifyLicenseHandler
from licenses.application.queries.get_license_details import GetLicenseDetailsQuery
from licenses.application.queries.inspect_license import InspectLicenseQuery
from licenses.application.queries.list_licenses_by_email import ListLicensesByEmailQuery
from licenses.domain.license_code import LicenseCodeConfig
from licenses.domain.services import LicenseCodeAllocator, RiskPolicy
from licenses.ports.access_log_repository import AccessLogRepository
from licenses.ports.license_repository import LicenseRepository
from licenses.ports.notifier import Notifier


class LicenseService:
    """
    Facade over the license handlers.

    Args:
        license_repository: License persistence
        access_log_repository: AccessLog persistence
        notifier: Owner notifications
        code_config: Codec configuration for issued codes
        policy: Risk thresholds
        reminder_days_ahead: Default reminder horizon
        clock: Returns the current aware datetime (defaults to Django's)
    """

    def __init__(
        self,
        license_repository: LicenseRepository,
        access_log_repository: AccessLogRepository,
        notifier: Notifier,
        code_config: Optional[LicenseCodeConfig] = None,
        policy: Optional[RiskPolicy] = None,
        reminder_days_ahead: int = 7,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.license_repository = license_repository
        self.access_log_repository = access_log_repository
        self.notifier = notifier
        self.allocator = LicenseCodeAllocator(code_config)
        self.policy = policy or RiskPolicy()
        self.reminder_days_ahead = reminder_days_ahead
        self.clock = clock

    async def issue(
        self,
        email: str,
        purchase_amount: Decimal,
        remark: str = "",
        expires_at: Optional[datetime] = None,
    ) -> IssueLicenseResultDTO:
        handler = IssueLicenseHandler(
            self.license_repository, self.notifier, self.allocator, clock=self.clock
        )
        return await handler.handle(
            IssueLicenseCommand(
                email=email,
                purchase_amount=purchase_amount,
                remark=remark,
                expires_at=expires_at,
            )
        )

    async def verify(self, email: str, code: str, ip: str) -> VerificationResultDTO:
        handler = VerifyLicenseHandler(
            self.license_repository,
            self.access_log_repository,
            self.notifier,
            policy=self.policy,
            clock=self.clock,
        )
        return await handler.handle(VerifyLicenseCommand(email=email, code=code, ip=ip))

    async def log_access(
        self, email: str, code: str, ip: str, page_path: Optional[str] = None
    ) -> LogAccessResultDTO:
        handler = LogAccessHandler(
            self.license_repository, self.access_log_repository, clock=self.clock
        )
        return await handler.handle(
            LogAccessCommand(email=email, code=code, ip=ip, page_path=page_path)
        )

    async def admin_inspect(
        self,
        license_id: Optional[uuid.UUID] = None,
        email: Optional[str] = None,
        code: Optional[str] = None,
    ) -> InspectResultDTO:
        handler = InspectLicenseHandler(self.license_repository, clock=self.clock)
        return await handler.handle(
            InspectLicenseQuery(license_id=license_id, email=email, code=code)
        )

    async def get_details(self, license_id: uuid.UUID) -> LicenseDetailsDTO:
        handler = GetLicenseDetailsHandler(
            self.license_repository,
            self.access_log_repository,
            policy=self.policy,
            clock=self.clock,
        )
        return await handler.handle(GetLicenseDetailsQuery(license_id=license_id))

    async def list_by_email(self, email: str) -> List[LicenseDTO]:
        handler = ListLicensesByEmailHandler(self.license_repository)
        return await handler.handle(ListLicensesByEmailQuery(email=email))

    async def update(
        self,
        license_id: uuid.UUID,
        email: Optional[str] = None,
        remark: Optional[str] = None,
        purchase_amount: Optional[Decimal] = None,
        expires_at: Optional[datetime] = None,
    ) -> LicenseDTO:
        handler = UpdateLicenseHandler(self.license_repository, clock=self.clock)
        return await handler.handle(
            UpdateLicenseCommand(
                license_id=license_id,
                email=email,
                remark=remark,
                purchase_amount=purchase_amount,
                expires_at=expires_at,
            )
        )

    async def delete(self, license_id: uuid.UUID) -> bool:
        handler = DeleteLicenseHandler(self.license_repository)
        return await handler.handle(DeleteLicenseCommand(license_id=license_id))

    async def toggle_lock(self, license_id: uuid.UUID, locked: bool) -> ToggleLockResultDTO:
        handler = ToggleLockHandler(self.license_repository)
        return await handler.handle(ToggleLockCommand(license_id=license_id, locked=locked))

    async def run_expiry_sweep(self, dry_run: bool = False) -> ExpirySweepResultDTO:
        handler = MarkExpiredLicensesHandler(self.license_repository, clock=self.clock)
        return await handler.handle(MarkExpiredLicensesCommand(dry_run=dry_run))

    async def send_reminders(self, days_ahead: Optional[int] = None) -> ReminderSummaryDTO:
        handler = SendExpirationRemindersHandler(
            self.license_repository, self.notifier, clock=self.clock
        )
        if days_ahead is None:
            days_ahead = self.reminder_days_ahead
        return await handler.handle(SendExpirationRemindersCommand(days_ahead=days_ahead))

    async def generate_codes(self, count: int) -> List[str]:
        """Allocate ``count`` store-unique codes without persisting them."""
        return await self.allocator.allocate_many(count, self.license_repository.exists_by_code)


def build_license_service() -> LicenseService:
    """Build a LicenseService wired to the Django adapters and settings."""
    from django.conf import settings

    from licenses.infrastructure.notifiers.django_email_notifier import DjangoEmailNotifier
    from licenses.infrastructure.repositories.django_access_log_repository import (
        DjangoAccessLogRepository,
    )
    from licenses.infrastructure.repositories.django_license_repository import (
        DjangoLicenseRepository,
    )

    return LicenseService(
        license_repository=DjangoLicenseRepository(),
        access_log_repository=DjangoAccessLogRepository(),
        notifier=DjangoEmailNotifier(),
        code_config=LicenseCodeConfig(max_attempts=settings.LICENSE_CODE_MAX_ATTEMPTS),
        policy=RiskPolicy(
            warning_threshold=settings.LICENSE_WARNING_THRESHOLD,
            lock_threshold=settings.LICENSE_LOCK_THRESHOLD,
            window=timedelta(hours=settings.LICENSE_RISK_WINDOW_HOURS),
        ),
        reminder_days_ahead=settings.LICENSE_REMINDER_DAYS_AHEAD,
    )
