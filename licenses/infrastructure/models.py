"""
License and AccessLog models.
"""
import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone


class License(models.Model):
    """
    An issued license code.

    ``is_expired`` is a one-way cached flag, separate from the time-based
    ``expires_at`` check.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=64, unique=True, db_index=True)
    email = models.EmailField(db_index=True)
    purchase_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0")
    )
    remark = models.TextField(blank=True, default="")
    is_used = models.BooleanField(default=False)
    locked = models.BooleanField(default=False, db_index=True)
    is_expired = models.BooleanField(default=False, db_index=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    last_ip = models.CharField(max_length=45, null=True, blank=True)
    warning_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "licenses"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["email", "code"], name="licenses_email_a1c3f0_idx"),
            models.Index(fields=["is_expired", "expires_at"], name="licenses_is_expi_7d2b9e_idx"),
        ]

    def __str__(self):
        return self.code


class AccessLog(models.Model):
    """
    Immutable record of one verification attempt.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license = models.ForeignKey(
        License, on_delete=models.CASCADE, related_name="access_logs"
    )
    email = models.EmailField()
    ip = models.CharField(max_length=45)
    is_risky = models.BooleanField(default=False)
    accessed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "access_logs"
        ordering = ["-accessed_at"]
        indexes = [
            models.Index(
                fields=["license", "is_risky", "accessed_at"],
                name="access_logs_license_5e8a21_idx",
            ),
            models.Index(fields=["license", "ip"], name="access_logs_license_b4f6c2_idx"),
        ]

    def __str__(self):
        return f"{self.license_id} @ {self.ip}"
