import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="License",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("code", models.CharField(db_index=True, max_length=64, unique=True)),
                ("email", models.EmailField(db_index=True, max_length=254)),
                (
                    "purchase_amount",
                    models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12),
                ),
                ("remark", models.TextField(blank=True, default="")),
                ("is_used", models.BooleanField(default=False)),
                ("locked", models.BooleanField(db_index=True, default=False)),
                ("is_expired", models.BooleanField(db_index=True, default=False)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("last_ip", models.CharField(blank=True, max_length=45, null=True)),
                ("warning_count", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "licenses",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["email", "code"], name="licenses_email_a1c3f0_idx"),
                    models.Index(
                        fields=["is_expired", "expires_at"], name="licenses_is_expi_7d2b9e_idx"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AccessLog",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("email", models.EmailField(max_length=254)),
                ("ip", models.CharField(max_length=45)),
                ("is_risky", models.BooleanField(default=False)),
                ("accessed_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "license",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="access_logs",
                        to="licenses.license",
                    ),
                ),
            ],
            options={
                "db_table": "access_logs",
                "ordering": ["-accessed_at"],
                "indexes": [
                    models.Index(
                        fields=["license", "is_risky", "accessed_at"],
                        name="access_logs_license_5e8a21_idx",
                    ),
                    models.Index(fields=["license", "ip"], name="access_logs_license_b4f6c2_idx"),
                ],
            },
        ),
    ]
