"""
Base Django settings for LicenseGuardService.

These settings are shared across all environments.
Environment-specific overrides are in dev.py, test.py, and prod.py
"""
import os
from datetime import timedelta
from pathlib import Path

from celery.schedules import crontab

from .logging import get_logging_config

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-4m#q0v!r8t1x^k2@zl9w&e7c$y5n3b6h(j)p+s_d-f=g0u"
)

# Application definition
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # Local apps
    "core.apps.CoreConfig",
    "licenses",
]

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {},
    },
]

# Database
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DB_NAME", "license_guard"),
        "USER": os.environ.get("DB_USER", "postgres"),
        "PASSWORD": os.environ.get("DB_PASSWORD", "postgres"),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "OPTIONS": {
            "connect_timeout": 10,
        },
    }
}

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Email
EMAIL_BACKEND = os.environ.get("EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend")
EMAIL_HOST = os.environ.get("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.environ.get("EMAIL_PORT", "25"))
EMAIL_HOST_USER = os.environ.get("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.environ.get("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = os.environ.get("EMAIL_USE_TLS", "false").lower() == "true"
EMAIL_TIMEOUT = 10
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "License Guard <no-reply@localhost>")
EMAIL_MESSAGE_ID_DOMAIN = os.environ.get("EMAIL_MESSAGE_ID_DOMAIN", "license-guard.local")

# License engine
LICENSE_WARNING_THRESHOLD = int(os.environ.get("LICENSE_WARNING_THRESHOLD", "3"))
LICENSE_LOCK_THRESHOLD = int(os.environ.get("LICENSE_LOCK_THRESHOLD", "5"))
LICENSE_RISK_WINDOW_HOURS = int(os.environ.get("LICENSE_RISK_WINDOW_HOURS", "24"))
LICENSE_CODE_MAX_ATTEMPTS = int(os.environ.get("LICENSE_CODE_MAX_ATTEMPTS", "10"))
LICENSE_REMINDER_DAYS_AHEAD = int(os.environ.get("LICENSE_REMINDER_DAYS_AHEAD", "7"))

# Celery
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://127.0.0.1:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    "mark-expired-licenses": {
        "task": "licenses.tasks.mark_expired_licenses_task",
        "schedule": timedelta(hours=1),
    },
    "send-expiration-reminders": {
        "task": "licenses.tasks.send_expiration_reminders_task",
        "schedule": crontab(hour=9, minute=0),
        "kwargs": {"days_ahead": LICENSE_REMINDER_DAYS_AHEAD},
    },
}

# Observability
LOGGING = get_logging_config(os.environ.get("ENVIRONMENT", "development"))
