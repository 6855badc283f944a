"""
Prometheus metrics for the license service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# Issuance metrics
licenses_issued_total = Counter(
    "licenses_issued_total",
    "Total license codes issued",
)

license_issue_failures_total = Counter(
    "license_issue_failures_total",
    "Total failed license issuances",
    ["reason"],
)

# Verification metrics
license_verifications_total = Counter(
    "license_verifications_total",
    "Total license verifications",
    ["outcome"],
)

license_verification_duration_seconds = Histogram(
    "license_verification_duration_seconds",
    "License verification duration in seconds",
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0],
)

risky_accesses_total = Counter(
    "risky_accesses_total",
    "Total verification attempts classified as risky",
)

licenses_locked_total = Counter(
    "licenses_locked_total",
    "Total licenses locked",
    ["trigger"],
)

# Lifecycle metrics
licenses_expired_total = Counter(
    "licenses_expired_total",
    "Total licenses marked expired",
    ["trigger"],
)

expiration_reminders_total = Counter(
    "expiration_reminders_total",
    "Total expiration reminders attempted",
    ["result"],
)

# Notification metrics
notifications_failed_total = Counter(
    "notifications_failed_total",
    "Total failed notifications",
    ["kind"],
)
