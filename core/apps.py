"""
App configuration for the core app.
"""
from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Wires observability and domain event handlers once apps are loaded."""

    name = "core"
    verbose_name = "License Guard Core"

    def ready(self):
        """Called when Django starts."""
        from core.infrastructure.event_handlers import register_event_handlers
        from core.instrumentation import setup_opentelemetry

        setup_opentelemetry()
        register_event_handlers()
