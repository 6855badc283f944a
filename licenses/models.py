"""
Django model discovery for the licenses app.

Models are defined in the infrastructure layer.
"""
from licenses.infrastructure.models import AccessLog, License  # noqa: F401
