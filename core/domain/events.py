"""
Domain event base classes.

Every event concerns a single license and is published on the in-process
bus after the state change it describes has been persisted.
"""

import dataclasses
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """
    Base class for license events.

    Subclasses are frozen dataclasses that add their own fields after
    ``license_id``; those fields make up the event ``payload``.
    """

    license_id: uuid.UUID
    occurred_at: datetime = field(default_factory=_utcnow, kw_only=True)
    event_id: uuid.UUID = field(default_factory=uuid.uuid4, kw_only=True)

    @property
    def event_type(self) -> str:
        return type(self).__name__

    @property
    def aggregate_id(self) -> str:
        return str(self.license_id)

    def payload(self) -> Dict[str, Optional[str]]:
        """Event-specific fields as strings, keyed by field name."""
        values = {}
        for f in dataclasses.fields(self):
            if f.name in ("occurred_at", "event_id"):
                continue
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            values[f.name] = None if value is None else str(value)
        return values

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


class EventHandler(ABC):
    """Receives published events of the types it is subscribed to."""

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        pass


class EventBus(ABC):
    """Publish/subscribe contract for domain events."""

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        pass

    @abstractmethod
    def subscribe(self, event_type: type, handler: EventHandler) -> None:
        pass

    @abstractmethod
    def unsubscribe(self, event_type: type, handler: EventHandler) -> None:
        pass
