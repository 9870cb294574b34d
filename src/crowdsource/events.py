"""
Best-effort report event side channel.

Subscribers (notifications, audit trails) run after the primary operation
has committed. Their failures are logged and kept in ``failures``; they
never change the outcome of the operation that published the event.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class ReportEventType(str, Enum):
    """Events published by the report service."""
    CREATED = "report.created"
    STATUS_CHANGED = "report.status_changed"
    UPDATED = "report.updated"
    DELETED = "report.deleted"


@dataclass
class ReportEvent:
    """Something that happened to a report."""
    type: ReportEventType
    report_id: str
    actor_id: str
    payload: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "report_id": self.report_id,
            "actor_id": self.actor_id,
            "payload": self.payload,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass
class DeliveryFailure:
    """A subscriber that raised while handling an event."""
    event: ReportEvent
    subscriber: str
    error: str


Subscriber = Callable[[ReportEvent], None]


class ReportEventBus:
    """Synchronous fan-out to subscribers with isolated failures."""

    def __init__(self, max_failures: int = 100):
        self._subscribers: List[Subscriber] = []
        self.failures: List[DeliveryFailure] = []
        self.max_failures = max_failures

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def publish(self, event: ReportEvent) -> int:
        """
        Deliver an event to every subscriber.

        Returns:
            Number of subscribers that handled the event without error
        """
        delivered = 0
        for subscriber in self._subscribers:
            name = getattr(subscriber, "__qualname__", repr(subscriber))
            try:
                subscriber(event)
                delivered += 1
            except Exception as e:
                logger.error(f"Event subscriber {name} failed on {event.type.value}: {e}")
                self.failures.append(DeliveryFailure(event, name, str(e)))
                del self.failures[:-self.max_failures]
        return delivered
