"""In-process change notifications for clients, tasks and stage history.

Subscribers register a callback per entity type (``"*"`` for everything) and
get a handle whose ``unsubscribe`` detaches them. Published events also land
in a bounded replay buffer so polling readers can ask for everything after
the last sequence number they saw.
"""

from __future__ import annotations

import itertools
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)

ALL_ENTITIES = "*"


@dataclass(frozen=True)
class ChangeEvent:
    entity_type: str
    action: str
    entity_id: str
    data: dict[str, Any] = field(default_factory=dict)
    sequence: int = 0
    occurred_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "entity_type": self.entity_type,
            "action": self.action,
            "entity_id": self.entity_id,
            "data": self.data,
            "occurred_at": self.occurred_at.isoformat() if self.occurred_at else None,
        }


Listener = Callable[[ChangeEvent], None]


class Subscription:
    def __init__(self, feed: "ChangeFeed", entity_type: str, listener: Listener) -> None:
        self._feed = feed
        self.entity_type = entity_type
        self.listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._feed._remove(self)
            self.active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.unsubscribe()


class ChangeFeed:
    """Publish/subscribe hub with a replay buffer."""

    def __init__(self, buffer_size: int = 500) -> None:
        self._subscriptions: list[Subscription] = []
        self._buffer: deque[ChangeEvent] = deque(maxlen=buffer_size)
        self._sequence = itertools.count(1)
        self._lock = Lock()

    def subscribe(self, entity_type: str, listener: Listener) -> Subscription:
        subscription = Subscription(self, entity_type, listener)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def publish(self, event: ChangeEvent) -> ChangeEvent:
        with self._lock:
            stamped = ChangeEvent(
                entity_type=event.entity_type,
                action=event.action,
                entity_id=event.entity_id,
                data=dict(event.data),
                sequence=next(self._sequence),
                occurred_at=event.occurred_at or datetime.now(timezone.utc),
            )
            self._buffer.append(stamped)
            targets = [
                sub for sub in self._subscriptions if sub.entity_type in {ALL_ENTITIES, stamped.entity_type}
            ]

        for subscription in targets:
            try:
                subscription.listener(stamped)
            except Exception:
                logger.exception(
                    "change_feed.listener_failed",
                    extra={"event": "change_feed.listener_failed", "entity_type": stamped.entity_type},
                )
        return stamped

    def events_since(self, sequence: int = 0, entity_type: str | None = None) -> list[ChangeEvent]:
        with self._lock:
            events = list(self._buffer)
        return [
            item
            for item in events
            if item.sequence > sequence and (entity_type in {None, ALL_ENTITIES} or item.entity_type == entity_type)
        ]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)
