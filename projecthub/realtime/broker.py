"""In-process change broker: committed row changes → subscriber queues."""

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


def _filter_value(value: Any) -> str:
    value = jsonable_encoder(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class ChangeEvent:
    """One committed change of one row."""

    table: str
    event: str
    record: dict[str, Any] = field(default_factory=dict)

    def matches(self, filters: Mapping[str, Any]) -> bool:
        """
        Column equality filter.

        Values are compared in their JSON form: filters usually arrive from a
        query string (``?status=done``) while the record holds enums and bools.
        """
        for column, expected in filters.items():
            if column not in self.record:
                return False
            if _filter_value(self.record[column]) != _filter_value(expected):
                return False
        return True

    def to_message(self) -> dict[str, Any]:
        return {"table": self.table, "event": self.event, "record": self.record}


class Subscription:
    """
    A consumer's view of one table, optionally narrowed by column filters.

    Events are buffered in a bounded queue; when the consumer falls behind
    the oldest buffered event is dropped. Subscribers only use events as a
    signal to refetch, so losing an old one is harmless.
    """

    def __init__(
        self, broker: "ChangeBroker", table: str, filters: Mapping[str, Any], maxsize: int
    ):
        self.broker = broker
        self.table = table
        self.filters = dict(filters)
        self.queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0
        self.closed = False

    def wants(self, change: ChangeEvent) -> bool:
        return change.table == self.table and change.matches(self.filters)

    def deliver(self, change: ChangeEvent) -> None:
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
        self.queue.put_nowait(change)

    async def get(self) -> ChangeEvent:
        return await self.queue.get()

    def pending(self) -> list[ChangeEvent]:
        """Drain what is buffered right now without waiting."""
        events = []
        while not self.queue.empty():
            events.append(self.queue.get_nowait())
        return events

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.broker.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class ChangeBroker:
    """Fan-out of change events to the subscriptions that match them."""

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscriptions: list[Subscription] = []

    def subscribe(self, table: str, **filters: Any) -> Subscription:
        subscription = Subscription(self, table, filters, self.queue_size)
        self._subscriptions.append(subscription)
        logger.debug("Subscribed", extra={"table": table, "filters": filters})
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug("Unsubscribed", extra={"table": subscription.table})

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, changes: Iterable[ChangeEvent]) -> int:
        """Deliver changes to every matching subscription; returns deliveries made."""
        delivered = 0
        for change in changes:
            for subscription in list(self._subscriptions):
                if subscription.wants(change):
                    subscription.deliver(change)
                    delivered += 1
        return delivered
