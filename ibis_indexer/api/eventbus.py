"""In-memory publish/subscribe of indexed events for streaming clients."""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .query import Filter

SUBSCRIBER_BUFFER = 64

_CLOSED = object()


@dataclass
class StreamEvent:
    """An indexed event delivered to subscribers."""

    table: str = ""
    contract: str = ""
    event: str = ""
    block_number: int = 0
    log_index: int = 0
    data: dict[str, Any] = field(default_factory=dict)

    def event_id(self) -> str:
        """Stream event id in ``block:logIndex`` form."""
        return f"{self.block_number}:{self.log_index}"


class Subscription:
    """A bounded stream of events for one subscriber.

    ``get`` returns None once the subscription is closed and drained.
    """

    def __init__(self, sub_id: int, table: str, filters: Sequence[Filter]) -> None:
        self.id = sub_id
        self.table = table
        self.filters = tuple(filters)
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _offer(self, event: StreamEvent) -> bool:
        if self._closed or self._queue.qsize() >= SUBSCRIBER_BUFFER:
            return False
        self._queue.put_nowait(event)
        return True

    def _close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def get(self) -> StreamEvent | None:
        """Next event, or None when the subscription has been closed."""
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker for any other waiter or later call.
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> StreamEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class EventBus:
    """Delivers published events to matching subscribers.

    Publishing never blocks: a subscriber whose buffer is full misses the
    event. Use from the event loop's thread.
    """

    def __init__(self) -> None:
        self._subscribers: dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._closed = False

    def __len__(self) -> int:
        return len(self._subscribers)

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: StreamEvent) -> None:
        """Send ``event`` to every subscriber whose table and filters match."""
        if self._closed:
            return
        for sub in list(self._subscribers.values()):
            if sub.table and sub.table != event.table:
                continue
            if not match_filters(event.data, sub.filters):
                continue
            sub._offer(event)

    def subscribe(self, table: str, filters: Iterable[Filter] | None = None) -> Subscription:
        """Register a subscriber for ``table`` (empty for all) and field filters."""
        sub = Subscription(next(self._ids), table, list(filters or ()))
        self._subscribers[sub.id] = sub
        return sub

    def unsubscribe(self, sub_id: int) -> None:
        """Remove a subscriber and close its stream."""
        sub = self._subscribers.pop(sub_id, None)
        if sub is not None:
            sub._close()

    def close(self) -> None:
        """Stop publishing and close every subscriber's stream."""
        self._closed = True
        subscribers = list(self._subscribers.values())
        self._subscribers.clear()
        for sub in subscribers:
            sub._close()


def _format_value(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def match_filter(value: Any, flt: Filter) -> bool:
    """Check one filter; only ``eq`` and ``neq`` can reject a value."""
    if flt.operator == "eq":
        return _format_value(value) == _format_value(flt.value)
    if flt.operator == "neq":
        return _format_value(value) != _format_value(flt.value)
    return True


def match_filters(data: Mapping[str, Any], filters: Iterable[Filter]) -> bool:
    """True when ``data`` holds every filtered field and each filter matches."""
    for flt in filters:
        if flt.field not in data:
            return False
        if not match_filter(data[flt.field], flt):
            return False
    return True