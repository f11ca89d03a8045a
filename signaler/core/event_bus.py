"""
Fan-out of engine events to front-end consumers.

Delivery is best-effort: a listener that fails or has gone away loses the event,
and nothing is queued for later.
"""

import asyncio
import logging
from collections.abc import Callable

from signaler.models.events import EngineEvent, TerminatedEvent

log = logging.getLogger(__name__)

Listener = Callable[[EngineEvent], None]

_CLOSED = object()


class EventSubscription:
    """
    An async-iterable queue of events. Iteration ends when the subscription is
    closed; `until_terminated()` additionally stops after a run's final event.
    """

    def __init__(self, bus: "EventBus"):
        self._bus = bus
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def __call__(self, event: EngineEvent) -> None:
        if self.closed:
            return
        self._queue.put_nowait(event)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._bus.remove_listener(self)
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> EngineEvent:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    async def until_terminated(self, run_id: str):
        """Yields events up to and including the TerminatedEvent for `run_id`."""
        async for event in self:
            yield event
            if isinstance(event, TerminatedEvent) and event.run_id == run_id:
                return

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class EventBus:
    """Publishes each event to every registered listener, in registration order."""

    def __init__(self):
        self._listeners: list[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def subscribe(self) -> EventSubscription:
        subscription = EventSubscription(self)
        self.add_listener(subscription)
        return subscription

    def publish(self, event: EngineEvent) -> int:
        """Returns how many listeners accepted the event."""
        delivered = 0
        for listener in list(self._listeners):
            try:
                listener(event)
                delivered += 1
            except Exception as e:
                log.debug(f"Dropping engine event for failed listener {listener!r}: {e}")
        return delivered
