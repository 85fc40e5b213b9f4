"""BaseController: lifecycle owner for subscriptions, timers and tasks.

A controller lives for one screen session.  Everything it arms (event-bus
subscriptions, debounce channels, background tasks) is tracked here so
``dispose()`` leaves nothing behind that could fire into torn-down state.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Coroutine, Set, Type, TypeVar

from recordlens.application.services.debouncer import Debouncer
from recordlens.events.bus import EventBus, Subscription

D = TypeVar("D", bound=Debouncer)

_logger = logging.getLogger(__name__)


class BaseController:
    """Controller base class."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._debouncers: list[Debouncer] = []
        self._tasks: Set[asyncio.Task] = set()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe_event(
        self,
        event_bus: EventBus,
        event_type: Type,
        handler: Callable,
    ) -> Subscription:
        """Subscribe to an event type and track the subscription."""
        sub = event_bus.subscribe(event_type, handler)
        self._subscriptions.append(sub)
        return sub

    def own_debouncer(self, debouncer: D) -> D:
        """Track *debouncer* so it is closed on :meth:`dispose`."""
        self._debouncers.append(debouncer)
        return debouncer

    def spawn(self, coro: Coroutine) -> asyncio.Task:
        """Run *coro* as a task that is cancelled on :meth:`dispose`."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for pending debounce timers and spawned tasks to settle."""
        while True:
            for debouncer in self._debouncers:
                await debouncer.wait_idle()
            if not self._tasks:
                break
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def dispose(self) -> None:
        """Cancel subscriptions, debounce timers and in-flight tasks."""
        if self._disposed:
            return
        self._disposed = True
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions.clear()
        for debouncer in self._debouncers:
            debouncer.close()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        _logger.debug("%s disposed", type(self).__name__)
