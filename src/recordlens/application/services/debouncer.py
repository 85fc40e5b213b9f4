"""Trailing-edge debouncer bound to the running asyncio event loop.

One :class:`Debouncer` is one logical channel: at most a single timer is
pending, and every :meth:`Debouncer.schedule` call cancels the previous
timer before arming a new one, so only the last value of a burst fires.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Set, TypeVar, Union

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DebounceState(Generic[T]):
    """Snapshot of a channel: the value waiting to fire and its loop deadline."""

    pending_value: Optional[T] = None
    deadline: Optional[float] = None

    @property
    def is_pending(self) -> bool:
        return self.deadline is not None


class Debouncer(Generic[T]):
    """Run *callback* with the latest value once *window_ms* pass without a new one.

    The callback may be a plain function or a coroutine function.  Coroutine
    callbacks run as tasks owned by the debouncer so that :meth:`close`
    can cancel them together with the timer.
    """

    def __init__(
        self,
        callback: Callable[[T], Union[Awaitable[Any], Any]],
        window_ms: int,
        *,
        name: str = "debounce",
    ) -> None:
        if window_ms < 0:
            raise ValueError("window_ms must be >= 0")
        self._callback = callback
        self._window_ms = window_ms
        self._name = name
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending_value: Optional[T] = None
        self._deadline: Optional[float] = None
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    # -- properties --------------------------------------------------------

    @property
    def window_ms(self) -> int:
        return self._window_ms

    @property
    def state(self) -> DebounceState[T]:
        return DebounceState(pending_value=self._pending_value, deadline=self._deadline)

    @property
    def is_pending(self) -> bool:
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    # -- public API --------------------------------------------------------

    def schedule(self, value: T, window_ms: Optional[int] = None) -> None:
        """Record *value* as pending and restart the quiescence timer."""
        if self._closed:
            LOGGER.debug("[%s] schedule ignored after close", self._name)
            return
        loop = asyncio.get_running_loop()
        self._cancel_timer()
        delay = (self._window_ms if window_ms is None else window_ms) / 1000.0
        self._pending_value = value
        self._deadline = loop.time() + delay
        self._handle = loop.call_later(delay, self._fire)

    def cancel(self) -> None:
        """Drop the pending value; nothing fires."""
        if self._handle is not None:
            LOGGER.debug("[%s] pending value discarded", self._name)
        self._cancel_timer()

    def flush(self) -> bool:
        """Fire the pending value now instead of waiting for the deadline.

        Returns ``True`` when a value was pending.
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def close(self) -> None:
        """Tear the channel down: cancel the timer and any running callback task."""
        self._closed = True
        self._cancel_timer()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    async def wait_idle(self) -> None:
        """Wait until no timer is pending and every callback task has finished."""
        loop = asyncio.get_running_loop()
        while self._handle is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(max(0.0, (self._deadline or 0.0) - loop.time()))

    # -- internal ----------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._pending_value = None
        self._deadline = None

    def _fire(self) -> None:
        value = self._pending_value
        self._handle = None
        self._pending_value = None
        self._deadline = None
        if self._closed:
            return

        try:
            result = self._callback(value)
        except Exception as exc:
            LOGGER.error("[%s] debounced callback failed: %s", self._name, exc)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("[%s] debounced callback failed: %s", self._name, exc)
