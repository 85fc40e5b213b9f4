"""Observer primitives the controllers publish their state through.

``Signal`` fans a call out to connected handlers; ``ObservableProperty``
wraps a value and emits ``changed(new, old)`` when it is replaced.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")

_logger = logging.getLogger(__name__)


class Signal:
    """Ordered list of handlers invoked by :meth:`emit`.

    A failing handler is logged and skipped; the remaining handlers still
    run, so one broken view binding cannot stall a controller transition.
    """

    def __init__(self, name: str = "") -> None:
        self._name = name
        self._handlers: list[Callable] = []
        self._lock = threading.Lock()

    def connect(self, handler: Callable) -> Callable:
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)
        return handler

    def disconnect(self, handler: Callable) -> None:
        with self._lock:
            self._handlers.remove(handler)

    def emit(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(*args, **kwargs)
            except Exception as exc:
                _logger.error("Signal %s handler %r failed: %s", self._name or "?", handler, exc)

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._handlers)


class ObservableProperty(Generic[T]):
    """Value holder that emits ``changed(new_value, old_value)`` on change.

    Assigning an equal value is silent.  Use :meth:`force` to notify
    observers even when the value compares equal (e.g. a list rebuilt with
    the same contents after a reset).
    """

    def __init__(self, initial_value: Optional[T] = None, name: str = "") -> None:
        self._value = initial_value
        self.changed = Signal(name)

    @property
    def value(self) -> T:
        return self._value  # type: ignore[return-value]

    @value.setter
    def value(self, new_value: T) -> None:
        if self._value != new_value:
            self.force(new_value)

    def force(self, new_value: T) -> None:
        old_value = self._value
        self._value = new_value
        self.changed.emit(new_value, old_value)
