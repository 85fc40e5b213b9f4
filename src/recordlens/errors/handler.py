import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from recordlens.domain.ports import Notifier
from recordlens.events.bus import Event, EventBus


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(kw_only=True)
class ErrorOccurredEvent(Event):
    error: Exception
    severity: ErrorSeverity
    context: dict = field(default_factory=dict)


class ErrorHandler:
    """Single exit point for failures the controllers recover from locally.

    Every handled error is logged, published as :class:`ErrorOccurredEvent`
    and, for ERROR and CRITICAL severities, forwarded to the notifier.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        event_bus: Optional[EventBus] = None,
        notifier: Optional[Notifier] = None,
    ):
        self._logger = logger or logging.getLogger(__name__)
        self._events = event_bus
        self._notifier = notifier

    def register_notifier(self, notifier: Notifier) -> None:
        self._notifier = notifier

    def handle(
        self,
        error: Exception,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[dict] = None,
    ) -> None:
        context = context or {}
        log_method = getattr(self._logger, severity.value, self._logger.error)
        log_method("%s: %s", error.__class__.__name__, error, extra={"context": context})

        if self._events is not None:
            self._events.publish(
                ErrorOccurredEvent(error=error, severity=severity, context=context)
            )

        if self._notifier is not None and severity in (
            ErrorSeverity.ERROR,
            ErrorSeverity.CRITICAL,
        ):
            self._notifier.notify_error(str(error))
