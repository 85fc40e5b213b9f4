from .bus import Event, EventBus, Subscription
from .record_events import PageLoadedEvent, RecordsChangedEvent, TagsReconciledEvent

__all__ = [
    "Event",
    "EventBus",
    "PageLoadedEvent",
    "RecordsChangedEvent",
    "Subscription",
    "TagsReconciledEvent",
]
