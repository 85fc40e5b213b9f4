from dataclasses import dataclass, field
from typing import Optional

from .bus import Event


@dataclass(kw_only=True)
class PageLoadedEvent(Event):
    epoch: int = 0
    page: int = 1
    item_count: int = 0
    accumulated_count: int = 0
    declared_total: Optional[int] = None
    exhausted: bool = False


@dataclass(kw_only=True)
class RecordsChangedEvent(Event):
    """A record was created, updated or deleted; resident collections are out of date."""
    record_ids: list[str] = field(default_factory=list)


@dataclass(kw_only=True)
class TagsReconciledEvent(Event):
    record_id: str = ""
    tags: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
