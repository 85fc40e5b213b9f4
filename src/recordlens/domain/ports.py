"""Collaborator contracts consumed by the controllers.

Concrete transports live outside this package; anything structurally
matching these protocols can be plugged in (tests use ``AsyncMock``).
Search and listing endpoints may return raw mappings, which the
controllers coerce with :meth:`Record.from_payload`.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence, Union

from .models import Record, SearchPage

RecordLike = Union[Record, Mapping[str, Any]]


class RecordSearchApi(Protocol):
    async def search_records(
        self, text: str, filter: Optional[str], page: int
    ) -> Union[SearchPage, Mapping[str, Any]]:
        """Return one server-filtered page: ``items`` plus the declared ``total``."""
        ...


class RecordListApi(Protocol):
    async def list_all_records(self) -> Sequence[RecordLike]: ...


class RecordDetailApi(Protocol):
    async def get_record(self, record_id: str) -> RecordLike: ...


class TagApi(Protocol):
    async def get_tags_for(self, record_id: str) -> Sequence[str]: ...

    async def add_tag(self, record_id: str, tag: str) -> bool: ...

    async def remove_tag(self, record_id: str, tag: str) -> bool: ...


class RecordUpdateApi(Protocol):
    async def update_record(self, record_id: str, fields: Mapping[str, Any]) -> bool: ...


class Notifier(Protocol):
    def notify_success(self, message: str) -> None: ...

    def notify_error(self, message: str) -> None: ...


class Navigator(Protocol):
    def navigate_to(self, target: str) -> None: ...
