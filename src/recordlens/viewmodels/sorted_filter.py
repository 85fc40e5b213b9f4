"""SortedFilterController: local filter and ordering over a resident collection.

Used where the authoritative set is small enough to load in full.  Typing
is debounced only to avoid recompute thrash; no keystroke reaches the
network.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from recordlens.application.services.debouncer import Debouncer
from recordlens.application.services.record_filter import filter_and_sort
from recordlens.config import LISTING_DEBOUNCE_WINDOW_MS
from recordlens.domain.models.core import Record, coerce_record
from recordlens.domain.models.query import SortKey, SortOrder
from recordlens.domain.ports import RecordListApi
from recordlens.errors import NetworkFailure
from recordlens.errors.handler import ErrorHandler, ErrorSeverity
from recordlens.events.bus import EventBus
from recordlens.events.record_events import RecordsChangedEvent
from recordlens.viewmodels.base import BaseController
from recordlens.viewmodels.signal import ObservableProperty, Signal


class SortedFilterController(BaseController):
    """Derives ``view`` from the resident items, the filter text and the sort.

    Every transition (:meth:`set_items`, the settled :meth:`set_query`,
    :meth:`set_sort`) recomputes the derived list synchronously.
    """

    def __init__(
        self,
        api: Optional[RecordListApi] = None,
        *,
        error_handler: Optional[ErrorHandler] = None,
        event_bus: Optional[EventBus] = None,
        debounce_ms: int = LISTING_DEBOUNCE_WINDOW_MS,
        sort_key: SortKey = SortKey.UPDATED,
        sort_order: SortOrder = SortOrder.DESC,
    ) -> None:
        super().__init__()
        self._api = api
        self._errors = error_handler or ErrorHandler(event_bus=event_bus)
        self._logger = logging.getLogger(__name__)

        self._items: List[Record] = []
        self._text = ""
        self._sort_key = sort_key
        self._sort_order = sort_order
        self._text_channel: Debouncer[str] = self.own_debouncer(
            Debouncer(self._apply_query, debounce_ms, name="listing-filter")
        )

        # Observable properties
        self.view = ObservableProperty([], "view")
        self.loading = ObservableProperty(False, "loading")

        # Signals
        self.error_occurred = Signal("error_occurred")

        if event_bus is not None and api is not None:
            self.subscribe_event(event_bus, RecordsChangedEvent, self._on_records_changed)

    # -- properties --------------------------------------------------------

    @property
    def items(self) -> List[Record]:
        return list(self._items)

    @property
    def query_text(self) -> str:
        return self._text

    @property
    def sort(self) -> tuple[SortKey, SortOrder]:
        return self._sort_key, self._sort_order

    # -- public API --------------------------------------------------------

    def set_items(self, records: Sequence[Record]) -> None:
        """Replace the resident collection and recompute the view."""
        self._items = [coerce_record(record) for record in records]
        self._recompute()

    def set_query(self, text: str) -> None:
        """Debounce a recompute with the new filter text."""
        self._text_channel.schedule(text)

    def set_sort(self, key: SortKey, order: SortOrder = SortOrder.ASC) -> None:
        """Apply a new ordering at once."""
        self._sort_key = SortKey(key)
        self._sort_order = SortOrder(order)
        self._recompute()

    async def reload(self) -> bool:
        """Re-read the full collection; the view is left untouched on failure."""
        if self._api is None:
            raise RuntimeError("SortedFilterController has no RecordListApi to reload from")
        self.loading.value = True
        try:
            records = await self._api.list_all_records()
        except Exception as exc:
            error = NetworkFailure("Loading records", exc)
            self._errors.handle(error, ErrorSeverity.ERROR, {"operation": "list_all_records"})
            self.error_occurred.emit(str(error))
            return False
        finally:
            self.loading.value = False
        self.set_items(records)
        return True

    # -- internal ----------------------------------------------------------

    def _apply_query(self, text: str) -> None:
        self._text = text
        self._recompute()

    def _recompute(self) -> None:
        view = filter_and_sort(self._items, self._text, self._sort_key, self._sort_order)
        self._logger.debug(
            "View recomputed: %d of %d records match %r", len(view), len(self._items), self._text
        )
        self.view.force(view)

    def _on_records_changed(self, event: RecordsChangedEvent) -> None:
        if self.disposed:
            return
        self.spawn(self.reload())
