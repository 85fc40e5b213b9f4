"""ScreenSession: the controllers owned by one screen activation.

A session wires the collaborators once, hands out controllers that share
its event bus and error handler, and disposes all of them on ``close()``
so no timer or task outlives the screen.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from recordlens.application.services.record_service import RecordService
from recordlens.application.services.tag_reconciler import TagReconciler
from recordlens.application.use_cases.rename_record import (
    RenameRecordRequest,
    RenameRecordResponse,
    RenameRecordUseCase,
)
from recordlens.config import DEBOUNCE_WINDOW_MS, LISTING_DEBOUNCE_WINDOW_MS
from recordlens.domain.models.core import Record
from recordlens.domain.models.query import Query, SortKey, SortOrder
from recordlens.domain.ports import Navigator, Notifier
from recordlens.errors.handler import ErrorHandler
from recordlens.events.bus import EventBus
from recordlens.settings.schema import DEFAULT_SETTINGS
from recordlens.viewmodels.base import BaseController
from recordlens.viewmodels.search_pagination import SearchPaginationController
from recordlens.viewmodels.sorted_filter import SortedFilterController
from recordlens.viewmodels.tag_editor import TagEditor

LOGGER = logging.getLogger(__name__)


class ScreenSession:
    """Factory and lifetime scope for the controllers of one screen.

    *api* is any object implementing the ports it is used for (search,
    listing, detail, tag and update endpoints); *settings* is a mapping
    shaped like :data:`DEFAULT_SETTINGS` or a ``SettingsManager``.
    """

    def __init__(
        self,
        api: Any,
        *,
        notifier: Optional[Notifier] = None,
        navigator: Optional[Navigator] = None,
        settings: Any = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._api = api
        self._notifier = notifier
        self._navigator = navigator
        self._settings = settings if settings is not None else DEFAULT_SETTINGS
        self.event_bus = event_bus or EventBus()
        self.errors = ErrorHandler(
            logging.getLogger("recordlens"), self.event_bus, notifier
        )
        self.records = RecordService(api, api, self.event_bus)
        self.tags = TagReconciler(api, self.event_bus)
        self._controllers: List[BaseController] = []
        self._closed = False

    # -- settings ----------------------------------------------------------

    def _setting(self, key: str, default: Any = None) -> Any:
        if not isinstance(self._settings, dict):
            return self._settings.get(key, default)
        target: Any = self._settings
        for part in key.split("."):
            if not isinstance(target, dict) or part not in target:
                return default
            target = target[part]
        return target

    # -- controller factories ----------------------------------------------

    def search(self) -> SearchPaginationController:
        enricher = self.records.enrich if self._setting("search.enrich_records", False) else None
        controller = SearchPaginationController(
            self._api,
            error_handler=self.errors,
            event_bus=self.event_bus,
            debounce_ms=self._setting("search.debounce_ms", DEBOUNCE_WINDOW_MS),
            initial_query=Query(filter=self._setting("search.default_filter")),
            enricher=enricher,
        )
        return self._own(controller)

    def listing(self) -> SortedFilterController:
        controller = SortedFilterController(
            self._api,
            error_handler=self.errors,
            event_bus=self.event_bus,
            debounce_ms=self._setting("listing.debounce_ms", LISTING_DEBOUNCE_WINDOW_MS),
            sort_key=SortKey(self._setting("listing.sort_key", SortKey.UPDATED.value)),
            sort_order=SortOrder(self._setting("listing.sort_order", SortOrder.DESC.value)),
        )
        return self._own(controller)

    def tag_editor(self, record_id: str, baseline: Iterable[str] = ()) -> TagEditor:
        editor = TagEditor(
            self.tags,
            record_id,
            baseline,
            notifier=self._notifier,
            error_handler=self.errors,
        )
        return self._own(editor)

    async def rename(self, record_id: str, title: str) -> RenameRecordResponse:
        use_case = RenameRecordUseCase(self.records, self._notifier)
        return await use_case.execute(RenameRecordRequest(record_id=record_id, title=title))

    def open_record(self, record: Record) -> None:
        """Route to the record's detail view through the navigation sink."""
        if self._navigator is None:
            raise RuntimeError("No navigator configured for this session")
        self._navigator.navigate_to(f"/records/{record.id}")

    # -- lifecycle ---------------------------------------------------------

    def _own(self, controller):
        if self._closed:
            raise RuntimeError("ScreenSession is closed")
        self._controllers.append(controller)
        return controller

    def close(self) -> None:
        """Dispose every controller created by this session."""
        if self._closed:
            return
        self._closed = True
        for controller in self._controllers:
            controller.dispose()
        self._controllers.clear()
        LOGGER.debug("Screen session closed")

    def __enter__(self) -> "ScreenSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
