"""SearchPaginationController: query text, filter and paged accumulation.

Typed text is debounced before the search is re-issued; filter changes
apply at once.  Every reset starts a new epoch, and a page response is
applied only if it still belongs to the current epoch.
"""

from __future__ import annotations

import logging
from typing import Optional

from recordlens.application.services.debouncer import Debouncer
from recordlens.application.services.paginated_loader import (
    Enricher,
    PageResult,
    PageState,
    PaginatedRecordLoader,
)
from recordlens.config import DEBOUNCE_WINDOW_MS, FIRST_PAGE
from recordlens.domain.models.query import Query
from recordlens.domain.ports import RecordSearchApi
from recordlens.errors import NetworkFailure, RecordLensError
from recordlens.errors.handler import ErrorHandler, ErrorSeverity
from recordlens.events.bus import EventBus
from recordlens.events.record_events import PageLoadedEvent
from recordlens.viewmodels.base import BaseController
from recordlens.viewmodels.signal import ObservableProperty, Signal

_UNCHANGED = object()


class SearchPaginationController(BaseController):
    """Keeps the displayed record list in step with query, filter and paging.

    Observable state (``items``, ``loading``, ``exhausted``,
    ``declared_total``, ``current_page``) mirrors :class:`PageState` after
    every transition.  ``page_loaded`` emits ``(page, appended_records)``
    and ``error_occurred`` emits the failure message.
    """

    def __init__(
        self,
        api: RecordSearchApi,
        *,
        error_handler: Optional[ErrorHandler] = None,
        event_bus: Optional[EventBus] = None,
        debounce_ms: int = DEBOUNCE_WINDOW_MS,
        initial_query: Query = Query(),
        enricher: Optional[Enricher] = None,
    ) -> None:
        super().__init__()
        self._loader = PaginatedRecordLoader(api, enricher=enricher)
        self._errors = error_handler or ErrorHandler(event_bus=event_bus)
        self._event_bus = event_bus
        self._logger = logging.getLogger(__name__)

        self._query = initial_query
        self._loaded_query: Optional[Query] = None
        self._state = PageState()
        self._epoch = 0
        self._text_channel: Debouncer[Query] = self.own_debouncer(
            Debouncer(self._on_query_settled, debounce_ms, name="search-text")
        )

        # Observable properties
        self.items = ObservableProperty([], "items")
        self.loading = ObservableProperty(False, "loading")
        self.exhausted = ObservableProperty(False, "exhausted")
        self.declared_total = ObservableProperty(None, "declared_total")
        self.current_page = ObservableProperty(FIRST_PAGE, "current_page")

        # Signals
        self.page_loaded = Signal("page_loaded")
        self.error_occurred = Signal("error_occurred")

    # -- properties --------------------------------------------------------

    @property
    def query(self) -> Query:
        return self._query

    @property
    def loaded_query(self) -> Optional[Query]:
        """The query of the current epoch; its items are valid once page 1 is applied."""
        return self._loaded_query

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def state(self) -> PageState:
        return self._state

    @property
    def can_load_more(self) -> bool:
        return self._state.first_page_loaded and self._state.can_load_more

    @property
    def has_pending_query(self) -> bool:
        return self._text_channel.is_pending

    # -- public API --------------------------------------------------------

    def set_query(self, text: str, filter=_UNCHANGED) -> bool:
        """Update the query and debounce a reload; return ``False`` when unchanged."""
        new_filter = self._query.filter if filter is _UNCHANGED else filter
        new_query = Query(text=text, filter=new_filter).normalized()
        if new_query == self._query:
            return False
        self._query = new_query
        self._text_channel.schedule(new_query)
        return True

    async def set_filter_immediate(self, filter: Optional[str]) -> None:
        """Switch the filter and reload without waiting for the debounce window."""
        # A stale text-only reload must not land after the filter change.
        self._text_channel.cancel()
        self._query = self._query.with_filter(filter)
        if self._is_loaded(self._query):
            return
        await self._reset_and_reload(self._query)

    async def reload(self) -> None:
        """Restart the current query from page 1, even if it is unchanged."""
        self._text_channel.cancel()
        await self._reset_and_reload(self._query)

    async def load_next_page(self) -> bool:
        """Fetch the page after the last applied one.

        No-op (returns ``False``) while a fetch is in flight, before page 1
        of the current epoch has been applied, or once exhausted.
        """
        state = self._state
        if state.exhausted or state.loading or not state.first_page_loaded:
            return False
        if self._loaded_query is None:
            return False
        await self._fetch_page(self._loaded_query, state.current_page + 1, self._epoch)
        return True

    # -- internal ----------------------------------------------------------

    def _is_loaded(self, query: Query) -> bool:
        # A query whose first page failed is not loaded.
        return self._state.first_page_loaded and query == self._loaded_query

    async def _on_query_settled(self, query: Query) -> None:
        if self._is_loaded(query):
            self._logger.debug("Query %r already loaded; skipping reload", query)
            return
        await self._reset_and_reload(query)

    async def _reset_and_reload(self, query: Query) -> None:
        self._epoch += 1
        self._loaded_query = query
        self._state.reset()
        self._publish_state()
        self._logger.debug("Epoch %d started for %r", self._epoch, query)
        await self._fetch_page(query, FIRST_PAGE, self._epoch)

    async def _fetch_page(self, query: Query, page: int, epoch: int) -> None:
        self._state.loading = True
        self.loading.value = True
        try:
            result = await self._loader.fetch(query, page, epoch)
        except RecordLensError as exc:
            self._on_fetch_failed(exc, page, epoch)
        except Exception as exc:
            self._on_fetch_failed(NetworkFailure(f"Loading page {page}", exc), page, epoch)
        else:
            self._apply(result)
        finally:
            if epoch == self._epoch:
                self._state.loading = False
                self.loading.value = False

    def _apply(self, result: PageResult) -> None:
        if result.epoch != self._epoch:
            self._logger.debug(
                "Discarding page %d of epoch %d (current epoch %d)",
                result.page,
                result.epoch,
                self._epoch,
            )
            return

        appended = self._state.apply_page(result)
        self._publish_state()
        self._logger.info(
            "Applied page %d: %d new, %d loaded of %s",
            result.page,
            len(appended),
            len(self._state.accumulated_items),
            self._state.declared_total,
        )
        self.page_loaded.emit(result.page, appended)
        if self._event_bus is not None:
            self._event_bus.publish(
                PageLoadedEvent(
                    epoch=result.epoch,
                    page=result.page,
                    item_count=len(result.items),
                    accumulated_count=len(self._state.accumulated_items),
                    declared_total=self._state.declared_total,
                    exhausted=self._state.exhausted,
                )
            )

    def _on_fetch_failed(self, error: Exception, page: int, epoch: int) -> None:
        if epoch != self._epoch:
            self._logger.debug("Ignoring failure of superseded epoch %d: %s", epoch, error)
            return
        self._errors.handle(
            error,
            ErrorSeverity.ERROR,
            {"page": page, "epoch": epoch, "query": self._loaded_query},
        )
        self.error_occurred.emit(str(error))

    def _publish_state(self) -> None:
        state = self._state
        self.items.force(list(state.accumulated_items))
        self.declared_total.value = state.declared_total
        self.current_page.value = state.current_page
        self.exhausted.value = state.exhausted
