"""Tests for SearchPaginationController."""

from __future__ import annotations

import asyncio

import pytest

from recordlens.domain.models.query import Query
from recordlens.errors.handler import ErrorHandler
from recordlens.events.bus import EventBus
from recordlens.events.record_events import PageLoadedEvent
from recordlens.viewmodels.search_pagination import SearchPaginationController

from fakes import ManualSearchApi, PagedSearchApi, make_record

WINDOW_MS = 50


def _records(count: int):
    return [make_record(i) for i in range(count)]


def _ids(records):
    return [r.id for r in records]


@pytest.fixture
def paged_api():
    return PagedSearchApi(_records(45), page_size=20)


# ---------------------------------------------------------------------------
# Debounced query
# ---------------------------------------------------------------------------


class TestDebouncedQuery:
    @pytest.mark.asyncio
    async def test_keystroke_burst_issues_one_request(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=WINDOW_MS)

        for text in ("h", "he", "hel"):
            controller.set_query(text)
            await asyncio.sleep(0.01)
        assert paged_api.calls == []

        await controller.wait_idle()

        assert paged_api.calls == [("hel", None, 1)]
        assert controller.loaded_query == Query("hel")
        controller.dispose()

    @pytest.mark.asyncio
    async def test_query_text_is_trimmed(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=0)

        controller.set_query("  abc  ")
        await controller.wait_idle()

        assert paged_api.calls == [("abc", None, 1)]
        controller.dispose()

    @pytest.mark.asyncio
    async def test_unchanged_query_is_rejected(self, paged_api):
        controller = SearchPaginationController(
            paged_api, debounce_ms=WINDOW_MS, initial_query=Query("x")
        )

        assert controller.set_query(" x ") is False
        assert not controller.has_pending_query
        controller.dispose()

    @pytest.mark.asyncio
    async def test_settling_back_on_loaded_query_skips_request(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=WINDOW_MS)
        await controller.reload()

        assert controller.set_query("a") is True
        assert controller.set_query("") is True
        await controller.wait_idle()

        assert paged_api.calls == [("", None, 1)]
        controller.dispose()

    @pytest.mark.asyncio
    async def test_set_query_can_change_filter(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=0)

        controller.set_query("t", filter="mine")
        await controller.wait_idle()

        assert paged_api.calls == [("t", "mine", 1)]
        controller.dispose()


# ---------------------------------------------------------------------------
# Filter changes
# ---------------------------------------------------------------------------


class TestFilterChanges:
    @pytest.mark.asyncio
    async def test_filter_applies_without_waiting(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=10_000)

        await controller.set_filter_immediate("shared")

        assert paged_api.calls == [("", "shared", 1)]
        assert len(controller.items.value) == 20
        controller.dispose()

    @pytest.mark.asyncio
    async def test_filter_change_supersedes_pending_text(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=WINDOW_MS)

        controller.set_query("typed")
        await controller.set_filter_immediate("mine")
        await asyncio.sleep(WINDOW_MS / 1000 * 2)
        await controller.wait_idle()

        assert paged_api.calls == [("typed", "mine", 1)]
        controller.dispose()

    @pytest.mark.asyncio
    async def test_same_filter_does_not_reload(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=WINDOW_MS)

        await controller.set_filter_immediate("mine")
        await controller.set_filter_immediate("mine")

        assert len(paged_api.calls) == 1
        controller.dispose()


# ---------------------------------------------------------------------------
# Paging
# ---------------------------------------------------------------------------


class TestPaging:
    @pytest.mark.asyncio
    async def test_pages_accumulate_until_exhausted(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=WINDOW_MS)
        await controller.reload()

        assert len(controller.items.value) == 20
        assert controller.declared_total.value == 45
        assert controller.can_load_more

        assert await controller.load_next_page() is True
        assert len(controller.items.value) == 40
        assert controller.current_page.value == 2

        assert await controller.load_next_page() is True
        assert _ids(controller.items.value) == _ids(_records(45))
        assert controller.exhausted.value is True

        assert await controller.load_next_page() is False
        assert [call[2] for call in paged_api.calls] == [1, 2, 3]
        controller.dispose()

    @pytest.mark.asyncio
    async def test_load_more_before_first_page_is_ignored(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=WINDOW_MS)

        assert await controller.load_next_page() is False
        assert paged_api.calls == []
        controller.dispose()

    @pytest.mark.asyncio
    async def test_load_more_while_loading_is_ignored(self):
        api = ManualSearchApi()
        controller = SearchPaginationController(api, debounce_ms=WINDOW_MS)

        first = asyncio.ensure_future(controller.reload())
        await asyncio.sleep(0)
        assert controller.loading.value is True
        assert await controller.load_next_page() is False

        api.calls[0].resolve(_records(20), 45)
        await first

        second = asyncio.ensure_future(controller.load_next_page())
        await asyncio.sleep(0)
        assert await controller.load_next_page() is False

        api.calls[1].resolve([make_record(i) for i in range(20, 40)], 45)
        assert await second is True
        assert [call.page for call in api.calls] == [1, 2]
        controller.dispose()

    @pytest.mark.asyncio
    async def test_empty_first_page_is_exhausted(self):
        api = PagedSearchApi([], total=None)
        controller = SearchPaginationController(api, debounce_ms=WINDOW_MS)

        await controller.reload()

        assert controller.items.value == []
        assert controller.exhausted.value is True
        assert await controller.load_next_page() is False
        controller.dispose()

    @pytest.mark.asyncio
    async def test_shrinking_total_is_clamped(self):
        api = ManualSearchApi()
        controller = SearchPaginationController(api, debounce_ms=WINDOW_MS)

        task = asyncio.ensure_future(controller.reload())
        await asyncio.sleep(0)
        api.calls[0].resolve(_records(20), 45)
        await task

        task = asyncio.ensure_future(controller.load_next_page())
        await asyncio.sleep(0)
        api.calls[1].resolve([make_record(i) for i in range(20, 25)], 10)
        await task

        assert controller.declared_total.value == 25
        assert controller.exhausted.value is True
        controller.dispose()

    @pytest.mark.asyncio
    async def test_page_loaded_signal_and_event(self, paged_api):
        bus = EventBus()
        events = []
        bus.subscribe(PageLoadedEvent, events.append)
        controller = SearchPaginationController(paged_api, event_bus=bus, debounce_ms=0)
        emitted = []
        controller.page_loaded.connect(lambda page, appended: emitted.append((page, len(appended))))

        await controller.reload()
        await controller.load_next_page()

        assert emitted == [(1, 20), (2, 20)]
        assert [(e.page, e.accumulated_count, e.exhausted) for e in events] == [
            (1, 20, False),
            (2, 40, False),
        ]
        assert events[0].declared_total == 45
        controller.dispose()


# ---------------------------------------------------------------------------
# Epochs
# ---------------------------------------------------------------------------


class TestEpochs:
    @pytest.mark.asyncio
    async def test_stale_response_is_discarded(self):
        api = ManualSearchApi()
        controller = SearchPaginationController(
            api, debounce_ms=WINDOW_MS, initial_query=Query("old")
        )

        old = asyncio.ensure_future(controller.reload())
        await asyncio.sleep(0)
        new = asyncio.ensure_future(controller.set_filter_immediate("f"))
        await asyncio.sleep(0)
        assert controller.epoch == 2

        api.calls[1].resolve([make_record(100)], 1)
        await new
        api.calls[0].resolve([make_record(1), make_record(2)], 2)
        await old

        assert _ids(controller.items.value) == ["rec-100"]
        assert controller.loading.value is False
        assert controller.loaded_query == Query("old", "f")
        controller.dispose()

    @pytest.mark.asyncio
    async def test_stale_failure_is_ignored(self, notifier):
        api = ManualSearchApi()
        controller = SearchPaginationController(
            api,
            debounce_ms=WINDOW_MS,
            error_handler=ErrorHandler(notifier=notifier),
        )
        errors = []
        controller.error_occurred.connect(errors.append)

        old = asyncio.ensure_future(controller.reload())
        await asyncio.sleep(0)
        new = asyncio.ensure_future(controller.reload())
        await asyncio.sleep(0)

        api.calls[0].fail(ConnectionError("late"))
        await old
        api.calls[1].resolve([make_record(1)], 1)
        await new

        assert errors == []
        assert notifier.errors == []
        assert _ids(controller.items.value) == ["rec-1"]
        controller.dispose()

    @pytest.mark.asyncio
    async def test_reset_clears_accumulated_items(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=0)
        await controller.reload()
        await controller.load_next_page()

        snapshots = []
        controller.items.changed.connect(lambda new, old: snapshots.append(len(new)))
        controller.set_query("again")
        await controller.wait_idle()

        assert snapshots == [0, 20]
        assert controller.current_page.value == 1
        controller.dispose()


# ---------------------------------------------------------------------------
# Failures and lifecycle
# ---------------------------------------------------------------------------


class TestFailures:
    @pytest.mark.asyncio
    async def test_failed_page_reports_and_keeps_items(self, paged_api, notifier):
        controller = SearchPaginationController(
            paged_api,
            debounce_ms=0,
            error_handler=ErrorHandler(notifier=notifier),
        )
        errors = []
        controller.error_occurred.connect(errors.append)
        await controller.reload()

        paged_api.fail_next = ConnectionError("offline")
        await controller.load_next_page()

        assert len(controller.items.value) == 20
        assert controller.loading.value is False
        assert controller.current_page.value == 1
        assert len(errors) == 1 and "offline" in errors[0]
        assert len(notifier.errors) == 1

        # The same page can be retried.
        assert await controller.load_next_page() is True
        assert len(controller.items.value) == 40
        controller.dispose()

    @pytest.mark.asyncio
    async def test_same_filter_retries_failed_first_page(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=WINDOW_MS)
        paged_api.fail_next = ConnectionError("offline")

        await controller.set_filter_immediate("mine")
        assert controller.items.value == []

        await controller.set_filter_immediate("mine")

        assert paged_api.calls == [("", "mine", 1), ("", "mine", 1)]
        assert len(controller.items.value) == 20
        controller.dispose()

    @pytest.mark.asyncio
    async def test_typing_back_to_failed_text_retries(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=WINDOW_MS)
        paged_api.fail_next = ConnectionError("offline")

        controller.set_query("gear")
        await controller.wait_idle()
        assert controller.items.value == []

        controller.set_query("gea")
        controller.set_query("gear")
        await controller.wait_idle()

        assert paged_api.calls == [("gear", None, 1), ("gear", None, 1)]
        assert len(controller.items.value) == 20
        controller.dispose()

    @pytest.mark.asyncio
    async def test_dispose_cancels_pending_query(self, paged_api):
        controller = SearchPaginationController(paged_api, debounce_ms=WINDOW_MS)

        controller.set_query("never")
        controller.dispose()
        await asyncio.sleep(WINDOW_MS / 1000 * 2)

        assert paged_api.calls == []
        assert controller.disposed
