"""Page bookkeeping for server-side paged searches.

``PageState`` holds the accumulated records of one query epoch and decides
exhaustion; ``PaginatedRecordLoader`` issues the page fetches and tags
every result with the epoch it was issued under, so the owner can drop
responses that arrive after the query moved on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from recordlens.config import FIRST_PAGE
from recordlens.domain.models.core import Record, SearchPage
from recordlens.domain.models.query import Query
from recordlens.domain.ports import RecordSearchApi
from recordlens.errors import NetworkFailure, RecordLensError

LOGGER = logging.getLogger(__name__)

Enricher = Callable[[Sequence[Record]], Awaitable[Sequence[Record]]]


@dataclass(frozen=True)
class PageResult:
    """Result of fetching a single page."""

    items: Tuple[Record, ...] = ()
    page: int = FIRST_PAGE
    total: Optional[int] = None
    epoch: int = 0


@dataclass
class PageState:
    """Accumulated results of the current query epoch.

    ``accumulated_items`` only grows within an epoch; :meth:`reset` starts
    the next one.
    """

    current_page: int = FIRST_PAGE
    accumulated_items: List[Record] = field(default_factory=list)
    declared_total: Optional[int] = None
    exhausted: bool = False
    loading: bool = False
    first_page_loaded: bool = False

    # -- properties --------------------------------------------------------

    @property
    def can_load_more(self) -> bool:
        return not self.exhausted

    @property
    def next_page(self) -> int:
        return self.current_page + 1 if self.first_page_loaded else FIRST_PAGE

    # -- transitions -------------------------------------------------------

    def reset(self) -> None:
        """Start a new epoch from page 1 with nothing loaded."""
        self.current_page = FIRST_PAGE
        self.accumulated_items = []
        self.declared_total = None
        self.exhausted = False
        self.loading = False
        self.first_page_loaded = False

    def apply_page(self, result: PageResult) -> List[Record]:
        """Append *result* and recompute exhaustion; return the records appended.

        Records already present in this epoch (same id) are skipped, which
        happens when server-side inserts shift page boundaries.
        """
        seen = {record.id for record in self.accumulated_items}
        appended = []
        for record in result.items:
            if record.id in seen:
                LOGGER.debug("Skipping duplicate record %s on page %d", record.id, result.page)
                continue
            seen.add(record.id)
            appended.append(record)
        self.accumulated_items.extend(appended)
        self.current_page = result.page
        self.first_page_loaded = True

        total = result.total
        if total is not None and total < len(self.accumulated_items):
            # The declared total is a snapshot per response; deletes between
            # requests can shrink it below what is already shown.
            LOGGER.warning(
                "Declared total %d dropped below %d loaded records; clamping",
                total,
                len(self.accumulated_items),
            )
            total = len(self.accumulated_items)
        self.declared_total = total
        self.exhausted = compute_exhausted(
            len(result.items), len(self.accumulated_items), self.declared_total
        )
        return appended


def compute_exhausted(page_item_count: int, accumulated_count: int, declared_total: Optional[int]) -> bool:
    """No further pages remain: the last page was empty or the total is reached."""
    if page_item_count == 0:
        return True
    return declared_total is not None and accumulated_count >= declared_total


class PaginatedRecordLoader:
    """Fetches single pages from the search endpoint."""

    def __init__(
        self,
        api: RecordSearchApi,
        enricher: Optional[Enricher] = None,
    ) -> None:
        self._api = api
        self._enricher = enricher

    async def fetch(self, query: Query, page: int, epoch: int) -> PageResult:
        """Fetch *page* of *query*; failures surface as :class:`NetworkFailure`."""
        try:
            raw = await self._api.search_records(query.text, query.filter, page)
            search_page = SearchPage.from_payload(raw)
        except RecordLensError:
            raise
        except Exception as exc:
            raise NetworkFailure(f"Loading page {page}", exc) from exc

        items: Sequence[Record] = search_page.items
        if self._enricher is not None and items:
            try:
                items = await self._enricher(items)
            except Exception as exc:
                LOGGER.warning("Could not enrich page %d: %s", page, exc)
                items = search_page.items

        return PageResult(items=tuple(items), page=page, total=search_page.total, epoch=epoch)
