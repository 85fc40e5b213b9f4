"""Tag-set reconciliation over a single-tag add/remove API.

The tag endpoint has no "set tags to exactly X" call, so a commit is
synthesised from concurrent single-tag mutations and always finishes by
re-reading the server's tag list.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import AbstractSet, FrozenSet, Iterable, List, Optional, Set, Tuple

from recordlens.domain.ports import TagApi
from recordlens.errors import (
    CommitInProgressError,
    NetworkFailure,
    PartialTagFailure,
    ReconcileReadFailure,
)
from recordlens.events.bus import EventBus
from recordlens.events.record_events import TagsReconciledEvent

LOGGER = logging.getLogger(__name__)


def normalize_tags(tags: Iterable[str]) -> FrozenSet[str]:
    """Trim whitespace and drop empty names; duplicates collapse in the set."""
    return frozenset(tag.strip() for tag in tags if tag and tag.strip())


def ordered_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    """Trimmed, de-duplicated tags in first-seen order."""
    seen: Set[str] = set()
    result: List[str] = []
    for tag in tags:
        name = tag.strip() if tag else ""
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return tuple(result)


@dataclass(frozen=True)
class TagDiff:
    to_add: FrozenSet[str] = frozenset()
    to_remove: FrozenSet[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


def diff(baseline: AbstractSet[str], proposed: Iterable[str]) -> TagDiff:
    """Minimal add/remove sets that turn *baseline* into the normalised *proposed*."""
    target = normalize_tags(proposed)
    current = frozenset(baseline)
    return TagDiff(to_add=target - current, to_remove=current - target)


@dataclass(frozen=True)
class CommitResult:
    """Outcome of a commit whose re-read succeeded.

    ``tags`` is ``None`` only for a no-op commit, where nothing was sent.
    """

    record_id: str
    tags: Optional[Tuple[str, ...]] = None
    added: FrozenSet[str] = frozenset()
    removed: FrozenSet[str] = frozenset()
    failed_removes: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def noop(self) -> bool:
        return self.tags is None


class TagReconciler:
    """Applies tag diffs and reconciles against the server.

    Commits are serialised per record: a second commit for a record whose
    previous commit is still outstanding is rejected with
    :class:`CommitInProgressError`.
    """

    def __init__(self, api: TagApi, event_bus: Optional[EventBus] = None) -> None:
        self._api = api
        self._event_bus = event_bus
        self._in_flight: Set[str] = set()

    def is_committing(self, record_id: str) -> bool:
        return record_id in self._in_flight

    async def read_tags(self, record_id: str) -> Tuple[str, ...]:
        """Authoritative tag list of *record_id*, in server order."""
        try:
            tags = await self._api.get_tags_for(record_id)
        except Exception as exc:
            raise ReconcileReadFailure(record_id, exc) from exc
        return ordered_tags(tags)

    async def commit(
        self,
        record_id: str,
        to_add: AbstractSet[str],
        to_remove: AbstractSet[str],
    ) -> CommitResult:
        """Apply the diff, then re-read the record's tags from the server.

        Raises :class:`PartialTagFailure` when an addition failed (after the
        re-read, carrying the re-read tags) and :class:`ReconcileReadFailure`
        when the re-read itself failed.
        """
        if not to_add and not to_remove:
            return CommitResult(record_id=record_id)
        if record_id in self._in_flight:
            raise CommitInProgressError(record_id)

        self._in_flight.add(record_id)
        try:
            return await self._commit(record_id, frozenset(to_add), frozenset(to_remove))
        finally:
            self._in_flight.discard(record_id)

    # -- internal ----------------------------------------------------------

    async def _commit(
        self, record_id: str, to_add: FrozenSet[str], to_remove: FrozenSet[str]
    ) -> CommitResult:
        LOGGER.info(
            "Committing tags for %s: +%s -%s", record_id, sorted(to_add), sorted(to_remove)
        )
        failed_removes, failed_adds = await asyncio.gather(
            self._remove_all(record_id, to_remove),
            self._add_all(record_id, to_add),
        )

        try:
            tags = await self.read_tags(record_id)
        except ReconcileReadFailure as exc:
            raise ReconcileReadFailure(record_id, exc.cause, failed_adds) from exc.cause

        if failed_adds:
            raise PartialTagFailure(record_id, failed_adds, tags)

        if self._event_bus is not None:
            self._event_bus.publish(
                TagsReconciledEvent(
                    record_id=record_id,
                    tags=list(tags),
                    added=sorted(to_add),
                    removed=sorted(to_remove - failed_removes),
                )
            )
        return CommitResult(
            record_id=record_id,
            tags=tags,
            added=to_add,
            removed=to_remove - failed_removes,
            failed_removes=failed_removes,
        )

    async def _remove_all(self, record_id: str, tags: FrozenSet[str]) -> FrozenSet[str]:
        """Remove every tag; individual failures are logged and tolerated."""
        names = sorted(tags)
        results = await asyncio.gather(
            *(self._mutate(self._api.remove_tag, record_id, name) for name in names),
            return_exceptions=True,
        )
        failed = set()
        for name, outcome in zip(names, results):
            if isinstance(outcome, Exception):
                LOGGER.warning("Ignoring failed removal of %r from %s: %s", name, record_id, outcome)
                failed.add(name)
        return frozenset(failed)

    async def _add_all(self, record_id: str, tags: FrozenSet[str]) -> FrozenSet[str]:
        """Add every tag; the first failure cancels the additions still running.

        Returns the names that were not confirmed as added.
        """
        if not tags:
            return frozenset()
        tasks = {
            asyncio.ensure_future(self._mutate(self._api.add_tag, record_id, name)): name
            for name in sorted(tags)
        }
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        failed = {tasks[task] for task in pending}
        for task in done:
            exc = task.exception()
            if exc is not None:
                LOGGER.error("Adding %r to %s failed: %s", tasks[task], record_id, exc)
                failed.add(tasks[task])
        return frozenset(failed)

    @staticmethod
    async def _mutate(operation, record_id: str, tag: str) -> None:
        try:
            ok = await operation(record_id, tag)
        except Exception as exc:
            raise NetworkFailure(f"Tag {tag!r} on {record_id}", exc) from exc
        if ok is False:
            raise NetworkFailure(f"Tag {tag!r} on {record_id}")
