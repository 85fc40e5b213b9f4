"""TagEditor: the tag editing state of one record.

``baseline_tags`` only ever comes from the server; the user edits
``proposed_tags``, and :meth:`TagEditor.commit` reconciles the two.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from recordlens.application.services.tag_reconciler import (
    TagDiff,
    TagReconciler,
    diff,
    normalize_tags,
    ordered_tags,
)
from recordlens.domain.ports import Notifier
from recordlens.errors import (
    CommitInProgressError,
    PartialTagFailure,
    ReconcileReadFailure,
)
from recordlens.errors.handler import ErrorHandler, ErrorSeverity
from recordlens.viewmodels.base import BaseController
from recordlens.viewmodels.signal import ObservableProperty, Signal


class TagEditor(BaseController):
    """Tag editing view model for a single record.

    ``stale`` turns ``True`` when the post-commit re-read failed: the
    displayed baseline can no longer be asserted correct until
    :meth:`refresh` succeeds.
    """

    def __init__(
        self,
        reconciler: TagReconciler,
        record_id: str,
        baseline: Iterable[str] = (),
        *,
        notifier: Optional[Notifier] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        super().__init__()
        self._reconciler = reconciler
        self._record_id = record_id
        self._notifier = notifier
        self._errors = error_handler or ErrorHandler(notifier=notifier)
        self._logger = logging.getLogger(__name__)

        initial = ordered_tags(baseline)
        self.baseline_tags = ObservableProperty(initial, "baseline_tags")
        self.proposed_tags = ObservableProperty(frozenset(initial), "proposed_tags")
        self.stale = ObservableProperty(False, "stale")
        self.committing = ObservableProperty(False, "committing")

        self.baseline_changed = Signal("baseline_changed")  # emits the server tag tuple

    # -- properties --------------------------------------------------------

    @property
    def record_id(self) -> str:
        return self._record_id

    @property
    def pending_diff(self) -> TagDiff:
        return diff(frozenset(self.baseline_tags.value), self.proposed_tags.value)

    @property
    def dirty(self) -> bool:
        return not self.pending_diff.is_empty

    # -- editing -----------------------------------------------------------

    def propose(self, tags: Iterable[str]) -> None:
        self.proposed_tags.value = normalize_tags(tags)

    def add_tag(self, tag: str) -> None:
        self.propose(set(self.proposed_tags.value) | {tag})

    def remove_tag(self, tag: str) -> None:
        self.propose(set(self.proposed_tags.value) - {tag.strip()})

    def reset(self) -> None:
        """Discard edits; proposed tags return to the baseline."""
        self.proposed_tags.value = frozenset(self.baseline_tags.value)

    # -- reconciliation ----------------------------------------------------

    async def commit(self) -> bool:
        """Push the pending diff and adopt the server's tags.

        Returns ``True`` only when every addition succeeded and the re-read
        confirmed the result.  An empty diff succeeds without any request.
        """
        pending = self.pending_diff
        if pending.is_empty:
            return True

        self.committing.value = True
        try:
            result = await self._reconciler.commit(
                self._record_id, pending.to_add, pending.to_remove
            )
        except (PartialTagFailure, ReconcileReadFailure, CommitInProgressError) as exc:
            if not self.disposed:
                self._on_commit_failed(exc)
            return False
        finally:
            self.committing.value = False

        if self.disposed:
            self._logger.debug("Editor for %s disposed; dropping commit result", self._record_id)
            return False
        if result.tags is not None:
            self._adopt(result.tags)
        if self._notifier is not None:
            self._notifier.notify_success("Tags updated")
        return True

    async def refresh(self) -> bool:
        """Re-read the baseline from the server; clears ``stale`` on success."""
        try:
            tags = await self._reconciler.read_tags(self._record_id)
        except ReconcileReadFailure as exc:
            if self.disposed:
                return False
            self.stale.value = True
            self._errors.handle(exc, ErrorSeverity.ERROR, {"record_id": self._record_id})
            return False
        if self.disposed:
            return False
        self._adopt(tags)
        return True

    def _on_commit_failed(self, exc: Exception) -> None:
        context = {"record_id": self._record_id}
        if isinstance(exc, PartialTagFailure):
            self._adopt(exc.tags)
            self._errors.handle(exc, ErrorSeverity.ERROR, context)
        elif isinstance(exc, ReconcileReadFailure):
            self.stale.value = True
            self._errors.handle(exc, ErrorSeverity.ERROR, context)
        else:
            self._errors.handle(exc, ErrorSeverity.WARNING, context)

    def _adopt(self, tags: Tuple[str, ...]) -> None:
        self.baseline_tags.value = tuple(tags)
        self.proposed_tags.value = frozenset(tags)
        self.stale.value = False
        self._logger.debug("Baseline for %s is now %s", self._record_id, list(tags))
        self.baseline_changed.emit(tuple(tags))
