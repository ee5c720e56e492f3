"""Two-phase restore of a backup snapshot into a word store."""

from __future__ import annotations

import logging
from collections.abc import Callable

from vocab_deck.exceptions import NoPendingRestoreError
from vocab_deck.models import (
    Entry,
    PreviewReport,
    RestoreMode,
    RestoreState,
    Snapshot,
)
from vocab_deck.store import WordStore, clean_incoming, merge_entries
from vocab_deck.validator import coerce_count

logger = logging.getLogger(__name__)


def plan_restore(
    store: WordStore, snapshot: Snapshot, mode: RestoreMode
) -> tuple[list[Entry], dict[str, int], PreviewReport]:
    """Compute the post-restore entries and counters without touching ``store``."""
    current = store.entries()
    incoming = clean_incoming(snapshot.entries)
    skipped = len(snapshot.entries) - len(incoming)

    if mode is RestoreMode.OVERWRITE:
        entries, added, updated = merge_entries((), incoming)
        counters = {k: coerce_count(v) for k, v in snapshot.counters.items()}
    else:
        entries, added, updated = merge_entries(current, incoming)
        counters = store.counters()
        for entry_id, value in snapshot.counters.items():
            counters[entry_id] = max(counters.get(entry_id, 0), coerce_count(value))

    before = {e.id: e for e in current}
    changed = sum(
        1 for e in entries
        if e.id in before and e != before[e.id]
    )
    report = PreviewReport(
        mode=mode,
        current_count=len(current),
        incoming_count=len(incoming),
        skipped=skipped,
        will_add=added if mode is RestoreMode.MERGE else 0,
        will_update=updated if mode is RestoreMode.MERGE else 0,
        will_change=changed if mode is RestoreMode.MERGE else 0,
    )
    return entries, counters, report


class ReconciliationEngine:
    """Previews and then commits a restore against a :class:`WordStore`.

    A restore moves ``IDLE -> PREVIEWED -> COMMITTED`` or
    ``PREVIEWED -> DISCARDED``. Only the most recent preview can be
    committed, and only with the same snapshot and mode.
    """

    def __init__(
        self,
        store: WordStore,
        *,
        on_restore_preview: Callable[[PreviewReport], None] | None = None,
    ) -> None:
        self._store = store
        self._on_restore_preview = on_restore_preview
        self._pending: tuple[Snapshot, RestoreMode] | None = None
        self.state = RestoreState.IDLE

    @property
    def pending(self) -> tuple[Snapshot, RestoreMode] | None:
        return self._pending

    def preview(
        self, snapshot: Snapshot, mode: RestoreMode | str = RestoreMode.MERGE
    ) -> PreviewReport:
        """Report what a restore would do and remember it for :meth:`commit`."""
        mode = RestoreMode(mode)
        _, _, report = plan_restore(self._store, snapshot, mode)
        self._pending = (snapshot, mode)
        self.state = RestoreState.PREVIEWED
        if self._on_restore_preview is not None:
            self._on_restore_preview(report)
        return report

    def discard(self) -> None:
        """Drop the pending preview; nothing is changed."""
        if self._pending is not None:
            self._pending = None
            self.state = RestoreState.DISCARDED

    def commit(
        self,
        snapshot: Snapshot | None = None,
        mode: RestoreMode | str | None = None,
    ) -> PreviewReport:
        """Apply the previewed restore.

        ``snapshot`` and ``mode`` default to the pending preview; when given
        they must match it.

        Raises:
            NoPendingRestoreError: If there is no preview, or it was taken
                for a different snapshot or mode.
        """
        if self._pending is None:
            raise NoPendingRestoreError("Preview the restore before committing it")
        pending_snapshot, pending_mode = self._pending
        if snapshot is not None and snapshot != pending_snapshot:
            raise NoPendingRestoreError("Snapshot differs from the previewed one")
        if mode is not None and RestoreMode(mode) is not pending_mode:
            raise NoPendingRestoreError(
                f"Mode {RestoreMode(mode).value!r} differs from the previewed "
                f"{pending_mode.value!r}"
            )

        # Listeners (round reset, debounced save) fire before the lock drops.
        with self._store.transaction():
            entries, counters, report = plan_restore(
                self._store, pending_snapshot, pending_mode
            )
            self._store.replace_all(entries, counters)

        self._pending = None
        self.state = RestoreState.COMMITTED
        logger.info(
            "Restored backup (%s): %d entries, %d added, %d updated",
            pending_mode.value, len(entries), report.will_add, report.will_update,
        )
        return report
