"""StudySession: main entry point wiring store, scheduler, backup and saving."""

from __future__ import annotations

import datetime
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vocab_deck import codec
from vocab_deck import db as _db
from vocab_deck.config import Settings
from vocab_deck.exceptions import SnapshotError
from vocab_deck.models import (
    Entry,
    PreviewReport,
    RestoreMode,
    SaveStatus,
    Snapshot,
    ValidationResult,
)
from vocab_deck.persistence import SAVE_DELAY, DebouncedWriter, load_store
from vocab_deck.reconcile import ReconciliationEngine
from vocab_deck.scheduler import RoundScheduler
from vocab_deck.validator import validate_store

logger = logging.getLogger(__name__)


@dataclass
class Callbacks:
    """Hooks a presentation layer subscribes to; all optional.

    ``on_save_status_changed`` reports ``SAVING`` on the thread that changed
    the store, but ``SAVED`` and ``FAILED`` usually arrive on the background
    save timer thread. UI code should hand the status back to its own event
    loop. The other hooks run on the calling thread.
    """

    on_card_shown: Callable[[Entry], None] | None = None
    on_round_progress: Callable[[int, int], None] | None = None
    on_save_status_changed: Callable[[SaveStatus], None] | None = None
    on_restore_preview: Callable[[PreviewReport], None] | None = None


class StudySession:
    """The explicit context every component shares for one vocabulary file."""

    def __init__(
        self,
        db_path: str | Path = ":memory:",
        *,
        key: str = _db.STATE_KEY,
        save_delay: float = SAVE_DELAY,
        callbacks: Callbacks | None = None,
        rng: random.Random | None = None,
    ) -> None:
        callbacks = callbacks or Callbacks()
        self._db_path = str(db_path)
        self._conn = _db.connect(db_path)
        try:
            _db.check_schema_version(self._conn)
            _db.init_db(self._conn)
        except Exception:
            self._conn.close()
            raise

        self.store = load_store(self._conn, key)
        self.writer = DebouncedWriter(
            self._conn, self.store,
            key=key,
            delay=save_delay,
            on_status_changed=callbacks.on_save_status_changed,
        )
        self.scheduler = RoundScheduler(
            self.store,
            rng=rng,
            on_card_shown=callbacks.on_card_shown,
            on_round_progress=callbacks.on_round_progress,
        )
        self.engine = ReconciliationEngine(
            self.store, on_restore_preview=callbacks.on_restore_preview
        )
        logger.debug("Opened %s with %d entries", self._db_path, len(self.store))

    @classmethod
    def from_settings(
        cls, settings: Settings, **kwargs: Any
    ) -> StudySession:
        return cls(
            settings.db_path,
            key=settings.namespace_key,
            save_delay=settings.save_delay,
            **kwargs,
        )

    def close(self) -> None:
        """Write any pending changes and close the database connection."""
        self.writer.close()
        self._conn.close()

    def __enter__(self) -> StudySession:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Words
    # ------------------------------------------------------------------

    def add_word(self, word: str, pos: str, translation: str) -> Entry:
        return self.store.add_entry(word, pos, translation)

    def upsert_word(
        self, word: str, pos: str, translation: str
    ) -> tuple[Entry, bool]:
        return self.store.upsert_entry(word, pos, translation)

    def edit_word(
        self,
        entry_id: str,
        *,
        word: str | None = None,
        pos: str | None = None,
        translation: str | None = None,
    ) -> Entry:
        return self.store.update_entry(
            entry_id, word=word, pos=pos, translation=translation
        )

    def remove_word(self, entry_id: str) -> Entry:
        return self.store.remove_entry(entry_id)

    def find_word(self, word: str) -> Entry | None:
        return self.store.find_by_word(word)

    def search(self, query: str = "") -> list[Entry]:
        return self.store.search(query)

    def exposure(self, entry_id: str) -> int:
        return self.store.exposure(entry_id)

    def validate(self) -> list[ValidationResult]:
        return validate_store(self.store.entries(), self.store.counters())

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    def draw_card(self) -> Entry | None:
        """Draw a fresh card, ignoring any forward history."""
        return self._entry(self.scheduler.draw_next())

    def next_card(self) -> Entry | None:
        """Move forward: replay history if possible, else draw."""
        return self._entry(self.scheduler.go_forward())

    def prev_card(self) -> Entry | None:
        """Move back in history; None at the start."""
        return self._entry(self.scheduler.go_back())

    @property
    def current_card(self) -> Entry | None:
        return self._entry(self.scheduler.current)

    @property
    def round_progress(self) -> tuple[int, int]:
        return self.scheduler.progress

    def _entry(self, entry_id: str | None) -> Entry | None:
        return None if entry_id is None else self.store.get(entry_id)

    # ------------------------------------------------------------------
    # Backup and restore
    # ------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        return self.store.to_snapshot()

    def export_token(self) -> str:
        """Compact copy-paste backup token of the whole store."""
        token = codec.encode_compact(self.snapshot())
        logger.info("Exported %d entries as a %d-character token", len(self.store), len(token))
        return token

    def export_file(
        self,
        directory: str | Path = ".",
        *,
        day: datetime.date | None = None,
    ) -> Path:
        """Write a dated JSON backup into ``directory`` and return its path."""
        path = Path(directory) / codec.backup_filename(day)
        path.write_bytes(codec.encode_file(self.snapshot()))
        logger.info("Exported %d entries to %s", len(self.store), path)
        return path

    def import_file(self, path: str | Path) -> str:
        """Read a JSON backup file and return it as a compact token."""
        return codec.file_to_token(Path(path).read_bytes())

    def preview_restore(
        self, token: str, mode: RestoreMode | str = RestoreMode.MERGE
    ) -> PreviewReport:
        """Decode ``token`` and preview restoring it.

        A token that fails to decode clears any earlier pending preview.
        """
        try:
            snapshot = codec.decode_compact(token)
        except SnapshotError:
            self.engine.discard()
            raise
        return self.engine.preview(snapshot, mode)

    def confirm_restore(self) -> PreviewReport:
        """Commit the pending preview (raises NoPendingRestoreError if none)."""
        return self.engine.commit()

    def cancel_restore(self) -> None:
        self.engine.discard()

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    @property
    def save_status(self) -> SaveStatus:
        return self.writer.status

    def flush(self) -> SaveStatus:
        return self.writer.flush()
