"""Debounced persistence of a word store to SQLite."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Callable

from vocab_deck import db as _db
from vocab_deck.codec import snapshot_from_mapping, snapshot_to_mapping
from vocab_deck.exceptions import MalformedPayloadError, PersistenceWriteError
from vocab_deck.models import SaveStatus
from vocab_deck.store import WordStore

logger = logging.getLogger(__name__)

SAVE_DELAY = 0.12


def load_store(conn: sqlite3.Connection, key: str = _db.STATE_KEY) -> WordStore:
    """Load the saved store, or an empty one if nothing usable is saved."""
    data = _db.load_state(conn, key)
    if data is None:
        return WordStore()
    try:
        snapshot = snapshot_from_mapping(data)
    except MalformedPayloadError as e:
        logger.warning("Ignoring saved state under %r: %s", key, e)
        return WordStore()
    return WordStore.from_snapshot(snapshot)


class DebouncedWriter:
    """Writes the whole store after a quiet period.

    Every committed store change (re)starts a timer; when it fires the store
    is serialized and written under ``key``. Failures are logged and exposed
    through :attr:`status` and :attr:`last_error`, never raised to the code
    that mutated the store.

    The timer thread holds the write lock for the whole check-and-write, so
    :meth:`flush` and :meth:`close` wait for a write that is already running.
    Status callbacks may run on the timer thread.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        store: WordStore,
        *,
        key: str = _db.STATE_KEY,
        delay: float = SAVE_DELAY,
        on_status_changed: Callable[[SaveStatus], None] | None = None,
    ) -> None:
        self._conn = conn
        self._store = store
        self._key = key
        self._delay = delay
        self._on_status_changed = on_status_changed
        self._timer: threading.Timer | None = None
        self._timer_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self.status = SaveStatus.SAVED
        self.last_error: PersistenceWriteError | None = None
        self.write_count = 0
        store.subscribe(self._on_store_change)

    @property
    def dirty(self) -> bool:
        """True while a write is scheduled but has not run."""
        return self._timer is not None

    def _on_store_change(self, structural: bool) -> None:
        self.schedule()

    def schedule(self) -> None:
        """Start (or restart) the save timer."""
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._delay, self._fire)
            self._timer.daemon = True
            self._timer.start()
        self._set_status(SaveStatus.SAVING)

    def flush(self) -> SaveStatus:
        """Write now if a save is pending; returns the resulting status.

        Waits for a write already running on the timer thread.
        """
        with self._write_lock:
            with self._timer_lock:
                timer, self._timer = self._timer, None
            if timer is not None:
                timer.cancel()
                self._write()
        return self.status

    def cancel(self) -> None:
        """Drop a pending save without writing."""
        with self._timer_lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    def close(self) -> SaveStatus:
        """Stop following the store and write anything still pending.

        After this returns no write is running or scheduled, so the
        connection can be closed.
        """
        self._store.unsubscribe(self._on_store_change)
        return self.flush()

    def _fire(self) -> None:
        with self._write_lock:
            with self._timer_lock:
                if self._timer is not threading.current_thread():
                    return
                self._timer = None
            self._write()

    def _write(self) -> None:
        # Caller holds the write lock.
        payload = snapshot_to_mapping(self._store.to_snapshot())
        try:
            _db.save_state(self._conn, payload, self._key)
        except (sqlite3.Error, OSError, TypeError, ValueError) as e:
            logger.exception("Failed to save vocabulary state")
            error = PersistenceWriteError(f"Failed to save state: {e}")
            error.__cause__ = e
            self.last_error = error
            self._set_status(SaveStatus.FAILED)
            return
        self.write_count += 1
        self.last_error = None
        # A change made during the write has its own timer; stay SAVING.
        self._set_status(SaveStatus.SAVED, unless_pending=True)

    def _set_status(
        self, status: SaveStatus, *, unless_pending: bool = False
    ) -> None:
        with self._timer_lock:
            if unless_pending and self._timer is not None:
                return
            changed = status is not self.status
            self.status = status
        if changed and self._on_status_changed is not None:
            self._on_status_changed(status)
