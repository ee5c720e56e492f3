"""In-memory word store: entries plus per-entry exposure counters."""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
import uuid
from collections.abc import Callable, Generator, Iterable, Mapping
from contextlib import contextmanager, suppress

from vocab_deck.exceptions import (
    DuplicateWordError,
    EntryNotFoundError,
)
from vocab_deck.models import FORMAT_VERSION, Entry, Snapshot
from vocab_deck.validator import clean_fields, coerce_count, normalize

logger = logging.getLogger(__name__)

ChangeListener = Callable[[bool], None]


def new_id() -> str:
    """Generate a fresh opaque entry id."""
    return uuid.uuid4().hex[:16]


def now_ms() -> int:
    """Current time in milliseconds since the Unix epoch."""
    return int(time.time() * 1000)


def clean_incoming(entries: Iterable[Entry]) -> list[Entry]:
    """Normalize entries read from outside the store.

    Entries with a blank word, part of speech or translation are dropped.
    Ids are left untouched (possibly ``None``); missing creation times are
    filled with the current time.
    """
    cleaned = []
    stamp = now_ms()
    for entry in entries:
        word = normalize(entry.word)
        pos = normalize(entry.pos)
        translation = normalize(entry.translation)
        if not (word and pos and translation):
            logger.debug("Dropping incomplete entry %r", entry)
            continue
        cleaned.append(Entry(
            id=entry.id or None,
            word=word,
            pos=pos,
            translation=translation,
            created_at=entry.created_at if entry.created_at is not None else stamp,
        ))
    return cleaned


def merge_entries(
    current: Iterable[Entry], incoming: Iterable[Entry]
) -> tuple[list[Entry], int, int]:
    """Union ``incoming`` into ``current`` by case-insensitive word.

    A word already present keeps its entry (and so its id and counter) but
    takes the incoming part of speech and translation. Other entries are
    appended, keeping the incoming id unless it is missing or already used.

    Returns the merged list and the number of added and updated entries.
    """
    merged = list(current)
    by_key = {e.key: i for i, e in enumerate(merged)}
    taken_ids = {e.id for e in merged}
    added = updated = 0
    for entry in clean_incoming(incoming):
        idx = by_key.get(entry.key)
        if idx is not None:
            merged[idx] = dataclasses.replace(
                merged[idx], pos=entry.pos, translation=entry.translation
            )
            updated += 1
            continue
        if entry.id is None or entry.id in taken_ids:
            entry = dataclasses.replace(entry, id=new_id())
        by_key[entry.key] = len(merged)
        taken_ids.add(entry.id)
        merged.append(entry)
        added += 1
    return merged, added, updated


class WordStore:
    """The ground-truth vocabulary collection.

    Every mutation runs inside :meth:`transaction`; listeners registered with
    :meth:`subscribe` are called once when the outermost transaction exits,
    with ``structural=True`` if entry membership or content changed and
    ``False`` if only counters moved.
    """

    def __init__(
        self,
        entries: Iterable[Entry] = (),
        counters: Mapping[str, int] | None = None,
    ) -> None:
        self._entries: list[Entry] = list(entries)
        self._counters: dict[str, int] = dict(counters or {})
        self._lock = threading.RLock()
        self._depth = 0
        self._pending: bool | None = None
        self._listeners: list[ChangeListener] = []

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> WordStore:
        """Build a store from a snapshot, dropping incomplete entries."""
        entries, _, _ = merge_entries((), snapshot.entries)
        counters = {
            str(k): coerce_count(v) for k, v in snapshot.counters.items()
        }
        return cls(entries, counters)

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> None:
        """Register a callback for committed changes."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        with suppress(ValueError):
            self._listeners.remove(listener)

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Hold the store lock and defer notifications to the outermost exit."""
        with self._lock:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
                if self._depth == 0 and self._pending is not None:
                    structural, self._pending = self._pending, None
                    for listener in list(self._listeners):
                        listener(structural)

    def _changed(self, structural: bool) -> None:
        self._pending = bool(self._pending) or structural

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return any(e.id == entry_id for e in self._entries)

    def entries(self) -> tuple[Entry, ...]:
        return tuple(self._entries)

    def ids(self) -> list[str]:
        return [e.id for e in self._entries]  # type: ignore[misc]

    def counters(self) -> dict[str, int]:
        return dict(self._counters)

    def get(self, entry_id: str) -> Entry | None:
        return next((e for e in self._entries if e.id == entry_id), None)

    def find_by_word(self, word: str) -> Entry | None:
        """Look up an entry by normalized, case-insensitive word."""
        key = normalize(word).lower()
        return next((e for e in self._entries if e.key == key), None)

    def exposure(self, entry_id: str) -> int:
        return self._counters.get(entry_id, 0)

    def search(self, query: str = "") -> list[Entry]:
        """Entries whose word or translation contains ``query``, by word."""
        q = normalize(query).lower()
        rows = sorted(self._entries, key=lambda e: e.key)
        if not q:
            return rows
        return [
            e for e in rows
            if q in e.key or q in e.translation.lower()
        ]

    def to_snapshot(self, exported_at: int | None = None) -> Snapshot:
        """Freeze the current state into a snapshot."""
        with self._lock:
            return Snapshot(
                format_version=FORMAT_VERSION,
                entries=tuple(self._entries),
                counters=dict(self._counters),
                exported_at=exported_at if exported_at is not None else now_ms(),
            )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_entry(self, word: str, pos: str, translation: str) -> Entry:
        """Add a new entry.

        Raises:
            ValidationError: If a field is blank or the word is malformed.
            DuplicateWordError: If the word is already in the store.
        """
        w, p, t = clean_fields(word, pos, translation)
        with self.transaction():
            if self.find_by_word(w) is not None:
                raise DuplicateWordError(f"Word already exists: {w!r}")
            entry = Entry(
                id=new_id(), word=w, pos=p, translation=t, created_at=now_ms()
            )
            self._entries.append(entry)
            self._changed(structural=True)
        return entry

    def upsert_entry(
        self, word: str, pos: str, translation: str
    ) -> tuple[Entry, bool]:
        """Add an entry, or overwrite pos/translation of an existing word.

        Returns the resulting entry and whether it was newly created.
        """
        w, p, t = clean_fields(word, pos, translation)
        with self.transaction():
            existing = self.find_by_word(w)
            if existing is None:
                return self.add_entry(w, p, t), True
            entry = dataclasses.replace(existing, pos=p, translation=t)
            self._replace(existing, entry)
        return entry, False

    def update_entry(
        self,
        entry_id: str,
        *,
        word: str | None = None,
        pos: str | None = None,
        translation: str | None = None,
    ) -> Entry:
        """Edit an entry in place; its id and counter are preserved.

        Raises:
            EntryNotFoundError: If no entry has ``entry_id``.
            ValidationError: If a resulting field is invalid.
            DuplicateWordError: If the new word belongs to another entry.
        """
        with self.transaction():
            current = self.get(entry_id)
            if current is None:
                raise EntryNotFoundError(f"Entry not found: {entry_id!r}")
            w, p, t = clean_fields(
                current.word if word is None else word,
                current.pos if pos is None else pos,
                current.translation if translation is None else translation,
            )
            other = self.find_by_word(w)
            if other is not None and other.id != entry_id:
                raise DuplicateWordError(
                    f"Word {w!r} already belongs to entry {other.id!r}"
                )
            entry = dataclasses.replace(current, word=w, pos=p, translation=t)
            self._replace(current, entry)
        return entry

    def remove_entry(self, entry_id: str) -> Entry:
        """Remove an entry; its exposure counter is kept."""
        with self.transaction():
            current = self.get(entry_id)
            if current is None:
                raise EntryNotFoundError(f"Entry not found: {entry_id!r}")
            self._entries.remove(current)
            self._changed(structural=True)
        return current

    def record_exposure(self, entry_id: str) -> int:
        """Increment the global exposure counter for an entry."""
        with self.transaction():
            count = self._counters.get(entry_id, 0) + 1
            self._counters[entry_id] = count
            self._changed(structural=False)
        return count

    def replace_all(
        self, entries: Iterable[Entry], counters: Mapping[str, int]
    ) -> None:
        """Swap in a complete new entry list and counter mapping."""
        new_entries = list(entries)
        new_counters = dict(counters)
        with self.transaction():
            self._entries = new_entries
            self._counters = new_counters
            self._changed(structural=True)

    def _replace(self, old: Entry, new: Entry) -> None:
        idx = self._entries.index(old)
        self._entries[idx] = new
        self._changed(structural=True)

