"""Round-constrained random card scheduler with back/forward history.

Selection is uniformly random, but until every entry has been shown once in
the current round no entry may be shown more than :data:`ROUND_CAP` times.
Once everything has been seen the cap is lifted, and the next draw starts a
fresh round.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable

from vocab_deck.models import Entry
from vocab_deck.store import WordStore

logger = logging.getLogger(__name__)

ROUND_CAP = 5
MAX_DRAW_ATTEMPTS = 80


class RoundScheduler:
    """Picks the next card id from a :class:`WordStore`."""

    def __init__(
        self,
        store: WordStore,
        *,
        rng: random.Random | None = None,
        on_card_shown: Callable[[Entry], None] | None = None,
        on_round_progress: Callable[[int, int], None] | None = None,
    ) -> None:
        self._store = store
        self._rng = rng or random.Random()
        self._on_card_shown = on_card_shown
        self._on_round_progress = on_round_progress
        self.deck: list[str] = []
        self.seen_this_round: set[str] = set()
        self.per_round_count: dict[str, int] = {}
        self.history: list[str] = []
        self.history_cursor = -1
        store.subscribe(self._on_store_change)
        self.start_round(store.ids())

    # ------------------------------------------------------------------
    # Round state
    # ------------------------------------------------------------------

    def start_round(self, ids: Iterable[str]) -> None:
        """Shuffle ``ids`` into a new deck and clear all round state."""
        deck = list(ids)
        self._rng.shuffle(deck)
        self.deck = deck
        self.seen_this_round = set()
        self.per_round_count = {}
        self.history = []
        self.history_cursor = -1
        logger.debug("Started round with %d cards", len(deck))
        self._report_progress()

    def invalidate(self) -> None:
        """Re-seed the round from the store's current membership."""
        self.start_round(self._store.ids())

    def _on_store_change(self, structural: bool) -> None:
        if structural:
            self.invalidate()

    @property
    def is_empty(self) -> bool:
        return not self.deck

    @property
    def round_complete(self) -> bool:
        total = len(self.deck)
        return total > 0 and len(self.seen_this_round) >= total

    @property
    def progress(self) -> tuple[int, int]:
        """``(seen, total)`` for the current round."""
        total = len(self._store)
        return min(len(self.seen_this_round), total), total

    def can_select(self, entry_id: str) -> bool:
        if self.round_complete:
            return True
        return self.per_round_count.get(entry_id, 0) < ROUND_CAP

    # ------------------------------------------------------------------
    # Drawing and navigation
    # ------------------------------------------------------------------

    def _pick(self) -> str | None:
        total = len(self._store)
        if total == 0:
            return None
        if len(self.deck) != total or self.round_complete:
            self.invalidate()

        for _ in range(MAX_DRAW_ATTEMPTS):
            candidate = self._rng.choice(self.deck)
            if self.can_select(candidate):
                return candidate
        # Relaxed once so a pathological streak cannot stall the deck.
        logger.debug("No eligible card in %d attempts, relaxing cap", MAX_DRAW_ATTEMPTS)
        return self._rng.choice(self.deck)

    def draw_next(self) -> str | None:
        """Draw a fresh card, counting it as an exposure.

        Returns ``None`` when the store is empty.
        """
        with self._store.transaction():
            entry_id = self._pick()
            if entry_id is None:
                return None
            self.seen_this_round.add(entry_id)
            self.per_round_count[entry_id] = self.per_round_count.get(entry_id, 0) + 1
            self._store.record_exposure(entry_id)
            del self.history[self.history_cursor + 1:]
            self.history.append(entry_id)
            self.history_cursor = len(self.history) - 1
        self._show(entry_id)
        self._report_progress()
        return entry_id

    def go_back(self) -> str | None:
        """Step back in history without counting an exposure."""
        if self.history_cursor <= 0:
            return None
        self.history_cursor -= 1
        entry_id = self.history[self.history_cursor]
        self._show(entry_id)
        return entry_id

    def go_forward(self) -> str | None:
        """Replay forward history, or draw a fresh card at the end of it."""
        if self.history_cursor < len(self.history) - 1:
            self.history_cursor += 1
            entry_id = self.history[self.history_cursor]
            self._show(entry_id)
            return entry_id
        return self.draw_next()

    @property
    def current(self) -> str | None:
        if 0 <= self.history_cursor < len(self.history):
            return self.history[self.history_cursor]
        return None

    def _show(self, entry_id: str) -> None:
        if self._on_card_shown is None:
            return
        entry = self._store.get(entry_id)
        if entry is not None:
            self._on_card_shown(entry)

    def _report_progress(self) -> None:
        if self._on_round_progress is not None:
            self._on_round_progress(*self.progress)
