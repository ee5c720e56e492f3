"""Tests for the round-constrained scheduler and navigation history."""

import random
from collections import Counter

import pytest

from vocab_deck import RoundScheduler, WordStore
from vocab_deck.scheduler import MAX_DRAW_ATTEMPTS, ROUND_CAP


class CountingRandom(random.Random):
    """Seeded RNG that counts calls to choice()."""

    def __init__(self, seed):
        super().__init__(seed)
        self.choices = 0

    def choice(self, seq):
        self.choices += 1
        return super().choice(seq)


@pytest.fixture
def scheduler(store_with_words, rng):
    store, *_ = store_with_words
    return RoundScheduler(store, rng=rng)


class TestStartRound:

    def test_deck_is_permutation(self, scheduler, store_with_words):
        store, *_ = store_with_words
        assert sorted(scheduler.deck) == sorted(store.ids())
        assert scheduler.history == []
        assert scheduler.history_cursor == -1

    def test_empty_store(self, store, rng):
        sched = RoundScheduler(store, rng=rng)
        assert sched.is_empty
        assert sched.draw_next() is None
        assert sched.go_forward() is None
        assert sched.go_back() is None

    def test_shuffle_covers_orderings(self, rng):
        seen = set()
        for _ in range(300):
            sched = RoundScheduler(WordStore(), rng=rng)
            sched.start_round(["a", "b", "c"])
            seen.add(tuple(sched.deck))
        assert len(seen) == 6


class TestCanSelect:

    def test_cap_before_round_complete(self, scheduler, store_with_words):
        _, apple, *_ = store_with_words
        scheduler.per_round_count[apple.id] = ROUND_CAP
        assert not scheduler.can_select(apple.id)
        scheduler.per_round_count[apple.id] = ROUND_CAP - 1
        assert scheduler.can_select(apple.id)

    def test_cap_lifted_once_all_seen(self, scheduler, store_with_words):
        store, apple, *_ = store_with_words
        scheduler.seen_this_round = set(store.ids())
        scheduler.per_round_count[apple.id] = ROUND_CAP + 3
        assert scheduler.can_select(apple.id)


class TestDrawNext:

    def test_draw_counts_exposure(self, scheduler, store_with_words):
        store, *_ = store_with_words
        entry_id = scheduler.draw_next()
        assert store.exposure(entry_id) == 1
        assert scheduler.per_round_count[entry_id] == 1
        assert scheduler.seen_this_round == {entry_id}
        assert scheduler.history == [entry_id]
        assert scheduler.history_cursor == 0

    def test_never_exceeds_cap_within_round(self):
        store = WordStore()
        for word in ("alpha", "beta", "gamma", "delta"):
            store.add_entry(word, "n.", word.upper())
        sched = RoundScheduler(store, rng=random.Random(7))

        counts = Counter()
        for _ in range(3000):
            if sched.round_complete:
                counts = Counter()
            entry_id = sched.draw_next()
            if len(sched.seen_this_round) < len(store):
                counts[entry_id] += 1
                assert counts[entry_id] <= ROUND_CAP

    def test_single_entry_every_draw(self, store, rng):
        apple = store.add_entry("apple", "n.", "蘋果")
        sched = RoundScheduler(store, rng=rng)
        for _ in range(6):
            assert sched.draw_next() == apple.id
        assert store.exposure(apple.id) == 6

    def test_reseeds_when_store_size_changes(self, scheduler, store_with_words):
        store, *_ = store_with_words
        scheduler.draw_next()
        new = store.add_entry("dog", "n.", "狗")
        assert new.id in scheduler.deck
        assert scheduler.history == []

    def test_fallback_after_max_attempts(self, store_with_words, caplog):
        store, *_ = store_with_words
        rng = CountingRandom(5)
        sched = RoundScheduler(store, rng=rng)
        for entry_id in store.ids():
            sched.per_round_count[entry_id] = ROUND_CAP

        with caplog.at_level("DEBUG", logger="vocab_deck.scheduler"):
            entry_id = sched.draw_next()

        assert entry_id in store.ids()
        assert MAX_DRAW_ATTEMPTS == 80
        assert rng.choices == MAX_DRAW_ATTEMPTS + 1
        assert "relaxing cap" in caplog.text

    def test_eligible_pick_needs_one_sample(self, store_with_words, caplog):
        store, *_ = store_with_words
        rng = CountingRandom(5)
        sched = RoundScheduler(store, rng=rng)

        with caplog.at_level("DEBUG", logger="vocab_deck.scheduler"):
            sched.draw_next()

        assert rng.choices == 1
        assert "relaxing cap" not in caplog.text

    def test_truncates_forward_history(self, scheduler):
        first = scheduler.draw_next()
        scheduler.draw_next()
        scheduler.go_back()
        third = scheduler.draw_next()
        assert scheduler.history == [first, third]
        assert scheduler.history_cursor == 1


class TestNavigation:

    def test_back_then_forward_replays(self, scheduler, store_with_words):
        store, *_ = store_with_words
        first = scheduler.draw_next()
        second = scheduler.draw_next()
        before = store.counters()

        assert scheduler.go_back() == first
        assert scheduler.go_forward() == second
        assert store.counters() == before

    def test_back_at_start(self, scheduler):
        scheduler.draw_next()
        assert scheduler.go_back() is None
        assert scheduler.history_cursor == 0

    def test_forward_at_end_draws(self, scheduler, store_with_words):
        store, *_ = store_with_words
        scheduler.draw_next()
        entry_id = scheduler.go_forward()
        assert len(scheduler.history) == 2
        assert sum(store.counters().values()) == 2
        assert scheduler.current == entry_id


class TestCallbacks:

    def test_card_shown_and_progress(self, store_with_words, rng):
        store, *_ = store_with_words
        shown, progress = [], []
        sched = RoundScheduler(
            store,
            rng=rng,
            on_card_shown=shown.append,
            on_round_progress=lambda seen, total: progress.append((seen, total)),
        )
        first = sched.draw_next()
        sched.draw_next()
        sched.go_back()
        assert [e.id for e in shown][0] == first
        assert shown[-1].id == first
        assert len(shown) == 3
        assert progress[0] == (0, 3)
        assert progress[-1][1] == 3
