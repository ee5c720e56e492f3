"""Shared test fixtures for vocab-deck."""

import random

import pytest

from vocab_deck import StudySession, WordStore


@pytest.fixture
def store():
    """An empty word store."""
    return WordStore()


@pytest.fixture
def store_with_words(store):
    """Store with three words; returns the store and the entries."""
    apple = store.add_entry("apple", "n.", "蘋果")
    run = store.add_entry("run", "v.", "跑")
    cat = store.add_entry("cat", "n.", "貓")
    return store, apple, run, cat


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def session(rng):
    """In-memory session with a seeded scheduler and a long save delay."""
    with StudySession(":memory:", rng=rng, save_delay=60) as s:
        yield s
