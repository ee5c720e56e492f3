"""Tests for backup token and file encoding."""

import datetime
import json

import pytest
from lzstring import LZString

from vocab_deck import (
    CorruptTokenError,
    EmptyInputError,
    MalformedPayloadError,
    codec,
)
from vocab_deck.models import FORMAT_VERSION


def _token_for(text: str) -> str:
    return LZString().compressToBase64(text)


class TestCompactToken:

    def test_round_trip(self, store_with_words):
        store, apple, *_ = store_with_words
        store.record_exposure(apple.id)
        snap = store.to_snapshot()

        token = codec.encode_compact(snap)
        assert token.isascii()
        assert "\n" not in token

        decoded = codec.decode_compact(token)
        assert decoded.entries == snap.entries
        assert decoded.counters == {apple.id: 1}
        assert decoded.format_version == FORMAT_VERSION

    def test_whitespace_in_token_ignored(self, store_with_words):
        store, *_ = store_with_words
        token = codec.encode_compact(store.to_snapshot())
        wrapped = "\n".join(token[i:i + 20] for i in range(0, len(token), 20))
        assert codec.decode_compact(f"  {wrapped}\n").entries == store.entries()

    @pytest.mark.parametrize("token", ["", "   ", "\n\t"])
    def test_empty_token(self, token):
        with pytest.raises(EmptyInputError):
            codec.decode_compact(token)

    def test_garbage_token(self):
        with pytest.raises(CorruptTokenError):
            codec.decode_compact("not-a-real-token")

    def test_not_json(self):
        with pytest.raises(MalformedPayloadError):
            codec.decode_compact(_token_for("hello there"))

    @pytest.mark.parametrize("payload", [
        [1, 2, 3],
        {"words": {}, "counts": {}},
        {"words": [], "counts": []},
        {"version": 1},
    ])
    def test_wrong_shape(self, payload):
        token = _token_for(json.dumps(payload))
        with pytest.raises(MalformedPayloadError):
            codec.decode_compact(token)

    def test_invalid_characters(self):
        with pytest.raises(CorruptTokenError):
            codec.decode_compact("abc$def")

    def test_browser_token(self):
        """A token made the way the browser app makes it decodes."""
        payload = {
            "version": 1,
            "words": [{"id": "w1", "word": "cat", "pos": "n.", "zh": "貓",
                       "createdAt": 1700000000000}],
            "counts": {"w1": 3},
            "updatedAt": 1700000000001,
        }
        snap = codec.decode_compact(_token_for(json.dumps(payload)))
        (cat,) = snap.entries
        assert (cat.id, cat.word, cat.translation) == ("w1", "cat", "貓")
        assert snap.counters == {"w1": 3}
        assert snap.exported_at == 1700000000001

    def test_token_is_lz_string(self, store_with_words):
        store, *_ = store_with_words
        token = codec.encode_compact(store.to_snapshot())
        data = json.loads(LZString().decompressFromBase64(token))
        assert [w["word"] for w in data["words"]] == ["apple", "run", "cat"]

    def test_astral_characters_round_trip(self, store):
        store.add_entry("smile", "n.", "笑 \U0001F600")
        token = codec.encode_compact(store.to_snapshot())
        (entry,) = codec.decode_compact(token).entries
        assert entry.translation == "笑 \U0001F600"


class TestWireMapping:

    def test_browser_keys(self, store_with_words):
        store, apple, *_ = store_with_words
        data = codec.snapshot_to_mapping(store.to_snapshot())
        assert set(data) == {"version", "words", "counts", "updatedAt"}
        first = data["words"][0]
        assert first == {
            "id": apple.id,
            "word": "apple",
            "pos": "n.",
            "zh": "蘋果",
            "createdAt": apple.created_at,
        }

    def test_lenient_entries(self):
        snap = codec.snapshot_from_mapping({
            "words": [{"word": "cat", "pos": "n.", "zh": "貓"}, "junk"],
            "counts": {"x": 2},
        })
        cat, junk = snap.entries
        assert cat.id is None
        assert cat.created_at is None
        assert junk.word == ""
        assert snap.format_version == FORMAT_VERSION
        assert snap.exported_at is None

    def test_newer_version_warns(self, caplog):
        with caplog.at_level("WARNING", logger="vocab_deck.codec"):
            snap = codec.snapshot_from_mapping(
                {"version": FORMAT_VERSION + 1, "words": [], "counts": {}}
            )
        assert snap.format_version == FORMAT_VERSION + 1
        assert "newer than supported" in caplog.text


class TestJsonFile:

    def test_file_round_trip(self, store_with_words):
        store, *_ = store_with_words
        data = codec.encode_file(store.to_snapshot())
        assert b"\n  " in data
        assert "蘋果".encode("utf-8") in data
        assert codec.decode_file(data).entries == store.entries()

    def test_decode_file_accepts_text(self):
        snap = codec.decode_file('{"words": [], "counts": {}}')
        assert snap.entries == ()

    def test_blank_file(self):
        with pytest.raises(EmptyInputError):
            codec.decode_file(b"  \n")

    def test_file_to_token(self, store_with_words):
        store, *_ = store_with_words
        token = codec.file_to_token(codec.encode_file(store.to_snapshot()))
        assert codec.decode_compact(token).entries == store.entries()

    def test_backup_filename(self):
        name = codec.backup_filename(datetime.date(2024, 3, 9))
        assert name == "vocab-backup-2024-03-09.json"
