"""Snapshot encoding: compact copy-paste tokens and pretty JSON files.

The wire form uses the keys of the browser version of the app (``version``,
``words``, ``counts``, ``updatedAt``; entries carry ``id``, ``word``,
``pos``, ``zh``, ``createdAt``), and compact tokens are LZ-String base64
like the browser app's, so both tokens and JSON files move between the two.
"""

from __future__ import annotations

import datetime
import json
import logging
import re
from typing import Any

from lzstring import LZString

from vocab_deck.exceptions import (
    CorruptTokenError,
    EmptyInputError,
    MalformedPayloadError,
)
from vocab_deck.models import FORMAT_VERSION, Entry, Snapshot

logger = logging.getLogger(__name__)

BACKUP_FILENAME = "vocab-backup-{date}.json"

_BASE64_TOKEN = re.compile(r"^[A-Za-z0-9+/]+=*$")


# ---------------------------------------------------------------------------
# Wire mapping
# ---------------------------------------------------------------------------

def snapshot_to_mapping(snapshot: Snapshot) -> dict[str, Any]:
    """Convert a snapshot to its JSON-ready wire form."""
    return {
        "version": snapshot.format_version,
        "words": [
            {
                "id": e.id,
                "word": e.word,
                "pos": e.pos,
                "zh": e.translation,
                "createdAt": e.created_at,
            }
            for e in snapshot.entries
        ],
        "counts": dict(snapshot.counters),
        "updatedAt": snapshot.exported_at,
    }


def snapshot_from_mapping(data: Any) -> Snapshot:
    """Build a snapshot from a decoded wire payload.

    Only the overall shape is enforced here; individual entries are kept
    as-is (blank fields included) and filtered at restore time.

    Raises:
        MalformedPayloadError: If ``data`` is not an object, ``words`` is not
            a list or ``counts`` is not an object.
    """
    if not isinstance(data, dict):
        raise MalformedPayloadError("Backup payload must be a JSON object")
    words = data.get("words")
    counts = data.get("counts")
    if not isinstance(words, list):
        raise MalformedPayloadError("Backup payload field 'words' must be a list")
    if not isinstance(counts, dict):
        raise MalformedPayloadError("Backup payload field 'counts' must be an object")

    version = data.get("version", FORMAT_VERSION)
    if not _is_int(version):
        version = FORMAT_VERSION
    if version > FORMAT_VERSION:
        logger.warning(
            "Backup format version %d is newer than supported (%d)",
            version, FORMAT_VERSION,
        )

    exported_at = data.get("updatedAt")
    return Snapshot(
        format_version=version,
        entries=tuple(_entry_from_mapping(w) for w in words),
        counters={str(k): v for k, v in counts.items()},
        exported_at=exported_at if _is_int(exported_at) else None,
    )


def _entry_from_mapping(item: Any) -> Entry:
    if not isinstance(item, dict):
        item = {}
    entry_id = item.get("id")
    created_at = item.get("createdAt")
    return Entry(
        id=str(entry_id) if entry_id not in (None, "") else None,
        word=_text(item.get("word")),
        pos=_text(item.get("pos")),
        translation=_text(item.get("zh")),
        created_at=created_at if _is_int(created_at) else None,
    )


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Compact token
# ---------------------------------------------------------------------------

def encode_compact(snapshot: Snapshot) -> str:
    """Encode a snapshot as a single-line printable ASCII token.

    The token is LZ-String ``compressToBase64`` output, the same form the
    browser app produces and accepts.
    """
    text = json.dumps(
        snapshot_to_mapping(snapshot), ensure_ascii=False, separators=(",", ":")
    )
    return LZString().compressToBase64(_to_utf16_units(text))


def decode_compact(token: str) -> Snapshot:
    """Decode a token produced by :func:`encode_compact` or the browser app.

    Whitespace anywhere in the token is ignored, so wrapped pastes work.

    Raises:
        EmptyInputError: If the token is blank.
        CorruptTokenError: If the token does not decompress to any data.
        MalformedPayloadError: If the data is not a snapshot-shaped JSON
            object.
    """
    compact = "".join((token or "").split())
    if not compact:
        raise EmptyInputError("Backup token is empty")
    if not _BASE64_TOKEN.match(compact):
        raise CorruptTokenError("Backup token contains non-base64 characters")

    try:
        text = LZString().decompressFromBase64(compact)
    except (IndexError, KeyError, TypeError, ValueError) as e:
        raise CorruptTokenError(f"Backup token is corrupt: {e}") from e
    if not text:
        raise CorruptTokenError("Backup token decompressed to nothing")

    try:
        text = text.encode("utf-16-le", "surrogatepass").decode("utf-16-le")
    except UnicodeError as e:
        raise MalformedPayloadError(f"Backup payload is not valid text: {e}") from e
    return _parse_json(text.encode("utf-8"))


def _to_utf16_units(text: str) -> str:
    # LZ-String compresses UTF-16 code units: astral characters go in as
    # surrogate pairs.
    units = []
    for char in text:
        code = ord(char)
        if code > 0xFFFF:
            code -= 0x10000
            units.append(chr(0xD800 + (code >> 10)))
            units.append(chr(0xDC00 + (code & 0x3FF)))
        else:
            units.append(char)
    return "".join(units)


# ---------------------------------------------------------------------------
# JSON file
# ---------------------------------------------------------------------------

def encode_file(snapshot: Snapshot) -> bytes:
    """Encode a snapshot as a pretty-printed UTF-8 JSON document."""
    text = json.dumps(snapshot_to_mapping(snapshot), ensure_ascii=False, indent=2)
    return text.encode("utf-8")


def decode_file(data: bytes | str) -> Snapshot:
    """Decode an uploaded JSON backup file.

    Raises:
        EmptyInputError: If the file is blank.
        MalformedPayloadError: If the file is not a snapshot-shaped object.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    if not data.strip():
        raise EmptyInputError("Backup file is empty")
    return _parse_json(data)


def file_to_token(data: bytes | str) -> str:
    """Re-encode an uploaded JSON file as a compact token."""
    return encode_compact(decode_file(data))


def backup_filename(day: datetime.date | None = None) -> str:
    """File name for a JSON backup taken on ``day`` (default: today)."""
    day = day or datetime.date.today()
    return BACKUP_FILENAME.format(date=day.isoformat())


def _parse_json(raw: bytes) -> Snapshot:
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedPayloadError(f"Backup payload is not valid JSON: {e}") from e
    return snapshot_from_mapping(data)
