"""Field normalization and validation engine for vocab-deck."""

from __future__ import annotations

import math
import re
from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any

from vocab_deck.exceptions import ValidationError
from vocab_deck.models import Entry, ValidationResult, ValidationSeverity

_WHITESPACE = re.compile(r"\s+")
_ENGLISH_WORD = re.compile(r"^[A-Za-z][A-Za-z'’-]*(?:\s+[A-Za-z'’-]+)*$")


def normalize(value: Any) -> str:
    """Strip and collapse internal whitespace; ``None`` becomes ``""``."""
    if value is None:
        return ""
    return _WHITESPACE.sub(" ", str(value).strip())


def is_likely_english_word(word: str) -> bool:
    """Letters, spaces, apostrophes and hyphens, starting with a letter."""
    return bool(_ENGLISH_WORD.match(word))


def clean_fields(word: Any, pos: Any, translation: Any) -> tuple[str, str, str]:
    """Normalize the three user-facing fields of an entry.

    Raises:
        ValidationError: If any field is blank after normalization or the
            word does not look like an English word.
    """
    w, p, t = normalize(word), normalize(pos), normalize(translation)
    missing = [
        name for name, val in (("word", w), ("pos", p), ("translation", t))
        if not val
    ]
    if missing:
        raise ValidationError(f"Required field(s) empty: {', '.join(missing)}")
    if not is_likely_english_word(w):
        raise ValidationError(
            f"Word {w!r} should contain only letters, spaces, apostrophes "
            "and hyphens"
        )
    return w, p, t


def coerce_count(value: Any) -> int:
    """Turn a stored counter value into a non-negative int (invalid -> 0).

    Counters count whole exposures, so fractional values are truncated
    (``2.7`` becomes ``2``) rather than kept as floats.
    """
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return int(number)


def validate_store(
    entries: Iterable[Entry],
    counters: Mapping[str, Any],
) -> list[ValidationResult]:
    """Run all validation rules over a store's entries and counters."""
    entries = list(entries)
    results: list[ValidationResult] = []
    results.extend(_val_ent_001(entries))
    results.extend(_val_ent_002(entries))
    results.extend(_val_ent_003(entries))
    results.extend(_val_cnt_001(entries, counters))
    results.extend(_val_cnt_002(counters))
    return results


def _val_ent_001(entries: list[Entry]) -> list[ValidationResult]:
    """VAL-ENT-001: Blank field."""
    results = []
    for entry in entries:
        blank = [
            name for name in ("word", "pos", "translation")
            if not normalize(getattr(entry, name))
        ]
        if blank:
            results.append(ValidationResult(
                rule_id="VAL-ENT-001",
                severity=ValidationSeverity.ERROR.value,
                entity_id=entry.id or "",
                message=f"Entry has blank field(s): {', '.join(blank)}",
                details={"fields": blank},
            ))
    return results


def _val_ent_002(entries: list[Entry]) -> list[ValidationResult]:
    """VAL-ENT-002: Duplicate word."""
    by_key: dict[str, list[str]] = defaultdict(list)
    for entry in entries:
        by_key[entry.key].append(entry.id or "")
    return [
        ValidationResult(
            rule_id="VAL-ENT-002",
            severity=ValidationSeverity.ERROR.value,
            entity_id=ids[0],
            message=f"Word {key!r} is used by {len(ids)} entries",
            details={"ids": ids},
        )
        for key, ids in by_key.items()
        if len(ids) > 1
    ]


def _val_ent_003(entries: list[Entry]) -> list[ValidationResult]:
    """VAL-ENT-003: Word does not look like English."""
    return [
        ValidationResult(
            rule_id="VAL-ENT-003",
            severity=ValidationSeverity.WARNING.value,
            entity_id=entry.id or "",
            message=f"Word {entry.word!r} does not look like an English word",
            details=None,
        )
        for entry in entries
        if entry.word and not is_likely_english_word(entry.word)
    ]


def _val_cnt_001(
    entries: list[Entry], counters: Mapping[str, Any]
) -> list[ValidationResult]:
    """VAL-CNT-001: Counter for an id with no entry (kept, never pruned)."""
    known = {entry.id for entry in entries}
    return [
        ValidationResult(
            rule_id="VAL-CNT-001",
            severity=ValidationSeverity.WARNING.value,
            entity_id=entry_id,
            message="Exposure counter has no matching entry",
            details={"count": count},
        )
        for entry_id, count in counters.items()
        if entry_id not in known
    ]


def _val_cnt_002(counters: Mapping[str, Any]) -> list[ValidationResult]:
    """VAL-CNT-002: Negative or non-numeric counter."""
    results = []
    for entry_id, count in counters.items():
        if isinstance(count, int) and not isinstance(count, bool) and count >= 0:
            continue
        results.append(ValidationResult(
            rule_id="VAL-CNT-002",
            severity=ValidationSeverity.ERROR.value,
            entity_id=entry_id,
            message=f"Exposure counter is not a non-negative integer: {count!r}",
            details=None,
        ))
    return results
