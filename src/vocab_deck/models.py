"""Domain model dataclasses and enums for vocab-deck."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

FORMAT_VERSION = 1

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class RestoreMode(str, Enum):
    """How an incoming snapshot is combined with the current store."""

    MERGE = "merge"
    OVERWRITE = "overwrite"


class RestoreState(str, Enum):
    """Lifecycle of a single restore operation."""

    IDLE = "idle"
    PREVIEWED = "previewed"
    COMMITTED = "committed"
    DISCARDED = "discarded"


class SaveStatus(str, Enum):
    """Persistence indicator shown next to the deck."""

    SAVING = "saving"
    SAVED = "saved"
    FAILED = "failed"


class ValidationSeverity(str, Enum):
    """Severity level for validation results."""

    ERROR = "ERROR"
    WARNING = "WARNING"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Entry:
    """A vocabulary flashcard (word + part of speech + translation).

    ``id`` is only ``None`` for entries read from an incoming snapshot that
    did not carry one; entries held by a store always have an id.
    """

    id: str | None
    word: str
    pos: str
    translation: str
    created_at: int | None

    @property
    def key(self) -> str:
        """Case-insensitive lookup key for the word."""
        return self.word.lower()


@dataclass(frozen=True, slots=True)
class Snapshot:
    """A point-in-time copy of all entries and exposure counters."""

    format_version: int
    entries: tuple[Entry, ...]
    counters: dict[str, Any]
    exported_at: int | None


@dataclass(frozen=True, slots=True)
class PreviewReport:
    """Effect of a restore, computed before anything is changed.

    Counts describe the actual outcome, not the raw backup: incomplete
    entries are only counted in ``skipped``, and a word repeated inside the
    backup is one add (its first copy) plus updates for the rest, so
    ``will_add`` can be lower than the number of unknown words listed.
    ``incoming_count`` is the number of complete incoming entries.
    """

    mode: RestoreMode
    current_count: int
    incoming_count: int
    skipped: int
    will_add: int
    will_update: int
    will_change: int

    def describe(self) -> str:
        """Render the report as the text shown before confirmation."""
        if self.mode is RestoreMode.OVERWRITE:
            return "\n".join([
                "Mode: overwrite",
                f"Current: {self.current_count} entries -> replaced entirely",
                f"Backup: {self.incoming_count} entries",
                f"Skipped: {self.skipped} incomplete",
                f"Result: {self.incoming_count} entries (backup wins)",
                "",
                "Warning: overwrite discards all current entries and counters.",
            ])
        return "\n".join([
            "Mode: merge",
            f"Current: {self.current_count} entries",
            f"Backup: {self.incoming_count} entries",
            f"Skipped: {self.skipped} incomplete",
            f"Will add: {self.will_add}",
            f"Will update: {self.will_update} (same word, {self.will_change} changed)",
            "",
            "Exposure counts keep the larger value, so they never go backwards.",
        ])


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """A single validation finding (error or warning)."""

    rule_id: str
    severity: str
    entity_id: str
    message: str
    details: dict[str, Any] | None
