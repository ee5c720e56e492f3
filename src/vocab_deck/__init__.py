"""vocab-deck: vocabulary flashcards with fair random rounds and backups."""

__version__ = "0.1.0"

from vocab_deck.exceptions import (
    ConfigError as ConfigError,
    CorruptTokenError as CorruptTokenError,
    DatabaseError as DatabaseError,
    DuplicateWordError as DuplicateWordError,
    EmptyInputError as EmptyInputError,
    EntryNotFoundError as EntryNotFoundError,
    MalformedPayloadError as MalformedPayloadError,
    NoPendingRestoreError as NoPendingRestoreError,
    PersistenceWriteError as PersistenceWriteError,
    SnapshotError as SnapshotError,
    ValidationError as ValidationError,
    VocabDeckError as VocabDeckError,
)
from vocab_deck.models import (
    Entry as Entry,
    PreviewReport as PreviewReport,
    RestoreMode as RestoreMode,
    RestoreState as RestoreState,
    SaveStatus as SaveStatus,
    Snapshot as Snapshot,
    ValidationResult as ValidationResult,
)
from vocab_deck.codec import (
    decode_compact as decode_compact,
    decode_file as decode_file,
    encode_compact as encode_compact,
    encode_file as encode_file,
)
from vocab_deck.store import WordStore as WordStore
from vocab_deck.scheduler import RoundScheduler as RoundScheduler
from vocab_deck.reconcile import ReconciliationEngine as ReconciliationEngine
from vocab_deck.persistence import DebouncedWriter as DebouncedWriter
from vocab_deck.config import Settings as Settings, load_settings as load_settings
from vocab_deck.session import Callbacks as Callbacks, StudySession as StudySession

__all__ = [
    # Main entry point
    "StudySession",
    "Callbacks",
    # Components
    "WordStore",
    "RoundScheduler",
    "ReconciliationEngine",
    "DebouncedWriter",
    # Codec
    "encode_compact",
    "decode_compact",
    "encode_file",
    "decode_file",
    # Config
    "Settings",
    "load_settings",
    # Models
    "Entry",
    "Snapshot",
    "PreviewReport",
    "ValidationResult",
    "RestoreMode",
    "RestoreState",
    "SaveStatus",
    # Exceptions
    "VocabDeckError",
    "ValidationError",
    "DuplicateWordError",
    "EntryNotFoundError",
    "SnapshotError",
    "EmptyInputError",
    "CorruptTokenError",
    "MalformedPayloadError",
    "NoPendingRestoreError",
    "PersistenceWriteError",
    "DatabaseError",
    "ConfigError",
]
