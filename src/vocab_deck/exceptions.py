"""Custom exception hierarchy for vocab-deck."""


class VocabDeckError(Exception):
    """Base exception for all vocab-deck errors."""


class ValidationError(VocabDeckError):
    """Invalid field data (blank after normalization, malformed word)."""


class DuplicateWordError(VocabDeckError):
    """Another entry already uses the same word (case-insensitive)."""


class EntryNotFoundError(VocabDeckError):
    """Entry doesn't exist in the store."""


class SnapshotError(VocabDeckError):
    """Failed to decode a backup token or file."""


class EmptyInputError(SnapshotError):
    """Backup token is blank after trimming."""


class CorruptTokenError(SnapshotError):
    """Backup token does not decompress to any data."""


class MalformedPayloadError(SnapshotError):
    """Decoded payload is not JSON or lacks the snapshot shape."""


class NoPendingRestoreError(VocabDeckError):
    """Restore commit attempted without a matching preview."""


class PersistenceWriteError(VocabDeckError):
    """Writing the store to disk failed (in-memory state is still valid)."""


class DatabaseError(VocabDeckError):
    """Schema version mismatch, connection failure."""


class ConfigError(VocabDeckError):
    """Settings file could not be parsed."""
