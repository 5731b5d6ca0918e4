"""State management errors."""


class StateError(Exception):
    """Base exception for collection state operations."""


class MalformedPersistedState(StateError):
    """Raised when a persisted record fails the version or schema check."""


class FileImportError(StateError):
    """Raised when an export file cannot be restored into the collection."""
