"""Share token errors."""


class ShareError(Exception):
    """Base exception for share link handling."""


class MalformedImportToken(ShareError):
    """Raised when link data cannot be interpreted as an importable collection."""
