"""Key-value blob stores backing the state repository."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Optional, Protocol

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class BlobStore(Protocol):
    """Opaque key-value storage for serialized records."""

    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, data: bytes) -> None: ...


class MemoryBlobStore:
    """In-process blob store, mainly for tests."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None) -> None:
        self._blobs: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._blobs.get(key)

    def set(self, key: str, data: bytes) -> None:
        self._blobs[key] = bytes(data)


class FileBlobStore:
    """Blob store that keeps one file per key inside a directory."""

    def __init__(self, directory: Path) -> None:
        """Initialize the store rooted at ``directory``.

        Args:
            directory: Directory holding one file per key; created on first write.
        """
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """Return the file that backs ``key``.

        Args:
            key: Store key such as ``tubeshelf:data:v1``.

        Returns:
            Path: File path with unsafe characters replaced by underscores.
        """
        return self._directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, data: bytes) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        staging = path.with_suffix(".tmp")
        staging.write_bytes(data)
        staging.replace(path)


__all__ = ["BlobStore", "FileBlobStore", "MemoryBlobStore"]
