"""State persistence helpers for TubeShelf collections."""

from __future__ import annotations

import json
import logging
from typing import Any, Union

from pydantic import ValidationError

from tubeshelf.ids import Clock, IdFactory, new_id, now_ms

from .errors import FileImportError, MalformedPersistedState, StateError
from .models import CollectionState, Playlist, VideoItem
from .operations import default_state, ensure_selection
from .store import BlobStore, FileBlobStore, MemoryBlobStore

LOGGER = logging.getLogger(__name__)

STORAGE_KEY = "tubeshelf:data:v1"


def decode_record(raw: Union[str, bytes]) -> CollectionState:
    """Validate a serialized collection record.

    Args:
        raw: JSON text or UTF-8 bytes holding the persisted record.

    Returns:
        CollectionState: Validated state with a repaired selection.

    Raises:
        MalformedPersistedState: If the record is not JSON, fails the version
            or schema check, or holds no playlists.
    """
    try:
        data: Any = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise MalformedPersistedState(f"Collection record is not valid JSON: {exc}") from exc

    if not isinstance(data, dict) or data.get("version") != 1:
        raise MalformedPersistedState("Collection record has an unsupported version.")
    try:
        state = CollectionState.model_validate(data)
    except (ValidationError, RecursionError) as exc:
        raise MalformedPersistedState(f"Collection record failed validation: {exc}") from exc
    if not state.playlists:
        raise MalformedPersistedState("Collection record holds no playlists.")
    return ensure_selection(state)


def export_json(state: CollectionState) -> str:
    """Return the pretty-printed export file text for ``state``."""
    return json.dumps(state.to_record(), indent=2, ensure_ascii=False)


class StateRepository:
    """Load and save the collection through an injected blob store."""

    def __init__(
        self,
        store: BlobStore,
        *,
        key: str = STORAGE_KEY,
        ids: IdFactory = new_id,
        clock: Clock = now_ms,
    ) -> None:
        """Initialize the repository.

        Args:
            store: Key-value store holding the serialized record.
            key: Key under which the record is stored.
            ids: Identifier factory used when seeding a default state.
            clock: Clock used when seeding a default state.
        """
        self._store = store
        self._key = key
        self._ids = ids
        self._clock = clock

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> CollectionState:
        """Load the collection, falling back to a seeded default.

        Returns:
            CollectionState: Persisted state, or a fresh default when the record
            is absent, unreadable or malformed.
        """
        try:
            raw = self._store.get(self._key)
        except OSError as exc:
            LOGGER.warning("Could not read the stored collection: %s", exc)
            return self.seed()
        if raw is None:
            LOGGER.debug("No stored collection under %s; seeding defaults.", self._key)
            return self.seed()
        try:
            return decode_record(raw)
        except MalformedPersistedState as exc:
            LOGGER.warning("Discarding stored collection: %s", exc)
            return self.seed()

    def save(self, state: CollectionState) -> None:
        """Persist the full collection as one compact JSON record.

        Args:
            state: State to serialize.
        """
        payload = json.dumps(state.to_record(), ensure_ascii=False, separators=(",", ":"))
        self._store.set(self._key, payload.encode("utf-8"))

    def seed(self) -> CollectionState:
        return default_state(ids=self._ids, clock=self._clock)

    def parse_collection(self, raw: Union[str, bytes]) -> CollectionState:
        """Validate export-file content selected by the user.

        Args:
            raw: File contents.

        Returns:
            CollectionState: Validated collection ready to replace the current one.

        Raises:
            FileImportError: If the content does not match the persisted schema.
        """
        try:
            return decode_record(raw)
        except MalformedPersistedState as exc:
            raise FileImportError(str(exc)) from exc


__all__ = [
    "BlobStore",
    "CollectionState",
    "FileBlobStore",
    "FileImportError",
    "MalformedPersistedState",
    "MemoryBlobStore",
    "Playlist",
    "STORAGE_KEY",
    "StateError",
    "StateRepository",
    "VideoItem",
    "decode_record",
    "export_json",
]
