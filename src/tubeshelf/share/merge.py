"""Policies for applying a decoded import to the current collection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Literal, Set

from tubeshelf.state.models import CollectionState
from tubeshelf.state.operations import ensure_selection

from .codec import IMPORTED_PLAYLIST_NAME

LOGGER = logging.getLogger(__name__)

ImportMode = Literal["replace", "merge"]
IMPORT_MODES: tuple[ImportMode, ...] = ("merge", "replace")


@dataclass(frozen=True, slots=True)
class ImportSummary:
    """Preview of what an import would bring in.

    Attributes:
        playlist_count: Number of decoded playlists.
        item_count: Total number of decoded items.
        playlist_names: Names of the first few playlists.
    """

    playlist_count: int
    item_count: int
    playlist_names: List[str]


def summarize_import(imported: CollectionState, *, preview_limit: int = 6) -> ImportSummary:
    return ImportSummary(
        playlist_count=len(imported.playlists),
        item_count=sum(len(playlist.items) for playlist in imported.playlists),
        playlist_names=[playlist.name for playlist in imported.playlists[:preview_limit]],
    )


def _name_key(name: str) -> str:
    return name.strip().lower()


def unique_playlist_name(name: str, taken: Set[str]) -> str:
    """Return ``name`` or ``name (N)`` so that it is unique among ``taken``.

    Args:
        name: Desired playlist name.
        taken: Lowercased, trimmed names already in use.

    Returns:
        str: First candidate, counting from ``(2)``, not present in ``taken``.
    """

    base = name.strip() or IMPORTED_PLAYLIST_NAME
    if _name_key(base) not in taken:
        return base
    counter = 2
    while _name_key(f"{base} ({counter})") in taken:
        counter += 1
    return f"{base} ({counter})"


def apply_import(
    current: CollectionState,
    imported: CollectionState,
    mode: ImportMode,
) -> CollectionState:
    """Combine a decoded import with the current collection.

    ``replace`` discards the current playlists in favor of the imported ones
    (keeping the current ones if the import is empty) and selects the first
    imported playlist. ``merge`` appends the imported playlists after the
    current ones, renaming imports whose names collide, and keeps the current
    selection.

    Args:
        current: Collection currently held by the application.
        imported: Decoded import with freshly minted identifiers.
        mode: ``replace`` or ``merge``.

    Returns:
        CollectionState: New collection with a valid selection.

    Raises:
        ValueError: If ``mode`` is not a known import mode.
    """

    if mode == "replace":
        if imported.playlists:
            replaced = CollectionState(
                selected_playlist_id=imported.playlists[0].id,
                playlists=imported.playlists,
            )
        else:
            replaced = current
        return ensure_selection(replaced)

    if mode != "merge":
        raise ValueError(f"Unknown import mode: {mode!r}")

    taken = {_name_key(playlist.name) for playlist in current.playlists}
    merged = []
    for playlist in imported.playlists:
        name = unique_playlist_name(playlist.name, taken)
        taken.add(_name_key(name))
        if name != playlist.name:
            LOGGER.debug("Renamed imported playlist %r to %r.", playlist.name, name)
            playlist = playlist.model_copy(update={"name": name})
        merged.append(playlist)

    combined = current.model_copy(update={"playlists": (*current.playlists, *merged)})
    return ensure_selection(combined)


__all__ = [
    "IMPORT_MODES",
    "ImportMode",
    "ImportSummary",
    "apply_import",
    "summarize_import",
    "unique_playlist_name",
]
