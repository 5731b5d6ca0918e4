"""Pure state transitions for playlist collections.

Every function takes a :class:`CollectionState` and returns a state. When an
operation does not apply, the original object is returned unchanged so callers
can detect "no change" with an identity check.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from tubeshelf.ids import Clock, IdFactory, new_id, now_ms

from .models import CollectionState, Playlist, VideoItem

LOGGER = logging.getLogger(__name__)

DEFAULT_PLAYLIST_NAME = "Favorites"
NEW_PLAYLIST_NAME = "New playlist"


def default_state(
    *,
    ids: IdFactory = new_id,
    clock: Clock = now_ms,
    name: str = DEFAULT_PLAYLIST_NAME,
) -> CollectionState:
    """Return a freshly seeded collection holding one empty playlist.

    Args:
        ids: Identifier factory used for the seeded playlist.
        clock: Clock providing the creation timestamp.
        name: Name of the seeded playlist.

    Returns:
        CollectionState: Collection with the seeded playlist selected.
    """

    playlist = Playlist(id=ids("pl"), name=name, created_at=clock())
    return CollectionState(selected_playlist_id=playlist.id, playlists=(playlist,))


def dedup_key(item: VideoItem) -> str:
    """Return the key that must be unique among items of one playlist."""

    return item.video_id or item.url.strip()


def find_playlist(state: CollectionState, playlist_id: str) -> Optional[Playlist]:
    for playlist in state.playlists:
        if playlist.id == playlist_id:
            return playlist
    return None


def find_item(playlist: Playlist, item_id: str) -> Optional[VideoItem]:
    for item in playlist.items:
        if item.id == item_id:
            return item
    return None


def ensure_selection(state: CollectionState) -> CollectionState:
    """Repoint a dangling selection at the first playlist."""

    if not state.playlists or find_playlist(state, state.selected_playlist_id) is not None:
        return state
    return state.model_copy(update={"selected_playlist_id": state.playlists[0].id})


def upsert_playlist(state: CollectionState, playlist: Playlist) -> CollectionState:
    """Replace the playlist with the same id, or insert it at the front."""

    playlists = list(state.playlists)
    for index, existing in enumerate(playlists):
        if existing.id == playlist.id:
            playlists[index] = playlist
            break
    else:
        playlists.insert(0, playlist)
    return state.model_copy(update={"playlists": tuple(playlists)})


def create_playlist(
    state: CollectionState,
    name: str,
    *,
    ids: IdFactory = new_id,
    clock: Clock = now_ms,
) -> CollectionState:
    """Insert a new empty playlist at the front and select it."""

    playlist = Playlist(id=ids("pl"), name=name.strip() or NEW_PLAYLIST_NAME, created_at=clock())
    updated = upsert_playlist(state, playlist)
    return updated.model_copy(update={"selected_playlist_id": playlist.id})


def rename_playlist(state: CollectionState, playlist_id: str, name: str) -> CollectionState:
    playlist = find_playlist(state, playlist_id)
    cleaned = name.strip()
    if playlist is None or not cleaned or cleaned == playlist.name:
        return state
    return upsert_playlist(state, playlist.model_copy(update={"name": cleaned}))


def select_playlist(state: CollectionState, playlist_id: str) -> CollectionState:
    if state.selected_playlist_id == playlist_id or find_playlist(state, playlist_id) is None:
        return state
    return state.model_copy(update={"selected_playlist_id": playlist_id})


def delete_playlist(
    state: CollectionState,
    playlist_id: str,
    *,
    ids: IdFactory = new_id,
    clock: Clock = now_ms,
) -> CollectionState:
    """Remove a playlist, reseeding the collection if it would become empty.

    Args:
        state: Current collection state.
        playlist_id: Identifier of the playlist to remove.
        ids: Identifier factory used when reseeding.
        clock: Clock used when reseeding.

    Returns:
        CollectionState: Updated state; the selection falls back to the first
        remaining playlist when the removed one was selected.
    """

    if find_playlist(state, playlist_id) is None:
        return state
    remaining = tuple(playlist for playlist in state.playlists if playlist.id != playlist_id)
    if not remaining:
        LOGGER.debug("Deleted the last playlist; reseeding the collection.")
        return default_state(ids=ids, clock=clock)
    selected = state.selected_playlist_id
    if selected == playlist_id:
        selected = remaining[0].id
    return state.model_copy(update={"playlists": remaining, "selected_playlist_id": selected})


def add_video_to_playlist(
    state: CollectionState,
    playlist_id: str,
    item: VideoItem,
) -> CollectionState:
    """Prepend ``item`` unless the playlist already holds its dedup key."""

    playlist = find_playlist(state, playlist_id)
    if playlist is None:
        return state
    key = dedup_key(item)
    if any(dedup_key(existing) == key for existing in playlist.items):
        LOGGER.debug("Skipped duplicate %s in playlist %s.", key, playlist_id)
        return state
    return upsert_playlist(state, playlist.model_copy(update={"items": (item, *playlist.items)}))


def remove_video_from_playlist(
    state: CollectionState,
    playlist_id: str,
    item_id: str,
) -> CollectionState:
    playlist = find_playlist(state, playlist_id)
    if playlist is None or find_item(playlist, item_id) is None:
        return state
    items = tuple(item for item in playlist.items if item.id != item_id)
    return upsert_playlist(state, playlist.model_copy(update={"items": items}))


def update_video_in_playlist(
    state: CollectionState,
    playlist_id: str,
    item_id: str,
    patch: Mapping[str, Any],
) -> CollectionState:
    """Shallow-merge ``patch`` onto an item; the item id never changes.

    Args:
        state: Current collection state.
        playlist_id: Playlist holding the item.
        item_id: Identifier of the item to update.
        patch: Field values keyed by attribute name (``title``, ``tags`` ...).

    Returns:
        CollectionState: Updated state, or ``state`` itself when the playlist or
        item is missing or the patch does not validate or would give the
        item the same dedup key as another item in the playlist.
    """

    playlist = find_playlist(state, playlist_id)
    if playlist is None:
        return state
    current = find_item(playlist, item_id)
    if current is None:
        return state

    merged = current.model_dump()
    merged.update({key: value for key, value in patch.items() if key != "id"})
    try:
        replacement = VideoItem.model_validate(merged)
    except ValidationError as exc:
        LOGGER.warning("Ignored invalid update for item %s: %s", item_id, exc)
        return state

    key = dedup_key(replacement)
    if any(item.id != item_id and dedup_key(item) == key for item in playlist.items):
        LOGGER.warning("Ignored update for item %s: %s is already in the playlist.", item_id, key)
        return state

    items = tuple(replacement if item.id == item_id else item for item in playlist.items)
    return upsert_playlist(state, playlist.model_copy(update={"items": items}))


def move_video(
    state: CollectionState,
    from_playlist_id: str,
    to_playlist_id: str,
    item_id: str,
) -> CollectionState:
    """Move an item between playlists by composing remove and add.

    When the destination already holds an item with the same dedup key the add
    is a no-op, so the item leaves the source and does not reach the
    destination. Use :func:`move_would_drop` to warn before calling.
    """

    if from_playlist_id == to_playlist_id:
        return state
    source = find_playlist(state, from_playlist_id)
    if source is None or find_playlist(state, to_playlist_id) is None:
        return state
    item = find_item(source, item_id)
    if item is None:
        return state

    updated = remove_video_from_playlist(state, from_playlist_id, item_id)
    return add_video_to_playlist(updated, to_playlist_id, item)


def move_would_drop(
    state: CollectionState,
    from_playlist_id: str,
    to_playlist_id: str,
    item_id: str,
) -> bool:
    """Return True when :func:`move_video` would discard the item."""

    if from_playlist_id == to_playlist_id:
        return False
    source = find_playlist(state, from_playlist_id)
    destination = find_playlist(state, to_playlist_id)
    if source is None or destination is None:
        return False
    item = find_item(source, item_id)
    if item is None:
        return False
    key = dedup_key(item)
    return any(dedup_key(existing) == key for existing in destination.items)


__all__ = [
    "DEFAULT_PLAYLIST_NAME",
    "NEW_PLAYLIST_NAME",
    "add_video_to_playlist",
    "create_playlist",
    "dedup_key",
    "default_state",
    "delete_playlist",
    "ensure_selection",
    "find_item",
    "find_playlist",
    "move_video",
    "move_would_drop",
    "remove_video_from_playlist",
    "rename_playlist",
    "select_playlist",
    "update_video_in_playlist",
    "upsert_playlist",
]
