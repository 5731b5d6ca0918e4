"""Application service that owns the current collection state.

The :class:`Library` applies pure state operations, persists every change,
and reports each action through an :class:`ActionResult` instead of raising,
so callers always hold a valid state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Literal, Mapping, Optional, Tuple

from tubeshelf.ids import Clock, IdFactory, new_id, now_ms
from tubeshelf.links import AddVideoIntent, ImportIntent, build_share_link, parse_deep_link
from tubeshelf.metadata import MetadataLookup, MetadataLookupError, VideoMetadata
from tubeshelf.search import filter_items, parse_tags_input, tag_counts
from tubeshelf.share import (
    ImportMode,
    ImportSummary,
    MalformedImportToken,
    ShareOptions,
    apply_import,
    decode_share,
    encode_share,
    extract_share_payload,
    summarize_import,
)
from tubeshelf.state import (
    CollectionState,
    FileImportError,
    StateRepository,
    VideoItem,
    export_json,
)
from tubeshelf.state import operations as ops
from tubeshelf.urls import normalize_url

LOGGER = logging.getLogger(__name__)

LookupFailurePolicy = Literal["skip", "add_without_metadata"]

CANNOT_INTERPRET_LINK = "Cannot interpret link data."


@dataclass(slots=True)
class ActionResult:
    """Outcome of a library action.

    Attributes:
        state: Collection state after the action (unchanged on failure).
        ok: Whether the action succeeded.
        message: Short status message suitable for display.
        changed: Whether the action produced a new state.
        warning: Whether the action succeeded with a caveat worth surfacing.
    """

    state: CollectionState
    ok: bool = True
    message: str = ""
    changed: bool = False
    warning: bool = False


class Library:
    """Hold the collection, apply operations, and persist after each change."""

    def __init__(
        self,
        repository: StateRepository,
        *,
        lookup: Optional[MetadataLookup] = None,
        on_lookup_failure: LookupFailurePolicy = "skip",
        ids: IdFactory = new_id,
        clock: Clock = now_ms,
    ) -> None:
        """Initialize the library and load the persisted collection.

        Args:
            repository: Repository used to load and persist state.
            lookup: Optional metadata lookup for newly added videos.
            on_lookup_failure: ``skip`` aborts adds whose lookup fails;
                ``add_without_metadata`` adds them without title or thumbnail.
            ids: Identifier factory for new playlists and items.
            clock: Clock for creation timestamps.
        """
        self._repository = repository
        self._lookup = lookup
        self._on_lookup_failure = on_lookup_failure
        self._ids = ids
        self._clock = clock
        self._state = repository.load()

    @property
    def state(self) -> CollectionState:
        return self._state

    def resolve_playlist_id(self, playlist_id: Optional[str]) -> str:
        return playlist_id or self._state.selected_playlist_id

    # ------------------------------------------------------------------ #
    # Playlists                                                          #
    # ------------------------------------------------------------------ #

    def create_playlist(self, name: str) -> ActionResult:
        updated = ops.create_playlist(self._state, name, ids=self._ids, clock=self._clock)
        return self._commit(updated, f"Created playlist '{updated.playlists[0].name}'.")

    def rename_playlist(self, playlist_id: str, name: str) -> ActionResult:
        if ops.find_playlist(self._state, playlist_id) is None:
            return self._fail(f"No playlist with id {playlist_id}.")
        return self._commit(
            ops.rename_playlist(self._state, playlist_id, name),
            "Playlist renamed.",
        )

    def delete_playlist(self, playlist_id: str) -> ActionResult:
        playlist = ops.find_playlist(self._state, playlist_id)
        if playlist is None:
            return self._fail(f"No playlist with id {playlist_id}.")
        updated = ops.delete_playlist(self._state, playlist_id, ids=self._ids, clock=self._clock)
        return self._commit(updated, f"Deleted playlist '{playlist.name}'.")

    def select_playlist(self, playlist_id: str) -> ActionResult:
        if ops.find_playlist(self._state, playlist_id) is None:
            return self._fail(f"No playlist with id {playlist_id}.")
        return self._commit(ops.select_playlist(self._state, playlist_id), "Playlist selected.")

    # ------------------------------------------------------------------ #
    # Videos                                                             #
    # ------------------------------------------------------------------ #

    def add_video(
        self,
        url: str,
        *,
        playlist_id: Optional[str] = None,
        tags: Iterable[str] = (),
        source_title: Optional[str] = None,
    ) -> ActionResult:
        """Normalize ``url``, look up its metadata, and prepend it to a playlist.

        Args:
            url: URL as pasted or shared.
            playlist_id: Target playlist; defaults to the selected one.
            tags: Tags to attach to the new item.
            source_title: Title supplied by the sharing application.

        Returns:
            ActionResult: Failure when the URL is blank, the playlist is missing,
            or the lookup fails under the ``skip`` policy.
        """
        normalized = normalize_url(url)
        if not normalized.url:
            return self._fail("Enter a video URL.")
        target_id = self.resolve_playlist_id(playlist_id)
        playlist = ops.find_playlist(self._state, target_id)
        if playlist is None:
            return self._fail(f"No playlist with id {target_id}.")

        metadata = VideoMetadata()
        caveat = ""
        if self._lookup is not None:
            try:
                metadata = self._lookup(normalized.url)
            except MetadataLookupError as exc:
                LOGGER.warning("%s", exc)
                if self._on_lookup_failure == "skip":
                    return self._fail("Could not add the video; check the network or the address.")
                caveat = " Title lookup failed; saved without metadata."

        item = VideoItem(
            id=self._ids("v"),
            url=normalized.url,
            video_id=normalized.video_id,
            title=metadata.title,
            thumbnail_url=metadata.thumbnail_url,
            source_title=(source_title or "").strip() or None,
            tags=tuple(tags),
            added_at=self._clock(),
        )
        updated = ops.add_video_to_playlist(self._state, target_id, item)
        if updated is self._state:
            return ActionResult(self._state, True, f"Already in '{playlist.name}'.")
        return self._commit(updated, f"Added to '{playlist.name}'.{caveat}", warning=bool(caveat))

    def remove_video(self, item_id: str, *, playlist_id: Optional[str] = None) -> ActionResult:
        target_id = self.resolve_playlist_id(playlist_id)
        updated = ops.remove_video_from_playlist(self._state, target_id, item_id)
        if updated is self._state:
            return self._fail(f"No item {item_id} in playlist {target_id}.")
        return self._commit(updated, "Video removed.")

    def update_video(
        self,
        item_id: str,
        patch: Mapping[str, Any],
        *,
        playlist_id: Optional[str] = None,
    ) -> ActionResult:
        target_id = self.resolve_playlist_id(playlist_id)
        updated = ops.update_video_in_playlist(self._state, target_id, item_id, patch)
        if updated is self._state:
            return self._fail(f"Could not update item {item_id}.")
        return self._commit(updated, "Video updated.")

    def set_tags(
        self,
        item_id: str,
        raw_tags: str,
        *,
        playlist_id: Optional[str] = None,
    ) -> ActionResult:
        tags = tuple(parse_tags_input(raw_tags))
        return self.update_video(item_id, {"tags": tags}, playlist_id=playlist_id)

    def move_video(
        self,
        item_id: str,
        to_playlist_id: str,
        *,
        from_playlist_id: Optional[str] = None,
    ) -> ActionResult:
        """Move an item to another playlist.

        When the destination already holds the same video the item is removed
        from the source and not added to the destination; the result carries a
        warning message in that case.
        """
        source_id = self.resolve_playlist_id(from_playlist_id)
        dropped = ops.move_would_drop(self._state, source_id, to_playlist_id, item_id)
        updated = ops.move_video(self._state, source_id, to_playlist_id, item_id)
        if updated is self._state:
            return self._fail(f"Could not move item {item_id}.")
        if dropped:
            LOGGER.warning(
                "Item %s was already in playlist %s; it was removed from %s only.",
                item_id,
                to_playlist_id,
                source_id,
            )
            return self._commit(
                updated,
                "The destination already had this video; it was removed from the source only.",
                warning=True,
            )
        return self._commit(updated, "Video moved.")

    # ------------------------------------------------------------------ #
    # Search                                                             #
    # ------------------------------------------------------------------ #

    def search(self, query: str = "", *, playlist_id: Optional[str] = None) -> List[VideoItem]:
        playlist = ops.find_playlist(self._state, self.resolve_playlist_id(playlist_id))
        if playlist is None:
            return []
        return filter_items(playlist.items, query)

    def popular_tags(self, limit: int = 18) -> List[Tuple[str, int]]:
        return tag_counts(self._state.playlists, limit=limit)

    # ------------------------------------------------------------------ #
    # Sharing and import/export                                          #
    # ------------------------------------------------------------------ #

    def share_token(self, options: Optional[ShareOptions] = None) -> str:
        return encode_share(self._state, options)

    def share_link(self, base_url: str, options: Optional[ShareOptions] = None) -> str:
        return build_share_link(base_url, self.share_token(options))

    def preview_import(self, text: str) -> Tuple[CollectionState, ImportSummary]:
        """Decode pasted link data without touching the current state.

        Args:
            text: Bare token or a link carrying one.

        Returns:
            Tuple[CollectionState, ImportSummary]: Decoded state and its summary.

        Raises:
            MalformedImportToken: If no token is found or it cannot be decoded.
        """
        token = extract_share_payload(text)
        if token is None:
            raise MalformedImportToken("No share token found in the given text.")
        imported = decode_share(token, ids=self._ids, clock=self._clock)
        return imported, summarize_import(imported)

    def import_share(self, text: str, mode: ImportMode = "merge") -> ActionResult:
        try:
            imported, _ = self.preview_import(text)
        except MalformedImportToken as exc:
            LOGGER.warning("Rejected share import: %s", exc)
            return self._fail(CANNOT_INTERPRET_LINK)
        label = "replaced" if mode == "replace" else "merged"
        updated = apply_import(self._state, imported, mode)
        return self._commit(updated, f"Import complete ({label}).")

    def export_json(self) -> str:
        return export_json(self._state)

    def import_json(self, text: str) -> ActionResult:
        """Replace the collection with the contents of an export file."""
        try:
            restored = self._repository.parse_collection(text)
        except FileImportError as exc:
            LOGGER.warning("Rejected file import: %s", exc)
            return self._fail("Import failed; check the JSON format.")
        return self._commit(restored, "Import complete.")

    def open_link(self, link: str, *, mode: ImportMode = "merge") -> ActionResult:
        """Carry out the intent of a deep link (add a video or import a token)."""
        intent = parse_deep_link(link)
        if isinstance(intent, ImportIntent):
            return self.import_share(intent.token, mode)
        if isinstance(intent, AddVideoIntent):
            return self.add_video(intent.url, source_title=intent.title)
        return self._fail("The link does not contain an add or import request.")

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _commit(
        self,
        updated: CollectionState,
        message: str,
        *,
        warning: bool = False,
    ) -> ActionResult:
        if updated is self._state:
            return ActionResult(self._state, True, message, changed=False, warning=warning)
        self._state = updated
        self._persist()
        return ActionResult(updated, True, message, changed=True, warning=warning)

    def _fail(self, message: str) -> ActionResult:
        return ActionResult(self._state, False, message)

    def _persist(self) -> None:
        try:
            self._repository.save(self._state)
        except OSError as exc:
            LOGGER.warning("Could not persist the collection: %s", exc)


__all__ = ["ActionResult", "CANNOT_INTERPRET_LINK", "Library", "LookupFailurePolicy"]
