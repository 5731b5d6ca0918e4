"""State data models for playlist collections."""

from __future__ import annotations

from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ShelfModel(BaseModel):
    """Shared configuration for persisted TubeShelf models.

    Models are frozen so that every state transition produces a new value.
    Serialized field names use camelCase to match the persisted record.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_record(self) -> dict:
        """Return the JSON-ready representation with absent fields omitted."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class VideoItem(ShelfModel):
    """A single saved video reference.

    Attributes:
        id: Globally unique identifier assigned at creation.
        url: Normalized URL of the video.
        video_id: Provider video identifier when known.
        title: Title resolved by the metadata lookup.
        thumbnail_url: Thumbnail resolved by the metadata lookup.
        source_title: Title supplied by the sharing application.
        tags: Ordered free-form tags, unique case-insensitively.
        added_at: Creation time in epoch milliseconds.
    """

    id: str
    url: str
    video_id: Optional[str] = None
    title: Optional[str] = None
    thumbnail_url: Optional[str] = None
    source_title: Optional[str] = None
    tags: Tuple[str, ...] = ()
    added_at: int

    @property
    def display_title(self) -> str:
        return self.title or self.source_title or ""


class Playlist(ShelfModel):
    """An ordered collection of videos, most recently added first."""

    id: str
    name: str
    created_at: int
    items: Tuple[VideoItem, ...] = ()


class CollectionState(ShelfModel):
    """The whole collection as persisted and shared."""

    version: Literal[1] = 1
    selected_playlist_id: str
    playlists: Tuple[Playlist, ...] = Field(default_factory=tuple)

    @property
    def selected_playlist(self) -> Optional[Playlist]:
        for playlist in self.playlists:
            if playlist.id == self.selected_playlist_id:
                return playlist
        return self.playlists[0] if self.playlists else None


__all__ = ["ShelfModel", "VideoItem", "Playlist", "CollectionState"]
