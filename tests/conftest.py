"""Shared pytest fixtures."""

from __future__ import annotations

import itertools
import logging
from typing import Callable, Optional

import pytest

from tubeshelf.state import CollectionState, Playlist, VideoItem

FIXED_NOW = 1_700_000_000_000


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers that CLI runs attach to the package logger."""
    yield
    logger = logging.getLogger("tubeshelf")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


class SequentialIds:
    """Deterministic identifier factory: ``pl_1``, ``v_2``, ..."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def __call__(self, prefix: str) -> str:
        return f"{prefix}_{next(self._counter)}"


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture
def clock() -> Callable[[], int]:
    return lambda: FIXED_NOW


@pytest.fixture
def make_item() -> Callable[..., VideoItem]:
    def _make(
        item_id: str,
        url: str,
        *,
        video_id: Optional[str] = None,
        title: Optional[str] = None,
        tags: tuple[str, ...] = (),
        added_at: int = 1_000,
        **extra: object,
    ) -> VideoItem:
        return VideoItem(
            id=item_id,
            url=url,
            video_id=video_id,
            title=title,
            tags=tags,
            added_at=added_at,
            **extra,
        )

    return _make


@pytest.fixture
def two_playlists(make_item: Callable[..., VideoItem]) -> CollectionState:
    """Collection with a populated "Music" playlist and an empty "Talks" one."""

    music = Playlist(
        id="pl_music",
        name="Music",
        created_at=100,
        items=(
            make_item(
                "v_song",
                "https://www.youtube.com/watch?v=song0000001",
                video_id="song0000001",
                title="A Song",
                tags=("music", "Live"),
                added_at=200,
            ),
            make_item("v_page", "https://example.com/clip", title=None, added_at=150),
        ),
    )
    talks = Playlist(id="pl_talks", name="Talks", created_at=50)
    return CollectionState(selected_playlist_id="pl_music", playlists=(music, talks))
