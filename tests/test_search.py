"""Tag parsing and query matching tests."""

from __future__ import annotations

from typing import Callable

import pytest

from tubeshelf.search import (
    filter_items,
    format_tags,
    match_item,
    parse_tags_input,
    split_query,
    tag_counts,
)
from tubeshelf.state import Playlist, VideoItem


def test_parse_tags_dedupes_case_insensitively_and_strips_hash() -> None:
    assert parse_tags_input("a, #a, A, b") == ["a", "b"]


def test_parse_tags_splits_on_newlines_and_drops_empty_tokens() -> None:
    assert parse_tags_input("Music\n#Live,, live , #, ") == ["Music", "Live"]
    assert parse_tags_input("") == []


def test_format_tags_adds_missing_hash() -> None:
    assert format_tags(["dev", "#music"]) == ["#dev", "#music"]


def test_split_query_separates_tags_and_text() -> None:
    assert split_query("#Dev Hello  #  world") == (["dev"], ["hello", "world"])


@pytest.fixture
def catalog(make_item: Callable[..., VideoItem]) -> list[VideoItem]:
    return [
        make_item(
            "v_1", "https://youtu.be/aaa", video_id="aaa", title="Hello World", tags=("Dev",)
        ),
        make_item(
            "v_2", "https://youtu.be/bbb", video_id="bbb", title="hello again", tags=("music",)
        ),
        make_item("v_3", "https://youtu.be/ccc", video_id="ccc", title="Goodbye", tags=("dev",)),
        make_item("v_4", "https://example.com/hello-talk", tags=("#DEV", "talks")),
    ]


def test_match_item_requires_tags_and_text(catalog: list[VideoItem]) -> None:
    matched = [item.id for item in catalog if match_item(item, "#dev hello")]

    assert matched == ["v_1", "v_4"]


def test_empty_query_matches_everything(catalog: list[VideoItem]) -> None:
    assert filter_items(catalog, "   ") == catalog


def test_tag_filters_match_whole_tags_only(catalog: list[VideoItem]) -> None:
    assert filter_items(catalog, "#de") == []
    assert [item.id for item in filter_items(catalog, "#dev #talks")] == ["v_4"]


def test_text_filters_search_video_id_and_source_title(
    make_item: Callable[..., VideoItem],
) -> None:
    shared = make_item("v_9", "https://youtu.be/zzz", video_id="XyZ42", source_title="Shared Clip")

    assert match_item(shared, "xyz42")
    assert match_item(shared, "shared clip")
    assert not match_item(shared, "missing")


def test_tag_counts_orders_by_frequency(make_item: Callable[..., VideoItem]) -> None:
    playlists = [
        Playlist(
            id="pl_a",
            name="A",
            created_at=1,
            items=(
                make_item("v_1", "u1", tags=("music", "live")),
                make_item("v_2", "u2", tags=("#music",)),
            ),
        ),
        Playlist(
            id="pl_b", name="B", created_at=1, items=(make_item("v_3", "u3", tags=("music",)),)
        ),
    ]

    assert tag_counts(playlists) == [("music", 3), ("live", 1)]
    assert tag_counts(playlists, limit=1) == [("music", 3)]
