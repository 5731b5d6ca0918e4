"""Import merge policy tests."""

from __future__ import annotations

import pytest

from tubeshelf.share import apply_import, summarize_import, unique_playlist_name
from tubeshelf.state import CollectionState, Playlist


def _imported(*names: str) -> CollectionState:
    playlists = tuple(
        Playlist(id=f"pl_in{index}", name=name, created_at=1) for index, name in enumerate(names)
    )
    return CollectionState(selected_playlist_id=playlists[0].id, playlists=playlists)


def test_replace_uses_imported_playlists_and_selects_first(
    two_playlists: CollectionState,
) -> None:
    imported = _imported("Shared", "Other")

    result = apply_import(two_playlists, imported, "replace")

    assert result.playlists == imported.playlists
    assert result.selected_playlist_id == "pl_in0"


def test_replace_with_empty_import_keeps_current(two_playlists: CollectionState) -> None:
    empty = CollectionState(selected_playlist_id="", playlists=())

    result = apply_import(two_playlists, empty, "replace")

    assert result.playlists == two_playlists.playlists
    assert result.selected_playlist_id == "pl_music"


def test_merge_appends_and_keeps_selection(two_playlists: CollectionState) -> None:
    result = apply_import(two_playlists, _imported("Shared"), "merge")

    assert [p.name for p in result.playlists] == ["Music", "Talks", "Shared"]
    assert result.selected_playlist_id == "pl_music"


def test_merge_renames_colliding_names_case_insensitively(
    two_playlists: CollectionState,
) -> None:
    result = apply_import(two_playlists, _imported(" music ", "Music", "Talks"), "merge")

    assert [p.name for p in result.playlists] == [
        "Music",
        "Talks",
        "music (2)",
        "Music (3)",
        "Talks (2)",
    ]
    assert [p.id for p in result.playlists[2:]] == ["pl_in0", "pl_in1", "pl_in2"]


def test_unknown_mode_raises(two_playlists: CollectionState) -> None:
    with pytest.raises(ValueError):
        apply_import(two_playlists, _imported("x"), "append")  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("name", "taken", "expected"),
    [
        ("Mix", set(), "Mix"),
        ("Mix", {"mix"}, "Mix (2)"),
        ("Mix", {"mix", "mix (2)"}, "Mix (3)"),
        ("  ", set(), "Imported"),
        ("  ", {"imported"}, "Imported (2)"),
    ],
)
def test_unique_playlist_name(name: str, taken: set[str], expected: str) -> None:
    assert unique_playlist_name(name, taken) == expected


def test_summarize_import_counts_and_previews_names(two_playlists: CollectionState) -> None:
    summary = summarize_import(two_playlists, preview_limit=1)

    assert summary.playlist_count == 2
    assert summary.item_count == 2
    assert summary.playlist_names == ["Music"]
