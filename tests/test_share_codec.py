"""Share token codec tests."""

from __future__ import annotations

import base64
import json
import re
from typing import Any, Callable

import pytest

from tubeshelf.share import (
    MalformedImportToken,
    RawDeflate,
    ShareOptions,
    decode_share,
    encode_share,
    extract_share_payload,
)
from tubeshelf.state import CollectionState, Playlist, VideoItem

TOKEN_RE = re.compile(r"^v1\.[A-Za-z0-9_-]+$")


def _token(payload: Any) -> str:
    """Build a token from an arbitrary JSON payload."""
    return _raw_token(json.dumps(payload, separators=(",", ":")).encode("utf-8"))


def _raw_token(text: bytes) -> str:
    body = base64.urlsafe_b64encode(RawDeflate().compress(text)).decode("ascii")
    return "v1." + body.rstrip("=")


def _payload(token: str) -> Any:
    """Inflate a token back into its compact JSON payload."""
    body = token[len("v1.") :]
    raw = base64.urlsafe_b64decode(body + "=" * (-len(body) % 4))
    return json.loads(RawDeflate().decompress(raw))


def test_encode_produces_url_safe_unpadded_token(two_playlists: CollectionState) -> None:
    token = encode_share(two_playlists)

    assert TOKEN_RE.match(token)
    assert "=" not in token


def test_compact_payload_uses_short_keys(two_playlists: CollectionState) -> None:
    payload = _payload(encode_share(two_playlists))

    assert payload["v"] == 1
    music, talks = payload["p"]
    assert music["n"] == "Music"
    assert music["c"] == 100
    assert music["i"][0] == {
        "u": "https://www.youtube.com/watch?v=song0000001",
        "y": "song0000001",
        "t": "A Song",
        "g": ["music", "Live"],
        "a": 200,
    }
    assert music["i"][1] == {"u": "https://example.com/clip", "a": 150}
    assert talks == {"n": "Talks", "c": 50, "i": []}


def test_round_trip_preserves_content_and_mints_fresh_ids(
    two_playlists: CollectionState, ids, clock
) -> None:
    decoded = decode_share(encode_share(two_playlists), ids=ids, clock=clock)

    assert [p.name for p in decoded.playlists] == ["Music", "Talks"]
    assert [p.created_at for p in decoded.playlists] == [100, 50]
    music = decoded.playlists[0]
    assert [item.url for item in music.items] == [
        "https://www.youtube.com/watch?v=song0000001",
        "https://example.com/clip",
    ]
    assert music.items[0].title == "A Song"
    assert music.items[0].tags == ("music", "Live")
    assert [item.added_at for item in music.items] == [200, 150]

    original_ids = {p.id for p in two_playlists.playlists} | {
        item.id for p in two_playlists.playlists for item in p.items
    }
    decoded_ids = {p.id for p in decoded.playlists} | {
        item.id for p in decoded.playlists for item in p.items
    }
    assert not original_ids & decoded_ids
    assert decoded.selected_playlist_id == decoded.playlists[0].id


def test_unicode_names_survive_round_trip(ids, clock) -> None:
    state = CollectionState(
        selected_playlist_id="pl_x",
        playlists=(Playlist(id="pl_x", name="Café ☕ 音楽", created_at=1),),
    )

    decoded = decode_share(encode_share(state), ids=ids, clock=clock)

    assert decoded.playlists[0].name == "Café ☕ 音楽"


def test_selected_scope_shares_only_selected_playlist(two_playlists: CollectionState) -> None:
    payload = _payload(encode_share(two_playlists, ShareOptions(scope="selected")))

    assert [p["n"] for p in payload["p"]] == ["Music"]


def test_thumbnails_only_included_on_request(
    make_item: Callable[..., VideoItem],
) -> None:
    item = make_item(
        "v_1", "https://youtu.be/abc", video_id="abc", thumbnail_url="https://img/abc.jpg"
    )
    state = CollectionState(
        selected_playlist_id="pl_1",
        playlists=(Playlist(id="pl_1", name="One", created_at=1, items=(item,)),),
    )

    without = _payload(encode_share(state))
    with_thumbs = _payload(encode_share(state, ShareOptions(include_thumbnails=True)))

    assert "h" not in without["p"][0]["i"][0]
    assert with_thumbs["p"][0]["i"][0]["h"] == "https://img/abc.jpg"


def test_missing_fields_fall_back_to_defaults(ids, clock) -> None:
    token = _token({"v": 1, "p": [{"i": [{"u": "https://example.com/a", "a": 0}]}]})

    decoded = decode_share(token, ids=ids, clock=clock)

    playlist = decoded.playlists[0]
    assert playlist.name == "Imported"
    assert playlist.created_at == clock()
    assert playlist.items[0].added_at == clock()
    assert playlist.items[0].tags == ()
    assert playlist.items[0].video_id is None


def test_blank_playlist_name_falls_back_to_imported(ids, clock) -> None:
    token = _token({"v": 1, "p": [{"n": "   ", "i": []}, {"n": "  Road trip ", "i": []}]})

    decoded = decode_share(token, ids=ids, clock=clock)

    assert [p.name for p in decoded.playlists] == ["Imported", "Road trip"]


def test_surrounding_whitespace_is_ignored(two_playlists: CollectionState, ids, clock) -> None:
    token = encode_share(two_playlists)

    decoded = decode_share(f"  {token}\n", ids=ids, clock=clock)

    assert len(decoded.playlists) == 2


@pytest.mark.parametrize(
    "token",
    [
        "",
        "v2.abc",
        "v1.",
        "v1.abc+def",
        "v1.!!!!",
        "v1.AAAA",
        _token({"v": 1, "p": []}),
        _token({"v": 2, "p": [{"n": "x", "i": []}]}),
        _token({"v": 1, "p": [{"n": "x", "i": [{"t": "no url"}]}]}),
        _token([1, 2, 3]),
        "v1." + base64.urlsafe_b64encode(RawDeflate().compress(b"not json")).decode().rstrip("="),
    ],
)
def test_malformed_tokens_raise(token: str, ids, clock) -> None:
    with pytest.raises(MalformedImportToken):
        decode_share(token, ids=ids, clock=clock)


def test_deeply_nested_payload_is_rejected(ids, clock) -> None:
    token = _raw_token(b'{"v":1,"p":' + b"[" * 200_000 + b"]" * 200_000 + b"}")

    with pytest.raises(MalformedImportToken):
        decode_share(token, ids=ids, clock=clock)


def test_truncated_stream_is_rejected(two_playlists: CollectionState, ids, clock) -> None:
    compressed = RawDeflate().compress(json.dumps(two_playlists.to_record()).encode("utf-8"))
    body = base64.urlsafe_b64encode(compressed[: len(compressed) // 2]).decode().rstrip("=")

    with pytest.raises(MalformedImportToken):
        decode_share("v1." + body, ids=ids, clock=clock)


def test_inflated_size_is_capped(two_playlists: CollectionState, ids, clock) -> None:
    token = encode_share(two_playlists)

    with pytest.raises(MalformedImportToken):
        decode_share(token, ids=ids, clock=clock, compressor=RawDeflate(max_output=32))


def test_raw_deflate_rejects_oversized_output() -> None:
    compressed = RawDeflate().compress(b"x" * 1000)

    assert RawDeflate().decompress(compressed) == b"x" * 1000
    with pytest.raises(ValueError):
        RawDeflate(max_output=999).decompress(compressed)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("  v1.abc_DEF-1  ", "v1.abc_DEF-1"),
        ("https://app.example/#/import?d=v1.abc", "v1.abc"),
        ("https://app.example/#/import?x=1&d=v1.xyz", "v1.xyz"),
        ("https://app.example/?d=v1.query", "v1.query"),
        ("https://app.example/", None),
        ("just some words", None),
        ("", None),
    ],
)
def test_extract_share_payload(text: str, expected: str | None) -> None:
    assert extract_share_payload(text) == expected
