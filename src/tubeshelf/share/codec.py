"""Compact, URL-safe share tokens for playlist collections.

A token is ``v1.`` followed by the base64url (unpadded) encoding of a raw
DEFLATE stream. The compressed payload is compact JSON using single-letter
keys::

    {"v": 1, "p": [{"n": name, "c": createdAt,
                    "i": [{"u": url, "y": videoId, "t": title,
                           "g": [tags], "a": addedAt, "h": thumbnailUrl}]}]}

Empty optional fields are omitted, and ``h`` is only written on request.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
import zlib
from typing import List, Literal, Optional, Protocol
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tubeshelf.ids import Clock, IdFactory, new_id, now_ms
from tubeshelf.state.models import CollectionState, Playlist, VideoItem

from .errors import MalformedImportToken

LOGGER = logging.getLogger(__name__)

TOKEN_PREFIX = "v1."
TOKEN_PARAM = "d"
IMPORTED_PLAYLIST_NAME = "Imported"
MAX_INFLATED_BYTES = 8 * 1024 * 1024

_TOKEN_PATTERN = re.compile(r"^v1\.([A-Za-z0-9_-]+)$")


class Compressor(Protocol):
    """Symmetric byte compressor used by the codec."""

    def compress(self, data: bytes) -> bytes: ...

    def decompress(self, data: bytes) -> bytes: ...


class RawDeflate:
    """Headerless DEFLATE, compatible with ``deflateRaw``/``inflateRaw``."""

    def __init__(
        self,
        level: int = zlib.Z_DEFAULT_COMPRESSION,
        max_output: int = MAX_INFLATED_BYTES,
    ) -> None:
        self._level = level
        self._max_output = max_output

    def compress(self, data: bytes) -> bytes:
        compressor = zlib.compressobj(self._level, zlib.DEFLATED, -zlib.MAX_WBITS)
        return compressor.compress(data) + compressor.flush()

    def decompress(self, data: bytes) -> bytes:
        decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
        output = decompressor.decompress(data, self._max_output + 1)
        if len(output) > self._max_output:
            raise ValueError(f"Inflated payload exceeds {self._max_output} bytes.")
        if not decompressor.eof:
            raise ValueError("Compressed payload is truncated.")
        return output


class ShareOptions(BaseModel):
    """Options controlling what an encoded token carries.

    Attributes:
        scope: ``all`` playlists or only the ``selected`` one.
        include_thumbnails: Whether thumbnail URLs are embedded.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    scope: Literal["all", "selected"] = "all"
    include_thumbnails: bool = False


class _CompactModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SharedItem(_CompactModel):
    u: str
    y: Optional[str] = None
    t: Optional[str] = None
    g: Optional[List[str]] = None
    a: Optional[int] = None
    h: Optional[str] = None


class SharedPlaylist(_CompactModel):
    n: Optional[str] = None
    c: Optional[int] = None
    i: List[SharedItem] = Field(default_factory=list)


class SharedCollection(_CompactModel):
    v: Literal[1]
    p: List[SharedPlaylist]


def encode_share(
    state: CollectionState,
    options: Optional[ShareOptions] = None,
    *,
    compressor: Optional[Compressor] = None,
) -> str:
    """Serialize part of the collection into a ``v1.`` share token.

    Args:
        state: Collection to share.
        options: Scope and thumbnail options; defaults to all playlists
            without thumbnails.
        compressor: Compressor override; defaults to :class:`RawDeflate`.

    Returns:
        str: Token matching ``^v1\\.[A-Za-z0-9_-]+$``.
    """

    options = options or ShareOptions()
    compressor = compressor or RawDeflate()
    if options.scope == "selected":
        playlists = [p for p in state.playlists if p.id == state.selected_playlist_id]
    else:
        playlists = list(state.playlists)

    payload = SharedCollection(
        v=1,
        p=[_project_playlist(playlist, options.include_thumbnails) for playlist in playlists],
    )
    text = json.dumps(
        payload.model_dump(exclude_none=True),
        ensure_ascii=False,
        separators=(",", ":"),
    )
    compressed = compressor.compress(text.encode("utf-8"))
    body = base64.urlsafe_b64encode(compressed).decode("ascii").rstrip("=")
    return f"{TOKEN_PREFIX}{body}"


def decode_share(
    token: str,
    *,
    ids: IdFactory = new_id,
    clock: Clock = now_ms,
    compressor: Optional[Compressor] = None,
) -> CollectionState:
    """Decode a share token into importable state with fresh identifiers.

    Args:
        token: Token text, surrounding whitespace allowed.
        ids: Identifier factory used to mint playlist and item ids.
        clock: Clock supplying missing ``createdAt``/``addedAt`` values.
        compressor: Compressor override; defaults to :class:`RawDeflate`.

    Returns:
        CollectionState: Decoded playlists with the first one selected.

    Raises:
        MalformedImportToken: If the prefix is unsupported, the body cannot be
            decoded, inflated or parsed, or no playlists remain.
    """

    match = _TOKEN_PATTERN.match(token.strip())
    if match is None:
        raise MalformedImportToken("Unsupported share token format.")
    compressor = compressor or RawDeflate()

    body = match.group(1)
    try:
        compressed = base64.urlsafe_b64decode(body + "=" * (-len(body) % 4))
        text = compressor.decompress(compressed).decode("utf-8")
        payload = SharedCollection.model_validate(json.loads(text))
    except (binascii.Error, zlib.error, ValueError, RecursionError, ValidationError) as exc:
        # json.JSONDecodeError and UnicodeDecodeError are ValueErrors too;
        # RecursionError comes from pathologically nested JSON.
        raise MalformedImportToken(f"Cannot interpret share token: {exc}") from exc

    if not payload.p:
        raise MalformedImportToken("Share token holds no playlists.")

    now = clock()
    playlists = tuple(_restore_playlist(shared, ids, now) for shared in payload.p)
    LOGGER.debug("Decoded share token with %d playlist(s).", len(playlists))
    return CollectionState(selected_playlist_id=playlists[0].id, playlists=playlists)


def extract_share_payload(text: str) -> Optional[str]:
    """Find a share token in pasted text.

    Recognizes a bare ``v1.`` token, a URL whose fragment carries
    ``?d=<token>`` (``#/import?d=...``), and a URL whose query string carries
    ``d``.

    Args:
        text: Arbitrary pasted text.

    Returns:
        Optional[str]: Extracted token, or None when nothing matches.
    """

    candidate = (text or "").strip()
    if not candidate:
        return None
    if candidate.startswith(TOKEN_PREFIX):
        return candidate

    try:
        parts = urlsplit(candidate)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None

    marker = parts.fragment.find("?")
    if marker != -1:
        token = _first_param(parts.fragment[marker + 1 :], TOKEN_PARAM)
        if token:
            return token
    return _first_param(parts.query, TOKEN_PARAM)


def _first_param(query: str, name: str) -> Optional[str]:
    values = parse_qs(query).get(name)
    return values[0] if values else None


def _project_playlist(playlist: Playlist, include_thumbnails: bool) -> SharedPlaylist:
    return SharedPlaylist(
        n=playlist.name,
        c=playlist.created_at,
        i=[_project_item(item, include_thumbnails) for item in playlist.items],
    )


def _project_item(item: VideoItem, include_thumbnails: bool) -> SharedItem:
    return SharedItem(
        u=item.url,
        y=item.video_id or None,
        t=item.display_title or None,
        g=list(item.tags) or None,
        a=item.added_at,
        h=(item.thumbnail_url or None) if include_thumbnails else None,
    )


def _restore_playlist(shared: SharedPlaylist, ids: IdFactory, now: int) -> Playlist:
    playlist_id = ids("pl")
    items = tuple(
        VideoItem(
            id=ids("v"),
            url=entry.u,
            video_id=entry.y or None,
            title=entry.t or None,
            thumbnail_url=entry.h or None,
            tags=tuple(entry.g or ()),
            added_at=entry.a or now,
        )
        for entry in shared.i
    )
    return Playlist(
        id=playlist_id,
        name=(shared.n or "").strip() or IMPORTED_PLAYLIST_NAME,
        created_at=shared.c or now,
        items=items,
    )


__all__ = [
    "Compressor",
    "IMPORTED_PLAYLIST_NAME",
    "RawDeflate",
    "ShareOptions",
    "SharedCollection",
    "SharedItem",
    "SharedPlaylist",
    "TOKEN_PARAM",
    "TOKEN_PREFIX",
    "decode_share",
    "encode_share",
    "extract_share_payload",
]
