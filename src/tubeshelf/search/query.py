"""Structured search over saved videos."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Sequence, Tuple

from tubeshelf.state.models import Playlist, VideoItem

from .tags import normalize_tag, strip_hash


def split_query(query: str) -> Tuple[List[str], List[str]]:
    """Split a search query into tag filters and text filters.

    Args:
        query: Whitespace-separated tokens; ``#``-prefixed tokens are tags.

    Returns:
        Tuple[List[str], List[str]]: Lowercased tag filters (without ``#``)
        and lowercased text filters.
    """

    tag_filters: List[str] = []
    text_filters: List[str] = []
    for token in query.lower().split():
        if token.startswith("#"):
            tag = token[1:]
            if tag:
                tag_filters.append(tag)
        else:
            text_filters.append(token)
    return tag_filters, text_filters


def match_item(item: VideoItem, query: str) -> bool:
    """Return True when ``item`` satisfies every filter in ``query``.

    Each tag filter must equal one of the item's tags and each text filter must
    appear in the title (or source title), the URL, or the video id. All
    comparisons ignore case. An empty query matches everything.
    """

    tag_filters, text_filters = split_query(query)
    if not tag_filters and not text_filters:
        return True

    item_tags = {normalize_tag(tag) for tag in item.tags}
    if any(tag not in item_tags for tag in tag_filters):
        return False

    haystacks = (item.display_title.lower(), item.url.lower(), (item.video_id or "").lower())
    return all(any(token in haystack for haystack in haystacks) for token in text_filters)


def filter_items(items: Iterable[VideoItem], query: str) -> List[VideoItem]:
    return [item for item in items if match_item(item, query)]


def tag_counts(playlists: Sequence[Playlist], *, limit: int = 18) -> List[Tuple[str, int]]:
    """Return the most frequent tags across ``playlists``.

    Args:
        playlists: Playlists to scan.
        limit: Maximum number of tags to return.

    Returns:
        List[Tuple[str, int]]: ``(tag, count)`` pairs, most frequent first. Ties
        keep first-seen order.
    """

    counter: Counter[str] = Counter()
    for playlist in playlists:
        for item in playlist.items:
            for tag in item.tags:
                key = strip_hash(tag.strip()).strip()
                if key:
                    counter[key] += 1
    return counter.most_common(limit)


__all__ = ["filter_items", "match_item", "split_query", "tag_counts"]
