"""Tag parsing and formatting helpers."""

from __future__ import annotations

import re
from typing import Iterable, List

_TAG_SEPARATORS = re.compile(r"[,\n]")


def normalize_tag(tag: str) -> str:
    """Return the comparison key for a tag: trimmed, ``#``-stripped, lowercase."""

    return strip_hash(tag.strip()).strip().lower()


def strip_hash(tag: str) -> str:
    return tag[1:] if tag.startswith("#") else tag


def parse_tags_input(raw: str) -> List[str]:
    """Split free-text tag input into a deduplicated, ordered list.

    Tokens are separated by commas or newlines, trimmed, and stripped of one
    leading ``#``. Duplicates are detected case-insensitively and the first
    spelling wins.

    Args:
        raw: Text typed by the user, e.g. ``"music, #Live\\nmusic"``.

    Returns:
        List[str]: Tags in first-seen order.
    """

    tags: List[str] = []
    seen: set[str] = set()
    for token in _TAG_SEPARATORS.split(raw or ""):
        tag = strip_hash(token.strip()).strip()
        if not tag:
            continue
        key = tag.lower()
        if key in seen:
            continue
        seen.add(key)
        tags.append(tag)
    return tags


def format_tags(tags: Iterable[str]) -> List[str]:
    return [tag if tag.startswith("#") else f"#{tag}" for tag in tags]


__all__ = ["format_tags", "normalize_tag", "parse_tags_input", "strip_hash"]
