"""Tag parsing and search helpers for TubeShelf."""

from .query import filter_items, match_item, split_query, tag_counts
from .tags import format_tags, normalize_tag, parse_tags_input, strip_hash

__all__ = [
    "filter_items",
    "format_tags",
    "match_item",
    "normalize_tag",
    "parse_tags_input",
    "split_query",
    "strip_hash",
    "tag_counts",
]
