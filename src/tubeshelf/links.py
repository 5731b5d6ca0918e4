"""Deep links, share links and the bookmarklet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union
from urllib.parse import parse_qsl, quote, urlencode, urlsplit

from tubeshelf.share.codec import TOKEN_PARAM
from tubeshelf.urls import extract_first_url

IMPORT_ROUTE = "/import"
SHARE_TARGET_PATH = "/share"


@dataclass(frozen=True, slots=True)
class AddVideoIntent:
    """Request to add a video, usually from a share sheet or bookmarklet."""

    url: str
    title: Optional[str] = None
    text: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ImportIntent:
    """Request to import a shared collection token."""

    token: str


DeepLinkIntent = Union[AddVideoIntent, ImportIntent]


def split_fragment(fragment: str) -> Tuple[str, Dict[str, str]]:
    """Split ``#/path?query`` into its route and first-value query mapping."""

    body = fragment[1:] if fragment.startswith("#") else fragment
    path, _, query = body.partition("?")
    params: Dict[str, str] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        params.setdefault(key, value)
    return path or "/", params


def share_target_fragment(link: str) -> Optional[str]:
    """Convert a Web Share Target URL into the equivalent add fragment.

    Args:
        link: URL such as ``https://app/share?url=...&title=...&text=...``.

    Returns:
        Optional[str]: Fragment ``#/?add=1&url=...`` or None when ``link`` is
        not a share target URL.
    """

    parts = urlsplit(link.strip())
    if not parts.path.rstrip("/").endswith(SHARE_TARGET_PATH):
        return None
    params = dict(parse_qsl(parts.query, keep_blank_values=True))
    text = params.get("text", "")
    shared_url = params.get("url") or extract_first_url(text) or ""
    query = [("add", "1")]
    if shared_url:
        query.append(("url", shared_url))
    if params.get("title"):
        query.append(("title", params["title"]))
    if text:
        query.append(("text", text))
    return "#/?" + urlencode(query)


def parse_deep_link(link: str) -> Optional[DeepLinkIntent]:
    """Interpret an application link or bare fragment.

    Args:
        link: Full URL (``https://app/#/import?d=...``), a share target URL, or a
            fragment starting with ``#``.

    Returns:
        Optional[DeepLinkIntent]: The intent carried by the link, or None.
    """

    text = link.strip()
    if not text:
        return None
    if text.startswith("#"):
        fragment = text
    else:
        fragment = share_target_fragment(text) or urlsplit(text).fragment
    if not fragment:
        return None

    path, params = split_fragment(fragment)
    if path == IMPORT_ROUTE and params.get(TOKEN_PARAM):
        return ImportIntent(token=params[TOKEN_PARAM])

    if params.get("add") != "1":
        return None
    text_param = params.get("text") or None
    url = params.get("url") or extract_first_url(text_param or "")
    if not url:
        return None
    return AddVideoIntent(url=url, title=params.get("title") or None, text=text_param)


def build_share_link(base_url: str, token: str) -> str:
    base = base_url.rstrip("/") + "/"
    return f"{base}#{IMPORT_ROUTE}?{TOKEN_PARAM}={quote(token, safe='')}"


def build_bookmarklet(app_url: str) -> str:
    """Return a ``javascript:`` bookmarklet that sends the current page to the app."""

    base = app_url.rstrip("/")
    return (
        "javascript:(()=>{"
        "const u=location.href;"
        f"window.open('{base}/#/?add=1&url='+encodeURIComponent(u),'_blank','noopener,noreferrer');"
        "})();"
    )


__all__ = [
    "AddVideoIntent",
    "DeepLinkIntent",
    "ImportIntent",
    "build_bookmarklet",
    "build_share_link",
    "parse_deep_link",
    "share_target_fragment",
    "split_fragment",
]
