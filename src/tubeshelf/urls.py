"""Video URL canonicalization helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

# Query parameters that affect playback; everything else is tracking noise.
PLAYBACK_PARAMS = frozenset({"v", "t", "start", "list", "index"})

_WATCH_HOSTS = frozenset({"youtube.com", "m.youtube.com", "music.youtube.com"})
_SHORT_HOSTS = frozenset({"youtu.be"})
_PATH_ID_PREFIXES = ("shorts", "embed")
_DEFAULT_PORTS = {"http": 80, "https": 443}
_FIRST_URL = re.compile(r"https?://\S+", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class NormalizedUrl:
    """Canonical form of a pasted video reference.

    Attributes:
        url: Canonical URL, or the trimmed input when it is not an absolute URL.
        video_id: Provider video identifier when one could be extracted.
    """

    url: str
    video_id: Optional[str] = None


def normalize_url(raw: str) -> NormalizedUrl:
    """Canonicalize a pasted URL and extract the provider video identifier.

    Inputs that do not parse as absolute URLs are returned trimmed but otherwise
    untouched. Normalizing an already-normalized URL returns the same result.

    Args:
        raw: URL text as pasted by the user.

    Returns:
        NormalizedUrl: Canonical URL and optional video identifier.
    """

    trimmed = raw.strip()
    try:
        parts = urlsplit(trimmed)
        hostname = parts.hostname
        port = parts.port
    except ValueError:
        return NormalizedUrl(url=trimmed)
    if not parts.scheme or not hostname:
        return NormalizedUrl(url=trimmed)

    scheme = parts.scheme.lower()
    query = parse_qsl(parts.query, keep_blank_values=True)
    video_id = _extract_video_id(hostname, parts.path, query)

    netloc = f"[{hostname}]" if ":" in hostname else hostname
    if port is not None and _DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{netloc}:{port}"
    kept = [(key, value) for key, value in query if key in PLAYBACK_PARAMS]
    url = urlunsplit((scheme, netloc, parts.path or "/", urlencode(kept), parts.fragment))
    return NormalizedUrl(url=url, video_id=video_id)


def extract_first_url(text: str) -> Optional[str]:
    """Return the first http(s) URL embedded in free text, if any."""

    match = _FIRST_URL.search(text or "")
    return match.group(0) if match else None


def _extract_video_id(
    hostname: str,
    path: str,
    query: list[tuple[str, str]],
) -> Optional[str]:
    host = hostname.lower()
    if host.startswith("www."):
        host = host[len("www.") :]
    segments = [segment for segment in path.split("/") if segment]

    if host in _SHORT_HOSTS:
        return segments[0] if segments else None

    if host not in _WATCH_HOSTS:
        return None
    if path == "/watch":
        for key, value in query:
            if key == "v" and value:
                return value
        return None
    if len(segments) >= 2 and segments[0] in _PATH_ID_PREFIXES:
        return segments[1]
    return None


__all__ = ["NormalizedUrl", "PLAYBACK_PARAMS", "extract_first_url", "normalize_url"]
