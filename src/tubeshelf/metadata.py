"""Title and thumbnail lookup through the oEmbed endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import requests

LOGGER = logging.getLogger(__name__)

DEFAULT_OEMBED_ENDPOINT = "https://www.youtube.com/oembed"
DEFAULT_TIMEOUT_SECONDS = 5.0


class MetadataLookupError(Exception):
    """Raised when the lookup fails at the network level or times out."""


@dataclass(frozen=True, slots=True)
class VideoMetadata:
    """Optional metadata resolved for a video URL."""

    title: Optional[str] = None
    thumbnail_url: Optional[str] = None


MetadataLookup = Callable[[str], VideoMetadata]


class OEmbedClient:
    """Resolve titles and thumbnails without an API key."""

    def __init__(
        self,
        endpoint: str = DEFAULT_OEMBED_ENDPOINT,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint: oEmbed endpoint URL.
            timeout: Seconds allowed for connecting and for reading the reply.
        """
        self.endpoint = endpoint
        self.timeout = timeout

    def __call__(self, url: str) -> VideoMetadata:
        return self.fetch_title_and_thumbnail(url)

    def fetch_title_and_thumbnail(self, url: str) -> VideoMetadata:
        """Look up metadata for a normalized video URL.

        Args:
            url: Normalized video URL.

        Returns:
            VideoMetadata: Resolved fields; empty when the endpoint answers with
            an error status or an unreadable body.

        Raises:
            MetadataLookupError: On connection failures and timeouts.
        """
        try:
            response = requests.get(
                self.endpoint,
                params={"url": url, "format": "json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise MetadataLookupError(f"Metadata lookup failed for {url}: {exc}") from exc

        if not response.ok:
            LOGGER.debug("oEmbed returned HTTP %s for %s.", response.status_code, url)
            return VideoMetadata()
        try:
            payload = response.json()
        except ValueError:
            LOGGER.debug("oEmbed returned a non-JSON body for %s.", url)
            return VideoMetadata()
        if not isinstance(payload, dict):
            return VideoMetadata()

        title = str(payload.get("title") or "").strip() or None
        thumbnail = str(payload.get("thumbnail_url") or "").strip() or None
        return VideoMetadata(title=title, thumbnail_url=thumbnail)


__all__ = [
    "DEFAULT_OEMBED_ENDPOINT",
    "DEFAULT_TIMEOUT_SECONDS",
    "MetadataLookup",
    "MetadataLookupError",
    "OEmbedClient",
    "VideoMetadata",
]
