"""TubeShelf: tagged video playlists with compact share links."""

from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("tubeshelf")
except _metadata.PackageNotFoundError:  # running from a source checkout
    __version__ = "0.0.0"

__all__ = ["__version__"]
