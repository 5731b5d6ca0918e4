"""Share links: token codec and import merge policy."""

from .codec import (
    IMPORTED_PLAYLIST_NAME,
    TOKEN_PREFIX,
    Compressor,
    RawDeflate,
    ShareOptions,
    decode_share,
    encode_share,
    extract_share_payload,
)
from .errors import MalformedImportToken, ShareError
from .merge import (
    IMPORT_MODES,
    ImportMode,
    ImportSummary,
    apply_import,
    summarize_import,
    unique_playlist_name,
)

__all__ = [
    "Compressor",
    "IMPORTED_PLAYLIST_NAME",
    "IMPORT_MODES",
    "ImportMode",
    "ImportSummary",
    "MalformedImportToken",
    "RawDeflate",
    "ShareError",
    "ShareOptions",
    "TOKEN_PREFIX",
    "apply_import",
    "decode_share",
    "encode_share",
    "extract_share_payload",
    "summarize_import",
    "unique_playlist_name",
]
