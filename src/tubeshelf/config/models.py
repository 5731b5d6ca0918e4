"""Configuration models describing TubeShelf settings."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt


class ShelfConfigModel(BaseModel):
    """Shared configuration for settings models; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")


class StorageSettings(ShelfConfigModel):
    """Where the collection is persisted.

    Attributes:
        directory: Directory holding the blob store files.
        key: Blob store key of the collection record.
    """

    directory: str = "~/.tubeshelf"
    key: str = "tubeshelf:data:v1"


class ShareSettings(ShelfConfigModel):
    """Defaults for share links.

    Attributes:
        base_url: Application URL that share links point at.
        scope: Default share scope (``all`` or ``selected``).
        include_thumbnails: Whether thumbnails are embedded by default.
        max_link_length: Length above which a long-link warning is shown.
    """

    base_url: str = "http://localhost:5173/"
    scope: Literal["all", "selected"] = "all"
    include_thumbnails: bool = False
    max_link_length: PositiveInt = 6_000


class MetadataSettings(ShelfConfigModel):
    """Metadata lookup behavior for newly added videos.

    Attributes:
        enabled: Whether titles and thumbnails are looked up at all.
        endpoint: oEmbed endpoint URL.
        timeout_seconds: Timeout applied to each lookup request.
        on_failure: ``skip`` aborts the add when the lookup fails;
            ``add_without_metadata`` adds the item without a title.
    """

    enabled: bool = True
    endpoint: str = "https://www.youtube.com/oembed"
    timeout_seconds: PositiveFloat = 5.0
    on_failure: Literal["skip", "add_without_metadata"] = "skip"


class LoggingSettings(ShelfConfigModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file name inside the storage directory.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    file: Optional[str] = None
    max_size_mb: PositiveInt = 10
    backup_count: int = 3


class CLIOptions(ShelfConfigModel):
    """CLI behavior defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
    """

    quiet_default: bool = False


class ShelfConfig(ShelfConfigModel):
    """Top-level configuration struct for TubeShelf."""

    storage: StorageSettings = Field(default_factory=StorageSettings)
    share: ShareSettings = Field(default_factory=ShareSettings)
    metadata: MetadataSettings = Field(default_factory=MetadataSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "CLIOptions",
    "LoggingSettings",
    "MetadataSettings",
    "ShareSettings",
    "ShelfConfig",
    "ShelfConfigModel",
    "StorageSettings",
]
