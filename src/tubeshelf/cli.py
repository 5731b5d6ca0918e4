"""Command line interface for TubeShelf."""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from tubeshelf import __version__
from tubeshelf.config import ConfigError, ConfigManager, ShelfConfig
from tubeshelf.library import ActionResult, Library
from tubeshelf.links import build_bookmarklet
from tubeshelf.logs import configure_logging
from tubeshelf.metadata import OEmbedClient
from tubeshelf.search import format_tags, parse_tags_input
from tubeshelf.share import IMPORT_MODES, MalformedImportToken, ShareOptions
from tubeshelf.state import FileBlobStore, StateRepository, VideoItem

console = Console()


@dataclass(slots=True)
class CLIContext:
    """Objects shared by commands within one invocation.

    Attributes:
        config: Effective configuration.
        library: Library bound to the configured storage.
        quiet: Whether non-error output is suppressed.
    """

    config: ShelfConfig
    library: Library
    quiet: bool


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output.
        click.ClickException: For non-JSON flows.
    """

    if json_output:
        console.print_json(data={"error": {"code": code, "message": message}})
        raise SystemExit(1)
    raise click.ClickException(message) from original


def _emit_message(message: Any, *, quiet: bool) -> None:
    if quiet:
        return
    console.print(message)


def _report(obj: CLIContext, result: ActionResult) -> None:
    """Print an action result or fail the command when it did not succeed."""

    if not result.ok:
        raise click.ClickException(result.message)
    style = "yellow" if result.warning else "green"
    _emit_message(f"[{style}]{result.message}[/{style}]", quiet=obj.quiet)


def _build_context(quiet: bool) -> CLIContext:
    manager = ConfigManager()
    try:
        config = manager.load()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    storage_dir = Path(config.storage.directory).expanduser()
    configure_logging(config.logging, storage_dir)

    lookup = None
    if config.metadata.enabled:
        lookup = OEmbedClient(config.metadata.endpoint, timeout=config.metadata.timeout_seconds)
    repository = StateRepository(FileBlobStore(storage_dir), key=config.storage.key)
    library = Library(repository, lookup=lookup, on_lookup_failure=config.metadata.on_failure)
    return CLIContext(config=config, library=library, quiet=quiet or config.cli.quiet_default)


def _render_items(items: list[VideoItem], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", overflow="fold")
    table.add_column("Title")
    table.add_column("Video ID")
    table.add_column("Tags")
    for item in items:
        table.add_row(
            item.id,
            item.display_title or "(untitled)",
            item.video_id or "",
            " ".join(format_tags(item.tags)),
        )
    return table


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="tubeshelf")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def cli(ctx: click.Context, quiet: bool) -> None:
    """TubeShelf keeps tagged, searchable playlists of video links.

    Args:
        ctx: Click context that receives the shared CLI state.
        quiet: Whether non-error output is suppressed.
    """
    if ctx.invoked_subcommand == "config" or ctx.resilient_parsing:
        return
    ctx.obj = _build_context(quiet)


# ---------------------------------------------------------------------- #
# Playlists                                                              #
# ---------------------------------------------------------------------- #


@cli.command("playlists")
@click.option("--json", "json_output", is_flag=True, help="Emit playlists as JSON.")
@click.pass_obj
def playlists_command(obj: CLIContext, json_output: bool) -> None:
    """List playlists; the selected one is marked with an asterisk."""
    state = obj.library.state
    if json_output:
        console.print_json(
            data={
                "selectedPlaylistId": state.selected_playlist_id,
                "playlists": [
                    {"id": p.id, "name": p.name, "items": len(p.items)} for p in state.playlists
                ],
            }
        )
        return

    table = Table(title="Playlists")
    table.add_column("")
    table.add_column("ID", overflow="fold")
    table.add_column("Name")
    table.add_column("Items", justify="right")
    for playlist in state.playlists:
        marker = "*" if playlist.id == state.selected_playlist_id else ""
        table.add_row(marker, playlist.id, playlist.name, str(len(playlist.items)))
    _emit_message(table, quiet=obj.quiet)


@cli.group()
def playlist() -> None:
    """Create, rename, delete, and select playlists."""


@playlist.command("create")
@click.argument("name")
@click.pass_obj
def playlist_create(obj: CLIContext, name: str) -> None:
    """Create a playlist and select it."""
    _report(obj, obj.library.create_playlist(name))


@playlist.command("rename")
@click.argument("playlist_id")
@click.argument("name")
@click.pass_obj
def playlist_rename(obj: CLIContext, playlist_id: str, name: str) -> None:
    """Rename a playlist; blank names are ignored."""
    _report(obj, obj.library.rename_playlist(playlist_id, name))


@playlist.command("delete")
@click.argument("playlist_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def playlist_delete(obj: CLIContext, playlist_id: str, yes: bool) -> None:
    """Delete a playlist together with its videos."""
    if not yes:
        click.confirm(f"Delete playlist {playlist_id} and all of its videos?", abort=True)
    _report(obj, obj.library.delete_playlist(playlist_id))


@playlist.command("select")
@click.argument("playlist_id")
@click.pass_obj
def playlist_select(obj: CLIContext, playlist_id: str) -> None:
    """Make a playlist the default target for other commands."""
    _report(obj, obj.library.select_playlist(playlist_id))


# ---------------------------------------------------------------------- #
# Videos                                                                 #
# ---------------------------------------------------------------------- #


@cli.command()
@click.argument("url")
@click.option("--playlist", "playlist_id", help="Target playlist (defaults to the selected one).")
@click.option("--tags", default="", help="Comma-separated tags, e.g. 'music, #live'.")
@click.option("--title", "source_title", help="Title to keep alongside the looked-up one.")
@click.pass_obj
def add(
    obj: CLIContext,
    url: str,
    playlist_id: Optional[str],
    tags: str,
    source_title: Optional[str],
) -> None:
    """Add a video URL to a playlist."""
    result = obj.library.add_video(
        url,
        playlist_id=playlist_id,
        tags=parse_tags_input(tags),
        source_title=source_title,
    )
    _report(obj, result)


@cli.command()
@click.argument("item_id")
@click.option("--playlist", "playlist_id", help="Playlist holding the item.")
@click.pass_obj
def remove(obj: CLIContext, item_id: str, playlist_id: Optional[str]) -> None:
    """Remove a video from a playlist."""
    _report(obj, obj.library.remove_video(item_id, playlist_id=playlist_id))


@cli.command()
@click.argument("item_id")
@click.argument("tags")
@click.option("--playlist", "playlist_id", help="Playlist holding the item.")
@click.pass_obj
def tag(obj: CLIContext, item_id: str, tags: str, playlist_id: Optional[str]) -> None:
    """Replace the tags of a video with a comma-separated list."""
    _report(obj, obj.library.set_tags(item_id, tags, playlist_id=playlist_id))


@cli.command()
@click.argument("item_id")
@click.argument("destination_id")
@click.option("--playlist", "playlist_id", help="Source playlist (defaults to the selected one).")
@click.pass_obj
def move(obj: CLIContext, item_id: str, destination_id: str, playlist_id: Optional[str]) -> None:
    """Move a video to another playlist.

    If the destination already holds the same video, the item is removed from
    the source and not added again.
    """
    _report(obj, obj.library.move_video(item_id, destination_id, from_playlist_id=playlist_id))


@cli.command("list")
@click.argument("query", required=False, default="")
@click.option(
    "--playlist", "playlist_id", help="Playlist to search (defaults to the selected one)."
)
@click.option("--json", "json_output", is_flag=True, help="Emit matches as JSON.")
@click.pass_obj
def list_command(
    obj: CLIContext,
    query: str,
    playlist_id: Optional[str],
    json_output: bool,
) -> None:
    """List videos matching QUERY; '#tag' tokens filter by tag."""
    library = obj.library
    target_id = library.resolve_playlist_id(playlist_id)
    if not any(p.id == target_id for p in library.state.playlists):
        _handle_cli_error(
            f"No playlist with id {target_id}.",
            code="playlist_not_found",
            json_output=json_output,
        )
    items = library.search(query, playlist_id=target_id)
    if json_output:
        console.print_json(
            data={
                "playlistId": target_id,
                "query": query,
                "results": [item.to_record() for item in items],
            }
        )
        return
    _emit_message(_render_items(items, f"{len(items)} video(s)"), quiet=obj.quiet)


@cli.command()
@click.option("--limit", default=18, show_default=True, help="Number of tags to show.")
@click.pass_obj
def tags(obj: CLIContext, limit: int) -> None:
    """Show the most used tags across all playlists."""
    counts = obj.library.popular_tags(limit)
    if not counts:
        _emit_message("[yellow]No tags yet.[/yellow]", quiet=obj.quiet)
        return
    _emit_message(
        "  ".join(f"#{name} ({count})" for name, count in counts),
        quiet=obj.quiet,
    )


# ---------------------------------------------------------------------- #
# Sharing                                                                #
# ---------------------------------------------------------------------- #


@cli.command()
@click.option("--scope", type=click.Choice(["all", "selected"]), help="Playlists to include.")
@click.option(
    "--thumbnails/--no-thumbnails",
    default=None,
    help="Embed thumbnail URLs (makes links longer).",
)
@click.option("--base-url", help="Application URL the link should open.")
@click.option("--token-only", is_flag=True, help="Print only the v1 token.")
@click.pass_obj
def share(
    obj: CLIContext,
    scope: Optional[str],
    thumbnails: Optional[bool],
    base_url: Optional[str],
    token_only: bool,
) -> None:
    """Print a link that carries the collection in compressed form."""
    settings = obj.config.share
    options = ShareOptions(
        scope=scope or settings.scope,
        include_thumbnails=settings.include_thumbnails if thumbnails is None else thumbnails,
    )
    if token_only:
        click.echo(obj.library.share_token(options))
        return

    link = obj.library.share_link(base_url or settings.base_url, options)
    click.echo(link)
    if len(link) > settings.max_link_length:
        console.print(
            f"[yellow]Link is {len(link)} characters long and may be cut off by "
            "messaging apps; consider `tubeshelf export` instead.[/yellow]",
            highlight=False,
        )


@cli.command("import")
@click.argument("text")
@click.option(
    "--mode",
    type=click.Choice(IMPORT_MODES),
    default="merge",
    show_default=True,
    help="Merge into or replace the current playlists.",
)
@click.option("--yes", is_flag=True, help="Apply without asking for confirmation.")
@click.pass_obj
def import_command(obj: CLIContext, text: str, mode: str, yes: bool) -> None:
    """Import playlists from a share link or a bare v1 token."""
    try:
        _, summary = obj.library.preview_import(text)
    except MalformedImportToken as exc:
        raise click.ClickException("Cannot interpret link data.") from exc

    _emit_message(
        f"Playlists: {summary.playlist_count}  Videos: {summary.item_count}",
        quiet=obj.quiet,
    )
    for name in summary.playlist_names:
        _emit_message(f"  - {name}", quiet=obj.quiet)
    hidden = summary.playlist_count - len(summary.playlist_names)
    if hidden > 0:
        _emit_message(f"  ... and {hidden} more", quiet=obj.quiet)

    if not yes:
        click.confirm(f"Apply import ({mode})?", abort=True)
    _report(obj, obj.library.import_share(text, mode))  # type: ignore[arg-type]


@cli.command("open")
@click.argument("link")
@click.option("--mode", type=click.Choice(IMPORT_MODES), default="merge", show_default=True)
@click.pass_obj
def open_command(obj: CLIContext, link: str, mode: str) -> None:
    """Follow an application deep link (add-video or import)."""
    _report(obj, obj.library.open_link(link, mode=mode))  # type: ignore[arg-type]


@cli.command()
@click.argument("app_url", required=False)
@click.pass_obj
def bookmarklet(obj: CLIContext, app_url: Optional[str]) -> None:
    """Print a bookmarklet that sends the current page to TubeShelf."""
    click.echo(build_bookmarklet(app_url or obj.config.share.base_url))


@cli.command()
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="File to write instead of standard output.",
)
@click.pass_obj
def export(obj: CLIContext, output: Optional[Path]) -> None:
    """Export the whole collection as pretty-printed JSON."""
    data = obj.library.export_json()
    if output is None:
        click.echo(data)
        return
    output.write_text(data + "\n", encoding="utf-8")
    _emit_message(f"[green]Exported collection to {output}.[/green]", quiet=obj.quiet)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def restore(obj: CLIContext, file: Path) -> None:
    """Replace the collection with a previously exported JSON file."""
    try:
        text = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise click.ClickException(f"Cannot read {file}: {exc}") from exc
    _report(obj, obj.library.import_json(text))


# ---------------------------------------------------------------------- #
# Configuration                                                          #
# ---------------------------------------------------------------------- #


@cli.group()
def config() -> None:
    """Manage TubeShelf configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        effective = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        before = manager.content_lines()
        written = manager.set_value(key, value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    after = manager.content_lines()
    if after == before:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return
    diff = difflib.unified_diff(
        before,
        after,
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {written}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return
    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        manager.replace_text(edited)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
