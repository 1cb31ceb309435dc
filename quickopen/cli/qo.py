#!/usr/bin/env python3
"""
Command line host for the quick open picker.

Usage:
    qo list [QUERY]             - List candidates matching QUERY
    qo pick                     - Interactive picker, prints the chosen path
    qo config show              - Show persisted preferences
    qo config set KEY VALUE     - Change one preference
    qo config path              - Print the preferences file location

In `qo pick`, typing text filters the list, an empty line opens the selected
file, `:n`/`:p` move the selection, `:<number>` opens that row and `:q`
cancels.
"""

import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.config import (
    PickerConfig, default_config_path, load_config, save_config, update_config,
)
from ..core.errors import ConfigurationWriteError
from ..core.models import MatchMode
from ..core.providers import StaticOpenDocuments, XbelRecentFiles
from ..core.session import HostSources, QuerySession, open_session

console = Console()

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logging(verbose: bool = False, log_dir: Optional[Path] = None) -> None:
    """Send logs to stderr, and to a rotating file when `log_dir` is given."""
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level="DEBUG" if verbose else "WARNING")

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "quickopen.log",
            rotation="1 day",
            retention="7 days",
            level="DEBUG"
        )


@click.group()
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Preferences file (default: per-user config)")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.option("--log-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Also write logs to this directory")
@click.pass_context
def cli(ctx, config_path: Optional[Path], verbose: bool, log_dir: Optional[Path]):
    """Quick open - find a file and open it."""
    setup_logging(verbose, log_dir)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path or default_config_path()


def source_options(func):
    """Options shared by commands that build a session."""
    func = click.option("--open-doc", "-d", "open_docs", multiple=True,
                        type=click.Path(dir_okay=False),
                        help="Path of a document open in the editor (repeatable)")(func)
    func = click.option("--recent-file", type=click.Path(dir_okay=False, path_type=Path),
                        help="recently-used.xbel registry to read")(func)
    func = click.option("--mode", "-m", type=click.Choice([m.value for m in MatchMode]),
                        help="Match mode for this run")(func)
    return func


def _session_for(ctx, open_docs: Tuple[str, ...], recent_file: Optional[Path],
                 mode: Optional[str]) -> QuerySession:
    config = load_config(ctx.obj["config_path"])
    if mode:
        config = update_config(config, "match_mode", mode)
    if open_docs:
        config = update_config(config, "include_open_document_dir_files", True)

    sources = HostSources(
        recent=XbelRecentFiles(recent_file),
        open_documents=StaticOpenDocuments(open_docs),
    )
    return open_session(config, sources)


def render_candidates(session: QuerySession, limit: int, numbered: bool = False) -> None:
    """Print the visible candidates, marking the selection."""
    visible = session.visible
    if not visible:
        console.print("[yellow]No matching files[/yellow]")
        return

    table = Table(title=f"Quick Open ({len(visible)} of {len(session.full_set)})")
    if numbered:
        table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Path", no_wrap=False)

    selected = session.selected
    for i, candidate in enumerate(visible[:limit], 1):
        name = escape(candidate.display_name)
        if candidate.is_recent:
            name = f"[bold]{name}[/bold]"
        if selected is not None and candidate.path == selected.path:
            name = f"[reverse]{name}[/reverse]"
        row = [name, candidate.kind.value, escape(candidate.path)]
        if numbered:
            row.insert(0, str(i))
        table.add_row(*row)

    console.print(table)
    if len(visible) > limit:
        console.print(f"[dim]... {len(visible) - limit} more[/dim]")


@cli.command(name="list")
@click.argument("query", required=False, default="")
@source_options
@click.option("--limit", "-l", default=50, show_default=True, help="Max rows")
@click.pass_context
def list_files(ctx, query: str, open_docs, recent_file, mode, limit: int):
    """List candidates matching QUERY."""
    session = _session_for(ctx, open_docs, recent_file, mode)
    session.set_query(query)
    render_candidates(session, limit)


def _handle_input(session: QuerySession, line: str) -> None:
    command = line.strip()
    if line == "":
        session.activate()
    elif command in (":q", ":quit"):
        session.cancel()
    elif command in (":n", ":down"):
        session.move(1)
    elif command in (":p", ":up"):
        session.move(-1)
    elif command.startswith(":") and command[1:].isdigit():
        index = int(command[1:]) - 1
        if 0 <= index < len(session.visible):
            session.select(index)
            session.activate()
        else:
            console.print(f"[yellow]No row {command[1:]}[/yellow]")
    else:
        session.set_query(line)


@cli.command()
@source_options
@click.option("--query", "-q", default="", help="Initial query")
@click.option("--limit", "-l", default=15, show_default=True, help="Rows shown per step")
@click.option("--select-first", is_flag=True, help="Open the first match without prompting")
@click.pass_context
def pick(ctx, open_docs, recent_file, mode, query: str, limit: int, select_first: bool):
    """Pick a file interactively and print its path."""
    session = _session_for(ctx, open_docs, recent_file, mode)
    if query:
        session.set_query(query)

    if select_first:
        session.activate()

    while not session.finished:
        render_candidates(session, limit, numbered=True)
        if session.state.status_line:
            console.print(f"[dim]{escape(session.state.status_line)}[/dim]")
        try:
            line = click.prompt("quick open", default="", show_default=False,
                                prompt_suffix="> ")
        except click.Abort:
            session.cancel()
            break
        _handle_input(session, line)

    if session.result is None:
        console.print("[yellow]Cancelled[/yellow]", highlight=False)
        ctx.exit(1)
    click.echo(session.result)


@cli.group()
def config():
    """Manage persisted preferences."""
    pass


@config.command()
@click.pass_context
def show(ctx):
    """Show the preferences in effect."""
    settings = load_config(ctx.obj["config_path"])

    table = Table(title=str(ctx.obj["config_path"]))
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in settings.to_section().items():
        table.add_row(key, str(value))
    console.print(table)


@config.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_value(ctx, key: str, value: str):
    """Change one preference, e.g. `qo config set includeHomeDirFiles true`."""
    config_path = ctx.obj["config_path"]
    settings = load_config(config_path)

    try:
        settings = update_config(settings, key, value)
    except KeyError:
        valid = ", ".join(PickerConfig().to_section())
        console.print(f"[red]Unknown preference:[/red] {key}\nValid keys: {valid}")
        ctx.exit(2)
    except ValidationError as e:
        console.print(f"[red]Invalid value for {key}:[/red] {e.errors()[0]['msg']}")
        ctx.exit(2)

    try:
        save_config(settings, config_path)
    except ConfigurationWriteError as e:
        console.print(f"[red]Could not save preferences:[/red] {e}")
        ctx.exit(1)

    console.print(f"[green]✓[/green] {key} = {value}")


@config.command()
@click.pass_context
def path(ctx):
    """Print the preferences file location."""
    click.echo(str(ctx.obj["config_path"]))


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
