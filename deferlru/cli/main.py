"""Main CLI entry point for deferlru."""

from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from deferlru import __version__
from deferlru.cache import LRUCache
from deferlru.config.settings import get_settings, init_user_config
from deferlru.exceptions import CacheError
from deferlru.log_setup import configure_logging

app = typer.Typer(
    name="deferlru",
    help="Bounded LRU cache with deferred eviction callbacks.",
    add_completion=False,
)
config_app = typer.Typer(help="Inspect and initialise configuration")
app.add_typer(config_app, name="config")

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"deferlru version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = False,
    log_level: Annotated[
        Optional[str], typer.Option("--log-level", help="Override the configured log level")
    ] = None,
) -> None:
    """deferlru: LRU cache simulator and configuration tools."""
    configure_logging(log_level or get_settings().log_level)


# =============================================================================
# Simulate Command
# =============================================================================


def _apply(cache: LRUCache, token: str) -> str | None:
    """Apply one simulation token; return a note for lookups."""
    if token.startswith("?"):
        key = token[1:]
        value = cache.get(key, None)
        return f"get {key} -> {'miss' if value is None else value}"
    key, sep, value = token.partition("=")
    cache[key] = value if sep else key
    return None


@app.command()
def simulate(
    tokens: Annotated[
        list[str],
        typer.Argument(help="Operations: KEY sets KEY=KEY, KEY=VALUE sets, ?KEY looks up"),
    ],
    size: Annotated[
        Optional[int], typer.Option("--size", "-s", help="Cache capacity")
    ] = None,
    show_evictions: Annotated[
        bool, typer.Option("--show-evictions/--no-show-evictions", help="List evicted entries")
    ] = True,
    suspend: Annotated[
        bool, typer.Option("--suspend", help="Suspend auto-purge until the end")
    ] = False,
) -> None:
    """Replay a sequence of operations against a cache and show the result."""
    evicted: list[tuple[Any, Any]] = []
    capacity = size if size is not None else get_settings().default_size

    try:
        cache = LRUCache(capacity, callback=lambda k, v: evicted.append((k, v)))
    except (CacheError, TypeError) as e:
        console.print(f"[red]Invalid cache size: {e}[/red]")
        raise typer.Exit(1)
    cache.suspend_auto_purge = suspend

    notes = [note for note in (_apply(cache, t) for t in tokens) if note]
    drained = cache.purge() if suspend else 0

    console.print(Panel(f"[bold]Capacity:[/bold] {cache.size}", title="deferlru"))

    table = Table(title="Entries (MRU -> LRU)")
    table.add_column("#", style="dim", width=4)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for i, (key, value) in enumerate(cache.items(), 1):
        table.add_row(str(i), str(key), str(value))
    console.print(table)

    for note in notes:
        console.print(f"  {note}")

    if show_evictions:
        if evicted:
            ev_table = Table(title="Evictions (callback order)")
            ev_table.add_column("#", style="dim", width=4)
            ev_table.add_column("Key", style="yellow")
            ev_table.add_column("Value")
            for i, (key, value) in enumerate(evicted, 1):
                ev_table.add_row(str(i), str(key), str(value))
            console.print(ev_table)
        else:
            console.print("[dim]No evictions.[/dim]")

    if suspend:
        console.print(f"Purged on demand: {drained}")
    stats = cache.get_stats()
    console.print(f"Hits: {stats.hits}  Misses: {stats.misses}")


# =============================================================================
# Config Commands
# =============================================================================


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration."""
    settings = get_settings()
    table = Table(title="deferlru settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for name, value in settings.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)


@config_app.command("init")
def config_init() -> None:
    """Create the user config file if it does not exist."""
    path = init_user_config()
    console.print(f"[green]Config file: {path}[/green]")


if __name__ == "__main__":
    app()
