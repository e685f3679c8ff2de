"""CLI for Film Arena."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import pydantic
import structlog
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from film_arena import __version__
from film_arena.client import create_client
from film_arena.core.catalog import load_catalog
from film_arena.core.config import ArenaConfig, load_config
from film_arena.core.errors import ArenaError, ConfigurationError
from film_arena.schemas import Leaderboard, MatchupView
from film_arena.services.storage import ArenaStore
from film_arena.session import Phase, SessionController

# FILM_ARENA_DATABASE_URL and FILM_ARENA_TOKEN may come from .env
load_dotenv()

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="film-arena",
    help="Film Arena - rank films by head-to-head community votes",
    add_completion=False,
)
console = Console()

PLAY_KEYS = "[a] left  [b] right  [s] skip  [l] leaderboard  [q] quit"
EMPTY_KEYS = "[r] refresh  [l] leaderboard  [q] quit"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"film-arena v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Film Arena CLI."""


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _fail(e: Exception, verbose: bool = False) -> typer.Exit:
    """Print an error the way every command does and build the exit."""
    if isinstance(e, FileNotFoundError):
        console.print(f"[red]Error:[/red] {e}")
    elif isinstance(e, ConfigurationError):
        console.print(f"[red]{e}")
    elif isinstance(e, pydantic.ValidationError):
        console.print(f"[red]Validation error:[/red] {e}")
    elif isinstance(e, ArenaError):
        console.print(f"[red]{e.kind}:[/red] {e.message}")
    else:
        console.print(f"[red]Unexpected error:[/red] {e}")
        if verbose:
            console.print_exception()
    return typer.Exit(1)


def _render_leaderboard(board: Leaderboard) -> Table:
    table = Table(title=f"Leaderboard (min votes: {board.min_comparisons})")
    table.add_column("#", justify="right")
    table.add_column("Film")
    table.add_column("Year", justify="right")
    table.add_column("Strength", justify="right")
    table.add_column("Votes", justify="right")
    for entry in board.films:
        table.add_row(
            str(entry.rank),
            entry.title,
            str(entry.year or ""),
            f"{entry.strength:.2f}",
            str(entry.comparison_count),
        )
    return table


def _render_matchup(matchup: MatchupView) -> None:
    left, right = matchup.film_a, matchup.film_b
    console.print()
    console.print(f"  [bold cyan]a[/bold cyan]  {left.title} ({left.year or '?'})")
    console.print("      vs")
    console.print(f"  [bold cyan]b[/bold cyan]  {right.title} ({right.year or '?'})")


@app.command()
def seed(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
    catalog_path: Annotated[Path, typer.Argument(help="Path to catalog YAML file")],
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """Create the database and load films and matchups from a catalog.

    Args:
        config_path: Path to YAML configuration file.
        catalog_path: Path to YAML catalog file.
        verbose: Enable verbose logging.
    """
    _configure_logging(verbose)
    try:
        config = load_config(config_path)
        catalog = load_catalog(catalog_path)

        async def _seed() -> tuple[int, int]:
            store = ArenaStore(config)
            try:
                return await store.seed_catalog(catalog)
            finally:
                await store.close()

        films, matchups = asyncio.run(_seed())
        console.print("[bold green]Catalog seeded![/bold green]")
        console.print(f"  Films: {films}")
        console.print(f"  Matchups: {matchups}")

    except Exception as e:
        raise _fail(e, verbose) from e


async def _play(config: ArenaConfig, user: str, auth_token: str | None) -> SessionController:
    store = None if config.server_url else ArenaStore(config)
    client = create_client(config, user, store=store, auth_token=auth_token)
    session = SessionController(client)
    try:
        await session.start()
        while True:
            state = session.state
            if state.error:
                console.print(f"[red]{state.error}[/red]")
                session.clear_error()
            if state.phase is Phase.LOADING:
                console.print("[red]Could not load a matchup.[/red]")
                break
            if state.phase is Phase.EMPTY:
                console.print("\n[yellow]No matchups left for you. Check back later![/yellow]")
                key = await asyncio.to_thread(console.input, f"{EMPTY_KEYS} > ")
            else:
                _render_matchup(state.current)
                key = await asyncio.to_thread(console.input, f"{PLAY_KEYS} > ")

            key = key.strip().lower()
            if key == "q":
                break
            if key == "l":
                session.show_leaderboard()
                board = await session.load_leaderboard()
                if board is not None:
                    console.print(_render_leaderboard(board))
                session.back_to_playing()
            elif key == "r":
                await session.refresh()
            elif key == "s":
                session.skip()
            elif key in ("a", "b") and state.current is not None:
                film = state.current.film_a if key == "a" else state.current.film_b
                if session.vote(film.id):
                    console.print(f"[green]Voted for {film.title}[/green]")
            else:
                continue
            # Let the look-ahead refill land before drawing the next screen
            await session.wait_idle()
        await session.wait_idle()
    finally:
        await session.close()
        if store is not None:
            await store.close()
    return session


@app.command()
def play(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
    user: Annotated[str, typer.Option("--user", "-u", help="Voter identity")],
    auth_token: Annotated[
        str | None,
        typer.Option("--token", envvar="FILM_ARENA_TOKEN", help="Bearer token for a remote arena"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """Vote on head-to-head matchups in the terminal.

    Args:
        config_path: Path to YAML configuration file.
        user: Voter identity.
        auth_token: Bearer token for the HTTP client.
        verbose: Enable verbose logging.
    """
    _configure_logging(verbose)
    try:
        config = load_config(config_path)
        session = asyncio.run(_play(config, user, auth_token))
    except (KeyboardInterrupt, EOFError):
        console.print()
        return
    except Exception as e:
        raise _fail(e, verbose) from e

    stats = session.state.stats
    console.print(f"\n[bold]Session:[/bold] {stats.votes} votes, {stats.skips} skips")


@app.command()
def leaderboard(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
    limit: Annotated[
        int | None, typer.Option("--limit", "-n", help="Number of films to show")
    ] = None,
    min_comparisons: Annotated[
        int, typer.Option("--min-comparisons", "-m", help="Minimum votes per film")
    ] = 0,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """Show the current leaderboard.

    Args:
        config_path: Path to YAML configuration file.
        limit: Maximum entries. Defaults to the configured default_limit.
        min_comparisons: Only films with at least this many votes.
        verbose: Enable verbose logging.
    """
    _configure_logging(verbose)
    try:
        config = load_config(config_path)

        async def _fetch() -> Leaderboard:
            store = None if config.server_url else ArenaStore(config)
            client = create_client(config, "", store=store)
            try:
                return await client.fetch_leaderboard(limit, min_comparisons)
            finally:
                await client.close()
                if store is not None:
                    await store.close()

        board = asyncio.run(_fetch())
        if not board.films:
            console.print("[yellow]No films match the filter yet.[/yellow]")
            return
        console.print(_render_leaderboard(board))

    except Exception as e:
        raise _fail(e, verbose) from e


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
    catalog_path: Annotated[
        Path | None, typer.Option("--catalog", "-c", help="Also validate a catalog file")
    ] = None,
) -> None:
    """Validate a configuration file (and optionally a catalog) without touching data.

    Args:
        config_path: Path to YAML configuration file.
        catalog_path: Optional path to a YAML catalog file.
    """
    try:
        config = load_config(config_path)
        console.print("[green]Configuration is valid![/green]")
        console.print(f"  Database: {config.get_database_url()}")
        console.print(f"  Server: {config.server_url or 'local'}")
        console.print(f"  Initial strength: {config.ranking.initial_strength}")
        console.print(f"  K-factor: {config.ranking.k_factor}")

        if catalog_path is not None:
            catalog = load_catalog(catalog_path)
            console.print("[green]Catalog is valid![/green]")
            console.print(f"  Films: {len(catalog.films)}")
            console.print(f"  Matchups: {len(catalog.matchup_keys())}")

    except Exception as e:
        raise _fail(e) from e


@app.command()
def info() -> None:
    """Show tool information and example commands."""
    console.print("[bold]Film Arena[/bold]")
    console.print(f"Version: {__version__}\n")

    console.print("[bold]Example Commands:[/bold]")
    console.print("  # Load films and matchups")
    console.print("  uv run film-arena seed config.yaml catalog.yaml\n")

    console.print("  # Vote in the terminal")
    console.print("  uv run film-arena play config.yaml --user alice\n")

    console.print("  # Top 10 films with at least 5 votes")
    console.print("  uv run film-arena leaderboard config.yaml --limit 10 --min-comparisons 5\n")

    console.print("  # Validate config and catalog")
    console.print("  uv run film-arena validate config.yaml --catalog catalog.yaml")


if __name__ == "__main__":
    app()
