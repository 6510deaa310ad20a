"""
Cinecache Typer CLI Application

Administration commands for the cache layer: statistics, clearing and
purging, warming, manual invalidation and content database setup.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer
from dependency_injector import providers
from rich.console import Console
from rich.table import Table

from cinecache.cli.error_handler import format_json_output, handle_cli_error
from cinecache.config.loader import load_settings
from cinecache.containers import Container
from cinecache.content.models import PROJECTION_MODELS
from cinecache.core.events import ChangeKind, InvalidationEvent
from cinecache.services.cache_manager import CacheManager
from cinecache.shared.constants import CacheGroup, CLIDefaults, EntityType, EventSource
from cinecache.shared.errors import create_cli_error
from cinecache.shared.logging import setup_structured_logger

__version__ = CLIDefaults.VERSION


@dataclass
class CliState:
    """Objects shared by every command of one invocation."""

    container: Container
    json_output: bool = False
    console: Console | None = None

    def out(self) -> Console:
        if self.console is None:
            self.console = Console()
        return self.console


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(f"{CLIDefaults.APP_NAME} {__version__}")
        raise typer.Exit


app = typer.Typer(
    name=CLIDefaults.APP_NAME,
    help=CLIDefaults.APP_DESCRIPTION,
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="TOML configuration file",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Override the configured log level",
    ),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Cinecache administration."""
    if ctx.obj is None:
        try:
            settings = load_settings(config)
        except Exception as e:  # noqa: BLE001
            raise typer.Exit(handle_cli_error(e, "main-callback", json_output=json_output)) from e

        setup_structured_logger(
            level=log_level or settings.logging.level,
            log_file=settings.logging.file,
            use_rich_console=settings.logging.rich_console,
        )
        container = Container()
        container.config.override(providers.Object(settings))
        ctx.obj = CliState(container=container)

    ctx.obj.json_output = ctx.obj.json_output or json_output


@contextmanager
def _command(ctx: typer.Context, command: str) -> Iterator[CacheManager]:
    """Yield the cache manager; map failures to an exit code."""
    state: CliState = ctx.obj
    try:
        manager = state.container.cache_manager()
        yield manager
    except typer.Exit:
        raise
    except Exception as e:  # noqa: BLE001
        raise typer.Exit(handle_cli_error(e, command, json_output=state.json_output)) from e


def _fail(ctx: typer.Context, command: str, message: str) -> None:
    error = create_cli_error(message, command)
    raise typer.Exit(handle_cli_error(error, command, json_output=ctx.obj.json_output))


def _emit(ctx: typer.Context, command: str, data: dict[str, Any], message: str) -> None:
    state: CliState = ctx.obj
    if state.json_output:
        typer.echo(format_json_output(command, success=True, data=data))
    else:
        state.out().print(message)


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Show per-group entry counts and hit/miss statistics."""
    with _command(ctx, "stats") as manager:
        stats = manager.get_cache_stats()

    state: CliState = ctx.obj
    if state.json_output:
        typer.echo(format_json_output("stats", success=True, data=stats))
        return

    summary = stats["statistics"]
    table = Table(title=f"Cache groups ({stats['backend']} backend)")
    table.add_column("Group", style="cyan")
    table.add_column("Entries", justify="right")
    table.add_column("Hits", justify="right")
    table.add_column("Misses", justify="right")
    table.add_column("Hit ratio", justify="right")
    for group, count in stats["groups"].items():
        metrics = summary["groups"].get(group, {})
        table.add_row(
            group,
            "?" if count is None else str(count),
            str(metrics.get("hits", 0)),
            str(metrics.get("misses", 0)),
            f"{metrics.get('hit_ratio', 0.0):.1%}",
        )
    console = state.out()
    console.print(table)
    console.print(f"Overall hit ratio: {summary['hit_ratio']:.1%}")
    for table_name, rows in stats.get("projections", {}).items():
        console.print(f"{table_name}: {rows} rows")


@app.command("clear")
def clear_command(
    ctx: typer.Context,
    group: str | None = typer.Option(
        None,
        "--group",
        "-g",
        help="Flush one group instead of the whole cache",
    ),
) -> None:
    """Clear the cache, or flush a single group."""
    with _command(ctx, "clear") as manager:
        if group is None:
            ok = manager.clear_all_cache()
            target = "all groups"
        else:
            if group not in (*CacheGroup.ALL, CacheGroup.DEFAULT):
                raise create_cli_error(f"Unknown cache group: {group}", "clear")
            ok = manager.flush_group(group)
            target = f"group {group}"

    if not ok:
        _fail(ctx, "clear", f"Failed to clear {target}")
    _emit(ctx, "clear", {"cleared": target}, f"Cleared {target}")


@app.command("purge")
def purge_command(ctx: typer.Context) -> None:
    """Remove expired entries from the backend."""
    with _command(ctx, "purge") as manager:
        removed = manager.purge_expired()
    _emit(ctx, "purge", {"removed": removed}, f"Purged {removed} expired entries")


@app.command("warm")
def warm_command(
    ctx: typer.Context,
    preload: bool = typer.Option(
        False,
        "--preload",
        help="Only preload the most popular movies and the navigation menu",
    ),
) -> None:
    """Run a cache warming pass now."""
    with _command(ctx, "warm") as manager:
        report = manager.preload_critical_content() if preload else manager.warm_cache()
    _emit(
        ctx,
        "warm",
        report.to_dict(),
        f"Warmed {report.warmed_count} entries ({report.failed_count} failed) in {report.duration_ms:.0f} ms",
    )


@app.command("invalidate")
def invalidate_command(
    ctx: typer.Context,
    source: str = typer.Argument(
        ...,
        help="Entity type (movie, tv, drama, people) or navigation, theme_options, content_sync",
    ),
    entity_id: int | None = typer.Argument(None, help="Entity id"),
) -> None:
    """Apply the invalidation rules for a content change."""
    with _command(ctx, "invalidate") as manager:
        if source in {t.value for t in EntityType}:
            if entity_id is None:
                event = InvalidationEvent(source)
            else:
                event = InvalidationEvent.for_entity(source, entity_id, ChangeKind.UPDATED)
        elif source in {s.value for s in EventSource}:
            event = InvalidationEvent(source)
        else:
            raise create_cli_error(f"Unknown invalidation source: {source}", "invalidate")
        report = manager.invalidate(event)

    data = {
        "deleted": [f"{group}/{key}" for key, group in report.deleted],
        "flushed": report.flushed,
        "failures": report.failures,
    }
    if not report.ok:
        _fail(ctx, "invalidate", f"Invalidation incomplete: {', '.join(report.failures)}")
    _emit(
        ctx,
        "invalidate",
        data,
        f"Deleted {len(report.deleted)} keys, flushed {len(report.flushed)} groups",
    )


@app.command("init-db")
def init_db_command(
    ctx: typer.Context,
    rebuild: bool = typer.Option(
        False,
        "--rebuild",
        help="Re-derive every projection row and drop orphaned ones",
    ),
) -> None:
    """Create the content tables (and optionally rebuild projections)."""
    state: CliState = ctx.obj
    with _command(ctx, "init-db"):
        state.container.database().initialize()
        rebuilt: dict[str, int] = {}
        removed = 0
        if rebuild:
            projections = state.container.projections()
            rebuilt = {entity_type: projections.rebuild(entity_type) for entity_type in PROJECTION_MODELS}
            removed = projections.cleanup_orphans()

    _emit(
        ctx,
        "init-db",
        {"rebuilt": rebuilt, "orphans_removed": removed},
        "Content database ready"
        + (f"; rebuilt {sum(rebuilt.values())} projection rows, removed {removed} orphans" if rebuild else ""),
    )
