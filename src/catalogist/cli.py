"""Command-line interface for Catalogist."""

from __future__ import annotations

import json
import re
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)
from rich.table import Table

from catalogist import __version__
from catalogist.catalog.models import (
    DEFAULT_LIBRARY_ID,
    AttentionKind,
    CanonicalEntity,
    EntityKind,
    EpisodeRef,
    LibraryKind,
    OrderingMode,
    PlacementMode,
    SeriesPolicy,
    SpecialPlacementRule,
)
from catalogist.catalog.repository import CatalogRepository
from catalogist.config import get_config
from catalogist.errors import CatalogError, get_friendly_message, log_error

# Load environment variables from .env file
load_dotenv()

console = Console()

RE_EPISODE_CODE = re.compile(r"^s(\d{1,4})e(\d{1,4})$", re.IGNORECASE)


def _parse_episode_code(value: str) -> tuple[int, int]:
    match = RE_EPISODE_CODE.match(value.strip())
    if not match:
        raise click.BadParameter(f"'{value}' is not an episode code like S01E02")
    return int(match.group(1)), int(match.group(2))


@contextmanager
def _catalog(ctx: click.Context) -> Iterator[CatalogRepository]:
    """Open the store, yield a repository, and flush pending writes."""
    from catalogist.store import open_store

    store_path = ctx.obj.get("store_path")
    store = open_store(Path(store_path) if store_path else None)
    try:
        yield CatalogRepository(store)
    except CatalogError as e:
        log_error(e, f"Command: {ctx.info_name}")
        console.print(f"[red]Error:[/red] {get_friendly_message(e)}")
        sys.exit(1)
    finally:
        try:
            store.flush()
        except CatalogError as e:
            log_error(e, "Flushing store")
            console.print(f"[red]Error:[/red] {get_friendly_message(e)}")


def _find_series(repo: CatalogRepository, ref: str) -> CanonicalEntity:
    """Look up a series by id, id prefix or title; exit if not exactly one."""
    matches = [e for e in repo.find_entities(ref) if e.kind is EntityKind.SERIES]
    if not matches:
        console.print(f"[red]No series matches:[/red] {ref}")
        sys.exit(1)
    if len(matches) > 1:
        console.print(f"[yellow]'{ref}' matches several series:[/yellow]")
        for entity in matches:
            console.print(f"  {entity.id}  {entity.display_title}")
        sys.exit(1)
    return matches[0]


@click.group()
@click.version_option(version=__version__, prog_name="catalogist")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output (no progress, only results)")
@click.option(
    "--store",
    "store_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Catalog store file (default: from config)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool, store_path: str | None) -> None:
    """Catalogist - resolve media files into a canonical episode catalog."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["store_path"] = store_path


# =============================================================================
# parse
# =============================================================================


@main.command()
@click.argument("path")
@click.option(
    "--season",
    "seasons",
    multiple=True,
    help="Known season size as SEASON=EPISODES (can be used multiple times)",
)
@click.option("--date-ordered", is_flag=True, help="Series is numbered by air date")
@click.option(
    "--format",
    "-f",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
def parse(path: str, seasons: tuple[str, ...], date_ordered: bool, format: str) -> None:
    """Show how a file name is parsed."""
    from catalogist.mapping import FileMappingModel
    from catalogist.parser import ParseContext

    counts: dict[int, int] = {}
    for item in seasons:
        season, _, episodes = item.partition("=")
        try:
            counts[int(season)] = int(episodes or 0)
        except ValueError:
            raise click.BadParameter(f"'{item}' is not SEASON=EPISODES") from None

    context = ParseContext(episode_counts=counts, date_ordered=date_ordered)
    model = FileMappingModel(min_confidence=get_config().parser.min_confidence)
    result = model.parse(path, context)

    if format == "json":
        output = None
        if result is not None:
            output = {
                "rule": result.rule_name,
                "confidence": result.confidence,
                "season": result.season,
                "episodes": list(result.episodes),
                "air_date": result.air_date.isoformat() if result.air_date else None,
                "series_title": result.series_title,
                "year": result.year,
                "episode_title": result.episode_title,
                "part": result.part,
                "external_ids": dict(result.external_ids),
            }
        console.print_json(json.dumps(output))
        return

    if result is None:
        console.print("[yellow]No match[/yellow]")
        sys.exit(1)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Rule", result.rule_name)
    table.add_row("Confidence", f"{result.confidence:.2f}")
    if result.series_title:
        table.add_row("Series", result.series_title)
    if result.year:
        table.add_row("Year", str(result.year))
    if result.has_episode:
        table.add_row("Episodes", ", ".join(f"S{s:02d}E{e:02d}" for s, e in result.pairs))
    if result.air_date:
        table.add_row("Air date", result.air_date.isoformat())
    if result.episode_title:
        table.add_row("Title", result.episode_title)
    if result.part is not None:
        table.add_row("Part", str(result.part))
    for provider, value in sorted(result.external_ids.items()):
        table.add_row(provider.upper(), value)
    console.print(table)
    if result.confidence < model.min_confidence:
        console.print(
            f"[yellow]Below min confidence ({model.min_confidence:.2f}); "
            "would stay unmapped[/yellow]"
        )


# =============================================================================
# scan / refresh
# =============================================================================


@main.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.option("--movies", is_flag=True, help="Treat ROOT as a movie library")
@click.option("--library", "-l", default=DEFAULT_LIBRARY_ID, help="Library id")
@click.option("--prune", is_flag=True, help="Forget stored files no longer on disk")
@click.option("--hash", "with_hash", is_flag=True, help="Compute quick hashes of files")
@click.option("--workers", type=int, default=None, help="Worker threads (default: from config)")
@click.pass_context
def scan(
    ctx: click.Context,
    root: str,
    movies: bool,
    library: str,
    prune: bool,
    with_hash: bool,
    workers: int | None,
) -> None:
    """Identify every media file under ROOT."""
    from catalogist.pipeline import IdentificationPipeline, walk_library
    from catalogist.statistics import ScanStatistics

    quiet = ctx.obj.get("quiet", False)
    stats = ScanStatistics()
    stats.start()

    progress_task = None
    progress_ctx = None

    def progress_callback(stage: str, current: int, total: int) -> None:
        if progress_ctx is not None and progress_task is not None:
            progress_ctx.update(progress_task, description=stage, completed=current, total=total)

    with _catalog(ctx) as repo:
        pipeline = IdentificationPipeline(
            repo,
            library_id=library,
            library_kind=LibraryKind.MOVIES if movies else LibraryKind.TV_SHOWS,
            library_root=str(Path(root)),
            workers=workers,
            stats=stats,
            progress_callback=progress_callback,
        )
        try:
            if quiet:
                observed = walk_library(Path(root), with_hash=with_hash)
                result = pipeline.scan(observed)
            else:
                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    TaskProgressColumn(),
                    console=console,
                    transient=True,
                ) as progress:
                    progress_ctx = progress
                    progress_task = progress.add_task("Walking library...", total=None)
                    stats.start_phase("Walking library")
                    observed = walk_library(Path(root), with_hash=with_hash)
                    stats.end_phase(item_count=len(observed))
                    result = pipeline.scan(observed)
            if prune:
                result.pruned = pipeline.prune_missing(observed)
        except KeyboardInterrupt:
            pipeline.cancel()
            console.print("\n[yellow]Scan cancelled.[/yellow]")
            sys.exit(130)
        finally:
            stats.stop()

    console.print(
        f"[bold]Identified:[/bold] {result.mapped_count} mapped, "
        f"{result.unmapped_count} unmapped"
    )
    if result.pruned:
        console.print(f"[dim]Removed {result.pruned} files no longer on disk[/dim]")
    if not quiet:
        stats.print_summary(console)
    if result.failed:
        sys.exit(1)


@main.command()
@click.argument("series")
@click.option(
    "--list",
    "list_files",
    multiple=True,
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Provider episode list JSON file (can be used multiple times)",
)
@click.pass_context
def refresh(ctx: click.Context, series: str, list_files: tuple[str, ...]) -> None:
    """Refresh a series' expected episodes from provider episode lists."""
    from pydantic import ValidationError

    from catalogist.episodes import StaticEpisodeProvider
    from catalogist.pipeline import IdentificationPipeline

    with _catalog(ctx) as repo:
        entity = _find_series(repo, series)
        providers = []
        for path in list_files:
            try:
                providers.append(StaticEpisodeProvider.from_file(entity.id, Path(path)))
            except (OSError, ValidationError) as e:
                console.print(f"[red]Cannot read episode list {path}:[/red] {e}")
                sys.exit(1)

        pipeline = IdentificationPipeline(repo, providers=providers)
        event = pipeline.refresh_series(entity.id)

    if event is None:
        console.print("[red]Refresh failed.[/red] See catalogist_errors.log for details.")
        sys.exit(1)
    if event.canonical_provider is None:
        console.print("[yellow]No provider returned episodes; nothing changed.[/yellow]")
        return
    console.print(
        f"[bold]{entity.display_title}[/bold]: canonical list from "
        f"{event.canonical_provider.upper()}"
    )
    console.print(f"  Updated: {event.upserted}  Removed: {event.removed}")
    if event.attention_raised or event.attention_cleared:
        console.print(
            f"  Attention: {event.attention_raised} raised, {event.attention_cleared} cleared"
        )


# =============================================================================
# status / order
# =============================================================================


@main.command()
@click.argument("series", required=False)
@click.option("--library", "-l", default=DEFAULT_LIBRARY_ID, help="Library id")
@click.option("--hide-missing", is_flag=True, help="Hide missing episodes")
@click.option("--hide-future", is_flag=True, help="Hide unaired episodes")
@click.option(
    "--hide-empty-seasons", is_flag=True, help="Hide seasons without files"
)
@click.option("--include-specials", is_flag=True, help="Include Season 0")
@click.option("--save", is_flag=True, help="Also save the report as CSV")
@click.option(
    "--format",
    "-f",
    type=click.Choice(["text", "json", "csv"]),
    default="text",
    help="Output format",
)
@click.pass_context
def status(
    ctx: click.Context,
    series: str | None,
    library: str,
    hide_missing: bool,
    hide_future: bool,
    hide_empty_seasons: bool,
    include_specials: bool,
    save: bool,
    format: str,
) -> None:
    """Show present, missing and future episodes."""
    from catalogist.completeness import DisplayFilter, library_report
    from catalogist.output import CompletenessReportFormatter

    verbose = ctx.obj.get("verbose", False)
    # Flags can only switch a toggle on; config supplies the rest
    configured = DisplayFilter.from_config(get_config().display)
    display = DisplayFilter(
        hide_missing=hide_missing or configured.hide_missing,
        hide_future=hide_future or configured.hide_future,
        hide_empty_seasons=hide_empty_seasons or configured.hide_empty_seasons,
        include_specials=include_specials or configured.include_specials,
    )

    with _catalog(ctx) as repo:
        series_ids = [_find_series(repo, series).id] if series else None
        report = library_report(repo, library, display=display, series_ids=series_ids)

    formatter = CompletenessReportFormatter(report)
    if format == "json":
        console.print_json(formatter.to_json())
    elif format == "csv":
        console.print(formatter.to_csv())
    else:
        formatter.to_text(verbose=verbose or series is not None)
        formatter.show_summary()

    if save:
        csv_path = formatter.save_csv()
        console.print(f"[green]CSV saved:[/green] {csv_path}")


@main.command()
@click.argument("series")
@click.option(
    "--format",
    "-f",
    type=click.Choice(["text", "json", "csv"]),
    default="text",
    help="Output format",
)
@click.pass_context
def order(ctx: click.Context, series: str, format: str) -> None:
    """Show a series' main viewing order with specials placed."""
    from catalogist.output import ViewingOrderFormatter
    from catalogist.specials import SpecialsPlacementResolver

    with _catalog(ctx) as repo:
        entity = _find_series(repo, series)
        viewing_order = SpecialsPlacementResolver().main_order(
            entity.id, repo.expected_episodes(entity.id), repo.placement_rules(entity.id)
        )

    formatter = ViewingOrderFormatter(viewing_order, entity.display_title)
    if format == "json":
        console.print_json(formatter.to_json())
    elif format == "csv":
        console.print(formatter.to_csv())
    else:
        formatter.to_text()


# =============================================================================
# attention
# =============================================================================


@main.command()
@click.option(
    "--kind",
    type=click.Choice([k.value for k in AttentionKind]),
    default=None,
    help="Only show items of this kind",
)
@click.option("--dismiss", default=None, help="Remove the item with this key")
@click.pass_context
def attention(ctx: click.Context, kind: str | None, dismiss: str | None) -> None:
    """List items that need a human decision."""
    with _catalog(ctx) as repo:
        if dismiss:
            if repo.resolve_attention(dismiss):
                console.print(f"[green]Dismissed:[/green] {dismiss}")
            else:
                console.print(f"[yellow]No attention item:[/yellow] {dismiss}")
                sys.exit(1)
            return
        items = repo.attention_items(kind=AttentionKind(kind) if kind else None)

    if not items:
        console.print("[green]Nothing needs attention.[/green]")
        return

    table = Table(show_header=True, header_style="dim", box=None, padding=(0, 2))
    table.add_column("Key", style="dim")
    table.add_column("Kind")
    table.add_column("Detail", style="white")
    table.add_column("Raised", style="dim")
    for item in items:
        table.add_row(
            item.store_key,
            item.kind.value,
            item.detail,
            item.raised_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)
    console.print(f"\n[dim]{len(items)} item(s)[/dim]")


# =============================================================================
# series management
# =============================================================================


@main.group(name="series")
def series_group() -> None:
    """Inspect and edit series in the catalog."""
    pass


@series_group.command(name="list")
@click.option("--library", "-l", default=DEFAULT_LIBRARY_ID, help="Library id")
@click.pass_context
def series_list(ctx: click.Context, library: str) -> None:
    """List series with their provider identifiers."""
    with _catalog(ctx) as repo:
        entities = repo.list_entities(EntityKind.SERIES, library)
        rows = [
            (e, repo.get_external_ids(e.id).ids, len(repo.expected_episodes(e.id)))
            for e in sorted(entities, key=lambda e: e.normalized_title)
        ]

    if not rows:
        console.print("[dim]No series in the catalog.[/dim]")
        return

    table = Table(show_header=True, header_style="dim", box=None, padding=(0, 2))
    table.add_column("Id", style="dim")
    table.add_column("Title", style="white")
    table.add_column("Expected", justify="right")
    table.add_column("Identifiers", style="dim")
    for entity, ids, expected in rows:
        id_text = ", ".join(f"{k}={v}" for k, v in sorted(ids.items()))
        table.add_row(entity.id[:12], entity.display_title, str(expected), id_text)
    console.print(table)


@series_group.command(name="set-id")
@click.argument("series")
@click.argument("provider")
@click.argument("value")
@click.pass_context
def series_set_id(ctx: click.Context, series: str, provider: str, value: str) -> None:
    """Set (and lock) a provider identifier on a series."""
    with _catalog(ctx) as repo:
        entity = _find_series(repo, series)
        changed = repo.set_external_id(entity.id, provider, value)
    if changed:
        console.print(f"[green]Set {provider.lower()}={value} on[/green] {entity.display_title}")
    else:
        console.print("[dim]No change.[/dim]")


@series_group.command(name="policy")
@click.argument("series")
@click.option("--precedence", default=None, help="Comma-separated provider order")
@click.option(
    "--ordering",
    type=click.Choice([m.value for m in OrderingMode]),
    default=None,
    help="Episode numbering to follow",
)
@click.pass_context
def series_policy(
    ctx: click.Context, series: str, precedence: str | None, ordering: str | None
) -> None:
    """Show or change a series' provider precedence and ordering."""
    from catalogist.config import seed_policy

    with _catalog(ctx) as repo:
        entity = _find_series(repo, series)
        policy = repo.ensure_policy(entity.id, seed_policy)
        update: dict[str, object] = {}
        if precedence:
            update["provider_precedence"] = [p for p in precedence.split(",") if p.strip()]
        if ordering:
            update["ordering"] = OrderingMode(ordering)
        if update:
            policy = SeriesPolicy.model_validate({**policy.model_dump(), **update})
            repo.save_policy(policy)

    console.print(f"[bold]{entity.display_title}[/bold]")
    console.print(f"  Precedence: {', '.join(policy.provider_precedence)}")
    console.print(f"  Ordering: {policy.ordering.value}")


@series_group.command(name="date-ordered")
@click.argument("series")
@click.option("--off", is_flag=True, help="Number the series by season and episode again")
@click.pass_context
def series_date_ordered(ctx: click.Context, series: str, off: bool) -> None:
    """Match a series' files to episodes by the air date in their names."""
    with _catalog(ctx) as repo:
        entity = _find_series(repo, series)
        changed = repo.set_date_ordered(entity.id, not off)

    state = "off" if off else "on"
    if changed:
        console.print(f"[green]Date ordering {state} for[/green] {entity.display_title}")
    else:
        console.print(f"[dim]Date ordering already {state}.[/dim]")


@series_group.command(name="edit-episode")
@click.argument("series")
@click.argument("episode")
@click.option("--title", default=None, help="Episode title")
@click.option("--air-date", default=None, help="Air date (YYYY-MM-DD)")
@click.option("--overview", default=None, help="Episode overview")
@click.pass_context
def series_edit_episode(
    ctx: click.Context,
    series: str,
    episode: str,
    title: str | None,
    air_date: str | None,
    overview: str | None,
) -> None:
    """Edit an expected episode; edited fields are locked against refreshes."""
    from pydantic import ValidationError

    season_number, episode_number = _parse_episode_code(episode)
    changes = {
        name: value
        for name, value in (("title", title), ("air_date", air_date), ("overview", overview))
        if value is not None
    }
    if not changes:
        raise click.UsageError("Nothing to edit: pass --title, --air-date or --overview")

    with _catalog(ctx) as repo:
        entity = _find_series(repo, series)
        try:
            edited = repo.edit_episode(entity.id, season_number, episode_number, **changes)
        except ValidationError as e:
            console.print(f"[red]Invalid value:[/red] {e.errors()[0]['msg']}")
            sys.exit(1)

    console.print(f"[green]Updated[/green] {edited.display_title}")
    console.print(f"[dim]Locked: {', '.join(sorted(changes))}[/dim]")


@series_group.command(name="place")
@click.argument("series")
@click.argument("special", type=int)
@click.option("--before", "before", default=None, help="Place before this episode (S01E05)")
@click.option("--after", "after", default=None, help="Place after this episode (S01E05)")
@click.option("--clear", is_flag=True, help="Remove the placement rule")
@click.pass_context
def series_place(
    ctx: click.Context,
    series: str,
    special: int,
    before: str | None,
    after: str | None,
    clear: bool,
) -> None:
    """Place special S00E<SPECIAL> into the main viewing order."""
    if before and after:
        raise click.UsageError("Use either --before or --after, not both")

    with _catalog(ctx) as repo:
        entity = _find_series(repo, series)
        if clear:
            repo.remove_placement(entity.id, special)
            console.print(f"[green]Cleared placement for S00E{special:02d}[/green]")
            return

        if before or after:
            mode = PlacementMode.BEFORE if before else PlacementMode.AFTER
            target = EpisodeRef.of(*_parse_episode_code(before or after or ""))
            if target.season_number == 0:
                raise click.BadParameter("A special cannot be placed relative to a special")
            rule = SpecialPlacementRule(
                series_id=entity.id, special_episode=special, mode=mode, target=target
            )
        else:
            rule = SpecialPlacementRule(series_id=entity.id, special_episode=special)
        repo.set_placement(rule)

    target_text = f" {rule.target.episode_code}" if rule.target else ""
    console.print(f"[green]S00E{special:02d}:[/green] {rule.mode.value}{target_text}")


# =============================================================================
# config
# =============================================================================


@main.group()
def config() -> None:
    """Manage Catalogist configuration."""
    pass


@config.command(name="show")
def config_show() -> None:
    """Show current configuration."""
    from catalogist.config import find_config_file, get_store_file_path

    cfg = get_config()
    config_file = find_config_file()

    console.print("[bold]Current Configuration[/bold]")
    console.print()

    if config_file:
        console.print(f"[dim]Config file:[/dim] {config_file}")
    else:
        console.print("[dim]Config file:[/dim] (none - using defaults)")
    console.print()

    console.print("[bold]Store:[/bold]")
    console.print(f"  Path: {get_store_file_path(cfg)}")
    console.print(f"  Auto-save threshold: {cfg.store.auto_save_threshold}")
    console.print()

    console.print("[bold]Parser:[/bold]")
    console.print(f"  Min confidence: {cfg.parser.min_confidence}")
    console.print()

    console.print("[bold]Providers:[/bold]")
    console.print(f"  Precedence: {', '.join(cfg.providers.precedence)}")
    console.print(f"  Ordering: {cfg.providers.ordering.value}")
    console.print()

    console.print("[bold]Display:[/bold]")
    console.print(f"  Hide missing: {cfg.display.hide_missing}")
    console.print(f"  Hide future: {cfg.display.hide_future}")
    console.print(f"  Hide empty seasons: {cfg.display.hide_empty_seasons}")
    console.print(f"  Include specials: {cfg.display.include_specials}")
    console.print()

    console.print("[bold]Scan:[/bold]")
    console.print(f"  Workers: {cfg.scan.workers}")


@config.command(name="path")
def config_path() -> None:
    """Show configuration file paths."""
    from catalogist.config import find_config_file, get_config_paths, get_store_file_path

    console.print("[bold]Configuration paths (in priority order):[/bold]")
    config_file = find_config_file()

    for path in get_config_paths():
        if path.exists():
            if path == config_file:
                console.print(f"  [green]{path}[/green] (active)")
            else:
                console.print(f"  {path} (exists)")
        else:
            console.print(f"  [dim]{path}[/dim]")

    console.print()
    console.print("[bold]Other paths:[/bold]")
    console.print(f"  Store file: {get_store_file_path()}")
    console.print(f"  .env file: {Path.cwd() / '.env'}")


@config.command(name="init")
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(force: bool) -> None:
    """Create a default configuration file."""
    from catalogist.config import save_default_config

    config_path = Path.cwd() / "catalogist.ini"

    if config_path.exists() and not force:
        console.print(f"[yellow]Config file already exists:[/yellow] {config_path}")
        console.print("Use --force to overwrite.")
        sys.exit(1)

    save_default_config(config_path)
    console.print(f"[green]Created config file:[/green] {config_path}")
    console.print("Edit this file to customize your settings.")


# =============================================================================
# store
# =============================================================================


@main.group()
def store() -> None:
    """Manage the catalog store."""
    pass


@store.command(name="stats")
@click.pass_context
def store_stats(ctx: click.Context) -> None:
    """Show store statistics."""
    with _catalog(ctx) as repo:
        stats = repo.store.stats()
        location = getattr(repo.store, "store_file", None)

    console.print("[bold]Store Statistics[/bold]")
    console.print()

    if stats.total_entries == 0:
        console.print("[dim]Store is empty.[/dim]")
    else:
        console.print(f"[bold]Total entries:[/bold] {stats.total_entries}")
        console.print(f"[bold]Total size:[/bold] {stats.total_size_kb:.1f} KB")
        console.print()
        console.print("[bold]By namespace:[/bold]")
        for namespace, count in sorted(stats.namespaces.items()):
            console.print(f"  {namespace + ':':<16} {count}")

    if location:
        console.print()
        console.print(f"Store location: {location}")


@store.command(name="clear")
@click.option("--namespace", default=None, help="Only clear this namespace")
@click.confirmation_option(prompt="Are you sure you want to clear the catalog store?")
@click.pass_context
def store_clear(ctx: click.Context, namespace: str | None) -> None:
    """Delete catalog records."""
    with _catalog(ctx) as repo:
        count = repo.store.clear(namespace)

    if count == 0:
        console.print("[dim]Store is already empty.[/dim]")
    else:
        console.print(f"[green]Cleared {count} entries.[/green]")


if __name__ == "__main__":
    main()
