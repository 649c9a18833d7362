"""CLI for Kronika.

Commands:
    resolve <snapshot> <query>...          - Resolve free-text names
    show-entity <snapshot> <name>          - Show an entity's histories and path
    merge-state <snapshot> <directives>    - Apply session changes to the store
    stats <snapshot>                       - Show store and index statistics

A snapshot is a JSON file with ``players`` and ``sources`` (see
``kronika.schemas.Snapshot``); directives are a JSON list of
``ChangeDirective`` objects.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Annotated

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from kronika import __version__
from kronika.config import settings
from kronika.index.token_index import Ambiguous, TokenIndex
from kronika.merge.state_merger import StateMerger
from kronika.models.entity import Entity, Player, owner_kind, owner_type
from kronika.models.enums import EntityType
from kronika.models.temporal import TemporalValue, is_active
from kronika.resolution.resolver import NameResolver, ResolutionCache
from kronika.schemas import ChangeDirective, Snapshot, SourceRecord
from kronika.store.entity_store import EntitySource, EntityStore

app = typer.Typer(
    name="kronika",
    help="Kronika: resolve Polish name references against a temporal entity store",
    no_args_is_help=True,
)
console = Console()


def _parse_type(label: str | None) -> EntityType | None:
    if label is None:
        return None
    try:
        return EntityType.parse(label)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        console.print(f"[red]Error:[/red] Invalid date: {value}")
        raise typer.Exit(1) from None


def load_snapshot(path: Path, *, as_of: date | None = None) -> tuple[EntityStore, list[Player]]:
    """Read a snapshot file and build the merged store and player roster."""
    try:
        snapshot = Snapshot.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        console.print(f"[red]Error:[/red] Cannot load snapshot {path}: {escape(str(e))}")
        raise typer.Exit(1) from None

    sources = [EntitySource.from_record(source) for source in snapshot.sources]
    store = EntityStore.from_sources(sources, as_of=as_of)
    players = [Player.from_record(player) for player in snapshot.players]
    return store, players


def load_directives(path: Path) -> list[ChangeDirective]:
    try:
        return TypeAdapter(list[ChangeDirective]).validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        console.print(f"[red]Error:[/red] Cannot load directives {path}: {escape(str(e))}")
        raise typer.Exit(1) from None


def _format_history(history: list[TemporalValue], as_of: date | None) -> str:
    parts = []
    for item in history:
        text = str(item)
        if as_of is not None and not is_active(item, as_of):
            text = f"[dim]{text}[/dim]"
        parts.append(text)
    return ", ".join(parts)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@app.command()
def resolve(
    snapshot: Annotated[Path, typer.Argument(help="Snapshot JSON file")],
    queries: Annotated[list[str], typer.Argument(help="Names to resolve")],
    type_label: Annotated[
        str | None, typer.Option("--type", "-t", help="Only accept this entity type")
    ] = None,
    max_distance: Annotated[
        int | None, typer.Option(help="Override the edit-distance budget")
    ] = None,
    no_tree: Annotated[bool, typer.Option("--no-tree", help="Use a full scan")] = False,
):
    """Resolve free-text names to players, characters and entities."""
    type_filter = _parse_type(type_label)
    store, players = load_snapshot(snapshot)
    index = TokenIndex.build(store, players)
    resolver = NameResolver.for_index(index, use_search_tree=not no_tree)
    cache = ResolutionCache()

    table = Table(title="Resolution")
    table.add_column("Query")
    table.add_column("Match")
    table.add_column("Kind")
    table.add_column("Type")
    table.add_column("Stage")
    table.add_column("Key")
    table.add_column("Distance", justify="right")

    unresolved = 0
    for query in queries:
        result = resolver.resolve_detailed(
            query, type_filter, max_distance=max_distance, cache=cache
        )
        if result is None:
            unresolved += 1
            table.add_row(query, "[red]no match[/red]", "", "", "", "", "")
            continue
        table.add_row(
            query,
            result.owner.name,
            owner_kind(result.owner).value,
            owner_type(result.owner).value,
            result.stage.value,
            result.key,
            str(result.distance),
        )

    console.print(table)
    if unresolved:
        raise typer.Exit(1)


@app.command("show-entity")
def show_entity(
    snapshot: Annotated[Path, typer.Argument(help="Snapshot JSON file")],
    name: Annotated[str, typer.Argument(help="Entity name (exact or inflected)")],
    type_label: Annotated[str | None, typer.Option("--type", "-t", help="Entity type")] = None,
    as_of: Annotated[
        str | None, typer.Option(help="Resolve current values as of this date (YYYY-MM-DD)")
    ] = None,
):
    """Show details for a specific entity."""
    type_filter = _parse_type(type_label)
    when = _parse_date(as_of)
    store, players = load_snapshot(snapshot, as_of=when)

    entity: Entity | None = None
    if type_filter is not None:
        entity = store.get(name, type_filter)
    if entity is None:
        resolver = NameResolver.for_index(TokenIndex.build(store, players))
        owner = resolver.resolve(name, type_filter)
        if isinstance(owner, Entity):
            entity = owner

    if entity is None:
        console.print(f"[red]Error:[/red] Entity not found: {name}")
        raise typer.Exit(1)

    panel_content = []
    panel_content.append(f"[bold]Name:[/bold] {entity.name}")
    panel_content.append(f"[bold]Type:[/bold] {entity.type.value}")
    panel_content.append(f"[bold]Path:[/bold] {entity.canonical_path}")
    if entity.current_location:
        panel_content.append(f"[bold]Location:[/bold] {entity.current_location}")
    if entity.current_status:
        panel_content.append(f"[bold]Status:[/bold] {entity.current_status}")

    for which, history in entity.histories().items():
        if history:
            panel_content.append(f"[bold]{which.value}:[/bold] {_format_history(history, when)}")

    if entity.generic_names:
        panel_content.append(f"[bold]Generic names:[/bold] {', '.join(entity.generic_names)}")

    if entity.overrides:
        panel_content.append("[bold]Overrides:[/bold]")
        for tag, values in entity.overrides.items():
            panel_content.append(f"  • {tag}: {_format_history(values, when)}")

    console.print(Panel("\n".join(panel_content), title="Entity Details"))


@app.command("merge-state")
def merge_state_command(
    snapshot: Annotated[Path, typer.Argument(help="Snapshot JSON file")],
    directives: Annotated[Path, typer.Argument(help="Directives JSON file")],
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the merged snapshot here")
    ] = None,
):
    """Apply dated session changes to the entity store."""
    store, players = load_snapshot(snapshot)
    batch = load_directives(directives)

    report = StateMerger(store, players=players).apply(batch)

    console.print(Panel(
        f"[bold]Applied:[/bold] {report.applied}\n"
        f"[bold]Changes:[/bold] {report.changes}\n"
        f"[bold]Skipped:[/bold] {len(report.skipped)}\n"
        f"[bold]Entities touched:[/bold] {len(report.touched)}",
        title="Merge Report",
    ))

    if report.skipped:
        table = Table(title="Unresolved Targets")
        table.add_column("Target")
        table.add_column("Session")
        for skipped in report.skipped:
            table.add_row(skipped.target, skipped.session_date.isoformat())
        console.print(table)

    if output is not None:
        merged = Snapshot(
            players=[player.to_record() for player in players],
            sources=[SourceRecord(name="merged", entities=store.to_records())],
        )
        output.write_text(merged.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"[green]Merged snapshot written to {output}[/green]")


@app.command()
def stats(
    snapshot: Annotated[Path, typer.Argument(help="Snapshot JSON file")],
):
    """Show store and index statistics."""
    store, players = load_snapshot(snapshot)
    index = TokenIndex.build(store, players)

    type_counts: dict[EntityType, int] = {}
    for entity in store:
        type_counts[entity.type] = type_counts.get(entity.type, 0) + 1
    ambiguous = [entry for entry in index if isinstance(entry, Ambiguous)]

    console.print(Panel(
        f"[bold]Entities:[/bold] {len(store)}\n"
        f"[bold]Players:[/bold] {len(players)}\n"
        f"[bold]Characters:[/bold] {sum(len(p.characters) for p in players)}\n"
        f"[bold]Index keys:[/bold] {len(index)}\n"
        f"[bold]Ambiguous keys:[/bold] {len(ambiguous)}",
        title=f"Kronika {__version__} Statistics",
    ))

    if type_counts:
        table = Table(title="Entities by Type")
        table.add_column("Type")
        table.add_column("Count", justify="right")
        for entity_type, count in sorted(type_counts.items(), key=lambda x: -x[1]):
            table.add_row(entity_type.value, str(count))
        console.print(table)

    if ambiguous:
        table = Table(title="Ambiguous Keys")
        table.add_column("Key")
        table.add_column("Owners")
        for entry in ambiguous:
            owners = ", ".join(
                f"{owner.name} ({owner_kind(owner).value})" for owner in entry.owners
            )
            table.add_row(entry.key, owners)
        console.print(table)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
