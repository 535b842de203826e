"""
CLI entry point for migration-mapper.
"""

import json
import logging
import shutil
from functools import wraps
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from migration_mapper.engine.bulk import BulkResult
from migration_mapper.engine.query import ALL, FilterCriteria, SortSpec
from migration_mapper.exceptions import (
    ConfirmationRequiredError,
    InventoryError,
    MigrationMapperError,
    format_error_for_cli,
)
from migration_mapper.models import MappingGroup
from migration_mapper.models.base import format_timestamp
from migration_mapper.service import MigrationService
from migration_mapper.util.files import ensure_dir, write_json
from migration_mapper.util.logging import setup_logging
from migration_mapper.workspace import Workspace

app = typer.Typer(
    name="migration-mapper",
    help="Categorize cloud resources and map legacy infrastructure to its replacements",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def handle_errors(func):
    """Decorator to handle exceptions in CLI commands with nice formatting."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except MigrationMapperError as e:
            console.print(format_error_for_cli(e))
            raise typer.Exit(1)
        except Exception as e:
            logger.exception("Unexpected error")
            console.print(f"[red]Unexpected error:[/red] {str(e)}")
            console.print("\n[yellow]This may be a bug. Re-run with --verbose for details.[/yellow]")
            raise typer.Exit(1)

    return wrapper


map_app = typer.Typer(help="Mapping group commands (create, update, status, list, ...)")
app.add_typer(map_app, name="map")

# Global options set by the callback
state = {"verbose": False}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Categorize cloud resources and map legacy infrastructure to its replacements."""
    state["verbose"] = verbose
    if verbose:
        setup_logging("DEBUG")


def _open_workspace() -> tuple[Workspace, MigrationService]:
    workspace = Workspace(Path.cwd())
    workspace.ensure_exists()
    settings = workspace.settings()
    if not state["verbose"]:
        setup_logging(settings.log_level)
    return workspace, MigrationService(workspace.store(), settings)


def _criteria(
    search: str = "",
    resource_type: str = ALL,
    region: str = ALL,
    status: str = ALL,
    category: str = ALL,
    mapping_type: str = ALL,
    priority: str = ALL,
    mapping_category: str = ALL,
) -> FilterCriteria:
    return FilterCriteria(
        search=search,
        resource_type=resource_type,
        region=region,
        status=status,
        category=category,
        mapping_type=mapping_type,
        priority=priority,
        mapping_category=mapping_category,
    )


def _print_mapping(group: MappingGroup) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Id", group.id)
    table.add_row("Sources", ", ".join(group.source_ids))
    table.add_row("Targets", ", ".join(group.target_ids) or "[dim](none)[/dim]")
    table.add_row("Type", f"{group.mapping_type.value} ({group.mapping_type.description})")
    table.add_row("Direction", f"{group.mapping_direction.value} ({group.mapping_direction.label})")
    table.add_row("Status", group.migration_status.value)
    table.add_row("Plan", group.category.label)
    table.add_row("Priority", group.priority.value)
    if group.confidence is not None:
        table.add_row("Confidence", str(group.confidence))
    if group.notes:
        table.add_row("Notes", group.notes)
    table.add_row("Updated", format_timestamp(group.updated_at))
    console.print(table)


def _print_bulk_result(title: str, result: BulkResult) -> None:
    from migration_mapper.util.progress import show_summary

    for warning in result.warnings:
        console.print(f"[yellow]⚠ {warning.message}[/yellow]")

    items = {
        "Succeeded": len(result.succeeded),
        "Failed": len(result.failed),
    }
    if result.cancelled:
        items["Skipped"] = len(result.skipped)
    show_summary(title, items)

    if result.failed:
        table = Table(title="Failures")
        table.add_column("Item", style="cyan")
        table.add_column("Kind", style="magenta")
        table.add_column("Error")
        for failure in result.failed:
            table.add_row(failure.id, failure.error.kind, failure.error.message)
        console.print(table)


def _expected_version(service: MigrationService, group_id: str, expected: str | None) -> str:
    # Without --expected the version read here is used, so only writes that
    # land between this read and the write are detected
    if expected:
        return expected
    return format_timestamp(service.get_mapping(group_id).updated_at)


@app.command()
def init(
    workspace_dir: str = typer.Argument(..., help="Workspace directory to initialize"),
):
    """Initialize a new migration-mapper workspace."""
    console.print(f"[bold blue]Initializing workspace:[/bold blue] {workspace_dir}")

    workspace = Workspace(Path(workspace_dir))
    workspace.initialize()

    console.print(f"[green]✓ Created directory structure in {workspace_dir}[/green]")
    console.print("[green]✓ Wrote configuration to migration-mapper.yaml[/green]")

    console.print("\n[dim]Next steps:[/dim]")
    console.print(f"  cd {workspace_dir}")
    console.print("  migration-mapper import --file <inventory.json>")


@app.command(name="import")
@handle_errors
def import_cmd(
    file: str = typer.Option(..., "--file", help="Inventory file (JSON or YAML)"),
):
    """Import a resource inventory exported by a discovery tool."""
    from migration_mapper.collectors import InventoryFileCollector

    source_path = Path(file)
    if not source_path.is_file():
        raise InventoryError(str(source_path), "file not found")

    workspace, service = _open_workspace()

    console.print(f"[bold blue]Importing inventory:[/bold blue] {source_path.name}")
    counts = service.sync_inventory(InventoryFileCollector(source_path))

    dest_path = ensure_dir(workspace.root / "inventory") / source_path.name
    if source_path.resolve() != dest_path.resolve():
        shutil.copy2(source_path, dest_path)

    console.print(f"[green]✓ {counts['added']} resource(s) added, {counts['updated']} updated[/green]")
    console.print(f"[green]✓ Copied to {dest_path.relative_to(workspace.root)}[/green]")


@app.command()
@handle_errors
def categorize(
    resource_id: str = typer.Argument(..., help="Resource to categorize"),
    category: str = typer.Argument(..., help="old | new | uncategorized"),
    notes: str | None = typer.Option(None, "--notes", help="Classification notes"),
):
    """Set the migration category of one resource."""
    _, service = _open_workspace()
    resource = service.categorize(resource_id, category, notes)
    console.print(
        f"[green]✓ {resource.display_name} is now {resource.category.label.lower()}[/green]"
    )


@app.command(name="bulk-categorize")
@handle_errors
def bulk_categorize(
    category: str = typer.Argument(..., help="old | new | uncategorized"),
    resource_ids: list[str] = typer.Argument(..., help="Resources to categorize"),
    notes: str | None = typer.Option(None, "--notes", help="Classification notes"),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Confirm selections above the warning threshold"
    ),
):
    """Categorize several resources; failures are reported per resource."""
    from migration_mapper.util.progress import track_progress

    _, service = _open_workspace()

    with track_progress(f"Categorizing as {category}", total=len(resource_ids)) as advance:
        result = service.bulk_categorize(
            resource_ids, category, notes, confirmed=yes, on_item=advance
        )

    _print_bulk_result("Bulk categorize", result)
    if result.failed:
        raise typer.Exit(1)


@app.command()
@handle_errors
def categories():
    """Show resource counts per category."""
    from migration_mapper.util.progress import show_summary

    _, service = _open_workspace()
    snapshot = service.categories()
    show_summary(
        "Categories",
        {
            "Legacy": snapshot.old,
            "Modern": snapshot.new,
            "Uncategorized": snapshot.uncategorized,
            "Total": snapshot.total,
            "Categorized": f"{snapshot.progress_pct}%",
        },
    )


@app.command()
@handle_errors
def suggest(
    resource_type: str = typer.Option(ALL, "--type", help="Only consider this resource type"),
    region: str = typer.Option(ALL, "--region", help="Only consider this region"),
    per_source: int | None = typer.Option(None, "--per-source", help="Max suggestions per source"),
    limit: int = typer.Option(20, "--limit", help="Max suggestions shown"),
):
    """Suggest source -> target mappings ranked by confidence."""
    _, service = _open_workspace()
    pool_filter = _criteria(resource_type=resource_type, region=region)
    suggestions = service.suggest_mappings(pool_filter, per_source)

    if not suggestions:
        console.print("[yellow]No suggestions. Categorize resources as old and new first.[/yellow]")
        return

    table = Table(title=f"Suggestions ({len(suggestions)} total)")
    table.add_column("Source", style="cyan")
    table.add_column("Target", style="cyan")
    table.add_column("Confidence", justify="right")
    table.add_column("Reasons")
    colours = {"high": "green", "medium": "yellow", "low": "red"}
    for suggestion in suggestions[:limit]:
        colour = colours[suggestion.band]
        table.add_row(
            suggestion.source_id,
            suggestion.target_id,
            f"[{colour}]{suggestion.confidence}[/{colour}]",
            "; ".join(suggestion.reasons),
        )
    console.print(table)


@app.command()
@handle_errors
def unmapped(
    resource_type: str = typer.Option(ALL, "--type", help="Filter by resource type"),
    region: str = typer.Option(ALL, "--region", help="Filter by region"),
    category: str = typer.Option(ALL, "--category", help="Filter by category"),
):
    """List resources that belong to no mapping group."""
    _, service = _open_workspace()
    resources = service.unmapped_resources(
        _criteria(resource_type=resource_type, region=region, category=category)
    )

    if not resources:
        console.print("[green]✓ Every resource is mapped[/green]")
        return

    table = Table(title=f"Unmapped resources ({len(resources)})")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Region")
    table.add_column("Category")
    for resource in resources:
        table.add_row(
            resource.resource_id,
            resource.name or "",
            resource.resource_type,
            resource.region,
            resource.category.value,
        )
    console.print(table)


@app.command()
@handle_errors
def export(
    out: Path | None = typer.Option(None, "--out", help="Output file (default: exports/)"),
):
    """Export all resources and mapping groups as JSON."""
    workspace, service = _open_workspace()
    data = service.export_all()

    if out is None:
        stamp = data["exported_at"].replace(":", "-").split(".")[0]
        out = workspace.root / "exports" / f"export-{stamp}.json"
    write_json(out, data)

    console.print(
        f"[green]✓ Exported {data['total_resources']} resource(s) and "
        f"{data['total_mappings']} mapping(s) to {out}[/green]"
    )


@app.command()
@handle_errors
def report(
    out: Path | None = typer.Option(None, "--out", help="Output directory (default: reports/)"),
):
    """
    Generate a static HTML migration progress report.

    Example:
        migration-mapper report
        open reports/progress.html
    """
    from migration_mapper.report.progress import generate_progress_report

    workspace, service = _open_workspace()
    console.print("[bold blue]Generating progress report...[/bold blue]")
    report_file = generate_progress_report(service, out or workspace.root / "reports")

    console.print("[green]✓ Report generated successfully[/green]")
    console.print(f"\n[bold]Report location:[/bold] {report_file}")


# Mapping group commands


@map_app.command("create")
@handle_errors
def map_create(
    source: list[str] = typer.Option(..., "--source", "-s", help="Source resource id (repeatable)"),
    target: list[str] = typer.Option([], "--target", "-t", help="Target resource id (repeatable)"),
    mapping_type: str = typer.Option("replacement", "--type", help="Mapping type"),
    direction: str = typer.Option("old_to_new", "--direction", help="Mapping direction"),
    priority: str = typer.Option("medium", "--priority", help="critical | high | medium | low"),
    category: str = typer.Option(
        "undecided", "--category", help="Migration plan (keep_manual, migrate_terraform, ...)"
    ),
    notes: str | None = typer.Option(None, "--notes", help="Notes (max 1000 characters)"),
    confidence: int | None = typer.Option(None, "--confidence", help="Confidence 0-100"),
):
    """Create a mapping group."""
    _, service = _open_workspace()
    group = service.create_mapping(
        source,
        target,
        mapping_type,
        direction,
        notes=notes,
        confidence=confidence,
        priority=priority,
        category=category,
    )
    console.print(f"[green]✓ Created mapping {group.id}[/green]")
    _print_mapping(group)


@map_app.command("add-targets")
@handle_errors
def map_add_targets(
    group_id: str = typer.Argument(..., help="Mapping group id"),
    target_ids: list[str] = typer.Argument(..., help="Target resource ids"),
    expected: str | None = typer.Option(None, "--expected", help="updated_at you last read"),
):
    """Add target resources to a mapping group."""
    _, service = _open_workspace()
    version = _expected_version(service, group_id, expected)
    group = service.add_targets(group_id, target_ids, version)
    console.print(f"[green]✓ Added {len(target_ids)} target(s) to {group.id}[/green]")
    _print_mapping(group)


@map_app.command("remove-targets")
@handle_errors
def map_remove_targets(
    group_id: str = typer.Argument(..., help="Mapping group id"),
    target_ids: list[str] = typer.Argument(..., help="Target resource ids"),
    expected: str | None = typer.Option(None, "--expected", help="updated_at you last read"),
):
    """Remove target resources from a mapping group."""
    _, service = _open_workspace()
    version = _expected_version(service, group_id, expected)
    group = service.remove_targets(group_id, target_ids, version)
    console.print(f"[green]✓ Removed {len(target_ids)} target(s) from {group.id}[/green]")
    _print_mapping(group)


@map_app.command("update")
@handle_errors
def map_update(
    group_id: str = typer.Argument(..., help="Mapping group id"),
    notes: str | None = typer.Option(None, "--notes", help="New notes (empty string clears)"),
    mapping_type: str | None = typer.Option(None, "--type", help="New mapping type"),
    direction: str | None = typer.Option(None, "--direction", help="New mapping direction"),
    priority: str | None = typer.Option(None, "--priority", help="New priority"),
    category: str | None = typer.Option(None, "--category", help="New migration plan"),
    expected: str | None = typer.Option(None, "--expected", help="updated_at you last read"),
):
    """Update notes, type, direction, priority or plan of a mapping group."""
    _, service = _open_workspace()
    patch = {
        key: value
        for key, value in (
            ("notes", notes),
            ("mapping_type", mapping_type),
            ("mapping_direction", direction),
            ("priority", priority),
            ("category", category),
        )
        if value is not None
    }
    version = _expected_version(service, group_id, expected)
    group = service.update_mapping(group_id, patch, version)
    console.print(f"[green]✓ Updated {group.id}[/green]")
    _print_mapping(group)


@map_app.command("status")
@handle_errors
def map_status(
    group_id: str = typer.Argument(..., help="Mapping group id"),
    new_status: str = typer.Argument(..., help="Target migration status"),
    reason: str | None = typer.Option(None, "--reason", help="Reason (kept for rollbacks)"),
    expected: str | None = typer.Option(None, "--expected", help="updated_at you last read"),
):
    """Move a mapping group to a new migration status."""
    _, service = _open_workspace()
    version = _expected_version(service, group_id, expected)
    group = service.advance_status(group_id, new_status, version, reason)
    console.print(f"[green]✓ {group.id} is now {group.migration_status.value}[/green]")


@map_app.command("delete")
@handle_errors
def map_delete(
    group_ids: list[str] = typer.Argument(..., help="Mapping group ids"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirm deletion"),
):
    """Delete mapping groups (requires --yes)."""
    from migration_mapper.util.progress import track_progress

    _, service = _open_workspace()
    if not yes:
        raise ConfirmationRequiredError("Deleting mappings", len(group_ids))

    with track_progress("Deleting mappings", total=len(group_ids)) as advance:
        result = service.bulk_delete_mappings(group_ids, confirmed=True, on_item=advance)

    _print_bulk_result("Delete mappings", result)
    if result.failed:
        raise typer.Exit(1)


@map_app.command("list")
@handle_errors
def map_list(
    search: str = typer.Option("", "--search", help="Search id, notes and member names"),
    status: str = typer.Option(ALL, "--status", help="Filter by migration status"),
    mapping_type: str = typer.Option(ALL, "--type", help="Filter by mapping type"),
    priority: str = typer.Option(ALL, "--priority", help="Filter by priority"),
    category: str = typer.Option(ALL, "--category", help="Filter by migration plan"),
    resource_type: str = typer.Option(ALL, "--resource-type", help="Filter by source type"),
    region: str = typer.Option(ALL, "--region", help="Filter by source region"),
    sort: str = typer.Option("created_at", "--sort", help="Sort field"),
    order: str = typer.Option("asc", "--order", help="asc | desc"),
    cursor: str | None = typer.Option(None, "--cursor", help="Cursor from the previous page"),
    page_size: int | None = typer.Option(None, "--page-size", help="Groups per page"),
    as_json: bool = typer.Option(False, "--json", help="Print the page as JSON"),
):
    """List mapping groups with filtering, sorting and pagination."""
    _, service = _open_workspace()
    page = service.list_mappings(
        _criteria(
            search=search,
            resource_type=resource_type,
            region=region,
            status=status,
            mapping_type=mapping_type,
            priority=priority,
            mapping_category=category,
        ),
        SortSpec(field=sort, order=order),
        cursor,
        page_size,
    )

    if as_json:
        typer.echo(
            json.dumps(
                {
                    "items": [group.to_dict() for group in page.items],
                    "next_cursor": page.next_cursor,
                },
                indent=2,
            )
        )
        return

    if not page.items:
        console.print("[yellow]No mapping groups found[/yellow]")
        return

    table = Table(title="Mapping groups")
    table.add_column("Id", style="cyan")
    table.add_column("Sources")
    table.add_column("Targets")
    table.add_column("Type")
    table.add_column("Plan")
    table.add_column("Status")
    table.add_column("Priority")
    table.add_column("Updated", style="dim")
    for group in page.items:
        table.add_row(
            group.id,
            ", ".join(group.source_ids),
            ", ".join(group.target_ids) or "(none)",
            group.mapping_type.value,
            group.category.value,
            group.migration_status.value,
            group.priority.value,
            format_timestamp(group.updated_at),
        )
    console.print(table)

    if page.next_cursor:
        console.print(f"\n[dim]Next page:[/dim] --cursor {page.next_cursor}")


@map_app.command("check")
@handle_errors
def map_check(
    group_id: str = typer.Argument(..., help="Mapping group id"),
):
    """Check a mapping group for missing members and category mismatches."""
    _, service = _open_workspace()
    problems = service.check_mapping(group_id)

    if not problems:
        console.print(f"[green]✓ {group_id} is consistent[/green]")
        return

    console.print(f"[yellow]⚠ {group_id} has {len(problems)} problem(s):[/yellow]")
    for problem in problems:
        console.print(f"  • {problem}")
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
