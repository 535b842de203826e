"""
Progress tracking and reporting utilities using rich.
"""

from contextlib import contextmanager
from typing import Callable, Iterator

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

console = Console()


def create_progress_bar() -> Progress:
    """
    Create a rich Progress bar with custom formatting.

    Returns:
        Configured Progress instance
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    )


@contextmanager
def track_progress(description: str, total: int) -> Iterator[Callable[[str], None]]:
    """
    Context manager yielding a per-item callback that advances a progress bar.

    Usage:
        with track_progress("Categorizing", total=len(ids)) as advance:
            service.bulk_categorize(ids, "old", on_item=advance)

    Args:
        description: Description to show in progress bar
        total: Number of items expected

    Yields:
        Callback taking the id of the item just processed
    """
    progress = create_progress_bar()
    with progress:
        task = progress.add_task(description, total=total)

        def advance(item: str) -> None:
            progress.update(task, advance=1, description=f"{description} [dim]{item}[/dim]")

        yield advance


def show_summary(title: str, items: dict[str, str | int]):
    """
    Show a formatted summary box.

    Args:
        title: Summary title
        items: Dictionary of items to show (key: value pairs)
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")

    for key, value in items.items():
        table.add_row(key, str(value))

    panel = Panel(table, title=f"[bold]{title}[/bold]", border_style="blue")
    console.print(panel)
