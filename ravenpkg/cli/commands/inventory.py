"""``ravenpkg list`` and ``ravenpkg libs`` — show what is installed."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from ravenpkg.config import RavenpkgSettings
from ravenpkg.core.library_store import LibraryStore, find_libraries

console = Console()


def list_cmd() -> None:
    """List installed (name, version) directories."""
    settings = RavenpkgSettings()
    installed = (
        sorted(p for p in settings.pkg_dir.iterdir() if p.is_dir())
        if settings.pkg_dir.is_dir()
        else []
    )
    if not installed:
        console.print("[dim]No packages installed.[/dim]")
        return

    table = Table(title="Installed Packages")
    table.add_column("Package", style="cyan")
    table.add_column("Libraries", justify="right")
    table.add_column("Location", style="dim")
    for path in installed:
        table.add_row(path.name, str(len(find_libraries(path))), str(path))
    console.print(table)


def libs_cmd() -> None:
    """List the content-addressed library namespace."""
    store = LibraryStore(RavenpkgSettings().lib_dir)
    entries = store.entries()
    if not entries:
        console.print("[dim]No libraries registered.[/dim]")
        return

    table = Table(title="Library Namespace")
    table.add_column("Entry", style="cyan")
    table.add_column("Target")
    table.add_column("Live", justify="center")
    for link in entries:
        target = link.readlink()
        live = "[green]Yes[/green]" if link.exists() else "[red]No[/red]"
        table.add_row(link.name, str(target), live)
    console.print(table)
