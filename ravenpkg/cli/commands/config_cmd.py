"""``ravenpkg config`` — read and write the persisted key/value store.

    ravenpkg config                 dump the whole store
    ravenpkg config <key>           print one value
    ravenpkg config <key> <value>   set a value (last write wins)
"""

from __future__ import annotations

import typer
from rich.console import Console

from ravenpkg.config import RavenpkgSettings
from ravenpkg.core.config_store import ConfigStore

console = Console()


def config_cmd(
    key: str = typer.Argument(None, help="Config key."),
    value: str = typer.Argument(None, help="New value for the key."),
) -> None:
    """Show or change ravenpkg configuration."""
    store = ConfigStore(RavenpkgSettings().config_path)

    if key is None:
        typer.echo(store.list(), nl=False)
        return

    if value is None:
        current = store.get(key)
        if current is None:
            console.print(f"[yellow]{key} is not set.[/yellow]")
            raise typer.Exit(code=1)
        typer.echo(current)
        return

    store.set(key, value)
    console.print(f"[green]{key}[/green] = {value}")
