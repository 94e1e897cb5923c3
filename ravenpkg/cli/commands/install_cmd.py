"""``ravenpkg install`` — fetch, verify, build and install a package."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.panel import Panel

from ravenpkg.config import RavenpkgSettings
from ravenpkg.core.source_fetcher import create_fetcher

console = Console()


def install_cmd(
    pkgref: str = typer.Argument(
        ...,
        help="github:<user>/<repo>[@<commit>] | file:<path> | <scheme>://<url> | uuid:<uuid>[@<commit>]",
    ),
    signer: str = typer.Option(
        None,
        "--signer",
        "-s",
        help="Require a manifest signature by this key ID or user@host.",
    ),
) -> None:
    """Install a package from a reference.

    With --signer the manifest signature and every declared file hash must
    verify before anything is built.
    """
    fetcher = create_fetcher(RavenpkgSettings())
    result = fetcher.resolve(pkgref, required_signer=signer)

    lines = [
        f"[bold green]Installed {result.name} {result.version}[/bold green]",
        "",
        f"[bold]Install dir:[/bold]  {result.install_dir}",
        f"[bold]Signed by:[/bold]    {result.verified_by or '[yellow]unverified[/yellow]'}",
        f"[bold]Libraries:[/bold]    {len(result.libraries)}",
    ]
    lines.extend(f"  [dim]{link.name}[/dim]" for link in result.libraries)

    console.print(
        Panel(
            "\n".join(lines),
            title="[bold]ravenpkg[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
