"""``ravenpkg make-manifest`` — write (and optionally sign) a package manifest."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from ravenpkg.bridge.gpg import GpgBackend
from ravenpkg.core.manifest_generator import generate_manifest

console = Console()


def make_manifest_cmd(
    build_descriptor: Path = typer.Argument(..., help="File with name = \"...\" and vers = \"...\"."),
    manifest_out: Path = typer.Argument(..., help="Where to write the manifest."),
    extra_files: list[Path] = typer.Argument(None, help="Additional files to hash, relative to the current directory."),
    signer: str = typer.Option(
        None,
        "--signer",
        "-s",
        help="Hash the source tree and sign the manifest as this identity.",
    ),
) -> None:
    """Generate a manifest from a build descriptor."""
    manifest = generate_manifest(
        build_descriptor,
        manifest_out,
        list(extra_files or []),
        signer,
        signing=GpgBackend() if signer else None,
    )
    console.print(
        f"[green]Wrote[/green] {manifest_out} "
        f"({manifest.get('name')} {manifest.get('vers')}, "
        f"{len(manifest.file_hashes())} file hashes)"
    )
    if signer:
        console.print(f"[green]Signed[/green] {manifest_out}.sig as {signer}")
    else:
        console.print("[yellow]Unsigned manifest: installs cannot verify it.[/yellow]")
