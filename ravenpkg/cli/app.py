"""Main Typer application — imports and registers all CLI commands.

Entry point: ``ravenpkg`` (configured via pyproject.toml project.scripts).

Commands: config, install, make-manifest, uninstall, list, libs.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from ravenpkg.cli.commands.config_cmd import config_cmd
from ravenpkg.cli.commands.install_cmd import install_cmd
from ravenpkg.cli.commands.inventory import libs_cmd, list_cmd
from ravenpkg.cli.commands.manifest_cmd import make_manifest_cmd
from ravenpkg.config import RavenpkgSettings
from ravenpkg.core.errors import RavenpkgError

err_console = Console(stderr=True)

app = typer.Typer(
    name="ravenpkg",
    help="ravenpkg: fetch, verify, build and install source packages.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


def reports_errors(command: Callable[..., Any]) -> Callable[..., Any]:
    """Turn a ``RavenpkgError`` into a red message and exit status 1."""

    @functools.wraps(command)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return command(*args, **kwargs)
        except RavenpkgError as exc:
            err_console.print(f"[bold red]{type(exc).__name__}:[/bold red] {exc}")
            raise typer.Exit(code=1) from exc

    return wrapper


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (default: RAVENPKG_LOG_LEVEL or WARNING).",
    ),
) -> None:
    """Configure logging before any command runs."""
    level = (log_level or RavenpkgSettings().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="config", help="Show or set configuration values.")(reports_errors(config_cmd))
app.command(name="install", help="Install a package from a reference.")(reports_errors(install_cmd))
app.command(name="make-manifest", help="Generate (and optionally sign) a manifest.")(
    reports_errors(make_manifest_cmd)
)
app.command(name="list", help="List installed packages.")(reports_errors(list_cmd))
app.command(name="libs", help="List the content-addressed library namespace.")(reports_errors(libs_cmd))


@app.command(name="uninstall", help="Uninstall a package (not implemented).")
def uninstall_cmd(
    name: str = typer.Argument(..., help="Package name."),
) -> None:
    """Report that uninstalling is not implemented."""
    Console().print(f"[yellow]uninstall {name}: not implemented[/yellow]")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
