"""ravenpkg CLI — Typer-based command-line interface.

Provides the ``ravenpkg`` command with subcommands for configuration,
installing packages, generating manifests, and inspecting installed
packages and libraries.

All output uses Rich for formatted terminal display.
"""
