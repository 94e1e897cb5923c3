"""Process settings — env-driven, loaded once per invocation.

Centralized settings using pydantic-settings for environment variable
support. Reads from a .env file and RAVENPKG_* environment variables.

These settings describe *where* ravenpkg keeps its state and how it talks
to the outside world.  The user-editable key/value store (toolchain path,
build options) lives in ``ravenpkg.core.config_store`` instead.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class RavenpkgSettings(BaseSettings):
    """Process settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export RAVENPKG_HOME=/opt/ravenpkg
        export RAVENPKG_LOG_LEVEL=DEBUG
        export RAVENPKG_REGISTRY_URL=https://example.org/uuids.txt
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RAVENPKG_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage root
    home: Path = Path.home() / ".ravenpkg"

    # Remote sources
    registry_url: str = "https://raw.githubusercontent.com/ravenpkg/registry/master/uuids.txt"
    github_url_template: str = "git://github.com/{owner}/{repo}"

    # Toolchain discovery
    toolchain: str = ""           # explicit override, wins over PATH lookup
    toolchain_binary: str = "cc"  # looked up on PATH when nothing is configured

    # Observability
    log_level: str = "WARNING"

    # Timeouts (None blocks indefinitely)
    command_timeout_seconds: float | None = None
    http_timeout_seconds: float = 60.0

    @property
    def config_path(self) -> Path:
        """The persisted key/value config file."""
        return self.home / "config"

    @property
    def work_dir(self) -> Path:
        """Parent of every ephemeral working tree."""
        return self.home / "work"

    @property
    def pkg_dir(self) -> Path:
        """Parent of every fixed per-version install directory."""
        return self.home / "pkg"

    @property
    def lib_dir(self) -> Path:
        """The content-addressed library namespace."""
        return self.home / "lib"
