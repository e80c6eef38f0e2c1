# =============================================================================
# Configuration Management
# =============================================================================
# Handles loading, saving, and validating mailbox configuration.
#
# XDG Base Directory Compliance (https://specifications.freedesktop.org/basedir-spec/):
#   - Config:  $XDG_CONFIG_HOME/mailbox/  (default: ~/.config/mailbox/)
#   - Data:    $XDG_DATA_HOME/mailbox/    (default: ~/.local/share/mailbox/)
#   - State:   $XDG_STATE_HOME/mailbox/   (default: ~/.local/state/mailbox/)
#
# Files:
#   - config.toml: User configuration (overrides, database provider)
#   - mailbox.db: SQLite database (in data directory)
#   - mailbox.log: Application log (in state directory)
#
# Example config.toml:
#
#   [database]
#   provider = "http"
#   url = "https://mailbox.example.com/api"
#   token = "secret"
#
#   [overrides]
#   "backups" = "read"
#   "noisy/cron" = "ignored"
# =============================================================================

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from mailbox_tui.core import MailboxPath, MailboxPathError, OverrideResolver, OverrideTarget


# =============================================================================
# XDG Directory Management
# =============================================================================

# Subdirectory name under each XDG base directory
APP_NAME = "mailbox"


def _xdg_dir(env_var: str, *default_parts: str) -> Path:
    value = os.environ.get(env_var)
    base = Path(value) if value else Path.home().joinpath(*default_parts)
    return base / APP_NAME


def get_xdg_config_home() -> Path:
    """
    Returns the XDG config directory.

    Respects $XDG_CONFIG_HOME if set, otherwise uses ~/.config/mailbox/
    """
    return _xdg_dir("XDG_CONFIG_HOME", ".config")


def get_xdg_data_home() -> Path:
    """
    Returns the XDG data directory.

    Respects $XDG_DATA_HOME if set, otherwise uses ~/.local/share/mailbox/
    This is where the SQLite database lives.
    """
    return _xdg_dir("XDG_DATA_HOME", ".local", "share")


def get_xdg_state_home() -> Path:
    """
    Returns the XDG state directory.

    Respects $XDG_STATE_HOME if set, otherwise uses ~/.local/state/mailbox/
    Logs are written here so they never interfere with the TUI.
    """
    return _xdg_dir("XDG_STATE_HOME", ".local", "state")


def ensure_directories() -> dict[str, Path]:
    """
    Create the config, data and state directories.

    Returns:
        The directories keyed by "config", "data" and "state".
    """
    dirs = {
        "config": get_xdg_config_home(),
        "data": get_xdg_data_home(),
        "state": get_xdg_state_home(),
    }

    for dir_path in dirs.values():
        dir_path.mkdir(parents=True, exist_ok=True)

    return dirs


# =============================================================================
# Configuration Data Structures
# =============================================================================

DATABASE_PROVIDERS = ("sqlite", "http")


@dataclass
class DatabaseConfig:
    """
    Where messages are stored.

    Attributes:
        provider: "sqlite" for the local database, "http" for a remote
                  mailbox server.
        url: Base URL of the remote API (required for "http"),
             e.g. "https://mailbox.example.com/api".
        token: Optional bearer token sent to the remote API.
    """
    provider: str = "sqlite"
    url: str = ""
    token: str | None = None


@dataclass
class Config:
    """
    Main configuration container.

    Attributes:
        database: Storage provider configuration.
        overrides: Per-mailbox rules applied to new messages.

    Usage:
        >>> config = Config.load()
        >>> config.resolver().resolve(MailboxPath("backups/nas"))
    """
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    overrides: dict[MailboxPath, OverrideTarget] = field(default_factory=dict)

    # -------------------------------------------------------------------------
    # File Paths
    # -------------------------------------------------------------------------

    @staticmethod
    def config_file_path() -> Path:
        """config.toml in the config directory."""
        return get_xdg_config_home() / "config.toml"

    @staticmethod
    def database_path() -> Path:
        """Default location of the local message database."""
        return get_xdg_data_home() / "mailbox.db"

    @staticmethod
    def log_file_path() -> Path:
        """mailbox.log in the state directory."""
        return get_xdg_state_home() / "mailbox.log"

    # -------------------------------------------------------------------------
    # Loading and Saving
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """
        Read config.toml. A missing file means the defaults: the local
        SQLite database and no overrides.

        Args:
            path: Config file to read. Defaults to the XDG location.

        Raises:
            ConfigError: The file is unreadable, is not TOML, or has bad values.
        """
        config_path = path or cls.config_file_path()

        if not config_path.exists():
            return cls()

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse config file {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read config file {config_path}: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def loads(cls, text: str) -> "Config":
        """Parse configuration from a TOML string."""
        try:
            return cls.from_dict(tomllib.loads(text))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse config: {e}") from e

    def save(self, path: Path | None = None) -> Path:
        """
        Write this configuration as TOML, creating its directory.

        Returns:
            The path written.
        """
        config_path = path or self.config_file_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "wb") as f:
            tomli_w.dump(self.to_dict(), f)
        return config_path

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """
        Validate parsed TOML into a Config.

        Unknown keys are errors here: a misspelled
        override or provider would otherwise silently change where messages
        go.
        """
        unknown = set(data) - {"database", "overrides"}
        if unknown:
            raise ConfigError(f"Unknown config section(s): {', '.join(sorted(unknown))}")

        config = cls()

        # Database settings
        database = data.get("database", {})
        if not isinstance(database, dict):
            raise ConfigError("[database] must be a table")
        unknown = set(database) - {"provider", "url", "token"}
        if unknown:
            raise ConfigError(f"Unknown database setting(s): {', '.join(sorted(unknown))}")
        provider = database.get("provider", "sqlite")
        if provider not in DATABASE_PROVIDERS:
            raise ConfigError(f"Unknown database provider: {provider!r}")
        if provider == "http" and not database.get("url"):
            raise ConfigError("The http database provider requires a url")
        config.database = DatabaseConfig(
            provider=provider,
            url=database.get("url", ""),
            token=database.get("token"),
        )

        # Overrides - each key is a mailbox path
        overrides = data.get("overrides", {})
        if not isinstance(overrides, dict):
            raise ConfigError("[overrides] must be a table")
        for name, target in overrides.items():
            try:
                path = MailboxPath(name)
            except MailboxPathError as e:
                raise ConfigError(f"Invalid override mailbox {name!r}: {e}") from e
            try:
                override = OverrideTarget(target)
            except ValueError:
                raise ConfigError(
                    f"Invalid override for {name!r}: {target!r} "
                    "(expected unread, read, archived, or ignored)"
                ) from None
            if path in config.overrides:
                raise ConfigError(f"Duplicate override for mailbox {name!r}")
            config.overrides[path] = override

        return config

    def to_dict(self) -> dict[str, Any]:
        """The TOML form of this config. Overrides are written sorted by mailbox."""
        data: dict[str, Any] = {}

        data["database"] = {"provider": self.database.provider}
        if self.database.provider == "http":
            data["database"]["url"] = self.database.url
            if self.database.token:
                data["database"]["token"] = self.database.token

        data["overrides"] = {
            str(path): target.value for path, target in sorted(self.overrides.items())
        }

        return data

    def resolver(self) -> OverrideResolver:
        """Build the override resolver for these rules."""
        return OverrideResolver(self.overrides)


# =============================================================================
# Exceptions
# =============================================================================

class ConfigError(Exception):
    """The config file or an override rule is invalid."""


# =============================================================================
# Utility Functions
# =============================================================================

def print_paths() -> None:
    """
    Print the directories and files `mailbox --paths` reports.
    """
    print(f"Config:  {get_xdg_config_home()}")
    print(f"Data:    {get_xdg_data_home()}")
    print(f"State:   {get_xdg_state_home()}")
    print()
    print(f"Config file:  {Config.config_file_path()}")
    print(f"Database:     {Config.database_path()}")
    print(f"Log file:     {Config.log_file_path()}")
