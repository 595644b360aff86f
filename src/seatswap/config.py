"""Configuration loading for SeatSwap deployments."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "seatswap.yaml"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


@dataclass
class ServerConfig:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class LoggingConfig:
    """Logging settings passed through to setup_logging."""

    dir: str = "logs"
    level: str = "INFO"
    console: bool = True


@dataclass
class SeatSwapConfig:
    """SeatSwap deployment configuration.

    Attributes:
        db_path: SQLite file holding the seat ledger and the order book.
        admins: Identities allowed to mint/burn seats and bulk-cancel orders.
        server: HTTP server settings.
        logging: Logging settings.
        root_path: Directory containing the config file.
    """

    db_path: str = "seatswap.db"
    admins: list[str] = field(default_factory=list)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    root_path: Path = field(default_factory=Path)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root_path: Path) -> SeatSwapConfig:
        """Create config from dictionary.

        Args:
            data: Configuration dictionary from YAML.
            root_path: Root directory containing the config file.

        Returns:
            Parsed configuration object.

        Raises:
            ConfigError: If a field has the wrong shape.
        """
        admins = data.get("admins", [])
        if not isinstance(admins, list) or not all(isinstance(a, str) for a in admins):
            raise ConfigError("'admins' must be a list of identities")

        server_data = data.get("server", {}) or {}
        try:
            port = int(server_data.get("port", 8000))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid server port: {server_data.get('port')!r}") from e
        server = ServerConfig(
            host=server_data.get("host", "127.0.0.1"),
            port=port,
        )

        logging_data = data.get("logging", {}) or {}
        log_config = LoggingConfig(
            dir=logging_data.get("dir", "logs"),
            level=str(logging_data.get("level", "INFO")).upper(),
            console=bool(logging_data.get("console", True)),
        )

        return cls(
            db_path=data.get("db_path", "seatswap.db"),
            admins=admins,
            server=server,
            logging=log_config,
            root_path=root_path,
        )

    def get_db_path(self) -> str:
        """Get the database path, resolved against the config directory.

        Returns:
            ":memory:" unchanged, otherwise an absolute path string.
        """
        if self.db_path == ":memory:":
            return self.db_path
        path = Path(self.db_path)
        if not path.is_absolute():
            path = self.root_path / path
        return str(path)

    def get_log_dir(self) -> Path:
        """Get absolute path to the log directory."""
        path = Path(self.logging.dir)
        if not path.is_absolute():
            path = self.root_path / path
        return path


def load_config(config_path: Path | str) -> SeatSwapConfig:
    """Load SeatSwap configuration from a YAML file.

    Args:
        config_path: Path to seatswap.yaml file.

    Returns:
        Parsed configuration object.

    Raises:
        ConfigError: If file doesn't exist or is invalid.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(data).__name__}")

    return SeatSwapConfig.from_dict(data, config_path.parent.resolve())


def find_config(start_path: Path | str | None = None) -> Path:
    """Find seatswap.yaml by walking up directory tree.

    The SEATSWAP_CONFIG environment variable, when set, wins over the search.

    Args:
        start_path: Starting directory. Defaults to current directory.

    Returns:
        Path to seatswap.yaml file.

    Raises:
        ConfigError: If no config file is found.
    """
    env_path = os.environ.get("SEATSWAP_CONFIG")
    if env_path:
        return Path(env_path)

    start_path = Path.cwd() if start_path is None else Path(start_path)
    current = start_path.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        if current.parent == current:
            break
        current = current.parent

    raise ConfigError(f"No {CONFIG_FILENAME} found in {start_path} or any parent directory")


def load_config_or_default(config_path: Path | str | None = None) -> SeatSwapConfig:
    """Load config from an explicit path, a discovered file, or built-in defaults."""
    if config_path is not None:
        return load_config(config_path)
    try:
        found = find_config()
    except ConfigError:
        return SeatSwapConfig(root_path=Path.cwd())
    return load_config(found)
