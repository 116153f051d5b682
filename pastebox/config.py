"""Configuration management for the paste service.

This module handles loading configuration from environment variables and config files,
with sensible defaults for optional values.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Optional
from typing import TypedDict

# Configure logging
logger = logging.getLogger(__name__)

# MAX_ID_LEN sets paste ID maximum string length
MAX_ID_LEN = 30

SUPPORTED_DB_TYPES = ("sqlite3", "memory")


class _ConfigValues(TypedDict):
    storage_path: str
    db_type: str
    db_name: str
    address: str
    length: int
    listen_port: int


class ConfigurationError(Exception):
    """Raised when configuration or generation parameters are invalid."""

    pass


class Config:
    """Configuration for the paste service.

    Configuration is loaded with the following priority:
    1. Environment variables (highest priority)
    2. Configuration file (TOML format)
    3. Default values (lowest priority)

    Options:
    - storage_path: Directory holding the SQLite database (default: ".")
    - db_type: Storage backend, "sqlite3" or "memory" (default: "sqlite3")
    - db_name: SQLite database file name (default: "pastebin.db")
    - address: Prefix for links returned to clients (default: "")
    - length: Paste ID length, clamped to MAX_ID_LEN (default: 6)
    - listen_port: Port for HTTP server (default: 8080)
    """

    def __init__(
        self,
        storage_path: str = ".",
        db_type: str = "sqlite3",
        db_name: str = "pastebin.db",
        address: str = "",
        length: int = 6,
        listen_port: int = 8080,
    ):
        """Initialize configuration with validated values.

        Args:
            storage_path: Directory holding the SQLite database
            db_type: Storage backend selector
            db_name: SQLite database file name
            address: Prefix for returned paste links
            length: Paste ID length
            listen_port: Port for HTTP server

        Raises:
            ConfigurationError: If the backend selector is unknown
        """
        if db_type not in SUPPORTED_DB_TYPES:
            logger.error(f"Invalid db_type: {db_type}")
            raise ConfigurationError(
                f"Incorrect DB type {db_type!r}: expected one of {', '.join(SUPPORTED_DB_TYPES)}"
            )

        self.storage_path = storage_path
        self.db_type = db_type
        self.db_name = db_name
        self.address = address.rstrip("/")
        self.length = min(length, MAX_ID_LEN)
        self.listen_port = listen_port

    @classmethod
    def from_env_and_file(cls, config_file: Optional[str] = None) -> "Config":
        """Load configuration from environment variables and optional config file.

        Environment variables take precedence over config file values.

        Environment variables:
        - STORAGE_PATH: Directory for the SQLite database
        - DB_TYPE: Storage backend ("sqlite3" or "memory")
        - DB_NAME: SQLite database file name
        - ADDRESS: Prefix for returned paste links
        - LENGTH: Paste ID length
        - LISTEN_PORT: HTTP server port

        Args:
            config_file: Path to TOML config file (optional)

        Returns:
            Config instance with loaded values

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config_values = cls._defaults()

        # Load from config file if provided
        if config_file:
            config_values.update(cls._load_from_file(config_file))

        # Override with environment variables
        if "STORAGE_PATH" in os.environ:
            config_values["storage_path"] = os.environ["STORAGE_PATH"]
        if "DB_TYPE" in os.environ:
            config_values["db_type"] = os.environ["DB_TYPE"]
        if "DB_NAME" in os.environ:
            config_values["db_name"] = os.environ["DB_NAME"]
        if "ADDRESS" in os.environ:
            config_values["address"] = os.environ["ADDRESS"]
        if "LENGTH" in os.environ:
            try:
                config_values["length"] = int(os.environ["LENGTH"])
            except ValueError:
                raise ConfigurationError("Invalid LENGTH: must be an integer")
        if "LISTEN_PORT" in os.environ:
            try:
                config_values["listen_port"] = int(os.environ["LISTEN_PORT"])
            except ValueError:
                raise ConfigurationError("Invalid LISTEN_PORT: must be an integer")

        if config_values["db_type"] == "sqlite3" and not config_values["db_name"]:
            raise ConfigurationError("DB_NAME is required for the sqlite3 backend")

        if config_values["length"] <= 0:
            logger.error(f"Invalid length: {config_values['length']}")
            raise ConfigurationError("Invalid length: paste ID is too short")

        # Validate listen port
        if not (1 <= config_values["listen_port"] <= 65535):
            logger.error(f"Invalid listen_port: {config_values['listen_port']}")
            raise ConfigurationError("Invalid listen_port: must be between 1 and 65535")

        logger.info(
            f"Configuration loaded: db_type={config_values['db_type']}, "
            f"storage_path={config_values['storage_path']}, "
            f"address={config_values['address']!r}, "
            f"length={config_values['length']}"
        )

        return cls(**config_values)

    @staticmethod
    def _defaults() -> _ConfigValues:
        return {
            "storage_path": ".",
            "db_type": "sqlite3",
            "db_name": "pastebin.db",
            "address": "",
            "length": 6,
            "listen_port": 8080,
        }

    @classmethod
    def _load_from_file(cls, config_file: str) -> _ConfigValues:
        """Load configuration from TOML file.

        Args:
            config_file: Path to TOML config file

        Returns:
            Dictionary of configuration values

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        try:
            with open(config_file, "rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Config file not found: {config_file}")
        except Exception as e:
            raise ConfigurationError(f"Failed to parse config file: {e}")

        config = cls._defaults()
        for key in config:
            if key in data:
                config[key] = data[key]  # type: ignore[literal-required]

        if not isinstance(config["length"], int) or not isinstance(
            config["listen_port"], int
        ):
            raise ConfigurationError("length and listen_port must be integers")

        return config

    @property
    def database_path(self) -> Path:
        """Path of the SQLite database file."""
        return Path(self.storage_path) / self.db_name

    def validate_storage_path(self) -> None:
        """Validate that storage path exists and is writable.

        Raises:
            ConfigurationError: If storage path is invalid or not writable
        """
        if self.db_type == "memory":
            return

        path = Path(self.storage_path)

        # Create directory if it doesn't exist
        try:
            path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Storage path validated: {self.storage_path}")
        except Exception as e:
            logger.error(f"Cannot create storage directory: {e}")
            raise ConfigurationError(f"Cannot create storage directory: {e}")

        # Check if writable
        if not os.access(path, os.W_OK):
            logger.error(f"Storage path is not writable: {self.storage_path}")
            raise ConfigurationError(
                f"Storage path is not writable: {self.storage_path}"
            )

    def __repr__(self) -> str:
        """String representation of configuration."""
        return (
            f"Config(storage_path={self.storage_path!r}, "
            f"db_type={self.db_type!r}, "
            f"db_name={self.db_name!r}, "
            f"address={self.address!r}, "
            f"length={self.length}, "
            f"listen_port={self.listen_port})"
        )
