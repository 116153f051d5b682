#!/usr/bin/env python3
"""Main entry point for the paste service.

This module initializes all components and starts the HTTP server.
"""

import logging
import sys
from pathlib import Path

from pastebox.app import run_server
from pastebox.config import Config, ConfigurationError
from pastebox.expiry import ExpiryPolicy
from pastebox.id_generator import IDGenerator
from pastebox.paste_store import PasteStore
from pastebox.storage import StorageError, open_storage

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def build_store(config: Config) -> PasteStore:
    """Wire the paste store from configuration.

    Raises:
        ConfigurationError: If the storage backend is unknown
        StorageError: If the database cannot be initialized
    """
    config.validate_storage_path()
    storage = open_storage(config)
    logger.info(f"Storage initialized: {config.db_type}")

    return PasteStore(
        storage=storage,
        id_generator=IDGenerator(id_length=config.length),
        expiry_policy=ExpiryPolicy(),
        address=config.address,
    )


def main():
    """Main entry point for the application."""
    logger.info("Starting paste service...")

    try:
        config_file = "config.toml" if Path("config.toml").exists() else None
        config = Config.from_env_and_file(config_file)
        logger.info(f"Configuration loaded: {config}")

        store = build_store(config)
        logger.info(f"Starting HTTP server on port {config.listen_port}...")
        run_server(config, store)

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        logger.error("Please check your configuration and try again")
        sys.exit(1)
    except StorageError as e:
        logger.error(f"Storage initialization error: {e}")
        logger.error("Please check your storage path and database permissions")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully...")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unexpected error during startup: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
