"""Configuration management for the RCON client.

This module provides utilities for loading and validating configuration
from environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import ClassVar

from .connection import RCONSessionConfig, parse_address
from .rcon_exceptions import RCONClientMissingPassword

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)


def configure_logging(config: ClientConfig) -> None:
    """Configure logging based on the client configuration.

    :param config: The client configuration instance
    """
    if not config.logging_level:
        logging.basicConfig(level=logging.INFO, force=True)
        return

    numeric_level = getattr(logging, config.logging_level.upper(), None)
    if not isinstance(numeric_level, int):
        LOGGER.warning("Invalid log level: %s, using INFO", config.logging_level)
        numeric_level = logging.INFO
    logging.basicConfig(level=numeric_level, force=True)


@dataclass
class ClientConfig:
    """Client configuration loaded from environment variables.

    **Usage:**

    Load a .env file first if needed, then create the config:

    .. code-block:: python

        from dotenv import load_dotenv
        load_dotenv('.env')  # User's responsibility
        config = ClientConfig()
    """

    DEFAULT_ADDRESS: ClassVar[str] = "localhost:25575"
    DEFAULT_CONNECT_TIMEOUT: ClassVar[int] = 0

    rcon_address: str = field(
        default_factory=lambda: os.getenv("RCON_ADDRESS", ClientConfig.DEFAULT_ADDRESS),
    )
    rcon_password: str = field(
        default_factory=lambda: ClientConfig._getenv_password("RCON_PASSWORD"),
    )
    connect_timeout: int = field(
        default_factory=lambda: ClientConfig._getenv_int(
            "RCON_CONNECT_TIMEOUT",
            ClientConfig.DEFAULT_CONNECT_TIMEOUT,
        ),
    )
    read_timeout: int | None = field(
        default_factory=lambda: ClientConfig._getenv_int("RCON_READ_TIMEOUT"),
    )

    # Logging configuration
    logging_level: str | None = field(
        default_factory=lambda: os.getenv("LOGGING_LEVEL"),
    )

    def __post_init__(self) -> None:
        """Post-initialization validation."""
        if self.connect_timeout < 0:
            msg = "RCON_CONNECT_TIMEOUT must not be negative"
            raise ValueError(msg)
        if self.read_timeout is not None and self.read_timeout <= 0:
            msg = "RCON_READ_TIMEOUT must be a positive integer"
            raise ValueError(msg)

    @property
    def session_config(self) -> RCONSessionConfig:
        """Create a RCONSessionConfig instance from this configuration.

        :return: Configured RCONSessionConfig instance
        :raises RCONClientConnectError: If the address is malformed
        """
        host, port = parse_address(self.rcon_address)
        return RCONSessionConfig(
            password=self.rcon_password,
            host=host,
            port=port,
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
        )

    @staticmethod
    def _getenv_password(key: str) -> str:
        """Get the required RCON password environment variable.

        :param key: Environment variable name
        :return: The environment variable value
        :raises RCONClientMissingPassword: If variable is not set
        """
        value = os.getenv(key)
        if value is None:
            msg = f"Required environment variable {key} is not set"
            raise RCONClientMissingPassword(msg)
        return value

    @staticmethod
    def _getenv_int(key: str, default: int | None = None) -> int | None:
        """Get an integer environment variable.

        :param key: Environment variable name
        :param default: Default value if not set
        :return: The environment variable value as integer or default
        :raises ValueError: If value cannot be converted to int
        """
        value_str = os.getenv(key)

        if value_str is None:
            return default

        try:
            return int(value_str)
        except ValueError as e:
            msg = f"Environment variable {key} must be an integer, got: {value_str}"
            raise ValueError(msg) from e
