"""
Configuration module for global settings and environment variable handling.

All runtime knobs of the alert engine come from environment variables
(optionally loaded from a ``.env`` file) and are read through ``Config``.
``AlerterConfig`` bundles the values the poller and the store need at startup.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from utils.chains import Network
from utils.logging import get_logger

# Load environment variables from .env file
load_dotenv()

logger = get_logger("utils.config")


@dataclass
class AlerterConfig:
    """Startup settings for the capacity alert engine."""

    db_url: str
    graphql_url: str
    poll_interval: float = 30.0
    request_timeout: int = 30
    max_workers: int = 8
    telegram_bot_token: Optional[str] = None


class Config:
    """Global configuration handler."""

    # Default values that can be overridden by environment variables
    DEFAULT_TIMEOUT = 30  # seconds
    DEFAULT_POLL_INTERVAL = 30.0  # seconds
    DEFAULT_MAX_WORKERS = 8
    DEFAULT_DB_PATH = "./abyss.db"
    DEFAULT_NETWORK = "mainnet"

    @staticmethod
    def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
        """Get environment variable with fallback to default."""
        return os.getenv(key, default)

    @staticmethod
    def get_env_int(key: str, default: int) -> int:
        """Get environment variable as integer with fallback to default."""
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid integer value for %s: %s. Using default %s", key, value, default)
            return default

    @staticmethod
    def get_env_float(key: str, default: float) -> float:
        """Get environment variable as float with fallback to default."""
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            logger.warning("Invalid float value for %s: %s. Using default %s", key, value, default)
            return default

    @classmethod
    def get_request_timeout(cls) -> int:
        """Get HTTP request timeout in seconds."""
        return cls.get_env_int("REQUEST_TIMEOUT", cls.DEFAULT_TIMEOUT)

    @classmethod
    def get_poll_interval(cls) -> float:
        """Get the delay between two poll ticks in seconds."""
        interval = cls.get_env_float("POLL_INTERVAL", cls.DEFAULT_POLL_INTERVAL)
        if interval <= 0:
            logger.warning("POLL_INTERVAL must be positive, got %s. Using default %s", interval, cls.DEFAULT_POLL_INTERVAL)
            return cls.DEFAULT_POLL_INTERVAL
        return interval

    @classmethod
    def get_max_workers(cls) -> int:
        """Get the thread pool size used for fetches and notifications."""
        return max(1, cls.get_env_int("POLL_MAX_WORKERS", cls.DEFAULT_MAX_WORKERS))

    @classmethod
    def get_db_url(cls) -> str:
        """Get the SQLAlchemy URL of the threshold store.

        ``ABYSS_DB_URL`` wins; otherwise ``DB_PATH`` names a SQLite file.
        """
        url = cls.get_env("ABYSS_DB_URL")
        if url:
            return url
        return f"sqlite:///{cls.get_env('DB_PATH', cls.DEFAULT_DB_PATH)}"

    @classmethod
    def get_network(cls) -> Network:
        """Get the Sui network to read pool objects from."""
        name = cls.get_env("SUI_NETWORK", cls.DEFAULT_NETWORK)
        try:
            return Network.from_name(name)
        except ValueError:
            logger.warning("Unknown SUI_NETWORK %s. Using %s", name, cls.DEFAULT_NETWORK)
            return Network.from_name(cls.DEFAULT_NETWORK)

    @classmethod
    def get_graphql_url(cls) -> str:
        """Get the Sui GraphQL endpoint, an explicit URL overriding the network default."""
        return cls.get_env("SUI_GRAPHQL_URL") or cls.get_network().graphql_url

    @classmethod
    def get_telegram_bot_token(cls) -> Optional[str]:
        return cls.get_env("TELEGRAM_BOT_TOKEN_ABYSS")

    @classmethod
    def get_alerter_config(cls) -> AlerterConfig:
        """Collect every engine setting from the environment."""
        return AlerterConfig(
            db_url=cls.get_db_url(),
            graphql_url=cls.get_graphql_url(),
            poll_interval=cls.get_poll_interval(),
            request_timeout=cls.get_request_timeout(),
            max_workers=cls.get_max_workers(),
            telegram_bot_token=cls.get_telegram_bot_token(),
        )
