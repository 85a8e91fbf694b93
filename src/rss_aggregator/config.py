"""Configuration loaded from the environment."""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from platformdirs import user_cache_dir, user_config_dir

from .state import SUBSCRIPTIONS_STORAGE_KEY

logger = logging.getLogger(__name__)

APP_NAME = "rss-aggregator"


class Config:
    def __init__(
        self,
        cache_path: Path,
        config_path: Path,
        log_level: str,
        log_file_dir: Optional[Path] = None,
        storage_key: str = SUBSCRIPTIONS_STORAGE_KEY,
        request_timeout: int = 30,
        user_agent: str = "RSS-Aggregator/1.0",
    ):
        self.cache_path = cache_path
        self.config_path = config_path
        self.log_level = log_level
        self.log_file_dir = log_file_dir
        self.storage_key = storage_key
        self.request_timeout = request_timeout
        self.user_agent = user_agent

    @property
    def log_file_path(self) -> Path:
        """Get the log file path, one file per day."""
        date_str = datetime.now().strftime("%Y-%m-%d")
        file_name = f"{date_str}.log"
        if self.log_file_dir:
            return self.log_file_dir / file_name
        else:
            return self.cache_path / "logs" / file_name

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration from RSS_AGGREGATOR_* environment variables."""
        timeout_str = os.getenv("RSS_AGGREGATOR_REQUEST_TIMEOUT", "30")
        try:
            request_timeout = int(timeout_str)
        except ValueError:
            logger.warning(f"Invalid RSS_AGGREGATOR_REQUEST_TIMEOUT {timeout_str!r}, using 30")
            request_timeout = 30

        log_dir = os.getenv("RSS_AGGREGATOR_LOG_DIR", "")
        return cls(
            cache_path=Path(os.getenv("RSS_AGGREGATOR_CACHE_PATH", user_cache_dir(APP_NAME))),
            config_path=Path(os.getenv("RSS_AGGREGATOR_CONFIG_PATH", user_config_dir(APP_NAME))),
            log_level=os.getenv("RSS_AGGREGATOR_LOG_LEVEL", "INFO"),
            log_file_dir=Path(log_dir) if log_dir else None,
            storage_key=os.getenv("RSS_AGGREGATOR_STORAGE_KEY", SUBSCRIPTIONS_STORAGE_KEY),
            request_timeout=request_timeout,
            user_agent=os.getenv("RSS_AGGREGATOR_USER_AGENT", "RSS-Aggregator/1.0"),
        )


config = Config.from_env()
