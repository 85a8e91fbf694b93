"""Pytest fixtures and configuration."""

import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from rss_aggregator.storage import SubscriptionStorage

from test_rss_server import LocalFeedServer

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "rss_data"


@pytest.fixture(autouse=True)
def environment_isolation():
    """Automatically ensure environment isolation for all tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        tmpdir_path = Path(tmpdir)

        default_env = {
            "RSS_AGGREGATOR_CONFIG_PATH": str(tmpdir_path / "config"),
            "RSS_AGGREGATOR_CACHE_PATH": str(tmpdir_path / "cache"),
            "RSS_AGGREGATOR_LOG_LEVEL": "INFO",
        }

        with patch.dict(os.environ, default_env):
            for name in (
                "RSS_AGGREGATOR_LOG_DIR",
                "RSS_AGGREGATOR_STORAGE_KEY",
                "RSS_AGGREGATOR_REQUEST_TIMEOUT",
                "RSS_AGGREGATOR_USER_AGENT",
            ):
                os.environ.pop(name, None)
            yield tmpdir_path


@pytest.fixture
def temp_dir(environment_isolation):
    """Get the temporary directory path from environment isolation."""
    return environment_isolation


@pytest.fixture
def sample_feed_xml() -> str:
    """Text of the sample feed document."""
    return (FIXTURES_DIR / "mock_feed.xml").read_text(encoding="utf-8")


@pytest.fixture
def storage(temp_dir) -> SubscriptionStorage:
    """Subscription storage rooted in the isolated config directory."""
    return SubscriptionStorage(temp_dir / "config")


@pytest.fixture
async def rss_server():
    """Create a fresh feed server instance for each test."""
    server = LocalFeedServer(slow_delay=2.0)
    await server.start()
    yield server
    await server.stop()
