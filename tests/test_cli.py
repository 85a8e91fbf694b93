"""Tests for CLI interface."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from rss_aggregator.cli import cli, record_build_dates, subscription_is_due
from rss_aggregator.config import Config
from rss_aggregator.fetcher import FetchError
from rss_aggregator.models import Subscription, initialize_feed_channel
from rss_aggregator.storage import SubscriptionStorage

FEED_URL = "https://mock/feed"


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("rss_aggregator.cli.setup_logging") as mock_setup:
        yield mock_setup


@pytest.fixture
def saved_subscriptions():
    def load():
        cfg = Config.from_env()
        return SubscriptionStorage(cfg.config_path).load_subscriptions(cfg.storage_key)

    return load


@pytest.fixture
def mock_fetcher(sample_feed_xml):
    with patch("rss_aggregator.cli.FeedFetcher") as mock_fetcher_cls:
        fetcher = MagicMock()
        fetcher.fetch_document = AsyncMock(return_value=sample_feed_xml)
        fetcher.close = AsyncMock()
        mock_fetcher_cls.return_value = fetcher
        yield fetcher


class TestCLI:
    """Test CLI commands."""

    def setup_method(self):
        """Set up test runner."""
        self.runner = CliRunner()

    def test_cli_help(self):
        result = self.runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "RSS Aggregator" in result.output

    def test_logging_is_configured(self, no_logging_setup):
        self.runner.invoke(cli, ["subscriptions", "list"])
        no_logging_setup.assert_called_once()
        level, log_file = no_logging_setup.call_args[0]
        assert level == "INFO"
        assert log_file.endswith(".log")

    def test_subscriptions_add(self, saved_subscriptions):
        result = self.runner.invoke(cli, ["subscriptions", "add", "https://mock/feed/"])

        assert result.exit_code == 0
        assert "Subscribed to https://mock/feed" in result.output
        assert saved_subscriptions() == [Subscription(feed_url=FEED_URL)]

    def test_subscriptions_add_invalid_url(self, saved_subscriptions):
        result = self.runner.invoke(cli, ["subscriptions", "add", "not-a-url"])

        assert result.exit_code == 1
        assert "Invalid feed URL" in result.output
        assert saved_subscriptions() == []

    def test_subscriptions_add_duplicate(self):
        self.runner.invoke(cli, ["subscriptions", "add", FEED_URL])
        result = self.runner.invoke(cli, ["subscriptions", "add", FEED_URL])

        assert result.exit_code == 1
        assert "Already subscribed" in result.output

    def test_subscriptions_list_empty(self):
        result = self.runner.invoke(cli, ["subscriptions", "list"])
        assert result.exit_code == 0
        assert "No subscriptions." in result.output

    def test_subscriptions_list(self):
        self.runner.invoke(cli, ["subscriptions", "add", FEED_URL])
        self.runner.invoke(cli, ["subscriptions", "add", "https://other/feed"])

        result = self.runner.invoke(cli, ["subscriptions", "list"])

        assert result.exit_code == 0
        assert "Found 2 subscription(s)" in result.output
        assert FEED_URL in result.output
        assert "Last build: unknown" in result.output

    def test_subscriptions_remove(self, saved_subscriptions):
        self.runner.invoke(cli, ["subscriptions", "add", FEED_URL])

        result = self.runner.invoke(cli, ["subscriptions", "remove", FEED_URL])

        assert result.exit_code == 0
        assert "Unsubscribed" in result.output
        assert saved_subscriptions() == []

    def test_subscriptions_remove_unknown(self):
        result = self.runner.invoke(cli, ["subscriptions", "remove", FEED_URL])
        assert result.exit_code == 1
        assert "Not subscribed" in result.output

    def test_feed_show(self, mock_fetcher):
        result = self.runner.invoke(cli, ["feed", "show", FEED_URL])

        assert result.exit_code == 0
        assert "Mock channel title" in result.output
        assert "Updates: every 1 hourly" in result.output
        assert "Next update: 2025-08-11 19:56 UTC" in result.output
        assert "Update due: yes" in result.output
        assert "Mock Title" in result.output
        assert "Categories: Mock category 1, Mock category 2" in result.output
        mock_fetcher.close.assert_awaited_once()

    def test_feed_show_failure(self, mock_fetcher):
        mock_fetcher.fetch_document.side_effect = FetchError("HTTP 404: Not Found")

        result = self.runner.invoke(cli, ["feed", "show", FEED_URL])

        assert result.exit_code == 1
        assert "Could not load feed" in result.output

    def test_refresh_without_subscriptions(self, mock_fetcher):
        result = self.runner.invoke(cli, ["refresh"])
        assert result.exit_code == 0
        assert "No feeds to refresh." in result.output

    def test_refresh_records_build_dates(self, mock_fetcher, saved_subscriptions):
        self.runner.invoke(cli, ["subscriptions", "add", FEED_URL])

        result = self.runner.invoke(cli, ["refresh"])

        assert result.exit_code == 0
        assert f"✓ {FEED_URL}: 1 item(s)" in result.output
        assert "Refreshed 1/1 feed(s)" in result.output
        saved = saved_subscriptions()
        assert saved[0].last_build_date == datetime(2025, 8, 11, 18, 56, 29, tzinfo=timezone.utc)
        assert saved[0].next_build_date == datetime(2025, 8, 11, 19, 56, 29, tzinfo=timezone.utc)

    def test_refresh_reports_failures(self, mock_fetcher):
        self.runner.invoke(cli, ["subscriptions", "add", FEED_URL])
        mock_fetcher.fetch_document.side_effect = FetchError("HTTP 500")

        result = self.runner.invoke(cli, ["refresh"])

        assert result.exit_code == 0
        assert f"✗ {FEED_URL}: failed" in result.output
        assert "Refreshed 0/1 feed(s)" in result.output

    def test_refresh_due_only_skips_future_feeds(self, mock_fetcher):
        self.runner.invoke(cli, ["subscriptions", "add", FEED_URL])
        cfg = Config.from_env()
        storage = SubscriptionStorage(cfg.config_path)
        future = datetime(2999, 1, 1, tzinfo=timezone.utc)
        storage.save_subscriptions(cfg.storage_key, [Subscription(feed_url=FEED_URL, next_build_date=future)])

        result = self.runner.invoke(cli, ["refresh", "--due-only"])

        assert result.exit_code == 0
        assert "No feeds to refresh." in result.output
        mock_fetcher.fetch_document.assert_not_called()

    def test_serve(self):
        with patch("rss_aggregator.proxy.run_proxy_server", new=AsyncMock()) as mock_run:
            result = self.runner.invoke(cli, ["serve", "--port", "9000"])

        assert result.exit_code == 0
        assert "Starting feed proxy on 127.0.0.1:9000" in result.output
        mock_run.assert_awaited_once_with("127.0.0.1", 9000)


class TestHelpers:
    """Test CLI helper functions."""

    def test_subscription_is_due(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert subscription_is_due(Subscription(feed_url=FEED_URL), now) is True
        assert subscription_is_due(Subscription(feed_url=FEED_URL, next_build_date=now), now) is True
        later = datetime(2025, 1, 2, tzinfo=timezone.utc)
        assert subscription_is_due(Subscription(feed_url=FEED_URL, next_build_date=later), now) is False

    def test_record_build_dates_skips_invalid_schedule(self):
        build = datetime(2025, 1, 1, tzinfo=timezone.utc)
        channel = initialize_feed_channel(last_build_date=build, update_frequency=float("nan"))

        updated = record_build_dates(Subscription(feed_url=FEED_URL), channel)

        assert updated.last_build_date == build
        assert updated.next_build_date is None
