"""Command-line interface for the RSS aggregator."""

import asyncio
import sys
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import click

from .config import Config
from .dates import is_valid_date
from .feed_parser import is_update_due, next_update_date
from .fetcher import FeedFetcher
from .models import FeedChannel, Subscription
from .state import (
    AddSubscriptionAction,
    FeedUrlPayload,
    LoadSubscriptionsAction,
    RemoveSubscriptionAction,
    initialize_application_state,
)
from .storage import SubscriptionStorage
from .store import StateStore
from .utils import normalize_feed_url, setup_logging, truncate_text, validate_url


def get_store(with_fetcher: bool = False) -> StateStore:
    """Build a StateStore wired to storage (and optionally transport) from the environment."""
    cfg = Config.from_env()
    storage = SubscriptionStorage(cfg.config_path)
    fetcher = FeedFetcher(cfg.request_timeout, cfg.user_agent) if with_fetcher else None
    state = initialize_application_state(subscriptions_storage_key=cfg.storage_key)
    return StateStore(state=state, storage=storage, fetcher=fetcher)


def format_date(value) -> str:
    if value is None:
        return "unknown"
    if not is_valid_date(value):
        return "invalid"
    return value.strftime("%Y-%m-%d %H:%M UTC")


def subscription_is_due(subscription: Subscription, now: datetime) -> bool:
    if subscription.next_build_date is None:
        return True
    return subscription.next_build_date <= now


@click.group()
def cli():
    """RSS Aggregator - Subscribe to, fetch and schedule RSS feeds."""
    cfg = Config.from_env()
    log_file = cfg.log_file_path
    log_file.parent.mkdir(parents=True, exist_ok=True)
    setup_logging(cfg.log_level, str(log_file))


@cli.group()
def subscriptions():
    """Manage feed subscriptions."""


@subscriptions.command("add")
@click.argument("url")
def add_subscription(url):
    """Subscribe to the feed at URL."""
    try:
        feed_url = normalize_feed_url(url)
        if not validate_url(feed_url):
            click.echo(f"Error: Invalid feed URL '{url}'", err=True)
            sys.exit(1)

        store = get_store()

        async def do_add() -> bool:
            await store.dispatch(LoadSubscriptionsAction())
            if any(s.feed_url == feed_url for s in store.state.subscriptions):
                return False
            store.enable_subscription_persistence()
            await store.dispatch(AddSubscriptionAction(payload=FeedUrlPayload(feed_url=feed_url)))
            return True

        if asyncio.run(do_add()):
            click.echo(f"✓ Subscribed to {feed_url}")
        else:
            click.echo(f"Error: Already subscribed to {feed_url}", err=True)
            sys.exit(1)

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@subscriptions.command("list")
def list_subscriptions():
    """List subscribed feeds."""
    try:
        store = get_store()
        asyncio.run(store.dispatch(LoadSubscriptionsAction()))
        subs = store.state.subscriptions

        if not subs:
            click.echo("No subscriptions.")
            return

        click.echo(f"Found {len(subs)} subscription(s):\n")
        for subscription in subs:
            click.echo(f"• {subscription.feed_url}")
            click.echo(f"  Last build: {format_date(subscription.last_build_date)}")
            click.echo(f"  Next build: {format_date(subscription.next_build_date)}")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@subscriptions.command("remove")
@click.argument("url")
def remove_subscription(url):
    """Unsubscribe from the feed at URL."""
    try:
        feed_url = normalize_feed_url(url)
        store = get_store()

        async def do_remove() -> bool:
            await store.dispatch(LoadSubscriptionsAction())
            if not any(s.feed_url == feed_url for s in store.state.subscriptions):
                return False
            store.enable_subscription_persistence()
            await store.dispatch(RemoveSubscriptionAction(payload=FeedUrlPayload(feed_url=feed_url)))
            return True

        if asyncio.run(do_remove()):
            click.echo(f"✓ Unsubscribed from {feed_url}")
        else:
            click.echo(f"Error: Not subscribed to {feed_url}", err=True)
            sys.exit(1)

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.group()
def feed():
    """Inspect feeds."""


@feed.command("show")
@click.argument("url")
@click.option("--limit", type=int, default=10, help="Number of items to show")
def show_feed(url, limit):
    """Fetch and display the feed at URL."""
    try:
        feed_url = normalize_feed_url(url)
        store = get_store(with_fetcher=True)

        async def do_show() -> Optional[FeedChannel]:
            try:
                return await store.request_feed(feed_url)
            finally:
                await store.fetcher.close()

        channel = asyncio.run(do_show())
        if channel is None:
            click.echo(f"Error: Could not load feed from {feed_url}", err=True)
            sys.exit(1)

        period = getattr(channel.update_period, "value", channel.update_period)
        click.echo(f"{channel.title or '(untitled)'}")
        click.echo(f"  Link: {channel.atom_link or feed_url}")
        if channel.description:
            click.echo(f"  Description: {truncate_text(channel.description, 100)}")
        click.echo(f"  Last build: {format_date(channel.last_build_date)}")
        click.echo(f"  Updates: every {channel.update_frequency} {period}")
        click.echo(f"  Next update: {format_date(next_update_date(channel))}")
        click.echo(f"  Update due: {'yes' if is_update_due(channel) else 'no'}")
        click.echo(f"\n{len(channel.items)} item(s):")

        for item in channel.items[:limit]:
            click.echo(f"\n• {item.title or '(untitled)'}")
            if item.link:
                click.echo(f"  {item.link}")
            if item.pub_date is not None:
                click.echo(f"  Published: {format_date(item.pub_date)}")
            attribution = item.author or item.creator
            if attribution:
                click.echo(f"  By: {attribution}")
            if item.category:
                click.echo(f"  Categories: {', '.join(item.category)}")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command("refresh")
@click.option("--due-only", is_flag=True, help="Only refresh feeds whose next build date has passed")
def refresh_feeds(due_only):
    """Fetch every subscribed feed and record its build dates."""
    try:
        store = get_store(with_fetcher=True)

        async def do_refresh() -> List[Tuple[str, Optional[FeedChannel]]]:
            try:
                await store.dispatch(LoadSubscriptionsAction())
                now = datetime.now(timezone.utc)
                subs = store.state.subscriptions
                targets = [s for s in subs if not due_only or subscription_is_due(s, now)]
                channels = await asyncio.gather(
                    *(store.request_feed(s.feed_url) for s in targets)
                )
                loaded = {s.feed_url: c for s, c in zip(targets, channels) if c is not None}
                if loaded:
                    updated = [
                        record_build_dates(s, loaded[s.feed_url]) if s.feed_url in loaded else s
                        for s in subs
                    ]
                    store.storage.save_subscriptions(store.state.subscriptions_storage_key, updated)
                return [(s.feed_url, c) for s, c in zip(targets, channels)]
            finally:
                await store.fetcher.close()

        results = asyncio.run(do_refresh())
        if not results:
            click.echo("No feeds to refresh.")
            return

        for feed_url, channel in results:
            if channel is None:
                click.echo(f"  ✗ {feed_url}: failed")
            else:
                click.echo(f"  ✓ {feed_url}: {len(channel.items)} item(s)")

        failures = sum(1 for _, channel in results if channel is None)
        click.echo(f"\nRefreshed {len(results) - failures}/{len(results)} feed(s)")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def record_build_dates(subscription: Subscription, channel: FeedChannel) -> Subscription:
    """Copy the channel's last build date and its next expected update onto the subscription."""
    last_build_date = channel.last_build_date if is_valid_date(channel.last_build_date) else None
    next_date = next_update_date(channel)
    return replace(
        subscription,
        last_build_date=last_build_date,
        next_build_date=next_date if is_valid_date(next_date) else None,
    )


@cli.command("serve")
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", type=int, default=8080, help="Port to bind to")
def serve(host, port):
    """Run the same-origin feed proxy."""
    try:
        from .proxy import run_proxy_server

        click.echo(f"Starting feed proxy on {host}:{port}")
        asyncio.run(run_proxy_server(host, port))
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
