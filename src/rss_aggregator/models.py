"""Data models for RSS feeds and subscriptions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from .dates import CalendarDate


class UpdatePeriod(str, Enum):
    """Syndication module update periods.

    See https://web.resource.org/rss/1.0/modules/syndication/
    """

    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class FeedItem:
    """One <item> of a channel.

    ``author`` and ``creator`` (Dublin Core) usually describe the same person;
    they are stored as found and never copied into each other.
    """

    title: str = ""
    link: str = ""
    author: str = ""
    creator: str = ""
    pub_date: Optional[CalendarDate] = None
    category: List[str] = field(default_factory=list)
    guid: str = ""
    description: str = ""
    content: str = ""
    post_id: str = ""


@dataclass(frozen=True)
class FeedChannel:
    """Current known state of one subscribed feed.

    ``atom_link`` is the feed's self link and its identity within a
    collection of channels.
    """

    atom_link: str = ""
    title: str = ""
    description: str = ""
    last_build_date: Optional[CalendarDate] = None
    update_base: Optional[CalendarDate] = None
    update_frequency: Union[int, float] = 1  # NaN when the source value is not a number
    update_period: Union[UpdatePeriod, str] = UpdatePeriod.HOURLY
    items: List[FeedItem] = field(default_factory=list)
    loading: bool = False


@dataclass(frozen=True)
class Subscription:
    """A feed the user is subscribed to."""

    feed_url: str
    last_build_date: Optional[datetime] = None
    next_build_date: Optional[datetime] = None


def initialize_feed_item(**overrides) -> FeedItem:
    """Return a new FeedItem with default values and optional overrides."""
    return FeedItem(**overrides)


def initialize_feed_channel(**overrides) -> FeedChannel:
    """Return a new FeedChannel with default values and optional overrides.

    ``None`` overrides for fields that have a non-null default are ignored, so
    a partially known channel always carries the same defaults as a fresh one.
    """
    non_nullable = ("atom_link", "title", "description", "update_frequency", "update_period", "items", "loading")
    values = {
        key: value
        for key, value in overrides.items()
        if not (value is None and key in non_nullable)
    }
    return FeedChannel(**values)
