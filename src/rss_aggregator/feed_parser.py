"""RSS document parsing and update scheduling."""

import logging
import re
from datetime import datetime, timezone
from typing import Optional, Union
from xml.dom.minidom import Element
from xml.parsers.expat import ExpatError

from .dates import (
    CalendarDate,
    add_days_to_date,
    add_hours_to_date,
    add_months_to_date,
    add_weeks_to_date,
    add_years_to_date,
    is_valid_date,
    parse_date,
)
from .extraction import (
    ATOM_NAMESPACE,
    CONTENT_NAMESPACE,
    DUBLIN_CORE_NAMESPACE,
    SYNDICATION_NAMESPACE,
    NodeKind,
    get_element_array_text,
    get_element_text,
    get_namespaced_attribute_text,
    get_namespaced_element_text,
    parse_xml,
    select_all,
    select_one,
)
from .models import FeedChannel, FeedItem, UpdatePeriod, initialize_feed_channel, initialize_feed_item

logger = logging.getLogger(__name__)

LEADING_INTEGER = re.compile(r"[+-]?[0-9]+")


def parse_item(item_element: Element) -> FeedItem:
    """Parse an <item> element into a FeedItem.

    An empty <pubDate> gives a null publication date; text that cannot be
    parsed is kept as ``INVALID_DATE``.
    """
    pub_date_text = get_element_text(item_element, "pubDate", NodeKind.TEXT)
    return initialize_feed_item(
        title=get_element_text(item_element, "title", NodeKind.TEXT),
        link=get_element_text(item_element, "link", NodeKind.TEXT),
        description=get_element_text(item_element, "description", NodeKind.CDATA_SECTION),
        creator=get_namespaced_element_text(
            item_element, DUBLIN_CORE_NAMESPACE, "creator", NodeKind.CDATA_SECTION
        ),
        author=get_element_text(item_element, "author", NodeKind.TEXT),
        pub_date=parse_date(pub_date_text) if pub_date_text.strip() else None,
        category=get_element_array_text(item_element, "category", NodeKind.CDATA_SECTION),
        guid=get_element_text(item_element, "guid", NodeKind.TEXT),
        content=get_namespaced_element_text(
            item_element, CONTENT_NAMESPACE, "encoded", NodeKind.CDATA_SECTION
        ),
        post_id=get_element_text(item_element, "post-id", NodeKind.TEXT),
    )


def _parse_update_period(text: str) -> Optional[Union[UpdatePeriod, str]]:
    if not text:
        return None
    try:
        return UpdatePeriod(text)
    except ValueError:
        return text


def _parse_update_frequency(text: str) -> Optional[Union[int, float]]:
    if not text:
        return None
    # Leading integer only, so "2 hours" is 2 and "1.5" is 1.
    match = LEADING_INTEGER.match(text.strip())
    if match is None:
        return float("nan")
    return int(match.group(0))


def parse_document(xml_text: str) -> Optional[FeedChannel]:
    """Parse the text of an RSS document into a FeedChannel.

    Returns:
        The channel, or None when the text is not well-formed XML or has no
        ``rss > channel`` element.
    """
    try:
        document = parse_xml(xml_text)
    except ExpatError as e:
        logger.debug(f"Document is not well-formed XML: {e}")
        return None

    channel_element = select_one(document, "rss > channel")
    if channel_element is None:
        return None

    title = get_element_text(channel_element, ":scope > title", NodeKind.TEXT).strip()
    description = get_element_text(channel_element, ":scope > description", NodeKind.TEXT).strip()
    last_build_date = get_element_text(channel_element, ":scope > lastBuildDate", NodeKind.TEXT).strip()
    update_period = get_namespaced_element_text(
        channel_element, SYNDICATION_NAMESPACE, "updatePeriod", NodeKind.TEXT
    ).strip()
    update_frequency = get_namespaced_element_text(
        channel_element, SYNDICATION_NAMESPACE, "updateFrequency", NodeKind.TEXT
    ).strip()
    update_base = get_namespaced_element_text(
        channel_element, SYNDICATION_NAMESPACE, "updateBase", NodeKind.TEXT
    ).strip()
    atom_link = get_namespaced_attribute_text(channel_element, ATOM_NAMESPACE, "link", "href")

    items = [parse_item(element) for element in select_all(channel_element, "item")]

    # Either date stands in for the other when only one is present.
    build_date_source = last_build_date or update_base
    base_date_source = update_base or last_build_date

    return initialize_feed_channel(
        atom_link=atom_link,
        title=title,
        description=description,
        last_build_date=parse_date(build_date_source) if build_date_source else None,
        update_base=parse_date(base_date_source) if base_date_source else None,
        update_period=_parse_update_period(update_period),
        update_frequency=_parse_update_frequency(update_frequency),
        items=items,
    )


def next_update_date(channel: FeedChannel, now: Optional[datetime] = None) -> CalendarDate:
    """Compute when the channel is next expected to publish.

    The base is the last build date, then the update base, then ``now``.
    An unrecognized update period is treated as yearly. A NaN frequency gives
    ``INVALID_DATE``.
    """
    if is_valid_date(channel.last_build_date):
        build_date = channel.last_build_date
    elif is_valid_date(channel.update_base):
        build_date = channel.update_base
    else:
        build_date = now or datetime.now(timezone.utc)

    period = channel.update_period
    frequency = channel.update_frequency
    if period == UpdatePeriod.HOURLY:
        return add_hours_to_date(build_date, frequency)
    elif period == UpdatePeriod.DAILY:
        return add_days_to_date(build_date, frequency)
    elif period == UpdatePeriod.WEEKLY:
        return add_weeks_to_date(build_date, frequency)
    elif period == UpdatePeriod.MONTHLY:
        return add_months_to_date(build_date, frequency)
    else:
        return add_years_to_date(build_date, frequency)


def is_update_due(channel: FeedChannel, now: Optional[datetime] = None) -> bool:
    """Check whether the next update date is now or in the past."""
    current = now or datetime.now(timezone.utc)
    update_date = next_update_date(channel, now=current)
    if not is_valid_date(update_date):
        logger.warning(
            f"Cannot schedule {channel.atom_link or channel.title!r}: "
            f"invalid update frequency {channel.update_frequency!r}"
        )
        return False
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return (current - update_date).total_seconds() >= 0
