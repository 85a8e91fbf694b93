"""State container that serializes dispatch and notifies field listeners."""

import asyncio
import inspect
import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Optional, Union

from .feed_parser import parse_document
from .models import FeedChannel, Subscription
from .notifications import StateChangeListenerMap, filter_different_object_properties
from .state import (
    Action,
    ApplicationState,
    FeedChannelDataLoadedAction,
    FeedChannelDataParseFailAction,
    FeedChannelLoadedPayload,
    FeedUrlPayload,
    RequestFeedChannelDataAbortedAction,
    RequestFeedChannelDataAction,
    RequestFeedChannelDataPayload,
    application_state_reducer,
    initialize_application_state,
)

if TYPE_CHECKING:
    from .fetcher import FeedFetcher
    from .storage import SubscriptionStorage

logger = logging.getLogger(__name__)

Dispatch = Callable[[Action], Union[Awaitable[Any], Any]]


async def perform_feed_request_cycle(
    payload: RequestFeedChannelDataPayload,
    dispatch: Dispatch,
    fetcher: "FeedFetcher",
) -> Optional[FeedChannel]:
    """Fetch and parse one feed, dispatching exactly one outcome action.

    Dispatches RSS_FEED_CHANNEL_DATA_LOADED with the parsed channel,
    RSS_FEED_CHANNEL_DATA_PARSE_FAIL when the text is not a feed, or
    REQUEST_RSS_FEED_CHANNEL_DATA_ABORTED when the fetch fails or is aborted.

    Returns:
        The parsed channel, or None on any failure. Never raises for fetch failures.
    """
    feed_url = payload.feed_url
    try:
        xml_text = await fetcher.fetch_document(feed_url, payload.abort_signal)
    except Exception as e:
        logger.warning(f"Request for {feed_url} aborted: {e}")
        action = RequestFeedChannelDataAbortedAction(payload=FeedUrlPayload(feed_url=feed_url))
        channel = None
    else:
        channel = parse_document(xml_text)
        if channel is not None:
            if not channel.atom_link:
                channel = replace(channel, atom_link=feed_url)
            logger.info(f"Loaded {len(channel.items)} items from {feed_url}")
            action = FeedChannelDataLoadedAction(payload=FeedChannelLoadedPayload(channel=channel))
        else:
            logger.warning(f"Could not parse feed document from {feed_url}")
            action = FeedChannelDataParseFailAction(payload=FeedUrlPayload(feed_url=feed_url))

    result = dispatch(action)
    if inspect.isawaitable(result):
        await result
    return channel


class StateStore:
    """Owns one ApplicationState and one listener registry.

    Actions are reduced one at a time. Listeners run after the reduction
    has been committed, so a listener may itself dispatch.
    """

    def __init__(
        self,
        state: Optional[ApplicationState] = None,
        listeners: Optional[StateChangeListenerMap] = None,
        storage: Optional["SubscriptionStorage"] = None,
        fetcher: Optional["FeedFetcher"] = None,
    ):
        self._state = state if state is not None else initialize_application_state()
        self.listeners = listeners if listeners is not None else StateChangeListenerMap()
        self.storage = storage
        self.fetcher = fetcher
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ApplicationState:
        return self._state

    async def dispatch(self, action: Action) -> ApplicationState:
        """Reduce ``action`` into the current state and notify listeners of changed fields."""
        async with self._lock:
            previous = self._state
            current = application_state_reducer(previous, action, self.storage)
            self._state = current

        if current is not previous:
            changes = filter_different_object_properties(previous, current)
            await self.listeners.notify_listeners(changes)
        return current

    def enable_subscription_persistence(self) -> None:
        """Write subscriptions to storage whenever they change."""
        if self.storage is None:
            raise ValueError("Subscription persistence requires a storage backend")
        self.listeners.add_listener("subscriptions", self._persist_subscriptions)

    def _persist_subscriptions(self, state_key: str, subscriptions: List[Subscription]) -> None:
        key = self._state.subscriptions_storage_key
        if self.storage.save_subscriptions(key, subscriptions):
            logger.debug(f"Persisted {len(subscriptions)} subscriptions under {key}")

    async def request_feed(
        self, feed_url: str, abort_signal: Optional[asyncio.Event] = None
    ) -> Optional[FeedChannel]:
        """Mark the feed as loading and run one request cycle for it."""
        if self.fetcher is None:
            raise ValueError("Feed requests require a fetcher")
        payload = RequestFeedChannelDataPayload(feed_url=feed_url, abort_signal=abort_signal)
        await self.dispatch(RequestFeedChannelDataAction(payload=payload))
        return await perform_feed_request_cycle(payload, self.dispatch, self.fetcher)
