"""Application state and the reducer that evolves it."""

import logging
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, List, Optional, Union

from .models import FeedChannel, Subscription, initialize_feed_channel

if TYPE_CHECKING:
    from .storage import SubscriptionStorage

logger = logging.getLogger(__name__)

SUBSCRIPTIONS_STORAGE_KEY = "RSSSubscriptionsLocalStorageKey"


@dataclass(frozen=True)
class ApplicationState:
    """Single source of truth, replaced wholesale on every transition."""

    subscriptions_storage_key: str = SUBSCRIPTIONS_STORAGE_KEY
    subscriptions: List[Subscription] = field(default_factory=list)
    channels: List[FeedChannel] = field(default_factory=list)


def initialize_application_state(**overrides) -> ApplicationState:
    """Return a new ApplicationState with default values and optional overrides."""
    return ApplicationState(**overrides)


def _state_values(state: ApplicationState) -> dict:
    return {f.name: getattr(state, f.name) for f in fields(state)}


class ActionType(str, Enum):
    INITIALIZE_DEFAULT_STATE = "INITIALIZE_DEFAULT_STATE"
    LOAD_SUBSCRIPTIONS_FROM_LOCAL_STORAGE = "LOAD_SUBSCRIPTIONS_FROM_LOCAL_STORAGE"
    REQUEST_RSS_FEED_CHANNEL_DATA = "REQUEST_RSS_FEED_CHANNEL_DATA"
    REQUEST_RSS_FEED_CHANNEL_DATA_ABORTED = "REQUEST_RSS_FEED_CHANNEL_DATA_ABORTED"
    RSS_FEED_CHANNEL_DATA_LOADED = "RSS_FEED_CHANNEL_DATA_LOADED"
    RSS_FEED_CHANNEL_DATA_PARSE_FAIL = "RSS_FEED_CHANNEL_DATA_PARSE_FAIL"
    ADD_RSS_FEED_SUBSCRIPTION = "ADD_RSS_FEED_SUBSCRIPTION"
    REMOVE_RSS_FEED_SUBSCRIPTION = "REMOVE_RSS_FEED_SUBSCRIPTION"


@dataclass(frozen=True)
class RequestFeedChannelDataPayload:
    """Feed to request, plus an optional ``asyncio.Event`` that aborts the request when set."""

    feed_url: str
    abort_signal: Optional[Any] = None


@dataclass(frozen=True)
class FeedUrlPayload:
    feed_url: str


@dataclass(frozen=True)
class FeedChannelLoadedPayload:
    channel: FeedChannel


@dataclass(frozen=True)
class InitializeDefaultStateAction:
    type: ClassVar[ActionType] = ActionType.INITIALIZE_DEFAULT_STATE
    payload: None = None


@dataclass(frozen=True)
class LoadSubscriptionsAction:
    type: ClassVar[ActionType] = ActionType.LOAD_SUBSCRIPTIONS_FROM_LOCAL_STORAGE
    payload: None = None


@dataclass(frozen=True)
class RequestFeedChannelDataAction:
    type: ClassVar[ActionType] = ActionType.REQUEST_RSS_FEED_CHANNEL_DATA
    payload: RequestFeedChannelDataPayload


@dataclass(frozen=True)
class RequestFeedChannelDataAbortedAction:
    type: ClassVar[ActionType] = ActionType.REQUEST_RSS_FEED_CHANNEL_DATA_ABORTED
    payload: FeedUrlPayload


@dataclass(frozen=True)
class FeedChannelDataLoadedAction:
    type: ClassVar[ActionType] = ActionType.RSS_FEED_CHANNEL_DATA_LOADED
    payload: FeedChannelLoadedPayload


@dataclass(frozen=True)
class FeedChannelDataParseFailAction:
    type: ClassVar[ActionType] = ActionType.RSS_FEED_CHANNEL_DATA_PARSE_FAIL
    payload: FeedUrlPayload


@dataclass(frozen=True)
class AddSubscriptionAction:
    type: ClassVar[ActionType] = ActionType.ADD_RSS_FEED_SUBSCRIPTION
    payload: FeedUrlPayload


@dataclass(frozen=True)
class RemoveSubscriptionAction:
    type: ClassVar[ActionType] = ActionType.REMOVE_RSS_FEED_SUBSCRIPTION
    payload: FeedUrlPayload


Action = Union[
    InitializeDefaultStateAction,
    LoadSubscriptionsAction,
    RequestFeedChannelDataAction,
    RequestFeedChannelDataAbortedAction,
    FeedChannelDataLoadedAction,
    FeedChannelDataParseFailAction,
    AddSubscriptionAction,
    RemoveSubscriptionAction,
]


def _find_channel(channels: List[FeedChannel], feed_url: str) -> Optional[FeedChannel]:
    for channel in channels:
        if channel.atom_link == feed_url:
            return channel
    return None


def _without(channels: List[FeedChannel], channel: FeedChannel) -> List[FeedChannel]:
    return [existing for existing in channels if existing is not channel]


def _request_channel(state: ApplicationState, feed_url: str) -> ApplicationState:
    existing = _find_channel(state.channels, feed_url)
    if existing is not None:
        requested = replace(existing, loading=True)
        return replace(state, channels=[*_without(state.channels, existing), requested])
    placeholder = initialize_feed_channel(atom_link=feed_url, loading=True)
    return replace(state, channels=[*state.channels, placeholder])


def _reset_channel(state: ApplicationState, feed_url: str) -> ApplicationState:
    if not state.channels:
        return state
    existing = _find_channel(state.channels, feed_url)
    if existing is None:
        return state
    placeholder = initialize_feed_channel(atom_link=existing.atom_link, loading=False)
    return replace(state, channels=[*_without(state.channels, existing), placeholder])


def _load_channel(state: ApplicationState, channel: FeedChannel) -> ApplicationState:
    if not channel.atom_link:
        return replace(state, channels=[*state.channels, channel])
    remaining = [existing for existing in state.channels if existing.atom_link != channel.atom_link]
    return replace(state, channels=[*remaining, channel])


def _add_subscription(state: ApplicationState, feed_url: str) -> ApplicationState:
    if any(subscription.feed_url == feed_url for subscription in state.subscriptions):
        return state
    return replace(state, subscriptions=[*state.subscriptions, Subscription(feed_url=feed_url)])


def _remove_subscription(state: ApplicationState, feed_url: str) -> ApplicationState:
    subscriptions = [s for s in state.subscriptions if s.feed_url != feed_url]
    channels = [c for c in state.channels if c.atom_link != feed_url]
    if len(subscriptions) == len(state.subscriptions) and len(channels) == len(state.channels):
        return state
    return replace(state, subscriptions=subscriptions, channels=channels)


def application_state_reducer(
    state: ApplicationState,
    action: Action,
    storage: Optional["SubscriptionStorage"] = None,
) -> ApplicationState:
    """Return the state that results from applying ``action`` to ``state``.

    ``state`` is never modified. Unknown action types return ``state`` itself.

    Args:
        state: Current application state
        action: Action to apply
        storage: Subscription storage read by LOAD_SUBSCRIPTIONS_FROM_LOCAL_STORAGE
    """
    action_type = getattr(action, "type", None)
    logger.debug(f"Reducing action {action_type}")

    if action_type == ActionType.INITIALIZE_DEFAULT_STATE:
        return initialize_application_state(**_state_values(state))

    elif action_type == ActionType.LOAD_SUBSCRIPTIONS_FROM_LOCAL_STORAGE:
        if storage is None:
            logger.warning("No subscription storage configured; subscriptions not loaded")
            return state
        subscriptions = storage.load_subscriptions(state.subscriptions_storage_key)
        return replace(state, subscriptions=subscriptions)

    elif action_type == ActionType.REQUEST_RSS_FEED_CHANNEL_DATA:
        return _request_channel(state, action.payload.feed_url)

    elif action_type in (
        ActionType.REQUEST_RSS_FEED_CHANNEL_DATA_ABORTED,
        ActionType.RSS_FEED_CHANNEL_DATA_PARSE_FAIL,
    ):
        return _reset_channel(state, action.payload.feed_url)

    elif action_type == ActionType.RSS_FEED_CHANNEL_DATA_LOADED:
        return _load_channel(state, action.payload.channel)

    elif action_type == ActionType.ADD_RSS_FEED_SUBSCRIPTION:
        return _add_subscription(state, action.payload.feed_url)

    elif action_type == ActionType.REMOVE_RSS_FEED_SUBSCRIPTION:
        return _remove_subscription(state, action.payload.feed_url)

    return state
