"""JSON file persistence for feed subscriptions."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .dates import is_valid_date, parse_date
from .models import Subscription

logger = logging.getLogger(__name__)


def _serialize_date(value) -> Optional[str]:
    if is_valid_date(value):
        return value.isoformat()
    return None


def _deserialize_date(value: Any):
    """Parse a stored date string; anything unusable becomes None."""
    if not isinstance(value, str) or not value.strip():
        return None
    parsed = parse_date(value)
    return parsed if is_valid_date(parsed) else None


def serialize_subscription(subscription: Subscription) -> Dict[str, str]:
    """Convert a Subscription to its stored form, omitting unknown dates."""
    data = {"feedUrl": subscription.feed_url}
    last_build_date = _serialize_date(subscription.last_build_date)
    if last_build_date:
        data["lastBuildDate"] = last_build_date
    next_build_date = _serialize_date(subscription.next_build_date)
    if next_build_date:
        data["nextBuildDate"] = next_build_date
    return data


def deserialize_subscription(data: Dict[str, Any]) -> Subscription:
    """Create a Subscription from its stored form, dropping invalid dates."""
    return Subscription(
        feed_url=data["feedUrl"],
        last_build_date=_deserialize_date(data.get("lastBuildDate")),
        next_build_date=_deserialize_date(data.get("nextBuildDate")),
    )


class SubscriptionStorage:
    """Stores subscription lists as JSON arrays, one file per storage key."""

    def __init__(self, config_path: Path):
        """Initialize storage.

        Args:
            config_path: Directory holding the ``<key>.json`` files
        """
        self.config_path = config_path

    def _key_path(self, key: str) -> Path:
        return self.config_path / f"{key}.json"

    def load_subscriptions(self, key: str) -> List[Subscription]:
        """Load the subscriptions stored under ``key``; missing or unreadable data gives []."""
        key_path = self._key_path(key)
        if not key_path.exists():
            return []
        try:
            with open(key_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading subscriptions from {key_path}: {e}")
            return []
        if not isinstance(data, list):
            logger.error(f"Error loading subscriptions from {key_path}: expected a list")
            return []

        subscriptions = []
        for item in data:
            try:
                subscriptions.append(deserialize_subscription(item))
            except (KeyError, TypeError) as e:
                logger.warning(f"Skipping invalid subscription record in {key_path}: {e}")
        return subscriptions

    def save_subscriptions(self, key: str, subscriptions: List[Subscription]) -> bool:
        """Write ``subscriptions`` under ``key``. Returns False if the write failed."""
        key_path = self._key_path(key)
        try:
            key_path.parent.mkdir(parents=True, exist_ok=True)
            with open(key_path, "w", encoding="utf-8") as f:
                json.dump(
                    [serialize_subscription(s) for s in subscriptions],
                    f,
                    indent=2,
                    ensure_ascii=False,
                )
            return True
        except OSError as e:
            logger.error(f"Error saving subscriptions to {key_path}: {e}")
            return False
