"""Field-level change detection and listener notification for application state."""

import asyncio
import inspect
import logging
import math
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

StateChangeListener = Callable[[str, Any], Union[Awaitable[None], None]]

_MISSING = object()


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_record(value: Any) -> bool:
    return is_dataclass(value) and not isinstance(value, type)


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def _own_keys(value: Any) -> List[str]:
    if isinstance(value, Mapping):
        return list(value.keys())
    return [f.name for f in fields(value)]


def _get(value: Any, key: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(key, _MISSING)
    return getattr(value, key, _MISSING)


def objects_are_deeply_equal(a: Any, b: Any, allow_nan_equal: bool = True) -> bool:
    """Compare two values structurally.

    Lists and tuples are compared by length and then element by element.
    Mappings and dataclass records are compared over the keys of ``a`` only,
    so keys that exist only on ``b`` are not inspected. Anything else is
    compared with ``==``, treating NaN as equal to NaN unless
    ``allow_nan_equal`` is False.
    """
    if _is_sequence(a) and _is_sequence(b):
        if len(a) != len(b):
            return False
        return all(objects_are_deeply_equal(x, y, allow_nan_equal) for x, y in zip(a, b))

    if isinstance(a, Mapping) or _is_record(a):
        if not (isinstance(b, Mapping) or _is_record(b)):
            return False
        return all(
            objects_are_deeply_equal(_get(a, key), _get(b, key), allow_nan_equal)
            for key in _own_keys(a)
        )

    if allow_nan_equal and _is_nan(a) and _is_nan(b):
        return True
    return a == b


def filter_different_object_properties(original: Any, update: Any) -> Dict[str, Any]:
    """Return the fields of ``original`` whose values differ in ``update``.

    Returns:
        Mapping of field name to the value it holds in ``update``.
    """
    return {
        key: _get(update, key)
        for key in _own_keys(original)
        if not objects_are_deeply_equal(_get(update, key), _get(original, key))
    }


class StateChangeListenerMap:
    """Registry of change listeners keyed by application state field name."""

    def __init__(self):
        self._listeners: Dict[str, List[StateChangeListener]] = {}

    def add_listener(self, state_key: str, listener: StateChangeListener) -> int:
        """Register a listener for a field; registering the same one twice is a no-op.

        Returns:
            Number of listeners registered for the field afterwards.
        """
        listeners = self._listeners.setdefault(state_key, [])
        if listener not in listeners:
            listeners.append(listener)
        return len(listeners)

    def remove_listener(self, state_key: str, listener: StateChangeListener) -> int:
        """Unregister a listener.

        Returns:
            Number of listeners still registered for the field.
        """
        listeners = self._listeners.get(state_key)
        if listeners is None:
            return 0
        if listener in listeners:
            listeners.remove(listener)
        return len(listeners)

    def reset_listeners(self) -> int:
        self._listeners = {}
        return 0

    def listeners_for(self, state_key: str) -> List[StateChangeListener]:
        return list(self._listeners.get(state_key, []))

    async def _notify_field(self, state_key: str, new_value: Any) -> None:
        for listener in self.listeners_for(state_key):
            try:
                result = listener(state_key, new_value)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"State change listener for '{state_key}' failed: {e}")

    async def notify_listeners(self, state_changes: Optional[Dict[str, Any]]) -> None:
        """Notify listeners of the changed fields.

        Listeners of one field run one after another in registration order;
        different fields are notified concurrently.
        """
        if not state_changes:
            return
        await asyncio.gather(
            *(self._notify_field(key, value) for key, value in state_changes.items())
        )
