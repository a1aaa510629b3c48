"""
Cart notifiers - publish-only sinks for cart lifecycle events.

The manager fires ``cart.adding`` / ``cart.added`` and friends through any
object with a ``fire(event, payload)`` method. Notifiers are never relied on
for correctness: the manager logs and ignores their failures.
"""

import json
from collections import defaultdict
from typing import Any, Callable, Protocol

from .db import get_redis
from .logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[str, Any], None]

# Stream key
_STREAM_CART_EVENTS = "stream:cart:events"


class Notifier(Protocol):
    """Fire-and-forget event sink."""

    def fire(self, event: str, payload: Any = None) -> None: ...


class NullNotifier:
    """Drops every event."""

    def fire(self, event: str, payload: Any = None) -> None:
        return None


class EventDispatcher:
    """
    In-process listener registry.

    Listeners registered for an exact event name run first, then wildcard
    (``"*"``) listeners, each in registration order. Listener exceptions
    propagate to the caller.
    """

    WILDCARD = "*"

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def listen(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def forget(self, event: str) -> None:
        self._listeners.pop(event, None)

    def has_listeners(self, event: str) -> bool:
        return bool(self._listeners.get(event) or self._listeners.get(self.WILDCARD))

    def fire(self, event: str, payload: Any = None) -> None:
        for listener in [*self._listeners.get(event, []), *self._listeners.get(self.WILDCARD, [])]:
            listener(event, payload)


def _to_jsonable(payload: Any) -> Any:
    """Turn rows, carts and tuples of them into plain JSON data."""
    if hasattr(payload, "to_dict"):
        return payload.to_dict()
    if isinstance(payload, (tuple, list)):
        return [_to_jsonable(item) for item in payload]
    if isinstance(payload, dict):
        return {key: _to_jsonable(value) for key, value in payload.items()}
    return payload


class RedisStreamNotifier:
    """Appends cart events to an Upstash Redis stream (XADD)."""

    def __init__(self, redis: Any = None, stream_key: str = _STREAM_CART_EVENTS):
        self._redis = redis
        self.stream_key = stream_key

    @property
    def redis(self):
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    def fire(self, event: str, payload: Any = None) -> None:
        data = {"event": event, "payload": _to_jsonable(payload)}
        self.redis.xadd(self.stream_key, "*", {"data": json.dumps(data, default=str)})
        logger.debug(f"Emitted {event} to {self.stream_key}")
