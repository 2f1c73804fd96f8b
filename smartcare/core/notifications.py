"""
Publish/subscribe channel for a single piece of observable state.

A subscriber receives the current value as soon as it subscribes and then
every later change. Publishing a value equal to the current one is a no-op.
Values published from inside a subscriber callback are queued and delivered
after the current round, so every subscriber sees changes in publish order.
"""
import logging
from collections import deque
from typing import Callable, Deque, Dict, Generic, Tuple, TypeVar

# Set up logging
logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]

class StateChannel(Generic[T]):
    """Holds the current value and fans every change out to subscribers."""

    def __init__(self, initial: T):
        self._current = initial
        self._version = 0
        # subscriber id -> (callback, version of the snapshot it was given)
        self._subscribers: Dict[int, Tuple[Callable[[T], None], int]] = {}
        self._next_id = 0
        self._pending: Deque[Tuple[int, T]] = deque()
        self._delivering = False

    @property
    def current(self) -> T:
        return self._current

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        """
        Register a subscriber and deliver the current value to it.

        A subscriber added from inside a callback is not given queued values
        older than or equal to the snapshot it received.

        Args:
            callback: Called with each new value

        Returns:
            Unsubscribe: Removes the subscriber; calling it again does nothing
        """
        subscriber_id = self._next_id
        self._next_id += 1
        self._subscribers[subscriber_id] = (callback, self._version)
        self._deliver(callback, self._current)

        def unsubscribe() -> None:
            self._subscribers.pop(subscriber_id, None)

        return unsubscribe

    def publish(self, value: T) -> bool:
        """
        Set a new current value and notify subscribers.

        Returns:
            bool: False if the value equals the current one and nothing was published
        """
        if value == self._current:
            return False
        self._current = value
        self._version += 1
        self._pending.append((self._version, value))
        if self._delivering:
            return True

        self._delivering = True
        try:
            while self._pending:
                version, next_value = self._pending.popleft()
                for callback, seen_version in list(self._subscribers.values()):
                    if version > seen_version:
                        self._deliver(callback, next_value)
        finally:
            self._delivering = False
        return True

    def close(self) -> None:
        """Drop all subscribers."""
        self._subscribers.clear()
        self._pending.clear()

    def _deliver(self, callback: Callable[[T], None], value: T) -> None:
        # One failing subscriber must not starve the others
        try:
            callback(value)
        except Exception:
            logger.exception(f"State subscriber {callback!r} failed")
