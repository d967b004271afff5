"""Change-notification channels for published analytics state."""

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

_logger = logging.getLogger(__name__)


class Channel(Generic[T]):
    """Broadcast channel that remembers the last published value.

    Listeners are plain callables invoked synchronously on publish. A failing
    listener is logged and does not stop delivery to the others.
    """

    def __init__(self, name: str, initial: T) -> None:
        self.name = name
        self._latest = initial
        self._listeners: list[Callable[[T], None]] = []

    @property
    def latest(self) -> T:
        return self._latest

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, value: T) -> None:
        self._latest = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                _logger.exception("Listener failed on channel %s", self.name)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
