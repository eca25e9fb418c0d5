"""Minimal observer list used to publish service events."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

_logger = logging.getLogger(__name__)

E = TypeVar("E")


@dataclass
class Subscribers(Generic[E]):
    """Ordered callbacks notified synchronously on the event loop."""

    _callbacks: list[Callable[[E], None]] = field(default_factory=list, repr=False)

    def subscribe(self, callback: Callable[[E], None]) -> Callable[[], None]:
        """Register a callback and return a function that unregisters it."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def publish(self, event: E) -> None:
        """Deliver an event to every subscriber."""
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception:
                _logger.exception("Subscriber %r failed handling %r", callback, event)

    def __len__(self) -> int:
        return len(self._callbacks)
