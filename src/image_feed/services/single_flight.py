"""Keyed single-flight guard for remote requests."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from typing import TypeVar

from image_feed.domain.errors import DuplicateRequestError, RequestSupersededError

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class KeyedSingleFlight:
    """Allow one request of a kind at a time.

    A second request with the same key is rejected while the first is in
    flight. A request with a different key cancels the in-flight one.
    """

    name: str
    _task: asyncio.Future | None = field(default=None, init=False, repr=False)
    _key: Hashable | None = field(default=None, init=False, repr=False)

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        """Run factory() unless a request with the same key is pending."""
        if self._task is not None:
            if self._key == key:
                raise DuplicateRequestError(f"{self.name} request already in flight")
            _logger.info("Superseding in-flight %s request", self.name)
            self._task.cancel()
        task = asyncio.ensure_future(factory())
        self._task = task
        self._key = key
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            raise RequestSupersededError(
                f"{self.name} request superseded by a newer one"
            ) from None
        finally:
            if self._task is task:
                self._task = None
                self._key = None

    def cancel(self) -> None:
        """Cancel the in-flight request, if any."""
        if self._task is not None:
            self._task.cancel()
        self._task = None
        self._key = None
