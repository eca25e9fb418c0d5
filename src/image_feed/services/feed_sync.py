"""Feed synchronization between the local photo cache and the remote API."""

import asyncio
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field

from image_feed.adapters.unsplash_client import UnsplashClient
from image_feed.domain.errors import FeedError, MissingTokenError
from image_feed.domain.events import (
    FeedEvent,
    LikeStatusChanged,
    LoadFailed,
    PhotosChanged,
)
from image_feed.domain.photos import Photo
from image_feed.services.cache import PhotoCache
from image_feed.services.decoding import decode_like_result, decode_photo_page
from image_feed.services.observers import Subscribers
from image_feed.services.single_flight import KeyedSingleFlight
from image_feed.services.storage import TokenStorage

DEFAULT_PAGE_SIZE = 20

_logger = logging.getLogger(__name__)


@dataclass
class FeedSyncService:
    """Loads the feed page by page, preferring the local cache.

    All public methods are meant to be called from the event loop that owns
    the service. At most one page load runs at a time; every completed load
    publishes exactly one PhotosChanged or LoadFailed event.
    """

    client: UnsplashClient
    cache: PhotoCache
    token_storage: TokenStorage
    page_size: int = DEFAULT_PAGE_SIZE
    last_loaded_page: int = field(default=0, init=False)
    is_initial_load_completed: bool = field(default=False, init=False)
    _photos: list[Photo] = field(default_factory=list, init=False, repr=False)
    _task: asyncio.Task | None = field(default=None, init=False, repr=False)
    _subscribers: Subscribers[FeedEvent] = field(
        default_factory=Subscribers, init=False, repr=False
    )
    _like_flight: KeyedSingleFlight = field(
        default_factory=lambda: KeyedSingleFlight("like status"), init=False, repr=False
    )

    @property
    def photos(self) -> list[Photo]:
        """Photos loaded during this session, in feed order."""
        return list(self._photos)

    @property
    def is_loading(self) -> bool:
        return self._task is not None

    def subscribe(self, callback: Callable[[FeedEvent], None]) -> Callable[[], None]:
        """Register for feed events; returns an unsubscribe function."""
        return self._subscribers.subscribe(callback)

    def fetch_photos_next_page(self) -> "asyncio.Task[FeedEvent] | None":
        """Start loading the next page unless a load is already running.

        Returns the load task, or None when the call was suppressed.
        """
        if self._task is not None:
            return None
        task = asyncio.get_running_loop().create_task(self._load_next_page())
        self._task = task
        return task

    async def change_like_status(self, photo_id: str, is_like: bool) -> Photo:
        """Like or unlike a photo and return the photo as the remote reports it.

        Raises FeedError on failure, leaving the cache untouched.
        """
        send = self.client.like_photo if is_like else self.client.unlike_photo
        try:
            token = self._require_token()
            payload = await self._like_flight.run(
                photo_id, lambda: send(token, photo_id)
            )
            photo = decode_like_result(payload)
        except FeedError as exc:
            _logger.warning("Changing like status of %s failed: %s", photo_id, exc)
            raise
        self.cache.update_photo_like_status(photo.id, photo.is_liked)
        self._photos = [photo if item == photo else item for item in self._photos]
        self._subscribers.publish(LikeStatusChanged(photo=photo))
        return photo

    def reset(self) -> None:
        """Cancel any running load and start the session over."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._like_flight.cancel()
        self.last_loaded_page = 0
        self.is_initial_load_completed = False
        self._photos = []

    def clear_cache(self) -> None:
        """Empty the persistent cache, then reset the session."""
        self.cache.clear_cache()
        self.reset()

    async def _load_next_page(self) -> FeedEvent:
        try:
            if self.is_initial_load_completed:
                event = await self._load_incremental_page()
            else:
                event = await self._load_initial()
        finally:
            if self._task is asyncio.current_task():
                self._task = None
        self._subscribers.publish(event)
        return event

    async def _load_initial(self) -> FeedEvent:
        if not self.cache.needs_cache_refresh():
            cached = self.cache.fetch_all_cached_photos()
            if cached:
                _logger.info("Serving %s photos from fresh cache", len(cached))
                return self._complete_initial_load(cached, total=len(cached))
            _logger.warning("Fresh cache returned no photos, loading from network")

        try:
            first_page = await self._fetch_remote_page(1)
        except FeedError as exc:
            return _load_failed(1, exc)
        return self._reconcile_first_page(first_page)

    def _reconcile_first_page(self, first_page: list[Photo]) -> FeedEvent:
        if self.cache.get_cached_photos_count() == 0:
            self.cache.save_photos(first_page, starting_from_position=0)
            _logger.info("Cache was empty, stored %s photos", len(first_page))
            return self._complete_initial_load(first_page, total=len(first_page))

        new_items = [
            photo for photo in first_page if not self.cache.photo_exists(photo.id)
        ]
        if new_items:
            self.cache.shift_cached_photos_positions(len(new_items))
            self.cache.save_photos(new_items, starting_from_position=0)
            _logger.info(
                "Inserted %s new photos at the head of the feed", len(new_items)
            )
        else:
            _logger.info("No new photos at the head of the feed")

        cached = self.cache.fetch_all_cached_photos() or first_page
        total = max(self.cache.get_cached_photos_count(), len(cached))
        return self._complete_initial_load(cached, total=total)

    def _complete_initial_load(self, photos: list[Photo], total: int) -> PhotosChanged:
        self.last_loaded_page = math.ceil(total / self.page_size)
        self.is_initial_load_completed = True
        self._photos = list(photos)
        return PhotosChanged(new_photos=list(photos))

    async def _load_incremental_page(self) -> FeedEvent:
        next_page = self.last_loaded_page + 1
        start_position = (next_page - 1) * self.page_size

        cached = self.cache.get_cached_photos(start_position, self.page_size)
        if cached:
            _logger.info(
                "Serving page %s from cache (%s photos)", next_page, len(cached)
            )
            return self._advance(next_page, cached)

        try:
            photos = await self._fetch_remote_page(next_page)
        except FeedError as exc:
            return _load_failed(next_page, exc)
        self.cache.save_photos(photos, starting_from_position=start_position)
        return self._advance(next_page, photos)

    def _advance(self, page: int, photos: list[Photo]) -> PhotosChanged:
        self.last_loaded_page = page
        self._photos.extend(photos)
        return PhotosChanged(new_photos=list(photos))

    async def _fetch_remote_page(self, page: int) -> list[Photo]:
        token = self._require_token()
        payload = await self.client.list_photos(
            token, page=page, per_page=self.page_size
        )
        return decode_photo_page(payload)

    def _require_token(self) -> str:
        token = self.token_storage.token
        if not token:
            raise MissingTokenError("No token available")
        return token


def _load_failed(page: int, exc: FeedError) -> LoadFailed:
    _logger.warning("Loading page %s failed: %s", page, exc)
    return LoadFailed(reason=str(exc))
