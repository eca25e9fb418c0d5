"""Position-ordered photo cache abstractions."""

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Protocol

from image_feed.domain.photos import CachedPhotoRecord, Photo

DEFAULT_CACHE_TTL_SECONDS = 10 * 60


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


class PhotoCache(Protocol):
    """Durable store of feed photos ordered by position.

    Implementations never raise: storage failures are logged and degrade to
    empty, false or no-op results.
    """

    def save_photos(self, photos: Sequence[Photo], starting_from_position: int) -> None:
        """Upsert photos by id at consecutive positions."""

    def shift_cached_photos_positions(self, offset: int) -> None:
        """Add offset to the position of every cached photo."""

    def fetch_all_cached_photos(self) -> list[Photo]:
        """Return every cached photo sorted by position."""

    def needs_cache_refresh(self) -> bool:
        """Return True when the cache is empty or stale."""

    def photo_exists(self, photo_id: str) -> bool:
        """Return True if a photo with this id is cached."""

    def get_cached_photos_count(self) -> int:
        """Return the number of cached photos."""

    def update_photo_like_status(self, photo_id: str, is_liked: bool) -> None:
        """Patch the like flag of a cached photo, if present."""

    def clear_cache(self) -> None:
        """Remove every cached photo."""

    def get_cached_photos(self, start_position: int, count: int) -> list[Photo]:
        """Return cached photos with positions in [start, start + count - 1]."""


@dataclass
class InMemoryPhotoCache(PhotoCache):
    """Process-local cache implementation."""

    ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    clock: Callable[[], datetime] = utc_now
    _records: dict[str, CachedPhotoRecord] = field(
        default_factory=dict, init=False, repr=False
    )
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def save_photos(self, photos: Sequence[Photo], starting_from_position: int) -> None:
        """Upsert photos, overwriting records that share an id."""
        now = self.clock()
        with self._lock:
            for index, photo in enumerate(photos):
                self._records[photo.id] = CachedPhotoRecord(
                    photo=photo,
                    position=starting_from_position + index,
                    last_updated=now,
                )

    def shift_cached_photos_positions(self, offset: int) -> None:
        """Shift every record by offset positions."""
        if offset == 0:
            return
        with self._lock:
            self._records = {
                photo_id: replace(record, position=record.position + offset)
                for photo_id, record in self._records.items()
            }

    def fetch_all_cached_photos(self) -> list[Photo]:
        """Return all photos sorted by position."""
        return [record.photo for record in self._sorted_records()]

    def needs_cache_refresh(self) -> bool:
        """Compare the newest write against the freshness window."""
        with self._lock:
            if not self._records:
                return True
            latest = max(record.last_updated for record in self._records.values())
        return self.clock() - latest > timedelta(seconds=self.ttl_seconds)

    def photo_exists(self, photo_id: str) -> bool:
        """Check whether an id is cached."""
        with self._lock:
            return photo_id in self._records

    def get_cached_photos_count(self) -> int:
        """Return the record count."""
        with self._lock:
            return len(self._records)

    def update_photo_like_status(self, photo_id: str, is_liked: bool) -> None:
        """Patch the like flag and the write timestamp."""
        with self._lock:
            record = self._records.get(photo_id)
            if record is None:
                return
            self._records[photo_id] = replace(
                record,
                photo=record.photo.with_like_status(is_liked),
                last_updated=self.clock(),
            )

    def clear_cache(self) -> None:
        """Drop every record."""
        with self._lock:
            self._records.clear()

    def get_cached_photos(self, start_position: int, count: int) -> list[Photo]:
        """Return the sorted records inside the requested position range."""
        end_position = start_position + count - 1
        return [
            record.photo
            for record in self._sorted_records()
            if start_position <= record.position <= end_position
        ]

    def _sorted_records(self) -> list[CachedPhotoRecord]:
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda record: record.position)
