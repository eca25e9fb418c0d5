"""Events published by the feed synchronization service."""

from dataclasses import dataclass

from image_feed.domain.photos import Photo


@dataclass(frozen=True)
class PhotosChanged:
    """A load completed and produced photos to render."""

    new_photos: list[Photo]


@dataclass(frozen=True)
class LoadFailed:
    """A load completed without producing photos."""

    reason: str


@dataclass(frozen=True)
class LikeStatusChanged:
    """The remote confirmed a like or unlike."""

    photo: Photo


FeedEvent = PhotosChanged | LoadFailed | LikeStatusChanged
