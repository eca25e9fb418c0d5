"""Domain models for feed photos."""

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass(frozen=True)
class PhotoUrls:
    """Absolute URLs of the three photo renditions."""

    small: str
    regular: str
    full: str


@dataclass(frozen=True, eq=False)
class Photo:
    """A photo from the feed. Identity is the photo id."""

    id: str
    created_at: datetime | None
    width: int
    height: int
    color: str
    is_liked: bool
    description: str
    urls: PhotoUrls

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Photo):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def with_like_status(self, is_liked: bool) -> "Photo":
        """Return a copy with the like flag replaced."""
        return replace(self, is_liked=is_liked)


@dataclass(frozen=True)
class CachedPhotoRecord:
    """A photo persisted in the local cache at a feed position."""

    photo: Photo
    position: int
    last_updated: datetime
