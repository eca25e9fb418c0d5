"""Key-value backed storages for the token and profile data."""

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from image_feed.domain.profile import Profile, ProfileImage
from image_feed.services.cache import utc_now

_TOKEN_KEY = "oauth2_token"
_PROFILE_KEY = "profile"
_PROFILE_TIMESTAMP_KEY = "profile_timestamp"
_PROFILE_IMAGE_KEY = "profile_image"


class Preferences(Protocol):
    """Small persistent key-value store."""

    def get(self, key: str) -> object | None:
        """Return the stored value, if any."""

    def set(self, key: str, value: object) -> None:
        """Store a JSON-serializable value."""

    def remove(self, key: str) -> None:
        """Forget a key."""


@dataclass
class TokenStorage:
    """Bearer token persisted in preferences with an in-memory copy."""

    preferences: Preferences
    _cached_token: str | None = field(default=None, init=False, repr=False)

    @property
    def token(self) -> str | None:
        if self._cached_token is not None:
            return self._cached_token
        stored = self.preferences.get(_TOKEN_KEY)
        self._cached_token = stored if isinstance(stored, str) else None
        return self._cached_token

    @token.setter
    def token(self, value: str | None) -> None:
        self._cached_token = value
        if value is None:
            self.preferences.remove(_TOKEN_KEY)
        else:
            self.preferences.set(_TOKEN_KEY, value)

    def clear(self) -> None:
        """Forget the token."""
        self.token = None


@dataclass
class ProfileStorage:
    """Profile persisted in preferences, considered stale after a TTL."""

    preferences: Preferences
    ttl_seconds: int = 900
    clock: Callable[[], datetime] = utc_now

    @property
    def profile(self) -> Profile | None:
        stored = self.preferences.get(_PROFILE_KEY)
        if not isinstance(stored, dict):
            return None
        try:
            return Profile(**stored)
        except TypeError:
            return None

    @profile.setter
    def profile(self, value: Profile | None) -> None:
        if value is None:
            self.preferences.remove(_PROFILE_KEY)
            self.preferences.remove(_PROFILE_TIMESTAMP_KEY)
            return
        self.preferences.set(_PROFILE_KEY, asdict(value))
        self.preferences.set(_PROFILE_TIMESTAMP_KEY, self.clock().isoformat())

    @property
    def timestamp(self) -> datetime | None:
        stored = self.preferences.get(_PROFILE_TIMESTAMP_KEY)
        if not isinstance(stored, str):
            return None
        try:
            return datetime.fromisoformat(stored)
        except ValueError:
            return None

    @property
    def is_expired(self) -> bool:
        timestamp = self.timestamp
        if timestamp is None:
            return True
        return self.clock() - timestamp > timedelta(seconds=self.ttl_seconds)


@dataclass
class ProfileImageStorage:
    """Avatar URLs persisted in preferences."""

    preferences: Preferences

    @property
    def profile_image(self) -> ProfileImage | None:
        stored = self.preferences.get(_PROFILE_IMAGE_KEY)
        if not isinstance(stored, dict):
            return None
        try:
            return ProfileImage(**stored)
        except TypeError:
            return None

    @profile_image.setter
    def profile_image(self, value: ProfileImage | None) -> None:
        if value is None:
            self.preferences.remove(_PROFILE_IMAGE_KEY)
        else:
            self.preferences.set(_PROFILE_IMAGE_KEY, asdict(value))
