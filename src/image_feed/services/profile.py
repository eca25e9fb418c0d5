"""Profile lookups for the signed-in user."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from image_feed.adapters.unsplash_client import UnsplashClient
from image_feed.domain.profile import Profile, ProfileImage
from image_feed.services.decoding import decode_profile, decode_profile_image
from image_feed.services.observers import Subscribers
from image_feed.services.single_flight import KeyedSingleFlight
from image_feed.services.storage import ProfileImageStorage, ProfileStorage

_logger = logging.getLogger(__name__)


@dataclass
class ProfileService:
    """Fetches and stores the signed-in user's profile."""

    client: UnsplashClient
    storage: ProfileStorage
    _flight: KeyedSingleFlight = field(
        default_factory=lambda: KeyedSingleFlight("profile"), init=False, repr=False
    )

    def current_profile(self) -> Profile | None:
        """Return the stored profile unless it has expired."""
        if self.storage.is_expired:
            return None
        return self.storage.profile

    async def fetch_profile(self, token: str) -> Profile:
        """Fetch the profile from the API and store it."""
        payload = await self._flight.run(token, lambda: self.client.get_me(token))
        profile = decode_profile(payload)
        self.storage.profile = profile
        return profile


@dataclass
class ProfileImageService:
    """Fetches avatar URLs and notifies subscribers when they change."""

    client: UnsplashClient
    storage: ProfileImageStorage
    _flight: KeyedSingleFlight = field(
        default_factory=lambda: KeyedSingleFlight("profile image"),
        init=False,
        repr=False,
    )
    _subscribers: Subscribers[ProfileImage] = field(
        default_factory=Subscribers, init=False, repr=False
    )

    def subscribe(self, callback: Callable[[ProfileImage], None]) -> Callable[[], None]:
        """Register for avatar updates; returns an unsubscribe function."""
        return self._subscribers.subscribe(callback)

    async def fetch_profile_image(self, token: str, username: str) -> ProfileImage:
        """Fetch the user's avatar URLs, store and publish them."""
        payload = await self._flight.run(
            token, lambda: self.client.get_user(token, username)
        )
        image = decode_profile_image(payload)
        self.storage.profile_image = image
        _logger.info("Profile image updated for %s", username)
        self._subscribers.publish(image)
        return image
