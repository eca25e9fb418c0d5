"""Sign-out of the current user."""

import logging
from dataclasses import dataclass

from image_feed.services.feed_sync import FeedSyncService
from image_feed.services.storage import (
    ProfileImageStorage,
    ProfileStorage,
    TokenStorage,
)

_logger = logging.getLogger(__name__)


@dataclass
class LogoutService:
    """Forgets credentials, profile data and the cached feed."""

    token_storage: TokenStorage
    profile_storage: ProfileStorage
    profile_image_storage: ProfileImageStorage
    feed_sync_service: FeedSyncService

    def logout(self) -> None:
        """Clear every piece of per-user state."""
        self.token_storage.clear()
        self.profile_storage.profile = None
        self.profile_image_storage.profile_image = None
        self.feed_sync_service.clear_cache()
        _logger.info("Signed out and cleared local data")
