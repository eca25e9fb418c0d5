"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from image_feed.adapters.json_preferences import JsonFilePreferences
from image_feed.adapters.oauth_client import HttpxOAuthClient, OAuthClient
from image_feed.adapters.sqlalchemy_photo_cache import SqlAlchemyPhotoCache
from image_feed.adapters.unsplash_client import HttpxUnsplashClient, UnsplashClient
from image_feed.config import Settings, parse_cache_backend
from image_feed.services.auth import AuthHelper, OAuthService
from image_feed.services.cache import InMemoryPhotoCache, PhotoCache
from image_feed.services.feed_sync import FeedSyncService
from image_feed.services.logout import LogoutService
from image_feed.services.profile import ProfileImageService, ProfileService
from image_feed.services.storage import (
    ProfileImageStorage,
    ProfileStorage,
    TokenStorage,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    unsplash_client: UnsplashClient
    oauth_client: OAuthClient
    photo_cache: PhotoCache
    token_storage: TokenStorage
    profile_storage: ProfileStorage
    profile_image_storage: ProfileImageStorage
    auth_helper: AuthHelper
    oauth_service: OAuthService
    profile_service: ProfileService
    profile_image_service: ProfileImageService
    feed_sync_service: FeedSyncService
    logout_service: LogoutService
    close_resources: Callable[[], Awaitable[None]]


def build_photo_cache(settings: Settings) -> PhotoCache:
    """Create the configured photo cache backend."""
    if parse_cache_backend(settings.cache_backend) == "memory":
        return InMemoryPhotoCache(ttl_seconds=settings.cache_ttl_seconds)
    return SqlAlchemyPhotoCache.create(
        settings.cache_database_url, ttl_seconds=settings.cache_ttl_seconds
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    preferences = JsonFilePreferences(Path(resolved_settings.preferences_path))
    token_storage = TokenStorage(preferences)
    profile_storage = ProfileStorage(
        preferences, ttl_seconds=resolved_settings.profile_ttl_seconds
    )
    profile_image_storage = ProfileImageStorage(preferences)
    photo_cache = build_photo_cache(resolved_settings)

    unsplash_client = HttpxUnsplashClient.create(
        resolved_settings.api_base_url,
        timeout=resolved_settings.http_timeout_seconds,
    )
    oauth_client = HttpxOAuthClient.create(
        base_url=resolved_settings.auth_base_url,
        client_id=resolved_settings.unsplash_access_key,
        client_secret=resolved_settings.unsplash_secret_key,
        redirect_uri=resolved_settings.redirect_uri,
        timeout=resolved_settings.http_timeout_seconds,
    )

    feed_sync_service = FeedSyncService(
        client=unsplash_client,
        cache=photo_cache,
        token_storage=token_storage,
        page_size=resolved_settings.feed_page_size,
    )
    logout_service = LogoutService(
        token_storage=token_storage,
        profile_storage=profile_storage,
        profile_image_storage=profile_image_storage,
        feed_sync_service=feed_sync_service,
    )

    async def close_resources() -> None:
        await unsplash_client.close()
        await oauth_client.close()

    return AppContainer(
        settings=resolved_settings,
        unsplash_client=unsplash_client,
        oauth_client=oauth_client,
        photo_cache=photo_cache,
        token_storage=token_storage,
        profile_storage=profile_storage,
        profile_image_storage=profile_image_storage,
        auth_helper=AuthHelper(resolved_settings),
        oauth_service=OAuthService(oauth_client, token_storage),
        profile_service=ProfileService(unsplash_client, profile_storage),
        profile_image_service=ProfileImageService(
            unsplash_client, profile_image_storage
        ),
        feed_sync_service=feed_sync_service,
        logout_service=logout_service,
        close_resources=close_resources,
    )
