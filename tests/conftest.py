"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from image_feed.adapters.oauth_client import OAuthClient
from image_feed.adapters.unsplash_client import UnsplashClient
from image_feed.config import Settings
from image_feed.containers import AppContainer
from image_feed.domain.errors import FeedError
from image_feed.domain.photos import Photo, PhotoUrls
from image_feed.services.auth import AuthHelper, OAuthService
from image_feed.services.cache import InMemoryPhotoCache
from image_feed.services.feed_sync import FeedSyncService
from image_feed.services.logout import LogoutService
from image_feed.services.profile import ProfileImageService, ProfileService
from image_feed.services.storage import (
    Preferences,
    ProfileImageStorage,
    ProfileStorage,
    TokenStorage,
)


def photo_payload(photo_id: str, liked: bool = False) -> dict[str, object]:
    """Build a photo record shaped like the Unsplash API response."""
    return {
        "id": photo_id,
        "created_at": "2024-01-01T00:00:00Z",
        "width": 4000,
        "height": 3000,
        "color": "#aabbcc",
        "liked_by_user": liked,
        "description": f"Photo {photo_id}",
        "urls": {
            "small": f"https://images.test/{photo_id}/small.jpg",
            "regular": f"https://images.test/{photo_id}/regular.jpg",
            "full": f"https://images.test/{photo_id}/full.jpg",
        },
    }


def make_photo(photo_id: str, liked: bool = False) -> Photo:
    return Photo(
        id=photo_id,
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
        width=4000,
        height=3000,
        color="#aabbcc",
        is_liked=liked,
        description=f"Photo {photo_id}",
        urls=PhotoUrls(
            small=f"https://images.test/{photo_id}/small.jpg",
            regular=f"https://images.test/{photo_id}/regular.jpg",
            full=f"https://images.test/{photo_id}/full.jpg",
        ),
    )


@dataclass
class ManualClock:
    """Clock that only moves when told to."""

    now: datetime = field(default_factory=lambda: datetime(2024, 6, 1, 12, tzinfo=UTC))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class InMemoryPreferences(Preferences):
    """Dict-backed preferences for tests."""

    values: dict[str, object] = field(default_factory=dict)

    def get(self, key: str) -> object | None:
        return self.values.get(key)

    def set(self, key: str, value: object) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


@dataclass
class FakeUnsplashClient(UnsplashClient):
    """Fake Unsplash client serving canned pages and recording calls."""

    pages: dict[int, list[dict[str, object]]] = field(default_factory=dict)
    calls: list[tuple[object, ...]] = field(default_factory=list)
    error: FeedError | None = None
    gate: asyncio.Event | None = None
    me_payload: dict[str, object] = field(
        default_factory=lambda: {
            "username": "jdoe",
            "first_name": "Jane",
            "last_name": "Doe",
            "bio": "Landscapes",
        }
    )
    user_payload: dict[str, object] = field(
        default_factory=lambda: {
            "username": "jdoe",
            "profile_image": {
                "small": "https://images.test/jdoe/small.jpg",
                "medium": "https://images.test/jdoe/medium.jpg",
                "large": "https://images.test/jdoe/large.jpg",
            },
        }
    )

    async def list_photos(self, token: str, page: int, per_page: int) -> object:
        self.calls.append(("list_photos", page, per_page))
        await self._wait()
        return self.pages.get(page, [])

    async def like_photo(self, token: str, photo_id: str) -> object:
        self.calls.append(("like_photo", photo_id))
        await self._wait()
        return {"photo": photo_payload(photo_id, liked=True)}

    async def unlike_photo(self, token: str, photo_id: str) -> object:
        self.calls.append(("unlike_photo", photo_id))
        await self._wait()
        return {"photo": photo_payload(photo_id, liked=False)}

    async def get_me(self, token: str) -> object:
        self.calls.append(("get_me",))
        await self._wait()
        return self.me_payload

    async def get_user(self, token: str, username: str) -> object:
        self.calls.append(("get_user", username))
        await self._wait()
        return self.user_payload

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error


@dataclass
class FakeOAuthClient(OAuthClient):
    """Fake OAuth client issuing a token derived from the code."""

    codes: list[str] = field(default_factory=list)
    gate: asyncio.Event | None = None

    async def exchange_code(self, code: str) -> object:
        self.codes.append(code)
        if self.gate is not None:
            await self.gate.wait()
        return {"access_token": f"token-{code}", "token_type": "bearer"}


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        unsplash_access_key="access-key",
        unsplash_secret_key="secret-key",
        cache_backend="memory",
        preferences_path=str(tmp_path / "preferences.json"),
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def preferences() -> InMemoryPreferences:
    return InMemoryPreferences()


@pytest.fixture
def token_storage(preferences: InMemoryPreferences) -> TokenStorage:
    storage = TokenStorage(preferences)
    storage.token = "token"
    return storage


@pytest.fixture
def unsplash_client() -> FakeUnsplashClient:
    return FakeUnsplashClient()


@pytest.fixture
def photo_cache(clock: ManualClock) -> InMemoryPhotoCache:
    return InMemoryPhotoCache(clock=clock)


@pytest.fixture
def feed_sync_service(
    unsplash_client: FakeUnsplashClient,
    photo_cache: InMemoryPhotoCache,
    token_storage: TokenStorage,
) -> FeedSyncService:
    return FeedSyncService(
        client=unsplash_client,
        cache=photo_cache,
        token_storage=token_storage,
        page_size=2,
    )


@pytest.fixture
def container(
    settings: Settings,
    preferences: InMemoryPreferences,
    unsplash_client: FakeUnsplashClient,
    photo_cache: InMemoryPhotoCache,
    clock: ManualClock,
) -> AppContainer:
    oauth_client = FakeOAuthClient()
    token_storage = TokenStorage(preferences)
    profile_storage = ProfileStorage(preferences, clock=clock)
    profile_image_storage = ProfileImageStorage(preferences)
    feed_sync_service = FeedSyncService(
        client=unsplash_client,
        cache=photo_cache,
        token_storage=token_storage,
        page_size=2,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        unsplash_client=unsplash_client,
        oauth_client=oauth_client,
        photo_cache=photo_cache,
        token_storage=token_storage,
        profile_storage=profile_storage,
        profile_image_storage=profile_image_storage,
        auth_helper=AuthHelper(settings),
        oauth_service=OAuthService(oauth_client, token_storage),
        profile_service=ProfileService(unsplash_client, profile_storage),
        profile_image_service=ProfileImageService(
            unsplash_client, profile_image_storage
        ),
        feed_sync_service=feed_sync_service,
        logout_service=LogoutService(
            token_storage=token_storage,
            profile_storage=profile_storage,
            profile_image_storage=profile_image_storage,
            feed_sync_service=feed_sync_service,
        ),
        close_resources=close_resources,
    )
