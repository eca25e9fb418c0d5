"""Tests for the HTTP API."""

import asyncio

import httpx
from fastapi import Request
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from image_feed.api.app import create_app
from image_feed.containers import AppContainer
from image_feed.domain.errors import HttpStatusError
from tests.conftest import FakeUnsplashClient, photo_payload


def _client(container: AppContainer) -> TestClient:
    return TestClient(create_app(container))


def test_health(container: AppContainer) -> None:
    response = _client(container).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_authorize_url(container: AppContainer) -> None:
    response = _client(container).get("/auth/authorize-url")

    assert response.status_code == 200
    url = httpx.URL(response.json()["url"])
    assert url.params["client_id"] == "access-key"


def test_exchange_token_with_code(container: AppContainer) -> None:
    response = _client(container).post("/auth/token", json={"code": "abc"})

    assert response.status_code == 200
    assert container.token_storage.token == "token-abc"


def test_exchange_token_with_redirect_url(container: AppContainer) -> None:
    response = _client(container).post(
        "/auth/token",
        json={"redirect_url": "https://unsplash.com/oauth/authorize/native?code=xyz"},
    )

    assert response.status_code == 200
    assert container.token_storage.token == "token-xyz"


def test_exchange_token_without_code(container: AppContainer) -> None:
    client = _client(container)

    assert client.post("/auth/token", json={}).status_code == 400
    assert (
        client.post(
            "/auth/token", json={"redirect_url": "https://unsplash.com/elsewhere"}
        ).status_code
        == 400
    )


def test_profile_requires_token(container: AppContainer) -> None:
    response = _client(container).get("/profile")

    assert response.status_code == 401


def test_profile_fetches_and_caches(
    container: AppContainer, unsplash_client: FakeUnsplashClient
) -> None:
    container.token_storage.token = "tok"
    client = _client(container)

    first = client.get("/profile")
    second = client.get("/profile")

    assert first.status_code == 200
    body = first.json()
    assert body["login_name"] == "@jdoe"
    assert body["avatar"]["medium"] == "https://images.test/jdoe/medium.jpg"
    assert second.json() == body
    assert unsplash_client.calls.count(("get_me",)) == 1


def test_profile_remote_failure(
    container: AppContainer, unsplash_client: FakeUnsplashClient
) -> None:
    container.token_storage.token = "tok"
    unsplash_client.error = HttpStatusError(500)

    response = _client(container).get("/profile")

    assert response.status_code == 502


def test_feed_next_loads_pages(
    container: AppContainer, unsplash_client: FakeUnsplashClient
) -> None:
    container.token_storage.token = "tok"
    unsplash_client.pages[1] = [photo_payload("a"), photo_payload("b")]
    unsplash_client.pages[2] = [photo_payload("c")]
    client = _client(container)

    first = client.post("/feed/next")
    second = client.post("/feed/next")
    state = client.get("/feed")

    assert first.status_code == 200
    assert [photo["id"] for photo in first.json()["photos"]] == ["a", "b"]
    assert second.json()["last_loaded_page"] == 2
    assert [photo["id"] for photo in state.json()["photos"]] == ["a", "b", "c"]
    assert state.json()["is_initial_load_completed"] is True
    assert state.json()["is_loading"] is False


def test_feed_next_without_token_fails(container: AppContainer) -> None:
    response = _client(container).post("/feed/next")

    assert response.status_code == 502


def test_feed_reset_and_clear(
    container: AppContainer, unsplash_client: FakeUnsplashClient
) -> None:
    container.token_storage.token = "tok"
    unsplash_client.pages[1] = [photo_payload("a")]
    client = _client(container)
    client.post("/feed/next")

    assert client.post("/feed/reset").status_code == 200
    assert client.get("/feed").json()["photos"] == []
    assert container.photo_cache.get_cached_photos_count() == 1

    assert client.delete("/feed/cache").status_code == 200
    assert container.photo_cache.get_cached_photos_count() == 0


def test_like_and_unlike(
    container: AppContainer, unsplash_client: FakeUnsplashClient
) -> None:
    container.token_storage.token = "tok"
    unsplash_client.pages[1] = [photo_payload("a")]
    client = _client(container)
    client.post("/feed/next")

    liked = client.post("/photos/a/like")
    unliked = client.delete("/photos/a/like")

    assert liked.status_code == 200
    assert liked.json()["is_liked"] is True
    assert unliked.json()["is_liked"] is False
    assert container.photo_cache.fetch_all_cached_photos()[0].is_liked is False


def test_like_without_token(container: AppContainer) -> None:
    response = _client(container).post("/photos/a/like")

    assert response.status_code == 401


def test_logout(container: AppContainer) -> None:
    container.token_storage.token = "tok"

    response = _client(container).post("/logout")

    assert response.status_code == 200
    assert container.token_storage.token is None


def test_cancelled_request_does_not_cancel_feed_load(
    container: AppContainer, unsplash_client: FakeUnsplashClient
) -> None:
    container.token_storage.token = "tok"
    unsplash_client.pages[1] = [photo_payload("a")]
    app = create_app(container)
    endpoint = next(
        route.endpoint
        for route in app.routes
        if isinstance(route, APIRoute) and route.path == "/feed/next"
    )
    request = Request({"type": "http", "app": app})
    service = container.feed_sync_service

    async def scenario():
        unsplash_client.gate = asyncio.Event()
        loaded = asyncio.Event()
        service.subscribe(lambda event: loaded.set())
        request_task = asyncio.ensure_future(endpoint(request))
        await asyncio.sleep(0)
        request_task.cancel()
        await asyncio.gather(request_task, return_exceptions=True)
        still_loading = service.is_loading
        unsplash_client.gate.set()
        await loaded.wait()
        return request_task, still_loading

    request_task, still_loading = asyncio.run(scenario())

    assert request_task.cancelled() is True
    assert still_loading is True
    assert [photo.id for photo in service.photos] == ["a"]
    assert service.last_loaded_page == 1
