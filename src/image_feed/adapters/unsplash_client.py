"""Unsplash REST API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from image_feed.adapters.http import request_json


class UnsplashClient(Protocol):
    """Interface for the authenticated Unsplash endpoints."""

    async def list_photos(self, token: str, page: int, per_page: int) -> object:
        """Return one page of the photo feed as raw JSON."""

    async def like_photo(self, token: str, photo_id: str) -> object:
        """Like a photo and return the raw like envelope."""

    async def unlike_photo(self, token: str, photo_id: str) -> object:
        """Unlike a photo and return the raw like envelope."""

    async def get_me(self, token: str) -> object:
        """Return the signed-in user's profile as raw JSON."""

    async def get_user(self, token: str, username: str) -> object:
        """Return a public user profile as raw JSON."""


@dataclass
class HttpxUnsplashClient(UnsplashClient):
    """HTTPX-backed Unsplash client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 10

    @classmethod
    def create(cls, base_url: str, timeout: float = 10) -> "HttpxUnsplashClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def list_photos(self, token: str, page: int, per_page: int) -> object:
        """GET /photos for one page."""
        return await self._request(
            "GET", "/photos", token, params={"page": page, "per_page": per_page}
        )

    async def like_photo(self, token: str, photo_id: str) -> object:
        """POST /photos/{id}/like."""
        return await self._request("POST", f"/photos/{photo_id}/like", token)

    async def unlike_photo(self, token: str, photo_id: str) -> object:
        """DELETE /photos/{id}/like."""
        return await self._request("DELETE", f"/photos/{photo_id}/like", token)

    async def get_me(self, token: str) -> object:
        """GET /me."""
        return await self._request("GET", "/me", token)

    async def get_user(self, token: str, username: str) -> object:
        """GET /users/{username}."""
        return await self._request("GET", f"/users/{username}", token)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        token: str,
        params: dict[str, object] | None = None,
    ) -> object:
        return await request_json(
            self.http_client,
            method,
            f"{self.base_url}{path}",
            timeout=self.timeout,
            params=params,
            headers={"Authorization": f"Bearer {token}"},
        )
