"""OAuth token endpoint client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from image_feed.adapters.http import request_json


class OAuthClient(Protocol):
    """Interface for the authorization-code token exchange."""

    async def exchange_code(self, code: str) -> object:
        """Exchange an authorization code and return the raw token payload."""


@dataclass
class HttpxOAuthClient(OAuthClient):
    """HTTPX-backed OAuth client."""

    base_url: str
    client_id: str
    client_secret: str
    redirect_uri: str
    http_client: httpx.AsyncClient
    timeout: float = 10

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        base_url: str,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 10,
    ) -> "HttpxOAuthClient":
        """Create an OAuth client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def exchange_code(self, code: str) -> object:
        """POST /oauth/token with grant_type=authorization_code."""
        return await request_json(
            self.http_client,
            "POST",
            f"{self.base_url}/oauth/token",
            timeout=self.timeout,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "code": code,
                "grant_type": "authorization_code",
            },
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
