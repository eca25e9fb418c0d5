"""OAuth authorization-code flow helpers."""

import logging
from dataclasses import dataclass, field

import httpx

from image_feed.adapters.oauth_client import OAuthClient
from image_feed.config import Settings
from image_feed.services.decoding import decode_access_token
from image_feed.services.single_flight import KeyedSingleFlight
from image_feed.services.storage import TokenStorage

_NATIVE_REDIRECT_PATH = "/oauth/authorize/native"

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthHelper:
    """Builds the authorize URL and extracts codes from redirects."""

    settings: Settings

    def authorize_url(self) -> str:
        """Return the URL the user opens to grant access."""
        url = httpx.URL(f"{self.settings.auth_base_url.rstrip('/')}/oauth/authorize")
        return str(
            url.copy_merge_params(
                {
                    "client_id": self.settings.unsplash_access_key,
                    "redirect_uri": self.settings.redirect_uri,
                    "response_type": "code",
                    "scope": self.settings.access_scope,
                }
            )
        )

    def code_from_url(self, url: str) -> str | None:
        """Return the authorization code carried by a native redirect URL."""
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL:
            return None
        if parsed.path != _NATIVE_REDIRECT_PATH:
            return None
        return parsed.params.get("code") or None


@dataclass
class OAuthService:
    """Exchanges authorization codes for bearer tokens."""

    client: OAuthClient
    token_storage: TokenStorage
    _flight: KeyedSingleFlight = field(
        default_factory=lambda: KeyedSingleFlight("oauth token"), init=False, repr=False
    )

    async def fetch_oauth_token(self, code: str) -> str:
        """Exchange a code, store the resulting token and return it."""
        payload = await self._flight.run(code, lambda: self.client.exchange_code(code))
        token = decode_access_token(payload)
        self.token_storage.token = token
        _logger.info("Stored new OAuth token")
        return token
