"""Shared httpx request helper."""

import logging

import httpx

from image_feed.domain.errors import DecodeError, HttpStatusError, TransportError

_logger = logging.getLogger(__name__)

_MAX_DETAIL_LENGTH = 200


async def request_json(
    http_client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    timeout: float,
    **kwargs: object,
) -> object:
    """Send a request and return the decoded JSON body.

    Raises TransportError, HttpStatusError or DecodeError.
    """
    try:
        response = await http_client.request(method, url, timeout=timeout, **kwargs)
    except httpx.HTTPError as exc:
        _logger.warning("%s %s failed: %s", method, url, exc)
        raise TransportError(f"{method} {url} failed: {exc}") from exc
    if not response.is_success:
        _logger.warning("%s %s returned HTTP %s", method, url, response.status_code)
        raise HttpStatusError(response.status_code, response.text[:_MAX_DETAIL_LENGTH])
    try:
        return response.json()
    except ValueError as exc:
        raise DecodeError(f"{method} {url} returned a non-JSON body") from exc
