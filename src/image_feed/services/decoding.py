"""Validation of raw Unsplash payloads into domain models."""

import logging
from datetime import datetime

import httpx

from image_feed.domain.errors import DecodeError
from image_feed.domain.photos import Photo, PhotoUrls
from image_feed.domain.profile import Profile, ProfileImage

_logger = logging.getLogger(__name__)


def decode_photo(payload: object) -> Photo:
    """Build a Photo from one API photo record or raise DecodeError."""
    record = _require_mapping(payload, "photo")
    urls = _require_mapping(record.get("urls"), "photo urls")
    return Photo(
        id=_require_str(record, "id"),
        created_at=_parse_created_at(record.get("created_at")),
        width=_require_dimension(record, "width"),
        height=_require_dimension(record, "height"),
        color=_require_str(record, "color"),
        is_liked=bool(record.get("liked_by_user") or False),
        description=_optional_str(record.get("description")),
        urls=PhotoUrls(
            small=_require_url(urls, "small"),
            regular=_require_url(urls, "regular"),
            full=_require_url(urls, "full"),
        ),
    )


def decode_photo_page(payload: object) -> list[Photo]:
    """Decode a page of photo records, skipping malformed ones."""
    if not isinstance(payload, list):
        raise DecodeError(f"Expected a list of photos, got {type(payload).__name__}")
    photos: list[Photo] = []
    for index, item in enumerate(payload):
        try:
            photos.append(decode_photo(item))
        except DecodeError as exc:
            _logger.warning(
                "Skipping malformed photo record at index %s: %s", index, exc
            )
    return photos


def decode_like_result(payload: object) -> Photo:
    """Decode the {"photo": {...}} envelope returned by like endpoints."""
    envelope = _require_mapping(payload, "like result")
    return decode_photo(envelope.get("photo"))


def decode_access_token(payload: object) -> str:
    """Extract the access token from an OAuth token response."""
    body = _require_mapping(payload, "token response")
    return _require_str(body, "access_token")


def decode_profile(payload: object) -> Profile:
    """Build a Profile from the /me payload."""
    record = _require_mapping(payload, "profile")
    username = _require_str(record, "username")
    first_name = _optional_str(record.get("first_name"))
    last_name = _optional_str(record.get("last_name"))
    bio = record.get("bio")
    return Profile(
        username=username,
        name=f"{first_name} {last_name}".strip(),
        login_name=f"@{username}",
        bio=bio if isinstance(bio, str) else None,
    )


def decode_profile_image(payload: object) -> ProfileImage:
    """Build a ProfileImage from the /users/{username} payload."""
    record = _require_mapping(payload, "user")
    images = _require_mapping(record.get("profile_image"), "profile_image")
    return ProfileImage(
        small=_require_url(images, "small"),
        medium=_require_url(images, "medium"),
        large=_require_url(images, "large"),
    )


def _require_mapping(value: object, label: str) -> dict[str, object]:
    if not isinstance(value, dict):
        raise DecodeError(f"Expected {label} object, got {type(value).__name__}")
    return value


def _require_str(record: dict[str, object], key: str) -> str:
    value = record.get(key)
    if not isinstance(value, str) or not value:
        raise DecodeError(f"Missing or invalid '{key}'")
    return value


def _optional_str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _require_dimension(record: dict[str, object], key: str) -> int:
    value = record.get(key)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise DecodeError(f"Invalid '{key}': {value!r}")
    return value


def _require_url(record: dict[str, object], key: str) -> str:
    value = _require_str(record, key)
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as exc:
        raise DecodeError(f"Invalid URL for '{key}': {value}") from exc
    if not url.is_absolute_url or url.scheme not in {"http", "https"}:
        raise DecodeError(f"URL for '{key}' is not absolute: {value}")
    return value


def _parse_created_at(value: object) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        _logger.debug("Ignoring unparseable created_at %r", value)
        return None
    return parsed
