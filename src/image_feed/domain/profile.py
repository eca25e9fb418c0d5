"""Domain models for the signed-in user's profile."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Profile:
    """Profile details shown for the signed-in user."""

    username: str
    name: str
    login_name: str
    bio: str | None


@dataclass(frozen=True)
class ProfileImage:
    """Avatar URLs in three sizes."""

    small: str
    medium: str
    large: str
