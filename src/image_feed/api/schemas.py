"""Pydantic models for the HTTP surface."""

from datetime import datetime

from pydantic import BaseModel

from image_feed.domain.photos import Photo
from image_feed.domain.profile import Profile, ProfileImage


class PhotoUrlsResponse(BaseModel):
    small: str
    regular: str
    full: str


class PhotoResponse(BaseModel):
    id: str
    created_at: datetime | None
    width: int
    height: int
    color: str
    is_liked: bool
    description: str
    urls: PhotoUrlsResponse

    @classmethod
    def from_photo(cls, photo: Photo) -> "PhotoResponse":
        return cls(
            id=photo.id,
            created_at=photo.created_at,
            width=photo.width,
            height=photo.height,
            color=photo.color,
            is_liked=photo.is_liked,
            description=photo.description,
            urls=PhotoUrlsResponse(
                small=photo.urls.small,
                regular=photo.urls.regular,
                full=photo.urls.full,
            ),
        )


class FeedPageResponse(BaseModel):
    photos: list[PhotoResponse]
    last_loaded_page: int


class FeedStateResponse(BaseModel):
    photos: list[PhotoResponse]
    last_loaded_page: int
    is_initial_load_completed: bool
    is_loading: bool


class AuthorizeUrlResponse(BaseModel):
    url: str


class TokenRequest(BaseModel):
    """Either the raw code or the full redirect URL carrying it."""

    code: str | None = None
    redirect_url: str | None = None


class ProfileImageResponse(BaseModel):
    small: str
    medium: str
    large: str


class ProfileResponse(BaseModel):
    username: str
    name: str
    login_name: str
    bio: str | None
    avatar: ProfileImageResponse | None = None

    @classmethod
    def from_profile(
        cls, profile: Profile, image: ProfileImage | None
    ) -> "ProfileResponse":
        avatar = None
        if image is not None:
            avatar = ProfileImageResponse(
                small=image.small, medium=image.medium, large=image.large
            )
        return cls(
            username=profile.username,
            name=profile.name,
            login_name=profile.login_name,
            bio=profile.bio,
            avatar=avatar,
        )
