"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from image_feed.api.schemas import (
    AuthorizeUrlResponse,
    FeedPageResponse,
    FeedStateResponse,
    PhotoResponse,
    ProfileResponse,
    TokenRequest,
)
from image_feed.app_logging import configure_logging
from image_feed.containers import AppContainer
from image_feed.domain.errors import (
    DuplicateRequestError,
    FeedError,
    MissingTokenError,
    RequestSupersededError,
)
from image_feed.domain.events import LoadFailed


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/auth/authorize-url")
    async def authorize_url(request: Request) -> AuthorizeUrlResponse:
        """Return the URL that starts the authorization-code flow."""
        state_container: AppContainer = request.app.state.container
        return AuthorizeUrlResponse(url=state_container.auth_helper.authorize_url())

    @app.post("/auth/token")
    async def exchange_token(body: TokenRequest, request: Request) -> dict[str, str]:
        """Exchange an authorization code for a stored bearer token."""
        state_container: AppContainer = request.app.state.container
        code = body.code
        if not code and body.redirect_url:
            code = state_container.auth_helper.code_from_url(body.redirect_url)
        if not code:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No authorization code provided",
            )
        try:
            await state_container.oauth_service.fetch_oauth_token(code)
        except FeedError as exc:
            logger.warning("Token exchange failed: %s", exc)
            raise _http_error(exc) from exc
        return {"status": "ok"}

    @app.get("/profile")
    async def profile(request: Request) -> ProfileResponse:
        """Return the signed-in user's profile, fetching it when stale."""
        state_container: AppContainer = request.app.state.container
        token = state_container.token_storage.token
        if not token:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
        try:
            current = state_container.profile_service.current_profile()
            if current is None:
                current = await state_container.profile_service.fetch_profile(token)
            image = state_container.profile_image_storage.profile_image
            if image is None:
                image = await state_container.profile_image_service.fetch_profile_image(
                    token, current.username
                )
        except FeedError as exc:
            logger.warning("Profile lookup failed: %s", exc)
            raise _http_error(exc) from exc
        return ProfileResponse.from_profile(current, image)

    @app.get("/feed")
    async def feed_state(request: Request) -> FeedStateResponse:
        """Return everything loaded during this session."""
        service = request.app.state.container.feed_sync_service
        return FeedStateResponse(
            photos=[PhotoResponse.from_photo(photo) for photo in service.photos],
            last_loaded_page=service.last_loaded_page,
            is_initial_load_completed=service.is_initial_load_completed,
            is_loading=service.is_loading,
        )

    @app.post("/feed/next")
    async def feed_next(request: Request) -> FeedPageResponse:
        """Load the next page and return the photos it produced."""
        service = request.app.state.container.feed_sync_service
        task = service.fetch_photos_next_page()
        if task is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A feed load is already in progress",
            )
        try:
            # A dropped request must not cancel the session's load.
            event = await asyncio.shield(task)
        except asyncio.CancelledError:
            current_task = asyncio.current_task()
            if current_task is not None and current_task.cancelling():
                raise
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="The feed was reset during the load",
            ) from None
        if isinstance(event, LoadFailed):
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=event.reason
            )
        return FeedPageResponse(
            photos=[PhotoResponse.from_photo(photo) for photo in event.new_photos],
            last_loaded_page=service.last_loaded_page,
        )

    @app.post("/feed/reset")
    async def feed_reset(request: Request) -> dict[str, str]:
        """Start the feed session over, keeping the cache."""
        request.app.state.container.feed_sync_service.reset()
        return {"status": "ok"}

    @app.delete("/feed/cache")
    async def feed_clear_cache(request: Request) -> dict[str, str]:
        """Empty the photo cache and reset the session."""
        request.app.state.container.feed_sync_service.clear_cache()
        return {"status": "ok"}

    @app.post("/photos/{photo_id}/like")
    async def like_photo(photo_id: str, request: Request) -> PhotoResponse:
        """Like a photo."""
        return await _change_like(request, photo_id, is_like=True)

    @app.delete("/photos/{photo_id}/like")
    async def unlike_photo(photo_id: str, request: Request) -> PhotoResponse:
        """Remove a like from a photo."""
        return await _change_like(request, photo_id, is_like=False)

    @app.post("/logout")
    async def logout(request: Request) -> dict[str, str]:
        """Forget the token, profile and cached feed."""
        request.app.state.container.logout_service.logout()
        return {"status": "ok"}

    return app


async def _change_like(request: Request, photo_id: str, is_like: bool) -> PhotoResponse:
    service = request.app.state.container.feed_sync_service
    try:
        photo = await service.change_like_status(photo_id, is_like)
    except FeedError as exc:
        raise _http_error(exc) from exc
    return PhotoResponse.from_photo(photo)


def _http_error(exc: FeedError) -> HTTPException:
    if isinstance(exc, MissingTokenError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    if isinstance(exc, DuplicateRequestError | RequestSupersededError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
