"""Errors raised while talking to the remote photo API."""


class FeedError(Exception):
    """Base class for failures of remote feed operations."""


class TransportError(FeedError):
    """The request never produced an HTTP response."""


class HttpStatusError(FeedError):
    """The remote answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        message = f"HTTP {status_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DecodeError(FeedError):
    """The remote payload did not match the expected schema."""


class MissingTokenError(FeedError):
    """No bearer token is available."""


class DuplicateRequestError(FeedError):
    """An identical request is already in flight."""


class RequestSupersededError(FeedError):
    """The request was cancelled in favour of a newer one."""
