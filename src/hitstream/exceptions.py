"""Exception hierarchy for hitstream."""


class HitstreamError(Exception):
    """Base exception for all hitstream errors."""
    pass


class TransportError(HitstreamError):
    """
    A remote call failed: network error or rejected request.

    Raised out of the iteration that was waiting on the fetch. The
    sequence is closed afterwards and cannot be resumed.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(TransportError):
    """
    The search cluster rejected the credentials (HTTP 401/403).

    Common causes:
    - Invalid HITSTREAM_API_KEY
    - Wrong HITSTREAM_USERNAME / HITSTREAM_PASSWORD
    - Token service disabled on the cluster (token_auth=True)
    """
    pass


class RateLimitError(TransportError):
    """
    Too many requests (HTTP 429).

    The retry_after attribute indicates how many seconds to wait.
    Requests are never retried automatically.
    """

    def __init__(self, message: str, retry_after: int = 60):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class QueryRejectedError(TransportError):
    """
    The cluster rejected the search request (HTTP 400).

    Usually a malformed query or sort clause.
    """
    pass


class OffsetLimitExceeded(QueryRejectedError):
    """
    An offset page went past the index's max_result_window.

    Switch to the cursor or sort_key strategy for deep result sets.
    """
    pass


class CursorExpiredError(TransportError):
    """
    The scroll context is gone (HTTP 404 on a scroll request).

    The consumer took longer than the scroll time-to-live between two
    batches, or the context was released on the server.
    """
    pass


class DecodeError(HitstreamError):
    """A single match could not be turned into an element."""

    def __init__(self, message: str, match_id: str | None = None):
        super().__init__(message)
        self.match_id = match_id


class CleanupFailure(HitstreamError):
    """
    Releasing a scroll context failed.

    Only ever logged: the scroll time-to-live bounds the leak.
    """

    def __init__(self, message: str, scroll_id: str | None = None):
        super().__init__(message)
        self.scroll_id = scroll_id
