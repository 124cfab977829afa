"""SearchClient - main entry point for hitstream."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Optional
from urllib.parse import quote

import httpx

from hitstream.auth import TokenManager, basic_auth, static_auth_headers
from hitstream.batch import Batch
from hitstream.config import SearchSettings
from hitstream.exceptions import (
    AuthenticationError,
    CursorExpiredError,
    OffsetLimitExceeded,
    QueryRejectedError,
    RateLimitError,
    TransportError,
)
from hitstream.fetchers import FetchStrategy
from hitstream.request import SearchRequest
from hitstream.session import SearchSession
from hitstream._utils.loop import EventLoopThread

logger = logging.getLogger(__name__)

_RESULT_WINDOW_MARKERS = ("Result window is too large", "max_result_window")


class SearchClient:
    """
    Client for a search cluster's REST API.

    Reads configuration from environment variables (HITSTREAM_*) automatically.
    All HTTP traffic runs on an event loop in a background thread; the
    submit_* methods return futures, the plain methods block, and the
    *_async methods are the coroutines behind both.

    Example:
        with SearchClient() as client:
            request = SearchRequest(index="logs", query={"match_all": {}})
            for match in client.session(request, page_size=500):
                print(match.id)

    Attributes:
        settings: SearchSettings instance with connection configuration
    """

    def __init__(self, settings: Optional[SearchSettings] = None):
        """
        Initialize the search client.

        Args:
            settings: Optional SearchSettings instance. If not provided,
                     settings are loaded from environment variables.
        """
        self.settings = settings or SearchSettings()
        self._token_manager = TokenManager(self.settings)
        self._runner = EventLoopThread()
        self._client: Optional[httpx.AsyncClient] = None

    def __enter__(self) -> "SearchClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP connection pool and stop the I/O thread."""
        if self._client is not None:
            self._runner.run(self._client.aclose())
            self._client = None
        self._runner.stop()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.base_url,
                timeout=self.settings.request_timeout,
                auth=basic_auth(self.settings),
            )
        return self._client

    async def _get_headers(self) -> dict:
        """Get request headers with credentials."""
        headers = {"Content-Type": "application/json"}
        if self.settings.token_auth and self.settings.api_key is None:
            token = await self._token_manager.get_token(self._get_client())
            headers["Authorization"] = f"Bearer {token}"
        else:
            headers.update(static_auth_headers(self.settings))
        return headers

    # -------------------------------------------------------------------------
    # Public API: Sessions
    # -------------------------------------------------------------------------

    def session(
        self,
        request: SearchRequest,
        strategy: FetchStrategy | str = FetchStrategy.CURSOR,
        page_size: Optional[int] = None,
        scroll_ttl: Optional[str] = None,
        add_tie_breaker: Optional[bool] = None,
        from_: int = 0,
    ) -> SearchSession:
        """
        Create a session streaming every match of a request.

        Args:
            request: What to search
            strategy: "cursor" (default), "offset" or "sort_key"
            page_size: Matches per batch (default: settings.page_size)
            scroll_ttl: Scroll context time-to-live (default: settings.scroll_ttl)
            add_tie_breaker: Append the tie-breaker sort for "sort_key"
                (default: settings.add_tie_breaker)
            from_: First offset for "offset"

        Returns:
            SearchSession; nothing is requested until it is iterated

        Example:
            session = client.session(SearchRequest(index="logs"), page_size=1000)
            ids = [match.id for match in session]
        """
        return SearchSession(
            self,
            request,
            strategy=strategy,
            page_size=page_size,
            scroll_ttl=scroll_ttl,
            add_tie_breaker=add_tie_breaker,
            from_=from_,
        )

    # -------------------------------------------------------------------------
    # Public API: Futures (used by the batch fetchers)
    # -------------------------------------------------------------------------

    def submit_search(
        self, index: str, body: dict, params: Optional[dict] = None
    ) -> "Future[Batch]":
        """Submit a _search request; the future resolves to a Batch."""
        return self._runner.submit(self.search_async(index, body, params))

    def submit_scroll(self, scroll_id: str, ttl: str) -> "Future[Batch]":
        """Submit a scroll continuation; the future resolves to a Batch."""
        return self._runner.submit(self.scroll_async(scroll_id, ttl))

    def release_scroll(self, scroll_id: str) -> "Future[bool]":
        """Submit a clear-scroll request; the future resolves to its success flag."""
        return self._runner.submit(self.clear_scroll_async(scroll_id))

    # -------------------------------------------------------------------------
    # Public API: Sync methods (convenience wrappers)
    # -------------------------------------------------------------------------

    def search(self, index: str, body: dict, params: Optional[dict] = None) -> Batch:
        """
        Run a single search request and return its batch.

        Args:
            index: Index name or pattern
            body: Request body
            params: Extra query-string parameters

        Returns:
            Batch with the hits of that one page
        """
        return self.submit_search(index, body, params).result()

    def count(self, index: str, query: Optional[dict] = None) -> int:
        """
        Count the documents matching a query.

        Args:
            index: Index name or pattern
            query: Query DSL object, None counts all documents

        Returns:
            Number of matching documents
        """
        return self._runner.run(self.count_async(index, query))

    def get(self, index: str, doc_id: str) -> Optional[dict]:
        """
        Fetch one document's source by id.

        Returns:
            The _source dictionary, or None if the document doesn't exist
        """
        return self._runner.run(self.get_async(index, doc_id))

    def exists(self, index: str, doc_id: str) -> bool:
        """Return True if a document with that id exists."""
        return self._runner.run(self.exists_async(index, doc_id))

    # -------------------------------------------------------------------------
    # Public API: Async methods
    # -------------------------------------------------------------------------

    async def search_async(
        self, index: str, body: dict, params: Optional[dict] = None
    ) -> Batch:
        """Async version of search()."""
        response = await self._request(
            "POST", f"/{quote(index, safe=',*')}/_search", json=body, params=params
        )
        return Batch.from_response(_json_body(response))

    async def scroll_async(self, scroll_id: str, ttl: str) -> Batch:
        """
        Fetch the next batch of a scroll context.

        Raises:
            CursorExpiredError: If the scroll context no longer exists
        """
        response = await self._request(
            "POST",
            "/_search/scroll",
            json={"scroll": ttl, "scroll_id": scroll_id},
            expired_on_404=True,
        )
        return Batch.from_response(_json_body(response))

    async def clear_scroll_async(self, scroll_id: str) -> bool:
        """
        Release a scroll context.

        Returns:
            True if the cluster freed the context, False if it reported
            failure or the context was already gone
        """
        client = self._get_client()
        headers = await self._get_headers()
        try:
            response = await client.request(
                "DELETE",
                "/_search/scroll",
                json={"scroll_id": [scroll_id]},
                headers=headers,
            )
        except httpx.RequestError as e:
            raise TransportError(f"Clear scroll request failed: {e}") from e

        if response.status_code == 404:
            return False
        _raise_for_status(response)
        return bool(_json_body(response).get("succeeded", False))

    async def count_async(self, index: str, query: Optional[dict] = None) -> int:
        """Async version of count()."""
        body = {"query": query} if query is not None else None
        response = await self._request(
            "POST", f"/{quote(index, safe=',*')}/_count", json=body
        )
        return _json_body(response)["count"]

    async def get_async(self, index: str, doc_id: str) -> Optional[dict]:
        """Async version of get()."""
        response = await self._request(
            "GET", f"/{quote(index)}/_doc/{quote(doc_id, safe='')}", missing_ok=True
        )
        if response.status_code == 404:
            return None
        data = _json_body(response)
        if not data.get("found", False):
            return None
        return data.get("_source")

    async def exists_async(self, index: str, doc_id: str) -> bool:
        """Async version of exists()."""
        response = await self._request(
            "HEAD", f"/{quote(index)}/_doc/{quote(doc_id, safe='')}", missing_ok=True
        )
        return response.status_code == 200

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        missing_ok: bool = False,
        expired_on_404: bool = False,
    ) -> httpx.Response:
        """
        Send a request and map error statuses to hitstream exceptions.

        Args:
            method: HTTP method
            path: Path relative to the cluster URL
            json: Request body
            params: Query-string parameters
            missing_ok: Return 404 responses instead of raising
            expired_on_404: Raise CursorExpiredError on 404

        Raises:
            TransportError: Or one of its subclasses, on any failure
        """
        client = self._get_client()
        headers = await self._get_headers()

        try:
            response = await client.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.RequestError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if response.status_code == 404:
            if missing_ok:
                return response
            if expired_on_404:
                raise CursorExpiredError(
                    f"Scroll context expired or missing: {response.text}",
                    status_code=404,
                )

        if response.status_code == 401:
            self._token_manager.invalidate()
        _raise_for_status(response)
        return response


def _json_body(response: httpx.Response) -> dict:
    """Decode a successful response's JSON object, as TransportError if it isn't one."""
    try:
        data = response.json()
    except ValueError as e:
        raise TransportError(
            f"Response to {response.request.method} {response.request.url.path} "
            f"is not JSON: {response.text[:200]}",
            status_code=response.status_code,
        ) from e
    if not isinstance(data, dict):
        raise TransportError(
            f"Expected a JSON object from {response.request.url.path}, "
            f"got {type(data).__name__}",
            status_code=response.status_code,
        )
    return data


def _raise_for_status(response: httpx.Response) -> None:
    """Raise the hitstream exception matching an error response."""
    status = response.status_code
    if status < 400:
        return

    if status in (401, 403):
        raise AuthenticationError(
            f"Request rejected: {status} - {response.text}", status_code=status
        )
    if status == 429:
        retry_after = int(response.headers.get("Retry-After", 60))
        raise RateLimitError("Rate limit exceeded", retry_after=retry_after)
    if status == 400:
        if any(marker in response.text for marker in _RESULT_WINDOW_MARKERS):
            raise OffsetLimitExceeded(
                f"Offset past max_result_window: {response.text}", status_code=400
            )
        raise QueryRejectedError(f"Invalid request: {response.text}", status_code=400)

    raise TransportError(
        f"Request failed: {status} - {response.text}", status_code=status
    )
