"""
Batch fetchers: the three ways of asking the cluster for the next page.

Each fetcher issues remote calls through a RemoteClient and returns
futures, so the sequence can keep one request in flight while the
consumer works through the current batch.

    offset    from/size paging. No server state, capped by max_result_window.
    cursor    Scroll contexts. Snapshot of the result set, held on the
              server until released or expired.
    sort_key  search_after paging. No server state, no depth limit, needs
              a total sort order (tie-breaker).
"""

from __future__ import annotations

import logging
from concurrent.futures import CancelledError, Future
from enum import Enum
from typing import Optional, Protocol

from hitstream.batch import Batch, Match
from hitstream.exceptions import CleanupFailure, TransportError
from hitstream.request import SearchRequest

logger = logging.getLogger(__name__)


class FetchStrategy(str, Enum):
    """
    Continuation strategies for paging through a result set.

    Attributes:
        OFFSET: from/size pagination
        CURSOR: scroll contexts
        SORT_KEY: search_after on the last sort values
    """
    OFFSET = "offset"
    CURSOR = "cursor"
    SORT_KEY = "sort_key"


class RemoteClient(Protocol):
    """What fetchers need from the search client."""

    def submit_search(
        self, index: str, body: dict, params: Optional[dict] = None
    ) -> "Future[Batch]":
        ...

    def submit_scroll(self, scroll_id: str, ttl: str) -> "Future[Batch]":
        ...

    def release_scroll(self, scroll_id: str) -> "Future[bool]":
        ...


class BatchFetcher:
    """
    Issues the request for each batch of one search.

    Subclasses implement start() and fetch_next(); the observation hooks
    and close() default to doing nothing beyond cancelling a fetch that
    is still in flight.

    Attributes:
        client: RemoteClient used to submit requests
        request: Query descriptor sent with every batch
        size: Matches requested per batch
    """

    strategy: FetchStrategy

    def __init__(self, client: RemoteClient, request: SearchRequest, size: int = 10):
        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")
        self.client = client
        self.request = request
        self.size = size

    def start(self) -> "Future[Batch]":
        """Submit the request for the first batch."""
        raise NotImplementedError

    def fetch_next(self, previous: Batch) -> "Future[Batch]":
        """Submit the request for the batch following a non-empty one."""
        raise NotImplementedError

    def on_batch_received(self, batch: Batch) -> None:
        """Called with every batch as soon as it arrives, empty ones included."""

    def on_match_observed(self, match: Match) -> None:
        """Called with every match right before the consumer sees it."""

    def close(self, pending: "Optional[Future[Batch]]") -> None:
        """
        Release whatever the search holds. Called once per sequence.

        Args:
            pending: The fetch still in flight, if the consumer stopped early
        """
        if pending is not None:
            pending.cancel()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(index={self.request.index!r}, size={self.size})"


class OffsetFetcher(BatchFetcher):
    """
    from/size pagination.

    from_ advances by the length of every batch received. Deep pages are
    rejected by the cluster past max_result_window (OffsetLimitExceeded).
    """

    strategy = FetchStrategy.OFFSET

    def __init__(
        self,
        client: RemoteClient,
        request: SearchRequest,
        size: int = 10,
        from_: int = 0,
    ):
        super().__init__(client, request, size)
        if from_ < 0:
            raise ValueError(f"from_ must not be negative, got {from_}")
        self.from_ = from_

    def start(self) -> "Future[Batch]":
        return self._submit()

    def fetch_next(self, previous: Batch) -> "Future[Batch]":
        self.from_ += len(previous)
        return self._submit()

    def _submit(self) -> "Future[Batch]":
        logger.debug("%r: requesting from=%d", self, self.from_)
        body = self.request.to_body(self.size, from_=self.from_)
        return self.client.submit_search(self.request.index, body)


class CursorFetcher(BatchFetcher):
    """
    Scroll-context pagination.

    The cluster keeps a point-in-time view of the result set for ttl
    between two requests. The scroll id may change with every response;
    the most recent one is always used, and released on close.
    """

    strategy = FetchStrategy.CURSOR

    def __init__(
        self,
        client: RemoteClient,
        request: SearchRequest,
        size: int = 10,
        ttl: str = "1m",
    ):
        super().__init__(client, request, size)
        self.ttl = ttl
        self.scroll_id: Optional[str] = None

    def start(self) -> "Future[Batch]":
        logger.debug("%r: opening scroll context (ttl=%s)", self, self.ttl)
        body = self.request.to_body(self.size)
        return self.client.submit_search(
            self.request.index, body, params={"scroll": self.ttl}
        )

    def fetch_next(self, previous: Batch) -> "Future[Batch]":
        if self.scroll_id is None:
            raise TransportError("Search response did not include a scroll id")
        return self.client.submit_scroll(self.scroll_id, self.ttl)

    def on_batch_received(self, batch: Batch) -> None:
        if batch.scroll_id is not None:
            self.scroll_id = batch.scroll_id

    def close(self, pending: "Optional[Future[Batch]]") -> None:
        if pending is not None:
            # the in-flight response may carry a newer scroll id
            try:
                self.on_batch_received(pending.result())
            except CancelledError:
                logger.debug("%r: in-flight scroll request was cancelled", self)
            except Exception as e:
                logger.debug("%r: in-flight scroll request failed on close: %s", self, e)

        if self.scroll_id is None:
            return

        try:
            self._release()
        except CleanupFailure as e:
            logger.warning("%r: %s", self, e)

    def _release(self) -> None:
        scroll_id = self.scroll_id
        try:
            succeeded = self.client.release_scroll(scroll_id).result()
        except Exception as e:
            raise CleanupFailure(
                f"clear scroll request for scroll id [{scroll_id}] failed: {e!r}",
                scroll_id=scroll_id,
            ) from e
        if not succeeded:
            raise CleanupFailure(
                f"clear scroll request for scroll id [{scroll_id}] did not succeed",
                scroll_id=scroll_id,
            )


class SortKeyFetcher(BatchFetcher):
    """
    search_after pagination.

    Each request resumes after the sort values of the last match of the
    batch before it. Unless the sort already ends in the tie-breaker
    field, that field is appended so the order is total; without it,
    matches sharing sort values can be skipped or repeated at a batch
    boundary.

    last_sort_values holds the sort values of the last match the consumer
    actually saw. Pass it as SearchRequest.search_after to resume a
    search that was abandoned part-way through a batch.
    """

    strategy = FetchStrategy.SORT_KEY

    def __init__(
        self,
        client: RemoteClient,
        request: SearchRequest,
        size: int = 10,
        add_tie_breaker: bool = True,
        tie_breaker_field: str = "_doc",
    ):
        if add_tie_breaker and tie_breaker_field not in request.sort_fields():
            request = request.with_sort({tie_breaker_field: "asc"})
        if not request.sort:
            raise ValueError("sort_key paging needs at least one sort clause")
        super().__init__(client, request, size)
        self.add_tie_breaker = add_tie_breaker
        self.sort_values: Optional[tuple] = request.search_after
        self.last_sort_values: Optional[tuple] = request.search_after

    def start(self) -> "Future[Batch]":
        return self._submit()

    def fetch_next(self, previous: Batch) -> "Future[Batch]":
        last = previous.last
        if last is None or not last.sort:
            raise TransportError(
                f"Match {last.id if last else None!r} has no sort values to resume after"
            )
        self.sort_values = last.sort
        return self._submit()

    def on_match_observed(self, match: Match) -> None:
        if match.sort:
            self.last_sort_values = match.sort

    def _submit(self) -> "Future[Batch]":
        logger.debug("%r: requesting search_after=%s", self, self.sort_values)
        body = self.request.to_body(self.size, search_after=self.sort_values)
        return self.client.submit_search(self.request.index, body)


def create_fetcher(
    strategy: FetchStrategy | str,
    client: RemoteClient,
    request: SearchRequest,
    size: int = 10,
    scroll_ttl: str = "1m",
    add_tie_breaker: bool = True,
    tie_breaker_field: str = "_doc",
    from_: int = 0,
) -> BatchFetcher:
    """
    Build the fetcher for a strategy.

    Args:
        strategy: FetchStrategy member or its value ("offset", "cursor", "sort_key")
        client: RemoteClient used to submit requests
        request: Query descriptor
        size: Matches per batch
        scroll_ttl: Scroll context time-to-live (cursor only)
        add_tie_breaker: Append the tie-breaker sort (sort_key only)
        tie_breaker_field: Field used as tie-breaker (sort_key only)
        from_: Initial offset (offset only)

    Raises:
        ValueError: If the strategy is unknown
    """
    strategy = FetchStrategy(strategy)
    if strategy is FetchStrategy.OFFSET:
        return OffsetFetcher(client, request, size=size, from_=from_)
    if strategy is FetchStrategy.CURSOR:
        return CursorFetcher(client, request, size=size, ttl=scroll_ttl)
    return SortKeyFetcher(
        client,
        request,
        size=size,
        add_tie_breaker=add_tie_breaker,
        tie_breaker_field=tie_breaker_field,
    )
