"""SearchSession: one search, one strategy, one guaranteed cleanup."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, Optional

from hitstream.batch import Match
from hitstream.fetchers import FetchStrategy, SortKeyFetcher, create_fetcher
from hitstream.request import SearchRequest
from hitstream.sequence import LazySearchSequence

if TYPE_CHECKING:
    from hitstream.client import SearchClient


class SearchSession:
    """
    Streams every match of a search request with the chosen strategy.

    Nothing is sent to the cluster until the first match is pulled. The
    session is closed, and server-side resources released, on every exit
    path: the results run out, the consumer raises, the session is used
    as a context manager, or the iterating generator is closed or
    garbage-collected.

    Page size, scroll time-to-live and tie-breaker policy default to the
    client's settings.

    Attributes:
        client: SearchClient the batches are fetched with
        request: Query descriptor
        strategy: Continuation strategy
        page_size: Matches per batch

    Example:
        request = SearchRequest(index="logs", sort=[{"timestamp": "asc"}])

        with client.session(request, strategy="sort_key") as session:
            for match in session:
                print(match.id, match.source)
    """

    def __init__(
        self,
        client: "SearchClient",
        request: SearchRequest,
        strategy: FetchStrategy | str = FetchStrategy.CURSOR,
        page_size: Optional[int] = None,
        scroll_ttl: Optional[str] = None,
        add_tie_breaker: Optional[bool] = None,
        from_: int = 0,
    ):
        settings = client.settings
        self.client = client
        self.request = request
        self.strategy = FetchStrategy(strategy)
        self.page_size = page_size if page_size is not None else settings.page_size
        self.scroll_ttl = scroll_ttl if scroll_ttl is not None else settings.scroll_ttl
        self.add_tie_breaker = (
            add_tie_breaker if add_tie_breaker is not None else settings.add_tie_breaker
        )
        self.from_ = from_
        self._sequence: Optional[LazySearchSequence] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def resume_after(self) -> Optional[tuple]:
        """
        Sort values of the last match handed to the consumer.

        Only available with the sort_key strategy. Pass it as
        SearchRequest.search_after to continue an abandoned session.
        """
        if self._sequence is None:
            return None
        fetcher = self._sequence.fetcher
        if isinstance(fetcher, SortKeyFetcher):
            return fetcher.last_sort_values
        return None

    def open(self) -> LazySearchSequence:
        """Return the session's sequence, creating it on first call."""
        if self._sequence is None:
            fetcher = create_fetcher(
                self.strategy,
                self.client,
                self.request,
                size=self.page_size,
                scroll_ttl=self.scroll_ttl,
                add_tie_breaker=self.add_tie_breaker,
                tie_breaker_field=self.client.settings.tie_breaker_field,
                from_=self.from_,
            )
            self._sequence = LazySearchSequence(fetcher)
            if self._closed:
                self._sequence.close()
        return self._sequence

    def close(self) -> None:
        """Close the sequence, releasing remote resources. Idempotent."""
        self._closed = True
        if self._sequence is not None:
            self._sequence.close()

    def __iter__(self) -> Iterator[Match]:
        sequence = self.open()
        try:
            yield from sequence
        finally:
            self.close()

    def __enter__(self) -> "SearchSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"SearchSession(index={self.request.index!r}, "
            f"strategy={self.strategy.value}, page_size={self.page_size})"
        )
