"""LazySearchSequence: pull-based iteration over a paged remote search."""

from __future__ import annotations

import logging
import sys
import threading
from concurrent.futures import CancelledError, Future
from typing import Callable, Iterator, Optional

from hitstream.batch import Batch, Match
from hitstream.exceptions import TransportError
from hitstream.fetchers import BatchFetcher

logger = logging.getLogger(__name__)

_EMPTY = Batch()


class LazySearchSequence:
    """
    Ordered, lazy sequence of matches, loaded one batch at a time.

    Holds the current batch, a position in it and at most one pending
    fetch. As soon as a non-empty batch arrives the request for the next
    one is submitted, so the network round-trip overlaps with the
    consumer working through the current batch. Pulling only blocks when
    the current batch is used up.

    The first empty batch ends the sequence. The fetcher's close() runs
    exactly once: on exhaustion, on a fetch failure, or on close(),
    whichever comes first.

    One consumer at a time: advance() and close() are serialized by a
    lock, but interleaving two readers would split the matches between
    them.

    Example:
        fetcher = CursorFetcher(client, SearchRequest(index="logs"), size=500)
        with LazySearchSequence(fetcher) as matches:
            for match in matches:
                print(match.id)
    """

    def __init__(self, fetcher: BatchFetcher):
        self._fetcher = fetcher
        self._lock = threading.Lock()
        self._batch: Batch = _EMPTY
        self._position = 0
        self._pending: Optional[Future[Batch]] = None
        self._started = False
        self._closed = False

    @property
    def fetcher(self) -> BatchFetcher:
        return self._fetcher

    @property
    def closed(self) -> bool:
        return self._closed

    def advance(self, action: Callable[[Match], None]) -> bool:
        """
        Pass the next match to action.

        Args:
            action: Called with exactly one match, outside the sequence lock

        Returns:
            True if a match was delivered, False if the sequence is
            exhausted (it is closed by then)

        Raises:
            TransportError: If fetching a batch failed; the sequence is
                closed before the error propagates
        """
        match = self._next_match()
        if match is None:
            return False
        action(match)
        return True

    def try_split(self) -> None:
        """Remote paging is sequential: never splittable."""
        return None

    def estimate_size(self) -> int:
        """The total is not tracked, so report it as unbounded."""
        return sys.maxsize

    def close(self) -> None:
        """Stop the sequence and release remote resources. Idempotent."""
        with self._lock:
            self._close_locked()

    def __iter__(self) -> Iterator[Match]:
        return self

    def __next__(self) -> Match:
        match = self._next_match()
        if match is None:
            raise StopIteration
        return match

    def __enter__(self) -> "LazySearchSequence":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else ("open" if self._started else "new")
        return f"LazySearchSequence({self._fetcher!r}, {state})"

    # -------------------------------------------------------------------------
    # Internals (called with self._lock held)
    # -------------------------------------------------------------------------

    def _next_match(self) -> Optional[Match]:
        with self._lock:
            if not self._started and not self._closed:
                self._started = True
                self._submit(self._fetcher.start)

            while True:
                if self._position < len(self._batch):
                    match = self._batch.matches[self._position]
                    self._position += 1
                    self._fetcher.on_match_observed(match)
                    return match

                if self._pending is None:
                    self._close_locked()
                    return None

                if not self._load_next_batch():
                    self._close_locked()
                    return None

    def _load_next_batch(self) -> bool:
        pending, self._pending = self._pending, None
        try:
            batch = pending.result()
        except CancelledError as e:
            self._close_locked()
            raise TransportError(
                "Batch request was cancelled (was the client closed?)"
            ) from e
        except Exception:
            self._close_locked()
            raise

        self._batch = batch
        self._position = 0
        self._fetcher.on_batch_received(batch)
        if not batch.matches:
            logger.debug("%r: received empty batch, exhausted", self)
            return False

        self._submit(self._fetcher.fetch_next, batch)
        return True

    def _submit(self, fetch: Callable[..., Future[Batch]], *args) -> None:
        try:
            self._pending = fetch(*args)
        except Exception:
            self._close_locked()
            raise

    def _close_locked(self) -> None:
        if self._closed:
            return
        self._closed = True
        pending, self._pending = self._pending, None
        self._batch = _EMPTY
        self._position = 0
        logger.debug("%r: closing", self)
        self._fetcher.close(pending)
