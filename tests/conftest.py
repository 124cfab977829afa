"""Shared pytest fixtures for hitstream tests."""

from concurrent.futures import Future

import pytest

from hitstream.batch import Batch, Match
from hitstream.config import SearchSettings
from hitstream.exceptions import CursorExpiredError, TransportError


BASE_URL = "http://search.test:9200"


def completed(value=None, error=None) -> Future:
    """Return an already-resolved future."""
    future: Future = Future()
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(value)
    return future


class FakeRemote:
    """
    In-memory stand-in for SearchClient's future-returning API.

    Emulates from/size, scroll and search_after over a list of documents
    and records every call, so tests can count fetches and releases.
    Documents are dicts with an "id" key; the rest is the source.
    """

    def __init__(self, docs, rotate_scroll_ids=False, release_result=True, **settings):
        self.docs = [dict(doc) for doc in docs]
        self.rotate_scroll_ids = rotate_scroll_ids
        self.release_result = release_result
        self.settings = SearchSettings(**settings)
        self.searches = []
        self.scrolls = []
        self.released = []
        self.fail_at = None
        self.release_error = None
        self._scroll_counter = 0
        self._scroll_state = {}

    @property
    def fetch_count(self) -> int:
        return len(self.searches) + len(self.scrolls)

    # -- RemoteClient ------------------------------------------------------

    def submit_search(self, index, body, params=None):
        self.searches.append({"index": index, "body": body, "params": params})
        if self._should_fail():
            return completed(error=TransportError("connection reset"))

        ordered = self._ordered(body.get("sort", []))
        if "search_after" in body:
            after = tuple(body["search_after"])
            ordered = [(key, doc) for key, doc in ordered if key > after]

        size = body["size"]
        if params and "scroll" in params:
            scroll_id = self._new_scroll_id()
            page = ordered[:size]
            self._scroll_state[scroll_id] = (ordered[size:], size)
            return completed(self._batch(index, page, body, scroll_id))

        start = body.get("from", 0)
        return completed(self._batch(index, ordered[start:start + size], body))

    def submit_scroll(self, scroll_id, ttl):
        self.scrolls.append({"scroll_id": scroll_id, "ttl": ttl})
        if self._should_fail():
            return completed(error=TransportError("connection reset"))
        if scroll_id not in self._scroll_state:
            return completed(error=CursorExpiredError("No search context found", status_code=404))

        remaining, size = self._scroll_state.pop(scroll_id)
        next_id = self._new_scroll_id() if self.rotate_scroll_ids else scroll_id
        self._scroll_state[next_id] = (remaining[size:], size)
        return completed(self._batch("idx", remaining[:size], {}, next_id))

    def release_scroll(self, scroll_id):
        self.released.append(scroll_id)
        if self.release_error is not None:
            return completed(error=self.release_error)
        self._scroll_state.pop(scroll_id, None)
        return completed(self.release_result)

    # -- helpers -----------------------------------------------------------

    def _should_fail(self) -> bool:
        return self.fail_at is not None and self.fetch_count == self.fail_at

    def _new_scroll_id(self) -> str:
        self._scroll_counter += 1
        return f"scroll-{self._scroll_counter}"

    def _ordered(self, sort):
        fields = []
        for clause in sort:
            fields.extend([clause] if isinstance(clause, str) else clause.keys())

        def key(position_doc):
            position, doc = position_doc
            return tuple(position if name == "_doc" else doc[name] for name in fields)

        indexed = list(enumerate(self.docs))
        if fields:
            indexed.sort(key=key)
        return [(key(item), item[1]) for item in indexed]

    @staticmethod
    def _batch(index, page, body, scroll_id=None) -> Batch:
        with_sort = bool(body.get("sort"))
        matches = tuple(
            Match(
                id=doc["id"],
                index=index,
                source={k: v for k, v in doc.items() if k != "id"},
                sort=key if with_sort else (),
            )
            for key, doc in page
        )
        return Batch(matches=matches, scroll_id=scroll_id)


def make_docs(*ids, **fields):
    """Documents with the given ids and an increasing "n" field."""
    return [{"id": doc_id, "n": position, **fields} for position, doc_id in enumerate(ids)]


@pytest.fixture
def settings():
    """Return test settings that don't require a real cluster."""
    return SearchSettings(url=BASE_URL)


@pytest.fixture
def base_url():
    """Base URL for mocked API."""
    return BASE_URL
