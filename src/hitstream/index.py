"""SearchIndex: read-only collection view of one index."""

from __future__ import annotations

import logging
from typing import Generic, Iterator, Optional, TypeVar

import pandas as pd

from hitstream.batch import Match
from hitstream.client import SearchClient
from hitstream.deserialize import Deserializer, DictDeserializer
from hitstream.exceptions import DecodeError
from hitstream.fetchers import FetchStrategy
from hitstream.request import SearchRequest
from hitstream._utils.dataframe import hits_to_dataframe

logger = logging.getLogger(__name__)

E = TypeVar("E")


class SearchIndex(Generic[E]):
    """
    An index seen as a lazily streamed collection of elements.

    Matches are turned into elements by the deserializer. A match that
    fails to decode is treated as absent: skipped while streaming, None
    from get().

    Attributes:
        client: SearchClient used for every request
        name: Index name
        deserializer: Turns document sources into elements
        strategy: Continuation strategy for streaming (default: cursor)

    Example:
        logs = SearchIndex(client, "logs", ModelDeserializer(LogLine))

        for line in logs.stream({"term": {"level": "error"}}):
            print(line.message)

        print(logs.count())
    """

    def __init__(
        self,
        client: SearchClient,
        name: str,
        deserializer: Optional[Deserializer[E]] = None,
        strategy: FetchStrategy | str = FetchStrategy.CURSOR,
        sort: tuple = (),
    ):
        self.client = client
        self.name = name
        self.deserializer = deserializer or DictDeserializer()
        self.strategy = FetchStrategy(strategy)
        self.sort = tuple(sort)

    def __repr__(self) -> str:
        return f"SearchIndex({self.name!r})"

    def __iter__(self) -> Iterator[E]:
        return self.stream()

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, doc_id: object) -> bool:
        return isinstance(doc_id, str) and self.contains(doc_id)

    def request(self, query: Optional[dict] = None, source: bool = True) -> SearchRequest:
        """Build the SearchRequest used for streaming this index."""
        return SearchRequest(index=self.name, query=query, sort=self.sort, source=source)

    def stream_matches(
        self, query: Optional[dict] = None, source: bool = True
    ) -> Iterator[Match]:
        """
        Stream raw matches.

        Args:
            query: Query DSL object, None streams the whole index
            source: Fetch document sources

        Yields:
            Match objects in the order the cluster returns them
        """
        yield from self.client.session(self.request(query, source), strategy=self.strategy)

    def stream(self, query: Optional[dict] = None) -> Iterator[E]:
        """
        Stream deserialized elements, skipping matches that fail to decode.

        Yields:
            Elements in match order
        """
        for match in self.stream_matches(query):
            try:
                yield self.deserializer.to_element(match.source)
            except DecodeError as e:
                logger.debug("Skipping match %s in %s: %s", match.id, self.name, e)

    def stream_ids(self, query: Optional[dict] = None) -> Iterator[str]:
        """Stream the ids of matching documents without fetching their sources."""
        for match in self.stream_matches(query, source=False):
            if match.id is not None:
                yield match.id

    def count(self, query: Optional[dict] = None) -> int:
        """Number of documents matching the query (all documents by default)."""
        return self.client.count(self.name, query)

    def get(self, doc_id: str) -> Optional[E]:
        """
        Fetch one element by id.

        Returns:
            The element, or None if it doesn't exist or fails to decode
        """
        payload = self.client.get(self.name, doc_id)
        if payload is None:
            return None
        try:
            return self.deserializer.to_element(payload)
        except DecodeError as e:
            logger.debug("Document %s in %s failed to decode: %s", doc_id, self.name, e)
            return None

    def contains(self, doc_id: str) -> bool:
        """Return True if a document with that id exists."""
        return self.client.exists(self.name, doc_id)

    def to_dataframe(self, query: Optional[dict] = None) -> pd.DataFrame:
        """
        Collect all matches into a DataFrame.

        Handles pagination automatically; the whole result set is loaded
        into memory.

        Returns:
            DataFrame with an '_id' column and one column per source field
        """
        return hits_to_dataframe(self.stream_matches(query))
