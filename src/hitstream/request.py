"""SearchRequest: the query descriptor shared by every batch of a session."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence, Union

SortSpec = Union[str, dict]


@dataclass(frozen=True)
class SearchRequest:
    """
    What to search and in which order.

    The query is opaque to hitstream and sent unmodified with every batch.

    Attributes:
        index: Index name (or comma-separated names / pattern)
        query: Query DSL object, None matches all documents
        sort: Sort clauses, e.g. ["timestamp", {"_doc": "asc"}]
        source: _source filtering; True fetches the whole document
        search_after: Sort values to resume after (sort_key strategy only)

    Example:
        request = SearchRequest(
            index="logs",
            query={"term": {"level": "error"}},
            sort=[{"timestamp": "desc"}],
        )
    """

    index: str
    query: Optional[dict] = None
    sort: tuple = ()
    source: Union[bool, Sequence[str]] = True
    search_after: Optional[tuple] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "sort", tuple(self.sort))
        if self.search_after is not None:
            object.__setattr__(self, "search_after", tuple(self.search_after))

    def sort_fields(self) -> list[str]:
        """Names of the fields in the sort clauses."""
        names = []
        for clause in self.sort:
            if isinstance(clause, str):
                names.append(clause)
            else:
                names.extend(clause.keys())
        return names

    def with_sort(self, clause: SortSpec) -> "SearchRequest":
        """Return a copy with one more sort clause appended."""
        return replace(self, sort=self.sort + (clause,))

    def to_body(
        self,
        size: int,
        from_: Optional[int] = None,
        search_after: Optional[Sequence[Any]] = None,
    ) -> dict:
        """
        Render the JSON body of a _search request.

        Args:
            size: Number of matches to return
            from_: Offset of the first match (offset paging)
            search_after: Sort values to resume after (sort-key paging)

        Returns:
            Request body dictionary
        """
        body: dict[str, Any] = {"size": size, "_source": self._source_value()}
        if self.query is not None:
            body["query"] = self.query
        if self.sort:
            body["sort"] = list(self.sort)
        if from_ is not None:
            body["from"] = from_
        if search_after is not None:
            body["search_after"] = list(search_after)
        return body

    def _source_value(self) -> Union[bool, list]:
        if isinstance(self.source, bool):
            return self.source
        return list(self.source)
