"""Match and Batch value types built from search responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Match:
    """
    One search hit.

    Attributes:
        id: Document identifier (_id)
        index: Name of the index the hit came from (_index)
        source: Document source payload (_source), None when not fetched
        sort: Sort values of the hit, empty when the request had no sort
        score: Relevance score, None when sorting disables scoring
    """

    id: Optional[str]
    index: Optional[str] = None
    source: Optional[dict] = field(default=None, compare=False)
    sort: tuple = ()
    score: Optional[float] = field(default=None, compare=False)

    @classmethod
    def from_hit(cls, hit: dict) -> "Match":
        return cls(
            id=hit.get("_id"),
            index=hit.get("_index"),
            source=hit.get("_source"),
            sort=tuple(hit.get("sort") or ()),
            score=hit.get("_score"),
        )


@dataclass(frozen=True)
class Batch:
    """
    One page of matches plus what is needed to request the next page.

    An empty batch means the result set is exhausted.

    Attributes:
        matches: Hits in the order the cluster returned them
        scroll_id: Scroll context token, only set for scrolling requests
        total: Total hit count reported by the cluster, if tracked
    """

    matches: tuple[Match, ...] = ()
    scroll_id: Optional[str] = None
    total: Optional[int] = None

    def __len__(self) -> int:
        return len(self.matches)

    def __iter__(self):
        return iter(self.matches)

    @property
    def last(self) -> Optional[Match]:
        return self.matches[-1] if self.matches else None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "Batch":
        """
        Build a batch from a _search or _search/scroll response body.

        Args:
            data: Decoded JSON response

        Returns:
            Batch with one Match per entry of hits.hits
        """
        hits = data.get("hits") or {}
        total = hits.get("total")
        if isinstance(total, dict):
            total = total.get("value")
        return cls(
            matches=tuple(Match.from_hit(hit) for hit in hits.get("hits") or ()),
            scroll_id=data.get("_scroll_id"),
            total=total,
        )
