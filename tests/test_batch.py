"""Tests for hitstream.batch and hitstream.request modules."""

import pytest

from hitstream.batch import Batch, Match
from hitstream.request import SearchRequest


class TestMatch:
    """Tests for Match.from_hit."""

    def test_from_hit(self):
        """All hit metadata is carried over."""
        match = Match.from_hit({
            "_index": "logs",
            "_id": "a",
            "_score": None,
            "_source": {"message": "hello"},
            "sort": [1704067200000, 17],
        })

        assert match.id == "a"
        assert match.index == "logs"
        assert match.source == {"message": "hello"}
        assert match.sort == (1704067200000, 17)
        assert match.score is None

    def test_from_hit_without_sort(self):
        """Hits from unsorted requests have empty sort values."""
        match = Match.from_hit({"_id": "a", "_score": 1.5})

        assert match.sort == ()
        assert match.source is None
        assert match.score == 1.5

    def test_is_immutable(self):
        """Matches can't be modified."""
        match = Match(id="a")

        with pytest.raises(AttributeError):
            match.id = "b"


class TestBatch:
    """Tests for Batch.from_response."""

    def test_from_search_response(self):
        """Hits, scroll id and total are parsed."""
        batch = Batch.from_response({
            "_scroll_id": "s-1",
            "hits": {
                "total": {"value": 25, "relation": "eq"},
                "hits": [{"_id": "a"}, {"_id": "b"}],
            },
        })

        assert [m.id for m in batch] == ["a", "b"]
        assert len(batch) == 2
        assert batch.scroll_id == "s-1"
        assert batch.total == 25
        assert batch.last.id == "b"

    def test_integer_total(self):
        """Older clusters report total as a plain integer."""
        batch = Batch.from_response({"hits": {"total": 3, "hits": []}})

        assert batch.total == 3

    def test_empty_response(self):
        """A response without hits is an empty batch."""
        batch = Batch.from_response({"hits": {"hits": []}})

        assert len(batch) == 0
        assert batch.last is None
        assert batch.scroll_id is None
        assert batch.total is None


class TestSearchRequest:
    """Tests for SearchRequest body rendering."""

    def test_minimal_body(self):
        """A bare request only carries size and _source."""
        assert SearchRequest(index="logs").to_body(10) == {"size": 10, "_source": True}

    def test_full_body(self):
        """Query, sort, from and search_after are rendered."""
        request = SearchRequest(
            index="logs",
            query={"term": {"level": "error"}},
            sort=[{"timestamp": "asc"}],
            source=["message"],
        )

        body = request.to_body(5, from_=20, search_after=(1704067200000, 3))

        assert body == {
            "size": 5,
            "_source": ["message"],
            "query": {"term": {"level": "error"}},
            "sort": [{"timestamp": "asc"}],
            "from": 20,
            "search_after": [1704067200000, 3],
        }

    def test_to_body_doesnt_share_state(self):
        """Rendering a body never mutates the request."""
        request = SearchRequest(index="logs", sort=["n"])

        body = request.to_body(5)
        body["sort"].append("_doc")

        assert request.sort == ("n",)

    def test_sort_fields(self):
        """Field names are read from string and dict clauses."""
        request = SearchRequest(index="logs", sort=["a", {"b": "desc"}, {"_doc": "asc"}])

        assert request.sort_fields() == ["a", "b", "_doc"]

    def test_with_sort_returns_copy(self):
        """with_sort appends to a copy."""
        request = SearchRequest(index="logs", sort=["a"])

        extended = request.with_sort({"_doc": "asc"})

        assert extended.sort == ("a", {"_doc": "asc"})
        assert request.sort == ("a",)
