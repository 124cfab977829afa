"""Tests for hitstream._utils.dataframe module."""

import pandas as pd

from hitstream.batch import Match
from hitstream._utils.dataframe import hits_to_dataframe


class TestHitsToDataframe:
    """Tests for hits_to_dataframe function."""

    def test_converts_matches_to_dataframe(self):
        """One row per match, _id first."""
        matches = [
            Match(id="a", source={"level": "info", "n": 1}),
            Match(id="b", source={"level": "error", "n": 2}),
        ]

        df = hits_to_dataframe(matches)

        assert isinstance(df, pd.DataFrame)
        assert len(df) == 2
        assert list(df.columns) == ["_id", "level", "n"]
        assert df["_id"].tolist() == ["a", "b"]

    def test_flattens_nested_sources(self):
        """Nested objects become dotted columns."""
        df = hits_to_dataframe([Match(id="a", source={"host": {"name": "web-1"}})])

        assert df["host.name"].iloc[0] == "web-1"

    def test_includes_index_when_requested(self):
        """include_index adds an _index column."""
        df = hits_to_dataframe([Match(id="a", index="logs-1", source={})], include_index=True)

        assert df["_index"].iloc[0] == "logs-1"

    def test_handles_missing_source(self):
        """Matches fetched without source still get a row."""
        df = hits_to_dataframe([Match(id="a"), Match(id="b")])

        assert df["_id"].tolist() == ["a", "b"]

    def test_handles_empty_input(self):
        """Returns empty DataFrame for empty input."""
        df = hits_to_dataframe([])

        assert isinstance(df, pd.DataFrame)
        assert len(df) == 0

    def test_handles_generator_input(self):
        """Works with generator input."""
        def gen():
            yield Match(id="a", source={"x": 1})
            yield Match(id="b", source={"x": 2})

        df = hits_to_dataframe(gen())

        assert len(df) == 2
