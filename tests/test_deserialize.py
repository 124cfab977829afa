"""Tests for hitstream.deserialize module."""

import pytest
from pydantic import BaseModel

from hitstream.deserialize import DictDeserializer, ModelDeserializer
from hitstream.exceptions import DecodeError


class LogLine(BaseModel):
    message: str
    level: str = "info"


class TestModelDeserializer:
    """Tests for pydantic-backed deserialization."""

    def test_valid_payload(self):
        """A valid source becomes a model instance."""
        line = ModelDeserializer(LogLine).to_element({"message": "disk full", "level": "error"})

        assert line == LogLine(message="disk full", level="error")

    def test_invalid_payload_raises_decode_error(self):
        """Validation failures become DecodeError."""
        with pytest.raises(DecodeError) as exc_info:
            ModelDeserializer(LogLine).to_element({"level": "error"})

        assert "LogLine" in str(exc_info.value)

    def test_missing_payload_raises_decode_error(self):
        """A match without source can't be decoded."""
        with pytest.raises(DecodeError):
            ModelDeserializer(LogLine).to_element(None)


class TestDictDeserializer:
    """Tests for the pass-through deserializer."""

    def test_returns_payload(self):
        """The source is returned unchanged."""
        assert DictDeserializer().to_element({"a": 1}) == {"a": 1}

    def test_missing_payload_raises_decode_error(self):
        """A missing source raises DecodeError."""
        with pytest.raises(DecodeError):
            DictDeserializer().to_element(None)
