"""Turning match payloads into typed elements."""

from __future__ import annotations

from typing import Any, Generic, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError

from hitstream.exceptions import DecodeError

E = TypeVar("E", covariant=True)
M = TypeVar("M", bound=BaseModel)


class Deserializer(Protocol[E]):
    """Turns a document source into an element, or raises DecodeError."""

    def to_element(self, payload: Optional[dict]) -> E:
        ...


class ModelDeserializer(Generic[M]):
    """
    Validates document sources against a pydantic model.

    Example:
        class LogLine(BaseModel):
            message: str
            level: str = "info"

        deserializer = ModelDeserializer(LogLine)
        line = deserializer.to_element({"message": "disk full"})
    """

    def __init__(self, model: Type[M]):
        self.model = model

    def to_element(self, payload: Optional[dict]) -> M:
        if payload is None:
            raise DecodeError(f"No source to build a {self.model.__name__} from")
        try:
            return self.model.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(f"Invalid {self.model.__name__}: {e}") from e


class DictDeserializer:
    """Returns the source as-is; only a missing source fails."""

    def to_element(self, payload: Optional[dict]) -> dict[str, Any]:
        if payload is None:
            raise DecodeError("Match has no source")
        return payload
