"""Message codecs translating models to request bodies and back."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TypeVar

from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)


class MessageCodec(ABC):
    """Serialization contract the client relies on.

    Any object providing these three members can be injected, including a
    binary (protobuf) codec maintained outside this package.
    """

    content_type: str

    @abstractmethod
    def encode(self, message: BaseModel) -> bytes:
        ...

    @abstractmethod
    def decode(self, model_type: type[M], data: bytes) -> M:
        ...


class JsonCodec(MessageCodec):
    """Stargate JSON representation."""

    content_type = "application/json"

    def encode(self, message: BaseModel) -> bytes:
        return message.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")

    def decode(self, model_type: type[M], data: bytes) -> M:
        return model_type.model_validate_json(data)
