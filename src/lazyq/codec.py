from __future__ import annotations

from abc import abstractmethod, ABC
import json
from typing import Any


class MalformedBody(ValueError):
    """A received body could not be decoded."""


# Message attribute which marks a body as encoded, and by which codec
CONTENT_TYPE_ATTRIBUTE = "ContentType"


class Codec(ABC):
    """Codec for message bodies.

    The wire body of a queue message is always text.  Text payloads are sent
    as-is.  Anything else goes through encode, and the message is tagged with
    a ``ContentType`` message attribute holding ``content_type``.  Only bodies
    carrying that tag go through decode on the way back; everything else
    reaches handlers exactly as it was sent.

    If other services consume the same queues they must agree on this format,
    so keep it boring.

    """

    content_type: str

    @abstractmethod
    def encode(self, val: Any) -> str:
        raise NotImplementedError()

    @abstractmethod
    def decode(self, body: str) -> Any:
        raise NotImplementedError()


class JsonCodec(Codec):
    """Compact JSON, the same text ``JSON.stringify`` produces."""

    content_type = "application/json"

    def encode(self, val: Any) -> str:
        try:
            return json.dumps(val, separators=(",", ":"))
        except TypeError as e:
            raise ValueError(f"Cannot encode payload of type {type(val).__name__}") from e

    def decode(self, body: str) -> Any:
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise MalformedBody(f"Invalid JSON message body: {body[:100]!r}") from e
