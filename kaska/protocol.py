"""
Kaska broker contract and wire messages.

Defines the operations every broker handle offers (``KaskaService``), the
request/response messages that carry them over gRPC, and the JSON codec
used as the gRPC serializer pair. Payload bytes travel as base64 strings.
"""

import base64
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Type, TypeVar

DEFAULT_SERVICE_NAME = "KaskaSrv"

M = TypeVar("M")


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(text: str) -> bytes:
    return base64.b64decode(text.encode("ascii"), validate=True)


@dataclass(frozen=True)
class TopicOffset:
    """
    A (topic, offset) pair.

    Sent in poll requests to mean "read from here" and returned by
    end-offset queries to mean "current log length".

    Attributes:
        topic: Topic name
        offset: Record offset
    """
    topic: str
    offset: int

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"topic": self.topic, "offset": self.offset}

    @classmethod
    def from_dict(cls, data: dict) -> "TopicOffset":
        """Create from dictionary."""
        return cls(topic=str(data["topic"]), offset=int(data["offset"]))


class KaskaService(ABC):
    """
    Operations exposed by a Kaska broker.

    Implemented in-process by ``LogStore`` and remotely by ``RemoteBroker``.
    Missing topics and out-of-range offsets are reported through return
    values (False, None, omission), never raised.
    """

    @abstractmethod
    def create_topics(self, topics: Iterable[str]) -> int:
        """Create the topics that do not exist yet; return how many were created."""

    @abstractmethod
    def topic_list(self) -> Set[str]:
        """Return the names of all known topics."""

    @abstractmethod
    def send(self, topic: str, payload: bytes) -> bool:
        """Append a payload to a topic; False if the topic does not exist."""

    @abstractmethod
    def get(self, topic: str, offset: int) -> Optional[bytes]:
        """Return the payload at offset, or None if the topic or offset is unknown."""

    @abstractmethod
    def end_offsets(self, topics: Iterable[str]) -> List[TopicOffset]:
        """Return the log length of each requested topic that exists."""

    @abstractmethod
    def poll(self, offsets: Iterable[TopicOffset]) -> Dict[str, List[bytes]]:
        """Return, per topic with new data, all payloads from the requested offset on."""


@dataclass
class CreateTopicsRequest:
    topics: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"topics": list(self.topics)}

    @classmethod
    def from_dict(cls, data: dict) -> "CreateTopicsRequest":
        return cls(topics=[str(t) for t in data["topics"]])


@dataclass
class CreateTopicsResponse:
    created: int

    def to_dict(self) -> dict:
        return {"created": self.created}

    @classmethod
    def from_dict(cls, data: dict) -> "CreateTopicsResponse":
        return cls(created=int(data["created"]))


@dataclass
class TopicListRequest:
    """TopicList RPC request; carries no fields."""

    def to_dict(self) -> dict:
        return {}

    @classmethod
    def from_dict(cls, data: dict) -> "TopicListRequest":
        return cls()


@dataclass
class TopicListResponse:
    topics: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"topics": list(self.topics)}

    @classmethod
    def from_dict(cls, data: dict) -> "TopicListResponse":
        return cls(topics=[str(t) for t in data["topics"]])


@dataclass
class SendRequest:
    topic: str
    payload: bytes

    def to_dict(self) -> dict:
        return {"topic": self.topic, "payload": _b64encode(self.payload)}

    @classmethod
    def from_dict(cls, data: dict) -> "SendRequest":
        return cls(topic=str(data["topic"]), payload=_b64decode(data["payload"]))


@dataclass
class SendResponse:
    success: bool

    def to_dict(self) -> dict:
        return {"success": self.success}

    @classmethod
    def from_dict(cls, data: dict) -> "SendResponse":
        return cls(success=bool(data["success"]))


@dataclass
class GetRequest:
    topic: str
    offset: int

    def to_dict(self) -> dict:
        return {"topic": self.topic, "offset": self.offset}

    @classmethod
    def from_dict(cls, data: dict) -> "GetRequest":
        return cls(topic=str(data["topic"]), offset=int(data["offset"]))


@dataclass
class GetResponse:
    """
    Get RPC response.

    Attributes:
        payload: Record payload, or None when the topic or offset is unknown
    """
    payload: Optional[bytes] = None

    def to_dict(self) -> dict:
        if self.payload is None:
            return {"payload": None}
        return {"payload": _b64encode(self.payload)}

    @classmethod
    def from_dict(cls, data: dict) -> "GetResponse":
        payload = data.get("payload")
        return cls(payload=None if payload is None else _b64decode(payload))


@dataclass
class EndOffsetsRequest:
    topics: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"topics": list(self.topics)}

    @classmethod
    def from_dict(cls, data: dict) -> "EndOffsetsRequest":
        return cls(topics=[str(t) for t in data["topics"]])


@dataclass
class EndOffsetsResponse:
    offsets: List[TopicOffset] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"offsets": [o.to_dict() for o in self.offsets]}

    @classmethod
    def from_dict(cls, data: dict) -> "EndOffsetsResponse":
        return cls(offsets=[TopicOffset.from_dict(o) for o in data["offsets"]])


@dataclass
class PollRequest:
    offsets: List[TopicOffset] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"offsets": [o.to_dict() for o in self.offsets]}

    @classmethod
    def from_dict(cls, data: dict) -> "PollRequest":
        return cls(offsets=[TopicOffset.from_dict(o) for o in data["offsets"]])


@dataclass
class PollResponse:
    """
    Poll RPC response.

    Attributes:
        records: Payloads per topic, in offset order. Topics with nothing
            new are absent.
    """
    records: Dict[str, List[bytes]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "records": {
                topic: [_b64encode(p) for p in payloads]
                for topic, payloads in self.records.items()
            }
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PollResponse":
        return cls(
            records={
                str(topic): [_b64decode(p) for p in payloads]
                for topic, payloads in data["records"].items()
            }
        )


def encode_message(message: Any) -> bytes:
    """Serialize a wire message to JSON bytes."""
    return json.dumps(message.to_dict(), separators=(",", ":")).encode("utf-8")


def decode_message(message_type: Type[M], data: bytes) -> M:
    """
    Deserialize JSON bytes into a wire message.

    Raises:
        ValueError: If the data is not a valid message of this type
    """
    try:
        document = json.loads(data.decode("utf-8"))
        if not isinstance(document, dict):
            raise ValueError("message must be a JSON object")
        return message_type.from_dict(document)
    except (KeyError, TypeError, AttributeError, UnicodeDecodeError) as e:
        raise ValueError(f"Invalid {message_type.__name__}: {e}") from e


def decoder(message_type: Type[M]):
    """Build a gRPC deserializer for a message type."""
    def _decode(data: bytes) -> M:
        return decode_message(message_type, data)
    return _decode
