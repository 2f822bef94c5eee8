"""
Payload codecs.

The broker stores opaque bytes; turning application objects into those
bytes and back is the client's job.
"""

import json
import pickle
from abc import ABC, abstractmethod
from typing import Any


class SerializationError(Exception):
    """Raised when an object cannot be encoded or a payload cannot be decoded."""
    pass


class Serializer(ABC):
    """Converts application objects to payload bytes and back."""

    @abstractmethod
    def serialize(self, obj: Any) -> bytes:
        """
        Encode an object.

        Raises:
            SerializationError: If the object cannot be encoded
        """

    @abstractmethod
    def deserialize(self, data: bytes) -> Any:
        """
        Decode a payload.

        Raises:
            SerializationError: If the payload cannot be decoded
        """


class PickleSerializer(Serializer):
    """Encodes arbitrary picklable Python objects."""

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL):
        self.protocol = protocol

    def serialize(self, obj: Any) -> bytes:
        try:
            return pickle.dumps(obj, protocol=self.protocol)
        except (pickle.PicklingError, TypeError, AttributeError,
                ValueError, RecursionError) as e:
            raise SerializationError(f"Object of type {type(obj).__name__} is not serializable: {e}") from e

    def deserialize(self, data: bytes) -> Any:
        try:
            return pickle.loads(data)
        except (pickle.UnpicklingError, EOFError, TypeError, AttributeError,
                ImportError, IndexError, KeyError, ValueError) as e:
            raise SerializationError(f"Payload is not a pickled object: {e}") from e


class JsonSerializer(Serializer):
    """Encodes JSON-compatible values as UTF-8 JSON."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def serialize(self, obj: Any) -> bytes:
        try:
            return json.dumps(obj).encode(self.encoding)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Object of type {type(obj).__name__} is not serializable: {e}") from e

    def deserialize(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode(self.encoding))
        except (UnicodeDecodeError, ValueError) as e:
            raise SerializationError(f"Payload is not valid JSON: {e}") from e
