"""Client for Kaska brokers."""

from kaska.client.client import KaskaClient, Record
from kaska.client.remote import RemoteBroker
from kaska.client.serialization import (
    JsonSerializer,
    PickleSerializer,
    SerializationError,
    Serializer,
)

__all__ = [
    "KaskaClient",
    "Record",
    "RemoteBroker",
    "Serializer",
    "PickleSerializer",
    "JsonSerializer",
    "SerializationError",
]
