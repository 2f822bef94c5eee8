"""
Kaska client.

Provides the producer and consumer API on top of a broker handle:
- Topic creation and listing
- Sending application objects through a payload codec
- Client-side subscriptions with per-topic read offsets
- Polling, position and seek
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set

from kaska.client.remote import RemoteBroker
from kaska.client.serialization import PickleSerializer, SerializationError, Serializer
from kaska.protocol import DEFAULT_SERVICE_NAME, KaskaService, TopicOffset
from kaska.utils.config import get_config
from kaska.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Record:
    """
    A record read from a topic.

    Attributes:
        topic: Topic name
        offset: Record offset within the topic
        value: Record payload
    """
    topic: str
    offset: int
    value: bytes


class KaskaClient:
    """
    Producer/consumer client.

    The broker knows nothing about subscriptions: each client keeps its own
    map of subscribed topic to next offset to read, and advances it by the
    number of records every poll returns.

    Example:
        with KaskaClient.connect("localhost", 1099) as client:
            client.create_one_topic("orders")
            client.send("orders", {"id": 1})

            client.subscribe(["orders"])
            for record in client.poll():
                print(record.offset, client.deserialize(record))
    """

    def __init__(
        self,
        broker: KaskaService,
        serializer: Optional[Serializer] = None,
    ):
        """
        Initialize client.

        Args:
            broker: Broker handle (RemoteBroker, or a LogStore in-process)
            serializer: Payload codec (PickleSerializer if None)
        """
        self._broker = broker
        self._serializer = serializer or PickleSerializer()

        self._subscriptions: Dict[str, int] = {}
        self._lock = threading.RLock()

    @classmethod
    def connect(
        cls,
        host: Optional[str] = None,
        port: Optional[int] = None,
        service_name: Optional[str] = None,
        timeout: float = 10.0,
        serializer: Optional[Serializer] = None,
        request_timeout_ms: Optional[int] = None,
    ) -> "KaskaClient":
        """
        Connect to the broker registered under service_name at host:port.

        Connection settings left as None are read from the global config
        (``broker.host``, ``broker.port``, ``broker.service_name`` and
        ``client.request_timeout_ms``).

        Raises:
            grpc.FutureTimeoutError: If the broker cannot be reached in time
        """
        config = get_config()
        if host is None:
            host = config.get("broker.host")
        if port is None:
            port = config.get("broker.port")
        if service_name is None:
            service_name = config.get("broker.service_name", DEFAULT_SERVICE_NAME)
        if request_timeout_ms is None:
            request_timeout_ms = config.get("client.request_timeout_ms")

        broker = RemoteBroker(
            host,
            port,
            service_name=service_name,
            request_timeout_ms=request_timeout_ms,
        )
        try:
            broker.wait_until_ready(timeout)
        except Exception:
            broker.close()
            raise

        return cls(broker, serializer=serializer)

    # Topics

    def create_topics(self, topics: Iterable[str]) -> int:
        """
        Create topics.

        Returns:
            Number of topics the broker newly created
        """
        return self._broker.create_topics(set(topics))

    def create_one_topic(self, topic: str) -> bool:
        """Create a single topic; True if it did not exist before."""
        return self.create_topics({topic}) == 1

    def topic_list(self) -> Set[str]:
        """Names of all topics on the broker."""
        return set(self._broker.topic_list())

    def end_offsets(self, topics: Iterable[str]) -> List[TopicOffset]:
        """Current log length of each requested topic that exists."""
        return self._broker.end_offsets(list(topics))

    # Producing

    def send(self, topic: str, obj: Any) -> bool:
        """
        Serialize an object and append it to a topic.

        Args:
            topic: Topic name
            obj: Application object

        Returns:
            True if appended; False if the topic does not exist or the
            object could not be serialized
        """
        try:
            payload = self._serializer.serialize(obj)
        except SerializationError as e:
            logger.warning("Serialization failed", topic=topic, error=str(e))
            return False

        return self._broker.send(topic, payload)

    def get(self, topic: str, offset: int) -> Optional[Record]:
        """
        Read one record without touching subscriptions.

        Returns:
            The record, or None if the topic or offset does not exist
        """
        payload = self._broker.get(topic, offset)
        if payload is None:
            return None
        return Record(topic, offset, payload)

    def deserialize(self, record: Record) -> Any:
        """
        Decode a record's payload with this client's codec.

        Raises:
            SerializationError: If the payload cannot be decoded
        """
        return self._serializer.deserialize(record.value)

    # Consuming

    def subscribe(self, topics: Iterable[str]) -> int:
        """
        Subscribe to topics, starting at offset 0.

        Topics already subscribed keep their current offset.

        Returns:
            Number of topics newly subscribed
        """
        topics = list(topics)
        added = 0
        with self._lock:
            for topic in topics:
                if topic not in self._subscriptions:
                    self._subscriptions[topic] = 0
                    added += 1

        if added:
            logger.info("Subscribed to topics", topics=topics, added=added)
        return added

    def subscribe_one_topic(self, topic: str) -> bool:
        """Subscribe to a single topic; True if it was not subscribed before."""
        return self.subscribe([topic]) == 1

    def subscription(self) -> Set[str]:
        """Currently subscribed topics."""
        with self._lock:
            return set(self._subscriptions)

    def unsubscribe(self) -> None:
        """Drop all subscriptions."""
        with self._lock:
            self._subscriptions.clear()

        logger.info("Unsubscribed from all topics")

    def position(self, topic: str) -> int:
        """Next offset to read for a topic, or -1 if not subscribed."""
        with self._lock:
            return self._subscriptions.get(topic, -1)

    def seek(self, topic: str, offset: int) -> bool:
        """
        Set the next offset to read for a subscribed topic.

        The offset is not checked against the broker; an offset past the
        end of the log just makes polls return nothing for that topic.

        Returns:
            True if subscribed, False otherwise
        """
        with self._lock:
            if topic not in self._subscriptions:
                return False
            self._subscriptions[topic] = offset

        logger.debug("Seek", topic=topic, offset=offset)
        return True

    def poll(self) -> List[Record]:
        """
        Fetch every record appended to subscribed topics since the last poll.

        Records of one topic are returned in offset order; no order is
        defined across topics.

        Returns:
            New records (empty if nothing is new or nothing is subscribed)
        """
        with self._lock:
            if not self._subscriptions:
                return []

            requests = [
                TopicOffset(topic, offset)
                for topic, offset in self._subscriptions.items()
            ]
            fetched = self._broker.poll(requests)

            records: List[Record] = []
            for topic, payloads in fetched.items():
                if topic not in self._subscriptions:
                    continue
                start = self._subscriptions[topic]
                records.extend(
                    Record(topic, start + i, payload)
                    for i, payload in enumerate(payloads)
                )
                self._subscriptions[topic] = start + len(payloads)

        if records:
            logger.debug("Polled records", count=len(records), topics=sorted(fetched))
        return records

    def close(self) -> None:
        """Release the broker handle."""
        close = getattr(self._broker, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "KaskaClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
