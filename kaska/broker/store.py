"""
In-memory topic log store for the broker.

Holds every topic's append-only record log for the lifetime of the broker
process. Nothing is persisted; a restarted broker starts empty.
"""

import threading
from typing import Dict, Iterable, List, Optional, Set

from kaska.protocol import KaskaService, TopicOffset
from kaska.utils.logging import get_logger

logger = get_logger(__name__)


class LogStore(KaskaService):
    """
    Authoritative store of all topic logs.

    A topic maps to a list of opaque payloads; a payload's index in that
    list is its offset. Topics are only created through ``create_topics``
    and are never removed.

    All operations run under one exclusive lock covering every topic, so
    callers observe a single total order of appends and reads and never
    see a partially applied append.
    """

    def __init__(self):
        self._topics: Dict[str, List[bytes]] = {}
        self._lock = threading.Lock()

        logger.info("Initialized log store")

    def create_topics(self, topics: Iterable[str]) -> int:
        """
        Create topics that do not exist yet.

        Args:
            topics: Topic names; duplicates are counted once

        Returns:
            Number of topics newly created
        """
        created = 0
        with self._lock:
            for name in set(topics):
                if name not in self._topics:
                    self._topics[name] = []
                    created += 1
                    logger.info("Created topic", topic=name)
        return created

    def topic_list(self) -> Set[str]:
        with self._lock:
            return set(self._topics)

    def send(self, topic: str, payload: bytes) -> bool:
        """
        Append a payload to a topic.

        Args:
            topic: Topic name
            payload: Record payload

        Returns:
            True if appended, False if the topic does not exist

        Raises:
            TypeError: If payload is not bytes-like
        """
        if not isinstance(payload, (bytes, bytearray, memoryview)):
            raise TypeError(f"payload must be bytes-like, not {type(payload).__name__}")
        payload = bytes(payload)

        with self._lock:
            log = self._topics.get(topic)
            if log is None:
                logger.debug("Send to unknown topic", topic=topic)
                return False
            log.append(payload)
            offset = len(log) - 1

        logger.debug("Appended record", topic=topic, offset=offset, size=len(payload))
        return True

    def get(self, topic: str, offset: int) -> Optional[bytes]:
        """
        Read a single record.

        Args:
            topic: Topic name
            offset: Record offset

        Returns:
            Record payload, or None if the topic does not exist or the
            offset is outside the log
        """
        with self._lock:
            log = self._topics.get(topic)
            if log is None or offset < 0 or offset >= len(log):
                return None
            return log[offset]

    def end_offsets(self, topics: Iterable[str]) -> List[TopicOffset]:
        """
        Get the end offset (log length) of each requested topic.

        Unknown topics are left out of the result.

        Args:
            topics: Topic names

        Returns:
            One TopicOffset per existing topic, in request order
        """
        with self._lock:
            return [
                TopicOffset(topic, len(self._topics[topic]))
                for topic in topics
                if topic in self._topics
            ]

    def poll(self, offsets: Iterable[TopicOffset]) -> Dict[str, List[bytes]]:
        """
        Read everything appended at or after each requested offset.

        Topics that do not exist or have nothing at or after the requested
        offset are omitted from the result. Returns immediately with what
        the logs hold at call time.

        Args:
            offsets: Starting position per topic

        Returns:
            Payloads per topic, in offset order
        """
        result: Dict[str, List[bytes]] = {}
        with self._lock:
            for request in offsets:
                log = self._topics.get(request.topic)
                if log is not None and 0 <= request.offset < len(log):
                    result[request.topic] = log[request.offset:]

        if result:
            logger.debug(
                "Polled records",
                topics=sorted(result),
                records=sum(len(p) for p in result.values()),
            )
        return result

    def __len__(self) -> int:
        with self._lock:
            return len(self._topics)

    def __contains__(self, topic: object) -> bool:
        with self._lock:
            return topic in self._topics
