"""
Remote broker handle.

Implements the KaskaService contract by calling a broker's KaskaSrv gRPC
service. Transport failures are logged and re-raised as grpc.RpcError.
"""

from typing import Dict, Iterable, List, Optional, Set

import grpc

from kaska.protocol import (
    DEFAULT_SERVICE_NAME,
    CreateTopicsRequest,
    CreateTopicsResponse,
    EndOffsetsRequest,
    EndOffsetsResponse,
    GetRequest,
    GetResponse,
    KaskaService,
    PollRequest,
    PollResponse,
    SendRequest,
    SendResponse,
    TopicListRequest,
    TopicListResponse,
    TopicOffset,
    decoder,
    encode_message,
)
from kaska.utils.logging import get_logger

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 100 * 1024 * 1024  # 100MB


class RemoteBroker(KaskaService):
    """
    KaskaService backed by a broker reachable over gRPC.

    Example:
        broker = RemoteBroker("localhost", 1099)
        broker.wait_until_ready(timeout=5.0)
        broker.create_topics(["orders"])
        broker.close()
    """

    def __init__(
        self,
        host: str,
        port: int,
        service_name: str = DEFAULT_SERVICE_NAME,
        request_timeout_ms: int = 30000,
    ):
        """
        Initialize remote broker handle.

        Args:
            host: Broker host
            port: Broker port
            service_name: gRPC service name the broker registered
            request_timeout_ms: Deadline for each call
        """
        self.host = host
        self.port = int(port)
        self.service_name = service_name
        self._timeout_ms = request_timeout_ms

        self._channel = grpc.insecure_channel(
            self.endpoint(),
            options=[
                ("grpc.max_send_message_length", MAX_MESSAGE_LENGTH),
                ("grpc.max_receive_message_length", MAX_MESSAGE_LENGTH),
            ],
        )

        self._create_topics = self._method("CreateTopics", CreateTopicsResponse)
        self._topic_list = self._method("TopicList", TopicListResponse)
        self._send = self._method("Send", SendResponse)
        self._get = self._method("Get", GetResponse)
        self._end_offsets = self._method("EndOffsets", EndOffsetsResponse)
        self._poll = self._method("Poll", PollResponse)

        logger.info(
            "RemoteBroker initialized",
            endpoint=self.endpoint(),
            service_name=service_name,
        )

    def _method(self, name: str, response_type: type):
        return self._channel.unary_unary(
            f"/{self.service_name}/{name}",
            request_serializer=encode_message,
            response_deserializer=decoder(response_type),
        )

    def _call(self, name: str, method, request):
        try:
            return method(request, timeout=self.get_timeout())
        except grpc.RpcError as e:
            logger.error(
                "Broker request failed",
                method=name,
                endpoint=self.endpoint(),
                code=str(e.code()),
                error=e.details(),
            )
            raise

    def endpoint(self) -> str:
        """Endpoint string (host:port)."""
        return f"{self.host}:{self.port}"

    def get_timeout(self) -> float:
        """Get request timeout in seconds."""
        return self._timeout_ms / 1000.0

    def wait_until_ready(self, timeout: Optional[float] = None) -> None:
        """
        Block until the channel to the broker is connected.

        Args:
            timeout: Seconds to wait (defaults to the request timeout)

        Raises:
            grpc.FutureTimeoutError: If the broker is not reachable in time
        """
        timeout = self.get_timeout() if timeout is None else timeout
        try:
            grpc.channel_ready_future(self._channel).result(timeout=timeout)
        except grpc.FutureTimeoutError:
            logger.error("Broker not reachable", endpoint=self.endpoint(), timeout=timeout)
            raise

    def create_topics(self, topics: Iterable[str]) -> int:
        request = CreateTopicsRequest(topics=sorted(set(topics)))
        return self._call("CreateTopics", self._create_topics, request).created

    def topic_list(self) -> Set[str]:
        return set(self._call("TopicList", self._topic_list, TopicListRequest()).topics)

    def send(self, topic: str, payload: bytes) -> bool:
        request = SendRequest(topic=topic, payload=payload)
        return self._call("Send", self._send, request).success

    def get(self, topic: str, offset: int) -> Optional[bytes]:
        request = GetRequest(topic=topic, offset=offset)
        return self._call("Get", self._get, request).payload

    def end_offsets(self, topics: Iterable[str]) -> List[TopicOffset]:
        request = EndOffsetsRequest(topics=list(topics))
        return self._call("EndOffsets", self._end_offsets, request).offsets

    def poll(self, offsets: Iterable[TopicOffset]) -> Dict[str, List[bytes]]:
        request = PollRequest(offsets=list(offsets))
        return self._call("Poll", self._poll, request).records

    def close(self) -> None:
        """Close the channel."""
        self._channel.close()

        logger.info("RemoteBroker closed", endpoint=self.endpoint())
