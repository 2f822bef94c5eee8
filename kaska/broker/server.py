"""
Broker gRPC server implementation.

Exposes a LogStore as the KaskaSrv gRPC service. Methods are registered
through a generic handler, with JSON request/response messages defined in
kaska.protocol, so no generated stubs are needed.
"""

from concurrent import futures
from typing import Callable, Optional, Type

import grpc

from kaska.broker.store import LogStore
from kaska.protocol import (
    DEFAULT_SERVICE_NAME,
    CreateTopicsRequest,
    CreateTopicsResponse,
    EndOffsetsRequest,
    EndOffsetsResponse,
    GetRequest,
    GetResponse,
    PollRequest,
    PollResponse,
    SendRequest,
    SendResponse,
    TopicListRequest,
    TopicListResponse,
    decode_message,
    encode_message,
)
from kaska.utils.logging import get_logger

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 100 * 1024 * 1024  # 100MB


class BrokerServiceImpl:
    """Implementation of the KaskaSrv gRPC service."""

    def __init__(self, store: LogStore):
        """
        Initialize service implementation.

        Args:
            store: Log store backing every call
        """
        self.store = store

    def _decode(self, message_type: Type, data: bytes, context: grpc.ServicerContext):
        try:
            return decode_message(message_type, data)
        except ValueError as e:
            logger.warning("Malformed request", message=message_type.__name__, error=str(e))
            context.abort(grpc.StatusCode.INVALID_ARGUMENT, str(e))

    def CreateTopics(self, data: bytes, context: grpc.ServicerContext) -> CreateTopicsResponse:
        request = self._decode(CreateTopicsRequest, data, context)
        logger.debug("CreateTopics request", topics=request.topics)
        return CreateTopicsResponse(created=self.store.create_topics(request.topics))

    def TopicList(self, data: bytes, context: grpc.ServicerContext) -> TopicListResponse:
        self._decode(TopicListRequest, data, context)
        return TopicListResponse(topics=sorted(self.store.topic_list()))

    def Send(self, data: bytes, context: grpc.ServicerContext) -> SendResponse:
        request = self._decode(SendRequest, data, context)
        return SendResponse(success=self.store.send(request.topic, request.payload))

    def Get(self, data: bytes, context: grpc.ServicerContext) -> GetResponse:
        request = self._decode(GetRequest, data, context)
        return GetResponse(payload=self.store.get(request.topic, request.offset))

    def EndOffsets(self, data: bytes, context: grpc.ServicerContext) -> EndOffsetsResponse:
        request = self._decode(EndOffsetsRequest, data, context)
        return EndOffsetsResponse(offsets=self.store.end_offsets(request.topics))

    def Poll(self, data: bytes, context: grpc.ServicerContext) -> PollResponse:
        request = self._decode(PollRequest, data, context)
        return PollResponse(records=self.store.poll(request.offsets))

    def handler(self, service_name: str = DEFAULT_SERVICE_NAME) -> grpc.GenericRpcHandler:
        """
        Build the generic handler registering every method under a service name.

        Args:
            service_name: gRPC service name clients resolve

        Returns:
            Generic RPC handler
        """
        def unary(behavior: Callable) -> grpc.RpcMethodHandler:
            return grpc.unary_unary_rpc_method_handler(
                behavior,
                request_deserializer=None,
                response_serializer=encode_message,
            )

        return grpc.method_handlers_generic_handler(
            service_name,
            {
                "CreateTopics": unary(self.CreateTopics),
                "TopicList": unary(self.TopicList),
                "Send": unary(self.Send),
                "Get": unary(self.Get),
                "EndOffsets": unary(self.EndOffsets),
                "Poll": unary(self.Poll),
            },
        )


class BrokerServer:
    """
    Broker gRPC server.

    Serves one LogStore to any number of concurrent clients, one worker
    thread per inbound call.
    """

    def __init__(
        self,
        store: Optional[LogStore] = None,
        host: str = "localhost",
        port: int = 1099,
        service_name: str = DEFAULT_SERVICE_NAME,
        max_workers: int = 10,
    ):
        """
        Initialize broker server.

        Args:
            store: Log store to serve (creates an empty one if None)
            host: Host to bind to
            port: Port to bind to (0 picks a free port)
            service_name: gRPC service name to register
            max_workers: Size of the request thread pool
        """
        self.store = store if store is not None else LogStore()
        self.host = host
        self.port = port
        self.service_name = service_name
        self.max_workers = max_workers

        self._server: Optional[grpc.Server] = None
        self._running = False

        logger.info(
            "BrokerServer initialized",
            host=host,
            port=port,
            service_name=service_name,
        )

    def start(self) -> None:
        """
        Start serving.

        Raises:
            RuntimeError: If the address cannot be bound
        """
        if self._running:
            logger.warning("Broker server already running")
            return

        server = grpc.server(
            futures.ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="kaska-rpc",
            ),
            options=[
                ("grpc.max_send_message_length", MAX_MESSAGE_LENGTH),
                ("grpc.max_receive_message_length", MAX_MESSAGE_LENGTH),
            ],
        )
        server.add_generic_rpc_handlers(
            (BrokerServiceImpl(self.store).handler(self.service_name),)
        )

        address = f"{self.host}:{self.port}"
        bound_port = server.add_insecure_port(address)
        if bound_port == 0:
            raise RuntimeError(f"Failed to bind broker to {address}")

        server.start()

        self._server = server
        self.port = bound_port
        self._running = True

        logger.info(
            "Broker server started",
            endpoint=self.endpoint(),
            service_name=self.service_name,
        )

    def stop(self, grace_period: Optional[float] = 5.0) -> None:
        """
        Stop the broker server.

        Args:
            grace_period: Seconds in-flight calls get to finish
        """
        if not self._running:
            return

        logger.info("Stopping broker server", endpoint=self.endpoint())

        self._running = False
        self._server.stop(grace_period).wait()

        logger.info("Broker server stopped", endpoint=self.endpoint())

    def wait_for_termination(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the server stops.

        Returns:
            True if the timeout elapsed before the server stopped
        """
        if self._server is None:
            return False
        return self._server.wait_for_termination(timeout)

    def is_running(self) -> bool:
        """Check if server is running."""
        return self._running

    def endpoint(self) -> str:
        """Endpoint string (host:port)."""
        return f"{self.host}:{self.port}"
