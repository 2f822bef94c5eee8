"""Broker log store and its gRPC server."""

from kaska.broker.server import BrokerServer
from kaska.broker.store import LogStore

__all__ = ["BrokerServer", "LogStore"]
