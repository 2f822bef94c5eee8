"""Shared fixtures for Kaska tests."""

import pytest

from kaska.broker.server import BrokerServer
from kaska.broker.store import LogStore
from kaska.client.remote import RemoteBroker


@pytest.fixture
def store():
    """Empty in-memory log store."""
    return LogStore()


@pytest.fixture
def broker_server(store):
    """Running broker serving the store fixture on a free local port."""
    server = BrokerServer(store=store, host="127.0.0.1", port=0, max_workers=4)
    server.start()
    yield server
    server.stop(grace_period=None)


@pytest.fixture
def remote_broker(broker_server):
    """Remote handle connected to broker_server."""
    broker = RemoteBroker("127.0.0.1", broker_server.port, request_timeout_ms=5000)
    broker.wait_until_ready(timeout=5.0)
    yield broker
    broker.close()
