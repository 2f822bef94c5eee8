"""Tests for the in-memory log store."""

import threading

import pytest

from kaska.broker.store import LogStore
from kaska.protocol import TopicOffset


class TestCreateTopics:
    """Test topic creation and listing."""

    def test_create_new_topic(self, store):
        assert store.create_topics({"orders"}) == 1
        assert store.create_topics({"orders"}) == 0
        assert store.topic_list() == {"orders"}

    def test_duplicates_counted_once(self, store):
        assert store.create_topics(["a", "a", "b"]) == 2
        assert store.topic_list() == {"a", "b"}

    def test_counts_only_new_topics(self, store):
        store.create_topics(["a", "b"])

        assert store.create_topics(["a", "b", "c", "d"]) == 2
        assert store.topic_list() == {"a", "b", "c", "d"}

    def test_empty_input(self, store):
        assert store.create_topics([]) == 0
        assert store.topic_list() == set()
        assert len(store) == 0

    def test_topic_list_is_snapshot(self, store):
        store.create_topics(["a"])
        topics = store.topic_list()

        store.create_topics(["b"])

        assert topics == {"a"}
        assert "b" in store


class TestSendAndGet:
    """Test appends and point reads."""

    def test_send_to_unknown_topic(self, store):
        assert store.send("missing", b"x") is False
        assert "missing" not in store

    def test_send_then_get(self, store):
        store.create_topics(["t"])

        assert store.send("t", b"first") is True
        assert store.send("t", b"second") is True

        assert store.get("t", 0) == b"first"
        assert store.get("t", 1) == b"second"

    def test_get_out_of_range(self, store):
        store.create_topics(["t"])
        store.send("t", b"only")

        assert store.get("t", 1) is None
        assert store.get("t", -1) is None
        assert store.get("missing", 0) is None

    def test_empty_payload(self, store):
        store.create_topics(["t"])

        assert store.send("t", b"") is True
        assert store.get("t", 0) == b""

    def test_bytes_like_payloads(self, store):
        store.create_topics(["t"])

        assert store.send("t", bytearray(b"ab")) is True
        assert store.send("t", memoryview(b"cd")) is True

        assert store.get("t", 0) == b"ab"
        assert store.get("t", 1) == b"cd"

    def test_rejects_non_bytes_payload(self, store):
        store.create_topics(["t"])

        with pytest.raises(TypeError):
            store.send("t", 5)
        with pytest.raises(TypeError):
            store.send("t", "text")

        assert store.end_offsets(["t"]) == [TopicOffset("t", 0)]

    def test_send_grows_end_offset_by_one(self, store):
        store.create_topics(["t"])
        store.send("t", b"a")
        before = store.end_offsets(["t"])[0].offset

        store.send("t", b"b")

        assert store.end_offsets(["t"])[0].offset == before + 1
        assert store.get("t", before) == b"b"


class TestEndOffsets:
    """Test end offset queries."""

    def test_new_topic_is_empty(self, store):
        store.create_topics(["t"])

        assert store.end_offsets(["t"]) == [TopicOffset("t", 0)]

    def test_unknown_topics_dropped(self, store):
        store.create_topics(["a", "b"])
        store.send("b", b"x")

        result = store.end_offsets(["a", "missing", "b"])

        assert result == [TopicOffset("a", 0), TopicOffset("b", 1)]

    def test_no_topics(self, store):
        assert store.end_offsets([]) == []


class TestPoll:
    """Test batch polling."""

    @pytest.fixture
    def orders(self, store):
        store.create_topics(["orders"])
        for payload in (b"A", b"B", b"C"):
            store.send("orders", payload)
        return store

    def test_poll_from_start(self, orders):
        result = orders.poll([TopicOffset("orders", 0)])

        assert result == {"orders": [b"A", b"B", b"C"]}

    def test_poll_from_middle(self, orders):
        assert orders.poll([TopicOffset("orders", 2)]) == {"orders": [b"C"]}

    def test_nothing_new_is_omitted(self, orders):
        assert orders.poll([TopicOffset("orders", 3)]) == {}
        assert orders.poll([TopicOffset("orders", 10)]) == {}

    def test_unknown_topic_is_omitted(self, orders):
        result = orders.poll([TopicOffset("missing", 0), TopicOffset("orders", 1)])

        assert result == {"orders": [b"B", b"C"]}

    def test_empty_topic_is_omitted(self, store):
        store.create_topics(["empty"])

        assert store.poll([TopicOffset("empty", 0)]) == {}

    def test_result_is_a_copy(self, orders):
        result = orders.poll([TopicOffset("orders", 0)])
        result["orders"].append(b"D")

        assert orders.end_offsets(["orders"]) == [TopicOffset("orders", 3)]

    def test_negative_offset_is_omitted(self, orders):
        assert orders.poll([TopicOffset("orders", -1)]) == {}
        assert orders.poll([TopicOffset("orders", -5), TopicOffset("orders", 2)]) == {"orders": [b"C"]}
        assert orders.get("orders", -1) is None

    def test_multiple_topics(self, orders):
        orders.create_topics(["audit"])
        orders.send("audit", b"x")

        result = orders.poll([TopicOffset("orders", 1), TopicOffset("audit", 0)])

        assert result == {"orders": [b"B", b"C"], "audit": [b"x"]}


class TestConcurrentAccess:
    """Test concurrent appends and reads."""

    def test_concurrent_sends(self):
        store = LogStore()
        store.create_topics(["t"])

        def writer(thread_id, count):
            for i in range(count):
                store.send("t", f"{thread_id}-{i}".encode())

        threads = [threading.Thread(target=writer, args=(i, 200)) for i in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.end_offsets(["t"]) == [TopicOffset("t", 1000)]

        records = store.poll([TopicOffset("t", 0)])["t"]
        for thread_id in range(5):
            own = [r for r in records if r.startswith(f"{thread_id}-".encode())]
            assert own == [f"{thread_id}-{i}".encode() for i in range(200)]

    def test_concurrent_poll_sees_whole_records(self):
        store = LogStore()
        store.create_topics(["t"])
        seen = []

        def writer():
            for i in range(300):
                store.send("t", f"msg-{i}".encode())

        def reader():
            offset = 0
            while offset < 300:
                for payload in store.poll([TopicOffset("t", offset)]).get("t", []):
                    seen.append(payload)
                    offset += 1

        write_thread = threading.Thread(target=writer)
        read_thread = threading.Thread(target=reader)
        write_thread.start()
        read_thread.start()
        write_thread.join()
        read_thread.join()

        assert seen == [f"msg-{i}".encode() for i in range(300)]
