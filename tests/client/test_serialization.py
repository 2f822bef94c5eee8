"""Tests for payload codecs."""

import pytest

from kaska.client.serialization import JsonSerializer, PickleSerializer, SerializationError


class TestPickleSerializer:
    """Test PickleSerializer."""

    def test_arbitrary_objects(self):
        serializer = PickleSerializer()
        obj = {"id": 1, "items": [("a", 2.5)], "raw": b"x"}

        assert serializer.deserialize(serializer.serialize(obj)) == obj

    def test_unpicklable(self):
        with pytest.raises(SerializationError):
            PickleSerializer().serialize(lambda: None)

    @pytest.mark.parametrize("error", [ValueError, RecursionError])
    def test_reduce_errors(self, error):
        class Broken:
            def __reduce__(self):
                raise error("cannot reduce")

        with pytest.raises(SerializationError):
            PickleSerializer().serialize(Broken())

    def test_garbage_payload(self):
        with pytest.raises(SerializationError):
            PickleSerializer().deserialize(b"")


class TestJsonSerializer:
    """Test JsonSerializer."""

    def test_encodes_utf8_json(self):
        assert JsonSerializer().serialize({"name": "café"}) == b'{"name": "caf\\u00e9"}'

    def test_not_json_compatible(self):
        with pytest.raises(SerializationError):
            JsonSerializer().serialize(object())

    def test_invalid_payload(self):
        with pytest.raises(SerializationError):
            JsonSerializer().deserialize(b"{")
