"""Tests for entity id generation and parsing."""

import time
import uuid

import pytest

from triptrack.exceptions import InvalidIdError
from triptrack.ids import id_timestamp_ms, new_id, parse_id


class TestNewId:

    def test_ids_are_version_7(self):
        value = new_id()
        assert value.version == 7
        assert value.variant == uuid.RFC_4122

    def test_ids_are_unique_and_increasing(self):
        ids = [new_id() for _ in range(5000)]
        assert len(set(ids)) == len(ids)
        assert ids == sorted(ids)

    def test_timestamp_is_embedded(self):
        before = time.time_ns() // 1_000_000
        value = new_id()
        after = time.time_ns() // 1_000_000
        # The in-process counter may borrow a few milliseconds under load
        assert before <= id_timestamp_ms(value) <= after + 5

    def test_timestamp_of_other_versions(self):
        assert id_timestamp_ms(uuid.uuid4()) is None


class TestParseId:

    def test_parses_string(self):
        value = new_id()
        assert parse_id(str(value)) == value
        assert parse_id(f"  {value}  ") == value

    def test_passes_uuid_through(self):
        value = uuid.uuid4()
        assert parse_id(value) is value

    @pytest.mark.parametrize("raw", [None, "", "   ", "1234", "zzzzzzzz-zzzz-zzzz-zzzz-zzzzzzzzzzzz", 42])
    def test_rejects_malformed(self, raw):
        with pytest.raises(InvalidIdError) as exc_info:
            parse_id(raw, "route_id")
        assert exc_info.value.field == "route_id"
        assert exc_info.value.message == "Invalid route_id format"
