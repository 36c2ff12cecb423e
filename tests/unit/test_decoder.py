"""Unit tests for the stream line decoder."""

import json

import pytest

from streaming_api.models import Event
from streaming_api.streaming.decoder import decode_batch

CURSOR = {
    "partition": "0",
    "offset": "001-0001-000000000000000001",
    "event_type": "loan.created",
    "cursor_token": "abc",
}


class TestDecodeBatch:
    @pytest.mark.parametrize("line", ["", "   ", "\n", "\r\n"])
    def test_blank_lines_are_no_batch(self, line: str):
        assert decode_batch(line) is None

    @pytest.mark.parametrize(
        "line",
        [
            "{not json",
            '{"cursor": ',
            "[]",
            "42",
            '"text"',
            "null",
            '{"events": []}',
            '{"cursor": "not-an-object"}',
            '{"cursor": {}, "events": "nope"}',
        ],
    )
    def test_malformed_lines_are_no_batch(self, line: str):
        assert decode_batch(line) is None

    def test_keep_alive_without_events(self):
        batch = decode_batch(json.dumps({"cursor": CURSOR}))
        assert batch is not None
        assert batch.events is None
        assert not batch.has_events

    def test_keep_alive_with_empty_events(self):
        batch = decode_batch(json.dumps({"cursor": CURSOR, "events": []}))
        assert batch is not None
        assert not batch.has_events

    def test_batch_with_events(self):
        line = json.dumps(
            {
                "cursor": CURSOR,
                "events": [
                    {
                        "metadata": {
                            "eid": "e-1",
                            "event_type": "loan.created",
                            "occurred_at": "2024-05-01T10:00:00Z",
                            "partition": "0",
                        },
                        "template_name": "Loan created",
                        "body": {"loan": {"id": "L1", "amount": 1000}},
                    }
                ],
                "info": {"debug": "x"},
            }
        )
        batch = decode_batch(line)
        assert batch is not None
        assert batch.has_events
        assert batch.events[0]["metadata"]["partition"] == "0"
        event = Event.from_raw(batch.events[0])
        assert event.metadata.eid == "e-1"
        assert event.metadata.model_extra == {"partition": "0"}
        assert event.template_name == "Loan created"
        assert event.body == {"loan": {"id": "L1", "amount": 1000}}
        assert batch.cursor.to_payload() == CURSOR

    def test_unknown_cursor_fields_survive(self):
        cursor = {**CURSOR, "stream_epoch": 7}
        batch = decode_batch(json.dumps({"cursor": cursor}))
        assert batch is not None
        assert batch.cursor.to_payload() == cursor

    def test_numeric_offsets_are_kept(self):
        batch = decode_batch(json.dumps({"cursor": {"partition": 1, "offset": 99}}))
        assert batch is not None
        assert batch.cursor.to_payload() == {"partition": 1, "offset": 99}

    def test_surrounding_whitespace_is_ignored(self):
        batch = decode_batch("  " + json.dumps({"cursor": CURSOR}) + "  \r")
        assert batch is not None

    def test_bytes_input(self):
        batch = decode_batch(json.dumps({"cursor": CURSOR}).encode())
        assert batch is not None

    def test_invalid_utf8_is_no_batch(self):
        assert decode_batch(b"\xff\xfe{") is None

    @pytest.mark.parametrize(
        "events",
        [
            ["E1"],
            [{"metadata": None, "body": 1}],
            [{"metadata": {"eid": 5}}],
            [42, None, {"free": "form"}],
        ],
    )
    def test_events_are_passed_through_unchanged(self, events: list):
        batch = decode_batch(json.dumps({"cursor": CURSOR, "events": events}))
        assert batch is not None
        assert batch.has_events
        assert batch.events == events


class TestEventView:
    def test_conforming_event(self):
        event = Event.from_raw(
            {"metadata": {"eid": "e-1"}, "template_name": "t", "body": [1]}
        )
        assert event.metadata.eid == "e-1"
        assert event.template_name == "t"
        assert event.body == [1]

    @pytest.mark.parametrize(
        "raw",
        ["E1", 42, None, {"metadata": None, "body": 1}, {"metadata": {"eid": 5}}],
    )
    def test_non_conforming_event_becomes_body(self, raw: object):
        event = Event.from_raw(raw)
        assert event.metadata.eid is None
        assert event.body == raw
