# pylint: disable=missing-docstring
import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from hecship.connector.splunk_hec.encoder import encode, encode_batch, hec_event
from hecship.util.defaults import DEFAULT_RESERVED_FIELDS
from hecship.util.message import Message

LABELS = {
    "index": "main",
    "sourcetype": "input",
    "source": "graylog",
    "reserved_fields": DEFAULT_RESERVED_FIELDS,
    "streams_field": "_streams",
}


class Unserializable:
    def __str__(self):
        return "unserializable value"


def message_from(**fields) -> Message:
    return Message(
        timestamp=datetime.fromtimestamp(1700000000, tz=timezone.utc),
        source="h1",
        message="hello",
        fields=fields,
    )


class TestEncode:
    def test_encodes_single_message(self):
        message = message_from(user="a", _streams=["000000000000000000000001"], source="h1")
        encoded = encode(message, **LABELS)
        assert json.loads(encoded) == {
            "time": 1700000000000,
            "host": "h1",
            "source": "graylog",
            "sourcetype": "input",
            "index": "main",
            "event": "hello",
            "fields": {"user": "a"},
        }

    def test_has_exactly_the_hec_keys(self):
        encoded = json.loads(encode(message_from(user="a"), **LABELS))
        assert set(encoded) == {"time", "host", "source", "sourcetype", "index", "event", "fields"}

    def test_time_is_integer_epoch_milliseconds(self):
        message = Message(
            timestamp=datetime(2023, 11, 14, 22, 13, 20, 123456, tzinfo=timezone.utc),
            fields={"a": 1},
        )
        encoded = json.loads(encode(message, **LABELS))
        assert encoded["time"] == 1700000000123
        assert isinstance(encoded["time"], int)

    def test_uses_configured_labels(self):
        labels = LABELS | {"index": "idx", "sourcetype": "st", "source": "src"}
        encoded = json.loads(encode(message_from(user="a"), **labels))
        assert encoded["index"] == "idx"
        assert encoded["sourcetype"] == "st"
        assert encoded["source"] == "src"

    @pytest.mark.parametrize("field_name", sorted(DEFAULT_RESERVED_FIELDS) + ["_streams"])
    def test_omits_reserved_and_streams_fields(self, field_name):
        message = message_from(**{field_name: "value", "kept": "value"})
        encoded = json.loads(encode(message, **LABELS))
        assert encoded["fields"] == {"kept": "value"}

    def test_reserved_fields_are_an_input(self):
        message = message_from(user="a", secret="b", streams="c")
        labels = LABELS | {"reserved_fields": {"secret"}, "streams_field": "streams"}
        encoded = json.loads(encode(message, **labels))
        assert encoded["fields"] == {"user": "a"}

    def test_preserves_field_value_types(self):
        message = message_from(integer=1, floating=1.5, flag=True, nothing=None, items=[1, "a"])
        fields = json.loads(encode(message, **LABELS))["fields"]
        assert fields == {"integer": 1, "floating": 1.5, "flag": True, "nothing": None, "items": [1, "a"]}

    def test_substitutes_string_form_of_unserializable_values(self):
        message = message_from(strange=Unserializable(), amount=Decimal("1.10"))
        fields = json.loads(encode(message, **LABELS))["fields"]
        assert fields["strange"] == "unserializable value"
        assert fields["amount"] == "1.10"

    def test_has_no_trailing_newline(self):
        assert not encode(message_from(user="a"), **LABELS).endswith("\n")

    def test_hec_event_returns_dict(self):
        event = hec_event(message_from(user="a"), **LABELS)
        assert event["fields"] == {"user": "a"}


class TestEncodeBatch:
    def test_joins_events_with_newlines_in_input_order(self):
        messages = [
            Message(timestamp=datetime.fromtimestamp(1700000000, tz=timezone.utc), message=str(i), fields={"i": i})
            for i in range(5)
        ]
        body = encode_batch(messages, **LABELS)
        lines = body.decode("utf-8").split("\n")
        assert [json.loads(line)["event"] for line in lines] == ["0", "1", "2", "3", "4"]

    def test_returns_utf8_bytes(self):
        message = Message(timestamp=datetime.now(timezone.utc), message="grüße", fields={"a": "ä"})
        body = encode_batch([message], **LABELS)
        assert isinstance(body, bytes)
        assert json.loads(body.decode("utf-8"))["event"] == "grüße"


class TestEncodeInvalidUnicode:
    def test_replaces_lone_surrogates_from_json_escapes(self):
        event = json.loads('{"message": "bad \\ud800", "user": "\\udfff", "tags": ["ok", "\\ud83d"]}')
        message = Message.from_event({"timestamp": 1700000000000, "source": "h1", **event})
        encoded = json.loads(encode(message, **LABELS))
        assert encoded["event"] == "bad ?"
        assert encoded["fields"] == {"user": "?", "tags": ["ok", "?"]}

    def test_replaces_lone_surrogates_in_field_names(self):
        message = message_from(**{"key\ud800": "value"})
        assert json.loads(encode(message, **LABELS))["fields"] == {"key?": "value"}

    def test_batch_with_invalid_unicode_is_utf8(self):
        messages = [message_from(user="\ud800"), message_from(user="b")]
        body = encode_batch(messages, **LABELS)
        assert [json.loads(line)["fields"]["user"] for line in body.decode("utf-8").split("\n")] == [
            "?",
            "b",
        ]
