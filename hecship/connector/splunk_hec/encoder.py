"""Encoding of messages into Splunk HTTP Event Collector event envelopes.

Each message becomes one JSON object of the form

..  code-block:: json

    {
        "time": 1700000000000,
        "host": "<message source>",
        "source": "graylog",
        "sourcetype": "input",
        "index": "main",
        "event": "<message text>",
        "fields": {"user": "a"}
    }

Field values msgspec can not serialize are replaced by their string form. Strings that
are not valid unicode, e.g. lone surrogates from decoded json escapes, are encoded with
the invalid characters replaced by :code:`?`.
"""

from typing import Any, Collection, Iterable, Mapping

import msgspec

from hecship.util.message import Message


def _stringify(value: Any) -> str:
    return str(value)


_encoder = msgspec.json.Encoder(enc_hook=_stringify)


def _scrub(value: Any) -> Any:
    """Return a copy of the json value with every str made utf-8 encodable"""
    if isinstance(value, str):
        return value.encode("utf-8", "replace").decode("utf-8")
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, Mapping):
        return {_scrub(key): _scrub(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_scrub(item) for item in value]
    return _scrub(str(value))


def hec_event(
    message: Message,
    index: str,
    sourcetype: str,
    source: str,
    reserved_fields: Collection[str],
    streams_field: str,
) -> dict:
    """Build the HEC event envelope for one message as dict."""
    fields = {
        key: value
        for key, value in message.fields.items()
        if key not in reserved_fields and key != streams_field
    }
    return {
        "time": message.epoch_millis,
        "host": message.source,
        "source": source,
        "sourcetype": sourcetype,
        "index": index,
        "event": message.message,
        "fields": fields,
    }


def encode(
    message: Message,
    index: str,
    sourcetype: str,
    source: str,
    reserved_fields: Collection[str],
    streams_field: str,
) -> str:
    """Encode one message into a HEC event JSON object without trailing newline.

    Parameters
    ----------
    message: Message
        the message to encode
    index, sourcetype, source: str
        the configured splunk labels
    reserved_fields: Collection[str]
        host defined field names which are omitted from :code:`fields`
    streams_field: str
        name of the host streams field, it is omitted from :code:`fields`
    """
    event = hec_event(message, index, sourcetype, source, reserved_fields, streams_field)
    try:
        return _encoder.encode(event).decode("utf-8")
    except UnicodeEncodeError:
        return _encoder.encode(_scrub(event)).decode("utf-8")


def encode_batch(
    messages: Iterable[Message],
    index: str,
    sourcetype: str,
    source: str,
    reserved_fields: Collection[str],
    streams_field: str,
) -> bytes:
    """Encode messages into a newline separated HEC request body keeping their order."""
    lines = (
        encode(message, index, sourcetype, source, reserved_fields, streams_field)
        for message in messages
    )
    return "\n".join(lines).encode("utf-8")
