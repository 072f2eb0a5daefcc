"""The message record handed over from the host pipeline to an output."""

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping

from attrs import define, field, validators

from hecship.abc.exceptions import HecshipException

UTC = timezone.utc


class MessageError(HecshipException):
    """Raise if an event can not be converted into a message."""


def _to_utc(value: datetime) -> datetime:
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _freeze(value: Mapping) -> Mapping:
    if not isinstance(value, Mapping):
        return value
    return MappingProxyType(dict(value))


@define(frozen=True, kw_only=True)
class Message:
    """A read only log message as delivered by the host pipeline.

    Naive timestamps are treated as UTC. :code:`fields` holds every field of the
    message, including the ones that are also represented by the other attributes.
    """

    timestamp: datetime = field(validator=validators.instance_of(datetime), converter=_to_utc)
    source: str = field(validator=validators.instance_of(str), default="")
    message: str = field(validator=validators.instance_of(str), default="")
    fields: Mapping[str, Any] = field(
        validator=validators.instance_of(Mapping), factory=dict, converter=_freeze
    )

    @property
    def epoch_millis(self) -> int:
        """The timestamp as integer milliseconds since the unix epoch"""
        delta = self.timestamp - datetime(1970, 1, 1, tzinfo=UTC)
        return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000

    @classmethod
    def from_event(
        cls,
        event: Mapping[str, Any],
        timestamp_field: str = "timestamp",
        source_field: str = "source",
        message_field: str = "message",
    ) -> "Message":
        """Create a message from a dict event.

        Parameters
        ----------
        event: Mapping
            the event, it becomes the field map of the message
        timestamp_field: str
            name of the field holding the timestamp. Supported are :code:`datetime`
            objects, ISO 8601 strings and epoch milliseconds. If the field is missing
            the current time is used.
        source_field: str
            name of the field holding the source (the HEC :code:`host`)
        message_field: str
            name of the field holding the primary text

        Raises
        ------
        MessageError
            if the timestamp can not be parsed
        """
        if not isinstance(event, Mapping):
            raise MessageError(f"event has to be a mapping, got {type(event).__name__}")
        return cls(
            timestamp=cls._parse_timestamp(event.get(timestamp_field)),
            source=str(event.get(source_field, "")),
            message=str(event.get(message_field, "")),
            fields=event,
        )

    @staticmethod
    def _parse_timestamp(value: Any) -> datetime:
        if value is None:
            return datetime.now(UTC)
        if isinstance(value, datetime):
            return value
        if isinstance(value, bool):
            raise MessageError(f"invalid timestamp '{value}'")
        if isinstance(value, (int, float)):
            try:
                return datetime.fromtimestamp(value / 1000, tz=UTC)
            except (OverflowError, OSError, ValueError) as error:
                raise MessageError(f"invalid timestamp '{value}'") from error
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError as error:
                raise MessageError(f"invalid timestamp '{value}'") from error
        raise MessageError(f"invalid timestamp '{value}'")
