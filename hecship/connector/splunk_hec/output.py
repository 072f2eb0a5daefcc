"""
SplunkHecOutput
===============

An output connector that forwards messages to a Splunk HTTP Event Collector (HEC).
Messages are queued, collected into batches of up to 1000 messages or 2 seconds and
sent with one POST request per batch.


Splunk HEC Output Connector Config Example
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^
An example config file would look like:

..  code-block:: yaml
    :linenos:

    output:
      mysplunk:
        type: splunk_hec_output
        splunk_url: https://collector.example.com:8088/services/collector
        splunk_hec_token: 00000000-0000-0000-0000-000000000000
        splunk_hec_verify_ssl: true
        splunk_hec_index: main
        splunk_hec_sourcetype: input
        splunk_hec_source: graylog

The :code:`store` method of this connector can be fed with a
:py:class:`hecship.util.message.Message` or a :code:`dict` event. Events without fields
are ignored.

.. security-best-practice::
   :title: Splunk HEC Output Connector - Delivery

   A batch that could not be delivered is dropped. There is no retry and no
   persistent buffer. Messages that are queued or batched when the output is stopped
   are lost unless it is stopped gracefully.
"""

import logging
from functools import cached_property
from typing import Any, Iterable, List, Optional, Union

import attrs
from attrs import define, field, validators

from hecship.abc.output import Output, OutputError, OutputWarning
from hecship.connector.splunk_hec.sender import HecSender, SenderConfig
from hecship.metrics.metrics import CounterMetric
from hecship.util.defaults import (
    DEFAULT_INDEX,
    DEFAULT_RESERVED_FIELDS,
    DEFAULT_SOURCE,
    DEFAULT_SOURCETYPE,
    DEFAULT_STREAMS_FIELD,
)
from hecship.util.message import Message, MessageError
from hecship.util.validators import hec_url_validator, non_empty_str_validator

logger = logging.getLogger("SplunkHecOutput")


@define(frozen=True)
class Descriptor:
    """Describes an output type to the host"""

    name: str
    human_name: str
    description: str
    link_to_docs: str = ""


@define(frozen=True)
class ConfigurationField:
    """One requested configuration field as presented by the host"""

    name: str
    human_name: str
    field_type: str
    default: Any
    description: str
    optional: bool


class SplunkHecOutput(Output):
    """Output that sends batches of messages to a Splunk HTTP Event Collector"""

    DESCRIPTOR = Descriptor(
        name="splunk_hec_output",
        human_name="Splunk HEC Output",
        description="Writes messages to your Splunk installation via HEC input.",
    )

    @define(kw_only=True)
    class Metrics(Output.Metrics):
        """Tracks statistics about this connector"""

        number_of_failed_events: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of failed events",
                name="number_of_failed_events",
            )
        )
        """Number of events that were dropped because their request failed"""

        number_of_http_requests: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Requests total",
                name="number_of_http_requests",
            )
        )
        """Requests total"""

        status_codes: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Requests http status",
                name="status_codes",
                inject_label_values=False,
            ),
        )
        """Requests http status"""

        connection_errors: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Requests Connection Errors",
                name="connection_errors",
            ),
        )
        """Requests Connection Errors"""

        timeouts: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Requests Timeouts",
                name="timeouts",
            ),
        )
        """Requests Timeouts"""

    @define(kw_only=True, slots=False, frozen=True)
    class Config(Output.Config):
        """Configuration for the SplunkHecOutput."""

        splunk_url: str = field(
            validator=hec_url_validator,
            metadata={"human_name": "Splunk HEC URL", "description": "HEC URL"},
        )
        """URL of the HEC endpoint, e.g. :code:`https://splunk:8088/services/collector`"""
        splunk_hec_token: str = field(
            validator=non_empty_str_validator,
            repr=False,
            metadata={"human_name": "Splunk HEC Token", "description": "HEC Token"},
        )
        """Token that is sent as :code:`Authorization: Splunk <token>`"""
        splunk_hec_verify_ssl: bool = field(
            validator=validators.instance_of(bool),
            default=True,
            metadata={"human_name": "Verify SSL", "description": "Should SSL be verified"},
        )
        """(Optional) Verify certificate and hostname of the endpoint. Defaults to
        :code:`true`"""
        splunk_hec_index: str = field(
            validator=validators.instance_of(str),
            default=DEFAULT_INDEX,
            metadata={"human_name": "Splunk Index", "description": "Splunk index"},
        )
        """(Optional) Splunk index. Defaults to :code:`main`"""
        splunk_hec_sourcetype: str = field(
            validator=validators.instance_of(str),
            default=DEFAULT_SOURCETYPE,
            metadata={"human_name": "Splunk Source Type", "description": "Splunk sourcetype"},
        )
        """(Optional) Splunk sourcetype. Defaults to :code:`input`"""
        splunk_hec_source: str = field(
            validator=validators.instance_of(str),
            default=DEFAULT_SOURCE,
            metadata={"human_name": "Splunk Source", "description": "Splunk source"},
        )
        """(Optional) Splunk source. Defaults to :code:`graylog`"""
        reserved_fields: List[str] = field(
            validator=validators.deep_iterable(
                member_validator=validators.instance_of(str),
                iterable_validator=validators.instance_of((list, tuple, set, frozenset)),
            ),
            factory=lambda: sorted(DEFAULT_RESERVED_FIELDS),
            metadata={
                "human_name": "Reserved Fields",
                "description": "Message fields that are not sent as HEC fields",
            },
        )
        """(Optional) Host defined message fields that are not sent in the HEC
        :code:`fields` object."""
        streams_field: str = field(
            validator=validators.instance_of(str),
            default=DEFAULT_STREAMS_FIELD,
            metadata={
                "human_name": "Streams Field",
                "description": "Name of the host streams field",
            },
        )
        """(Optional) Name of the host streams field, it is not sent in the HEC
        :code:`fields` object. Defaults to :code:`_streams`"""

    __slots__ = ["_running"]

    _running: bool

    def __init__(self, name: str, configuration: "SplunkHecOutput.Config"):
        super().__init__(name, configuration)
        self._running = True

    @cached_property
    def sender_config(self) -> SenderConfig:
        """The immutable sender parameters derived from the configuration"""
        config = self._config
        return SenderConfig(
            url=config.splunk_url,
            token=config.splunk_hec_token,
            verify_ssl=config.splunk_hec_verify_ssl,
            index=config.splunk_hec_index,
            sourcetype=config.splunk_hec_sourcetype,
            source=config.splunk_hec_source,
            reserved_fields=config.reserved_fields,
            streams_field=config.streams_field,
        )

    @cached_property
    def sender(self) -> HecSender:
        """The sender that owns the queue and the sender thread"""
        return HecSender(self.sender_config, metrics=self.metrics)

    @property
    def is_running(self) -> bool:
        """False after the output was stopped"""
        return self._running

    @classmethod
    def requested_configuration(cls) -> List[ConfigurationField]:
        """Return the configuration fields the host has to ask for"""
        requested = []
        for attribute in attrs.fields(cls.Config):
            if "human_name" not in attribute.metadata:
                continue
            optional = attribute.default is not attrs.NOTHING
            default = attribute.default
            if isinstance(default, attrs.Factory):
                default = default.factory()
            requested.append(
                ConfigurationField(
                    name=attribute.name,
                    human_name=attribute.metadata["human_name"],
                    field_type=getattr(attribute.type, "__name__", str(attribute.type)),
                    default=default if optional else "",
                    description=attribute.metadata["description"],
                    optional=optional,
                )
            )
        return requested

    def describe(self) -> str:
        """Get name of the output with the HEC endpoint."""
        base_description = super().describe()
        return f"{base_description} - Splunk HEC Output: {self._config.splunk_url}"

    def setup(self):
        super().setup()
        self.sender.initialize()

    def store(self, document: Union[Message, dict, None]) -> Optional[bool]:
        """Queue a message for delivery. Blocks while the queue is full.

        Parameters
        ----------
        document : Message | dict
           The message or a dict event. :code:`None` and events without fields are ignored.

        Returns
        -------
        bool
            True if the message was queued
        """
        if document is None:
            return False
        if isinstance(document, Message):
            message = document
        else:
            if not document:
                return False
            try:
                message = Message.from_event(document)
            except MessageError as error:
                logger.warning(str(OutputWarning(self, error.message)))
                self.metrics.number_of_failed_events += 1
                return False
        if not message.fields:
            return False
        if not self._running or not self.sender.send(message):
            logger.error(str(OutputError(self, "message was dropped, the output is stopped")))
            self.metrics.number_of_failed_events += 1
            return False
        return True

    def write(self, message: Union[Message, dict, None]) -> Optional[bool]:
        """Alias of :code:`store` for the host write call"""
        return self.store(message)

    def write_batch(self, messages: Optional[Iterable[Union[Message, dict]]]) -> None:
        """Write every message of the list"""
        if messages is None:
            return
        for message in messages:
            self.store(message)

    def store_custom(self, document: Union[Message, dict], target: str) -> Optional[bool]:
        """There is one endpoint only, the target is ignored."""
        return self.store(document)

    def stop(self, graceful: bool = False, timeout: Optional[float] = None) -> None:
        """Stop the sender, see :py:meth:`hecship.connector.splunk_hec.sender.HecSender.stop`"""
        if "sender" in self.__dict__:
            self.sender.stop(graceful=graceful, timeout=timeout)
        self._running = False

    def shut_down(self):
        self.stop()
        super().shut_down()
