"""The sender owns the hand-off queue between the producers and the sender thread.

Producers call :code:`send`, which blocks while the queue is full. The sender thread
is created and started lazily with the first message or by calling
:code:`initialize` explicitly.
"""

import logging
import queue
import threading
from functools import partial
from typing import Collection, Optional

from attrs import define, field, validators

from hecship.connector.splunk_hec.encoder import encode_batch
from hecship.connector.splunk_hec.transport import HecTransport
from hecship.connector.splunk_hec.worker import HecSenderThread, WorkerState
from hecship.util.defaults import (
    DEFAULT_INDEX,
    DEFAULT_RESERVED_FIELDS,
    DEFAULT_SOURCE,
    DEFAULT_SOURCETYPE,
    DEFAULT_STREAMS_FIELD,
    HANDOFF_QUEUE_SIZE,
    HTTP_TIMEOUT,
    MAX_BATCH_ITEMS,
    MAX_BATCH_WAIT,
    STOP_POLL_INTERVAL,
)
from hecship.util.logging import mask_secret
from hecship.util.message import Message
from hecship.util.validators import hec_url_validator, non_empty_str_validator

logger = logging.getLogger("HecSender")


@define(kw_only=True, frozen=True)
class SenderConfig:
    """Immutable parameters of a :py:class:`HecSender`.

    Raises :py:class:`hecship.factory_error.InvalidConfigurationError` for a malformed
    url or an empty token.
    """

    url: str = field(validator=hec_url_validator)
    token: str = field(validator=non_empty_str_validator, repr=mask_secret)
    verify_ssl: bool = field(validator=validators.instance_of(bool), default=True)
    index: str = field(validator=validators.instance_of(str), default=DEFAULT_INDEX)
    sourcetype: str = field(validator=validators.instance_of(str), default=DEFAULT_SOURCETYPE)
    source: str = field(validator=validators.instance_of(str), default=DEFAULT_SOURCE)
    reserved_fields: Collection[str] = field(
        validator=validators.deep_iterable(member_validator=validators.instance_of(str)),
        default=DEFAULT_RESERVED_FIELDS,
        converter=frozenset,
    )
    streams_field: str = field(validator=validators.instance_of(str), default=DEFAULT_STREAMS_FIELD)


class HecSender:
    """Queues messages and hands them over to a single :py:class:`HecSenderThread`."""

    # pylint: disable=too-many-instance-attributes

    def __init__(
        self,
        config: SenderConfig,
        metrics=None,
        queue_size: int = HANDOFF_QUEUE_SIZE,
        max_batch_items: int = MAX_BATCH_ITEMS,
        max_batch_wait: float = MAX_BATCH_WAIT,
        http_timeout: float = HTTP_TIMEOUT,
    ):
        self.config = config
        self.metrics = metrics
        self._max_batch_items = max_batch_items
        self._max_batch_wait = max_batch_wait
        self._http_timeout = http_timeout
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._sender_thread: Optional[HecSenderThread] = None
        self._init_lock = threading.RLock()
        self._initialized = False
        self._stopped = threading.Event()
        logger.info("Splunk output has been configured with the following HEC parameters:")
        logger.info("URL: %s", config.url)
        logger.info("Token: %s", mask_secret(config.token))
        logger.info("Verify SSL: %s", config.verify_ssl)
        logger.info("Index: %s", config.index)
        logger.info("Source Type: %s", config.sourcetype)
        logger.info("Source: %s", config.source)
        logger.info("Default Timeout: %s", http_timeout)

    @property
    def queue(self) -> queue.Queue:
        """the hand-off queue"""
        return self._queue

    @property
    def state(self) -> WorkerState:
        """lifecycle state of the sender thread, :code:`NEW` before initialization"""
        if self._sender_thread is None:
            return WorkerState.NEW
        return self._sender_thread.state

    def is_initialized(self) -> bool:
        """Return True if the sender thread was started"""
        return self._initialized

    def initialize(self) -> None:
        """Create the http transport and start the sender thread.

        Only the first call starts a thread, later calls do nothing.
        """
        if self._initialized:
            return
        with self._init_lock:
            if self._initialized or self._stopped.is_set():
                return
            config = self.config
            transport = HecTransport(
                config.url, config.token, verify_ssl=config.verify_ssl, timeout=self._http_timeout
            )
            self._sender_thread = HecSenderThread(
                self._queue,
                transport,
                partial(
                    encode_batch,
                    index=config.index,
                    sourcetype=config.sourcetype,
                    source=config.source,
                    reserved_fields=config.reserved_fields,
                    streams_field=config.streams_field,
                ),
                metrics=self.metrics,
                max_batch_items=self._max_batch_items,
                max_batch_wait=self._max_batch_wait,
            )
            self._sender_thread.start()
            self._initialized = True
            if self._stopped.is_set():
                # stop was called by a signal handler while this thread held the lock
                self._sender_thread.stop()
            logger.debug("Started %s", self._sender_thread.name)

    def send(self, message: Message, cancel: Optional[threading.Event] = None) -> bool:
        """Put a message into the hand-off queue.

        Blocks while the queue is full. The wait is cancelled if the sender is stopped
        or the optional :code:`cancel` event is set; the message is lost in that case.

        Returns
        -------
        bool
            True if the message was queued, False if the wait was cancelled
        """
        if not self._initialized:
            self.initialize()
        logger.debug("Sending message: %s", message)
        while True:
            if self._stopped.is_set() or (cancel is not None and cancel.is_set()):
                logger.warning("Interrupted. Message was most probably lost.")
                return False
            try:
                self._queue.put(message, timeout=STOP_POLL_INTERVAL)
                return True
            except queue.Full:
                continue

    def stop(self, graceful: bool = False, timeout: Optional[float] = None) -> None:
        """Signal the sender thread to stop and return.

        Parameters
        ----------
        graceful: bool
            If False (default) messages that are not yet sent are discarded. If True the
            sender thread sends its current batch and everything left in the queue
            before it exits.
        timeout: float, optional
            Only with :code:`graceful`: seconds to wait for the sender thread to exit.
            :code:`None` waits until the flush finished.
        """
        with self._init_lock:
            if self._stopped.is_set():
                return
            self._stopped.set()
            sender_thread = self._sender_thread
        if sender_thread is None:
            return
        sender_thread.stop(graceful=graceful)
        if graceful:
            self.join(timeout)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the sender thread to exit. Returns True if it is not alive anymore."""
        if self._sender_thread is None or self._sender_thread.state is WorkerState.NEW:
            return True
        self._sender_thread.join(timeout)
        return not self._sender_thread.is_alive()
