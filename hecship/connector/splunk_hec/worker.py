"""The sender thread that batches queued messages and posts them to the HEC endpoint.

A batch is sent as soon as it holds :code:`max_batch_items` messages or when it is
older than :code:`max_batch_wait` seconds. A batch that could not be delivered is
dropped, there is no retry.
"""

import itertools
import logging
import queue
import threading
import time
from enum import Enum
from typing import Callable, Optional

import requests

from hecship.connector.splunk_hec.transport import HecTransport, HttpFailure
from hecship.metrics.metrics import Metric
from hecship.util.defaults import MAX_BATCH_ITEMS, MAX_BATCH_WAIT, STOP_POLL_INTERVAL
from hecship.util.message import Message

logger = logging.getLogger("HecSenderThread")

_thread_counter = itertools.count(1)


class WorkerState(Enum):
    """Lifecycle states of the sender thread"""

    NEW = "new"
    RUNNING = "running"
    STOPPING = "stopping"
    EXITED = "exited"


class HecSenderThread(threading.Thread):
    """Single consumer of the hand-off queue.

    Parameters
    ----------
    handoff_queue: queue.Queue
        the bounded queue filled by the producers
    transport: HecTransport
        the http transport, owned by this thread
    encode_batch: Callable
        turns a list of messages into a request body
    metrics:
        optional metrics object of the output, see
        :py:class:`hecship.connector.splunk_hec.output.SplunkHecOutput.Metrics`
    max_batch_items: int
        maximum number of messages per request
    max_batch_wait: float
        maximum age of a batch in seconds
    """

    # pylint: disable=too-many-instance-attributes,too-many-arguments

    def __init__(
        self,
        handoff_queue: queue.Queue,
        transport: HecTransport,
        encode_batch: Callable[[list], bytes],
        metrics=None,
        max_batch_items: int = MAX_BATCH_ITEMS,
        max_batch_wait: float = MAX_BATCH_WAIT,
    ):
        super().__init__(name=f"SplunkHECSenderThread-{next(_thread_counter)}", daemon=True)
        self.metrics = metrics
        self.max_batch_items = max_batch_items
        self.max_batch_wait = max_batch_wait
        self._queue = handoff_queue
        self._transport = transport
        self._encode_batch = encode_batch
        self._stop_event = threading.Event()
        self._graceful = False
        self._state = WorkerState.NEW
        self._state_lock = threading.Lock()
        self._batch: list[Message] = []
        self._batch_start = time.monotonic()

    @property
    def state(self) -> WorkerState:
        """the current lifecycle state"""
        return self._state

    @property
    def stopping(self) -> bool:
        """True if the stop signal was given"""
        return self._stop_event.is_set()

    def start(self) -> None:
        with self._state_lock:
            if self._state is not WorkerState.NEW:
                return
            self._state = WorkerState.RUNNING
        super().start()

    def stop(self, graceful: bool = False) -> None:
        """Signal the thread to exit after its current iteration.

        Without :code:`graceful` messages in the current batch are discarded. With
        :code:`graceful` the batch and all messages left in the queue are sent
        before the thread exits.
        """
        with self._state_lock:
            if self._state is not WorkerState.RUNNING:
                return
            self._state = WorkerState.STOPPING
            self._graceful = graceful
        self._stop_event.set()

    def run(self) -> None:
        self._batch_start = time.monotonic()
        try:
            while not self._stop_event.is_set():
                self._run_once()
            if self._graceful:
                self._flush_remaining()
            elif self._batch:
                logger.info(
                    "%s: discarding %d pending message(s) on stop", self.name, len(self._batch)
                )
        finally:
            self._batch.clear()
            self._transport.close()
            self._state = WorkerState.EXITED
            logger.debug("%s: exiting!", self.name)

    def _run_once(self) -> None:
        poll_timeout = self.max_batch_wait - (time.monotonic() - self._batch_start)
        if poll_timeout > 0:
            message = self._poll(poll_timeout)
            if message is not None:
                self._batch.append(message)
                # fill the batch with everything that is already waiting
                self._drain(self.max_batch_items - len(self._batch))
        if len(self._batch) >= self.max_batch_items or self._batch_age() > self.max_batch_wait:
            if self._batch:
                self._send_batch()
            self._batch_start = time.monotonic()

    def _batch_age(self) -> float:
        return time.monotonic() - self._batch_start

    def _poll(self, timeout: float) -> Optional[Message]:
        """Wait up to timeout seconds for a single message.
        Waits are sliced to notice the stop signal."""
        deadline = time.monotonic() + timeout
        while not self._stop_event.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            try:
                return self._queue.get(timeout=min(remaining, STOP_POLL_INTERVAL))
            except queue.Empty:
                continue
        return None

    def _drain(self, max_items: int) -> int:
        drained = 0
        while drained < max_items:
            try:
                self._batch.append(self._queue.get_nowait())
            except queue.Empty:
                break
            drained += 1
        return drained

    def _send_batch(self) -> None:
        try:
            self._post_batch(self._batch)
        except Exception:  # pylint: disable=broad-except
            logger.exception(
                "%s: Unexpected error while sending to splunk! %d log message(s) lost.",
                self.name,
                len(self._batch),
            )
            if self.metrics is not None:
                self.metrics.number_of_failed_events += len(self._batch)
        finally:
            self._batch.clear()

    @Metric.measure_time()
    def _post_batch(self, batch: list) -> None:
        body = self._encode_batch(batch)
        logger.info(
            "%s: Sending %d message(s), with a payload size of %d bytes, to splunk",
            self.name,
            len(batch),
            len(body),
        )
        try:
            self._transport.post(body)
        except HttpFailure as error:
            logger.error(
                "%s: Call to Splunk HEC endpoint failed! Log messages likely lost. %s",
                self.name,
                error,
            )
            self._count_failure(error, len(batch))
            return
        if self.metrics is not None:
            self.metrics.number_of_http_requests += 1
            self._count_status(200)
            self.metrics.number_of_processed_events += len(batch)

    def _count_failure(self, error: HttpFailure, batch_size: int) -> None:
        if self.metrics is None:
            return
        self.metrics.number_of_http_requests += 1
        self.metrics.number_of_failed_events += batch_size
        if error.status is not None:
            self._count_status(error.status)
        if isinstance(error.cause, requests.exceptions.Timeout):
            self.metrics.timeouts += 1
        elif error.cause is not None:
            self.metrics.connection_errors += 1

    def _flush_remaining(self) -> None:
        while True:
            self._drain(self.max_batch_items - len(self._batch))
            if not self._batch:
                return
            self._send_batch()

    def _count_status(self, status: int) -> None:
        status_codes = self.metrics.status_codes
        status_codes.add_with_labels(1, {"description": f"{status_codes.description} {status}"})
