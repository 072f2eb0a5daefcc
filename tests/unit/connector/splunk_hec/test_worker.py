# pylint: disable=missing-docstring
# pylint: disable=protected-access
# pylint: disable=attribute-defined-outside-init
import json
import logging
import queue
import time
from functools import partial
from unittest import mock

import pytest
import requests

from hecship.connector.splunk_hec.encoder import encode_batch
from hecship.connector.splunk_hec.transport import HttpFailure
from hecship.connector.splunk_hec.worker import HecSenderThread, WorkerState
from hecship.util.message import Message
from tests.util.testhelpers import RecordingTransport, wait_until

ENCODE = partial(
    encode_batch,
    index="main",
    sourcetype="input",
    source="graylog",
    reserved_fields=frozenset(),
    streams_field="_streams",
)


class TestHecSenderThread:
    def setup_method(self):
        self.queue = queue.Queue(maxsize=1024)
        self.transport = RecordingTransport()
        self.thread = None

    def teardown_method(self):
        if self.thread is not None:
            self.thread.stop()
            self.thread.join(2)

    def start_thread(self, **kwargs):
        kwargs.setdefault("max_batch_wait", 0.2)
        self.thread = HecSenderThread(self.queue, self.transport, ENCODE, **kwargs)
        self.thread.start()
        return self.thread

    def fill_queue(self, make_message, count, start=0):
        for number in range(start, start + count):
            self.queue.put(make_message(number))

    def test_thread_is_daemon_with_name(self):
        thread = HecSenderThread(self.queue, self.transport, ENCODE)
        assert thread.daemon
        assert thread.name.startswith("SplunkHECSenderThread-")
        assert thread.state is WorkerState.NEW

    def test_time_triggered_flush_sends_all_messages_in_one_request(self, make_message):
        self.fill_queue(make_message, 3)
        started = time.monotonic()
        self.start_thread(max_batch_wait=0.3)
        assert wait_until(lambda: len(self.transport.bodies) == 1)
        assert self.transport.post_times[0] - started >= 0.3
        assert len(self.transport.batches[0]) == 3
        time.sleep(0.4)
        assert len(self.transport.bodies) == 1

    def test_size_triggered_flush_does_not_wait_for_deadline(self, make_message):
        self.fill_queue(make_message, 1000)
        started = time.monotonic()
        self.start_thread(max_batch_wait=10)
        assert wait_until(lambda: len(self.transport.bodies) == 1, timeout=5)
        assert self.transport.post_times[0] - started < 2
        assert len(self.transport.batches[0]) == 1000

    def test_never_posts_more_than_max_batch_items(self, make_message):
        self.fill_queue(make_message, 1024)
        self.start_thread(max_batch_items=100)
        assert wait_until(lambda: sum(map(len, self.transport.batches)) == 1024)
        sizes = [len(batch) for batch in self.transport.batches]
        assert max(sizes) <= 100
        assert sizes[:10] == [100] * 10

    def test_preserves_order_across_requests(self, make_message):
        self.start_thread(max_batch_items=7, max_batch_wait=0.05)
        for number in range(50):
            self.queue.put(make_message(number))
            if number % 9 == 0:
                time.sleep(0.06)
        assert wait_until(lambda: sum(map(len, self.transport.batches)) == 50)
        events = [json.loads(line) for batch in self.transport.batches for line in batch]
        assert [event["fields"]["number"] for event in events] == list(range(50))

    def test_message_is_sent_within_age_bound(self, make_message):
        self.start_thread(max_batch_wait=0.2)
        time.sleep(0.1)
        enqueued = time.monotonic()
        self.queue.put(make_message())
        assert wait_until(lambda: len(self.transport.bodies) == 1)
        assert self.transport.post_times[0] - enqueued <= 0.2 + 0.1

    def test_empty_batch_is_not_sent(self):
        self.start_thread(max_batch_wait=0.05)
        time.sleep(0.3)
        assert not self.transport.bodies
        assert self.thread.is_alive()

    def test_does_not_busy_spin_on_empty_queue(self):
        with mock.patch.object(self.queue, "get", wraps=self.queue.get) as mock_get:
            self.start_thread(max_batch_wait=1)
            time.sleep(0.5)
        # one blocking get per stop poll interval at most
        assert mock_get.call_count <= 10

    def test_failed_request_drops_batch_and_continues(self, make_message, caplog):
        self.transport = RecordingTransport(errors=[HttpFailure("status 500", status=500)])
        self.fill_queue(make_message, 5)
        with caplog.at_level(logging.ERROR):
            self.start_thread()
            assert wait_until(lambda: len(self.transport.bodies) == 1)
            self.fill_queue(make_message, 2, start=5)
            assert wait_until(lambda: len(self.transport.bodies) == 2)
        assert len(self.transport.batches[0]) == 5
        second = [json.loads(line)["fields"]["number"] for line in self.transport.batches[1]]
        assert second == [5, 6]
        assert "Log messages likely lost" in caplog.text

    def test_unencodable_message_does_not_stop_thread(self, make_message):
        bad = Message.from_event(json.loads('{"timestamp": 0, "message": "bad \\ud800", "user": "a"}'))
        self.queue.put(bad)
        self.queue.put(make_message(1))
        self.start_thread()
        assert wait_until(lambda: len(self.transport.bodies) == 1)
        events = [json.loads(line) for line in self.transport.batches[0]]
        assert events[0]["event"] == "bad ?"
        assert events[1]["fields"]["number"] == 1
        assert self.thread.is_alive()

    def test_unexpected_error_drops_batch_and_continues(self, make_message, caplog):
        encoded_batches = []

        def fail_first_batch(batch):
            encoded_batches.append(len(batch))
            if len(encoded_batches) == 1:
                raise ValueError("can not encode")
            return ENCODE(batch)

        self.fill_queue(make_message, 2)
        self.thread = HecSenderThread(self.queue, self.transport, fail_first_batch, max_batch_wait=0.2)
        with caplog.at_level(logging.ERROR):
            self.thread.start()
            assert wait_until(lambda: len(encoded_batches) == 1)
            self.fill_queue(make_message, 1, start=2)
            assert wait_until(lambda: len(self.transport.bodies) == 1)
        assert self.thread.is_alive()
        assert self.thread.state is WorkerState.RUNNING
        assert [json.loads(line)["fields"]["number"] for line in self.transport.batches[0]] == [2]
        assert "Unexpected error while sending to splunk! 2 log message(s) lost." in caplog.text

    def test_logs_batch_size_and_payload_size(self, make_message, caplog):
        self.fill_queue(make_message, 2)
        with caplog.at_level(logging.INFO):
            self.start_thread()
            assert wait_until(lambda: len(self.transport.bodies) == 1)
        body_size = len(self.transport.bodies[0])
        assert f"Sending 2 message(s), with a payload size of {body_size} bytes" in caplog.text

    def test_stop_discards_pending_batch(self, make_message):
        self.fill_queue(make_message, 10)
        self.start_thread(max_batch_wait=5)
        time.sleep(0.01)
        self.thread.stop()
        self.thread.join(4)
        assert not self.thread.is_alive()
        assert self.thread.state is WorkerState.EXITED
        assert not self.transport.bodies
        assert self.transport.closed

    def test_graceful_stop_sends_batch_and_queue(self, make_message):
        self.fill_queue(make_message, 10)
        self.start_thread(max_batch_wait=5, max_batch_items=4)
        time.sleep(0.05)
        self.fill_queue(make_message, 3, start=10)
        self.thread.stop(graceful=True)
        self.thread.join(4)
        assert not self.thread.is_alive()
        numbers = [json.loads(line)["fields"]["number"] for batch in self.transport.batches for line in batch]
        assert numbers == list(range(13))
        assert all(len(batch) <= 4 for batch in self.transport.batches)

    def test_stop_before_start_does_nothing(self):
        thread = HecSenderThread(self.queue, self.transport, ENCODE)
        thread.stop()
        assert thread.state is WorkerState.NEW
        assert not thread.stopping

    def test_stop_twice_is_a_noop(self):
        self.start_thread()
        self.thread.stop()
        self.thread.stop(graceful=True)
        self.thread.join(2)
        assert self.thread.state is WorkerState.EXITED
        assert not self.thread._graceful

    def test_start_twice_starts_thread_once(self):
        self.start_thread()
        self.thread.start()
        assert self.thread.state is WorkerState.RUNNING

    def test_stopping_state(self):
        self.start_thread()
        self.thread.stop()
        assert self.thread.stopping
        assert self.thread.state in (WorkerState.STOPPING, WorkerState.EXITED)


class TestHecSenderThreadMetrics:
    def setup_method(self):
        self.queue = queue.Queue(maxsize=1024)
        self.metrics = mock.MagicMock()
        self.metrics.number_of_http_requests = 0
        self.metrics.number_of_processed_events = 0
        self.metrics.number_of_failed_events = 0
        self.metrics.timeouts = 0
        self.metrics.connection_errors = 0

    def run_with(self, transport, make_message, count=3):
        for number in range(count):
            self.queue.put(make_message(number))
        thread = HecSenderThread(self.queue, transport, ENCODE, metrics=self.metrics, max_batch_wait=0.05)
        thread.start()
        assert wait_until(lambda: len(transport.bodies) == 1)
        thread.stop()
        thread.join(2)

    def test_counts_processed_events(self, make_message):
        self.run_with(RecordingTransport(), make_message)
        assert self.metrics.number_of_processed_events == 3
        assert self.metrics.number_of_http_requests == 1
        assert self.metrics.number_of_failed_events == 0
        self.metrics.status_codes.add_with_labels.assert_called_with(
            1, {"description": f"{self.metrics.status_codes.description} 200"}
        )

    def test_counts_failed_events_and_status(self, make_message):
        transport = RecordingTransport(errors=[HttpFailure("failed", status=503)])
        self.run_with(transport, make_message)
        assert self.metrics.number_of_failed_events == 3
        assert self.metrics.number_of_processed_events == 0
        self.metrics.status_codes.add_with_labels.assert_called_with(
            1, {"description": f"{self.metrics.status_codes.description} 503"}
        )

    @pytest.mark.parametrize(
        "cause, metric_name",
        [
            (requests.exceptions.ReadTimeout(), "timeouts"),
            (requests.exceptions.ConnectionError(), "connection_errors"),
            (requests.exceptions.SSLError(), "connection_errors"),
        ],
    )
    def test_counts_transport_errors(self, make_message, cause, metric_name):
        transport = RecordingTransport(errors=[HttpFailure("failed", cause=cause)])
        self.run_with(transport, make_message)
        assert getattr(self.metrics, metric_name) == 1

    def test_counts_failed_events_on_unexpected_error(self, make_message):
        self.queue.put(make_message())
        thread = HecSenderThread(
            self.queue,
            RecordingTransport(),
            mock.Mock(side_effect=ValueError("can not encode")),
            metrics=self.metrics,
            max_batch_wait=0.05,
        )
        thread.start()
        try:
            assert wait_until(lambda: self.metrics.number_of_failed_events == 1)
            assert thread.is_alive()
        finally:
            thread.stop()
            thread.join(2)
