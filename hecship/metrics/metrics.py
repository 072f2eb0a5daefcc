"""
hecship tracks connector statistics with the
`prometheus python client <https://github.com/prometheus/client_python>`_, e.g.
:code:`hecship_number_of_processed_events_total` or
:code:`hecship_number_of_failed_events_total`.

The metric objects are attributes of the :code:`Metrics` class of a component
and are created with the labels of the component. They are incremented with
:code:`+=`:

..  code-block:: python

    self.metrics.number_of_processed_events += len(batch)
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Union

from attrs import define, field, validators
from prometheus_client import CollectorRegistry, Counter, Histogram


@define(kw_only=True, slots=False)
class Metric(ABC):
    """Metric base class"""

    name: str = field(validator=validators.instance_of(str))
    description: str = field(validator=validators.instance_of(str))
    labels: dict = field(
        validator=[
            validators.instance_of(dict),
            validators.deep_mapping(
                key_validator=validators.instance_of(str),
                value_validator=validators.instance_of(str),
            ),
        ],
        factory=dict,
    )
    _registry: CollectorRegistry = field(default=None)
    _prefix: str = field(default="hecship_")
    inject_label_values: bool = field(default=True)
    tracker: Union[Counter, Histogram] = field(init=False, default=None)

    @property
    def fullname(self):
        """returns the fullname"""
        return f"{self._prefix}{self.name}"

    def init_tracker(self) -> None:
        """initializes the tracker and adds it to the trackers dict"""
        try:
            if isinstance(self, CounterMetric):
                self.tracker = Counter(
                    name=self.fullname,
                    documentation=self.description,
                    labelnames=self.labels.keys(),
                    registry=self._registry,
                )
            if isinstance(self, HistogramMetric):
                self.tracker = Histogram(
                    name=self.fullname,
                    documentation=self.description,
                    labelnames=self.labels.keys(),
                    buckets=(0.001, 0.01, 0.1, 0.5, 1, 2, 4, 8),
                    registry=self._registry,
                )
        except ValueError as error:
            # pylint: disable=protected-access
            self.tracker = self._registry._names_to_collectors.get(self.fullname)
            # pylint: enable=protected-access
            if not isinstance(self.tracker, METRIC_TO_COLLECTOR_TYPE[type(self)]):
                raise ValueError(
                    f"Metric {self.fullname} already exists with different type"
                ) from error
        if self.inject_label_values:
            self.tracker.labels(**self.labels)

    @abstractmethod
    def __add__(self, other):
        """Add"""

    @staticmethod
    def measure_time(metric_name: str = "processing_time_per_batch"):
        """Decorate function to measure its execution time in the given histogram metric."""

        def decorator(func):
            def inner(self, *args, **kwargs):  # nosemgrep
                metric = getattr(self.metrics, metric_name, None) if self.metrics else None
                if metric is None:
                    return func(self, *args, **kwargs)
                begin = time.perf_counter()
                try:
                    return func(self, *args, **kwargs)
                finally:
                    metric += time.perf_counter() - begin

            return inner

        return decorator


@define(kw_only=True)
class CounterMetric(Metric):
    """Wrapper for prometheus Counter metric"""

    def __add__(self, other: Any) -> "CounterMetric":
        return self.add_with_labels(other, self.labels)

    def add_with_labels(self, other: Any, labels: dict) -> "CounterMetric":
        """Add with labels"""
        labels = self.labels | labels
        self.tracker.labels(**labels).inc(other)
        return self


@define(kw_only=True)
class HistogramMetric(Metric):
    """Wrapper for prometheus Histogram metric"""

    def __add__(self, other):
        self.tracker.labels(**self.labels).observe(other)
        return self


METRIC_TO_COLLECTOR_TYPE = {
    CounterMetric: Counter,
    HistogramMetric: Histogram,
}
