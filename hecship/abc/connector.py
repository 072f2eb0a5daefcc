""" abstract module for connectors"""

from attrs import define, field

from hecship.abc.component import Component
from hecship.metrics.metrics import CounterMetric, HistogramMetric


class Connector(Component):
    """Abstract Connector Class to define the Interface"""

    @define(kw_only=True)
    class Metrics(Component.Metrics):
        """Tracks statistics about this connector"""

        number_of_processed_events: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of successful events",
                name="number_of_processed_events",
            )
        )
        """Number of successful events"""

        processing_time_per_batch: HistogramMetric = field(
            factory=lambda: HistogramMetric(
                description="Time in seconds that it took to deliver a batch",
                name="processing_time_per_batch",
            )
        )
        """Time in seconds that it took to deliver a batch"""

        number_of_warnings: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of warnings that occurred while storing events",
                name="number_of_warnings",
            )
        )
        """Number of warnings that occurred while storing events"""

        number_of_errors: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of errors that occurred while storing events",
                name="number_of_errors",
            )
        )
        """Number of errors that occurred while storing events"""
