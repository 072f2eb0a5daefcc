"""This module provides the abstract base class for all output endpoints.
New output endpoint types are created by implementing it.
"""

from abc import abstractmethod
from typing import Optional

from hecship.abc.connector import Connector
from hecship.abc.exceptions import HecshipException


class OutputError(HecshipException):
    """Base class for Output related exceptions."""

    def __init__(self, output: "Output", message: str) -> None:
        output.metrics.number_of_errors += 1
        super().__init__(f"{self.__class__.__name__} in {output.describe()}: {message}")


class OutputWarning(HecshipException):
    """Base class for Output related warnings."""

    def __init__(self, output: "Output", message: str) -> None:
        output.metrics.number_of_warnings += 1
        super().__init__(f"{self.__class__.__name__} in {output.describe()}: {message}")


class Output(Connector):
    """Connect to a output destination."""

    @property
    def metric_labels(self) -> dict:
        """Return the metric labels for this component."""
        return {
            "component": "output",
            "description": self.describe(),
            "type": self._config.type,
            "name": self.name,
        }

    @abstractmethod
    def store(self, document) -> Optional[bool]:
        """Store the document in the output destination.

        Parameters
        ----------
        document
           Log message that will be stored.
        """

    @abstractmethod
    def store_custom(self, document, target: str):
        """Store additional data in a custom location inside the output destination."""
