# pylint: disable=missing-docstring
from .component import Component
from .connector import Connector
from .output import Output
