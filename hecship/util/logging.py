"""helper classes for hecship logging"""

import logging
from socket import gethostname


class HecshipFormatter(logging.Formatter):
    """
    A custom formatter for hecship logging with additional attributes.

    The available attributes are listed in the
    `python documentation <https://docs.python.org/3/library/logging.html#logrecord-attributes>`_ .
    Additionally, the formatter provides the following hecship specific attributes:

    .. table::

        +-----------------------+--------------------------------------------------+
        | attribute             | description                                      |
        +=======================+==================================================+
        | %(hostname)           | The hostname of the machine where the log was    |
        |                       | emitted                                          |
        +-----------------------+--------------------------------------------------+

    """

    def format(self, record):
        record.hostname = gethostname()
        return super().format(record)


def mask_secret(secret: str, visible: int = 4) -> str:
    """Return the secret with all but the last :code:`visible` characters replaced"""
    if not secret:
        return ""
    if len(secret) <= visible:
        return "*" * len(secret)
    return "*" * (len(secret) - visible) + secret[-visible:]
