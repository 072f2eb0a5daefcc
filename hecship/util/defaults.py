"""Default values for hecship."""

from enum import IntEnum


class EXITCODES(IntEnum):
    """Exit codes for hecship."""

    SUCCESS = 0
    """Successful execution."""
    ERROR = 1
    """General unspecified error."""
    CONFIGURATION_ERROR = 2
    """An error in the configuration."""


MAX_BATCH_ITEMS = 1000
"""Maximum number of messages in one HEC request"""
MAX_BATCH_WAIT = 2.0
"""Maximum age of a batch in seconds before it is sent"""
HANDOFF_QUEUE_SIZE = 1024
"""Capacity of the queue between producers and the sender thread"""
HTTP_TIMEOUT = 4.0
"""Connect and read timeout in seconds for HEC requests"""
STOP_POLL_INTERVAL = 0.1
"""Upper bound in seconds for a single blocking wait of the sender thread or a producer"""

DEFAULT_INDEX = "main"
DEFAULT_SOURCETYPE = "input"
DEFAULT_SOURCE = "graylog"
DEFAULT_STREAMS_FIELD = "_streams"

# message fields of the graylog message model that are represented by
# the top level HEC keys or are internal to the host
DEFAULT_RESERVED_FIELDS = frozenset(
    {
        "_id",
        "_ttl",
        "_source",
        "_all",
        "_index",
        "_type",
        "_score",
        "message",
        "source",
        "timestamp",
        "gl2_source_node",
        "gl2_source_input",
        "gl2_source_collector",
        "gl2_source_collector_input",
        "gl2_remote_ip",
        "gl2_remote_port",
        "gl2_remote_hostname",
    }
)

DEFAULT_LOG_FORMAT = "%(asctime)-15s %(threadName)-24s %(name)-16s %(levelname)-8s: %(message)s"
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# dictconfig as described in
# https://docs.python.org/3/library/logging.config.html#configuration-dictionary-schema
DEFAULT_LOG_CONFIG: dict = {
    "version": 1,
    "formatters": {
        "hecship": {
            "class": "hecship.util.logging.HecshipFormatter",
            "format": DEFAULT_LOG_FORMAT,
            "datefmt": DEFAULT_LOG_DATE_FORMAT,
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "hecship",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "root": {"level": "INFO", "handlers": ["console"]},
        "urllib3.connectionpool": {"level": "ERROR"},
    },
    "filters": {},
    "disable_existing_loggers": False,
}
