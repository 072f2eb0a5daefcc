# pylint: disable=logging-fstring-interpolation
"""This module can be used to ship json lines events to a Splunk HEC endpoint."""
import json
import logging
import logging.config
import signal
import sys
from pathlib import Path
from typing import IO, Optional

import click
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from hecship._version import get_versions
from hecship.abc.output import Output
from hecship.factory import Factory
from hecship.factory_error import InvalidConfigurationError
from hecship.util.defaults import DEFAULT_LOG_CONFIG, EXITCODES

logging.captureWarnings(True)
logger = logging.getLogger("hecship")

yaml = YAML(typ="safe", pure=True)

GRACEFUL_STOP_TIMEOUT = 10.0


def _load_configuration(config_path: str) -> dict:
    """Read the yaml configuration and return it as dict.

    The configuration has to contain an :code:`output` section with exactly one
    component definition and may contain a :code:`logger` section with a :code:`level`.
    """
    try:
        content = yaml.load(Path(config_path).read_text(encoding="utf-8"))
    except (OSError, YAMLError) as error:
        raise InvalidConfigurationError(f"Could not read '{config_path}': {error}") from error
    if not isinstance(content, dict):
        raise InvalidConfigurationError(f"'{config_path}' does not contain a mapping")
    if "output" not in content:
        raise InvalidConfigurationError(f"'{config_path}' has no 'output' section")
    return content


def _setup_logging(configuration: dict) -> None:
    logging.config.dictConfig(DEFAULT_LOG_CONFIG)
    level = configuration.get("logger", {}).get("level")
    if level:
        logging.getLogger("root").setLevel(level)


def _get_output(config_path: str) -> Output:
    try:
        configuration = _load_configuration(config_path)
        _setup_logging(configuration)
        return Factory.create(configuration["output"])
    except (InvalidConfigurationError, ValueError) as error:
        print(f"InvalidConfigurationError: {error}", file=sys.stderr)
        sys.exit(EXITCODES.CONFIGURATION_ERROR.value)


def ship_events(output: Output, events: IO[str]) -> int:
    """Write every json line of the stream to the output. Returns the number of
    lines that could not be parsed."""
    invalid_lines = 0
    for line_number, line in enumerate(events, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            event = json.loads(line)
        except json.JSONDecodeError as error:
            logger.warning(f"Skipping line {line_number}: {error}")
            invalid_lines += 1
            continue
        if not isinstance(event, dict):
            logger.warning(f"Skipping line {line_number}: not a json object")
            invalid_lines += 1
            continue
        output.store(event)
    return invalid_lines


@click.group(name="hecship")
@click.version_option(version=get_versions()["version"], message="%(version)s")
def cli() -> None:
    """
    hecship forwards log messages to a Splunk HTTP Event Collector.
    """


@cli.command(short_help="Ship json lines events to splunk")
@click.argument("config")
@click.option(
    "--events",
    type=click.File("r", encoding="utf-8"),
    default="-",
    show_default=True,
    help="File with one json event per line, '-' reads from stdin.",
)
def run(config: str, events: Optional[IO[str]] = None) -> None:
    """
    Ship events with the output defined in CONFIG.

    CONFIG is a path to a yaml configuration file.
    """
    output = _get_output(config)
    logger.info(f"hecship version {get_versions()['version']}")
    logger.debug(f"Config path: {config}")

    def signal_handler(__: int, _) -> None:
        logger.info("Received signal, stopping output")
        output.stop()
        sys.exit(EXITCODES.SUCCESS.value)

    if "pytest" not in sys.modules:  # needed for not blocking tests
        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)
    output.setup()
    try:
        invalid_lines = ship_events(output, events)
    finally:
        output.stop(graceful=True, timeout=GRACEFUL_STOP_TIMEOUT)
    if invalid_lines:
        logger.warning(f"{invalid_lines} line(s) could not be shipped")
        sys.exit(EXITCODES.ERROR.value)


@cli.group(name="test", short_help="Execute tests against a given configuration")
def test() -> None:
    """
    Verify the configuration.
    """


@test.command(name="config")
@click.argument("config")
def test_config(config: str) -> None:
    """
    Verify the configuration file

    CONFIG is a path to a yaml configuration file.
    """
    _get_output(config)
    click.secho("The verification of the configuration was successful", fg="green")


if __name__ == "__main__":
    cli()
