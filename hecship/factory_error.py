"""Errors raised while building an output from its configuration section.

All of them are :py:class:`InvalidConfigurationError` so callers like the CLI can
report every configuration problem the same way.
"""

from hecship.abc.exceptions import HecshipException


class InvalidConfigurationError(HecshipException):
    """Raise if configuration is invalid."""


class InvalidConfigSpecificationError(InvalidConfigurationError):
    """Raise if a configuration section or a component definition is not a mapping."""

    def __init__(self, component=None):
        target = f' for component "{component}"' if component else ""
        super().__init__(f"The configuration{target} must be specified as an object.")


class NoTypeSpecifiedError(InvalidConfigurationError):
    """Raise if a component definition has no :code:`type`."""

    def __init__(self, name=None):
        suffix = f" for element with name '{name}'" if name else ""
        super().__init__(f"The type specification is missing{suffix}")


class UnknownComponentTypeError(InvalidConfigurationError):
    """Raise if the :code:`type` is not registered."""

    def __init__(self, component_name, component_type):
        super().__init__(f"Unknown type '{component_type}' for '{component_name}'")
