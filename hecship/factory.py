"""Builds the output component from the :code:`output` section of a configuration."""

from hecship.abc.component import Component
from hecship.configuration import Configuration
from hecship.factory_error import (
    InvalidConfigSpecificationError,
    InvalidConfigurationError,
)


class Factory:
    """Create components for hecship."""

    @classmethod
    def create(cls, configuration: dict) -> Component:
        """Create the component of a section with exactly one entry
        :code:`{name: {"type": ..., **options}}`.

        Raises
        ------
        InvalidConfigurationError
            if the section is empty, holds more than one definition or the
            definition is invalid
        """
        if configuration is None or configuration == {}:
            raise InvalidConfigurationError("The component definition is empty.")
        if not isinstance(configuration, dict):
            raise InvalidConfigSpecificationError()
        (name, definition), *others = configuration.items()
        if others:
            raise InvalidConfigurationError(
                f"Found multiple component definitions ({', '.join(configuration)}),"
                " but there must be exactly one."
            )
        if definition is None:
            raise InvalidConfigurationError(f'The definition of component "{name}" is empty.')
        if not isinstance(definition, dict):
            raise InvalidConfigSpecificationError(name)
        component_class = Configuration.get_class(name, definition)
        return component_class(name, Configuration.create(name, definition))
