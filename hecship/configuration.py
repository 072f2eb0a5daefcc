"""module for component configuration """

from typing import TYPE_CHECKING, Any, Mapping

from hecship.factory_error import (
    InvalidConfigurationError,
    NoTypeSpecifiedError,
    UnknownComponentTypeError,
)
from hecship.registry import Registry

if TYPE_CHECKING:  # pragma: no cover
    from hecship.abc import Component


class Configuration:
    """factory and adapter for generating config"""

    @classmethod
    def create(cls, name: str, config_: Mapping[str, Any]) -> "Component.Config":
        """factory method to create component configuration

        Parameters
        ----------
        name: str
            the name of the component
        config_ : Mapping[str, Any]
            the config dict

        Returns
        -------
        Config
            the component configuration

        Raises
        ------
        InvalidConfigurationError
            if required keys are missing, unknown keys are given or a value is invalid
        """
        class_ = cls.get_class(name, config_)
        try:
            return class_.Config(**config_)
        except InvalidConfigurationError as error:
            raise InvalidConfigurationError(
                f"Invalid configuration for '{name}': {error.message}"
            ) from error
        except (TypeError, ValueError) as error:
            raise InvalidConfigurationError(
                f"Invalid configuration for '{name}': {error}"
            ) from error

    @staticmethod
    def get_class(name: str, config_: Mapping[str, Any]):
        """gets the class from config

        Parameters
        ----------
        name : str
            The name of the component
        config_ : Mapping[str, Any]
            the configuration with setted `type`

        Returns
        -------
        Component
            The requested component class

        Raises
        ------
        UnknownComponentTypeError
            if component is not found
        NoTypeSpecifiedError
            if type is not found in config object
        """
        if "type" not in config_:
            raise NoTypeSpecifiedError(name)
        component_type = config_.get("type")
        if component_type not in Registry.mapping:
            raise UnknownComponentTypeError(name, component_type)
        return Registry.get_class(component_type)
