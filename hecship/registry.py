"""module for the component registry
it is used to check if a component type is known to the system.
you have to register new components here by importing them and adding them to
`Registry.mapping`
"""

from typing import Dict, Type

from hecship.abc.component import Component
from hecship.connector.splunk_hec.output import SplunkHecOutput


class Registry:
    """Component Registry"""

    mapping: Dict[str, Type[Component]] = {
        # Connectors
        "splunk_hec_output": SplunkHecOutput,
    }

    @classmethod
    def get_class(cls, component_type: str) -> Type[Component]:
        """return the component class for a given type

        Parameters
        ----------
        component_type : str
            the component type

        Returns
        -------
        Type[Component]
            the registered class

        Raises
        ------
        ValueError
            if the type is not registered
        """
        component_class = cls.mapping.get(component_type)
        if component_class is None:
            raise ValueError(f"Unknown component type: {component_type}")
        return component_class
